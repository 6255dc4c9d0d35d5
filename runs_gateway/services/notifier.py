"""
Reply composition for the sender.

Pure formatting: every method returns an OutboundMessage and never fails.
Missing data simply leaves its line out.
"""

import html

from runs_gateway.config import settings
from runs_gateway.core.models import (
    Action,
    ImportSummary,
    MailAttachment,
    OutboundMessage,
    ReconciliationOutcome,
)

# Fields listed in confirmations, in display order
CONFIRMATION_LABELS = {
    "run_date": "Date",
    "hares": "Hare(s)",
    "location": "Location",
    "start_time": "Start Time",
    "oninn": "On Inn",
    "what3words": "What3Words",
    "maps_url": "Maps",
    "notes": "Notes",
}

RETRY_HINT = "Please try again, making sure to include at least a date for the run."

EXPORT_FILENAME = "hash-runs-export.csv"

HELP_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">

<h2 style="color: #2271b1; margin-top: 0;">Hash Runs &ndash; Email Gateway</h2>

<p>Send an email to <strong>{address}</strong> to create or update a hash run. Write naturally &ndash; the run details are picked out automatically.</p>

<h3 style="color: #2271b1;">Creating a new run</h3>
<p>Include at least a <strong>date</strong>. Everything else is optional.</p>
<div style="background: #f0f6fc; border: 1px solid #c8d6e5; border-radius: 6px; padding: 16px; margin: 12px 0;">
<em>Subject:</em> Next Monday's run<br><br>
Run 2120, hare is Speedy, next Monday at the Cricket Ground.<br>
On Inn: The William Bray<br>
///happy.running.trail
</div>

<h3 style="color: #2271b1;">Updating an existing run</h3>
<p>Include the <strong>run number</strong>, the <strong>date</strong> and only what you want to change. Fields you leave out keep their current values.</p>
<div style="background: #f0f6fc; border: 1px solid #c8d6e5; border-radius: 6px; padding: 16px; margin: 12px 0;">
<em>Subject:</em> Run 2120 update<br><br>
Run 2120 on 16th March &ndash; start time 11am, note: wear fancy dress
</div>

<h3 style="color: #2271b1;">Supported fields</h3>
<table style="border-collapse: collapse; width: 100%; margin: 12px 0;">
{field_rows}
</table>

<h3 style="color: #2271b1;">Bulk export &amp; import</h3>
<ul style="padding-left: 20px;">
<li>Send an email with subject <strong>Export</strong> to receive a CSV of all runs</li>
<li>Send an email with subject <strong>Import</strong> with a CSV attached, using the same column headers as the export</li>
</ul>

<h3 style="color: #2271b1;">Tips</h3>
<ul style="padding-left: 20px;">
<li>You will get a confirmation email with a link to the published run</li>
<li>To update a run, always include the run number</li>
<li>Send an email with subject <strong>Help</strong> to see this message again</li>
</ul>

</body>
</html>"""

HELP_FIELDS = (
    ("Run number", "e.g. Run 2120"),
    ("Date", "Any format &ndash; &ldquo;next Monday&rdquo;, &ldquo;15th March&rdquo;, &ldquo;2026-03-15&rdquo;"),
    ("Start time", "Defaults to 19:30 if not specified"),
    ("Hare(s)", "Who is laying the trail"),
    ("Location", "Start location"),
    ("What3Words", "e.g. ///happy.running.trail"),
    ("Google Maps link", "Paste a maps URL"),
    ("On Inn", "Pub or venue after the run"),
    ("Notes", "Any other info"),
)


class Notifier:
    """Composes replies to the sender."""

    def __init__(self, subject_prefix: str | None = None, sender_address: str = ""):
        self.subject_prefix = subject_prefix or settings.subject_prefix
        self.sender_address = sender_address

    def _subject(self, text: str) -> str:
        return f"{self.subject_prefix}: {text}"

    def confirmation(self, outcome: ReconciliationOutcome) -> OutboundMessage:
        """Confirm a created or updated run."""
        action = "created" if outcome.action == Action.CREATED else "updated"
        run_number = outcome.written.get("run_number")

        full_title = outcome.title
        if run_number and not outcome.title.startswith(f"Run #{run_number}"):
            full_title = f"Run #{run_number} - {outcome.title}"

        lines = [f'"{full_title}" has been {action}.', ""]
        for key, label in CONFIRMATION_LABELS.items():
            value = outcome.written.get(key)
            if value:
                lines.append(f"{label}: {value}")

        if outcome.permalink:
            lines.append("")
            lines.append(f"View: {outcome.permalink}")

        return OutboundMessage(
            subject=self._subject(f"{full_title} {action}"),
            body="\n".join(lines),
        )

    def error(self, message: str) -> OutboundMessage:
        """Explain why a message could not be processed."""
        body = f"Your email could not be processed.\n\n{message}\n\n{RETRY_HINT}"
        return OutboundMessage(subject=self._subject("Email processing error"), body=body)

    def help(self) -> OutboundMessage:
        """Usage instructions as HTML."""
        rows = []
        for index, (label, description) in enumerate(HELP_FIELDS):
            shade = ' style="background: #f0f6fc;"' if index % 2 == 0 else ""
            rows.append(
                f"<tr{shade}>"
                f'<td style="padding: 8px 12px; border: 1px solid #c8d6e5;"><strong>{label}</strong></td>'
                f'<td style="padding: 8px 12px; border: 1px solid #c8d6e5;">{description}</td>'
                "</tr>"
            )
        body = HELP_HTML.format(
            address=html.escape(self.sender_address or "this address"),
            field_rows="\n".join(rows),
        )
        return OutboundMessage(
            subject=self._subject("Email Gateway Help"),
            body=body,
            is_html=True,
        )

    def export(self, count: int, csv_text: str) -> OutboundMessage:
        """CSV export of every run, as an attachment."""
        return OutboundMessage(
            subject=self._subject(f"Hash Runs Export ({count} runs)"),
            body=f"Attached is a CSV export of all {count} hash runs.",
            attachments=[
                MailAttachment(filename=EXPORT_FILENAME, content=csv_text.encode("utf-8")),
            ],
        )

    def import_summary(self, summary: ImportSummary) -> OutboundMessage:
        """Counts plus itemized created, updated and failed rows."""
        lines = [
            "CSV import complete.",
            "",
            f"Created: {len(summary.created)}",
            f"Updated: {len(summary.updated)}",
            f"Unchanged: {summary.unchanged}",
        ]

        if summary.created:
            lines += ["", "--- Created ---"]
            for outcome in summary.created:
                lines.append(f"  {outcome.title} ({outcome.written.get('run_date', '')})")

        if summary.updated:
            lines += ["", "--- Updated ---"]
            for outcome in summary.updated:
                lines.append(f"  {outcome.title}: {', '.join(outcome.changed)}")

        if summary.errors:
            lines += ["", "--- Errors ---"]
            for error in summary.errors:
                lines.append(f"  {error}")

        return OutboundMessage(subject=self._subject("Import complete"), body="\n".join(lines))
