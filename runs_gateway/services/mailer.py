"""
Outbound mail over SMTP.

Single attempt per message, bounded by a timeout. Failures are logged and
reported as False; they never interrupt the pipeline.
"""

import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from runs_gateway.config import GatewayConfig, settings
from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import OutboundMessage

log = get_logger(__name__)


class Mailer:
    """SMTP client for replies."""

    def __init__(
        self,
        host: str = "",
        port: int = 465,
        user: str = "",
        password: str = "",
        from_email: str = "",
        from_name: str = "",
        timeout: float | None = None,
    ):
        self.host = host
        self.port = port or 465
        self.user = user
        self.password = password
        self.from_email = from_email or user
        self.from_name = from_name or settings.from_name
        self.timeout = timeout or settings.smtp_timeout

    @classmethod
    def from_config(cls, config: GatewayConfig) -> "Mailer":
        return cls(
            host=config.smtp_host,
            port=config.smtp_port,
            user=config.smtp_user,
            password=config.smtp_password,
            from_email=config.from_email,
            from_name=config.from_name,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.user)

    def build(self, to: str, message: OutboundMessage) -> EmailMessage:
        """Build the MIME message for a reply."""
        msg = EmailMessage()
        msg["From"] = formataddr((self.from_name, self.from_email))
        msg["To"] = to
        msg["Subject"] = message.subject

        if message.is_html:
            msg.set_content(message.body, subtype="html", charset="utf-8")
        else:
            msg.set_content(message.body, charset="utf-8")

        for attachment in message.attachments:
            maintype, _, subtype = attachment.content_type.partition("/")
            msg.add_attachment(
                attachment.content,
                maintype=maintype or "application",
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )
        return msg

    def send(self, to: str, message: OutboundMessage) -> bool:
        """
        Send a reply.

        Port 587 upgrades with STARTTLS. Every other port uses implicit TLS.

        Returns:
            True if the SMTP server accepted the message
        """
        if not self.is_configured:
            log.warning("smtp_not_configured", to=to, subject=message.subject)
            return False

        msg = self.build(to, message)

        try:
            if self.port == 587:
                smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            else:
                smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
            with smtp:
                if self.port == 587:
                    smtp.starttls()
                smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            log.error("email_send_failed", to=to, subject=message.subject, error=str(e))
            return False

        log.info("email_sent", to=to, subject=message.subject)
        return True
