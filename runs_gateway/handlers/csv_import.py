"""
Import handler: bulk create/update from an attached CSV.
"""

from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import Command, InboundEmail, OutboundMessage
from runs_gateway.handlers.base import BaseHandler, HandlerContext
from runs_gateway.handlers.registry import register_handler
from runs_gateway.processors.csv_bulk import CsvImporter, read_csv_attachment
from runs_gateway.processors.reconciler import Reconciler

log = get_logger(__name__)


@register_handler
class ImportHandler(BaseHandler):
    commands = (Command.IMPORT,)

    def handle(self, email: InboundEmail, context: HandlerContext) -> OutboundMessage:
        log.info("import_requested", attachments=len(email.attachments))
        csv_text = read_csv_attachment(email.attachments)

        importer = CsvImporter(Reconciler(context.repository))
        summary = importer.run(csv_text, sender=context.sender)
        return context.notifier.import_summary(summary)
