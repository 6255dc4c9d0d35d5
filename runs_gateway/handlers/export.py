"""
Export handler: CSV of every run.
"""

from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import Command, InboundEmail, OutboundMessage
from runs_gateway.handlers.base import BaseHandler, HandlerContext
from runs_gateway.handlers.registry import register_handler
from runs_gateway.processors.csv_bulk import export_csv

log = get_logger(__name__)


@register_handler
class ExportHandler(BaseHandler):
    commands = (Command.EXPORT,)

    def handle(self, email: InboundEmail, context: HandlerContext) -> OutboundMessage:
        count, csv_text = export_csv(context.repository)
        log.info("export_requested", runs=count)
        return context.notifier.export(count, csv_text)
