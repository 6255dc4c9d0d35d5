"""
Run update handler: free-text email to a created or updated run.
"""

from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import Command, InboundEmail, OutboundMessage
from runs_gateway.handlers.base import BaseHandler, HandlerContext
from runs_gateway.handlers.registry import register_handler
from runs_gateway.processors.reconciler import Reconciler

log = get_logger(__name__)


@register_handler
class RunUpdateHandler(BaseHandler):
    """Extracts run details from the email and reconciles them with storage."""

    commands = (Command.RUN_UPDATE,)

    def handle(self, email: InboundEmail, context: HandlerContext) -> OutboundMessage:
        fields = context.extractor.extract(email.subject, email.body)
        outcome = Reconciler(context.repository).apply(fields, sender=context.sender)

        log.info(
            "run_update_processed",
            action=outcome.action.value,
            record_id=outcome.record_id,
            title=outcome.title,
        )
        return context.notifier.confirmation(outcome)
