"""
Help handler: usage instructions.
"""

from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import Command, InboundEmail, OutboundMessage
from runs_gateway.handlers.base import BaseHandler, HandlerContext
from runs_gateway.handlers.registry import register_handler

log = get_logger(__name__)


@register_handler
class HelpHandler(BaseHandler):
    commands = (Command.HELP,)

    def handle(self, email: InboundEmail, context: HandlerContext) -> OutboundMessage:
        log.info("help_requested")
        return context.notifier.help()
