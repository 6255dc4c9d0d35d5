"""
Inbound message processor.

Authorizes the sender, routes the message to the handler for its command
and sends exactly one reply. Unidentifiable or unauthorised senders are
dropped without a reply.
"""

import secrets

from runs_gateway.config import GatewayConfig
from runs_gateway.core.exceptions import GatewayError
from runs_gateway.core.logging import get_logger, bind_context, clear_context
from runs_gateway.core.models import (
    Command,
    InboundEmail,
    OutboundMessage,
    ProcessingResult,
)
from runs_gateway.extractors import BaseExtractor, get_extractor
from runs_gateway.handlers import HandlerContext, get_handler
from runs_gateway.services.mailer import Mailer
from runs_gateway.services.notifier import Notifier
from runs_gateway.services.repository import RunRepository

log = get_logger(__name__)

UNEXPECTED_ERROR = "Something went wrong while processing your email."


def verify_token(config: GatewayConfig, token: str | None) -> bool:
    """Constant-time check of the webhook token against the configured secret."""
    if not config.webhook_secret:
        return False
    return secrets.compare_digest(
        config.webhook_secret.encode("utf-8"),
        (token or "").encode("utf-8"),
    )


class InboundProcessor:
    """Runs one inbound message through the pipeline."""

    def __init__(
        self,
        config: GatewayConfig,
        repository: RunRepository,
        extractor: BaseExtractor | None = None,
        mailer: Mailer | None = None,
        notifier: Notifier | None = None,
    ):
        self.config = config
        self.repository = repository
        self.extractor = extractor or get_extractor(config)
        self.mailer = mailer or Mailer.from_config(config)
        self.notifier = notifier or Notifier(sender_address=config.sender_address)

    def process(self, email: InboundEmail) -> ProcessingResult:
        """
        Process one message.

        Returns:
            ProcessingResult describing what happened; never raises for
            problems with the message itself
        """
        sender = email.sender_email
        log.info("inbound_received", sender=sender or None, subject=email.subject)

        if not sender:
            log.warning("no_sender_found")
            return ProcessingResult(success=True, action="dropped_no_sender")

        if not self.config.is_authorised(sender):
            log.warning("unauthorised_sender", sender=sender)
            return ProcessingResult(success=True, action="dropped_unauthorised", sender=sender)

        command = email.command
        bind_context(sender=sender, command=command.value)
        try:
            reply, error = self._dispatch(email, command, sender)
            sent = self.mailer.send(sender, reply)
        finally:
            clear_context()

        return ProcessingResult(
            success=error is None,
            action="replied" if sent else "reply_not_sent",
            command=command,
            sender=sender,
            error=error,
        )

    def _dispatch(
        self,
        email: InboundEmail,
        command: Command,
        sender: str,
    ) -> tuple[OutboundMessage, str | None]:
        """Run the command handler, turning failures into an error reply."""
        handler = get_handler(command)
        if handler is None:
            log.error("no_handler", command=command.value)
            return self.notifier.error(UNEXPECTED_ERROR), f"No handler for {command.value}"

        context = HandlerContext(
            config=self.config,
            repository=self.repository,
            extractor=self.extractor,
            notifier=self.notifier,
            sender=sender,
        )

        try:
            return handler.handle(email, context), None

        except GatewayError as e:
            kind = getattr(e, "kind", None)
            log.warning(
                "message_failed",
                error=e.message,
                kind=kind.value if kind else type(e).__name__,
            )
            return self.notifier.error(e.message), e.message

        except Exception as e:
            log.exception("message_processing_error", error=str(e))
            return self.notifier.error(UNEXPECTED_ERROR), str(e)
