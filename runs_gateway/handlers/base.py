"""
Command handler interface.

A handler declares the commands it serves and turns one authorised message
into the reply for its sender.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from runs_gateway.config import GatewayConfig
from runs_gateway.core.models import Command, InboundEmail, OutboundMessage
from runs_gateway.extractors.base import BaseExtractor
from runs_gateway.services.notifier import Notifier
from runs_gateway.services.repository import RunRepository


@dataclass
class HandlerContext:
    """Collaborators available to a handler for one message."""

    config: GatewayConfig
    repository: RunRepository
    extractor: BaseExtractor
    notifier: Notifier
    sender: str


class BaseHandler(ABC):
    """Serves the commands listed in `commands`."""

    commands: tuple[Command, ...] = ()

    @abstractmethod
    def handle(self, email: InboundEmail, context: HandlerContext) -> OutboundMessage:
        """
        Compose the reply for one message.

        Raises:
            GatewayError: the sender should get an error reply instead
        """
        pass
