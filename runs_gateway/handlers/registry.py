"""
Command to handler lookup.

Handler modules register themselves on import with @register_handler; the
package __init__ imports every handler module.
"""

from typing import Type

from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import Command
from runs_gateway.handlers.base import BaseHandler

log = get_logger(__name__)

_handlers: dict[Command, BaseHandler] = {}


def register_handler(handler_class: Type[BaseHandler]) -> Type[BaseHandler]:
    """
    Class decorator: instantiate the handler and route its commands to it.

    Raises:
        ValueError: a command is already served by another handler
    """
    handler = handler_class()
    for command in handler_class.commands:
        current = _handlers.get(command)
        if current is not None:
            raise ValueError(
                f"{command.value} is already handled by {type(current).__name__}"
            )
        _handlers[command] = handler

    log.debug(
        "handler_registered",
        handler=handler_class.__name__,
        commands=[c.value for c in handler_class.commands],
    )
    return handler_class


def get_handler(command: Command) -> BaseHandler | None:
    return _handlers.get(command)


def get_all_handlers() -> dict[Command, BaseHandler]:
    return dict(_handlers)


def restore_handlers(handlers: dict[Command, BaseHandler]) -> None:
    """Replace the registry contents, e.g. with a get_all_handlers() snapshot."""
    _handlers.clear()
    _handlers.update(handlers)


def clear_handlers() -> None:
    _handlers.clear()
