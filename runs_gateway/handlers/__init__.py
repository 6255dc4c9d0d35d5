"""
Command handlers.

Importing this package registers one handler per Command.
"""

from .base import BaseHandler, HandlerContext
from .registry import register_handler, get_handler

from .help import HelpHandler
from .export import ExportHandler
from .csv_import import ImportHandler
from .run_update import RunUpdateHandler

__all__ = [
    "BaseHandler",
    "HandlerContext",
    "register_handler",
    "get_handler",
    "HelpHandler",
    "ExportHandler",
    "ImportHandler",
    "RunUpdateHandler",
]
