"""Unit tests for handlers."""

import pytest

from runs_gateway.core.models import Command, InboundEmail
from runs_gateway.handlers import (
    ExportHandler,
    HandlerContext,
    HelpHandler,
    ImportHandler,
    RunUpdateHandler,
)
from runs_gateway.handlers.base import BaseHandler
from runs_gateway.handlers.registry import (
    clear_handlers,
    get_all_handlers,
    get_handler,
    register_handler,
    restore_handlers,
)
from runs_gateway.services.notifier import Notifier


@pytest.fixture
def isolated_registry():
    """Empty registry for the test, restored afterwards."""
    saved = get_all_handlers()
    clear_handlers()
    yield
    restore_handlers(saved)


@pytest.fixture
def context(config, repository, extractor) -> HandlerContext:
    return HandlerContext(
        config=config,
        repository=repository,
        extractor=extractor,
        notifier=Notifier(subject_prefix="GH3"),
        sender="gm@example.com",
    )


class TestHandlerRegistry:
    """Tests for handler registry."""

    def test_register_handler(self, isolated_registry):
        """Test handler registration."""
        @register_handler
        class TestHandler(BaseHandler):
            commands = (Command.HELP, Command.EXPORT)

            def handle(self, e, c):
                pass

        handler = get_handler(Command.HELP)
        assert isinstance(handler, TestHandler)
        assert get_handler(Command.EXPORT) is handler
        assert get_handler(Command.IMPORT) is None

    def test_command_claimed_twice(self, isolated_registry):
        """Test a second handler for the same command is rejected."""
        @register_handler
        class FirstHandler(BaseHandler):
            commands = (Command.HELP,)

            def handle(self, e, c):
                pass

        with pytest.raises(ValueError):
            @register_handler
            class SecondHandler(BaseHandler):
                commands = (Command.HELP,)

                def handle(self, e, c):
                    pass

        assert isinstance(get_handler(Command.HELP), FirstHandler)

    def test_get_handler_returns_none_for_unhandled(self, isolated_registry):
        """Test get_handler returns None when no handler matches."""
        assert get_handler(Command.EXPORT) is None

    @pytest.mark.parametrize("command, handler_class", [
        (Command.HELP, HelpHandler),
        (Command.EXPORT, ExportHandler),
        (Command.IMPORT, ImportHandler),
        (Command.RUN_UPDATE, RunUpdateHandler),
    ])
    def test_every_command_has_a_handler(self, command, handler_class):
        assert isinstance(get_handler(command), handler_class)


class TestRunUpdateHandler:
    def test_confirms_created_run(self, context, repository, extractor):
        email = InboundEmail(sender="gm@example.com", subject="Run", text="Monday")

        message = RunUpdateHandler().handle(email, context)

        assert message.subject == "GH3: Hash Run created"
        assert extractor.calls == [("Run", "Monday")]
        assert len(repository.records) == 1


class TestExportHandler:
    def test_export_empty_repository(self, context):
        message = ExportHandler().handle(InboundEmail(subject="Export"), context)

        assert message.subject == "GH3: Hash Runs Export (0 runs)"
        assert message.attachments[0].content.startswith(b"run_number,")
