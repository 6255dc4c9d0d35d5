"""Unit tests for the Claude extractor."""

import json

import httpx
import pytest

from runs_gateway.config import GatewayConfig
from runs_gateway.core.exceptions import ExtractionError, FailureKind
from runs_gateway.extractors import ClaudeExtractor, get_extractor


def claude_reply(text: str) -> dict:
    return {"content": [{"type": "text", "text": text}]}


def make_extractor(handler, api_key: str = "test-key") -> ClaudeExtractor:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ClaudeExtractor(api_key=api_key, client=client)


def respond_with(text: str):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=claude_reply(text))
    return handler


class TestClaudeExtractor:
    """Tests for ClaudeExtractor."""

    def test_request_format(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["request"] = request
            return httpx.Response(200, json=claude_reply('{"run_date": "2026-03-16"}'))

        make_extractor(handler).extract("Next run", "Monday at the Park")

        request = captured["request"]
        body = json.loads(request.content)
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == "test-key"
        assert request.headers["anthropic-version"] == "2023-06-01"
        assert body["max_tokens"] == 1024
        assert body["messages"] == [
            {"role": "user", "content": "Subject: Next run\n\nMonday at the Park"},
        ]
        assert "run_number" in body["system"]

    def test_parses_fields(self):
        reply = json.dumps({
            "run_number": "2120",
            "run_date": "2026-03-16",
            "start_time": "19:30",
            "hares": "Speedy",
            "location": "Cricket Ground",
            "what3words": None,
            "title": "Monday run",
        })

        fields = make_extractor(respond_with(reply)).extract("s", "b")

        assert fields.run_number == 2120
        assert fields.run_date == "2026-03-16"
        assert fields.hares == "Speedy"
        assert fields.what3words is None
        assert fields.title == "Monday run"

    @pytest.mark.parametrize("text", [
        '```json\n{"run_date": "2026-03-16"}\n```',
        '```\n{"run_date": "2026-03-16"}\n```\n',
        '  {"run_date": "2026-03-16"}  ',
    ])
    def test_strips_code_fences(self, text):
        fields = make_extractor(respond_with(text)).extract("s", "b")

        assert fields.run_date == "2026-03-16"

    def test_run_number_without_date_is_missing_date(self):
        reply = '{"run_number": 2120, "start_time": "11:00"}'

        with pytest.raises(ExtractionError) as exc_info:
            make_extractor(respond_with(reply)).extract("s", "b")

        assert exc_info.value.kind == FailureKind.MISSING_DATE

    def test_prompt_requires_run_date(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=claude_reply('{"run_date": "2026-03-16"}'))

        make_extractor(handler).extract("s", "b")

        assert "run_date is required" in captured["body"]["system"]

    def test_no_api_key(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(ExtractionError) as exc_info:
            make_extractor(handler, api_key="").extract("s", "b")

        assert exc_info.value.kind == FailureKind.NO_API_KEY

    def test_request_failed(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExtractionError) as exc_info:
            make_extractor(handler).extract("s", "b")

        assert exc_info.value.kind == FailureKind.REQUEST_FAILED
        assert exc_info.value.message.startswith("AI extraction request failed:")

    def test_http_error(self):
        def handler(request):
            return httpx.Response(529, json={"type": "error"})

        with pytest.raises(ExtractionError) as exc_info:
            make_extractor(handler).extract("s", "b")

        assert exc_info.value.kind == FailureKind.API_ERROR
        assert "HTTP 529" in exc_info.value.message

    @pytest.mark.parametrize("payload", [
        {"content": []},
        {"content": [{"type": "text", "text": ""}]},
        {},
    ])
    def test_empty_response(self, payload):
        def handler(request):
            return httpx.Response(200, json=payload)

        with pytest.raises(ExtractionError) as exc_info:
            make_extractor(handler).extract("s", "b")

        assert exc_info.value.kind == FailureKind.EMPTY_RESPONSE

    def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(ExtractionError) as exc_info:
            make_extractor(handler).extract("s", "b")

        assert exc_info.value.kind == FailureKind.EMPTY_RESPONSE

    @pytest.mark.parametrize("text", ["Sorry, I can't help.", "[1, 2]", '"2026-03-16"'])
    def test_invalid_json(self, text):
        with pytest.raises(ExtractionError) as exc_info:
            make_extractor(respond_with(text)).extract("s", "b")

        assert exc_info.value.kind == FailureKind.INVALID_JSON
        assert exc_info.value.message == "Could not parse AI response. Please try rephrasing your email."

    def test_provider_error(self):
        text = '{"error": "This email does not describe a hash run."}'

        with pytest.raises(ExtractionError) as exc_info:
            make_extractor(respond_with(text)).extract("s", "b")

        assert exc_info.value.kind == FailureKind.PROVIDER_ERROR
        assert exc_info.value.message == "This email does not describe a hash run."

    def test_missing_date(self):
        with pytest.raises(ExtractionError) as exc_info:
            make_extractor(respond_with('{"hares": "Speedy"}')).extract("s", "b")

        assert exc_info.value.kind == FailureKind.MISSING_DATE
        assert exc_info.value.message == "No date found in your email. Please include a date for the run."


class TestGetExtractor:
    def test_uses_configured_key(self):
        extractor = get_extractor(GatewayConfig(anthropic_api_key="from-settings"))

        assert isinstance(extractor, ClaudeExtractor)
        assert extractor.api_key == "from-settings"
