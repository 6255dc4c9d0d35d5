"""
Claude extractor implementation (Anthropic Messages API).
"""

import json
import re

import httpx

from runs_gateway.config import settings
from runs_gateway.core.exceptions import ExtractionError, FailureKind
from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import ExtractedFields
from runs_gateway.extractors.base import BaseExtractor
from runs_gateway.extractors.prompts import run as run_prompts

log = get_logger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", re.MULTILINE)
FENCE_CLOSE_RE = re.compile(r"\s*```\s*$", re.MULTILINE)


class ClaudeExtractor(BaseExtractor):
    """Extracts run fields with a single call to the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.anthropic_api_key
        self.model = model or settings.extraction_model
        self.api_url = api_url or settings.extraction_api_url
        self.timeout = timeout or settings.extraction_timeout
        self._client = client

    def extract(self, subject: str, body: str) -> ExtractedFields:
        if not self.api_key:
            raise ExtractionError(
                FailureKind.NO_API_KEY,
                "Extraction API key is not configured.",
            )

        text = self._request(subject, body)
        data = self._parse_response(text)

        if data.get("error"):
            log.info("extraction_declined", reason=str(data["error"]))
            raise ExtractionError(FailureKind.PROVIDER_ERROR, str(data["error"]))

        fields = ExtractedFields.from_dict(data)
        if not fields.run_date:
            raise ExtractionError(
                FailureKind.MISSING_DATE,
                "No date found in your email. Please include a date for the run.",
            )

        log.info(
            "email_extracted",
            run_number=fields.run_number,
            run_date=fields.run_date,
            fields=sorted(fields.present()),
        )
        return fields

    def _request(self, subject: str, body: str) -> str:
        """Send one completion request and return the model's text."""
        payload = {
            "model": self.model,
            "max_tokens": settings.extraction_max_tokens,
            "system": run_prompts.SYSTEM_PROMPT,
            "messages": [
                {
                    "role": "user",
                    "content": run_prompts.USER_MESSAGE.format(subject=subject, body=body),
                },
            ],
        }
        headers = {
            "content-type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(self.api_url, json=payload, headers=headers)
        except httpx.RequestError as e:
            log.error("extraction_request_error", error=str(e))
            raise ExtractionError(
                FailureKind.REQUEST_FAILED,
                f"AI extraction request failed: {e}",
            )
        finally:
            if self._client is None:
                client.close()

        if response.status_code != 200:
            log.error(
                "extraction_http_error",
                status=response.status_code,
                response_body=response.text[:500],
            )
            raise ExtractionError(
                FailureKind.API_ERROR,
                f"AI extraction service returned error (HTTP {response.status_code}).",
            )

        try:
            content = response.json().get("content") or []
            text = content[0].get("text") if content else None
        except (ValueError, AttributeError):
            text = None

        if not text:
            raise ExtractionError(
                FailureKind.EMPTY_RESPONSE,
                "AI extraction service returned an empty response.",
            )
        return text

    def _parse_response(self, response_text: str) -> dict:
        """Parse JSON from the model response, removing code fences."""
        text = FENCE_OPEN_RE.sub("", response_text)
        text = FENCE_CLOSE_RE.sub("", text).strip()

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            log.error("extraction_parse_error", error=str(e), response=text[:500])
            data = None

        if not isinstance(data, dict):
            raise ExtractionError(
                FailureKind.INVALID_JSON,
                "Could not parse AI response. Please try rephrasing your email.",
            )
        return data
