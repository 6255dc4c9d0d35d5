"""
Run detail extractors.

Uses the Anthropic Messages API to turn free-text emails into run fields.
"""

from runs_gateway.config import GatewayConfig
from runs_gateway.extractors.base import BaseExtractor
from runs_gateway.extractors.claude import ClaudeExtractor


def get_extractor(config: GatewayConfig) -> BaseExtractor:
    """Get the extractor for one message, using that message's API key."""
    return ClaudeExtractor(api_key=config.anthropic_api_key)


__all__ = [
    "BaseExtractor",
    "ClaudeExtractor",
    "get_extractor",
]
