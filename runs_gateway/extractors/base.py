"""
Abstract base class for run detail extractors.
"""

from abc import ABC, abstractmethod

from runs_gateway.core.models import ExtractedFields


class BaseExtractor(ABC):
    """Abstract extractor interface."""

    @abstractmethod
    def extract(self, subject: str, body: str) -> ExtractedFields:
        """
        Extract run details from an email.

        Args:
            subject: Email subject
            body: Email body (plain text)

        Returns:
            ExtractedFields with whatever the email mentioned

        Raises:
            ExtractionError: the email could not be turned into run details
        """
        pass
