"""
Error taxonomy for the analysis pipeline.

Fatal errors (ValidationError, UpstreamError) abort the request and are
rendered as ``{"error": "<message>"}`` by the handler registered in main.py.
ScrapeError and NotifyError never leave their own module: the news fetcher
degrades to a sentinel string and the notifier only logs.
"""


class AnalysisError(Exception):
    """Base class for errors surfaced to the API caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AnalysisError):
    """Required input is missing (credential, or both image and text)."""

    status_code = 400


class UpstreamError(AnalysisError):
    """The inference provider reported an error or returned a malformed body."""

    status_code = 500


class ScrapeError(Exception):
    """Search request failed or the result page could not be read."""


class NotifyError(Exception):
    """Webhook delivery failed."""
