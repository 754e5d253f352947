"""
Log browsing session.

Coordinates filter changes, listing fetches, content navigation and search
against the remote log API, discarding responses that a newer request has
superseded.
"""

from logdash.session.session import (
    CONTENT_PLACEHOLDER,
    NO_RESULTS_MESSAGE,
    LogBrowserSession,
)

__all__ = ["CONTENT_PLACEHOLDER", "NO_RESULTS_MESSAGE", "LogBrowserSession"]
