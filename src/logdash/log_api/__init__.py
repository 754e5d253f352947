"""
Remote log API client.

Lists buckets and log files, fetches file content and runs full-text search
against the log service over HTTP.
"""

from logdash.log_api.client import LogApiClient, LogApiError

__all__ = ["LogApiClient", "LogApiError"]
