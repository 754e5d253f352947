"""Shared data models for log browsing sessions."""

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Environment(str, Enum):
    """Deployment environments a log bucket is partitioned by."""

    DEV = "DEV"
    HF = "HF"
    HT = "HT"
    PROD = "PROD"


class FilterField(str, Enum):
    """Fields of FilterSelection a caller may set."""

    BUCKET = "bucket"
    ENVIRONMENT = "environment"
    APP_NAME = "app_name"
    DATE = "date"
    QUERY = "query"


# Changing any of these re-queries the listing
SCOPE_FIELDS = frozenset(
    {FilterField.BUCKET, FilterField.ENVIRONMENT, FilterField.APP_NAME, FilterField.DATE}
)


class NavigationDirection(str, Enum):
    PREV = "prev"
    NEXT = "next"


class FilterSelection(BaseModel):
    """Current user selection scoping listing and search."""

    model_config = ConfigDict(validate_assignment=True)

    bucket: str = ""
    environment: Environment | None = None
    app_name: str = ""
    date: dt.date | None = None
    query: str = ""

    @field_validator("environment", "date", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("bucket", "app_name", mode="before")
    @classmethod
    def _strip(cls, value):
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    def is_complete(self) -> bool:
        """True when bucket, environment, app name and date are all set."""
        return bool(self.bucket and self.environment and self.app_name and self.date)

    def scope(self) -> tuple[str, Environment | None, str, dt.date | None]:
        return (self.bucket, self.environment, self.app_name, self.date)


class LogFileEntry(BaseModel):
    """One log file in a listing, as returned by the log API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str
    file_name: str = Field(alias="fileName")
    last_modified: dt.datetime | None = Field(default=None, alias="lastModified")
    size: int = Field(default=0, ge=0)
    sequence: int = 0


class SessionStatus(BaseModel):
    """Busy flags and latest error exposed to the caller."""

    loading: bool = False
    searching: bool = False
    error: str | None = None
