"""Tests for shared data models."""

from datetime import date

import pytest
from pydantic import ValidationError

from logdash.models import Environment, FilterSelection, LogFileEntry


def test_filter_selection_completeness():
    selection = FilterSelection(
        bucket="b1", environment="DEV", app_name="app1", date="2024-01-01"
    )
    assert selection.is_complete()
    assert selection.scope() == ("b1", Environment.DEV, "app1", date(2024, 1, 1))

    selection.app_name = "  "
    assert selection.app_name == ""
    assert not selection.is_complete()


def test_filter_selection_blank_values_clear_fields():
    selection = FilterSelection(environment="", date="")
    assert selection.environment is None
    assert selection.date is None
    assert not selection.is_complete()


def test_filter_selection_rejects_unknown_environment():
    selection = FilterSelection()
    with pytest.raises(ValidationError):
        selection.environment = "STAGING"
    assert selection.environment is None


def test_log_file_entry_from_wire_and_frozen():
    entry = LogFileEntry.model_validate(
        {"key": "k1", "fileName": "a.log", "lastModified": "2024-01-01T00:00:00Z",
         "size": 10, "sequence": 1}
    )
    assert entry.file_name == "a.log"
    with pytest.raises(ValidationError):
        entry.size = 11
    with pytest.raises(ValidationError):
        LogFileEntry(key="k2", file_name="b.log", size=-1)
