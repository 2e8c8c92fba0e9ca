"""Tests for probe parameter validation."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from adcs_probe.errors import ConfigurationError
from adcs_probe.probe.parameters import add_months, build_parameters, parse_template_list
from conftest import NOW


def _params(**overrides):
    values = {"ca_config": "ca01\\Corp CA", "warning_days": 30, "error_days": 7}
    values.update(overrides)
    return build_parameters(**values)


def test_defaults():
    params = _params()

    assert params.max_results == 10
    assert params.return_index == 0
    assert params.exclude_templates == []
    assert params.exclude_autoenroll is False


def test_exclude_templates_split_on_semicolons():
    params = _params(exclude_templates="WebServer; User;;  ")

    assert params.exclude_templates == ["WebServer", "User"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"warning_days": None},
        {"error_days": None},
        {"warning_days": -1},
        {"error_days": -5},
        {"max_results": 0},
        {"return_index": -1},
    ],
)
def test_invalid_values_raise_configuration_error(overrides):
    with pytest.raises(ConfigurationError):
        _params(**overrides)


def test_missing_source_raises():
    with pytest.raises(ConfigurationError, match="CA config string"):
        _params(ca_config=None)


def test_export_file_replaces_ca(tmp_path):
    params = _params(ca_config=None, csv_path=tmp_path / "issued.csv")

    assert params.csv_path == tmp_path / "issued.csv"


def test_end_before_start_raises():
    with pytest.raises(ConfigurationError, match="end date"):
        _params(start=datetime(2026, 5, 1), end=datetime(2026, 4, 1))


def test_naive_dates_become_utc():
    params = _params(start=datetime(2026, 5, 1, 12, 0))

    assert params.start.tzinfo == timezone.utc


def test_default_window_is_twelve_months():
    start, end = _params().window(NOW)

    assert start == NOW
    assert end == datetime(2027, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_window_with_explicit_start_after_default_end():
    params = _params(start=datetime(2030, 1, 1, tzinfo=timezone.utc))

    with pytest.raises(ConfigurationError):
        params.window(NOW)


def test_add_months_clamps_day():
    assert add_months(datetime(2028, 2, 29), 12) == datetime(2029, 2, 28)
    assert add_months(datetime(2026, 1, 31), 1) == datetime(2026, 2, 28)
    assert add_months(datetime(2026, 11, 15), 3) == datetime(2027, 2, 15)


def test_parse_template_list_empty():
    assert parse_template_list("") == []
