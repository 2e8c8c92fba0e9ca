"""Tests for probe orchestration with certutil replaced by fakes."""

from __future__ import annotations

import json

import pytest

from adcs_probe.adcs.templates import parse_dstemplate
from adcs_probe.errors import EnumerationError
from adcs_probe.probe import runner
from adcs_probe.probe.parameters import build_parameters
from adcs_probe.settings import settings
from conftest import AUTOENROLL_OID, DSTEMPLATE_OUTPUT, NOW, WEB_SERVER_OID


def _params(**overrides):
    values = {"ca_config": "ca01\\Corp CA", "warning_days": 30, "error_days": 7}
    values.update(overrides)
    return build_parameters(**values)


@pytest.fixture()
def fake_ca(monkeypatch, certutil_csv):
    """Serve a fixed certutil export and template list to the runner."""
    calls = {"templates": 0, "view": []}

    def fake_list_templates():
        calls["templates"] += 1
        return parse_dstemplate(DSTEMPLATE_OUTPUT)

    def fake_view(ca_config, start, end):
        calls["view"].append((ca_config, start, end))
        return certutil_csv(
            [
                ("1", "ws01.corp.local", 3, AUTOENROLL_OID),
                ("2", "web01.corp.local", 12, WEB_SERVER_OID),
                ("3", "alice", 45, "User"),
            ]
        )

    monkeypatch.setattr(runner, "list_templates", fake_list_templates)
    monkeypatch.setattr("adcs_probe.adcs.issued.run_certutil_view", fake_view)
    return calls


def test_resolves_display_names(fake_ca):
    record = runner.run_probe(_params(return_index=1), now=NOW)

    assert record.text == "web01.corp.local (Corp Web Server) expires in 12 Days"
    assert fake_ca["view"][0][0] == "ca01\\Corp CA"


def test_excludes_autoenroll_templates(fake_ca):
    record = runner.run_probe(_params(exclude_autoenroll=True), now=NOW)

    assert record.days_remaining == 12


def test_excludes_by_display_name(fake_ca):
    params = _params(exclude_templates="Corp Workstation;Corp Web Server")

    record = runner.run_probe(params, now=NOW)

    assert record.text == "alice (User) expires in 45 Days"


def test_out_of_range_index(fake_ca):
    record = runner.run_probe(_params(max_results=2, return_index=2), now=NOW)

    assert record.days_remaining == 99999
    assert record.text == "ReturnIndex 2 out of range - Result only contains 2 elements"


def test_template_lookup_failure_falls_back_to_oid(monkeypatch, fake_ca):
    def broken():
        raise EnumerationError("no domain")

    monkeypatch.setattr(runner, "list_templates", broken)

    record = runner.run_probe(_params(return_index=1), now=NOW)

    assert record.text == f"web01.corp.local ({WEB_SERVER_OID}) expires in 12 Days"


def test_template_lookup_failure_is_fatal_for_autoenroll(monkeypatch, fake_ca):
    def broken():
        raise EnumerationError("no domain")

    monkeypatch.setattr(runner, "list_templates", broken)

    with pytest.raises(EnumerationError):
        runner.run_probe(_params(exclude_autoenroll=True), now=NOW)


def test_name_resolution_can_be_disabled(monkeypatch, fake_ca):
    monkeypatch.setattr(settings, "RESOLVE_TEMPLATE_NAMES", False)

    runner.run_probe(_params(), now=NOW)

    assert fake_ca["templates"] == 0


def test_export_file_skips_template_lookup(tmp_path, fake_ca, certutil_csv):
    export = tmp_path / "issued.csv"
    export.write_text(certutil_csv([("9", "db01.corp.local", 20, "User")]))

    record = runner.run_probe(_params(ca_config=None, csv_path=export), now=NOW)

    assert record.text == "db01.corp.local (User) expires in 20 Days"
    assert fake_ca["templates"] == 0
    assert fake_ca["view"] == []


def test_probe_payload_is_idempotent(fake_ca):
    params = _params(return_index=1)

    first = runner.probe_payload(params, now=NOW).render()
    second = runner.probe_payload(params, now=NOW).render()

    assert first == second
    assert json.loads(first)["prtg"]["result"][0]["Value"] == 12
