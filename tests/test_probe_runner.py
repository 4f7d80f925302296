import pytest
from playwright.sync_api import Error as PlaywrightError

from probe_config import REQUIRED_METRICS
from probe_errors import (
    ExtractionTimeoutError,
    IncompleteRecordError,
    ResourceError,
    ValidationError,
)
from probe_runner import parse_wait_conditions, run_load_probe


def test_parse_wait_conditions():
    assert parse_wait_conditions("load") == ["load"]
    assert parse_wait_conditions("load, networkidle0") == ["load", "networkidle"]
    assert parse_wait_conditions(["domcontentloaded", "networkidle2", "networkidle0"]) == [
        "domcontentloaded", "networkidle",
    ]


@pytest.mark.parametrize("value", ["", " , ", "unload", "load,bogus"])
def test_parse_wait_conditions_rejects(value):
    with pytest.raises(ValidationError):
        parse_wait_conditions(value)


def test_runs_requested_number_of_reloads(page, cdp):
    steps = []

    result = run_load_probe(page, cdp, repeat=3, log_step=lambda i, n: steps.append((i, n)),
                            settle_ms=0, poll_interval_ms=1, max_polls=3)

    assert steps == [(1, 3), (2, 3), (3, 3)]
    assert [c for c in page.calls if c[0] == "reload"] == [("reload", "load")] * 3
    assert tuple(entry.key for entry in result) == REQUIRED_METRICS


def test_single_run_has_no_spread(page, cdp):
    result = run_load_probe(page, cdp, repeat=1, settle_ms=0, poll_interval_ms=1, max_polls=3)

    for entry in result:
        stats = entry.metrics
        assert stats.average == stats.min == stats.max == stats.median
        assert stats.standard_deviation == 0


def test_extra_wait_conditions_use_load_state(page, cdp):
    run_load_probe(page, cdp, repeat=1, wait_until="domcontentloaded,networkidle",
                   settle_ms=0, poll_interval_ms=1, max_polls=3)

    assert page.calls[:2] == [
        ("reload", "domcontentloaded"),
        ("wait_for_load_state", "networkidle"),
    ]


def test_settles_between_runs_only(page, cdp):
    run_load_probe(page, cdp, repeat=3, settle_ms=500, poll_interval_ms=1, max_polls=3)
    assert page.calls.count(("wait_for_timeout", 500)) == 2


@pytest.mark.parametrize("repeat", [0, -1, 2.5, "3", True])
def test_repeat_must_be_positive_int(page, cdp, repeat):
    with pytest.raises(ValidationError):
        run_load_probe(page, cdp, repeat=repeat)
    assert page.calls == []


def test_reload_failure_becomes_resource_error(page, cdp):
    page.reload_error = PlaywrightError("net::ERR_CONNECTION_REFUSED")

    with pytest.raises(ResourceError) as excinfo:
        run_load_probe(page, cdp, repeat=2, settle_ms=0)

    assert isinstance(excinfo.value.__cause__, PlaywrightError)


def test_timeout_reports_the_failing_run(page, make_cdp, snapshot):
    cdp = make_cdp([snapshot(fmp=0)])

    with pytest.raises(ExtractionTimeoutError) as excinfo:
        run_load_probe(page, cdp, repeat=2, settle_ms=0, poll_interval_ms=1, max_polls=2)

    assert excinfo.value.step == 1
    assert str(excinfo.value).startswith("run 1:")


def test_incomplete_record_aborts_without_result(cdp, make_page):
    page = make_page(paints=[])

    with pytest.raises(IncompleteRecordError) as excinfo:
        run_load_probe(page, cdp, repeat=3, settle_ms=0, poll_interval_ms=1, max_polls=2)

    assert excinfo.value.step == 1
    assert [c for c in page.calls if c[0] == "reload"] == [("reload", "load")]


@pytest.mark.parametrize("settle_ms", [-1, 0.5, None])
def test_settle_must_be_non_negative_int(page, cdp, settle_ms):
    with pytest.raises(ValidationError):
        run_load_probe(page, cdp, repeat=1, settle_ms=settle_ms)
    assert page.calls == []
