from playwright.sync_api import Error as PlaywrightError

from probe_config import (
    DEFAULT_REPEAT_TIMES,
    DEFAULT_WAIT_UNTIL,
    MAX_POLL_ATTEMPTS,
    NAVIGATION_TIMEOUT_MS,
    POLL_INTERVAL_MS,
    SETTLE_MS,
    WAIT_CONDITIONS,
)
from probe_errors import ExtractionError, ResourceError, ValidationError
from probe_metrics import extract_record
from probe_stats import SampleAggregator


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def validate_repeat(repeat):
    if not _is_int(repeat) or repeat < 1:
        raise ValidationError(f"repeat must be a positive integer, got {repeat!r}")
    return repeat


def validate_settle_ms(settle_ms):
    if not _is_int(settle_ms) or settle_ms < 0:
        raise ValidationError(f"settle_ms must be a non-negative integer, got {settle_ms!r}")
    return settle_ms


def parse_wait_conditions(value):
    """Accepts "load,networkidle" or a sequence; returns Playwright load states."""
    if isinstance(value, str):
        raw = value.split(",")
    else:
        raw = list(value)

    conditions = []
    for item in raw:
        name = item.strip().lower()
        if not name:
            continue
        if name not in WAIT_CONDITIONS:
            raise ValidationError(
                f"Unsupported wait condition '{item}' "
                f"(choose from {', '.join(WAIT_CONDITIONS)})"
            )
        state = WAIT_CONDITIONS[name]
        if state not in conditions:
            conditions.append(state)

    if not conditions:
        raise ValidationError("At least one wait condition is required")
    return conditions


def reload_page(page, conditions, timeout=NAVIGATION_TIMEOUT_MS):
    first, rest = conditions[0], conditions[1:]
    page.reload(wait_until=first, timeout=timeout)
    for state in rest:
        page.wait_for_load_state(state, timeout=timeout)


def run_load_probe(page, cdp, repeat=DEFAULT_REPEAT_TIMES, wait_until=DEFAULT_WAIT_UNTIL,
                   log_step=None, settle_ms=SETTLE_MS, poll_interval_ms=POLL_INTERVAL_MS,
                   max_polls=MAX_POLL_ATTEMPTS):
    """Reload the page `repeat` times and aggregate one metric record per reload.

    Runs are strictly sequential. Any failure aborts the whole session; the
    caller owns the browser and is expected to close it.
    """
    validate_repeat(repeat)
    validate_settle_ms(settle_ms)

    conditions = parse_wait_conditions(wait_until)
    aggregator = SampleAggregator()

    for step in range(1, repeat + 1):
        if log_step:
            log_step(step, repeat)

        try:
            reload_page(page, conditions)
            record = extract_record(page, cdp, poll_interval_ms, max_polls)
            if settle_ms and step < repeat:
                page.wait_for_timeout(settle_ms)
        except ExtractionError as e:
            e.step = step
            raise
        except PlaywrightError as e:
            raise ResourceError(f"run {step}/{repeat} failed: {e}") from e

        aggregator.add(record)

    return aggregator.finalize()
