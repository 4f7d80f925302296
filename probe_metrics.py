import re

from probe_config import (
    MAX_POLL_ATTEMPTS,
    NAVIGATION_TIMINGS,
    PAINT_TIMINGS,
    POLL_INTERVAL_MS,
    REQUIRED_METRICS,
)
from probe_errors import ExtractionTimeoutError, IncompleteRecordError


NAVIGATION_TIMING_JS = """
() => JSON.parse(JSON.stringify(window.performance.timing))
"""

PAINT_TIMING_JS = """
() => performance.getEntriesByType('paint').map(e => ({ name: e.name, startTime: e.startTime }))
"""


# ================= HELPERS =================

def translate_metrics(snapshot):
    """Flatten a Performance.getMetrics response into {name: value}."""
    return {item["name"]: item["value"] for item in snapshot.get("metrics", [])}


def relative_ms(time, navigation_start):
    """CDP timestamps are seconds; convert to ms since navigation start."""
    return (time - navigation_start) * 1000


def to_camel_case(value):
    return re.sub(r"-([a-z])", lambda m: m.group(1).upper(), value)


# ================= PROTOCOL COUNTERS =================

def extract_protocol_metrics(page, cdp, poll_interval_ms=POLL_INTERVAL_MS,
                             max_polls=MAX_POLL_ATTEMPTS):
    cdp.send("Performance.enable")

    counters = {}
    first_meaningful_paint = 0
    attempts = 0

    # FirstMeaningfulPaint is reported asynchronously after real paint work
    while not first_meaningful_paint:
        if attempts >= max_polls:
            raise ExtractionTimeoutError(
                f"FirstMeaningfulPaint still zero after {attempts} polls "
                f"({attempts * poll_interval_ms} ms)",
                attempts=attempts,
            )
        page.wait_for_timeout(poll_interval_ms)
        counters = translate_metrics(cdp.send("Performance.getMetrics"))
        first_meaningful_paint = counters.get("FirstMeaningfulPaint", 0)
        attempts += 1

    navigation_start = counters.get("NavigationStart")
    if navigation_start is None:
        raise IncompleteRecordError(
            "performance counters have no NavigationStart", ["NavigationStart"]
        )

    extracted = {
        "JSHeapUsedSize": counters.get("JSHeapUsedSize"),
        "JSHeapTotalSize": counters.get("JSHeapTotalSize"),
        "ScriptDuration": None,
        "FirstMeaningfulPaint": relative_ms(first_meaningful_paint, navigation_start),
        "DomContentLoaded": None,
    }
    if "ScriptDuration" in counters:
        extracted["ScriptDuration"] = counters["ScriptDuration"] * 1000
    if counters.get("DomContentLoaded"):
        extracted["DomContentLoaded"] = relative_ms(counters["DomContentLoaded"], navigation_start)

    return {key: value for key, value in extracted.items() if value is not None}


# ================= IN-PAGE TIMINGS =================

def extract_timings(page):
    timing = page.evaluate(NAVIGATION_TIMING_JS)
    paints = page.evaluate(PAINT_TIMING_JS)

    navigation_start = timing.get("navigationStart", 0)
    extracted = {}

    for name in NAVIGATION_TIMINGS:
        # zero means the event has not happened yet
        if timing.get(name):
            extracted[name] = timing[name] - navigation_start

    for entry in paints:
        key = to_camel_case(entry["name"])
        if key in PAINT_TIMINGS:
            extracted[key] = entry["startTime"]

    return extracted


# ================= RECORD =================

def merge_records(protocol, timings):
    merged = dict(timings)
    merged.update(protocol)
    return merged


def extract_record(page, cdp, poll_interval_ms=POLL_INTERVAL_MS, max_polls=MAX_POLL_ATTEMPTS):
    """Build the full metric record for the page currently loaded.

    Both sources are read, merged (protocol counters win on a name clash) and
    narrowed to REQUIRED_METRICS. Anything missing fails the whole run rather
    than letting a short sample into the statistics.
    """
    protocol = extract_protocol_metrics(page, cdp, poll_interval_ms, max_polls)
    timings = extract_timings(page)
    merged = merge_records(protocol, timings)

    missing = [name for name in REQUIRED_METRICS if name not in merged]
    if missing:
        raise IncompleteRecordError(
            f"missing metrics: {', '.join(missing)}", missing
        )

    return {name: merged[name] for name in REQUIRED_METRICS}
