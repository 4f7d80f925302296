import os
import re
import sys


def env_int(name, default, minimum=0):
    """Integer from the environment; falls back to default on a bad value."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        value = None
    if value is None or value < minimum:
        print(f"[!] ignoring {name}={raw!r}, using {default}", file=sys.stderr, flush=True)
        return default
    return value


# ================= CONFIG =================

DEFAULT_REPEAT_TIMES = 5
DEFAULT_VIEWPORT_SIZE = (1920, 1080)   # width, height
DEFAULT_WAIT_UNTIL = "load"

OUTPUT_FORMATS = ("raw", "json", "table", "csv")
DEFAULT_OUTPUT_FORMAT = "raw"          # library callers
DEFAULT_CLI_OUTPUT_FORMAT = "table"

POLL_INTERVAL_MS = env_int("LOAD_PROBE_POLL_INTERVAL_MS", 100, minimum=1)
MAX_POLL_ATTEMPTS = env_int("LOAD_PROBE_MAX_POLLS", 300, minimum=1)
SETTLE_MS = env_int("LOAD_PROBE_SETTLE_MS", 1000)
NAVIGATION_TIMEOUT_MS = env_int("LOAD_PROBE_NAV_TIMEOUT_MS", 60000, minimum=1)
# ==========================================

PROTOCOL_METRICS = (
    "JSHeapUsedSize",
    "JSHeapTotalSize",
    "ScriptDuration",
    "FirstMeaningfulPaint",
    "DomContentLoaded",
)

NAVIGATION_TIMINGS = ("domInteractive", "loadEventEnd", "responseEnd")
PAINT_TIMINGS = ("firstPaint", "firstContentfulPaint")

REQUIRED_METRICS = PROTOCOL_METRICS + NAVIGATION_TIMINGS + PAINT_TIMINGS

BYTES_BASED_VALUES = ("JSHeapUsedSize", "JSHeapTotalSize")

# Puppeteer names kept as aliases so old invocations keep working
WAIT_CONDITIONS = {
    "load": "load",
    "domcontentloaded": "domcontentloaded",
    "networkidle": "networkidle",
    "networkidle0": "networkidle",
    "networkidle2": "networkidle",
}

URL_REGEX = re.compile(r"^https?://[^\s/?#]+[^\s]*$", re.IGNORECASE)
