"""Fake Playwright page and CDP session so the probe runs without a browser."""

import pytest

NAVIGATION_START_S = 1000.0
NAVIGATION_START_MS = 1_600_000_000_000


def counters(fmp=1000.25, **overrides):
    values = {
        "NavigationStart": NAVIGATION_START_S,
        "JSHeapUsedSize": 2_000_000,
        "JSHeapTotalSize": 4_000_000,
        "ScriptDuration": 0.05,
        "FirstMeaningfulPaint": fmp,
        "DomContentLoaded": 1000.2,
        "LayoutCount": 12,
    }
    values.update(overrides)
    return {"metrics": [{"name": k, "value": v} for k, v in values.items()]}


def navigation_timing(**overrides):
    timing = {
        "navigationStart": NAVIGATION_START_MS,
        "responseEnd": NAVIGATION_START_MS + 80,
        "domInteractive": NAVIGATION_START_MS + 150,
        "loadEventEnd": NAVIGATION_START_MS + 300,
    }
    timing.update(overrides)
    return timing


def paint_entries():
    return [
        {"name": "first-paint", "startTime": 120.5},
        {"name": "first-contentful-paint", "startTime": 130.5},
    ]


class FakeCDPSession:
    def __init__(self, snapshots=None):
        self.snapshots = list(snapshots or [counters()])
        self.sent = []

    def send(self, method, params=None):
        self.sent.append(method)
        if method == "Performance.getMetrics":
            # keep returning the last snapshot once the queue is drained
            if len(self.snapshots) > 1:
                return self.snapshots.pop(0)
            return self.snapshots[0]
        return {}


class FakePage:
    def __init__(self, timing=None, paints=None):
        self.timing = timing if timing is not None else navigation_timing()
        self.paints = paints if paints is not None else paint_entries()
        self.calls = []
        self.reload_error = None

    def reload(self, wait_until=None, timeout=None):
        self.calls.append(("reload", wait_until))
        if self.reload_error:
            raise self.reload_error

    def wait_for_load_state(self, state=None, timeout=None):
        self.calls.append(("wait_for_load_state", state))

    def wait_for_timeout(self, timeout):
        self.calls.append(("wait_for_timeout", timeout))

    def evaluate(self, script):
        if "performance.timing" in script:
            return dict(self.timing)
        if "paint" in script:
            return [dict(entry) for entry in self.paints]
        raise AssertionError(f"unexpected script: {script}")


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def cdp():
    return FakeCDPSession()


@pytest.fixture
def snapshot():
    """Builds a Performance.getMetrics response."""
    return counters


@pytest.fixture
def timing():
    """Builds a performance.timing object."""
    return navigation_timing


@pytest.fixture
def make_page():
    return FakePage


@pytest.fixture
def make_cdp():
    return FakeCDPSession
