class ProbeError(Exception):
    """Base class for every error raised by the load probe."""


class ValidationError(ProbeError):
    """Bad input caught before the browser is touched."""


class ExtractionError(ProbeError):
    def __init__(self, message, step=None):
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self):
        if self.step is None:
            return self.message
        return f"run {self.step}: {self.message}"


class ExtractionTimeoutError(ExtractionError):
    """First meaningful paint never showed up in the performance counters."""

    def __init__(self, message, attempts, step=None):
        super().__init__(message, step)
        self.attempts = attempts


class IncompleteRecordError(ExtractionError):
    """A run produced a record without the full set of required metrics."""

    def __init__(self, message, missing, step=None):
        super().__init__(message, step)
        self.missing = list(missing)


class InsufficientDataError(ProbeError):
    """Statistics were requested over an empty sample."""


class ResourceError(ProbeError):
    """The browser, page or CDP session failed underneath us."""
