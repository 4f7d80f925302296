import statistics
from dataclasses import dataclass

from probe_errors import InsufficientDataError


# ================= STATISTICS =================

def _require_values(values, what):
    values = list(values)
    if not values:
        raise InsufficientDataError(f"cannot compute {what} of an empty sample")
    return values


def get_average(values):
    return float(statistics.mean(_require_values(values, "average")))


def get_median(values):
    """Middle value, or the mean of the two middle values for an even count."""
    return float(statistics.median(_require_values(values, "median")))


def get_standard_deviation(values):
    """Population standard deviation (divides by N, not N - 1)."""
    return float(statistics.pstdev(_require_values(values, "standard deviation")))


@dataclass(frozen=True)
class MetricStatistics:
    average: float
    min: float
    median: float
    max: float
    standard_deviation: float

    def as_dict(self):
        return {
            "average": self.average,
            "min": self.min,
            "median": self.median,
            "max": self.max,
            "standardDeviation": self.standard_deviation,
        }


@dataclass(frozen=True)
class AggregatedMetric:
    key: str
    metrics: MetricStatistics

    def as_dict(self):
        return {"key": self.key, "metrics": self.metrics.as_dict()}


def summarize(values):
    values = _require_values(values, "statistics")
    return MetricStatistics(
        average=get_average(values),
        min=float(min(values)),
        median=get_median(values),
        max=float(max(values)),
        standard_deviation=get_standard_deviation(values),
    )


# ================= AGGREGATION =================

class SampleAggregator:
    """Collects one record per run and reduces them to per-metric statistics.

    Values are appended per key in run order. A key missing from a record
    simply gets no value for that run; the extractor is expected to reject
    incomplete records before they reach here.
    """

    def __init__(self):
        self._samples = {}
        self.runs = 0

    def add(self, record):
        for key, value in record.items():
            self._samples.setdefault(key, []).append(value)
        self.runs += 1

    @property
    def samples(self):
        return {key: tuple(values) for key, values in self._samples.items()}

    def finalize(self):
        if not self._samples:
            raise InsufficientDataError("no metric records were collected")

        return tuple(
            AggregatedMetric(key=key, metrics=summarize(values))
            for key, values in self._samples.items()
        )


def aggregate_records(records):
    aggregator = SampleAggregator()
    for record in records:
        aggregator.add(record)
    return aggregator.finalize()
