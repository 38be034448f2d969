"""
Bounded reception history under unbounded runtime.

Every observer keeps a log of received ticks. Left alone it would grow
forever, so once it passes a size threshold the log is compacted:

- events younger than `raw_window` (receiver proper time) are kept raw
- older events are merged into buckets whose width grows with age
  (10 s up to an hour, 1 min up to a day, 1 h beyond by default)

A bucket collapses to one synthetic record carrying the member count and the
count-weighted mean Doppler factor, emission time and light-travel time.
Compaction is lossy: the raw detail of old events is gone for good.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

AGGREGATED_CLOCK = "A"

DEFAULT_TIERS: tuple[tuple[float, float], ...] = (
    (3600.0, 10.0),       # up to 1 h old → 10 s buckets
    (86400.0, 60.0),      # up to 1 day old → 1 min buckets
    (math.inf, 3600.0),   # older → 1 h buckets
)


@dataclass(frozen=True)
class ReceptionRecord:
    """
    One entry of an observer's reception history.

    Raw entries describe a single received tick. Aggregated entries
    (clock_type "A") stand for `count` raw events merged into a bucket.
    """

    tau: float                # Receiver proper time at reception
    source_id: str
    clock_type: str           # "H", "V", or "A" when aggregated
    tick_number: int
    doppler_factor: float     # Authoritative f_obs / f_emit
    emission_tau: float       # Emitter proper time at emission
    light_travel_time: float  # Lab time between emission and reception
    aggregated: bool = False
    count: int = 1
    bucket_size: float | None = None


@dataclass
class _Bucket:
    source_id: str
    start: float
    size: float
    count: int = 0
    max_tick: int = 0
    doppler_sum: float = 0.0
    emission_tau_sum: float = 0.0
    light_travel_time_sum: float = 0.0

    def add(self, record: ReceptionRecord) -> None:
        n = record.count
        self.count += n
        self.max_tick = max(self.max_tick, record.tick_number)
        self.doppler_sum += record.doppler_factor * n
        self.emission_tau_sum += record.emission_tau * n
        self.light_travel_time_sum += record.light_travel_time * n

    def to_record(self) -> ReceptionRecord:
        return ReceptionRecord(
            tau=self.start + self.size / 2,
            source_id=self.source_id,
            clock_type=AGGREGATED_CLOCK,
            tick_number=self.max_tick,
            doppler_factor=self.doppler_sum / self.count,
            emission_tau=self.emission_tau_sum / self.count,
            light_travel_time=self.light_travel_time_sum / self.count,
            aggregated=True,
            count=self.count,
            bucket_size=self.size,
        )


@dataclass(frozen=True)
class RetentionPolicy:
    """
    Tiered downsampling policy for reception histories.

    tiers is a sequence of (max_age, bucket_size) pairs ordered by age.
    The last tier must be open-ended (max_age = inf).
    """

    max_raw_entries: int = 500
    raw_window: float = 60.0
    tiers: tuple[tuple[float, float], ...] = field(default=DEFAULT_TIERS)

    def __post_init__(self):
        if self.max_raw_entries <= 0:
            raise ValueError("max_raw_entries must be positive")
        if self.raw_window < 0:
            raise ValueError("raw_window must be non-negative")
        if not self.tiers:
            raise ValueError("at least one aggregation tier is required")
        ages = [age for age, _ in self.tiers]
        if ages != sorted(ages) or not math.isinf(ages[-1]):
            raise ValueError("tiers must be ordered by age and end with an open tier")
        if any(size <= 0 for _, size in self.tiers):
            raise ValueError("bucket sizes must be positive")

    def needs_compaction(self, history: list[ReceptionRecord]) -> bool:
        """True once the raw (non-aggregated) entries exceed max_raw_entries."""
        return sum(not r.aggregated for r in history) > self.max_raw_entries

    def bucket_size_for(self, age: float) -> float | None:
        """Bucket width for an event of this age, or None if it stays raw."""
        if age < self.raw_window:
            return None
        for max_age, size in self.tiers:
            if age < max_age:
                return size
        return self.tiers[-1][1]

    def apply(self, history: list[ReceptionRecord], now: float) -> list[ReceptionRecord]:
        """
        Compact a history relative to the current proper time `now`.

        Returns a new list sorted by tau; the input is not modified.
        """
        kept: list[ReceptionRecord] = []
        buckets: dict[tuple[float, float, str], _Bucket] = {}

        for record in history:
            size = self.bucket_size_for(now - record.tau)
            if size is None:
                kept.append(record)
                continue
            start = math.floor(record.tau / size) * size
            key = (size, start, record.source_id)
            bucket = buckets.get(key)
            if bucket is None:
                bucket = buckets[key] = _Bucket(record.source_id, start, size)
            bucket.add(record)

        kept.extend(bucket.to_record() for bucket in buckets.values())
        kept.sort(key=lambda r: r.tau)

        logger.debug(
            "Compacted reception history: %d -> %d entries (%d buckets)",
            len(history), len(kept), len(buckets),
        )
        return kept
