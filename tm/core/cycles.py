"""Cycle partitioning and cycle/element statistics over a segment snapshot."""

import math
from dataclasses import dataclass
from typing import Optional

from tm.core.measurement import NON_VALUE_ADDED, VALUE_ADDED, WASTE, Measurement


@dataclass(frozen=True)
class CycleStats:
    count: int
    average: float
    minimum: float
    maximum: float


@dataclass(frozen=True)
class ElementStats:
    name: str
    category: str
    count: int
    minimum: float
    maximum: float
    average: float
    std_dev: float
    total: float


@dataclass(frozen=True)
class CycleSummary:
    total: float
    value_added: float
    non_value_added: float
    waste: float
    element_count: int
    bottleneck: Optional[Measurement]

    def _ratio(self, part):
        return (part / self.total) * 100 if self.total > 0 else 0.0

    @property
    def value_added_ratio(self):
        return self._ratio(self.value_added)

    @property
    def non_value_added_ratio(self):
        return self._ratio(self.non_value_added)

    @property
    def waste_ratio(self):
        return self._ratio(self.waste)


def filter_by_cycle(segments, cycle):
    return tuple(m for m in segments if m.cycle == cycle)


def aggregate_by_cycle(segments):
    """Cycle number -> summed duration, in ascending cycle order."""
    totals = {}
    for m in segments:
        totals[m.cycle] = totals.get(m.cycle, 0.0) + m.duration
    return dict(sorted(totals.items()))


def cycle_stats(segments):
    """Average/min/max cycle time across cycles, or None for an empty timeline."""
    totals = list(aggregate_by_cycle(segments).values())
    if not totals:
        return None
    return CycleStats(
        count=len(totals),
        average=sum(totals) / len(totals),
        minimum=min(totals),
        maximum=max(totals),
    )


def next_cycle(segments):
    return max((m.cycle for m in segments), default=0) + 1


def element_stats(segments):
    """Per element name, across all cycles: count, spread and total duration.

    ``std_dev`` is the population standard deviation. The category reported is the
    one the element was first filed under.
    """
    groups = {}
    for m in segments:
        group = groups.setdefault(m.element_name, {"category": m.category, "durations": []})
        group["durations"].append(m.duration)

    stats = []
    for name, group in groups.items():
        durations = group["durations"]
        count = len(durations)
        total = sum(durations)
        average = total / count
        variance = sum((d - average) ** 2 for d in durations) / count
        stats.append(ElementStats(
            name=name,
            category=group["category"],
            count=count,
            minimum=min(durations),
            maximum=max(durations),
            average=average,
            std_dev=math.sqrt(variance),
            total=total,
        ))
    return stats


def cycle_summary(segments, cycle=None):
    """Category breakdown for one cycle (or every segment when ``cycle`` is None)."""
    scoped = filter_by_cycle(segments, cycle) if cycle is not None else tuple(segments)

    def _sum(category):
        return sum(m.duration for m in scoped if m.category == category)

    return CycleSummary(
        total=sum(m.duration for m in scoped),
        value_added=_sum(VALUE_ADDED),
        non_value_added=_sum(NON_VALUE_ADDED),
        waste=_sum(WASTE),
        element_count=len(scoped),
        bottleneck=max(scoped, key=lambda m: m.duration, default=None),
    )
