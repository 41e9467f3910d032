"""Standard-time calculator.

``normal = duration * rating / 100`` and
``standard = normal * (1 + (personal + fatigue + delay) / 100)``. Nothing is rounded
or cached; callers recompute on every read so results always track the current
rating and allowance settings.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Allowances:
    personal: float = 5.0
    fatigue: float = 4.0
    delay: float = 2.0

    @property
    def total(self):
        return self.personal + self.fatigue + self.delay

    @classmethod
    def from_dict(cls, data):
        defaults = cls()
        return cls(
            personal=float(data.get("personal", defaults.personal)),
            fatigue=float(data.get("fatigue", defaults.fatigue)),
            delay=float(data.get("delay", defaults.delay)),
        )

    def to_dict(self):
        return {"personal": self.personal, "fatigue": self.fatigue, "delay": self.delay}


@dataclass(frozen=True)
class StandardTime:
    normal_time: float
    standard_time: float


def normal_time(duration, rating):
    return duration * (rating / 100)


def standard_time(duration, rating, allowances=Allowances()):
    normal = normal_time(duration, rating)
    return StandardTime(normal, normal * (1 + allowances.total / 100))


def for_measurement(measurement, allowances=Allowances()):
    return standard_time(measurement.duration, measurement.rating, allowances)


def standard_times(segments, allowances=Allowances()):
    """Per-segment ``(measurement, StandardTime)`` rows in store order."""
    return [(m, for_measurement(m, allowances)) for m in segments]


def total_standard_time(segments, allowances=Allowances()):
    return sum(for_measurement(m, allowances).standard_time for m in segments)
