"""
Throttled warning sink for long simulation runs.

A chiller evaluated every timestep for a year can hit the same curve-domain
excursion thousands of times. Each diagnostic class is therefore reported
in detail once, and later occurrences only update a per-key recurring
statistic (count, min, max of the offending value) that is summarised at
the end of the run.

Example:
    sink = DiagnosticsSink()
    sink.warn_once("CH-1:cap_ft_x", "CH-1: evaporator outlet 2.1 C below CAPFT x-min 4.0 C")
    sink.warn_recurring("CH-1:cap_ft_x", "CH-1: CAPFT x out of range continues", 2.3)
    sink.log_summary()
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, List, Set
import logging

logger = logging.getLogger(__name__)


@dataclass
class DiagnosticCounter:
    """Occurrence count for one warning class."""
    count: int = 0

    def increment(self) -> int:
        self.count += 1
        return self.count


@dataclass
class RecurringStat:
    """Aggregate of the repeated occurrences of one diagnostic key."""
    message: str
    count: int = 0
    minimum: float = float("inf")
    maximum: float = float("-inf")

    def add(self, value: float) -> None:
        self.count += 1
        self.minimum = min(self.minimum, value)
        self.maximum = max(self.maximum, value)


class DiagnosticsSink:
    """
    Collects chiller warnings with a one-time-then-recurring policy.

    Attributes:
        once_messages: Detailed messages emitted, in order.
        recurring: Recurring statistics keyed by diagnostic key.
    """

    def __init__(self, name: str = "chiller_plant") -> None:
        self.logger = logging.getLogger(f"{__name__}.{name}")
        self._once_keys: Set[str] = set()
        self.once_messages: List[str] = []
        self.recurring: Dict[str, RecurringStat] = {}

    def warn_once(self, key: str, message: str) -> None:
        """Emit message the first time key is seen; later calls are ignored."""
        if key in self._once_keys:
            return
        self._once_keys.add(key)
        self.once_messages.append(message)
        self.logger.warning(message)

    def warn_recurring(self, key: str, message: str, value: float) -> None:
        """Accumulate a repeated occurrence of key."""
        stat = self.recurring.get(key)
        if stat is None:
            stat = RecurringStat(message=message)
            self.recurring[key] = stat
        stat.add(float(value))
        self.logger.debug(f"{message} (occurrence {stat.count}, value={value})")

    def has_warned(self, key: str) -> bool:
        return key in self._once_keys

    def recurring_count(self, key: str) -> int:
        stat = self.recurring.get(key)
        return stat.count if stat is not None else 0

    def summary(self) -> Dict[str, Any]:
        """JSON-serialisable summary of all diagnostics."""
        return {
            "warnings": list(self.once_messages),
            "recurring": {key: asdict(stat) for key, stat in self.recurring.items()},
        }

    def log_summary(self) -> None:
        """Log one line per recurring key, as done at the end of a run."""
        for key, stat in self.recurring.items():
            self.logger.warning(
                f"{stat.message} This error occurred {stat.count} total times; "
                f"min={stat.minimum:.4g} max={stat.maximum:.4g}"
            )

    def reset(self) -> None:
        self._once_keys.clear()
        self.once_messages.clear()
        self.recurring.clear()


def report_throttled(
    sink: 'DiagnosticsSink',
    counter: DiagnosticCounter,
    key: str,
    detail: str,
    summary: str,
    value: float
) -> None:
    """
    Increment counter and route the occurrence to the sink.

    The first occurrence goes out as the detailed message; later ones
    feed the recurring summary for key.
    """
    if counter.increment() == 1:
        sink.warn_once(key, detail)
    else:
        sink.warn_recurring(key, summary, value)
