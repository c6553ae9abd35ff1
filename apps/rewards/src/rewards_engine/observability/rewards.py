from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass
class RewardsTelemetrySnapshot:
    loads: Dict[str, int]
    propagations: Dict[str, Dict[str, int]]
    cache_faults: Dict[str, int]

    def as_dict(self) -> Dict[str, object]:
        return {
            "loads": dict(self.loads),
            "propagations": {key: dict(value) for key, value in self.propagations.items()},
            "cache_faults": dict(self.cache_faults),
        }


class RewardsTelemetry:
    """Count profile load sources, remote propagation outcomes and cache faults."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._loads: Dict[str, int] = defaultdict(int)
        self._propagations: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._cache_faults: Dict[str, int] = defaultdict(int)

    def record_load(self, source: str) -> None:
        with self._lock:
            self._loads[source] += 1

    def record_propagation(self, operation: str, *, success: bool) -> None:
        with self._lock:
            self._propagations[operation]["success" if success else "failure"] += 1

    def record_cache_fault(self, code: str) -> None:
        with self._lock:
            self._cache_faults[code] += 1

    def snapshot(self) -> RewardsTelemetrySnapshot:
        with self._lock:
            return RewardsTelemetrySnapshot(
                loads=dict(self._loads),
                propagations={key: dict(value) for key, value in self._propagations.items()},
                cache_faults=dict(self._cache_faults),
            )

    def reset(self) -> None:
        with self._lock:
            self._loads.clear()
            self._propagations.clear()
            self._cache_faults.clear()


_TELEMETRY = RewardsTelemetry()


def get_rewards_telemetry() -> RewardsTelemetry:
    return _TELEMETRY


__all__ = ["RewardsTelemetry", "RewardsTelemetrySnapshot", "get_rewards_telemetry"]
