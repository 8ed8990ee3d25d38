"""
Baseline store for streaming single-value checks.

Maps caller-supplied identifiers to BaselineStatistics. Entries are replaced
wholesale on update and never expire; callers own freshness.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence

from seqsentinel.core.exceptions import BaselineNotFoundError

from .schema import BaselineStatistics
from .statistics import compute_statistics


@dataclass
class BaselineStore:
    """
    Identifier -> BaselineStatistics mapping.

    Not synchronized on its own; the engine serializes access.
    """

    std_floor: float
    _baselines: Dict[str, BaselineStatistics] = field(default_factory=dict)

    def update(self, identifier: str, data: Sequence[float]) -> BaselineStatistics:
        stats = compute_statistics(data, self.std_floor)
        self._baselines[identifier] = stats
        return stats

    def get(self, identifier: str) -> BaselineStatistics:
        try:
            return self._baselines[identifier]
        except KeyError:
            raise BaselineNotFoundError(identifier) from None

    def identifiers(self) -> List[str]:
        return sorted(self._baselines)

    def clear(self) -> None:
        self._baselines.clear()

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._baselines

    def __len__(self) -> int:
        return len(self._baselines)

    def __iter__(self) -> Iterator[str]:
        return iter(self.identifiers())
