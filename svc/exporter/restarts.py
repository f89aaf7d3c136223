from __future__ import annotations
from typing import Dict

from .models import UNSET_TIMESTAMP


class RestartDetector:
    """
    Flags a suspected bridge restart when a sensor that had a last-updated
    timestamp is seen again with none (the bridge reports "none" until a
    sensor reports in after boot).

    ``observe`` compares against the previous value recorded for the same
    unique id and then overwrites it. ``restart_observed`` is sticky until
    ``begin_scrape`` is called, so any number of regressing sensors in one
    scrape count as a single restart.
    """

    def __init__(self, keep_history: bool = False) -> None:
        self.keep_history = keep_history
        self._history: Dict[str, int] = {}
        self.restart_observed = False

    def begin_scrape(self) -> None:
        self.restart_observed = False
        if not self.keep_history:
            self._history = {}

    def observe(self, unique_id: str, last_updated: int) -> bool:
        previous = self._history.get(unique_id, UNSET_TIMESTAMP)
        regressed = previous != UNSET_TIMESTAMP and last_updated == UNSET_TIMESTAMP
        if regressed:
            self.restart_observed = True
        self._history[unique_id] = last_updated
        return regressed

    def __len__(self) -> int:
        return len(self._history)
