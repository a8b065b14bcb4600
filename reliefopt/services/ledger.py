import threading
from typing import Dict, List, Mapping

from reliefopt.errors import InsufficientInventory, NegativeInventoryOrDemand, UnknownDepot
from reliefopt.models import AllocationResult, LedgerEntry
import logging

logger = logging.getLogger(__name__)


class InventoryLedger:
    """
    Live depot inventory shared between allocation runs.

    Runs read a ``snapshot()``; results are written back with ``commit()`` one
    at a time under a lock. Every change is appended to ``history``.
    """

    def __init__(self, inventory: Mapping[str, int]):
        for depot_id, units in inventory.items():
            if units < 0:
                raise NegativeInventoryOrDemand(f"Depot {depot_id} has negative inventory {units}")
        self._inventory: Dict[str, int] = dict(inventory)
        self._history: List[LedgerEntry] = []
        self._lock = threading.Lock()

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._inventory)

    @property
    def history(self) -> List[LedgerEntry]:
        with self._lock:
            return list(self._history)

    def _append(self, kind: str, changes: Dict[str, int]) -> LedgerEntry:
        entry = LedgerEntry(sequence=len(self._history) + 1, kind=kind, changes=changes)
        self._history.append(entry)
        return entry

    def commit(self, result: AllocationResult) -> LedgerEntry:
        """Deduct a run's allocations from live inventory, all or nothing."""
        drawn: Dict[str, int] = {}
        for row in result.rows:
            drawn[row.depot_id] = drawn.get(row.depot_id, 0) + row.allocated_units
        with self._lock:
            for depot_id, units in sorted(drawn.items()):
                if depot_id not in self._inventory:
                    raise UnknownDepot(depot_id)
                if units > self._inventory[depot_id]:
                    raise InsufficientInventory(
                        f"Depot {depot_id} holds {self._inventory[depot_id]} units, commit needs {units}"
                    )
            for depot_id, units in drawn.items():
                self._inventory[depot_id] -= units
            entry = self._append("commit", {d: -u for d, u in sorted(drawn.items())})
        logger.info("Committed allocation #%d: %d units from %d depots", entry.sequence, sum(drawn.values()), len(drawn))
        return entry

    def replenish(self, depot_id: str, units: int) -> LedgerEntry:
        if units < 0:
            raise NegativeInventoryOrDemand(f"Replenishment must be >= 0, got {units}")
        with self._lock:
            if depot_id not in self._inventory:
                raise UnknownDepot(depot_id)
            self._inventory[depot_id] += units
            entry = self._append("replenish", {depot_id: units})
        logger.info("Replenished %s with %d units", depot_id, units)
        return entry
