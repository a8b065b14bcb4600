from typing import Dict, List, Tuple

from reliefopt.errors import (
    InvalidNetwork,
    NegativeInventoryOrDemand,
    RouteNotFound,
    UnknownDepot,
    UnknownDistrict,
)
from reliefopt.models import District, Depot, Shelter, TravelEdge, NetworkSnapshot
import logging

logger = logging.getLogger(__name__)


def _index_unique(items, key: str, kind: str) -> Dict:
    index = {}
    for item in items:
        item_id = getattr(item, key)
        if item_id in index:
            raise InvalidNetwork(f"Duplicate {kind} id: {item_id}")
        index[item_id] = item
    return index


class NetworkModel:
    """
    Read-only graph of depots, shelters, districts and depot -> district travel edges.

    Build it with ``from_snapshot`` so referential integrity is checked before any
    allocation run can see the data.
    """

    def __init__(self, snapshot: NetworkSnapshot):
        self.snapshot = snapshot
        self._districts: Dict[str, District] = _index_unique(snapshot.districts, "district_id", "district")
        self._depots: Dict[str, Depot] = _index_unique(snapshot.depots, "depot_id", "depot")
        self._shelters: Dict[str, Shelter] = _index_unique(snapshot.shelters, "shelter_id", "shelter")

        self._shelters_by_district: Dict[str, List[Shelter]] = {d: [] for d in self._districts}
        for shelter in sorted(self._shelters.values(), key=lambda s: s.shelter_id):
            if shelter.district_id not in self._districts:
                raise InvalidNetwork(
                    f"Shelter {shelter.shelter_id} references unknown district {shelter.district_id}"
                )
            if shelter.capacity < 0:
                raise InvalidNetwork(f"Shelter {shelter.shelter_id} has negative capacity {shelter.capacity}")
            self._shelters_by_district[shelter.district_id].append(shelter)

        for depot in self._depots.values():
            if depot.inventory < 0:
                raise NegativeInventoryOrDemand(f"Depot {depot.depot_id} has negative inventory {depot.inventory}")

        self._edges: Dict[Tuple[str, str], TravelEdge] = {}
        for edge in snapshot.travel_edges:
            if edge.depot_id not in self._depots:
                raise InvalidNetwork(f"Travel edge references unknown depot {edge.depot_id}")
            if edge.district_id not in self._districts:
                raise InvalidNetwork(f"Travel edge references unknown district {edge.district_id}")
            if edge.travel_time_minutes < 0:
                raise InvalidNetwork(
                    f"Travel edge {edge.depot_id}->{edge.district_id} has negative travel time"
                )
            key = (edge.depot_id, edge.district_id)
            if key in self._edges:
                raise InvalidNetwork(f"Duplicate travel edge {edge.depot_id}->{edge.district_id}")
            self._edges[key] = edge

    @classmethod
    def from_snapshot(cls, snapshot: NetworkSnapshot) -> "NetworkModel":
        model = cls(snapshot)
        logger.info(
            "Loaded network: %d districts, %d depots, %d shelters, %d edges",
            len(model._districts),
            len(model._depots),
            len(model._shelters),
            len(model._edges),
        )
        return model

    # --- lookups ---

    @property
    def districts(self) -> List[District]:
        return [self._districts[k] for k in sorted(self._districts)]

    @property
    def depots(self) -> List[Depot]:
        return [self._depots[k] for k in sorted(self._depots)]

    @property
    def shelters(self) -> List[Shelter]:
        return [self._shelters[k] for k in sorted(self._shelters)]

    @property
    def edges(self) -> List[TravelEdge]:
        return [self._edges[k] for k in sorted(self._edges)]

    def district(self, district_id: str) -> District:
        try:
            return self._districts[district_id]
        except KeyError:
            raise UnknownDistrict(district_id) from None

    def depot(self, depot_id: str) -> Depot:
        try:
            return self._depots[depot_id]
        except KeyError:
            raise UnknownDepot(depot_id) from None

    def shelter(self, shelter_id: str) -> Shelter:
        try:
            return self._shelters[shelter_id]
        except KeyError:
            raise InvalidNetwork(f"Unknown shelter: {shelter_id}") from None

    def has_district(self, district_id: str) -> bool:
        return district_id in self._districts

    def resolve_district(self, key: str) -> District:
        """Match a district by exact id, or by exact (case-insensitive) display name."""
        if key in self._districts:
            return self._districts[key]
        wanted = key.strip().lower()
        for district in self.districts:
            if district.name.lower() == wanted:
                return district
        raise UnknownDistrict(key)

    def edge_cost(self, depot_id: str, district_id: str) -> float:
        edge = self._edges.get((depot_id, district_id))
        if edge is None:
            raise RouteNotFound(depot_id, district_id)
        return edge.travel_time_minutes

    def has_edge(self, depot_id: str, district_id: str) -> bool:
        return (depot_id, district_id) in self._edges

    def edges_to(self, district_id: str) -> List[TravelEdge]:
        """Edges into a district, cheapest first, depot id breaking ties."""
        self.district(district_id)
        edges = [e for (_, dist), e in self._edges.items() if dist == district_id]
        return sorted(edges, key=lambda e: (e.travel_time_minutes, e.depot_id))

    def shelters_of(self, district_id: str) -> List[Shelter]:
        if district_id not in self._districts:
            raise UnknownDistrict(district_id)
        return list(self._shelters_by_district[district_id])

    def shelter_capacity(self, district_id: str) -> int:
        return sum(s.capacity for s in self.shelters_of(district_id))

    # --- derived snapshots for what-if runs ---

    def without_edges_to(self, district_id: str, depot_id: str | None = None) -> "NetworkModel":
        self.district(district_id)
        if depot_id is not None:
            self.depot(depot_id)
        edges = [
            e for e in self.snapshot.travel_edges
            if not (e.district_id == district_id and (depot_id is None or e.depot_id == depot_id))
        ]
        return NetworkModel(self.snapshot.model_copy(update={"travel_edges": edges}))

    def with_edge(self, depot_id: str, district_id: str, travel_time_minutes: float) -> "NetworkModel":
        self.depot(depot_id)
        self.district(district_id)
        edges = [
            e for e in self.snapshot.travel_edges
            if not (e.depot_id == depot_id and e.district_id == district_id)
        ]
        edges.append(TravelEdge(depot_id=depot_id, district_id=district_id, travel_time_minutes=travel_time_minutes))
        return NetworkModel(self.snapshot.model_copy(update={"travel_edges": edges}))
