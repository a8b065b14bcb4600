from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from reliefopt.errors import InvalidInput, NegativeInventoryOrDemand, UnknownDistrict
from reliefopt.models import AllocationResult, AllocationRow, DemandRecord, DistrictOutcome, GapReport
from reliefopt.services.network import NetworkModel
from reliefopt.services.optimizer import solve_transportation
import logging

logger = logging.getLogger(__name__)

STRATEGIES = ("greedy", "optimal")

SERVED = "served"
PARTIAL = "partial"
NO_DEMAND = "no_demand"
ALLOCATION_INFEASIBLE = "allocation_infeasible_for_district"

# (depot_id, district_id, units)
Flow = Tuple[str, str, int]
DemandSnapshot = Union[Mapping[str, DemandRecord], Iterable[DemandRecord]]


def _demand_by_district(network: NetworkModel, demand: DemandSnapshot) -> Dict[str, DemandRecord]:
    records = demand.values() if isinstance(demand, Mapping) else demand
    by_district: Dict[str, DemandRecord] = {}
    for record in records:
        if not network.has_district(record.district_id):
            raise UnknownDistrict(record.district_id)
        if record.district_id in by_district:
            raise InvalidInput(f"Duplicate demand record for district {record.district_id}")
        if record.estimated_displaced_pop < 0:
            raise NegativeInventoryOrDemand(
                f"District {record.district_id} has negative displaced population {record.estimated_displaced_pop}"
            )
        if not 0.0 <= record.predicted_demand_score <= 1.0:
            raise NegativeInventoryOrDemand(
                f"District {record.district_id} demand score {record.predicted_demand_score} outside [0, 1]"
            )
        by_district[record.district_id] = record
    return by_district


def _resolve_inventory(network: NetworkModel, depot_inventory: Optional[Mapping[str, int]]) -> Dict[str, int]:
    inventory = {d.depot_id: d.inventory for d in network.depots}
    for depot_id, units in (depot_inventory or {}).items():
        network.depot(depot_id)
        if isinstance(units, bool) or not float(units).is_integer():
            raise InvalidInput(f"Depot {depot_id} inventory must be a whole number of units, got {units!r}")
        if units < 0:
            raise NegativeInventoryOrDemand(f"Depot {depot_id} has negative inventory {units}")
        inventory[depot_id] = int(units)
    return inventory


def _resolve_urgency(
    records: Dict[str, DemandRecord],
    urgency: Optional[Mapping[str, float]],
) -> Dict[str, float]:
    weights = {d: r.predicted_demand_score for d, r in records.items()}
    for district_id, weight in (urgency or {}).items():
        if district_id not in records:
            raise UnknownDistrict(district_id)
        if weight < 0:
            raise NegativeInventoryOrDemand(f"District {district_id} has negative urgency {weight}")
        weights[district_id] = float(weight)
    return weights


def priority_order(records: Mapping[str, DemandRecord], weights: Mapping[str, float]) -> List[str]:
    """Most urgent district first; equal urgency falls back to the lower district id."""
    return sorted(records, key=lambda d: (-weights[d], d))


def _plan_greedy(
    network: NetworkModel,
    inventory: Dict[str, int],
    needs: Dict[str, int],
    order: List[str],
) -> List[Flow]:
    """
    Serve districts one at a time in priority order, drawing on the cheapest
    reachable depots first until the district's shelter-capped need is met.

    This is a priority-ordered greedy pass over the transportation problem, not
    an exact solve: an urgent district can drain a depot that was the only route
    into a less urgent district. ``approximation_gap`` measures the difference.
    """
    remaining = dict(inventory)
    flows: List[Flow] = []
    for district_id in order:
        need = needs[district_id]
        for edge in network.edges_to(district_id):
            if need <= 0:
                break
            available = remaining[edge.depot_id]
            if available <= 0:
                continue
            units = min(need, available)
            remaining[edge.depot_id] -= units
            need -= units
            flows.append((edge.depot_id, district_id, units))
            logger.debug(
                "Greedy: %d units %s -> %s (%.0f min)",
                units,
                edge.depot_id,
                district_id,
                edge.travel_time_minutes,
            )
    return flows


def _spread_over_shelters(network: NetworkModel, flows: List[Flow]) -> List[AllocationRow]:
    headroom = {s.shelter_id: s.capacity for s in network.shelters}
    rows: List[AllocationRow] = []
    for depot_id, district_id, units in flows:
        minutes = network.edge_cost(depot_id, district_id)
        for shelter in network.shelters_of(district_id):
            if units <= 0:
                break
            take = min(units, headroom[shelter.shelter_id])
            if take <= 0:
                continue
            headroom[shelter.shelter_id] -= take
            units -= take
            rows.append(
                AllocationRow(
                    depot_id=depot_id,
                    shelter_id=shelter.shelter_id,
                    district_id=district_id,
                    allocated_units=take,
                    travel_time_minutes=minutes,
                )
            )
        if units > 0:
            # needs are capped at shelter capacity before planning
            raise InvalidInput(f"Flow into {district_id} exceeds shelter capacity by {units} units")
    return rows


def _outcome(
    network: NetworkModel,
    district_id: str,
    target: int,
    capacity: int,
    allocated: int,
) -> DistrictOutcome:
    unmet = max(0, target - allocated)
    reason = None
    if target == 0:
        status = NO_DEMAND
    elif allocated == 0:
        status = ALLOCATION_INFEASIBLE
        if capacity == 0:
            reason = "no shelter capacity in district"
        elif not network.edges_to(district_id):
            reason = "no travel edge from any depot"
        else:
            reason = "all reachable depots exhausted"
    elif unmet == 0:
        status = SERVED
    else:
        status = PARTIAL
        if capacity < target:
            reason = f"shelter capacity shortfall of {target - capacity} units"
        else:
            reason = "reachable depot inventory exhausted"
    return DistrictOutcome(
        district_id=district_id,
        target_units=target,
        shelter_capacity=capacity,
        allocated_units=allocated,
        unmet_demand=unmet,
        status=status,
        reason=reason,
    )


def allocate(
    network: NetworkModel,
    demand: DemandSnapshot,
    depot_inventory: Optional[Mapping[str, int]] = None,
    *,
    urgency: Optional[Mapping[str, float]] = None,
    units_per_person: float = 1.0,
    strategy: str = "greedy",
) -> AllocationResult:
    """
    Assign depot inventory to district demand over the travel graph.

    - Each district needs round(displaced population * units_per_person) units,
      capped at the total capacity of its shelters.
    - Flow only moves along travel edges present in the network.
    - No depot gives away more than its inventory.
    - Districts that cannot be reached are reported, never raised.

    All input validation happens before any planning, so a rejected run
    produces no partial result. Identical inputs always produce identical rows.
    """
    if strategy not in STRATEGIES:
        raise InvalidInput(f"Unknown allocation strategy: {strategy}")
    if units_per_person < 0:
        raise NegativeInventoryOrDemand(f"units_per_person must be >= 0, got {units_per_person}")

    records = _demand_by_district(network, demand)
    inventory = _resolve_inventory(network, depot_inventory)
    weights = _resolve_urgency(records, urgency)
    order = priority_order(records, weights)

    targets = {d: int(round(r.estimated_displaced_pop * units_per_person)) for d, r in records.items()}
    capacities = {d: network.shelter_capacity(d) for d in records}
    needs = {d: min(targets[d], capacities[d]) for d in records}

    if strategy == "optimal":
        flows = solve_transportation(network, inventory, needs, order)
    else:
        flows = _plan_greedy(network, inventory, needs, order)
    rows = _spread_over_shelters(network, flows)

    allocated_by_district = {d: 0 for d in records}
    allocated_by_depot = {d: 0 for d in inventory}
    total_cost = 0.0
    for row in rows:
        allocated_by_district[row.district_id] += row.allocated_units
        allocated_by_depot[row.depot_id] += row.allocated_units
        total_cost += row.allocated_units * row.travel_time_minutes

    outcomes = [
        _outcome(network, d, targets[d], capacities[d], allocated_by_district[d])
        for d in sorted(records)
    ]
    infeasible = [o.district_id for o in outcomes if o.status == ALLOCATION_INFEASIBLE]
    for outcome in outcomes:
        if outcome.status == ALLOCATION_INFEASIBLE:
            logger.warning("District %s receives no allocation: %s", outcome.district_id, outcome.reason)

    result = AllocationResult(
        strategy=strategy,
        rows=rows,
        per_district_unmet={o.district_id: o.unmet_demand for o in outcomes},
        per_depot_residual={d: inventory[d] - allocated_by_depot[d] for d in sorted(inventory)},
        infeasible_districts=infeasible,
        outcomes=outcomes,
        total_travel_cost=total_cost,
    )
    logger.info(
        "Allocation run (%s): %d units allocated, %d unmet, %d infeasible districts",
        strategy,
        result.total_allocated,
        sum(result.per_district_unmet.values()),
        len(infeasible),
    )
    return result


def approximation_gap(
    network: NetworkModel,
    demand: DemandSnapshot,
    depot_inventory: Optional[Mapping[str, int]] = None,
    **kwargs,
) -> GapReport:
    """Compare the greedy plan against the exact transportation solve on the same inputs."""
    greedy = allocate(network, demand, depot_inventory, strategy="greedy", **kwargs)
    optimal = allocate(network, demand, depot_inventory, strategy="optimal", **kwargs)
    return GapReport(
        greedy_served=greedy.total_allocated,
        optimal_served=optimal.total_allocated,
        served_gap=optimal.total_allocated - greedy.total_allocated,
        greedy_cost=greedy.total_travel_cost,
        optimal_cost=optimal.total_travel_cost,
        cost_gap=greedy.total_travel_cost - optimal.total_travel_cost,
    )
