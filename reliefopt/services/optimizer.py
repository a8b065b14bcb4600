from typing import Dict, List, Tuple

from ortools.linear_solver import pywraplp

from reliefopt.errors import ReliefOptError
from reliefopt.services.network import NetworkModel
import logging

logger = logging.getLogger(__name__)

# Slack when pinning an earlier stage's optimum as a constraint
SERVED_TOLERANCE = 1e-6
COST_TOLERANCE = 1e-9


def solve_transportation(
    network: NetworkModel,
    inventory: Dict[str, int],
    needs: Dict[str, int],
    order: List[str],
) -> List[Tuple[str, str, int]]:
    """
    Exact transportation solve using OR-Tools (CBC), in lexicographic stages:
    - Stage 1: maximize total units delivered.
    - Stage 2: with delivered units pinned, minimize travel-time-weighted cost.
    - Stage 3: with cost pinned, maximize each district's inflow in turn, in
      priority ``order`` (higher urgency first, then lower district id).

    Integer variables exist only for travel edges in the network, so every
    stage returns whole units and rounding only removes floating point noise.

    Returns (depot_id, district_id, units) flows in priority order.
    """
    solver = pywraplp.Solver.CreateSolver("CBC")
    if solver is None:
        raise ReliefOptError("OR-Tools CBC solver is not available")

    x: Dict[Tuple[str, str], pywraplp.Variable] = {}
    cost: Dict[Tuple[str, str], float] = {}
    for district_id in order:
        need = needs[district_id]
        if need <= 0:
            continue
        for edge in network.edges_to(district_id):
            supply = inventory[edge.depot_id]
            if supply <= 0:
                continue
            key = (edge.depot_id, district_id)
            x[key] = solver.IntVar(0, min(need, supply), f"x_{edge.depot_id}_{district_id}")
            cost[key] = edge.travel_time_minutes

    if not x:
        return []

    for depot_id, supply in sorted(inventory.items()):
        out_vars = [v for (dep, _), v in x.items() if dep == depot_id]
        if out_vars:
            solver.Add(solver.Sum(out_vars) <= supply)

    for district_id in order:
        in_vars = [v for (_, dist), v in x.items() if dist == district_id]
        if in_vars:
            solver.Add(solver.Sum(in_vars) <= needs[district_id])

    served = solver.Sum(list(x.values()))
    solver.Maximize(served)
    status = solver.Solve()
    if status != pywraplp.Solver.OPTIMAL:
        raise ReliefOptError(f"Transportation solve failed in stage 1 (status {status})")
    best_served = solver.Objective().Value()

    solver.Add(served >= best_served - SERVED_TOLERANCE)
    travel_cost = solver.Sum([cost[key] * var for key, var in x.items()])
    solver.Minimize(travel_cost)
    status = solver.Solve()
    if status != pywraplp.Solver.OPTIMAL:
        raise ReliefOptError(f"Transportation solve failed in stage 2 (status {status})")
    best_cost = solver.Objective().Value()

    solver.Add(travel_cost <= best_cost + COST_TOLERANCE * max(1.0, abs(best_cost)))
    for district_id in order:
        in_vars = [v for (_, dist), v in x.items() if dist == district_id]
        if not in_vars:
            continue
        inflow = solver.Sum(in_vars)
        solver.Maximize(inflow)
        status = solver.Solve()
        if status != pywraplp.Solver.OPTIMAL:
            raise ReliefOptError(f"Transportation solve failed on priority stage for {district_id} (status {status})")
        solver.Add(inflow >= solver.Objective().Value() - SERVED_TOLERANCE)

    remaining_supply = dict(inventory)
    remaining_need = dict(needs)
    flows: List[Tuple[str, str, int]] = []
    for (depot_id, district_id), var in x.items():
        units = int(round(var.solution_value()))
        units = min(units, remaining_supply[depot_id], remaining_need[district_id])
        if units <= 0:
            continue
        remaining_supply[depot_id] -= units
        remaining_need[district_id] -= units
        flows.append((depot_id, district_id, units))

    logger.info(
        "Transportation solve: %d edges, %.0f units served, cost %.1f",
        len(x),
        best_served,
        best_cost,
    )
    return flows
