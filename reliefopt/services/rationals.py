from typing import List

from reliefopt.models import AllocationResult
from reliefopt.services.allocator import ALLOCATION_INFEASIBLE, PARTIAL
from reliefopt.services.network import NetworkModel


def generate_rationales(result: AllocationResult, network: NetworkModel) -> List[str]:
    """
    - One line per allocation row naming depot, shelter and route time
    - One line per district left short or unserved, with the reason
    """
    rationales = []
    for row in result.rows:
        depot = network.depot(row.depot_id)
        shelter = network.shelter(row.shelter_id)
        district = network.district(row.district_id)
        rationales.append(
            f"{row.allocated_units} units from {depot.name} to {shelter.name} ({district.name}) "
            f"over a {row.travel_time_minutes:.0f} min route"
        )
    for outcome in result.outcomes:
        if outcome.status not in (ALLOCATION_INFEASIBLE, PARTIAL):
            continue
        district = network.district(outcome.district_id)
        rationales.append(
            f"{district.name}: {outcome.unmet_demand} units unmet ({outcome.reason})"
        )
    return rationales
