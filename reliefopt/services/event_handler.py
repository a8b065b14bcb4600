from typing import Dict, Tuple

from reliefopt.errors import InvalidInput, NegativeInventoryOrDemand
from reliefopt.models import DemandRecord, Event
from reliefopt.services.network import NetworkModel
import logging

logger = logging.getLogger(__name__)

EVENT_TYPES = ("road_block", "road_clear", "sos_spike")


def apply_event(
    network: NetworkModel,
    demand: Dict[str, DemandRecord],
    event: Event,
) -> Tuple[NetworkModel, Dict[str, DemandRecord]]:
    """
    - road_block: drop edges into the target district (only from ``depot_id`` when given)
    - road_clear: add or replace the ``depot_id`` -> district edge with ``travel_time_minutes``
    - sos_spike: override the district's displaced population and/or demand score
    Returns new snapshots; the inputs are left untouched.
    """
    if event.type not in EVENT_TYPES:
        raise InvalidInput(f"Unknown event type: {event.type}")
    district = network.resolve_district(event.target_district)

    if event.type == "road_block":
        network = network.without_edges_to(district.district_id, event.depot_id)
    elif event.type == "road_clear":
        if event.depot_id is None or event.travel_time_minutes is None:
            raise InvalidInput("road_clear needs depot_id and travel_time_minutes")
        network = network.with_edge(event.depot_id, district.district_id, event.travel_time_minutes)
    elif event.type == "sos_spike":
        updates = {}
        if event.displaced_pop is not None:
            if event.displaced_pop < 0:
                raise NegativeInventoryOrDemand(f"Displaced population must be >= 0, got {event.displaced_pop}")
            updates["estimated_displaced_pop"] = event.displaced_pop
        if event.demand_score is not None:
            if not 0.0 <= event.demand_score <= 1.0:
                raise NegativeInventoryOrDemand(f"Demand score {event.demand_score} outside [0, 1]")
            updates["predicted_demand_score"] = event.demand_score
        if not updates:
            raise InvalidInput("sos_spike needs displaced_pop or demand_score")
        demand = dict(demand)
        current = demand.get(district.district_id) or DemandRecord(
            district_id=district.district_id,
            predicted_demand_score=0.0,
            estimated_displaced_pop=0,
            dominant_driver="sos",
        )
        demand[district.district_id] = current.model_copy(update=updates)

    logger.info("Applied %s event to %s", event.type, district.district_id)
    return network, demand
