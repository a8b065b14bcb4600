import math
from typing import Dict, List, Tuple

from reliefopt.services.network import NetworkModel

EARTH_RADIUS_KM = 6371.0

# (depot_id, district_id) -> straight-line km
EdgeDistances = Dict[Tuple[str, str], float]


def great_circle_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    half_chord = (
        math.sin(math.radians(lat2 - lat1) / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(math.radians(lng2 - lng1) / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(half_chord)))


def edge_distances(network: NetworkModel) -> EdgeDistances:
    """
    Straight-line depot -> district distance for every travel edge. Only
    edges are measured since flow never moves between unconnected pairs.
    """
    distances: EdgeDistances = {}
    for edge in network.edges:
        depot = network.depot(edge.depot_id)
        district = network.district(edge.district_id)
        distances[(edge.depot_id, edge.district_id)] = great_circle_km(depot.lat, depot.lng, district.lat, district.lng)
    return distances


def implausible_edges(network: NetworkModel, max_speed_kmph: float) -> List[Tuple[str, str, float]]:
    """
    Travel edges whose minutes are too short for the straight-line distance,
    i.e. covering it would need more than ``max_speed_kmph``. Usually a typo in
    the travel graph (hours entered as minutes, swapped ids).

    Returns (depot_id, district_id, implied_kmph), fastest first.
    """
    flagged = []
    for (depot_id, district_id), km in edge_distances(network).items():
        minutes = network.edge_cost(depot_id, district_id)
        if minutes <= 0:
            continue
        kmph = km / (minutes / 60)
        if kmph > max_speed_kmph:
            flagged.append((depot_id, district_id, kmph))
    return sorted(flagged, key=lambda item: (-item[2], item[0], item[1]))
