"""
Shared fixtures for the test suite: small hand-built networks for the
worked allocation scenarios, and the shipped reference dataset.
"""

import pytest

from reliefopt import config
from reliefopt.models import DemandRecord, Depot, District, NetworkSnapshot, Shelter, TravelEdge
from reliefopt.services.network import NetworkModel
from reliefopt.utils.data_loader import load_demand, load_network


def _district(district_id, name=None):
    return District(
        district_id=district_id,
        name=name or f"District {district_id}",
        region="Test",
        lat=20.0,
        lng=78.0,
        population=100000,
    )


def _depot(depot_id, inventory):
    return Depot(depot_id=depot_id, name=f"Depot {depot_id}", lat=21.0, lng=79.0, inventory=inventory)


def _shelter(shelter_id, district_id, capacity):
    return Shelter(
        shelter_id=shelter_id,
        district_id=district_id,
        name=f"Shelter {shelter_id}",
        capacity=capacity,
        lat=20.0,
        lng=78.0,
    )


@pytest.fixture
def build_network():
    """
    Factory for small networks:
    build_network(depots={"A": 10}, districts=["X"], shelters={"S1": ("X", 5)}, edges={("A", "X"): 100})
    """

    def _build(depots, districts, shelters, edges):
        snapshot = NetworkSnapshot(
            districts=[_district(d) for d in districts],
            depots=[_depot(d, inv) for d, inv in depots.items()],
            shelters=[_shelter(s, dist, cap) for s, (dist, cap) in shelters.items()],
            travel_edges=[
                TravelEdge(depot_id=dep, district_id=dist, travel_time_minutes=minutes)
                for (dep, dist), minutes in edges.items()
            ],
        )
        return NetworkModel.from_snapshot(snapshot)

    return _build


@pytest.fixture
def demand_for():
    """Factory: demand_for({"X": (displaced, score)}) -> {district_id: DemandRecord}"""

    def _demand(entries):
        return {
            district_id: DemandRecord(
                district_id=district_id,
                predicted_demand_score=score,
                estimated_displaced_pop=displaced,
                dominant_driver="rainfall",
            )
            for district_id, (displaced, score) in entries.items()
        }

    return _demand


@pytest.fixture
def scenario_a(build_network, demand_for):
    """Two depots (10,000 and 5,000) feeding one district needing 12,000."""
    network = build_network(
        depots={"DEP-A": 10000, "DEP-B": 5000},
        districts=["D1"],
        shelters={"SHL-1": ("D1", 20000)},
        edges={("DEP-A", "D1"): 100, ("DEP-B", "D1"): 200},
    )
    return network, demand_for({"D1": (12000, 0.8)})


@pytest.fixture(scope="session")
def reference_network() -> NetworkModel:
    return load_network(config.NETWORK_PATH)


@pytest.fixture(scope="session")
def reference_demand():
    return load_demand(config.DEMAND_PATH)
