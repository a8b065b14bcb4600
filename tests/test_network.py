"""Referential integrity and lookups of the network model."""

import pytest

from reliefopt.errors import (
    InvalidNetwork,
    NegativeInventoryOrDemand,
    RouteNotFound,
    UnknownDepot,
    UnknownDistrict,
)


def test_reference_network_loads(reference_network):
    assert len(reference_network.districts) == 10
    assert len(reference_network.depots) == 5
    assert len(reference_network.shelters) == 8
    assert len(reference_network.edges) == 13


def test_shelter_with_unknown_district_is_rejected(build_network):
    with pytest.raises(InvalidNetwork):
        build_network(depots={"A": 10}, districts=["X"], shelters={"S1": ("Y", 5)}, edges={})


def test_edge_with_unknown_depot_is_rejected(build_network):
    with pytest.raises(InvalidNetwork):
        build_network(depots={"A": 10}, districts=["X"], shelters={}, edges={("B", "X"): 10})


def test_edge_with_unknown_district_is_rejected(build_network):
    with pytest.raises(InvalidNetwork):
        build_network(depots={"A": 10}, districts=["X"], shelters={}, edges={("A", "Z"): 10})


def test_negative_travel_time_is_rejected(build_network):
    with pytest.raises(InvalidNetwork):
        build_network(depots={"A": 10}, districts=["X"], shelters={}, edges={("A", "X"): -1})


def test_negative_shelter_capacity_is_rejected(build_network):
    with pytest.raises(InvalidNetwork):
        build_network(depots={"A": 10}, districts=["X"], shelters={"S1": ("X", -5)}, edges={})


def test_negative_inventory_is_rejected(build_network):
    with pytest.raises(NegativeInventoryOrDemand):
        build_network(depots={"A": -1}, districts=["X"], shelters={}, edges={})


def test_duplicate_district_ids_are_rejected(build_network):
    with pytest.raises(InvalidNetwork):
        build_network(depots={}, districts=["X", "X"], shelters={}, edges={})


def test_edge_cost_and_missing_route(build_network):
    network = build_network(depots={"A": 10, "B": 5}, districts=["X"], shelters={}, edges={("A", "X"): 42})
    assert network.edge_cost("A", "X") == 42
    with pytest.raises(RouteNotFound):
        network.edge_cost("B", "X")


def test_shelters_of(build_network):
    network = build_network(
        depots={},
        districts=["X", "Y"],
        shelters={"S2": ("X", 5), "S1": ("X", 7), "S3": ("Y", 1)},
        edges={},
    )
    assert [s.shelter_id for s in network.shelters_of("X")] == ["S1", "S2"]
    assert network.shelter_capacity("X") == 12
    assert network.shelters_of("Y")[0].capacity == 1
    with pytest.raises(UnknownDistrict):
        network.shelters_of("Z")


def test_edges_to_orders_by_time_then_depot(build_network):
    network = build_network(
        depots={"C": 1, "B": 1, "A": 1},
        districts=["X"],
        shelters={},
        edges={("C", "X"): 50, ("B", "X"): 100, ("A", "X"): 50},
    )
    assert [e.depot_id for e in network.edges_to("X")] == ["A", "C", "B"]


def test_resolve_district_is_exact(reference_network):
    assert reference_network.resolve_district("D01").name == "Rishikesh"
    assert reference_network.resolve_district("rishikesh").district_id == "D01"
    with pytest.raises(UnknownDistrict):
        reference_network.resolve_district("rishi")
    with pytest.raises(UnknownDistrict):
        reference_network.resolve_district("Flood in Rishikesh area")


def test_without_edges_to_leaves_source_model_untouched(reference_network):
    blocked = reference_network.without_edges_to("D01")
    assert blocked.edges_to("D01") == []
    assert len(reference_network.edges_to("D01")) == 2

    partly = reference_network.without_edges_to("D01", depot_id="DEP-05")
    assert [e.depot_id for e in partly.edges_to("D01")] == ["DEP-01"]


def test_with_edge_adds_or_replaces(reference_network):
    opened = reference_network.with_edge("DEP-04", "D02", 700)
    assert opened.edge_cost("DEP-04", "D02") == 700
    replaced = reference_network.with_edge("DEP-01", "D01", 100)
    assert replaced.edge_cost("DEP-01", "D01") == 100
    assert len(replaced.edges) == len(reference_network.edges)
    with pytest.raises(UnknownDepot):
        reference_network.with_edge("DEP-99", "D01", 10)


def test_edge_distances_cover_travel_edges_only(reference_network):
    from reliefopt.utils.travel_distance import edge_distances, great_circle_km

    assert great_circle_km(28.6139, 77.209, 28.6139, 77.209) == 0.0
    distances = edge_distances(reference_network)
    assert set(distances) == {(e.depot_id, e.district_id) for e in reference_network.edges}
    # Delhi to Rishikesh is roughly 200 km in a straight line
    assert 180 < distances[("DEP-01", "D01")] < 220


def test_reference_travel_times_are_plausible(reference_network):
    from reliefopt.utils.travel_distance import implausible_edges

    assert implausible_edges(reference_network, max_speed_kmph=120) == []


def test_one_minute_edge_between_distant_points_is_flagged(build_network):
    from reliefopt.utils.travel_distance import implausible_edges

    network = build_network(
        depots={"X": 10, "Y": 10},
        districts=["A"],
        shelters={"S-A": ("A", 10)},
        edges={("X", "A"): 1, ("Y", "A"): 600},
    )
    ((depot_id, district_id, kmph),) = implausible_edges(network, max_speed_kmph=120)
    assert (depot_id, district_id) == ("X", "A")
    assert kmph > 1000


def test_load_network_warns_on_implausible_edge(tmp_path, caplog):
    import json

    from reliefopt import config
    from reliefopt.utils.data_loader import load_network

    with open(config.NETWORK_PATH) as f:
        data = json.load(f)
    data["travel_edges"][0]["travel_time_minutes"] = 1
    path = tmp_path / "network.json"
    path.write_text(json.dumps(data))

    with caplog.at_level("WARNING", logger="reliefopt.utils.data_loader"):
        network = load_network(path)
    assert network.edge_cost("DEP-01", "D01") == 1
    assert any("DEP-01 -> D01" in record.getMessage() for record in caplog.records)
