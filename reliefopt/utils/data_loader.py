import json
import logging
from pathlib import Path
from typing import Dict, Union

import pandas as pd

from reliefopt import config
from reliefopt.models import DemandRecord, NetworkSnapshot, RiskFactors
from reliefopt.services.network import NetworkModel
from reliefopt.utils.travel_distance import implausible_edges

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_network(path: PathLike) -> NetworkModel:
    with open(path) as f:
        data = json.load(f)
    network = NetworkModel.from_snapshot(NetworkSnapshot(**data))
    for depot_id, district_id, kmph in implausible_edges(network, config.MAX_PLAUSIBLE_SPEED_KMPH):
        logger.warning(
            "Travel edge %s -> %s implies %.0f km/h in a straight line; check its travel time",
            depot_id,
            district_id,
            kmph,
        )
    logger.info(
        "Loaded network from %s: %d districts, %d depots, %d edges",
        path,
        len(network.districts),
        len(network.depots),
        len(network.edges),
    )
    return network


def load_demand(path: PathLike) -> Dict[str, DemandRecord]:
    """Demand records from JSON ``{"predicted_demand": [...]}`` or a predicted_demand.csv."""
    if str(path).endswith(".csv"):
        return load_demand_csv(path)
    with open(path) as f:
        data = json.load(f)
    records = [DemandRecord(**record) for record in data["predicted_demand"]]
    return {r.district_id: r for r in records}


def load_demand_csv(path: PathLike) -> Dict[str, DemandRecord]:
    df = pd.read_csv(path, dtype={"district_id": str, "dominant_driver": str})
    records = [DemandRecord(**row) for row in df.to_dict(orient="records")]
    return {r.district_id: r for r in records}


def load_risk_factors(path: PathLike) -> Dict[str, RiskFactors]:
    with open(path) as f:
        data = json.load(f)
    return {district_id: RiskFactors(**factors) for district_id, factors in data["risk_factors"].items()}
