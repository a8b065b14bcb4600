import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reliefopt import config
from reliefopt.errors import (
    InsufficientInventory,
    InvalidInput,
    InvalidNetwork,
    OracleError,
    ReliefOptError,
    RouteNotFound,
    UnknownDepot,
    UnknownDistrict,
)
from reliefopt.models import (
    AllocationRequest,
    AllocationResult,
    Depot,
    District,
    Event,
    LedgerEntry,
    ReliefReport,
    ReplenishRequest,
    RiskAssessment,
    Shelter,
    TravelEdge,
)
from reliefopt.services.allocator import allocate
from reliefopt.services.event_handler import apply_event
from reliefopt.services.ledger import InventoryLedger
from reliefopt.services.oracles import RemoteDemandOracle, StaticDemandOracle, StaticRiskOracle, demand_snapshot
from reliefopt.services.rationals import generate_rationales
from reliefopt.services.reporting import build_report
from reliefopt.utils.data_loader import load_demand, load_network, load_risk_factors
from reliefopt.utils.travel_distance import edge_distances


logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(title="ReliefOpt")


# Load reference data at startup
network = load_network(config.NETWORK_PATH)
baseline_demand = load_demand(config.DEMAND_PATH)
risk_oracle = StaticRiskOracle(load_risk_factors(config.RISK_FACTORS_PATH))
if config.ORACLE_URL:
    demand_oracle = RemoteDemandOracle(config.ORACLE_URL, timeout=config.ORACLE_TIMEOUT)
else:
    demand_oracle = StaticDemandOracle(baseline_demand)
ledger = InventoryLedger({d.depot_id: d.inventory for d in network.depots})
distance_km = edge_distances(network)

STATUS_CODES = (
    (UnknownDistrict, 404),
    (UnknownDepot, 404),
    (RouteNotFound, 404),
    (InsufficientInventory, 409),
    (InvalidInput, 422),
    (InvalidNetwork, 422),
    (OracleError, 502),
)


@app.exception_handler(ReliefOptError)
def relief_error_handler(request: Request, exc: ReliefOptError) -> JSONResponse:
    status_code = next((code for kind, code in STATUS_CODES if isinstance(exc, kind)), 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def _current_demand(months: Optional[int]):
    horizon = config.DEFAULT_HORIZON_MONTHS if months is None else months
    return demand_snapshot(demand_oracle, [d.district_id for d in network.districts], horizon), horizon


def _meta(horizon: int) -> Dict[str, Any]:
    return {
        "sentinel_version": config.SENTINEL_VERSION,
        "commander_version": config.COMMANDER_VERSION,
        "horizon": horizon,
    }


@app.get("/districts")
def get_districts() -> list[District]:
    return network.districts


@app.get("/depots")
def get_depots() -> list[Depot]:
    inventory = ledger.snapshot()
    return [d.model_copy(update={"inventory": inventory[d.depot_id]}) for d in network.depots]


@app.get("/shelters")
def get_shelters() -> list[Shelter]:
    return network.shelters


@app.get("/travel-graph")
def get_travel_graph() -> list[TravelEdge]:
    return network.edges


@app.get("/predict")
def predict(district: Optional[str] = None, months: Optional[int] = None) -> Dict[str, Any]:
    """
    Demand prediction plus the allocation it leads to, for one district
    (``district`` is an id or an exact name) or for every district.
    """
    demand, horizon = _current_demand(months)
    result = allocate(network, demand, ledger.snapshot(), units_per_person=config.UNITS_PER_PERSON, strategy=config.STRATEGY)
    report = build_report(network, demand, result)

    if district:
        target = network.resolve_district(district)
        district_id = target.district_id
        allocations = [
            {
                **row.model_dump(),
                "depot_name": network.depot(row.depot_id).name,
                "shelter_name": network.shelter(row.shelter_id).name,
                "distance_km": round(distance_km[(row.depot_id, district_id)], 1),
            }
            for row in result.rows
            if row.district_id == district_id
        ]
        return {
            "district": target,
            "sentinel": demand.get(district_id),
            "commander": {
                "allocations": allocations,
                "outcome": next(o for o in result.outcomes if o.district_id == district_id),
            },
            "summary": next((s for s in report.districts if s.district_id == district_id), None),
            "risk": risk_oracle.assess(district_id),
            "meta": _meta(horizon),
        }

    districts = []
    for summary in report.districts:
        geo = network.district(summary.district_id)
        districts.append(
            {
                **summary.model_dump(),
                "name": geo.name,
                "region": geo.region,
                "lat": geo.lat,
                "lng": geo.lng,
                "population": geo.population,
                "dominant_driver": demand[summary.district_id].dominant_driver,
            }
        )
    return {
        "districts": districts,
        "depots": get_depots(),
        "shelters": network.shelters,
        "travel_graph": network.edges,
        "totals": report.totals,
        "meta": _meta(horizon),
    }


@app.post("/allocate")
def run_allocation(request: AllocationRequest) -> Dict[str, Any]:
    demand, horizon = _current_demand(request.months)
    inventory = ledger.snapshot()
    inventory.update(request.depot_inventory or {})
    result = allocate(
        network,
        demand,
        inventory,
        urgency=request.urgency,
        units_per_person=config.UNITS_PER_PERSON if request.units_per_person is None else request.units_per_person,
        strategy=request.strategy or config.STRATEGY,
    )
    entry = ledger.commit(result) if request.commit else None
    return {
        "result": result,
        "report": build_report(network, demand, result),
        "rationales": generate_rationales(result, network),
        "ledger_entry": entry,
        "meta": _meta(horizon),
    }


@app.get("/summary")
def get_summary(months: Optional[int] = None) -> ReliefReport:
    demand, _ = _current_demand(months)
    result: AllocationResult = allocate(
        network, demand, ledger.snapshot(), units_per_person=config.UNITS_PER_PERSON, strategy=config.STRATEGY
    )
    return build_report(network, demand, result)


@app.get("/risk-assessment")
def risk_assessment(district: Optional[str] = None) -> RiskAssessment:
    if not district:
        return risk_oracle.assess("default")
    return risk_oracle.assess(network.resolve_district(district).district_id)


@app.post("/event")
def apply_event_endpoint(event: Event, months: Optional[int] = None) -> Dict[str, Any]:
    """Re-plan against a what-if event without changing the live network."""
    demand, horizon = _current_demand(months)
    updated_network, updated_demand = apply_event(network, demand, event)
    result = allocate(
        updated_network,
        updated_demand,
        ledger.snapshot(),
        units_per_person=config.UNITS_PER_PERSON,
        strategy=config.STRATEGY,
    )
    return {
        "event_type": event.type,
        "target_district": updated_network.resolve_district(event.target_district),
        "result": result,
        "report": build_report(updated_network, updated_demand, result),
        "rationales": generate_rationales(result, updated_network),
        "meta": _meta(horizon),
    }


@app.post("/depots/{depot_id}/replenish")
def replenish_depot(depot_id: str, request: ReplenishRequest) -> LedgerEntry:
    return ledger.replenish(depot_id, request.units)


@app.get("/ledger")
def get_ledger() -> list[LedgerEntry]:
    return ledger.history
