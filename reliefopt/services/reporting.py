from typing import Dict, List, Mapping

import pandas as pd

from reliefopt.models import (
    AllocationResult,
    AllocationRow,
    DemandRecord,
    DepotUtilization,
    DistrictSummary,
    ReliefReport,
    ReportTotals,
)
from reliefopt.services.network import NetworkModel


def demand_to_severity(score: float) -> str:
    if score < 0.25:
        return "low"
    if score < 0.50:
        return "moderate"
    if score < 0.75:
        return "high"
    return "extreme"


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100.0, 2)


def build_district_summaries(
    network: NetworkModel,
    demand: Mapping[str, DemandRecord],
    result: AllocationResult,
) -> List[DistrictSummary]:
    """Join demand records with allocated units, one summary per district with demand."""
    allocated: Dict[str, int] = {}
    for row in result.rows:
        allocated[row.district_id] = allocated.get(row.district_id, 0) + row.allocated_units

    summaries = []
    for district_id in sorted(demand):
        # Propagates UnknownDistrict for records that do not match the network
        network.district(district_id)
        record = demand[district_id]
        units = allocated.get(district_id, 0)
        summaries.append(
            DistrictSummary(
                district_id=district_id,
                estimated_displaced_pop=record.estimated_displaced_pop,
                predicted_demand_score=record.predicted_demand_score,
                severity=demand_to_severity(record.predicted_demand_score),
                allocated_units=units,
                unmet_demand=max(0, record.estimated_displaced_pop - units),
            )
        )
    return summaries


def build_depot_utilization(network: NetworkModel, result: AllocationResult) -> List[DepotUtilization]:
    utilization = []
    for depot_id in sorted(result.per_depot_residual):
        depot = network.depot(depot_id)
        residual = result.per_depot_residual[depot_id]
        allocated = result.allocated_from(depot_id)
        inventory = residual + allocated
        utilization.append(
            DepotUtilization(
                depot_id=depot_id,
                name=depot.name,
                inventory=inventory,
                allocated_units=allocated,
                residual=residual,
                utilization_percent=_percent(allocated, inventory),
            )
        )
    return utilization


def build_report(
    network: NetworkModel,
    demand: Mapping[str, DemandRecord],
    result: AllocationResult,
) -> ReliefReport:
    districts = build_district_summaries(network, demand, result)
    depots = build_depot_utilization(network, result)
    inventory = sum(d.inventory for d in depots)
    allocated = sum(d.allocated_units for d in districts)
    totals = ReportTotals(
        total_districts=len(districts),
        total_displaced=sum(d.estimated_displaced_pop for d in districts),
        total_allocated=allocated,
        total_unmet=sum(d.unmet_demand for d in districts),
        depot_inventory=inventory,
        utilization_percent=_percent(sum(d.allocated_units for d in depots), inventory),
    )
    return ReliefReport(districts=districts, depots=depots, totals=totals)


def allocations_frame(result: AllocationResult) -> pd.DataFrame:
    columns = list(AllocationRow.model_fields)
    return pd.DataFrame([r.model_dump() for r in result.rows], columns=columns)


def summary_frame(report: ReliefReport) -> pd.DataFrame:
    columns = list(DistrictSummary.model_fields)
    return pd.DataFrame([d.model_dump() for d in report.districts], columns=columns)
