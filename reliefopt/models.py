from pydantic import BaseModel, ConfigDict
from typing import Dict, List, Optional


class District(BaseModel):
    model_config = ConfigDict(frozen=True)

    district_id: str
    name: str
    region: str
    lat: float
    lng: float
    population: int


class Depot(BaseModel):
    model_config = ConfigDict(frozen=True)

    depot_id: str
    name: str
    lat: float
    lng: float
    inventory: int  # units of relief supply


class Shelter(BaseModel):
    model_config = ConfigDict(frozen=True)

    shelter_id: str
    district_id: str
    name: str
    capacity: int
    lat: float
    lng: float


class TravelEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    depot_id: str
    district_id: str
    travel_time_minutes: float


class NetworkSnapshot(BaseModel):
    districts: List[District]
    depots: List[Depot]
    shelters: List[Shelter]
    travel_edges: List[TravelEdge]


class DemandRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    district_id: str
    predicted_demand_score: float  # 0-1
    estimated_displaced_pop: int
    dominant_driver: str  # informational only


class AllocationRow(BaseModel):
    depot_id: str
    shelter_id: str
    district_id: str
    allocated_units: int
    travel_time_minutes: float


class DistrictOutcome(BaseModel):
    district_id: str
    target_units: int
    shelter_capacity: int
    allocated_units: int
    unmet_demand: int
    status: str  # "served", "partial", "no_demand", "allocation_infeasible_for_district"
    reason: Optional[str] = None


class AllocationResult(BaseModel):
    strategy: str
    rows: List[AllocationRow]
    per_district_unmet: Dict[str, int]
    per_depot_residual: Dict[str, int]
    infeasible_districts: List[str]
    outcomes: List[DistrictOutcome]
    total_travel_cost: float

    def allocated_to(self, district_id: str) -> int:
        return sum(r.allocated_units for r in self.rows if r.district_id == district_id)

    def allocated_from(self, depot_id: str) -> int:
        return sum(r.allocated_units for r in self.rows if r.depot_id == depot_id)

    @property
    def total_allocated(self) -> int:
        return sum(r.allocated_units for r in self.rows)


class GapReport(BaseModel):
    greedy_served: int
    optimal_served: int
    served_gap: int
    greedy_cost: float
    optimal_cost: float
    cost_gap: float


class DistrictSummary(BaseModel):
    district_id: str
    estimated_displaced_pop: int
    predicted_demand_score: float
    severity: str
    allocated_units: int
    unmet_demand: int


class DepotUtilization(BaseModel):
    depot_id: str
    name: str
    inventory: int
    allocated_units: int
    residual: int
    utilization_percent: float


class ReportTotals(BaseModel):
    total_districts: int
    total_displaced: int
    total_allocated: int
    total_unmet: int
    depot_inventory: int
    utilization_percent: float


class ReliefReport(BaseModel):
    districts: List[DistrictSummary]
    depots: List[DepotUtilization]
    totals: ReportTotals


class RiskFactors(BaseModel):
    weather_severity: float
    earthquake_activity: float
    air_quality_index: float
    news_intelligence: float
    flood_risk: float
    cyclone_risk: float
    landslide_risk: float


class RiskAssessment(BaseModel):
    district_id: str
    overall_risk: float
    risk_level: str  # "Low", "Moderate", "High", "Extreme"
    factors: RiskFactors
    recommendation: str


class Event(BaseModel):
    type: str  # "road_block", "road_clear" or "sos_spike"
    target_district: str
    depot_id: Optional[str] = None
    travel_time_minutes: Optional[float] = None
    displaced_pop: Optional[int] = None
    demand_score: Optional[float] = None


class LedgerEntry(BaseModel):
    sequence: int
    kind: str  # "commit" or "replenish"
    changes: Dict[str, int]  # depot_id -> signed unit delta


class AllocationRequest(BaseModel):
    months: Optional[int] = None
    strategy: Optional[str] = None
    depot_inventory: Optional[Dict[str, int]] = None
    urgency: Optional[Dict[str, float]] = None
    units_per_person: Optional[float] = None
    commit: bool = False


class ReplenishRequest(BaseModel):
    units: int
