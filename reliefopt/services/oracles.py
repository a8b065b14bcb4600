from abc import ABC, abstractmethod
from typing import Dict, Iterable, Mapping, Optional

import requests
from pydantic import ValidationError

from reliefopt.errors import NegativeInventoryOrDemand, OracleError, UnknownDistrict
from reliefopt.models import DemandRecord, RiskAssessment, RiskFactors
import logging

logger = logging.getLogger(__name__)

DEFAULT_KEY = "default"

RISK_WEIGHTS: Dict[str, float] = {
    "weather_severity": 0.25,
    "earthquake_activity": 0.15,
    "air_quality_index": 0.10,
    "news_intelligence": 0.15,
    "flood_risk": 0.15,
    "cyclone_risk": 0.10,
    "landslide_risk": 0.10,
}


class DemandOracle(ABC):
    """Source of per-district demand predictions."""

    @abstractmethod
    def predict(self, district_id: str, horizon_months: int) -> DemandRecord:
        ...


class RiskOracle(ABC):
    """Source of per-district hazard risk assessments."""

    @abstractmethod
    def assess(self, district_id: str) -> RiskAssessment:
        ...


def horizon_factor(horizon_months: int) -> float:
    if horizon_months < 0:
        raise NegativeInventoryOrDemand(f"Horizon must be >= 0 months, got {horizon_months}")
    return min(horizon_months / 6, 1.5)


def scale_for_horizon(record: DemandRecord, horizon_months: int) -> DemandRecord:
    """Stretch a baseline prediction over a planning horizon."""
    factor = horizon_factor(horizon_months)
    return record.model_copy(
        update={
            "estimated_displaced_pop": int(round(record.estimated_displaced_pop * factor)),
            "predicted_demand_score": min(1.0, record.predicted_demand_score * (0.8 + factor * 0.2)),
        }
    )


class StaticDemandOracle(DemandOracle):
    """
    Precomputed predictions keyed by exact district id.

    A district with no entry falls back to the ``default`` entry only when one
    was supplied; otherwise the lookup fails with UnknownDistrict.
    """

    def __init__(self, records: Mapping[str, DemandRecord], scale: bool = True):
        self.records = dict(records)
        self.scale = scale

    @classmethod
    def from_records(cls, records: Iterable[DemandRecord], default: Optional[DemandRecord] = None, scale: bool = True):
        table = {r.district_id: r for r in records}
        if default is not None:
            table[DEFAULT_KEY] = default
        return cls(table, scale=scale)

    def predict(self, district_id: str, horizon_months: int) -> DemandRecord:
        record = self.records.get(district_id)
        if record is None:
            record = self.records.get(DEFAULT_KEY)
            if record is None:
                raise UnknownDistrict(district_id)
            record = record.model_copy(update={"district_id": district_id})
        if not self.scale:
            return record
        return scale_for_horizon(record, horizon_months)


class RemoteDemandOracle(DemandOracle):
    """Demand predictions served by an upstream HTTP model endpoint."""

    def __init__(self, url: str, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def predict(self, district_id: str, horizon_months: int) -> DemandRecord:
        try:
            response = self.session.get(
                self.url,
                params={"district": district_id, "months": horizon_months},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Demand oracle request for %s failed: %s", district_id, exc)
            raise OracleError(f"Demand oracle request for {district_id} failed: {exc}") from exc

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise OracleError(f"Demand oracle returned no data for {district_id}")
        try:
            record = DemandRecord(**{**data, "district_id": district_id})
        except ValidationError as exc:
            raise OracleError(f"Demand oracle returned a malformed record for {district_id}") from exc
        return record


def demand_snapshot(
    oracle: DemandOracle,
    district_ids: Iterable[str],
    horizon_months: int,
) -> Dict[str, DemandRecord]:
    """Resolve every district's prediction once, so a run sees a fixed snapshot."""
    snapshot = {d: oracle.predict(d, horizon_months) for d in sorted(district_ids)}
    logger.info("Demand snapshot: %d districts, horizon %d months", len(snapshot), horizon_months)
    return snapshot


def risk_level(overall: float) -> tuple[str, str]:
    if overall <= 2:
        return "Low", "Conditions are safe. Normal activities can proceed."
    if overall <= 4:
        return "Moderate", "Some risk factors detected. Monitor situation closely and prepare contingency plans."
    if overall <= 7:
        return "High", "Significant risk detected. Activate response teams and begin pre-positioning resources."
    return "Extreme", "CRITICAL: Immediate action required. Deploy all available resources and initiate evacuations."


class StaticRiskOracle(RiskOracle):
    """Weighted 0-10 hazard factors per district id, with an explicit ``default`` fallback."""

    def __init__(self, factors: Mapping[str, RiskFactors]):
        self.factors = dict(factors)

    def assess(self, district_id: str) -> RiskAssessment:
        factors = self.factors.get(district_id) or self.factors.get(DEFAULT_KEY)
        if factors is None:
            raise UnknownDistrict(district_id)
        values = factors.model_dump()
        overall = round(sum(values[name] * weight for name, weight in RISK_WEIGHTS.items()), 1)
        level, recommendation = risk_level(overall)
        return RiskAssessment(
            district_id=district_id,
            overall_risk=overall,
            risk_level=level,
            factors=factors,
            recommendation=recommendation,
        )
