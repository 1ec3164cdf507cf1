"""Typed proposal record built from the analysis service's JSON.

Every leaf is optional. The analysis schema is not guaranteed, so each field
coerces what it can and falls back to ``None`` (scalars), ``[]`` (arrays) or a
default instance (objects) instead of rejecting the whole response.
"""

import math
from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PriorityLevel(str, Enum):
    """Priority hint sent with an analysis request."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def _coerce_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().lstrip("$").replace(",", ""))
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _coerce_int(value: Any) -> Optional[int]:
    number = _coerce_number(value)
    return int(number) if number is not None else None


def _coerce_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, bool)):
        return str(value)
    return None


def _coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


def _coerce_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _coerce_str_list(value: Any) -> list[str]:
    return [item for item in _coerce_list(value) if isinstance(item, str)]


def _is_record(value: Any) -> bool:
    return isinstance(value, (dict, BaseModel))


def _coerce_object_list(value: Any) -> list:
    return [item for item in _coerce_list(value) if _is_record(item)]


def _coerce_object(value: Any) -> Any:
    return value if _is_record(value) else {}


def _coerce_optional_object(value: Any) -> Any:
    return value if _is_record(value) else None


OptFloat = Annotated[Optional[float], BeforeValidator(_coerce_number)]
OptInt = Annotated[Optional[int], BeforeValidator(_coerce_int)]
OptStr = Annotated[Optional[str], BeforeValidator(_coerce_str)]
OptBool = Annotated[Optional[bool], BeforeValidator(_coerce_bool)]
StrList = Annotated[List[str], BeforeValidator(_coerce_str_list)]


class ProposalBase(BaseModel):
    """Frozen, camelCase-aliased base for all proposal records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class TrustIndicator(ProposalBase):
    name: OptStr = None
    available: OptBool = None


class ServiceAdvantage(ProposalBase):
    title: OptStr = None
    description: OptStr = None


class PriceTier(ProposalBase):
    """A (quantity, DDP unit price) volume price point."""

    quantity: Annotated[int, BeforeValidator(lambda v: _coerce_int(v) or 0)] = 0
    price_per_unit: Annotated[float, BeforeValidator(lambda v: _coerce_number(v) or 0.0)] = 0.0


class CostBreakdown(ProposalBase):
    hts_code: OptStr = None
    factory_price: OptFloat = None
    estimated_freight: OptFloat = None
    mfn_duty: OptFloat = None
    section301_duty: OptFloat = Field(
        default=None,
        validation_alias=AliasChoices("section301Duty", "section301_duty"),
        serialization_alias="section301Duty",
    )
    mpf: OptFloat = None
    hmf: OptFloat = None
    brokerage_and_isf: OptFloat = None
    service_fee: OptFloat = Field(
        default=None,
        validation_alias=AliasChoices("serviceFee", "nexyFee", "service_fee"),
        serialization_alias="serviceFee",
    )


class LogisticsAssumptions(ProposalBase):
    export_country: OptStr = None
    incoterm: OptStr = None
    port_of_loading: OptStr = None
    port_of_discharge: OptStr = None
    shipping_mode: OptStr = None
    carton_estimate: OptStr = None


class ComplianceCheck(ProposalBase):
    name: OptStr = None
    details: OptStr = None
    applicable: OptBool = None


class Spec(ProposalBase):
    dimensions: OptStr = None
    weight: OptStr = None
    core_material: OptStr = None
    features: StrList = []


class DemandAnalysis(ProposalBase):
    us_market_demand: OptStr = None
    competition_level: OptStr = None
    gen_ai_insight: OptStr = None
    market_size: OptStr = None
    competitor_benchmarks: StrList = []
    sales_forecast: OptStr = None


class FactoryBid(ProposalBase):
    """An EXW bid from a single factory."""

    name: OptStr = None
    price: OptFloat = None
    specialty: OptStr = None
    risk: OptStr = None
    risk_summary: OptStr = None
    sustainability: OptStr = None
    certifications: StrList = []
    trust_indicators: Annotated[List[TrustIndicator], BeforeValidator(_coerce_object_list)] = []
    source_url: OptStr = None


class Sources(ProposalBase):
    tariff: StrList = []
    demand: StrList = []
    compliance: StrList = []


class PackagingOption(ProposalBase):
    name: OptStr = None
    description: OptStr = None
    price_per_unit: Annotated[float, BeforeValidator(lambda v: _coerce_number(v) or 0.0)] = 0.0


class PackagingDetails(ProposalBase):
    units_per_carton: OptInt = None
    carton_dimensions: OptStr = None
    carton_weight: OptStr = None


class Proposal(ProposalBase):
    """Normalized sourcing analysis for one product."""

    product_name: OptStr = None
    product_description: OptStr = None
    minimum_order_quantity: OptInt = None
    lead_time: OptStr = None
    sample_availability: OptBool = None
    specs: Annotated[Spec, BeforeValidator(_coerce_object)] = Spec()
    demand_analysis: Annotated[DemandAnalysis, BeforeValidator(_coerce_object)] = DemandAnalysis()
    factory_bids: Annotated[List[FactoryBid], BeforeValidator(_coerce_object_list)] = []
    packaging_options: Annotated[List[PackagingOption], BeforeValidator(_coerce_object_list)] = []
    packaging_details: Annotated[Optional[PackagingDetails], BeforeValidator(_coerce_optional_object)] = None
    service_advantages: Annotated[List[ServiceAdvantage], BeforeValidator(_coerce_object_list)] = Field(
        default=[],
        validation_alias=AliasChoices("serviceAdvantages", "nexyAdvantage", "service_advantages"),
        serialization_alias="serviceAdvantages",
    )
    ddp_price_tiers: Annotated[List[PriceTier], BeforeValidator(_coerce_object_list)] = []
    logistics_assumptions: Annotated[LogisticsAssumptions, BeforeValidator(_coerce_object)] = LogisticsAssumptions()
    ddp_cost_breakdown: Annotated[CostBreakdown, BeforeValidator(_coerce_object)] = CostBreakdown()
    compliance_checks: Annotated[List[ComplianceCheck], BeforeValidator(_coerce_object_list)] = []
    sources: Annotated[Sources, BeforeValidator(_coerce_object)] = Sources()

    def to_json_dict(self) -> dict:
        """Serialize with the camelCase wire keys."""
        return self.model_dump(mode="json", by_alias=True)
