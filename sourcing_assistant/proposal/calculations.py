"""Derived financial calculations over a parsed Proposal.

All functions here are pure. Missing or malformed numbers count as 0, and
invalid inputs (no packaging, non-positive retail price) produce empty
results instead of raising.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from sourcing_assistant.config import settings
from sourcing_assistant.proposal.models import PackagingOption, PriceTier, Proposal

MID_TIER_QUANTITY = 1000
SECTION_301_COUNTRY = "china"

TOOLTIP_DEFINITIONS = {
    "hts_code": (
        "The Harmonized Tariff Schedule (HTS) code is a 10-digit number used by US Customs "
        "to classify imported goods and determine duty rates."
    ),
    "incoterm": (
        "Incoterms are internationally recognized rules that define the responsibilities of "
        "sellers and buyers. EXW (Ex Works) means the buyer is responsible for all costs and "
        "risks from the factory's door."
    ),
    "mfn_duty": (
        "Most-Favored-Nation (MFN) duties are the standard, non-discriminatory tariffs applied "
        "to imports from WTO member countries."
    ),
    "section301_duty": (
        "These are additional tariffs imposed by the U.S. on certain goods imported from China "
        "under Section 301 of the Trade Act of 1974."
    ),
    "mpf": (
        "The Merchandise Processing Fee (MPF) is a fee collected by US Customs and Border "
        "Protection to cover the costs of processing imported goods."
    ),
    "hmf": (
        "The Harbor Maintenance Fee (HMF) is a fee collected by US Customs on imports arriving "
        "by sea to fund the maintenance of U.S. ports and harbors."
    ),
    "brokerage_and_isf": (
        "Covers the cost of a customs broker to clear your goods and file the Importer Security "
        "Filing (ISF), which is required for ocean shipments before they are loaded."
    ),
}


@dataclass
class MarginRow:
    quantity: int
    landed_cost: float
    margin_percent: float


@dataclass
class CartonEstimate:
    quantity: int
    units_per_carton: int
    cartons: int
    total_cost: float


@dataclass
class CostLine:
    key: str
    label: str
    value: float
    tooltip: Optional[str] = None


@dataclass
class ChartPoint:
    label: str
    x: float
    y: float


def as_number(value: Any) -> float:
    """Coerce a possibly-missing numeric input to a float, 0 when unusable."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def unit_price_for(proposal: Proposal, quantity: int) -> float:
    """Unit price of the tier with exactly this quantity, 0 when there is none."""
    for tier in proposal.ddp_price_tiers:
        if tier.quantity == quantity:
            return as_number(tier.price_per_unit)
    return 0.0


def margin_table(
    proposal: Proposal,
    retail_price: Any,
    packaging: Optional[PackagingOption],
) -> List[MarginRow]:
    """
    Per-tier landed cost and gross margin at a target retail price.

    Args:
        proposal: Parsed proposal
        retail_price: Target retail price R (number or numeric string)
        packaging: Chosen packaging option

    Returns:
        One MarginRow per tier, empty if R <= 0, R is not numeric, or no packaging
    """
    retail = as_number(retail_price)
    if retail <= 0 or packaging is None:
        return []

    packaging_cost = as_number(packaging.price_per_unit)
    rows = []
    for tier in proposal.ddp_price_tiers:
        landed_cost = as_number(tier.price_per_unit) + packaging_cost
        rows.append(MarginRow(
            quantity=tier.quantity,
            landed_cost=landed_cost,
            margin_percent=(retail - landed_cost) / retail * 100,
        ))
    return rows


def units_per_carton(proposal: Proposal) -> int:
    details = proposal.packaging_details
    units = int(as_number(details.units_per_carton)) if details else 0
    return units if units > 0 else 1


def carton_estimate(proposal: Proposal, quantity: Any) -> CartonEstimate:
    """Carton count and total DDP cost for one order quantity."""
    qty = int(as_number(quantity))
    per_carton = units_per_carton(proposal)
    return CartonEstimate(
        quantity=qty,
        units_per_carton=per_carton,
        cartons=math.ceil(qty / per_carton),
        total_cost=unit_price_for(proposal, qty) * qty,
    )


def carton_table(proposal: Proposal) -> List[CartonEstimate]:
    """Carton estimate for every price tier."""
    return [carton_estimate(proposal, tier.quantity) for tier in proposal.ddp_price_tiers]


def includes_section_301(proposal: Proposal) -> bool:
    country = proposal.logistics_assumptions.export_country
    return country is not None and country.lower() == SECTION_301_COUNTRY


def cost_breakdown_lines(proposal: Proposal) -> List[CostLine]:
    """
    Ordered DDP cost-breakdown line items.

    The Section 301 line only appears for goods exported from China; its
    stored value is ignored otherwise.
    """
    breakdown = proposal.ddp_cost_breakdown
    items = [
        ("factory_price", "Factory Price", breakdown.factory_price),
        ("estimated_freight", "Freight", breakdown.estimated_freight),
        ("service_fee", f"{settings.brand_name} Fee", breakdown.service_fee),
        ("brokerage_and_isf", "Brokerage/ISF", breakdown.brokerage_and_isf),
        ("mfn_duty", "MFN Duty", breakdown.mfn_duty),
        ("section301_duty", "Sec 301 Duty", breakdown.section301_duty),
        ("mpf", "MPF", breakdown.mpf),
        ("hmf", "HMF", breakdown.hmf),
    ]
    show_301 = includes_section_301(proposal)

    lines = []
    for key, label, value in items:
        if key == "section301_duty" and not show_301:
            continue
        lines.append(CostLine(
            key=key,
            label=label,
            value=as_number(value),
            tooltip=TOOLTIP_DEFINITIONS.get(key),
        ))
    return lines


def _format_thousands(quantity: int) -> str:
    x = quantity / 1000
    return f"{x:g}k"


def chart_series(proposal: Proposal) -> List[ChartPoint]:
    """Price-per-unit bar chart points, x in thousands of units."""
    return [
        ChartPoint(
            label=_format_thousands(tier.quantity),
            x=tier.quantity / 1000,
            y=as_number(tier.price_per_unit),
        )
        for tier in proposal.ddp_price_tiers
    ]


def mid_tier_price(proposal: Proposal) -> Optional[float]:
    """Unit price at the 1,000-unit tier, if quoted."""
    for tier in proposal.ddp_price_tiers:
        if tier.quantity == MID_TIER_QUANTITY:
            return as_number(tier.price_per_unit)
    return None


def reference_tier(proposal: Proposal) -> Optional[PriceTier]:
    """The 1,000-unit tier, else the first tier."""
    for tier in proposal.ddp_price_tiers:
        if tier.quantity == MID_TIER_QUANTITY:
            return tier
    return proposal.ddp_price_tiers[0] if proposal.ddp_price_tiers else None


def insight_snippet(proposal: Proposal, sentences: int = 2) -> str:
    """First sentences of the demand insight, for a collapsed view."""
    insight = proposal.demand_analysis.gen_ai_insight or ""
    found = re.findall(r"[^.!?]+[.!?]+", insight)
    return " ".join(sentence.strip() for sentence in found[:sentences])


def all_source_urls(proposal: Proposal) -> List[str]:
    """Every cited URL, de-duplicated in first-seen order."""
    sources = proposal.sources
    seen = {}
    for url in [*sources.tariff, *sources.demand, *sources.compliance]:
        if url:
            seen.setdefault(url, None)
    return list(seen)


def summary_text(proposal: Proposal) -> str:
    """Plain-text summary suitable for copying."""
    tier = reference_tier(proposal)
    reference_qty = (tier.quantity if tier else 0) or proposal.minimum_order_quantity or 0
    price = f"${as_number(tier.price_per_unit):.2f}" if tier else "$N/A"
    moq = f"{proposal.minimum_order_quantity:,}" if proposal.minimum_order_quantity else "N/A"

    lines = [
        f"Product: {proposal.product_name or 'N/A'}",
        f"DDP Price: {price} at {reference_qty:,} units",
        f"MOQ: {moq} units",
        f"Lead Time: {proposal.lead_time or 'N/A'}",
        f"Sample Available: {'Yes' if proposal.sample_availability else 'No'}",
    ]
    return "\n".join(lines)
