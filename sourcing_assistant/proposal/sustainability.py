"""Keyword classification of factory sustainability and risk notes."""

from enum import Enum
from typing import Optional


class SustainabilityRating(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    NOT_AVAILABLE = "N/A"


class RiskLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# Checked in order; first tier with a matching keyword wins
EXCELLENT_KEYWORDS = ("eco-certified", "gots", "iso 14001", "b corp")
GOOD_KEYWORDS = ("recycled", "iso 9001", "oeko-tex")
FAIR_KEYWORDS = ("offers", "options")

MIN_FAIR_TEXT_LENGTH = 5


def classify_sustainability(text: Optional[str]) -> SustainabilityRating:
    """
    Rate a free-text sustainability note.

    Named eco-certifications rate Excellent, recycled content or generic
    quality/textile certifications rate Good, anything else with substance
    rates Fair.
    """
    if not text:
        return SustainabilityRating.NOT_AVAILABLE

    lower_text = text.lower()
    if any(keyword in lower_text for keyword in EXCELLENT_KEYWORDS):
        return SustainabilityRating.EXCELLENT
    if any(keyword in lower_text for keyword in GOOD_KEYWORDS):
        return SustainabilityRating.GOOD
    if any(keyword in lower_text for keyword in FAIR_KEYWORDS):
        return SustainabilityRating.FAIR
    if len(lower_text) > MIN_FAIR_TEXT_LENGTH:
        return SustainabilityRating.FAIR
    return SustainabilityRating.NOT_AVAILABLE


def classify_risk(text: Optional[str]) -> Optional[RiskLevel]:
    """Map a bid's free-text risk label to a level, highest first."""
    risk = (text or "").lower()
    if "high" in risk:
        return RiskLevel.HIGH
    if "medium" in risk:
        return RiskLevel.MEDIUM
    if "low" in risk:
        return RiskLevel.LOW
    return None
