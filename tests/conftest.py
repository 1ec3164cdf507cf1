"""Shared fixtures for the sourcing assistant tests."""

import base64
import json

import pytest

from sourcing_assistant.ingest.models import CandidateFile, ImageQualityResult, QualityRating
from sourcing_assistant.storage.local_state import LocalStateStore


class FakeScorer:
    """Scores images from a table keyed by raw bytes; unknown images fail."""

    def __init__(self, scores=None, gate=None):
        self.scores = scores or {}
        self.gate = gate
        self.calls = 0

    async def score(self, image):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        raw = base64.b64decode(image.base64_payload)
        value = self.scores.get(raw)
        if value is None:
            return ImageQualityResult.failed("Analysis failed to complete.")
        return ImageQualityResult(
            score=value, rating=QualityRating.GOOD, feedback="Clear shot", pending=False
        )


def make_file(name: str, data: bytes = None, mime_type: str = "image/png") -> CandidateFile:
    return CandidateFile(name=name, mime_type=mime_type, data=data if data is not None else name.encode())


@pytest.fixture
def state_store(tmp_path):
    """Local state store rooted in a temporary directory."""
    return LocalStateStore(str(tmp_path / "state"))


@pytest.fixture
def proposal_data():
    """A complete analysis payload as the service returns it."""
    return {
        "productName": "Bamboo Cutting Board",
        "productDescription": "Three-piece bamboo cutting board set.",
        "minimumOrderQuantity": 500,
        "leadTime": "25-30 days",
        "sampleAvailability": True,
        "specs": {
            "dimensions": "40 x 30 x 2 cm",
            "weight": "1.2 kg",
            "coreMaterial": "Moso bamboo",
            "features": ["Juice groove", "Non-slip feet"],
        },
        "demandAnalysis": {
            "usMarketDemand": "High",
            "competitionLevel": "Medium",
            "genAiInsight": "Demand is steady. Eco claims sell well. Prices are falling.",
        },
        "factoryBids": [
            {
                "name": "Fujian Green Home",
                "price": 0.72,
                "risk": "Low Risk",
                "sustainability": "FSC and GOTS certified supply chain",
                "certifications": ["FSC"],
                "trustIndicators": [{"name": "Verified", "available": True}],
            },
            {
                "name": "Ningbo Kitchenware",
                "price": 0.65,
                "risk": "Medium",
                "sustainability": "Offers recycled packaging",
            },
        ],
        "packagingOptions": [
            {"name": "Polybag", "description": "Basic", "pricePerUnit": 0.12},
            {"name": "Gift box", "description": "Printed", "pricePerUnit": "$0.45"},
        ],
        "packagingDetails": {"unitsPerCarton": 50, "cartonDimensions": "45x35x30 cm"},
        "nexyAdvantage": [{"title": "Quality control", "description": "Pre-shipment inspection"}],
        "ddpPriceTiers": [
            {"quantity": 500, "pricePerUnit": 1.25},
            {"quantity": 1000, "pricePerUnit": 0.98},
            {"quantity": 5000, "pricePerUnit": 0.81},
        ],
        "logisticsAssumptions": {"exportCountry": "China", "incoterm": "DDP"},
        "ddpCostBreakdown": {
            "htsCode": "4419.11.0000",
            "factoryPrice": 0.65,
            "estimatedFreight": 0.12,
            "mfnDuty": 0.02,
            "section301Duty": 0.16,
            "mpf": 0.01,
            "hmf": 0.002,
            "brokerageAndIsf": 0.01,
            "nexyFee": 0.05,
        },
        "complianceChecks": [{"name": "FDA food contact", "details": "Required", "applicable": True}],
        "sources": {
            "tariff": ["https://hts.usitc.gov/"],
            "demand": ["https://trends.example.com/bamboo"],
            "compliance": ["https://hts.usitc.gov/"],
        },
    }


@pytest.fixture
def proposal_text(proposal_data):
    """The payload wrapped the way the analysis service answers."""
    return f"Here is your proposal:\n```json\n{json.dumps(proposal_data)}\n```\nLet me know!"


@pytest.fixture
def fake_scorer():
    """Factory for FakeScorer instances."""
    return FakeScorer


@pytest.fixture
def image_file():
    """Factory for candidate upload files."""
    return make_file
