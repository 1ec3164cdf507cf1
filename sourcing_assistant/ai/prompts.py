"""Centralized prompt templates for the analysis and image-scoring services."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from sourcing_assistant.config import settings
from sourcing_assistant.ingest.models import EncodedImage
from sourcing_assistant.proposal.models import PriorityLevel

PROPOSAL_EXAMPLE = """```json
{
  "productName": "Fabric-Wrapped Plastic Comb Headband",
  "productDescription": "A classic comb-style headband with a plastic core wrapped in fabric.",
  "minimumOrderQuantity": 500,
  "leadTime": "25-35 days",
  "sampleAvailability": true,
  "specs": {
    "dimensions": "14cm x 12cm x 2.5cm",
    "weight": "25g",
    "coreMaterial": "ABS Plastic",
    "features": ["Anti-slip interior teeth", "Satin fabric wrap"]
  },
  "demandAnalysis": {
    "usMarketDemand": "High",
    "competitionLevel": "Very High",
    "genAiInsight": "Eco-friendly materials are key differentiators in a crowded market.",
    "marketSize": "$31.6 billion in 2023",
    "competitorBenchmarks": ["Brand A: $8.99"],
    "salesForecast": "Steady sales with Q3/Q4 growth potential."
  },
  "factoryBids": [
    {
      "name": "Factory A (Guangdong, China)",
      "price": 0.32,
      "specialty": "Fashion Accessories",
      "risk": "Low",
      "riskSummary": "Stable bid with positive reviews. 5+ years in business.",
      "sustainability": "Offers recycled fabric options. ISO 9001 certified.",
      "certifications": ["OEKO-TEX"],
      "trustIndicators": [{"name": "In-house mold making", "available": true}],
      "sourceUrl": "https://alibaba.com/link-to-factory-a"
    }
  ],
  "packagingOptions": [
    {"name": "Standard Polybag", "description": "Basic clear bag.", "pricePerUnit": 0.03},
    {"name": "Custom Backer Card", "description": "Recycled cardstock.", "pricePerUnit": 0.12}
  ],
  "packagingDetails": {"unitsPerCarton": 250, "cartonDimensions": "50cm x 40cm x 35cm", "cartonWeight": "7.5 kg"},
  "serviceAdvantages": [{"title": "2-Week Express Sample", "description": "Validate quality fast."}],
  "ddpPriceTiers": [
    {"quantity": 500, "pricePerUnit": 1.25},
    {"quantity": 1000, "pricePerUnit": 0.98},
    {"quantity": 5000, "pricePerUnit": 0.82}
  ],
  "logisticsAssumptions": {
    "exportCountry": "China",
    "incoterm": "EXW",
    "portOfLoading": "Shenzhen (Yantian)",
    "portOfDischarge": "Los Angeles (LAX)",
    "shippingMode": "Ocean LCL",
    "cartonEstimate": "Est. 0.5 CBM for 1,000 units"
  },
  "ddpCostBreakdown": {
    "htsCode": "9615.11.4000",
    "factoryPrice": 0.32,
    "estimatedFreight": 0.40,
    "mfnDuty": 0.02,
    "section301Duty": 0.02,
    "mpf": 0.03,
    "hmf": 0.00,
    "brokerageAndIsf": 0.03,
    "serviceFee": 0.16
  },
  "complianceChecks": [{"name": "CPSIA Compliance", "details": "Required if marketed to children under 12.", "applicable": true}],
  "sources": {"tariff": ["https://hts.usitc.gov/"], "demand": [], "compliance": []}
}
```"""


def analysis_system_prompt() -> str:
    """System instructions for the proposal analysis call."""
    return f"""You are an AI Sourcing Data Analyst for {settings.brand_name}. Your ONLY job is to find the data requested and return it as a SINGLE, VALID JSON object wrapped in a ```json ... ``` markdown block.
Do NOT write any prose or explanations.

Provide, as specifically as possible:

1. Product Info: 'productName', a one-sentence 'productDescription', 'minimumOrderQuantity' (number), 'leadTime', 'sampleAvailability' (boolean) and 'specs' (dimensions, weight, 'coreMaterial', 'features').
2. Demand Analysis: US market demand, competition level, 'genAiInsight', 'marketSize', competitor benchmarks and a sales forecast.
3. Factory Bids: AT LEAST 3 factory (EXW) bids. If the user provides a preferred export country, ALL bids MUST be from that country. Include name, price, specialty, risk, 'riskSummary', sustainability notes, 'certifications' and a 'trustIndicators' checklist.
4. Packaging: TWO 'packagingOptions' (standard and premium) with 'name', 'description', 'pricePerUnit'; and 'packagingDetails' with 'unitsPerCarton', 'cartonDimensions', 'cartonWeight'.
5. Service Advantages: 3 key 'serviceAdvantages' of {settings.brand_name}.
6. Logistics Assumptions: 'exportCountry' MUST match the user's preferred export country if provided. Include 'incoterm', ports and 'shippingMode'.
7. DDP Price & Breakdown: 'ddpPriceTiers' for 500, 1,000 and 5,000 units, and a 'ddpCostBreakdown' for the 1000-unit tier with 'mfnDuty', 'section301Duty' (MUST be 0 unless the export country is China), 'mpf', 'hmf', 'brokerageAndIsf', 'serviceFee' and the US 'htsCode'.
8. Compliance Checks: each with 'name', 'details' and 'applicable'.
9. Sources: URLs grouped as 'tariff', 'demand' and 'compliance'.

If a piece of data is not found, return null or an empty array. Your entire response MUST be only the JSON structure.

Return data in this exact format:

{PROPOSAL_EXAMPLE}
"""


IMAGE_QUALITY_SYSTEM_PROMPT = (
    "You are an expert AI photo analyst. Your task is to evaluate the quality of a product "
    "image for e-commerce and sourcing purposes. Your response MUST be a single, valid JSON "
    "object with no additional text or explanations."
)

IMAGE_QUALITY_PROMPT = """Analyze the provided product image. Focus on factors critical for a sourcing request:
- Clarity & Focus: Is the product sharp and in focus?
- Lighting: Is the lighting even, without harsh shadows or glare?
- Background: Is the background simple and non-distracting?
- Completeness: Does the image show the entire product clearly?

Return a JSON object with:
1. "qualityScore": An integer score from 0 to 100.
2. "qualityRating": One of "Poor", "Fair", "Good", "Excellent".
3. "feedback": A single, concise, actionable sentence suggesting the most impactful improvement. If the rating is "Excellent", the feedback should be "Image is clear and well-lit."
"""


class AnalysisRequest(BaseModel):
    """Input to the proposal analysis service."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    images: List[EncodedImage]
    user_details: str = ""
    export_country_hint: Optional[str] = None
    priority_hint: PriorityLevel = PriorityLevel.MEDIUM

    def to_prompt(self) -> str:
        """Convert to prompt text."""
        parts = [f'User-provided details: "{self.user_details or "None. Analyze the image only."}"']

        if self.export_country_hint:
            parts.append(
                f'[IMPORTANT] The user has specified a preferred export country: '
                f'"{self.export_country_hint}". All factory bids, logistics, and duties '
                f'must be specific to this country.'
            )

        parts.append(
            f'[PRIORITY] The user has set the priority for this analysis to: '
            f'"{self.priority_hint.value}". Adapt your analysis accordingly.'
        )
        return "\n\n".join(parts)
