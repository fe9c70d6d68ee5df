"""
Prediction Collaborator Client
===============================
Sends the compact DataSummary to an OpenAI-compatible chat-completions
gateway and returns its predictions payload:

  {predictions: [...], recommendations: [...], riskFactors: [...],
   opportunityScore: 1-100, overallOutlook: str}

Content that is not valid JSON (even after stripping a ```json fence) is not
an error: it is replaced by a fixed fallback payload. Transport and gateway
failures raise PredictionServiceError with a status the API layer maps to a
distinct HTTP error state.
"""

import json
import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

RAW_EXCERPT_CHARS = 500
_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class PredictionStatus(str, Enum):
    RATE_LIMITED = "rate_limited"
    CREDITS_EXHAUSTED = "credits_exhausted"
    UNAVAILABLE = "unavailable"
    NOT_CONFIGURED = "not_configured"


HTTP_STATUS = {
    PredictionStatus.RATE_LIMITED: 429,
    PredictionStatus.CREDITS_EXHAUSTED: 402,
    PredictionStatus.UNAVAILABLE: 502,
    PredictionStatus.NOT_CONFIGURED: 503,
}


class PredictionServiceError(Exception):
    def __init__(self, status: PredictionStatus, message: str):
        self.status = status
        self.message = message
        super().__init__(message)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.status]


SYSTEM_PROMPT = """You are an expert data scientist and business analyst. Based on the provided dataset summary and statistics, generate actionable predictions and strategic recommendations.

Your response MUST be valid JSON with this exact structure:
{
  "predictions": [
    {
      "title": "Short prediction title",
      "prediction": "Detailed prediction statement based on data patterns",
      "confidence": "high" | "medium" | "low",
      "timeframe": "short-term" | "medium-term" | "long-term",
      "basedOn": "Which data patterns support this prediction"
    }
  ],
  "recommendations": [
    {
      "title": "Action-oriented recommendation title",
      "description": "Detailed recommendation with specific actions",
      "priority": "critical" | "high" | "medium" | "low",
      "expectedImpact": "Quantified or qualified expected outcome",
      "implementation": "How to implement this recommendation"
    }
  ],
  "riskFactors": [
    {
      "risk": "Identified risk or concern",
      "mitigation": "How to mitigate this risk"
    }
  ],
  "opportunityScore": 1-100,
  "overallOutlook": "Brief overall assessment paragraph"
}

Generate 3-5 predictions, 4-6 recommendations, and 2-3 risk factors. Be specific and data-driven."""


def _fmt(value: Optional[float], digits: int = 2) -> str:
    return "n/a" if value is None else f"{value:.{digits}f}"


def build_user_prompt(summary: Dict[str, Any]) -> str:
    lines = [
        "Analyze this dataset and provide predictions and recommendations:",
        "",
        f"Dataset: {summary['datasetName']}",
        f"Records: {summary['rowCount']}",
        f"Analysis Type: {summary['analysisType']}",
        "",
        "Columns Summary:",
    ]
    for col in summary.get("columns", []):
        if col.get("type") == "number":
            detail = (
                f"Range: {col.get('min')}-{col.get('max')}, Mean: {_fmt(col.get('mean'))}, "
                f"Std: {_fmt(col.get('std'))}, Distribution: {col.get('skewnessType') or 'unknown'}"
            )
        else:
            detail = f"{col.get('uniqueCount', 0)} unique values"
        lines.append(f"- {col['name']} ({col.get('type')}): {detail}")

    correlations = summary.get("correlations") or []
    if correlations:
        lines.extend(["", "Correlations Found:"])
        lines.extend(
            f"- {c['xColumn']} vs {c['yColumn']}: {c['strength']} correlation (r={_fmt(c['value'], 3)})"
            for c in correlations
        )

    lines.extend([
        "",
        "Based on these statistics and patterns, provide data-driven predictions and actionable recommendations.",
    ])
    return "\n".join(lines)


def fallback_payload(content: str) -> Dict[str, Any]:
    return {
        "predictions": [{
            "title": "Analysis in Progress",
            "prediction": (
                "The AI generated insights but they couldn't be fully parsed. Raw insight: "
                + content[:RAW_EXCERPT_CHARS]
            ),
            "confidence": "medium",
            "timeframe": "medium-term",
            "basedOn": "Statistical analysis of dataset",
        }],
        "recommendations": [{
            "title": "Review Raw Data",
            "description": "Manually review the dataset patterns for deeper insights",
            "priority": "medium",
            "expectedImpact": "Better understanding of data quality",
            "implementation": "Export data and analyze in detail",
        }],
        "riskFactors": [],
        "opportunityScore": 50,
        "overallOutlook": "Further analysis recommended.",
    }


def parse_prediction_content(content: str) -> Dict[str, Any]:
    """JSON object from the model reply (fenced or bare); fallback payload otherwise."""
    match = _FENCE.search(content)
    candidate = match.group(1).strip() if match else content.strip()
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        logger.warning(f"Unparseable prediction content ({len(content)} chars); using fallback")
        return fallback_payload(content)
    if not isinstance(parsed, dict):
        logger.warning("Prediction content is JSON but not an object; using fallback")
        return fallback_payload(content)
    return parsed


class PredictionClient:
    """Async client for the prediction gateway."""

    def __init__(self, base_url: str, api_key: str, model: str, timeout_seconds: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings) -> "PredictionClient":
        return cls(
            base_url=settings.PREDICTIONS_URL,
            api_key=settings.PREDICTIONS_API_KEY,
            model=settings.PREDICTIONS_MODEL,
            timeout_seconds=settings.PREDICTIONS_TIMEOUT,
        )

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def build_messages(self, summary: Dict[str, Any]) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_prompt(summary)},
        ]

    async def generate(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        if not self.configured:
            raise PredictionServiceError(
                PredictionStatus.NOT_CONFIGURED, "Prediction service is not configured"
            )

        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"}
        body = {"model": self.model, "messages": self.build_messages(summary), "temperature": 0.7}

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                resp = await client.post(f"{self.base_url}/chat/completions", json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Prediction gateway unreachable: {e}")
            raise PredictionServiceError(PredictionStatus.UNAVAILABLE, "AI service unavailable") from e

        if resp.status_code == 429:
            raise PredictionServiceError(
                PredictionStatus.RATE_LIMITED, "Rate limit exceeded. Please try again in a moment."
            )
        if resp.status_code == 402:
            raise PredictionServiceError(
                PredictionStatus.CREDITS_EXHAUSTED, "AI credits exhausted. Please add funds to continue."
            )
        if resp.status_code >= 400:
            logger.error(f"Prediction gateway error {resp.status_code}: {resp.text[:200]}")
            raise PredictionServiceError(PredictionStatus.UNAVAILABLE, "AI service unavailable")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise PredictionServiceError(PredictionStatus.UNAVAILABLE, "No response from AI") from e
        if not content:
            raise PredictionServiceError(PredictionStatus.UNAVAILABLE, "No response from AI")

        logger.info(f"Prediction gateway replied with {len(content)} chars")
        return parse_prediction_content(content)
