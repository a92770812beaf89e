"""
Deterministic claim risk scoring.

financial = min(damages / 1,000,000, 1) for a positive numeric estimate,
otherwise 0.5; legal = 0.4 with supporting exhibits, otherwise 0.8. The mean
of the two is bucketed: below 0.3 low, below 0.6 moderate, otherwise high.
"""

from typing import Any, Dict, Mapping

DAMAGES_SCALE = 1_000_000
DEFAULT_FINANCIAL = 0.5
LEGAL_WITH_EVIDENCE = 0.4
LEGAL_WITHOUT_EVIDENCE = 0.8
LOW_THRESHOLD = 0.3
MODERATE_THRESHOLD = 0.6


def _positive_number(value: Any) -> bool:
    # bool is an int subclass but never a damages figure
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def risk_bucket(overall: float) -> str:
    if overall < LOW_THRESHOLD:
        return "low"
    if overall < MODERATE_THRESHOLD:
        return "moderate"
    return "high"


def assess_claim_risk(claim_id: str, claim: Mapping[str, Any]) -> Dict[str, Any]:
    damages = claim.get("damages_estimate")
    exhibit_ids = claim.get("exhibit_ids")
    has_evidence = isinstance(exhibit_ids, list) and len(exhibit_ids) > 0
    has_damages = _positive_number(damages)

    financial = min(damages / DAMAGES_SCALE, 1.0) if has_damages else DEFAULT_FINANCIAL
    legal = LEGAL_WITH_EVIDENCE if has_evidence else LEGAL_WITHOUT_EVIDENCE
    overall = (financial + legal) / 2

    return {
        "claim_id": claim_id,
        "overall_risk": risk_bucket(overall),
        "risk_scores": {"financial": financial, "legal": legal},
        "factors": {
            "has_evidence": has_evidence,
            "damages_estimate": damages or 0,
            "claim_type": claim.get("claim_type"),
            "exhibit_count": len(exhibit_ids) if isinstance(exhibit_ids, list) else 0,
        },
    }


def unknown_risk(claim_id: str, error: str) -> Dict[str, Any]:
    return {
        "claim_id": claim_id,
        "overall_risk": "unknown",
        "risk_scores": {"financial": DEFAULT_FINANCIAL, "legal": DEFAULT_FINANCIAL},
        "error": error,
    }
