import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
import pandas as pd
from .factors import FACTORS, clamp
from .models import Lead, LeadScore, ScoreFactor


class ScoreLabel(str, Enum):
    HOT = "Hot Lead"
    WARM = "Warm Lead"
    COOL = "Cool Lead"
    COLD = "Cold Lead"


LABEL_THRESHOLDS = (
    (80, ScoreLabel.HOT),
    (60, ScoreLabel.WARM),
    (40, ScoreLabel.COOL),
)


def score_label(score: int) -> str:
    for threshold, label in LABEL_THRESHOLDS:
        if score >= threshold:
            return label.value
    return ScoreLabel.COLD.value


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def aggregate(factors: List[ScoreFactor]) -> Tuple[int, str]:
    raw = sum(f.contribution for f in factors)
    score = _round_half_up(clamp(raw * 100, 0.0, 100.0))
    return score, score_label(score)


def _usable_weight(weights: Mapping[str, Any], key: str) -> Optional[float]:
    weight = weights.get(key)
    if weight is None:
        return None
    try:
        weight = float(weight)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(weight) or weight <= 0:
        return None
    return weight


def extract_factors(lead: Lead, weights: Mapping[str, Any], now: pd.Timestamp) -> List[ScoreFactor]:
    factors: List[ScoreFactor] = []
    for spec in FACTORS:
        weight = _usable_weight(weights, spec.kind.key)
        if weight is None:
            continue
        value = spec.compute(lead, now)
        if value is None:
            continue
        if spec.suppress_zero and value <= 0:
            continue
        factors.append(ScoreFactor(
            name=spec.kind.display_name,
            weight=weight,
            value=value,
            contribution=value * weight,
        ))
    return factors


def compute_score(lead: Lead, weights: Optional[Dict[str, Optional[float]]], now: Optional[Any] = None) -> LeadScore:
    ref = pd.Timestamp.now(tz="UTC") if now is None else pd.Timestamp(now)
    if ref.tzinfo is None:
        ref = ref.tz_localize("UTC")
    factors = extract_factors(lead, weights or {}, ref)
    score, label = aggregate(factors)
    return LeadScore(email=lead.email or "", score=score, label=label, factors=factors)
