# hormone_health/hormone_scoring.py
# ------------------------------------------------------------
# Rule-based hormone scorer (survey answers → likely imbalances)
#
# What this file does
#   • Walks a fixed rule table over the survey answers and adds points
#     to the six hormone categories, collecting an explanation per rule.
#   • Ranks categories, picks a primary and up to two secondary ones.
#   • Folds in lab values (findings + score adjustments) and raises the
#     confidence when labs were supplied.
#
# How totals map to confidence
#   >= 15 → high
#   >=  8 → medium
#   else  → low
#   unknown cycle phase → one step lower
#   any lab → low becomes medium; 3+ labs → medium becomes high
#
# Note: primary/secondary are ranked from the symptom scores, BEFORE the
# lab adjustment. The returned scores are the adjusted ones.
# ------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .cycle_phase import CyclePhase
from .hormones import Hormone, HormoneScores, empty_scores, scores_as_dict
from .lab_adjustment import adjust_scores_with_labs
from .lab_analysis import analyze_lab_values, parse_lab_values

A = Hormone.ANDROGENS
P = Hormone.PROGESTERONE
E = Hormone.ESTROGEN
T = Hormone.THYROID
C = Hormone.CORTISOL
I = Hormone.INSULIN


class ConfidenceLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


HIGH_CONFIDENCE_TOTAL = 15
MEDIUM_CONFIDENCE_TOTAL = 8
LABS_FOR_HIGH_CONFIDENCE = 3

UNKNOWN_PHASE_NOTE = "Cycle phase unknown - some symptoms may be normal for your cycle phase"

# ------------------------------------------------------------
# Rule table → (question id, any-of answers, points, explanation, skip in phases)
# Evaluated top to bottom; explanations are appended in this order.
# ------------------------------------------------------------
Rule = Tuple[str, Tuple[str, ...], Dict[Hormone, int], Optional[str], Tuple[CyclePhase, ...]]

RULES: List[Rule] = [
    # ===== Q1: period regularity =====
    ("q1_period", ("No period",), {A: 3, E: 2},
     "Missing periods can indicate low estrogen or high androgens", ()),
    ("q1_period", ("No",), {P: 2},
     "Irregular periods often indicate progesterone deficiency", ()),

    # ===== Q3: flow =====
    ("q3_flow", ("Heavy",), {E: 3},
     "Heavy periods can indicate estrogen dominance", ()),
    ("q3_flow", ("Light",), {E: 2},
     "Light periods may indicate low estrogen", ()),
    ("q3_flow", ("Painful",), {P: 2, E: 1},
     "Painful periods often indicate progesterone deficiency and inflammation", ()),

    # ===== Q4: symptoms (checkboxes) =====
    ("q4_symptoms", ("Acne",), {A: 3},
     "Acne is strongly associated with high androgen levels", ()),
    ("q4_symptoms", ("Hair loss", "Hair thinning"), {A: 2, T: 1},
     "Hair loss can indicate high androgens or thyroid issues", ()),
    # Bloating and breast tenderness are ordinary PMS in the luteal phase
    ("q4_symptoms", ("Bloating",), {E: 2},
     "Bloating outside of PMS can indicate estrogen dominance", (CyclePhase.LUTEAL,)),
    ("q4_symptoms", ("Breast tenderness",), {E: 2},
     "Breast tenderness outside of PMS can indicate estrogen dominance", (CyclePhase.LUTEAL,)),

    # ===== Q5: energy =====
    ("q5_energy", ("Morning fatigue",), {C: 3},
     "Morning fatigue often indicates cortisol/adrenal issues", ()),
    ("q5_energy", ("Afternoon crash",), {I: 2, C: 1},
     "Afternoon crashes often indicate blood sugar/insulin issues", ()),
    ("q5_energy", ("Constant fatigue",), {T: 3, C: 2},
     "Constant fatigue strongly suggests thyroid or adrenal issues", ()),

    # ===== Q6: mood =====
    ("q6_mood", ("Rage/anger",), {P: 3},
     "Rage and anger are classic signs of progesterone deficiency", ()),
    ("q6_mood", ("Irritable",), {P: 2},
     "Irritability can indicate progesterone deficiency", ()),
    ("q6_mood", ("Sad/depressed",), {T: 2, P: 1},
     "Depression can indicate thyroid issues or hormone imbalances", ()),

    # ===== Q7: cravings (checkboxes) =====
    ("q7_cravings", ("Sugar",), {I: 3},
     "Sugar cravings strongly indicate insulin resistance", ()),
    ("q7_cravings", ("Chocolate",), {P: 2},
     "Chocolate cravings often indicate progesterone deficiency", ()),
    ("q7_cravings", ("Salt",), {C: 2},
     "Salt cravings can indicate adrenal/cortisol issues", ()),

    # ===== Q8: stress =====
    ("q8_stress", ("High",), {C: 3, P: 1},
     "High stress increases cortisol and can deplete progesterone", ()),
    ("q8_stress", ("Moderate",), {C: 1}, None, ()),

    # ===== Q9: birth control =====
    ("q9_birth_control", ("Recently stopped",), {A: 2, E: 1},
     "Stopping birth control can cause temporary androgen rebound", ()),

    # ===== Q10: diagnosed conditions (checkboxes) =====
    ("q10_conditions", ("PCOS",), {A: 4, I: 3},
     "PCOS is characterized by high androgens and insulin resistance", ()),
    ("q10_conditions", ("PMDD",), {P: 3},
     "PMDD is strongly linked to progesterone sensitivity", ()),
    ("q10_conditions", ("Hashimoto's",), {T: 4},
     "Hashimoto's is an autoimmune thyroid condition", ()),
]


@dataclass(frozen=True)
class AnalysisResult:
    primary_imbalance: Optional[Hormone]
    secondary_imbalances: Tuple[Hormone, ...]
    confidence_level: ConfidenceLevel
    explanations: Tuple[str, ...]
    scores: Mapping[Hormone, int]
    total_score: int
    cycle_phase: CyclePhase

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape used by the survey front end (camelCase keys)."""
        return {
            "primaryImbalance": self.primary_imbalance.value if self.primary_imbalance else None,
            "secondaryImbalances": [h.value for h in self.secondary_imbalances],
            "confidenceLevel": self.confidence_level.value,
            "explanations": list(self.explanations),
            "scores": scores_as_dict(self.scores),
            "totalScore": self.total_score,
            "cyclePhase": self.cycle_phase.value,
        }


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------
def _selected(answers: Mapping[str, Any], question_id: str) -> Tuple[str, ...]:
    """Answer(s) for one question as a tuple; radio answers become 1-tuples."""
    value = answers.get(question_id)
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(str(v) for v in value)
    return ()


def _raise(level: ConfidenceLevel) -> ConfidenceLevel:
    if level is ConfidenceLevel.LOW:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.HIGH


def _lower(level: ConfidenceLevel) -> ConfidenceLevel:
    if level is ConfidenceLevel.HIGH:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def classify_confidence(total_score: int) -> ConfidenceLevel:
    """Map a symptom total → confidence band."""
    if total_score >= HIGH_CONFIDENCE_TOTAL:
        return ConfidenceLevel.HIGH
    if total_score >= MEDIUM_CONFIDENCE_TOTAL:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def rank_imbalances(scores: Mapping[Hormone, int]) -> List[Hormone]:
    """Categories with a positive score, highest first (ties keep category order)."""
    ranked = sorted(Hormone, key=lambda h: scores[h], reverse=True)
    return [h for h in ranked if scores[h] > 0]


def apply_rules(
    answers: Mapping[str, Any], cycle_phase: CyclePhase
) -> Tuple[HormoneScores, List[str]]:
    """Run the rule table; returns fresh scores and explanations."""
    scores = empty_scores()
    explanations: List[str] = []
    for question_id, values, points, explanation, skip_phases in RULES:
        chosen = _selected(answers, question_id)
        if not any(v in chosen for v in values):
            continue
        if cycle_phase in skip_phases:
            continue
        for hormone, pts in points.items():
            scores[hormone] += pts
        if explanation:
            explanations.append(explanation)
    return scores, explanations


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------
def score_symptoms(answers: Optional[Mapping[str, Any]], cycle_phase) -> AnalysisResult:
    """
    Score survey answers into hormone imbalances.

    Args:
      answers: survey responses keyed by question id (q1_period, q4_symptoms, ...);
               lab values live under "q11_labs"
      cycle_phase: CyclePhase or its string value; unrecognised → unknown

    Returns:
      AnalysisResult (never raises for missing/odd answers)
    """
    answers = answers or {}
    phase = CyclePhase.coerce(cycle_phase)

    scores, explanations = apply_rules(answers, phase)
    total_score = sum(scores.values())

    ranked = rank_imbalances(scores)
    primary = ranked[0] if ranked else None
    secondary = tuple(ranked[1:3])

    confidence = classify_confidence(total_score)
    if phase is CyclePhase.UNKNOWN:
        confidence = _lower(confidence)
        explanations.append(UNKNOWN_PHASE_NOTE)

    # Labs: findings first, then the adjustment notes
    raw_labs = answers.get("q11_labs") or {}
    if not isinstance(raw_labs, Mapping):
        raw_labs = {}
    numeric_labs = parse_lab_values(raw_labs)

    explanations.extend(analyze_lab_values(raw_labs))
    adjusted, conflicts = adjust_scores_with_labs(scores, numeric_labs)
    explanations.extend(conflicts)

    if numeric_labs:
        if confidence is ConfidenceLevel.LOW:
            confidence = _raise(confidence)
        if len(numeric_labs) >= LABS_FOR_HIGH_CONFIDENCE and confidence is ConfidenceLevel.MEDIUM:
            confidence = _raise(confidence)

    return AnalysisResult(
        primary_imbalance=primary,
        secondary_imbalances=secondary,
        confidence_level=confidence,
        explanations=tuple(explanations),
        scores=MappingProxyType(adjusted),
        total_score=total_score,
        cycle_phase=phase,
    )


def explanations_by_hormone(explanations) -> Dict[str, str]:
    """
    Pick one explanation per hormone for the results page:
    the last explanation that mentions the category name.
    """
    out: Dict[str, str] = {}
    for text in explanations or []:
        lowered = text.lower()
        for hormone in Hormone:
            # "androgens" → match "androgen" too
            if hormone.value.rstrip("s") in lowered:
                out[hormone.value] = text
    return out
