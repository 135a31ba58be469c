# hormone_health/lab_adjustment.py
# ------------------------------------------------------------
# Reconcile symptom scores with lab values
#
# What this file does
#   • Boosts a hormone score when a lab confirms it (+2), or flags a
#     subclinical finding (+1) when the lab is off but symptoms are not.
#   • Lowers a score when a lab contradicts strong symptoms.
#   • Returns NEW scores plus the notes explaining each change.
#
# Rules always compare against the scores passed in, never against
# a partly adjusted value. Scores are clamped to >= 0 at the end.
# ------------------------------------------------------------

from __future__ import annotations

from decimal import Decimal
from typing import List, Mapping, NamedTuple, Optional

from .hormones import Hormone, HormoneScores, coerce_scores
from .lab_analysis import (
    LH_FSH_ELEVATED,
    LH_FSH_RATIO_PCOS,
    REFERENCE_RANGES,
    parse_lab_values,
)


class LabAdjustment(NamedTuple):
    adjusted_scores: HormoneScores
    conflicts: List[str]


def _fmt(value: float) -> str:
    """Shortest exact digits, never exponent form: 3.2 → '3.2', 400.0 → '400', 5e-05 → '0.00005'."""
    text = format(Decimal(repr(float(value))), "f")
    return text[:-2] if text.endswith(".0") else text


def adjust_scores_with_labs(
    scores: Mapping, labs: Optional[Mapping[str, float]]
) -> LabAdjustment:
    """
    Adjust symptom-based scores using numeric lab values.

    Args:
      scores: symptom scores (keyed by Hormone or category name)
      labs: numeric labs keyed by lab key (free_testosterone, dhea, lh,
            fsh, tsh, t3, fasting_insulin, hba1c); survey keys also work

    Returns:
      LabAdjustment(adjusted_scores, conflicts)
    """
    before = coerce_scores(scores)
    after = dict(before)
    notes: List[str] = []
    values = parse_lab_values(labs)

    # Free testosterone
    value = values.get("free_testosterone")
    if value is not None:
        rng = REFERENCE_RANGES["free_testosterone"]
        if value > rng.high:
            if before[Hormone.ANDROGENS] > 0:
                after[Hormone.ANDROGENS] += 2
                notes.append(
                    f"Lab confirms high testosterone ({_fmt(value)} {rng.unit}) - "
                    "strengthens androgen imbalance assessment"
                )
            else:
                after[Hormone.ANDROGENS] += 1
                notes.append(
                    f"High testosterone ({_fmt(value)} {rng.unit}) detected despite minimal "
                    "symptoms - consider subclinical androgen excess"
                )
        elif value < rng.low and before[Hormone.ANDROGENS] > 3:
            after[Hormone.ANDROGENS] -= 2
            notes.append(
                f"Low testosterone ({_fmt(value)} {rng.unit}) conflicts with androgen "
                "symptoms - may indicate different underlying cause"
            )

    # DHEA
    value = values.get("dhea")
    if value is not None:
        rng = REFERENCE_RANGES["dhea"]
        if value > rng.high:
            if before[Hormone.CORTISOL] > 0:
                after[Hormone.CORTISOL] += 1
                notes.append(
                    f"High DHEA ({_fmt(value)} {rng.unit}) suggests adrenal stress - "
                    "supports cortisol imbalance"
                )
            if before[Hormone.ANDROGENS] > 0:
                after[Hormone.ANDROGENS] += 1
                notes.append(f"High DHEA ({_fmt(value)} {rng.unit}) can contribute to androgen excess")
        elif value < rng.low and before[Hormone.CORTISOL] > 0:
            after[Hormone.CORTISOL] += 1
            notes.append(
                f"Low DHEA ({_fmt(value)} {rng.unit}) suggests adrenal fatigue - "
                "supports cortisol imbalance"
            )

    # LH/FSH ratio (ratio is checked before "both elevated")
    lh, fsh = values.get("lh"), values.get("fsh")
    if lh is not None and fsh is not None and fsh > 0:
        ratio = lh / fsh
        if ratio > LH_FSH_RATIO_PCOS:
            if before[Hormone.ANDROGENS] > 0:
                after[Hormone.ANDROGENS] += 2
                notes.append(
                    f"LH/FSH ratio of {ratio:.1f} strongly suggests PCOS - "
                    "significantly strengthens androgen imbalance assessment"
                )
            if before[Hormone.INSULIN] > 0:
                after[Hormone.INSULIN] += 1
                notes.append(
                    f"PCOS pattern (LH/FSH ratio {ratio:.1f}) typically involves insulin resistance"
                )
        elif lh > LH_FSH_ELEVATED and fsh > LH_FSH_ELEVATED and before[Hormone.ESTROGEN] > 0:
            after[Hormone.ESTROGEN] += 1
            notes.append(
                f"Elevated LH ({_fmt(lh)}) and FSH ({_fmt(fsh)}) suggest diminished "
                "ovarian reserve - may indicate low estrogen"
            )

    # TSH
    value = values.get("tsh")
    if value is not None:
        rng = REFERENCE_RANGES["tsh"]
        if value > rng.high:
            if before[Hormone.THYROID] > 0:
                after[Hormone.THYROID] += 2
                notes.append(
                    f"Elevated TSH ({_fmt(value)} {rng.unit}) confirms hypothyroidism - "
                    "significantly strengthens thyroid imbalance assessment"
                )
            else:
                after[Hormone.THYROID] += 1
                notes.append(
                    f"Elevated TSH ({_fmt(value)} {rng.unit}) detected despite minimal "
                    "symptoms - consider subclinical hypothyroidism"
                )
        elif value < rng.low and before[Hormone.THYROID] > 0:
            after[Hormone.THYROID] -= 1
            notes.append(
                f"Low TSH ({_fmt(value)} {rng.unit}) suggests hyperthyroidism - "
                "conflicts with hypothyroid symptoms"
            )

    # T3
    value = values.get("t3")
    if value is not None:
        rng = REFERENCE_RANGES["t3"]
        if value < rng.low and before[Hormone.THYROID] > 0:
            after[Hormone.THYROID] += 1
            notes.append(f"Low T3 ({_fmt(value)} {rng.unit}) supports thyroid dysfunction")

    # Fasting insulin
    value = values.get("fasting_insulin")
    if value is not None:
        rng = REFERENCE_RANGES["fasting_insulin"]
        if value > rng.high:
            if before[Hormone.INSULIN] > 0:
                after[Hormone.INSULIN] += 2
                notes.append(
                    f"High fasting insulin ({_fmt(value)} {rng.unit}) confirms insulin "
                    "resistance - significantly strengthens insulin imbalance assessment"
                )
            else:
                after[Hormone.INSULIN] += 1
                notes.append(
                    f"High fasting insulin ({_fmt(value)} {rng.unit}) detected despite "
                    "minimal symptoms - consider subclinical insulin resistance"
                )
        elif value < rng.low and before[Hormone.INSULIN] > 3:
            after[Hormone.INSULIN] -= 1
            notes.append(
                f"Low fasting insulin ({_fmt(value)} {rng.unit}) conflicts with insulin "
                "resistance symptoms"
            )

    # HbA1c
    value = values.get("hba1c")
    if value is not None:
        rng = REFERENCE_RANGES["hba1c"]
        if value > rng.high and before[Hormone.INSULIN] > 0:
            after[Hormone.INSULIN] += 1
            notes.append(
                f"Elevated HbA1c ({_fmt(value)}{rng.unit}) confirms blood sugar "
                "dysregulation - supports insulin imbalance"
            )

    # No negative scores
    adjusted = {h: max(0, s) for h, s in after.items()}
    return LabAdjustment(adjusted, notes)
