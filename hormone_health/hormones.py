# hormone_health/hormones.py
# ------------------------------------------------------------
# The six hormone categories we score, plus small helpers for
# score mappings. Every score mapping has exactly these keys.
# ------------------------------------------------------------

from __future__ import annotations

from enum import Enum
from typing import Dict, Mapping


class Hormone(str, Enum):
    ANDROGENS = "androgens"
    PROGESTERONE = "progesterone"
    ESTROGEN = "estrogen"
    THYROID = "thyroid"
    CORTISOL = "cortisol"
    INSULIN = "insulin"


HormoneScores = Dict[Hormone, int]


def empty_scores() -> HormoneScores:
    return {h: 0 for h in Hormone}


def coerce_scores(scores: Mapping) -> HormoneScores:
    """
    Copy a score mapping keyed by Hormone or by the plain category names.
    Unknown keys are dropped; missing categories become 0.
    """
    out = empty_scores()
    for h in Hormone:
        if h in scores:
            out[h] = scores[h]
        elif h.value in scores:
            out[h] = scores[h.value]
    return out


def scores_as_dict(scores: Mapping[Hormone, int]) -> Dict[str, int]:
    """Plain {"androgens": n, ...} dict in category order (for JSON)."""
    return {h.value: scores[h] for h in Hormone}
