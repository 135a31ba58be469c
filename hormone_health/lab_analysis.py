# hormone_health/lab_analysis.py
# ------------------------------------------------------------
# Lab reference ranges + plain-language lab findings
#
# What this file does
#   • Holds the one reference-range table used everywhere
#     (this module and lab_adjustment.py read the same numbers).
#   • Parses the survey's string lab fields into floats, skipping
#     blanks and anything that is not a finite number.
#   • Lists a short finding for each value above its threshold.
#
# Survey field → lab key
#   free_t  → free_testosterone     insulin → fasting_insulin
#   dhea, lh, fsh, tsh, t3, hba1c keep their names
# ------------------------------------------------------------

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, NamedTuple, Optional


class ReferenceRange(NamedTuple):
    low: float
    high: float
    unit: str


REFERENCE_RANGES: Dict[str, ReferenceRange] = {
    "free_testosterone": ReferenceRange(0.1, 2.1, "ng/dL"),
    "dhea": ReferenceRange(35, 350, "μg/dL"),
    "lh": ReferenceRange(2.4, 12.6, "mIU/mL"),
    "fsh": ReferenceRange(3.5, 12.5, "mIU/mL"),
    "tsh": ReferenceRange(0.4, 4.5, "μIU/mL"),
    "t3": ReferenceRange(2.3, 4.2, "pg/mL"),
    "fasting_insulin": ReferenceRange(3, 25, "μIU/mL"),
    "hba1c": ReferenceRange(4.0, 5.7, "%"),
}

# LH and FSH above this are both "elevated" (diminished ovarian reserve)
LH_FSH_ELEVATED = 10
# LH/FSH ratio above this suggests PCOS
LH_FSH_RATIO_PCOS = 2

# Survey form keys (q11_labs) → lab keys, in evaluation order
SURVEY_LAB_FIELDS: Dict[str, str] = {
    "free_t": "free_testosterone",
    "dhea": "dhea",
    "lh": "lh",
    "fsh": "fsh",
    "tsh": "tsh",
    "t3": "t3",
    "insulin": "fasting_insulin",
    "hba1c": "hba1c",
}


def to_number(value: Any) -> Optional[float]:
    """Parse one lab value; None for blanks, junk, NaN and infinities."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def parse_lab_values(labs: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    """
    Convert the survey's lab mapping into {lab_key: float}.
    Accepts survey keys (free_t, insulin, ...) or lab keys
    (free_testosterone, fasting_insulin, ...). Bad entries are skipped.
    """
    out: Dict[str, float] = {}
    for field, key in SURVEY_LAB_FIELDS.items():
        raw = (labs or {}).get(field)
        if raw is None and field != key:
            raw = (labs or {}).get(key)
        number = to_number(raw)
        if number is not None:
            out[key] = number
    return out


def analyze_lab_values(labs: Optional[Mapping[str, Any]]) -> List[str]:
    """
    Return findings for the lab values that are out of range.
    Each check is independent; the list keeps the order below.
    """
    values = parse_lab_values(labs)
    findings: List[str] = []

    free_t = values.get("free_testosterone")
    if free_t is not None and free_t > REFERENCE_RANGES["free_testosterone"].high:
        findings.append("Elevated free testosterone suggests androgen excess")

    dhea = values.get("dhea")
    if dhea is not None and dhea > REFERENCE_RANGES["dhea"].high:
        findings.append("High DHEA can indicate adrenal stress or PCOS")

    lh, fsh = values.get("lh"), values.get("fsh")
    if lh is not None and fsh is not None:
        if lh > LH_FSH_ELEVATED and fsh > LH_FSH_ELEVATED:
            findings.append("Elevated LH and FSH suggest diminished ovarian reserve")
        elif fsh > 0 and lh / fsh > LH_FSH_RATIO_PCOS:
            findings.append("LH/FSH ratio >2 suggests PCOS")

    tsh = values.get("tsh")
    if tsh is not None and tsh > REFERENCE_RANGES["tsh"].high:
        findings.append("Elevated TSH suggests hypothyroidism")

    insulin = values.get("fasting_insulin")
    if insulin is not None and insulin > REFERENCE_RANGES["fasting_insulin"].high:
        findings.append("High insulin suggests insulin resistance")

    hba1c = values.get("hba1c")
    if hba1c is not None and hba1c > REFERENCE_RANGES["hba1c"].high:
        findings.append("Elevated HbA1c suggests blood sugar dysregulation")

    return findings
