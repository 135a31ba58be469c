# hormone_health/cycle_phase.py
# ------------------------------------------------------------
# Menstrual cycle phase calculator
#
# What this file does
#   • Turns "last period started on X" (+ optional cycle length) into a
#     cycle day, a phase and a confidence label.
#   • Uses a 28-day cycle when the user did not give a length, and marks
#     the result as estimated (one confidence step lower).
#   • Takes "today" as a parameter so results are reproducible in tests.
#
# Phase bands (cycle day, ov = floor(cycle_length / 2))
#   1 .. 5            → menstrual
#   6 .. ov-2         → follicular
#   ov-1 .. ov+1      → ovulatory
#   ov+2 .. length    → luteal
#   anything else     → unknown (future dates, very short cycles)
# ------------------------------------------------------------

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

DEFAULT_CYCLE_LENGTH = 28
SECONDS_PER_DAY = 24 * 3600


class CyclePhase(str, Enum):
    MENSTRUAL = "menstrual"
    FOLLICULAR = "follicular"
    OVULATORY = "ovulatory"
    LUTEAL = "luteal"
    UNKNOWN = "unknown"

    @classmethod
    def coerce(cls, value: Any) -> "CyclePhase":
        """Accept a CyclePhase or its string value; anything else is UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class PhaseConfidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# Confidence before the "estimated cycle" downgrade
_BASE_CONFIDENCE = {
    CyclePhase.MENSTRUAL: PhaseConfidence.HIGH,
    CyclePhase.FOLLICULAR: PhaseConfidence.HIGH,
    CyclePhase.OVULATORY: PhaseConfidence.MEDIUM,
    CyclePhase.LUTEAL: PhaseConfidence.HIGH,
    CyclePhase.UNKNOWN: PhaseConfidence.LOW,
}

_DOWNGRADE = {
    PhaseConfidence.HIGH: PhaseConfidence.MEDIUM,
    PhaseConfidence.MEDIUM: PhaseConfidence.LOW,
    PhaseConfidence.LOW: PhaseConfidence.LOW,
}


@dataclass(frozen=True)
class CyclePhaseResult:
    cycle_day: int
    phase: CyclePhase
    phase_confidence: PhaseConfidence
    use_estimated_cycle: bool
    ovulation_day: int
    days_until_next_period: int

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape used by the survey front end (camelCase keys)."""
        return {
            "cycleDay": self.cycle_day,
            "phase": self.phase.value,
            "phaseConfidence": self.phase_confidence.value,
            "useEstimatedCycle": self.use_estimated_cycle,
            "ovulationDay": self.ovulation_day,
            "daysUntilNextPeriod": self.days_until_next_period,
        }


UNKNOWN_RESULT = CyclePhaseResult(
    cycle_day=0,
    phase=CyclePhase.UNKNOWN,
    phase_confidence=PhaseConfidence.LOW,
    use_estimated_cycle=True,
    ovulation_day=0,
    days_until_next_period=0,
)

DateLike = Union[date, datetime, str, None]
PhaseHook = Callable[[CyclePhaseResult, Dict[str, Any]], None]


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------
def _to_datetime(value: DateLike) -> Optional[datetime]:
    """Parse a date/datetime/ISO string; None if empty or unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


def _phase_for_day(cycle_day: int, ovulation_day: int, cycle_length: int) -> CyclePhase:
    if 1 <= cycle_day <= 5:
        return CyclePhase.MENSTRUAL
    if 6 <= cycle_day <= ovulation_day - 2:
        return CyclePhase.FOLLICULAR
    if ovulation_day - 1 <= cycle_day <= ovulation_day + 1:
        return CyclePhase.OVULATORY
    if ovulation_day + 2 <= cycle_day <= cycle_length:
        return CyclePhase.LUTEAL
    return CyclePhase.UNKNOWN


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------
def calculate_cycle_phase(
    last_period_date: DateLike,
    cycle_length: Optional[int] = None,
    fallback_to_default: bool = True,
    today: DateLike = None,
    on_calculated: Optional[PhaseHook] = None,
) -> CyclePhaseResult:
    """
    Work out where in the cycle the user is today.

    Args:
      last_period_date: start of the last period (date, datetime or ISO string)
      cycle_length: user's cycle length in days; falsy → 28-day estimate
      fallback_to_default: whether a missing length counts as "estimated"
      today: reference instant (defaults to the current date)
      on_calculated: optional hook called as hook(result, inputs)

    Never raises: empty or unparseable dates give an UNKNOWN/LOW result.
    """
    last_period = _to_datetime(last_period_date)
    if last_period is None:
        return UNKNOWN_RESULT

    now = _to_datetime(today) or datetime.combine(date.today(), datetime.min.time())
    if cycle_length is not None and cycle_length <= 0:
        cycle_length = None
    days_since = math.floor((now - last_period).total_seconds() / SECONDS_PER_DAY)

    use_estimated_cycle = not cycle_length and fallback_to_default
    effective_length = int(cycle_length or DEFAULT_CYCLE_LENGTH)

    # Truncated remainder: a future start date gives cycle_day <= 0 → unknown
    cycle_day = int(math.fmod(days_since, effective_length)) + 1
    ovulation_day = effective_length // 2
    days_until_next_period = effective_length - cycle_day + 1

    phase = _phase_for_day(cycle_day, ovulation_day, effective_length)
    confidence = _BASE_CONFIDENCE[phase]
    if use_estimated_cycle:
        confidence = _DOWNGRADE[confidence]

    result = CyclePhaseResult(
        cycle_day=cycle_day,
        phase=phase,
        phase_confidence=confidence,
        use_estimated_cycle=use_estimated_cycle,
        ovulation_day=ovulation_day,
        days_until_next_period=days_until_next_period,
    )

    if on_calculated is not None:
        on_calculated(result, {
            "last_period_date": last_period.date().isoformat(),
            "cycle_length": cycle_length or "estimated",
            "effective_cycle_length": effective_length,
        })
    return result


def get_cycle_phase(
    last_period_date: DateLike,
    is_regular: bool,
    cycle_length: int = DEFAULT_CYCLE_LENGTH,
    today: DateLike = None,
    on_calculated: Optional[PhaseHook] = None,
) -> CyclePhase:
    """Older entry point: irregular cycles or a missing date are always UNKNOWN."""
    if not last_period_date or not is_regular:
        return CyclePhase.UNKNOWN
    return calculate_cycle_phase(
        last_period_date, cycle_length, today=today, on_calculated=on_calculated
    ).phase


# ------------------------------------------------------------
# Phase reference data (display copy + cycle-aware adjustments)
# ------------------------------------------------------------
PHASE_DISPLAY_NAMES = {
    CyclePhase.MENSTRUAL: "Menstrual",
    CyclePhase.FOLLICULAR: "Follicular",
    CyclePhase.OVULATORY: "Ovulatory",
    CyclePhase.LUTEAL: "Luteal",
    CyclePhase.UNKNOWN: "Unknown",
}

PHASE_DESCRIPTIONS = {
    CyclePhase.MENSTRUAL: "Period phase - estrogen and progesterone are low",
    CyclePhase.FOLLICULAR: "Pre-ovulation phase - estrogen rises, preparing for ovulation",
    CyclePhase.OVULATORY: "Ovulation occurs - egg is released, estrogen peaks",
    CyclePhase.LUTEAL: "Post-ovulation phase - progesterone rises, preparing for potential pregnancy",
    CyclePhase.UNKNOWN: "Unable to determine cycle phase",
}

# Symptoms that are expected in a phase (lower-case)
NORMAL_SYMPTOMS = {
    CyclePhase.MENSTRUAL: ("cramps", "fatigue", "mood changes", "back pain"),
    CyclePhase.FOLLICULAR: ("increased energy", "clear skin"),
    CyclePhase.OVULATORY: ("mid-cycle pain", "increased libido", "cervical mucus changes"),
    CyclePhase.LUTEAL: (
        "bloating", "breast tenderness", "mood swings", "cravings", "acne", "irritability",
    ),
    CyclePhase.UNKNOWN: (),
}

# (estrogen, progesterone, lh, fsh)
EXPECTED_HORMONE_LEVELS = {
    CyclePhase.MENSTRUAL: ("low", "low", "low", "rising"),
    CyclePhase.FOLLICULAR: ("rising", "low", "low", "low"),
    CyclePhase.OVULATORY: ("high", "low", "high", "high"),
    CyclePhase.LUTEAL: ("falling", "rising", "low", "low"),
    CyclePhase.UNKNOWN: ("unknown", "unknown", "unknown", "unknown"),
}

CYCLE_SENSITIVE_SYMPTOMS = (
    "bloating", "breast tenderness", "mood swings", "cravings",
    "acne", "irritability", "fatigue", "cramps",
)


def phase_display_name(phase) -> str:
    return PHASE_DISPLAY_NAMES[CyclePhase.coerce(phase)]


def phase_description(phase) -> str:
    return PHASE_DESCRIPTIONS[CyclePhase.coerce(phase)]


def is_symptom_normal_for_phase(symptom: str, phase) -> bool:
    return (symptom or "").lower() in NORMAL_SYMPTOMS[CyclePhase.coerce(phase)]


def expected_hormone_levels(phase) -> Dict[str, str]:
    estrogen, progesterone, lh, fsh = EXPECTED_HORMONE_LEVELS[CyclePhase.coerce(phase)]
    return {"estrogen": estrogen, "progesterone": progesterone, "lh": lh, "fsh": fsh}


def adjust_symptom_score_for_phase(
    symptom: str, phase, phase_confidence, base_score: int
) -> int:
    """
    Damp a symptom's score when the cycle context explains it.
      • LOW phase confidence → cycle-sensitive symptoms count 50%
      • symptom normal for the phase → counts 30%
    Results are floored to whole points.
    """
    if PhaseConfidence(phase_confidence) is PhaseConfidence.LOW:
        if (symptom or "").lower() in CYCLE_SENSITIVE_SYMPTOMS:
            return math.floor(base_score * 0.5)

    if is_symptom_normal_for_phase(symptom, phase):
        return math.floor(base_score * 0.3)

    return base_score


def result_as_dict(result: CyclePhaseResult) -> Dict[str, Any]:
    """Plain snake_case dict (for logging)."""
    out = asdict(result)
    out["phase"] = result.phase.value
    out["phase_confidence"] = result.phase_confidence.value
    return out
