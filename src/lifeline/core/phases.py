"""
Life phase classification.

Maps an integer age to one of six named brackets.  Each bracket's upper
bound is exclusive, so every non-negative age lands in exactly one phase.
"""

from __future__ import annotations

from enum import Enum

from lifeline.core.errors import DataContractViolation


class LifePhase(str, Enum):
    """Named age brackets controlling passive decay."""
    CHILDHOOD = "childhood"      # 0-12
    ADOLESCENCE = "adolescence"  # 13-17
    YOUNG_ADULT = "young_adult"  # 18-29
    ADULT = "adult"              # 30-49
    MIDDLE_AGE = "middle_age"    # 50-64
    SENIOR = "senior"            # 65+


# (exclusive upper bound, phase); ages past the last bound are SENIOR
PHASE_UPPER_BOUNDS: tuple[tuple[int, LifePhase], ...] = (
    (13, LifePhase.CHILDHOOD),
    (18, LifePhase.ADOLESCENCE),
    (30, LifePhase.YOUNG_ADULT),
    (50, LifePhase.ADULT),
    (65, LifePhase.MIDDLE_AGE),
)


def classify_life_phase(age: int) -> LifePhase:
    """Return the life phase for an age in years."""
    if age < 0:
        raise DataContractViolation(f"Age must be non-negative, got {age}")
    for upper, phase in PHASE_UPPER_BOUNDS:
        if age < upper:
            return phase
    return LifePhase.SENIOR

