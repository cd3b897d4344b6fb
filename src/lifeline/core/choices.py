"""
Choice resolution.

Turns a selected choice into a structured EventResult.  The processor is
pure: it reads the character and returns stat changes plus the choice's
unlock/lock consequences verbatim.  Applying either to the character or
to future eligibility is the session's job.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from lifeline.core.character import Character, StatChange
from lifeline.core.events import GameChoice
from lifeline.core.stats import is_stat


@dataclass
class EventResult:
    """Outcome of a processed choice."""
    success: bool
    stat_changes: list[StatChange] = field(default_factory=list)
    unlocked_events: list[str] | None = None
    locked_events: list[str] | None = None

    def deltas(self) -> dict[str, int]:
        """Fold stat changes into a single delta per stat."""
        totals: dict[str, int] = {}
        for change in self.stat_changes:
            totals[change.stat] = totals.get(change.stat, 0) + change.delta
        return totals

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "stat_changes": [sc.to_dict() for sc in self.stat_changes],
            "unlocked_events": self.unlocked_events,
            "locked_events": self.locked_events,
        }


class ChoiceProcessor:
    """Converts a choice into stat changes and consequences."""

    def process_choice(
        self, character: Character, choice: GameChoice, history: Iterable[str] = (),
    ) -> EventResult:
        """
        One StatChange per recognised stat in ``choice.effect``.

        Unrecognised effect keys are skipped, not errors.  ``history`` is
        accepted for call-site symmetry with the eligibility checks.
        """
        stat_changes = [
            StatChange(stat=stat, delta=int(delta), reason=choice.text, age=character.age)
            for stat, delta in choice.effect.items()
            if is_stat(stat)
        ]
        result = EventResult(success=True, stat_changes=stat_changes)
        if choice.consequences is not None:
            result.unlocked_events = list(choice.consequences.unlock_events)
            result.locked_events = list(choice.consequences.lock_events)
        return result
