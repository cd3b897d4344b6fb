"""
Event and choice eligibility.

Decides which catalog events a character may encounter and which choices
within an event they may pick, then draws one event with rarity-weighted
sampling.  Everything here is a query; nothing mutates character or
session state.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

import numpy as np

from lifeline.core.events import ChoiceRequirements, GameChoice, GameEvent, Prerequisites

if TYPE_CHECKING:
    from lifeline.core.character import Character
    from lifeline.core.config import GameConfig


def _meets_min_stats(character: Character, min_stats: Mapping[str, int]) -> bool:
    return all(character.stats.get(stat) >= floor for stat, floor in min_stats.items())


def _meets_history(
    prereq: Prerequisites, history: set[str], unlocked: set[str],
) -> bool:
    # Unlocked ids open required gates but never trip forbidden ones
    if any(req not in history and req not in unlocked for req in prereq.required_events):
        return False
    if any(forbidden in history for forbidden in prereq.forbidden_events):
        return False
    return True


class EligibilityResolver:
    """Filters and ranks events and choices against character state."""

    def __init__(self, config: GameConfig):
        self.config = config

    def can_access_event(
        self,
        character: Character,
        event: GameEvent,
        history: Iterable[str],
        unlocked: Iterable[str] = (),
    ) -> bool:
        """Age window (inclusive), stat floors, required and forbidden history.

        ``unlocked`` ids satisfy ``required_events`` only.
        """
        if not event.age_range.contains(character.age):
            return False
        prereq = event.prerequisites
        if prereq is None:
            return True
        return (
            _meets_min_stats(character, prereq.min_stats)
            and _meets_history(prereq, set(history), set(unlocked))
        )

    def can_make_choice(
        self,
        character: Character,
        choice: GameChoice,
        history: Iterable[str],
        unlocked: Iterable[str] = (),
    ) -> bool:
        """Same checks as ``can_access_event`` scoped to the choice's own bounds."""
        req: ChoiceRequirements | None = choice.requirements
        if req is None:
            return True
        if req.min_age is not None and character.age < req.min_age:
            return False
        if req.max_age is not None and character.age > req.max_age:
            return False
        return (
            _meets_min_stats(character, req.min_stats)
            and _meets_history(req, set(history), set(unlocked))
        )

    def get_available_events(
        self,
        character: Character,
        events: Iterable[GameEvent],
        completed: Iterable[str],
        unlocked: Iterable[str] = (),
        locked: Iterable[str] = (),
    ) -> list[GameEvent]:
        """
        Candidate events for the character, in catalog order.

        A non-repeatable event already in ``completed`` is always excluded.
        ``unlocked`` ids count as history for required-event checks only;
        ``locked`` ids are never offered.
        """
        done = set(completed)
        opened = set(unlocked)
        blocked = set(locked)
        return [
            event for event in events
            if event.id not in blocked
            and (event.is_repeatable or event.id not in done)
            and self.can_access_event(character, event, done, opened)
        ]

    def get_available_choices(
        self,
        character: Character,
        event: GameEvent,
        history: Iterable[str],
        unlocked: Iterable[str] = (),
    ) -> list[GameChoice]:
        history, unlocked = set(history), set(unlocked)
        return [
            c for c in event.choices
            if self.can_make_choice(character, c, history, unlocked)
        ]

    def event_weight(self, event: GameEvent) -> int:
        return self.config.rarity_weights.get(event.rarity.value, 1)

    def selection_probabilities(self, events: list[GameEvent]) -> np.ndarray:
        """Normalised rarity weights for ``events``."""
        weights = np.array([self.event_weight(e) for e in events], dtype=float)
        return weights / weights.sum()

    def select_random_event(
        self, events: list[GameEvent], rng: np.random.Generator | None = None,
    ) -> GameEvent | None:
        """Draw one event with probability proportional to its rarity weight."""
        if not events:
            return None
        rng = rng or np.random.default_rng()
        idx = rng.choice(len(events), p=self.selection_probabilities(events))
        return events[int(idx)]
