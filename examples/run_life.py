#!/usr/bin/env python3
"""Play one seeded Lifeline life to the end and print a yearly log."""

import numpy as np

from lifeline.core.character import Character
from lifeline.core.config import GameConfig
from lifeline.core.scoring import character_score, life_expectancy, well_being_score
from lifeline.core.session import GameSession
from lifeline.core.stats import CharacterStats

MAX_YEARS = 120


def main():
    config = GameConfig(config_name="demo", random_seed=42)
    session = GameSession(config=config)
    rng = np.random.default_rng(7)

    hero = Character(
        name="Deniz",
        age=config.starting_age,
        stats=CharacterStats(health=60, happiness=55, intelligence=65, wealth=40, social=55),
    )
    session.start_new_game(hero)

    print(f"=== Lifeline: {config.config_name} ===")
    print(f"Character: {hero.name} (age {hero.age})")
    print(f"Catalog: {len(session.catalog)} events")
    print()
    print(f"{'Year':>4} {'Age':>4} {'Phase':<12} {'HP':>4} {'HAP':>4} {'INT':>4} "
          f"{'WLT':>4} {'SOC':>4} {'WB':>4}  Event")
    print("-" * 84)

    for _ in range(MAX_YEARS):
        state = session.state
        event = session.draw_event(base_chance=0.6)
        label = ""
        if event is not None:
            choices = session.available_choices(event.id)
            if choices:
                choice = choices[int(rng.integers(len(choices)))]
                state = session.make_choice(event.id, choice.id).state
                label = f"{event.title} -> {choice.text}"
        if not label:
            state = session.age_character()

        c = state.character
        s = c.stats
        print(
            f"{state.game_year:4d} {c.age:4d} {c.life_phase.value:<12} "
            f"{s.health:4d} {s.happiness:4d} {s.intelligence:4d} "
            f"{s.wealth:4d} {s.social:4d} {well_being_score(s):4d}  {label}"
        )

        end = session.check_game_end()
        if end.ended:
            print(f"\nLife ended at {c.age}: {end.reason.value}")
            break

    final = session.state
    c = final.character
    print()
    print(f"=== Final State (Year {final.game_year}) ===")
    print(f"Age: {c.age}")
    print(f"Stats: {c.stats.to_dict()}")
    print(f"Life expectancy: {life_expectancy(c.stats, c.age)}")
    print(f"Events completed: {len(final.completed_events)}")
    print(f"Score: {character_score(c.stats, c.age, final.completed_events)}")

    print("\nChoice log:")
    for record in final.choice_log:
        changes = ", ".join(f"{sc.stat}{sc.delta:+d}" for sc in record.stat_changes)
        print(f"  age {record.age:3d}  {record.event_id}/{record.choice_id}  ({changes})")


if __name__ == "__main__":
    main()
