"""Console-driven UI loops for Tree Sim."""
from __future__ import annotations

import logging
import secrets
from typing import List, Literal, Sequence, Tuple

from treesim.core.config import SimulationConfig, load_config
from treesim.core.rng import RNG
from treesim.data.repositories import (
    AvoidanceRepository,
    ClassSpecsRepository,
    EncountersRepository,
    GearPresetsRepository,
    RaidPresetsRepository,
    SpellsRepository,
)
from treesim.domain.encounter_models import EncounterState
from treesim.domain.resources import RAID_BUFFS
from treesim.services import EncounterService, GameLoop
from treesim.services.controllers import EncounterController
from treesim.services.events import SimEvent

from .autopilot import Autopilot
from .render import render_bullet_lines, render_events, render_heading, render_menu, render_snapshot

MenuAction = Literal["autopilot", "interactive", "quit"]
_MAX_RANDOM_SEED = 2**31 - 1
_DEFAULT_WAIT = 1.0
_HELP_LINES = (
    "1-9, 0, -, = : press a hotbar key",
    "t N          : target raid member N",
    "c SPELL [N]  : cast SPELL (id or name) on member N",
    "w [SECONDS]  : let time pass (default 1s)",
    "m DIR SECS   : move up/down/left/right for SECS",
    "s            : show the raid frames",
    "q            : leave the encounter",
)


def main() -> None:
    """Start the interactive CLI session."""
    config = load_config()
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")
    print("=== Tree Sim ===")
    while True:
        action = _main_menu_loop()
        if action == "quit":
            break
        rng = RNG(_prompt_seed())
        service = _build_encounter_service(rng, config)
        state = _setup_encounter(service)
        controller = EncounterController(service, SpellsRepository())
        if action == "autopilot":
            _run_autopilot(controller, state, config)
        else:
            _run_interactive(controller, state, config)
    print("Goodbye!")


def _main_menu_loop() -> MenuAction:
    while True:
        render_menu("Main Menu", ["Autopilot Run", "Interactive Run", "Quit"])
        choice = input("Select an option: ").strip()
        if choice == "1":
            return "autopilot"
        if choice == "2":
            return "interactive"
        if choice == "3":
            return "quit"
        print("Invalid selection. Please enter 1, 2 or 3.")


def _build_encounter_service(rng: RNG, config: SimulationConfig) -> EncounterService:
    specs_repo = ClassSpecsRepository()
    return EncounterService(
        spells_repo=SpellsRepository(),
        encounters_repo=EncountersRepository(),
        gear_presets_repo=GearPresetsRepository(),
        specs_repo=specs_repo,
        raid_presets_repo=RaidPresetsRepository(specs_repo),
        avoidance_repo=AvoidanceRepository(),
        rng=rng,
        config=config,
    )


def _prompt_seed() -> int:
    while True:
        raw_value = input("Enter seed (blank for random): ").strip()
        if not raw_value:
            seed = secrets.randbelow(_MAX_RANDOM_SEED)
            print(f"Using seed: {seed}")
            return seed
        try:
            return int(raw_value)
        except ValueError:
            print("Invalid seed. Please enter a valid integer.")


def _prompt_choice(title: str, options: Sequence[Tuple[str, str]]) -> str:
    """Show ``(id, label)`` options and return the chosen id."""
    render_menu(title, [label for _, label in options])
    while True:
        raw = input("Select an option: ").strip()
        try:
            index = int(raw)
        except ValueError:
            print("Please enter a number.")
            continue
        if 1 <= index <= len(options):
            return options[index - 1][0]
        print(f"Please enter a value between 1 and {len(options)}.")


def _setup_encounter(service: EncounterService) -> EncounterState:
    encounter_id = _prompt_choice(
        "Encounter",
        [(encounter.id, f"{encounter.name} - {encounter.description}") for encounter in EncountersRepository().enabled()],
    )
    gear_id = _prompt_choice(
        "Gear", [(preset.id, f"{preset.name} ({preset.tier})") for preset in GearPresetsRepository().all()]
    )
    specs_repo = ClassSpecsRepository()
    raid_id = _prompt_choice(
        "Raid Composition", [(preset.id, preset.name) for preset in RaidPresetsRepository(specs_repo).all()]
    )
    use_buffs = input("Apply consumables and raid buffs? (y/N): ").strip().lower() == "y"
    state = service.create_encounter(
        encounter_id,
        gear_id,
        raid_preset_id=raid_id,
        raid_buffs=sorted(RAID_BUFFS) if use_buffs else (),
    )
    if state.caster.raid_buffs:
        render_heading("Active Buffs")
        render_bullet_lines(state.caster.raid_buffs)
    return state


def _run_autopilot(controller: EncounterController, state: EncounterState, config: SimulationConfig) -> None:
    autopilot = Autopilot(controller)

    def on_tick(delta: float) -> List[SimEvent]:
        return autopilot.act(state) + controller.tick(state, delta)

    loop = GameLoop(on_tick, config)
    render_events(controller.start(state))
    loop.run_simulated(state.encounter.duration, should_continue=lambda: state.is_active)
    if state.is_active:
        print(f"Time limit of {state.encounter.duration:.0f}s reached.")
    render_snapshot(controller.snapshot(state))
    _render_summary(state)


def _run_interactive(controller: EncounterController, state: EncounterState, config: SimulationConfig) -> None:
    loop = GameLoop(lambda delta: controller.tick(state, delta), config)
    render_events(controller.start(state))
    render_heading("Commands")
    render_bullet_lines(_HELP_LINES)
    render_snapshot(controller.snapshot(state))
    while state.is_active:
        raw = input("> ").strip()
        if not raw:
            continue
        parts = raw.split()
        command = parts[0].lower()
        if command == "q":
            break
        if command == "s":
            render_snapshot(controller.snapshot(state))
        elif command == "t" and len(parts) == 2:
            member_id = _member_id_from_index(state, parts[1])
            if member_id is None or not controller.select_target(state, member_id):
                print("No such raid member.")
        elif command == "c" and len(parts) >= 2:
            target_id = _member_id_from_index(state, parts[-1]) if len(parts) > 2 else None
            spell_text = " ".join(parts[1:-1] if target_id else parts[1:])
            spell = SpellsRepository().get_by_name(spell_text)
            render_events(controller.cast_spell(state, spell.id if spell else spell_text, target_id))
        elif command == "w":
            seconds = _parse_seconds(parts[1] if len(parts) > 1 else None)
            render_events(loop.run_simulated(seconds, should_continue=lambda: state.is_active))
            render_snapshot(controller.snapshot(state))
        elif command == "m" and len(parts) == 3 and parts[1] in ("up", "down", "left", "right"):
            render_events(controller.set_movement_key(state, parts[1], True))
            render_events(loop.run_simulated(_parse_seconds(parts[2])))
            render_events(controller.set_movement_key(state, parts[1], False))
        else:
            render_events(controller.press_key(state, command))
    _render_summary(state)


def _member_id_from_index(state: EncounterState, raw: str) -> str | None:
    try:
        index = int(raw)
    except ValueError:
        return None
    if 1 <= index <= len(state.raid):
        return state.raid[index - 1].id
    return None


def _parse_seconds(raw: str | None) -> float:
    if raw is None:
        return _DEFAULT_WAIT
    try:
        return max(0.0, float(raw))
    except ValueError:
        return _DEFAULT_WAIT


def _render_summary(state: EncounterState) -> None:
    render_heading("Summary")
    lines = [
        f"Result: {state.status} after {state.elapsed:.1f}s",
        f"Deaths: {sum(1 for member in state.raid if member.is_dead)}",
    ]
    for source_id, amount in sorted(state.healing_done.items(), key=lambda item: item[1], reverse=True):
        member = state.find_member(source_id)
        name = member.name if member else source_id
        overheal = state.overhealing.get(source_id, 0)
        lines.append(f"{name}: {amount} healing ({overheal} overheal)")
    render_bullet_lines(lines)
