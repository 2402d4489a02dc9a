"""Shared CLI rendering helpers."""
from __future__ import annotations

import os
from typing import Iterable, Sequence

from treesim.domain.encounter_models import EncounterSnapshot, MemberView
from treesim.services.events import (
    AttackResolvedEvent,
    BuffChangedEvent,
    CastCancelledEvent,
    CastQueuedEvent,
    CastRejectedEvent,
    CastStartedEvent,
    DebuffAppliedEvent,
    EncounterResolvedEvent,
    EncounterStartedEvent,
    HealAppliedEvent,
    HotAppliedEvent,
    ManaRestoredEvent,
    MemberDiedEvent,
    MeteorSlashEvent,
    SelfDamageEvent,
    SimEvent,
    SpellCastEvent,
    TankSwapEvent,
)

_BAR_WIDTH = 20


def debug_enabled() -> bool:
    """Return True only when TREESIM_DEBUG is explicitly set to '1'."""
    return os.getenv("TREESIM_DEBUG") == "1"


def render_heading(title: str) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===")


def render_menu(title: str, options: Sequence[str]) -> None:
    """Display a menu section with numbered options."""
    render_heading(title)
    for idx, label in enumerate(options, start=1):
        print(f"{idx}. {label}")


def render_bullet_lines(lines: Iterable[str]) -> None:
    """Print bullet-prefixed lines."""
    for line in lines:
        print(f"- {line}")


def health_bar(current: float, maximum: float, width: int = _BAR_WIDTH) -> str:
    if maximum <= 0:
        return "[" + " " * width + "]"
    filled = round(width * max(0.0, min(1.0, current / maximum)))
    return "[" + "#" * filled + "." * (width - filled) + "]"


def format_member(member: MemberView, index: int, *, selected: bool) -> str:
    marker = ">" if selected else " "
    status = "DEAD" if member.is_dead else f"{member.current_health:>5}/{member.max_health:<5}"
    hots = " ".join(
        f"{hot.spell_id}{'x' + str(hot.stacks) if hot.stacks > 1 else ''}({hot.remaining:.0f}s)" for hot in member.hots
    )
    debuffs = " ".join(
        f"!{debuff.name}{'x' + str(debuff.stacks) if debuff.stacks > 1 else ''}" for debuff in member.debuffs
    )
    return f"{marker}{index:>2}. {member.name:<14} {health_bar(member.current_health, member.max_health, 10)} {status} {hots} {debuffs}".rstrip()


def render_snapshot(snapshot: EncounterSnapshot) -> None:
    """Print the boss frames, the raid grid and the player's resources."""
    render_heading(f"{snapshot.encounter_id} [{snapshot.status}] {snapshot.elapsed:.1f}s")
    for boss in snapshot.bosses:
        print(f"{boss.name:<20} {health_bar(boss.current_health, boss.max_health)} {boss.current_health}/{boss.max_health}")
    for index, member in enumerate(snapshot.members, start=1):
        print(format_member(member, index, selected=member.id == snapshot.selected_target_id))

    print(f"Mana {health_bar(snapshot.mana, snapshot.max_mana)} {snapshot.mana}/{snapshot.max_mana}", end="")
    print("  (5SR)" if snapshot.inside_five_second_rule else "")
    if snapshot.cast_bar is not None:
        bar = snapshot.cast_bar
        print(f"Casting {bar.spell_id} {health_bar(bar.total - bar.remaining, bar.total)} {bar.remaining:.1f}s")
    if snapshot.channel_bar is not None:
        bar = snapshot.channel_bar
        print(f"Channeling {bar.spell_id} {bar.remaining:.1f}s")
    if snapshot.gcd_remaining > 0:
        print(f"GCD {snapshot.gcd_remaining:.2f}/{snapshot.gcd_total:.2f}s")
    if snapshot.queued_spell_id:
        print(f"Queued: {snapshot.queued_spell_id}")

    buffs = []
    if snapshot.innervate_remaining > 0:
        buffs.append(f"Innervate {snapshot.innervate_remaining:.0f}s")
    if snapshot.tree_of_life_active:
        buffs.append("Tree of Life")
    if snapshot.natures_swiftness_active:
        buffs.append("Nature's Swiftness")
    if buffs:
        print("Buffs: " + ", ".join(buffs))
    if snapshot.cooldowns:
        print("Cooldowns: " + ", ".join(f"{spell} {remaining:.0f}s" for spell, remaining in sorted(snapshot.cooldowns.items())))
    for cast in snapshot.npc_casts:
        print(f"{cast.healer_id} casting {cast.spell_id} on {cast.target_id} ({cast.remaining:.1f}s)")


def describe_event(event: SimEvent) -> str | None:
    """One line for the events a player cares about; None for the noisy ones."""
    if isinstance(event, CastRejectedEvent):
        return f"Can't cast {event.spell_id}: {event.reason.replace('_', ' ')}"
    if isinstance(event, CastQueuedEvent):
        return f"Queued {event.spell_id}"
    if isinstance(event, CastStartedEvent):
        return f"Casting {event.spell_id} ({event.cast_time:.2f}s)"
    if isinstance(event, SpellCastEvent):
        target = f" on {event.target_id}" if event.target_id else ""
        return f"Cast {event.spell_id}{target} for {event.mana_spent} mana"
    if isinstance(event, CastCancelledEvent):
        return f"{event.spell_id} interrupted ({event.reason})"
    if isinstance(event, HotAppliedEvent):
        return f"{event.spell_id} {event.outcome} on {event.target_id} ({event.stacks} stack, {event.heal_per_tick}/tick)"
    if isinstance(event, HealAppliedEvent):
        heal = event.heal
        if heal.kind == "tick" and not debug_enabled():
            return None
        crit = " (crit)" if heal.is_crit else ""
        return f"{heal.spell_id} heals {heal.target_id} for {heal.effective}{crit}"
    if isinstance(event, ManaRestoredEvent):
        return f"{event.spell_id} restores {event.amount} mana"
    if isinstance(event, SelfDamageEvent):
        return f"{event.spell_id} hurts you for {event.amount}"
    if isinstance(event, BuffChangedEvent):
        return f"{event.buff} {'gained' if event.active else 'faded'}"
    if isinstance(event, AttackResolvedEvent):
        if not debug_enabled():
            return None
        return f"{event.boss_id} {event.outcome} {event.target_id} for {event.damage_dealt}"
    if isinstance(event, MeteorSlashEvent):
        return f"Meteor Slash hits {len(event.target_ids)} for {event.split_damage} each"
    if isinstance(event, TankSwapEvent):
        return f"Tank swap: {event.from_tank_id} -> {event.to_tank_id}"
    if isinstance(event, DebuffAppliedEvent) and event.debuff == "Burn":
        return f"Burn on {event.member_id}"
    if isinstance(event, MemberDiedEvent):
        return f"{event.member_name} dies"
    if isinstance(event, EncounterStartedEvent):
        return f"{event.encounter_id} engaged"
    if isinstance(event, EncounterResolvedEvent):
        return f"{event.status.upper()} after {event.elapsed:.1f}s"
    return None


def render_events(events: Sequence[SimEvent]) -> None:
    render_bullet_lines(line for line in (describe_event(event) for event in events) if line)
