"""Player cast state machine: global cooldown, cast bars, queueing and dispatch."""
from __future__ import annotations

import logging
from typing import List

from treesim.core.config import DEFAULT_CONFIG, SimulationConfig
from treesim.core.rng import RNG
from treesim.data.repositories import SpellsRepository
from treesim.domain.caster_state import CastingState, ChannelState, QueuedCast
from treesim.domain.defs import (
    BuffEffect,
    ChannelEffect,
    DirectAndHotEffect,
    DirectHealEffect,
    HotEffect,
    ManaRestoreEffect,
    SpellDef,
    SwiftmendEffect,
)
from treesim.domain.encounter_models import EncounterState
from treesim.domain.entities import RaidMember
from treesim.domain.healing import HealResult, apply_damage, apply_direct_heal, apply_heal, channel_tick, roll_crit
from treesim.domain.hots import apply_periodic_heal
from treesim.domain.lifebloom import apply_lifebloom
from treesim.domain.regrowth import apply_regrowth
from treesim.domain.resources import (
    calculate_cast_time,
    calculate_gcd,
    effective_mana_cost,
    mana_regen_per_second,
)
from treesim.domain.swiftmend import apply_swiftmend, find_consumable_hot
from treesim.services.errors import CatalogDesyncError
from treesim.services.events import (
    BuffChangedEvent,
    CastCancelledEvent,
    CastQueuedEvent,
    CastRejectedEvent,
    CastStartedEvent,
    HealAppliedEvent,
    HotAppliedEvent,
    ManaRestoredEvent,
    MemberDiedEvent,
    SelfDamageEvent,
    SimEvent,
    SpellCastEvent,
)

logger = logging.getLogger(__name__)

_EPSILON = 1e-9


class CastService:
    """Owns every rule about when the player may cast and what a cast does.

    All entry points take the encounter state by reference, mutate the caster
    and raid in place and return the events produced. Rejections are reported
    as ``CastRejectedEvent`` and leave the state untouched.
    """

    def __init__(
        self,
        spells_repo: SpellsRepository,
        rng: RNG | None = None,
        config: SimulationConfig = DEFAULT_CONFIG,
    ) -> None:
        self._spells_repo = spells_repo
        self._rng = rng or RNG()
        self._config = config
        self._tree_of_life: BuffEffect | None = None

    # -----------------------
    # Cast requests
    # -----------------------
    def request_cast(self, state: EncounterState, spell_id: str, target_id: str | None = None) -> List[SimEvent]:
        spell = self._spells_repo.find(spell_id)
        if spell is None:
            return self._reject(spell_id, "unknown_spell", target_id)
        caster = state.caster
        effect = spell.effect

        if isinstance(effect, BuffEffect) and effect.buff_type == "tree_of_life" and caster.tree_of_life_active:
            caster.tree_of_life_active = False
            logger.debug("Left Tree of Life form")
            return [BuffChangedEvent(buff=spell.id, active=False)]

        window = self._config.spell_queue_window
        if spell.is_gcd and caster.gcd_remaining > 0:
            if caster.gcd_remaining <= window:
                return self._queue(state, spell, target_id)
            return self._reject(spell.id, "on_gcd", target_id)

        blocking = caster.casting.remaining if caster.casting else caster.channel.remaining if caster.channel else None
        if blocking is not None:
            if blocking <= window:
                return self._queue(state, spell, target_id)
            return self._reject(spell.id, "casting", target_id)

        target: RaidMember | None = None
        if not spell.is_self_cast:
            target_id = target_id or state.selected_target_id
            if target_id is None:
                return self._reject(spell.id, "no_target")
            target = state.find_member(target_id)
            if target is None:
                return self._reject(spell.id, "invalid_target", target_id)
            if target.is_dead:
                return self._reject(spell.id, "target_dead", target_id)
        else:
            target_id = None

        cost = self.mana_cost(state, spell)
        if caster.current_mana < cost:
            return self._reject(spell.id, "insufficient_mana", target_id)
        if caster.cooldown_remaining(spell.id) > 0:
            return self._reject(spell.id, "on_cooldown", target_id)
        if isinstance(effect, SwiftmendEffect):
            assert target is not None
            if find_consumable_hot(target, effect, caster.caster_id) is None:
                return self._reject(spell.id, "no_consumable_hot", target_id)

        events: List[SimEvent] = []
        if spell.cast_time > 0 and not caster.natures_swiftness_active:
            self._start_gcd(state, spell)
            cast_time = calculate_cast_time(spell.cast_time, caster.stats.haste_percent)
            caster.casting = CastingState(
                spell_id=spell.id,
                target_id=target_id,
                cast_time=cast_time,
                remaining=cast_time,
                mana_cost=cost,
            )
            logger.debug("Casting %s on %s (%.2fs)", spell.name, target_id, cast_time)
            events.append(CastStartedEvent(spell_id=spell.id, target_id=target_id, cast_time=cast_time))
            return events

        if spell.cast_time > 0:
            caster.natures_swiftness_active = False
            events.append(BuffChangedEvent(buff="natures-swiftness", active=False))
        self._spend(state, cost)
        self._start_gcd(state, spell)
        events.append(SpellCastEvent(spell_id=spell.id, target_id=target_id, mana_spent=cost))
        events.extend(self._dispatch(state, spell, target))
        if spell.cooldown > 0:
            caster.cooldowns[spell.id] = spell.cooldown
        return events

    def complete_cast(self, state: EncounterState) -> List[SimEvent]:
        """Commit a finished cast bar, then run the queued request if one is waiting."""
        caster = state.caster
        casting = caster.casting
        if casting is None or casting.remaining > _EPSILON:
            return []
        spell = self._require_spell(casting.spell_id)
        caster.casting = None
        target = state.find_member(casting.target_id)
        if not spell.is_self_cast and (target is None or target.is_dead):
            logger.info("Cast fizzled: %s target %s is dead", spell.id, casting.target_id)
            events: List[SimEvent] = [CastCancelledEvent(spell_id=spell.id, reason="target_dead")]
            events.extend(self._dispatch_queued(state))
            return events
        self._spend(state, casting.mana_cost)
        events = [SpellCastEvent(spell_id=spell.id, target_id=casting.target_id, mana_spent=casting.mana_cost)]
        events.extend(self._dispatch(state, spell, target))
        if spell.cooldown > 0:
            caster.cooldowns[spell.id] = spell.cooldown
        events.extend(self._dispatch_queued(state))
        return events

    def cancel_cast(self, state: EncounterState, reason: str) -> List[SimEvent]:
        """Drop the active cast or channel; time already spent is lost."""
        caster = state.caster
        events: List[SimEvent] = []
        if caster.casting is not None:
            logger.info("Cast cancelled: %s (%s)", caster.casting.spell_id, reason)
            events.append(CastCancelledEvent(spell_id=caster.casting.spell_id, reason=reason))
            caster.casting = None
        if caster.channel is not None:
            logger.info("Channel cancelled: %s (%s)", caster.channel.spell_id, reason)
            events.append(CastCancelledEvent(spell_id=caster.channel.spell_id, reason=reason))
            caster.channel = None
        return events

    def mana_cost(self, state: EncounterState, spell: SpellDef) -> int:
        tree = self._tree_of_life_effect() if state.caster.tree_of_life_active else None
        return effective_mana_cost(spell, tree)

    # -----------------------
    # Per-tick timers
    # -----------------------
    def advance_gcd(self, state: EncounterState, delta: float) -> List[SimEvent]:
        caster = state.caster
        if caster.gcd_remaining <= 0:
            return []
        caster.gcd_remaining -= delta
        if caster.gcd_remaining > 0:
            return []
        caster.gcd_remaining = 0.0
        if caster.casting is not None or caster.channel is not None:
            return []
        return self._dispatch_queued(state)

    def advance_cooldowns(self, state: EncounterState, delta: float) -> None:
        cooldowns = state.caster.cooldowns
        for spell_id in list(cooldowns):
            cooldowns[spell_id] -= delta
            if cooldowns[spell_id] <= 0:
                del cooldowns[spell_id]

    def advance_buffs(self, state: EncounterState, delta: float) -> List[SimEvent]:
        caster = state.caster
        caster.time_since_mana_cast += delta
        if caster.innervate_remaining > 0:
            caster.innervate_remaining -= delta
            if caster.innervate_remaining <= 0:
                caster.innervate_remaining = 0.0
                caster.innervate_multiplier = 1.0
                logger.debug("Innervate expired")
                return [BuffChangedEvent(buff="innervate", active=False)]
        return []

    def regenerate_mana(self, state: EncounterState, delta: float) -> None:
        caster = state.caster
        per_second = mana_regen_per_second(
            caster.stats,
            inside_five_second_rule=self.inside_five_second_rule(state),
            innervate_multiplier=caster.innervate_multiplier if caster.innervate_active else None,
            casting_fraction=self._config.casting_regen_fraction,
        )
        caster.restore_mana(per_second * delta)

    def inside_five_second_rule(self, state: EncounterState) -> bool:
        return state.caster.time_since_mana_cast < self._config.five_second_rule

    def advance_cast(self, state: EncounterState, delta: float) -> None:
        """Count the cast bar down; completion is picked up on the next tick."""
        casting = state.caster.casting
        if casting is not None:
            casting.remaining = max(0.0, casting.remaining - delta)

    def advance_channel(self, state: EncounterState, delta: float) -> List[SimEvent]:
        caster = state.caster
        channel = caster.channel
        if channel is None:
            return []
        effect = self._require_spell(channel.spell_id).effect
        if not isinstance(effect, ChannelEffect):
            raise CatalogDesyncError(f"{channel.spell_id} is channeled but has no channel effect")

        events: List[SimEvent] = []
        remaining = delta
        while channel.next_tick_in <= remaining + _EPSILON and channel.next_tick_in <= channel.remaining + _EPSILON:
            step = max(channel.next_tick_in, 0.0)
            remaining -= step
            channel.remaining -= step
            channel.next_tick_in = channel.tick_interval
            events.extend(self._channel_tick(state, channel.spell_id, effect))
        channel.next_tick_in -= remaining
        channel.remaining -= remaining
        if channel.remaining <= _EPSILON:
            caster.channel = None
            events.extend(self._dispatch_queued(state))
        return events

    # -----------------------
    # Effect dispatch
    # -----------------------
    def _dispatch(self, state: EncounterState, spell: SpellDef, target: RaidMember | None) -> List[SimEvent]:
        caster = state.caster
        effect = spell.effect
        events: List[SimEvent] = []

        if effect.effect_type in {"hot", "direct_and_hot", "direct_heal", "swiftmend"} and target is None:
            raise CatalogDesyncError(f"{spell.id} needs a target but none reached dispatch")

        if isinstance(effect, HotEffect):
            assert target is not None
            if effect.max_stacks > 1:
                applied = apply_lifebloom(target, effect, caster.stats, caster.caster_id, spell.id)
                events.append(
                    HotAppliedEvent(spell.id, target.id, applied.outcome, applied.stacks, applied.heal_per_tick)
                )
            else:
                hot = apply_periodic_heal(target, effect, caster.stats, caster.caster_id, spell.id)
                events.append(HotAppliedEvent(spell.id, target.id, "applied", hot.stacks, hot.heal_per_tick))
        elif isinstance(effect, DirectAndHotEffect):
            assert target is not None
            result = apply_regrowth(target, effect, caster.stats, caster.caster_id, self._rng, spell.id)
            events.append(self._heal_event(state, result.direct))
            events.append(HotAppliedEvent(spell.id, target.id, "applied", 1, result.hot_heal_per_tick))
        elif isinstance(effect, DirectHealEffect):
            assert target is not None
            heal = apply_direct_heal(
                target,
                effect.min_heal,
                effect.max_heal,
                effect.coefficient,
                caster.stats.spell_power,
                caster.stats.crit_chance,
                self._rng,
                source_id=caster.caster_id,
                spell_id=spell.id,
            )
            events.append(self._heal_event(state, heal))
        elif isinstance(effect, SwiftmendEffect):
            assert target is not None
            outcome = apply_swiftmend(target, effect, caster.stats, caster.caster_id, self._rng, spell.id)
            if not outcome.success or outcome.heal is None:
                raise CatalogDesyncError(f"{spell.id} passed validation but found nothing to consume")
            events.append(self._heal_event(state, outcome.heal))
        elif isinstance(effect, ChannelEffect):
            caster.channel = ChannelState(
                spell_id=spell.id,
                duration=effect.duration,
                remaining=effect.duration,
                tick_interval=effect.tick_interval,
                next_tick_in=effect.tick_interval,
            )
        elif isinstance(effect, BuffEffect):
            events.extend(self._apply_buff(state, spell, effect))
        elif isinstance(effect, ManaRestoreEffect):
            events.extend(self._restore_mana(state, spell, effect))
        else:
            raise CatalogDesyncError(f"No dispatch for effect type of {spell.id}")
        return events

    def _apply_buff(self, state: EncounterState, spell: SpellDef, effect: BuffEffect) -> List[SimEvent]:
        caster = state.caster
        if effect.buff_type == "tree_of_life":
            caster.tree_of_life_active = True
        elif effect.buff_type == "mana_regen":
            caster.innervate_remaining = effect.duration
            caster.innervate_multiplier = 1.0 + (effect.regen_multiplier or 0.0)
        elif effect.buff_type == "next_instant":
            caster.natures_swiftness_active = True
        else:
            raise CatalogDesyncError(f"Unknown buff type on {spell.id}")
        logger.debug("%s active", spell.name)
        return [BuffChangedEvent(buff=spell.id, active=True)]

    def _restore_mana(self, state: EncounterState, spell: SpellDef, effect: ManaRestoreEffect) -> List[SimEvent]:
        gained = state.caster.restore_mana(self._rng.randint(effect.min_mana, effect.max_mana))
        events: List[SimEvent] = [ManaRestoredEvent(spell_id=spell.id, amount=int(gained))]
        if effect.self_damage_min is not None and effect.self_damage_max is not None:
            player = state.player
            was_alive = player.is_alive
            taken = apply_damage(player, self._rng.randint(effect.self_damage_min, effect.self_damage_max))
            events.append(SelfDamageEvent(spell_id=spell.id, member_id=player.id, amount=taken))
            if was_alive and player.is_dead:
                events.append(MemberDiedEvent(member_id=player.id, member_name=player.name))
        return events

    def _channel_tick(self, state: EncounterState, spell_id: str, effect: ChannelEffect) -> List[SimEvent]:
        caster = state.caster
        base = channel_tick(effect.heal_per_tick, effect.coefficient, caster.stats.spell_power)
        targets = state.party_of(state.player_id) if effect.targets_party else [state.player]
        events: List[SimEvent] = []
        for member in targets:
            if member.is_dead:
                continue
            amount, is_crit = roll_crit(base, caster.stats.crit_chance, self._rng)
            heal = apply_heal(member, amount, source_id=caster.caster_id, spell_id=spell_id, kind="channel", is_crit=is_crit)
            events.append(self._heal_event(state, heal))
        return events

    # -----------------------
    # Helpers
    # -----------------------
    def _queue(self, state: EncounterState, spell: SpellDef, target_id: str | None) -> List[SimEvent]:
        caster = state.caster
        replaced = caster.queued.spell_id if caster.queued else None
        queued_target = None if spell.is_self_cast else (target_id or state.selected_target_id)
        caster.queued = QueuedCast(spell_id=spell.id, target_id=queued_target)
        logger.debug("Queued %s (replacing %s)", spell.name, replaced)
        return [CastQueuedEvent(spell_id=spell.id, target_id=queued_target, replaced_spell_id=replaced)]

    def _dispatch_queued(self, state: EncounterState) -> List[SimEvent]:
        queued = state.caster.queued
        if queued is None:
            return []
        state.caster.queued = None
        return self.request_cast(state, queued.spell_id, queued.target_id)

    def _start_gcd(self, state: EncounterState, spell: SpellDef) -> None:
        if not spell.is_gcd:
            return
        caster = state.caster
        caster.gcd_total = calculate_gcd(caster.stats.haste_percent)
        caster.gcd_remaining = caster.gcd_total

    def _spend(self, state: EncounterState, cost: int) -> None:
        if cost <= 0:
            return
        state.caster.spend_mana(cost)
        state.caster.time_since_mana_cast = 0.0

    def _heal_event(self, state: EncounterState, heal: HealResult) -> HealAppliedEvent:
        state.record_heal(heal)
        return HealAppliedEvent(heal=heal)

    def _require_spell(self, spell_id: str) -> SpellDef:
        spell = self._spells_repo.find(spell_id)
        if spell is None:
            raise CatalogDesyncError(f"Spell '{spell_id}' vanished from the catalog")
        return spell

    def _tree_of_life_effect(self) -> BuffEffect:
        if self._tree_of_life is None:
            for spell in self._spells_repo.all():
                if isinstance(spell.effect, BuffEffect) and spell.effect.buff_type == "tree_of_life":
                    self._tree_of_life = spell.effect
                    break
            else:
                raise CatalogDesyncError("Tree of Life is active but no spell grants it")
        return self._tree_of_life

    @staticmethod
    def _reject(spell_id: str, reason: str, target_id: str | None = None) -> List[SimEvent]:
        logger.info("Cast rejected: %s (%s)", spell_id, reason)
        return [CastRejectedEvent(spell_id=spell_id, reason=reason, target_id=target_id)]
