"""Encounter loop: builds encounters and advances them one fixed tick at a time."""
from __future__ import annotations

import logging
import math
from typing import Iterable, List, Sequence

from treesim.core.config import DEFAULT_CONFIG, SimulationConfig
from treesim.core.rng import RNG
from treesim.core.types import MoveKey
from treesim.data.repositories import (
    AvoidanceRepository,
    ClassSpecsRepository,
    EncountersRepository,
    GearPresetsRepository,
    RaidPresetsRepository,
    SpellsRepository,
)
from treesim.domain.boss_mechanics import (
    BURN,
    METEOR_SLASH,
    advance_burn,
    apply_burn,
    apply_meteor_slash,
    expire_debuffs,
    meteor_slash_targets,
    pick_burn_target,
)
from treesim.domain.caster_state import CasterState
from treesim.domain.combat_table import format_attack_result, resolve_attack, resolve_untanked
from treesim.domain.encounter_models import (
    BossView,
    CastBarView,
    ChainHealVisual,
    DebuffView,
    EncounterSnapshot,
    EncounterState,
    HotView,
    MemberView,
    NpcCastView,
)
from treesim.domain.entities import RaidMember
from treesim.domain.healing import HealResult, apply_damage, apply_heal
from treesim.domain.hots import advance_member_hots
from treesim.domain.npc_healer import MemberHealth, tick_npc_healer
from treesim.domain.resources import (
    apply_raid_buffs,
    available_raid_buffs,
    derive_combat_stats,
    rescale_by_fraction,
)
from treesim.services.cast_service import CastService
from treesim.services.errors import EncounterSetupError
from treesim.services.events import (
    AttackResolvedEvent,
    BossDamagedEvent,
    ChainHealEvent,
    DebuffAppliedEvent,
    DebuffDamageEvent,
    DebuffExpiredEvent,
    EncounterResolvedEvent,
    EncounterStartedEvent,
    HealAppliedEvent,
    MemberDiedEvent,
    MeteorSlashEvent,
    RaidDamageEvent,
    SimEvent,
    TankSwapEvent,
)
from treesim.services.factories import create_bosses, create_npc_healers, create_raid, make_member_id, select_tanks

logger = logging.getLogger(__name__)

_MOVE_VECTORS = {
    "up": (0.0, -1.0),
    "down": (0.0, 1.0),
    "left": (-1.0, 0.0),
    "right": (1.0, 0.0),
}


class EncounterService:
    """Owns the per-tick ordering of every timed subsystem of an encounter."""

    def __init__(
        self,
        spells_repo: SpellsRepository,
        encounters_repo: EncountersRepository,
        gear_presets_repo: GearPresetsRepository,
        specs_repo: ClassSpecsRepository,
        raid_presets_repo: RaidPresetsRepository,
        avoidance_repo: AvoidanceRepository,
        rng: RNG | None = None,
        config: SimulationConfig = DEFAULT_CONFIG,
    ) -> None:
        self._spells_repo = spells_repo
        self._encounters_repo = encounters_repo
        self._gear_presets_repo = gear_presets_repo
        self._specs_repo = specs_repo
        self._raid_presets_repo = raid_presets_repo
        self._avoidance_repo = avoidance_repo
        self._rng = rng or RNG()
        self._config = config
        self._cast_service = CastService(spells_repo, self._rng, config)

    @property
    def cast_service(self) -> CastService:
        return self._cast_service

    @property
    def config(self) -> SimulationConfig:
        return self._config

    # -----------------------
    # Encounter Lifecycle
    # -----------------------
    def create_encounter(
        self,
        encounter_id: str,
        gear_preset_id: str,
        raid_preset_id: str | None = None,
        slots: Sequence[str] | None = None,
        raid_buffs: Iterable[str] = (),
    ) -> EncounterState:
        """Build a fresh, not yet started encounter from catalog ids."""
        try:
            encounter = self._encounters_repo.get(encounter_id)
        except KeyError as exc:
            raise EncounterSetupError(f"Encounter '{encounter_id}' not found.") from exc
        try:
            gear = self._gear_presets_repo.get(gear_preset_id)
        except KeyError as exc:
            raise EncounterSetupError(f"Gear preset '{gear_preset_id}' not found.") from exc

        if slots is None:
            if raid_preset_id is None:
                raise EncounterSetupError("Either a raid preset or explicit raid slots are required.")
            try:
                slots = self._raid_presets_repo.get(raid_preset_id).slots
            except KeyError as exc:
                raise EncounterSetupError(f"Raid preset '{raid_preset_id}' not found.") from exc

        stats = derive_combat_stats(gear.stats)
        raid = create_raid(slots, self._specs_repo, stats, self._config)
        player_id = make_member_id(0)
        tank_ids = select_tanks(raid, encounter.tank_count)
        caster = CasterState(
            caster_id=player_id,
            gear=gear.stats,
            stats=stats,
            current_mana=float(stats.max_mana),
            time_since_mana_cast=self._config.initial_time_since_cast,
            x=self._config.player_start_x,
            y=self._config.player_start_y,
        )
        state = EncounterState(
            encounter=encounter,
            raid=raid,
            bosses=create_bosses(encounter, tank_ids, self._config),
            caster=caster,
            player_id=player_id,
            tank_ids=tank_ids,
            npc_healers=create_npc_healers(raid, player_id, self._rng),
        )
        self.apply_raid_buffs(state, raid_buffs, restore_full=True)
        logger.info(
            "Created encounter %s with %d bosses, tanks %s, %d NPC healers",
            encounter.id,
            len(state.bosses),
            tank_ids,
            len(state.npc_healers),
        )
        return state

    def start(self, state: EncounterState) -> List[SimEvent]:
        if state.status != "not_started":
            return []
        state.status = "in_progress"
        state.elapsed = 0.0
        state.boss_attack_timer = self._config.boss_attack_interval
        state.random_damage_timer = self._config.random_damage_first_delay
        state.raid_dps_timer = self._config.raid_dps_interval
        meteor_slash = state.encounter.meteor_slash
        state.meteor_slash_timer = meteor_slash.interval if meteor_slash else 0.0
        state.meteor_slash_tank_index = 0
        burn = state.encounter.burn
        state.burn_timer = burn.interval if burn else 0.0
        logger.info("Encounter %s started", state.encounter.id)
        return [EncounterStartedEvent(encounter_id=state.encounter.id)]

    def apply_raid_buffs(
        self,
        state: EncounterState,
        names: Iterable[str],
        *,
        restore_full: bool = False,
    ) -> List[str]:
        """Recompute caster stats with the buffs the player's group can provide.

        Mana and player health keep their fill fraction unless ``restore_full``.
        Returns the buff names that were actually applied.
        """
        requested = list(names)
        party = state.party_of(state.player_id)
        applied = available_raid_buffs(
            requested,
            [member.spec_id for member in party],
            [member.class_id for member in party],
        )
        caster = state.caster
        player = state.player
        old_stats = caster.stats
        new_stats = derive_combat_stats(apply_raid_buffs(caster.gear, applied))

        caster.stats = new_stats
        caster.raid_buffs = applied
        player.crit_chance = new_stats.crit_chance
        if restore_full:
            caster.current_mana = float(new_stats.max_mana)
            player.max_health = new_stats.max_health
            if not player.is_dead:
                player.current_health = new_stats.max_health
        else:
            caster.current_mana = float(
                rescale_by_fraction(caster.current_mana, old_stats.max_mana, new_stats.max_mana)
            )
            if not player.is_dead:
                player.current_health = rescale_by_fraction(
                    player.current_health, player.max_health, new_stats.max_health
                )
            player.max_health = new_stats.max_health

        skipped = sorted(set(requested) - set(applied))
        if skipped:
            logger.info("Raid buffs unavailable to the player's group: %s", ", ".join(skipped))
        return applied

    # -----------------------
    # Player Input
    # -----------------------
    def cast(self, state: EncounterState, spell_id: str, target_id: str | None = None) -> List[SimEvent]:
        return self._cast_service.request_cast(state, spell_id, target_id)

    def select_target(self, state: EncounterState, member_id: str | None) -> bool:
        if member_id is not None and state.find_member(member_id) is None:
            return False
        state.selected_target_id = member_id
        return True

    def set_movement(self, state: EncounterState, key: MoveKey, pressed: bool) -> List[SimEvent]:
        """Track held movement keys; pressing one cancels any cast in progress."""
        keys = state.caster.movement_keys
        if not pressed:
            keys.discard(key)
            return []
        keys.add(key)
        return self._cast_service.cancel_cast(state, "moved")

    # -----------------------
    # Tick
    # -----------------------
    def tick(self, state: EncounterState, delta: float) -> List[SimEvent]:
        """Advance the encounter by one clamped step and return what happened."""
        delta = min(max(delta, 0.0), self._config.max_delta)
        state.clock += delta
        cast = self._cast_service
        events: List[SimEvent] = []

        events.extend(cast.complete_cast(state))
        events.extend(cast.advance_gcd(state, delta))
        cast.advance_cooldowns(state, delta)
        events.extend(cast.advance_buffs(state, delta))
        cast.regenerate_mana(state, delta)
        events.extend(self._advance_movement(state, delta))
        cast.advance_cast(state, delta)
        events.extend(cast.advance_channel(state, delta))

        if state.is_active:
            state.elapsed += delta
            events.extend(self._advance_boss_attacks(state, delta))
            events.extend(self._advance_random_damage(state, delta))
            events.extend(self._advance_meteor_slash(state, delta))
            events.extend(self._advance_burn(state, delta))
            events.extend(self._advance_raid_dps(state, delta))
            events.extend(self._check_defeat(state))

        events.extend(self._advance_npc_healers(state, delta))
        self._prune_visuals(state)
        events.extend(self._advance_hots(state, delta))
        events.extend(self._expire_debuffs(state, delta))
        return events

    def _advance_movement(self, state: EncounterState, delta: float) -> List[SimEvent]:
        caster = state.caster
        if not caster.movement_keys:
            return []
        dx = sum(_MOVE_VECTORS[key][0] for key in caster.movement_keys)
        dy = sum(_MOVE_VECTORS[key][1] for key in caster.movement_keys)
        length = math.hypot(dx, dy)
        events: List[SimEvent] = []
        if length > 0:
            step = self._config.player_speed * delta / length
            caster.x += dx * step
            caster.y += dy * step
            events.extend(self._cast_service.cancel_cast(state, "moved"))
        return events

    def _advance_boss_attacks(self, state: EncounterState, delta: float) -> List[SimEvent]:
        state.boss_attack_timer -= delta
        if state.boss_attack_timer > 0:
            return []
        state.boss_attack_timer = self._config.boss_attack_interval

        events: List[SimEvent] = []
        for boss in state.bosses:
            if not boss.is_alive:
                continue
            tank = state.find_member(boss.tank_id)
            if tank is None or tank.is_dead:
                continue
            base_damage = self._rng.randint(self._config.boss_attack_min, self._config.boss_attack_max)
            avoidance = self._avoidance_repo.find(tank.spec_id)
            if avoidance is not None:
                result = resolve_attack(base_damage, avoidance, self._rng)
            else:
                result = resolve_untanked(base_damage)
            self._damage_member(state, tank, result.damage_dealt, events)
            logger.debug(
                "%s (%d/%d)", format_attack_result(result, boss.name, tank.name), tank.current_health, tank.max_health
            )
            events.append(
                AttackResolvedEvent(
                    boss_id=boss.id,
                    target_id=tank.id,
                    outcome=result.outcome,
                    damage_dealt=result.damage_dealt,
                    damage_mitigated=result.damage_mitigated,
                )
            )
        return events

    def _advance_random_damage(self, state: EncounterState, delta: float) -> List[SimEvent]:
        random_damage = state.encounter.random_target_damage
        if random_damage is None:
            return []
        state.random_damage_timer -= delta
        if state.random_damage_timer > 0:
            return []
        state.random_damage_timer = random_damage.interval

        alive = [member for member in state.raid if member.is_alive]
        if not alive:
            return []
        targets = self._rng.sample(alive, min(random_damage.target_count, len(alive)))
        events: List[SimEvent] = [
            RaidDamageEvent(target_ids=tuple(m.id for m in targets), damage=random_damage.damage)
        ]
        for member in targets:
            self._damage_member(state, member, random_damage.damage, events)
        logger.debug(
            "Boss raid damage hits %s for %d each", ", ".join(m.name for m in targets), random_damage.damage
        )
        return events

    def _advance_meteor_slash(self, state: EncounterState, delta: float) -> List[SimEvent]:
        pattern = state.encounter.meteor_slash
        if pattern is None or not state.tank_ids:
            return []
        state.meteor_slash_timer -= delta
        if state.meteor_slash_timer > 0:
            return []
        state.meteor_slash_timer = pattern.interval + self._rng.random() * pattern.random_delay

        tank_index = state.meteor_slash_tank_index
        targets = meteor_slash_targets(
            state.raid,
            state.encounter,
            state.tank_ids,
            tank_index,
            state.player_id,
            (state.caster.x, state.caster.y),
        )
        result = apply_meteor_slash(targets, pattern, state.tank_ids, tank_index)
        if not result.hits:
            return []

        boss = state.bosses[0]
        events: List[SimEvent] = [
            MeteorSlashEvent(
                boss_id=boss.id,
                tank_id=result.tank_id,
                target_ids=tuple(hit.member_id for hit in result.hits),
                split_damage=pattern.damage // len(result.hits),
            )
        ]
        for hit in result.hits:
            member = state.find_member(hit.member_id)
            assert member is not None
            events.append(DebuffAppliedEvent(member_id=member.id, debuff=METEOR_SLASH, stacks=hit.stacks))
            self._damage_member(state, member, hit.damage, events)
        logger.debug(
            "Meteor Slash hits %d targets: %s",
            len(result.hits),
            ", ".join(f"{hit.member_id} {hit.damage} ({hit.stacks} stacks)" for hit in result.hits),
        )

        if result.swap_to_index is not None and result.tank_id is not None:
            new_tank_id = state.tank_ids[result.swap_to_index]
            state.meteor_slash_tank_index = result.swap_to_index
            for boss in state.bosses:
                if boss.tank_id == result.tank_id:
                    boss.tank_id = new_tank_id
            logger.info("Tank swap: %s -> %s", result.tank_id, new_tank_id)
            events.append(TankSwapEvent(from_tank_id=result.tank_id, to_tank_id=new_tank_id))
        return events

    def _advance_burn(self, state: EncounterState, delta: float) -> List[SimEvent]:
        pattern = state.encounter.burn
        if pattern is None:
            return []
        events: List[SimEvent] = []
        state.burn_timer -= delta
        if state.burn_timer <= 0:
            state.burn_timer = pattern.interval
            target = pick_burn_target(state.raid, self._rng)
            if target is None:
                logger.debug("Burn has no eligible target")
            else:
                apply_burn(target, pattern)
                logger.debug("Burn applied to %s", target.name)
                events.append(DebuffAppliedEvent(member_id=target.id, debuff=BURN, stacks=1))

        for member in state.raid:
            damage = advance_burn(member, pattern, delta)
            if damage is None:
                continue
            events.append(DebuffDamageEvent(member_id=member.id, debuff=BURN, amount=damage))
            self._damage_member(state, member, damage, events)
        return events

    def _expire_debuffs(self, state: EncounterState, delta: float) -> List[SimEvent]:
        events: List[SimEvent] = []
        for member in state.raid:
            for name in expire_debuffs(member, delta):
                logger.debug("%s: %s expired", member.name, name)
                events.append(DebuffExpiredEvent(member_id=member.id, debuff=name))
        return events

    def _advance_raid_dps(self, state: EncounterState, delta: float) -> List[SimEvent]:
        state.raid_dps_timer -= delta
        if state.raid_dps_timer > 0:
            return []
        state.raid_dps_timer = self._config.raid_dps_interval

        dps_count = sum(1 for member in state.raid if member.is_alive and member.role == "dps")
        living_bosses = [boss for boss in state.bosses if boss.is_alive]
        if dps_count == 0 or not living_bosses:
            return []
        total = sum(
            self._rng.randint(self._config.raid_dps_min, self._config.raid_dps_max) for _ in range(dps_count)
        )
        per_boss = total // len(living_bosses)
        events: List[SimEvent] = []
        for boss in living_bosses:
            taken = boss.take_damage(per_boss)
            events.append(BossDamagedEvent(boss_id=boss.id, amount=taken, remaining_health=boss.current_health))
        logger.debug("Raid DPS: %d DPS dealt %d total", dps_count, total)

        if all(not boss.is_alive for boss in state.bosses):
            state.status = "victory"
            logger.info("Victory in %s after %.1fs", state.encounter.id, state.elapsed)
            events.append(EncounterResolvedEvent(status="victory", elapsed=state.elapsed))
        return events

    def _check_defeat(self, state: EncounterState) -> List[SimEvent]:
        if not state.is_active or any(member.is_alive for member in state.raid):
            return []
        state.status = "defeat"
        logger.info("Defeat in %s after %.1fs", state.encounter.id, state.elapsed)
        return [EncounterResolvedEvent(status="defeat", elapsed=state.elapsed)]

    def _advance_npc_healers(self, state: EncounterState, delta: float) -> List[SimEvent]:
        events: List[SimEvent] = []
        for healer in state.npc_healers:
            owner = state.find_member(healer.healer_id)
            if owner is None or owner.is_dead:
                healer.current_cast = None
                continue
            members = tuple(
                MemberHealth(m.id, m.current_health, m.max_health, m.is_dead) for m in state.raid
            )
            result = tick_npc_healer(healer, members, delta, self._rng)
            for intent in result.heals:
                target = state.find_member(intent.target_id)
                if target is None:
                    continue
                heal = apply_heal(
                    target, intent.amount, source_id=intent.source_id, spell_id=intent.spell_id, kind="chain"
                )
                events.append(self._record(state, heal))
            if result.chain_target_ids:
                state.chain_visuals.append(
                    ChainHealVisual(
                        id=state.next_visual_id,
                        source_id=healer.healer_id,
                        target_ids=result.chain_target_ids,
                        created_at=state.clock,
                    )
                )
                state.next_visual_id += 1
                events.append(ChainHealEvent(healer_id=healer.healer_id, target_ids=result.chain_target_ids))
        return events

    def _prune_visuals(self, state: EncounterState) -> None:
        cutoff = state.clock - self._config.chain_visual_duration
        state.chain_visuals = [visual for visual in state.chain_visuals if visual.created_at > cutoff]

    def _advance_hots(self, state: EncounterState, delta: float) -> List[SimEvent]:
        player_crit = state.caster.stats.crit_chance

        def crit_for_source(source_id: str) -> float:
            return player_crit if source_id == state.player_id else 0.0

        events: List[SimEvent] = []
        for member in state.raid:
            if not member.hots:
                continue
            for heal in advance_member_hots(member, delta, crit_for_source, self._rng):
                events.append(self._record(state, heal))
        return events

    def _damage_member(self, state: EncounterState, member: RaidMember, amount: int, events: List[SimEvent]) -> None:
        was_alive = member.is_alive
        apply_damage(member, amount)
        if was_alive and member.is_dead:
            logger.info("%s has died", member.name)
            events.append(MemberDiedEvent(member_id=member.id, member_name=member.name))
            if member.id == state.player_id:
                events.extend(self._cast_service.cancel_cast(state, "died"))

    @staticmethod
    def _record(state: EncounterState, heal: HealResult) -> HealAppliedEvent:
        state.record_heal(heal)
        logger.debug(
            "%s %s heals %s for %d (%d over)%s",
            heal.source_id,
            heal.spell_id,
            heal.target_id,
            heal.effective,
            heal.overheal,
            " crit" if heal.is_crit else "",
        )
        return HealAppliedEvent(heal=heal)

    # -----------------------
    # Snapshot
    # -----------------------
    def snapshot(self, state: EncounterState) -> EncounterSnapshot:
        """Immutable view of the encounter for the presentation layer."""
        caster = state.caster
        casting = caster.casting
        channel = caster.channel
        npc_casts = tuple(
            NpcCastView(
                healer_id=healer.healer_id,
                spell_id=healer.current_cast.spell_id,
                target_id=healer.current_cast.target_id,
                remaining=max(0.0, healer.current_cast.remaining),
                total=healer.current_cast.cast_time,
            )
            for healer in state.npc_healers
            if healer.current_cast is not None
        )
        return EncounterSnapshot(
            encounter_id=state.encounter.id,
            status=state.status,
            elapsed=state.elapsed,
            members=tuple(self._member_view(member) for member in state.raid),
            bosses=tuple(
                BossView(boss.id, boss.name, boss.current_health, boss.max_health, boss.tank_id)
                for boss in state.bosses
            ),
            mana=int(caster.current_mana),
            max_mana=caster.stats.max_mana,
            gcd_remaining=caster.gcd_remaining,
            gcd_total=caster.gcd_total,
            cast_bar=CastBarView(casting.spell_id, casting.target_id, casting.remaining, casting.cast_time)
            if casting
            else None,
            channel_bar=CastBarView(channel.spell_id, None, channel.remaining, channel.duration) if channel else None,
            queued_spell_id=caster.queued.spell_id if caster.queued else None,
            cooldowns=dict(caster.cooldowns),
            innervate_remaining=caster.innervate_remaining,
            tree_of_life_active=caster.tree_of_life_active,
            natures_swiftness_active=caster.natures_swiftness_active,
            inside_five_second_rule=self._cast_service.inside_five_second_rule(state),
            selected_target_id=state.selected_target_id,
            npc_casts=npc_casts,
            chain_visuals=tuple(state.chain_visuals),
            healing_done=dict(state.healing_done),
            player_position=(caster.x, caster.y),
        )

    @staticmethod
    def _member_view(member: RaidMember) -> MemberView:
        return MemberView(
            id=member.id,
            name=member.name,
            spec_id=member.spec_id,
            role=member.role,
            group=member.group,
            current_health=member.current_health,
            max_health=member.max_health,
            is_dead=member.is_dead,
            hots=tuple(HotView(hot.spell_id, hot.source_id, hot.remaining_duration, hot.stacks) for hot in member.hots),
            debuffs=tuple(DebuffView(debuff.name, debuff.remaining_duration, debuff.stacks) for debuff in member.debuffs),
        )
