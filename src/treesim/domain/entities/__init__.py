"""Runtime entity exports."""

from .boss import BossState
from .raid_member import ActiveDebuff, ActiveHoT, RaidMember
from .stats import CombatStats

__all__ = ["ActiveDebuff", "ActiveHoT", "BossState", "CombatStats", "RaidMember"]
