"""Extracts cast instructions from free-text macro bodies."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Union

from treesim.domain.defs import SpellDef
from treesim.domain.entities import RaidMember

SpellLookup = Callable[[str], Union[SpellDef, None]]

_CAST_RE = re.compile(r"^/cast\s+(.+)$", re.IGNORECASE)
_TARGET_RE = re.compile(r"^\[(?:target=|@)([^\]]+)\]\s*(.+)$", re.IGNORECASE)
_SHOWTOOLTIP = "#showtooltip"


@dataclass(frozen=True, slots=True)
class CastCommand:
    spell_id: str
    target_name: str | None = None


@dataclass(frozen=True, slots=True)
class UnknownCommand:
    raw: str


MacroCommand = Union[CastCommand, UnknownCommand]


@dataclass(slots=True)
class ParsedMacro:
    tooltip_spell_id: str | None = None
    commands: List[MacroCommand] = field(default_factory=list)


def _parse_cast(line: str, lookup: SpellLookup) -> MacroCommand | None:
    match = _CAST_RE.match(line)
    if match is None:
        return None
    args = match.group(1).strip()
    target_name = None
    target_match = _TARGET_RE.match(args)
    if target_match is not None:
        target_name = target_match.group(1).strip()
        args = target_match.group(2).strip()
    spell = lookup(args)
    if spell is None:
        return UnknownCommand(raw=line)
    return CastCommand(spell_id=spell.id, target_name=target_name)


def parse_macro(body: str, lookup: SpellLookup) -> ParsedMacro:
    """Parse ``#showtooltip`` and ``/cast`` lines; other slash commands are kept as unknown."""
    parsed = ParsedMacro()
    for line in body.splitlines():
        line = line.strip()
        if not line:
            continue
        lowered = line.lower()
        if lowered.startswith(_SHOWTOOLTIP):
            spell_name = line[len(_SHOWTOOLTIP):].strip()
            spell = lookup(spell_name) if spell_name else None
            if spell is not None:
                parsed.tooltip_spell_id = spell.id
            continue
        if lowered.startswith("/cast"):
            command = _parse_cast(line, lookup)
            if command is not None:
                parsed.commands.append(command)
            continue
        if line.startswith("/"):
            parsed.commands.append(UnknownCommand(raw=line))
    return parsed


def get_first_cast_command(body: str, lookup: SpellLookup) -> CastCommand | None:
    for command in parse_macro(body, lookup).commands:
        if isinstance(command, CastCommand):
            return command
    return None


def find_raid_member_by_name(members: Sequence[RaidMember], name: str) -> RaidMember | None:
    wanted = name.lower()
    for member in members:
        if member.name.lower() == wanted:
            return member
    return None
