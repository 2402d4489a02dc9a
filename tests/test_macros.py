from treesim.data.repositories import SpellsRepository
from treesim.domain.macros import (
    CastCommand,
    UnknownCommand,
    find_raid_member_by_name,
    get_first_cast_command,
    parse_macro,
)

from tests.helpers.sim_builders import make_member

_spells = SpellsRepository()


def _lookup(text: str):
    return _spells.get_by_name(text)


def test_showtooltip_and_plain_cast() -> None:
    parsed = parse_macro("#showtooltip Lifebloom\n/cast Lifebloom", _lookup)

    assert parsed.tooltip_spell_id == "lifebloom"
    assert parsed.commands == [CastCommand(spell_id="lifebloom")]


def test_target_override_forms() -> None:
    assert get_first_cast_command("/cast [target=Warrior 2] Rejuvenation", _lookup) == CastCommand(
        "rejuvenation", "Warrior 2"
    )
    assert get_first_cast_command("/cast [@You] Regrowth", _lookup) == CastCommand("regrowth", "You")


def test_commands_are_case_insensitive() -> None:
    assert get_first_cast_command("/CAST swiftmend", _lookup) == CastCommand("swiftmend")


def test_unknown_lines_are_kept_but_skipped() -> None:
    parsed = parse_macro("/say Blooming!\n/cast Moonfire\n/cast Healing Touch\nnot a command", _lookup)

    assert parsed.commands == [
        UnknownCommand(raw="/say Blooming!"),
        UnknownCommand(raw="/cast Moonfire"),
        CastCommand("healing-touch"),
    ]
    assert get_first_cast_command("/cast Moonfire\n/cast Healing Touch", _lookup) == CastCommand("healing-touch")


def test_macro_without_cast_returns_none() -> None:
    assert get_first_cast_command("#showtooltip\n/say hi", _lookup) is None


def test_find_member_by_name_ignores_case() -> None:
    members = [make_member("raid-0"), make_member("raid-1")]
    members[1].name = "Warrior 2"

    assert find_raid_member_by_name(members, "warrior 2") is members[1]
    assert find_raid_member_by_name(members, "Nobody") is None
