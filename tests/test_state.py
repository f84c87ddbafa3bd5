"""
Tests for the parse state tracker: nesting, headers and symbols.
"""

import pytest
from rmscheck.state import (
    AOC_OPTION_DEFINES, UP_OPTION_DEFINES, Compatibility, NestingKind, ParseState, load_builtins,
)

from conftest import atoms_of


def feed(state, source):
    """Run `source` through the state and collect nesting errors."""
    warnings = []
    for atom in atoms_of(source):
        state.update(atom)
        warning = state.update_nesting(atom)
        if warning is not None:
            warnings.append(warning)
    return warnings


class TestNesting:
    """Test block balance tracking."""

    def test_balanced_braces(self):
        """Matched braces leave nothing open."""
        state = ParseState()
        assert feed(state, "{ }") == []
        assert state.nesting == []

    def test_lone_close_brace(self):
        """A close brace with nothing open has no note."""
        warnings = feed(ParseState(), "}")
        assert len(warnings) == 1
        assert warnings[0].message == "Unbalanced `}`, nothing is open"
        assert warnings[0].notes == []

    def test_mismatched_close_has_note(self):
        """A mismatched close points at what is open."""
        warnings = feed(ParseState(), "if A }")
        assert warnings[0].message == "Unbalanced `}`"
        assert warnings[0].notes[0].message == "Matches this `if`"
        assert warnings[0].notes[0].location.start == 0

    def test_endif_inside_brace(self):
        """endif inside braces is unbalanced."""
        warnings = feed(ParseState(), "{ endif")
        assert warnings[0].message == "Unbalanced `endif`"
        assert warnings[0].notes[0].message == "Matches this open brace `{`"

    def test_if_chain(self):
        """An if chain closes with its endif."""
        state = ParseState()
        assert feed(state, "if A { } elseif B else endif") == []
        assert state.nesting == []

    def test_stray_else_still_opens(self):
        """A stray else is reported but still opens a branch."""
        state = ParseState()
        warnings = feed(state, "else")
        assert warnings[0].message == "Unbalanced `else`, nothing is open"
        assert [nest.kind for nest in state.nesting] == [NestingKind.ELSE]
        assert feed(state, "endif") == []

    def test_percent_chance_siblings(self):
        """Each percent_chance closes the one before it."""
        state = ParseState()
        source = "start_random percent_chance 10 #define A percent_chance 20 #define B end_random"
        assert feed(state, source) == []
        assert state.nesting == []

    def test_percent_chance_outside_random(self):
        """percent_chance needs a start_random."""
        warnings = feed(ParseState(), "percent_chance 10")
        assert warnings[0].message == "Unbalanced `percent_chance`, nothing is open"

    def test_end_random_without_start(self):
        """end_random needs a start_random."""
        warnings = feed(ParseState(), "end_random")
        assert warnings[0].message == "Unbalanced `end_random`, nothing is open"

    def test_enclosing(self):
        """enclosing() walks outwards and can filter by kind."""
        state = ParseState()
        feed(state, "start_random percent_chance 10 if A {")
        kinds = [nest.kind for nest in state.enclosing()]
        assert kinds == [NestingKind.BRACE, NestingKind.IF,
                         NestingKind.PERCENT_CHANCE, NestingKind.START_RANDOM]
        assert [n.kind for n in state.enclosing(NestingKind.START_RANDOM)] == [NestingKind.START_RANDOM]


class TestHeaders:
    """Test compatibility headers in leading comments."""

    def test_header_sets_compatibility(self):
        """A header comment sets the target."""
        state = ParseState()
        feed(state, "/* Compatibility: UserPatch 1.5 */ random_placement")
        assert state.compatibility == Compatibility.USERPATCH15

    def test_star_prefixed_header(self):
        """Headers may sit in a star-prefixed block comment."""
        state = ParseState()
        feed(state, "/*\n * Map by someone\n * Compatibility: Definitive Edition\n */")
        assert state.compatibility == Compatibility.DEFINITIVE_EDITION

    def test_header_after_first_atom_ignored(self):
        """Only leading comments count as headers."""
        state = ParseState()
        feed(state, "random_placement /* Compatibility: UserPatch 1.5 */")
        assert state.compatibility == Compatibility.CONQUERORS

    def test_unknown_value_ignored(self):
        """Unknown header values are ignored."""
        state = ParseState()
        feed(state, "/* Compatibility: Age of Mythology */")
        assert state.compatibility == Compatibility.CONQUERORS

    def test_header_reloads_builtins(self):
        """Changing the target loads its builtin names."""
        state = ParseState()
        assert not state.has_define("DE_AVAILABLE")
        feed(state, "/* Compatibility: DE */")
        assert state.has_define("DE_AVAILABLE")


class TestCompatibility:
    """Test compatibility names and ordering."""

    @pytest.mark.parametrize("name,expected", [
        ("UserPatch 1.5", Compatibility.USERPATCH15),
        ("up 1.4", Compatibility.USERPATCH14),
        ("UP", Compatibility.USERPATCH14),
        ("  HD Edition ", Compatibility.HD_EDITION),
        ("aoc", Compatibility.CONQUERORS),
        ("WK", Compatibility.WOLOLO_KINGDOMS),
        ("definitive edition", Compatibility.DEFINITIVE_EDITION),
        ("all", Compatibility.ALL),
    ])
    def test_from_name(self, name, expected):
        """Header and command line spellings are recognised."""
        assert Compatibility.from_name(name) == expected

    def test_unknown_name(self):
        """Unknown spellings give None."""
        assert Compatibility.from_name("age of kings") is None

    def test_ordering(self):
        """Levels compare by rank."""
        assert Compatibility.ALL < Compatibility.CONQUERORS < Compatibility.HD_EDITION
        assert Compatibility.USERPATCH14 < Compatibility.USERPATCH15 < Compatibility.WOLOLO_KINGDOMS
        assert Compatibility.default() == Compatibility.CONQUERORS


class TestSymbols:
    """Test #define/#const tracking and builtins."""

    def test_user_definitions(self):
        """User #define and #const names are tracked with their atoms."""
        state = ParseState()
        feed(state, "#define FOO #const BAR 12")
        assert state.has_define("FOO")
        assert state.has_const("BAR")
        assert not state.has_const("FOO")
        assert state.get_const("BAR").value.value == "12"
        assert state.get_define("FOO").name == "FOO"

    def test_builtin_consts(self):
        """Builtin consts are known but have no atom."""
        state = ParseState()
        assert state.has_const("GRASS")
        assert state.has_const("TOWN_CENTER")
        assert state.get_const("GRASS") is None

    def test_up_builtins(self):
        """UserPatch 1.5 names are not known to The Conquerors."""
        defines, consts = load_builtins(Compatibility.USERPATCH15)
        assert "UP_EXTENSION" in defines
        assert "AT_PLAYER" in consts
        assert "AT_PLAYER" not in load_builtins(Compatibility.CONQUERORS)[1]

    def test_game_object_tables(self):
        """The Conquerors tables hold the standard units, buildings and fish."""
        consts = load_builtins(Compatibility.CONQUERORS)[1]
        for name in ("ARCHER", "KNIGHT", "MILITIA", "SEA_GATE", "SALMON", "MARLIN1", "MARLIN2", "DORADO"):
            assert name in consts

    def test_wololo_kingdoms_builtins(self):
        """WololoKingdoms sees both the HD and UserPatch 1.5 names."""
        defines, consts = load_builtins(Compatibility.WOLOLO_KINGDOMS)
        assert "UP_EXTENSION" in defines
        assert "DLC_RAINFOREST" in consts
        assert "AT_TEAM" in consts

    def test_option_defines(self):
        """Lobby defines may or may not be set."""
        aoc = ParseState(Compatibility.CONQUERORS)
        up = ParseState(Compatibility.USERPATCH15)
        assert aoc.may_have_define("TINY_MAP")
        assert not aoc.has_define("TINY_MAP")
        assert not aoc.may_have_define("2_TEAM_GAME")
        assert up.may_have_define("2_TEAM_GAME")
        assert up.may_have_define("PLAYER3_TEAM1")
        assert up.may_have_define("TEAM2_SIZE4")

    def test_option_define_tables(self):
        """The option tables cover map sizes and up to 8 players."""
        assert "GIGANTIC_MAP" in AOC_OPTION_DEFINES
        assert "8_PLAYER_GAME" in UP_OPTION_DEFINES
        assert "9_PLAYER_GAME" not in UP_OPTION_DEFINES

    def test_listing_names(self):
        """User names are listed before builtin ones."""
        state = ParseState()
        feed(state, "#const MY_TERRAIN 0")
        consts = list(state.consts())
        assert consts[0] == "MY_TERRAIN"
        assert "GRASS" in consts


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
