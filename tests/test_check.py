"""
Tests for whole-file checks, results and source positions.
"""

import pytest
from rmscheck import RMSCheck, check
from rmscheck.diagnostic import Severity, Suggestion, Warning
from rmscheck.lints import ActorAreasMatchLint, ArgTypesLint, IncorrectSectionLint
from rmscheck.parser import SourceLocation
from rmscheck.sources import SourceFile, SourceFiles
from rmscheck.state import Compatibility


class TestSampleMap:
    """The bundled sample is a clean map."""

    def test_no_warnings(self, sample_map):
        """The sample map produces no warnings."""
        assert check(sample_map) == []

    def test_header_overrides_target(self, sample_map):
        """The header comment switches to UserPatch 1.5 whatever the caller asked for."""
        assert check(sample_map, Compatibility.ALL) == []


class TestRMSCheck:
    """Test the RMSCheck entry point."""

    def test_sorted_by_position(self):
        """Warnings come back in source order."""
        source = "} hello }"
        warnings = check(source)
        assert [w.start for w in warnings] == sorted(w.start for w in warnings)
        assert len(warnings) == 3

    def test_sorted_by_file(self):
        """Warnings are grouped by file in the order files were added."""
        result = RMSCheck(lints=[]).add_source("a.rms", "hello").add_source("b.rms", "}").check()
        assert [w.file_id for w in result] == [0, 1]

    def test_with_lint(self):
        """Lints can be added one at a time."""
        result = RMSCheck(lints=[]).with_lint(IncorrectSectionLint()) \
            .add_source("a.rms", "create_object GOLD").check()
        assert [w.code for w in result] == ["incorrect-section"]

    def test_add_file(self, tmp_path):
        """Files are read from disk and bad UTF-8 is replaced."""
        path = tmp_path / "map.rms"
        path.write_bytes(b"<PLAYER_SETUP>\nrandom_placement \xff\n")
        result = RMSCheck().add_file(path).check()
        assert result.files[0].name == str(path)
        assert "�" in result.files[0].text

    def test_check_twice(self):
        """Running the same check again gives the same warnings."""
        source = ("<OBJECTS_GENERATION>\n"
                  "create_object GOLD { avoid_actor_area 5 }\n"
                  "create_object GOLD { actor_area 5 }\n")
        checker = RMSCheck(Compatibility.DEFINITIVE_EDITION, [ActorAreasMatchLint()]).add_source("map.rms", source)
        first = [w.message for w in checker.check()]
        second = [w.message for w in checker.check()]
        assert first == ["Actor area 5 is never defined"]
        assert second == first

    def test_unfinished_rnd_does_not_leak(self):
        """An unfinished rnd( at the end of one run does not affect the next."""
        checker = RMSCheck(lints=[ArgTypesLint()]).add_source(
            "map.rms", "<OBJECTS_GENERATION> create_object GOLD { number_of_objects rnd(1,")
        checker.check()
        again = RMSCheck(lints=checker.lints).add_source("other.rms", "<PLAYER_SETUP> random_placement")
        assert again.check().warnings == []

    def test_zip_rms_compatibility(self):
        """ZR@ maps are checked as UserPatch 1.5 unless a newer target is given."""
        checker = RMSCheck().add_source("ZR@my_map.rms", "")
        assert checker.effective_compatibility() == Compatibility.USERPATCH15
        checker = RMSCheck(Compatibility.DEFINITIVE_EDITION).add_source("ZR@my_map.rms", "")
        assert checker.effective_compatibility() == Compatibility.DEFINITIVE_EDITION
        assert RMSCheck().add_source("map.rms", "").effective_compatibility() == Compatibility.CONQUERORS


class TestCheckResult:
    """Test result helpers and formatting."""

    def test_flags(self):
        """has_warnings and has_errors reflect the result."""
        result = RMSCheck(lints=[]).add_source("map.rms", "}").check()
        assert result.has_warnings
        assert result.has_errors
        assert len(result) == 1

    def test_clean(self):
        """An empty map has no warnings."""
        result = RMSCheck().add_source("map.rms", "").check()
        assert not result.has_warnings
        assert not result.has_errors

    def test_format(self):
        """Warnings are formatted with position, code and notes."""
        result = RMSCheck(lints=[]).add_source("map.rms", "{\n  endif").check()
        text = result.format(result.warnings[0])
        lines = text.splitlines()
        assert lines[0] == "map.rms:2:3: error [syntax]: Unbalanced `endif`"
        assert lines[1] == "    note: Matches this open brace `{` (1:1)"

    def test_format_suggestion(self):
        """Suggestions are listed under the warning."""
        result = RMSCheck().add_source("map.rms", "/*x */").check()
        text = result.format(result.warnings[0])
        assert text.splitlines()[1] == "    -> Add a space after the /* `/* x`"

    def test_resolve_position(self):
        """Locations resolve to 1-based line and column."""
        result = RMSCheck(lints=[]).add_source("map.rms", "a\nbc }").check()
        assert result.resolve_position(result.warnings[-1].location) == (1, 3)


class TestSourceFile:
    """Test offset to line/column mapping."""

    def test_location(self):
        """Offsets map to 0-based line and column."""
        source = SourceFile(0, "map.rms", "ab\ncd\n\nef")
        assert source.location(0) == (0, 0)
        assert source.location(2) == (0, 2)
        assert source.location(3) == (1, 0)
        assert source.location(6) == (2, 0)
        assert source.location(8) == (3, 1)
        assert source.line_count == 4

    def test_out_of_range_offset(self):
        """Offsets past the end clamp to the last position."""
        source = SourceFile(0, "map.rms", "ab")
        assert source.location(100) == (0, 2)

    def test_line_text(self):
        """Line text excludes the line ending."""
        source = SourceFile(0, "map.rms", "first\r\nsecond")
        assert source.line_text(0) == "first"
        assert source.line_text(1) == "second"
        assert source.line_start(1) == 7

    def test_byte_offset(self):
        """Character offsets convert to UTF-8 byte offsets."""
        source = SourceFile(0, "map.rms", "é x")
        assert source.byte_offset(2) == 3

    def test_zip_rms(self):
        """ZR@ file names are recognised."""
        assert SourceFile(0, "maps/ZR@arena.rms", "").is_zip_rms
        assert not SourceFile(0, "maps/arena.rms", "").is_zip_rms

    def test_source_files(self):
        """Files get ids in the order they are added."""
        files = SourceFiles()
        assert files.add("a.rms", "") == 0
        assert files.add("b.rms", "") == 1
        assert [f.name for f in files] == ["a.rms", "b.rms"]
        assert files[1].file_id == 1


class TestDiagnostics:
    """Test warning construction."""

    def test_chaining(self):
        """Builder methods return the warning."""
        location = SourceLocation(0, 1, 4)
        warning = Warning.error(location, "Problem") \
            .with_code("demo") \
            .add_note(SourceLocation(0, 0, 1), "Related") \
            .suggest(Suggestion(location, "Fix it").replace("abc"))
        assert warning.severity == Severity.ERROR
        assert str(warning) == "error [demo]: Problem"
        assert warning.notes[0].message == "Related"
        assert warning.suggestions[0].replacement.is_fixable

    def test_unsafe_replacement(self):
        """Unsafe replacements are only applied on request."""
        suggestion = Suggestion(SourceLocation(0, 0, 1), "Maybe").replace_unsafe("x")
        assert not suggestion.replacement.is_fixable
        assert suggestion.replacement.is_fixable_unsafe

    def test_suggestion_is_immutable(self):
        """replace() returns a new suggestion."""
        suggestion = Suggestion(SourceLocation(0, 0, 1), "Maybe")
        fixed = suggestion.replace("x")
        assert suggestion.replacement.text is None
        assert fixed.replacement.text == "x"

    def test_to_dict(self):
        """Warnings serialise to plain dicts."""
        warning = Warning.warning(SourceLocation(0, 1, 4), "Careful").with_code("demo")
        data = warning.to_dict()
        assert data['severity'] == "warning"
        assert data['code'] == "demo"
        assert data['location'] == {'file': 0, 'start': 1, 'end': 4}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
