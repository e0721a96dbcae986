"""Tests for flexcontrol.control.document."""

import pytest

from flexcontrol.control.document import ControlDocument, parse_control_lines
from flexcontrol.core.exceptions import (
    ConfigurationError,
    ControlParseError,
    DomainRangeError,
    MissingResourceError,
    ParseError,
)

# =============================================================================
# Parsing
# =============================================================================

class TestParseControlLines:
    """Tests for parse_control_lines."""

    def test_splits_on_first_whitespace_run(self):
        pairs = parse_control_lines(["TYPE AN FC FC", "GRID   0.5"])
        assert pairs == [("TYPE", "AN FC FC"), ("GRID", "0.5")]

    def test_skips_blank_lines(self):
        pairs = parse_control_lines(["CLASS EA\n", "\n", "   \n", "STREAM OPER\n"])
        assert [name for name, _ in pairs] == ["CLASS", "STREAM"]

    def test_canonicalizes_names(self):
        assert parse_control_lines(["class ea"]) == [("CLASS", "ea")]

    def test_strips_line_terminators_only(self):
        assert parse_control_lines(["PREFIX EN \r\n"]) == [("PREFIX", "EN ")]

    def test_malformed_line_raises(self):
        with pytest.raises(ControlParseError, match="NOVALUE"):
            parse_control_lines(["CLASS EA", "NOVALUE"])

    def test_error_carries_line_number(self):
        with pytest.raises(ControlParseError) as exc_info:
            parse_control_lines(["CLASS EA", "", "BROKEN"])
        assert exc_info.value.line_number == 3
        assert exc_info.value.line == "BROKEN"

    def test_control_parse_error_is_parse_error(self):
        assert issubclass(ControlParseError, ParseError)


# =============================================================================
# Load / save
# =============================================================================

class TestLoadSave:
    """Tests for ControlDocument.load and save."""

    def test_load_preserves_order(self, control_file):
        doc = ControlDocument.load(control_file)
        assert list(doc)[:3] == ["START_DATE", "DTIME", "TYPE"]
        assert doc["CLASS"] == "OD"

    def test_load_missing_file_raises(self, tmp_path):
        with pytest.raises(MissingResourceError):
            ControlDocument.load(tmp_path / "CONTROL_missing")

    def test_load_malformed_file_raises(self, tmp_path):
        path = tmp_path / "CONTROL_bad"
        path.write_text("CLASS EA\nBROKEN\n")
        with pytest.raises(ControlParseError, match="BROKEN"):
            ControlDocument.load(path)

    def test_save_is_byte_identical(self, tmp_path):
        path = tmp_path / "CONTROL"
        path.write_text("CLASS EA\nSTREAM OPER\n")
        ControlDocument.load(path).save()
        assert path.read_text() == "CLASS EA\nSTREAM OPER\n"

    def test_save_uppercases_names(self, tmp_path):
        path = tmp_path / "CONTROL"
        path.write_text("class EA\nstream OPER\n")
        ControlDocument.load(path).save()
        assert path.read_text() == "CLASS EA\nSTREAM OPER\n"

    def test_round_trip(self, control_file, tmp_path):
        original = ControlDocument.load(control_file)
        copy_path = original.save(tmp_path / "CONTROL_copy")
        reloaded = ControlDocument.load(copy_path)
        assert list(reloaded.items()) == list(original.items())

    def test_save_writes_numbers(self, tmp_path):
        doc = ControlDocument({"resol": 799, "grid": 0.5}, path=tmp_path / "CONTROL")
        doc.save()
        assert (tmp_path / "CONTROL").read_text() == "RESOL 799\nGRID 0.5\n"

    def test_save_without_path_raises(self):
        with pytest.raises(ConfigurationError):
            ControlDocument({"CLASS": "EA"}).save()

    def test_from_text(self):
        doc = ControlDocument.from_text("CLASS EA\n\nSTREAM OPER\n")
        assert doc.format() == ["CLASS EA", "STREAM OPER"]


# =============================================================================
# Merge and mapping behaviour
# =============================================================================

class TestMerge:
    """Tests for ControlDocument.merge."""

    def test_overwrite_keeps_position(self):
        doc = ControlDocument.from_text("CLASS OD\nSTREAM OPER\nGRID 0.1\n")
        doc.merge({"STREAM": "ENFO"})
        assert doc.format() == ["CLASS OD", "STREAM ENFO", "GRID 0.1"]

    def test_new_keys_appended_in_order(self):
        doc = ControlDocument.from_text("CLASS OD\n")
        doc.merge([("LOWER", 40.0), ("UPPER", 50.0)])
        assert list(doc) == ["CLASS", "LOWER", "UPPER"]

    def test_case_insensitive(self):
        doc = ControlDocument.from_text("CLASS OD\n")
        doc.merge({"class": "EA"})
        assert len(doc) == 1
        assert doc["Class"] == "EA"
        assert "class" in doc

    def test_returns_document(self):
        doc = ControlDocument()
        assert doc.merge({"A": 1}) is doc

    def test_delete(self):
        doc = ControlDocument.from_text("CLASS OD\nSTREAM OPER\n")
        del doc["class"]
        assert list(doc) == ["STREAM"]


class TestTypedAccessors:
    """Tests for the typed getters."""

    def test_get_str_default(self):
        assert ControlDocument().get_str("CLASS", "") == ""

    def test_get_int_and_float(self):
        doc = ControlDocument.from_text("RESOL 1279\nGRID 0.1\n")
        assert doc.get_int("RESOL") == 1279
        assert doc.get_float("grid") == pytest.approx(0.1)

    def test_get_int_rejects_text(self):
        doc = ControlDocument.from_text("RESOL high\n")
        with pytest.raises(DomainRangeError, match="RESOL"):
            doc.get_int("RESOL")

    def test_get_list_slash_separated(self):
        doc = ControlDocument.from_text("NUMBER 3/14/27\n")
        assert doc.get_list("NUMBER") == ["3", "14", "27"]

    def test_get_list_space_separated(self):
        doc = ControlDocument.from_text("TIME 00 00 12 12\n")
        assert doc.get_list("TIME") == ["00", "00", "12", "12"]

    def test_get_list_missing(self):
        assert ControlDocument().get_list("TIME") == []
