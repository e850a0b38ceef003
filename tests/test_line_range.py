import pytest

from revu.diff_model import DiffInfo
from revu.line_range import (
    INVALID_FORMAT,
    INVALID_NUMBERS,
    INVALID_RANGE,
    LineRange,
    LineSpecError,
    lines_in_diff,
    parse_line_spec,
)


class TestParseLineSpec:
    def test_single_line(self):
        assert parse_line_spec("42") == LineRange(is_range=False, start_line=42)

    def test_range(self):
        r = parse_line_spec("10-12")
        assert r == LineRange(is_range=True, start_line=10, end_line=12)
        assert list(r.lines()) == [10, 11, 12]

    def test_equal_bounds_is_a_range(self):
        r = parse_line_spec("7-7")
        assert r.is_range
        assert list(r.lines()) == [7]

    def test_empty_is_invalid_format(self):
        with pytest.raises(LineSpecError) as exc:
            parse_line_spec("")
        assert exc.value.reason == INVALID_FORMAT

    @pytest.mark.parametrize("spec", ["abc", "1-x", "x-2", "1.5", "-"])
    def test_non_numeric_is_invalid_numbers(self, spec):
        with pytest.raises(LineSpecError) as exc:
            parse_line_spec(spec)
        assert exc.value.reason == INVALID_NUMBERS
        assert exc.value.spec == spec

    def test_reversed_range_is_invalid_range(self):
        with pytest.raises(LineSpecError) as exc:
            parse_line_spec("12-10")
        assert exc.value.reason == INVALID_RANGE

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_line_spec("nope")


class TestLinesInDiff:
    def test_all_lines_changed(self):
        info = DiffInfo(changed_lines={10, 11, 12})
        assert lines_in_diff(parse_line_spec("10-12"), info)

    def test_one_line_missing(self):
        info = DiffInfo(changed_lines={10, 12})
        assert not lines_in_diff(parse_line_spec("10-12"), info)

    def test_single_line(self):
        info = DiffInfo(changed_lines={5})
        assert lines_in_diff(parse_line_spec("5"), info)
        assert not lines_in_diff(parse_line_spec("6"), info)

    def test_file_not_in_diff(self):
        assert not lines_in_diff(parse_line_spec("1"), None)
