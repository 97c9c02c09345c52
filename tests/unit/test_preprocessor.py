"""
Unit Tests for the Line Preprocessor
====================================
"""

from templater.core.dsl.preprocessor import (
    LogicalLine,
    is_ignorable,
    iter_logical_lines,
    split_lines,
)


class TestSplitLines:
    """Test physical line splitting."""

    def test_split_lf_and_crlf(self):
        assert split_lines("a\r\nb\nc") == ["a", "b", "c"]

    def test_split_keeps_empty_lines(self):
        assert split_lines("a\n\nb") == ["a", "", "b"]


class TestIgnorableLines:
    """Test comment and blank line detection."""

    def test_comment_lines(self):
        assert is_ignorable("// comment")
        assert is_ignorable("   \t// indented comment")
        assert is_ignorable("//")

    def test_blank_lines(self):
        assert is_ignorable("")
        assert is_ignorable("  \t ")

    def test_declarations_are_kept(self):
        assert not is_ignorable("$a = 'x' // trailing text is not a comment line")
        assert not is_ignorable("@g = Greeter")


class TestLogicalLines:
    """Test logical line assembly."""

    def test_single_lines_are_trimmed(self):
        lines = list(iter_logical_lines(["  $a = 'x'  ", "$b = 'y'"]))
        assert lines == [LogicalLine("$a = 'x'", 1), LogicalLine("$b = 'y'", 2)]

    def test_comments_and_blanks_dropped(self):
        lines = list(iter_logical_lines(["// header", "", "$a = 'x'", "   ", "//"]))
        assert [line.text for line in lines] == ["$a = 'x'"]
        assert lines[0].line == 3

    def test_continuation_joins_trimmed_lines(self):
        lines = list(
            iter_logical_lines(
                [
                    "@svc = Provider { \\",
                    "    id = $id; \\",
                    "    name = $name; \\",
                    "}",
                ]
            )
        )
        assert len(lines) == 1
        assert lines[0].text == "@svc = Provider { id = $id; name = $name; }"
        assert lines[0].line == 1

    def test_continued_literal_ignores_indentation(self):
        lines = list(iter_logical_lines(["$a = 'hello \\", "        world'"]))
        assert lines[0].text == "$a = 'hello world'"

    def test_literal_without_space_before_marker(self):
        lines = list(iter_logical_lines(["$a = 'foo\\", "  bar'"]))
        assert lines[0].text == "$a = 'foobar'"

    def test_comment_inside_continuation_is_skipped(self):
        lines = list(iter_logical_lines(["$a = 'x\\", "// note", "y'"]))
        assert [line.text for line in lines] == ["$a = 'xy'"]

    def test_dangling_continuation_is_flushed(self):
        lines = list(iter_logical_lines(["$a = 'x'", "$b = 'y' \\"]))
        assert [line.text for line in lines] == ["$a = 'x'", "$b = 'y'"]

    def test_line_numbers_offset(self):
        lines = list(iter_logical_lines(["", "$a = 'x'"], first_line=10))
        assert lines[0].line == 11
