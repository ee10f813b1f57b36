"""
Tests for inline suppression comments.
"""

from pascallint.engine.suppressions import SuppressionParser, filter_suppressed_issues
from pascallint.engine.types import Issue, Position, Range


def issue_on_line(rule_id, line):
    start = Position(line, 0, 0)
    return Issue(rule_id=rule_id, severity="error", message="m", range=Range(start, start))


class TestSuppressionParser:

    def test_line_comment_with_ids(self):
        parser = SuppressionParser("with A do B;  // pascallint-disable-line no-with, dangling-semicolon\n")

        assert parser.is_suppressed("no-with", 0)
        assert parser.is_suppressed("dangling-semicolon", 0)
        assert not parser.is_suppressed("pascal-case", 0)
        assert not parser.is_suppressed("no-with", 1)

    def test_brace_and_paren_comments(self):
        parser = SuppressionParser(
            "x := 1; { pascallint-disable-line one-var-* }\n"
            "y := 2; (* pascallint-disable-line *)\n"
        )

        assert parser.is_suppressed("one-var-per-line", 0)
        assert not parser.is_suppressed("no-with", 0)
        assert parser.is_suppressed("anything", 1)

    def test_bare_directive_suppresses_all(self):
        parser = SuppressionParser("Obj.Free; // pascallint-disable-line")
        assert parser.is_suppressed("use-free-and-nil", 0)
        assert parser.is_suppressed("check-assigned", 0)

    def test_no_directives(self):
        parser = SuppressionParser("begin\nend.")
        assert not parser
        assert parser.line_suppressions == {}

    def test_bytes_input(self):
        parser = SuppressionParser("with A do; // pascallint-disable-line no-with".encode("utf-8"))
        assert parser.is_suppressed("no-with", 0)


class TestFilterSuppressedIssues:

    def test_filters_matching_issues_only(self):
        source = "begin\n  with A do B; // pascallint-disable-line no-with\nend."
        issues = [issue_on_line("no-with", 1), issue_on_line("pascal-case", 1), issue_on_line("no-with", 2)]

        kept = filter_suppressed_issues(issues, source)

        assert [(i.rule_id, i.range.start.line) for i in kept] == [("pascal-case", 1), ("no-with", 2)]

    def test_unsuppressed_source_returns_same_list(self):
        issues = [issue_on_line("no-with", 0)]
        assert filter_suppressed_issues(issues, "with A do B;") is issues

    def test_accepts_a_parser(self):
        parser = SuppressionParser("x; // pascallint-disable-line")
        assert filter_suppressed_issues([issue_on_line("r", 0)], parser) == []
