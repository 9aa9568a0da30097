"""Tests for the fuzzy patch locator."""

import pytest

from ctxedit.patch import STRATEGIES, MatchStrategy, locate


def patched(content: str, old: str, new: str, hint=None) -> str:
    """Helper: locate and return the patched content, asserting success."""
    result = locate(content, old, new, hint)
    assert result.found, result.error
    return result.patched_content


class TestExactMatch:
    def test_single_occurrence(self):
        result = locate("a\nb\nc\n", "b", "B")
        assert result.found
        assert result.strategy == "exact"
        assert result.match_count == 1
        assert result.match_line == 2
        assert result.patched_content == "a\nB\nc\n"
        assert result.error is None

    def test_multiline_pattern(self):
        content = "one\ntwo\nthree\nfour\n"
        assert patched(content, "two\nthree", "2\n3") == "one\n2\n3\nfour\n"

    def test_replacement_can_delete(self):
        assert patched("keep\ndrop\nkeep2\n", "drop\n", "") == "keep\nkeep2\n"

    def test_prefers_exact_over_fuzzy(self):
        content = "x = 1\nx  =  1\n"
        result = locate(content, "x  =  1", "y = 2")
        assert result.strategy == "exact"
        assert result.patched_content == "x = 1\ny = 2\n"


class TestEmptyPattern:
    @pytest.mark.parametrize("old", ["", "   ", "\n\t\n"])
    def test_rejected(self, old):
        result = locate("anything", old, "x")
        assert not result.found
        assert result.reason == "empty_pattern"
        assert "empty" in result.error
        assert result.patched_content is None


class TestWhitespaceTolerance:
    def test_trailing_whitespace_in_file(self):
        content = "def f():  \n    return 1\n"
        result = locate(content, "def f():\n    return 1", "def f():\n    return 2")
        assert result.strategy == "whitespace-normalized"
        assert result.patched_content == "def f():\n    return 2\n"

    def test_trailing_whitespace_in_pattern(self):
        content = "x = 1\ny = 2\nz = 3\n"
        result = locate(content, "x = 1   \ny = 2", "x = 10\ny = 20")
        assert result.strategy == "whitespace-normalized"
        assert result.patched_content == "x = 10\ny = 20\nz = 3\n"

    def test_inner_whitespace_runs(self):
        result = locate("if (a  &&  b) {\n}\n", "if (a && b) {", "if (a || b) {")
        assert result.strategy == "whitespace-collapsed"
        assert result.patched_content == "if (a || b) {\n}\n"

    def test_crlf_file_with_lf_pattern(self):
        result = locate("a\r\nb\r\nc\r\n", "a\nb", "A\nB")
        assert result.strategy == "line-ending-normalized"
        assert result.match_line == 1
        assert result.patched_content == "A\nB\r\nc\r\n"

    def test_crlf_file_with_trailing_spaces(self):
        result = locate("x = call(a)  \r\ny = 2\r\n", "call(a)\ny", "call(b)\ny")
        assert result.strategy == "line-ending-normalized"
        assert result.patched_content == "x = call(b)\ny = 2\r\n"

    def test_indentation_drift(self):
        content = "class A:\n    def f(self):\n        return 1\n"
        result = locate(content, "def f(self):\n    return 1", "def f(self):\n    return 2")
        assert result.strategy == "indentation-agnostic"
        assert result.match_line == 2
        assert result.patched_content == "class A:\n    def f(self):\n        return 2\n"

    def test_outdent_shifts_every_line(self):
        content = "def f():\n    return 1\n"
        old = "    def f():\n        return 1"
        new = "    def f():\n        x = 1\n  # odd\n        return x"
        result = locate(content, old, new)
        assert result.strategy == "indentation-agnostic"
        assert result.patched_content == "def f():\n    x = 1\n# odd\n    return x\n"

    def test_tab_indented_file(self):
        content = "if x:\n\tcall(1)\n\tcall(2)\n"
        result = locate(content, "call(1)\ncall(2)", "call(3)\ncall(4)")
        assert result.strategy == "indentation-agnostic"
        assert result.patched_content == "if x:\n\tcall(3)\n\tcall(4)\n"


class TestLineWindowStrategies:
    def test_line_fuzzy_tolerates_one_changed_line(self):
        content = "def f():\n    a = 1\n    b = 2\n    c = 3\n    return a\n"
        old = "a = 1\nb = 20\nc = 3\nreturn a"
        result = locate(content, old, old)
        assert result.strategy == "line-fuzzy"
        assert result.match_line == 2
        assert result.patched_content == "def f():\n    a = 1\n    b = 20\n    c = 3\n    return a\n"

    def test_boundary_matches_first_and_last_line(self):
        content = "start()\nx1\nx2\nx3\nend()\n"
        result = locate(content, "start()\ny1\ny2\ny3\nend()", "start()\nz\nend()")
        assert result.strategy == "boundary"
        assert result.match_line == 1
        assert result.patched_content == "start()\nz\nend()\n"

    def test_substring_spans_inserted_line(self):
        content = 'alpha = compute_alpha()\nlog("between")\nbeta = compute_beta()\n'
        old = "alpha = compute_alpha()\nbeta = compute_beta()"
        result = locate(content, old, "alpha = 1\nbeta = 2")
        assert result.strategy == "substring"
        assert result.match_line == 1
        assert result.patched_content == "alpha = 1\nbeta = 2\n"

    def test_levenshtein_single_line_edit(self):
        result = locate("a = 1\nb = 3\n", "a = 1\nb = 2", "a = 1\nb = 4")
        assert result.strategy == "levenshtein"
        assert result.match_line == 1
        assert result.patched_content == "a = 1\nb = 4\n"

    def test_fuzzy_matches_can_be_ambiguous(self):
        content = "a = 1\nb = 3\nsep\na = 1\nb = 3\n"
        result = locate(content, "a = 1\nb = 2", "a = 1\nb = 4")
        assert not result.found
        assert result.reason == "ambiguous"
        assert result.details["match_count"] == 2
        assert result.details["match_lines"] == [1, 4]
        assert result.details["strategy"] == "levenshtein"

    def test_hint_resolves_fuzzy_ambiguity(self):
        content = "a = 1\nb = 3\nsep\na = 1\nb = 3\n"
        result = locate(content, "a = 1\nb = 2", "a = 1\nb = 4", start_line_hint=4)
        assert result.match_line == 4
        assert result.patched_content == "a = 1\nb = 3\nsep\na = 1\nb = 4\n"


class TestEscapeNormalization:
    def test_double_escaped_quotes(self):
        content = 'print("hi")\n'
        result = locate(content, 'print(\\"hi\\")', 'print("bye")')
        assert result.strategy == "escape-normalized"
        assert result.patched_content == 'print("bye")\n'

    def test_literal_backslash_quote_matches_exactly(self):
        content = 's = "say \\"hi\\""\n'
        result = locate(content, '\\"hi\\"', '\\"bye\\"')
        assert result.strategy == "exact"
        assert result.patched_content == 's = "say \\"bye\\""\n'


class TestMultipleOccurrences:
    CONTENT = "x = 1\ny = 2\nx = 1\n"

    def test_ambiguous_without_hint(self):
        result = locate(self.CONTENT, "x = 1", "x = 3")
        assert not result.found
        assert result.reason == "ambiguous"
        assert result.match_count == 2
        assert result.details["match_count"] == 2
        assert result.details["match_lines"] == [1, 3]
        assert result.details["strategy"] == "exact"
        assert "2 locations" in result.error
        assert result.patched_content is None

    def test_hint_selects_nearest(self):
        result = locate(self.CONTENT, "x = 1", "x = 3", start_line_hint=3)
        assert result.found
        assert result.match_count == 2
        assert result.match_line == 3
        assert result.patched_content == "x = 1\ny = 2\nx = 3\n"

    def test_hint_tie_prefers_later_occurrence(self):
        result = locate(self.CONTENT, "x = 1", "x = 3", start_line_hint=2)
        assert result.match_line == 3

    def test_hint_far_away(self):
        result = locate(self.CONTENT, "x = 1", "x = 3", start_line_hint=1000)
        assert result.match_line == 3

    def test_hint_with_single_match_is_ignored(self):
        result = locate(self.CONTENT, "y = 2", "y = 5", start_line_hint=1000)
        assert result.match_line == 2
        assert result.match_count == 1


class TestNotFound:
    def test_diagnostics_point_at_similar_line(self):
        content = "import os\n\ndef calculate_total(items):\n    return sum(items)\n"
        result = locate(content, "def calculate_totals(items):\n    return 0", "x")

        assert not result.found
        assert result.reason == "not_found"
        assert result.error.startswith("old_string not found")
        assert result.details["strategies_tried"] == [s.value for s, _ in STRATEGIES]
        assert result.details["closest_line"] == 3
        assert result.details["similarity"] > 50
        assert "L3: def calculate_total(items):" in result.details["actual_content"]
        assert "near line 3" in result.details["hint"]

    def test_no_similar_line(self):
        result = locate("alpha\nbeta\n", "zzzzzzzz", "x")

        assert result.reason == "not_found"
        assert result.details["closest_line"] is None
        assert result.details["similarity"] is None
        assert result.details["actual_content"] == "L1: alpha\nL2: beta\nL3: "
        assert result.details["hint"].startswith("Re-read the file")

    def test_excerpt_is_capped(self):
        content = "\n".join(f"line{i}" for i in range(100))
        result = locate(content, "q", "x")
        assert result.details["actual_content"].count("\n") == 19

    def test_all_strategies_listed(self):
        assert [s for s, _ in STRATEGIES] == list(MatchStrategy)
