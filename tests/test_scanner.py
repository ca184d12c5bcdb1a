"""
Scanner tests - brackets, terminators and suppression

Tests the line-oriented heuristic scanner on small zen-nix snippets.
"""

from zennix.lib.scanner import Scanner, comment_strip, scan


def codes(diagnostics):
    return [d.code for d in diagnostics]


class TestCleanDocuments:
    """Well-formed documents produce no diagnostics"""

    def test_empty_document(self):
        """Empty text has nothing to report"""
        assert scan("") == []

    def test_nested_attribute_set(self):
        """A terminated nested set is clean"""
        text = "a = {\n  b = 1;\n  c = \"x\";\n};"
        assert scan(text) == []

    def test_let_in_continuation(self):
        """A closing brace followed by 'in' needs no ';'"""
        text = "let\n  a = {\n    b = 1;\n  }\nin a"
        assert scan(text) == []

    def test_comment_only_lines(self):
        """Comment lines are ignored"""
        text = "# header\na = 1; # trailing\n  # indented"
        assert scan(text) == []

    def test_interpolation_in_string(self):
        """'}' followed by text inside a string literal is not flagged"""
        assert scan('a = "${x}y";') == []

    def test_deterministic(self):
        """Scanning the same text twice gives the same result"""
        text = "a = {\n  foo\n}\nb = 1"
        assert scan(text) == scan(text)


class TestBrackets:
    """Bracket matching"""

    def test_unclosed_brace(self):
        """A lone '{' is reported once at its position"""
        diagnostics = scan("{")
        assert codes(diagnostics) == ["unclosed-bracket"]
        assert diagnostics[0].message == "Unclosed character '{'."
        assert diagnostics[0].range.start.line == 0
        assert diagnostics[0].range.start.character == 0
        assert diagnostics[0].range.end.character == 1

    def test_unexpected_closer(self):
        """A closer with no opener is unexpected"""
        diagnostics = scan(")")
        assert codes(diagnostics) == ["unexpected-closing"]
        assert diagnostics[0].message == "Unexpected closing character ')'."

    def test_mismatched_closer(self):
        """Wrong closer consumes the opener and is reported at its column"""
        diagnostics = scan("(]")
        assert codes(diagnostics) == ["unexpected-closing"]
        assert diagnostics[0].range.start.character == 1

    def test_unclosed_reported_innermost_first(self):
        """Brackets left open are reported from the top of the stack"""
        diagnostics = scan("a = {\n  b = [")
        unclosed = [d for d in diagnostics if d.code == "unclosed-bracket"]
        assert [d.message for d in unclosed] == [
            "Unclosed character '['.",
            "Unclosed character '{'.",
        ]


class TestStatements:
    """Statement-shape rules"""

    def test_missing_terminator(self):
        """'foo = 1' has exactly one diagnostic spanning the statement"""
        diagnostics = scan("foo = 1")
        assert len(diagnostics) == 1
        d = diagnostics[0]
        assert d.code == "missing-terminator"
        assert d.message == "Missing ';' at the end of the statement."
        assert (d.range.start.line, d.range.start.character) == (0, 0)
        assert (d.range.end.line, d.range.end.character) == (0, 7)

    def test_missing_terminator_ignores_comment(self):
        """The range ends before a trailing comment"""
        diagnostics = scan("foo = 1 # note")
        assert len(diagnostics) == 1
        assert diagnostics[0].range.end.character == 7

    def test_missing_assignment(self):
        """A bare identifier inside a set needs '='"""
        diagnostics = scan("a = {\n  foo\n};")
        assert codes(diagnostics) == ["missing-assignment"]
        d = diagnostics[0]
        assert d.message == "Missing '=' assignment."
        assert (d.range.start.line, d.range.start.character) == (1, 2)
        assert d.range.end.character == 5

    def test_opening_line_needs_no_terminator(self):
        """Lines ending in an opener are not statements yet"""
        assert scan("a = [\n  1\n];") == []


class TestClosingBraces:
    """Closing-brace termination"""

    def test_identifier_after_brace(self):
        """'}x' is flagged at the brace"""
        diagnostics = scan("a = {\n  b = 1;\n}x;")
        assert codes(diagnostics) == ["expected-terminator"]
        assert diagnostics[0].message == "Expected ';' after '}'."
        assert (diagnostics[0].range.start.line, diagnostics[0].range.start.character) == (2, 0)

    def test_brace_without_semicolon(self):
        """A line ending in '}' followed by a new statement is flagged"""
        diagnostics = scan("a = {\n  b = 1;\n}\nc = 2;")
        assert codes(diagnostics) == ["missing-brace-terminator"]
        assert diagnostics[0].message == "Missing ';' after '}'."
        assert diagnostics[0].range.start.line == 2

    def test_brace_at_end_of_document(self):
        """A final '}' has no following line to check"""
        assert scan("{\n  a = 1;\n}") == []


class TestSuppression:
    """Regions exempt from statement-shape checks"""

    def test_array_contents(self):
        """Array elements are not statements"""
        assert scan("a = [\n  foo\n  bar\n];") == []

    def test_action_block(self):
        """Action bodies are exempt until their brace closes"""
        diagnostics = scan("_action = {\n  foo bar\n};\nc = 1")
        assert codes(diagnostics) == ["missing-terminator"]
        assert diagnostics[0].range.start.line == 3

    def test_bang_block(self):
        """The '! {' shorthand opens an action block"""
        assert scan("! {\n  foo bar\n};") == []

    def test_raw_string(self):
        """Lines inside '' strings are not checked"""
        assert scan("a = ''\n  foo bar\n'';") == []

    def test_scanner_resets_between_runs(self):
        """A Scanner instance starts each pass from a fresh state"""
        scanner = Scanner("a = ''\n  foo bar")
        first = scanner.scan()
        assert scanner.scan() == first


class TestCommentStrip:
    """Comment removal"""

    def test_strips_trailing_comment(self):
        assert comment_strip("a = 1; # note") == "a = 1; "

    def test_escaped_hash_kept(self):
        assert comment_strip("a = \\#b;") == "a = \\#b;"
