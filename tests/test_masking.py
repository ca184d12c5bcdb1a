"""
Masking engine tests - formatting and parse-check modes

Formatting-mode tests feed the masked text back unchanged (an identity
formatter), so restoring must reproduce the original.
"""

import pytest

from zennix.config import appsettings
from zennix.lib.masking import Masker, filler_make, wrap_isNeeded
from zennix.models.masking import ParseMask, PlaceholderKind, PlaceholderMap


def identity_roundtrip(text):
    masker = Masker()
    mask = masker.format_mask(text)
    return mask, masker.format_restore(mask.text, mask)


class TestFormatMask:
    """Formatting-mode substitution"""

    def test_structural_node(self):
        """A bare node is masked, wrapped, and restored"""
        mask, restored = identity_roundtrip("(zmdl target)")
        assert mask.text == "{\n__ZEN_NODE_0__\n}"
        assert mask.wrapped is True
        assert restored == "(zmdl target)\n"

    def test_variable_keeps_path(self):
        """Only the $name part of $v.port is replaced"""
        mask, restored = identity_roundtrip("a = $v.port;")
        assert "__ZEN_VAR_0__.port" in mask.text
        assert "$" not in mask.text
        assert restored == "a = $v.port;\n"

    def test_simple_declaration(self):
        mask, restored = identity_roundtrip("_let port : $type.int = 8080;")
        assert "__ZEN_LET_0__ = 8080;" in mask.text
        assert restored == "_let port : $type.int = 8080;\n"

    def test_enum_declaration_split(self):
        """An option list becomes its own statement between linked tokens"""
        text = '_let m : $type.enum [ "a" "b" ] = "a";'
        mask, restored = identity_roundtrip(text)
        assert '__ZEN_LET_S_0__ = [ "a" "b" ];\n__ZEN_LET_E_0__ = "a";' in mask.text
        assert restored == text + "\n"

    def test_bang_shorthand(self):
        mask, restored = identity_roundtrip("! { foo = 1; };")
        assert "__ZEN_BANG_0__ = {" in mask.text
        assert restored == "! { foo = 1; };\n"

    def test_braced_document_not_wrapped(self):
        mask, restored = identity_roundtrip("{ a = $x; }")
        assert mask.wrapped is False
        assert restored == "{ a = $x; }"

    def test_prefix_collision(self):
        """A prefix already present in the source is extended"""
        masker = Masker()
        mask = masker.format_mask("__ZEN_VAR_0__ = $x;")
        tokens = [p.token for p in mask.placeholders.entries]
        assert tokens == ["__ZENZ_VAR_0__"]
        assert masker.format_restore(mask.text, mask) == "__ZEN_VAR_0__ = $x;\n"


class TestFormatRestore:
    """Restoring formatter output"""

    def test_unwrap_removes_indentation(self):
        """Indentation added inside the synthetic braces is removed"""
        masker = Masker()
        mask = masker.format_mask("a = $x;\nb = 2;")
        formatted = "{\n  a = __ZEN_VAR_0__;\n  b = 2;\n}\n"
        assert masker.format_restore(formatted, mask) == "a = $x;\nb = 2;\n"

    def test_bang_spacing_restored(self):
        """The formatter's spacing around the brace is replaced by the original"""
        masker = Masker()
        mask = masker.format_mask("{ !{ a = 1; }; }")
        formatted = "{\n  __ZEN_BANG_0__ =\n    { a = 1; };\n}\n"
        assert masker.format_restore(formatted, mask) == "{\n  !{ a = 1; };\n}\n"


class TestParseMask:
    """Length-preserving parse-check substitution"""

    def test_length_preserved(self):
        """Every line keeps its length when no wrapping is needed"""
        text = "{\n  _let x : int = 5;\n  a = $v.x;\n  b = (zmdl t);\n  ! {\n    c = 1;\n  };\n}"
        mask = Masker().parse_mask(text)
        assert mask.wrapped is False
        assert len(mask.text) == len(text)
        assert [len(line) for line in mask.text.split("\n")] == [len(line) for line in text.split("\n")]

    def test_constructs_replaced(self):
        mask = Masker().parse_mask("{\n  a = $v.x;\n  ! {\n  };\n}")
        assert "$" not in mask.text
        assert "!" not in mask.text
        assert "_={" in mask.text

    def test_multiline_node_keeps_newlines(self):
        text = "{\n  a = (import ./x.nix {\n    b = 1;\n  });\n}"
        mask = Masker().parse_mask(text)
        assert mask.text.count("\n") == text.count("\n")
        assert len(mask.text) == len(text)

    def test_wrapped_offset(self):
        mask = Masker().parse_mask("a = $x;")
        assert mask.wrapped is True
        assert mask.line_offset == 1
        assert mask.text == "{\na = v ;\n}"

    def test_bang_without_space(self):
        """'!{' borrows the preceding space for the '='"""
        assert Masker.bangs_fill("  !{ };") == " _={ };"


class TestErrorRemap:
    """Mapping parser errors back to the original document"""

    def test_wrapped_line_shift(self):
        mask = ParseMask(text="", wrapped=True, line_offset=1)
        d = Masker.error_remap(
            "error: syntax error, unexpected end of file at (stdin):3:5", mask, line_count=5
        )
        assert d.message == "Syntax Error: syntax error, unexpected end of file"
        assert d.source == "nix"
        assert (d.range.start.line, d.range.start.character) == (1, 4)
        assert d.range.end.character == 5

    def test_multiline_error_format(self):
        mask = ParseMask(text="", wrapped=False, line_offset=0)
        stderr = "error: syntax error, unexpected ';'\n\n       at «stdin»:2:7:\n"
        d = Masker.error_remap(stderr, mask, line_count=3)
        assert d.message == "Syntax Error: syntax error, unexpected ';'"
        assert (d.range.start.line, d.range.start.character) == (1, 6)

    def test_line_clamped(self):
        mask = ParseMask(text="", wrapped=True, line_offset=1)
        d = Masker.error_remap("error: unexpected '}' at (stdin):9:1", mask, line_count=2)
        assert d.range.start.line == 1

    def test_unrecognized_output(self):
        mask = ParseMask(text="", wrapped=False, line_offset=0)
        assert Masker.error_remap("segmentation fault", mask, line_count=1) is None


class TestHelpers:
    """Filler, wrapping and placeholder record"""

    def test_filler(self):
        assert filler_make("$v.port", "v") == "v      "
        assert filler_make("_let x : int =", "_", "=") == "_            ="
        assert filler_make("(a\nb)", "n") == "n \n  "

    def test_wrap_detection(self):
        assert wrap_isNeeded("a = 1;") is True
        assert wrap_isNeeded("{ a = 1; }") is False
        assert wrap_isNeeded("let a = 1; in a") is False
        assert wrap_isNeeded("{ pkgs, ... }: { }") is False

    def test_placeholder_make(self):
        assert appsettings.placeHolder_make("NODE", 3) == "__ZEN_NODE_3__"
        assert appsettings.placeHolder_make("VAR", 0, prefix="__X_") == "__X_VAR_0__"

    def test_duplicate_token_rejected(self):
        placeholders = PlaceholderMap()
        placeholders.add("__ZEN_VAR_0__", "$x", PlaceholderKind.VAR)
        with pytest.raises(ValueError):
            placeholders.add("__ZEN_VAR_0__", "$y", PlaceholderKind.VAR)

    def test_restore_order_newest_first(self):
        placeholders = PlaceholderMap()
        placeholders.add("A", "$a", PlaceholderKind.VAR)
        placeholders.add("B", "$b", PlaceholderKind.VAR)
        assert [p.token for p in placeholders.restoreOrder()] == ["B", "A"]


class TestDeclarationBoundaries:
    """Declaration heads that must not be masked"""

    def test_head_in_comment_left_alone(self):
        """A commented-out declaration does not swallow the next statement"""
        text = "# usage: _let name : type\na = 1;\n"
        mask, restored = identity_roundtrip(text)
        assert "LET" not in mask.text
        assert "a = 1;" in mask.text.split("\n")
        assert restored == text

    def test_declaration_without_value(self):
        """The search for '=' stops at the statement's ';'"""
        text = "_let x : int;\na = 1;"
        mask, restored = identity_roundtrip(text)
        assert "LET" not in mask.text
        assert restored == text + "\n"

    def test_assignment_stops_at_semicolon(self):
        assert Masker.assignment_find("_let x : int; a = 1;", 12) == -1
        assert Masker.assignment_find('_let m : enum [ "a;" ] = "a";', 13) == 23
