"""
Typed-declaration checker tests

Tests value/type consistency of _let declarations.
"""

from zennix.lib.typecheck import TypeChecker, statementEnd_find, typecheck


class TestAcceptedValues:
    """Values matching their declared type"""

    def test_string_values(self):
        """Double-quoted and '' strings are strings"""
        text = '_let a : $type.string = "x";\n_let b : string = \'\'raw\'\';'
        assert typecheck(text) == []

    def test_integer_values(self):
        """Signed digits are integers under both type names"""
        assert typecheck("_let a : $type.int = -5;\n_let b : integer = +7;") == []

    def test_float_values(self):
        assert typecheck("_let a : float = 1.5;\n_let b : float = 2;") == []

    def test_boolean_values(self):
        assert typecheck("_let a : boolean = true;\n_let b : $type.boolean = false;") == []

    def test_enum_member(self):
        assert typecheck('_let m : $type.enum [ "a" "b" ] = "a";') == []

    def test_unchecked_types(self):
        """Types without a literal shape are accepted as-is"""
        assert typecheck("_let a : $type.set = { x = 1; };\n_let b : color = $c.primary;") == []


class TestMismatches:
    """Values not matching their declared type"""

    def test_int_given_string(self):
        """One diagnostic spanning the quoted value"""
        text = '_let x : int = "5";'
        diagnostics = typecheck(text)
        assert len(diagnostics) == 1
        d = diagnostics[0]
        assert d.code == "type-mismatch"
        assert d.message == "Type Error: Expected an integer for 'x'."
        assert d.range.start.character == text.index('"5"')
        assert d.range.end.character == text.index('"5"') + 3

    def test_string_given_number(self):
        diagnostics = typecheck("_let s : $type.string = 5;")
        assert [d.message for d in diagnostics] == ["Type Error: Expected a string for 's'."]

    def test_float_given_word(self):
        diagnostics = typecheck("_let f : float = fast;")
        assert [d.message for d in diagnostics] == ["Type Error: Expected a float for 'f'."]

    def test_boolean_given_yes(self):
        diagnostics = typecheck("_let b : boolean = yes;")
        assert [d.message for d in diagnostics] == [
            "Type Error: Expected boolean (true/false) for 'b'."
        ]

    def test_enum_non_member(self):
        """Message lists the valid options"""
        diagnostics = typecheck('_let m : $type.enum [ "a" "b" ] = "c";')
        assert len(diagnostics) == 1
        assert diagnostics[0].code == "invalid-enum"
        assert diagnostics[0].message == (
            "Type Error: Value \"c\" is not a valid option for enum 'm'. Valid options: [a, b]"
        )

    def test_multiline_position(self):
        """Ranges are reported in line/column terms"""
        diagnostics = typecheck('a = 1;\n_let x : int = "no";')
        assert diagnostics[0].range.start.line == 1
        assert diagnostics[0].range.start.character == 15


class TestDeclarationBounds:
    """Where a declaration's value ends"""

    def test_unterminated_declaration_skipped(self):
        """Without ';' there is no value to check"""
        assert typecheck('_let x : int = "5"') == []

    def test_value_with_nested_semicolons(self):
        """Semicolons inside braces do not end the value"""
        declarations = list(TypeChecker("_let s : set = { a = 1; };").declarations_find())
        assert len(declarations) == 1
        assert declarations[0].value == "{ a = 1; }"

    def test_semicolon_in_string(self):
        assert statementEnd_find('"a;b"; x', 0) == 5

    def test_top_level_semicolon(self):
        assert statementEnd_find("{ a = 1; }; rest", 0) == 10

    def test_no_semicolon(self):
        assert statementEnd_find("{ a = 1; }", 0) == -1

    def test_enum_options_extracted(self):
        declarations = list(TypeChecker('_let m : enum [ "a" "b" ] = "a";').declarations_find())
        assert declarations[0].declared_type == "enum"
        assert declarations[0].enum_options == ["a", "b"]
