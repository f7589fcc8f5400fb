"""Tests for C declaration extraction."""

import pytest
from cscan.parsers.base import ParseError, Position
from cscan.parsers.c import CParser


class TestCDeclarationExtraction:
    """Test variable and parameter extraction from C code."""

    @pytest.fixture
    def parser(self):
        """Create a C parser instance."""
        return CParser()

    def declarations(self, parser, code):
        return parser.extract_declarations(parser.parse(code))

    def test_uninitialized_local(self, parser):
        """Test a plain local declaration."""
        decls = self.declarations(parser, """int main(void) {
    int x;
    return 0;
}
""")
        assert len(decls) == 1
        x = decls[0]
        assert x.name == "x"
        assert x.declared_type == "int"
        assert x.position == Position(row=1, column=8)
        assert x.is_initialized is False
        assert x.is_parameter is False
        assert x.scope_key == "main:1"
        assert x.initializer is None

    def test_initialized_pointer(self, parser):
        """Test a pointer with a NULL initializer."""
        decls = self.declarations(parser, """int main(void) {
    int *p = NULL;
    return 0;
}
""")
        assert len(decls) == 1
        p = decls[0]
        assert p.name == "p"
        assert p.is_pointer is True
        assert p.is_initialized is True
        assert p.initializer == "NULL"

    def test_multiple_declarators(self, parser):
        """Pointer and array shape is per declarator."""
        decls = self.declarations(parser, "int a, *b, c[4];\n")
        by_name = {d.name: d for d in decls}
        assert set(by_name) == {"a", "b", "c"}
        assert by_name["a"].is_pointer is False
        assert by_name["b"].is_pointer is True
        assert by_name["c"].is_array is True
        assert all(d.scope_key == "global" for d in decls)

    def test_parameters_are_initialized(self, parser):
        """Test that parameters count as initialized."""
        decls = self.declarations(parser, """int add(int a, char *s) {
    return a;
}
""")
        params = [d for d in decls if d.is_parameter]
        assert [p.name for p in params] == ["a", "s"]
        assert all(p.is_initialized for p in params)
        assert all(p.scope_key == "add:1" for p in params)
        assert params[1].is_pointer is True

    def test_void_parameter_list(self, parser):
        decls = self.declarations(parser, "int main(void) { return 0; }\n")
        assert decls == []

    def test_nested_block_scope(self, parser):
        """Inner blocks get a deeper scope key."""
        decls = self.declarations(parser, """void f(void) {
    int outer;
    {
        int inner;
    }
}
""")
        by_name = {d.name: d for d in decls}
        assert by_name["outer"].scope_key == "f:1"
        assert by_name["inner"].scope_key == "f:2"

    def test_prototypes_are_not_variables(self, parser):
        """Function declarators do not declare variables."""
        decls = self.declarations(parser, "int foo(int value);\n")
        assert decls == []

    def test_struct_members_are_not_declarations(self, parser):
        """Struct fields never enter the declaration list."""
        decls = self.declarations(parser, """struct point {
    int x;
    int y;
};
""")
        assert decls == []

    def test_storage_class(self, parser):
        decls = self.declarations(parser, "extern int shared;\nstatic int counter;\n")
        by_name = {d.name: d for d in decls}
        assert by_name["shared"].storage_class == "extern"
        assert by_name["counter"].storage_class == "static"

    def test_unicode_column_is_in_characters(self, parser):
        """Columns count characters, not UTF-8 bytes."""
        decls = self.declarations(parser, """int main(void) {
    /* é */ int x;
    return 0;
}
""")
        assert decls[0].position.column == 16


class TestCParseErrors:
    """Test parse failure handling."""

    def test_strict_parser_rejects_syntax_errors(self):
        parser = CParser()
        with pytest.raises(ParseError):
            parser.parse("int main( {\n")

    def test_lenient_parser_keeps_partial_tree(self):
        parser = CParser(strict=False)
        tree = parser.parse("int main( {\n")
        assert tree.has_errors is True

    def test_valid_source_has_no_errors(self):
        parser = CParser()
        tree = parser.parse("int main(void) { return 0; }\n")
        assert tree.has_errors is False
        assert tree.lines == ["int main(void) { return 0; }", ""]
