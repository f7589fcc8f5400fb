"""Tests for the variable and pointer detector."""

import pytest
from cscan.detectors.base import Category, DetectorError, Severity
from cscan.detectors.variables import VariableDetector, is_assignment_target, is_null_initializer
from cscan.parsers.base import ParseResult
from cscan.parsers.c import CParser


def summary(issues):
    return [(issue.category, issue.line) for issue in issues]


class TestAssignmentHelpers:
    """Test the write and null-initializer classifiers."""

    @pytest.mark.parametrize("line,expected", [
        ("    x = 5;", True),
        ("    x += 2;", True),
        ("    x %= 3;", True),
        ("    if (x == 5) {", False),
        ("    y = x;", False),
        ("    return x;", False),
    ])
    def test_is_assignment_target(self, line, expected):
        column = line.index("x")
        assert is_assignment_target(line, "x", column) is expected

    @pytest.mark.parametrize("initializer,expected", [
        ("NULL", True),
        ("0", True),
        ("(void*)0", True),
        ("( void * ) 0", True),
        ("&value", False),
        ("malloc(4)", False),
        (None, False),
    ])
    def test_is_null_initializer(self, initializer, expected):
        assert is_null_initializer(initializer) is expected


class TestVariableDetector:
    """Test uninitialized, wild and null pointer checks over parsed files."""

    @pytest.fixture
    def parser(self):
        """Create a C parser instance."""
        return CParser()

    def analyze(self, parser, code, flow_sensitive=False):
        result = parser.parse_source("test.c", code)
        return VariableDetector(parser, flow_sensitive=flow_sensitive).analyze("test.c", result)

    def test_read_before_write(self, parser):
        issues = self.analyze(parser, """int main(void) {
    int x;
    printf("%d", x);
    return 0;
}
""")
        assert summary(issues) == [(Category.UNINITIALIZED, 3)]
        assert issues[0].message == "Variable 'x' is used before being initialized"
        assert issues[0].severity == Severity.WARNING

    def test_only_writes_report_nothing(self, parser):
        issues = self.analyze(parser, """int main(void) {
    int x;
    x = 1;
    x += 2;
    return 0;
}
""")
        assert issues == []

    def test_read_after_write_is_still_reported(self, parser):
        """The default analysis does not order writes before reads."""
        code = """int main(void) {
    int x;
    x = 5;
    return x;
}
"""
        assert summary(self.analyze(parser, code)) == [(Category.UNINITIALIZED, 4)]
        assert self.analyze(parser, code, flow_sensitive=True) == []

    def test_initialized_declaration(self, parser):
        issues = self.analyze(parser, """int main(void) {
    int x = 1;
    return x;
}
""")
        assert issues == []

    def test_parameters_and_arrays_are_skipped(self, parser):
        issues = self.analyze(parser, """int sum(int n) {
    int values[4];
    values[0] = n;
    return values[0] + n;
}
""")
        assert issues == []

    def test_null_pointer_dereference(self, parser):
        issues = self.analyze(parser, """int main(void) {
    int *p = NULL;
    *p = 5;
    return 0;
}
""")
        assert summary(issues) == [(Category.NULL_POINTER, 3)]
        assert issues[0].severity == Severity.ERROR

    def test_null_pointer_ignores_reassignment_by_default(self, parser):
        code = """int main(void) {
    int value = 0;
    int *p = NULL;
    p = &value;
    *p = 5;
    return 0;
}
"""
        assert summary(self.analyze(parser, code)) == [(Category.NULL_POINTER, 5)]
        assert self.analyze(parser, code, flow_sensitive=True) == []

    def test_every_null_dereference_reported(self, parser):
        issues = self.analyze(parser, """struct node { int key; };
int main(void) {
    struct node *n = 0;
    n->key = 1;
    return n->key;
}
""")
        assert summary(issues) == [(Category.NULL_POINTER, 4), (Category.NULL_POINTER, 5)]

    def test_wild_pointer(self, parser):
        issues = self.analyze(parser, """int main(void) {
    int *p;
    *p = 7;
    return 0;
}
""")
        assert (Category.WILD_POINTER, 3) in summary(issues)
        wild = [i for i in issues if i.category == Category.WILD_POINTER]
        assert wild[0].message == "Potential wild pointer dereference: pointer 'p' is never initialized"

    def test_assigned_pointer_is_not_wild(self, parser):
        issues = self.analyze(parser, """int main(void) {
    int v = 1;
    int *p;
    p = &v;
    return *p;
}
""")
        assert all(i.category != Category.WILD_POINTER for i in issues)

    def test_flow_sensitive_wild_pointer_before_write(self, parser):
        issues = self.analyze(parser, """int main(void) {
    int v = 1;
    int *p;
    *p = 2;
    p = &v;
    return *p;
}
""", flow_sensitive=True)
        wild = [i for i in issues if i.category == Category.WILD_POINTER]
        assert [i.line for i in wild] == [4]
        assert wild[0].message == "Potential wild pointer dereference: pointer 'p' is not initialized yet"

    def test_usage_on_declaration_line_ignored(self, parser):
        issues = self.analyze(parser, """int main(void) {
    int x; int y = x;
    return y;
}
""")
        assert issues == []

    def test_repeat_analysis_is_stable(self, parser):
        code = """int main(void) {
    int x;
    return x;
}
"""
        assert self.analyze(parser, code) == self.analyze(parser, code)

    def test_result_without_tree(self, parser):
        with pytest.raises(DetectorError):
            VariableDetector(parser).analyze("test.c", ParseResult(file_path="test.c"))
