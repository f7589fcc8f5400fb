"""Tests for the cscan command."""

from pathlib import Path

import pytest
from typer.testing import CliRunner
from cscan.main import app

runner = CliRunner()

SCENARIO = """int main(void) {
    int x;
    printf("%d", x);
    return 0;
}
"""


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Run from tmp_path with no rc files or CSCAN_ variables in play."""
    for name in ("CSCAN_MODE", "CSCAN_FLOW_SENSITIVE", "CSCAN_STRICT_PARSE", "CSCAN_VERBOSE",
                 "CSCAN_DEFAULT_DIRECTORY", "CSCAN_SUPPRESSIONS_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
    monkeypatch.chdir(tmp_path)


class TestScanCommand:
    """Test the report printed by the command."""

    def test_reports_issues(self, tmp_path):
        project = tmp_path / "src"
        project.mkdir()
        (project / "main.c").write_text(SCENARIO)

        result = runner.invoke(app, [str(project)])
        assert result.exit_code == 0
        assert f"Scanning directory: {project}" in result.stdout
        main_c = str(Path("src") / "main.c")
        assert f"{main_c}:3: [Uninitialized] Variable 'x' is used before being initialized" in result.stdout
        assert f"{main_c}:3: [Header] Function 'printf' requires header: stdio.h" in result.stdout
        assert '    printf("%d", x);' in result.stdout
        assert "Supported checks" in result.stdout

    def test_no_problems(self, tmp_path):
        (tmp_path / "ok.c").write_text("int main(void) {\n    return 0;\n}\n")
        result = runner.invoke(app, [str(tmp_path)])
        assert result.exit_code == 0
        assert "No problems found." in result.stdout
        assert "Supported checks" in result.stdout

    def test_default_directory(self, tmp_path):
        samples = tmp_path / "samples"
        samples.mkdir()
        (samples / "main.c").write_text(SCENARIO)
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "Scanning directory: samples" in result.stdout
        assert "[Uninitialized]" in result.stdout

    def test_missing_directory_exits_nonzero(self, tmp_path):
        result = runner.invoke(app, [str(tmp_path / "missing")])
        assert result.exit_code == 1
        assert "Error:" in result.stdout

    def test_heuristic_flag(self, tmp_path):
        (tmp_path / "loop.c").write_text("int main(void) {\n    for(;;) { }\n}\n")
        result = runner.invoke(app, [str(tmp_path), "--heuristic"])
        assert result.exit_code == 0
        assert "loop.c:2: [InfiniteLoop] Potential infinite loop (no explicit exit)" in result.stdout

    def test_flow_sensitive_flag(self, tmp_path):
        (tmp_path / "main.c").write_text("int main(void) {\n    int x;\n    x = 1;\n    return x;\n}\n")

        default = runner.invoke(app, [str(tmp_path)])
        assert "[Uninitialized]" in default.stdout

        strict = runner.invoke(app, [str(tmp_path), "--flow-sensitive"])
        assert strict.exit_code == 0
        assert "No problems found." in strict.stdout

    def test_suppressions_file(self, tmp_path):
        (tmp_path / "main.c").write_text(SCENARIO)
        rules = tmp_path / "rules.yaml"
        rules.write_text("- pattern: main.c\n  lines: [3]\n")
        result = runner.invoke(app, [str(tmp_path), "--suppressions", str(rules)])
        assert result.exit_code == 0
        assert "No problems found." in result.stdout

    def test_bad_suppressions_file(self, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text("pattern: main.c\n")
        result = runner.invoke(app, [str(tmp_path), "-s", str(rules)])
        assert result.exit_code == 1
