"""Tests for CLI functionality."""

import json
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from codepaste.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr("codepaste.config.DEFAULT_CONFIG_PATH", tmp_path / "home" / "config.json")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def crate(tmp_path):
    root = tmp_path / "crate"
    (root / "src").mkdir(parents=True)
    (root / "Cargo.toml").write_text('[package]\nname = "demo"\n')
    (root / "README.md").write_text("# Demo\n")
    (root / "src" / "main.rs").write_text('fn main() {\n    println!("hi");\n}\n')
    (root / "src" / "lib.rs").write_text(
        "pub fn add(a: i32, b: i32) -> i32 {\n    a + b\n}\n\n"
        "pub fn sub(a: i32, b: i32) -> i32 {\n    a - b\n}\n"
    )
    return root


def test_print_whole_crate(runner, crate):
    result = runner.invoke(main, ["-C", str(crate), "--print"])
    assert result.exit_code == 0
    assert "```rust\n// src/lib.rs\n" in result.output
    assert 'println!("hi");' in result.output
    assert "Cargo.toml" not in result.output


def test_manifest_and_readme_flags(runner, crate):
    result = runner.invoke(main, ["-C", str(crate), "--print", "--toml", "--readme"])
    assert result.exit_code == 0
    assert "# Cargo.toml" in result.output
    assert "<!-- README.md -->" in result.output


def test_config_enables_readme(runner, crate, tmp_path):
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({"readme": True}))
    result = runner.invoke(main, ["-C", str(crate), "--print", "--config", str(cfg)])
    assert result.exit_code == 0
    assert "<!-- README.md -->" in result.output


def test_exclude_option(runner, crate):
    result = runner.invoke(main, ["-C", str(crate), "--print", "--exclude", "lib.rs"])
    assert result.exit_code == 0
    assert "src/lib.rs" not in result.output
    assert "src/main.rs" in result.output


def test_clipboard_is_default(monkeypatch, runner, crate):
    copied = []
    monkeypatch.setattr("codepaste.cli.copy_to_clipboard", lambda text: copied.append(text) or True)
    result = runner.invoke(main, ["-C", str(crate)])
    assert result.exit_code == 0
    assert "Content copied to clipboard" in result.output
    assert "// src/main.rs" in copied[0]
    assert "// src/main.rs" not in result.output


def test_clipboard_failure_falls_back_to_stdout(monkeypatch, runner, crate):
    monkeypatch.setattr("codepaste.cli.copy_to_clipboard", lambda text: False)
    result = runner.invoke(main, ["-C", str(crate)])
    assert result.exit_code == 0
    assert "Clipboard copy failed" in result.output
    assert "// src/main.rs" in result.output


def test_print_skips_clipboard(monkeypatch, runner, crate):
    def fail(text):
        raise AssertionError("clipboard used")

    monkeypatch.setattr("codepaste.cli.copy_to_clipboard", fail)
    result = runner.invoke(main, ["-C", str(crate), "--print"])
    assert result.exit_code == 0


def test_only_requires_functions(runner, crate):
    result = runner.invoke(main, ["-C", str(crate), "--only"])
    assert result.exit_code == 2
    assert "--only flag requires --functions flag" in result.output


def test_functions_with_interactive_selection(monkeypatch, runner, crate):
    offered = []

    def fake_select(items, console):
        offered.extend(items)
        return ["src/lib.rs::add"]

    monkeypatch.setattr("codepaste.cli.interactive_select", fake_select)
    result = runner.invoke(main, ["-C", str(crate), "--print", "-f"])
    assert result.exit_code == 0
    assert offered == ["src/lib.rs::add", "src/lib.rs::sub", "src/main.rs::main"]
    assert "a + b" in result.output
    assert "pub fn sub(a: i32, b: i32) -> i32 { /* ... */ }" in result.output
    assert "fn main() { /* ... */ }" in result.output


def test_functions_only(monkeypatch, runner, crate):
    monkeypatch.setattr(
        "codepaste.cli.interactive_select", lambda items, console: ["src/lib.rs::sub"]
    )
    result = runner.invoke(main, ["-C", str(crate), "--print", "-f", "--only", "--readme"])
    assert result.exit_code == 0
    assert "a - b" in result.output
    assert "pub fn add" not in result.output
    assert "src/main.rs" not in result.output
    assert "README" not in result.output


def test_functions_all_skips_prompt(monkeypatch, runner, crate):
    def fail(items, console):
        raise AssertionError("prompt shown")

    monkeypatch.setattr("codepaste.cli.interactive_select", fail)
    result = runner.invoke(main, ["-C", str(crate), "--print", "-f", "--all"])
    assert result.exit_code == 0
    assert "a + b" in result.output
    assert "a - b" in result.output
    assert "/* ... */" not in result.output
    assert "# Cargo.toml" in result.output


def test_empty_selection(monkeypatch, runner, crate):
    monkeypatch.setattr("codepaste.cli.interactive_select", lambda items, console: [])
    result = runner.invoke(main, ["-C", str(crate), "--print", "-f"])
    assert result.exit_code == 0
    assert "No functions selected." in result.output
    assert "```" not in result.output


def test_aborted_selection(monkeypatch, runner, crate):
    def abort(items, console):
        raise click.Abort()

    monkeypatch.setattr("codepaste.cli.interactive_select", abort)
    result = runner.invoke(main, ["-C", str(crate), "--print", "-f"])
    assert result.exit_code == 1
    assert "```" not in result.output


def test_no_functions_found(runner, tmp_path):
    (tmp_path / "Cargo.toml").write_text("[package]\n")
    (tmp_path / "consts.rs").write_text("pub const X: u8 = 1;\n")
    result = runner.invoke(main, ["-C", str(tmp_path), "--print", "-f"])
    assert result.exit_code == 0
    assert "No functions found in Rust files." in result.output


def test_no_content(runner, tmp_path):
    (tmp_path / "Cargo.toml").write_text("[package]\n")
    result = runner.invoke(main, ["-C", str(tmp_path), "--print"])
    assert result.exit_code == 0
    assert "No content generated with the current selection." in result.output


def test_python_project(runner, tmp_path):
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'demo'\n")
    (tmp_path / "demo.py").write_text("def hello():\n    return 'hi'\n")
    result = runner.invoke(main, ["-C", str(tmp_path), "--print", "-f", "--all", "--only"])
    assert result.exit_code == 0
    assert "```python\n# demo.py\ndef hello():\n    return 'hi'\n```" in result.output


def test_language_detection_failure(runner, tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    result = runner.invoke(main, ["-C", str(empty), "--print"])
    assert result.exit_code == 1
    assert "Could not detect language" in result.output


def test_explicit_language(runner, tmp_path):
    (tmp_path / "tool.py").write_text("print('x')\n")
    (tmp_path / "lib.rs").write_text("fn x() {}\n")
    result = runner.invoke(main, ["-C", str(tmp_path), "--print", "-l", "python"])
    assert result.exit_code == 0
    assert "# tool.py" in result.output
    assert "lib.rs" not in result.output


def test_invalid_config_reports_error(runner, crate, tmp_path):
    cfg = tmp_path / "bad.json"
    cfg.write_text("{nope")
    result = runner.invoke(main, ["-C", str(crate), "--print", "--config", str(cfg)])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_generate_config(runner, tmp_path):
    target = tmp_path / "out" / "config.json"
    result = runner.invoke(main, ["--generate-config", "--config", str(target)])
    assert result.exit_code == 0
    assert "Generated config file" in result.output
    assert json.loads(target.read_text())["manifest"] is None


def test_dump_reports_file_and_token_counts(monkeypatch, runner, crate):
    monkeypatch.setattr("codepaste.cli.copy_to_clipboard", lambda text: True)
    result = runner.invoke(main, ["-C", str(crate)])
    assert result.exit_code == 0
    assert "2 files, approximately" in result.output
    assert "tokens" in result.output


def test_verbose_reports_function_count(monkeypatch, runner, crate):
    monkeypatch.setattr("codepaste.cli.interactive_select", lambda items, console: items)
    result = runner.invoke(main, ["-C", str(crate), "--print", "-f", "-v"])
    assert result.exit_code == 0
    assert "Found 3 functions" in result.output


def test_directory_defaults_to_cwd(monkeypatch, runner, crate):
    monkeypatch.chdir(crate)
    result = runner.invoke(main, ["--print"])
    assert result.exit_code == 0
    assert "// src/main.rs" in result.output


def test_directory_long_option(runner, crate):
    result = runner.invoke(main, ["--print", "--directory", str(crate)])
    assert result.exit_code == 0
    assert "// src/lib.rs" in result.output


def test_explain_uses_directory_option(monkeypatch, runner, crate):
    seen = []
    monkeypatch.setattr(
        "codepaste.cli.run_check", lambda command, cwd: seen.append(cwd) or ""
    )
    result = runner.invoke(main, ["-C", str(crate), "explain"])
    assert result.exit_code == 0
    assert seen == [crate]


def test_explain_copies_prompt(monkeypatch, runner, crate):
    copied = []
    monkeypatch.setattr("codepaste.cli.run_check", lambda command, cwd: "error[E0425]: x")
    monkeypatch.setattr("codepaste.cli.copy_to_clipboard", lambda text: copied.append(text) or True)
    result = runner.invoke(main, ["-C", str(crate), "explain", "-c", "new module"])
    assert result.exit_code == 0
    assert "Running cargo check --message-format=human" in result.output
    assert copied[0].startswith("Help me understand and fix these Rust errors:")
    assert "Additional context: new module" in copied[0]
    assert "--- Error Output ---" in result.output


def test_explain_custom_command(monkeypatch, runner, crate):
    seen = []
    monkeypatch.setattr(
        "codepaste.cli.run_check", lambda command, cwd: seen.append((command, cwd)) or ""
    )
    result = runner.invoke(main, ["-C", str(crate), "explain", "--command", "cargo clippy -q"])
    assert result.exit_code == 0
    assert seen == [(["cargo", "clippy", "-q"], Path(str(crate)))]
    assert "No errors to explain" in result.output


def test_explain_print(monkeypatch, runner, crate):
    monkeypatch.setattr("codepaste.cli.run_check", lambda command, cwd: "boom")
    result = runner.invoke(main, ["-C", str(crate), "--print", "explain"])
    assert result.exit_code == 0
    assert "```\nboom\n```" in result.output


def test_explain_missing_checker(runner, crate):
    result = runner.invoke(
        main, ["-C", str(crate), "explain", "--command", "definitely-not-a-real-checker"]
    )
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_cli_help(runner):
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Dump your project contents" in result.output
    assert "explain" in result.output


def test_cli_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "codepaste" in result.output


def test_invalid_directory(runner):
    result = runner.invoke(main, ["-C", "/does/not/exist"])
    assert result.exit_code == 2
