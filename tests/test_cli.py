from __future__ import annotations

import logging
import types
from pathlib import Path

import pytest

import repo_explorer
from repo_explorer import (
    Defaults,
    DefaultExcludes,
    OptionsBuilder,
    OutputWriter,
    create_parser,
    main,
    normalize_extensions,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2M", 2 * 1024 * 1024),
        ("500k", 500 * 1024),
        ("1g", 1024**3),
        ("12", 12),
        ("0", None),
        ("", Defaults.MAX_FILE_SIZE_BYTES),
        (None, Defaults.MAX_FILE_SIZE_BYTES),
        ("lots", Defaults.MAX_FILE_SIZE_BYTES),
        ("-5", Defaults.MAX_FILE_SIZE_BYTES),
        ("-1k", Defaults.MAX_FILE_SIZE_BYTES),
    ],
)
def test_parse_size(value, expected):
    assert OptionsBuilder.parse_size(value) == expected


def test_normalize_extensions():
    assert normalize_extensions(["py", ".MD", "js, ts"]) == frozenset({".py", ".md", ".js", ".ts"})
    assert normalize_extensions([]) is None
    assert normalize_extensions(None) is None
    assert normalize_extensions([" , "]) is None


def test_options_from_args():
    args = create_parser().parse_args([
        "src", "--export-contents", "--exclude", "*.log", "--ext", "py",
        "--max-depth", "2", "--max-file-size", "0", "--show-hidden", "--sort-contents",
    ])
    options = OptionsBuilder.from_args(args, DefaultExcludes.CONTENTS)

    assert options.exclude == DefaultExcludes.CONTENTS | {"*.log"}
    assert options.extensions == frozenset({".py"})
    assert options.max_depth == 2
    assert options.max_file_size is None
    assert options.show_hidden
    assert options.sort_contents
    assert args.export_contents == Defaults.CONTENTS_FILE


def test_actions_are_mutually_exclusive():
    with pytest.raises(SystemExit):
        create_parser().parse_args(["src", "--print-tree", "--summary"])


def test_print_tree_action(scenario_tree, capsys):
    assert main([str(scenario_tree), "--print-tree"]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out == ["root/", "├── b/", "│   └── c.js", "└── a.txt"]


def test_print_tree_action_with_depth(scenario_tree, capsys):
    assert main([str(scenario_tree), "--print-tree", "--max-depth", "0", "--show-hidden"]) == 0
    assert "c.js" not in capsys.readouterr().out


def test_export_contents_action(make_tree, tmp_path: Path):
    root = make_tree({"a.py": "print(1)", "b.txt": "text", "dist": {"x.py": "built"}})
    out = tmp_path / "contents.txt"

    assert main([str(root), "--export-contents", str(out), "--ext", "py"]) == 0

    text = out.read_text(encoding="utf-8")
    assert "print(1)" in text
    assert "b.txt" not in text
    assert "built" not in text


def test_summary_action_without_stats(scenario_tree, tmp_path: Path):
    out = tmp_path / "summary.txt"
    assert main([str(scenario_tree), "--summary", str(out), "--no-stats"]) == 0

    text = out.read_text(encoding="utf-8")
    assert "Directory Structure:" in text
    assert "Directory Statistics:" not in text


def test_failed_export_returns_nonzero(scenario_tree, tmp_path: Path, capsys, caplog):
    out = tmp_path / "missing-dir" / "tree.txt"
    assert main([str(scenario_tree), "--export-tree", str(out)]) == 1

    assert capsys.readouterr().err.count("Failed to export tree") == 1
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


def test_unknown_source_without_menu_fails(tmp_path: Path, capsys):
    assert main([str(tmp_path / "nothing-here"), "--print-tree"]) == 1
    assert "valid Git repository URL" in capsys.readouterr().err


def feed_input(monkeypatch, *answers):
    replies = iter(answers)

    def fake_input(prompt=""):
        try:
            return next(replies)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)


def test_menu_handles_invalid_choice_then_exits(scenario_tree, monkeypatch, capsys):
    feed_input(monkeypatch, "9", "1", "6")

    assert main([str(scenario_tree)]) == 0

    out = capsys.readouterr().out
    assert "Invalid choice, please try again." in out
    assert "└── a.txt" in out
    assert "Exiting program. Goodbye!" in out
    assert "6. Exit" in out


def test_menu_exits_on_end_of_input(scenario_tree, monkeypatch, capsys):
    feed_input(monkeypatch)
    assert main([str(scenario_tree)]) == 0
    assert "Goodbye" in capsys.readouterr().out


def test_menu_contents_export_asks_for_extensions(make_tree, tmp_path: Path, monkeypatch):
    root = make_tree({"keep.py": "x = 1", "drop.md": "# title"})
    out = tmp_path / "menu-contents.txt"
    feed_input(monkeypatch, "4", str(out), "py", "6")

    assert main([str(root)]) == 0

    text = out.read_text(encoding="utf-8")
    assert "x = 1" in text
    assert "# title" not in text


def test_menu_summary_uses_default_path(scenario_tree, tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    feed_input(monkeypatch, "5", "", "6")

    assert main([str(scenario_tree)]) == 0
    assert (tmp_path / "repo-summary.txt").exists()


def test_prompts_for_source_when_missing(scenario_tree, monkeypatch, capsys):
    feed_input(monkeypatch, str(scenario_tree))
    assert main(["--simple-tree"]) == 0
    assert "└── a.txt (5.00 B)" in capsys.readouterr().out


def test_empty_source_prompt_exits(monkeypatch):
    feed_input(monkeypatch, "")
    assert main(["--print-tree"]) == 1


def test_copy_puts_report_on_clipboard(scenario_tree, tmp_path: Path, monkeypatch):
    copied = []
    fake = types.SimpleNamespace(copy=copied.append, PyperclipException=RuntimeError)
    monkeypatch.setattr(repo_explorer, "HAS_PYPERCLIP", True)
    monkeypatch.setattr(repo_explorer, "pyperclip", fake, raising=False)

    out = tmp_path / "tree.txt"
    assert main([str(scenario_tree), "--export-tree", str(out), "--copy"]) == 0
    assert copied == [out.read_text(encoding="utf-8")]


def test_copy_without_pyperclip_warns(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.setattr(repo_explorer, "HAS_PYPERCLIP", False)
    report = tmp_path / "r.txt"
    report.write_text("x")

    assert OutputWriter.copy_to_clipboard(report) is False
    assert "pyperclip not installed" in capsys.readouterr().err
