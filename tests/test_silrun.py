import importlib.util
import sys
import uuid
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]


def _load_cli_module():
    """Dynamically load the top-level silrun.py as a module with a unique name."""
    cli_path = ROOT / "silrun.py"
    mod_name = f"silrun_for_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(cli_path))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod


def test_runs_sample_program(capsys):
    cli = _load_cli_module()
    cli.main([str(ROOT / "programs" / "slices.yaml")])
    captured = capsys.readouterr()
    assert captured.out == "inter\n3\nababab\n"
    assert captured.err == ""


def test_dump_prints_tree(capsys):
    cli = _load_cli_module()
    cli.main(["--dump", str(ROOT / "programs" / "slices.yaml")])
    out = capsys.readouterr().out
    assert out.startswith("(var word 'interpreter')\n")
    assert "(print (slice word (range 0 4)))" in out


def test_diagnostics_go_to_stderr(tmp_path, capsys):
    cli = _load_cli_module()
    prog = tmp_path / "dup.json"
    prog.write_text(
        '[{"tag": "var", "line": 1, "text": "x", "children": [1]},'
        ' {"tag": "var", "line": 2, "text": "x", "children": [2]},'
        ' {"tag": "print", "line": 3, "children": [{"tag": "ident", "text": "x"}]}]',
        encoding="utf-8",
    )
    cli.main([str(prog)])
    captured = capsys.readouterr()
    assert captured.out == "1\n"
    assert "2: Duplicate variable 'x'" in captured.err


def test_fatal_error_exits_nonzero(tmp_path, capsys):
    cli = _load_cli_module()
    prog = tmp_path / "bad.yaml"
    prog.write_text(
        "- {tag: print, line: 1, children: [{tag: str, text: ok}]}\n"
        "- {tag: print, line: 2, children: [{tag: ident, line: 2, text: missing}]}\n",
        encoding="utf-8",
    )
    with pytest.raises(SystemExit) as exc:
        cli.main([str(prog)])
    assert exc.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == "ok\n"
    assert "Error on line 2: UndefinedVariable" in captured.err


def test_missing_file(capsys):
    cli = _load_cli_module()
    with pytest.raises(SystemExit) as exc:
        cli.main(["does-not-exist.yaml"])
    assert exc.value.code == 1
    assert "file not found" in capsys.readouterr().err


def test_explicit_format(tmp_path, capsys):
    cli = _load_cli_module()
    prog = tmp_path / "prog.txt"
    prog.write_text('{"tag": "print", "children": [5]}', encoding="utf-8")
    cli.main(["--format", "json", str(prog)])
    assert capsys.readouterr().out == "5\n"


@pytest.mark.parametrize("argv", [[], ["a.yaml", "b.yaml"], ["--bogus", "a.yaml"], ["--format"]])
def test_usage_errors(argv, capsys):
    cli = _load_cli_module()
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    assert exc.value.code == 2
    assert "usage:" in capsys.readouterr().err
