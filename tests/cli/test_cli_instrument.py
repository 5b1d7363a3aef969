from __future__ import annotations

import ast

import pytest

from funccover.cli.main import main


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_single_source(tmp_path):
    src = _write(tmp_path / "app.py", "def main():\n    return 0\n")
    out = tmp_path / "out" / "app_cov.py"

    assert main(["instrument", src, "-o", str(out), "--cover-var", "_app", "--source-name", "pkg/app.py"]) == 0

    output = out.read_text(encoding="utf-8")
    ast.parse(output)
    assert "_app.flags[0] = True" in output
    assert "source_path='pkg/app.py'" in output
    assert "@funccover_exit_hook.guard" in output


def test_several_sources_into_directory(tmp_path):
    first = _write(tmp_path / "first.py", "def a():\n    pass\n")
    second = _write(tmp_path / "my-mod.py", "def b():\n    pass\n")
    out_dir = tmp_path / "build"
    out_dir.mkdir()

    assert main(["instrument", first, second, "-o", str(out_dir)]) == 0
    assert "_funccover_first.flags[0] = True" in (out_dir / "first.py").read_text()
    assert "_funccover_my_mod.flags[0] = True" in (out_dir / "my-mod.py").read_text()


def test_suffix_writes_beside_source(tmp_path):
    src = _write(tmp_path / "app.py", "def f():\n    pass\n")
    assert main(["instrument", src, "--suffix", "_cov"]) == 0
    assert (tmp_path / "app_cov.py").exists()
    assert (tmp_path / "app.py").read_text() == "def f():\n    pass\n"


def test_entry_point_option(tmp_path):
    src = _write(tmp_path / "app.py", "def run():\n    pass\n")
    out = tmp_path / "app_cov.py"
    assert main(["instrument", src, "-o", str(out), "--entry-point", "run"]) == 0
    assert "@funccover_exit_hook.guard\ndef run():" in out.read_text()


def test_parse_error_fails_only_that_unit(tmp_path, capsys):
    good = _write(tmp_path / "good.py", "def f():\n    pass\n")
    bad = _write(tmp_path / "bad.py", "def f(:\n")
    out_dir = tmp_path / "build"
    out_dir.mkdir()

    assert main(["instrument", good, bad, "-o", str(out_dir)]) == 1
    assert (out_dir / "good.py").exists()
    assert not (out_dir / "bad.py").exists()
    assert "1 of 2 files could not be instrumented." in capsys.readouterr().err


def test_missing_source(tmp_path):
    out = tmp_path / "out.py"
    assert main(["instrument", str(tmp_path / "missing.py"), "-o", str(out)]) == 1
    assert not out.exists()


def test_usage_errors(tmp_path):
    src = _write(tmp_path / "app.py", "x = 1\n")
    assert main(["instrument", src]) == 2
    assert main(["instrument", src, "-o", str(tmp_path / "o.py"), "--cover-var", "not valid"]) == 2
    assert main(["instrument", src, src, "-o", str(tmp_path), "--cover-var", "_x"]) == 2


def test_colliding_outputs_are_rejected(tmp_path, capsys):
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    first = _write(tmp_path / "a" / "util.py", "def f():\n    pass\n")
    second = _write(tmp_path / "b" / "util.py", "def g():\n    pass\n")
    out_dir = tmp_path / "build"
    out_dir.mkdir()

    assert main(["instrument", first, second, "-o", str(out_dir)]) == 2
    assert "would both be written to" in capsys.readouterr().err
    assert not (out_dir / "util.py").exists()


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert "funccover 0.1.0" in capsys.readouterr().out
