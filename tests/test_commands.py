"""Step tokenizing, $OUTDIR expansion and the subprocess runner."""

import sys

import pytest

from gtb.commands import CommandResult, SubprocessRunner, expand_placeholders, step_args, tokenize


def test_tokenize_respects_quotes():
    assert tokenize('go build -ldflags "-s -w" -o x .') == ["go", "build", "-ldflags", "-s -w", "-o", "x", "."]


def test_tokenize_rejects_empty_and_unbalanced():
    with pytest.raises(ValueError):
        tokenize("   ")
    with pytest.raises(ValueError):
        tokenize('echo "unterminated')


def test_expand_outdir_forms():
    args = expand_placeholders(["cp", "bin/x", "$OUTDIR/x", "${OUTDIR}/y", "-o=$OUTDIR"], "/out")
    assert args == ["cp", "bin/x", "/out/x", "/out/y", "-o=/out"]


def test_expand_leaves_other_variables_and_program():
    args = expand_placeholders(["$OUTDIR/tool", "$HOME", "${GOPATH}/bin"], "/out")
    assert args == ["$OUTDIR/tool", "$HOME", "${GOPATH}/bin"]


def test_step_args_keeps_spaces_in_outdir():
    assert step_args("cp tool $OUTDIR/tool", "/my out") == ["cp", "tool", "/my out/tool"]


def test_subprocess_runner_captures_output(tmp_path):
    res = SubprocessRunner().run_command(
        [sys.executable, "-c", "import os, sys; print(os.getcwd()); print('bad', file=sys.stderr)"],
        tmp_path,
    )
    assert res.ok
    assert res.stdout.strip() == str(tmp_path.resolve())
    assert res.stderr.strip() == "bad"


def test_subprocess_runner_reports_exit_code(tmp_path):
    res = SubprocessRunner().run_command([sys.executable, "-c", "raise SystemExit(3)"], tmp_path)
    assert not res.ok
    assert res.exit_code == 3


def test_subprocess_runner_missing_program(tmp_path):
    res = SubprocessRunner().run_command(["gtb-no-such-program-xyz", "--version"], tmp_path)
    assert res.exit_code == 127
    assert "command not found" in res.stderr


def test_command_result_display():
    assert CommandResult(args=("go", "build", "-o", "a b"), exit_code=0).display == "go build -o 'a b'"
