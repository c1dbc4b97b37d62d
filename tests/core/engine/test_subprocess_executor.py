# tests/core/engine/test_subprocess_executor.py
"""
Testes do SubprocessExecutor e de `render_argv`.

Os comandos usam o próprio interpretador (`sys.executable`) para serem
portáveis; nenhum teste depende de git, docker ou make.
"""

import sys

import pytest

from beacon_ci.core.engine.executor import EXIT_COMMAND_NOT_FOUND, SubprocessExecutor, render_argv


def test_exit_code_and_output_are_captured():
    result = SubprocessExecutor().run([sys.executable, "-c", "import sys; print('hi'); sys.exit(3)"])
    assert result.exit_code == 3
    assert not result.ok
    assert result.stdout.strip() == "hi"


def test_stdin_is_forwarded():
    result = SubprocessExecutor().run(
        [sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"],
        stdin="secret",
    )
    assert result.ok
    assert result.stdout.strip() == "SECRET"


def test_env_and_cwd(tmp_path):
    result = SubprocessExecutor().run(
        [sys.executable, "-c", "import os; print(os.environ['BEACON_TEST'], os.getcwd())"],
        cwd=tmp_path,
        env={"BEACON_TEST": "yes"},
    )
    assert result.ok
    assert result.stdout.split()[0] == "yes"


def test_timeout_is_reported_not_raised():
    result = SubprocessExecutor().run([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2)
    assert result.timed_out
    assert result.exit_code is None
    assert not result.ok


def test_missing_executable_is_127():
    result = SubprocessExecutor().run(["beacon-ci-definitely-missing-binary"])
    assert result.exit_code == EXIT_COMMAND_NOT_FOUND


def test_output_tail_keeps_the_end():
    result = SubprocessExecutor().run([sys.executable, "-c", "print('x' * 50 + 'END')"])
    tail = result.output_tail(5)
    assert len(tail) == 5
    assert tail.rstrip().endswith("END")
    assert result.output_tail(0) == ""


def test_render_argv_substitutes_placeholders():
    argv = render_argv(
        ["docker", "tag", "{image_id}", "{image_id}:{tag}"],
        image_id="navitia/transit_model",
        tag="v2.10.3",
    )
    assert argv == ("docker", "tag", "navitia/transit_model", "navitia/transit_model:v2.10.3")


def test_render_argv_unknown_placeholder_raises():
    with pytest.raises(ValueError):
        render_argv(["docker", "push", "{image_ref}"], image_id="x")
