import signal
import sys

import pytest

from htmlshot import exit_hook
from htmlshot.exit_hook import ExitHook


def make_hook():
    """Build a hook whose cleanup records the hook itself each time it runs."""
    calls = []
    hook = ExitHook(lambda: calls.append(hook))
    return hook, calls


def test_close_runs_cleanup_once():
    hook, calls = make_hook()
    hook.close()
    hook.close()
    assert calls == [hook]


def test_context_manager_runs_cleanup():
    hook, calls = make_hook()
    with hook as entered:
        assert calls == []
    assert entered is hook
    assert calls == [hook]


def test_context_manager_runs_cleanup_on_error():
    hook, calls = make_hook()
    with pytest.raises(RuntimeError, match="boom"):
        with hook:
            raise RuntimeError("boom")
    assert calls == [hook]


def test_register_wraps_excepthook(monkeypatch):
    seen = []

    def original(*args):
        seen.append(args)

    monkeypatch.setattr(sys, "excepthook", original)
    monkeypatch.setattr(exit_hook, "_sigint_installed", True)
    hook, calls = make_hook()
    hook.register()
    wrapped = sys.excepthook
    assert wrapped is not original
    error = ValueError("x")
    wrapped(ValueError, error, None)
    assert calls == [hook]
    assert seen == [(ValueError, error, None)]


def test_register_installs_sigint_handler_once(monkeypatch):
    installed = []
    monkeypatch.setattr(sys, "excepthook", lambda *args: None)
    monkeypatch.setattr(exit_hook, "_sigint_installed", False)
    monkeypatch.setattr(signal, "signal", lambda sig, handler: installed.append((sig, handler)))
    hook, calls = make_hook()
    hook.register()
    hook.register()
    assert len(installed) == 1
    sig, handler = installed[0]
    assert sig == signal.SIGINT
    with pytest.raises(SystemExit) as info:
        handler(signal.SIGINT, None)
    assert info.value.code == 0
    assert calls == [hook]


def test_sigint_failure_is_reported(monkeypatch, capsys):
    def failing(sig, handler):
        raise ValueError("not main thread")

    monkeypatch.setattr(sys, "excepthook", lambda *args: None)
    monkeypatch.setattr(exit_hook, "_sigint_installed", False)
    monkeypatch.setattr(signal, "signal", failing)
    ExitHook(lambda: None).register()
    assert "Error setting Ctrl-C handler: not main thread" in capsys.readouterr().err