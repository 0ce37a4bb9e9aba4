"""
Unit tests for the Login Supervisor module.

Uses real short-lived child processes (sys.executable -c ...) so the
SIGTERM/SIGKILL escalation is exercised for real. Escalation tests are
POSIX-only.

Run tests with: python -m pytest tests/test_login_supervisor.py -v
"""

import os
import sys
import signal
import time
import subprocess
from unittest.mock import patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shared.login_supervisor import (
    LoginProcessError,
    LoginStartError,
    LoginSupervisor,
    SupervisorState,
)

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal semantics")

IGNORE_SIGTERM_AND_SLEEP = (
    "import signal, time\n"
    "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
    "print('ready', flush=True)\n"
    "time.sleep(30)\n"
)


def python_command(code):
    return [sys.executable, "-c", code]


class TestConstruction:

    def test_graceful_must_be_shorter_than_force(self):
        with pytest.raises(ValueError):
            LoginSupervisor(["vault"], 90, 60)
        with pytest.raises(ValueError):
            LoginSupervisor(["vault"], 60, 60)

    def test_timeouts_must_be_positive(self):
        with pytest.raises(ValueError):
            LoginSupervisor(["vault"], 0, 90)

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            LoginSupervisor([], 60, 90)

    def test_initial_state(self):
        supervisor = LoginSupervisor(["vault", "login"], 60, 90)
        assert supervisor.state == SupervisorState.NOT_STARTED
        assert supervisor.signals_sent == []


class TestCleanExit:

    def test_zero_exit_succeeds_and_timers_are_inert(self):
        supervisor = LoginSupervisor(python_command("pass"), 5, 10)

        supervisor.supervise()

        assert supervisor.state == SupervisorState.EXITED
        assert supervisor.signals_sent == []
        assert len(supervisor._timers) == 2
        assert all(not timer.is_alive() for timer in supervisor._timers)
        assert all(timer.finished.is_set() for timer in supervisor._timers)

    def test_non_zero_exit_fails_with_returncode(self):
        supervisor = LoginSupervisor(python_command("import sys; sys.exit(3)"), 5, 10)

        with pytest.raises(LoginProcessError) as exc_info:
            supervisor.supervise()

        assert exc_info.value.returncode == 3
        assert "status 3" in str(exc_info.value)
        assert supervisor.signals_sent == []

    def test_supervisor_is_single_use(self):
        supervisor = LoginSupervisor(python_command("pass"), 5, 10)
        supervisor.supervise()

        with pytest.raises(RuntimeError):
            supervisor.supervise()


class TestStartFailure:

    def test_missing_executable_fails_without_arming_timers(self, tmp_path):
        missing = str(tmp_path / "no-such-vault")
        supervisor = LoginSupervisor([missing, "login"], 5, 10)

        with patch("shared.login_supervisor.threading.Timer") as timer_cls:
            with pytest.raises(LoginStartError) as exc_info:
                supervisor.supervise()

        timer_cls.assert_not_called()
        assert isinstance(exc_info.value, LoginProcessError)
        assert exc_info.value.returncode is None
        assert supervisor._timers == []


@posix_only
class TestEscalation:

    def test_graceful_signal_stops_cooperative_process(self):
        supervisor = LoginSupervisor(python_command("import time; time.sleep(30)"), 0.5, 10)

        started = time.monotonic()
        with pytest.raises(LoginProcessError) as exc_info:
            supervisor.supervise()
        elapsed = time.monotonic() - started

        assert exc_info.value.returncode == -signal.SIGTERM
        assert "SIGTERM" in str(exc_info.value)
        assert supervisor.signals_sent == [SupervisorState.GRACEFUL_SENT]
        assert elapsed < 10

    def test_force_kill_after_ignored_graceful_signal(self):
        supervisor = LoginSupervisor(python_command(IGNORE_SIGTERM_AND_SLEEP), 1.0, 2.0)

        started = time.monotonic()
        with pytest.raises(LoginProcessError) as exc_info:
            supervisor.supervise()
        elapsed = time.monotonic() - started

        assert exc_info.value.returncode == -signal.SIGKILL
        assert supervisor.signals_sent == [
            SupervisorState.GRACEFUL_SENT,
            SupervisorState.FORCE_SENT,
        ]
        assert supervisor.state == SupervisorState.EXITED
        # Force deadline is measured from launch, not from the SIGTERM
        assert 2.0 <= elapsed < 10

    def test_signal_delivery_error_is_not_the_result(self):
        """A failing terminate() is logged; the wait outcome still decides."""
        supervisor = LoginSupervisor(python_command("import time; time.sleep(1.5)"), 0.2, 10)

        with patch("subprocess.Popen.terminate", side_effect=ProcessLookupError("gone")):
            supervisor.supervise()

        assert supervisor.signals_sent == []
        assert supervisor.state == SupervisorState.EXITED

    def test_interrupted_wait_kills_and_reaps_child(self):
        """Ctrl-C while waiting must not leave the login process running."""
        started = []
        real_popen = subprocess.Popen

        def spawn(*args, **kwargs):
            process = real_popen(*args, **kwargs)
            started.append(process)
            return process

        supervisor = LoginSupervisor(python_command("import time; time.sleep(30)"), 5, 10)

        with patch("shared.login_supervisor.subprocess.Popen", side_effect=spawn):
            with patch("shared.login_supervisor.queue.Queue.get", side_effect=KeyboardInterrupt):
                with pytest.raises(KeyboardInterrupt):
                    supervisor.supervise()

        assert len(started) == 1
        assert started[0].returncode == -signal.SIGKILL
        assert supervisor.state == SupervisorState.EXITED
        assert supervisor.signals_sent == []
        assert len(supervisor._timers) == 2
        assert all(not timer.is_alive() for timer in supervisor._timers)
