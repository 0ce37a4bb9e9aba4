#!/usr/bin/env python3
"""
Login Supervisor Module

Runs an interactive login command (normally `vault login -method=oidc`)
and makes sure it cannot hang forever.

The Problem:
- The OIDC flow waits for a human to finish in a browser
- In CI or automation nobody may ever do that
- A stuck login must not block the caller indefinitely

The Solution:
- Start the process with the caller's stdin/stdout/stderr
- Arm two timers at launch: graceful (SIGTERM) and force (SIGKILL)
- Both deadlines are measured from launch, not chained
- A waiter thread hands the exit status back through a single-slot queue
- On exit, both timers are cancelled and joined before returning

State machine:
    NOT_STARTED -> RUNNING -> (GRACEFUL_SENT) -> (FORCE_SENT) -> EXITED

Usage:
    supervisor = LoginSupervisor(["vault", "login", "-method=oidc"], 60, 90)
    supervisor.supervise()  # raises LoginProcessError on failure
"""

import queue
import signal
import logging
import threading
import subprocess
from enum import Enum
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class SupervisorState(Enum):
    """Lifecycle of the supervised process."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    GRACEFUL_SENT = "graceful_sent"
    FORCE_SENT = "force_sent"
    EXITED = "exited"


class LoginProcessError(Exception):
    """
    The supervised login did not finish successfully.

    Attributes:
        returncode: Exit status from wait(); negative means killed by that
                    signal number. None when the process never ran or the
                    wait itself failed.
    """

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class LoginStartError(LoginProcessError):
    """The login command could not be started."""
    pass


def _describe_exit(returncode: int) -> str:
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = f"signal {-returncode}"
        return f"killed by {name}"
    return f"exited with status {returncode}"


class LoginSupervisor:
    """
    Supervises one run of an external command under a two-stage timeout.

    Attributes:
        command: Executable plus arguments
        graceful_timeout: Seconds after launch before terminate() is sent
        force_timeout: Seconds after launch before kill() is sent
        state: Current SupervisorState
        signals_sent: Escalation steps actually delivered, in order
    """

    def __init__(
        self,
        command: Sequence[str],
        graceful_timeout: float,
        force_timeout: float
    ):
        """
        Initialize the supervisor.

        Raises:
            ValueError: If the command is empty, a timeout is not positive,
                        or graceful_timeout is not shorter than force_timeout
        """
        if not command:
            raise ValueError("command must name an executable")
        if graceful_timeout <= 0 or force_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if graceful_timeout >= force_timeout:
            raise ValueError(
                f"graceful timeout ({graceful_timeout}s) must be shorter than "
                f"force timeout ({force_timeout}s)"
            )

        self.command: List[str] = list(command)
        self.graceful_timeout = graceful_timeout
        self.force_timeout = force_timeout

        self.state = SupervisorState.NOT_STARTED
        self.signals_sent: List[SupervisorState] = []

        self._process: Optional[subprocess.Popen] = None
        self._timers: List[threading.Timer] = []
        self._lock = threading.Lock()

    def _wait_for_exit(self, process: subprocess.Popen, done: "queue.Queue"):
        """Waiter thread: block on the process and hand over the outcome once."""
        try:
            done.put((process.wait(), None))
        except Exception as e:
            done.put((None, e))

    def _escalate(self, step: SupervisorState):
        """Timer callback for either escalation step."""
        with self._lock:
            if self.state == SupervisorState.EXITED or self._process is None:
                return

            process = self._process
            if step == SupervisorState.GRACEFUL_SENT:
                sig_name, delay, send = "SIGTERM", self.graceful_timeout, process.terminate
            else:
                sig_name, delay, send = "SIGKILL", self.force_timeout, process.kill

            logger.warning(
                f"Login still running after {delay}s, sending {sig_name} (pid {process.pid})"
            )
            try:
                send()
            except OSError as e:
                logger.warning(f"Error sending {sig_name}: {e}")
                return

            self.state = step
            self.signals_sent.append(step)

    def _arm_timer(self, delay: float, step: SupervisorState) -> threading.Timer:
        timer = threading.Timer(delay, self._escalate, args=(step,))
        timer.daemon = True
        timer.name = f"login-{step.value}-timer"
        timer.start()
        return timer

    def _mark_exited(self):
        """Record the exit, then cancel and join both timers."""
        with self._lock:
            self.state = SupervisorState.EXITED
        for timer in self._timers:
            timer.cancel()
        for timer in self._timers:
            timer.join()

    def supervise(self) -> None:
        """
        Run the command to completion.

        Returns only after the process has exited and both timers are
        disarmed.

        Raises:
            LoginStartError: If the process could not be started
            LoginProcessError: If it exited non-zero (or was killed)
        """
        if self.state != SupervisorState.NOT_STARTED:
            raise RuntimeError("LoginSupervisor instances are single-use")

        logger.info(f"Starting: {' '.join(self.command)}")
        try:
            # stdin/stdout/stderr are inherited: the login may prompt
            process = subprocess.Popen(self.command)
        except (OSError, ValueError) as e:
            self.state = SupervisorState.EXITED
            raise LoginStartError(f"error starting {self.command[0]}: {e}") from e

        with self._lock:
            self._process = process
            self.state = SupervisorState.RUNNING

        done: "queue.Queue" = queue.Queue(maxsize=1)
        waiter = threading.Thread(
            target=self._wait_for_exit,
            args=(process, done),
            name="login-waiter",
            daemon=True,
        )

        self._timers = [
            self._arm_timer(self.graceful_timeout, SupervisorState.GRACEFUL_SENT),
            self._arm_timer(self.force_timeout, SupervisorState.FORCE_SENT),
        ]
        waiter.start()

        try:
            returncode, wait_error = done.get()
        except BaseException:
            # Interrupted (Ctrl-C): don't leave the login process behind
            self._mark_exited()
            logger.warning(f"Interrupted, killing login process (pid {process.pid})")
            try:
                process.kill()
            except OSError as e:
                logger.warning(f"Error sending SIGKILL: {e}")
            waiter.join()
            self._process = None
            raise

        self._mark_exited()
        waiter.join()
        self._process = None

        if wait_error is not None:
            raise LoginProcessError(f"error waiting for login: {wait_error}") from wait_error

        if returncode != 0:
            raise LoginProcessError(
                f"login {_describe_exit(returncode)}",
                returncode=returncode,
            )

        logger.info("Login process completed successfully")
