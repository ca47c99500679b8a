"""
Blocking execution of OpenG processes.

``ProcessRunner.run`` starts the engine, forwards its output line by line to
a logger, and returns once the process has exited:

    stdout  -> logger.debug("[OPENG-OUT] ...")
    stderr  -> logger.info("[OPENG-ERR] ...")

Output is never buffered wholesale; only the last few stderr lines are kept
for error messages. Whether an exit code is a failure is the caller's
decision; ``check_exit_code`` applies the default contract (0 = success).
"""

import logging
import subprocess
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, IO, List, Optional

from ..core.errors import ProcessExecutionError, ProcessLaunchError, ProcessTimeoutError

log = logging.getLogger("opengbench.runner")

# Number of trailing stderr lines kept for error reporting
STDERR_TAIL_LINES = 20


@dataclass
class ProcessOutcome:
    """Result of one engine process run."""
    command: List[str]
    exit_code: int
    duration: float
    stderr_tail: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def _pump(stream: IO[str], logger: logging.Logger, level: int, prefix: str,
          tail: Optional[Deque[str]] = None) -> None:
    """Forward every line of ``stream`` to ``logger``; closes the stream."""
    with stream:
        for raw_line in stream:
            line = raw_line.rstrip("\r\n")
            logger.log(level, "%s %s", prefix, line)
            if tail is not None:
                tail.append(line)


class ProcessRunner:
    """
    Runs engine commands synchronously.

    Args:
        logger: Destination for the child's output (defaults to the module
            logger). Pass a run-specific logger to capture one job's output.
        timeout: Seconds to wait before killing the child; None waits forever.
        cwd: Working directory for the child process
    """

    def __init__(self, logger: Optional[logging.Logger] = None,
                 timeout: Optional[float] = None, cwd=None):
        self.logger = logger or log
        self.timeout = timeout
        self.cwd = cwd

    def run(self, command: List[str]) -> ProcessOutcome:
        """
        Execute ``command`` and block until it exits.

        Raises:
            ProcessLaunchError: the executable could not be started
            ProcessTimeoutError: the process exceeded ``timeout`` and was killed
        """
        command = [str(c) for c in command]
        self.logger.debug(f"Starting job with command line: {' '.join(command)}")

        start_time = time.time()
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                cwd=self.cwd,
            )
        except OSError as e:
            raise ProcessLaunchError(command, e) from e

        tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        pumps = [
            threading.Thread(target=_pump, daemon=True,
                             args=(process.stdout, self.logger, logging.DEBUG, "[OPENG-OUT]")),
            threading.Thread(target=_pump, daemon=True,
                             args=(process.stderr, self.logger, logging.INFO, "[OPENG-ERR]", tail)),
        ]
        for pump in pumps:
            pump.start()

        timed_out = False
        try:
            process.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            timed_out = True
            self.logger.warning(f"OpenG exceeded timeout of {self.timeout}s, killing process {process.pid}")
            process.kill()
            process.wait()
        except BaseException:
            # Interrupted while waiting: do not leave the child running
            process.kill()
            process.wait()
            raise
        finally:
            for pump in pumps:
                pump.join()

        duration = time.time() - start_time
        if timed_out:
            raise ProcessTimeoutError(self.timeout, command, exit_code=process.returncode)

        self.logger.debug(f"OpenG exited with code {process.returncode} after {duration:.3f}s")
        return ProcessOutcome(
            command=command,
            exit_code=process.returncode,
            duration=duration,
            stderr_tail=list(tail),
        )


def check_exit_code(outcome: ProcessOutcome, expected: int = 0) -> ProcessOutcome:
    """Raise ProcessExecutionError unless the process exited with ``expected``."""
    if outcome.exit_code != expected:
        raise ProcessExecutionError(outcome.exit_code, outcome.command,
                                    detail="\n".join(outcome.stderr_tail))
    return outcome
