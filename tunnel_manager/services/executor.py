"""Command executor - runs daemon CLI commands and captures their outcome"""

import os
import subprocess
import threading
from typing import Callable, List, Optional, Sequence

from ..config import COMMAND_TIMEOUT, get_logger
from ..models.schemas import CommandOutcome

logger = get_logger(__name__)

# Exit code reported for outcomes the process itself never produced
SYNTHETIC_EXIT_CODE = -1


def timeout_message(timeout: float) -> str:
    return f"Command timed out after {timeout:g} seconds"


class CommandExecutor:
    """Runs one external process per call

    Never raises for the command's own failures: a non-zero exit, a spawn
    error and a timeout all come back as a failed CommandOutcome.
    """

    def __init__(self, default_timeout: float = COMMAND_TIMEOUT):
        self.default_timeout = default_timeout

    def run(self, args: Sequence[str], timeout: Optional[float] = None) -> CommandOutcome:
        """Run a command to completion

        Args:
            args: Argument vector, program first
            timeout: Seconds before the process is killed

        Returns:
            CommandOutcome with stripped stdout/stderr
        """
        timeout = self.default_timeout if timeout is None else timeout
        cmd = list(args)
        logger.info(f"Executing command: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
                env=dict(os.environ)
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out: {' '.join(cmd)}")
            return _synthetic_failure(timeout_message(timeout))
        except (OSError, ValueError) as e:
            logger.error(f"Command execution error: {e}")
            return _synthetic_failure(str(e))

        return _outcome(result.returncode, result.stdout, result.stderr)

    def stream(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        on_line: Optional[Callable[[str], None]] = None,
    ) -> CommandOutcome:
        """Run a command to completion, reporting output lines as they appear

        Used for long-running interactive commands such as the login flow,
        which print information the caller needs before they exit.
        """
        timeout = self.default_timeout if timeout is None else timeout
        cmd = list(args)
        logger.info(f"Executing command: {' '.join(cmd)}")

        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                env=dict(os.environ)
            )
        except (OSError, ValueError) as e:
            logger.error(f"Command execution error: {e}")
            return _synthetic_failure(str(e))

        stdout_lines: List[str] = []
        stderr_lines: List[str] = []
        readers = [
            threading.Thread(target=_pump, args=(proc.stdout, stdout_lines, on_line), daemon=True),
            threading.Thread(target=_pump, args=(proc.stderr, stderr_lines, on_line), daemon=True),
        ]
        for reader in readers:
            reader.start()

        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out: {' '.join(cmd)}")
            proc.kill()
            proc.wait()
            return _synthetic_failure(timeout_message(timeout))
        finally:
            for reader in readers:
                reader.join(timeout=1)

        return _outcome(proc.returncode, "".join(stdout_lines), "".join(stderr_lines))


def _pump(pipe, sink: List[str], on_line: Optional[Callable[[str], None]]) -> None:
    """Copy lines from a pipe into sink, notifying on_line"""
    try:
        for line in iter(pipe.readline, ""):
            sink.append(line)
            if on_line is not None:
                try:
                    on_line(line.rstrip("\n"))
                except Exception as e:
                    logger.warning(f"Output callback failed: {e}")
    except ValueError:
        # pipe closed after the process was killed
        pass
    finally:
        pipe.close()


def _outcome(returncode: int, stdout: str, stderr: str) -> CommandOutcome:
    outcome = CommandOutcome(
        success=returncode == 0,
        stdout=(stdout or "").strip(),
        stderr=(stderr or "").strip(),
        exit_code=returncode
    )
    if not outcome.success:
        logger.error(f"Command failed: {outcome.stderr}")
    return outcome


def _synthetic_failure(message: str) -> CommandOutcome:
    return CommandOutcome(success=False, stdout="", stderr=message, exit_code=SYNTHETIC_EXIT_CODE)
