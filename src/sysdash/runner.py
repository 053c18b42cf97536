"""Execution of read-only diagnostic commands."""

import asyncio
import locale
import logging
import os

from sysdash.errors import ExecutionError

logger = logging.getLogger(__name__)


def default_encoding() -> str:
    """Encoding of console program output on this host."""
    # tasklist and wmic write in the OEM code page when piped
    if os.name == "nt":
        return "oem"
    return locale.getpreferredencoding(False)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass  # exited in the meantime
    await proc.wait()


class CommandRunner:
    """
    Runs one shell command line per call and returns its standard output.

    Every call spawns an independent child process, so several runs may be
    awaited concurrently without sharing any state.
    """

    def __init__(
        self,
        timeout: float | None = None,
        strict_stderr: bool = False,
        encoding: str | None = None,
    ) -> None:
        """
        Initialize the CommandRunner.

        Args:
            timeout: Seconds to wait for a command before killing it. None waits forever.
            strict_stderr: Treat any output on stderr as a failure.
            encoding: Codec for command output. Defaults to the host console encoding.
        """
        self._timeout = timeout
        self._strict_stderr = strict_stderr
        self._encoding = encoding or default_encoding()

    @property
    def encoding(self) -> str:
        return self._encoding

    @property
    def timeout(self) -> float | None:
        return self._timeout

    async def run(self, command: str) -> str:
        """
        Run a command and return its decoded stdout.

        Raises:
            ExecutionError: The command could not be spawned, timed out,
                exited non-zero or (in strict mode) wrote to stderr.
        """
        logger.debug("Running %r", command)
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecutionError(command, f"failed to spawn: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            await _kill(proc)
            raise ExecutionError(command, f"timed out after {self._timeout}s") from None
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        out = stdout.decode(self._encoding, errors="replace")
        err = stderr.decode(self._encoding, errors="replace").strip()

        if proc.returncode != 0:
            raise ExecutionError(
                command,
                f"exited with status {proc.returncode}",
                returncode=proc.returncode,
                stderr=err,
            )
        if err and self._strict_stderr:
            raise ExecutionError(command, f"wrote to stderr: {err}", returncode=0, stderr=err)
        if err:
            logger.debug("%r wrote to stderr: %s", command, err)
        return out
