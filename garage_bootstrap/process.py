"""
Garage server process supervision.

Spawns the server as a child process and exposes non-blocking liveness
checks, a blocking wait and the exit code to forward to our own caller.
"""

import logging
import subprocess
from typing import List, Optional

logger = logging.getLogger(__name__)


class StartupError(Exception):
    """Base class for fatal errors while starting the Garage server."""


class SpawnError(StartupError):
    """The server binary could not be started."""

    def __init__(self, server_path: str):
        self.server_path = server_path
        super().__init__(f"failed to spawn garage process {server_path}")


def exit_code(returncode: Optional[int]) -> int:
    """
    Map a child return code to the exit code we forward.

    Negative return codes (killed by a signal) and unknown statuses map to 1.
    """
    if returncode is None or returncode < 0:
        return 1
    return returncode


class ServerProcess:
    """Handle on a running Garage server process."""

    def __init__(self, popen: subprocess.Popen):
        self._popen = popen

    @staticmethod
    def command(server_path: str, config_path: str) -> List[str]:
        return [server_path, "-c", config_path, "server"]

    @classmethod
    def spawn(cls, server_path: str, config_path: str) -> "ServerProcess":
        """
        Start the server against the given configuration file.

        Args:
            server_path: Path to the garage binary
            config_path: Path to the generated garage.toml

        Returns:
            Handle on the started process

        Raises:
            SpawnError: If the process could not be started
        """
        logger.info("Starting garage...")
        try:
            popen = subprocess.Popen(cls.command(server_path, config_path))
        except OSError as e:
            raise SpawnError(server_path) from e
        logger.debug(f"Garage started with pid {popen.pid}")
        return cls(popen)

    @property
    def pid(self) -> int:
        return self._popen.pid

    def poll(self) -> Optional[int]:
        """Return the return code if the process exited, None while it runs."""
        return self._popen.poll()

    def wait(self) -> int:
        """Block until the process exits and return its return code."""
        return self._popen.wait()

    def terminate(self, timeout: float = 10.0) -> None:
        """Stop the process if it is still running, killing it after timeout seconds."""
        if self._popen.poll() is not None:
            return
        logger.info("Stopping garage...")
        self._popen.terminate()
        try:
            self._popen.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Garage did not stop after {timeout}s, killing it")
            self._popen.kill()
            self._popen.wait()
