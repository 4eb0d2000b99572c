"""
Garage readiness polling.

Polls the admin API until the single cluster node reports itself up,
watching for the server process exiting early. The wait returns one of
the outcome types below instead of raising, so callers can dispatch on
every possible result.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Union

import requests

from .admin_client import GarageAdminClient
from .process import ServerProcess, StartupError

logger = logging.getLogger(__name__)

START_TIMEOUT = 20.0
POLL_INTERVAL = 0.1
LOG_INTERVAL = 1.0


@dataclass(frozen=True)
class Ready:
    node_id: str
    elapsed: float = 0.0


@dataclass(frozen=True)
class Exited:
    returncode: int
    elapsed: float = 0.0


@dataclass(frozen=True)
class Timeout:
    timeout: float
    elapsed: float = 0.0


@dataclass(frozen=True)
class TopologyError:
    node_count: int


ReadinessOutcome = Union[Ready, Exited, Timeout, TopologyError]


class ServerExitedError(StartupError):
    def __init__(self, returncode: int):
        self.returncode = returncode
        super().__init__(f"garage exited before becoming available with status {returncode}")


class ServerTimeoutError(StartupError):
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"timed out waiting for garage to become available after {timeout}s")


class UnexpectedNodeCountError(StartupError):
    def __init__(self, node_count: int):
        self.node_count = node_count
        super().__init__(f"unexpected number of nodes in status: {node_count}")


def require_ready(outcome: ReadinessOutcome) -> str:
    """
    Return the node id of a Ready outcome.

    Raises:
        StartupError: The matching fatal error for any other outcome
    """
    if isinstance(outcome, Ready):
        return outcome.node_id
    if isinstance(outcome, Exited):
        raise ServerExitedError(outcome.returncode)
    if isinstance(outcome, Timeout):
        raise ServerTimeoutError(outcome.timeout)
    if isinstance(outcome, TopologyError):
        raise UnexpectedNodeCountError(outcome.node_count)
    raise TypeError(f"unknown readiness outcome {outcome!r}")


def wait_for_server(
    process: ServerProcess,
    client: GarageAdminClient,
    timeout: float = START_TIMEOUT,
    poll_interval: float = POLL_INTERVAL,
    log_interval: float = LOG_INTERVAL,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> ReadinessOutcome:
    """
    Wait for the Garage node to report itself up.

    Each tick checks the process first: an exited server wins over any
    status response. Connection failures are expected while the server
    is binding its listeners and are retried silently; a status with a
    node count other than one is fatal.

    Args:
        process: The spawned server
        client: Admin API client used for status checks
        timeout: Overall time budget in seconds
        poll_interval: Sleep between ticks in seconds
        log_interval: Minimum time between progress messages in seconds
        clock: Monotonic clock, injectable for tests
        sleep: Sleep function, injectable for tests

    Returns:
        Ready, Exited, Timeout or TopologyError
    """
    start = clock()
    next_log = log_interval

    while True:
        returncode = process.poll()
        if returncode is not None:
            elapsed = clock() - start
            logger.error(f"Garage exited after {elapsed:.1f}s")
            return Exited(returncode=returncode, elapsed=elapsed)

        try:
            status = client.get_cluster_status(log_errors=False)
        except requests.RequestException as e:
            logger.debug(f"Cluster status not available yet: {e}")
        else:
            if len(status.nodes) != 1:
                logger.error(f"Garage reports {len(status.nodes)} nodes, expected 1")
                return TopologyError(node_count=len(status.nodes))
            node = status.nodes[0]
            if node.is_up:
                elapsed = clock() - start
                logger.info(f"Garage ready after {elapsed:.1f}s")
                return Ready(node_id=node.id, elapsed=elapsed)

        elapsed = clock() - start
        if elapsed > next_log:
            next_log = elapsed + log_interval
            logger.info(f"Waiting for garage... ({elapsed:.1f}s)")

        if elapsed >= timeout:
            logger.error(f"Garage not ready after {elapsed:.1f}s")
            return Timeout(timeout=timeout, elapsed=elapsed)

        sleep(poll_interval)
