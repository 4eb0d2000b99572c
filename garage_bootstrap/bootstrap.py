"""
Garage Cluster Bootstrap

Brings up a single-node Garage server and converges its cluster layout,
access key and buckets to the configuration, then stays attached to the
server until it exits.
"""

import logging
from typing import Callable, Optional

from .admin_client import GarageAdminClient
from .config import Config
from .connectivity import verify_bucket_access
from .metadata import purge_access_keys
from .process import ServerProcess, exit_code
from .readiness import require_ready, wait_for_server
from .reconcile import ensure_buckets, ensure_key, ensure_layout
from .server_config import write_server_config

logger = logging.getLogger(__name__)


class GarageBootstrap:
    """Bootstrap a single-node Garage server from configuration."""

    def __init__(
        self,
        config: Config,
        client: Optional[GarageAdminClient] = None,
        spawn: Callable[[str, str], ServerProcess] = ServerProcess.spawn,
        wait_ready: Callable = wait_for_server,
    ):
        """
        Initialize the bootstrap runner.

        Args:
            config: Bootstrap configuration
            client: Admin API client, built from the configuration if omitted
            spawn: Starts the server given binary and config paths
            wait_ready: Readiness wait taking the process and the client
        """
        self.config = config
        self.client = client or GarageAdminClient(config.admin_endpoint, config.admin_token)
        self.spawn = spawn
        self.wait_ready = wait_ready
        self.process: Optional[ServerProcess] = None
        self.node_id: Optional[str] = None

    def start(self) -> ServerProcess:
        """
        Write the server configuration, start the server and wait until it is up.

        Raises:
            StartupError: If the server cannot be spawned or never becomes ready
        """
        if self.config.purge_keys:
            purge_access_keys(self.config.metadata_db_path)
        write_server_config(self.config)

        self.process = self.spawn(self.config.server_binary, self.config.server_config_path)
        self.node_id = require_ready(self.wait_ready(self.process, self.client))
        return self.process

    def reconcile(self) -> None:
        """Converge layout, key and buckets. Requires a started server."""
        if self.node_id is None:
            raise RuntimeError("garage is not started")
        ensure_layout(self.client, self.node_id)
        ensure_key(self.client, self.config.access_key_id, self.config.secret_access_key)
        ensure_buckets(self.client, self.config.buckets, self.config.access_key_id)

        if self.config.verify_buckets:
            verify_bucket_access(
                self.config.s3_endpoint,
                self.config.access_key_id,
                self.config.secret_access_key,
                [bucket.name for bucket in self.config.buckets],
                region=self.config.s3_region,
            )

    def run(self) -> int:
        """
        Run the full bootstrap and wait for the server to exit.

        The server is stopped if any step fails after it was started.

        Returns:
            The exit code to forward, mirroring the server's
        """
        try:
            self.start()
            self.reconcile()
        except BaseException:
            if self.process is not None:
                self.process.terminate()
            raise

        logger.info("Bootstrapping complete.")
        returncode = self.process.wait()
        logger.info(f"Garage exited with status {returncode}")
        return exit_code(returncode)
