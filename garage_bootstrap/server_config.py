"""
Garage server configuration.

Renders the single-node ``garage.toml`` consumed by the server process.
"""

import logging
from pathlib import Path

import tomlkit

from .config import Config
from .randomness import random_hex

logger = logging.getLogger(__name__)

RPC_SECRET_BYTES = 32

SERVER_CONFIG_TEMPLATE = """\
metadata_dir = "/var/lib/garage/meta"
data_dir = "/var/lib/garage/data"
db_engine = "sqlite"

replication_factor = 1

rpc_bind_addr = "[::]:3901"
rpc_public_addr = "127.0.0.1:3901"
rpc_secret = ""

[s3_api]
s3_region = "garage"
api_bind_addr = "[::]:3900"
root_domain = ".s3.garage.localhost"

[s3_web]
bind_addr = "[::]:3902"
root_domain = ".web.garage.localhost"
index = "index.html"

[admin]
api_bind_addr = "[::]:3903"
admin_token = ""
metrics_token = ""
"""


def render_server_config(config: Config, rpc_secret: str) -> str:
    """
    Render the server configuration file contents.

    Args:
        config: Bootstrap configuration providing the tokens
        rpc_secret: Hex-encoded RPC secret shared by cluster nodes

    Returns:
        TOML document as a string
    """
    doc = tomlkit.parse(SERVER_CONFIG_TEMPLATE)
    doc["rpc_secret"] = rpc_secret
    doc["s3_api"]["s3_region"] = config.s3_region
    doc["admin"]["admin_token"] = config.admin_token
    doc["admin"]["metrics_token"] = config.metrics_token
    return tomlkit.dumps(doc)


def write_server_config(config: Config) -> Path:
    """
    Write a freshly generated server configuration to ``config.server_config_path``.

    A new RPC secret is generated on every call.

    Returns:
        Path of the written file
    """
    path = Path(config.server_config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_server_config(config, random_hex(RPC_SECRET_BYTES)), encoding="utf-8")
    logger.info(f"Wrote garage configuration to {path}")
    return path
