#!/usr/bin/env python3
"""
Main entry point for the Garage Bootstrap service.

Starts the Garage server, configures it from environment variables or a
config file, and then exits with the server's own exit code.
"""

import argparse
import logging
import sys

from garage_bootstrap.bootstrap import GarageBootstrap
from garage_bootstrap.config import Config

logger = logging.getLogger(__name__)


def describe_error(error: BaseException) -> str:
    """Join an exception with its chain of causes."""
    messages = []
    while error is not None:
        messages.append(str(error) or error.__class__.__name__)
        error = error.__cause__
    return ": ".join(messages)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Start a single-node Garage server and bootstrap its cluster"
    )
    parser.add_argument(
        "--config",
        "-c",
        help="Path to a configuration file (YAML or JSON) with credentials and buckets",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Verify S3 access to every bucket after bootstrapping",
    )
    parser.add_argument(
        "--no-purge-keys",
        action="store_true",
        help="Keep access keys stored in the metadata database",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = Config.from_env(config_file=args.config)
        if args.verify:
            config.verify_buckets = True
        if args.no_purge_keys:
            config.purge_keys = False

        code = GarageBootstrap(config).run()

    except Exception as e:
        logger.error(f"Bootstrap failed: {describe_error(e)}")
        if args.verbose:
            logger.exception("Traceback")
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
