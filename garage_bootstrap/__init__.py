"""
Garage Bootstrap - first-boot bootstrapper for a single-node Garage S3 server.

This package provides utilities for:
- Generating the server configuration and launching the server
- Waiting for the cluster node to become ready
- Cluster layout initialization
- Access key import and declarative bucket creation
- Optional S3 connectivity checks of the configured buckets
"""

__version__ = "0.1.0"
