"""
Cluster reconciliation.

Each ensure_* step converges one piece of cluster state to the
configuration and can be re-run from scratch after a partial failure.
Admin API errors propagate unchanged.
"""

import logging
from typing import Dict, Iterable, List

from .admin_client import GarageAdminClient
from .models import (
    DEFAULT_ZONE,
    MAX_CAPACITY,
    BucketConfig,
    BucketKeyPermissions,
    NodeRole,
    RemoteBucket,
    WebsiteAccess,
)

logger = logging.getLogger(__name__)


def ensure_layout(client: GarageAdminClient, node_id: str) -> None:
    """
    Assign the node full capacity in a fresh layout.

    Does nothing once a layout has been applied (version > 0).

    Args:
        client: Admin API client
        node_id: Id of the single cluster node
    """
    layout = client.get_cluster_layout()
    if layout.initialized:
        logger.info("Layout version > 0, skipping initialization")
        return

    logger.info("No layout found. Updating cluster...")
    staged = client.update_cluster_layout(
        [NodeRole(id=node_id, zone=DEFAULT_ZONE, capacity=MAX_CAPACITY, tags=[])]
    )
    logger.info("Layout updated. Applying layout...")
    client.apply_cluster_layout(staged.version + 1)
    logger.info("Layout applied.")


def ensure_key(
    client: GarageAdminClient, access_key_id: str, secret_access_key: str
) -> None:
    """Import the configured access key."""
    logger.info(f"Importing access key {access_key_id}")
    client.import_key(access_key_id, secret_access_key)


def bucket_alias_map(buckets: Iterable[RemoteBucket]) -> Dict[str, str]:
    """
    Map global aliases to bucket ids.

    Buckets without exactly one global alias are not addressable by name
    and are left out.
    """
    aliases = {}
    for bucket in buckets:
        if not bucket.global_aliases:
            logger.warning(f"Ignoring bucket without a global alias: {bucket}")
            continue
        if len(bucket.global_aliases) > 1:
            logger.warning(f"Ignoring bucket with more than one global alias: {bucket}")
            continue
        aliases[bucket.alias] = bucket.id
    return aliases


def ensure_buckets(
    client: GarageAdminClient, buckets: List[BucketConfig], access_key_id: str
) -> Dict[str, str]:
    """
    Create missing buckets, apply their policy and grant the access key.

    The website policy and the key grant are applied to every configured
    bucket on every run, including buckets that already existed.

    Args:
        client: Admin API client
        buckets: Desired buckets in configuration order
        access_key_id: Key receiving owner, read and write permissions

    Returns:
        Mapping of configured bucket name to bucket id
    """
    existing = bucket_alias_map(client.list_buckets())
    bucket_ids = {}

    for bucket_config in buckets:
        bucket_id = existing.get(bucket_config.name)
        if bucket_id is None:
            logger.info(f"Creating bucket {bucket_config.name!r}...")
            bucket_id = client.create_bucket(global_alias=bucket_config.name).id
            logger.info(f"Bucket {bucket_config.name!r} created")
        else:
            logger.info(f"Bucket {bucket_config.name!r} found with id {bucket_id!r}")

        logger.info(f"Updating bucket {bucket_config.name!r}")
        client.update_bucket(
            bucket_id, website_access=WebsiteAccess.for_policy(bucket_config.policy)
        )

        logger.info(f"Granting access to bucket {bucket_config.name!r}")
        client.allow_bucket_key(access_key_id, bucket_id, BucketKeyPermissions())
        bucket_ids[bucket_config.name] = bucket_id

    return bucket_ids
