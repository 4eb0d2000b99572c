"""
Garage Admin API Client

Provides a Python interface to the Garage v2 admin API for cluster status,
layout management, key import and bucket configuration.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urljoin

import requests

from .models import (
    BucketKeyPermissions,
    ClusterLayout,
    ClusterStatus,
    NodeRole,
    RemoteBucket,
    WebsiteAccess,
)

logger = logging.getLogger(__name__)

Timeout = Union[float, Tuple[float, float]]


class GarageAdminClient:
    """Client for interacting with the Garage admin API."""

    def __init__(
        self,
        admin_endpoint: str,
        admin_token: str,
        timeout: Timeout = (1.0, 1.0),
    ):
        """
        Initialize the Garage admin client.

        Args:
            admin_endpoint: The URL of the Garage admin API (e.g., http://127.0.0.1:3903)
            admin_token: The admin token for authentication
            timeout: Request timeout in seconds, or a (connect, read) tuple
        """
        self.admin_endpoint = admin_endpoint.rstrip("/")
        self.admin_token = admin_token
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {admin_token}",
                "Content-Type": "application/json",
            }
        )

    def _request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict] = None,
        params: Optional[Dict] = None,
        log_errors: bool = True,
    ) -> Any:
        """
        Make a request to the admin API.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint path
            data: Request body data
            params: Query parameters
            log_errors: Log a failed request at error level before raising

        Returns:
            Decoded JSON response, or an empty dict for empty bodies

        Raises:
            requests.RequestException: If the request fails
        """
        url = urljoin(self.admin_endpoint + "/", endpoint.lstrip("/"))

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=data,
                params=params,
                timeout=self.timeout,
            )
            response.raise_for_status()

            if response.content:
                return response.json()
            return {}

        except requests.RequestException as e:
            if log_errors:
                logger.error(f"Request to {url} failed: {e}")
            raise

    # Cluster Operations
    def get_cluster_status(self, log_errors: bool = True) -> ClusterStatus:
        """
        Get the current cluster status.

        Args:
            log_errors: Log a failed request at error level; readiness polling
                turns this off while the listener is still coming up

        Returns:
            Nodes known to the cluster and whether they are up
        """
        return ClusterStatus.from_api(
            self._request("GET", "/v2/GetClusterStatus", log_errors=log_errors)
        )

    def get_cluster_layout(self) -> ClusterLayout:
        """
        Get the current cluster layout.

        Returns:
            Current layout; version 0 if no layout was ever applied
        """
        return ClusterLayout.from_api(self._request("GET", "/v2/GetClusterLayout"))

    def update_cluster_layout(self, roles: List[NodeRole]) -> ClusterLayout:
        """
        Stage role changes in the cluster layout.

        Args:
            roles: Role assignments to stage

        Returns:
            The layout including the staged changes
        """
        return ClusterLayout.from_api(
            self._request(
                "POST",
                "/v2/UpdateClusterLayout",
                data={"roles": [role.to_api() for role in roles]},
            )
        )

    def apply_cluster_layout(self, version: int) -> Dict[str, Any]:
        """
        Apply the staged layout changes.

        Args:
            version: The new layout version number

        Returns:
            Result of the layout application
        """
        return self._request("POST", "/v2/ApplyClusterLayout", data={"version": version})

    # Key Operations
    def import_key(
        self,
        access_key_id: str,
        secret_access_key: str,
        name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Import an existing access key.

        Args:
            access_key_id: The access key ID
            secret_access_key: The secret key (SENSITIVE - do not log)
            name: Optional display name for the key

        Returns:
            Imported key information
        """
        return self._request(
            "POST",
            "/v2/ImportKey",
            data={
                "accessKeyId": access_key_id,
                "secretAccessKey": secret_access_key,
                "name": name,
            },
        )

    # Bucket Operations
    def list_buckets(self) -> List[RemoteBucket]:
        """
        List all buckets in the cluster.

        Returns:
            Buckets with their global aliases
        """
        return [RemoteBucket.from_api(b) for b in self._request("GET", "/v2/ListBuckets")]

    def create_bucket(self, global_alias: Optional[str] = None) -> RemoteBucket:
        """
        Create a new bucket.

        Args:
            global_alias: Optional global alias for the bucket

        Returns:
            Created bucket information
        """
        return RemoteBucket.from_api(
            self._request(
                "POST",
                "/v2/CreateBucket",
                data={"globalAlias": global_alias, "localAlias": None},
            )
        )

    def update_bucket(
        self,
        bucket_id: str,
        website_access: Optional[WebsiteAccess] = None,
        quotas: Optional[Dict] = None,
    ) -> Dict[str, Any]:
        """
        Update bucket settings.

        Args:
            bucket_id: The bucket ID to update
            website_access: Website access configuration
            quotas: Quota configuration

        Returns:
            Updated bucket information
        """
        data = {
            "websiteAccess": website_access.to_api() if website_access is not None else None,
            "quotas": quotas,
        }
        return self._request(
            "POST", "/v2/UpdateBucket", data=data, params={"id": bucket_id}
        )

    def allow_bucket_key(
        self,
        access_key_id: str,
        bucket_id: str,
        permissions: Optional[BucketKeyPermissions] = None,
    ) -> Dict[str, Any]:
        """
        Grant bucket access to an access key.

        Args:
            access_key_id: The access key ID
            bucket_id: The bucket ID
            permissions: Permissions to grant, all of them by default

        Returns:
            Result of the permission grant
        """
        if permissions is None:
            permissions = BucketKeyPermissions()
        return self._request(
            "POST",
            "/v2/AllowBucketKey",
            data={
                "bucketId": bucket_id,
                "accessKeyId": access_key_id,
                "permissions": permissions.to_api(),
            },
        )
