"""
Pytest fixtures for Garage Bootstrap tests.
"""

import os
from typing import Dict, List, Optional
from unittest.mock import MagicMock, patch

import pytest
import requests

from garage_bootstrap.config import Config
from garage_bootstrap.models import (
    BucketConfig,
    BucketKeyPermissions,
    BucketPolicy,
    ClusterLayout,
    ClusterNode,
    ClusterStatus,
    RemoteBucket,
    WebsiteAccess,
)


class FakeGarage:
    """In-memory stand-in for the admin API of a single-node Garage server."""

    def __init__(self, node_id: str = "node-1"):
        self.node_id = node_id
        # Scripted get_cluster_status answers; ClusterStatus or exception instances.
        self.status_responses: List = []
        self.layout_version = 0
        self.roles = []
        self.staged_roles = []
        self.keys: Dict[str, str] = {}
        self.buckets: Dict[str, RemoteBucket] = {}
        self.website: Dict[str, WebsiteAccess] = {}
        self.permissions: Dict[tuple, BucketKeyPermissions] = {}
        self.calls: List[tuple] = []
        self.fail_on: Dict[str, Exception] = {}
        self._next_id = 0

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise self.fail_on[name]

    def add_bucket(self, *aliases: str) -> str:
        self._next_id += 1
        bucket_id = f"bucket-{self._next_id}"
        self.buckets[bucket_id] = RemoteBucket(id=bucket_id, global_aliases=list(aliases))
        return bucket_id

    def bucket_id(self, alias: str) -> Optional[str]:
        for bucket in self.buckets.values():
            if bucket.global_aliases == [alias]:
                return bucket.id
        return None

    def called(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    def get_cluster_status(self, log_errors=True):
        self._call("get_cluster_status")
        if self.status_responses:
            response = self.status_responses.pop(0)
        else:
            response = ClusterStatus(nodes=[ClusterNode(id=self.node_id, is_up=True)])
        if isinstance(response, Exception):
            raise response
        return response

    def get_cluster_layout(self):
        self._call("get_cluster_layout")
        return ClusterLayout(version=self.layout_version, roles=list(self.roles))

    def update_cluster_layout(self, roles):
        self._call("update_cluster_layout", roles)
        self.staged_roles = list(roles)
        return ClusterLayout(version=self.layout_version, roles=list(self.roles))

    def apply_cluster_layout(self, version):
        self._call("apply_cluster_layout", version)
        if version != self.layout_version + 1:
            raise requests.HTTPError(f"invalid layout version {version}")
        self.layout_version = version
        self.roles = self.staged_roles
        self.staged_roles = []
        return {}

    def import_key(self, access_key_id, secret_access_key, name=None):
        self._call("import_key", access_key_id)
        self.keys[access_key_id] = secret_access_key
        return {"accessKeyId": access_key_id}

    def list_buckets(self):
        self._call("list_buckets")
        return [
            RemoteBucket(id=b.id, global_aliases=list(b.global_aliases))
            for b in self.buckets.values()
        ]

    def create_bucket(self, global_alias=None):
        self._call("create_bucket", global_alias)
        bucket_id = self.add_bucket(global_alias)
        return RemoteBucket(id=bucket_id, global_aliases=[global_alias])

    def update_bucket(self, bucket_id, website_access=None, quotas=None):
        self._call("update_bucket", bucket_id)
        if bucket_id not in self.buckets:
            raise requests.HTTPError(f"no such bucket {bucket_id}")
        self.website[bucket_id] = website_access
        return {}

    def allow_bucket_key(self, access_key_id, bucket_id, permissions=None):
        self._call("allow_bucket_key", access_key_id, bucket_id)
        if bucket_id not in self.buckets:
            raise requests.HTTPError(f"no such bucket {bucket_id}")
        self.permissions[(access_key_id, bucket_id)] = permissions
        return {}

    def snapshot(self):
        return (
            self.layout_version,
            [role.to_api() for role in self.roles],
            dict(self.keys),
            {k: list(v.global_aliases) for k, v in self.buckets.items()},
            {k: v.to_api() for k, v in self.website.items()},
            {k: v.to_api() for k, v in self.permissions.items()},
        )


class FakeProcess:
    """Server process that exits after a number of polls."""

    def __init__(self, exit_after_polls: Optional[int] = None, returncode: int = 0):
        self.exit_after_polls = exit_after_polls
        self.returncode = returncode
        self.polls = 0
        self.terminated = False

    def poll(self):
        self.polls += 1
        if self.terminated:
            return -15
        if self.exit_after_polls is not None and self.polls > self.exit_after_polls:
            return self.returncode
        return None

    def wait(self):
        return self.returncode

    def terminate(self, timeout=10.0):
        self.terminated = True


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = 0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps += 1
        self.now += seconds


@pytest.fixture
def fake_garage():
    return FakeGarage()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_process_class():
    return FakeProcess


@pytest.fixture
def bootstrap_config(tmp_path):
    """Configuration declaring a public "site" and a private "data" bucket."""
    return Config(
        admin_token="test-admin-token",
        metrics_token="test-metrics-token",
        access_key_id="GK31c2f218a2e44f485b94239e",
        secret_access_key="b892c0665f0ada8a4755dae98baa3b133590e11dae3bcc1f9d769d67f16c3835",
        buckets=[
            BucketConfig(name="site", policy=BucketPolicy.PUBLIC),
            BucketConfig(name="data"),
        ],
        server_binary="/garage",
        server_config_path=str(tmp_path / "etc" / "garage.toml"),
        metadata_db_path=str(tmp_path / "meta" / "db.sqlite"),
    )


@pytest.fixture
def mock_env_vars():
    """Set up mock environment variables for testing."""
    env_vars = {
        "GARAGE_ADMIN_TOKEN": "test-admin-token",
        "GARAGE_METRICS_TOKEN": "test-metrics-token",
        "GARAGE_ACCESS_KEY_ID": "GKtest123",
        "GARAGE_SECRET_ACCESS_KEY": "testsecret123",
        "GARAGE_BUCKETS": "site:public,data",
    }
    with patch.dict(os.environ, env_vars, clear=True):
        yield env_vars


@pytest.fixture
def mock_session():
    """A requests session whose responses can be scripted per test."""
    session = MagicMock()
    response = MagicMock()
    response.json.return_value = {}
    response.content = b"{}"
    session.request.return_value = response
    return session
