"""
Data models for the Garage bootstrap.

Typed views of the admin API responses plus the desired bucket
configuration. Control-plane views are built fresh on every run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# Capacity assigned to the single node; the largest value the admin API accepts.
MAX_CAPACITY = 2**63 - 1

DEFAULT_ZONE = "dc1"
INDEX_DOCUMENT = "index.html"


class BucketPolicy(Enum):
    """Access policy for a configured bucket."""

    PRIVATE = "private"
    PUBLIC = "public"

    @classmethod
    def parse(cls, value: str) -> "BucketPolicy":
        """
        Parse a policy name, ignoring ASCII case.

        Raises:
            ValueError: If the value is not a known policy
        """
        return cls(value.lower())


def is_valid_bucket_name(name: str) -> bool:
    """Return True if name starts with an ASCII letter followed by ASCII alphanumerics."""
    if not name or not name.isascii():
        return False
    return name[0].isalpha() and name.isalnum()


@dataclass
class BucketConfig:
    """A bucket the bootstrap should converge to."""

    name: str
    policy: BucketPolicy = BucketPolicy.PRIVATE


@dataclass
class WebsiteAccess:
    """Website access settings of a bucket."""

    enabled: bool
    index_document: Optional[str] = None
    error_document: Optional[str] = None

    @classmethod
    def for_policy(cls, policy: BucketPolicy) -> "WebsiteAccess":
        if policy is BucketPolicy.PUBLIC:
            return cls(enabled=True, index_document=INDEX_DOCUMENT)
        return cls(enabled=False)

    def to_api(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "indexDocument": self.index_document,
            "errorDocument": self.error_document,
        }


@dataclass
class BucketKeyPermissions:
    """Permissions of an access key on a bucket."""

    owner: bool = True
    read: bool = True
    write: bool = True

    def to_api(self) -> Dict[str, bool]:
        return {"owner": self.owner, "read": self.read, "write": self.write}


@dataclass
class ClusterNode:
    id: str
    is_up: bool

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ClusterNode":
        return cls(id=data["id"], is_up=bool(data.get("isUp", False)))


@dataclass
class ClusterStatus:
    """Snapshot of the nodes known to the cluster."""

    nodes: List[ClusterNode] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ClusterStatus":
        return cls(nodes=[ClusterNode.from_api(node) for node in data.get("nodes") or []])


@dataclass
class NodeRole:
    """Role assignment of a node in the cluster layout."""

    id: str
    zone: str = DEFAULT_ZONE
    capacity: Optional[int] = MAX_CAPACITY
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "NodeRole":
        return cls(
            id=data["id"],
            zone=data.get("zone", ""),
            capacity=data.get("capacity"),
            tags=list(data.get("tags") or []),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "zone": self.zone,
            "capacity": self.capacity,
            "tags": self.tags,
        }


@dataclass
class ClusterLayout:
    """Cluster layout. Version 0 means the layout was never applied."""

    version: int
    roles: List[NodeRole] = field(default_factory=list)

    @property
    def initialized(self) -> bool:
        return self.version > 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ClusterLayout":
        return cls(
            version=int(data.get("version", 0)),
            roles=[NodeRole.from_api(role) for role in data.get("roles") or []],
        )


@dataclass
class RemoteBucket:
    """A bucket as listed by the admin API."""

    id: str
    global_aliases: List[str] = field(default_factory=list)

    @property
    def alias(self) -> Optional[str]:
        """The bucket's alias if it has exactly one, else None."""
        if len(self.global_aliases) == 1:
            return self.global_aliases[0]
        return None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RemoteBucket":
        return cls(id=data["id"], global_aliases=list(data.get("globalAliases") or []))
