"""
S3 connectivity checks for bootstrapped buckets.

After reconciliation, optionally confirms that the configured access key
can write, read back and delete an object in every configured bucket
through the S3 API.
"""

import logging
import uuid
from typing import Any, Dict, Iterable

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

CHECK_DATA = b"Hello from Garage Bootstrap connectivity check!"


class BucketVerificationError(Exception):
    """A configured bucket failed the S3 round trip."""

    def __init__(self, failures: Dict[str, str]):
        self.failures = failures
        details = ", ".join(f"{bucket}: {error}" for bucket, error in failures.items())
        super().__init__(f"bucket verification failed ({details})")


class BucketCheck:
    """Runs an S3 put/get/delete round trip against one bucket."""

    def __init__(self, client: Any, bucket: str):
        self.client = client
        self.bucket = bucket

    def run(self) -> Dict[str, Any]:
        """
        Put, read back and delete a check object.

        Returns:
            Dictionary with per-step results and overall success
        """
        results = {"bucket": self.bucket, "tests": {}, "success": False}
        key = f"garage-bootstrap-check-{uuid.uuid4()}.txt"

        try:
            self.client.put_object(
                Bucket=self.bucket, Key=key, Body=CHECK_DATA, ContentType="text/plain"
            )
            results["tests"]["put_object"] = True
        except (BotoCoreError, ClientError) as e:
            results["error"] = str(e)
            return results

        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            results["tests"]["get_object"] = response["Body"].read() == CHECK_DATA
        except (BotoCoreError, ClientError) as e:
            results["tests"]["get_object"] = False
            results["error"] = str(e)
        finally:
            # The object exists once the put succeeded, remove it either way.
            try:
                self.client.delete_object(Bucket=self.bucket, Key=key)
                results["tests"]["delete_object"] = True
            except (BotoCoreError, ClientError) as e:
                results["tests"]["delete_object"] = False
                results.setdefault("error", str(e))

        if "error" in results:
            return results

        results["success"] = all(results["tests"].values())
        if not results["success"]:
            results["error"] = "object content mismatch"
        return results


def create_s3_client(endpoint: str, access_key: str, secret_key: str, region: str) -> Any:
    """Create a path-style boto3 S3 client for Garage."""
    if not endpoint.startswith(("http://", "https://")):
        endpoint = f"http://{endpoint}"
    return boto3.client(
        "s3",
        endpoint_url=endpoint,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name=region,
        config=BotoConfig(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        ),
    )


def verify_bucket_access(
    endpoint: str,
    access_key: str,
    secret_key: str,
    buckets: Iterable[str],
    region: str = "garage",
) -> Dict[str, Dict[str, Any]]:
    """
    Check every bucket with an S3 round trip.

    Args:
        endpoint: S3 endpoint URL
        access_key: Access key ID
        secret_key: Secret access key
        buckets: Bucket names to check
        region: Region name

    Returns:
        Check results by bucket name

    Raises:
        BucketVerificationError: If any bucket failed
    """
    client = create_s3_client(endpoint, access_key, secret_key, region)
    results = {}
    failures = {}
    for bucket in buckets:
        logger.info(f"Verifying S3 access to bucket {bucket!r}")
        result = BucketCheck(client, bucket).run()
        results[bucket] = result
        if not result["success"]:
            failures[bucket] = result.get("error", "unknown error")

    if failures:
        raise BucketVerificationError(failures)
    return results
