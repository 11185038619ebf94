"""AWS client wrapper for tag and resource lookups."""

import asyncio
import logging
from typing import Any, Callable

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

# Resource Groups Tagging API accepts at most 100 ARNs per GetResources call
MAX_ARNS_PER_TAG_REQUEST = 100

# Error codes meaning "the resource does not exist" for single-resource lookups
NOT_FOUND_ERROR_CODES = frozenset([
    "InvalidInstanceID.NotFound",
    "InvalidInstanceID.Malformed",
    "InvalidVolume.NotFound",
    "InvalidVolumeID.Malformed",
    "DBInstanceNotFound",
    "DBInstanceNotFoundFault",
    "ResourceNotFoundException",
])


class AWSAPIError(Exception):
    """Raised when AWS API calls fail."""

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code

    @property
    def is_not_found(self) -> bool:
        return self.error_code in NOT_FOUND_ERROR_CODES


class AWSClient:
    """
    Wrapper around the boto3 clients used for enrichment lookups.

    Uses the Lambda execution role for authentication - no hardcoded credentials.
    Calls are never retried: a failed lookup is cached as a short-lived
    negative entry by the caller instead, and bounded timeouts keep any single
    call from blocking the invocation.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        connect_timeout: int = 5,
        read_timeout: int = 10,
    ):
        """
        Initialize AWS clients.

        Args:
            region: AWS region to use for regional services
            connect_timeout: Connect timeout in seconds
            read_timeout: Read timeout in seconds
        """
        config = Config(
            region_name=region,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            retries={
                'max_attempts': 1,
                'mode': 'standard'
            }
        )

        # Created once per process and reused across invocations
        self.region = region
        self.tagging = boto3.client('resourcegroupstaggingapi', config=config)
        self.ec2 = boto3.client('ec2', config=config)
        self.rds = boto3.client('rds', config=config)
        self.lambda_client = boto3.client('lambda', config=config)

    async def _call(self, service_name: str, func: Callable, *args, **kwargs) -> Any:
        """
        Run a blocking boto3 call in the default executor.

        Args:
            service_name: Name of the AWS service (for error messages)
            func: Callable performing the boto3 work
            *args: Positional arguments for the callable
            **kwargs: Keyword arguments for the callable

        Returns:
            Whatever the callable returns

        Raises:
            AWSAPIError: If the call fails
        """
        try:
            loop = asyncio.get_event_loop()
            return await loop.run_in_executor(
                None,
                lambda: func(*args, **kwargs)
            )

        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            raise AWSAPIError(
                f"AWS API error ({service_name}): {error_code} - {str(e)}",
                error_code=error_code,
            ) from e

        except BotoCoreError as e:
            raise AWSAPIError(f"Boto3 error ({service_name}): {str(e)}") from e

    @staticmethod
    def _drain(client, operation: str, result_key: str, **kwargs) -> list[dict[str, Any]]:
        """Collect every item of a paginated operation."""
        items = []
        paginator = client.get_paginator(operation)
        for page in paginator.paginate(**kwargs):
            items.extend(page.get(result_key, []))
        return items

    @staticmethod
    def _extract_tags(tag_list: list[dict[str, str]]) -> dict[str, str]:
        """
        Convert AWS tag list format to dictionary.

        Args:
            tag_list: List of tags in AWS format [{"Key": "...", "Value": "..."}]

        Returns:
            Dictionary of tag key-value pairs
        """
        if not tag_list:
            return {}

        result = {}
        for tag in tag_list:
            key = tag.get("Key", "")
            if key:
                result[key] = tag.get("Value", "")

        return result

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def get_resource_tags(self, arns: list[str]) -> dict[str, dict[str, str]]:
        """
        Look up tags for up to 100 resources in one GetResources call.

        Args:
            arns: Resource ARNs to look up

        Returns:
            Mapping of ARN to tags for the resources AWS returned. ARNs that
            are missing from the mapping have no tags (or do not exist).

        Raises:
            ValueError: If more than 100 ARNs are requested
            AWSAPIError: If the call fails
        """
        if len(arns) > MAX_ARNS_PER_TAG_REQUEST:
            raise ValueError(
                f"GetResources accepts at most {MAX_ARNS_PER_TAG_REQUEST} ARNs, got {len(arns)}"
            )
        if not arns:
            return {}

        response = await self._call(
            "tagging",
            self.tagging.get_resources,
            ResourceARNList=list(arns)
        )

        result = {}
        for mapping in response.get("ResourceTagMappingList", []):
            arn = mapping.get("ResourceARN")
            if arn:
                result[arn] = self._extract_tags(mapping.get("Tags", []))

        return result

    # ------------------------------------------------------------------
    # Bulk listings (fully drained paginators)
    # ------------------------------------------------------------------

    async def list_running_instances(self) -> list[dict[str, Any]]:
        """List all running EC2 instances."""

        def _list():
            reservations = self._drain(
                self.ec2,
                "describe_instances",
                "Reservations",
                Filters=[{"Name": "instance-state-name", "Values": ["running"]}]
            )
            return [
                instance
                for reservation in reservations
                for instance in reservation.get("Instances", [])
            ]

        return await self._call("ec2", _list)

    async def list_in_use_volumes(self) -> list[dict[str, Any]]:
        """List all EBS volumes attached to an instance."""
        return await self._call(
            "ec2",
            self._drain,
            self.ec2,
            "describe_volumes",
            "Volumes",
            Filters=[{"Name": "status", "Values": ["in-use"]}]
        )

    async def list_db_instances(self) -> list[dict[str, Any]]:
        """List all RDS DB instances."""
        return await self._call(
            "rds", self._drain, self.rds, "describe_db_instances", "DBInstances"
        )

    async def list_functions(self) -> list[dict[str, Any]]:
        """List all Lambda functions."""
        return await self._call(
            "lambda", self._drain, self.lambda_client, "list_functions", "Functions"
        )

    # ------------------------------------------------------------------
    # Single-resource lookups
    # ------------------------------------------------------------------

    async def _get_one(self, service_name: str, func: Callable, **kwargs) -> Any:
        """Run a single-resource lookup, mapping not-found errors to None."""
        try:
            return await self._call(service_name, func, **kwargs)
        except AWSAPIError as e:
            if e.is_not_found:
                logger.debug(f"{service_name} lookup found nothing: {e.error_code}")
                return None
            raise

    async def describe_instance(self, instance_id: str) -> dict[str, Any] | None:
        """Fetch one EC2 instance, or None if it does not exist."""
        response = await self._get_one(
            "ec2", self.ec2.describe_instances, InstanceIds=[instance_id]
        )
        if not response:
            return None
        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                if instance.get("InstanceId") == instance_id:
                    return instance
        return None

    async def describe_volume(self, volume_id: str) -> dict[str, Any] | None:
        """Fetch one EBS volume, or None if it does not exist."""
        response = await self._get_one(
            "ec2", self.ec2.describe_volumes, VolumeIds=[volume_id]
        )
        if not response:
            return None
        for volume in response.get("Volumes", []):
            if volume.get("VolumeId") == volume_id:
                return volume
        return None

    async def describe_db_instance(self, db_identifier: str) -> dict[str, Any] | None:
        """Fetch one RDS DB instance, or None if it does not exist."""
        response = await self._get_one(
            "rds", self.rds.describe_db_instances, DBInstanceIdentifier=db_identifier
        )
        if not response:
            return None
        instances = response.get("DBInstances", [])
        return instances[0] if instances else None

    async def get_function_configuration(self, function_name: str) -> dict[str, Any] | None:
        """Fetch one Lambda function's configuration, or None if it does not exist."""
        response = await self._get_one(
            "lambda", self.lambda_client.get_function, FunctionName=function_name
        )
        if not response:
            return None
        return response.get("Configuration")
