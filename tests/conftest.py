"""Pytest configuration and shared fixtures."""

import base64
import gzip
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from tag_enrichment.clients.aws_client import AWSClient
from tag_enrichment.config import Settings
from tag_enrichment.container import EnrichmentContainer

ACCOUNT_ID = "123456789012"
REGION = "us-east-1"


# =============================================================================
# Time and Configuration Fixtures
# =============================================================================

class FakeClock:
    """Controllable time source for cache TTL tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Provide a controllable clock."""
    return FakeClock()


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so boto3 never reaches for real ones."""
    for key, value in {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SECURITY_TOKEN": "testing",
        "AWS_SESSION_TOKEN": "testing",
        "AWS_DEFAULT_REGION": REGION,
    }.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def app_settings():
    """Settings with a known account, region and TTL."""
    return Settings(
        _env_file=None,
        ACCOUNT_ID=ACCOUNT_ID,
        AWS_REGION=REGION,
        CACHE_TTL_MINUTES=10,
        DEBUG=True,
    )


# =============================================================================
# AWS Mocks
# =============================================================================

@pytest.fixture
def mock_aws_client():
    """Create a mock AWSClient with empty responses."""
    client = MagicMock(spec=AWSClient)
    client.region = REGION
    client.get_resource_tags = AsyncMock(return_value={})
    client.list_running_instances = AsyncMock(return_value=[])
    client.list_in_use_volumes = AsyncMock(return_value=[])
    client.list_db_instances = AsyncMock(return_value=[])
    client.list_functions = AsyncMock(return_value=[])
    client.describe_instance = AsyncMock(return_value=None)
    client.describe_volume = AsyncMock(return_value=None)
    client.describe_db_instance = AsyncMock(return_value=None)
    client.get_function_configuration = AsyncMock(return_value=None)
    return client


@pytest.fixture
def container(app_settings, mock_aws_client, clock):
    """EnrichmentContainer wired to the mock AWS client and fake clock."""
    return EnrichmentContainer(settings=app_settings, aws_client=mock_aws_client, clock=clock)


# =============================================================================
# Test Data Fixtures
# =============================================================================

@pytest.fixture
def sample_ec2_instance():
    """DescribeInstances item for a running on-demand instance."""
    return {
        "InstanceId": "i-0abc123",
        "InstanceType": "t3.medium",
        "Architecture": "x86_64",
        "Placement": {"AvailabilityZone": "us-east-1a"},
        "PlatformDetails": "Linux/UNIX",
        "ImageId": "ami-0123456789abcdef0",
        "State": {"Name": "running"},
    }


@pytest.fixture
def sample_metric():
    """CloudWatch metric stream record for an EC2 instance."""
    return {
        "metric_stream_name": "enriched-metrics",
        "account_id": ACCOUNT_ID,
        "region": REGION,
        "namespace": "AWS/EC2",
        "metric_name": "CPUUtilization",
        "dimensions": {"InstanceId": "i-0abc123"},
        "timestamp": 1700000000000,
        "value": {"max": 12.5, "min": 1.0, "sum": 30.0, "count": 5.0},
        "unit": "Percent",
    }


@pytest.fixture
def sample_log_payload():
    """CloudWatch Logs subscription payload from an RDS log group."""
    return {
        "messageType": "DATA_MESSAGE",
        "owner": ACCOUNT_ID,
        "logGroup": "/aws/rds/instance/mydb/postgresql",
        "logStream": "mydb.0",
        "subscriptionFilters": ["enrichment"],
        "logEvents": [
            {"id": "1", "timestamp": 1700000000000, "message": "LOG: checkpoint starting"}
        ],
    }


# =============================================================================
# Firehose Envelope Helpers
# =============================================================================

def encode_metrics(metrics: list[dict]) -> str:
    """Encode metrics as Firehose data (base64 NDJSON)."""
    text = "".join(json.dumps(m) + "\n" for m in metrics)
    return base64.b64encode(text.encode()).decode()


def decode_metrics(data: str) -> list[dict]:
    text = base64.b64decode(data).decode()
    return [json.loads(line) for line in text.split("\n") if line.strip()]


def encode_log(payload: dict) -> str:
    """Encode a log subscription payload as Firehose data (base64 gzip JSON)."""
    return base64.b64encode(gzip.compress(json.dumps(payload).encode())).decode()


def decode_log(data: str) -> dict:
    return json.loads(gzip.decompress(base64.b64decode(data)))


def firehose_event(*datas: str) -> dict:
    """Build a Firehose transformation event from record data strings."""
    return {
        "invocationId": "invocation-1",
        "deliveryStreamArn": f"arn:aws:firehose:{REGION}:{ACCOUNT_ID}:deliverystream/enriched",
        "region": REGION,
        "records": [
            {
                "recordId": f"record-{i}",
                "approximateArrivalTimestamp": 1700000000000,
                "data": data,
            }
            for i, data in enumerate(datas)
        ],
    }


@pytest.fixture
def envelope():
    """Expose the envelope helpers to tests."""
    return type("Envelope", (), {
        "encode_metrics": staticmethod(encode_metrics),
        "decode_metrics": staticmethod(decode_metrics),
        "encode_log": staticmethod(encode_log),
        "decode_log": staticmethod(decode_log),
        "event": staticmethod(firehose_event),
    })


# =============================================================================
# Pytest Hooks
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks tests as property-based tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "property" in str(item.fspath):
            item.add_marker(pytest.mark.property)
