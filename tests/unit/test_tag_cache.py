"""Unit tests for the tag cache.

Tests batched prefetch, TTL expiry, negative caching and failure handling.
"""

from unittest.mock import AsyncMock

import pytest

from tag_enrichment.clients.aws_client import AWSAPIError
from tag_enrichment.services.tag_cache import FAILURE_TTL_SECONDS, TagCache

TTL = 600


def make_arn(i: int) -> str:
    return f"arn:aws:ec2:us-east-1:123456789012:instance/i-{i:08x}"


@pytest.fixture
def fetch_tags():
    """Fetcher returning no tags for any ARN."""
    return AsyncMock(return_value={})


@pytest.fixture
def tag_cache(fetch_tags, clock):
    """Create a TagCache with a fake clock."""
    return TagCache(fetch_tags=fetch_tags, ttl_seconds=TTL, clock=clock)


class TestGet:
    """Test reads from the cache."""

    def test_unknown_arn_returns_empty(self, tag_cache):
        assert tag_cache.get(make_arn(1)) == {}

    def test_none_arn_returns_empty(self, tag_cache):
        assert tag_cache.get(None) == {}

    def test_get_never_fetches(self, tag_cache, fetch_tags):
        tag_cache.get(make_arn(1))
        fetch_tags.assert_not_called()

    def test_fresh_entry_returned(self, tag_cache):
        tag_cache.put(make_arn(1), {"Name": "web-1"})
        assert tag_cache.get(make_arn(1)) == {"Name": "web-1"}

    def test_expired_entry_returns_empty(self, tag_cache, clock):
        tag_cache.put(make_arn(1), {"Name": "web-1"})
        clock.advance(TTL)
        assert tag_cache.get(make_arn(1)) == {}
        assert make_arn(1) not in tag_cache

    def test_returns_copy(self, tag_cache):
        tag_cache.put(make_arn(1), {"Name": "web-1"})
        tag_cache.get(make_arn(1))["Name"] = "changed"
        assert tag_cache.get(make_arn(1)) == {"Name": "web-1"}


class TestPrefetch:
    """Test batched prefetch behaviour."""

    async def test_stores_returned_tags_and_negative_entries(self, tag_cache, fetch_tags, clock):
        tagged, untagged = make_arn(1), make_arn(2)
        fetch_tags.return_value = {tagged: {"Name": "web-1", "Environment": "prod"}}

        await tag_cache.prefetch([tagged, untagged])

        fetch_tags.assert_awaited_once_with([tagged, untagged])
        assert tag_cache.get(tagged) == {"Name": "web-1", "Environment": "prod"}
        assert tag_cache.get(untagged) == {}
        assert untagged in tag_cache

        clock.advance(TTL - 1)
        assert tag_cache.get(tagged) == {"Name": "web-1", "Environment": "prod"}

    async def test_fresh_entries_are_not_refetched(self, tag_cache, fetch_tags):
        await tag_cache.prefetch([make_arn(1)])
        await tag_cache.prefetch([make_arn(1)])
        assert fetch_tags.await_count == 1

    async def test_negative_entries_are_not_refetched(self, tag_cache, fetch_tags):
        fetch_tags.return_value = {}
        await tag_cache.prefetch([make_arn(1)])
        await tag_cache.prefetch([make_arn(1), make_arn(2)])

        assert fetch_tags.await_count == 2
        fetch_tags.assert_awaited_with([make_arn(2)])

    async def test_expired_entries_are_refetched(self, tag_cache, fetch_tags, clock):
        await tag_cache.prefetch([make_arn(1)])
        clock.advance(TTL + 1)
        await tag_cache.prefetch([make_arn(1)])
        assert fetch_tags.await_count == 2

    async def test_duplicates_and_none_are_ignored(self, tag_cache, fetch_tags):
        await tag_cache.prefetch([make_arn(1), None, make_arn(1), make_arn(2), None])
        fetch_tags.assert_awaited_once_with([make_arn(1), make_arn(2)])

    async def test_nothing_to_fetch(self, tag_cache, fetch_tags):
        await tag_cache.prefetch([])
        await tag_cache.prefetch([None])
        fetch_tags.assert_not_called()

    async def test_250_arns_use_three_calls(self, tag_cache, fetch_tags):
        arns = [make_arn(i) for i in range(250)]

        await tag_cache.prefetch(arns)

        sizes = [len(call.args[0]) for call in fetch_tags.await_args_list]
        assert sizes == [100, 100, 50]
        fetched = [arn for call in fetch_tags.await_args_list for arn in call.args[0]]
        assert fetched == arns

    async def test_only_stale_arns_are_batched(self, tag_cache, fetch_tags):
        await tag_cache.prefetch([make_arn(i) for i in range(50)])
        fetch_tags.reset_mock()

        await tag_cache.prefetch([make_arn(i) for i in range(150)])

        sizes = [len(call.args[0]) for call in fetch_tags.await_args_list]
        assert sizes == [100]


class TestPrefetchFailures:
    """Test negative caching of failed lookups."""

    async def test_failure_caches_empty_with_short_ttl(self, tag_cache, fetch_tags, clock):
        fetch_tags.side_effect = AWSAPIError("throttled", error_code="ThrottlingException")

        await tag_cache.prefetch([make_arn(1)])

        assert tag_cache.get(make_arn(1)) == {}
        assert make_arn(1) in tag_cache

        # Within the failure TTL no retry happens
        clock.advance(FAILURE_TTL_SECONDS - 1)
        await tag_cache.prefetch([make_arn(1)])
        assert fetch_tags.await_count == 1

        # After it, the next batch retries
        clock.advance(2)
        fetch_tags.side_effect = None
        fetch_tags.return_value = {make_arn(1): {"Team": "platform"}}
        await tag_cache.prefetch([make_arn(1)])
        assert fetch_tags.await_count == 2
        assert tag_cache.get(make_arn(1)) == {"Team": "platform"}

    async def test_failed_slice_does_not_affect_other_slices(self, tag_cache, fetch_tags):
        arns = [make_arn(i) for i in range(150)]

        async def flaky(batch):
            if batch[0] == arns[0]:
                raise AWSAPIError("service unavailable")
            return {arn: {"Name": arn[-10:]} for arn in batch}

        fetch_tags.side_effect = flaky

        await tag_cache.prefetch(arns)

        assert tag_cache.get(arns[0]) == {}
        assert tag_cache.get(arns[99]) == {}
        assert tag_cache.get(arns[100]) == {"Name": arns[100][-10:]}
        assert tag_cache.get(arns[149]) == {"Name": arns[149][-10:]}

    async def test_unexpected_exceptions_are_contained(self, tag_cache, fetch_tags):
        fetch_tags.side_effect = RuntimeError("boom")
        await tag_cache.prefetch([make_arn(1)])
        assert tag_cache.get(make_arn(1)) == {}
