"""
Unit tests for StatsAggregator.

Covers:
    - NotFound only when the link was never created
    - Count/recent visits composition and the recent-visit cap
    - Stats stay available after expiry
"""

from datetime import timedelta

import pytest

from linkr.analytics.stats import StatsAggregator
from linkr.errors import Expired, NotFound


async def test_stats_unknown_code(stats):
    with pytest.raises(NotFound):
        await stats.get_stats("missing")


async def test_round_trip_counts(resolver, stats):
    await resolver.create("https://example.com/a", custom_code="abc")
    assert (await resolver.resolve("abc")).original_url == "https://example.com/a"

    before = await stats.get_stats("abc")
    assert before.visit_count == 0
    assert before.visits == []

    await resolver.redirect("abc", ip_address="1.1.1.1", user_agent="ua")
    after = await stats.get_stats("abc")
    assert after.visit_count == 1
    assert after.visits[0].ip_address == "1.1.1.1"
    assert after.link.original_url == "https://example.com/a"


async def test_recent_visits_are_capped_but_count_is_total(resolver, storage, visit_log):
    await resolver.create("https://example.com", custom_code="busy")
    for _ in range(7):
        await resolver.redirect("busy")

    capped = StatsAggregator(storage=storage, visit_log=visit_log, recent_limit=3)
    result = await capped.get_stats("busy")
    assert result.visit_count == 7
    assert len(result.visits) == 3


async def test_stats_available_after_expiry(resolver, stats, clock):
    await resolver.create("https://example.com", custom_code="gone", expires_at=clock.now + timedelta(hours=1))
    await resolver.redirect("gone")
    clock.advance(hours=2)

    with pytest.raises(Expired):
        await resolver.redirect("gone")

    result = await stats.get_stats("gone")
    assert result.visit_count == 1
    assert result.link.expires_at == clock.now - timedelta(hours=1)
