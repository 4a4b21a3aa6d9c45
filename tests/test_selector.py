"""Tests for deterministic provider selection."""

import pytest

from bootforge.providers.selector import provider_index, select_provider

from conftest import FakeProvider


class TestProviderIndex:
    def test_stable_and_in_range(self):
        for job_id in ("J1", "abc", "0f3e"):
            index = provider_index(job_id, 3)
            assert 0 <= index < 3
            assert provider_index(job_id, 3) == index

    def test_single_provider_is_always_zero(self):
        assert provider_index("anything", 1) == 0


class TestSelectProvider:
    @pytest.mark.asyncio
    async def test_prefers_hashed_provider(self):
        providers = [FakeProvider("p0"), FakeProvider("p1"), FakeProvider("p2")]
        preferred = provider_index("J1", 3)

        chosen = await select_provider("J1", providers)

        assert chosen is providers[preferred]
        assert sum(p.probes for p in providers) == 1

    @pytest.mark.asyncio
    async def test_falls_back_in_list_order(self):
        providers = [FakeProvider(f"p{i}") for i in range(3)]
        preferred = provider_index("J1", 3)
        providers[preferred].available = False
        expected = next(p for i, p in enumerate(providers) if i != preferred)

        assert await select_provider("J1", providers) is expected

    @pytest.mark.asyncio
    async def test_none_available_returns_none(self):
        providers = [FakeProvider("p0", available=False), FakeProvider("p1", available=False)]
        assert await select_provider("J1", providers) is None
        assert [p.probes for p in providers] == [1, 1]

    @pytest.mark.asyncio
    async def test_probe_errors_count_as_busy(self):
        providers = [
            FakeProvider("p0", probe_error=RuntimeError("down")),
            FakeProvider("p1", probe_error=RuntimeError("down")),
        ]
        assert await select_provider("J1", providers) is None

    @pytest.mark.asyncio
    async def test_empty_registry(self):
        assert await select_provider("J1", []) is None

    @pytest.mark.asyncio
    async def test_deterministic_for_same_availability(self):
        def build():
            providers = [FakeProvider(f"p{i}") for i in range(4)]
            providers[provider_index("job-x", 4)].available = False
            return providers

        first = await select_provider("job-x", build())
        for _ in range(5):
            again = await select_provider("job-x", build())
            assert again.id == first.id
