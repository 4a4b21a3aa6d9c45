"""Tests for DispatchOrchestrator."""

import asyncio
import json

import httpx
import pytest

from bootforge.display import messages
from bootforge.jobs.models import JobStatus
from bootforge.jobs.orchestrator import (
    DispatchOrchestrator,
    OutcomeKind,
    build_provider_inputs,
)
from bootforge.providers.base import DispatchResult
from bootforge.providers.registry import ProviderRegistry
from bootforge.providers.selector import provider_index

from conftest import FakeProvider, make_metadata


def _orchestrator(store, display, *providers, max_attempts=5):
    return DispatchOrchestrator(
        store, ProviderRegistry(providers), display, max_attempts=max_attempts
    )


class TestDispatch:
    @pytest.mark.asyncio
    async def test_preferred_busy_falls_back_and_stays_processing(self, store, display):
        job = await store.create(make_metadata("DemoAnim"))
        providers = [FakeProvider("p0"), FakeProvider("p1")]
        preferred = provider_index(job.id, 2)
        other = 1 - preferred
        providers[preferred].available = False

        outcome = await _orchestrator(store, display, *providers).dispatch()

        assert outcome.kind == OutcomeKind.DISPATCHED
        assert outcome.provider_id == providers[other].id
        assert len(providers[other].dispatched) == 1
        assert providers[preferred].dispatched == []
        assert (await store.find_by_id(job.id)).status == JobStatus.PROCESSING
        assert display.edits == []

    @pytest.mark.asyncio
    async def test_all_busy_requeues_with_one_notification(self, store, display, metadata):
        job = await store.create(metadata)
        orchestrator = _orchestrator(
            store, display,
            FakeProvider("p0", available=False), FakeProvider("p1", available=False),
        )

        outcome = await orchestrator.dispatch(job.id)

        assert outcome.kind == OutcomeKind.REQUEUED
        assert (await store.find_by_id(job.id)).status == JobStatus.PENDING
        assert len(display.edits) == 1
        ref, text = display.edits[0]
        assert ref == metadata.display
        assert text == messages.requeued_busy_text()

    @pytest.mark.asyncio
    async def test_failed_dispatch_requeues_not_fails(self, store, display, metadata):
        job = await store.create(metadata)
        provider = FakeProvider("p0", result=DispatchResult(success=False, message="Status 500"))

        outcome = await _orchestrator(store, display, provider).dispatch(job.id)

        assert outcome.kind == OutcomeKind.REQUEUED
        assert outcome.provider_id == "p0"
        assert outcome.message == "Status 500"
        assert (await store.find_by_id(job.id)).status == JobStatus.PENDING
        assert [text for _, text in display.edits] == [messages.dispatch_failed_text()]

    @pytest.mark.asyncio
    async def test_raising_provider_requeues(self, store, display, metadata):
        job = await store.create(metadata)
        provider = FakeProvider("p0", trigger_error=httpx.ConnectError("unreachable"))

        outcome = await _orchestrator(store, display, provider).dispatch(job.id)

        assert outcome.kind == OutcomeKind.REQUEUED
        assert "ConnectError" in outcome.message
        assert (await store.find_by_id(job.id)).status == JobStatus.PENDING

    @pytest.mark.asyncio
    async def test_nothing_to_claim_is_silent(self, store, display):
        provider = FakeProvider("p0")
        outcome = await _orchestrator(store, display, provider).dispatch()

        assert outcome.kind == OutcomeKind.NOTHING_TO_CLAIM
        assert provider.probes == 0
        assert display.edits == []

    @pytest.mark.asyncio
    async def test_already_claimed_job_is_skipped(self, store, display, metadata):
        job = await store.create(metadata)
        await store.claim_for_processing(job.id)
        provider = FakeProvider("p0")

        outcome = await _orchestrator(store, display, provider).dispatch(job.id)

        assert outcome.kind == OutcomeKind.NOTHING_TO_CLAIM
        assert provider.dispatched == []

    @pytest.mark.asyncio
    async def test_concurrent_dispatch_sends_job_once(self, store, display, metadata):
        job = await store.create(metadata)
        provider = FakeProvider("p0")
        orchestrator = _orchestrator(store, display, provider)

        outcomes = await asyncio.gather(
            orchestrator.dispatch(job.id), orchestrator.dispatch(), orchestrator.dispatch(job.id)
        )

        kinds = sorted(o.kind.value for o in outcomes)
        assert kinds == ["dispatched", "nothing_to_claim", "nothing_to_claim"]
        assert len(provider.dispatched) == 1

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_change_outcome(self, store, metadata):
        class BrokenDisplay:
            async def edit_status(self, display, text):
                raise RuntimeError("telegram down")

        job = await store.create(metadata)
        orchestrator = DispatchOrchestrator(
            store, ProviderRegistry([FakeProvider("p0", available=False)]), BrokenDisplay()
        )

        outcome = await orchestrator.dispatch(job.id)

        assert outcome.kind == OutcomeKind.REQUEUED
        assert (await store.find_by_id(job.id)).status == JobStatus.PENDING


class TestRetryLimit:
    @pytest.mark.asyncio
    async def test_job_fails_after_max_attempts(self, store, display, metadata):
        job = await store.create(metadata)
        orchestrator = _orchestrator(
            store, display, FakeProvider("p0", available=False), max_attempts=3
        )

        kinds = [(await orchestrator.dispatch(job.id)).kind for _ in range(3)]

        assert kinds == [OutcomeKind.REQUEUED, OutcomeKind.REQUEUED, OutcomeKind.EXHAUSTED]
        final = await store.find_by_id(job.id)
        assert final.status == JobStatus.FAILED
        assert final.attempts == 3
        assert display.edits[-1][1] == messages.attempts_exhausted_text()

        # terminal jobs are never claimed again
        assert (await orchestrator.dispatch(job.id)).kind == OutcomeKind.NOTHING_TO_CLAIM


class TestProviderInputs:
    @pytest.mark.asyncio
    async def test_inputs_carry_file_and_metadata(self, store, metadata):
        job = await store.create(metadata)
        inputs = build_provider_inputs(job)

        assert inputs["video"] == metadata.file_id
        other = json.loads(inputs["other_metadata"])
        assert other["jobId"] == job.id
        assert other["msg_metadata"] == {"chatId": 1001, "messageId": 42}
        assert other["title"] == "DemoAnim"
        assert other["creator"] == {"id": 7, "name": "Alice"}
        assert other["ref_message_id"] == 9
