"""Shared fixtures and fakes for the test suite."""

from typing import Any, Dict, List, Optional

import pytest

from bootforge.display.base import RecordingDisplay
from bootforge.jobs.models import JobMetadata
from bootforge.jobs.store import InMemoryJobStore
from bootforge.posts.store import InMemoryPostStore
from bootforge.providers.base import CIProvider, DispatchResult


def make_metadata(title: str = "DemoAnim", chat_id: int = 1001, message_id: int = 42) -> JobMetadata:
    return JobMetadata(
        file_id=f"file-{title}",
        title=title,
        creator={"id": 7, "name": "Alice"},
        display={"chat_id": chat_id, "message_id": message_id},
        video_ref_message_id=9,
    )


class FakeProvider(CIProvider):
    """Provider double that records dispatches."""

    def __init__(
        self,
        provider_id: str,
        available: bool = True,
        result: Optional[DispatchResult] = None,
        probe_error: Optional[Exception] = None,
        trigger_error: Optional[Exception] = None,
    ):
        self.id = provider_id
        self.available = available
        self.result = result or DispatchResult(success=True, message="ok")
        self.probe_error = probe_error
        self.trigger_error = trigger_error
        self.probes = 0
        self.dispatched: List[Dict[str, Any]] = []

    async def is_available(self) -> bool:
        self.probes += 1
        if self.probe_error is not None:
            raise self.probe_error
        return self.available

    async def trigger_workflow(self, inputs: Dict[str, Any]) -> DispatchResult:
        if self.trigger_error is not None:
            raise self.trigger_error
        self.dispatched.append(inputs)
        return self.result


@pytest.fixture
def store():
    return InMemoryJobStore()


@pytest.fixture
def posts():
    return InMemoryPostStore()


@pytest.fixture
def display():
    return RecordingDisplay(channel="@bootchannel")


@pytest.fixture
def metadata():
    return make_metadata()
