import asyncio

import pytest

from conftest import FakeBackend, make_questions
from exam_panel.errors import CenterUnavailableError, ConfirmationRequiredError
from exam_panel.services.response_store import ResponseStore
from exam_panel.services.submission import SubmissionCoordinator, SubmissionState, SubmitTrigger


def _coordinator(backend, store, events):
    return SubmissionCoordinator(
        backend,
        "abc",
        store,
        on_submitted=lambda trigger: events.append(("submitted", trigger)),
        on_failed=lambda trigger, error: events.append(("failed", trigger)),
    )


def test_manual_submit_requires_confirmation():
    backend = FakeBackend()
    store = ResponseStore(make_questions(2))
    coordinator = _coordinator(backend, store, [])

    with pytest.raises(ConfirmationRequiredError):
        asyncio.run(coordinator.submit(SubmitTrigger.MANUAL))
    assert backend.submits == []
    assert coordinator.state is SubmissionState.IDLE


def test_success_locks_store_and_sends_full_snapshot():
    backend = FakeBackend()
    store = ResponseStore(make_questions(3))
    store.set_answer(1, "C")
    events = []
    coordinator = _coordinator(backend, store, events)

    assert asyncio.run(coordinator.submit(SubmitTrigger.MANUAL, confirmed=True)) is True

    responses, total = backend.submits[0]
    assert total == 3
    assert [r.selected_answer for r in responses] == ["", "C", ""]
    assert coordinator.state is SubmissionState.SUBMITTED
    assert store.locked
    assert events == [("submitted", SubmitTrigger.MANUAL)]


def test_timeout_submit_needs_no_confirmation():
    backend = FakeBackend()
    coordinator = _coordinator(backend, ResponseStore(make_questions(1)), [])

    assert asyncio.run(coordinator.submit(SubmitTrigger.TIMEOUT)) is True
    assert len(backend.submits) == 1


def test_concurrent_triggers_issue_one_call():
    backend = FakeBackend()
    coordinator = _coordinator(backend, ResponseStore(make_questions(2)), [])

    async def race():
        return await asyncio.gather(
            coordinator.submit(SubmitTrigger.MANUAL, confirmed=True),
            coordinator.submit(SubmitTrigger.TIMEOUT),
        )

    results = asyncio.run(race())
    assert sorted(results) == [False, True]
    assert len(backend.submits) == 1


def test_submit_after_success_is_noop():
    backend = FakeBackend()
    coordinator = _coordinator(backend, ResponseStore(make_questions(1)), [])

    asyncio.run(coordinator.submit(SubmitTrigger.TIMEOUT))
    assert asyncio.run(coordinator.submit(SubmitTrigger.MANUAL, confirmed=True)) is False
    assert len(backend.submits) == 1


def test_failure_releases_guard_for_retry():
    backend = FakeBackend()
    backend.submit_errors.append(CenterUnavailableError("network down"))
    store = ResponseStore(make_questions(2))
    events = []
    coordinator = _coordinator(backend, store, events)

    assert asyncio.run(coordinator.submit(SubmitTrigger.MANUAL, confirmed=True)) is False
    assert coordinator.state is SubmissionState.FAILED
    assert not coordinator.guarded
    assert not store.locked
    assert isinstance(coordinator.last_error, CenterUnavailableError)

    assert asyncio.run(coordinator.submit(SubmitTrigger.MANUAL, confirmed=True)) is True
    assert len(backend.submits) == 2
    assert coordinator.attempts == 2
    assert events == [("failed", SubmitTrigger.MANUAL), ("submitted", SubmitTrigger.MANUAL)]


def test_unexpected_backend_error_also_releases_guard():
    backend = FakeBackend()
    backend.submit_errors.append(RuntimeError("boom"))
    store = ResponseStore(make_questions(1))
    events = []
    coordinator = _coordinator(backend, store, events)

    assert asyncio.run(coordinator.submit(SubmitTrigger.TIMEOUT)) is False
    assert coordinator.state is SubmissionState.FAILED
    assert isinstance(coordinator.last_error, RuntimeError)
    assert events == [("failed", SubmitTrigger.TIMEOUT)]

    assert asyncio.run(coordinator.submit(SubmitTrigger.TIMEOUT)) is True
    assert len(backend.submits) == 2
