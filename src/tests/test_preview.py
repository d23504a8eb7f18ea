from __future__ import annotations

import threading

import pytest

from conftest import FakeSource, comment, story
from hn_tui.datamodels import Failed, Loaded, Loading, Unset
from hn_tui.errors import NotFound
from hn_tui.preview import PreviewCoordinator, PreviewSlot
from hn_tui.resolver import StoryResolver


@pytest.fixture
def slot():
    return PreviewSlot()


@pytest.fixture
def history(slot):
    states = []
    slot.subscribe(states.append)
    return states


def make_coordinator(source, slot):
    return PreviewCoordinator(StoryResolver(source), slot)


def two_story_source() -> FakeSource:
    return FakeSource(
        [
            story(1, kids=[10]),
            comment(10),
            story(2, kids=[20]),
            comment(20),
        ]
    )


def test_slot_starts_unset(slot):
    assert isinstance(slot.state, Unset)


def test_request_goes_loading_then_loaded(slot, history):
    coordinator = make_coordinator(two_story_source(), slot)

    assert coordinator.request_preview(1).result(timeout=5) is True

    assert history[0] == Loading(1)
    assert isinstance(history[-1], Loaded)
    assert slot.state.data.item.id == 1
    assert [c.id for c in slot.state.data.comments] == [10]
    coordinator.close()


def test_newer_request_wins_when_older_finishes_last(slot, history):
    source = two_story_source()
    gate = threading.Event()
    source.gates[1] = gate
    coordinator = make_coordinator(source, slot)

    first = coordinator.request_preview(1)
    second = coordinator.request_preview(2)
    assert second.result(timeout=5) is True
    gate.set()
    assert first.result(timeout=5) is False

    assert isinstance(slot.state, Loaded)
    assert slot.state.story_id == 2
    assert not any(isinstance(s, Loaded) and s.story_id == 1 for s in history)
    coordinator.close()


def test_newer_request_wins_when_older_finishes_first(slot, history):
    source = two_story_source()
    gate_a, gate_b = threading.Event(), threading.Event()
    source.gates[10] = gate_a
    source.gates[2] = gate_b
    coordinator = make_coordinator(source, slot)

    first = coordinator.request_preview(1)
    second = coordinator.request_preview(2)
    gate_a.set()
    assert first.result(timeout=5) is False
    gate_b.set()
    assert second.result(timeout=5) is True

    assert slot.state.story_id == 2
    assert [type(s) for s in history] == [Loading, Loading, Loaded]
    coordinator.close()


def test_failure_sets_failed_state_with_kind(slot, history):
    source = two_story_source()
    source.fail(10, NotFound("deleted", 10))
    coordinator = make_coordinator(source, slot)

    coordinator.request_preview(1).result(timeout=5)

    assert slot.state == Failed(1, "not_found")
    coordinator.close()


def test_superseded_failure_is_not_shown(slot, history):
    source = two_story_source()
    gate = threading.Event()
    source.gates[1] = gate
    source.fail(1)
    coordinator = make_coordinator(source, slot)

    first = coordinator.request_preview(1)
    coordinator.request_preview(2).result(timeout=5)
    gate.set()
    first.result(timeout=5)

    assert slot.state.story_id == 2
    assert not any(isinstance(s, Failed) for s in history)
    coordinator.close()


def test_repeated_request_for_current_story_is_ignored(slot, history):
    source = two_story_source()
    coordinator = make_coordinator(source, slot)

    first = coordinator.request_preview(1)
    first.result(timeout=5)
    again = coordinator.request_preview(1)

    assert again is first
    assert source.calls.count(1) == 1
    assert len(history) == 2
    coordinator.close()


def test_request_after_failure_retries(slot):
    source = two_story_source()
    source.fail(1)
    coordinator = make_coordinator(source, slot)
    coordinator.request_preview(1).result(timeout=5)
    assert isinstance(slot.state, Failed)

    del source.failures[1]
    coordinator.request_preview(1).result(timeout=5)

    assert isinstance(slot.state, Loaded)
    coordinator.close()


def test_many_rapid_requests_end_on_the_last(slot):
    source = FakeSource([story(i) for i in range(1, 21)])
    source.delays = {i: 0.01 for i in range(1, 21)}
    coordinator = make_coordinator(source, slot)

    futures = [coordinator.request_preview(i) for i in range(1, 21)]
    assert futures[-1].result(timeout=5) is True

    assert slot.state.story_id == 20
    assert coordinator.current_token == 20
    coordinator.close()


def test_broken_observer_does_not_stop_others(slot):
    seen = []

    def broken(state):
        raise RuntimeError("boom")

    slot.subscribe(broken)
    slot.subscribe(seen.append)
    slot.set(Loading(1))

    assert seen == [Loading(1)]


def test_unsubscribe(slot):
    seen = []
    unsubscribe = slot.subscribe(seen.append)
    unsubscribe()
    slot.set(Loading(1))

    assert seen == []


def test_observer_can_request_another_preview(slot, history):
    coordinator = make_coordinator(two_story_source(), slot)
    follow_ups = []
    second_delivered = threading.Event()

    def chain_to_second(state):
        if isinstance(state, Loaded) and state.story_id == 1:
            follow_ups.append(coordinator.request_preview(2))
        elif isinstance(state, Loaded) and state.story_id == 2:
            second_delivered.set()

    slot.subscribe(chain_to_second)

    assert coordinator.request_preview(1).result(timeout=5) is True
    assert follow_ups[0].result(timeout=5) is True
    assert second_delivered.wait(timeout=5)

    assert slot.state.story_id == 2
    assert [(type(s), s.story_id) for s in history] == [
        (Loading, 1),
        (Loaded, 1),
        (Loading, 2),
        (Loaded, 2),
    ]
    coordinator.close()


def test_writes_made_during_delivery_reach_every_observer_in_order(slot):
    first_seen, second_seen = [], []

    def republish(state):
        first_seen.append(state)
        if state == Loading(1):
            slot.set(Loading(2))

    slot.subscribe(republish)
    slot.subscribe(second_seen.append)
    slot.set(Loading(1))

    assert first_seen == [Loading(1), Loading(2)]
    assert second_seen == [Loading(1), Loading(2)]
    assert slot.state == Loading(2)
