from __future__ import annotations

from talan.craft.role_actions import ROLE_ACTIONS, RoleActionCache, is_role_action
from talan.craft.types import CraftTimings
from talan.input.recording import RecordingSurface


def test_role_action_lookup_is_case_insensitive():
    assert is_role_action("Innovation") is True
    assert is_role_action("  innovation ") is True
    assert is_role_action("BYREGOT'S BLESSING") is True
    assert is_role_action("Basic Synthesis") is False
    assert is_role_action("") is False
    assert len(ROLE_ACTIONS) == 32


def test_reconcile_only_enables_new_role_actions():
    surface = RecordingSurface()
    events = []
    cache = RoleActionCache(surface, event_sink=lambda kind, payload: events.append(kind))

    first = cache.reconcile(["Basic Touch", "Innovation", "Waste Not", "Innovation"])
    second = cache.reconcile(["innovation", "Manipulation", "Basic Synthesis"])

    assert first == ["Innovation", "Waste Not"]
    assert second == ["Manipulation"]
    assert surface.commands() == [
        '/aaction "Innovation" on',
        '/aaction "Waste Not" on',
        '/aaction "Manipulation" on',
    ]
    assert cache.active == frozenset({"innovation", "waste not", "manipulation"})
    assert events.count("role_action.enabled") == 3


def test_reconcile_waits_for_slotting_after_each_command():
    surface = RecordingSurface()
    timings = CraftTimings(char_delay_ms=0, submit_delay_ms=0, role_action_settle_ms=250)
    cache = RoleActionCache(surface, timings=timings)

    cache.reconcile(["Innovation", "Ingenuity"])

    waits = [value for kind, value in surface.events if kind == "wait"]
    assert waits == [0, 250, 0, 250]


def test_reconcile_without_role_actions_sends_nothing():
    surface = RecordingSurface()
    cache = RoleActionCache(surface)

    assert cache.reconcile(["Basic Synthesis", "Basic Touch"]) == []
    assert surface.events == []


def test_clear_always_sends_and_is_idempotent():
    surface = RecordingSurface()
    cache = RoleActionCache(surface)
    cache.reconcile(["Innovation"])

    cache.clear()
    cache.clear()

    assert cache.active == frozenset()
    assert surface.commands() == [
        '/aaction "Innovation" on',
        "/aaction clear",
        "/aaction clear",
    ]

    cache.reconcile(["Innovation"])
    assert surface.commands()[-1] == '/aaction "Innovation" on'


def test_failing_event_sink_does_not_break_reconcile():
    surface = RecordingSurface()

    def broken_sink(kind, payload):
        raise RuntimeError("sink down")

    cache = RoleActionCache(surface, event_sink=broken_sink)
    assert cache.reconcile(["Innovation"]) == ["Innovation"]
    cache.clear()
    assert cache.active == frozenset()
