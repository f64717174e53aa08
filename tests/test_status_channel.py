from __future__ import annotations

import threading

import pytest

from talan.craft.status import StatusChannel, StatusReporter
from talan.craft.types import CraftState, Status
from talan.errors import ChannelClosed


def _drain(channel: StatusChannel):
    received = []
    while channel.pending():
        received.append(channel.recv(timeout=0))
    return received


def test_reporter_publishes_snapshot_per_mutation():
    channel = StatusChannel()
    reporter = StatusReporter(channel)

    reporter.set_step(2)
    reporter.set_state(CraftState.SETUP)
    reporter.set_craft(1)

    assert _drain(channel) == [
        Status(state=CraftState.QUEUED, task=0, craft=0, step=2),
        Status(state=CraftState.SETUP, task=0, craft=0, step=2),
        Status(state=CraftState.SETUP, task=0, craft=1, step=0),
    ]


def test_set_task_resets_craft_and_step():
    channel = StatusChannel()
    reporter = StatusReporter(channel)

    reporter.set_craft(3)
    reporter.set_step(4)
    reporter.set_task(1)

    assert reporter.status == Status(state=CraftState.QUEUED, task=1, craft=0, step=0)


def test_action_label_only_kept_while_crafting():
    channel = StatusChannel()
    reporter = StatusReporter(channel)

    reporter.set_state(CraftState.CRAFTING, "Basic Touch")
    assert reporter.status.action == "Basic Touch"

    reporter.set_state(CraftState.DONE, "ignored")
    assert reporter.status.action == ""
    assert reporter.status.is_done is True


def test_send_after_disconnect_raises_channel_closed():
    channel = StatusChannel()
    reporter = StatusReporter(channel)
    reporter.set_step(1)

    channel.disconnect()

    assert channel.pending() == 0
    with pytest.raises(ChannelClosed):
        reporter.set_step(2)
    # The reporter still reflects the attempted mutation.
    assert reporter.status.step == 2


def test_recv_drains_buffer_after_close_then_raises():
    channel = StatusChannel()
    channel.send(Status(step=1))
    channel.send(Status(step=2))
    channel.close()

    assert channel.closed is True
    assert channel.recv().step == 1
    assert channel.recv().step == 2
    with pytest.raises(ChannelClosed):
        channel.recv()
    with pytest.raises(ChannelClosed):
        channel.send(Status())


def test_recv_times_out_when_empty():
    channel = StatusChannel()
    with pytest.raises(TimeoutError):
        channel.recv(timeout=0.01)


def test_statuses_arrive_in_send_order_across_threads():
    channel = StatusChannel()
    total = 500

    def produce():
        for step in range(total):
            channel.send(Status(step=step))
        channel.close()

    producer = threading.Thread(target=produce)
    producer.start()

    received = []
    while True:
        try:
            received.append(channel.recv(timeout=5).step)
        except ChannelClosed:
            break
    producer.join()

    assert received == list(range(total))


def test_blocked_recv_wakes_on_disconnect():
    channel = StatusChannel()
    errors = []

    def consume():
        try:
            channel.recv(timeout=5)
        except ChannelClosed as exc:
            errors.append(exc)

    consumer = threading.Thread(target=consume)
    consumer.start()
    channel.disconnect()
    consumer.join(timeout=5)

    assert not consumer.is_alive()
    assert len(errors) == 1


def test_reset_rules_across_mutation_sequence():
    channel = StatusChannel()
    reporter = StatusReporter(channel)

    reporter.set_step(2)
    reporter.set_craft(3)
    reporter.set_task(4)
    reporter.set_state(CraftState.DONE)

    assert _drain(channel) == [
        Status(state=CraftState.QUEUED, task=0, craft=0, step=2),
        Status(state=CraftState.QUEUED, task=0, craft=3, step=0),
        Status(state=CraftState.QUEUED, task=4, craft=0, step=0),
        Status(state=CraftState.DONE, task=4, craft=0, step=0),
    ]
