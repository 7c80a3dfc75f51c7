"""Tests for the progress sink adapters."""

import asyncio

import pytest

from worklog.errors import DeliveryError
from worklog.sinks import (
    CallbackSink,
    CollectingSink,
    ConsoleSink,
    QueueSink,
    deliver_delta,
    deliver_status,
)


@pytest.mark.asyncio
async def test_deliver_delta_awaits_async_callbacks():
    received = []

    async def on_delta(text):
        received.append(text)

    await deliver_delta(CallbackSink(on_delta), "chunk")
    assert received == ["chunk"]


@pytest.mark.asyncio
async def test_deliver_status_ignores_sinks_without_status():
    class DeltaOnly:
        def on_delta(self, text):
            pass

    await deliver_status(DeltaOnly(), "Summarizing...")
    await deliver_status(None, "Summarizing...")


@pytest.mark.asyncio
async def test_collecting_sink_joins_text():
    sink = CollectingSink()
    for text in ("a", "b", "c"):
        await deliver_delta(sink, text)
    await deliver_status(sink, "working")

    assert sink.text == "abc"
    assert sink.statuses == ["working"]


@pytest.mark.asyncio
async def test_queue_sink_times_out_instead_of_dropping():
    sink = QueueSink(maxsize=1, delivery_timeout=0.05)
    await sink.on_delta("first")

    with pytest.raises(DeliveryError):
        await sink.on_delta("second")


@pytest.mark.asyncio
async def test_queue_sink_iteration_ends_after_close():
    sink = QueueSink()
    await sink.on_delta("x")
    await sink.on_delta("y")
    sink.close()
    sink.close()

    assert [text async for text in sink] == ["x", "y"]


@pytest.mark.asyncio
async def test_closed_queue_sink_rejects_deltas():
    sink = QueueSink()
    sink.close()

    with pytest.raises(DeliveryError):
        await sink.on_delta("late")


@pytest.mark.asyncio
async def test_queue_sink_close_when_full_still_ends_iteration():
    sink = QueueSink(maxsize=1)
    await sink.on_delta("only")
    tasks_before = asyncio.all_tasks()
    sink.close()

    assert asyncio.all_tasks() == tasks_before
    items = await asyncio.wait_for(_collect(sink), timeout=1)
    assert items == ["only"]


@pytest.mark.asyncio
async def test_late_consumer_drains_after_delivery_timeout():
    sink = QueueSink(maxsize=1, delivery_timeout=0.05)
    await sink.on_delta("first")
    with pytest.raises(DeliveryError):
        await sink.on_delta("second")
    sink.close()

    items = await asyncio.wait_for(_collect(sink), timeout=1)
    assert items == ["first"]


@pytest.mark.asyncio
async def test_waiting_consumer_stops_on_close():
    sink = QueueSink()
    consumer = asyncio.ensure_future(_collect(sink))
    await sink.on_delta("a")
    await asyncio.sleep(0)
    sink.close()

    assert await asyncio.wait_for(consumer, timeout=1) == ["a"]


async def _collect(sink):
    return [text async for text in sink]


def test_console_sink_echoes_without_newlines(capsys):
    sink = ConsoleSink()
    sink.on_delta("Hello ")
    sink.on_delta("World")

    assert capsys.readouterr().out == "Hello World"
