"""
Progress sinks: the caller-supplied receivers of streamed text.

A sink only needs an ``on_delta(text)`` method; ``on_status(message)`` is
optional. Either may be a plain function or a coroutine function. The
engine delivers deltas one at a time, in decode order, awaiting each
delivery before decoding continues.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Protocol, Union

import click

from worklog.errors import DeliveryError

logger = logging.getLogger(__name__)

DeltaCallback = Callable[[str], Union[None, Awaitable[None]]]

_CLOSED = object()


class ProgressSink(Protocol):
    """Receiver of streamed text deltas."""

    def on_delta(self, text: str) -> Union[None, Awaitable[None]]:
        ...


async def deliver_delta(sink: Optional[ProgressSink], text: str) -> None:
    """Hand one delta to the sink, awaiting it if the sink is async."""
    if sink is None:
        return
    result = sink.on_delta(text)
    if inspect.isawaitable(result):
        await result


async def deliver_status(sink: Optional[ProgressSink], message: str) -> None:
    """Hand a status message to the sink if it accepts them."""
    handler = getattr(sink, "on_status", None)
    if handler is None:
        return
    result = handler(message)
    if inspect.isawaitable(result):
        await result


class CallbackSink:
    """Adapts a plain (or async) function to the sink interface."""

    def __init__(self, on_delta: DeltaCallback, on_status: Optional[Callable[[str], Any]] = None):
        self._on_delta = on_delta
        self._on_status = on_status

    def on_delta(self, text: str) -> Union[None, Awaitable[None]]:
        return self._on_delta(text)

    def on_status(self, message: str) -> Union[None, Awaitable[None]]:
        if self._on_status is None:
            return None
        return self._on_status(message)


class CollectingSink:
    """Keeps every delta and status message in memory."""

    def __init__(self):
        self.deltas: List[str] = []
        self.statuses: List[str] = []

    def on_delta(self, text: str) -> None:
        self.deltas.append(text)

    def on_status(self, message: str) -> None:
        self.statuses.append(message)

    @property
    def text(self) -> str:
        return "".join(self.deltas)


class QueueSink:
    """
    Channel-style sink backed by an asyncio.Queue.

    The producer side (the engine) awaits each put. With maxsize > 0 a slow
    consumer applies backpressure; if a put cannot complete within
    delivery_timeout seconds the run fails with DeliveryError instead of
    skipping the delta. Consumers iterate with ``async for``; iteration ends
    once close() has been called and the queue is drained.
    """

    def __init__(self, maxsize: int = 0, delivery_timeout: Optional[float] = 30.0):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed_event = asyncio.Event()
        self.delivery_timeout = delivery_timeout
        self.closed = False

    async def on_delta(self, text: str) -> None:
        if self.closed:
            raise DeliveryError("Sink is closed")
        try:
            await asyncio.wait_for(self._queue.put(text), timeout=self.delivery_timeout)
        except asyncio.TimeoutError:
            raise DeliveryError(
                f"Consumer did not accept a delta within {self.delivery_timeout:.0f}s"
            ) from None

    def close(self) -> None:
        """
        Signal end of stream to consumers. Safe to call more than once.

        Deltas already queued stay available; consumers stop once they
        have drained them.
        """
        if self.closed:
            return
        self.closed = True
        self._closed_event.set()

    def __aiter__(self) -> AsyncIterator[str]:
        return self._drain()

    async def _next_item(self) -> Any:
        """Wait for the next delta, or return _CLOSED once close() is called."""
        getter = asyncio.ensure_future(self._queue.get())
        closer = asyncio.ensure_future(self._closed_event.wait())
        try:
            await asyncio.wait({getter, closer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closer.cancel()
            if not getter.done():
                getter.cancel()
        if getter.done() and not getter.cancelled():
            return getter.result()
        return _CLOSED

    async def _drain(self) -> AsyncIterator[str]:
        while True:
            if self.closed and self._queue.empty():
                return
            item = await self._next_item()
            if item is _CLOSED:
                continue
            yield item


class ConsoleSink:
    """Echoes deltas to the terminal as they arrive."""

    def __init__(self, err: bool = False):
        self.err = err

    def on_delta(self, text: str) -> None:
        click.echo(text, nl=False, err=self.err)

    def on_status(self, message: str) -> None:
        click.secho(message, fg="cyan", err=True)
