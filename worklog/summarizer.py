"""
Summary generation engine.

Runs one summary end to end: serialize the logs, build the prompt, call the
configured LLM backend (streaming deltas to the caller's sink where the
backend supports it) and persist the final text.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence, Union

import httpx

from worklog.corpus import DateKey, serialize_corpus
from worklog.errors import SummaryError
from worklog.exporter import ResultWriter
from worklog.periods import resolve_request_period
from worklog.prompts import build_prompt
from worklog.providers import LocalProvider, create_provider
from worklog.sinks import ProgressSink, deliver_delta
from worklog.types import (
    EngineState,
    GenerationMode,
    LogEntry,
    ProviderConfig,
    SummaryRequest,
    SummaryResult,
)

logger = logging.getLogger(__name__)

LogMapping = Mapping[DateKey, Sequence[LogEntry]]
StateCallback = Callable[[EngineState], None]


class _Run:
    """State tracking for a single engine invocation."""

    def __init__(self, on_state: Optional[StateCallback]):
        self.run_id = uuid.uuid4().hex[:8]
        self.state = EngineState.IDLE
        self._on_state = on_state

    def advance(self, state: EngineState) -> None:
        logger.debug(f"[run {self.run_id}] {self.state.value} -> {state.value}")
        self.state = state
        if self._on_state is not None:
            self._on_state(state)


class _StreamingSink:
    """Moves the run into STREAMING on the first delta, then forwards."""

    def __init__(self, run: _Run, sink: Optional[ProgressSink]):
        self._run = run
        self._sink = sink

    async def on_delta(self, text: str) -> None:
        if self._run.state is not EngineState.STREAMING:
            self._run.advance(EngineState.STREAMING)
        await deliver_delta(self._sink, text)

    def on_status(self, message: str):
        handler = getattr(self._sink, "on_status", None)
        if handler is not None:
            return handler(message)
        return None


class SummaryEngine:
    """
    Orchestrates summary generation.

    The engine holds no per-run state; concurrent calls on one instance are
    independent.
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the engine.

        Args:
            output_dir: Directory summaries are written under
            transport: Optional httpx transport for every provider request
        """
        self.writer = ResultWriter(output_dir)
        self._transport = transport
        logger.info("SummaryEngine initialized")
        logger.debug(f"Summary output directory: {self.writer.output_dir}")

    async def generate(
        self,
        logs: LogMapping,
        request: SummaryRequest,
        config: ProviderConfig,
        sink: Optional[ProgressSink] = None,
        mode: GenerationMode = GenerationMode.STREAMING,
        now: Optional[Union[date, datetime]] = None,
        on_state: Optional[StateCallback] = None,
    ) -> SummaryResult:
        """
        Generate, persist and return a summary.

        Args:
            logs: Mapping of date to the entries recorded that day
            request: Summary kind, title and (custom only) dates
            config: Backend configuration for this run
            sink: Receiver of streamed deltas; ignored in blocking mode
            mode: STREAMING forwards deltas to the sink, BLOCKING does not
            now: Current instant for period resolution (defaults to now)
            on_state: Called with every state transition

        Returns:
            SummaryResult with the full text and the path it was written to

        Raises:
            InvalidRequest: Before any network call, for unusable input
            ProviderError: If the backend fails
            DecodeError: If a blocking response cannot be decoded
            IoError: If the summary cannot be saved
            asyncio.CancelledError: If the caller cancelled the run
        """
        run = _Run(on_state)
        logger.info(f"[run {run.run_id}] Generating {request.kind.value} summary ({mode.value})")

        try:
            run.advance(EngineState.BUILDING_PROMPT)
            period = resolve_request_period(request, now or datetime.now())
            corpus = serialize_corpus(logs)
            prompt = build_prompt(request.kind, request.title, corpus)
            provider = create_provider(config, transport=self._transport)

            run.advance(EngineState.INVOKING)
            if mode is GenerationMode.BLOCKING:
                provider_sink = None
            elif isinstance(provider, LocalProvider):
                provider_sink = sink
            else:
                provider_sink = _StreamingSink(run, sink)
            text = await provider.generate(prompt, provider_sink)

            run.advance(EngineState.PERSISTING)
            output_path = self.writer.write_for_period(text, period)

            run.advance(EngineState.DONE)
        except asyncio.CancelledError:
            logger.warning(f"[run {run.run_id}] Cancelled while {run.state.value}")
            raise
        except SummaryError as e:
            logger.error(f"[run {run.run_id}] Failed while {run.state.value}: {type(e).__name__}: {e}")
            run.advance(EngineState.FAILED)
            raise
        except Exception as e:
            logger.error(
                f"[run {run.run_id}] Unexpected failure while {run.state.value}: {type(e).__name__}: {e}",
                exc_info=True,
            )
            run.advance(EngineState.FAILED)
            raise
        finally:
            close = getattr(sink, "close", None)
            if close is not None:
                close()

        logger.info(f"[run {run.run_id}] Summary complete ({len(text)} chars)")
        return SummaryResult(
            full_text=text,
            output_path=output_path,
            period=period,
            provider=provider.kind,
        )

    def start(
        self,
        logs: LogMapping,
        request: SummaryRequest,
        config: ProviderConfig,
        sink: Optional[ProgressSink] = None,
        **kwargs,
    ) -> "asyncio.Task[SummaryResult]":
        """
        Schedule a run on the current event loop.

        Cancelling the returned task aborts the HTTP request; nothing is
        written for a cancelled run.
        """
        return asyncio.ensure_future(self.generate(logs, request, config, sink, **kwargs))


async def generate_summary(
    logs: LogMapping,
    request: SummaryRequest,
    config: ProviderConfig,
    sink: Optional[ProgressSink],
    output_dir: Union[str, Path],
    now: Optional[Union[date, datetime]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> SummaryResult:
    """Streaming entry point: deltas go to sink as they are decoded."""
    engine = SummaryEngine(output_dir, transport=transport)
    return await engine.generate(logs, request, config, sink, GenerationMode.STREAMING, now=now)


async def generate_summary_text(
    logs: LogMapping,
    request: SummaryRequest,
    config: ProviderConfig,
    output_dir: Union[str, Path],
    now: Optional[Union[date, datetime]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Blocking entry point: no sink calls, returns the final text."""
    engine = SummaryEngine(output_dir, transport=transport)
    result = await engine.generate(logs, request, config, None, GenerationMode.BLOCKING, now=now)
    return result.full_text


def run_summary(
    logs: LogMapping,
    request: SummaryRequest,
    config: ProviderConfig,
    output_dir: Union[str, Path],
    sink: Optional[ProgressSink] = None,
    now: Optional[Union[date, datetime]] = None,
) -> SummaryResult:
    """Synchronous wrapper for callers without an event loop."""
    mode = GenerationMode.STREAMING if sink is not None else GenerationMode.BLOCKING
    engine = SummaryEngine(output_dir)
    return asyncio.run(engine.generate(logs, request, config, sink, mode, now=now))
