"""
LLM backends for summary generation.

Two families are supported:

- LocalProvider: a blocking request against a local Ollama server.
- RemoteStreamProvider: a streaming chat-completions request against either
  an OpenAI-compatible endpoint or Alibaba Dashscope. Only the payload
  defaults differ between the two dialects; responses of either shape are
  decoded by the same SSE decoder.

Network failures are classified into ProviderError kinds before they leave
this module.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from ollama import AsyncClient, ResponseError

from worklog.errors import DecodeError, InvalidRequest, ProviderError, ProviderErrorKind, SummaryError
from worklog.sinks import ProgressSink, deliver_delta, deliver_status
from worklog.streaming import iter_text_deltas
from worklog.types import PromptPair, ProviderConfig, ProviderKind

logger = logging.getLogger(__name__)

DASHSCOPE_MARKER = "dashscope"
DEFAULT_MODELS = {
    ProviderKind.REMOTE_OPENAI: "gpt-4",
    ProviderKind.REMOTE_DASHSCOPE: "qwen-max",
}

CONNECT_TIMEOUT = 30.0
LOCAL_TOTAL_TIMEOUT = 120.0
REMOTE_TOTAL_TIMEOUT = 180.0

LOCAL_STATUS_ANALYZING = "Analyzing work logs..."
LOCAL_STATUS_SUMMARIZING = "Summarizing..."


def resolve_provider_kind(config: ProviderConfig) -> ProviderKind:
    """Pick the backend for a run from the configuration alone."""
    if config.use_local:
        return ProviderKind.LOCAL
    if DASHSCOPE_MARKER in config.remote_url.lower():
        return ProviderKind.REMOTE_DASHSCOPE
    if (config.remote_model or "").lower().startswith("qwen"):
        return ProviderKind.REMOTE_DASHSCOPE
    return ProviderKind.REMOTE_OPENAI


def validate_provider_config(config: ProviderConfig, kind: ProviderKind) -> None:
    """
    Check that the branch selected by use_local is usable.

    Raises:
        InvalidRequest: If a required endpoint, model or key is empty
    """
    if kind is ProviderKind.LOCAL:
        if not config.local_endpoint.strip():
            raise InvalidRequest("Local inference endpoint is not configured")
        if not config.local_model.strip():
            raise InvalidRequest("Local model name is not configured")
        return

    if not config.remote_url.strip() or not config.remote_api_key.strip():
        raise InvalidRequest("Remote API URL or API key is not configured")


def error_for_status(
    status: int,
    body: str,
    kind: ProviderKind,
    model: Optional[str] = None,
) -> ProviderError:
    """
    Map a non-success HTTP status to a ProviderError.

    Args:
        status: HTTP status code
        body: Response body (may be empty)
        kind: Backend that answered, used for the 404 hint
        model: Model that was requested, used for the 404 hint

    Returns:
        ProviderError (not raised)
    """
    if status == 401:
        return ProviderError(
            ProviderErrorKind.AUTH_FAILED,
            "Authentication failed (401), check the API key",
            status_code=status, body=body,
        )
    if status == 403:
        return ProviderError(
            ProviderErrorKind.FORBIDDEN,
            "Access denied (403), the key lacks permission for this model or endpoint",
            status_code=status, body=body,
        )
    if status == 404:
        hint = None
        if kind is ProviderKind.REMOTE_DASHSCOPE:
            hint = (
                "Dashscope URLs look like "
                "https://dashscope.aliyuncs.com/compatible-mode/v1/chat/completions"
            )
        elif kind is ProviderKind.LOCAL and model:
            hint = f"make sure the model is installed: ollama pull {model}"
        return ProviderError(
            ProviderErrorKind.NOT_FOUND,
            "Endpoint or model not found (404)",
            status_code=status, body=body, hint=hint,
        )
    if status == 429:
        return ProviderError(
            ProviderErrorKind.RATE_LIMITED,
            "Rate limited (429), try again later",
            status_code=status, body=body,
        )
    if status >= 500:
        return ProviderError(
            ProviderErrorKind.SERVER_UNAVAILABLE,
            f"Provider unavailable ({status})",
            status_code=status, body=body,
        )
    return ProviderError(
        ProviderErrorKind.GENERIC,
        f"Provider request failed ({status}): {body[:200]}",
        status_code=status, body=body,
    )


def classify_transport_error(exc: BaseException, label: str) -> ProviderError:
    """Turn a network-level exception into a ProviderError."""
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return ProviderError(ProviderErrorKind.TIMEOUT, f"{label} request timed out")
    if isinstance(exc, (httpx.ConnectError, ConnectionError)):
        return ProviderError(ProviderErrorKind.CONNECT_FAILED, f"Could not connect to {label}: {exc}")
    return ProviderError(ProviderErrorKind.TRANSPORT, f"{label} request failed: {type(exc).__name__}: {exc}")


class LocalProvider:
    """
    Blocking generation against a local Ollama server.

    Never streams content. When a sink is supplied it only receives two
    cosmetic status messages through on_status.
    """

    kind = ProviderKind.LOCAL

    def __init__(
        self,
        config: ProviderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        total_timeout: float = LOCAL_TOTAL_TIMEOUT,
    ):
        self.endpoint = config.local_endpoint.rstrip("/")
        self.model = config.local_model
        self.total_timeout = total_timeout
        self._transport = transport

    def _client(self) -> AsyncClient:
        return AsyncClient(
            host=self.endpoint,
            timeout=httpx.Timeout(self.total_timeout, connect=CONNECT_TIMEOUT),
            transport=self._transport,
        )

    async def generate(self, prompt: PromptPair, sink: Optional[ProgressSink] = None) -> str:
        """
        Generate the full summary in one request.

        Raises:
            ProviderError: On HTTP or network failure
            DecodeError: If the response body is not the expected JSON
        """
        logger.info(f"Requesting summary from local model {self.model} at {self.endpoint}")
        await deliver_status(sink, LOCAL_STATUS_ANALYZING)

        try:
            async with self._client() as client:
                response = await asyncio.wait_for(
                    client.generate(model=self.model, prompt=prompt.combined(), stream=False),
                    timeout=self.total_timeout,
                )
        except ResponseError as e:
            logger.error(f"Local model returned HTTP {e.status_code}: {e.error}")
            raise error_for_status(e.status_code, e.error, self.kind, self.model) from e
        except ValueError as e:
            # invalid JSON or a body without "response"
            logger.error(f"Could not decode local model response: {e}")
            raise DecodeError(f"Unexpected response from local model: {e}") from e
        except (asyncio.TimeoutError, httpx.HTTPError, ConnectionError) as e:
            logger.error(f"Local model request failed: {type(e).__name__}: {e}")
            raise classify_transport_error(e, "local model") from e

        text = response["response"]
        if not isinstance(text, str):
            raise DecodeError("Local model response field is not text")

        await deliver_status(sink, LOCAL_STATUS_SUMMARIZING)
        logger.debug(f"Received {len(text)} chars from local model")
        return text


class RemoteStreamProvider:
    """
    Streaming chat completion against a remote OpenAI-compatible or
    Dashscope endpoint.
    """

    def __init__(
        self,
        config: ProviderConfig,
        kind: ProviderKind,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        total_timeout: float = REMOTE_TOTAL_TIMEOUT,
    ):
        if not kind.is_remote:
            raise ValueError(f"{kind} is not a remote provider")
        self.kind = kind
        self.url = config.remote_url
        self.api_key = config.remote_api_key
        self.model = config.remote_model or DEFAULT_MODELS[kind]
        self.total_timeout = total_timeout
        self._transport = transport

    @property
    def label(self) -> str:
        return "Dashscope" if self.kind is ProviderKind.REMOTE_DASHSCOPE else "remote API"

    def build_headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        if self.kind is ProviderKind.REMOTE_DASHSCOPE:
            headers["X-DashScope-SSE"] = "enable"
        return headers

    def build_payload(self, prompt: PromptPair) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": prompt.system},
            {"role": "user", "content": prompt.user},
        ]
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": True,
        }
        if self.kind is ProviderKind.REMOTE_DASHSCOPE:
            payload["parameters"] = {"incremental_output": True}
        else:
            payload["temperature"] = 0.7
        return payload

    async def _stream(self, prompt: PromptPair, sink: Optional[ProgressSink]) -> str:
        parts: List[str] = []
        timeout = httpx.Timeout(self.total_timeout, connect=CONNECT_TIMEOUT)

        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            async with client.stream(
                "POST",
                self.url,
                json=self.build_payload(prompt),
                headers=self.build_headers(),
            ) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise error_for_status(response.status_code, body, self.kind, self.model)

                async for text in iter_text_deltas(response.aiter_bytes()):
                    parts.append(text)
                    await deliver_delta(sink, text)

        return "".join(parts)

    async def generate(self, prompt: PromptPair, sink: Optional[ProgressSink] = None) -> str:
        """
        Stream a completion, forwarding every delta to the sink.

        Returns:
            All deltas concatenated in arrival order

        Raises:
            ProviderError: On HTTP or network failure
        """
        logger.info(f"Streaming summary from {self.label} ({self.model})")
        try:
            text = await asyncio.wait_for(self._stream(prompt, sink), timeout=self.total_timeout)
        except SummaryError as e:
            logger.error(f"{self.label} request failed: {e}")
            raise
        except (asyncio.TimeoutError, httpx.HTTPError, ConnectionError) as e:
            logger.error(f"{self.label} request failed: {type(e).__name__}: {e}")
            raise classify_transport_error(e, self.label) from e

        logger.debug(f"Received {len(text)} chars from {self.label}")
        return text


Provider = Union[LocalProvider, RemoteStreamProvider]


def create_provider(
    config: ProviderConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Provider:
    """
    Resolve and build the backend for a run.

    Raises:
        InvalidRequest: If the selected branch of the config is unusable
    """
    kind = resolve_provider_kind(config)
    validate_provider_config(config, kind)
    logger.debug(f"Selected provider: {kind}")
    if kind is ProviderKind.LOCAL:
        return LocalProvider(config, transport=transport)
    return RemoteStreamProvider(config, kind, transport=transport)
