"""
Work-record summary engine
==========================

Turns dated work-log entries into a natural-language report using either a
local Ollama model or a streaming remote chat-completions API:

- Type definitions and data structures
- Configuration management
- Period resolution, corpus serialization and prompt building
- Local and remote LLM providers with SSE decoding
- Progress sinks for incremental delivery
- Summary persistence

Version: 1.0.0
"""

__version__ = "1.0.0"

# Type definitions
from .types import (
    SummaryKind,
    GenerationMode,
    ProviderKind,
    EngineState,
    LogEntry,
    SummaryRequest,
    ProviderConfig,
    Period,
    PromptPair,
    TextDelta,
    Done,
    Malformed,
    StreamEvent,
    SummaryResult,
)

# Errors
from .errors import (
    SummaryError,
    InvalidRequest,
    ProviderError,
    ProviderErrorKind,
    DecodeError,
    IoError,
    DeliveryError,
)

# Configuration management
from .config import (
    ProviderSettings,
    StorageSettings,
    OutputSettings,
    WorkRecordConfig,
    get_config,
    reload_config,
    reset_config,
)

# Building blocks
from .periods import resolve_period, resolve_request_period
from .corpus import group_by_date, serialize_corpus
from .prompts import SYSTEM_PROMPT, build_prompt
from .streaming import SSEDecoder, iter_text_deltas
from .providers import (
    LocalProvider,
    RemoteStreamProvider,
    create_provider,
    resolve_provider_kind,
)
from .sinks import (
    ProgressSink,
    CallbackSink,
    CollectingSink,
    QueueSink,
    ConsoleSink,
)
from .exporter import ResultWriter

# Engine
from .summarizer import (
    SummaryEngine,
    generate_summary,
    generate_summary_text,
    run_summary,
)

__all__ = [
    # Version
    "__version__",
    # Types
    "SummaryKind",
    "GenerationMode",
    "ProviderKind",
    "EngineState",
    "LogEntry",
    "SummaryRequest",
    "ProviderConfig",
    "Period",
    "PromptPair",
    "TextDelta",
    "Done",
    "Malformed",
    "StreamEvent",
    "SummaryResult",
    # Errors
    "SummaryError",
    "InvalidRequest",
    "ProviderError",
    "ProviderErrorKind",
    "DecodeError",
    "IoError",
    "DeliveryError",
    # Config
    "ProviderSettings",
    "StorageSettings",
    "OutputSettings",
    "WorkRecordConfig",
    "get_config",
    "reload_config",
    "reset_config",
    # Building blocks
    "resolve_period",
    "resolve_request_period",
    "group_by_date",
    "serialize_corpus",
    "SYSTEM_PROMPT",
    "build_prompt",
    "SSEDecoder",
    "iter_text_deltas",
    "LocalProvider",
    "RemoteStreamProvider",
    "create_provider",
    "resolve_provider_kind",
    "ProgressSink",
    "CallbackSink",
    "CollectingSink",
    "QueueSink",
    "ConsoleSink",
    "ResultWriter",
    # Engine
    "SummaryEngine",
    "generate_summary",
    "generate_summary_text",
    "run_summary",
]
