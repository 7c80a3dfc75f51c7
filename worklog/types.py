"""
Type definitions and data structures for the work-record summary engine.

Everything here is created fresh for a single summary run and carries no
identity beyond it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Union

from journal.date_utils import parse_timestamp


class SummaryKind(Enum):
    """Period kinds a summary can be generated for."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value


class GenerationMode(Enum):
    """How generated text is handed back to the caller."""
    BLOCKING = "blocking"
    STREAMING = "streaming"

    def __str__(self) -> str:
        return self.value


class ProviderKind(Enum):
    """Closed set of LLM backends, resolved once per run."""
    LOCAL = "local"
    REMOTE_OPENAI = "remote_openai"
    REMOTE_DASHSCOPE = "remote_dashscope"

    def __str__(self) -> str:
        return self.value

    @property
    def is_remote(self) -> bool:
        return self is not ProviderKind.LOCAL


class EngineState(Enum):
    """Lifecycle states of a single summary run."""
    IDLE = "idle"
    BUILDING_PROMPT = "building_prompt"
    INVOKING = "invoking"
    STREAMING = "streaming"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (EngineState.DONE, EngineState.FAILED)


@dataclass
class LogEntry:
    """
    A single work-log entry as supplied by the log storage layer.

    Attributes:
        id: Storage identifier
        content: Free text of the entry
        source: Origin of the entry (manual, git-commit, ...)
        tags: Labels attached to the entry
        created_at: Creation timestamp; its calendar date groups the entry
    """
    id: str
    content: str
    source: str = "manual"
    tags: FrozenSet[str] = field(default_factory=frozenset)
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        """Normalize tags to a frozenset and created_at to a datetime."""
        if not isinstance(self.tags, frozenset):
            self.tags = frozenset(self.tags or ())
        if isinstance(self.created_at, str):
            self.created_at = parse_timestamp(self.created_at)

    @property
    def log_date(self) -> date:
        """Calendar date the entry belongs to."""
        return self.created_at.date()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LogEntry:
        """
        Build an entry from its on-disk JSON shape.

        Args:
            data: Mapping with id, content, created_at, source and tags

        Returns:
            LogEntry instance

        Raises:
            KeyError: If content or created_at is missing
            ValueError: If created_at is not an ISO 8601 timestamp
        """
        created_at = parse_timestamp(data["created_at"])
        return cls(
            id=str(data.get("id") or int(created_at.timestamp() * 1000)),
            content=data["content"],
            source=data.get("source") or "manual",
            tags=frozenset(data.get("tags") or ()),
            created_at=created_at,
        )


@dataclass(frozen=True)
class SummaryRequest:
    """
    What the caller wants summarized.

    start_date/end_date are only meaningful for SummaryKind.CUSTOM; the
    other kinds derive their range from the current instant.
    """
    kind: SummaryKind
    title: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class ProviderConfig:
    """
    Fully-resolved backend settings for one run.

    Exactly one branch is consulted per run, selected by use_local.
    """
    use_local: bool = True
    local_endpoint: str = "http://localhost:11434"
    local_model: str = "llama3"
    remote_url: str = ""
    remote_api_key: str = ""
    remote_model: Optional[str] = None

    def __repr__(self) -> str:
        # keep the API key out of logs
        masked = "***" if self.remote_api_key else ""
        return (
            f"ProviderConfig(use_local={self.use_local!r}, local_endpoint={self.local_endpoint!r}, "
            f"local_model={self.local_model!r}, remote_url={self.remote_url!r}, "
            f"remote_api_key={masked!r}, remote_model={self.remote_model!r})"
        )


@dataclass(frozen=True)
class Period:
    """Concrete date range and output file name for a summary kind."""
    kind: SummaryKind
    start_date: date
    end_date: date
    file_name: str

    @property
    def days(self) -> int:
        """Number of calendar days covered, both ends inclusive."""
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class PromptPair:
    """System and user prompt handed to a provider."""
    system: str
    user: str

    def combined(self) -> str:
        """Single-prompt rendering for backends without a system slot."""
        return f"{self.system}\n\n{self.user}"


@dataclass(frozen=True)
class TextDelta:
    """Incremental fragment of generated text."""
    text: str


@dataclass(frozen=True)
class Done:
    """In-band end-of-stream marker; informational only."""


@dataclass(frozen=True)
class Malformed:
    """A data frame that could not be understood."""
    raw: str


StreamEvent = Union[TextDelta, Done, Malformed]


@dataclass(frozen=True)
class SummaryResult:
    """
    Outcome of a successful run.

    Attributes:
        full_text: Raw provider output, as persisted
        output_path: File the text was written to
        period: Resolved period the summary covers
        provider: Backend that produced the text
    """
    full_text: str
    output_path: Path
    period: Optional[Period] = None
    provider: Optional[ProviderKind] = None
