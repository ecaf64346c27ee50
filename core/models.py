"""Core data models for depbump."""

from dataclasses import dataclass, field
from enum import Enum

# Reserved key separating regular from dev dependencies in a result mapping.
DEV_SENTINEL = "-devdeps-"
UNKNOWN_VERSION = "unknown"
LATEST_VERSION = "latest"


class Ecosystem(str, Enum):
    """Package-manager conventions that can be detected."""

    JAVA = "java"
    PYTHON = "python"
    NODE = "node"
    FLUTTER = "flutter"
    RUBY = "ruby"
    PHP = "php"
    DOTNET = "dotnet"
    RUST = "rust"
    GO = "go"
    R = "r"
    UNKNOWN = "unknown"


class RunState(str, Enum):
    """Phase an update run is currently in."""

    IDLE = "idle"
    DETECTING = "detecting"
    EXTRACTING = "extracting"
    FETCHING = "fetching"
    FORMATTING = "formatting"


class RunStatus(str, Enum):
    """How an update run ended."""

    DONE = "done"
    STOPPED = "stopped"
    UNKNOWN_ECOSYSTEM = "unknown_ecosystem"
    ERROR = "error"


class DepbumpError(Exception):
    """Base error for depbump."""


class ManifestParseError(DepbumpError):
    """Structured manifest content could not be parsed."""


class UnsupportedEcosystemError(DepbumpError):
    """No strategy exists for the requested ecosystem."""


@dataclass
class Manifest:
    """A manifest reduced to its declared package identifiers."""

    ecosystem: Ecosystem
    raw: str
    entries: list[str]


@dataclass
class ProgressEvent:
    """Emitted after each dependency resolves."""

    name: str
    version: str
    completed: int
    total: int
    partial: str  # JSON of all results so far


@dataclass
class UpdateReport:
    """Outcome of one update run."""

    status: RunStatus
    ecosystem: Ecosystem
    dependencies: list[str] = field(default_factory=list)
    results: dict[str, str] = field(default_factory=dict)
    output: str | None = None
    message: str | None = None


class CancellationToken:
    """Cooperative stop flag polled by the fetch loop."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled
