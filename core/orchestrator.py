"""Drive one manifest update: detect, extract, fetch each package, format."""

import json
import logging
from collections.abc import Awaitable, Callable

from .config import Settings
from .detect import identify
from .extract import extract_dependencies
from .formatters import format_manifest
from .models import (
    DEV_SENTINEL,
    CancellationToken,
    Ecosystem,
    ProgressEvent,
    RunState,
    RunStatus,
    UpdateReport,
)
from .registry import RegistryResolver

logger = logging.getLogger(__name__)

UNKNOWN_ECOSYSTEM_MESSAGE = "Unable to detect language. Please check your input."
GENERIC_ERROR_MESSAGE = "An error occurred while updating dependencies"
STOPPED_MESSAGE = "Operation stopped"

ProgressCallback = Callable[[ProgressEvent], Awaitable[None] | None]


class UpdateRun:
    """State of a single submit-to-completion cycle.

    The fetch loop is sequential and polls the cancellation token once per
    item, just before the fetch; a request already in flight completes.
    """

    def __init__(
        self,
        content: str,
        resolver: RegistryResolver,
        on_progress: ProgressCallback | None = None,
        token: CancellationToken | None = None,
        ecosystem: Ecosystem | None = None,
    ):
        self.content = content
        self.resolver = resolver
        self.on_progress = on_progress
        self.token = token or CancellationToken()
        self.forced_ecosystem = ecosystem
        self.detected = False
        self.state = RunState.IDLE
        self.ecosystem = Ecosystem.UNKNOWN
        self.dependencies: list[str] = []
        self.results: dict[str, str] = {}

    @property
    def loading(self) -> bool:
        return self.state is not RunState.IDLE

    @property
    def total(self) -> int:
        """Number of lookups the run will make; the sentinel is not one."""
        return sum(1 for dep in self.dependencies if dep.strip() != DEV_SENTINEL)

    def cancel(self) -> None:
        self.token.cancel()

    def partial_output(self) -> str:
        """JSON of the fetched results so far; the sentinel is left out."""
        return json.dumps(
            {name: version for name, version in self.results.items() if name != DEV_SENTINEL},
            indent=2,
        )

    def detect(self) -> Ecosystem:
        self.state = RunState.DETECTING
        self.ecosystem = self.forced_ecosystem or identify(self.content)
        self.detected = True
        return self.ecosystem

    async def execute(self) -> UpdateReport:
        """Run to completion, cancellation, or failure."""
        try:
            if not self.detected:
                self.detect()
            if self.ecosystem is Ecosystem.UNKNOWN:
                logger.info("Could not detect an ecosystem")
                return self._report(RunStatus.UNKNOWN_ECOSYSTEM, message=UNKNOWN_ECOSYSTEM_MESSAGE)

            self.state = RunState.EXTRACTING
            self.dependencies = extract_dependencies(self.content, self.ecosystem)
            logger.info(
                "Detected %s manifest with %d entries", self.ecosystem.value, len(self.dependencies)
            )

            self.state = RunState.FETCHING
            if not await self._fetch_all():
                logger.info("Run stopped after %d results", len(self.results))
                return self._report(RunStatus.STOPPED, message=STOPPED_MESSAGE)

            self.state = RunState.FORMATTING
            output = format_manifest(self.results, self.ecosystem)
            return self._report(RunStatus.DONE, output=output)
        except Exception:
            logger.exception("Error updating dependencies")
            return self._report(RunStatus.ERROR, message=GENERIC_ERROR_MESSAGE)
        finally:
            self.state = RunState.IDLE

    async def _fetch_all(self) -> bool:
        """Fetch every dependency in order; False if cancelled midway."""
        total = self.total
        completed = 0
        for dep in self.dependencies:
            if self.token.cancelled:
                return False

            name = dep.strip()
            if name == DEV_SENTINEL:
                self.results[name] = DEV_SENTINEL
                continue

            version = await self.resolver.get_latest_version(name, self.ecosystem)
            self.results[name] = version
            completed += 1
            await self._emit(ProgressEvent(name, version, completed, total, self.partial_output()))
        return True

    async def _emit(self, event: ProgressEvent) -> None:
        if self.on_progress is None:
            return
        pending = self.on_progress(event)
        if pending is not None:
            await pending

    def _report(self, status: RunStatus, output: str | None = None, message: str | None = None) -> UpdateReport:
        return UpdateReport(
            status=status,
            ecosystem=self.ecosystem,
            dependencies=list(self.dependencies),
            results=dict(self.results),
            output=output,
            message=message,
        )


async def update_manifest(
    content: str,
    resolver: RegistryResolver | None = None,
    on_progress: ProgressCallback | None = None,
    token: CancellationToken | None = None,
    ecosystem: Ecosystem | None = None,
) -> UpdateReport:
    """Update a manifest to the latest registry versions.

    Args:
        content: Pasted manifest content
        resolver: Registry resolver; a default one is created if omitted
        on_progress: Called (sync or async) after each package resolves
        token: Cancellation token polled before each fetch
        ecosystem: Skip detection and treat content as this ecosystem

    Returns:
        Report with status, results so far, and formatted output when done
    """
    if resolver is None:
        async with RegistryResolver(Settings.from_env()) as owned:
            return await UpdateRun(content, owned, on_progress, token, ecosystem).execute()
    return await UpdateRun(content, resolver, on_progress, token, ecosystem).execute()
