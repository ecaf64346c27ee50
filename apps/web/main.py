"""FastAPI web application for depbump."""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel

from core.config import Settings
from core.models import Ecosystem, RunState, RunStatus, UpdateReport
from core.orchestrator import STOPPED_MESSAGE, UNKNOWN_ECOSYSTEM_MESSAGE, UpdateRun
from core.registry import RegistryResolver

logger = logging.getLogger(__name__)

settings = Settings.from_env()

app = FastAPI(
    title="depbump",
    description="Bump every dependency in a pasted manifest to its latest published version",
    version="0.1.0",
)


class UpdateRequest(BaseModel):
    """Request model for updating dependencies."""
    content: str
    ecosystem: Optional[Ecosystem] = None


class UpdateResponse(BaseModel):
    """Response model for a finished update."""
    status: RunStatus
    ecosystem: Ecosystem
    dependencies: list[str]
    results: dict[str, str]
    output: Optional[str] = None
    message: Optional[str] = None


class RunStarted(BaseModel):
    run_id: str
    ecosystem: Ecosystem


class RunProgress(BaseModel):
    """Snapshot of a background run for polling clients."""
    run_id: str
    state: RunState
    status: Optional[RunStatus] = None
    ecosystem: Ecosystem
    completed: int
    total: int
    partial: str
    output: Optional[str] = None
    message: Optional[str] = None


class RunInProgressError(Exception):
    """Raised when a run is submitted while another is still running."""


@dataclass
class ActiveRun:
    run_id: str
    run: UpdateRun
    task: Optional[asyncio.Task] = None
    report: Optional[UpdateReport] = None
    completed: int = 0


class RunManager:
    """Holds at most one in-flight run; overlapping submits are rejected."""

    def __init__(self):
        self.runs: dict[str, ActiveRun] = {}

    @property
    def busy(self) -> bool:
        return any(active.report is None for active in self.runs.values())

    def claim(self, run: UpdateRun) -> ActiveRun:
        if self.busy:
            raise RunInProgressError("An update is already running")
        # Only the latest run is kept so clients can poll its final output.
        self.runs.clear()
        active = ActiveRun(run_id=uuid.uuid4().hex, run=run)
        self.runs[active.run_id] = active
        return active

    def get(self, run_id: str) -> ActiveRun:
        active = self.runs.get(run_id)
        if active is None:
            raise HTTPException(status_code=404, detail=f"Unknown run: {run_id}")
        return active

    async def execute(self, active: ActiveRun) -> UpdateReport:
        async def track(event):
            active.completed = event.completed

        active.run.on_progress = track
        try:
            async with RegistryResolver(settings) as resolver:
                active.run.resolver = resolver
                active.report = await active.run.execute()
        finally:
            if active.report is None:
                # Cancelled task or resolver failure; free the slot.
                active.report = UpdateReport(
                    status=RunStatus.ERROR,
                    ecosystem=active.run.ecosystem,
                    results=dict(active.run.results),
                    message="Run ended unexpectedly",
                )
        return active.report


manager = RunManager()


def _prepare(request: UpdateRequest) -> UpdateRun:
    """Validate input and detect the ecosystem before any fetching."""
    content = request.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="No content provided")

    # Resolver is attached once the run is claimed.
    run = UpdateRun(content, resolver=None, ecosystem=request.ecosystem)
    if run.detect() is Ecosystem.UNKNOWN:
        raise HTTPException(status_code=400, detail=UNKNOWN_ECOSYSTEM_MESSAGE)
    return run


@app.get("/", response_class=HTMLResponse)
async def home():
    """Serve the main application page."""
    return get_index_html()


@app.post("/api/update", response_model=UpdateResponse)
async def update_dependencies(request: UpdateRequest):
    """Update dependencies from text content and wait for the result."""
    run = _prepare(request)
    try:
        active = manager.claim(run)
    except RunInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

    report = await manager.execute(active)
    if report.status is RunStatus.ERROR:
        raise HTTPException(status_code=500, detail=report.message)

    return UpdateResponse(
        status=report.status,
        ecosystem=report.ecosystem,
        dependencies=report.dependencies,
        results=report.results,
        output=report.output,
        message=report.message,
    )


@app.post("/api/runs", response_model=RunStarted)
async def start_run(request: UpdateRequest):
    """Start a background update; poll /api/runs/{run_id} for progress."""
    run = _prepare(request)
    try:
        active = manager.claim(run)
    except RunInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

    active.task = asyncio.create_task(manager.execute(active))
    logger.info("Started run %s (%s)", active.run_id, run.ecosystem.value)
    return RunStarted(run_id=active.run_id, ecosystem=run.ecosystem)


@app.get("/api/runs/{run_id}", response_model=RunProgress)
async def get_run(run_id: str):
    """Report progress, and the formatted output once finished."""
    active = manager.get(run_id)
    report = active.report
    return RunProgress(
        run_id=active.run_id,
        state=active.run.state,
        status=report.status if report else None,
        ecosystem=active.run.ecosystem,
        completed=active.completed,
        total=active.run.total,
        partial=active.run.partial_output(),
        output=report.output if report else None,
        message=report.message if report else None,
    )


@app.post("/api/runs/{run_id}/stop")
async def stop_run(run_id: str):
    """Ask a running update to stop before its next fetch."""
    active = manager.get(run_id)
    if active.report is None:
        active.run.cancel()
    return {"run_id": run_id, "message": STOPPED_MESSAGE}


def _cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.cors_origin,
        "Access-Control-Allow-Credentials": "true",
    }


@app.options("/api/java")
async def java_proxy_preflight():
    """Answer CORS preflight for the Maven search proxy."""
    headers = _cors_headers()
    headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    headers["Access-Control-Allow-Headers"] = "Origin, Content-Type, Accept"
    return Response(status_code=204, headers=headers)


@app.get("/api/java")
async def java_proxy(group_id: str = Query(..., alias="groupId")):
    """Forward a Maven Central group search and relay the raw JSON."""
    try:
        body = await RegistryResolver(settings).search_maven_group(group_id)
    except httpx.HTTPError as e:
        logger.error("Error fetching Maven data for %s: %s", group_id, e)
        return JSONResponse(
            status_code=500,
            content={"error": "Error fetching data"},
            headers=_cors_headers(),
        )

    return Response(
        content=body,
        status_code=200,
        media_type="application/json",
        headers=_cors_headers(),
    )


def get_index_html() -> str:
    """Return the main HTML page."""
    return """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>depbump - Dependency Version Updater</title>
        <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.0/dist/css/bootstrap.min.css" rel="stylesheet">
    </head>
    <body>
        <div class="container py-4" style="max-width: 48rem;">
            <h1 class="h3 text-center mb-4">Dependency Version Updater</h1>
            <label for="dependencies" class="form-label">Paste your dependency file contents here</label>
            <textarea id="dependencies" class="form-control font-monospace" rows="10"
                placeholder="Paste the contents of your dependency file (e.g., pom.xml, package.json, requirements.txt, etc.)"></textarea>
            <div class="d-flex gap-2 mt-3">
                <button id="submitBtn" class="btn btn-primary" onclick="submitRun()">Get Latest Versions</button>
                <button id="stopBtn" class="btn btn-danger d-none" onclick="stopRun()">Stop</button>
            </div>
            <div id="notice" class="alert d-none mt-3" role="alert"></div>
            <div id="outputArea" class="mt-4 d-none">
                <label for="output" class="form-label">Latest Dependencies
                    <span id="detected" class="text-muted small"></span></label>
                <div class="position-relative">
                    <textarea id="output" class="form-control font-monospace" rows="10" readonly></textarea>
                    <button class="btn btn-sm btn-outline-secondary position-absolute top-0 end-0 m-2"
                        onclick="copyOutput()" aria-label="Copy to clipboard">Copy</button>
                </div>
            </div>
        </div>
        <script>
            let runId = null;
            let pollTimer = null;

            function notify(message, kind) {
                const el = document.getElementById('notice');
                el.className = 'alert mt-3 alert-' + kind;
                el.textContent = message;
            }

            function setLoading(loading) {
                document.getElementById('submitBtn').disabled = loading;
                document.getElementById('submitBtn').textContent = loading ? 'Fetching latest versions...' : 'Get Latest Versions';
                document.getElementById('stopBtn').classList.toggle('d-none', !loading);
            }

            function showOutput(text, ecosystem) {
                document.getElementById('outputArea').classList.remove('d-none');
                document.getElementById('output').value = text;
                document.getElementById('detected').textContent = ecosystem ? '(Detected: ' + ecosystem + ')' : '';
            }

            async function submitRun() {
                const content = document.getElementById('dependencies').value;
                document.getElementById('notice').className = 'alert d-none';
                showOutput('', null);
                const response = await fetch('/api/runs', {
                    method: 'POST',
                    headers: {'Content-Type': 'application/json'},
                    body: JSON.stringify({content: content})
                });
                const data = await response.json();
                if (!response.ok) {
                    showOutput(data.detail || 'An error occurred while updating dependencies', null);
                    return;
                }
                runId = data.run_id;
                setLoading(true);
                pollTimer = setInterval(poll, 500);
            }

            async function poll() {
                const response = await fetch('/api/runs/' + runId);
                const data = await response.json();
                showOutput(data.output || data.partial, data.ecosystem);
                if (!data.status) {
                    return;
                }
                clearInterval(pollTimer);
                setLoading(false);
                if (data.status === 'stopped') {
                    notify('Operation stopped', 'success');
                } else if (data.status === 'error') {
                    notify('An error occurred while updating dependencies', 'danger');
                }
            }

            async function stopRun() {
                if (runId) {
                    await fetch('/api/runs/' + runId + '/stop', {method: 'POST'});
                }
            }

            async function copyOutput() {
                await navigator.clipboard.writeText(document.getElementById('output').value);
                notify('Copied to clipboard!', 'success');
            }
        </script>
    </body>
    </html>
    """
