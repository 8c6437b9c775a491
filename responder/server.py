"""
Responder Control Server

FastAPI server for controlling the polling engine and editing settings.

Endpoints:
- GET /health: Health check
- GET /status: Current engine status snapshot
- POST /polling/start | /polling/stop | /polling/poll-now: Polling control
- GET /settings, PUT /settings: Read and update settings
- GET /files, POST /files, DELETE /files/{file_key}: Monitored files
- POST /validate/figma-token, POST /validate/anthropic-key: Credential checks

On startup the engine starts by itself when credentials and at least one
monitored file are configured.
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, BackgroundTasks
from pydantic import BaseModel, Field

from .common.config import load_config, save_config, ensure_directories, ResponderConfig
from .common.credentials import CredentialStore
from .common.ledger import ProcessedLedger
from .common.llm_client import verify_api_key
from .figma.client import FigmaClient, FIGMA_API_BASE
from .sync.scheduler import Scheduler
from .sync.status import EngineStatus

logger = logging.getLogger("responder.server")

# Global state
config: Optional[ResponderConfig] = None
credentials: Optional[CredentialStore] = None
ledger: Optional[ProcessedLedger] = None
scheduler: Optional[Scheduler] = None

FILE_URL_RE = re.compile(r"figma\.com/(?:file|design|board|proto)/([A-Za-z0-9]+)")
FILE_KEY_RE = re.compile(r"^[A-Za-z0-9]+$")


def log_notification(title: str, body: str) -> None:
    """Notifier used by the server: replies are announced in the log."""
    logger.info("[%s] %s", title, body)


def _log_status_errors():
    """Status subscriber that logs each new last_error once."""
    last_seen = {"error": None}

    def _on_status(status: EngineStatus) -> None:
        if status.last_error and status.last_error != last_seen["error"]:
            logger.warning("Engine error: %s", status.last_error)
        last_seen["error"] = status.last_error

    return _on_status


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup"""
    global config, credentials, ledger, scheduler

    logger.info("Starting up...")
    ensure_directories()

    config = load_config()
    credentials = CredentialStore(config)
    ledger = ProcessedLedger()
    logger.info("Loaded config (%d monitored file(s), %d processed comment(s))",
                len(config.get_monitored_files()), len(ledger))

    scheduler = Scheduler(config, credentials, ledger, notifier=log_notification)
    scheduler.subscribe(_log_status_errors())

    if credentials.has_credentials() and config.get_monitored_files():
        scheduler.start()
    elif not credentials.has_credentials():
        logger.info("No credentials configured; set them via PUT /settings")

    yield

    logger.info("Shutting down...")
    scheduler.stop()
    await scheduler.wait_idle()


app = FastAPI(
    title="Figma AI Responder",
    description="Answers @ai comments in Figma files with Claude",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Request Models
# =============================================================================

class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields are left unchanged"""
    figma_token: Optional[str] = None
    anthropic_key: Optional[str] = None
    polling_interval: Optional[int] = Field(default=None, gt=0)
    model: Optional[str] = None
    system_prompt: Optional[str] = None
    trigger: Optional[str] = None
    notifications_enabled: Optional[bool] = None


class FileRequest(BaseModel):
    """A Figma file key or file URL"""
    file_key: str


class TokenRequest(BaseModel):
    token: str


def _require_initialized() -> Scheduler:
    if scheduler is None or config is None:
        raise HTTPException(status_code=503, detail="Server not initialized")
    return scheduler


def parse_file_key(value: str) -> Optional[str]:
    """Extract a file key from a raw key or a Figma file URL."""
    value = value.strip()
    match = FILE_URL_RE.search(value)
    if match:
        return match.group(1)
    if FILE_KEY_RE.match(value):
        return value
    return None


def _settings_view() -> dict:
    return {
        "has_credentials": credentials.has_credentials(),
        "polling_interval": config.get_polling_interval(),
        "model": config.get_model(),
        "system_prompt": config.get_system_prompt(),
        "trigger": config.get_trigger(),
        "notifications_enabled": config.get_notifications_enabled(),
        "monitored_files": config.get_monitored_files(),
    }


# =============================================================================
# Endpoints
# =============================================================================

@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "figma-ai-responder",
        "initialized": scheduler is not None,
        "running": scheduler.is_running if scheduler else False,
    }


@app.get("/status")
async def get_status():
    """Current engine status"""
    return _require_initialized().status.to_dict()


@app.post("/polling/start")
async def start_polling():
    """Start the polling timer (runs one cycle right away)"""
    engine = _require_initialized()
    started = engine.start()
    if not started:
        raise HTTPException(status_code=409, detail=engine.status.last_error or "Cannot start polling")
    return {"running": True, "status": engine.status.to_dict()}


@app.post("/polling/stop")
async def stop_polling():
    """Stop the polling timer"""
    engine = _require_initialized()
    engine.stop()
    return {"running": False, "status": engine.status.to_dict()}


@app.post("/polling/poll-now")
async def poll_now(background_tasks: BackgroundTasks):
    """Queue an immediate polling cycle"""
    engine = _require_initialized()
    if not credentials.has_credentials():
        raise HTTPException(status_code=409, detail="Missing API credentials")
    background_tasks.add_task(engine.poll_now)
    return {"queued": True}


@app.get("/settings")
async def get_settings():
    """Current settings (secrets are never returned)"""
    _require_initialized()
    return _settings_view()


@app.put("/settings")
async def update_settings(update: SettingsUpdate):
    """Update settings and persist them"""
    _require_initialized()

    if update.trigger is not None and not update.trigger.strip():
        raise HTTPException(status_code=400, detail="Trigger must not be empty")

    if update.figma_token:
        credentials.set_figma_token(update.figma_token)
    if update.anthropic_key:
        credentials.set_anthropic_key(update.anthropic_key)
    if update.polling_interval is not None:
        config.polling.interval_seconds = update.polling_interval
    if update.model:
        config.llm.anthropic_model = update.model
    if update.system_prompt is not None:
        config.llm.system_prompt = update.system_prompt
    if update.trigger is not None:
        config.set_trigger(update.trigger)
    if update.notifications_enabled is not None:
        config.polling.notifications_enabled = update.notifications_enabled

    if credentials.has_credentials():
        config.setup_complete = True
    save_config(config)

    return _settings_view()


@app.get("/files")
async def list_files():
    """Monitored file keys"""
    _require_initialized()
    return {"files": config.get_monitored_files()}


@app.post("/files")
async def add_file(request: FileRequest):
    """Start monitoring a file"""
    _require_initialized()
    file_key = parse_file_key(request.file_key)
    if not file_key:
        raise HTTPException(status_code=400, detail="Not a Figma file key or URL")

    added = config.add_monitored_file(file_key)
    if added:
        save_config(config)
    return {"file_key": file_key, "added": added, "files": config.get_monitored_files()}


@app.delete("/files/{file_key}")
async def remove_file(file_key: str):
    """Stop monitoring a file"""
    _require_initialized()
    if not config.remove_monitored_file(file_key):
        raise HTTPException(status_code=404, detail="File not monitored")
    save_config(config)
    return {"file_key": file_key, "files": config.get_monitored_files()}


@app.post("/validate/figma-token")
async def validate_figma_token(request: TokenRequest):
    """Check a Figma token against GET /v1/me"""
    try:
        api_base = config.figma.api_base if config else FIGMA_API_BASE
        async with FigmaClient(request.token, api_base=api_base) as figma:
            user = await figma.get_current_user()
    except Exception as e:
        logger.info("Figma token validation failed: %s", e)
        return {"valid": False}
    return {"valid": True, "handle": user.get("handle")}


@app.post("/validate/anthropic-key")
async def validate_anthropic_key(request: TokenRequest):
    """Check an Anthropic key with a minimal completion"""
    return {"valid": await verify_api_key(request.token)}


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the control server"""
    import uvicorn

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    server_config = load_config().server
    logger.info("Starting server on %s:%d", server_config.host, server_config.port)
    uvicorn.run(
        "responder.server:app",
        host=server_config.host,
        port=server_config.port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
