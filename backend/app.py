import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from backend import storage
from backend.hub import RoomHub
from backend.routes import router
from transmission.runtime import DialogueRuntime, LoopScheduler, RuntimeSettings, Scheduler, StateRegistry

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def create_app(
    data_dir: Path | None = None,
    *,
    scheduler: Scheduler | None = None,
    settings: RuntimeSettings | None = None,
) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage.init_storage(resolved)

    app = FastAPI(title="Transmission")
    app.state.registry = StateRegistry()
    app.state.hub = RoomHub()
    app.state.runtime = DialogueRuntime(
        app.state.registry,
        app.state.hub,
        storage.load_dialogue,
        scheduler or LoopScheduler(),
        settings or storage.runtime_settings_from_config(),
    )
    app.include_router(router, prefix="/api")
    logger.debug("App created with data dir %s", resolved)
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
