"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from dotenv import load_dotenv
from fastapi import FastAPI

# Load .env file from project root (must be before other imports)
load_dotenv()
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from borghi import __version__  # noqa: E402
from borghi.api.routes import captures, device, lists, sync, villages  # noqa: E402
from borghi.config import Settings  # noqa: E402
from borghi.runtime import build_runtime  # noqa: E402
from borghi.services.device_state import HttpReachabilityProbe  # noqa: E402

logger = logging.getLogger(__name__)

REACHABILITY_INTERVAL_S = 30.0

settings = Settings.from_env()


async def _poll_reachability(probe: HttpReachabilityProbe) -> None:
    while True:
        try:
            await probe.refresh()
        except Exception:
            logger.exception("Reachability probe crashed")
        await asyncio.sleep(REACHABILITY_INTERVAL_S)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the runtime, start the queue monitor and the reachability poller."""
    runtime = getattr(app.state, "runtime", None)
    if runtime is None:
        runtime = build_runtime(settings)
        app.state.runtime = runtime
    logger.info(
        "Loaded %d villages, capture queue at %s",
        len(runtime.registry), runtime.store.queue_path,
    )
    runtime.monitor.start()

    poller = None
    probe = None
    if runtime.settings.reachability_url:
        probe = HttpReachabilityProbe(runtime.settings.reachability_url, runtime.network)
        poller = asyncio.create_task(_poll_reachability(probe))

    yield

    if poller is not None:
        poller.cancel()
        with suppress(asyncio.CancelledError):
            await poller
    if probe is not None:
        await probe.aclose()
    runtime.monitor.stop()
    await runtime.monitor.wait_idle()


app = FastAPI(
    title="Borghi API",
    description="Village discovery and offline capture sync",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(villages.router, prefix="/api")
app.include_router(captures.router, prefix="/api")
app.include_router(sync.router, prefix="/api")
app.include_router(device.router, prefix="/api")
app.include_router(lists.router, prefix="/api")


@app.get("/api/health")
async def health():
    runtime = app.state.runtime
    return {
        "status": "ok",
        "villages": len(runtime.registry),
        "can_sync": await runtime.store.can_sync(),
        "drain_running": runtime.monitor.is_draining,
        "heading_source": runtime.heading.source_name,
    }
