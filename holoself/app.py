"""
HoloSelf Health Agent — Application Factory
"""

import time
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ── 1. Configure logging ──
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("holoself-server")

_startup_time = time.time()
logger.info("Server initialization started...")

# ── 2. Create FastAPI app ──
app = FastAPI(title="HoloSelf Health Agent")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── 3. Register routers ──
from holoself.routers import (
    health,
    tracking,
    labs,
    agent,
    scheduler,
    voice,
    vitamin_d,
    settings,
    system,
)

app.include_router(health.router)
app.include_router(tracking.router)
app.include_router(labs.router)
app.include_router(agent.router)
app.include_router(scheduler.router)
app.include_router(voice.router)
app.include_router(vitamin_d.router)
app.include_router(settings.router)
app.include_router(system.router)


# ── 4. Lifecycle ──
@app.on_event("startup")
async def startup_event():
    """Log startup information and open the database"""
    from holoself.settings import PORT
    logger.info("=" * 60)
    logger.info("HoloSelf Health Agent Starting")
    logger.info(f"Listening on port: {PORT}")

    try:
        from holoself.dependencies import get_store
        get_store()
        logger.info("Health store ready")
    except Exception as e:
        logger.warning(f"Health store failed to open — endpoints will retry lazily: {e}")

    logger.info(f"Total init time: {time.time() - _startup_time:.2f}s")
    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    from holoself.dependencies import shutdown
    shutdown()
    logger.info("HoloSelf Health Agent stopped")
