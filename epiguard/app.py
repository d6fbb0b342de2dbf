"""
EpiGuard Symptom Tracker — Application Factory
"""

import os
import time
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ── 1. Configure logging ──
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("epiguard-server")

_startup_time = time.time()
logger.info("Server initialization started...")

# ── 2. Create FastAPI app ──
app = FastAPI(title="EpiGuard Symptom Tracker")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── 3. Register routers ──
from epiguard.routers import health, tracker_api

app.include_router(health.router)
app.include_router(tracker_api.router)


# ── 4. Startup / shutdown ──
@app.on_event("startup")
async def startup_event():
    """Start the session controller and its reminder loop"""
    port = os.environ.get("PORT", "8080")
    logger.info("=" * 60)
    logger.info("EpiGuard Symptom Tracker Starting")
    logger.info("Listening on port: %s", port)

    try:
        from epiguard.tracker.setup import initialize_tracker
        await initialize_tracker()
    except Exception as e:
        logger.warning("Tracker failed to start, running without reminders: %s", e)

    logger.info("Total init time: %.2fs", time.time() - _startup_time)
    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    from epiguard.tracker.setup import shutdown_tracker
    await shutdown_tracker()
