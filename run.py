"""
EpiGuard Symptom Tracker — Entry Point

    python run.py            # serve on $PORT (default 8080)
    EPIGUARD_RELOAD=1 python run.py
"""
import os

import uvicorn

from epiguard import settings as config

if __name__ == "__main__":
    uvicorn.run(
        "epiguard.app:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=config.PORT,
        log_level="info",
        reload=os.environ.get("EPIGUARD_RELOAD") == "1",
    )
