import os
from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    return {
        "status": "EpiGuard Symptom Tracker is Running",
        "features": ["chat", "symptom_timeline", "reminders", "translation"],
        "endpoints": {
            "chat": "/api/chat",
            "session": "/api/session",
            "settings": "/api/settings",
            "reminder_check": "/api/reminder/check",
        }
    }


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "epiguard-tracker",
        "port": os.environ.get("PORT", 8080)
    }
