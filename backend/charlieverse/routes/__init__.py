from __future__ import annotations

from fastapi import APIRouter

from . import admin, analytics, auth, contact, email, files, health, notifications, projects, users, ws

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(projects.router)
api_router.include_router(admin.router)
api_router.include_router(files.router)
api_router.include_router(analytics.router)
api_router.include_router(contact.router)
api_router.include_router(email.router)
api_router.include_router(notifications.router)

ws_router = ws.router

__all__ = ["api_router", "ws_router"]
