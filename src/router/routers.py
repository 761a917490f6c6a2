# src/api/routers.py

from fastapi import FastAPI
from src.modules.discussions.discussion_controller import router as discussion_router

def include_routers(app: FastAPI) -> None:
    app.include_router(discussion_router)
