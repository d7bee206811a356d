from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load the project root .env before anything reads the environment
project_root = Path(__file__).parent.parent
env_path = project_root / ".env"
if env_path.exists():
    load_dotenv(env_path)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from newsroom.utils.logging import configure_logging

from .routes import router

configure_logging(
    os.getenv("STRUCTLOG_LEVEL", "INFO"),
    json_enabled=os.getenv("LOG_JSON", "false").lower() in {"1", "true", "yes"},
)

app = FastAPI(title="Newsroom Automation API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/healthz", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
