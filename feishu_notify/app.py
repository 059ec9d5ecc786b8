"""Webhook relay: GitHub deliveries in, Feishu cards out."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from feishu_notify.routers import gh

app = FastAPI(title="GitHub → Feishu notifier")

app.include_router(gh.router)


@app.get("/healthz", response_class=PlainTextResponse)
def healthz() -> str:
    return "ok"
