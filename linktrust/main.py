from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, HTTPException, Query, Request

from .cache import ResultCache, sweep_periodically
from .classifier import build_classifier
from .config import Settings, load_settings
from .evaluator import Evaluator
from .models import CacheStats, CheckTextRequest, EvaluationResult, TextEvaluation
from .observability import configure_logging
from .prober import Prober
from .urls import InvalidUrlError


def build_evaluator(settings: Settings) -> Evaluator:
    cache = ResultCache(ttl=timedelta(hours=settings.cache_ttl_hours))
    prober = Prober(settings, build_classifier(settings))
    return Evaluator(
        prober,
        cache,
        batch_cap=settings.batch_cap,
        batch_concurrency=settings.batch_concurrency,
    )


def create_app(settings: Settings | None = None, evaluator: Evaluator | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level, settings.log_json)
    evaluator = evaluator or build_evaluator(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.evaluator = evaluator
        sweeper = asyncio.create_task(sweep_periodically(evaluator.cache, settings.sweep_interval_s))
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(title="LinkTrust", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    @app.get("/api/check", response_model=EvaluationResult)
    async def check(request: Request, link: str = Query("")):
        try:
            return await request.app.state.evaluator.evaluate_single(link)
        except InvalidUrlError as e:
            raise HTTPException(status_code=400, detail=e.reason)

    @app.post("/api/check-text", response_model=TextEvaluation)
    async def check_text(request: Request, body: CheckTextRequest):
        return await request.app.state.evaluator.evaluate_from_text(body.text)

    @app.get("/api/stats", response_model=CacheStats)
    def stats(request: Request):
        return request.app.state.evaluator.stats()

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("linktrust.main:create_app", factory=True, host="0.0.0.0", port=8000)
