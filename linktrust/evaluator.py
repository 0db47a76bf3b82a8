"""
Evaluation pipeline: normalize, consult the cache, probe, score, store.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Iterable

import structlog

from .cache import ResultCache
from .extractor import extract_urls
from .models import ALL_CHECKS, CacheStats, EvaluationResult, TextEvaluation
from .prober import Prober
from .scoring import classify_level, compute_score
from .urls import InvalidUrlError, normalize_url

logger = structlog.get_logger(__name__)

DEFAULT_BATCH_CAP = 50


class Evaluator:
    def __init__(
        self,
        prober: Prober,
        cache: ResultCache,
        *,
        batch_cap: int = DEFAULT_BATCH_CAP,
        batch_concurrency: int = 8,
    ):
        self.prober = prober
        self.cache = cache
        self.batch_cap = batch_cap
        self.batch_concurrency = max(1, batch_concurrency)

    async def evaluate_one(self, raw_url: str) -> EvaluationResult:
        """Evaluate a single URL, reusing a fresh cached result when there is one.

        Raises InvalidUrlError if `raw_url` does not normalize.
        """
        url = normalize_url(raw_url)

        cached = self.cache.get(url)
        if cached is not None:
            logger.debug("Cache hit", url=url)
            return cached

        outcomes, timings = await self.prober.run_all(url)

        checks: dict[str, bool | int] = {}
        failures: dict[str, str] = {}
        for name in ALL_CHECKS:
            outcome = outcomes[name]
            checks[name] = outcome.value
            if outcome.status != "ok":
                failures[name] = f"{outcome.status}: {outcome.reason}"

        score = compute_score(checks)
        result = EvaluationResult(
            url=url,
            checks=checks,
            score=score,
            level=classify_level(score),
            timestamp=datetime.now(timezone.utc),
            failures=failures,
            timings_ms=timings,
        )
        self.cache.put(url, result)
        logger.info("URL evaluated", url=url, score=score, level=result.level, failures=sorted(failures))
        return result

    async def _try_evaluate(self, raw_url: str, semaphore: asyncio.Semaphore) -> EvaluationResult | None:
        async with semaphore:
            try:
                return await self.evaluate_one(raw_url)
            except InvalidUrlError as e:
                logger.info("Skipping invalid candidate", url=raw_url, reason=e.reason)
            except Exception:
                logger.warning("Evaluation failed, skipping candidate", url=raw_url, exc_info=True)
        return None

    async def evaluate_batch(self, urls: Iterable[str], cap: int | None = None) -> list[EvaluationResult]:
        """Evaluate candidates in order until `cap` of them succeed.

        Candidates that fail are skipped and do not count towards the cap.
        Work is started window by window, each window no larger than what is
        left of the cap, so nothing new starts once the cap is reached and
        nothing already running is cancelled.
        """
        cap = self.batch_cap if cap is None else cap
        pending = list(urls)
        results: list[EvaluationResult] = []
        semaphore = asyncio.Semaphore(self.batch_concurrency)

        while pending and len(results) < cap:
            window = pending[: cap - len(results)]
            pending = pending[len(window):]
            evaluated = await asyncio.gather(*(self._try_evaluate(u, semaphore) for u in window))
            results.extend(r for r in evaluated if r is not None)

        return results

    async def evaluate_single(self, url: str) -> EvaluationResult:
        return await self.evaluate_one(url)

    async def evaluate_from_text(self, text: str | bytes | None, cap: int | None = None) -> TextEvaluation:
        candidates = extract_urls(text)
        if not candidates:
            return TextEvaluation(extracted_count=0, evaluated_count=0, results=[])

        results = await self.evaluate_batch(candidates, cap)
        logger.info("Text evaluated", extracted=len(candidates), evaluated=len(results))
        return TextEvaluation(
            extracted_count=len(candidates),
            evaluated_count=len(results),
            results=results,
        )

    def stats(self) -> CacheStats:
        return self.cache.stats()
