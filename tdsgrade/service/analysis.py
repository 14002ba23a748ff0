"""Memoizing front end for the scorer and curve builders.

Results are cached under ``(profile.id, profile.last_modified)``. Profiles
are immutable, so a revised profile misses the cache, and storing its
result evicts the revisions it supersedes. ``invalidate`` drops a profile
entirely. Work can be pushed onto a small thread pool so interactive
callers are not blocked.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Hashable, Optional, Sequence, Tuple

from tdsgrade.aggregate.replication import AggregatedCurve, aggregate_profiles
from tdsgrade.dsp.density import DensityStream, generate_stream
from tdsgrade.io.products import ProductConfig, cacao_mass_config
from tdsgrade.io.settings import TDSSettings
from tdsgrade.scoring.scorer import analyze_profile
from tdsgrade.scoring.types import TastingAnalysisResult
from tdsgrade.tasting.model import TastingProfile
from tdsgrade.util.logging import get_logger, log_exception

logger = get_logger(__name__)

CacheKey = Tuple[Hashable, ...]


class AnalysisService:
    def __init__(
        self,
        config: Optional[ProductConfig] = None,
        settings: Optional[TDSSettings] = None,
        *,
        max_workers: Optional[int] = None,
    ) -> None:
        self.config = config or cacao_mass_config()
        self.settings = settings or TDSSettings()
        self._workers = max(1, int(max_workers or self.settings.analysis_workers))
        self._pool: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()
        self._cache: Dict[CacheKey, Any] = {}
        self.hits = 0
        self.misses = 0

    # ---- cache ----
    def _cached(self, key: CacheKey, compute: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._cache:
                self.hits += 1
                return self._cache[key]
            self.misses += 1
        # computed outside the lock; concurrent misses on one key produce equal values
        value = compute()
        with self._lock:
            if key[0] != "aggregate":
                kind, profile_id, revision = key
                if any(k[0] == kind and k[1] == profile_id and k[2] > revision for k in self._cache):
                    return value
                self._evict_older(kind, profile_id, revision)
            return self._cache.setdefault(key, value)

    def _evict_older(self, kind: str, profile_id: str, revision: int) -> None:
        """Drop superseded revisions of one profile. Caller holds the lock."""
        stale = []
        for key in self._cache:
            if key[0] == "aggregate":
                if any(part[0] == profile_id and part[1] < revision for part in key[1:]):
                    stale.append(key)
            elif key[0] == kind and key[1] == profile_id and key[2] < revision:
                stale.append(key)
        for key in stale:
            del self._cache[key]

    def invalidate(self, profile_id: str) -> int:
        """Drop every cached revision of ``profile_id``; returns how many entries went."""
        with self._lock:
            stale = [key for key in self._cache if profile_id in _profile_ids(key)]
            for key in stale:
                del self._cache[key]
        if stale:
            logger.debug("Invalidated cached results", extra={"profile_id": profile_id})
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    # ---- synchronous ----
    def get_analysis(self, profile: TastingProfile) -> TastingAnalysisResult:
        return self._cached(("analysis",) + profile.cache_key, lambda: analyze_profile(profile, self.config))

    def get_stream(self, profile: TastingProfile) -> DensityStream:
        s = self.settings
        return self._cached(
            ("stream",) + profile.cache_key,
            lambda: generate_stream(
                profile.events,
                profile.total_duration,
                self.config.attributes,
                resolution=s.resolution,
                sigma=s.sigma_single,
                silence=s.silence_constant,
            ),
        )

    def get_aggregate(self, profiles: Sequence[TastingProfile]) -> AggregatedCurve:
        s = self.settings
        key: CacheKey = ("aggregate",) + tuple(p.cache_key for p in profiles)
        return self._cached(
            key,
            lambda: aggregate_profiles(
                profiles,
                self.config.attributes,
                sigma=s.sigma_multiple,
                z_score=s.significance_z,
            ),
        )

    # ---- off-thread ----
    def _executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="tdsgrade")
            return self._pool

    def _submit(self, fn: Callable[..., Any], *args: Any, profile_id: str = "") -> "Future[Any]":
        def _run() -> Any:
            try:
                return fn(*args)
            except Exception:
                log_exception(logger, "Background analysis failed", error_type="analysis", profile_id=profile_id)
                raise

        return self._executor().submit(_run)

    def submit(self, profile: TastingProfile) -> "Future[TastingAnalysisResult]":
        return self._submit(self.get_analysis, profile, profile_id=profile.id)

    def submit_stream(self, profile: TastingProfile) -> "Future[DensityStream]":
        return self._submit(self.get_stream, profile, profile_id=profile.id)

    def submit_aggregate(self, profiles: Sequence[TastingProfile]) -> "Future[AggregatedCurve]":
        return self._submit(self.get_aggregate, list(profiles))

    def close(self) -> None:
        with self._lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=True)

    def __enter__(self) -> "AnalysisService":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def _profile_ids(key: CacheKey) -> Tuple[str, ...]:
    kind = key[0]
    if kind == "aggregate":
        return tuple(part[0] for part in key[1:])
    return (key[1],)
