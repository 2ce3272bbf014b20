"""legacylink — backend for the LegacyLink family tree app."""

from __future__ import annotations

import logging
import os
import time
from collections import deque
from contextlib import asynccontextmanager
from threading import Lock

import psutil
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from legacylink.db import STORAGE_BACKEND, close_pool, get_pool, init_pool
from legacylink.family.biography import is_available as biography_llm_available
from legacylink.family.db import RosterStore, get_store
from legacylink.family.members import find_asymmetric_edges

logger = logging.getLogger("legacylink")

PORT = int(os.environ.get("LL_PORT", "9820"))
HOST = os.environ.get("LL_HOST", "127.0.0.1")


# ---------------------------------------------------------------------------
# Request tracking
# ---------------------------------------------------------------------------

HISTORY_POINTS = 60


class RequestTracker:
    """Requests and server errors seen in the last ``window`` seconds."""

    def __init__(self, window: float = 60.0) -> None:
        self.window = window
        self._lock = Lock()
        self._seen: deque[tuple[float, bool]] = deque()
        self._history: deque[float] = deque(maxlen=HISTORY_POINTS)

    def record(self, failed: bool = False) -> None:
        with self._lock:
            self._seen.append((time.monotonic(), failed))

    def _recent(self) -> list[bool]:
        cutoff = time.monotonic() - self.window
        with self._lock:
            while self._seen and self._seen[0][0] < cutoff:
                self._seen.popleft()
            return [failed for _, failed in self._seen]

    def rate(self) -> float:
        return len(self._recent()) / self.window if self.window else 0.0

    def errors(self) -> int:
        return sum(self._recent())

    def sample(self) -> list[float]:
        """Append the current rate to the history and return the history."""
        self._history.append(round(self.rate(), 2))
        return list(self._history)


tracker = RequestTracker()
_started_at: float = 0.0


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    global _started_at
    _started_at = time.time()

    if STORAGE_BACKEND == "postgres":
        await init_pool()
        logger.info("Database pool initialized")
    else:
        logger.info("Using %s roster storage, nothing is persisted", STORAGE_BACKEND)

    yield

    if STORAGE_BACKEND == "postgres":
        await close_pool()
        logger.info("Database pool closed")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="legacylink",
    version="0.1.0",
    description="Family members, kinship labels and generational tree layout for LegacyLink",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def track_requests(request: Request, call_next):
    try:
        response = await call_next(request)
    except Exception:
        tracker.record(failed=True)
        raise
    tracker.record(failed=response.status_code >= 500)
    return response


from legacylink.family.routes import router as family_router  # noqa: E402

app.include_router(family_router)


# ---------------------------------------------------------------------------
# Core routes
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    """Storage connectivity and biography source; the in-memory store is always reachable."""
    result: dict = {
        "status": "ok",
        "storage": STORAGE_BACKEND,
        "biography": "llm" if biography_llm_available() else "template",
    }
    if STORAGE_BACKEND != "postgres":
        return result
    try:
        db_ok = await get_pool().fetchval("SELECT 1")
        result["database"] = "connected" if db_ok == 1 else "unexpected"
    except RuntimeError:
        result["database"] = "pool_not_initialized"
    except Exception as exc:
        result["status"] = "degraded"
        result["database"] = f"error: {exc}"
    return result


def _metric(key: str, label: str, value, unit: str, **extra) -> dict:
    return {"key": key, "label": label, "value": value, "unit": unit, **extra}


def _process_metrics() -> list[dict]:
    process = psutil.Process(os.getpid())
    uptime = time.time() - _started_at if _started_at else 0.0
    return [
        _metric("uptime", "Uptime", round(uptime), "seconds"),
        _metric(
            "rps", "Requests / sec", round(tracker.rate(), 2), "req/s",
            warn_above=200, sparkline_history=tracker.sample(),
        ),
        _metric("errors", "Server errors (60s)", tracker.errors(), "errors", warn_above=0),
        _metric("memory_rss", "Memory (RSS)", round(process.memory_info().rss / 1_048_576, 1), "MB", warn_above=512),
        _metric("cpu_percent", "CPU usage", process.cpu_percent(interval=0), "%", warn_above=90),
    ]


async def _roster_metrics(store: RosterStore) -> list[dict]:
    trees = await store.list_trees()
    living = 0
    one_sided = 0
    for tree in trees:
        members = await store.load_members(str(tree["id"]))
        living += sum(1 for m in members if not m.is_deceased)
        one_sided += len(find_asymmetric_edges(members))
    return [
        _metric("total_trees", "Family trees", len(trees), "trees"),
        _metric("total_members", "Family members", await store.count_members(), "members"),
        _metric("living_members", "Living members", living, "members"),
        _metric("one_sided_edges", "One-sided relationships", one_sided, "edges", warn_above=0),
    ]


@app.get("/metrics")
async def metrics():
    """Process and roster stats for the server-monitor dashboard."""
    try:
        result = _process_metrics()
        result.extend(await _roster_metrics(get_store()))
        return {"metrics": result}
    except Exception as exc:
        logger.exception("Error fetching metrics")
        return JSONResponse(
            status_code=500,
            content={"metrics": [], "error": f"Storage error: {exc}"},
        )


def run() -> None:
    uvicorn.run("legacylink.app:app", host=HOST, port=PORT, reload=False)


if __name__ == "__main__":
    run()
