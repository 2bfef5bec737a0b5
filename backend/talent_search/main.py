import logging
import sqlite3
from contextlib import asynccontextmanager
from fastapi import FastAPI

from talent_search.config import settings
from talent_search.database import init_db
from talent_search.dependencies import index_refresher
from talent_search.routers import candidates, cities, search, search_index

logger = logging.getLogger("talent_search")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create schema, integrity-check, then start the index refresher
    init_db(settings.db_path)
    conn = sqlite3.connect(str(settings.db_path))
    try:
        result = conn.execute("PRAGMA integrity_check").fetchone()
    finally:
        conn.close()
    if result and result[0] == "ok":
        logger.info("Database integrity check passed.")
    else:
        logger.error("DATABASE INTEGRITY CHECK FAILED: %s", result)
    index_refresher.start()
    yield
    # Shutdown: stop refreshing; anything still queued is picked up on next start
    index_refresher.stop()


app = FastAPI(
    title="Talent Search",
    description="Candidate search engine: ranked, geo-filtered and featured candidate queries",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(search.router, prefix=settings.api_prefix)
app.include_router(candidates.router, prefix=settings.api_prefix)
app.include_router(cities.router, prefix=settings.api_prefix)
app.include_router(search_index.router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
