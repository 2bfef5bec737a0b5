import math
import sqlite3
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from talent_search.config import settings

EARTH_RADIUS_KM = 6371.0088


class Base(DeclarativeBase):
    pass


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float | None:
    """Great-circle distance in kilometres, registered as a SQL function."""
    if None in (lat1, lng1, lat2, lng2):
        return None
    rlat1, rlng1 = math.radians(lat1), math.radians(lng1)
    rlat2, rlng2 = math.radians(lat2), math.radians(lng2)
    dlat = rlat2 - rlat1
    dlng = rlng2 - rlng1
    a = math.sin(dlat / 2) ** 2 + math.cos(rlat1) * math.cos(rlat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def _on_connect(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()
    dbapi_conn.create_function("haversine_km", 4, haversine_km, deterministic=True)


def get_engine(db_path: Path | None = None):
    path = db_path or settings.db_path
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _on_connect)
    return engine


def get_session_factory(engine):
    # Results outlive their session, so loaded attributes must not expire.
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


engine = get_engine()
SessionLocal = get_session_factory(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


SCHEMA_SQL = """\
-- ============================================================
-- CANDIDATES
-- ============================================================
CREATE TABLE IF NOT EXISTS candidates (
    id                INTEGER PRIMARY KEY,
    display_name      TEXT NOT NULL,
    location_text     TEXT,
    desired_positions TEXT,
    bio               TEXT,
    search_document   TEXT NOT NULL DEFAULT '',
    search_index      INTEGER NOT NULL DEFAULT 0,
    featured          INTEGER NOT NULL DEFAULT 0 CHECK(featured IN (0, 1)),
    created_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_candidates_search_index ON candidates(search_index);
CREATE INDEX IF NOT EXISTS idx_candidates_created_at ON candidates(created_at);
CREATE INDEX IF NOT EXISTS idx_candidates_featured ON candidates(featured, created_at);

-- ============================================================
-- DESIRED CITIES
-- ============================================================
CREATE TABLE IF NOT EXISTS desired_cities (
    id        INTEGER PRIMARY KEY,
    name      TEXT NOT NULL,
    latitude  REAL NOT NULL CHECK(latitude BETWEEN -90 AND 90),
    longitude REAL NOT NULL CHECK(longitude BETWEEN -180 AND 180)
);

CREATE INDEX IF NOT EXISTS idx_desired_cities_lat_lng ON desired_cities(latitude, longitude);

CREATE TABLE IF NOT EXISTS candidate_cities (
    candidate_id INTEGER NOT NULL REFERENCES candidates(id) ON DELETE CASCADE,
    city_id      INTEGER NOT NULL REFERENCES desired_cities(id) ON DELETE CASCADE,
    PRIMARY KEY (candidate_id, city_id)
);

CREATE INDEX IF NOT EXISTS idx_candidate_cities_city ON candidate_cities(city_id, candidate_id);

-- ============================================================
-- SEARCH INDEX
-- ============================================================
CREATE VIRTUAL TABLE IF NOT EXISTS candidates_fts USING fts5(
    search_document,
    tokenize='unicode61 remove_diacritics 2'
);

-- Dirty set drained by the index refresher. generation changes on every
-- re-enqueue so an edit racing a refresh is never dropped.
CREATE TABLE IF NOT EXISTS search_index_queue (
    candidate_id INTEGER PRIMARY KEY REFERENCES candidates(id) ON DELETE CASCADE,
    generation   INTEGER NOT NULL,
    enqueued_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);
"""

INDEX_TRIGGERS_SQL = """\
CREATE TRIGGER IF NOT EXISTS candidates_ai AFTER INSERT ON candidates BEGIN
    INSERT OR REPLACE INTO search_index_queue(candidate_id, generation)
    VALUES (new.id, (SELECT COALESCE(MAX(generation), 0) + 1 FROM search_index_queue));
END;

CREATE TRIGGER IF NOT EXISTS candidates_au
AFTER UPDATE OF location_text, desired_positions, bio ON candidates BEGIN
    INSERT OR REPLACE INTO search_index_queue(candidate_id, generation)
    VALUES (new.id, (SELECT COALESCE(MAX(generation), 0) + 1 FROM search_index_queue));
END;

CREATE TRIGGER IF NOT EXISTS candidates_ad AFTER DELETE ON candidates BEGIN
    DELETE FROM candidates_fts WHERE rowid = old.id;
END;
"""


def init_db(db_path: Path | None = None):
    path = db_path or settings.db_path
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.executescript(SCHEMA_SQL)
    conn.executescript(INDEX_TRIGGERS_SQL)
    conn.close()
