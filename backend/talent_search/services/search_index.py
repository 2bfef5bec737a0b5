"""
Relevance index over candidate profiles.

Each candidate owns one searchable document, derived from its textual
profile fields and mirrored into the candidates_fts FTS5 table. Writes to
those fields enqueue the candidate in search_index_queue (see the triggers in
database.py); SearchIndexRefresher drains the queue in the background and
replaces each FTS entry inside a single transaction, so readers see either
the previous document or the new one.
"""
import logging
import re
import threading

from sqlalchemy import column, func, literal_column, select, table, text
from sqlalchemy.exc import SQLAlchemyError

from talent_search.config import settings
from talent_search.models.candidate import Candidate
from talent_search.services.candidate_store import store_errors
from talent_search.services.errors import StoreUnavailable

logger = logging.getLogger(__name__)

candidates_fts = table("candidates_fts", column("rowid"), column("search_document"))

_TOKEN_RE = re.compile(r"[^\W_]+", re.UNICODE)


def build_search_document(*fields: str | None) -> str:
    return " ".join(" ".join(f.split()) for f in fields if f and f.strip())


def query_tokens(query: str | None) -> list[str]:
    if not query:
        return []
    return _TOKEN_RE.findall(query.lower())


def match_expression(tokens: list[str]) -> str:
    """FTS5 query requiring every token, each as a prefix, in any order."""
    return " ".join(f'"{token}"*' for token in tokens)


def relevance_column():
    # bm25() is lower-is-better; negate it so relevance sorts descending.
    return (-func.bm25(literal_column("candidates_fts"))).label("relevance")


class SearchIndexRefresher:
    def __init__(self, session_factory, interval_seconds: float | None = None, batch_size: int | None = None):
        self.session_factory = session_factory
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else settings.index_refresh_interval_seconds
        )
        self.batch_size = batch_size or settings.index_refresh_batch_size
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def run_once(self) -> int:
        """Rebuild one batch of queued documents. Returns how many were rebuilt."""
        with store_errors(), self.session_factory() as db:
            rows = db.execute(
                text(
                    """
                    SELECT q.candidate_id, q.generation,
                           c.location_text, c.desired_positions, c.bio
                    FROM search_index_queue q
                    JOIN candidates c ON c.id = q.candidate_id
                    ORDER BY q.generation
                    LIMIT :limit
                    """
                ),
                {"limit": self.batch_size},
            ).all()
            if not rows:
                return 0

            next_index = db.execute(text("SELECT COALESCE(MAX(search_index), 0) FROM candidates")).scalar_one()
            for row in rows:
                next_index += 1
                document = build_search_document(row.location_text, row.desired_positions, row.bio)
                params = {"id": row.candidate_id, "doc": document, "idx": next_index, "gen": row.generation}
                db.execute(
                    text("UPDATE candidates SET search_document = :doc, search_index = :idx WHERE id = :id"),
                    params,
                )
                db.execute(text("DELETE FROM candidates_fts WHERE rowid = :id"), params)
                db.execute(
                    text("INSERT INTO candidates_fts(rowid, search_document) VALUES (:id, :doc)"),
                    params,
                )
                # A newer generation means the profile changed again mid-refresh; keep it queued.
                db.execute(
                    text("DELETE FROM search_index_queue WHERE candidate_id = :id AND generation = :gen"),
                    params,
                )
            db.commit()

        logger.debug("Rebuilt %d search documents", len(rows))
        return len(rows)

    def drain(self) -> int:
        total = 0
        while processed := self.run_once():
            total += processed
        return total

    def pending_count(self) -> int:
        with store_errors(), self.session_factory() as db:
            return db.execute(text("SELECT COUNT(*) FROM search_index_queue")).scalar_one()

    def rebuild_all(self, chunk_size: int | None = None) -> int:
        """Queue every candidate for a rebuild, one short transaction per chunk.

        Searches keep reading the existing documents while the queue drains.
        """
        chunk_size = chunk_size or self.batch_size
        last_id = 0
        queued = 0
        while True:
            with store_errors(), self.session_factory() as db:
                ids = db.scalars(
                    select(Candidate.id).where(Candidate.id > last_id).order_by(Candidate.id).limit(chunk_size)
                ).all()
                if not ids:
                    break
                base = db.execute(text("SELECT COALESCE(MAX(generation), 0) FROM search_index_queue")).scalar_one()
                db.execute(
                    text(
                        "INSERT OR REPLACE INTO search_index_queue(candidate_id, generation) VALUES (:id, :gen)"
                    ),
                    [{"id": cid, "gen": base + n} for n, cid in enumerate(ids, start=1)],
                )
                db.commit()
            last_id = ids[-1]
            queued += len(ids)
        logger.info("Queued %d candidates for search index rebuild", queued)
        return queued

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="search-index-refresher", daemon=True)
        self._thread.start()
        logger.info("Search index refresher started (interval %.1fs)", self.interval_seconds)

    def stop(self, timeout: float | None = 5.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self):
        while not self._stop.wait(self.interval_seconds):
            try:
                self.drain()
            except (StoreUnavailable, SQLAlchemyError) as exc:
                logger.error("Search index refresh failed, retrying next cycle: %s", exc)
            except Exception:
                logger.exception("Search index refresh failed, retrying next cycle")
