"""
Read primitives over the candidate tables.

Every method is a single store round trip. Driver-level failures surface as
StoreUnavailable so callers never see SQLAlchemy exceptions.
"""
import logging
from collections.abc import Iterable
from contextlib import contextmanager

from sqlalchemy import Select, func, select
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from talent_search.models.candidate import Candidate
from talent_search.services.errors import StoreUnavailable

logger = logging.getLogger(__name__)

# SQLite stores integers as signed 64-bit; the driver refuses anything wider.
SQLITE_INTEGER_MIN = -(2**63)
SQLITE_INTEGER_MAX = 2**63 - 1


@contextmanager
def store_errors():
    try:
        yield
    except (OperationalError, PoolTimeoutError) as exc:
        logger.error("Candidate store failure: %s", exc)
        raise StoreUnavailable("Candidate store is unavailable") from exc


class CandidateStore:
    def __init__(self, db: Session):
        self.db = db

    def fetch_candidates(self, stmt: Select) -> list[Candidate]:
        """Run a compiled plan and return the Candidate entity of each row."""
        with store_errors():
            return list(self.db.execute(stmt).scalars().all())

    def bulk_fetch(self, ids: Iterable[int]) -> list[Candidate]:
        # An id outside the integer range cannot name a stored row.
        wanted = sorted({i for i in ids if SQLITE_INTEGER_MIN <= i <= SQLITE_INTEGER_MAX})
        if not wanted:
            return []
        with store_errors():
            return list(self.db.scalars(select(Candidate).where(Candidate.id.in_(wanted))).all())

    def random_sample(self, stmt: Select, k: int) -> list[Candidate]:
        sampled = stmt.order_by(None).order_by(func.random()).limit(k)
        return self.fetch_candidates(sampled)
