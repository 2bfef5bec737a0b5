from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from talent_search.database import get_db, get_engine, get_session_factory, init_db
from talent_search.dependencies import get_index_refresher, get_search_engine
from talent_search.main import app
from talent_search.models.candidate import Candidate
from talent_search.models.city import DesiredCity
from talent_search.services.search_engine import SearchEngine
from talent_search.services.search_index import SearchIndexRefresher
from talent_search.utils.timestamps import format_timestamp, utcnow


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "talent.sqlite"
    init_db(path)
    return path


@pytest.fixture
def db_engine(db_path):
    engine = get_engine(db_path)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory(db_engine)


@pytest.fixture
def refresher(session_factory):
    return SearchIndexRefresher(session_factory, interval_seconds=0.05, batch_size=50)


@pytest.fixture
def search_engine(session_factory):
    return SearchEngine(session_factory)


@pytest.fixture
def make_city(session_factory):
    def _make(name: str, coords: tuple[float, float]) -> DesiredCity:
        with session_factory() as db:
            city = DesiredCity(name=name, latitude=coords[0], longitude=coords[1])
            db.add(city)
            db.commit()
            return city

    return _make


@pytest.fixture
def make_candidate(session_factory):
    def _make(
        display_name: str = "Candidate",
        desired_positions: str | None = None,
        bio: str | None = None,
        location_text: str | None = None,
        featured: bool = False,
        days_old: int = 1,
        city_ids: tuple[int, ...] = (),
    ) -> Candidate:
        created = format_timestamp(utcnow() - timedelta(days=days_old))
        with session_factory() as db:
            candidate = Candidate(
                display_name=display_name,
                location_text=location_text,
                desired_positions=desired_positions,
                bio=bio,
                featured=featured,
                created_at=created,
                updated_at=created,
            )
            candidate.cities = [db.get(DesiredCity, cid) for cid in city_ids]
            db.add(candidate)
            db.commit()
            return candidate

    return _make


class QueryCounter:
    def __init__(self):
        self.statements: list[str] = []

    @property
    def count(self) -> int:
        return len(self.statements)

    def reset(self):
        self.statements.clear()


@pytest.fixture
def query_counter(db_engine):
    counter = QueryCounter()

    def _record(conn, cursor, statement, parameters, context, executemany):
        counter.statements.append(statement)

    event.listen(db_engine, "before_cursor_execute", _record)
    yield counter
    event.remove(db_engine, "before_cursor_execute", _record)


@pytest.fixture
def client(session_factory, search_engine, refresher):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_search_engine] = lambda: search_engine
    app.dependency_overrides[get_index_refresher] = lambda: refresher
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def german_cities(make_city):
    """Berlin with Potsdam ~27 km away, Hamburg ~255 km and Munich ~504 km."""
    return {
        "berlin": make_city("Berlin", (52.5200, 13.4050)),
        "potsdam": make_city("Potsdam", (52.3906, 13.0645)),
        "hamburg": make_city("Hamburg", (53.5511, 9.9937)),
        "munich": make_city("Munich", (48.1351, 11.5820)),
    }
