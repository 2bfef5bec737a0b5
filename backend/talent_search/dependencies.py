from talent_search.database import SessionLocal
from talent_search.services.search_engine import SearchEngine
from talent_search.services.search_index import SearchIndexRefresher

search_engine = SearchEngine(SessionLocal)
index_refresher = SearchIndexRefresher(SessionLocal)


def get_search_engine() -> SearchEngine:
    return search_engine


def get_index_refresher() -> SearchIndexRefresher:
    return index_refresher
