import pytest

from talent_search.database import get_engine, get_session_factory
from talent_search.services.domain import CandidateID, GeoPoint, MaterializedCandidate, SearchRequest
from talent_search.services.errors import InvalidRequest, StoreUnavailable
from talent_search.services.search_engine import SearchEngine
from talent_search.utils.timestamps import utcnow

BERLIN = GeoPoint(52.5200, 13.4050)


def _ids(result):
    return [c.id for c in result.candidates]


class TestOrdering:
    def test_without_text_orders_by_search_index(self, search_engine, make_candidate, refresher):
        created = [make_candidate(display_name=f"C{n}", bio=f"bio {n}") for n in range(4)]
        refresher.drain()
        result = search_engine.search(SearchRequest())
        assert _ids(result) == [c.id for c in reversed(created)]

    def test_whitespace_query_behaves_like_no_query(self, search_engine, make_candidate, refresher):
        for n in range(3):
            make_candidate(bio=f"profile {n}")
        refresher.drain()
        assert _ids(search_engine.search(SearchRequest(query="   "))) == _ids(search_engine.search(SearchRequest()))

    def test_text_relevance_is_primary_key(self, search_engine, make_candidate, refresher):
        strong = make_candidate(desired_positions="Python developer", bio="Python, Python and more Python")
        weak = make_candidate(desired_positions="Backend developer", bio="Java, Go, some python scripting")
        make_candidate(desired_positions="Accountant")
        refresher.drain()
        result = search_engine.search(SearchRequest(query="python"))
        assert _ids(result) == [strong.id, weak.id]

    def test_ties_broken_by_search_index(self, search_engine, make_candidate, refresher):
        older = make_candidate(bio="rust engineer")
        newer = make_candidate(bio="rust engineer")
        refresher.drain()
        assert _ids(search_engine.search(SearchRequest(query="rust"))) == [newer.id, older.id]

    def test_token_matching_ignores_order_and_punctuation(self, search_engine, make_candidate, refresher):
        candidate = make_candidate(desired_positions="Senior software-engineer (remote)")
        refresher.drain()
        assert _ids(search_engine.search(SearchRequest(query="engineer, senior!"))) == [candidate.id]
        assert _ids(search_engine.search(SearchRequest(query="soft eng"))) == [candidate.id]

    def test_no_match_is_empty_not_error(self, search_engine, make_candidate, refresher):
        make_candidate(bio="welder")
        refresher.drain()
        result = search_engine.search(SearchRequest(query="astrophysicist"))
        assert result.candidates == []
        assert not result.has_more


class TestRecency:
    def test_old_candidates_excluded(self, search_engine, make_candidate, refresher):
        fresh = make_candidate(days_old=30)
        make_candidate(days_old=731)
        refresher.drain()
        assert _ids(search_engine.search(SearchRequest())) == [fresh.id]

    def test_every_result_within_window(self, search_engine, make_candidate, refresher):
        for days in (0, 100, 400, 729, 731, 1000):
            make_candidate(bio="recency check", days_old=days)
        refresher.drain()
        cutoff = search_engine.compiler.recency_cutoff(utcnow())
        for query in (None, "recency"):
            result = search_engine.search(SearchRequest(query=query))
            assert len(result.candidates) == 4
            assert all(c.created_at >= cutoff for c in result.candidates)

    def test_recency_can_be_disabled(self, search_engine, make_candidate, refresher):
        make_candidate(days_old=5)
        make_candidate(days_old=2000)
        refresher.drain()
        assert len(search_engine.search(SearchRequest(apply_recency=False)).candidates) == 2


class TestGeo:
    @pytest.fixture
    def linked(self, make_candidate, german_cities, refresher):
        people = {
            "berlin": make_candidate(display_name="B", city_ids=(german_cities["berlin"].id,)),
            "potsdam": make_candidate(display_name="P", city_ids=(german_cities["potsdam"].id,)),
            "hamburg": make_candidate(display_name="H", city_ids=(german_cities["hamburg"].id,)),
            "munich_and_berlin": make_candidate(
                display_name="MB", city_ids=(german_cities["munich"].id, german_cities["berlin"].id)
            ),
            "nowhere": make_candidate(display_name="N"),
        }
        refresher.drain()
        return {k: v.id for k, v in people.items()}

    def _geo_ids(self, search_engine, radius, **kwargs):
        request = SearchRequest(center=BERLIN, radius_km=radius, page_size=100, **kwargs)
        return set(_ids(search_engine.search(request)))

    def test_radius_selects_linked_candidates(self, search_engine, linked):
        assert self._geo_ids(search_engine, 10) == {linked["berlin"], linked["munich_and_berlin"]}
        assert self._geo_ids(search_engine, 50) == {
            linked["berlin"], linked["munich_and_berlin"], linked["potsdam"]
        }

    def test_unlinked_candidates_never_match_geo(self, search_engine, linked):
        assert linked["nowhere"] not in self._geo_ids(search_engine, 20000)

    def test_include_all_cities_admits_unlinked(self, search_engine, linked):
        ids = self._geo_ids(search_engine, 10, include_all_cities=True)
        assert ids == {linked["berlin"], linked["munich_and_berlin"], linked["nowhere"]}

    def test_smaller_radius_is_subset(self, search_engine, linked):
        radii = [1, 10, 30, 100, 260, 400, 600]
        results = [self._geo_ids(search_engine, r) for r in radii]
        for smaller, larger in zip(results, results[1:]):
            assert smaller <= larger
        assert results[-1] == set(linked.values()) - {linked["nowhere"]}

    def test_no_city_in_range_is_empty(self, search_engine, linked):
        request = SearchRequest(center=GeoPoint(-33.87, 151.21), radius_km=100)
        result = search_engine.search(request)
        assert result.candidates == []

    def test_zero_radius_rejected(self, search_engine, linked):
        with pytest.raises(InvalidRequest):
            search_engine.search(SearchRequest(center=BERLIN, radius_km=0))

    def test_geo_combined_with_text(self, search_engine, make_candidate, german_cities, refresher):
        match = make_candidate(bio="nurse", city_ids=(german_cities["potsdam"].id,))
        make_candidate(bio="nurse", city_ids=(german_cities["munich"].id,))
        make_candidate(bio="baker", city_ids=(german_cities["berlin"].id,))
        refresher.drain()
        result = search_engine.search(SearchRequest(query="nurse", center=BERLIN, radius_km=50))
        assert _ids(result) == [match.id]

    def test_search_issues_one_query(self, search_engine, linked, query_counter):
        query_counter.reset()
        search_engine.search(SearchRequest(query="anything", center=BERLIN, radius_km=50, featured_only=True))
        assert query_counter.count == 1


class TestPagination:
    @pytest.fixture
    def five(self, make_candidate, refresher):
        created = [make_candidate(bio=f"page {n}") for n in range(5)]
        refresher.drain()
        return [c.id for c in reversed(created)]

    def test_pages_and_has_more(self, search_engine, five):
        first = search_engine.search(SearchRequest(page_size=2))
        second = search_engine.search(SearchRequest(page_size=2, offset=2))
        last = search_engine.search(SearchRequest(page_size=2, offset=4))
        assert _ids(first) == five[:2] and first.has_more
        assert _ids(second) == five[2:4] and second.has_more
        assert _ids(last) == five[4:] and not last.has_more

    def test_exact_fit_has_no_more(self, search_engine, five):
        result = search_engine.search(SearchRequest(page_size=5))
        assert len(result.candidates) == 5
        assert not result.has_more

    def test_offset_past_end(self, search_engine, five):
        result = search_engine.search(SearchRequest(page_size=2, offset=50))
        assert result.candidates == []
        assert not result.has_more

    def test_zero_page_size(self, search_engine, five, query_counter):
        query_counter.reset()
        result = search_engine.search(SearchRequest(page_size=0))
        assert result.candidates == []
        assert query_counter.count == 0


class TestFilters:
    def test_featured_only(self, search_engine, make_candidate, refresher):
        star = make_candidate(featured=True)
        make_candidate()
        refresher.drain()
        assert _ids(search_engine.search(SearchRequest(featured_only=True))) == [star.id]

    def test_favorites_resolved_alongside_page(self, search_engine, make_candidate, refresher, query_counter):
        a, b, c = make_candidate(), make_candidate(), make_candidate()
        refresher.drain()
        request = SearchRequest(
            page_size=1,
            favorites=(MaterializedCandidate(a), CandidateID(b.id), CandidateID(999_999), CandidateID(b.id)),
        )
        query_counter.reset()
        result = search_engine.search(request)
        assert _ids(result) == [c.id]
        assert [f.id for f in result.favorites] == [a.id, b.id]
        assert query_counter.count == 2

    def test_favorite_id_beyond_integer_range_is_dropped(self, search_engine, make_candidate, refresher):
        a = make_candidate()
        refresher.drain()
        result = search_engine.search(SearchRequest(favorites=(CandidateID(2**70), CandidateID(a.id))))
        assert [f.id for f in result.favorites] == [a.id]

    def test_search_does_not_mutate(self, search_engine, make_candidate, refresher, query_counter):
        make_candidate(bio="readonly")
        refresher.drain()
        query_counter.reset()
        search_engine.search(SearchRequest(query="readonly", favorites=(CandidateID(1),)))
        search_engine.featured_sample(SearchRequest(), sample_size=2)
        assert all(s.lstrip().upper().startswith("SELECT") for s in query_counter.statements)


class TestErrors:
    def test_invalid_request_never_touches_store(self):
        def exploding_factory():
            raise AssertionError("store must not be opened")

        engine = SearchEngine(exploding_factory)
        with pytest.raises(InvalidRequest):
            engine.search(SearchRequest(center=BERLIN, radius_km=0))
        with pytest.raises(InvalidRequest):
            engine.search(SearchRequest(offset=-1))
        with pytest.raises(InvalidRequest):
            engine.featured_sample(SearchRequest(), sample_size=10_000)

    def test_store_failure_propagates(self, tmp_path):
        broken = get_engine(tmp_path / "missing-dir" / "talent.sqlite")
        engine = SearchEngine(get_session_factory(broken))
        with pytest.raises(StoreUnavailable):
            engine.search(SearchRequest())
        with pytest.raises(StoreUnavailable):
            engine.featured_sample(SearchRequest(), sample_size=3)
        broken.dispose()
