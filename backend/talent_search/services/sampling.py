from talent_search.models.candidate import Candidate
from talent_search.services.candidate_store import CandidateStore
from talent_search.services.errors import InvalidRequest
from talent_search.services.query_compiler import SearchPlan


def sample(store: CandidateStore, plan: SearchPlan, k: int) -> list[Candidate]:
    """
    Draw up to k candidates uniformly at random from the plan's matches.

    Randomization runs in the store (ORDER BY random() LIMIT k), so the cost
    follows k rather than the size of the matching set. Any relevance ordering
    on the plan is discarded.
    """
    if k < 0:
        raise InvalidRequest("Sample size must not be negative")
    if k == 0:
        return []
    return store.random_sample(plan.statement, k)
