"""
Resolve favorite references into Candidate objects with one bulk fetch.
"""
from collections.abc import Iterable, Mapping
from typing import Any

from talent_search.models.candidate import Candidate
from talent_search.services.candidate_store import SQLITE_INTEGER_MAX, SQLITE_INTEGER_MIN, CandidateStore
from talent_search.services.domain import CandidateID, FavoriteReference, MaterializedCandidate
from talent_search.services.errors import InvalidRequest


def _coerce_id(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidRequest(f"Not a candidate id: {value!r}")
    if isinstance(value, str) and value.strip().isdecimal():
        try:
            value = int(value.strip())
        except ValueError as exc:
            raise InvalidRequest(f"Not a candidate id: {value!r}") from exc
    if not isinstance(value, int):
        raise InvalidRequest(f"Not a candidate id: {value!r}")
    if not SQLITE_INTEGER_MIN <= value <= SQLITE_INTEGER_MAX:
        raise InvalidRequest(f"Candidate id out of range: {value}")
    return value


def to_favorite_reference(value: Any) -> FavoriteReference:
    """Normalize the shapes callers send (ids, id strings, {"id": ...}) into a reference."""
    if isinstance(value, (MaterializedCandidate, CandidateID)):
        return value
    if isinstance(value, Candidate):
        return MaterializedCandidate(value)
    if isinstance(value, Mapping):
        for key in ("id", "candidate_id"):
            if key in value:
                return CandidateID(_coerce_id(value[key]))
        raise InvalidRequest("Favorite reference is missing an id")
    if hasattr(value, "id"):
        return CandidateID(_coerce_id(value.id))
    return CandidateID(_coerce_id(value))


def resolve_favorites(store: CandidateStore, references: Iterable[FavoriteReference]) -> list[Candidate]:
    """
    Materialize every reference, fetching all bare ids in a single query.

    Duplicates collapse to their first occurrence. Ids that no longer exist
    are dropped without error.
    """
    materialized: dict[int, Candidate] = {}
    order: list[int] = []
    pending: list[int] = []

    for ref in references:
        match ref:
            case MaterializedCandidate(candidate=candidate):
                if candidate.id not in materialized:
                    materialized[candidate.id] = candidate
                order.append(candidate.id)
            case CandidateID(id=candidate_id):
                pending.append(candidate_id)
                order.append(candidate_id)
            case _:
                raise TypeError(f"Unsupported favorite reference: {ref!r}")

    missing = [cid for cid in pending if cid not in materialized]
    if missing:
        for candidate in store.bulk_fetch(missing):
            materialized.setdefault(candidate.id, candidate)

    resolved = []
    seen = set()
    for cid in order:
        if cid in seen or cid not in materialized:
            continue
        seen.add(cid)
        resolved.append(materialized[cid])
    return resolved
