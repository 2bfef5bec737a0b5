from talent_search.models.candidate import Candidate
from talent_search.models.city import DesiredCity, candidate_cities

__all__ = ["Candidate", "DesiredCity", "candidate_cities"]
