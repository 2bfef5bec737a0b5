from sqlalchemy import Boolean, Column, Integer, Text
from sqlalchemy.orm import relationship
from talent_search.database import Base


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True)
    display_name = Column(Text, nullable=False)
    location_text = Column(Text)
    desired_positions = Column(Text)
    bio = Column(Text)
    # Derived by the search index refresher; never written by request handlers.
    search_document = Column(Text, nullable=False, default="")
    search_index = Column(Integer, nullable=False, default=0)
    featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    cities = relationship("DesiredCity", secondary="candidate_cities", back_populates="candidates")

    def __repr__(self) -> str:
        return f"<Candidate id={self.id} search_index={self.search_index}>"
