from sqlalchemy import Column, Float, ForeignKey, Index, Integer, Table, Text
from sqlalchemy.orm import relationship
from talent_search.database import Base

candidate_cities = Table(
    "candidate_cities",
    Base.metadata,
    Column("candidate_id", Integer, ForeignKey("candidates.id", ondelete="CASCADE"), primary_key=True),
    Column("city_id", Integer, ForeignKey("desired_cities.id", ondelete="CASCADE"), primary_key=True),
    Index("idx_candidate_cities_city", "city_id", "candidate_id"),
)


class DesiredCity(Base):
    __tablename__ = "desired_cities"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    candidates = relationship("Candidate", secondary=candidate_cities, back_populates="cities")
