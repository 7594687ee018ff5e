"""Reference model."""

from sqlalchemy import Column, Integer, String, Text
from ..database import Base


class Reference(Base):
    """Citation catalog, keyed by source_name. Not version-chained."""

    __tablename__ = "references"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    url = Column(Text, nullable=True)
