from sqlalchemy import Column, Integer, String, DateTime, JSON
from datetime import datetime
from app.database import Base


class Document(Base):
    """A single stored document, one row per document type"""
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, unique=True, nullable=False, index=True)
    content = Column(JSON, nullable=False, default=dict)

    # Bumped on every write. A writer holding a stale row gets a StaleDataError.
    version = Column(Integer, nullable=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}
