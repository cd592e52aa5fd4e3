# tour_admin/db/models.py
from sqlalchemy import Column, String, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class DocumentRow(Base):
    """One schema-less document of the SQL backend.

    Every collection shares this table; the document body lives in `data`.
    """
    __tablename__ = 'documents'

    id = Column(String(36), primary_key=True)
    collection = Column(String(100), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)

    def to_dict(self):
        return {'id': self.id, **(self.data or {})}
