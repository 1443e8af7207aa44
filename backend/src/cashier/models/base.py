"""Base model with common fields for all entities."""
from datetime import date, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, Uuid

from cashier.database import Base as DeclarativeBase


class Base(DeclarativeBase):
    """Base model class with common fields."""

    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize every column to a JSON-shaped dict.

        UUIDs become strings and datetimes ISO 8601 strings.
        """
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, UUID):
                value = str(value)
            elif isinstance(value, (datetime, date)):
                value = value.isoformat()
            data[column.key] = value
        return data
