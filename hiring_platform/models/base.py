"""Base model with common fields for all database models"""

import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, Uuid
from hiring_platform.database import Base


class BaseModel(Base):
    """Abstract base model with common fields"""

    __abstract__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id})>"
