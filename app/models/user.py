import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from app.core.database import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    # naive UTC, matching the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    # never leaves the service layer; response schemas do not declare it
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(11), nullable=False)
    address = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    products = relationship(
        "Product",
        back_populates="seller",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Product.published_at.desc()",
    )

    offers = relationship(
        "Offer",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
