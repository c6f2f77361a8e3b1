from sqlalchemy import (
    Column,
    String,
    Text,
    Numeric,
    DateTime,
    ForeignKey,
)
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.user import generate_uuid, utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    seller_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(50), nullable=False)

    # external URL or "/uploads/photos/<name>.<ext>"
    image_url = Column(String(500), nullable=False)

    published_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    seller = relationship("User", back_populates="products")

    offers = relationship(
        "Offer",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
