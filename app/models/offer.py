from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.user import generate_uuid, utcnow


class Offer(Base):
    __tablename__ = "offers"
    __table_args__ = (
        # one active interest per user and product
        UniqueConstraint("user_id", "product_id", name="uq_offers_user_product"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    offered_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="offers")
    product = relationship("Product", back_populates="offers")
