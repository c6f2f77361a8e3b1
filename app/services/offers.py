import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    UnprocessableStateError,
)
from app.core.security import Identity
from app.models.offer import Offer
from app.models.product import Product
from app.models.user import User
from app.schemas.offer import OfferRead

logger = logging.getLogger(__name__)

ALREADY_OFFERED = "You have already registered interest in this product."


class OfferService:
    """
    Offers move from absent to active on create and back to absent on delete.
    There is no update.
    """

    def __init__(self, db: Session):
        self.db = db

    def _get_product_or_404(self, product_id) -> Product:
        product = self.db.get(Product, str(product_id))
        if not product:
            raise NotFoundError("Product not found.")
        return product

    def _load(self, offer_id) -> Offer | None:
        return (
            self.db.query(Offer)
            .options(joinedload(Offer.user), joinedload(Offer.product))
            .filter(Offer.id == str(offer_id))
            .first()
        )

    def create(self, product_id, identity: Identity) -> OfferRead:
        product = self._get_product_or_404(product_id)

        if identity.is_user(product.seller_id):
            raise UnprocessableStateError(
                "You cannot register interest in your own product.",
                code="SELF_OFFER",
                status_code=403,
            )

        if self.db.get(User, identity.user_id) is None:
            raise AuthenticationError("Authenticated user no longer exists.")

        existing = (
            self.db.query(Offer.id)
            .filter(Offer.user_id == identity.user_id, Offer.product_id == product.id)
            .first()
        )
        if existing:
            raise ConflictError(ALREADY_OFFERED, details={"offer_id": existing.id})

        offer = Offer(user_id=identity.user_id, product_id=product.id)
        self.db.add(offer)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(ALREADY_OFFERED)

        logger.info("Offer %s on product %s by %s", offer.id, product.id, identity.user_id)
        return OfferRead.model_validate(self._load(offer.id))

    def delete(self, offer_id, identity: Identity) -> None:
        offer = self._load(offer_id)
        if not offer:
            raise NotFoundError("Offer not found.")

        is_offerer = identity.is_user(offer.user_id)
        is_seller = identity.is_user(offer.product.seller_id)
        if not is_offerer and not is_seller:
            raise AuthorizationError("You are not allowed to delete this offer.")

        self.db.delete(offer)
        self.db.commit()
        logger.info("Offer %s deleted by %s", offer_id, identity.user_id)

    def list_for_product(self, product_id, identity: Identity) -> List[OfferRead]:
        product = self._get_product_or_404(product_id)
        if not identity.is_user(product.seller_id):
            raise AuthorizationError("Only the seller can see offers on this product.")

        offers = (
            self.db.query(Offer)
            .options(joinedload(Offer.user), joinedload(Offer.product))
            .filter(Offer.product_id == product.id)
            .order_by(Offer.offered_at.desc())
            .all()
        )
        return [OfferRead.model_validate(o) for o in offers]

    def list_for_user(self, user_id, identity: Identity) -> List[OfferRead]:
        if not identity.is_user(user_id):
            raise AuthorizationError("You can only see your own offers.")

        offers = (
            self.db.query(Offer)
            .options(joinedload(Offer.user), joinedload(Offer.product))
            .filter(Offer.user_id == str(user_id))
            .order_by(Offer.offered_at.desc())
            .all()
        )
        return [OfferRead.model_validate(o) for o in offers]
