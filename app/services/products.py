import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    UnprocessableStateError,
)
from app.core.security import Identity
from app.models.product import Product
from app.models.user import User
from app.schemas.product import (
    ProductCreate,
    ProductDeleted,
    ProductDetail,
    ProductListItem,
    ProductRead,
    ProductUpdate,
)

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def _get_or_404(self, product_id) -> Product:
        product = (
            self.db.query(Product)
            .options(joinedload(Product.seller))
            .filter(Product.id == str(product_id))
            .first()
        )
        if not product:
            raise NotFoundError("Product not found.")
        return product

    def _get_owned_or_404(self, product_id, identity: Identity) -> Product:
        product = self._get_or_404(product_id)
        if not identity.is_user(product.seller_id):
            raise AuthorizationError("Only the seller can modify this product.")
        return product

    def ensure_owner(self, product_id, identity: Identity) -> None:
        self._get_owned_or_404(product_id, identity)

    def create(
        self,
        product_in: ProductCreate,
        identity: Identity,
        uploaded_image_url: Optional[str] = None,
    ) -> ProductRead:
        # an uploaded file wins over a URL in the body
        image_url = uploaded_image_url or product_in.image_url
        if not image_url:
            raise UnprocessableStateError("An image file or an image URL is required.")

        # seller comes from the verified token, never from the request body
        if self.db.get(User, identity.user_id) is None:
            raise AuthenticationError("Authenticated user no longer exists.")

        data = product_in.model_dump(exclude={"image_url"})
        product = Product(**data, image_url=image_url, seller_id=identity.user_id)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)

        logger.info("Product %s published by %s", product.id, identity.user_id)
        return ProductRead.model_validate(product)

    def get(self, product_id) -> ProductDetail:
        return ProductDetail.model_validate(self._get_or_404(product_id))

    def list(self) -> List[ProductListItem]:
        products = (
            self.db.query(Product)
            .options(joinedload(Product.seller))
            .order_by(Product.published_at.desc())
            .all()
        )
        return [ProductListItem.model_validate(p) for p in products]

    def list_by_seller(self, seller_id) -> List[ProductListItem]:
        products = (
            self.db.query(Product)
            .options(joinedload(Product.seller))
            .filter(Product.seller_id == str(seller_id))
            .order_by(Product.published_at.desc())
            .all()
        )
        return [ProductListItem.model_validate(p) for p in products]

    def update(
        self,
        product_id,
        product_in: ProductUpdate,
        identity: Identity,
        uploaded_image_url: Optional[str] = None,
    ) -> ProductRead:
        product = self._get_owned_or_404(product_id, identity)

        data = product_in.model_dump(exclude_unset=True, exclude_none=True)
        if uploaded_image_url:
            # new upload supersedes any stored or submitted URL
            data["image_url"] = uploaded_image_url

        for field, value in data.items():
            setattr(product, field, value)

        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return ProductRead.model_validate(product)

    def delete(self, product_id, identity: Identity) -> ProductDeleted:
        product = self._get_owned_or_404(product_id, identity)

        deleted = ProductRead.model_validate(product)
        self.db.delete(product)
        self.db.commit()

        logger.info("Product %s deleted by %s", deleted.id, identity.user_id)
        return ProductDeleted(message="Product deleted successfully.", product=deleted)
