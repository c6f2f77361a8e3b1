from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import get_db
from app.services.media import MediaStorage
from app.services.notifications import NotificationService
from app.services.offers import OfferService
from app.services.products import ProductService
from app.services.users import UserService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> UserService:
    return UserService(db, settings)


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    return ProductService(db)


def get_offer_service(db: Session = Depends(get_db)) -> OfferService:
    return OfferService(db)


def get_media_storage(request: Request) -> MediaStorage:
    return request.app.state.media_storage


def get_notifier(request: Request) -> NotificationService:
    return request.app.state.notifier
