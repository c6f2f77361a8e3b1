from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.security import Identity, get_current_identity
from app.dependencies import get_app_settings, get_media_storage, get_product_service
from app.schemas.product import (
    ProductCreate,
    ProductDeleted,
    ProductDetail,
    ProductListItem,
    ProductRead,
    ProductUpdate,
)
from app.services.media import MediaStorage, photo_policy
from app.services.products import ProductService

router = APIRouter(prefix="/produto", tags=["products"])


def _form_fields(**fields) -> dict:
    # multipart forms send "" for untouched inputs
    return {k: v for k, v in fields.items() if v is not None and v != ""}


async def _store_image(storage: MediaStorage, settings: Settings, image: Optional[UploadFile]):
    if image is None or not image.filename:
        return []
    return await storage.store([image], photo_policy(settings))


@router.get("", response_model=List[ProductListItem])
def list_products(service: ProductService = Depends(get_product_service)):
    return service.list()


@router.get("/vendedor/{seller_id}", response_model=List[ProductListItem])
def list_seller_products(
    seller_id: UUID,
    service: ProductService = Depends(get_product_service),
):
    return service.list_by_seller(seller_id)


@router.get("/{product_id}", response_model=ProductDetail)
def get_product(
    product_id: UUID,
    service: ProductService = Depends(get_product_service),
):
    return service.get(product_id)


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    image_url: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: ProductService = Depends(get_product_service),
    storage: MediaStorage = Depends(get_media_storage),
    settings: Settings = Depends(get_app_settings),
    identity: Identity = Depends(get_current_identity),
):
    product_in = ProductCreate(
        **_form_fields(
            title=title,
            description=description,
            price=price,
            category=category,
            image_url=image_url,
        )
    )

    stored = await _store_image(storage, settings, image)
    uploaded_url = stored[0].url if stored else None
    try:
        return await run_in_threadpool(service.create, product_in, identity, uploaded_url)
    except Exception:
        storage.discard(stored)
        raise


@router.put("/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: UUID,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    image_url: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: ProductService = Depends(get_product_service),
    storage: MediaStorage = Depends(get_media_storage),
    settings: Settings = Depends(get_app_settings),
    identity: Identity = Depends(get_current_identity),
):
    # ownership is decided before the submitted fields are looked at
    await run_in_threadpool(service.ensure_owner, product_id, identity)

    product_in = ProductUpdate(
        **_form_fields(
            title=title,
            description=description,
            price=price,
            category=category,
            image_url=image_url,
        )
    )

    stored = await _store_image(storage, settings, image)
    uploaded_url = stored[0].url if stored else None
    try:
        return await run_in_threadpool(
            service.update, product_id, product_in, identity, uploaded_url
        )
    except Exception:
        storage.discard(stored)
        raise


@router.delete("/{product_id}", response_model=ProductDeleted)
def delete_product(
    product_id: UUID,
    service: ProductService = Depends(get_product_service),
    identity: Identity = Depends(get_current_identity),
):
    return service.delete(product_id, identity)
