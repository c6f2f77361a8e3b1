from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.core.security import Identity, get_current_identity
from app.dependencies import get_offer_service
from app.schemas.offer import OfferCreate, OfferRead
from app.services.offers import OfferService

router = APIRouter(prefix="/ofertas", tags=["offers"])


@router.post("", response_model=OfferRead, status_code=status.HTTP_201_CREATED)
def create_offer(
    offer_in: OfferCreate,
    service: OfferService = Depends(get_offer_service),
    identity: Identity = Depends(get_current_identity),
):
    return service.create(offer_in.product_id, identity)


@router.delete("/{offer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_offer(
    offer_id: UUID,
    service: OfferService = Depends(get_offer_service),
    identity: Identity = Depends(get_current_identity),
):
    service.delete(offer_id, identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/produto/{product_id}", response_model=List[OfferRead])
def list_product_offers(
    product_id: UUID,
    service: OfferService = Depends(get_offer_service),
    identity: Identity = Depends(get_current_identity),
):
    return service.list_for_product(product_id, identity)


@router.get("/usuario/{user_id}", response_model=List[OfferRead])
def list_user_offers(
    user_id: UUID,
    service: OfferService = Depends(get_offer_service),
    identity: Identity = Depends(get_current_identity),
):
    return service.list_for_user(user_id, identity)
