"""
Router tracking : endpoint public, sans authentification.
"""
from fastapi import APIRouter, Depends, Request

from config import settings
from core.limiter import limiter
from models.parcel import PublicParcel
from services.parcel_service import lookup_by_tracking_id, to_public_view
from services.parcel_store import ParcelStore, get_parcel_store

router = APIRouter()


@router.get("/{tracking_id}", response_model=PublicParcel, summary="Statut public d'un colis")
@limiter.limit(settings.TRACKING_RATE_LIMIT)
async def track_parcel(
    request: Request,
    tracking_id: str,
    store: ParcelStore = Depends(get_parcel_store),
):
    parcel = await lookup_by_tracking_id(store, tracking_id)
    return to_public_view(parcel)
