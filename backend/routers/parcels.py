"""
Router colis : création et tous les changements de statut du cycle de vie.
Chaque handler relit le colis puis le passe au service.
"""
from fastapi import APIRouter, Depends

from core.dependencies import get_actor, require_admin, require_receiver, require_sender
from models.common import Actor
from models.parcel import BlockRequest, Parcel, ParcelCreate, StatusUpdateRequest
from services.parcel_service import (
    cancel_parcel,
    confirm_delivery,
    create_parcel,
    get_parcel,
    set_parcel_blocked,
    soft_delete_parcel,
    update_parcel_status,
)
from services.parcel_store import ParcelStore, get_parcel_store

router = APIRouter()


@router.post("", status_code=201, response_model=Parcel, summary="Créer un colis (expéditeur)")
async def create_parcel_endpoint(
    body: ParcelCreate,
    actor: Actor = Depends(require_sender),
    store: ParcelStore = Depends(get_parcel_store),
):
    return await create_parcel(store, actor, body)


@router.get("/{parcel_id}", response_model=Parcel, summary="Détail + journal de statut")
async def get_parcel_endpoint(
    parcel_id: str,
    actor: Actor = Depends(get_actor),
    store: ParcelStore = Depends(get_parcel_store),
):
    return await get_parcel(store, parcel_id, actor)


@router.patch("/{parcel_id}/cancel", response_model=Parcel, summary="Annuler un colis (expéditeur, avant expédition)")
async def cancel_parcel_endpoint(
    parcel_id: str,
    actor: Actor = Depends(require_sender),
    store: ParcelStore = Depends(get_parcel_store),
):
    parcel = await get_parcel(store, parcel_id, actor)
    return await cancel_parcel(store, parcel, actor)


@router.patch("/{parcel_id}/confirm", response_model=Parcel, summary="Confirmer la livraison (destinataire)")
async def confirm_delivery_endpoint(
    parcel_id: str,
    actor: Actor = Depends(require_receiver),
    store: ParcelStore = Depends(get_parcel_store),
):
    parcel = await get_parcel(store, parcel_id, actor)
    return await confirm_delivery(store, parcel, actor)


# ── Admin ─────────────────────────────────────────────────────────────────────
@router.patch("/{parcel_id}/status", response_model=Parcel, summary="Changer le statut (admin)")
async def update_status_endpoint(
    parcel_id: str,
    body: StatusUpdateRequest,
    actor: Actor = Depends(require_admin),
    store: ParcelStore = Depends(get_parcel_store),
):
    parcel = await get_parcel(store, parcel_id, actor)
    return await update_parcel_status(
        store, parcel, actor, body.status, note=body.note, location=body.location,
    )


@router.patch("/{parcel_id}/block", response_model=Parcel, summary="Bloquer / débloquer un colis (admin)")
async def block_parcel_endpoint(
    parcel_id: str,
    body: BlockRequest,
    actor: Actor = Depends(require_admin),
    store: ParcelStore = Depends(get_parcel_store),
):
    parcel = await get_parcel(store, parcel_id, actor)
    return await set_parcel_blocked(store, parcel, actor, body.blocked)


@router.delete("/{parcel_id}", response_model=Parcel, summary="Suppression logique (admin)")
async def delete_parcel_endpoint(
    parcel_id: str,
    actor: Actor = Depends(require_admin),
    store: ParcelStore = Depends(get_parcel_store),
):
    parcel = await get_parcel(store, parcel_id, actor)
    return await soft_delete_parcel(store, parcel, actor)
