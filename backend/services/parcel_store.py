"""
Persistance MongoDB des colis.

Chaque écriture est un update mono-document gardé par le compteur `version`
du colis : deux écritures issues de la même lecture ne peuvent pas réussir toutes les deux.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from core.exceptions import Conflict
from database import db
from models.parcel import Parcel, StatusLogEntry


class DuplicateTrackingId(Exception):
    """L'insertion a heurté l'index unique sur tracking_id."""


def _bson(value: Any) -> Any:
    # BSON n'a pas de type Enum
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _bson(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_bson(v) for v in value]
    return value


def to_document(model: BaseModel) -> dict:
    return _bson(model.model_dump())


class ParcelStore:
    def __init__(self, collection):
        self.collection = collection

    async def get(self, parcel_id: str) -> Optional[Parcel]:
        doc = await self.collection.find_one({"parcel_id": parcel_id}, {"_id": 0})
        return Parcel.model_validate(doc) if doc else None

    async def get_by_tracking_id(self, tracking_id: str) -> Optional[Parcel]:
        doc = await self.collection.find_one({"tracking_id": tracking_id}, {"_id": 0})
        return Parcel.model_validate(doc) if doc else None

    async def insert(self, parcel: Parcel) -> Parcel:
        doc = to_document(parcel)
        try:
            await self.collection.insert_one(doc)
        except DuplicateKeyError as exc:
            key = (exc.details or {}).get("keyPattern") or {}
            if "tracking_id" in key or "tracking_id" in str(exc):
                raise DuplicateTrackingId(parcel.tracking_id) from exc
            raise
        return parcel

    async def append_status(self, parcel: Parcel, entry: StatusLogEntry) -> Parcel:
        """Met à jour current_status et pousse l'entrée de journal en une seule écriture atomique."""
        result = await self.collection.update_one(
            {"parcel_id": parcel.parcel_id, "version": parcel.version},
            {
                "$set":  {"current_status": entry.status.value, "updated_at": entry.timestamp},
                "$push": {"status_logs": to_document(entry)},
                "$inc":  {"version": 1},
            },
        )
        if result.matched_count == 0:
            raise Conflict(
                f"Parcel {parcel.parcel_id} was modified concurrently, reload and retry"
            )
        return parcel.model_copy(update={
            "current_status": entry.status,
            "status_logs":    [*parcel.status_logs, entry],
            "updated_at":     entry.timestamp,
            "version":        parcel.version + 1,
        })

    async def update_flags(self, parcel: Parcel, **flags: bool) -> Parcel:
        now = datetime.now(timezone.utc)
        result = await self.collection.update_one(
            {"parcel_id": parcel.parcel_id, "version": parcel.version},
            {"$set": {**flags, "updated_at": now}, "$inc": {"version": 1}},
        )
        if result.matched_count == 0:
            raise Conflict(
                f"Parcel {parcel.parcel_id} was modified concurrently, reload and retry"
            )
        return parcel.model_copy(update={**flags, "updated_at": now, "version": parcel.version + 1})


def get_parcel_store() -> ParcelStore:
    return ParcelStore(db.parcels)
