from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from models.common import ParcelStatus


class ReceiverContact(BaseModel):
    name:  Optional[str] = None
    phone: Optional[str] = None


class StatusLogEntry(BaseModel):
    status:     ParcelStatus
    timestamp:  datetime
    updated_by: str              # user_id de l'acteur
    note:       Optional[str] = None
    location:   Optional[str] = None


class Parcel(BaseModel):
    parcel_id:        str
    tracking_id:      str        # "TRK-YYYYMMDD-NNNNNN"
    # Acteurs
    sender_id:        str
    receiver_id:      str
    receiver_contact: Optional[ReceiverContact] = None
    # Colis physique
    parcel_type:      str
    weight:           float
    fee:              float = 0.0
    from_address:     str
    to_address:       str
    # Cycle de vie
    current_status:   ParcelStatus = ParcelStatus.REQUESTED
    status_logs:      list[StatusLogEntry] = Field(default_factory=list)
    is_deleted:       bool = False
    is_blocked:       bool = False
    version:          int  = 0     # compteur de concurrence optimiste
    # Timestamps
    created_at:       datetime
    updated_at:       datetime


class ParcelCreate(BaseModel):
    parcel_type:      str
    weight:           float
    fee:              float = 0.0
    receiver_id:      str
    receiver_contact: Optional[ReceiverContact] = None
    from_address:     str
    to_address:       str


class StatusUpdateRequest(BaseModel):
    status:   ParcelStatus
    note:     Optional[str] = None
    location: Optional[str] = None


class BlockRequest(BaseModel):
    blocked: bool


class PublicStatusLogEntry(BaseModel):
    status:    ParcelStatus
    timestamp: datetime
    note:      Optional[str] = None
    location:  Optional[str] = None


class PublicParcel(BaseModel):
    """Vue de suivi anonyme : aucun id de compte, téléphone destinataire masqué."""
    tracking_id:      str
    parcel_type:      str
    weight:           float
    from_address:     str
    to_address:       str
    receiver_contact: Optional[ReceiverContact] = None
    current_status:   ParcelStatus
    status_logs:      list[PublicStatusLogEntry]
    created_at:       datetime
    updated_at:       datetime
