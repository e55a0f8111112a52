from enum import Enum
from typing import Optional
from pydantic import BaseModel


class ParcelStatus(str, Enum):
    REQUESTED  = "requested"
    APPROVED   = "approved"
    DISPATCHED = "dispatched"
    IN_TRANSIT = "in_transit"
    DELIVERED  = "delivered"
    CANCELED   = "canceled"


class UserRole(str, Enum):
    SENDER   = "sender"
    RECEIVER = "receiver"
    ADMIN    = "admin"


class UserStatus(str, Enum):
    ACTIVE   = "active"
    INACTIVE = "inactive"
    BANNED   = "banned"


class Actor(BaseModel):
    """Appelant authentifié, passé explicitement à chaque opération colis."""
    user_id: str
    role:    UserRole


class Address(BaseModel):
    street:      Optional[str] = None
    city:        Optional[str] = None
    state:       Optional[str] = None
    postal_code: Optional[str] = None
    country:     Optional[str] = None
