"""
Service colis : règles de statut, journal append-only, recherche par code de suivi.

`evaluate_transition` est pure et décide si un acteur peut passer un colis
vers un statut cible. `request_transition` l'enveloppe avec l'unique écriture
gardée vers le store. Rien d'autre ne modifie `current_status`.
"""
import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from config import settings
from core.exceptions import (
    Conflict,
    Forbidden,
    InvalidTransition,
    NotFound,
    ParcelError,
    ValidationError,
)
from core.security import generate_tracking_id
from core.utils import mask_phone
from models.common import Actor, ParcelStatus, UserRole, UserStatus
from models.parcel import (
    Parcel,
    ParcelCreate,
    PublicParcel,
    PublicStatusLogEntry,
    StatusLogEntry,
)
from services.parcel_store import DuplicateTrackingId, ParcelStore
from services.user_service import get_user

logger = logging.getLogger(__name__)

# ── Règles de statut ─────────────────────────────────────────────────────────
CANCELABLE_STATUSES = frozenset({ParcelStatus.REQUESTED, ParcelStatus.APPROVED})
CONFIRMABLE_STATUSES = frozenset({ParcelStatus.IN_TRANSIT})


@dataclass(frozen=True)
class TransitionAccepted:
    entry: StatusLogEntry


@dataclass(frozen=True)
class TransitionRejected:
    error: ParcelError


TransitionOutcome = Union[TransitionAccepted, TransitionRejected]


def _parcel_id() -> str:
    return f"prc_{uuid.uuid4().hex[:12]}"


def _next_timestamp(parcel: Parcel, now: Optional[datetime] = None) -> datetime:
    # Les horodatages du journal ne reculent jamais, même si l'horloge recule
    now = now or datetime.now(timezone.utc)
    if parcel.status_logs and parcel.status_logs[-1].timestamp > now:
        return parcel.status_logs[-1].timestamp
    return now


def evaluate_transition(
    parcel: Parcel,
    actor: Actor,
    target: ParcelStatus,
    note: Optional[str] = None,
    location: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TransitionOutcome:
    """
    Décide si `actor` peut passer `parcel` au statut `target`.

    Rôle et propriété sont vérifiés avant toute règle de statut : un appelant
    étranger au colis reçoit toujours Forbidden.
    """
    current = parcel.current_status

    if actor.role == UserRole.SENDER:
        if target != ParcelStatus.CANCELED:
            return TransitionRejected(Forbidden("Senders can only cancel parcels"))
        if parcel.sender_id != actor.user_id:
            return TransitionRejected(Forbidden("Not allowed: you are not the sender of this parcel"))
    elif actor.role == UserRole.RECEIVER:
        if target != ParcelStatus.DELIVERED:
            return TransitionRejected(Forbidden("Receivers can only confirm delivery"))
        if parcel.receiver_id != actor.user_id:
            return TransitionRejected(Forbidden("Not allowed: you are not the receiver of this parcel"))
    elif actor.role != UserRole.ADMIN:
        return TransitionRejected(Forbidden(f"Role '{actor.role}' cannot change parcel status"))

    if parcel.is_deleted:
        return TransitionRejected(InvalidTransition("Parcel has been deleted"))
    if parcel.is_blocked and actor.role != UserRole.ADMIN:
        return TransitionRejected(Forbidden("Parcel is blocked"))

    if actor.role == UserRole.SENDER and current not in CANCELABLE_STATUSES:
        return TransitionRejected(
            InvalidTransition(f"Cannot cancel a parcel that is {current.value}")
        )
    if actor.role == UserRole.RECEIVER and current not in CONFIRMABLE_STATUSES:
        return TransitionRejected(InvalidTransition("Parcel not in transit"))
    if actor.role == UserRole.ADMIN and current == ParcelStatus.CANCELED:
        return TransitionRejected(InvalidTransition("Parcel is canceled"))

    return TransitionAccepted(StatusLogEntry(
        status=target,
        timestamp=_next_timestamp(parcel, now),
        updated_by=actor.user_id,
        note=note,
        location=location,
    ))


async def request_transition(
    store: ParcelStore,
    parcel: Parcel,
    actor: Actor,
    target_status: ParcelStatus,
    note: Optional[str] = None,
    location: Optional[str] = None,
) -> Parcel:
    """
    Applique une transition à un colis fraîchement lu.
    Lève l'erreur de rejet, ou Conflict si le colis a changé depuis la lecture.
    """
    outcome = evaluate_transition(parcel, actor, target_status, note=note, location=location)
    if isinstance(outcome, TransitionRejected):
        logger.warning(
            "Transition rejected: %s %s -> %s by %s (%s): %s",
            parcel.parcel_id, parcel.current_status.value, target_status.value,
            actor.user_id, actor.role.value, outcome.error.detail,
        )
        raise outcome.error

    try:
        updated = await store.append_status(parcel, outcome.entry)
    except Conflict:
        logger.warning("Concurrent update lost on parcel %s (version %s)", parcel.parcel_id, parcel.version)
        raise

    logger.info(
        "Parcel %s: %s -> %s by %s",
        parcel.parcel_id, parcel.current_status.value, target_status.value, actor.user_id,
    )
    return updated


async def cancel_parcel(store: ParcelStore, parcel: Parcel, actor: Actor) -> Parcel:
    return await request_transition(store, parcel, actor, ParcelStatus.CANCELED)


async def confirm_delivery(store: ParcelStore, parcel: Parcel, actor: Actor) -> Parcel:
    return await request_transition(store, parcel, actor, ParcelStatus.DELIVERED)


async def update_parcel_status(
    store: ParcelStore,
    parcel: Parcel,
    actor: Actor,
    target_status: ParcelStatus,
    note: Optional[str] = None,
    location: Optional[str] = None,
) -> Parcel:
    if actor.role != UserRole.ADMIN:
        raise Forbidden("Only admins can update parcel status")
    return await request_transition(store, parcel, actor, target_status, note=note, location=location)


# ── Création ──────────────────────────────────────────────────────────────────
def _validate_details(data: ParcelCreate, sender: Actor) -> None:
    # inf passe `> 0`
    for field in ("weight", "fee"):
        if not math.isfinite(getattr(data, field)):
            raise ValidationError(f"'{field}' must be a finite number")
    if not data.weight > 0:
        raise ValidationError("Weight must be greater than 0")
    if not data.fee >= 0:
        raise ValidationError("Fee cannot be negative")
    for field in ("parcel_type", "from_address", "to_address", "receiver_id"):
        if not (getattr(data, field) or "").strip():
            raise ValidationError(f"'{field}' is required")
    if data.receiver_id == sender.user_id:
        raise ValidationError("Sender and receiver must be different users")


async def _check_receiver(receiver_id: str) -> None:
    user = await get_user(receiver_id)
    if not user or user.get("role") != UserRole.RECEIVER.value:
        raise ValidationError(f"Receiver '{receiver_id}' is not a receiver account")
    if user.get("status") == UserStatus.BANNED.value:
        raise ValidationError(f"Receiver '{receiver_id}' is banned")


async def create_parcel(store: ParcelStore, sender: Actor, data: ParcelCreate) -> Parcel:
    """Crée un colis au statut `requested` avec sa première entrée de journal."""
    if sender.role != UserRole.SENDER:
        raise Forbidden("Only senders can create parcels")
    _validate_details(data, sender)
    await _check_receiver(data.receiver_id)

    parcel_id = _parcel_id()
    for attempt in range(1, settings.TRACKING_ID_MAX_ATTEMPTS + 1):
        now = datetime.now(timezone.utc)
        parcel = Parcel(
            parcel_id=parcel_id,
            tracking_id=generate_tracking_id(now),
            sender_id=sender.user_id,
            receiver_id=data.receiver_id,
            receiver_contact=data.receiver_contact,
            parcel_type=data.parcel_type.strip(),
            weight=data.weight,
            fee=data.fee,
            from_address=data.from_address.strip(),
            to_address=data.to_address.strip(),
            current_status=ParcelStatus.REQUESTED,
            status_logs=[StatusLogEntry(
                status=ParcelStatus.REQUESTED,
                timestamp=now,
                updated_by=sender.user_id,
            )],
            created_at=now,
            updated_at=now,
        )
        try:
            await store.insert(parcel)
        except DuplicateTrackingId:
            logger.warning(
                "Tracking id collision on %s (attempt %d/%d)",
                parcel.tracking_id, attempt, settings.TRACKING_ID_MAX_ATTEMPTS,
            )
            continue
        logger.info("Parcel %s created by %s (%s)", parcel_id, sender.user_id, parcel.tracking_id)
        return parcel

    raise Conflict("Could not allocate a unique tracking id, please retry")


# ── Lectures ──────────────────────────────────────────────────────────────────
async def lookup_by_tracking_id(store: ParcelStore, tracking_id: str) -> Parcel:
    """Recherche publique, sans acteur."""
    parcel = await store.get_by_tracking_id(tracking_id.strip().upper())
    if not parcel or parcel.is_deleted:
        raise NotFound()
    return parcel


async def get_parcel(store: ParcelStore, parcel_id: str, actor: Optional[Actor] = None) -> Parcel:
    """
    Lit un colis par id. Avec un acteur, seuls l'admin, l'expéditeur et le
    destinataire y ont accès ; un colis supprimé n'est visible que des admins.
    """
    parcel = await store.get(parcel_id)
    if not parcel:
        raise NotFound()
    if actor is None or actor.role == UserRole.ADMIN:
        return parcel
    if parcel.is_deleted:
        raise NotFound()
    if actor.user_id not in (parcel.sender_id, parcel.receiver_id):
        raise Forbidden("Not allowed")
    return parcel


def to_public_view(parcel: Parcel) -> PublicParcel:
    contact = None
    if parcel.receiver_contact:
        contact = parcel.receiver_contact.model_copy(
            update={"phone": mask_phone(parcel.receiver_contact.phone or "") or None}
        )
    return PublicParcel(
        tracking_id=parcel.tracking_id,
        parcel_type=parcel.parcel_type,
        weight=parcel.weight,
        from_address=parcel.from_address,
        to_address=parcel.to_address,
        receiver_contact=contact,
        current_status=parcel.current_status,
        status_logs=[
            PublicStatusLogEntry(
                status=entry.status,
                timestamp=entry.timestamp,
                note=entry.note,
                location=entry.location,
            )
            for entry in parcel.status_logs
        ],
        created_at=parcel.created_at,
        updated_at=parcel.updated_at,
    )


# ── Drapeaux admin ────────────────────────────────────────────────────────────
async def set_parcel_blocked(store: ParcelStore, parcel: Parcel, actor: Actor, blocked: bool) -> Parcel:
    if actor.role != UserRole.ADMIN:
        raise Forbidden("Only admins can block parcels")
    if parcel.is_blocked == blocked:
        return parcel
    updated = await store.update_flags(parcel, is_blocked=blocked)
    logger.info("Parcel %s %s by %s", parcel.parcel_id, "blocked" if blocked else "unblocked", actor.user_id)
    return updated


async def soft_delete_parcel(store: ParcelStore, parcel: Parcel, actor: Actor) -> Parcel:
    """Marque le colis supprimé. Le document et son journal sont conservés."""
    if actor.role != UserRole.ADMIN:
        raise Forbidden("Only admins can delete parcels")
    if parcel.is_deleted:
        return parcel
    updated = await store.update_flags(parcel, is_deleted=True)
    logger.info("Parcel %s deleted by %s", parcel.parcel_id, actor.user_id)
    return updated
