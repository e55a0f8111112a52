"""
Pure status rules: no database involved.
"""
from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import Forbidden, InvalidTransition
from models.common import ParcelStatus
from services.parcel_service import (
    TransitionAccepted,
    TransitionRejected,
    evaluate_transition,
)

ALL_STATUSES = list(ParcelStatus)


@pytest.mark.parametrize("status", ALL_STATUSES)
def test_sender_cancel_only_before_dispatch(parcel_factory, sender, status):
    parcel = parcel_factory(status)
    outcome = evaluate_transition(parcel, sender, ParcelStatus.CANCELED)

    if status in (ParcelStatus.REQUESTED, ParcelStatus.APPROVED):
        assert isinstance(outcome, TransitionAccepted)
        assert outcome.entry.status == ParcelStatus.CANCELED
        assert outcome.entry.updated_by == sender.user_id
    else:
        assert isinstance(outcome, TransitionRejected)
        assert isinstance(outcome.error, InvalidTransition)


@pytest.mark.parametrize("status", ALL_STATUSES)
def test_receiver_confirm_only_in_transit(parcel_factory, receiver, status):
    parcel = parcel_factory(status)
    outcome = evaluate_transition(parcel, receiver, ParcelStatus.DELIVERED)

    if status == ParcelStatus.IN_TRANSIT:
        assert isinstance(outcome, TransitionAccepted)
    else:
        assert isinstance(outcome, TransitionRejected)
        assert isinstance(outcome.error, InvalidTransition)


@pytest.mark.parametrize("status", ALL_STATUSES)
def test_admin_blocked_only_by_canceled(parcel_factory, admin, status):
    parcel = parcel_factory(status)
    outcome = evaluate_transition(parcel, admin, ParcelStatus.APPROVED, note="ok", location="Hub A")

    if status == ParcelStatus.CANCELED:
        assert isinstance(outcome, TransitionRejected)
        assert isinstance(outcome.error, InvalidTransition)
    else:
        assert isinstance(outcome, TransitionAccepted)
        assert outcome.entry.note == "ok"
        assert outcome.entry.location == "Hub A"


def test_non_owning_sender_is_forbidden(parcel_factory, other_sender):
    outcome = evaluate_transition(parcel_factory(), other_sender, ParcelStatus.CANCELED)
    assert isinstance(outcome, TransitionRejected)
    assert isinstance(outcome.error, Forbidden)


def test_ownership_checked_before_status(parcel_factory, other_sender, other_receiver):
    # Status would also be invalid, ownership must win
    delivered = parcel_factory(ParcelStatus.DELIVERED)
    outcome = evaluate_transition(delivered, other_sender, ParcelStatus.CANCELED)
    assert isinstance(outcome.error, Forbidden)

    requested = parcel_factory(ParcelStatus.REQUESTED)
    outcome = evaluate_transition(requested, other_receiver, ParcelStatus.DELIVERED)
    assert isinstance(outcome.error, Forbidden)


@pytest.mark.parametrize("target", [ParcelStatus.APPROVED, ParcelStatus.DELIVERED, ParcelStatus.IN_TRANSIT])
def test_sender_cannot_request_other_targets(parcel_factory, sender, target):
    outcome = evaluate_transition(parcel_factory(), sender, target)
    assert isinstance(outcome.error, Forbidden)


@pytest.mark.parametrize("target", [ParcelStatus.CANCELED, ParcelStatus.APPROVED])
def test_receiver_cannot_request_other_targets(parcel_factory, receiver, target):
    outcome = evaluate_transition(parcel_factory(ParcelStatus.IN_TRANSIT), receiver, target)
    assert isinstance(outcome.error, Forbidden)


def test_blocked_parcel_rejects_owner_but_not_admin(parcel_factory, sender, admin):
    parcel = parcel_factory(is_blocked=True)

    outcome = evaluate_transition(parcel, sender, ParcelStatus.CANCELED)
    assert isinstance(outcome.error, Forbidden)

    outcome = evaluate_transition(parcel, admin, ParcelStatus.APPROVED)
    assert isinstance(outcome, TransitionAccepted)


def test_deleted_parcel_rejects_everyone(parcel_factory, sender, admin):
    parcel = parcel_factory(is_deleted=True)
    assert isinstance(evaluate_transition(parcel, sender, ParcelStatus.CANCELED).error, InvalidTransition)
    assert isinstance(evaluate_transition(parcel, admin, ParcelStatus.APPROVED).error, InvalidTransition)


def test_timestamp_never_goes_backwards(parcel_factory, admin):
    parcel = parcel_factory()
    last = parcel.status_logs[-1].timestamp
    earlier = last - timedelta(minutes=5)

    outcome = evaluate_transition(parcel, admin, ParcelStatus.APPROVED, now=earlier)
    assert outcome.entry.timestamp == last

    later = datetime.now(timezone.utc) + timedelta(minutes=5)
    outcome = evaluate_transition(parcel, admin, ParcelStatus.APPROVED, now=later)
    assert outcome.entry.timestamp == later


def test_evaluation_does_not_touch_parcel(parcel_factory, sender):
    parcel = parcel_factory()
    before = parcel.model_dump()
    evaluate_transition(parcel, sender, ParcelStatus.CANCELED)
    assert parcel.model_dump() == before
