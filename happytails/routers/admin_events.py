# happytails/routers/admin_events.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from happytails.core.auth import require_admin
from happytails.database import get_session
from happytails.repositories.event_repo import EventRepository
from happytails.schemas.event import (
    AdminEventListEnvelope,
    AttendeesEnvelope,
    EventEnvelope,
    EventRevenueEnvelope,
    EventStatsEnvelope,
    EventUpdate,
)
from happytails.schemas.common import MessageEnvelope
from happytails.services.event_service import EventService

router = APIRouter(
    prefix="/admin/events",
    tags=["Admin Events"],
    dependencies=[Depends(require_admin)],
)

repo = EventRepository()
service = EventService(repo)


@router.get("", response_model=AdminEventListEnvelope)
def list_events(session: Session = Depends(get_session)):
    return AdminEventListEnvelope(events=service.list_events_admin(session))


@router.get("/stats", response_model=EventStatsEnvelope)
def get_event_stats(session: Session = Depends(get_session)):
    return EventStatsEnvelope(stats=service.event_stats(session))


@router.get("/revenue", response_model=EventRevenueEnvelope)
def get_event_revenue(session: Session = Depends(get_session)):
    """
    Ticket sales, 10% commission and the month over month change.
    """
    return EventRevenueEnvelope(revenue=service.event_revenue(session))


@router.get("/{event_id}", response_model=EventEnvelope)
def get_event(event_id: uuid.UUID, session: Session = Depends(get_session)):
    return EventEnvelope(event=service.get_event(session, event_id))


@router.get("/{event_id}/attendees", response_model=AttendeesEnvelope)
def get_event_attendees(event_id: uuid.UUID, session: Session = Depends(get_session)):
    return AttendeesEnvelope(attendees=service.attendees(session, event_id))


@router.put("/{event_id}", response_model=MessageEnvelope)
def update_event(
    event_id: uuid.UUID,
    payload: EventUpdate,
    session: Session = Depends(get_session),
):
    """
    Partial update. Answers with a message only (no echo).
    """
    service.update_event(session, event_id, payload)
    return MessageEnvelope(message="Event updated successfully")


@router.delete("/{event_id}", response_model=MessageEnvelope)
def delete_event(event_id: uuid.UUID, session: Session = Depends(get_session)):
    service.delete_event(session, event_id)
    return MessageEnvelope(message="Event and all associated tickets deleted successfully.")
