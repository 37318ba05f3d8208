# happytails/routers/events.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from happytails.core.auth import require_customer
from happytails.database import get_session
from happytails.models.user import User
from happytails.repositories.event_repo import EventRepository
from happytails.schemas.event import (
    EventEnvelope,
    EventListEnvelope,
    TicketCreate,
    TicketEnvelope,
)
from happytails.services.event_service import EventService

router = APIRouter(tags=["Events"])

event_repo = EventRepository()
service = EventService(event_repo)


@router.get(
    "/getPublicEvents",
    response_model=EventListEnvelope,
)
def list_public_events(session: Session = Depends(get_session)):
    """
    Bookable events (upcoming / ongoing, not started yet), soonest first.
    """
    return EventListEnvelope(events=service.list_public_events(session))


@router.get(
    "/events/{event_id}",
    response_model=EventEnvelope,
)
def get_event(
    event_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return EventEnvelope(event=service.get_event(session, event_id))


@router.post(
    "/tickets/{event_id}",
    response_model=TicketEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def book_tickets(
    event_id: uuid.UUID,
    payload: TicketCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Book `numberOfTickets` seats for an event.

    Auth:
      - Only customers can book.
    """
    ticket, message = service.book_tickets(session, current_user, event_id, payload)
    return TicketEnvelope(message=message, ticket=ticket)
