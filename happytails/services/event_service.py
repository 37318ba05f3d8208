# happytails/services/event_service.py
import logging
import uuid
from datetime import timedelta

from sqlmodel import Session

from happytails.core.errors import NotFoundError, ValidationError
from happytails.core.money import format_money, start_of_day, utcnow
from happytails.models.event import Event, Ticket
from happytails.models.user import User
from happytails.repositories.event_repo import EventRepository
from happytails.schemas.event import (
    AdminEventRow,
    Attendee,
    EventRead,
    EventRevenue,
    EventStats,
    EventUpdate,
    TicketCreate,
    TicketRead,
)

logger = logging.getLogger(__name__)

BOOKABLE_STATUSES = ("upcoming", "ongoing")

# Platform share of gross ticket sales (10%)
EVENT_COMMISSION_RATE = 0.10


def to_event_read(event: Event) -> EventRead:
    return EventRead(**event.model_dump(), tickets_left=event.tickets_left)


class EventService:
    """
    Business logic for events and ticket bookings.

    Responsibilities:
      - Public listing / detail with derived tickets_left
      - Book tickets (capacity check + tickets_sold increment, one commit)
      - Admin list, stats, ticket revenue, detail, attendee list,
        update and delete (with tickets)
    """

    def __init__(self, event_repo: EventRepository):
        self.event_repo = event_repo

    def _get_or_404(self, session: Session, event_id: uuid.UUID) -> Event:
        event = self.event_repo.get_by_id(session, event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    # -------- Public --------

    def list_public_events(self, session: Session) -> list[EventRead]:
        return [to_event_read(e) for e in self.event_repo.list_public(session, utcnow())]

    def get_event(self, session: Session, event_id: uuid.UUID) -> EventRead:
        return to_event_read(self._get_or_404(session, event_id))

    # -------- Booking --------

    def book_tickets(
        self,
        session: Session,
        customer: User,
        event_id: uuid.UUID,
        payload: TicketCreate,
    ) -> tuple[TicketRead, str]:
        """
        Create a booking for `numberOfTickets` seats.

        Rules:
          - event must exist and be open for booking
          - requested count must not exceed tickets left
          - price = ticket_price * count (fee is a client-side display)
          - contact details default to the customer's profile

        Returns the ticket and a confirmation message.
        """
        event = self._get_or_404(session, event_id)

        if event.status not in BOOKABLE_STATUSES:
            raise ValidationError("This event is not open for booking")

        left = event.tickets_left
        if left < payload.number_of_tickets:
            raise ValidationError(f"Only {left} tickets are left")

        total_price = event.ticket_price * payload.number_of_tickets

        ticket = self.event_repo.create_ticket(
            session,
            Ticket(
                event_id=event.id,
                customer_id=customer.id,
                contact_name=payload.name or customer.name,
                contact_phone=payload.phone or customer.phone or "",
                contact_email=str(payload.email or customer.email),
                number_of_tickets=payload.number_of_tickets,
                price=total_price,
                pet_name=payload.pet_name,
                pet_breed=payload.pet_breed,
                pet_age=payload.pet_age,
            ),
        )

        event.tickets_sold += payload.number_of_tickets
        self.event_repo.save(session, event)
        session.commit()
        session.refresh(ticket)

        logger.info(
            "Booked %d ticket(s) for event %s (%s)",
            payload.number_of_tickets,
            event.id,
            ticket.ticket_code,
        )
        message = f"Tickets booked successfully! Total: {format_money(total_price)}"
        return TicketRead.model_validate(ticket), message

    # -------- Admin --------

    def list_events_admin(self, session: Session) -> list[AdminEventRow]:
        return [
            AdminEventRow(
                id=event.id,
                title=event.title,
                starts_at=event.starts_at,
                venue=event.venue,
                status=event.status,
                total_tickets=event.total_tickets,
                tickets_sold=event.tickets_sold,
                tickets_left=event.tickets_left,
                manager_id=manager.id,
                manager_name=manager.name,
            )
            for event, manager in self.event_repo.list_with_manager(session)
        ]

    def event_stats(self, session: Session) -> EventStats:
        now = utcnow()
        tickets_sold, _ = self.event_repo.count_tickets_sold(session)
        return EventStats(
            total_events=self.event_repo.count_events(session),
            upcoming_events=self.event_repo.count_events(session, starts_from=now),
            completed_events=self.event_repo.count_events(session, starts_before=now),
            tickets_sold=int(tickets_sold or 0),
        )

    def event_revenue(self, session: Session) -> EventRevenue:
        """
        Commission on all ticket sales. change_percent compares this
        month's gross sales with last month's; growth from nothing is 100.
        """
        this_month = start_of_day(utcnow()).replace(day=1)
        last_month = (this_month - timedelta(days=1)).replace(day=1)

        total = self.event_repo.ticket_sales(session)
        current = self.event_repo.ticket_sales(session, since=this_month)
        previous = self.event_repo.ticket_sales(session, since=last_month, until=this_month)

        if previous > 0:
            change = (current - previous) / previous * 100
        else:
            change = 100.0 if current > 0 else 0.0

        return EventRevenue(
            total_sales=total,
            revenue=round(total * EVENT_COMMISSION_RATE, 2),
            this_month_sales=current,
            last_month_sales=previous,
            change_percent=round(change, 1),
        )

    def attendees(self, session: Session, event_id: uuid.UUID) -> list[Attendee]:
        self._get_or_404(session, event_id)
        return [
            Attendee(
                ticket_id=ticket.id,
                ticket_code=ticket.ticket_code,
                customer_id=user.id,
                name=ticket.contact_name or user.name,
                email=ticket.contact_email or user.email,
                phone=ticket.contact_phone or user.phone or "",
                number_of_tickets=ticket.number_of_tickets,
                price=ticket.price,
                purchased_at=ticket.purchased_at,
            )
            for ticket, user in self.event_repo.attendees(session, event_id)
        ]

    def update_event(
        self,
        session: Session,
        event_id: uuid.UUID,
        payload: EventUpdate,
    ) -> None:
        event = self._get_or_404(session, event_id)
        data = payload.model_dump(exclude_unset=True)

        total = data.get("total_tickets")
        if total is not None and total < event.tickets_sold:
            raise ValidationError(
                f"Total tickets cannot be less than tickets already sold ({event.tickets_sold})"
            )

        for field, value in data.items():
            setattr(event, field, value)
        self.event_repo.save(session, event)
        session.commit()
        logger.info("Event %s updated", event_id)

    def delete_event(self, session: Session, event_id: uuid.UUID) -> None:
        event = self._get_or_404(session, event_id)
        self.event_repo.delete(session, event)
        session.commit()
        logger.info("Event %s and its tickets deleted", event_id)
