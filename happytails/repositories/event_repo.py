# happytails/repositories/event_repo.py
import uuid
from datetime import datetime

from sqlalchemy import delete, func
from sqlmodel import Session, select

from happytails.models.event import Event, Ticket
from happytails.models.user import User


class EventRepository:
    """
    Data access layer for events and tickets.

    NOTE:
      - No commits here; booking touches two tables (ticket insert +
        tickets_sold increment). The service commits.
    """

    # ---- Events ----

    def get_by_id(self, session: Session, event_id: uuid.UUID) -> Event | None:
        return session.get(Event, event_id)

    def list_public(self, session: Session, now: datetime) -> list[Event]:
        """
        Events a customer can still book: not cancelled/completed and
        starting in the future, soonest first.
        """
        stmt = (
            select(Event)
            .where(
                Event.status.in_(("upcoming", "ongoing")),
                Event.starts_at >= now,
            )
            .order_by(Event.starts_at)
        )
        return list(session.exec(stmt).all())

    def list_with_manager(self, session: Session) -> list[tuple[Event, User]]:
        """Every event with its manager, latest start first."""
        stmt = (
            select(Event, User)
            .join(User, User.id == Event.manager_id)
            .order_by(Event.starts_at.desc())
        )
        return list(session.exec(stmt).all())

    def count_events(
        self,
        session: Session,
        starts_from: datetime | None = None,
        starts_before: datetime | None = None,
    ) -> int:
        stmt = select(func.count()).select_from(Event)
        if starts_from is not None:
            stmt = stmt.where(Event.starts_at >= starts_from)
        if starts_before is not None:
            stmt = stmt.where(Event.starts_at < starts_before)
        return int(session.exec(stmt).one() or 0)

    def list_for_manager(
        self,
        session: Session,
        manager_id: uuid.UUID,
        now: datetime,
        upcoming: bool,
    ) -> list[Event]:
        stmt = select(Event).where(Event.manager_id == manager_id)
        if upcoming:
            stmt = stmt.where(Event.starts_at >= now).order_by(Event.starts_at)
        else:
            stmt = stmt.where(Event.starts_at < now).order_by(Event.starts_at.desc())
        return list(session.exec(stmt).all())

    def manager_totals(self, session: Session, manager_id: uuid.UUID) -> tuple:
        """(event count, tickets sold) for a manager."""
        stmt = select(
            func.count(Event.id),
            func.coalesce(func.sum(Event.tickets_sold), 0),
        ).where(Event.manager_id == manager_id)
        return session.exec(stmt).one()

    def manager_ticket_revenue(self, session: Session, manager_id: uuid.UUID) -> float:
        stmt = (
            select(func.coalesce(func.sum(Ticket.price), 0.0))
            .join(Event, Event.id == Ticket.event_id)
            .where(Event.manager_id == manager_id, Ticket.is_active == True)  # noqa: E712
        )
        return float(session.exec(stmt).one() or 0.0)

    def save(self, session: Session, event: Event) -> Event:
        session.add(event)
        session.flush()
        session.refresh(event)
        return event

    def delete(self, session: Session, event: Event) -> None:
        """Delete an event together with all of its tickets."""
        session.exec(delete(Ticket).where(Ticket.event_id == event.id))
        session.delete(event)
        session.flush()

    def delete_for_manager(self, session: Session, manager_id: uuid.UUID) -> int:
        events = session.exec(select(Event).where(Event.manager_id == manager_id)).all()
        for event in events:
            self.delete(session, event)
        return len(events)

    # ---- Tickets ----

    def create_ticket(self, session: Session, ticket: Ticket) -> Ticket:
        session.add(ticket)
        session.flush()
        session.refresh(ticket)
        return ticket

    def attendees(self, session: Session, event_id: uuid.UUID) -> list[tuple[Ticket, User]]:
        stmt = (
            select(Ticket, User)
            .join(User, User.id == Ticket.customer_id)
            .where(Ticket.event_id == event_id)
            .order_by(Ticket.purchased_at.desc())
        )
        return list(session.exec(stmt).all())

    def tickets_for_customer(
        self,
        session: Session,
        customer_id: uuid.UUID,
    ) -> list[tuple[Ticket, Event]]:
        stmt = (
            select(Ticket, Event)
            .join(Event, Event.id == Ticket.event_id)
            .where(Ticket.customer_id == customer_id)
            .order_by(Ticket.purchased_at.desc())
        )
        return list(session.exec(stmt).all())

    def delete_tickets_for_customer(self, session: Session, customer_id: uuid.UUID) -> None:
        session.exec(delete(Ticket).where(Ticket.customer_id == customer_id))

    def count_tickets_sold(self, session: Session) -> tuple:
        """(tickets sold, ticket revenue) over active bookings."""
        stmt = select(
            func.coalesce(func.sum(Ticket.number_of_tickets), 0),
            func.coalesce(func.sum(Ticket.price), 0.0),
        ).where(Ticket.is_active == True)  # noqa: E712
        return session.exec(stmt).one()

    def ticket_sales(
        self,
        session: Session,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> float:
        """Gross ticket sales of active bookings purchased in [since, until)."""
        stmt = select(func.coalesce(func.sum(Ticket.price), 0.0)).where(
            Ticket.is_active == True  # noqa: E712
        )
        if since is not None:
            stmt = stmt.where(Ticket.purchased_at >= since)
        if until is not None:
            stmt = stmt.where(Ticket.purchased_at < until)
        return float(session.exec(stmt).one() or 0.0)
