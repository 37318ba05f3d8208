# happytails/services/booking_service.py
"""
Ticket booking session: a countdown-gated, three step checkout.

    ORDER_SUMMARY (1) -> BILLING_DETAILS (2) -> PAYMENT (3, modal)

Forward moves are validated, backward moves are free, and the whole
session aborts once when the countdown runs out. User errors are posted
to the NoticeBoard; only operations on a dead session raise.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Callable, Protocol

from happytails.core.config import get_settings
from happytails.core.errors import BookingTimeoutError, DomainError, ValidationError
from happytails.core.money import round_half_up
from happytails.services.notifications import NoticeBoard
from happytails.services.payment_service import (
    CardDetails,
    PaymentProcessor,
    PaymentReceipt,
)

logger = logging.getLogger(__name__)

# Booking fee on top of the ticket total (10%)
BOOKING_FEE_RATE = 0.10

EXPIRED_MESSAGE = "Booking time expired! Please try again."
EXPIRED_REDIRECT = "/events"
SUCCESS_REDIRECT = "/"


class BookingStep(IntEnum):
    ORDER_SUMMARY = 1
    BILLING_DETAILS = 2
    PAYMENT = 3


class BookingStatus(str, Enum):
    ACTIVE = "active"
    PAID = "paid"
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    CLOSED = "closed"


@dataclass(frozen=True)
class BookingTotals:
    base_amount: float
    booking_fee: int
    grand_total: float


def booking_totals(ticket_price: float, ticket_count: int) -> BookingTotals:
    """
    base  = price * count
    fee   = base * 10%, rounded to whole units (halves up)
    total = base + fee
    """
    base = ticket_price * ticket_count
    fee = round_half_up(base * BOOKING_FEE_RATE)
    return BookingTotals(base_amount=base, booking_fee=fee, grand_total=base + fee)


def format_time(seconds: int) -> str:
    """600 -> "10:00"."""
    seconds = max(int(seconds), 0)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


@dataclass(frozen=True)
class EventSummary:
    """The part of an event a booking needs."""

    id: uuid.UUID
    title: str
    ticket_price: float
    tickets_left: int

    @classmethod
    def from_event(cls, event: Any) -> "EventSummary":
        return cls(
            id=event.id,
            title=event.title,
            ticket_price=float(event.ticket_price),
            tickets_left=int(event.tickets_left),
        )


@dataclass
class BillingForm:
    name: str = ""
    phone: str = ""
    email: str = ""
    state: str = "Telangana"
    accept_terms: bool = False


class TicketBooker(Protocol):
    async def book_tickets(self, event_id: uuid.UUID, payload: dict) -> Any:
        ...


class BookingSession:
    """
    One checkout attempt for an event.

    Lifetime:
      - start() launches the 1 Hz countdown task
      - close() cancels the countdown and any pending redirect
      - a redirect is reported through `on_redirect(path)`

    The countdown may also be driven manually with tick() (tests, or a
    caller with its own scheduler).
    """

    def __init__(
        self,
        event: EventSummary,
        booker: TicketBooker,
        payments: PaymentProcessor,
        notices: NoticeBoard,
        on_redirect: Callable[[str], None] | None = None,
        timeout_seconds: int | None = None,
        redirect_delay: float | None = None,
        tick_seconds: float = 1.0,
    ):
        settings = get_settings()

        self.event = event
        self.booker = booker
        self.payments = payments
        self.notices = notices
        self.on_redirect = on_redirect

        self.time_left = (
            timeout_seconds if timeout_seconds is not None
            else settings.BOOKING_TIMEOUT_SECONDS
        )
        self.redirect_delay = (
            redirect_delay if redirect_delay is not None
            else settings.BOOKING_REDIRECT_DELAY_SECONDS
        )
        self.tick_seconds = tick_seconds

        self.step = BookingStep.ORDER_SUMMARY
        self.status = BookingStatus.ACTIVE
        self.ticket_count = 1 if event.tickets_left >= 1 else 0
        self.billing = BillingForm()
        self.receipt: PaymentReceipt | None = None
        self.booking: Any = None
        self.redirected_to: str | None = None

        self._expired = False
        self._countdown: asyncio.Task | None = None
        self._redirect: asyncio.Task | None = None

    # -------- Derived --------

    @property
    def totals(self) -> BookingTotals:
        return booking_totals(self.event.ticket_price, self.ticket_count)

    @property
    def time_display(self) -> str:
        return format_time(self.time_left)

    @property
    def payment_open(self) -> bool:
        return self.step is BookingStep.PAYMENT

    # -------- Guards --------

    def _ensure_open(self) -> None:
        if self.status is BookingStatus.ABORTED:
            raise BookingTimeoutError(EXPIRED_MESSAGE)
        if self.status in (BookingStatus.SUCCEEDED, BookingStatus.CLOSED):
            raise ValidationError("This booking session is no longer active.")

    def _check_ticket_count(self) -> bool:
        left = self.event.tickets_left
        if left < 1 or self.ticket_count > left:
            self.notices.error(f"Only {left} tickets available")
            return False
        if self.ticket_count < 1:
            self.notices.error("Please select at least 1 ticket")
            return False
        return True

    # -------- Step 1: order summary --------

    def change_ticket_count(self, count: int) -> bool:
        """
        Counts below 1 are ignored; counts above the tickets left are
        rejected with a notice. The count is fixed once the card is charged.
        """
        self._ensure_open()
        if self.receipt is not None:
            raise ValidationError("Payment already received for this booking.")
        if count < 1:
            return False
        if count > self.event.tickets_left:
            self.notices.error(f"Only {self.event.tickets_left} tickets available")
            return False
        self.ticket_count = count
        return True

    def continue_to_billing(self) -> bool:
        self._ensure_open()
        if not self._check_ticket_count():
            return False
        self.step = BookingStep.BILLING_DETAILS
        return True

    # -------- Step 2: billing details --------

    def update_billing(self, **fields: Any) -> BillingForm:
        self._ensure_open()
        for name, value in fields.items():
            if not hasattr(self.billing, name):
                raise ValidationError(f"Unknown billing field: {name}")
            setattr(self.billing, name, value)
        return self.billing

    def continue_to_payment(self) -> bool:
        self._ensure_open()
        if not self._check_ticket_count():
            return False
        form = self.billing
        if not form.name.strip() or not form.phone.strip() or not form.email.strip():
            self.notices.error("Please fill all required fields")
            return False
        if not form.accept_terms:
            self.notices.error("Please accept terms and conditions")
            return False
        self.step = BookingStep.PAYMENT
        return True

    def back_to_order_summary(self) -> None:
        self._ensure_open()
        self.step = BookingStep.ORDER_SUMMARY

    # -------- Step 3: payment --------

    def close_payment(self) -> None:
        """Dismiss the payment modal; form and timer are untouched."""
        self._ensure_open()
        if self.step is BookingStep.PAYMENT:
            self.step = BookingStep.BILLING_DETAILS

    async def submit_payment(self, card: CardDetails) -> bool:
        """
        Charge the card, then book the tickets.

        - declined / invalid card: notice only, stay on the payment step
        - booking call fails after payment: logged + notice, status PAID,
          no redirect; a resubmit retries the booking without charging again
        - booking succeeds: status SUCCEEDED, redirect to "/" after
          `redirect_delay` seconds
        - countdown expires while a call is in flight: the session stays
          ABORTED and nothing else happens
        """
        self._ensure_open()
        if self.step is not BookingStep.PAYMENT:
            raise ValidationError("Payment is not open for this booking.")

        receipt = self.receipt
        if receipt is None:
            if not self._check_ticket_count():
                return False
            receipt = await self.payments.submit(card, self.totals.grand_total)
            if receipt is None:
                return False
            self.receipt = receipt
            if self.status is BookingStatus.ABORTED:
                logger.error(
                    "Booking session for event %s expired during payment %s; "
                    "no tickets booked",
                    self.event.id,
                    receipt.transaction_id,
                )
                return False
            self.status = BookingStatus.PAID
        else:
            logger.info(
                "Retrying booking for event %s with payment %s",
                self.event.id,
                receipt.transaction_id,
            )

        try:
            self.booking = await self.booker.book_tickets(
                self.event.id,
                {
                    "numberOfTickets": self.ticket_count,
                    "name": self.billing.name,
                    "phone": self.billing.phone,
                    "email": self.billing.email,
                },
            )
        except DomainError as exc:
            logger.error(
                "Booking failed for event %s after payment %s: %s",
                self.event.id,
                receipt.transaction_id,
                exc,
            )
            self.notices.error("Booking failed. Please try again.")
            return False

        if self.status is BookingStatus.ABORTED:
            logger.error(
                "Booking session for event %s expired while booking; "
                "payment %s and booking %s need reconciling",
                self.event.id,
                receipt.transaction_id,
                self.booking,
            )
            return False

        self.status = BookingStatus.SUCCEEDED
        self._stop_countdown()
        self._redirect = asyncio.create_task(
            self._redirect_later(SUCCESS_REDIRECT, self.redirect_delay)
        )
        return True

    # -------- Countdown --------

    def tick(self) -> None:
        """
        One second of the countdown. Reaching zero aborts the session
        exactly once, whatever step it is on.
        """
        if self.status not in (BookingStatus.ACTIVE, BookingStatus.PAID):
            return
        if self.time_left <= 1:
            self.time_left = 0
            self._expire()
            return
        self.time_left -= 1

    def _expire(self) -> None:
        if self._expired:
            return
        self._expired = True
        self.status = BookingStatus.ABORTED
        logger.info("Booking session for event %s expired", self.event.id)
        self.notices.info(EXPIRED_MESSAGE)
        self._navigate(EXPIRED_REDIRECT)

    async def run_countdown(self) -> None:
        while self.status in (BookingStatus.ACTIVE, BookingStatus.PAID):
            await asyncio.sleep(self.tick_seconds)
            self.tick()

    def start(self) -> asyncio.Task:
        if self._countdown is None:
            self._countdown = asyncio.create_task(self.run_countdown())
        return self._countdown

    def _stop_countdown(self) -> None:
        if self._countdown is not None and not self._countdown.done():
            if self._countdown is not asyncio.current_task():
                self._countdown.cancel()

    # -------- Navigation / teardown --------

    async def _redirect_later(self, path: str, delay: float) -> None:
        await asyncio.sleep(delay)
        self._navigate(path)

    def _navigate(self, path: str) -> None:
        self.redirected_to = path
        if self.on_redirect is not None:
            self.on_redirect(path)

    async def wait_redirect(self) -> None:
        if self._redirect is not None:
            await self._redirect

    async def close(self) -> None:
        """Cancel every task the session owns."""
        tasks = [t for t in (self._countdown, self._redirect) if t is not None]
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if self.status in (BookingStatus.ACTIVE, BookingStatus.PAID):
            self.status = BookingStatus.CLOSED

    async def __aenter__(self) -> "BookingSession":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
