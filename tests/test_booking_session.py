import asyncio
import uuid

import pytest

from happytails.core.errors import BookingTimeoutError, NotFoundError, ValidationError
from happytails.services.booking_service import (
    EXPIRED_MESSAGE,
    BookingSession,
    BookingStatus,
    BookingStep,
    EventSummary,
    booking_totals,
    format_time,
)
from happytails.services.notifications import NoticeBoard
from happytails.services.payment_service import (
    CardDetails,
    PaymentGateway,
    PaymentProcessor,
    PaymentReceipt,
    SimulatedPaymentGateway,
)

GOOD_CARD = CardDetails(
    name="Priya Sharma",
    number="4111 1111 1111 1111",
    expiry="12/99",
    cvv="123",
)


class FakeBooker:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[uuid.UUID, dict]] = []

    async def book_tickets(self, event_id, payload):
        self.calls.append((event_id, payload))
        if self.error is not None:
            raise self.error
        return {"ticket_code": "TKT-12345678", **payload}


class FlakyBooker(FakeBooker):
    """Fails the first call only."""

    async def book_tickets(self, event_id, payload):
        self.calls.append((event_id, payload))
        if len(self.calls) == 1:
            raise NotFoundError("Event not found")
        return {"ticket_code": "TKT-87654321", **payload}


class ExpiringGateway(PaymentGateway):
    """Lets the session countdown run out while the charge is in flight."""

    def __init__(self):
        self.session: BookingSession | None = None
        self.charges: list[float] = []

    async def charge(self, card, amount):
        self.charges.append(amount)
        self.session.tick()
        return PaymentReceipt(
            transaction_id="late_1",
            amount=amount,
            last_four=card.last_four,
        )


class ExpiringBooker(FakeBooker):
    def __init__(self):
        super().__init__()
        self.session: BookingSession | None = None

    async def book_tickets(self, event_id, payload):
        self.session.tick()
        return await super().book_tickets(event_id, payload)


@pytest.fixture
def event():
    return EventSummary(
        id=uuid.uuid4(),
        title="Doggy Day Out",
        ticket_price=2500,
        tickets_left=4,
    )


@pytest.fixture
def notices():
    return NoticeBoard()


@pytest.fixture
def booker():
    return FakeBooker()


@pytest.fixture
def redirects():
    return []


@pytest.fixture
def make_session(event, booker, notices, redirects):
    def _make(gateway=None, booker_override=None, **kwargs):
        payments = PaymentProcessor(
            gateway or SimulatedPaymentGateway(success_rate=1.0, latency=0),
            notices,
        )
        kwargs.setdefault("redirect_delay", 0)
        return BookingSession(
            event,
            booker_override or booker,
            payments,
            notices,
            on_redirect=redirects.append,
            **kwargs,
        )

    return _make


def fill_billing(session: BookingSession) -> None:
    session.update_billing(
        name="Priya",
        phone="9876543210",
        email="priya@example.com",
        accept_terms=True,
    )


def advance_to_payment(session: BookingSession) -> None:
    assert session.continue_to_billing()
    fill_billing(session)
    assert session.continue_to_payment()


class TestBookingTotals:
    def test_ten_percent_fee(self):
        totals = booking_totals(2500, 3)

        assert totals.base_amount == 7500
        assert totals.booking_fee == 750
        assert totals.grand_total == 8250

    def test_fee_rounds_half_up(self):
        # 25 * 10% = 2.5
        assert booking_totals(25, 1).booking_fee == 3

    def test_format_time(self):
        assert format_time(600) == "10:00"
        assert format_time(61) == "01:01"
        assert format_time(-5) == "00:00"


class TestSteps:
    def test_initial_state(self, make_session):
        session = make_session()

        assert session.step is BookingStep.ORDER_SUMMARY
        assert session.status is BookingStatus.ACTIVE
        assert session.ticket_count == 1
        assert session.time_display == "10:00"

    def test_ticket_count_bounds(self, make_session, notices):
        session = make_session()

        assert session.change_ticket_count(3)
        assert session.totals.grand_total == 8250

        assert not session.change_ticket_count(0)
        assert session.ticket_count == 3

        assert not session.change_ticket_count(5)
        assert session.ticket_count == 3
        assert notices.last.message == "Only 4 tickets available"

    def test_billing_requires_all_fields(self, make_session, notices):
        session = make_session()
        session.continue_to_billing()
        session.update_billing(name="Priya", phone="", email="priya@example.com")

        assert not session.continue_to_payment()
        assert session.step is BookingStep.BILLING_DETAILS
        assert notices.last.message == "Please fill all required fields"

    def test_billing_requires_terms(self, make_session, notices):
        session = make_session()
        session.continue_to_billing()
        fill_billing(session)
        session.update_billing(accept_terms=False)

        assert not session.continue_to_payment()
        assert notices.last.message == "Please accept terms and conditions"

    def test_unknown_billing_field(self, make_session):
        session = make_session()

        with pytest.raises(ValidationError, match="Unknown billing field"):
            session.update_billing(pincode="500001")

    def test_back_navigation_keeps_form(self, make_session):
        session = make_session()
        advance_to_payment(session)

        session.close_payment()
        assert session.step is BookingStep.BILLING_DETAILS

        session.back_to_order_summary()
        assert session.step is BookingStep.ORDER_SUMMARY
        assert session.billing.name == "Priya"
        assert session.billing.accept_terms is True


class TestCountdown:
    def test_expires_exactly_once(self, make_session, notices, redirects):
        """Repeated ticks at zero abort and redirect only once."""
        session = make_session(timeout_seconds=2)
        advance_to_payment(session)

        for _ in range(5):
            session.tick()

        assert session.status is BookingStatus.ABORTED
        assert session.time_left == 0
        assert notices.messages("info") == [EXPIRED_MESSAGE]
        assert redirects == ["/events"]

    def test_aborted_session_rejects_actions(self, make_session):
        session = make_session(timeout_seconds=1)
        session.tick()

        with pytest.raises(BookingTimeoutError):
            session.continue_to_billing()
        with pytest.raises(BookingTimeoutError):
            session.change_ticket_count(2)

    def test_tick_decrements(self, make_session):
        session = make_session(timeout_seconds=600)
        session.tick()

        assert session.time_left == 599
        assert session.time_display == "09:59"

    @pytest.mark.anyio
    async def test_countdown_task_expires_session(self, make_session, redirects):
        session = make_session(timeout_seconds=2, tick_seconds=0.01)

        task = session.start()
        await asyncio.wait_for(task, timeout=2)

        assert session.status is BookingStatus.ABORTED
        assert redirects == ["/events"]
        await session.close()

    @pytest.mark.anyio
    async def test_close_cancels_countdown(self, make_session, redirects):
        async with make_session(timeout_seconds=600, tick_seconds=0.01) as session:
            await asyncio.sleep(0.05)

        assert session.status is BookingStatus.CLOSED
        assert session.time_left > 0
        assert redirects == []


class TestSubmitPayment:
    @pytest.mark.anyio
    async def test_success_books_and_redirects_home(
        self, make_session, booker, notices, redirects, event
    ):
        session = make_session()
        session.change_ticket_count(3)
        advance_to_payment(session)

        assert await session.submit_payment(GOOD_CARD)
        await session.wait_redirect()

        assert session.status is BookingStatus.SUCCEEDED
        assert session.receipt.amount == 8250
        assert booker.calls == [
            (
                event.id,
                {
                    "numberOfTickets": 3,
                    "name": "Priya",
                    "phone": "9876543210",
                    "email": "priya@example.com",
                },
            )
        ]
        assert "Payment successful!" in notices.messages("success")
        assert redirects == ["/"]

    @pytest.mark.anyio
    async def test_requires_payment_step(self, make_session):
        session = make_session()

        with pytest.raises(ValidationError, match="Payment is not open"):
            await session.submit_payment(GOOD_CARD)

    @pytest.mark.anyio
    async def test_declined_payment_stays_on_payment_step(
        self, make_session, booker, declining_gateway, notices
    ):
        session = make_session(gateway=declining_gateway)
        advance_to_payment(session)

        assert not await session.submit_payment(GOOD_CARD)
        assert session.step is BookingStep.PAYMENT
        assert session.status is BookingStatus.ACTIVE
        assert booker.calls == []
        assert notices.last.message == "Payment failed. Please try again."

    @pytest.mark.anyio
    async def test_booking_failure_after_payment_does_not_redirect(
        self, make_session, notices, redirects
    ):
        failing = FakeBooker(error=NotFoundError("Event not found"))
        session = make_session(booker_override=failing)
        advance_to_payment(session)

        assert not await session.submit_payment(GOOD_CARD)
        await session.wait_redirect()

        assert session.status is BookingStatus.PAID
        assert session.receipt is not None
        assert notices.last.message == "Booking failed. Please try again."
        assert redirects == []

    @pytest.mark.anyio
    async def test_succeeded_session_is_closed_for_edits(self, make_session):
        session = make_session()
        advance_to_payment(session)
        await session.submit_payment(GOOD_CARD)

        with pytest.raises(ValidationError, match="no longer active"):
            session.change_ticket_count(2)
        await session.close()

    @pytest.mark.anyio
    async def test_retry_after_booking_failure_does_not_charge_again(
        self, make_session, approving_gateway, redirects
    ):
        flaky = FlakyBooker()
        session = make_session(gateway=approving_gateway, booker_override=flaky)
        advance_to_payment(session)

        assert not await session.submit_payment(GOOD_CARD)
        assert await session.submit_payment(GOOD_CARD)
        await session.wait_redirect()

        assert approving_gateway.charges == [2750]
        assert len(flaky.calls) == 2
        assert session.status is BookingStatus.SUCCEEDED
        assert redirects == ["/"]

    @pytest.mark.anyio
    async def test_ticket_count_is_fixed_once_paid(self, make_session):
        session = make_session(booker_override=FakeBooker(error=NotFoundError("Event not found")))
        advance_to_payment(session)
        await session.submit_payment(GOOD_CARD)

        with pytest.raises(ValidationError, match="Payment already received"):
            session.change_ticket_count(2)


class TestExpiryDuringSubmit:
    @pytest.mark.anyio
    async def test_expiry_during_charge_stays_aborted(
        self, make_session, booker, notices, redirects
    ):
        gateway = ExpiringGateway()
        session = make_session(gateway=gateway, timeout_seconds=1)
        gateway.session = session
        advance_to_payment(session)

        assert not await session.submit_payment(GOOD_CARD)
        await session.wait_redirect()

        assert session.status is BookingStatus.ABORTED
        assert session.receipt.transaction_id == "late_1"
        assert booker.calls == []
        assert redirects == ["/events"]

        with pytest.raises(BookingTimeoutError):
            await session.submit_payment(GOOD_CARD)
        assert gateway.charges == [2750]

    @pytest.mark.anyio
    async def test_expiry_during_booking_call_does_not_redirect_home(
        self, make_session, redirects
    ):
        booker = ExpiringBooker()
        session = make_session(booker_override=booker, timeout_seconds=1)
        booker.session = session
        advance_to_payment(session)

        assert not await session.submit_payment(GOOD_CARD)
        await session.wait_redirect()

        assert session.status is BookingStatus.ABORTED
        assert redirects == ["/events"]


class TestTicketsLeft:
    def test_sold_out_event_cannot_reach_billing(self, booker, notices, redirects):
        sold_out = EventSummary(
            id=uuid.uuid4(),
            title="Puppy Yoga",
            ticket_price=800,
            tickets_left=0,
        )
        session = BookingSession(
            sold_out,
            booker,
            PaymentProcessor(SimulatedPaymentGateway(success_rate=1.0, latency=0), notices),
            notices,
            on_redirect=redirects.append,
        )

        assert session.ticket_count == 0
        assert not session.continue_to_billing()
        assert session.step is BookingStep.ORDER_SUMMARY
        assert notices.last.message == "Only 0 tickets available"

    def test_count_above_tickets_left_is_rejected_at_each_step(self, make_session, notices):
        session = make_session()
        session.change_ticket_count(4)
        advance_to_payment(session)
        session.back_to_order_summary()
        # Someone else bought two tickets meanwhile
        session.event = EventSummary(
            id=session.event.id,
            title=session.event.title,
            ticket_price=session.event.ticket_price,
            tickets_left=2,
        )

        assert not session.continue_to_billing()
        assert not session.continue_to_payment()
        assert notices.last.message == "Only 2 tickets available"

    @pytest.mark.anyio
    async def test_over_capacity_is_never_charged(self, make_session, approving_gateway, booker):
        session = make_session(gateway=approving_gateway)
        session.change_ticket_count(4)
        advance_to_payment(session)
        session.event = EventSummary(
            id=session.event.id,
            title=session.event.title,
            ticket_price=session.event.ticket_price,
            tickets_left=3,
        )

        assert not await session.submit_payment(GOOD_CARD)
        assert approving_gateway.charges == []
        assert booker.calls == []
