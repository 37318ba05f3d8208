# happytails/services/payment_service.py
"""
Card entry helpers and the payment gateway seam.

Formatters mirror what a card form does on every keystroke; validation
runs once on submit and stops at the first failing field. Charging goes
through a PaymentGateway so the simulator can be swapped for a real
provider without touching the callers.
"""

import asyncio
import logging
import random
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import lru_cache

from happytails.core.config import get_settings
from happytails.core.errors import ErrorCode, PaymentError, ValidationError
from happytails.core.money import utcnow
from happytails.services.notifications import NoticeBoard

logger = logging.getLogger(__name__)

CARD_DIGITS = 16
_EXPIRY_RE = re.compile(r"^(\d{2})/(\d{2})$", re.ASCII)
_CARD_NUMBER_RE = re.compile(rf"\d{{{CARD_DIGITS}}}", re.ASCII)
_CVV_RE = re.compile(r"\d{3,4}", re.ASCII)


# ----- Formatters -----


def format_card_number(value: str, current: str = "") -> str:
    """
    "4111111111111111" -> "4111 1111 1111 1111".

    Input longer than 16 digits leaves the field at `current`.
    """
    digits = re.sub(r"\D", "", value or "", flags=re.ASCII)
    if len(digits) > CARD_DIGITS:
        return current
    return " ".join(digits[i:i + 4] for i in range(0, len(digits), 4))


def format_expiry(value: str, current: str = "") -> str:
    """
    Digits only, with a slash once a third digit follows the month:
    "1" -> "1", "12" -> "12", "123" -> "12/3", "1227" -> "12/27".
    """
    digits = re.sub(r"\D", "", value or "", flags=re.ASCII)
    if len(digits) > 4:
        return current
    if len(digits) > 2:
        return f"{digits[:2]}/{digits[2:]}"
    return digits


def format_cvv(value: str, current: str = "") -> str:
    digits = re.sub(r"\D", "", value or "", flags=re.ASCII)
    if len(digits) > 4:
        return current
    return digits


# ----- Validation -----


@dataclass
class CardDetails:
    name: str
    number: str
    expiry: str
    cvv: str

    @property
    def digits(self) -> str:
        return re.sub(r"\s", "", self.number)

    @property
    def last_four(self) -> str:
        return self.digits[-4:]


def _invalid(message: str) -> ValidationError:
    return ValidationError(message, code=ErrorCode.INVALID_CARD)


def validate_card(card: CardDetails, today: date | None = None) -> None:
    """
    Check card fields in order and raise on the first failure:

      1. name present
      2. exactly 16 digits
      3. expiry is MM/YY with a month 01-12
      4. expiry month is after the current month
      5. CVV is 3 or 4 digits

    Raises:
        ValidationError(INVALID_CARD)
    """
    today = today or utcnow().date()

    if not card.name or not card.name.strip():
        raise _invalid("Please enter name on card")

    digits = card.digits
    if not _CARD_NUMBER_RE.fullmatch(digits):
        raise _invalid("Please enter a valid 16-digit card number")

    match = _EXPIRY_RE.match(card.expiry or "")
    if not match or not 1 <= int(match.group(1)) <= 12:
        raise _invalid("Please enter valid expiry date (MM/YY)")

    month, year = int(match.group(1)), 2000 + int(match.group(2))
    # Compared against the first day of the named month
    if date(year, month, 1) <= today:
        raise _invalid("Card has expired")

    cvv = card.cvv or ""
    if not _CVV_RE.fullmatch(cvv):
        raise _invalid("Please enter valid CVV")


# ----- Gateway -----


@dataclass(frozen=True)
class PaymentReceipt:
    transaction_id: str
    amount: float
    last_four: str
    created_at: datetime = field(default_factory=utcnow)


class PaymentGateway(ABC):
    """
    Contract for charging a card.

    Implementations return a receipt on success and raise PaymentError
    when the charge is declined or fails.
    """

    @abstractmethod
    async def charge(self, card: CardDetails, amount: float) -> PaymentReceipt:
        ...


class SimulatedPaymentGateway(PaymentGateway):
    """
    Stand-in gateway: waits `latency` seconds, then approves with
    probability `success_rate`.
    """

    def __init__(
        self,
        success_rate: float = 0.9,
        latency: float = 2.0,
        rng: random.Random | None = None,
    ):
        self.success_rate = success_rate
        self.latency = latency
        self.rng = rng or random.Random()

    async def charge(self, card: CardDetails, amount: float) -> PaymentReceipt:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

        if self.rng.random() >= self.success_rate:
            raise PaymentError("Payment failed. Please try again.")

        return PaymentReceipt(
            transaction_id=f"sim_{uuid.uuid4().hex[:16]}",
            amount=amount,
            last_four=card.last_four,
        )


class PaymentProcessor:
    """
    Submit flow of the payment form.

    Responsibilities:
      - Validate card fields (first failure becomes an error notice)
      - Charge the gateway
      - Post "Payment successful!" / "Payment failed. Please try again."

    Nothing is raised to the caller and no caller state changes on
    failure, so the user can simply resubmit.
    """

    def __init__(self, gateway: PaymentGateway, notices: NoticeBoard):
        self.gateway = gateway
        self.notices = notices
        self.processing = False

    async def submit(
        self,
        card: CardDetails,
        amount: float,
        today: date | None = None,
    ) -> PaymentReceipt | None:
        if self.processing:
            return None

        try:
            validate_card(card, today)
        except ValidationError as exc:
            self.notices.error(exc.message)
            return None

        self.processing = True
        try:
            receipt = await self.gateway.charge(card, amount)
        except PaymentError as exc:
            logger.warning("Payment of %.2f declined: %s", amount, exc.message)
            self.notices.error("Payment failed. Please try again.")
            return None
        finally:
            self.processing = False

        self.notices.success("Payment successful!")
        return receipt


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    """
    FastAPI dependency for the configured gateway.

    Override it in app.dependency_overrides to plug in another provider.
    """
    settings = get_settings()
    return SimulatedPaymentGateway(
        success_rate=settings.PAYMENT_SUCCESS_RATE,
        latency=settings.PAYMENT_LATENCY_SECONDS,
    )
