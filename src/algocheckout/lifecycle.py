"""
Checkout lifecycle state machine.

    pending -> paid -> notified
    pending -> expired
    any     -> failed

notified, expired and failed are terminal. The authoritative status comes
from the checkout API; local knowledge (expiry noticed by the clock, a
confirmed or failed payment attempt) is kept as an overlay on top of it
until the next authoritative record supersedes it.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from algocheckout.types import Checkout, CheckoutStatus
from algocheckout.utils.formatting import format_remaining

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

ALLOWED_TRANSITIONS: dict[CheckoutStatus, frozenset[CheckoutStatus]] = {
    CheckoutStatus.PENDING: frozenset(
        {
            CheckoutStatus.PAID,
            CheckoutStatus.NOTIFIED,
            CheckoutStatus.EXPIRED,
            CheckoutStatus.FAILED,
        }
    ),
    CheckoutStatus.PAID: frozenset({CheckoutStatus.NOTIFIED, CheckoutStatus.FAILED}),
    CheckoutStatus.NOTIFIED: frozenset(),
    CheckoutStatus.EXPIRED: frozenset(),
    CheckoutStatus.FAILED: frozenset(),
}


def is_valid_transition(current: CheckoutStatus, new: CheckoutStatus) -> bool:
    """Return True if moving from *current* to *new* does not regress"""
    if current == new:
        return True
    return new in ALLOWED_TRANSITIONS[current]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LocalPaymentState(str, Enum):
    """Outcome of this process's own payment attempt"""

    IDLE = "idle"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    UNCONFIRMED = "unconfirmed"
    FAILED = "failed"


class CheckoutLifecycle:
    """Tracks one checkout's status, expiry and local payment overlay"""

    def __init__(self, checkout: Checkout, clock: Clock = utc_now) -> None:
        self._checkout = checkout
        self._clock = clock
        self._expired_locally = False
        self.local_state = LocalPaymentState.IDLE
        self.tx_id: str | None = None
        self.last_error: Exception | None = None

    @property
    def checkout(self) -> Checkout:
        """Latest authoritative record"""
        return self._checkout

    @property
    def checkout_id(self) -> str:
        return self._checkout.id

    @property
    def status(self) -> CheckoutStatus:
        """Effective status: authoritative status with the local overlay applied"""
        authoritative = self._checkout.status
        if authoritative is CheckoutStatus.PENDING:
            if self.local_state is LocalPaymentState.CONFIRMED:
                return CheckoutStatus.PAID
            if self._expired_locally:
                return CheckoutStatus.EXPIRED
        return authoritative

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_payable(self) -> bool:
        return self.status is CheckoutStatus.PENDING and self.local_state not in (
            LocalPaymentState.SUBMITTING,
            LocalPaymentState.CONFIRMED,
        )

    def remaining_seconds(self, now: datetime | None = None) -> float:
        now = now or self._clock()
        return max(0.0, (self._checkout.expires_at - now).total_seconds())

    def countdown(self, now: datetime | None = None) -> str | None:
        """Remaining-time display string for pending checkouts, None otherwise"""
        status = self.status
        if status is CheckoutStatus.EXPIRED:
            return format_remaining(0)
        if status is not CheckoutStatus.PENDING:
            return None
        return format_remaining(self.remaining_seconds(now))

    def check_expiry(self, now: datetime | None = None) -> bool:
        """
        Expire the checkout if its deadline has passed.

        Returns:
            True only on the tick that performed the transition
        """
        if self.status is not CheckoutStatus.PENDING:
            return False
        now = now or self._clock()
        if now < self._checkout.expires_at:
            return False
        self._expired_locally = True
        logger.info("Checkout %s expired at %s", self.checkout_id, self._checkout.expires_at)
        return True

    def apply_authoritative(self, record: Checkout) -> bool:
        """
        Reconcile with a freshly fetched record.

        Returns:
            False if the record was ignored because it would regress the status
        """
        if record.id != self._checkout.id:
            raise ValueError(f"Record {record.id} does not belong to checkout {self._checkout.id}")

        current = self._checkout.status
        if not is_valid_transition(current, record.status):
            logger.warning(
                "Ignoring status regression for checkout %s: %s -> %s",
                record.id,
                current.value,
                record.status.value,
            )
            return False

        if record.status is not current:
            logger.info(
                "Checkout %s status %s -> %s", record.id, current.value, record.status.value
            )
        self._checkout = record
        if record.status is not CheckoutStatus.PENDING:
            self._expired_locally = False
        return True

    def begin_payment(self) -> None:
        self.local_state = LocalPaymentState.SUBMITTING
        self.last_error = None

    def abort_payment(self) -> None:
        """Undo begin_payment() for attempts that never reached the network"""
        if self.local_state is LocalPaymentState.SUBMITTING:
            self.local_state = LocalPaymentState.IDLE

    def mark_confirmed(self, tx_id: str) -> None:
        """Optimistically record a confirmed payment (shown as paid)"""
        self.local_state = LocalPaymentState.CONFIRMED
        self.tx_id = tx_id
        self.last_error = None
        logger.info("Checkout %s paid locally: tx=%s", self.checkout_id, tx_id)

    def record_failure(self, error: Exception, unconfirmed: bool = False) -> None:
        """
        Record a failed attempt. The checkout stays pending so it can be retried.

        Args:
            error: The failure
            unconfirmed: The group was submitted but inclusion was not observed
        """
        self.local_state = LocalPaymentState.UNCONFIRMED if unconfirmed else LocalPaymentState.FAILED
        self.last_error = error
        logger.warning("Payment attempt for checkout %s failed: %s", self.checkout_id, error)
