"""
CheckoutWatcher - timers and payment flow for one checkout view
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Coroutine

from algocheckout.config import COUNTDOWN_INTERVAL, EXPIRY_REFETCH_DELAY
from algocheckout.exceptions import (
    AlreadyInProgress,
    CheckoutApiError,
    ConfirmationTimeout,
    SigningRejected,
    SubmissionError,
)
from algocheckout.lifecycle import CheckoutLifecycle, Clock, LocalPaymentState, utc_now
from algocheckout.types import CheckoutStatus, PaymentResult

if TYPE_CHECKING:
    from algocheckout.clients.checkout_api import CheckoutApiClient
    from algocheckout.clients.payment_client import PaymentClient

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[CheckoutLifecycle], None]


class CheckoutWatcher:
    """
    Drives a checkout's lifecycle for as long as a view shows it.

    Runs a countdown tick every ``interval`` seconds, optionally polls the
    checkout API every ``refresh_interval`` seconds, and re-fetches the record
    once shortly after the countdown reaches zero. stop() cancels every timer.
    """

    def __init__(
        self,
        checkout_id: str,
        api: "CheckoutApiClient",
        interval: float = COUNTDOWN_INTERVAL,
        refresh_interval: float | None = None,
        expiry_refetch_delay: float = EXPIRY_REFETCH_DELAY,
        on_update: UpdateCallback | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.checkout_id = checkout_id
        self._api = api
        self._interval = interval
        self._refresh_interval = refresh_interval
        self._expiry_refetch_delay = expiry_refetch_delay
        self._on_update = on_update
        self._clock = clock

        self._lifecycle: CheckoutLifecycle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._expiry_refetch_scheduled = False
        self.countdown: str | None = None

    @property
    def lifecycle(self) -> CheckoutLifecycle:
        if self._lifecycle is None:
            raise RuntimeError(f"Checkout {self.checkout_id} not loaded")
        return self._lifecycle

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def load(self) -> CheckoutLifecycle:
        """Fetch the checkout record and initialize the lifecycle"""
        checkout = await self._api.get_checkout(self.checkout_id)
        self._lifecycle = CheckoutLifecycle(checkout, clock=self._clock)
        self.countdown = self._lifecycle.countdown()
        self._notify()
        return self._lifecycle

    async def refresh(self) -> CheckoutLifecycle:
        """Re-fetch the authoritative record and reconcile"""
        if self._lifecycle is None:
            return await self.load()
        record = await self._api.get_checkout(self.checkout_id)
        self._lifecycle.apply_authoritative(record)
        self.countdown = self._lifecycle.countdown()
        self._notify()
        return self._lifecycle

    def tick(self) -> None:
        """Recompute the countdown and detect expiry"""
        lifecycle = self.lifecycle
        lifecycle.check_expiry()
        self.countdown = lifecycle.countdown()
        if (
            lifecycle.checkout.status is CheckoutStatus.PENDING
            and lifecycle.remaining_seconds() <= 0
            and not self._expiry_refetch_scheduled
        ):
            self._expiry_refetch_scheduled = True
            self._spawn(self._refetch_after_expiry())
        self._notify()

    async def start(self) -> None:
        """Load the checkout if needed and start the timers"""
        if self.running:
            return
        if self._lifecycle is None:
            await self.load()
        self._spawn(self._tick_loop())
        if self._refresh_interval:
            self._spawn(self._refresh_loop())

    async def stop(self) -> None:
        """Cancel all timers and pending re-fetches"""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def __aenter__(self) -> "CheckoutWatcher":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def pay(self, client: "PaymentClient") -> PaymentResult:
        """
        Pay the checkout and update the lifecycle with the outcome.

        A confirmed payment shows as paid right away; the record is then
        re-fetched in the background. Failed attempts leave the checkout pending.
        """
        lifecycle = self.lifecycle
        if lifecycle.local_state is LocalPaymentState.SUBMITTING:
            raise AlreadyInProgress(self.checkout_id)

        lifecycle.begin_payment()
        self._notify()
        try:
            result = await client.pay(lifecycle.checkout)
        except ConfirmationTimeout as e:
            lifecycle.record_failure(e, unconfirmed=True)
            self._notify()
            raise
        except (SigningRejected, SubmissionError) as e:
            lifecycle.record_failure(e)
            self._notify()
            raise
        except BaseException:
            lifecycle.abort_payment()
            self._notify()
            raise

        lifecycle.mark_confirmed(result.tx_id)
        self.countdown = lifecycle.countdown()
        self._notify()
        self._spawn(self._safe_refresh())
        return result

    def _notify(self) -> None:
        if self._on_update is not None and self._lifecycle is not None:
            self._on_update(self._lifecycle)

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _tick_loop(self) -> None:
        while True:
            self.tick()
            if self.lifecycle.is_terminal:
                logger.debug("Checkout %s is terminal, countdown stopped", self.checkout_id)
                return
            await asyncio.sleep(self._interval)

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval)
            await self._safe_refresh()
            if self.lifecycle.checkout.status.is_terminal:
                return

    async def _refetch_after_expiry(self) -> None:
        await asyncio.sleep(self._expiry_refetch_delay)
        await self._safe_refresh()

    async def _safe_refresh(self) -> None:
        try:
            await self.refresh()
        except (CheckoutApiError, ValueError) as e:
            # ValueError: the API answered with another checkout's record
            logger.warning("Failed to refresh checkout %s: %s", self.checkout_id, e)
