import random
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from ..errors import SimulatedPaymentFailure
from .logging import log_event


@dataclass(frozen=True)
class PaymentReceipt:
    transaction_id: str
    amount: Decimal
    payment_method: str


class SimulatedPaymentGateway:
    """Stand-in for a card processor: waits, then approves or declines at random.

    Declines are informational only; nothing is retried.
    """

    def __init__(
        self,
        success_rate: float = 0.9,
        delay_seconds: float = 1.5,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be between 0 and 1")
        self._success_rate = success_rate
        self._delay_seconds = max(delay_seconds, 0.0)
        self._rng = rng or random.Random()
        self._sleep = sleep

    def charge(self, amount: Decimal, payment_method: str) -> PaymentReceipt:
        if self._delay_seconds:
            self._sleep(self._delay_seconds)
        if self._rng.random() >= self._success_rate:
            log_event("warning", "payment.failed", amount=amount, payment_method=payment_method)
            raise SimulatedPaymentFailure()
        return PaymentReceipt(
            transaction_id="TXN-" + uuid.uuid4().hex[:9].upper(),
            amount=amount,
            payment_method=payment_method,
        )
