# app/services/payment_service.py
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from app.data.models.order import PaymentMethod
from app.domain.schemas import PaymentDetails
from app.utils.settings import PAYMENT_TIMEOUT_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)

CARD_METHODS = {PaymentMethod.CREDIT_CARD, PaymentMethod.DEBIT_CARD}
MIN_CARD_DIGITS = 13


@dataclass(frozen=True)
class ChargeRequest:
    """What the gateway sees of an order; detached from the DB session."""

    order_id: int
    order_number: str
    amount: Decimal
    payment_method: PaymentMethod


class PaymentGateway:
    """
    Stand-in gateway with a minimal sanity check on card payments.
    No real processor behind it.
    """

    def charge(self, order: ChargeRequest, details: PaymentDetails) -> bool:
        logger.info(f"Charging order {order.order_number} amount {order.amount} via {order.payment_method.value}")

        if order.payment_method in CARD_METHODS:
            if not details.card_number or not details.cvv:
                logger.error(f"Missing card details for order {order.order_number}")
                return False

            digits = "".join(details.card_number.split())
            if len(digits) < MIN_CARD_DIGITS:
                logger.error(
                    f"Invalid card number {details.masked_card_number()} for order {order.order_number}"
                )
                return False

        logger.info(f"Payment accepted for order {order.order_number}")
        return True


class PaymentService:
    """Synchronous charge bounded by a timeout; timeout and gateway errors count as a decline."""

    def __init__(self, gateway: Optional[PaymentGateway] = None, timeout: float = PAYMENT_TIMEOUT_SECONDS):
        self.gateway = gateway or PaymentGateway()
        self.timeout = timeout

    def charge(self, order: ChargeRequest, details: PaymentDetails) -> bool:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="payment")
        future = executor.submit(self.gateway.charge, order, details)
        try:
            return bool(future.result(timeout=self.timeout))
        except FutureTimeout:
            logger.error(f"Payment for order {order.order_number} timed out after {self.timeout}s")
            return False
        except Exception as e:
            logger.error(f"Payment for order {order.order_number} failed: {type(e).__name__}")
            return False
        finally:
            #do not wait for a hung gateway call
            executor.shutdown(wait=False, cancel_futures=True)
