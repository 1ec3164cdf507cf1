"""Persisted target-price alerts per product and quantity tier."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sourcing_assistant.config import settings
from sourcing_assistant.errors import PersistenceError
from sourcing_assistant.proposal.calculations import as_number
from sourcing_assistant.proposal.models import Proposal
from sourcing_assistant.storage.local_state import LocalStateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceAlertNotification:
    """A tier whose current price reached the stored target."""

    product_name: str
    quantity: int
    threshold: float
    current_price: float

    @property
    def message(self) -> str:
        return (
            f"Price for {self.quantity:,} units has hit your target of "
            f"${self.threshold:.2f}! Current price: ${self.current_price:.2f}."
        )


class PriceAlertBook:
    """
    Target prices keyed by product name, then tier quantity.

    Persisted as ``{productName: {quantity: threshold}}``. A product whose
    last threshold is removed is dropped from the map entirely.
    """

    def __init__(self, state: LocalStateStore, key: Optional[str] = None):
        self.state = state
        self.key = key or settings.price_alerts_state_key
        self._alerts: Dict[str, Dict[int, float]] = {}

    def load(self) -> None:
        """Load persisted alerts; a corrupt payload resets to empty."""
        try:
            raw = self.state.read(self.key)
            self._alerts = self._decode(raw) if raw is not None else {}
        except PersistenceError as e:
            logger.error(f"Failed to load price alerts, starting empty: {e}")
            self.state.remove(self.key)
            self._alerts = {}

    @staticmethod
    def _decode(raw: Any) -> Dict[str, Dict[int, float]]:
        if not isinstance(raw, dict):
            raise PersistenceError("price alerts payload is not an object")

        alerts: Dict[str, Dict[int, float]] = {}
        for product, thresholds in raw.items():
            if not isinstance(thresholds, dict):
                raise PersistenceError(f"thresholds for {product!r} are not an object")
            try:
                decoded = {int(qty): float(price) for qty, price in thresholds.items()}
            except (TypeError, ValueError) as e:
                raise PersistenceError(f"invalid threshold for {product!r}: {e}") from e
            if decoded:
                alerts[product] = decoded
        return alerts

    def _save(self) -> None:
        payload = {
            product: {str(qty): price for qty, price in thresholds.items()}
            for product, thresholds in self._alerts.items()
        }
        try:
            self.state.write(self.key, payload)
        except PersistenceError as e:
            logger.error(f"Failed to save price alerts: {e}")

    def alerts_for(self, product_name: Optional[str]) -> Dict[int, float]:
        """Thresholds stored for one product."""
        if not product_name:
            return {}
        return dict(self._alerts.get(product_name, {}))

    def all_alerts(self) -> Dict[str, Dict[int, float]]:
        return {product: dict(thresholds) for product, thresholds in self._alerts.items()}

    def set_alert(self, product_name: Optional[str], quantity: int, price: Any) -> None:
        """
        Store a target price for a tier.

        A missing, non-numeric or non-positive price removes the alert instead.
        """
        if not product_name:
            return

        threshold = as_number(price)
        if threshold <= 0:
            self.delete_alert(product_name, quantity)
            return

        self._alerts.setdefault(product_name, {})[int(quantity)] = threshold
        self._save()
        logger.debug(f"Price alert set: {product_name} x{quantity} <= ${threshold:.2f}")

    def delete_alert(self, product_name: Optional[str], quantity: int) -> None:
        """Remove one tier's alert, pruning the product when it has none left."""
        if not product_name:
            return

        thresholds = self._alerts.get(product_name)
        if thresholds is not None:
            thresholds.pop(int(quantity), None)
            if not thresholds:
                del self._alerts[product_name]
        self._save()

    def evaluate(self, proposal: Proposal) -> List[PriceAlertNotification]:
        """
        Check a proposal's tiers against stored thresholds.

        Pure read; the result is recomputed for every proposal and never stored.
        """
        thresholds = self.alerts_for(proposal.product_name)
        if not thresholds:
            return []

        triggered = []
        for tier in proposal.ddp_price_tiers:
            threshold = thresholds.get(tier.quantity)
            if threshold and tier.price_per_unit <= threshold:
                triggered.append(PriceAlertNotification(
                    product_name=proposal.product_name,
                    quantity=tier.quantity,
                    threshold=threshold,
                    current_price=tier.price_per_unit,
                ))

        return triggered
