"""
External Collaborators

The claim ledger consumes two capabilities it does not implement:

- EligibilityOracle: live standing of a recipient (e.g. collateral held)
- FulfillmentSink: delivers the claimed amounts (e.g. mints tokens)

Both are single-method protocols. In-memory implementations serve tests
and local runs; the HTTP implementations call external services.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Protocol, Sequence, runtime_checkable

from core.crypto.hashing import normalize_address
from core.http.client import HttpClient, HttpError

logger = logging.getLogger(__name__)


@runtime_checkable
class EligibilityOracle(Protocol):
    """Answers how much standing a recipient currently holds."""

    def balance_of(self, recipient: str) -> int:
        ...


@runtime_checkable
class FulfillmentSink(Protocol):
    """
    Delivers claimed amounts to a recipient.

    Receives the per-call amounts only, never a cumulative total.
    Returns True once the credit has definitely taken effect and False when
    it definitely has not. Raising means the outcome is unknown, unless the
    exception is a FulfillmentFailedError. A repeated ``idempotency_key``
    must not be credited twice.
    """

    def credit(
        self,
        recipient: str,
        amounts: tuple[int, ...],
        *,
        idempotency_key: str | None = None,
    ) -> bool:
        ...


# =============================================================================
# In-memory collaborators
# =============================================================================

class StaticEligibilityOracle:
    """Eligibility oracle backed by a mutable balance map."""

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self._balances: dict[str, int] = {}
        for recipient, balance in (balances or {}).items():
            self.set_balance(recipient, balance)

    def set_balance(self, recipient: str, balance: int) -> None:
        self._balances[normalize_address(recipient)] = balance

    def balance_of(self, recipient: str) -> int:
        return self._balances.get(normalize_address(recipient), 0)


class InMemoryFulfillmentSink:
    """
    Fulfillment sink holding per-category balances, like a multi-token
    contract's ``balanceOf(account, id)``.
    """

    def __init__(self) -> None:
        self._balances: dict[str, dict[int, int]] = defaultdict(dict)
        self._lock = threading.Lock()
        self._seen_keys: set[str] = set()
        self.calls: list[tuple[str, tuple[int, ...]]] = []

    def credit(
        self,
        recipient: str,
        amounts: tuple[int, ...],
        *,
        idempotency_key: str | None = None,
    ) -> bool:
        key = normalize_address(recipient)
        with self._lock:
            if idempotency_key is not None:
                if idempotency_key in self._seen_keys:
                    return True
                self._seen_keys.add(idempotency_key)
            held = self._balances[key]
            for category, amount in enumerate(amounts):
                if amount:
                    held[category] = held.get(category, 0) + amount
            self.calls.append((key, tuple(amounts)))
        return True

    def burn(self, recipient: str, amounts: Sequence[int]) -> None:
        """Remove balances; raises ValueError if the holder has too little."""
        key = normalize_address(recipient)
        with self._lock:
            held = self._balances[key]
            for category, amount in enumerate(amounts):
                if held.get(category, 0) < amount:
                    raise ValueError(
                        f"Cannot burn {amount} of category {category} from {key}"
                    )
            for category, amount in enumerate(amounts):
                held[category] = held.get(category, 0) - amount

    def balance_of(self, recipient: str, category: int) -> int:
        return self._balances.get(normalize_address(recipient), {}).get(category, 0)


# =============================================================================
# HTTP collaborators
# =============================================================================

class HttpEligibilityOracle:
    """
    Eligibility oracle served over HTTP.

    ``GET {base_url}/balance/{recipient}`` must answer ``{"balance": <int>}``.
    """

    def __init__(self, base_url: str, client: HttpClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client or HttpClient()

    def balance_of(self, recipient: str) -> int:
        response = self.client.get(f"{self.base_url}/balance/{normalize_address(recipient)}")
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as e:
            raise HttpError(
                f"Oracle returned a non-JSON body for {recipient}",
                status_code=response.status_code,
                response=response,
            ) from e
        balance = payload.get("balance") if isinstance(payload, dict) else None
        if isinstance(balance, bool) or not isinstance(balance, int):
            raise HttpError(
                f"Oracle returned no integer balance for {recipient}",
                status_code=response.status_code,
                response=response,
            )
        return balance


class HttpFulfillmentSink:
    """
    Fulfillment sink served over HTTP.

    ``POST {base_url}/credit`` with ``{"recipient", "amounts",
    "idempotency_key"}``; a 2xx answer of ``{"ok": true}`` confirms the
    credit. Any other answer counts as not fulfilled. A transport error
    (HttpError) propagates, since the request may have been processed.
    """

    def __init__(self, base_url: str, client: HttpClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client or HttpClient()

    def credit(
        self,
        recipient: str,
        amounts: tuple[int, ...],
        *,
        idempotency_key: str | None = None,
    ) -> bool:
        body = {"recipient": normalize_address(recipient), "amounts": list(amounts)}
        if idempotency_key is not None:
            body["idempotency_key"] = idempotency_key
        response = self.client.post(f"{self.base_url}/credit", json=body)
        if not response.ok:
            logger.warning(f"Sink answered HTTP {response.status_code} for {recipient}")
            return False
        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"Sink answered non-JSON body for {recipient}")
            return False
        return isinstance(payload, dict) and payload.get("ok") is True
