"""
Access Policy

Administrative ledger operations each require a capability. Who holds
which capability is decided by an AccessPolicy; the ledger only asks.
"""

from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

from core.schemas.errors import UnauthorizedError


class Capability(str, Enum):
    """Capabilities gating administrative operations."""
    ADMIN = "ADMIN"
    MERKLE_SETTER = "MERKLE_SETTER"
    CLAIMED_SETTER = "CLAIMED_SETTER"


@runtime_checkable
class AccessPolicy(Protocol):
    def is_allowed(self, capability: Capability, caller: Optional[str]) -> bool:
        ...


class OpenAccessPolicy:
    """Allows every caller; for deployments where access is enforced upstream."""

    def is_allowed(self, capability: Capability, caller: Optional[str]) -> bool:
        return True


class RoleRegistry:
    """
    Explicit grants per capability. Holding ADMIN does not imply the
    other capabilities; each must be granted.
    """

    def __init__(self, grants: dict[Capability, set[str]] | None = None) -> None:
        self._grants: dict[Capability, set[str]] = defaultdict(set)
        for capability, callers in (grants or {}).items():
            self._grants[Capability(capability)].update(callers)

    def grant(self, capability: Capability, caller: str) -> None:
        self._grants[Capability(capability)].add(caller)

    def revoke(self, capability: Capability, caller: str) -> None:
        self._grants[Capability(capability)].discard(caller)

    def is_allowed(self, capability: Capability, caller: Optional[str]) -> bool:
        return caller is not None and caller in self._grants.get(Capability(capability), set())


def require(policy: AccessPolicy, capability: Capability, caller: Optional[str]) -> None:
    """Raise UnauthorizedError unless ``caller`` holds ``capability``."""
    if not policy.is_allowed(capability, caller):
        raise UnauthorizedError(capability.value, caller)
