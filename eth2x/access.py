"""Mint access policies — selected once from config, consulted before mint."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .errors import Unauthorized


class AccessPolicy(Protocol):
    def is_allowed(self, caller: str) -> bool: ...


@dataclass(frozen=True)
class OpenToAll:
    """Anyone may mint (ownership renounced)."""

    def is_allowed(self, caller: str) -> bool:
        return True


@dataclass(frozen=True)
class Allowlisted:
    """Only listed addresses may mint. Addresses compare case-insensitively."""

    members: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "members", frozenset(m.lower() for m in self.members)
        )

    def is_allowed(self, caller: str) -> bool:
        return caller.lower() in self.members


def require_allowed(policy: AccessPolicy, caller: str) -> None:
    if not policy.is_allowed(caller):
        raise Unauthorized(f"{caller} is not allowed to mint")


def build_policy(mode: str, allowlist: tuple[str, ...] = ()) -> AccessPolicy:
    if mode == "open":
        return OpenToAll()
    if mode == "allowlist":
        return Allowlisted(frozenset(allowlist))
    raise ValueError(f"Unknown access mode '{mode}'")
