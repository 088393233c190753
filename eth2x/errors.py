"""Vault error taxonomy — every error aborts the whole operation."""
from __future__ import annotations


class VaultError(Exception):
    """Base class for all vault failures."""


class InsufficientCollateral(VaultError):
    """Redeem would withdraw more than the position can cover."""


class NothingToRedeem(VaultError):
    """Redeem request is worth zero after rounding."""


class NothingToMint(VaultError):
    """Deposit is zero or prices to zero shares."""


class InsufficientShareBalance(VaultError):
    """Holder tried to burn more shares than they own."""


class Unauthorized(VaultError):
    """Caller is not permitted by the access policy."""


class ArithmeticOverflow(VaultError):
    """A fixed-point result does not fit in 256 bits."""


class AccountingInvariantViolated(VaultError):
    """Negative intermediate value, e.g. debt above collateral."""


class ExternalReadFailure(VaultError):
    """Lending market or oracle read did not return a usable value."""


class ExternalCallFailure(VaultError):
    """A mutating call on an external collaborator reverted."""


class SlippageExceeded(ExternalCallFailure):
    """Swap output fell below the caller's minimum."""
