"""Domain exceptions for the HTLC escrow core.

Every failure aborts the operation that raised it with no side effects. The
`code` attribute is the machine-readable reason; the API middleware turns it
into the `error` field of the JSON body.
"""

from __future__ import annotations


class SwapError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "SWAP_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Construction Errors ---


class InvalidParametersError(SwapError):
    """Raised when escrow parameters are rejected at construction.

    Example: zero maker, or native value attached != amount.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="INVALID_PARAMETERS")


# --- Settlement Errors ---


class InvalidSecretError(SwapError):
    """Raised when hash(secret) does not match the hashlock."""

    def __init__(self, escrow: str) -> None:
        super().__init__(
            message=f"Secret does not match hashlock of escrow {escrow}",
            code="INVALID_SECRET",
        )
        self.escrow = escrow


class UnauthorizedError(SwapError):
    """Raised when the caller does not hold the role the operation requires."""

    def __init__(self, caller: str, required_role: str, operation: str) -> None:
        super().__init__(
            message=f"{caller} is not the {required_role}; {operation} denied",
            code="UNAUTHORIZED",
        )
        self.caller = caller
        self.required_role = required_role
        self.operation = operation


class TooEarlyError(SwapError):
    """Raised when cancel is attempted before the cancellation deadline."""

    def __init__(self, now: int, deadline: int) -> None:
        super().__init__(
            message=f"Cancellation opens at {deadline}, current time is {now}",
            code="TOO_EARLY",
        )
        self.now = now
        self.deadline = deadline


class TooLateError(SwapError):
    """Raised when withdraw is attempted at or after the cancellation deadline.

    Only raised when the strict withdrawal deadline policy is enabled.
    """

    def __init__(self, now: int, deadline: int) -> None:
        super().__init__(
            message=f"Withdrawal closed at {deadline}, current time is {now}",
            code="TOO_LATE",
        )
        self.now = now
        self.deadline = deadline


class AlreadySettledError(SwapError):
    """Raised when withdraw or cancel hits an escrow that is no longer ACTIVE."""

    def __init__(self, escrow: str, status: str) -> None:
        super().__init__(
            message=f"Escrow {escrow} already settled ({status})",
            code="ALREADY_SETTLED",
        )
        self.escrow = escrow
        self.status = status


class EscrowNotFoundError(SwapError):
    """Raised when no escrow is deployed (or indexed) at an address."""

    def __init__(self, address: str) -> None:
        super().__init__(
            message=f"Escrow not found: {address}",
            code="ESCROW_NOT_FOUND",
        )
        self.address = address


# --- Asset Transfer Errors ---


class AssetTransferError(SwapError):
    """Raised when the ledger refuses an asset transfer."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="ASSET_TRANSFER_FAILED")


class InsufficientBalanceError(AssetTransferError):
    """Raised when the debited account holds less than the transfer amount."""

    def __init__(self, asset: str, account: str, required: int, available: int) -> None:
        super().__init__(
            message=(
                f"Insufficient balance of {asset} on {account}: "
                f"required {required}, available {available}"
            ),
        )
        self.code = "INSUFFICIENT_BALANCE"
        self.asset = asset
        self.account = account
        self.required = required
        self.available = available
