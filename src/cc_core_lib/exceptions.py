"""Error taxonomy for the case progress & reward ledger engine.

Repeat completion and repeat awards are NOT errors. They are reported through
result objects (``AwardResult.granted``, ``CompletionResult.already_completed``)
so the UI can distinguish an idempotent no-op from a genuine failure.

Retry guidance:
- NotFoundError: never retry, the reference is wrong
- InvalidOperationError: never retry, the operation does not apply
- InsufficientBalanceError: user-correctable, surface to the user
- ServiceUnavailableError: transient, safe to retry (awards are idempotent)
"""

from typing import Optional


class RoadmapError(Exception):
    """Base class for all engine errors."""

    retryable: bool = False


class NotFoundError(RoadmapError):
    """Raised when a stage, substage, user or wallet does not exist.

    Attributes:
        entity: Kind of entity that was looked up ("stage", "substage", "user", "wallet")
        entity_id: Identifier that could not be resolved
    """

    def __init__(self, entity: str, entity_id: str, detail: Optional[str] = None):
        self.entity = entity
        self.entity_id = entity_id
        message = f"{entity} not found: {entity_id}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class InvalidOperationError(RoadmapError):
    """Raised when an operation does not apply to the target unit.

    Example: entering data on an upload substage.
    """

    def __init__(self, operation: str, unit_id: str, reason: str):
        self.operation = operation
        self.unit_id = unit_id
        self.reason = reason
        super().__init__(f"Cannot {operation} on {unit_id}: {reason}")


class InsufficientBalanceError(RoadmapError):
    """Raised when a wallet cannot cover a coin to credit conversion.

    Attributes:
        user_id: Wallet owner
        coin_balance: Current coin balance
        required: Coins needed for the smallest possible conversion
        shortfall: How many more coins are needed
    """

    def __init__(self, user_id: str, coin_balance: int, required: int):
        self.user_id = user_id
        self.coin_balance = coin_balance
        self.required = required
        self.shortfall = max(0, required - coin_balance)
        super().__init__(
            f"Insufficient balance for user {user_id}: "
            f"balance={coin_balance}, required={required}, shortfall={self.shortfall}"
        )


class ConversionCapReachedError(InsufficientBalanceError):
    """Raised when the monthly credit cap has already been used up."""

    def __init__(self, user_id: str, coin_balance: int, credits_this_month: int, cap: int):
        self.credits_this_month = credits_this_month
        self.cap = cap
        super().__init__(user_id=user_id, coin_balance=coin_balance, required=0)
        # Replace the balance-oriented message with a cap-oriented one
        self.args = (
            f"Monthly conversion cap reached for user {user_id}: "
            f"{credits_this_month}/{cap} credits converted this month",
        )


class ServiceUnavailableError(RoadmapError):
    """Raised when the authoritative backend cannot be reached.

    The action failed and no local state was changed. Safe to retry.
    """

    retryable = True

    def __init__(self, service: str, cause: Optional[BaseException] = None):
        self.service = service
        self.cause = cause
        message = f"Service unavailable: {service}"
        if cause is not None:
            message = f"{message} ({cause.__class__.__name__}: {cause})"
        super().__init__(message)


__all__ = [
    "RoadmapError",
    "NotFoundError",
    "InvalidOperationError",
    "InsufficientBalanceError",
    "ConversionCapReachedError",
    "ServiceUnavailableError",
]
