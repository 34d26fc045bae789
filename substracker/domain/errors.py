"""
Billing engine errors.

All per-subscription computations fail fast with one of these. The aggregate
report catches the per-item ones (UnknownCycleError, IncompleteSubscriptionError),
records them as skipped and keeps folding.
"""


class SubscriptionEngineError(Exception):
    pass


class UnknownCycleError(SubscriptionEngineError, ValueError):
    """Cycle value is not MONTHLY / QUARTERLY / YEARLY."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"unknown billing cycle: {value!r}")


class IncompleteSubscriptionError(SubscriptionEngineError):
    """Mandatory price / date fields are missing on a stored subscription."""

    def __init__(self, subscription_id, missing: list[str]):
        self.subscription_id = subscription_id
        self.missing = list(missing)
        super().__init__(
            f"subscription {subscription_id} is missing: {', '.join(self.missing)}"
        )


class InvalidReferenceDateError(SubscriptionEngineError, ValueError):
    def __init__(self, message: str = "reference date is required"):
        super().__init__(message)
