"""Barberman exceptions."""


class BarbermanError(Exception):
    """
    Structured exception for loyalty operations.

    Every error carries a stable ``code``, a human message and free-form
    ``data`` for the operator UI.

    Usage:
        try:
            LoyaltyService.record_visit("CLI-001", "BRB-01", ["haircut"], redemption="free-cut")
        except BarbermanError as e:
            if e.code == "REWARD_NOT_ELIGIBLE":
                show_remaining(e.data["visits_missing"])
    """

    default_code = "BARBERMAN_ERROR"
    kind = "error"
    retryable = False

    _default_messages = {
        "BARBERMAN_ERROR": "Loyalty operation failed",
        "VALIDATION_ERROR": "Invalid input",
        "NOT_FOUND": "Not found",
        "CLIENT_EXISTS": "A client with this code already exists",
        "CLIENT_NOT_FOUND": "Client not found",
        "BARBER_NOT_FOUND": "Barber not found",
        "SERVICE_NOT_FOUND": "Service not found",
        "REWARD_NOT_FOUND": "Reward not found or inactive",
        "VISIT_IMMUTABLE": "Visits cannot be modified once recorded",
        "NO_SERVICES": "At least one service is required",
        "INVALID_SERVICE": "Services must be codes or (code, quantity) pairs",
        "INVALID_QUANTITY": "Service quantity must be at least 1",
        "INVALID_PRICE": "Total price must be a finite, non-negative amount",
        "INVALID_REWARD": "Invalid reward definition",
        "VISIT_ALREADY_REDEEMED": "Visit already carries a redemption",
        "REWARD_NOT_ELIGIBLE": "Client does not have enough visits for this reward",
        "REDEMPTION_LIMIT_EXCEEDED": "Reward redemption limit reached for this client",
        "REWARD_EXPIRED": "Reward redemption window has expired",
        "CONCURRENT_UPDATE": "Client was updated concurrently, retry with fresh data",
    }

    def __init__(self, code: str | None = None, message: str | None = None, **data):
        self.code = code or self.default_code
        self.message = message or self._default_messages.get(self.code, self.code)
        self.data = data
        super().__init__(f"[{self.code}] {self.message}")

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "kind": self.kind,
            "message": self.message,
            "retryable": self.retryable,
            "data": self.data,
        }


class ValidationError(BarbermanError):
    """Malformed input: bad service references, missing required fields."""

    default_code = "VALIDATION_ERROR"
    kind = "invalid"


class NotFoundError(BarbermanError):
    """Unknown or inactive client, barber, service or reward."""

    default_code = "NOT_FOUND"
    kind = "not_found"


class IneligibleError(BarbermanError):
    """Client has not accumulated enough progress visits."""

    default_code = "REWARD_NOT_ELIGIBLE"
    kind = "not_eligible"


class RedemptionLimitExceededError(BarbermanError):
    """Client already redeemed the reward ``max_redemptions`` times."""

    default_code = "REDEMPTION_LIMIT_EXCEEDED"
    kind = "blocked"


class ExpiredError(BarbermanError):
    """Milestone redemption window has lapsed."""

    default_code = "REWARD_EXPIRED"
    kind = "blocked"


class ConflictError(BarbermanError):
    """Concurrent write on the client counters lost the race. Safe to retry once."""

    default_code = "CONCURRENT_UPDATE"
    kind = "conflict"
    retryable = True
