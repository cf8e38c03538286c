"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Prediction
  3xxx: Stake
  4xxx: Price feed
  5xxx: Input validation
  9xxx: System

`retriable` marks transient failures: nothing was written, the caller may
re-attempt later. Everything else is a precondition failure the caller must
not blindly retry.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        retriable: bool = False,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.retriable = retriable
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Missing, invalid or expired token", 401)


class CapabilityRequiredError(AppError):
    def __init__(self, capability: str) -> None:
        super().__init__(1002, f"Capability required: {capability}", 403)


# --- 2xxx: Prediction ---

class PredictionNotFoundError(AppError):
    def __init__(self, prediction_id: int) -> None:
        super().__init__(2001, f"Prediction not found: {prediction_id}", 404)


class PredictionNotOpenError(AppError):
    def __init__(self, prediction_id: int, status: str) -> None:
        super().__init__(
            2002, f"Prediction {prediction_id} is {status}, not open", 409
        )


class PredictionAlreadySettledError(AppError):
    def __init__(self, prediction_id: int) -> None:
        super().__init__(2003, f"Prediction {prediction_id} is already settled", 409)


class PredictionExpiredError(AppError):
    def __init__(self, prediction_id: int) -> None:
        super().__init__(
            2004, f"Prediction {prediction_id} timeframe has expired", 422
        )


# --- 3xxx: Stake ---

class StakeNotFoundError(AppError):
    def __init__(self, stake_id: int) -> None:
        super().__init__(3001, f"Stake not found: {stake_id}", 404)


class DuplicateStakeError(AppError):
    def __init__(self, prediction_id: int, side: str) -> None:
        super().__init__(
            3002,
            f"A '{side}' stake already exists for prediction {prediction_id}",
            409,
        )


class NoStakesError(AppError):
    def __init__(self, prediction_id: int) -> None:
        super().__init__(
            3003, f"No completed stakes to settle for prediction {prediction_id}", 422
        )


class InvalidPaymentTransitionError(AppError):
    def __init__(self, stake_id: int, current: str, target: str) -> None:
        super().__init__(
            3004,
            f"Stake {stake_id} payment cannot move from {current} to {target}",
            409,
        )


# --- 4xxx: Price feed ---

class PriceUnavailableError(AppError):
    def __init__(self, symbol: str, at: str | None = None) -> None:
        when = f" at {at}" if at else ""
        super().__init__(
            4001,
            f"Price unavailable for {symbol}{when}; try again later",
            503,
            retriable=True,
        )


# --- 5xxx: Input validation ---

class InvalidFieldError(AppError):
    def __init__(self, field: str, detail: str) -> None:
        self.field = field
        super().__init__(5001, f"Invalid field '{field}': {detail}", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
