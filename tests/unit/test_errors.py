"""Tests for pm_common.errors and pm_common.response."""

from src.pm_common.errors import (
    AppError,
    CapabilityRequiredError,
    InvalidFieldError,
    NoStakesError,
    PredictionAlreadySettledError,
    PredictionNotFoundError,
    PredictionNotOpenError,
    PriceUnavailableError,
)
from src.pm_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500
        assert err.retriable is False

    def test_is_exception(self) -> None:
        err = AppError(code=1001, message="test")
        assert isinstance(err, Exception)


class TestSpecificErrors:
    def test_prediction_not_found(self) -> None:
        err = PredictionNotFoundError(42)
        assert err.code == 2001
        assert err.http_status == 404
        assert "42" in err.message

    def test_not_open_mentions_status(self) -> None:
        err = PredictionNotOpenError(7, "cancelled")
        assert err.code == 2002
        assert "cancelled" in err.message

    def test_already_settled_is_terminal(self) -> None:
        err = PredictionAlreadySettledError(7)
        assert err.http_status == 409
        assert err.retriable is False

    def test_no_stakes(self) -> None:
        err = NoStakesError(7)
        assert err.code == 3003
        assert err.http_status == 422

    def test_price_unavailable_is_retriable(self) -> None:
        err = PriceUnavailableError("BTC", "2026-01-01T00:00:00+00:00")
        assert err.code == 4001
        assert err.http_status == 503
        assert err.retriable is True
        assert "BTC" in err.message
        assert err.message.endswith("try again later")

    def test_invalid_field_keeps_field_name(self) -> None:
        err = InvalidFieldError("amount", "must be positive")
        assert err.field == "amount"
        assert err.http_status == 422
        assert "amount" in err.message

    def test_capability_required(self) -> None:
        err = CapabilityRequiredError("predictions:settle")
        assert err.http_status == 403
        assert "predictions:settle" in err.message


class TestApiResponse:
    def test_success_defaults(self) -> None:
        resp = success_response({"id": 1})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": 1}
        assert resp.request_id.startswith("req_")

    def test_success_uses_given_request_id(self) -> None:
        resp = success_response(None, "req_abc")
        assert resp.request_id == "req_abc"

    def test_error_carries_retriable_flag(self) -> None:
        resp = error_response(4001, "Price unavailable", retriable=True)
        assert resp.code == 4001
        assert resp.data == {"retriable": True}

    def test_error_default_not_retriable(self) -> None:
        resp = error_response(2001, "not found")
        assert resp.data == {"retriable": False}

    def test_model_dump_has_envelope_keys(self) -> None:
        dumped = ApiResponse().model_dump()
        assert set(dumped) == {"code", "message", "data", "timestamp", "request_id"}
