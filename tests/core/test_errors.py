"""Error taxonomy and its HTTP mapping."""
import pytest

from app.core.errors import (
    AlreadyUnlocked,
    Forbidden,
    InsufficientBalance,
    InternalError,
    NotFound,
    RateLimited,
    StorageError,
    Unauthorized,
    ValidationError,
    error_from_response,
)
from app.utils.identifiers import parse_id


@pytest.mark.parametrize(
    "status,cls",
    [
        (400, ValidationError),
        (401, Unauthorized),
        (402, InsufficientBalance),
        (403, Forbidden),
        (404, NotFound),
        (409, AlreadyUnlocked),
        (429, RateLimited),
        (500, InternalError),
        (502, InternalError),
        (418, ValidationError),
    ],
)
def test_error_from_response(status, cls):
    assert isinstance(error_from_response(status, "msg"), cls)


def test_error_keeps_server_code_and_message():
    error = error_from_response(500, "Failed to access image storage", "storage_error")
    assert error.retryable is True
    assert error.to_dict() == {"message": "Failed to access image storage", "code": "storage_error"}


def test_default_messages_and_detail_stay_internal():
    error = InsufficientBalance(detail={"balance": 5, "required": 10})
    assert error.to_dict() == {"message": "Not enough coins to unlock this chapter", "code": "insufficient_balance"}
    assert error.status_code == 402
    assert not AlreadyUnlocked.retryable
    assert StorageError().status_code == 500


def test_parse_id():
    assert parse_id("3F0C6A52-6A0B-4A1E-9A43-2F1D0B6F0C11") == "3f0c6a52-6a0b-4a1e-9a43-2f1d0b6f0c11"
    with pytest.raises(ValidationError):
        parse_id("12")
