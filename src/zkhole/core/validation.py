"""Validation layer.

Pure checks run before any collaborator is touched. Each function either
returns silently or raises on the first rule that fails; none of them has
side effects. Check order inside an operation is fixed:

    1. parameter checks          -> ValidationError
    2. wallet capability check   -> WalletError
    3. resource sufficiency      -> InsufficientFundsError

Submission only happens after all three pass.
"""

import math
from datetime import datetime, UTC
from typing import Any, Iterable, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from zkhole.exceptions import InsufficientFundsError, ValidationError, WalletError
from zkhole.models.schemas import (
    CredentialParams,
    IdentityParams,
    InboxParams,
    MessageParams,
    Network,
    SwapParams,
    TransactionParams,
    VerificationParams,
)
from zkhole.security.wallet import can_sign, wallet_address
from zkhole.utils.encoding import is_base58_address

HOLE_ID_PREFIX = "hole_"
MIN_USERNAME_LENGTH = 3
MAX_MEMO_LENGTH = 256
MAX_SUBJECT_LENGTH = 200
MAX_INBOX_LIMIT = 100

P = TypeVar("P", bound=BaseModel)


def coerce_params(params: Any, model: Type[P], label: str = "parameters") -> P:
    """
    Turn caller input into a parameter record.

    Accepts an instance of ``model`` or a mapping (snake_case or camelCase
    keys). Pydantic errors are reported as the SDK's ValidationError.
    """
    if isinstance(params, model):
        return params
    if params is None:
        raise ValidationError(f"{label.capitalize()} are required")
    if isinstance(params, BaseModel):
        params = params.model_dump()
    if not isinstance(params, Mapping):
        raise ValidationError(f"Invalid {label}: expected {model.__name__} or mapping")
    try:
        return model.model_validate(params)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid {label}: {details}")


def as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# Primitive rules

def require_identifier(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    return value


def require_text(value: Any, label: str, max_length: Optional[int] = None) -> str:
    if not isinstance(value, str) or len(value) == 0:
        raise ValidationError(f"{label} is required")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return value


def require_positive_amount(value: Any, label: str = "Amount") -> float:
    """Zero, negative, non-finite and non-numeric amounts are all rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{label} must be a number")
    if not math.isfinite(value) or value <= 0:
        raise ValidationError(f"{label} must be greater than 0")
    return float(value)


def require_hole_id(value: Any, label: str = "HoleID") -> str:
    if not isinstance(value, str) or not value.startswith(HOLE_ID_PREFIX) or len(value) <= len(HOLE_ID_PREFIX):
        raise ValidationError(f"Invalid {label}: must start with '{HOLE_ID_PREFIX}'")
    return value


def validate_network(network: Any) -> Network:
    try:
        return Network(network)
    except ValueError:
        allowed = ", ".join(n.value for n in Network)
        raise ValidationError(f"Invalid network: {network!r} (expected one of {allowed})")


def validate_address(address: Any, label: str = "address") -> str:
    if not address:
        raise ValidationError(f"{label.capitalize()} is required")
    if not is_base58_address(address):
        raise ValidationError(f"Invalid {label}: {address}")
    return address


# Operation rules

def validate_transfer_params(params: TransactionParams) -> None:
    validate_address(params.recipient, "recipient address")
    require_positive_amount(params.amount)
    if params.memo is not None and len(params.memo) > MAX_MEMO_LENGTH:
        raise ValidationError(f"Memo must be at most {MAX_MEMO_LENGTH} characters")


def validate_identity_params(params: IdentityParams) -> None:
    if not params.username or len(params.username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")


def validate_credential_params(params: CredentialParams, now: Optional[datetime] = None) -> None:
    require_identifier(params.hole_id, "HoleID")
    require_hole_id(params.hole_id)
    if not params.claims:
        raise ValidationError("At least one claim is required")
    if any(not isinstance(key, str) or not key for key in params.claims):
        raise ValidationError("Claim names must be non-empty strings")
    if params.expires_at is not None:
        now = now or datetime.now(UTC)
        if as_utc(params.expires_at) <= now:
            raise ValidationError("Credential expiry must be in the future")


def validate_verification_params(params: VerificationParams) -> None:
    if params.credential is None:
        raise ValidationError("Credential is required")
    if params.required_claims is not None:
        if any(not isinstance(claim, str) or not claim for claim in params.required_claims):
            raise ValidationError("Required claims must be non-empty strings")


def validate_message_params(params: MessageParams) -> None:
    if not params.recipient or not params.recipient.startswith(HOLE_ID_PREFIX):
        raise ValidationError("Invalid recipient HoleID")
    require_hole_id(params.recipient, "recipient HoleID")
    require_text(params.subject, "Subject", MAX_SUBJECT_LENGTH)
    require_text(params.content, "Message content")
    if params.attachments is not None:
        if any(not isinstance(item, str) or not item for item in params.attachments):
            raise ValidationError("Attachments must be non-empty strings")


def validate_inbox_params(params: InboxParams) -> None:
    if params.limit is not None and not 1 <= params.limit <= MAX_INBOX_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_INBOX_LIMIT}")
    if params.offset < 0:
        raise ValidationError("Offset must not be negative")
    if params.hole_id is not None:
        require_hole_id(params.hole_id)


def validate_token(token: Any, supported: Iterable[str], label: str) -> str:
    if not token or token not in supported:
        raise ValidationError(f"Unsupported {label}: {token}")
    return token


def validate_swap_params(params: SwapParams, supported: Iterable[str]) -> None:
    supported = set(supported)
    validate_token(params.from_token, supported, "fromToken")
    validate_token(params.to_token, supported, "toToken")
    if params.from_token == params.to_token:
        raise ValidationError("Cannot swap same tokens")
    require_positive_amount(params.amount)
    if params.slippage_tolerance is not None:
        tolerance = params.slippage_tolerance
        if not math.isfinite(tolerance) or not 0 <= tolerance < 1:
            raise ValidationError("Slippage tolerance must be in [0, 1)")


# Capability and resource rules

def check_wallet(wallet: Any, require_signing: bool) -> str:
    """
    Check the wallet after parameters pass.

    Returns:
        str: The wallet's public address

    Raises:
        WalletError: If the wallet is not connected, or cannot sign when the
            operation commits a side effect that needs a signature
    """
    address = wallet_address(wallet)
    if address is None:
        raise WalletError("Wallet not connected")
    if require_signing and not can_sign(wallet):
        raise WalletError("Wallet does not support transaction signing")
    return address


def check_funds(available: float, required: float, token: str) -> None:
    if available < required:
        raise InsufficientFundsError(
            f"Insufficient {token} balance. Required: {required}, Available: {available}"
        )
