"""Tests for the validation layer."""

import math
from datetime import datetime, timedelta, UTC

import pytest

from zkhole.core.validation import (
    as_utc,
    check_funds,
    check_wallet,
    coerce_params,
    require_hole_id,
    require_positive_amount,
    validate_address,
    validate_credential_params,
    validate_identity_params,
    validate_inbox_params,
    validate_message_params,
    validate_network,
    validate_swap_params,
    validate_transfer_params,
    validate_verification_params,
)
from zkhole.core.swap import SUPPORTED_TOKENS
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
from zkhole.security.wallet import KeypairWallet, WatchOnlyWallet

RECIPIENT = "83astBRguLMdt2h5U1Tpdq5tjFoJ6noeGwaY3mDLVcri"


class TestCoerceParams:
    """Test conversion of caller input into parameter records."""

    def test_model_instance_passes_through(self):
        params = IdentityParams(username="alice")
        assert coerce_params(params, IdentityParams) is params

    def test_camel_case_mapping(self):
        params = coerce_params({"fromToken": "SOL", "toToken": "USDC", "amount": 1}, SwapParams)
        assert params.from_token == "SOL"
        assert params.to_token == "USDC"

    def test_snake_case_mapping(self):
        params = coerce_params({"from_token": "SOL", "to_token": "USDC", "amount": 1}, SwapParams)
        assert params.from_token == "SOL"

    def test_missing_params(self):
        with pytest.raises(ValidationError, match="required"):
            coerce_params(None, IdentityParams, "identity parameters")

    def test_wrong_type(self):
        with pytest.raises(ValidationError):
            coerce_params(42, IdentityParams)

    def test_pydantic_errors_become_validation_errors(self):
        with pytest.raises(ValidationError, match="amount"):
            coerce_params({"recipient": RECIPIENT, "amount": "lots"}, TransactionParams)


class TestPrimitives:
    """Test primitive rules."""

    @pytest.mark.parametrize("amount", [0, -1, -0.5, math.inf, math.nan])
    def test_non_positive_amounts(self, amount):
        with pytest.raises(ValidationError):
            require_positive_amount(amount)

    @pytest.mark.parametrize("amount", ["1", None, True])
    def test_non_numeric_amounts(self, amount):
        with pytest.raises(ValidationError, match="must be a number"):
            require_positive_amount(amount)

    def test_positive_amount(self):
        assert require_positive_amount(3) == 3.0

    def test_hole_id(self):
        assert require_hole_id("hole_abc") == "hole_abc"
        for value in ("abc", "hole_", "", None):
            with pytest.raises(ValidationError):
                require_hole_id(value)

    def test_network(self):
        assert validate_network("mainnet-beta") is Network.MAINNET_BETA
        with pytest.raises(ValidationError, match="Invalid network"):
            validate_network("localnet")

    def test_address(self):
        assert validate_address(RECIPIENT) == RECIPIENT
        with pytest.raises(ValidationError, match="required"):
            validate_address("")
        with pytest.raises(ValidationError, match="Invalid"):
            validate_address("not-an-address")

    def test_address_accepts_short_base58_keys(self):
        # Leading zero bytes shorten the base58 form below 44 characters
        system_program = "1" * 32
        assert validate_address(system_program) == system_program
        fresh = KeypairWallet().public_key
        assert validate_address(fresh) == fresh

    def test_address_rejects_hex_keys(self):
        with pytest.raises(ValidationError, match="Invalid recipient address"):
            validate_address("cd" * 32, "recipient address")

    def test_as_utc(self):
        naive = datetime(2030, 1, 1)
        assert as_utc(naive).tzinfo is UTC


class TestOperationRules:
    """Test per-operation parameter rules."""

    def test_transfer(self):
        validate_transfer_params(TransactionParams(recipient=RECIPIENT, amount=1.5, memo="rent"))

    def test_transfer_memo_too_long(self):
        with pytest.raises(ValidationError, match="Memo"):
            validate_transfer_params(TransactionParams(recipient=RECIPIENT, amount=1, memo="x" * 257))

    def test_transfer_bad_recipient(self):
        with pytest.raises(ValidationError):
            validate_transfer_params(TransactionParams(recipient="alice", amount=1))

    def test_username_too_short(self):
        with pytest.raises(ValidationError, match="at least 3 characters"):
            validate_identity_params(IdentityParams(username="ab"))

    def test_username_ok(self):
        validate_identity_params(IdentityParams(username="abc"))

    def test_credential_requires_claims(self):
        with pytest.raises(ValidationError, match="At least one claim"):
            validate_credential_params(CredentialParams(hole_id="hole_x", claims={}))

    def test_credential_requires_hole_id(self):
        with pytest.raises(ValidationError, match="HoleID is required"):
            validate_credential_params(CredentialParams(hole_id="", claims={"a": 1}))

    def test_credential_expiry_in_past(self):
        now = datetime(2030, 1, 1, tzinfo=UTC)
        params = CredentialParams(hole_id="hole_x", claims={"a": 1}, expires_at=now - timedelta(days=1))
        with pytest.raises(ValidationError, match="future"):
            validate_credential_params(params, now=now)

    def test_credential_ok(self):
        params = CredentialParams(
            hole_id="hole_x",
            claims={"age_over_18": True},
            expires_at=datetime.now(UTC) + timedelta(days=30),
        )
        validate_credential_params(params)

    def test_verification_requires_credential(self):
        with pytest.raises(ValidationError, match="Credential is required"):
            validate_verification_params(VerificationParams())

    def test_message_recipient_must_be_hole_id(self):
        params = MessageParams(recipient="alice", subject="hi", content="hello")
        with pytest.raises(ValidationError, match="Invalid recipient HoleID"):
            validate_message_params(params)

    def test_message_subject_and_content(self):
        with pytest.raises(ValidationError, match="Subject"):
            validate_message_params(MessageParams(recipient="hole_x", subject="", content="hello"))
        with pytest.raises(ValidationError, match="Subject"):
            validate_message_params(MessageParams(recipient="hole_x", subject="s" * 201, content="hello"))
        with pytest.raises(ValidationError, match="content"):
            validate_message_params(MessageParams(recipient="hole_x", subject="hi", content=""))

    def test_message_attachments(self):
        with pytest.raises(ValidationError, match="Attachments"):
            validate_message_params(
                MessageParams(recipient="hole_x", subject="hi", content="hello", attachments=[""])
            )

    def test_inbox(self):
        validate_inbox_params(InboxParams(limit=100, offset=0))
        with pytest.raises(ValidationError, match="Limit"):
            validate_inbox_params(InboxParams(limit=101))
        with pytest.raises(ValidationError, match="Offset"):
            validate_inbox_params(InboxParams(offset=-1))

    def test_swap_unsupported_token(self):
        params = SwapParams(from_token="DOGE", to_token="USDC", amount=1)
        with pytest.raises(ValidationError, match="Unsupported fromToken: DOGE"):
            validate_swap_params(params, SUPPORTED_TOKENS)

    def test_swap_same_tokens(self):
        params = SwapParams(from_token="SOL", to_token="SOL", amount=1)
        with pytest.raises(ValidationError, match="Cannot swap same tokens"):
            validate_swap_params(params, SUPPORTED_TOKENS)

    @pytest.mark.parametrize("tolerance", [-0.1, 1.0, 2.0])
    def test_swap_slippage_range(self, tolerance):
        params = SwapParams(from_token="SOL", to_token="USDC", amount=1, slippage_tolerance=tolerance)
        with pytest.raises(ValidationError, match="Slippage"):
            validate_swap_params(params, SUPPORTED_TOKENS)


class TestCapabilityChecks:
    """Test wallet and funds checks."""

    def test_disconnected_wallet(self):
        with pytest.raises(WalletError, match="Wallet not connected"):
            check_wallet(WatchOnlyWallet(public_key=None), require_signing=False)

    def test_watch_only_wallet_cannot_sign(self):
        with pytest.raises(WalletError, match="does not support transaction signing"):
            check_wallet(WatchOnlyWallet(public_key=RECIPIENT), require_signing=True)

    def test_watch_only_wallet_without_signing(self):
        assert check_wallet(WatchOnlyWallet(public_key=RECIPIENT), require_signing=False) == RECIPIENT

    def test_signing_wallet(self):
        wallet = KeypairWallet()
        assert check_wallet(wallet, require_signing=True) == wallet.public_key

    def test_funds(self):
        check_funds(10.0, 10.0, "SOL")
        with pytest.raises(InsufficientFundsError, match="Insufficient SOL balance"):
            check_funds(1.0, 2.0, "SOL")
