"""
Test suite for request validation.

Tests address, amount and balance checks performed before anything is built.
"""

import pytest

from arktx.core.errors import InsufficientFunds, InvalidAddress, InvalidAmount
from arktx.core.request import Account, FeeSchedule, LocalSigning, TransactionRequest
from arktx.core.transaction import TransactionType
from arktx.core.validator import TransactionRequestValidator

from conftest import SENDER, batch_items, send_request


FEES = FeeSchedule(send=10, secondsignature=500, delegate=2500, vote=100)


def account(balance: int) -> Account:
    return Account(address=SENDER, balance=balance)


def kind_request(kind: TransactionType) -> TransactionRequest:
    return TransactionRequest(kind=kind, from_address=SENDER, signer=LocalSigning("secret"))


@pytest.fixture
def validator(fake_crypto, test_config) -> TransactionRequestValidator:
    return TransactionRequestValidator(fake_crypto, test_config)


# ============================================================================
# Test Single Requests
# ============================================================================

class TestSendValidation:
    """Tests for send request validation."""

    def test_valid_send(self, validator):
        """amount + fee within balance passes."""
        validator.validate(send_request(amount=500), account(1000), FEES)

    def test_exact_balance(self, validator):
        """amount + fee equal to the balance passes."""
        validator.validate(send_request(amount=990), account(1000), FEES)

    def test_insufficient_funds(self, validator):
        """995 + 10 exceeds a balance of 1000."""
        with pytest.raises(InsufficientFunds) as exc_info:
            validator.validate(send_request(amount=995), account(1000), FEES)

        assert exc_info.value.required == 1005
        assert exc_info.value.available == 1000
        assert exc_info.value.shortfall == 5
        assert exc_info.value.address == SENDER

    def test_invalid_recipient(self, validator):
        with pytest.raises(InvalidAddress) as exc_info:
            validator.validate(send_request(recipient="BOGUS"), account(1000), FEES)

        assert exc_info.value.address == "BOGUS"

    def test_missing_recipient(self, validator):
        with pytest.raises(InvalidAddress):
            validator.validate(send_request(recipient=None), account(1000), FEES)

    def test_address_checked_before_funds(self, validator):
        """An invalid address wins over insufficient funds."""
        with pytest.raises(InvalidAddress):
            validator.validate(send_request(amount=10_000, recipient="BOGUS"), account(1000), FEES)

    @pytest.mark.parametrize("amount", [0, -5, 1.5, True])
    def test_invalid_amount(self, validator, amount):
        with pytest.raises(InvalidAmount):
            validator.validate(send_request(amount=amount), account(1000), FEES)

    def test_validation_does_not_touch_builders(self, validator, fake_crypto):
        with pytest.raises(InsufficientFunds):
            validator.validate(send_request(amount=995), account(1000), FEES)

        assert fake_crypto.build_calls == 0


class TestFeeFloors:
    """Tests for kinds that only need their fee covered."""

    @pytest.mark.parametrize(
        "kind, fee",
        [
            (TransactionType.SECOND_SIGNATURE, 500),
            (TransactionType.DELEGATE, 2500),
            (TransactionType.VOTE, 100),
        ],
    )
    def test_fee_floor(self, validator, kind, fee):
        validator.validate(kind_request(kind), account(fee), FEES)

        with pytest.raises(InsufficientFunds) as exc_info:
            validator.validate(kind_request(kind), account(fee - 1), FEES)

        assert exc_info.value.required == fee

    def test_no_recipient_needed(self, validator):
        """Non-send kinds are not checked for a recipient."""
        validator.validate(kind_request(TransactionType.VOTE), account(1000), FEES)


# ============================================================================
# Test Batches
# ============================================================================

class TestBatchValidation:
    """Tests for whole-batch validation."""

    def test_total_within_balance(self, validator):
        total = validator.validate_batch(SENDER, batch_items(100, 100, 100), account(400), FEES)

        assert total == 330

    def test_total_exceeds_balance(self, validator):
        with pytest.raises(InsufficientFunds) as exc_info:
            validator.validate_batch(SENDER, batch_items(100, 100, 100), account(329), FEES)

        assert exc_info.value.required == 330

    def test_fee_counted_per_item(self, validator):
        """One send fee is charged per item: 3 * 90 + 3 * 10 = 300."""
        with pytest.raises(InsufficientFunds):
            validator.validate_batch(SENDER, batch_items(90, 90, 90), account(299), FEES)

    def test_first_invalid_address_reported(self, validator):
        items = batch_items(100, 100, 100, invalid_at=1)

        with pytest.raises(InvalidAddress) as exc_info:
            validator.validate_batch(SENDER, items, account(10_000), FEES)

        assert exc_info.value.address == "BOGUS"

    def test_addresses_checked_before_total(self, validator):
        items = batch_items(10_000, 100, invalid_at=1)

        with pytest.raises(InvalidAddress):
            validator.validate_batch(SENDER, items, account(400), FEES)

    def test_empty_batch(self, validator):
        with pytest.raises(ValueError):
            validator.validate_batch(SENDER, [], account(400), FEES)
