"""
Tests for the loyalty token ledger
"""

import pytest

from healthchain.core import TokenError, TokenLedger


@pytest.fixture
def token():
    return TokenLedger("HealthCoin", "HC", total_supply=1_000_000)


class TestMint:

    def test_mint_credits_and_grows_supply(self, token):
        token.mint("PAT001", 100)

        assert token.balance_of("PAT001") == 100
        assert token.total_supply == 1_000_100

    def test_mint_zero(self, token):
        token.mint("PAT001", 0)

        assert token.balance_of("PAT001") == 0
        assert token.total_supply == 1_000_000

    def test_negative_mint_rejected(self, token):
        with pytest.raises(TokenError):
            token.mint("PAT001", -1)
        assert token.total_supply == 1_000_000

    def test_negative_initial_supply_rejected(self):
        with pytest.raises(TokenError):
            TokenLedger("HealthCoin", "HC", total_supply=-5)


class TestTransfer:

    def test_transfer_moves_balance(self, token):
        token.mint("PAT001", 100)

        assert token.transfer("PAT001", "PAT002", 40)
        assert token.balance_of("PAT001") == 60
        assert token.balance_of("PAT002") == 40
        assert token.total_supply == 1_000_100

    def test_insufficient_balance(self, token):
        token.mint("PAT001", 10)

        assert not token.transfer("PAT001", "PAT002", 11)
        assert token.balance_of("PAT001") == 10
        assert token.balance_of("PAT002") == 0

    def test_negative_amount(self, token):
        token.mint("PAT001", 10)

        assert not token.transfer("PAT001", "PAT002", -5)
        assert token.balance_of("PAT001") == 10

    def test_transfer_to_self(self, token):
        token.mint("PAT001", 10)

        assert token.transfer("PAT001", "PAT001", 10)
        assert token.balance_of("PAT001") == 10


class TestBalances:

    def test_unknown_address_is_zero(self, token):
        assert token.balance_of("NOBODY") == 0

    def test_holders_filter(self, token):
        token.mint("PAT001", 100)
        token.mint("PAT002", 5)

        assert token.holders() == {"PAT001": 100, "PAT002": 5}
        assert token.holders(min_balance=50) == {"PAT001": 100}
