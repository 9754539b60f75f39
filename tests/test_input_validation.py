"""Unit tests for request input guards."""

from __future__ import annotations

import pytest

from slp_gateway.core.errors import BadRequestAppError
from slp_gateway.core.input_validation import (
    NETWORK_MISMATCH_MESSAGE,
    require_non_empty,
    validate_address,
    validate_token_id,
    validate_txid,
    validate_txid_batch,
)

TXID = "78d57a82a0dd9930cc17843d9d06677f267777dd6b25055bad0ae43f1b884091"
TESTNET_SLP = "slptest:qz35h5mfa8w2pqma2jq06lp7dnv5fxkp2shlcycvd5"
MAINNET_CASH = "bitcoincash:qpm2qsznhks23z7629mms6s4cwef74vcwvy22gdx6a"


class TestRequireNonEmpty:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_values_rejected(self, value):
        with pytest.raises(BadRequestAppError) as exc_info:
            require_non_empty(value, "address")

        assert exc_info.value.message == "address can not be empty"
        assert exc_info.value.status_code == 400

    def test_value_is_stripped(self):
        assert require_non_empty("  abc ", "tokenId") == "abc"


class TestTxid:
    def test_valid_txid_returned_unchanged(self):
        assert validate_txid(TXID.upper()) == TXID.upper()

    @pytest.mark.parametrize("txid", ["", "abc", TXID[:-1], TXID + "0", "g" * 64, None, 123])
    def test_malformed_txids(self, txid):
        with pytest.raises(BadRequestAppError) as exc_info:
            validate_txid(txid)

        assert "txid must be 64 hex characters" in exc_info.value.message

    def test_token_id_messages(self):
        with pytest.raises(BadRequestAppError) as exc_info:
            validate_token_id("")
        assert exc_info.value.message == "tokenId can not be empty"

        with pytest.raises(BadRequestAppError) as exc_info:
            validate_token_id("xyz")
        assert "tokenId must be 64 hex characters" in exc_info.value.message


class TestAddress:
    def test_matching_network(self):
        decoded = validate_address(TESTNET_SLP, network="testnet")

        assert decoded.network == "testnet"

    def test_network_mismatch(self):
        with pytest.raises(BadRequestAppError) as exc_info:
            validate_address(MAINNET_CASH, network="testnet")

        assert exc_info.value.message == NETWORK_MISMATCH_MESSAGE

    def test_undecodable_address(self):
        with pytest.raises(BadRequestAppError) as exc_info:
            validate_address("badAddress", network="testnet")

        assert exc_info.value.message.startswith("Invalid BCH address.")
        assert "badAddress" in exc_info.value.message

    def test_empty_address(self):
        with pytest.raises(BadRequestAppError) as exc_info:
            validate_address("")

        assert exc_info.value.message == "address can not be empty"

    def test_configured_network_is_default(self):
        # The test environment serves testnet
        assert validate_address(TESTNET_SLP).network == "testnet"


class TestTxidBatch:
    @pytest.mark.parametrize("txids", [None, TXID, {"txids": [TXID]}, 42])
    def test_not_an_array(self, txids):
        with pytest.raises(BadRequestAppError) as exc_info:
            validate_txid_batch(txids, max_items=20)

        assert exc_info.value.message == "txids needs to be an array"

    def test_size_checked_before_format(self):
        with pytest.raises(BadRequestAppError) as exc_info:
            validate_txid_batch(["not-a-txid"] * 21, max_items=20)

        assert exc_info.value.message == "Array too large. Max 20 txids"

    def test_cap_is_configurable(self):
        with pytest.raises(BadRequestAppError) as exc_info:
            validate_txid_batch([TXID] * 3, max_items=2)

        assert exc_info.value.message == "Array too large. Max 2 txids"

    def test_empty(self):
        with pytest.raises(BadRequestAppError) as exc_info:
            validate_txid_batch([], max_items=20)

        assert exc_info.value.message == "txids can not be empty"

    def test_items_validated(self):
        with pytest.raises(BadRequestAppError):
            validate_txid_batch([TXID, 5], max_items=20)

    def test_valid_batch(self):
        assert validate_txid_batch([TXID, TXID], max_items=20) == [TXID, TXID]


def test_short_txid_is_rejected_locally():
    with pytest.raises(BadRequestAppError) as exc_info:
        validate_txid_batch(["abc123"])

    assert exc_info.value.message == "Invalid txid: abc123. txid must be 64 hex characters."
