"""Tests for the SS58 address codec."""

import base58
import pytest

from conftest import (
    ALICE_GENERIC,
    ALICE_KUSAMA,
    ALICE_POLKADOT,
    ALICE_PUBLIC_KEY,
    BOB_POLKADOT,
    KUSAMA_ADDRESS,
)
from polkapay.address import (
    decode_address,
    encode_address,
    format_address,
    is_same_address,
    is_valid_address,
    shorten_address,
)
from polkapay.errors import ValidationError

MALFORMED = [
    "",
    ALICE_POLKADOT[:-1],  # truncated by one character
    ALICE_POLKADOT + "X",  # one character appended
    ALICE_POLKADOT[:10] + "0" + ALICE_POLKADOT[11:],  # '0' is not base58
    ALICE_POLKADOT[:10] + "l" + ALICE_POLKADOT[11:],  # 'l' is not base58
    ALICE_POLKADOT + " ",
    ALICE_POLKADOT + "\n",  # trailing newline
    ALICE_POLKADOT + "\t",
    "0x" + ALICE_PUBLIC_KEY + "\n",
    "invalid-address",
    "1234567890",
    "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb",  # Ethereum
    "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa",  # Bitcoin
]


class TestDecodeAddress:
    """Tests for low-level decoding."""

    def test_decodes_public_key_and_format(self):
        key, ss58_format = decode_address(ALICE_POLKADOT)
        assert key.hex() == ALICE_PUBLIC_KEY
        assert ss58_format == 0

    def test_decodes_kusama_format(self):
        _, ss58_format = decode_address(ALICE_KUSAMA)
        assert ss58_format == 2

    def test_decodes_generic_format(self):
        _, ss58_format = decode_address(ALICE_GENERIC)
        assert ss58_format == 42

    def test_accepts_hex_public_key(self):
        key, ss58_format = decode_address("0x" + ALICE_PUBLIC_KEY)
        assert key.hex() == ALICE_PUBLIC_KEY
        assert ss58_format is None

    def test_bad_checksum_rejected(self):
        raw = base58.b58decode(ALICE_POLKADOT)
        tampered = base58.b58encode(raw[:-1] + bytes([raw[-1] ^ 1])).decode()
        with pytest.raises(ValidationError, match="checksum"):
            decode_address(tampered)

    def test_tampered_key_rejected(self):
        raw = bytearray(base58.b58decode(ALICE_POLKADOT))
        raw[5] ^= 0xFF
        with pytest.raises(ValidationError, match="checksum"):
            decode_address(base58.b58encode(bytes(raw)).decode())

    @pytest.mark.parametrize("address", MALFORMED)
    def test_malformed_raises_validation_error(self, address):
        with pytest.raises(ValidationError):
            decode_address(address)

    def test_non_string_raises_validation_error(self):
        with pytest.raises(ValidationError):
            decode_address(None)


class TestEncodeAddress:
    """Tests for encoding public keys."""

    def test_encodes_known_addresses(self):
        key = bytes.fromhex(ALICE_PUBLIC_KEY)
        assert encode_address(key, 0) == ALICE_POLKADOT
        assert encode_address(key, 2) == ALICE_KUSAMA
        assert encode_address(key, 42) == ALICE_GENERIC

    def test_two_byte_prefix_round_trip(self):
        key = bytes.fromhex(ALICE_PUBLIC_KEY)
        address = encode_address(key, 1284)
        assert decode_address(address) == (key, 1284)

    def test_rejects_bad_key_length(self):
        with pytest.raises(ValidationError):
            encode_address(b"\x01" * 20, 0)

    def test_rejects_out_of_range_format(self):
        with pytest.raises(ValidationError):
            encode_address(bytes.fromhex(ALICE_PUBLIC_KEY), 16384)


class TestIsValidAddress:
    """Tests for address validation."""

    def test_valid_polkadot_addresses(self):
        assert is_valid_address(ALICE_POLKADOT, 0) is True
        assert is_valid_address(BOB_POLKADOT, 0) is True

    def test_valid_kusama_address(self):
        assert is_valid_address(KUSAMA_ADDRESS, 2) is True
        assert is_valid_address(ALICE_KUSAMA, 2) is True

    def test_valid_westend_address(self):
        assert is_valid_address(ALICE_GENERIC, 42) is True

    def test_default_format_is_polkadot(self):
        assert is_valid_address(ALICE_POLKADOT) is True
        assert is_valid_address(KUSAMA_ADDRESS) is False

    def test_wrong_network_prefix(self):
        assert is_valid_address(ALICE_POLKADOT, 2) is False
        assert is_valid_address(KUSAMA_ADDRESS, 0) is False
        assert is_valid_address(ALICE_GENERIC, 0) is False

    def test_hex_public_key_is_not_an_ss58_address(self):
        assert is_valid_address("0x" + ALICE_PUBLIC_KEY, 0) is False

    @pytest.mark.parametrize("address", MALFORMED)
    def test_malformed_is_invalid(self, address):
        assert is_valid_address(address, 0) is False

    def test_non_string_is_invalid(self):
        assert is_valid_address(None) is False
        assert is_valid_address(12345) is False


class TestFormatAddress:
    """Tests for re-encoding across networks."""

    def test_polkadot_to_kusama(self):
        assert format_address(ALICE_POLKADOT, 2) == ALICE_KUSAMA

    def test_generic_to_polkadot_by_default(self):
        assert format_address(ALICE_GENERIC) == ALICE_POLKADOT

    def test_round_trip_returns_original(self):
        kusama = format_address(ALICE_POLKADOT, 2)
        assert format_address(kusama, 0) == ALICE_POLKADOT

    def test_chained_formats_keep_account(self):
        for first in (0, 2, 42):
            for second in (0, 2, 42):
                chained = format_address(format_address(ALICE_POLKADOT, first), second)
                assert decode_address(chained)[0].hex() == ALICE_PUBLIC_KEY

    def test_hex_key_to_polkadot(self):
        assert format_address("0x" + ALICE_PUBLIC_KEY, 0) == ALICE_POLKADOT

    @pytest.mark.parametrize("address", MALFORMED)
    def test_malformed_returns_none(self, address):
        assert format_address(address, 0) is None


class TestShortenAddress:
    """Tests for display shortening."""

    def test_default_chars(self):
        result = shorten_address(ALICE_POLKADOT)
        assert result == "15oF4u...Hr6Sp5"
        assert len(result) == 15

    def test_custom_chars(self):
        assert shorten_address(ALICE_POLKADOT, 4) == "15oF...6Sp5"
        assert shorten_address(ALICE_POLKADOT, 10) == "15oF4uVJwm...bjMNHr6Sp5"

    def test_short_input_unchanged(self):
        assert shorten_address("12345678") == "12345678"
        assert shorten_address("") == ""

    def test_threshold(self):
        assert shorten_address("123456789012") == "123456789012"
        assert shorten_address("1234567890123") == "123456...890123"

    @pytest.mark.parametrize("chars", [0, -3])
    def test_non_positive_chars_unchanged(self, chars):
        assert shorten_address(ALICE_POLKADOT, chars) == ALICE_POLKADOT


class TestIsSameAddress:
    """Tests for account equality across formats."""

    def test_same_account_different_formats(self):
        kusama = format_address(ALICE_POLKADOT, 2)
        assert is_same_address(ALICE_POLKADOT, kusama) is True
        assert is_same_address(ALICE_GENERIC, ALICE_KUSAMA) is True
        assert is_same_address(ALICE_POLKADOT, "0x" + ALICE_PUBLIC_KEY) is True

    def test_identical(self):
        assert is_same_address(ALICE_POLKADOT, ALICE_POLKADOT) is True

    def test_different_accounts(self):
        assert is_same_address(ALICE_POLKADOT, BOB_POLKADOT) is False

    def test_invalid_inputs(self):
        assert is_same_address("invalid1", "invalid2") is False
        assert is_same_address("", "") is False
        assert is_same_address(ALICE_POLKADOT, "invalid") is False
        assert is_same_address("invalid", ALICE_POLKADOT) is False

    def test_case_sensitive(self):
        assert is_same_address(KUSAMA_ADDRESS, KUSAMA_ADDRESS.lower()) is False
