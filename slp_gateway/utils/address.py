"""Bitcoin Cash / SLP address decoding and conversion.

Supports the three encodings API consumers send:
- CashAddr (``bitcoincash:`` / ``bchtest:``), prefix optional
- SLP addresses, CashAddr with ``simpleledger:`` / ``slptest:`` prefixes
- Legacy Base58Check addresses

All three carry the same hash160 payload, so conversion is decode then
re-encode with another prefix or version byte.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_REV = {char: index for index, char in enumerate(CHARSET)}
_GENERATORS = (0x98F2BC8E61, 0x79B76D99E2, 0xF33E5FB3C4, 0xAE2EABE2A8, 0x1E4F43E470)

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_REV = {char: index for index, char in enumerate(BASE58_ALPHABET)}

# (format, network) -> CashAddr prefix
PREFIXES = {
    ("cash", "mainnet"): "bitcoincash",
    ("cash", "testnet"): "bchtest",
    ("slp", "mainnet"): "simpleledger",
    ("slp", "testnet"): "slptest",
}
_PREFIX_LOOKUP = {prefix: key for key, prefix in PREFIXES.items()}

# CashAddr version byte type bits
_CASH_TYPES = {0: "p2pkh", 8: "p2sh"}
_CASH_TYPE_BITS = {kind: bits for bits, kind in _CASH_TYPES.items()}

# (network, kind) <-> legacy version byte
LEGACY_VERSIONS = {
    ("mainnet", "p2pkh"): 0x00,
    ("mainnet", "p2sh"): 0x05,
    ("testnet", "p2pkh"): 0x6F,
    ("testnet", "p2sh"): 0xC4,
}
_LEGACY_LOOKUP = {version: key for key, version in LEGACY_VERSIONS.items()}


class InvalidAddressError(ValueError):
    """Raised when a string is not a decodable BCH/SLP address."""


@dataclass(frozen=True)
class DecodedAddress:
    """Network-independent view of an address.

    Attributes:
        network: ``mainnet`` or ``testnet``.
        kind: ``p2pkh`` or ``p2sh``.
        hash160: 20-byte public key or script hash.
        format: ``cash``, ``slp`` or ``legacy`` (the encoding it arrived in).
    """

    network: str
    kind: str
    hash160: bytes
    format: str


def _polymod(values: list[int]) -> int:
    checksum = 1
    for value in values:
        top = checksum >> 35
        checksum = ((checksum & 0x07FFFFFFFF) << 5) ^ value
        for bit, generator in enumerate(_GENERATORS):
            if (top >> bit) & 1:
                checksum ^= generator
    return checksum ^ 1


def _prefix_expand(prefix: str) -> list[int]:
    return [ord(char) & 0x1F for char in prefix] + [0]


def _convert_bits(data: bytes | list[int], from_bits: int, to_bits: int, *, pad: bool) -> list[int]:
    acc = 0
    bits = 0
    out: list[int] = []
    max_value = (1 << to_bits) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise InvalidAddressError("invalid data value")
        acc = (acc << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            out.append((acc >> bits) & max_value)
    if pad:
        if bits:
            out.append((acc << (to_bits - bits)) & max_value)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & max_value):
        raise InvalidAddressError("invalid padding")
    return out


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def encode_cashaddr(prefix: str, kind: str, hash160: bytes) -> str:
    """Encode a hash160 as a CashAddr string with ``prefix``."""
    payload = _convert_bits(bytes([_CASH_TYPE_BITS[kind]]) + hash160, 8, 5, pad=True)
    poly = _polymod(_prefix_expand(prefix) + payload + [0] * 8)
    checksum = [(poly >> 5 * (7 - i)) & 0x1F for i in range(8)]
    return f"{prefix}:" + "".join(CHARSET[value] for value in payload + checksum)


def _decode_cashaddr(address: str) -> DecodedAddress:
    if address.lower() != address and address.upper() != address:
        raise InvalidAddressError("mixed case")
    address = address.lower()

    if ":" in address:
        prefix, payload = address.split(":", 1)
        candidates = [prefix]
    else:
        payload = address
        candidates = list(_PREFIX_LOOKUP)

    try:
        data = [_CHARSET_REV[char] for char in payload]
    except KeyError:
        raise InvalidAddressError("invalid character") from None
    if len(data) < 9:
        raise InvalidAddressError("payload too short")

    for prefix in candidates:
        if prefix not in _PREFIX_LOOKUP:
            raise InvalidAddressError(f"unknown prefix {prefix}")
        if _polymod(_prefix_expand(prefix) + data) != 0:
            continue

        decoded = bytes(_convert_bits(data[:-8], 5, 8, pad=False))
        version, hash160 = decoded[0], decoded[1:]
        kind = _CASH_TYPES.get(version)
        if kind is None or len(hash160) != 20:
            raise InvalidAddressError("unsupported address version")
        fmt, network = _PREFIX_LOOKUP[prefix]
        return DecodedAddress(network=network, kind=kind, hash160=hash160, format=fmt)

    raise InvalidAddressError("bad checksum")


def encode_legacy(network: str, kind: str, hash160: bytes) -> str:
    """Encode a hash160 as a Base58Check legacy address."""
    raw = bytes([LEGACY_VERSIONS[(network, kind)]]) + hash160
    raw += _double_sha256(raw)[:4]

    number = int.from_bytes(raw, "big")
    encoded = ""
    while number:
        number, remainder = divmod(number, 58)
        encoded = BASE58_ALPHABET[remainder] + encoded
    leading_zeros = len(raw) - len(raw.lstrip(b"\0"))
    return "1" * leading_zeros + encoded


def _decode_legacy(address: str) -> DecodedAddress:
    number = 0
    for char in address:
        if char not in _BASE58_REV:
            raise InvalidAddressError("invalid base58 character")
        number = number * 58 + _BASE58_REV[char]

    leading_zeros = len(address) - len(address.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    raw = b"\0" * leading_zeros + body
    if len(raw) != 25 or _double_sha256(raw[:21])[:4] != raw[21:]:
        raise InvalidAddressError("bad base58 checksum")

    network_kind = _LEGACY_LOOKUP.get(raw[0])
    if network_kind is None:
        raise InvalidAddressError("unsupported legacy version")
    network, kind = network_kind
    return DecodedAddress(network=network, kind=kind, hash160=raw[1:21], format="legacy")


def decode_address(address: str) -> DecodedAddress:
    """Decode a CashAddr, SLP or legacy address.

    Raises:
        InvalidAddressError: If ``address`` is not valid in any encoding.
    """
    if not address or not isinstance(address, str):
        raise InvalidAddressError("empty address")

    if ":" not in address and address[0] in "123mn2":
        try:
            return _decode_legacy(address)
        except InvalidAddressError:
            pass
    return _decode_cashaddr(address)


def to_cash_address(decoded: DecodedAddress) -> str:
    return encode_cashaddr(PREFIXES[("cash", decoded.network)], decoded.kind, decoded.hash160)


def to_slp_address(decoded: DecodedAddress) -> str:
    return encode_cashaddr(PREFIXES[("slp", decoded.network)], decoded.kind, decoded.hash160)


def to_legacy_address(decoded: DecodedAddress) -> str:
    return encode_legacy(decoded.network, decoded.kind, decoded.hash160)
