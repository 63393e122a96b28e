from __future__ import annotations

from typing import Any

HASH_LENGTH = 32
ADDRESS_LENGTH = 20
NONCE_LENGTH = 8
MAX_UINT64 = 2**64 - 1


class EncodingError(ValueError):
    pass


def _strip_prefix(text: str) -> tuple[str, bool]:
    if text[:2] in ("0x", "0X"):
        return text[2:], True
    return text, False


def encode_big(value: int) -> str:
    if value < 0:
        raise EncodingError(f"Negative value cannot be hex encoded: {value}")
    return f"{value:#x}"


def encode_uint64(value: int) -> str:
    if value < 0 or value > MAX_UINT64:
        raise EncodingError(f"Value out of uint64 range: {value}")
    return f"{value:#x}"


def encode_bytes(data: bytes) -> str:
    return "0x" + data.hex()


def encode_fixed(data: bytes, size: int) -> str:
    if len(data) != size:
        raise EncodingError(f"Expected {size} bytes, got {len(data)}")
    return "0x" + data.hex()


def encode_hash(data: bytes) -> str:
    return encode_fixed(data, HASH_LENGTH)


def encode_address(data: bytes) -> str:
    return encode_fixed(data, ADDRESS_LENGTH)


def encode_nonce(value: int) -> str:
    if value < 0 or value > MAX_UINT64:
        raise EncodingError(f"Block nonce out of range: {value}")
    return encode_bytes(value.to_bytes(NONCE_LENGTH, "big"))


def parse_hex_or_decimal(value: Any) -> int:
    if isinstance(value, bool):
        raise EncodingError(f"Invalid number: {value!r}")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        body, prefixed = _strip_prefix(text)
        # int() would also take "1_000" and "+5"; genesis numbers are bare digits.
        if not body or "_" in body or body[0] in "+-":
            raise EncodingError(f"Invalid number: {value!r}")
        try:
            parsed = int(body, 16) if prefixed else int(body, 10)
        except ValueError as exc:
            raise EncodingError(f"Invalid number: {value!r}") from exc
    else:
        raise EncodingError(f"Invalid number: {value!r}")
    if parsed < 0:
        raise EncodingError(f"Negative number not allowed: {value!r}")
    return parsed


def parse_uint64(value: Any) -> int:
    parsed = parse_hex_or_decimal(value)
    if parsed > MAX_UINT64:
        raise EncodingError(f"Number exceeds uint64 range: {value!r}")
    return parsed


def decode_bytes(value: Any) -> bytes:
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise EncodingError(f"Invalid hex string: {value!r}")
    body, _ = _strip_prefix(value.strip())
    if len(body) % 2 == 1:
        body = "0" + body
    try:
        return bytes.fromhex(body)
    except ValueError as exc:
        raise EncodingError(f"Invalid hex string: {value!r}") from exc


def decode_fixed(value: Any, size: int) -> bytes:
    data = decode_bytes(value)
    if len(data) > size:
        raise EncodingError(f"Value longer than {size} bytes: {value!r}")
    # Short values are left padded, long hashes are rejected rather than cropped.
    return data.rjust(size, b"\x00")


def decode_hash(value: Any) -> bytes:
    return decode_fixed(value, HASH_LENGTH)


def decode_address(value: Any) -> bytes:
    return decode_fixed(value, ADDRESS_LENGTH)
