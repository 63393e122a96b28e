from __future__ import annotations

from typing import Generic, Iterator, TypeVar

from .encoding import ADDRESS_LENGTH

T = TypeVar("T")


def precompile_address(number: int) -> bytes:
    if number < 1 or number > 0xFF:
        raise ValueError(f"Precompile address must fit in one non-zero byte: {number}")
    return number.to_bytes(ADDRESS_LENGTH, "big")


class PrecompileRegistry(Generic[T]):
    """Builtin contract definitions keyed by their one-byte address.

    Entries are only ever added or replaced wholesale; a later fork that
    reprices a builtin overwrites the earlier definition, so callers apply
    forks in activation order.
    """

    def __init__(self) -> None:
        self._entries: dict[int, T] | None = None

    def upsert(self, address: int, entry: T) -> None:
        precompile_address(address)
        if self._entries is None:
            self._entries = {}
        self._entries[address] = entry

    def get(self, address: int) -> T | None:
        if self._entries is None:
            return None
        return self._entries.get(address)

    def addresses(self) -> list[int]:
        return sorted(self._entries or {})

    def items(self) -> Iterator[tuple[bytes, T]]:
        entries = self._entries or {}
        for address in sorted(entries):
            yield precompile_address(address), entries[address]

    def __contains__(self, address: object) -> bool:
        return bool(self._entries) and address in self._entries

    def __len__(self) -> int:
        return len(self._entries or {})
