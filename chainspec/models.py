from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from .encoding import (
    ADDRESS_LENGTH,
    EncodingError,
    decode_address,
    decode_bytes,
    decode_hash,
    encode_address,
    encode_big,
    encode_bytes,
    encode_hash,
    encode_uint64,
    parse_hex_or_decimal,
    parse_uint64,
)
from .errors import GenesisFormatError

ENGINE_ETHASH = "ethash"
ENGINE_CLIQUE = "clique"

ZERO_HASH = bytes(32)
ZERO_ADDRESS = bytes(ADDRESS_LENGTH)

# Genesis JSON key for each fork field, in activation order.
FORK_JSON_KEYS: dict[str, str] = {
    "homestead": "homesteadBlock",
    "dao": "daoForkBlock",
    "eip150": "eip150Block",
    "eip155": "eip155Block",
    "eip158": "eip158Block",
    "byzantium": "byzantiumBlock",
    "constantinople": "constantinopleBlock",
    "petersburg": "petersburgBlock",
    "istanbul": "istanbulBlock",
}


def _parse_field(data: dict[str, Any], key: str, parser: Callable[[Any], Any], default: Any) -> Any:
    raw = data.get(key)
    if raw is None:
        return default
    try:
        return parser(raw)
    except EncodingError as exc:
        raise GenesisFormatError(f"Invalid genesis value for '{key}': {exc}") from exc


@dataclass(frozen=True)
class GenesisAccount:
    balance: int = 0
    nonce: int = 0
    code: bytes = b""
    storage: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.code:
            data["code"] = encode_bytes(self.code)
        if self.storage:
            data["storage"] = dict(sorted(self.storage.items()))
        data["balance"] = encode_big(self.balance)
        if self.nonce:
            data["nonce"] = encode_uint64(self.nonce)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenesisAccount":
        if not isinstance(data, dict):
            raise GenesisFormatError("Genesis account must be a JSON object")
        if data.get("balance") is None:
            raise GenesisFormatError("Genesis account is missing 'balance'")
        storage: dict[str, str] = {}
        raw_storage = data.get("storage") or {}
        if not isinstance(raw_storage, dict):
            raise GenesisFormatError("Genesis account 'storage' must be a JSON object")
        for slot, value in raw_storage.items():
            try:
                storage[encode_hash(decode_hash(slot))] = encode_hash(decode_hash(value))
            except EncodingError as exc:
                raise GenesisFormatError(f"Invalid storage entry '{slot}': {exc}") from exc
        return cls(
            balance=_parse_field(data, "balance", parse_hex_or_decimal, 0),
            nonce=_parse_field(data, "nonce", parse_uint64, 0),
            code=_parse_field(data, "code", decode_bytes, b""),
            storage=storage,
        )


@dataclass(frozen=True)
class ChainConfig:
    chain_id: int
    homestead_block: int | None = None
    dao_block: int | None = None
    eip150_block: int | None = None
    eip155_block: int | None = None
    eip158_block: int | None = None
    byzantium_block: int | None = None
    constantinople_block: int | None = None
    petersburg_block: int | None = None
    istanbul_block: int | None = None
    engine: str | None = ENGINE_ETHASH

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"chainId": self.chain_id}
        for name, key in FORK_JSON_KEYS.items():
            value = getattr(self, f"{name}_block")
            if value is not None:
                data[key] = value
        if self.engine:
            data[self.engine] = {}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChainConfig":
        if not isinstance(data, dict):
            raise GenesisFormatError("Genesis 'config' must be a JSON object")
        if data.get("chainId") is None:
            raise GenesisFormatError("Genesis config is missing 'chainId'")
        forks = {
            f"{name}_block": _parse_field(data, key, parse_uint64, None)
            for name, key in FORK_JSON_KEYS.items()
        }
        engine = None
        if data.get(ENGINE_ETHASH) is not None:
            engine = ENGINE_ETHASH
        elif data.get(ENGINE_CLIQUE) is not None:
            engine = ENGINE_CLIQUE
        return cls(
            chain_id=_parse_field(data, "chainId", parse_uint64, 0),
            engine=engine,
            **forks,
        )


@dataclass(frozen=True)
class Genesis:
    config: ChainConfig
    nonce: int = 0
    timestamp: int = 0
    extra_data: bytes = b""
    gas_limit: int = 0
    difficulty: int = 0
    mix_hash: bytes = ZERO_HASH
    coinbase: bytes = ZERO_ADDRESS
    parent_hash: bytes = ZERO_HASH
    alloc: dict[bytes, GenesisAccount] = field(default_factory=dict)
    network_id: int | None = None

    @property
    def effective_network_id(self) -> int:
        if self.network_id is None:
            return self.config.chain_id
        return self.network_id

    def sorted_alloc(self) -> list[tuple[bytes, GenesisAccount]]:
        return sorted(self.alloc.items())

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "nonce": encode_uint64(self.nonce),
            "timestamp": encode_uint64(self.timestamp),
            "extraData": encode_bytes(self.extra_data),
            "gasLimit": encode_uint64(self.gas_limit),
            "difficulty": encode_big(self.difficulty),
            "mixHash": encode_hash(self.mix_hash),
            "coinbase": encode_address(self.coinbase),
            "alloc": {address.hex(): account.to_dict() for address, account in self.sorted_alloc()},
            "parentHash": encode_hash(self.parent_hash),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], network_id: int | None = None) -> "Genesis":
        if not isinstance(data, dict):
            raise GenesisFormatError("Genesis must be a JSON object")
        if "config" not in data:
            raise GenesisFormatError("Genesis is missing 'config'")

        raw_alloc = data.get("alloc") or {}
        if not isinstance(raw_alloc, dict):
            raise GenesisFormatError("Genesis 'alloc' must be a JSON object")
        alloc: dict[bytes, GenesisAccount] = {}
        for raw_address, raw_account in raw_alloc.items():
            try:
                address = decode_address(raw_address)
            except EncodingError as exc:
                raise GenesisFormatError(f"Invalid alloc address '{raw_address}': {exc}") from exc
            if address in alloc:
                raise GenesisFormatError(f"Duplicate alloc address '{raw_address}'")
            alloc[address] = GenesisAccount.from_dict(raw_account)

        return cls(
            config=ChainConfig.from_dict(data["config"]),
            nonce=_parse_field(data, "nonce", parse_uint64, 0),
            timestamp=_parse_field(data, "timestamp", parse_uint64, 0),
            extra_data=_parse_field(data, "extraData", decode_bytes, b""),
            gas_limit=_parse_field(data, "gasLimit", parse_uint64, 0),
            difficulty=_parse_field(data, "difficulty", parse_hex_or_decimal, 0),
            mix_hash=_parse_field(data, "mixHash", decode_hash, ZERO_HASH),
            coinbase=_parse_field(data, "coinbase", decode_address, ZERO_ADDRESS),
            parent_hash=_parse_field(data, "parentHash", decode_hash, ZERO_HASH),
            alloc=alloc,
            network_id=network_id,
        )


def is_ethash(genesis: Genesis) -> bool:
    return genesis.config.engine == ENGINE_ETHASH
