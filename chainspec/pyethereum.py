from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .encoding import encode_address, encode_big, encode_bytes, encode_hash, encode_nonce, encode_uint64
from .errors import UnsupportedConsensusEngine
from .models import Genesis, GenesisAccount, is_ethash


@dataclass
class PyEthereumSpec:
    nonce: int = 0
    timestamp: int = 0
    extra_data: bytes = b""
    gas_limit: int = 0
    difficulty: int = 0
    mixhash: bytes = bytes(32)
    coinbase: bytes = bytes(20)
    alloc: dict[bytes, GenesisAccount] = field(default_factory=dict)
    parent_hash: bytes = bytes(32)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nonce": encode_nonce(self.nonce),
            "timestamp": encode_uint64(self.timestamp),
            "extraData": encode_bytes(self.extra_data),
            "gasLimit": encode_uint64(self.gas_limit),
            "difficulty": encode_big(self.difficulty),
            "mixhash": encode_hash(self.mixhash),
            "coinbase": encode_address(self.coinbase),
            "alloc": {encode_address(address): self.alloc[address].to_dict() for address in sorted(self.alloc)},
            "parentHash": encode_hash(self.parent_hash),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def new_pyethereum_spec(genesis: Genesis) -> PyEthereumSpec:
    # No fork fields here: pyethereum pins its own consensus rules, so there
    # is no dependency between forks to validate.
    if not is_ethash(genesis):
        raise UnsupportedConsensusEngine(genesis.config.engine)
    return PyEthereumSpec(
        nonce=genesis.nonce,
        timestamp=genesis.timestamp,
        extra_data=genesis.extra_data,
        gas_limit=genesis.gas_limit,
        difficulty=genesis.difficulty,
        mixhash=genesis.mix_hash,
        coinbase=genesis.coinbase,
        alloc=dict(genesis.alloc),
        parent_hash=genesis.parent_hash,
    )
