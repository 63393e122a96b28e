from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from .config import PARAMS, ProtocolParams
from .encoding import encode_address, encode_big, encode_bytes, encode_hash, encode_nonce, encode_uint64
from .errors import UnsupportedConsensusEngine
from .forks import ForkSchedule, check_dependencies
from .models import Genesis, is_ethash
from .precompiles import PrecompileRegistry

logger = logging.getLogger(__name__)


@dataclass
class LinearPricing:
    base: int
    word: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"base": self.base, "word": self.word}


@dataclass
class ModExpPricing:
    divisor: int

    def to_dict(self) -> dict[str, Any]:
        return {"divisor": self.divisor}


@dataclass
class AltBnPairingPricing:
    base: int
    pair: int

    def to_dict(self) -> dict[str, Any]:
        return {"base": self.base, "pair": self.pair}


@dataclass
class AltBnConstOperationPricing:
    price: int

    def to_dict(self) -> dict[str, Any]:
        return {"price": self.price}


@dataclass
class Blake2FPricing:
    gas_per_round: int

    def to_dict(self) -> dict[str, Any]:
        return {"gas_per_round": self.gas_per_round}


@dataclass
class ParityPricing:
    linear: LinearPricing | None = None
    modexp: ModExpPricing | None = None
    # Pre-versioning layout for the bn128 pairing price.
    alt_bn128_pairing: AltBnPairingPricing | None = None
    blake2_f: Blake2FPricing | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.linear is not None:
            data["linear"] = self.linear.to_dict()
        if self.modexp is not None:
            data["modexp"] = self.modexp.to_dict()
        if self.alt_bn128_pairing is not None:
            data["alt_bn128_pairing"] = self.alt_bn128_pairing.to_dict()
        if self.blake2_f is not None:
            data["blake2_f"] = self.blake2_f.to_dict()
        return data


@dataclass
class ParityAlternativePrice:
    alt_bn128_const_operations: AltBnConstOperationPricing | None = None
    alt_bn128_pairing: AltBnPairingPricing | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.alt_bn128_const_operations is not None:
            data["alt_bn128_const_operations"] = self.alt_bn128_const_operations.to_dict()
        if self.alt_bn128_pairing is not None:
            data["alt_bn128_pairing"] = self.alt_bn128_pairing.to_dict()
        return data


@dataclass
class ParityVersionedPricing:
    price: ParityAlternativePrice | None = None
    info: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.price is not None:
            data["price"] = self.price.to_dict()
        if self.info:
            data["info"] = self.info
        return data


# Versioned tables map an activation block to the price in force from it on.
PricingTable = dict[int, ParityVersionedPricing]
Pricing = Union[ParityPricing, PricingTable]


@dataclass
class ParityBuiltin:
    name: str
    pricing: Pricing
    activate_at: int | None = None

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.pricing, dict):
            pricing: dict[str, Any] = {
                encode_big(block): self.pricing[block].to_dict() for block in sorted(self.pricing)
            }
        else:
            pricing = self.pricing.to_dict()
        data: dict[str, Any] = {"name": self.name, "pricing": pricing}
        if self.activate_at is not None:
            data["activate_at"] = encode_big(self.activate_at)
        return data


@dataclass
class ParityAccount:
    balance: int = 0
    nonce: int = 0
    builtin: ParityBuiltin | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"balance": encode_big(self.balance)}
        if self.nonce:
            data["nonce"] = encode_uint64(self.nonce)
        if self.builtin is not None:
            data["builtin"] = self.builtin.to_dict()
        return data


@dataclass
class EthashParams:
    minimum_difficulty: int = 0
    difficulty_bound_divisor: int = 0
    duration_limit: int = 0
    block_reward: dict[int, int] = field(default_factory=dict)
    difficulty_bomb_delays: dict[int, int] = field(default_factory=dict)
    homestead_transition: int | None = None
    eip100b_transition: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "minimumDifficulty": encode_big(self.minimum_difficulty),
            "difficultyBoundDivisor": encode_big(self.difficulty_bound_divisor),
            "durationLimit": encode_big(self.duration_limit),
            "blockReward": {
                encode_big(block): encode_big(self.block_reward[block]) for block in sorted(self.block_reward)
            },
            "difficultyBombDelays": {
                encode_big(block): encode_uint64(self.difficulty_bomb_delays[block])
                for block in sorted(self.difficulty_bomb_delays)
            },
        }
        if self.homestead_transition is not None:
            data["homesteadTransition"] = encode_uint64(self.homestead_transition)
        if self.eip100b_transition is not None:
            data["eip100bTransition"] = encode_uint64(self.eip100b_transition)
        return data


# Transition fields in document order; unset transitions are left out and the
# client treats them as never active.
TRANSITION_KEYS: dict[str, str] = {
    "eip98_transition": "eip98Transition",
    "eip150_transition": "eip150Transition",
    "eip160_transition": "eip160Transition",
    "eip161abc_transition": "eip161abcTransition",
    "eip161d_transition": "eip161dTransition",
    "eip155_transition": "eip155Transition",
    "eip140_transition": "eip140Transition",
    "eip211_transition": "eip211Transition",
    "eip214_transition": "eip214Transition",
    "eip658_transition": "eip658Transition",
    "eip145_transition": "eip145Transition",
    "eip1014_transition": "eip1014Transition",
    "eip1052_transition": "eip1052Transition",
    "eip1283_transition": "eip1283Transition",
    "eip1283_disable_transition": "eip1283DisableTransition",
    "eip1283_reenable_transition": "eip1283ReenableTransition",
    "eip1344_transition": "eip1344Transition",
    "eip1884_transition": "eip1884Transition",
    "eip2028_transition": "eip2028Transition",
}


@dataclass
class ParityParams:
    account_start_nonce: int = 0
    maximum_extra_data_size: int = 0
    min_gas_limit: int = 0
    gas_limit_bound_divisor: int = 0
    network_id: int = 0
    chain_id: int = 0
    max_code_size: int = 0
    max_code_size_transition: int = 0
    eip98_transition: int | None = None
    eip150_transition: int | None = None
    eip160_transition: int | None = None
    eip161abc_transition: int | None = None
    eip161d_transition: int | None = None
    eip155_transition: int | None = None
    eip140_transition: int | None = None
    eip211_transition: int | None = None
    eip214_transition: int | None = None
    eip658_transition: int | None = None
    eip145_transition: int | None = None
    eip1014_transition: int | None = None
    eip1052_transition: int | None = None
    eip1283_transition: int | None = None
    eip1283_disable_transition: int | None = None
    eip1283_reenable_transition: int | None = None
    eip1344_transition: int | None = None
    eip1884_transition: int | None = None
    eip2028_transition: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "accountStartNonce": encode_uint64(self.account_start_nonce),
            "maximumExtraDataSize": encode_uint64(self.maximum_extra_data_size),
            "minGasLimit": encode_uint64(self.min_gas_limit),
            "gasLimitBoundDivisor": encode_uint64(self.gas_limit_bound_divisor),
            "networkID": encode_uint64(self.network_id),
            "chainID": encode_uint64(self.chain_id),
            "maxCodeSize": encode_uint64(self.max_code_size),
            "maxCodeSizeTransition": encode_uint64(self.max_code_size_transition),
        }
        for attr, key in TRANSITION_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = encode_uint64(value)
        return data


@dataclass
class ParityGenesis:
    nonce: int = 0
    mix_hash: bytes = bytes(32)
    difficulty: int = 0
    author: bytes = bytes(20)
    timestamp: int = 0
    parent_hash: bytes = bytes(32)
    extra_data: bytes = b""
    gas_limit: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "seal": {
                "ethereum": {
                    "nonce": encode_nonce(self.nonce),
                    "mixHash": encode_bytes(self.mix_hash),
                }
            },
            "difficulty": encode_big(self.difficulty),
            "author": encode_address(self.author),
            "timestamp": encode_uint64(self.timestamp),
            "parentHash": encode_hash(self.parent_hash),
            "extraData": encode_bytes(self.extra_data),
            "gasLimit": encode_uint64(self.gas_limit),
        }


@dataclass
class ParitySpec:
    name: str = ""
    data_dir: str = ""
    ethash: EthashParams = field(default_factory=EthashParams)
    params: ParityParams = field(default_factory=ParityParams)
    genesis: ParityGenesis = field(default_factory=ParityGenesis)
    nodes: list[str] = field(default_factory=list)
    accounts: dict[str, ParityAccount] = field(default_factory=dict)

    def set_byzantium(self, block: int, params: ProtocolParams) -> None:
        self.ethash.block_reward[block] = params.byzantium_block_reward
        self.ethash.difficulty_bomb_delays[block] = params.byzantium_bomb_delay
        self.ethash.eip100b_transition = block
        self.params.eip140_transition = block
        self.params.eip211_transition = block
        self.params.eip214_transition = block
        self.params.eip658_transition = block

    def set_constantinople(self, block: int, params: ProtocolParams) -> None:
        self.ethash.block_reward[block] = params.constantinople_block_reward
        self.ethash.difficulty_bomb_delays[block] = params.constantinople_bomb_delay
        self.params.eip145_transition = block
        self.params.eip1014_transition = block
        self.params.eip1052_transition = block
        self.params.eip1283_transition = block

    def set_constantinople_fix(self, block: int) -> None:
        # petersburg drops EIP-1283 net gas metering again
        self.params.eip1283_disable_transition = block

    def set_istanbul(self, block: int) -> None:
        self.params.eip1344_transition = block
        self.params.eip1884_transition = block
        self.params.eip2028_transition = block
        self.params.eip1283_reenable_transition = block

    def set_precompiles(self, registry: PrecompileRegistry[ParityBuiltin]) -> None:
        for address, builtin in registry.items():
            account = self.accounts.setdefault(encode_address(address), ParityAccount())
            account.builtin = builtin

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "dataDir": self.data_dir,
            "engine": {"Ethash": {"params": self.ethash.to_dict()}},
            "params": self.params.to_dict(),
            "genesis": self.genesis.to_dict(),
            "nodes": list(self.nodes),
            "accounts": {address: self.accounts[address].to_dict() for address in sorted(self.accounts)},
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def _const_operation_table(istanbul: int, before: int, after: int) -> PricingTable:
    return {
        0: ParityVersionedPricing(
            price=ParityAlternativePrice(alt_bn128_const_operations=AltBnConstOperationPricing(price=before))
        ),
        istanbul: ParityVersionedPricing(
            price=ParityAlternativePrice(alt_bn128_const_operations=AltBnConstOperationPricing(price=after))
        ),
    }


def _pairing_table(istanbul: int, before: AltBnPairingPricing, after: AltBnPairingPricing) -> PricingTable:
    return {
        0: ParityVersionedPricing(price=ParityAlternativePrice(alt_bn128_pairing=before)),
        istanbul: ParityVersionedPricing(price=ParityAlternativePrice(alt_bn128_pairing=after)),
    }


def new_parity_spec(
    network: str,
    genesis: Genesis,
    bootnodes: list[str] | None = None,
    params: ProtocolParams = PARAMS,
) -> ParitySpec:
    if not is_ethash(genesis):
        raise UnsupportedConsensusEngine(genesis.config.engine)

    forks = ForkSchedule.from_genesis(genesis)
    check_dependencies(forks)
    config = genesis.config

    spec = ParitySpec(name=network, data_dir=network.lower(), nodes=list(bootnodes or []))

    # Frontier
    spec.ethash.minimum_difficulty = params.minimum_difficulty
    spec.ethash.difficulty_bound_divisor = params.difficulty_bound_divisor
    spec.ethash.duration_limit = params.duration_limit
    spec.ethash.block_reward[0] = params.frontier_block_reward
    spec.ethash.difficulty_bomb_delays[0] = 0

    # Homestead
    spec.ethash.homestead_transition = forks.block("homestead")

    # Tangerine Whistle: EIP-150
    spec.params.eip150_transition = forks.block("eip150")

    # Spurious Dragon: EIP-155, 160, 161
    spec.params.eip155_transition = forks.block("eip155")
    spec.params.eip160_transition = forks.block("eip155")
    spec.params.eip161abc_transition = forks.block("eip158")
    spec.params.eip161d_transition = forks.block("eip158")

    byzantium = forks.block("byzantium")
    if byzantium is not None:
        spec.set_byzantium(byzantium, params)
    constantinople = forks.block("constantinople")
    if constantinople is not None:
        spec.set_constantinople(constantinople, params)
    petersburg = forks.block("petersburg")
    if petersburg is not None:
        spec.set_constantinople_fix(petersburg)
    istanbul = forks.block("istanbul")
    if istanbul is not None:
        spec.set_istanbul(istanbul)

    spec.params.account_start_nonce = 0
    spec.params.maximum_extra_data_size = params.maximum_extra_data_size
    spec.params.min_gas_limit = params.min_gas_limit
    spec.params.gas_limit_bound_divisor = params.gas_limit_bound_divisor
    spec.params.network_id = genesis.effective_network_id
    spec.params.chain_id = config.chain_id
    spec.params.max_code_size = params.max_code_size
    # geth enforces the code size cap from genesis
    spec.params.max_code_size_transition = 0
    # EIP-98 (intermediate state roots) is never enabled; parity expects the
    # explicit max block number rather than a missing field.
    spec.params.eip98_transition = params.max_block_number

    spec.genesis = ParityGenesis(
        nonce=genesis.nonce,
        mix_hash=genesis.mix_hash,
        difficulty=genesis.difficulty,
        author=genesis.coinbase,
        timestamp=genesis.timestamp,
        parent_hash=genesis.parent_hash,
        extra_data=genesis.extra_data,
        gas_limit=genesis.gas_limit,
    )

    for address, account in genesis.sorted_alloc():
        spec.accounts[encode_address(address)] = ParityAccount(balance=account.balance, nonce=account.nonce)

    builtins: PrecompileRegistry[ParityBuiltin] = PrecompileRegistry()
    builtins.upsert(1, ParityBuiltin("ecrecover", ParityPricing(linear=LinearPricing(base=3000))))
    builtins.upsert(2, ParityBuiltin("sha256", ParityPricing(linear=LinearPricing(base=60, word=12))))
    builtins.upsert(3, ParityBuiltin("ripemd160", ParityPricing(linear=LinearPricing(base=600, word=120))))
    builtins.upsert(4, ParityBuiltin("identity", ParityPricing(linear=LinearPricing(base=15, word=3))))

    if byzantium is not None:
        logger.debug("parity: adding byzantium builtins at block %d", byzantium)
        builtins.upsert(5, ParityBuiltin("modexp", ParityPricing(modexp=ModExpPricing(divisor=20)), byzantium))
        builtins.upsert(
            6, ParityBuiltin("alt_bn128_add", ParityPricing(linear=LinearPricing(base=500)), byzantium)
        )
        builtins.upsert(
            7, ParityBuiltin("alt_bn128_mul", ParityPricing(linear=LinearPricing(base=40000)), byzantium)
        )
        builtins.upsert(
            8,
            ParityBuiltin(
                "alt_bn128_pairing",
                ParityPricing(alt_bn128_pairing=AltBnPairingPricing(base=100000, pair=80000)),
                byzantium,
            ),
        )

    if istanbul is not None:
        logger.debug("parity: repricing bn128 builtins at block %d", istanbul)
        builtins.upsert(
            6, ParityBuiltin("alt_bn128_add", _const_operation_table(istanbul, 500, 150), byzantium)
        )
        builtins.upsert(
            7, ParityBuiltin("alt_bn128_mul", _const_operation_table(istanbul, 40000, 6000), byzantium)
        )
        builtins.upsert(
            8,
            ParityBuiltin(
                "alt_bn128_pairing",
                _pairing_table(
                    istanbul,
                    AltBnPairingPricing(base=100000, pair=80000),
                    AltBnPairingPricing(base=45000, pair=34000),
                ),
                byzantium,
            ),
        )
        builtins.upsert(9, ParityBuiltin("blake2_f", ParityPricing(blake2_f=Blake2FPricing(gas_per_round=1)), istanbul))

    spec.set_precompiles(builtins)
    return spec
