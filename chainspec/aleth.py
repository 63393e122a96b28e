from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from .config import PARAMS, ProtocolParams
from .encoding import encode_address, encode_big, encode_bytes, encode_hash, encode_nonce, encode_uint64
from .errors import UnsupportedConsensusEngine
from .forks import ForkSchedule, check_dependencies
from .models import Genesis, is_ethash
from .precompiles import PrecompileRegistry

logger = logging.getLogger(__name__)

SEAL_ENGINE = "Ethash"
# aleth keeps syncing with ETC peers up to the real DAO block, so the fork is
# always declared at genesis whatever the canonical config says.
DAO_HARDFORK_BLOCK = 0


@dataclass
class AlethLinearPricing:
    base: int
    word: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"base": self.base, "word": self.word}


@dataclass
class AlethBuiltin:
    name: str
    starting_block: int | None = None
    linear: AlethLinearPricing | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.name:
            data["name"] = self.name
        if self.starting_block is not None:
            data["startingBlock"] = encode_big(self.starting_block)
        if self.linear is not None:
            data["linear"] = self.linear.to_dict()
        return data


@dataclass
class AlethAccount:
    balance: int | None = None
    nonce: int = 0
    precompiled: AlethBuiltin | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.balance is not None:
            data["balance"] = encode_big(self.balance)
        if self.nonce:
            data["nonce"] = self.nonce
        if self.precompiled is not None:
            data["precompiled"] = self.precompiled.to_dict()
        return data


@dataclass
class AlethParams:
    account_start_nonce: int = 0
    maximum_extra_data_size: int = 0
    homestead_fork_block: int | None = None
    dao_hardfork_block: int = DAO_HARDFORK_BLOCK
    eip150_fork_block: int | None = None
    eip158_fork_block: int | None = None
    byzantium_fork_block: int | None = None
    constantinople_fork_block: int | None = None
    constantinople_fix_fork_block: int | None = None
    istanbul_fork_block: int | None = None
    min_gas_limit: int = 0
    max_gas_limit: int = 0
    tie_breaking_gas: bool = False
    gas_limit_bound_divisor: int = 0
    minimum_difficulty: int = 0
    difficulty_bound_divisor: int = 0
    duration_limit: int = 0
    block_reward: int = 0
    network_id: int = 0
    chain_id: int = 0
    allow_future_blocks: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "accountStartNonce": encode_uint64(self.account_start_nonce),
            "maximumExtraDataSize": encode_uint64(self.maximum_extra_data_size),
        }
        if self.homestead_fork_block is not None:
            data["homesteadForkBlock"] = encode_big(self.homestead_fork_block)
        data["daoHardforkBlock"] = encode_uint64(self.dao_hardfork_block)
        optional_forks = (
            ("EIP150ForkBlock", self.eip150_fork_block),
            ("EIP158ForkBlock", self.eip158_fork_block),
            ("byzantiumForkBlock", self.byzantium_fork_block),
            ("constantinopleForkBlock", self.constantinople_fork_block),
            ("constantinopleFixForkBlock", self.constantinople_fix_fork_block),
            ("istanbulForkBlock", self.istanbul_fork_block),
        )
        for key, value in optional_forks:
            if value is not None:
                data[key] = encode_big(value)
        data.update(
            {
                "minGasLimit": encode_uint64(self.min_gas_limit),
                "maxGasLimit": encode_uint64(self.max_gas_limit),
                "tieBreakingGas": self.tie_breaking_gas,
                "gasLimitBoundDivisor": encode_uint64(self.gas_limit_bound_divisor),
                "minimumDifficulty": encode_big(self.minimum_difficulty),
                "difficultyBoundDivisor": encode_big(self.difficulty_bound_divisor),
                "durationLimit": encode_big(self.duration_limit),
                "blockReward": encode_big(self.block_reward),
                "networkID": encode_uint64(self.network_id),
                "chainID": encode_uint64(self.chain_id),
                "allowFutureBlocks": self.allow_future_blocks,
            }
        )
        return data


@dataclass
class AlethGenesis:
    nonce: int = 0
    difficulty: int = 0
    mix_hash: bytes = bytes(32)
    author: bytes = bytes(20)
    timestamp: int = 0
    parent_hash: bytes = bytes(32)
    extra_data: bytes = b""
    gas_limit: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "nonce": encode_nonce(self.nonce),
            "difficulty": encode_big(self.difficulty),
            "mixHash": encode_hash(self.mix_hash),
            "author": encode_address(self.author),
            "timestamp": encode_uint64(self.timestamp),
            "parentHash": encode_hash(self.parent_hash),
            "extraData": encode_bytes(self.extra_data),
            "gasLimit": encode_uint64(self.gas_limit),
        }


@dataclass
class AlethSpec:
    seal_engine: str = SEAL_ENGINE
    params: AlethParams = field(default_factory=AlethParams)
    genesis: AlethGenesis = field(default_factory=AlethGenesis)
    accounts: dict[str, AlethAccount] = field(default_factory=dict)

    def set_account(self, address: bytes, balance: int, nonce: int) -> None:
        account = self.accounts.setdefault(encode_address(address), AlethAccount())
        account.balance = balance
        account.nonce = nonce

    def set_precompiles(self, registry: PrecompileRegistry[AlethBuiltin]) -> None:
        for address, builtin in registry.items():
            account = self.accounts.setdefault(encode_address(address), AlethAccount())
            account.precompiled = builtin

    def to_dict(self) -> dict[str, Any]:
        return {
            "sealEngine": self.seal_engine,
            "params": self.params.to_dict(),
            "genesis": self.genesis.to_dict(),
            "accounts": {address: self.accounts[address].to_dict() for address in sorted(self.accounts)},
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def new_aleth_spec(genesis: Genesis, params: ProtocolParams = PARAMS) -> AlethSpec:
    if not is_ethash(genesis):
        raise UnsupportedConsensusEngine(genesis.config.engine)

    forks = ForkSchedule.from_genesis(genesis)
    check_dependencies(forks)
    config = genesis.config

    spec = AlethSpec()
    spec.params = AlethParams(
        account_start_nonce=0,
        maximum_extra_data_size=params.maximum_extra_data_size,
        homestead_fork_block=forks.block("homestead"),
        dao_hardfork_block=DAO_HARDFORK_BLOCK,
        eip150_fork_block=forks.block("eip150"),
        eip158_fork_block=forks.block("eip158"),
        byzantium_fork_block=forks.block("byzantium"),
        constantinople_fork_block=forks.block("constantinople"),
        constantinople_fix_fork_block=forks.block("petersburg"),
        istanbul_fork_block=forks.block("istanbul"),
        min_gas_limit=params.min_gas_limit,
        max_gas_limit=params.max_block_number,
        tie_breaking_gas=False,
        gas_limit_bound_divisor=params.gas_limit_bound_divisor,
        minimum_difficulty=params.minimum_difficulty,
        difficulty_bound_divisor=params.difficulty_bound_divisor,
        duration_limit=params.duration_limit,
        block_reward=params.frontier_block_reward,
        network_id=genesis.effective_network_id,
        chain_id=config.chain_id,
        allow_future_blocks=False,
    )
    spec.genesis = AlethGenesis(
        nonce=genesis.nonce,
        difficulty=genesis.difficulty,
        mix_hash=genesis.mix_hash,
        author=genesis.coinbase,
        timestamp=genesis.timestamp,
        parent_hash=genesis.parent_hash,
        extra_data=genesis.extra_data,
        gas_limit=genesis.gas_limit,
    )

    for address, account in genesis.sorted_alloc():
        spec.set_account(address, account.balance, account.nonce)

    builtins: PrecompileRegistry[AlethBuiltin] = PrecompileRegistry()
    builtins.upsert(1, AlethBuiltin("ecrecover", linear=AlethLinearPricing(base=3000)))
    builtins.upsert(2, AlethBuiltin("sha256", linear=AlethLinearPricing(base=60, word=12)))
    builtins.upsert(3, AlethBuiltin("ripemd160", linear=AlethLinearPricing(base=600, word=120)))
    builtins.upsert(4, AlethBuiltin("identity", linear=AlethLinearPricing(base=15, word=3)))

    byzantium = forks.block("byzantium")
    if byzantium is not None:
        logger.debug("aleth: adding byzantium builtins at block %d", byzantium)
        builtins.upsert(5, AlethBuiltin("modexp", starting_block=byzantium))
        builtins.upsert(
            6, AlethBuiltin("alt_bn128_G1_add", starting_block=byzantium, linear=AlethLinearPricing(base=500))
        )
        builtins.upsert(
            7, AlethBuiltin("alt_bn128_G1_mul", starting_block=byzantium, linear=AlethLinearPricing(base=40000))
        )
        builtins.upsert(8, AlethBuiltin("alt_bn128_pairing_product", starting_block=byzantium))

    istanbul = forks.block("istanbul")
    if istanbul is not None:
        logger.debug("aleth: adding istanbul builtins at block %d", istanbul)
        # aleth hardcodes the istanbul gas policy for the bn128 curve ops.
        builtins.upsert(6, AlethBuiltin("alt_bn128_G1_add", starting_block=byzantium))
        builtins.upsert(7, AlethBuiltin("alt_bn128_G1_mul", starting_block=byzantium))
        builtins.upsert(9, AlethBuiltin("blake2_compression", starting_block=istanbul))

    spec.set_precompiles(builtins)
    return spec
