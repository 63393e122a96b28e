from dataclasses import dataclass

ETHER = 10**18


@dataclass(frozen=True)
class ProtocolParams:
    # Header limits shared by every ethash client.
    maximum_extra_data_size: int = 32
    min_gas_limit: int = 5_000
    gas_limit_bound_divisor: int = 1_024
    # Code size cap introduced by EIP-170 (spurious dragon).
    max_code_size: int = 24_576
    # Difficulty adjustment.
    minimum_difficulty: int = 131_072
    difficulty_bound_divisor: int = 2_048
    duration_limit: int = 13
    # Block reward per era, in wei.
    frontier_block_reward: int = 5 * ETHER
    byzantium_block_reward: int = 3 * ETHER
    constantinople_block_reward: int = 2 * ETHER
    # Difficulty bomb delay per era, in blocks.
    byzantium_bomb_delay: int = 3_000_000
    constantinople_bomb_delay: int = 2_000_000
    # Largest block number a signed 64-bit client field can hold.
    # Used both as the aleth gas limit cap and as parity's "never active" marker.
    max_block_number: int = 2**63 - 1


PARAMS = ProtocolParams()
