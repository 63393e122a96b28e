from __future__ import annotations

import unittest
from dataclasses import replace

from chainspec.errors import InvalidForkDependency, UnsupportedConsensusEngine
from chainspec.models import ChainConfig, Genesis, GenesisAccount
from chainspec.parity import new_parity_spec


ADDR_ONE = "0x0000000000000000000000000000000000000001"
BOOTNODE = "enode://" + "ab" * 64 + "@127.0.0.1:30303"


def _addr(number: int) -> str:
    return "0x" + "00" * 19 + f"{number:02x}"


def _genesis(**forks: int | None) -> Genesis:
    return Genesis(
        config=ChainConfig(chain_id=1234, **forks),
        nonce=0x42,
        mix_hash=b"\x11" * 32,
        gas_limit=4_700_000,
        difficulty=0x80000,
        alloc={bytes(19) + b"\x01": GenesisAccount(balance=100, nonce=2)},
    )


MAINNET_LIKE = dict(
    homestead_block=0,
    eip150_block=1,
    eip155_block=2,
    eip158_block=3,
    byzantium_block=10,
    constantinople_block=15,
    petersburg_block=16,
    istanbul_block=20,
)


class ParitySpecTest(unittest.TestCase):
    def test_document_header(self) -> None:
        spec = new_parity_spec("Testnet", _genesis(), [BOOTNODE])
        data = spec.to_dict()
        self.assertEqual(data["name"], "Testnet")
        self.assertEqual(data["dataDir"], "testnet")
        self.assertEqual(data["nodes"], [BOOTNODE])
        self.assertEqual(new_parity_spec("x", _genesis()).to_dict()["nodes"], [])
        self.assertEqual(
            data["genesis"]["seal"],
            {"ethereum": {"nonce": "0x0000000000000042", "mixHash": "0x" + "11" * 32}},
        )

    def test_no_forks_only_unconditional_builtins(self) -> None:
        spec = new_parity_spec("test", _genesis())
        names = {addr: acc.builtin.name for addr, acc in spec.accounts.items() if acc.builtin}
        self.assertEqual(names, {_addr(1): "ecrecover", _addr(2): "sha256", _addr(3): "ripemd160", _addr(4): "identity"})

        data = spec.to_dict()
        ethash = data["engine"]["Ethash"]["params"]
        self.assertEqual(ethash["blockReward"], {"0x0": "0x4563918244f40000"})
        self.assertEqual(ethash["difficultyBombDelays"], {"0x0": "0x0"})
        self.assertNotIn("homesteadTransition", ethash)
        self.assertNotIn("eip100bTransition", ethash)
        params = data["params"]
        self.assertEqual(params["eip98Transition"], "0x7fffffffffffffff")
        self.assertEqual(params["maxCodeSizeTransition"], "0x0")
        self.assertEqual(params["maxCodeSize"], "0x6000")
        for key in ("eip150Transition", "eip140Transition", "eip1344Transition"):
            self.assertNotIn(key, params)

    def test_transition_fields_follow_fork_groups(self) -> None:
        data = new_parity_spec("test", _genesis(**MAINNET_LIKE)).to_dict()
        ethash = data["engine"]["Ethash"]["params"]
        params = data["params"]

        self.assertEqual(ethash["homesteadTransition"], "0x0")
        self.assertEqual(params["eip150Transition"], "0x1")
        self.assertEqual(params["eip155Transition"], "0x2")
        self.assertEqual(params["eip160Transition"], "0x2")
        self.assertEqual(params["eip161abcTransition"], "0x3")
        self.assertEqual(params["eip161dTransition"], "0x3")
        self.assertEqual(ethash["eip100bTransition"], "0xa")
        for key in ("eip140Transition", "eip211Transition", "eip214Transition", "eip658Transition"):
            self.assertEqual(params[key], "0xa")
        for key in ("eip145Transition", "eip1014Transition", "eip1052Transition", "eip1283Transition"):
            self.assertEqual(params[key], "0xf")
        self.assertEqual(params["eip1283DisableTransition"], "0x10")
        for key in ("eip1283ReenableTransition", "eip1344Transition", "eip1884Transition", "eip2028Transition"):
            self.assertEqual(params[key], "0x14")
        # Never active regardless of the schedule.
        self.assertEqual(params["eip98Transition"], "0x7fffffffffffffff")

    def test_reward_and_bomb_delay_schedules(self) -> None:
        ethash = new_parity_spec("test", _genesis(**MAINNET_LIKE)).to_dict()["engine"]["Ethash"]["params"]
        self.assertEqual(
            ethash["blockReward"],
            {"0x0": "0x4563918244f40000", "0xa": "0x29a2241af62c0000", "0xf": "0x1bc16d674ec80000"},
        )
        self.assertEqual(ethash["difficultyBombDelays"], {"0x0": "0x0", "0xa": "0x2dc6c0", "0xf": "0x1e8480"})
        self.assertEqual(ethash["minimumDifficulty"], "0x20000")
        self.assertEqual(ethash["difficultyBoundDivisor"], "0x800")
        self.assertEqual(ethash["durationLimit"], "0xd")

    def test_byzantium_builtins(self) -> None:
        accounts = new_parity_spec("test", _genesis(byzantium_block=10)).to_dict()["accounts"]
        self.assertEqual(
            accounts[_addr(5)],
            {"balance": "0x0", "builtin": {"name": "modexp", "pricing": {"modexp": {"divisor": 20}}, "activate_at": "0xa"}},
        )
        self.assertEqual(
            accounts[_addr(6)]["builtin"],
            {"name": "alt_bn128_add", "pricing": {"linear": {"base": 500, "word": 0}}, "activate_at": "0xa"},
        )
        self.assertEqual(
            accounts[_addr(8)]["builtin"]["pricing"],
            {"alt_bn128_pairing": {"base": 100000, "pair": 80000}},
        )
        self.assertNotIn(_addr(9), accounts)

    def test_istanbul_uses_versioned_pricing_tables(self) -> None:
        accounts = new_parity_spec("test", _genesis(byzantium_block=10, istanbul_block=20)).to_dict()["accounts"]
        self.assertEqual(
            accounts[_addr(6)]["builtin"],
            {
                "name": "alt_bn128_add",
                "pricing": {
                    "0x0": {"price": {"alt_bn128_const_operations": {"price": 500}}},
                    "0x14": {"price": {"alt_bn128_const_operations": {"price": 150}}},
                },
                "activate_at": "0xa",
            },
        )
        self.assertEqual(
            accounts[_addr(7)]["builtin"]["pricing"],
            {
                "0x0": {"price": {"alt_bn128_const_operations": {"price": 40000}}},
                "0x14": {"price": {"alt_bn128_const_operations": {"price": 6000}}},
            },
        )
        self.assertEqual(
            accounts[_addr(8)]["builtin"]["pricing"],
            {
                "0x0": {"price": {"alt_bn128_pairing": {"base": 100000, "pair": 80000}}},
                "0x14": {"price": {"alt_bn128_pairing": {"base": 45000, "pair": 34000}}},
            },
        )
        self.assertEqual(
            accounts[_addr(9)]["builtin"],
            {"name": "blake2_f", "pricing": {"blake2_f": {"gas_per_round": 1}}, "activate_at": "0x14"},
        )

    def test_accounts_keep_balance_and_nonce(self) -> None:
        account = new_parity_spec("test", _genesis()).to_dict()["accounts"][ADDR_ONE]
        self.assertEqual(account["balance"], "0x64")
        self.assertEqual(account["nonce"], "0x2")
        self.assertEqual(account["builtin"]["name"], "ecrecover")

    def test_istanbul_without_byzantium_fails(self) -> None:
        with self.assertRaisesRegex(InvalidForkDependency, "istanbul"):
            new_parity_spec("test", _genesis(istanbul_block=20))

    def test_unsupported_engine(self) -> None:
        genesis = replace(_genesis(), config=ChainConfig(chain_id=1234, engine="clique"))
        with self.assertRaises(UnsupportedConsensusEngine):
            new_parity_spec("test", genesis)

    def test_repeated_builds_are_identical(self) -> None:
        genesis = _genesis(**MAINNET_LIKE)
        self.assertEqual(
            new_parity_spec("test", genesis, [BOOTNODE]).to_json(),
            new_parity_spec("test", genesis, [BOOTNODE]).to_json(),
        )


if __name__ == "__main__":
    unittest.main()
