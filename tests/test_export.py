from __future__ import annotations

import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

import chainspec_cli
from chainspec.errors import GenesisFormatError, InvalidForkDependency
from chainspec.export import build_all, build_spec, write_specs
from chainspec.models import ChainConfig, Genesis, GenesisAccount


FULL_GENESIS_JSON = {
    "config": {
        "chainId": 1234,
        "homesteadBlock": 0,
        "daoForkBlock": 0,
        "eip150Block": 0,
        "eip155Block": 0,
        "eip158Block": 0,
        "byzantiumBlock": 10,
        "constantinopleBlock": 15,
        "petersburgBlock": 15,
        "istanbulBlock": 20,
        "ethash": {},
    },
    "nonce": "0x0",
    "timestamp": "0x5c51a607",
    "extraData": "0x",
    "gasLimit": "0x47b760",
    "difficulty": "0x80000",
    "mixHash": "0x" + "00" * 32,
    "coinbase": "0x" + "00" * 20,
    "alloc": {
        "0000000000000000000000000000000000000001": {"balance": "100"},
        "71562b71999873db5b286df957af199ec94617f7": {"balance": "0xde0b6b3a7640000"},
    },
    "parentHash": "0x" + "00" * 32,
}


def _genesis(**forks: int | None) -> Genesis:
    return Genesis(
        config=ChainConfig(chain_id=1234, **forks),
        gas_limit=4_700_000,
        difficulty=1,
        alloc={bytes(19) + b"\x01": GenesisAccount(balance=100)},
    )


def _write_genesis(folder: str, genesis: Genesis) -> Path:
    path = Path(folder) / "devnet.json"
    path.write_text(json.dumps(genesis.to_dict(), indent=2), encoding="utf-8")
    return path


class ExportTest(unittest.TestCase):
    def test_build_all_isolates_dialect_failures(self) -> None:
        result = build_all("devnet", _genesis(homestead_block=0, istanbul_block=20))
        self.assertEqual(sorted(result.documents), ["pyethereum"])
        self.assertEqual(sorted(result.errors), ["aleth", "parity"])
        self.assertIsInstance(result.errors["aleth"], InvalidForkDependency)
        self.assertFalse(result.ok)

    def test_build_spec_unknown_dialect(self) -> None:
        with self.assertRaises(ValueError):
            build_spec("geth", "devnet", _genesis())

    def test_write_specs_writes_every_dialect(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            result = write_specs(td, "devnet", _genesis(byzantium_block=10, istanbul_block=20), ["enode://a@b:1"])
            self.assertTrue(result.ok)
            names = sorted(path.name for path in Path(td).iterdir())
            self.assertEqual(
                names,
                ["devnet-aleth.json", "devnet-parity.json", "devnet-pyethereum.json", "devnet.json"],
            )
            parity = json.loads((Path(td) / "devnet-parity.json").read_text(encoding="utf-8"))
            self.assertEqual(parity["nodes"], ["enode://a@b:1"])
            canonical = json.loads((Path(td) / "devnet.json").read_text(encoding="utf-8"))
            self.assertEqual(Genesis.from_dict(canonical), _genesis(byzantium_block=10, istanbul_block=20))

    def test_write_specs_skips_failed_dialects(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            result = write_specs(td, "devnet", _genesis(istanbul_block=20))
            self.assertEqual(sorted(result.paths), ["genesis", "pyethereum"])
            self.assertFalse((Path(td) / "devnet-aleth.json").exists())


    def test_every_dialect_from_geth_genesis_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            source = Path(td) / "lab.json"
            source.write_text(json.dumps(FULL_GENESIS_JSON), encoding="utf-8")
            genesis = Genesis.from_dict(json.loads(source.read_text(encoding="utf-8")))
            self.assertEqual(genesis.config.dao_block, 0)

            result = write_specs(Path(td) / "out", "lab", genesis)
            self.assertTrue(result.ok)
            aleth = json.loads(result.paths["aleth"].read_text(encoding="utf-8"))
            parity = json.loads(result.paths["parity"].read_text(encoding="utf-8"))
            pyeth = json.loads(result.paths["pyethereum"].read_text(encoding="utf-8"))

        one = "0x0000000000000000000000000000000000000001"
        self.assertEqual(aleth["params"]["constantinopleFixForkBlock"], "0xf")
        self.assertEqual(aleth["params"]["daoHardforkBlock"], "0x0")
        self.assertEqual(aleth["accounts"][one]["balance"], "0x64")
        self.assertEqual(aleth["accounts"]["0x0000000000000000000000000000000000000009"]["precompiled"]["name"], "blake2_compression")
        self.assertEqual(parity["params"]["eip1283DisableTransition"], "0xf")
        self.assertEqual(parity["params"]["eip2028Transition"], "0x14")
        self.assertEqual(parity["engine"]["Ethash"]["params"]["blockReward"]["0xf"], "0x1bc16d674ec80000")
        self.assertEqual(parity["accounts"]["0x0000000000000000000000000000000000000009"]["builtin"]["name"], "blake2_f")
        self.assertEqual(pyeth["alloc"][one], {"balance": "0x64"})
        self.assertEqual(len(pyeth["alloc"]), 2)

    def test_fork_block_beyond_uint64_is_reported_not_raised(self) -> None:
        genesis = _genesis(byzantium_block=2**64)
        result = build_all("n", genesis)
        self.assertEqual(sorted(result.errors), ["aleth", "parity"])
        self.assertIsInstance(result.errors["parity"], GenesisFormatError)

        with tempfile.TemporaryDirectory() as td:
            written = write_specs(td, "n", genesis)
            self.assertEqual(sorted(written.paths), ["genesis", "pyethereum"])
            self.assertFalse((Path(td) / "n-aleth.json").exists())
            self.assertFalse((Path(td) / "n-parity.json").exists())


class CliTest(unittest.TestCase):
    def test_convert_prints_document(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = _write_genesis(td, _genesis(byzantium_block=10))
            out = io.StringIO()
            with redirect_stdout(out):
                chainspec_cli.main(["convert", "--genesis", str(path), "--format", "parity"])
            data = json.loads(out.getvalue())
            self.assertEqual(data["name"], "devnet")
            self.assertEqual(data["params"]["eip140Transition"], "0xa")

    def test_convert_writes_output_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = _write_genesis(td, _genesis())
            target = Path(td) / "specs" / "aleth.json"
            with redirect_stdout(io.StringIO()):
                chainspec_cli.main(["convert", "--genesis", str(path), "--format", "aleth", "--out", str(target)])
            text = target.read_text(encoding="utf-8")
            self.assertTrue(text.endswith("}\n"))
            self.assertEqual(json.loads(text)["sealEngine"], "Ethash")

    def test_convert_reports_fork_dependency_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = _write_genesis(td, _genesis(istanbul_block=20))
            out = io.StringIO()
            with redirect_stdout(out), self.assertRaises(SystemExit) as ctx:
                chainspec_cli.main(["convert", "--genesis", str(path), "--format", "aleth"])
            self.assertEqual(ctx.exception.code, 1)
            self.assertIn("Validation error: invalid genesis, istanbul fork is enabled while byzantium is not", out.getvalue())

    def test_export_exit_status_on_partial_failure(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = _write_genesis(td, _genesis(istanbul_block=20))
            out_dir = Path(td) / "out"
            out = io.StringIO()
            with redirect_stdout(out), self.assertRaises(SystemExit) as ctx:
                chainspec_cli.main(["export", "--genesis", str(path), "--network", "lab", "--out-dir", str(out_dir)])
            self.assertEqual(ctx.exception.code, 1)
            self.assertTrue((out_dir / "lab-pyethereum.json").exists())
            self.assertIn("aleth: skipped", out.getvalue())

    def test_forks_command(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = _write_genesis(td, _genesis(homestead_block=0))
            out = io.StringIO()
            with redirect_stdout(out):
                chainspec_cli.main(["forks", "--genesis", str(path)])
            self.assertEqual(json.loads(out.getvalue())["homestead"], 0)

    def test_unreadable_genesis(self) -> None:
        out = io.StringIO()
        with redirect_stdout(out), self.assertRaises(SystemExit):
            chainspec_cli.main(["forks", "--genesis", "/nonexistent/genesis.json"])
        self.assertIn("Failed to read genesis file", out.getvalue())


if __name__ == "__main__":
    unittest.main()
