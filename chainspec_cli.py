from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from chainspec.errors import ChainSpecError, GenesisFormatError
from chainspec.export import DIALECTS, build_spec, write_json_file, write_specs
from chainspec.forks import ForkSchedule
from chainspec.models import Genesis


def _read_genesis_file(path: str | Path, network_id: int | None = None) -> Genesis:
    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except Exception as exc:
        raise GenesisFormatError(f"Failed to read genesis file '{source}': {exc}") from exc
    return Genesis.from_dict(data, network_id=network_id)


def _network_name(args: argparse.Namespace) -> str:
    network = str(getattr(args, "network", "") or "").strip()
    if network:
        return network
    return Path(args.genesis).stem


def cmd_convert(args: argparse.Namespace) -> None:
    genesis = _read_genesis_file(args.genesis, network_id=args.network_id)
    spec = build_spec(args.format, _network_name(args), genesis, args.bootnode)
    if args.out:
        write_json_file(args.out, spec.to_dict())
        print(f"Wrote {args.format} chain spec to {args.out}")
    else:
        print(spec.to_json())


def cmd_export(args: argparse.Namespace) -> None:
    genesis = _read_genesis_file(args.genesis, network_id=args.network_id)
    result = write_specs(args.out_dir, _network_name(args), genesis, args.bootnode)
    for name, path in result.paths.items():
        print(f"{name}: {path}")
    for dialect, exc in result.errors.items():
        print(f"{dialect}: skipped ({exc})")
    if not result.ok:
        raise SystemExit(1)


def cmd_forks(args: argparse.Namespace) -> None:
    genesis = _read_genesis_file(args.genesis)
    schedule = ForkSchedule.from_genesis(genesis)
    print(json.dumps(schedule.to_dict(), indent=2))


def _add_genesis_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--genesis", required=True, help="go-ethereum genesis JSON file")
    parser.add_argument("--network", help="Network name (defaults to the genesis file name)")
    parser.add_argument("--network-id", type=int, help="Network id (defaults to the chain id)")
    parser.add_argument("--bootnode", action="append", default=[], help="Bootnode enode URL for parity (repeatable)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert a genesis into client chain specifications")
    parser.add_argument("--verbose", action="store_true", help="Log builder progress to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Build one client chain spec")
    _add_genesis_args(convert)
    convert.add_argument("--format", choices=DIALECTS, required=True, help="Target client dialect")
    convert.add_argument("--out", help="Output file (prints to stdout when omitted)")
    convert.set_defaults(func=cmd_convert)

    export = subparsers.add_parser("export", help="Write the genesis and every client chain spec")
    _add_genesis_args(export)
    export.add_argument("--out-dir", default=".", help="Output directory")
    export.set_defaults(func=cmd_export)

    forks = subparsers.add_parser("forks", help="Show the resolved fork schedule")
    forks.add_argument("--genesis", required=True, help="go-ethereum genesis JSON file")
    forks.set_defaults(func=cmd_forks)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose and not logging.getLogger().handlers:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        args.func(args)
    except ChainSpecError as exc:
        print(f"Validation error: {exc}")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
