from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .aleth import new_aleth_spec
from .errors import ChainSpecError
from .models import Genesis
from .parity import new_parity_spec
from .pyethereum import new_pyethereum_spec

logger = logging.getLogger(__name__)

DIALECTS: tuple[str, ...] = ("aleth", "parity", "pyethereum")


@dataclass
class ExportResult:
    documents: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, ChainSpecError] = field(default_factory=dict)
    paths: dict[str, Path] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _builders(network: str, bootnodes: list[str]) -> dict[str, Callable[[Genesis], Any]]:
    return {
        "aleth": new_aleth_spec,
        "parity": lambda genesis: new_parity_spec(network, genesis, bootnodes),
        "pyethereum": new_pyethereum_spec,
    }


def build_spec(dialect: str, network: str, genesis: Genesis, bootnodes: list[str] | None = None) -> Any:
    builders = _builders(network, list(bootnodes or []))
    if dialect not in builders:
        raise ValueError(f"Unknown chain spec dialect: {dialect}")
    return builders[dialect](genesis)


def build_all(network: str, genesis: Genesis, bootnodes: list[str] | None = None) -> ExportResult:
    result = ExportResult()
    for dialect, builder in _builders(network, list(bootnodes or [])).items():
        try:
            result.documents[dialect] = builder(genesis)
        except ChainSpecError as exc:
            result.errors[dialect] = exc
    return result


def write_json_file(path: str | Path, payload: dict[str, Any]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)
        handle.write("\n")


def write_specs(
    folder: str | Path,
    network: str,
    genesis: Genesis,
    bootnodes: list[str] | None = None,
) -> ExportResult:
    target = Path(folder)
    result = build_all(network, genesis, bootnodes)

    # Serialise everything up front so an encoding failure leaves no files behind.
    payloads: dict[str, dict[str, Any]] = {"genesis": genesis.to_dict()}
    for dialect in DIALECTS:
        document = result.documents.get(dialect)
        if document is not None:
            payloads[dialect] = document.to_dict()

    for name, payload in payloads.items():
        if name == "genesis":
            path = target / f"{network}.json"
        else:
            path = target / f"{network}-{name}.json"
        write_json_file(path, payload)
        result.paths[name] = path
        logger.info("Exported %s specification to %s", name, path)
    return result
