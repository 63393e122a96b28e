from __future__ import annotations

from typing import Iterator

from .encoding import MAX_UINT64
from .errors import GenesisFormatError, InvalidForkDependency
from .models import FORK_JSON_KEYS, Genesis

FORK_NAMES: tuple[str, ...] = tuple(FORK_JSON_KEYS)

# fork -> prerequisite fork that must be scheduled whenever the fork is.
FORK_DEPENDENCIES: dict[str, str] = {
    "istanbul": "byzantium",
}


class ForkSchedule:
    def __init__(self, blocks: dict[str, int | None]):
        unknown = set(blocks) - set(FORK_NAMES)
        if unknown:
            raise KeyError(f"Unknown fork name(s): {', '.join(sorted(unknown))}")
        for name, number in blocks.items():
            # Every client stores fork blocks as uint64.
            if number is not None and (number < 0 or number > MAX_UINT64):
                raise GenesisFormatError(f"Fork block for '{name}' out of uint64 range: {number}")
        self._blocks = {name: blocks.get(name) for name in FORK_NAMES}

    @classmethod
    def from_genesis(cls, genesis: Genesis) -> "ForkSchedule":
        config = genesis.config
        return cls({name: getattr(config, f"{name}_block") for name in FORK_NAMES})

    def block(self, name: str) -> int | None:
        if name not in self._blocks:
            raise KeyError(f"Unknown fork name: {name}")
        return self._blocks[name]

    def is_active(self, name: str) -> bool:
        return self.block(name) is not None

    def active(self) -> Iterator[tuple[str, int]]:
        for name in FORK_NAMES:
            number = self._blocks[name]
            if number is not None:
                yield name, number

    def activations(self) -> dict[str, int]:
        return dict(self.active())

    def to_dict(self) -> dict[str, int | None]:
        return dict(self._blocks)


def check_dependencies(schedule: ForkSchedule) -> None:
    for fork, requires in FORK_DEPENDENCIES.items():
        if schedule.is_active(fork) and not schedule.is_active(requires):
            raise InvalidForkDependency(fork, requires)
