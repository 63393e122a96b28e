from __future__ import annotations


class ChainSpecError(Exception):
    pass


class UnsupportedConsensusEngine(ChainSpecError):
    def __init__(self, engine: str | None = None):
        self.engine = engine
        super().__init__("unsupported consensus engine")


class InvalidForkDependency(ChainSpecError):
    def __init__(self, fork: str, requires: str):
        self.fork = fork
        self.requires = requires
        super().__init__(f"invalid genesis, {fork} fork is enabled while {requires} is not")


class GenesisFormatError(ChainSpecError, ValueError):
    pass
