from dataclasses import dataclass
from enum import Enum


class Environment(Enum):
    DEV = "DEV"
    TEST = "TEST"
    PROD = "PROD"


@dataclass(frozen=True)
class RuntimeProfile:
    """
    Configuration profile for the runtime environment.
    Controls invariant enforcement and event publication.
    Does NOT affect pricing, whitelist or binding semantics.
    """
    env: Environment

    # Re-check escrow conservation after every registry mutation (O(n) per call)
    enforce_invariants: bool = True
    structured_logging: bool = True
    persist_events: bool = False

    @classmethod
    def dev(cls) -> 'RuntimeProfile':
        return cls(
            env=Environment.DEV,
            enforce_invariants=True,
            structured_logging=True,
            persist_events=True
        )

    @classmethod
    def test(cls) -> 'RuntimeProfile':
        return cls(
            env=Environment.TEST,
            enforce_invariants=True,
            structured_logging=False,
            persist_events=False
        )

    @classmethod
    def prod(cls) -> 'RuntimeProfile':
        return cls(
            env=Environment.PROD,
            enforce_invariants=False,
            structured_logging=True,
            persist_events=True
        )
