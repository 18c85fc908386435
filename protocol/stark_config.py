"""STARK protocol configuration."""

import json
from dataclasses import dataclass
from typing import Tuple

import galois

from constraints import CONSTRAINT_REGISTRY
from primitives.errors import InvalidDomainSize
from primitives.field import DEFAULT_OFFSET, GOLDILOCKS_PRIME
from primitives.merkle_tree import check_hash_name


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True)
class StarkConfig:
    """Immutable protocol parameters, shared read-only by every session.

    Attributes:
        prime: Field modulus p
        trace_length: Number of trace rows n (power of two)
        blowup: Extension factor; the committed domain has n * blowup points
        offset: Coset offset defining S = offset * H'
        n_queries: Number of spot-check repetitions k
        constraints: Registry names of the transition relations to enforce
        hash_name: hashlib algorithm for Merkle nodes and the transcript
        pow_bits: Proof-of-work bits required before queries are drawn
    """

    prime: int = GOLDILOCKS_PRIME
    trace_length: int = 4
    blowup: int = 4
    offset: int = DEFAULT_OFFSET
    n_queries: int = 8
    constraints: Tuple[str, ...] = ("square",)
    hash_name: str = "sha256"
    pow_bits: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "constraints", tuple(self.constraints))

        if not galois.is_prime(self.prime):
            raise InvalidDomainSize(f"Field modulus {self.prime} is not prime")
        if not _is_power_of_two(self.trace_length) or self.trace_length < 2:
            raise InvalidDomainSize(
                f"Trace length must be a power of 2 and >= 2, got {self.trace_length}"
            )
        if not _is_power_of_two(self.blowup) or self.blowup < 2:
            raise InvalidDomainSize(
                f"Blowup must be a power of 2 and >= 2, got {self.blowup}"
            )
        if (self.prime - 1) % self.extended_size != 0:
            raise InvalidDomainSize(
                f"Extended domain size {self.extended_size} does not divide p - 1"
            )
        if self.offset % self.prime == 0:
            raise InvalidDomainSize("Coset offset must be non-zero")
        if self.n_queries < 1:
            raise InvalidDomainSize(f"n_queries must be >= 1, got {self.n_queries}")
        if not 0 <= self.pow_bits <= 32:
            raise InvalidDomainSize(f"pow_bits must be in [0, 32], got {self.pow_bits}")
        if not self.constraints:
            raise InvalidDomainSize("At least one constraint is required")
        unknown = [c for c in self.constraints if c not in CONSTRAINT_REGISTRY]
        if unknown:
            raise InvalidDomainSize(f"Unknown constraints: {unknown}")
        try:
            check_hash_name(self.hash_name)
        except ValueError as e:
            raise InvalidDomainSize(str(e)) from e

    # --- Derived Sizes ---

    @property
    def n_bits(self) -> int:
        return self.trace_length.bit_length() - 1

    @property
    def extended_size(self) -> int:
        return self.trace_length * self.blowup

    @property
    def n_bits_ext(self) -> int:
        return self.extended_size.bit_length() - 1

    # --- Loading ---

    @classmethod
    def from_dict(cls, j: dict) -> "StarkConfig":
        """Build from a parsed configuration file.

        Keys: prime, nBits, blowupBits, offset, nQueries, constraints,
        hashName, powBits. Missing keys take the defaults.
        """
        defaults = cls.__dataclass_fields__
        return cls(
            prime=int(j.get("prime", defaults["prime"].default)),
            trace_length=1 << j["nBits"] if "nBits" in j else defaults["trace_length"].default,
            blowup=1 << j["blowupBits"] if "blowupBits" in j else defaults["blowup"].default,
            offset=int(j.get("offset", defaults["offset"].default)),
            n_queries=j.get("nQueries", defaults["n_queries"].default),
            constraints=tuple(j.get("constraints", defaults["constraints"].default)),
            hash_name=j.get("hashName", defaults["hash_name"].default),
            pow_bits=j.get("powBits", defaults["pow_bits"].default),
        )

    @classmethod
    def from_json(cls, path: str) -> "StarkConfig":
        """Load configuration from a JSON file."""
        with open(path) as f:
            j = json.load(f)
        return cls.from_dict(j)

    def to_dict(self) -> dict:
        return {
            "prime": str(self.prime),
            "nBits": self.n_bits,
            "blowupBits": self.blowup.bit_length() - 1,
            "offset": str(self.offset),
            "nQueries": self.n_queries,
            "constraints": list(self.constraints),
            "hashName": self.hash_name,
            "powBits": self.pow_bits,
        }
