"""Setup context: everything derived once from a StarkConfig."""

from constraints import ConstraintSystem, get_constraint_module
from primitives.batch_inverse import batch_inverse
from primitives.domain import build_domains
from primitives.errors import InvalidDomainSize
from primitives.field import get_field
from primitives.ntt import NTT
from protocol.pcs import FriPcsConfig
from protocol.stark_config import StarkConfig


class SetupCtx:
    """Immutable precomputation shared by provers and verifiers.

    - F: galois field class GF(p)
    - H, H_ext, S: trace domain, extended domain and its disjoint coset
    - s_points: the points of S in order
    - zi: 1 / Z(x) for every x in S
    - constraint_system: batched transition relations over H
    - fri_config: folding schedule derived from the quotient degree bound
    """

    def __init__(self, config: StarkConfig) -> None:
        self.config = config
        self.F = get_field(config.prime)

        self.H, self.H_ext, self.S = build_domains(
            self.F, config.trace_length, config.blowup, config.offset
        )
        self.ntt_trace = NTT(self.F, config.trace_length)
        self.ntt_ext = NTT(self.F, config.extended_size)

        modules = [get_constraint_module(name) for name in config.constraints]
        self.constraint_system = ConstraintSystem(modules, self.H)

        # Z(x) = x^n - 1 never vanishes on S because S and H are disjoint;
        # batch_inverse raises FieldInversionOfZero if that is ever violated.
        self.s_points = self.S.elements()
        self.zi = batch_inverse(self.constraint_system.vanishing(self.s_points))

        self.fri_config = self._fri_schedule()

    @classmethod
    def from_config(cls, config: StarkConfig) -> "SetupCtx":
        return cls(config)

    @property
    def deep_degree_bound(self) -> int:
        """Max degree of D(x) = (Q(x) - Q(z)) / (x - z) for an honest trace."""
        return max(self.constraint_system.quotient_degree_bound() - 1, 0)

    def _fri_schedule(self) -> FriPcsConfig:
        cfg = self.config
        n_rounds = max(self.deep_degree_bound.bit_length(), 1)
        if cfg.extended_size >> n_rounds < 2:
            raise InvalidDomainSize(
                f"Blowup {cfg.blowup} too small: degree bound {self.deep_degree_bound} "
                f"leaves fewer than 2 points in the final FRI layer"
            )
        return FriPcsConfig(
            n_bits_ext=cfg.n_bits_ext,
            n_fri_rounds=n_rounds,
            n_queries=cfg.n_queries,
            hash_name=cfg.hash_name,
            pow_bits=cfg.pow_bits,
            degree_bound=self.deep_degree_bound,
        )

    def neighbour_index(self, idx: int, row_offset: int) -> int:
        """S-index of g^row_offset * S[idx]."""
        return (idx + row_offset * self.config.blowup) % self.config.extended_size
