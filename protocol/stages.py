"""Prover stages: trace commitment, quotient and DEEP composition.

The quotient Q and the DEEP polynomial D exist only as evaluations over S.
Neither is ever interpolated: C vanishes on H by construction, so moving it
to coefficient form over a domain containing H would lose exactly the
information the quotient is meant to carry.
"""

from typing import Dict

from constraints import ProverConstraintContext, VerifierConstraintContext
from primitives.batch_inverse import batch_inverse
from primitives.errors import InvalidDomainSize
from primitives.field import inverse, to_ints
from primitives.merkle_tree import MerkleRoot, MerkleTree
from primitives.ntt import evaluate_coefficients
from protocol.setup_ctx import SetupCtx


class Starks:
    """Per-session prover state: committed trees and intermediate polynomials."""

    def __init__(self, setup_ctx: SetupCtx) -> None:
        self.setup_ctx = setup_ctx
        self.F = setup_ctx.F
        self.trees: Dict[str, MerkleTree] = {}

    def get_tree(self, name: str) -> MerkleTree:
        if name not in self.trees:
            raise KeyError(f"Tree '{name}' not found. Has it been committed?")
        return self.trees[name]

    # --- Stage 1: Trace ---

    def commit_trace(self, trace):
        """Interpolate T over H, extend it to S and commit.

        Returns:
            (root_T, coefficients of T, evaluations of T over S)
        """
        setup = self.setup_ctx
        cfg = setup.config
        if len(trace) != cfg.trace_length:
            raise InvalidDomainSize(
                f"Trace has {len(trace)} rows, configuration expects {cfg.trace_length}"
            )

        coeffs = setup.ntt_trace.intt(self.F([int(v) % cfg.prime for v in trace]))
        padded = self.F.Zeros(cfg.extended_size)
        padded[:cfg.trace_length] = coeffs
        lde = setup.ntt_ext.coset_ntt(padded, setup.S.offset)

        root = self._commit("trace", lde)
        return root, coeffs, lde

    # --- Stage 2: Quotient ---

    def build_quotient(self, lde, vc):
        """Q(x) = C(x) / Z(x) pointwise over S, then commit.

        Returns:
            (root_Q, evaluations of Q over S)
        """
        setup = self.setup_ctx
        ctx = ProverConstraintContext(lde, setup.config.blowup)
        constraint = setup.constraint_system.evaluate(ctx, setup.s_points, vc)
        quotient = constraint * setup.zi

        root = self._commit("quotient", quotient)
        return root, quotient

    def evaluate_quotient_at(self, coeffs, z, vc):
        """Q(z) = C(z) / Z(z), with C(z) built from T evaluated off-domain."""
        setup = self.setup_ctx
        cs = setup.constraint_system
        g = setup.H.generator

        values = {
            k: evaluate_coefficients(self.F, coeffs, z * g ** k)
            for k in range(cs.max_offset + 1)
        }
        constraint = cs.evaluate(VerifierConstraintContext(values), z, vc)
        return constraint * inverse(cs.vanishing(z))

    # --- Stage 3: DEEP ---

    def build_deep(self, quotient, quotient_at_z, z):
        """D(x) = (Q(x) - Q(z)) / (x - z) pointwise over S."""
        s_points = self.setup_ctx.s_points
        return (quotient - quotient_at_z) * batch_inverse(s_points - z)

    # --- Internal ---

    def _commit(self, name: str, evals) -> MerkleRoot:
        tree = MerkleTree(self.F, self.setup_ctx.config.hash_name)
        root = tree.commit(to_ints(evals))
        self.trees[name] = tree
        return root
