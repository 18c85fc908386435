"""STARK proof verification.

The verifier is a state machine:

    AWAIT_COMMITMENTS -> AWAIT_QUERIES -> AWAIT_FRI_CHAIN -> ACCEPTED
            |                  |                 |
            +------------------+-----------------+-------> REJECTED

1. Commitments - record roots and replay the Fiat-Shamir transcript to
   re-derive vc, z, the degree weights, the FRI folding challenges and the
   query indices.
2. Queries - for each sampled x in S: authenticate T(x), T(g^k x) and Q(x),
   check C(x) == Q(x) * Z(x), and check D(x) == (Q(x) - Q(z)) / (x - z)
   against the first FRI layer, which holds D(x) * (w0 + w1 * x^shift).
3. FRI chain - for each query walk the folding layers to the final layer,
   then check that the final layer is constant.

The first failing check rejects the whole proof; no later check runs.
"""

from enum import Enum
from typing import List, Optional

from constraints import VerifierConstraintContext
from primitives.errors import (
    ChallengeOutOfDomain,
    DeepConsistencyFailed,
    MerkleProofInvalid,
    QuotientConsistencyFailed,
    VerificationError,
)
from primitives.field import inverse
from primitives.merkle_verifier import MerkleConfig, MerkleVerifier
from primitives.transcript import Transcript
from protocol.pcs import FriPcs
from protocol.proof import STARKProof
from protocol.setup_ctx import SetupCtx


class VerifierState(Enum):
    AWAIT_COMMITMENTS = "AwaitCommitments"
    AWAIT_QUERIES = "AwaitQueries"
    AWAIT_FRI_CHAIN = "AwaitFRIChain"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class StarkVerifier:
    """Single-use verifier for one proof."""

    def __init__(self, setup_ctx: SetupCtx) -> None:
        self.setup_ctx = setup_ctx
        self.F = setup_ctx.F
        self.fri_pcs = FriPcs(setup_ctx.fri_config, setup_ctx.S)

        self.state = VerifierState.AWAIT_COMMITMENTS
        self.failure: Optional[VerificationError] = None

        self.proof: Optional[STARKProof] = None
        self.vc = None
        self.z = None
        self.fri_challenges: list = []
        self.query_indices: List[int] = []

    # --- Entry Point ---

    def verify(self, proof: STARKProof) -> VerifierState:
        """Run every phase; stop at the first failing check."""
        try:
            print("Verifying commitments")
            self.receive_commitments(proof)
            print("Verifying queries")
            self.check_queries()
            print("Verifying FRI foldings")
            self.check_fri_chain()
        except VerificationError as e:
            print(f"ERROR: {e.check}: {e}")
            self.failure = e
            self.state = VerifierState.REJECTED
        return self.state

    def raise_on_reject(self) -> None:
        """Re-raise the failure that rejected the proof, if any."""
        if self.failure is not None:
            raise self.failure

    # --- Phase 1: Commitments ---

    def receive_commitments(self, proof: STARKProof) -> None:
        self._expect(VerifierState.AWAIT_COMMITMENTS)
        setup = self.setup_ctx
        cfg = setup.config
        self.proof = proof

        transcript = Transcript(self.F, cfg.hash_name)
        transcript.put_bytes(proof.root_trace)
        self.vc = transcript.get_field()
        transcript.put_bytes(proof.root_quotient)

        self.z = transcript.get_field(excluded=(setup.H, setup.H_ext, setup.S))
        if any(int(self.z) in domain for domain in (setup.H, setup.H_ext, setup.S)):
            raise ChallengeOutOfDomain(f"z = {int(self.z)} lies in a protocol domain")

        if not 0 <= proof.quotient_at_z < cfg.prime:
            raise DeepConsistencyFailed("Q(z) is not a field element")
        transcript.put([proof.quotient_at_z])

        self.fri_challenges, self.query_indices = self.fri_pcs.replay(
            proof.fri_roots, proof.final_pol, proof.nonce, transcript
        )

        if len(proof.queries) != len(self.query_indices):
            raise ChallengeOutOfDomain(
                f"expected {len(self.query_indices)} query responses, got {len(proof.queries)}"
            )
        for q, (response, idx) in enumerate(zip(proof.queries, self.query_indices)):
            if response.index != idx:
                raise ChallengeOutOfDomain(
                    f"response opens index {response.index}, transcript sampled {idx}", q
                )

        self.state = VerifierState.AWAIT_QUERIES

    # --- Phase 2: Queries ---

    def check_queries(self) -> None:
        self._expect(VerifierState.AWAIT_QUERIES)
        for q, response in enumerate(self.proof.queries):
            self._check_query(q, response)
        self.state = VerifierState.AWAIT_FRI_CHAIN

    def _check_query(self, q: int, response) -> None:
        setup = self.setup_ctx
        cfg = setup.config
        cs = setup.constraint_system
        F = self.F
        proof = self.proof
        idx = response.index

        # Merkle openings of T(g^k x) and Q(x)
        window = cs.max_offset + 1
        if len(response.trace) != window:
            raise MerkleProofInvalid(
                f"expected {window} trace openings, got {len(response.trace)}", q
            )
        trace_verifier = MerkleVerifier(
            F, proof.root_trace, MerkleConfig(cfg.hash_name, cfg.extended_size)
        )
        values = {}
        for k, opening in enumerate(response.trace):
            if not trace_verifier.verify_query(setup.neighbour_index(idx, k), opening):
                raise MerkleProofInvalid(f"trace opening at row offset {k}", q)
            values[k] = F(opening.v[0])

        quotient_verifier = MerkleVerifier(
            F, proof.root_quotient, MerkleConfig(cfg.hash_name, cfg.extended_size)
        )
        if not quotient_verifier.verify_query(idx, response.quotient):
            raise MerkleProofInvalid("quotient opening", q)
        quotient = F(response.quotient.v[0])

        # Quotient consistency: C(x) == Q(x) * Z(x)
        x = setup.S.element(idx)
        constraint = cs.evaluate(VerifierConstraintContext(values), x, self.vc)
        if int(constraint) != int(quotient * cs.vanishing(x)):
            raise QuotientConsistencyFailed(f"C(x) != Q(x) * Z(x) at S[{idx}]", q)

        # DEEP consistency against the first FRI layer
        if len(response.fri) != setup.fri_config.n_fri_rounds:
            raise MerkleProofInvalid(
                f"expected {setup.fri_config.n_fri_rounds} FRI openings, got {len(response.fri)}",
                q,
            )
        first_layer = MerkleVerifier(
            F, proof.fri_roots[0], MerkleConfig(cfg.hash_name, cfg.extended_size // 2, 2)
        )
        leaf = idx % (cfg.extended_size // 2)
        if not first_layer.verify_query(leaf, response.fri[0]):
            raise MerkleProofInvalid("FRI layer 0 opening", q)

        deep = self.fri_pcs.layer_zero_value(idx, response.fri)
        expected = (quotient - F(proof.quotient_at_z)) * inverse(x - self.z)
        expected = expected * self.fri_pcs.degree_adjustment(x)
        if deep != int(expected):
            raise DeepConsistencyFailed(f"D(x) != (Q(x) - Q(z)) / (x - z) at S[{idx}]", q)

    # --- Phase 3: FRI chain ---

    def check_fri_chain(self) -> None:
        self._expect(VerifierState.AWAIT_FRI_CHAIN)
        proof = self.proof
        for q, response in enumerate(proof.queries):
            self.fri_pcs.verify_query(
                response.index,
                proof.fri_roots,
                response.fri,
                self.fri_challenges,
                proof.final_pol,
                query=q,
            )

        print("Verifying final pol")
        self.fri_pcs.verify_final_pol(proof.final_pol)
        self.state = VerifierState.ACCEPTED

    # --- Internal ---

    def _expect(self, state: VerifierState) -> None:
        if self.state != state:
            raise RuntimeError(f"Verifier is in state {self.state.value}, expected {state.value}")


def stark_verify(proof: STARKProof, setup_ctx: SetupCtx) -> bool:
    """Verify a STARK proof.

    Returns:
        True if proof is valid, False otherwise
    """
    return StarkVerifier(setup_ctx).verify(proof) == VerifierState.ACCEPTED
