"""FRI Polynomial Commitment Scheme."""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from primitives.domain import Domain
from primitives.errors import (
    ChallengeOutOfDomain,
    DegreeBoundExceeded,
    FRILayerMismatch,
    MerkleProofInvalid,
)
from primitives.field import to_ints
from primitives.merkle_tree import MerkleRoot, MerkleTree, QueryProof
from primitives.merkle_verifier import MerkleConfig, MerkleVerifier
from primitives.transcript import Transcript, grinding, verify_grinding
from protocol.fri import FRI

# --- Type Aliases ---

Nonce = int
QueryIndex = int


# --- Configuration ---

@dataclass(frozen=True)
class FriPcsConfig:
    """FRI PCS parameters."""
    n_bits_ext: int
    n_fri_rounds: int
    n_queries: int
    hash_name: str = "sha256"
    pow_bits: int = 0
    degree_bound: Optional[int] = None

    def __post_init__(self) -> None:
        if self.degree_bound is not None and not 0 <= self.degree_bound < 1 << self.n_fri_rounds:
            raise ValueError(
                f"Degree bound {self.degree_bound} does not fold to a constant "
                f"in {self.n_fri_rounds} rounds"
            )

    @property
    def max_degree(self) -> int:
        """Largest degree that folds to a constant in n_fri_rounds rounds."""
        return (1 << self.n_fri_rounds) - 1

    @property
    def shift(self) -> int:
        """Power of x lifting a degree_bound polynomial to max_degree."""
        if self.degree_bound is None:
            return 0
        return self.max_degree - self.degree_bound

    def layer_size(self, fri_round: int) -> int:
        return (1 << self.n_bits_ext) >> fri_round

    @property
    def final_size(self) -> int:
        return self.layer_size(self.n_fri_rounds)


@dataclass(frozen=True)
class FriProof:
    """FRI proof: layer roots, final layer, grinding nonce, and query proofs.

    query_proofs[q][r] opens the fold pair of query q in layer r.
    """
    fri_roots: Tuple[MerkleRoot, ...]
    final_pol: Tuple[int, ...]
    nonce: Nonce
    query_indices: Tuple[QueryIndex, ...]
    query_proofs: Tuple[Tuple[QueryProof, ...], ...]


# --- FRI PCS ---

class FriPcs:
    """FRI Polynomial Commitment Scheme over the committed domain S."""

    def __init__(self, config: FriPcsConfig, domain: Domain) -> None:
        if domain.size != 1 << config.n_bits_ext:
            raise ValueError(f"Domain size {domain.size} != 2^{config.n_bits_ext}")
        self.config = config
        self.domain = domain
        self.F = domain.F
        self.fri_trees: List[MerkleTree] = []
        self.degree_weights = None

    # --- Prover ---

    def prove(self, polynomial, transcript: Transcript) -> FriProof:
        """Generate FRI proof: degree-adjust, commit-fold, finalize, grind, query."""
        cfg = self.config

        # --- Degree Adjustment ---
        # Layer 0 commits f(x) * (w0 + w1 * x^shift), of degree <= max_degree
        # exactly when deg f <= degree_bound
        self._draw_degree_weights(transcript)
        current_pol = polynomial * self.degree_adjustment(self.domain.elements())

        # --- Commit-Fold Loop ---
        # Each iteration: merkelize -> commit root -> derive challenge -> fold
        fri_roots: List[MerkleRoot] = []
        domain = self.domain
        self.fri_trees = []

        for _ in range(cfg.n_fri_rounds):
            tree = MerkleTree(self.F, cfg.hash_name)
            root = FRI.merkelize(current_pol, tree)
            self.fri_trees.append(tree)
            fri_roots.append(root)
            transcript.put_bytes(root)

            challenge = transcript.get_field()
            current_pol = FRI.fold(current_pol, challenge, domain)
            domain = domain.squared()

        # --- Finalize ---
        final_pol = tuple(to_ints(current_pol))
        transcript.put(final_pol)

        # --- Grinding (proof-of-work) ---
        nonce = grinding(cfg.hash_name, transcript.get_state(), cfg.pow_bits)
        transcript.put_bytes(nonce.to_bytes(8, "big"))

        # --- Query Phase ---
        query_indices = tuple(transcript.get_permutations(cfg.n_queries, cfg.n_bits_ext))
        query_proofs = tuple(self._generate_query_proofs(idx) for idx in query_indices)

        return FriProof(
            fri_roots=tuple(fri_roots),
            final_pol=final_pol,
            nonce=nonce,
            query_indices=query_indices,
            query_proofs=query_proofs,
        )

    def _generate_query_proofs(self, query_idx: QueryIndex) -> Tuple[QueryProof, ...]:
        """Merkle openings of one query at every FRI layer."""
        proofs = []
        for fri_round, tree in enumerate(self.fri_trees):
            leaf, _ = FRI.fold_index(query_idx, self.config.layer_size(fri_round))
            proofs.append(tree.get_query_proof(leaf))
        return tuple(proofs)

    def get_fri_tree(self, fri_round: int) -> MerkleTree:
        """Get Merkle tree for given FRI layer."""
        return self.fri_trees[fri_round]

    # --- Degree Adjustment ---

    def _draw_degree_weights(self, transcript: Transcript) -> None:
        if self.config.degree_bound is None:
            self.degree_weights = None
        else:
            self.degree_weights = (transcript.get_field(), transcript.get_field())

    def degree_adjustment(self, x):
        """w0 + w1 * x^shift at x (scalar or array); 1 without a degree bound.

        A polynomial of degree d > degree_bound gains a leading term w1 * x^(d + shift)
        above max_degree, so it no longer folds to a constant.
        """
        if self.degree_weights is None:
            return x ** 0
        w0, w1 = self.degree_weights
        return w0 + w1 * x ** self.config.shift

    # --- Verifier ---

    def replay(
        self,
        fri_roots: Sequence[MerkleRoot],
        final_pol: Sequence[int],
        nonce: Nonce,
        transcript: Transcript,
    ) -> Tuple[list, List[QueryIndex]]:
        """Re-derive degree weights, folding challenges and query indices.

        Raises:
            DegreeBoundExceeded: If the layer count or final layer size is wrong
            ChallengeOutOfDomain: If the grinding nonce is invalid
        """
        cfg = self.config
        if len(fri_roots) != cfg.n_fri_rounds:
            raise DegreeBoundExceeded(
                f"expected {cfg.n_fri_rounds} FRI layers, got {len(fri_roots)}"
            )
        if len(final_pol) != cfg.final_size:
            raise DegreeBoundExceeded(
                f"expected final layer of {cfg.final_size} values, got {len(final_pol)}"
            )
        p = int(self.F.characteristic)
        if any(not 0 <= int(v) < p for v in final_pol):
            raise DegreeBoundExceeded("final layer holds a value outside the field")

        self._draw_degree_weights(transcript)
        challenges = []
        for root in fri_roots:
            transcript.put_bytes(root)
            challenges.append(transcript.get_field())

        transcript.put(final_pol)
        if not 0 <= nonce < 1 << 64:
            raise ChallengeOutOfDomain(f"grinding nonce {nonce} out of range")
        if not verify_grinding(cfg.hash_name, transcript.get_state(), nonce, cfg.pow_bits):
            raise ChallengeOutOfDomain("grinding nonce does not meet the work target")
        transcript.put_bytes(nonce.to_bytes(8, "big"))

        query_indices = transcript.get_permutations(cfg.n_queries, cfg.n_bits_ext)
        return challenges, query_indices

    def verify_final_pol(self, final_pol: Sequence[int]) -> None:
        """The final layer must be the evaluation of a constant polynomial.

        Raises:
            DegreeBoundExceeded: If any two final values differ
        """
        if any(int(v) != int(final_pol[0]) for v in final_pol):
            raise DegreeBoundExceeded("final FRI layer is not constant")

    def layer_zero_value(self, query_idx: QueryIndex, query_proofs: Sequence[QueryProof]) -> int:
        """Layer-0 value at S[query_idx]: the committed polynomial times degree_adjustment."""
        _, upper = FRI.fold_index(query_idx, self.config.layer_size(0))
        return int(query_proofs[0].v[1 if upper else 0])

    def verify_query(
        self,
        query_idx: QueryIndex,
        fri_roots: Sequence[MerkleRoot],
        query_proofs: Sequence[QueryProof],
        challenges: Sequence,
        final_pol: Sequence[int],
        query: int | None = None,
    ) -> None:
        """Walk one query through every layer to the final layer.

        Raises:
            MerkleProofInvalid: If a layer opening does not match its root
            FRILayerMismatch: If a folded value disagrees with the next layer
        """
        cfg = self.config
        if len(query_proofs) != cfg.n_fri_rounds:
            raise MerkleProofInvalid(
                f"expected {cfg.n_fri_rounds} FRI openings, got {len(query_proofs)}", query
            )

        domain = self.domain
        folded = None
        for fri_round in range(cfg.n_fri_rounds):
            size = cfg.layer_size(fri_round)
            leaf, upper = FRI.fold_index(query_idx, size)
            opening = query_proofs[fri_round]

            verifier = MerkleVerifier(
                self.F, fri_roots[fri_round], MerkleConfig(cfg.hash_name, size // 2, 2)
            )
            if not verifier.verify_query(leaf, opening):
                raise MerkleProofInvalid(f"FRI layer {fri_round} opening", query)

            lo, hi = opening.v
            if folded is not None and int(hi if upper else lo) != int(folded):
                raise FRILayerMismatch(
                    f"layer {fri_round} value does not match fold of layer {fri_round - 1}",
                    query,
                )

            folded = FRI.verify_fold(self.F, lo, hi, challenges[fri_round], domain.element(leaf))
            domain = domain.squared()

        final_idx = query_idx % cfg.final_size
        if int(folded) != int(final_pol[final_idx]):
            raise FRILayerMismatch("last fold does not match the final layer", query)
