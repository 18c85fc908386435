"""Merkle tree verification abstraction.

Wraps `verify_merkle_proof` with the tree shape the verifier expects, so a
proof cannot pass by supplying a path of the wrong length or a leaf of the
wrong width.
"""

from dataclasses import dataclass

from primitives.field import FieldClass
from primitives.merkle_tree import (
    MerkleRoot,
    QueryProof,
    next_power_of_two,
    verify_merkle_proof,
)


# --- Configuration ---

@dataclass(frozen=True)
class MerkleConfig:
    """Shape of a committed tree.

    Attributes:
        hash_name: hashlib algorithm used for leaves and nodes
        height: Number of (unpadded) leaves
        width: Field elements per leaf
    """

    hash_name: str
    height: int
    width: int = 1

    @property
    def n_siblings(self) -> int:
        """Number of sibling digests in each query proof."""
        return (next_power_of_two(self.height) - 1).bit_length()


# --- Verifier Class ---

class MerkleVerifier:
    """Verifier for openings against one committed root.

    Usage:
        verifier = MerkleVerifier(F, root, MerkleConfig("sha256", height=64))
        if not verifier.verify_query(idx, proof):
            ...
    """

    def __init__(self, F: FieldClass, root: MerkleRoot, config: MerkleConfig) -> None:
        self.F = F
        self.root = root
        self.config = config

    def verify_query(self, idx: int, proof: QueryProof) -> bool:
        """Verify an opening of leaf idx."""
        if idx < 0 or idx >= self.config.height:
            return False
        if len(proof.v) != self.config.width or len(proof.mp) != self.config.n_siblings:
            return False
        return verify_merkle_proof(
            self.F, self.config.hash_name, self.root, idx, proof.v, proof.mp
        )
