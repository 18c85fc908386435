"""Binary Merkle tree commitment over field-element leaves."""

import hashlib
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from primitives.field import FieldClass, to_bytes

# --- Constants ---

LEAF_PREFIX = b"\x00"
NODE_PREFIX = b"\x01"
PADDING_PREFIX = b"\x02"

PADDING_SENTINEL = b"toy-stark/padding"
"""Content of every padding leaf. Padding leaves are hashed like real leaves
(under their own prefix), so the root binds the unpadded length: a sequence
can never collide with its own padded extension."""

# --- Type Aliases ---

MerkleRoot = bytes
LeafData = Sequence[int]


# --- Hashing ---

def check_hash_name(hash_name: str) -> None:
    """Raise ValueError unless hash_name is a fixed-length hashlib digest."""
    try:
        hashlib.new(hash_name).digest()
    except (ValueError, TypeError) as e:
        raise ValueError(f"Unsupported hash algorithm {hash_name!r}") from e


def hash_bytes(hash_name: str, *parts: bytes) -> bytes:
    h = hashlib.new(hash_name)
    for part in parts:
        h.update(part)
    return h.digest()


def digest_size(hash_name: str) -> int:
    return hashlib.new(hash_name).digest_size


def hash_leaf(F: FieldClass, hash_name: str, values: LeafData) -> bytes:
    return hash_bytes(hash_name, LEAF_PREFIX, to_bytes(F, values))


def hash_node(hash_name: str, left: bytes, right: bytes) -> bytes:
    return hash_bytes(hash_name, NODE_PREFIX, left, right)


def padding_leaf(hash_name: str) -> bytes:
    return hash_bytes(hash_name, PADDING_PREFIX, PADDING_SENTINEL)


def next_power_of_two(n: int) -> int:
    return 1 if n <= 1 else 1 << (n - 1).bit_length()


# --- Data Classes ---

@dataclass(frozen=True)
class QueryProof:
    """Opening of one leaf.

    Attributes:
        v: Leaf values (width field elements, as ints)
        mp: Sibling digests from the leaf level up to just below the root
    """
    v: Tuple[int, ...]
    mp: Tuple[bytes, ...]


# --- Merkle Tree ---

class MerkleTree:
    """Binary Merkle tree over a sequence of leaves of `width` field elements.

    The leaf count is padded to the next power of two with the padding
    sentinel. Internal nodes are stored level by level; nodes[0] are the leaf
    digests and nodes[-1] holds the single root.
    """

    def __init__(self, F: FieldClass, hash_name: str = "sha256") -> None:
        check_hash_name(hash_name)
        self.F = F
        self.hash_name = hash_name

        self.height = 0
        self.width = 0
        self.nodes: List[List[bytes]] = []
        self.source_data: List[int] = []

    # --- Core Operations ---

    def merkelize(self, source: LeafData, height: int, width: int = 1) -> None:
        """Build the tree from flattened leaf data (height * width elements)."""
        if len(source) != height * width:
            raise ValueError(f"Expected {height * width} leaf elements, got {len(source)}")

        self.height = height
        self.width = width
        self.source_data = [int(x) for x in source]

        leaves = [
            hash_leaf(self.F, self.hash_name, self.source_data[i * width:(i + 1) * width])
            for i in range(height)
        ]
        pad = padding_leaf(self.hash_name)
        leaves.extend([pad] * (next_power_of_two(height) - height))

        self.nodes = [leaves]
        level = leaves
        while len(level) > 1:
            level = [
                hash_node(self.hash_name, level[i], level[i + 1])
                for i in range(0, len(level), 2)
            ]
            self.nodes.append(level)

    def commit(self, values: LeafData, width: int = 1) -> MerkleRoot:
        """Build the tree over len(values) // width leaves and return the root."""
        self.merkelize(values, len(values) // width, width)
        return self.get_root()

    def get_root(self) -> MerkleRoot:
        """Return the Merkle root commitment."""
        if not self.nodes:
            raise ValueError("Tree not built. Call merkelize() first.")
        return self.nodes[-1][0]

    def get_group_proof(self, idx: int) -> List[bytes]:
        """Sibling digests for leaf idx, from the bottom level up."""
        proof = []
        for level in self.nodes[:-1]:
            proof.append(level[idx ^ 1])
            idx >>= 1
        return proof

    def get_query_proof(self, idx: int) -> QueryProof:
        """Open leaf idx: its values and authentication path."""
        if idx < 0 or idx >= self.height:
            raise ValueError(f"Query index {idx} out of range [0, {self.height})")
        row = self.source_data[idx * self.width:(idx + 1) * self.width]
        return QueryProof(v=tuple(row), mp=tuple(self.get_group_proof(idx)))

    # --- Proof Size Utilities ---

    def get_merkle_proof_length(self) -> int:
        """Number of levels in a Merkle proof."""
        return (next_power_of_two(self.height) - 1).bit_length()


def verify_merkle_proof(
    F: FieldClass,
    hash_name: str,
    root: MerkleRoot,
    idx: int,
    leaf_data: LeafData,
    proof: Sequence[bytes],
) -> bool:
    """Check that leaf_data sits at position idx under root.

    Fails closed: any out-of-range value, malformed sibling or digest
    mismatch along the path returns False.
    """
    p = int(F.characteristic)
    size = digest_size(hash_name)
    if idx < 0 or idx >= (1 << len(proof)):
        return False
    if any(not 0 <= int(v) < p for v in leaf_data):
        return False
    if any(not isinstance(s, bytes) or len(s) != size for s in proof):
        return False

    computed = hash_leaf(F, hash_name, leaf_data)
    for sibling in proof:
        if idx & 1:
            computed = hash_node(hash_name, sibling, computed)
        else:
            computed = hash_node(hash_name, computed, sibling)
        idx >>= 1

    return computed == root
