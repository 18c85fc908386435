"""FRI folding protocol."""

from typing import List

from primitives.batch_inverse import batch_inverse
from primitives.domain import Domain
from primitives.field import FieldClass, inverse
from primitives.merkle_tree import MerkleRoot, MerkleTree

# --- FRI Protocol ---

class FRI:
    """FRI protocol: folding, commitment, and fold verification.

    A layer of size m lives on a coset c * <w>. Points i and i + m/2 are
    negatives of each other (w^(m/2) = -1), and the fold

        f'(x^2) = (f(x) + f(-x)) / 2 + beta * (f(x) - f(-x)) / (2x)

    maps the layer onto the coset c^2 * <w^2> of size m/2, halving the degree.
    """

    @staticmethod
    def fold(pol, challenge, domain: Domain):
        """Fold a layer given as evaluations over `domain`."""
        F = type(pol)
        half = len(pol) // 2
        lo = pol[:half]
        hi = pol[half:]

        xs = domain.elements()[:half]
        inv_two_x = batch_inverse(xs * F(2))
        inv_two = inverse(F(2))

        return (lo + hi) * inv_two + challenge * (lo - hi) * inv_two_x

    @staticmethod
    def merkelize(pol, tree: MerkleTree) -> MerkleRoot:
        """Commit to a layer; leaf i holds the fold pair (f[i], f[i + m/2])."""
        half = len(pol) // 2
        leaves: List[int] = []
        for i in range(half):
            leaves.append(int(pol[i]))
            leaves.append(int(pol[i + half]))
        tree.merkelize(leaves, half, 2)
        return tree.get_root()

    @staticmethod
    def verify_fold(F: FieldClass, lo: int, hi: int, challenge, x):
        """Recompute one folded value from an opened pair at point x."""
        lo = F(lo)
        hi = F(hi)
        inv_two = inverse(F(2))
        return (lo + hi) * inv_two + challenge * (lo - hi) * inverse(x * F(2))

    @staticmethod
    def fold_index(query_idx: int, layer_size: int) -> tuple[int, bool]:
        """Leaf index of a query in a layer of the given size, and whether
        the query point is the upper element of the pair."""
        pos = query_idx % layer_size
        half = layer_size // 2
        return pos % half, pos >= half
