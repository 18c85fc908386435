"""
Fiat-Shamir transcript over a hashlib digest.

The transcript absorbs commitments and prover messages and squeezes
challenges from them. It is a pure function of the ordered absorbed bytes:
the verifier replays the same puts and obtains the same challenges.
"""

from typing import Iterable, List

from primitives.errors import ChallengeOutOfDomain
from primitives.field import FieldClass, to_bytes
from primitives.merkle_tree import check_hash_name, hash_bytes

TRANSCRIPT_SEED = b"toy-stark/transcript"

MAX_RESAMPLES = 256
"""Upper bound on redraws when a challenge lands in a forbidden set. With
forbidden sets of size |H| + |H'| + |S| << p, hitting it means the
configuration is degenerate, not that the transcript was unlucky."""


class Transcript:
    """
    Fiat-Shamir transcript.

    Attributes:
        state: Digest binding everything absorbed so far
        pending: Bytes absorbed since the last state update
        out_cursor: Number of outputs squeezed from the current state
    """

    def __init__(self, F: FieldClass, hash_name: str = "sha256") -> None:
        check_hash_name(hash_name)
        self.F = F
        self.hash_name = hash_name

        self.state = hash_bytes(hash_name, TRANSCRIPT_SEED)
        self.pending = bytearray()
        self.out_cursor = 0

    # --- Absorb ---

    def put(self, input_data: Iterable) -> None:
        """Absorb field elements."""
        self.pending += to_bytes(self.F, input_data)

    def put_bytes(self, data: bytes) -> None:
        """Absorb raw bytes (Merkle roots, grinding nonce)."""
        self.pending += data

    def _update_state(self) -> None:
        self.state = hash_bytes(self.hash_name, self.state, bytes(self.pending))
        self.pending = bytearray()
        self.out_cursor = 0

    # --- Squeeze ---

    def _squeeze(self) -> bytes:
        if self.pending:
            self._update_state()
        out = hash_bytes(self.hash_name, self.state, self.out_cursor.to_bytes(8, "big"))
        self.out_cursor += 1
        return out

    def _get_fields1(self) -> int:
        return int.from_bytes(self._squeeze(), "big") % int(self.F.characteristic)

    def get_field(self, excluded: Iterable = ()):
        """Draw a challenge outside every container in `excluded`.

        Containers are tested with `int(x) in container`; domains implement
        coset membership so they can be passed directly.

        Raises:
            ChallengeOutOfDomain: If MAX_RESAMPLES draws all land in a
                forbidden set.
        """
        excluded = list(excluded)
        for _ in range(MAX_RESAMPLES):
            value = self._get_fields1()
            if not any(value in forbidden for forbidden in excluded):
                return self.F(value)
        raise ChallengeOutOfDomain(
            f"no challenge outside the forbidden sets after {MAX_RESAMPLES} draws"
        )

    def get_state(self) -> bytes:
        """Flush pending input and return the current state digest."""
        if self.pending:
            self._update_state()
        return self.state

    def get_permutations(self, n: int, n_bits: int) -> List[int]:
        """
        Generate n values, each using n_bits bits of squeezed output.

        This is used to derive query indices in FRI.
        """
        result = []
        buf = 0
        avail = 0
        mask = (1 << n_bits) - 1
        for _ in range(n):
            while avail < n_bits:
                buf |= int.from_bytes(self._squeeze(), "little") << avail
                avail += 8 * len(self.state)
            result.append(buf & mask)
            buf >>= n_bits
            avail -= n_bits
        return result


# --- Proof of Work ---

def _grinding_hash(hash_name: str, state: bytes, nonce: int) -> tuple[int, int]:
    digest = hash_bytes(hash_name, state, nonce.to_bytes(8, "big"))
    return int.from_bytes(digest, "big"), 8 * len(digest)


def verify_grinding(hash_name: str, state: bytes, nonce: int, pow_bits: int) -> bool:
    """Check that hash(state || nonce) has pow_bits leading zero bits."""
    if pow_bits == 0:
        return True
    if not 0 <= nonce < 1 << 64:
        return False
    value, bits = _grinding_hash(hash_name, state, nonce)
    return value >> (bits - pow_bits) == 0


def grinding(hash_name: str, state: bytes, pow_bits: int) -> int:
    """Find the smallest nonce passing verify_grinding."""
    nonce = 0
    while not verify_grinding(hash_name, state, nonce, pow_bits):
        nonce += 1
    return nonce
