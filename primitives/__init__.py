"""Primitives - Low-level cryptographic and mathematical building blocks."""

from primitives.batch_inverse import batch_inverse
from primitives.domain import Domain, build_domains
from primitives.errors import (
    ChallengeOutOfDomain,
    DeepConsistencyFailed,
    DegreeBoundExceeded,
    FieldInversionOfZero,
    FRILayerMismatch,
    InvalidDomainSize,
    MerkleProofInvalid,
    QuotientConsistencyFailed,
    StarkError,
    VerificationError,
)
from primitives.field import (
    DEFAULT_OFFSET,
    GOLDILOCKS_PRIME,
    get_field,
    get_root_of_unity,
    inverse,
)
from primitives.merkle_tree import (
    LeafData,
    MerkleRoot,
    MerkleTree,
    QueryProof,
    verify_merkle_proof,
)
from primitives.merkle_verifier import MerkleConfig, MerkleVerifier
from primitives.ntt import NTT, evaluate_coefficients, intt, ntt
from primitives.transcript import Transcript, grinding, verify_grinding

__all__ = [
    # Field
    "GOLDILOCKS_PRIME",
    "DEFAULT_OFFSET",
    "get_field",
    "get_root_of_unity",
    "inverse",
    "batch_inverse",
    # NTT
    "NTT",
    "ntt",
    "intt",
    "evaluate_coefficients",
    # Domains
    "Domain",
    "build_domains",
    # Merkle Tree
    "MerkleTree",
    "MerkleRoot",
    "QueryProof",
    "LeafData",
    "MerkleConfig",
    "MerkleVerifier",
    "verify_merkle_proof",
    # Transcript
    "Transcript",
    "grinding",
    "verify_grinding",
    # Errors
    "StarkError",
    "InvalidDomainSize",
    "FieldInversionOfZero",
    "VerificationError",
    "MerkleProofInvalid",
    "DegreeBoundExceeded",
    "QuotientConsistencyFailed",
    "DeepConsistencyFailed",
    "FRILayerMismatch",
    "ChallengeOutOfDomain",
]
