"""Protocol - Core STARK protocol algorithms."""

from protocol.fri import FRI
from protocol.pcs import (
    FriPcs,
    FriPcsConfig,
    FriProof,
    Nonce,
    QueryIndex,
)
from protocol.stark_config import StarkConfig
from protocol.setup_ctx import SetupCtx
from protocol.stages import Starks
from protocol.proof import (
    QueryResponse,
    STARKProof,
    load_proof,
    proof_from_json,
    proof_to_json,
    save_proof,
    validate_proof_structure,
)
from protocol.prover import gen_proof
from protocol.verifier import StarkVerifier, VerifierState, stark_verify

__all__ = [
    # FRI
    "FRI",
    "FriPcs",
    "FriPcsConfig",
    "FriProof",
    "Nonce",
    "QueryIndex",
    # Configuration
    "StarkConfig",
    "SetupCtx",
    # STARK
    "Starks",
    "gen_proof",
    "stark_verify",
    "StarkVerifier",
    "VerifierState",
    # Proof
    "STARKProof",
    "QueryResponse",
    "proof_to_json",
    "proof_from_json",
    "save_proof",
    "load_proof",
    "validate_proof_structure",
]
