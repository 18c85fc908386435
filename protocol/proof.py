"""STARK proof data structures and serialization."""

import json
from dataclasses import dataclass
from typing import Any, Tuple

from primitives.merkle_tree import MerkleRoot, QueryProof

# --- Proof Data Structures ---

@dataclass(frozen=True)
class QueryResponse:
    """Openings for one sampled point x = S[index].

    Attributes:
        index: Position of x in S
        trace: T openings at x, g*x, ..., g^m*x (one per row offset)
        quotient: Q opening at x
        fri: Fold-pair openings, one per FRI layer
    """
    index: int
    trace: Tuple[QueryProof, ...]
    quotient: QueryProof
    fri: Tuple[QueryProof, ...]


@dataclass(frozen=True)
class STARKProof:
    """Complete proof for a single-column trace.

    Attributes:
        root_trace: Merkle root of T over S
        root_quotient: Merkle root of Q over S
        quotient_at_z: Q(z) at the out-of-domain point z
        fri_roots: Merkle root of each FRI layer (layer 0 is D over S)
        final_pol: Evaluations of the final FRI layer
        nonce: Proof-of-work nonce (0 when grinding is disabled)
        queries: One response per sampled query, in transcript order
    """
    root_trace: MerkleRoot
    root_quotient: MerkleRoot
    quotient_at_z: int
    fri_roots: Tuple[MerkleRoot, ...]
    final_pol: Tuple[int, ...]
    nonce: int
    queries: Tuple[QueryResponse, ...]


# --- JSON Serialization ---

def _query_proof_to_json(qp: QueryProof) -> dict[str, Any]:
    return {"v": [str(v) for v in qp.v], "mp": [s.hex() for s in qp.mp]}


def _query_proof_from_json(j: dict) -> QueryProof:
    return QueryProof(v=tuple(int(v) for v in j["v"]), mp=tuple(bytes.fromhex(s) for s in j["mp"]))


def proof_to_json(proof: STARKProof) -> dict[str, Any]:
    """Convert proof to a JSON-serializable dictionary.

    Digests are hex strings and field elements decimal strings.
    """
    return {
        "root_trace": proof.root_trace.hex(),
        "root_quotient": proof.root_quotient.hex(),
        "quotient_at_z": str(proof.quotient_at_z),
        "fri_roots": [r.hex() for r in proof.fri_roots],
        "final_pol": [str(v) for v in proof.final_pol],
        "nonce": str(proof.nonce),
        "queries": [
            {
                "index": q.index,
                "trace": [_query_proof_to_json(t) for t in q.trace],
                "quotient": _query_proof_to_json(q.quotient),
                "fri": [_query_proof_to_json(f) for f in q.fri],
            }
            for q in proof.queries
        ],
    }


def proof_from_json(j: dict) -> STARKProof:
    """Inverse of proof_to_json."""
    return STARKProof(
        root_trace=bytes.fromhex(j["root_trace"]),
        root_quotient=bytes.fromhex(j["root_quotient"]),
        quotient_at_z=int(j["quotient_at_z"]),
        fri_roots=tuple(bytes.fromhex(r) for r in j["fri_roots"]),
        final_pol=tuple(int(v) for v in j["final_pol"]),
        nonce=int(j["nonce"]),
        queries=tuple(
            QueryResponse(
                index=int(q["index"]),
                trace=tuple(_query_proof_from_json(t) for t in q["trace"]),
                quotient=_query_proof_from_json(q["quotient"]),
                fri=tuple(_query_proof_from_json(f) for f in q["fri"]),
            )
            for q in j["queries"]
        ),
    )


def save_proof(proof: STARKProof, path: str) -> None:
    with open(path, "w") as f:
        json.dump(proof_to_json(proof), f, indent=2)


def load_proof(path: str) -> STARKProof:
    with open(path) as f:
        return proof_from_json(json.load(f))


# --- Validation ---

def validate_proof_structure(proof: STARKProof, setup_ctx: Any) -> list[str]:
    """Validate that proof structure matches the setup's configuration."""
    errors = []
    cfg = setup_ctx.config
    fri_cfg = setup_ctx.fri_config
    window = setup_ctx.constraint_system.max_offset + 1

    if len(proof.fri_roots) != fri_cfg.n_fri_rounds:
        errors.append(f"Expected {fri_cfg.n_fri_rounds} FRI roots, got {len(proof.fri_roots)}")

    if len(proof.final_pol) != fri_cfg.final_size:
        errors.append(
            f"Expected final layer of {fri_cfg.final_size} values, got {len(proof.final_pol)}"
        )

    if len(proof.queries) != cfg.n_queries:
        errors.append(f"Expected {cfg.n_queries} queries, got {len(proof.queries)}")

    for i, q in enumerate(proof.queries):
        if not 0 <= q.index < cfg.extended_size:
            errors.append(f"Query {i} index {q.index} outside [0, {cfg.extended_size})")
        if len(q.trace) != window:
            errors.append(f"Query {i} has {len(q.trace)} trace openings, expected {window}")
        if len(q.fri) != fri_cfg.n_fri_rounds:
            errors.append(
                f"Query {i} has {len(q.fri)} FRI openings, expected {fri_cfg.n_fri_rounds}"
            )

    return errors
