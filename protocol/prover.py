"""Top-level STARK proof generation."""

from primitives.transcript import Transcript
from protocol.pcs import FriPcs
from protocol.proof import QueryResponse, STARKProof
from protocol.setup_ctx import SetupCtx
from protocol.stages import Starks


def gen_proof(setup_ctx: SetupCtx, trace) -> STARKProof:
    """Generate a proof that `trace` satisfies the configured transition relations.

    Protocol, strictly sequential (every challenge depends on all prior
    commitments):

    1. Commit T over S                      -> root_T
    2. Draw vc, build Q = C / Z over S      -> root_Q
    3. Draw z outside H, H', S; reveal Q(z)
    4. Build D(x) = (Q(x) - Q(z)) / (x - z) over S
    5. FRI: commit and fold D to the final layer, grind, draw queries
    6. Open T, Q and every FRI layer at each query

    Args:
        setup_ctx: Setup context derived from the protocol configuration
        trace: n field elements (ints or galois array), read only

    Returns:
        Immutable STARKProof.
    """
    cfg = setup_ctx.config
    transcript = Transcript(setup_ctx.F, cfg.hash_name)
    starks = Starks(setup_ctx)

    # === STAGE 1: Trace commitment ===
    root_trace, coeffs, lde = starks.commit_trace(trace)
    transcript.put_bytes(root_trace)

    # === STAGE 2: Quotient ===
    # vc batches the transition relations into one composite constraint
    vc = transcript.get_field()
    root_quotient, quotient = starks.build_quotient(lde, vc)
    transcript.put_bytes(root_quotient)

    # === STAGE 3: Out-of-domain evaluation ===
    z = transcript.get_field(excluded=(setup_ctx.H, setup_ctx.H_ext, setup_ctx.S))
    quotient_at_z = starks.evaluate_quotient_at(coeffs, z, vc)
    transcript.put([quotient_at_z])

    # === STAGE 4: DEEP composition ===
    deep = starks.build_deep(quotient, quotient_at_z, z)

    # === STAGE 5: FRI ===
    fri_pcs = FriPcs(setup_ctx.fri_config, setup_ctx.S)
    fri_proof = fri_pcs.prove(deep, transcript)

    # === STAGE 6: Openings ===
    trace_tree = starks.get_tree("trace")
    quotient_tree = starks.get_tree("quotient")
    window = setup_ctx.constraint_system.max_offset + 1

    queries = tuple(
        QueryResponse(
            index=idx,
            trace=tuple(
                trace_tree.get_query_proof(setup_ctx.neighbour_index(idx, k))
                for k in range(window)
            ),
            quotient=quotient_tree.get_query_proof(idx),
            fri=fri_query_proofs,
        )
        for idx, fri_query_proofs in zip(fri_proof.query_indices, fri_proof.query_proofs)
    )

    return STARKProof(
        root_trace=root_trace,
        root_quotient=root_quotient,
        quotient_at_z=int(quotient_at_z),
        fri_roots=fri_proof.fri_roots,
        final_pol=fri_proof.final_pol,
        nonce=fri_proof.nonce,
        queries=queries,
    )
