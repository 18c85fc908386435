"""End-to-end tests: prove, verify, and reject tampered or dishonest proofs."""

import dataclasses
import warnings
from pathlib import Path

import numpy as np
import pytest

from primitives.errors import (
    ChallengeOutOfDomain,
    DeepConsistencyFailed,
    DegreeBoundExceeded,
    InvalidDomainSize,
    MerkleProofInvalid,
    QuotientConsistencyFailed,
)
from primitives.merkle_tree import QueryProof
from primitives.ntt import evaluate_coefficients
from primitives.transcript import Transcript
import protocol.verifier
from protocol import (
    FriPcs,
    QueryResponse,
    SetupCtx,
    StarkConfig,
    STARKProof,
    Starks,
    StarkVerifier,
    VerifierState,
    gen_proof,
    load_proof,
    proof_from_json,
    proof_to_json,
    save_proof,
    stark_verify,
    validate_proof_structure,
)

from tests.conftest import SMALL_PRIME, SQUARING_TRACE

BAD_TRACE = [2, 4, 17, 256]


@pytest.fixture(scope="module")
def proof(setup_ctx) -> STARKProof:
    return gen_proof(setup_ctx, SQUARING_TRACE)


def _verify(setup_ctx, proof) -> StarkVerifier:
    verifier = StarkVerifier(setup_ctx)
    verifier.verify(proof)
    return verifier


def _with_query(proof: STARKProof, q: int, **changes) -> STARKProof:
    queries = list(proof.queries)
    queries[q] = dataclasses.replace(queries[q], **changes)
    return dataclasses.replace(proof, queries=tuple(queries))


def _forged_proof(setup_ctx, trace, forge_quotient=False, forge_deep=False) -> STARKProof:
    """Run the prover with Q or D replaced by the zero polynomial.

    Zero is low degree, so a forged commitment always survives FRI and must
    be caught by the point checks that tie Q and D to the trace.
    """
    F = setup_ctx.F
    cfg = setup_ctx.config
    transcript = Transcript(F, cfg.hash_name)
    starks = Starks(setup_ctx)

    root_trace, coeffs, lde = starks.commit_trace(trace)
    transcript.put_bytes(root_trace)
    vc = transcript.get_field()

    if forge_quotient:
        quotient = F.Zeros(cfg.extended_size)
        root_quotient = starks._commit("quotient", quotient)
    else:
        root_quotient, quotient = starks.build_quotient(lde, vc)
    transcript.put_bytes(root_quotient)

    z = transcript.get_field(excluded=(setup_ctx.H, setup_ctx.H_ext, setup_ctx.S))
    quotient_at_z = F(0) if forge_quotient else starks.evaluate_quotient_at(coeffs, z, vc)
    transcript.put([quotient_at_z])

    if forge_deep:
        deep = F.Zeros(cfg.extended_size)
    else:
        deep = starks.build_deep(quotient, quotient_at_z, z)
    fri_proof = FriPcs(setup_ctx.fri_config, setup_ctx.S).prove(deep, transcript)

    window = setup_ctx.constraint_system.max_offset + 1
    queries = tuple(
        QueryResponse(
            index=idx,
            trace=tuple(
                starks.get_tree("trace").get_query_proof(setup_ctx.neighbour_index(idx, k))
                for k in range(window)
            ),
            quotient=starks.get_tree("quotient").get_query_proof(idx),
            fri=openings,
        )
        for idx, openings in zip(fri_proof.query_indices, fri_proof.query_proofs)
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


class TestCompleteness:
    """Honest proofs are accepted."""

    def test_squaring_trace(self, setup_ctx, proof) -> None:
        assert stark_verify(proof, setup_ctx)

    def test_proof_shape(self, setup_ctx, proof) -> None:
        assert validate_proof_structure(proof, setup_ctx) == []
        assert len(proof.queries) == 8
        assert len(proof.fri_roots) == setup_ctx.fri_config.n_fri_rounds == 2
        assert len(proof.final_pol) == 4
        assert len(set(proof.final_pol)) == 1

    def test_fibonacci_square(self, fib_setup_ctx) -> None:
        trace = fib_setup_ctx.constraint_system.modules[0].generate_trace(fib_setup_ctx.F, 16)
        fib_proof = gen_proof(fib_setup_ctx, trace)
        assert stark_verify(fib_proof, fib_setup_ctx)
        assert all(len(q.trace) == 3 for q in fib_proof.queries)

    @pytest.mark.parametrize("overrides", [
        {"trace_length": 4, "blowup": 2},
        {"trace_length": 8, "blowup": 2},
        {"trace_length": 8, "blowup": 8, "hash_name": "blake2b"},
        {"trace_length": 8, "blowup": 2, "constraints": ("fibonacci_square",)},
        {"trace_length": 4, "constraints": ("square", "fibonacci_square"), "hash_name": "sha3_256"},
    ])
    def test_configurations(self, overrides) -> None:
        config = StarkConfig(n_queries=4, **overrides)
        setup = SetupCtx.from_config(config)
        if len(config.constraints) == 1:
            module = setup.constraint_system.modules[0]
            trace = module.generate_trace(setup.F, config.trace_length)
        else:
            # 0, 0, 0, ... satisfies both relations
            trace = [0] * config.trace_length
        assert setup.constraint_system.is_satisfied(trace)
        assert stark_verify(gen_proof(setup, trace), setup)

    def test_small_field(self) -> None:
        setup = SetupCtx.from_config(
            StarkConfig(prime=SMALL_PRIME, trace_length=4, blowup=4, offset=5, n_queries=4)
        )
        trace = [v % SMALL_PRIME for v in SQUARING_TRACE]
        assert stark_verify(gen_proof(setup, trace), setup)

    def test_grinding(self) -> None:
        setup = SetupCtx.from_config(StarkConfig(pow_bits=8, n_queries=4))
        grind_proof = gen_proof(setup, SQUARING_TRACE)
        assert stark_verify(grind_proof, setup)

        tampered = dataclasses.replace(grind_proof, nonce=grind_proof.nonce + 1)
        verifier = _verify(setup, tampered)
        assert isinstance(verifier.failure, ChallengeOutOfDomain)

    def test_prover_is_deterministic(self, setup_ctx, proof) -> None:
        assert gen_proof(setup_ctx, SQUARING_TRACE) == proof

    def test_trace_is_not_modified(self, setup_ctx) -> None:
        trace = setup_ctx.F(SQUARING_TRACE)
        gen_proof(setup_ctx, trace)
        assert [int(v) for v in trace] == SQUARING_TRACE


class TestStages:
    """Intermediate prover values."""

    def test_trace_extension_interpolates(self, setup_ctx) -> None:
        starks = Starks(setup_ctx)
        _, coeffs, lde = starks.commit_trace(SQUARING_TRACE)
        for i in range(setup_ctx.config.extended_size):
            assert lde[i] == evaluate_coefficients(setup_ctx.F, coeffs, setup_ctx.S.element(i))
        for i, v in enumerate(SQUARING_TRACE):
            assert evaluate_coefficients(setup_ctx.F, coeffs, setup_ctx.H.element(i)) == setup_ctx.F(v)

    def test_quotient_is_low_degree(self, setup_ctx) -> None:
        F = setup_ctx.F
        starks = Starks(setup_ctx)
        _, coeffs, lde = starks.commit_trace(SQUARING_TRACE)
        vc = F(424242)
        _, quotient = starks.build_quotient(lde, vc)

        q_coeffs = setup_ctx.ntt_ext.coset_intt(quotient, setup_ctx.S.offset)
        bound = setup_ctx.constraint_system.quotient_degree_bound()
        assert np.array_equal(q_coeffs[bound + 1:], F.Zeros(len(q_coeffs) - bound - 1))

        z = F(12345)
        assert starks.evaluate_quotient_at(coeffs, z, vc) == evaluate_coefficients(F, q_coeffs, z)

    def test_wrong_trace_length_raises(self, setup_ctx) -> None:
        with pytest.raises(InvalidDomainSize):
            gen_proof(setup_ctx, [2, 4, 16])


class TestSoundness:
    """Invalid traces and dishonest provers are rejected."""

    def test_mutated_trace_rejected(self, setup_ctx) -> None:
        """An honest prover on [2, 4, 17, 256] is caught by the degree test.

        Q and D are computed pointwise from the committed trace, so the quotient
        and DEEP checks hold at every point; the invalid trace shows up only as
        a D above its degree bound.
        """
        bad_proof = gen_proof(setup_ctx, BAD_TRACE)
        verifier = _verify(setup_ctx, bad_proof)
        assert verifier.state == VerifierState.REJECTED
        assert isinstance(verifier.failure, DegreeBoundExceeded)

    def test_mutated_fibonacci_trace_rejected(self, fib_setup_ctx) -> None:
        F = fib_setup_ctx.F
        trace = fib_setup_ctx.constraint_system.modules[0].generate_trace(F, 16)
        trace[7] = trace[7] + F(1)
        assert not stark_verify(gen_proof(fib_setup_ctx, trace), fib_setup_ctx)

    def test_forged_quotient(self, setup_ctx) -> None:
        verifier = _verify(setup_ctx, _forged_proof(setup_ctx, BAD_TRACE, forge_quotient=True))
        assert isinstance(verifier.failure, QuotientConsistencyFailed)
        assert verifier.failure.query == 0

    def test_forged_deep(self, setup_ctx) -> None:
        verifier = _verify(setup_ctx, _forged_proof(setup_ctx, BAD_TRACE, forge_deep=True))
        assert isinstance(verifier.failure, DeepConsistencyFailed)

    def test_unforged_helper_matches_prover(self, setup_ctx, proof) -> None:
        assert _forged_proof(setup_ctx, SQUARING_TRACE) == proof


class TestTampering:
    """Any change to an honest proof is rejected."""

    def test_trace_root(self, setup_ctx, proof) -> None:
        root = bytes([proof.root_trace[0] ^ 1]) + proof.root_trace[1:]
        assert not stark_verify(dataclasses.replace(proof, root_trace=root), setup_ctx)

    def test_quotient_at_z(self, setup_ctx, proof) -> None:
        tampered = dataclasses.replace(proof, quotient_at_z=(proof.quotient_at_z + 1) % setup_ctx.config.prime)
        assert not stark_verify(tampered, setup_ctx)

    def test_quotient_at_z_out_of_range(self, setup_ctx, proof) -> None:
        tampered = dataclasses.replace(proof, quotient_at_z=setup_ctx.config.prime)
        assert isinstance(_verify(setup_ctx, tampered).failure, DeepConsistencyFailed)

    def test_final_layer(self, setup_ctx, proof) -> None:
        final_pol = (proof.final_pol[0] + 1,) + proof.final_pol[1:]
        assert not stark_verify(dataclasses.replace(proof, final_pol=final_pol), setup_ctx)

    def test_quotient_opening(self, setup_ctx, proof) -> None:
        opening = proof.queries[0].quotient
        tampered = _with_query(
            proof, 0, quotient=QueryProof(v=(opening.v[0] + 1,), mp=opening.mp)
        )
        verifier = _verify(setup_ctx, tampered)
        assert isinstance(verifier.failure, MerkleProofInvalid)
        assert verifier.failure.query == 0

    def test_trace_opening_path(self, setup_ctx, proof) -> None:
        opening = proof.queries[2].trace[1]
        mp = (bytes([opening.mp[0][0] ^ 1]) + opening.mp[0][1:],) + opening.mp[1:]
        trace = (proof.queries[2].trace[0], QueryProof(v=opening.v, mp=mp))
        verifier = _verify(setup_ctx, _with_query(proof, 2, trace=trace))
        assert isinstance(verifier.failure, MerkleProofInvalid)
        assert verifier.failure.query == 2

    def test_fri_opening(self, setup_ctx, proof) -> None:
        fri = list(proof.queries[1].fri)
        lo, hi = fri[-1].v
        fri[-1] = QueryProof(v=(hi, lo), mp=fri[-1].mp)
        verifier = _verify(setup_ctx, _with_query(proof, 1, fri=tuple(fri)))
        assert isinstance(verifier.failure, MerkleProofInvalid)

    def test_query_index(self, setup_ctx, proof) -> None:
        index = (proof.queries[0].index + 1) % setup_ctx.config.extended_size
        verifier = _verify(setup_ctx, _with_query(proof, 0, index=index))
        assert isinstance(verifier.failure, ChallengeOutOfDomain)

    def test_missing_query(self, setup_ctx, proof) -> None:
        truncated = dataclasses.replace(proof, queries=proof.queries[:-1])
        assert validate_proof_structure(truncated, setup_ctx)
        assert isinstance(_verify(setup_ctx, truncated).failure, ChallengeOutOfDomain)

    def test_rejection_is_reported(self, setup_ctx, proof, capsys) -> None:
        truncated = dataclasses.replace(proof, queries=proof.queries[:-1])
        _verify(setup_ctx, truncated)
        out = capsys.readouterr().out
        assert "Verifying commitments" in out
        assert "ERROR: ChallengeOutOfDomain" in out
        assert "Verifying queries" not in out


class TestVerifierStateMachine:
    """Phases run in order and only once."""

    def test_phases_in_order(self, setup_ctx, proof) -> None:
        verifier = StarkVerifier(setup_ctx)
        assert verifier.state == VerifierState.AWAIT_COMMITMENTS
        verifier.receive_commitments(proof)
        assert verifier.state == VerifierState.AWAIT_QUERIES
        verifier.check_queries()
        assert verifier.state == VerifierState.AWAIT_FRI_CHAIN
        verifier.check_fri_chain()
        assert verifier.state == VerifierState.ACCEPTED
        verifier.raise_on_reject()

    def test_out_of_order_phase_raises(self, setup_ctx) -> None:
        with pytest.raises(RuntimeError, match="AwaitCommitments"):
            StarkVerifier(setup_ctx).check_queries()

    def test_verifier_is_single_use(self, setup_ctx, proof) -> None:
        verifier = StarkVerifier(setup_ctx)
        assert verifier.verify(proof) == VerifierState.ACCEPTED
        with pytest.raises(RuntimeError):
            verifier.verify(proof)

    def test_raise_on_reject(self, setup_ctx, proof) -> None:
        verifier = _verify(setup_ctx, dataclasses.replace(proof, queries=()))
        assert verifier.state == VerifierState.REJECTED
        with pytest.raises(ChallengeOutOfDomain):
            verifier.raise_on_reject()


class TestSerialization:
    """JSON proof files."""

    def test_json_roundtrip_verifies(self, setup_ctx, proof) -> None:
        restored = proof_from_json(proof_to_json(proof))
        assert restored == proof
        assert stark_verify(restored, setup_ctx)

    def test_save_and_load(self, setup_ctx, proof, tmp_path) -> None:
        path = tmp_path / "proof.json"
        save_proof(proof, str(path))
        assert load_proof(str(path)) == proof


class TestVerifierSource:

    def test_compiles_without_warnings(self) -> None:
        """Docstrings hold no invalid escape sequences."""
        path = protocol.verifier.__file__
        source = Path(path).read_text()
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compile(source, path, "exec")
