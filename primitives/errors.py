"""Error kinds raised by setup, proving and verification."""


class StarkError(Exception):
    """Base class for every error raised by this package."""


class InvalidDomainSize(StarkError, ValueError):
    """Domain parameters violate a size, divisibility or disjointness precondition."""


class FieldInversionOfZero(StarkError, ZeroDivisionError):
    """Attempted to invert the zero element."""


# --- Verification failures ---

class VerificationError(StarkError):
    """A verifier check failed. The proof is rejected as a whole."""

    check = "VerificationError"

    def __init__(self, message: str, query: int | None = None) -> None:
        self.query = query
        if query is not None:
            message = f"query {query}: {message}"
        super().__init__(message)


class MerkleProofInvalid(VerificationError):
    check = "MerkleProofInvalid"


class DegreeBoundExceeded(VerificationError):
    check = "DegreeBoundExceeded"


class QuotientConsistencyFailed(VerificationError):
    check = "QuotientConsistencyFailed"


class DeepConsistencyFailed(VerificationError):
    check = "DeepConsistencyFailed"


class FRILayerMismatch(VerificationError):
    check = "FRILayerMismatch"


class ChallengeOutOfDomain(VerificationError):
    check = "ChallengeOutOfDomain"
