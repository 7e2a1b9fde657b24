"""PKCE (Proof Key for Code Exchange) helpers.

Implements RFC 7636 verifier generation and the S256/plain challenge
transforms IndieAuth clients are required to use.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string

from .errors import InvalidCodeVerifierError
from .oauth import PKCEChallengeMethod

STATE_CHARSET = string.ascii_letters + string.digits
CODE_VERIFIER_CHARSET = STATE_CHARSET + "-._~"
CODE_VERIFIER_LENGTH_RANGE = range(43, 129)

DEFAULT_STATE_LENGTH = 20
DEFAULT_CODE_VERIFIER_LENGTH = 128


def _random_string(length: int, charset: str) -> str:
    # secrets draws from the OS CSPRNG, which is safe across threads
    return "".join(secrets.choice(charset) for _ in range(length))


def generate_state(length: int = DEFAULT_STATE_LENGTH) -> str:
    """Generate a random state parameter.

    Args:
        length: Number of characters in the state.

    Returns:
        Random string drawn from ``[A-Za-z0-9]``.
    """
    if length < 1:
        msg = "State length must be positive"
        raise ValueError(msg)
    return _random_string(length, STATE_CHARSET)


def generate_code_verifier(length: int | None = DEFAULT_CODE_VERIFIER_LENGTH) -> str:
    """Generate a cryptographically random code verifier.

    Args:
        length: Desired length. ``None`` or a value outside 43-128 picks a
            random length in that range instead.

    Returns:
        Random string drawn from ``[A-Za-z0-9-._~]``.
    """
    if length is None or length not in CODE_VERIFIER_LENGTH_RANGE:
        length = CODE_VERIFIER_LENGTH_RANGE.start + secrets.randbelow(
            len(CODE_VERIFIER_LENGTH_RANGE)
        )
    return _random_string(length, CODE_VERIFIER_CHARSET)


def s256_encode(code_verifier: str) -> str:
    """Derive the S256 code challenge for a verifier.

    Args:
        code_verifier: The code verifier string.

    Returns:
        Base64url-encoded SHA-256 hash of the verifier, without padding.
    """
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def code_challenge(
    code_verifier: str,
    method: PKCEChallengeMethod | str = PKCEChallengeMethod.S256,
) -> str:
    """Compute the code challenge for a verifier under the given method."""
    if PKCEChallengeMethod(method) is PKCEChallengeMethod.S256:
        return s256_encode(code_verifier)
    return code_verifier


def verify_code_challenge(
    code_verifier: str,
    challenge: str,
    method: PKCEChallengeMethod | str = PKCEChallengeMethod.S256,
) -> bool:
    """Check that a verifier produces the challenge (constant time)."""
    expected = code_challenge(code_verifier, method)
    return secrets.compare_digest(expected, challenge)


def is_valid_code_verifier(code_verifier: str) -> bool:
    """Return whether a verifier meets the RFC 7636 length and charset rules."""
    return len(code_verifier) in CODE_VERIFIER_LENGTH_RANGE and all(
        c in CODE_VERIFIER_CHARSET for c in code_verifier
    )


def ensure_code_verifier(code_verifier: str) -> str:
    """Return the verifier unchanged, or raise if it breaks the PKCE rules.

    Raises:
        InvalidCodeVerifierError: If the verifier is too short, too long, or
            contains characters outside ``[A-Za-z0-9-._~]``.
    """
    if not is_valid_code_verifier(code_verifier):
        raise InvalidCodeVerifierError(
            "Code verifier must be 43-128 characters from [A-Za-z0-9-._~]"
        )
    return code_verifier
