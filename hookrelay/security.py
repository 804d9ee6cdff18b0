"""
Webhook Token Verification — shared-secret comparison.

GitLab sends the user-specified token verbatim in X-Gitlab-Token, so there
is no HMAC to recompute: the presented value is compared directly against
the configured secret. The comparison fails closed on a missing secret.
"""

import hmac
from typing import Mapping, Optional, Union

from . import config as cfg

BytesLike = Union[bytes, str]


def _as_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def is_valid_token(presented: BytesLike, expected: BytesLike) -> bool:
    """True when ``presented`` matches ``expected``.

    An empty ``expected`` never validates. Lengths are checked first (length
    is not secret); the bytes themselves are compared with
    ``hmac.compare_digest`` so the time taken does not depend on where the
    first mismatch sits.
    """
    expected_bytes = _as_bytes(expected)
    if not expected_bytes:
        return False
    presented_bytes = _as_bytes(presented)
    if len(presented_bytes) != len(expected_bytes):
        return False
    return hmac.compare_digest(presented_bytes, expected_bytes)


def verify_request_token(
    headers: Mapping[str, str],
    secret: str = cfg.WEBHOOK_TOKEN,
    header: str = cfg.AUTH_HEADER,
) -> Optional[bool]:
    """Check the auth header of an inbound request.

    Returns None when the header is absent, otherwise the comparison result.
    ``headers`` must have lower-cased keys.
    """
    presented = headers.get(header.lower())
    if presented is None:
        return None
    return is_valid_token(presented, secret)
