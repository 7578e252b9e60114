# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""CSRF token generation and timing-safe comparison.

Tokens are opaque strings: ``nbytes`` of OS-provided randomness encoded as
URL-safe base64 without padding, so they can travel in cookies, headers,
form fields and query strings unchanged.
"""

from __future__ import annotations

import base64
import hmac
import re
import secrets
import threading
from collections.abc import Callable

from csrfguard.kernel.exceptions import ConfigurationException

DEFAULT_TOKEN_BYTES: int = 32
"""Random bytes per token (43 encoded characters)."""

MIN_TOKEN_BYTES: int = 16
"""Lower bound keeping at least 128 bits of entropy."""

_URLSAFE_RE = re.compile(r"[A-Za-z0-9_-]+")


class TokenGenerator:
    """Produces unpredictable CSRF tokens.

    The default source is :func:`secrets.token_bytes`, i.e. the operating
    system CSPRNG, which keeps no shared user-space state.  Calls into the
    source are still serialized so that a custom source (for instance a
    seeded generator used in tests) can be shared between worker threads.

    Args:
        nbytes: Number of random bytes per token.
        source: Callable returning *n* random bytes.
    """

    def __init__(
        self,
        nbytes: int = DEFAULT_TOKEN_BYTES,
        source: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        if nbytes < MIN_TOKEN_BYTES:
            raise ConfigurationException(
                f"CSRF tokens need at least {MIN_TOKEN_BYTES} random bytes, got {nbytes}",
                code="CSRF_WEAK_TOKEN",
            )
        self._nbytes = nbytes
        self._source = source
        self._lock = threading.Lock()

    @property
    def nbytes(self) -> int:
        return self._nbytes

    @property
    def token_length(self) -> int:
        """Length of every encoded token (unpadded base64)."""
        return -(-self._nbytes * 4 // 3)

    def generate(self) -> str:
        """Return a fresh token."""
        with self._lock:
            raw = self._source(self._nbytes)
        if len(raw) != self._nbytes:
            raise ConfigurationException(
                f"Random source returned {len(raw)} bytes, expected {self._nbytes}",
                code="CSRF_BAD_RANDOM_SOURCE",
            )
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    def is_well_formed(self, token: str | None) -> bool:
        """Whether *token* looks like something this generator produced."""
        return (
            token is not None
            and len(token) == self.token_length
            and _URLSAFE_RE.fullmatch(token) is not None
        )


def tokens_match(cookie_token: str, request_token: str) -> bool:
    """Compare two tokens in constant time.

    Both sides are UTF-8 encoded first: :func:`hmac.compare_digest` only
    accepts ASCII ``str`` and client-supplied values may contain anything.
    """
    return hmac.compare_digest(cookie_token.encode("utf-8"), request_token.encode("utf-8"))
