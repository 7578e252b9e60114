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
"""Verdict — outcome of checking one request."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from csrfguard.kernel.exceptions import (
    CsrfException,
    CsrfTokenMismatchException,
    MissingCsrfCookieException,
    MissingCsrfTokenException,
)


class RejectReason(Enum):
    """Why a protected request was refused."""

    MISSING_COOKIE = "MISSING_COOKIE"
    MISSING_TOKEN = "MISSING_TOKEN"
    TOKEN_MISMATCH = "TOKEN_MISMATCH"


@dataclass(frozen=True)
class Allow:
    """The request may proceed."""

    allowed: bool = True


@dataclass(frozen=True)
class Reject:
    """The request must be refused with HTTP 400.

    ``location`` is set for :attr:`RejectReason.MISSING_TOKEN` only, and
    ``cookie_name`` for :attr:`RejectReason.MISSING_COOKIE`.
    """

    reason: RejectReason
    location: str | None = None
    cookie_name: str | None = None
    allowed: bool = False

    @property
    def detail(self) -> str:
        """Server-side diagnostic.  Never send this to the client."""
        return str(self.to_exception())

    def to_exception(self) -> CsrfException:
        if self.reason is RejectReason.MISSING_COOKIE:
            return MissingCsrfCookieException(self.cookie_name or "")
        if self.reason is RejectReason.MISSING_TOKEN:
            return MissingCsrfTokenException(self.location or "")
        return CsrfTokenMismatchException()


Verdict = Allow | Reject

ALLOW = Allow()
