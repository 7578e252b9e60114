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
"""Unified exception hierarchy for csrfguard.

All library exceptions inherit from CsrfGuardException, enabling unified
error handling across modules.

Categories:
- ConfigurationException: invalid settings detected while building the
  protection (startup time, never per request)
- SecurityException: request-level CSRF rejections
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class CsrfGuardException(Exception):
    """Base exception for all csrfguard errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CSRF_TOKEN_MISMATCH").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(CsrfGuardException):
    """Invalid protection settings (bad method, empty cookie name, ...)."""


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(CsrfGuardException):
    """Request rejected by a security check."""


class CsrfException(SecurityException):
    """Base class for double-submit cookie rejections."""


class MissingCsrfCookieException(CsrfException):
    """No CSRF token in the cookies."""

    def __init__(self, cookie_name: str) -> None:
        super().__init__(
            "The CSRF Token is missing in the cookies",
            code="CSRF_MISSING_COOKIE",
            context={"cookie": cookie_name},
        )


class MissingCsrfTokenException(CsrfException):
    """No CSRF token in the request (header, body or query parameter)."""

    def __init__(self, location: str) -> None:
        super().__init__(
            f"The CSRF Token is missing = {location}",
            code="CSRF_MISSING_TOKEN",
            context={"location": location},
        )
        self.location = location


class CsrfTokenMismatchException(CsrfException):
    """The cookie token and the request token do not match."""

    def __init__(self) -> None:
        super().__init__("The CSRF Tokens do not match", code="CSRF_TOKEN_MISMATCH")
