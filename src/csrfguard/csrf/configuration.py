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
"""CSRF protection settings and their builder.

A :class:`CsrfConfiguration` is built once at startup and then shared,
read-only, by every request.  Only the token generator keeps (internally
synchronized) mutable state.

Usage::

    configuration = (
        CsrfConfigurationBuilder()
        .add_extractor("PATCH", HeaderExtractor())
        .add_whitelist("POST", "/webhooks/stripe")
        .build()
    )
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Literal

from csrfguard.csrf.extractors import TokenExtractor, extractor_for
from csrfguard.csrf.registry import ExtractorRegistry
from csrfguard.csrf.tokens import TokenGenerator
from csrfguard.csrf.whitelist import Whitelist
from csrfguard.kernel.exceptions import ConfigurationException

if TYPE_CHECKING:
    from csrfguard.config.properties.csrf import CsrfProperties

DEFAULT_COOKIE_NAME: str = "csrfToken"

SameSite = Literal["lax", "strict", "none"]


class RotationPolicy(Enum):
    """When a fresh token is put on the response."""

    ALWAYS = "always"
    """Every response reaching the attacher carries a new token."""

    IF_MISSING = "if-missing"
    """Only mint when the request has no well-formed cookie token."""


@dataclass(frozen=True)
class CsrfConfiguration:
    """Immutable protection settings."""

    enabled: bool = True
    cookie_name: str = DEFAULT_COOKIE_NAME
    registry: ExtractorRegistry = field(default_factory=lambda: ExtractorRegistry.default().freeze())
    whitelist: Whitelist = field(default_factory=lambda: Whitelist().freeze())
    generator: TokenGenerator = field(default_factory=TokenGenerator)
    rotation: RotationPolicy = RotationPolicy.ALWAYS
    cookie_path: str = "/"
    cookie_secure: bool = False
    cookie_httponly: bool = False
    cookie_samesite: SameSite | None = None

    @classmethod
    def builder(cls) -> CsrfConfigurationBuilder:
        return CsrfConfigurationBuilder()

    @classmethod
    def from_properties(cls, properties: CsrfProperties) -> CsrfConfiguration:
        """Build from bound ``csrfguard.csrf`` properties."""
        builder = (
            CsrfConfigurationBuilder()
            .set_enabled(properties.enabled)
            .set_cookie_name(properties.cookie_name)
            .set_generator(TokenGenerator(properties.token_bytes))
            .set_rotation(RotationPolicy(properties.rotation))
            .set_cookie_attributes(
                path=properties.cookie_path,
                secure=properties.cookie_secure,
                httponly=properties.cookie_httponly,
                samesite=properties.cookie_samesite,
            )
        )
        if properties.extractors is not None:
            builder.set_extractors(
                {
                    method: extractor_for(spec.location, spec.name)
                    for method, spec in properties.extractors.items()
                }
            )
        for entry in properties.whitelist:
            builder.add_whitelist(entry.method, entry.path)
        return builder.build()


def default_configuration() -> CsrfConfiguration:
    """Sane defaults.

    Enabled, cookie ``csrfToken``, POST/PUT/DELETE checked against the
    ``x-csrf-token`` header, empty whitelist, token rotated on every response.
    """
    return CsrfConfigurationBuilder().build()


class CsrfConfigurationBuilder:
    """Fluent builder for :class:`CsrfConfiguration`.

    Starts from the defaults.  Each setter returns the builder.
    """

    def __init__(self) -> None:
        self._enabled = True
        self._cookie_name = DEFAULT_COOKIE_NAME
        self._registry = ExtractorRegistry.default()
        self._whitelist = Whitelist()
        self._generator: TokenGenerator | None = None
        self._rotation = RotationPolicy.ALWAYS
        self._cookie_path = "/"
        self._cookie_secure = False
        self._cookie_httponly = False
        self._cookie_samesite: SameSite | None = None

    def set_enabled(self, enabled: bool) -> CsrfConfigurationBuilder:
        """Control whether requests are checked and tokens issued at all."""
        self._enabled = enabled
        return self

    def set_cookie_name(self, name: str) -> CsrfConfigurationBuilder:
        self._cookie_name = name
        return self

    def add_extractor(self, method: str, extractor: TokenExtractor) -> CsrfConfigurationBuilder:
        """Check *method* using *extractor* (replaces an earlier one)."""
        self._registry.insert(method, extractor)
        return self

    def set_extractors(self, extractors: Mapping[str, TokenExtractor]) -> CsrfConfigurationBuilder:
        """Replace all extractors; methods left out become unprotected."""
        self._registry.replace_all(extractors)
        return self

    def add_whitelist(self, method: str, path: str) -> CsrfConfigurationBuilder:
        self._whitelist.add(method, path)
        return self

    def set_generator(self, generator: TokenGenerator) -> CsrfConfigurationBuilder:
        self._generator = generator
        return self

    def set_rotation(self, rotation: RotationPolicy) -> CsrfConfigurationBuilder:
        self._rotation = rotation
        return self

    def set_cookie_attributes(
        self,
        *,
        path: str = "/",
        secure: bool = False,
        httponly: bool = False,
        samesite: SameSite | None = None,
    ) -> CsrfConfigurationBuilder:
        self._cookie_path = path
        self._cookie_secure = secure
        self._cookie_httponly = httponly
        self._cookie_samesite = samesite
        return self

    def build(self) -> CsrfConfiguration:
        """Validate and freeze.  The builder can keep being used afterwards."""
        if not self._cookie_name:
            raise ConfigurationException("CSRF cookie name must not be empty", code="CSRF_EMPTY_NAME")
        if not self._cookie_path.startswith("/"):
            raise ConfigurationException(
                f"CSRF cookie path must be absolute, got '{self._cookie_path}'",
                code="CSRF_BAD_COOKIE_PATH",
            )
        if self._cookie_samesite == "none" and not self._cookie_secure:
            raise ConfigurationException(
                "SameSite=None cookies must also be Secure",
                code="CSRF_INSECURE_SAMESITE",
            )
        return CsrfConfiguration(
            enabled=self._enabled,
            cookie_name=self._cookie_name,
            registry=self._registry.copy().freeze(),
            whitelist=self._whitelist.copy().freeze(),
            generator=self._generator or TokenGenerator(),
            rotation=self._rotation,
            cookie_path=self._cookie_path,
            cookie_secure=self._cookie_secure,
            cookie_httponly=self._cookie_httponly,
            cookie_samesite=self._cookie_samesite,
        )
