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
"""ExtractorRegistry — one token extractor per HTTP method.

A method with no extractor is never checked, which is how GET, HEAD and
OPTIONS stay unprotected by default.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from csrfguard.csrf.extractors import HeaderExtractor, TokenExtractor
from csrfguard.kernel.exceptions import ConfigurationException

DEFAULT_PROTECTED_METHODS: tuple[str, ...] = ("POST", "PUT", "DELETE")


def normalize_method(method: str) -> str:
    """Upper-case an HTTP method name, rejecting blanks."""
    normalized = method.strip().upper()
    if not normalized:
        raise ConfigurationException("HTTP method must not be empty", code="CSRF_EMPTY_METHOD")
    return normalized


class ExtractorRegistry:
    """Maps HTTP methods to the extractor configured for them."""

    def __init__(self, extractors: Mapping[str, TokenExtractor] | None = None) -> None:
        self._extractors: dict[str, TokenExtractor] = {}
        self._frozen = False
        if extractors:
            self.replace_all(extractors)

    @classmethod
    def default(cls) -> ExtractorRegistry:
        """POST, PUT and DELETE read the token from the ``x-csrf-token`` header."""
        return cls({method: HeaderExtractor() for method in DEFAULT_PROTECTED_METHODS})

    def insert(self, method: str, extractor: TokenExtractor) -> None:
        """Register *extractor* for *method*, replacing any previous one."""
        self._check_mutable()
        self._extractors[normalize_method(method)] = extractor

    def get(self, method: str) -> TokenExtractor | None:
        return self._extractors.get(method.upper())

    def replace_all(self, extractors: Mapping[str, TokenExtractor]) -> None:
        """Drop every registration and install *extractors* instead."""
        self._check_mutable()
        self._extractors = {normalize_method(m): e for m, e in extractors.items()}

    def methods(self) -> frozenset[str]:
        return frozenset(self._extractors)

    def copy(self) -> ExtractorRegistry:
        """Mutable copy, even of a frozen registry."""
        return ExtractorRegistry(self._extractors)

    def freeze(self) -> ExtractorRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationException(
                "ExtractorRegistry is read-only once the configuration is built",
                code="CSRF_FROZEN_CONFIGURATION",
            )

    def __contains__(self, method: object) -> bool:
        return isinstance(method, str) and method.upper() in self._extractors

    def __iter__(self) -> Iterator[tuple[str, TokenExtractor]]:
        return iter(self._extractors.items())

    def __len__(self) -> int:
        return len(self._extractors)

    def __repr__(self) -> str:
        entries = ", ".join(f"{m}={e.location}" for m, e in sorted(self._extractors.items()))
        return f"ExtractorRegistry({entries})"
