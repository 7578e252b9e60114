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
"""Whitelist — (method, path) pairs exempt from CSRF checks."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from csrfguard.csrf.registry import normalize_method
from csrfguard.kernel.exceptions import ConfigurationException


class Whitelist:
    """Exact-match exemptions.

    Paths are compared verbatim (no globbing, no trailing-slash folding);
    methods are compared upper-cased.  Lookups scan the entries linearly,
    which is fine for the handful of endpoints usually exempted.
    """

    def __init__(self, entries: Iterable[tuple[str, str]] = ()) -> None:
        self._entries: list[tuple[str, str]] = []
        self._frozen = False
        for method, path in entries:
            self.add(method, path)

    def add(self, method: str, path: str) -> None:
        if self._frozen:
            raise ConfigurationException(
                "Whitelist is read-only once the configuration is built",
                code="CSRF_FROZEN_CONFIGURATION",
            )
        self._entries.append((normalize_method(method), path))

    def contains(self, method: str, path: str) -> bool:
        method = method.upper()
        for entry_method, entry_path in self._entries:
            if entry_method == method and entry_path == path:
                return True
        return False

    def copy(self) -> Whitelist:
        return Whitelist(self._entries)

    def freeze(self) -> Whitelist:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Whitelist({self._entries!r})"
