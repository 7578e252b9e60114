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
"""Request accessor consumed by the CSRF decision core.

The core never parses HTTP itself.  Adapters hand it an object satisfying
:class:`CsrfRequest`; :class:`MaterializedRequest` is the in-memory
implementation used by the Starlette adapter and by tests.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

Pairs = Mapping[str, str] | Iterable[tuple[str, str]]


@runtime_checkable
class CsrfRequest(Protocol):
    """Read-only view of an inbound request."""

    @property
    def method(self) -> str: ...

    @property
    def path(self) -> str: ...

    def cookie(self, name: str) -> str | None: ...

    def header(self, name: str) -> str | None: ...

    def query_param(self, name: str) -> str | None: ...

    def body_field(self, name: str) -> str | None: ...


def _first_wins(pairs: Pairs, *, fold_case: bool = False) -> dict[str, str]:
    """Collapse *pairs* into a dict keeping the first value of repeated keys."""
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    result: dict[str, str] = {}
    for key, value in items:
        result.setdefault(key.lower() if fold_case else key, value)
    return result


@dataclass(frozen=True, init=False)
class MaterializedRequest:
    """A request whose cookies, headers, query string and body are already parsed.

    Headers and query parameters accept either a mapping or an ordered
    sequence of ``(name, value)`` pairs; when a name repeats, the first value
    is used.  Header names are case-insensitive.  ``body=None`` means the body
    was not parsed (absent, unsupported content type or malformed); non-string
    body values are dropped.
    """

    method: str
    path: str
    cookies: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    body: Mapping[str, str] | None = None

    def __init__(
        self,
        method: str,
        path: str,
        cookies: Mapping[str, str] | None = None,
        headers: Pairs | None = None,
        query: Pairs | None = None,
        body: Mapping[str, str] | None = None,
    ) -> None:
        object.__setattr__(self, "method", method.upper())
        object.__setattr__(self, "path", path)
        object.__setattr__(self, "cookies", dict(cookies or {}))
        object.__setattr__(self, "headers", _first_wins(headers or {}, fold_case=True))
        object.__setattr__(self, "query", _first_wins(query or {}))
        object.__setattr__(
            self, "body", {k: v for k, v in body.items() if isinstance(v, str)} if body is not None else None
        )

    def cookie(self, name: str) -> str | None:
        return self.cookies.get(name)

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def query_param(self, name: str) -> str | None:
        return self.query.get(name)

    def body_field(self, name: str) -> str | None:
        if self.body is None:
            return None
        return self.body.get(name)
