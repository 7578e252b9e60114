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
"""Token extractors — where the request-supplied copy of the token lives.

Built-in locations are a header, a body field and a query parameter.  Any
object implementing :class:`TokenExtractor` can be registered instead.
An empty value is reported as absent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from csrfguard.csrf.request import CsrfRequest
from csrfguard.kernel.exceptions import ConfigurationException

DEFAULT_HEADER_NAME: str = "x-csrf-token"
"""Header carrying the token for the default POST/PUT/DELETE extractors."""


@runtime_checkable
class TokenExtractor(Protocol):
    """Locates the request-supplied CSRF token."""

    @property
    def location(self) -> str:
        """Human-readable description, e.g. ``header 'x-csrf-token'``."""
        ...

    @property
    def requires_body(self) -> bool:
        """``True`` if the request body must be parsed before :meth:`extract`."""
        ...

    def extract(self, request: CsrfRequest) -> str | None:
        """Return the token, or ``None`` when it is not there."""
        ...


@dataclass(frozen=True)
class HeaderExtractor:
    """Token in a request header; the first value wins on duplicates."""

    name: str = DEFAULT_HEADER_NAME

    @property
    def location(self) -> str:
        return f"header '{self.name}'"

    @property
    def requires_body(self) -> bool:
        return False

    def extract(self, request: CsrfRequest) -> str | None:
        return request.header(self.name) or None


@dataclass(frozen=True)
class QueryExtractor:
    """Token in a query-string parameter."""

    name: str

    @property
    def location(self) -> str:
        return f"query parameter '{self.name}'"

    @property
    def requires_body(self) -> bool:
        return False

    def extract(self, request: CsrfRequest) -> str | None:
        return request.query_param(self.name) or None


@dataclass(frozen=True)
class BodyExtractor:
    """Token in a form or JSON body field.

    A body that could not be parsed reads as "no field", so the request ends
    up rejected as missing its token rather than failing.
    """

    field: str

    @property
    def location(self) -> str:
        return f"body field '{self.field}'"

    @property
    def requires_body(self) -> bool:
        return True

    def extract(self, request: CsrfRequest) -> str | None:
        value = request.body_field(self.field)
        return value if isinstance(value, str) and value else None


_LOCATIONS: dict[str, type[HeaderExtractor] | type[QueryExtractor] | type[BodyExtractor]] = {
    "header": HeaderExtractor,
    "query": QueryExtractor,
    "body": BodyExtractor,
}


def extractor_for(location: str, name: str) -> TokenExtractor:
    """Build a built-in extractor from configuration strings.

    Args:
        location: ``header``, ``query`` or ``body`` (case-insensitive).
        name: Header name, query parameter name or body field name.
    """
    try:
        extractor_cls = _LOCATIONS[location.lower()]
    except KeyError:
        raise ConfigurationException(
            f"Unknown CSRF token location '{location}' (expected one of {sorted(_LOCATIONS)})",
            code="CSRF_UNKNOWN_LOCATION",
        ) from None
    if not name:
        raise ConfigurationException(f"CSRF {location} extractor needs a name", code="CSRF_EMPTY_NAME")
    return extractor_cls(name)
