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
"""Web filters — framework-agnostic request/response interception.

A filter receives the request and a ``call_next`` coroutine.  It may answer
on its own (short-circuit) or delegate and then post-process the response.
Request and response types stay ``Any`` so that Starlette types remain
confined to the adapter layer.
"""

from __future__ import annotations

import abc
from collections.abc import Callable, Coroutine, Iterable
from fnmatch import fnmatch
from typing import Any, ClassVar, Protocol, runtime_checkable

# Concrete type: Callable[[Request], Coroutine[Any, Any, Response]]
CallNext = Callable[..., Coroutine[Any, Any, Any]]

HIGHEST_PRECEDENCE: int = -(2**31)
LOWEST_PRECEDENCE: int = 2**31 - 1


@runtime_checkable
class WebFilter(Protocol):
    """Protocol for HTTP request/response filters.

    ``order`` positions the filter in the chain: lower runs earlier
    (outermost).
    """

    order: int

    async def do_filter(self, request: Any, call_next: CallNext) -> Any: ...

    def should_not_filter(self, request: Any) -> bool: ...


class OncePerRequestFilter(abc.ABC):
    """Base class with glob-based path selection.

    Attributes:
        url_patterns: Glob patterns the filter applies to; empty means all.
        exclude_patterns: Glob patterns skipped even when ``url_patterns``
            matches.
        order: Chain position, see :class:`WebFilter`.
    """

    url_patterns: ClassVar[list[str]] = []
    exclude_patterns: ClassVar[list[str]] = []
    order: int = 0

    def should_not_filter(self, request: Any) -> bool:
        path: str = request.url.path

        if self.url_patterns and not any(fnmatch(path, p) for p in self.url_patterns):
            return True

        return any(fnmatch(path, p) for p in self.exclude_patterns)

    @abc.abstractmethod
    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Filter logic.  Must ``await call_next(request)`` to proceed."""
        ...


def sort_filters(filters: Iterable[WebFilter]) -> list[WebFilter]:
    """Chain order; ties keep their registration order."""
    return sorted(filters, key=lambda f: getattr(f, "order", 0))
