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
"""WebFilterChainMiddleware: runs csrfguard's WebFilters as one ASGI middleware."""

from __future__ import annotations

from collections.abc import Sequence
from functools import reduce
from typing import cast

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from csrfguard.web.filters import CallNext, WebFilter, sort_filters


class _BufferedResponse:
    """ASGI ``send`` that collects the downstream response into a :class:`Response`."""

    def __init__(self) -> None:
        self.status = 200
        self.headers: list[tuple[bytes, bytes]] = []
        self.chunks: list[bytes] = []

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status = message["status"]
            self.headers = list(message.get("headers", ()))
        elif message["type"] == "http.response.body":
            self.chunks.append(message.get("body", b""))

    def to_response(self) -> Response:
        response = Response(content=b"".join(self.chunks), status_code=self.status)
        response.raw_headers[:] = self.headers
        return response


class WebFilterChainMiddleware:
    """Pure ASGI middleware; filters run lowest ``order`` first (outermost).

    The application is called with the ``receive`` of whichever request
    object reaches the end of the chain, so a filter that buffered the body
    can hand on a replaying request. Non-HTTP scopes bypass the chain.
    """

    def __init__(self, app: ASGIApp, filters: Sequence[WebFilter] = ()) -> None:
        self.app = app
        self._filters = sort_filters(filters)

    async def _dispatch(self, request: Request) -> Response:
        collector = _BufferedResponse()
        await self.app(request.scope, request.receive, collector)
        return collector.to_response()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        chain = reduce(lambda inner, f: _link(f, inner), reversed(self._filters), cast(CallNext, self._dispatch))
        response = cast(Response, await chain(Request(scope, receive, send)))
        await response(scope, receive, send)


def _link(web_filter: WebFilter, next_call: CallNext) -> CallNext:
    async def _step(request: Request) -> Response:
        if web_filter.should_not_filter(request):
            return cast(Response, await next_call(request))
        return cast(Response, await web_filter.do_filter(request, next_call))

    return _step
