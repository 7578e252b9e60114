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
"""Starlette request -> :class:`MaterializedRequest`.

Reading the body drains the ASGI ``receive`` channel, so when the body is
parsed a replacement request is returned whose ``receive`` replays the
buffered bytes to the downstream application.
"""

from __future__ import annotations

import json

import structlog
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import ClientDisconnect, Request
from starlette.types import Message, Receive

from csrfguard.csrf.request import MaterializedRequest

logger = structlog.get_logger("csrfguard.web")

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _replaying_receive(body: bytes, receive: Receive) -> Receive:
    """Hand out *body* once, then fall back to the real channel (disconnects)."""
    sent = False

    async def _receive() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return _receive


async def read_body_fields(request: Request) -> dict[str, str] | None:
    """Parse a JSON object or form body into string fields.

    Returns ``None`` for an unsupported content type or a body that fails to
    parse.  Non-string values (nested JSON, uploaded files) are left out.
    Repeated form fields keep their first value.
    """
    content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()

    if content_type == "application/json" or content_type.endswith("+json"):
        try:
            data = json.loads(await request.body())
        except (ValueError, RecursionError):
            logger.debug("csrf_body_unparseable", content_type=content_type)
            return None
        if not isinstance(data, dict):
            return None
        return {k: v for k, v in data.items() if isinstance(v, str)}

    if content_type in _FORM_TYPES:
        fields: dict[str, str] = {}
        try:
            async with request.form() as form:
                for key, value in form.multi_items():
                    if not isinstance(value, UploadFile):
                        fields.setdefault(key, value)
        except (MultiPartException, HTTPException, ValueError):
            logger.debug("csrf_body_unparseable", content_type=content_type)
            return None
        return fields

    return None


async def materialize(request: Request, *, read_body: bool = False) -> tuple[MaterializedRequest, Request]:
    """Snapshot *request* for the CSRF core.

    Returns the snapshot and the request to pass downstream, which is a
    body-replaying copy when *read_body* is set.  Cookies come from
    Starlette's parser, so a repeated cookie name keeps its last value.
    """
    body: dict[str, str] | None = None
    downstream = request

    if read_body:
        try:
            raw = await request.body()
        except ClientDisconnect:
            raw = b""
        else:
            body = await read_body_fields(request)
        downstream = Request(request.scope, _replaying_receive(raw, request.receive))

    snapshot = MaterializedRequest(
        method=request.method,
        path=request.url.path,
        cookies=request.cookies,
        headers=request.headers.items(),
        query=request.query_params.multi_items(),
        body=body,
    )
    return snapshot, downstream
