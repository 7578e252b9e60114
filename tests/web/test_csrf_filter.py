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
"""Tests for CsrfFilter — decision, rejection and token rotation."""

from __future__ import annotations

import json
import re
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from csrfguard.csrf.configuration import CsrfConfiguration, RotationPolicy
from csrfguard.csrf.extractors import BodyExtractor, QueryExtractor
from csrfguard.web.adapters.starlette.filters import csrf_filter as csrf_filter_module
from csrfguard.web.adapters.starlette.filters.csrf_filter import CsrfFilter

TOKEN = "q" * 43
SET_COOKIE = re.compile(r"csrfToken=([A-Za-z0-9_-]{43}); Path=/")


def _make_request(
    method: str = "GET",
    path: str = "/",
    headers: list[tuple[str, str]] | None = None,
    query_string: bytes = b"",
    body: bytes = b"",
) -> Request:
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": query_string,
        "headers": [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers or []],
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 50000),
    }
    messages = [{"type": "http.request", "body": body, "more_body": False}]

    async def receive():
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    return Request(scope, receive)


@pytest.fixture()
def log(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    mock = MagicMock()
    monkeypatch.setattr(csrf_filter_module, "logger", mock)
    return mock


def _error(response: Response) -> dict:
    return json.loads(response.body)["error"]


class TestSafeMethods:
    @pytest.mark.asyncio
    async def test_get_passes_and_gets_cookie(self, log: MagicMock) -> None:
        request = _make_request("GET")
        call_next = AsyncMock(return_value=PlainTextResponse("ok"))

        response = await CsrfFilter().do_filter(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert response.status_code == 200
        assert SET_COOKIE.fullmatch(response.headers["set-cookie"])

    @pytest.mark.asyncio
    async def test_patch_is_unprotected_by_default(self, log: MagicMock) -> None:
        call_next = AsyncMock(return_value=PlainTextResponse("ok"))
        response = await CsrfFilter().do_filter(_make_request("PATCH"), call_next)
        assert response.status_code == 200
        assert "set-cookie" in response.headers


class TestRejection:
    @pytest.mark.asyncio
    async def test_missing_cookie(self, log: MagicMock) -> None:
        request = _make_request("POST", headers=[("x-csrf-token", TOKEN)])
        call_next = AsyncMock()

        response = await CsrfFilter().do_filter(request, call_next)

        call_next.assert_not_awaited()
        assert response.status_code == 400
        assert _error(response)["message"] == "CSRF Error"
        assert "set-cookie" not in response.headers
        log.warning.assert_called_once()
        assert log.warning.call_args.kwargs["reason"] == "MISSING_COOKIE"

    @pytest.mark.asyncio
    async def test_missing_token(self, log: MagicMock) -> None:
        request = _make_request("PUT", headers=[("cookie", f"csrfToken={TOKEN}")])
        response = await CsrfFilter().do_filter(request, AsyncMock())

        assert response.status_code == 400
        kwargs = log.warning.call_args.kwargs
        assert kwargs["reason"] == "MISSING_TOKEN"
        assert "x-csrf-token" in kwargs["detail"]

    @pytest.mark.asyncio
    async def test_mismatch_body_does_not_leak_reason(self, log: MagicMock) -> None:
        request = _make_request(
            "DELETE",
            headers=[("cookie", f"csrfToken={TOKEN}"), ("x-csrf-token", "r" * 43)],
        )
        response = await CsrfFilter().do_filter(request, AsyncMock())

        assert response.status_code == 400
        assert b"match" not in response.body
        assert log.warning.call_args.kwargs["reason"] == "TOKEN_MISMATCH"

    @pytest.mark.asyncio
    async def test_transaction_id_is_logged(self, log: MagicMock) -> None:
        request = _make_request("POST")
        request.state.transaction_id = "tx-1"

        response = await CsrfFilter().do_filter(request, AsyncMock())

        assert _error(response)["transaction_id"] == "tx-1"
        assert log.warning.call_args.kwargs["transaction_id"] == "tx-1"


class TestAcceptance:
    @pytest.mark.asyncio
    async def test_matching_header_rotates_token(self, log: MagicMock) -> None:
        request = _make_request(
            "POST",
            headers=[("cookie", f"csrfToken={TOKEN}"), ("x-csrf-token", TOKEN)],
        )
        call_next = AsyncMock(return_value=PlainTextResponse("ok"))

        response = await CsrfFilter().do_filter(request, call_next)

        assert response.status_code == 200
        match = SET_COOKIE.fullmatch(response.headers["set-cookie"])
        assert match and match.group(1) != TOKEN
        log.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_query_extractor(self, log: MagicMock) -> None:
        configuration = CsrfConfiguration.builder().add_extractor("POST", QueryExtractor("csrf")).build()
        request = _make_request(
            "POST",
            headers=[("cookie", f"csrfToken={TOKEN}")],
            query_string=f"csrf={TOKEN}".encode(),
        )
        response = await CsrfFilter(configuration).do_filter(request, AsyncMock(return_value=PlainTextResponse("ok")))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_form_body_is_replayed_downstream(self, log: MagicMock) -> None:
        configuration = CsrfConfiguration.builder().add_extractor("PATCH", BodyExtractor("csrf_token")).build()
        raw = f"csrf_token={TOKEN}&note=hi".encode()
        request = _make_request(
            "PATCH",
            headers=[
                ("cookie", f"csrfToken={TOKEN}"),
                ("content-type", "application/x-www-form-urlencoded"),
            ],
            body=raw,
        )
        seen: dict[str, str] = {}

        async def call_next(downstream: Request) -> Response:
            form = await downstream.form()
            seen["note"] = str(form["note"])
            return PlainTextResponse("ok")

        response = await CsrfFilter(configuration).do_filter(request, call_next)

        assert response.status_code == 200
        assert seen == {"note": "hi"}

    @pytest.mark.asyncio
    async def test_json_body_field(self, log: MagicMock) -> None:
        configuration = CsrfConfiguration.builder().add_extractor("POST", BodyExtractor("csrf_token")).build()
        raw = json.dumps({"csrf_token": TOKEN, "amount": 10}).encode()
        request = _make_request(
            "POST",
            headers=[("cookie", f"csrfToken={TOKEN}"), ("content-type", "application/json")],
            body=raw,
        )
        downstream_bodies: list[bytes] = []

        async def call_next(downstream: Request) -> Response:
            downstream_bodies.append(await downstream.body())
            return PlainTextResponse("ok")

        response = await CsrfFilter(configuration).do_filter(request, call_next)

        assert response.status_code == 200
        assert downstream_bodies == [raw]

    @pytest.mark.asyncio
    async def test_malformed_json_body_is_missing_token(self, log: MagicMock) -> None:
        configuration = CsrfConfiguration.builder().add_extractor("POST", BodyExtractor("csrf_token")).build()
        request = _make_request(
            "POST",
            headers=[("cookie", f"csrfToken={TOKEN}"), ("content-type", "application/json")],
            body=b'{"csrf_token": ',
        )
        response = await CsrfFilter(configuration).do_filter(request, AsyncMock())

        assert response.status_code == 400
        assert log.warning.call_args.kwargs["reason"] == "MISSING_TOKEN"

    @pytest.mark.asyncio
    async def test_whitelisted_post_still_gets_cookie(self, log: MagicMock) -> None:
        configuration = CsrfConfiguration.builder().add_whitelist("POST", "/login").build()
        call_next = AsyncMock(return_value=PlainTextResponse("ok"))

        response = await CsrfFilter(configuration).do_filter(_make_request("POST", "/login"), call_next)

        assert response.status_code == 200
        assert SET_COOKIE.fullmatch(response.headers["set-cookie"])


class TestCookieAttachment:
    @pytest.mark.asyncio
    async def test_disabled_passes_everything_without_cookie(self, log: MagicMock) -> None:
        configuration = CsrfConfiguration.builder().set_enabled(False).build()
        call_next = AsyncMock(return_value=PlainTextResponse("ok"))

        response = await CsrfFilter(configuration).do_filter(_make_request("POST"), call_next)

        assert response.status_code == 200
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_if_missing_keeps_existing_cookie(self, log: MagicMock) -> None:
        configuration = CsrfConfiguration.builder().set_rotation(RotationPolicy.IF_MISSING).build()
        request = _make_request("GET", headers=[("cookie", f"csrfToken={TOKEN}")])

        response = await CsrfFilter(configuration).do_filter(request, AsyncMock(return_value=PlainTextResponse("ok")))

        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_cookie_attributes(self, log: MagicMock) -> None:
        configuration = (
            CsrfConfiguration.builder()
            .set_cookie_name("XSRF-TOKEN")
            .set_cookie_attributes(path="/app", secure=True, samesite="strict")
            .build()
        )
        response = await CsrfFilter(configuration).do_filter(
            _make_request("GET", "/app/home"), AsyncMock(return_value=PlainTextResponse("ok"))
        )

        header = response.headers["set-cookie"]
        assert header.startswith("XSRF-TOKEN=")
        assert "Path=/app" in header
        assert "Secure" in header
        assert "SameSite=strict" in header
        assert "HttpOnly" not in header

    def test_order_runs_after_transaction_id(self) -> None:
        from csrfguard.web.adapters.starlette.filters import TransactionIdFilter

        assert TransactionIdFilter.order < CsrfFilter.order
