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
"""Tests for the Guard decision logic."""

from __future__ import annotations

import pytest

from csrfguard.csrf import tokens as tokens_module
from csrfguard.csrf.configuration import CsrfConfigurationBuilder
from csrfguard.csrf.extractors import BodyExtractor, HeaderExtractor, QueryExtractor
from csrfguard.csrf.guard import Guard
from csrfguard.csrf.request import MaterializedRequest
from csrfguard.csrf.verdict import ALLOW, Allow, Reject, RejectReason

TOKEN = "q1w2e3r4t5y6u7i8o9p0a1s2d3f4g5h6j7k8l9z0x1c"


def _request(
    method: str = "POST",
    path: str = "/",
    cookie: str | None = None,
    header: str | None = None,
    **kwargs,
) -> MaterializedRequest:
    cookies = {"csrfToken": cookie} if cookie is not None else {}
    headers = {"x-csrf-token": header} if header is not None else {}
    return MaterializedRequest(method, path, cookies=cookies, headers=headers, **kwargs)


class TestGuardUnprotectedRequests:
    def test_disabled_allows_everything(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().set_enabled(False).build())
        assert guard.decide(_request()) == ALLOW
        assert guard.decide(_request(cookie="a", header="b")) == ALLOW

    @pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS", "PATCH"])
    def test_unregistered_methods_are_allowed(self, method) -> None:
        assert Guard().decide(_request(method=method)) == ALLOW

    @pytest.mark.parametrize(
        ("cookie", "header"),
        [(None, None), (TOKEN, None), (None, TOKEN), (TOKEN, "different")],
    )
    def test_whitelist_allows_regardless_of_tokens(self, cookie, header) -> None:
        guard = Guard(CsrfConfigurationBuilder().add_whitelist("POST", "/hook").build())
        assert guard.decide(_request(path="/hook", cookie=cookie, header=header)) == ALLOW

    def test_whitelist_only_covers_its_method(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().add_whitelist("POST", "/hook").build())
        verdict = guard.decide(_request(method="PUT", path="/hook"))
        assert isinstance(verdict, Reject)

    def test_whitelist_does_not_cover_other_paths(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().add_whitelist("POST", "/").build())
        verdict = guard.decide(_request(path="/other"))
        assert verdict == Reject(RejectReason.MISSING_COOKIE, cookie_name="csrfToken")


class TestGuardProtectedRequests:
    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "post"])
    def test_matching_tokens_are_allowed(self, method) -> None:
        verdict = Guard().decide(_request(method=method, cookie=TOKEN, header=TOKEN))
        assert isinstance(verdict, Allow)
        assert verdict.allowed

    def test_missing_cookie_rejected_even_with_valid_looking_token(self) -> None:
        verdict = Guard().decide(_request(header=TOKEN))
        assert isinstance(verdict, Reject)
        assert verdict.reason is RejectReason.MISSING_COOKIE
        assert not verdict.allowed

    def test_empty_cookie_counts_as_missing(self) -> None:
        verdict = Guard().decide(_request(cookie="", header=TOKEN))
        assert verdict == Reject(RejectReason.MISSING_COOKIE, cookie_name="csrfToken")

    def test_missing_request_token_reports_location(self) -> None:
        verdict = Guard().decide(_request(cookie=TOKEN))
        assert verdict == Reject(RejectReason.MISSING_TOKEN, location="header 'x-csrf-token'")

    def test_missing_cookie_is_checked_before_token(self) -> None:
        verdict = Guard().decide(_request())
        assert verdict.reason is RejectReason.MISSING_COOKIE

    @pytest.mark.parametrize("position", [0, 10, len(TOKEN) - 1])
    def test_single_byte_difference_is_a_mismatch(self, position) -> None:
        replacement = "Z" if TOKEN[position] != "Z" else "Y"
        tampered = TOKEN[:position] + replacement + TOKEN[position + 1 :]
        verdict = Guard().decide(_request(cookie=TOKEN, header=tampered))
        assert verdict == Reject(RejectReason.TOKEN_MISMATCH)

    def test_prefix_is_a_mismatch(self) -> None:
        verdict = Guard().decide(_request(cookie=TOKEN, header=TOKEN[:-1]))
        assert verdict == Reject(RejectReason.TOKEN_MISMATCH)

    def test_duplicate_header_first_value_is_compared(self) -> None:
        request = MaterializedRequest(
            "POST",
            "/",
            cookies={"csrfToken": TOKEN},
            headers=[("x-csrf-token", TOKEN), ("x-csrf-token", "attacker")],
        )
        assert Guard().decide(request) == ALLOW

        reversed_request = MaterializedRequest(
            "POST",
            "/",
            cookies={"csrfToken": TOKEN},
            headers=[("x-csrf-token", "attacker"), ("x-csrf-token", TOKEN)],
        )
        assert Guard().decide(reversed_request) == Reject(RejectReason.TOKEN_MISMATCH)

    def test_custom_cookie_name(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().set_cookie_name("XSRF").build())
        request = MaterializedRequest("POST", "/", cookies={"XSRF": TOKEN}, headers={"x-csrf-token": TOKEN})
        assert guard.decide(request) == ALLOW
        assert guard.decide(_request(cookie=TOKEN, header=TOKEN)) == Reject(
            RejectReason.MISSING_COOKIE, cookie_name="XSRF"
        )

    def test_comparison_goes_through_compare_digest(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[tuple[bytes, bytes]] = []
        real = tokens_module.hmac.compare_digest

        def spy(a: bytes, b: bytes) -> bool:
            calls.append((a, b))
            return real(a, b)

        monkeypatch.setattr(tokens_module.hmac, "compare_digest", spy)
        Guard().decide(_request(cookie=TOKEN, header=TOKEN))
        assert calls == [(TOKEN.encode(), TOKEN.encode())]


class TestGuardExtractorLocations:
    def test_query_extractor(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().add_extractor("DELETE", QueryExtractor("csrf")).build())
        request = MaterializedRequest("DELETE", "/items/1", cookies={"csrfToken": TOKEN}, query={"csrf": TOKEN})
        assert guard.decide(request) == ALLOW

    def test_body_extractor(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().add_extractor("POST", BodyExtractor("csrf_token")).build())
        request = MaterializedRequest("POST", "/", cookies={"csrfToken": TOKEN}, body={"csrf_token": TOKEN})
        assert guard.decide(request) == ALLOW

    def test_unparsed_body_is_a_missing_token(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().add_extractor("POST", BodyExtractor("csrf_token")).build())
        request = MaterializedRequest("POST", "/", cookies={"csrfToken": TOKEN}, body=None)
        assert guard.decide(request) == Reject(RejectReason.MISSING_TOKEN, location="body field 'csrf_token'")

    def test_non_string_body_value_is_a_missing_token(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().add_extractor("POST", BodyExtractor("csrf")).build())
        request = MaterializedRequest("POST", "/", cookies={"csrfToken": TOKEN}, body={"csrf": 1})
        assert guard.decide(request) == Reject(RejectReason.MISSING_TOKEN, location="body field 'csrf'")

    def test_header_ignored_when_method_uses_body(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().add_extractor("POST", BodyExtractor("csrf_token")).build())
        verdict = guard.decide(_request(cookie=TOKEN, header=TOKEN))
        assert isinstance(verdict, Reject)
        assert verdict.reason is RejectReason.MISSING_TOKEN

    def test_custom_extractor(self) -> None:
        class AuthorizationExtractor:
            location = "authorization header"
            requires_body = False

            def extract(self, request):
                value = request.header("authorization") or ""
                return value.removeprefix("Csrf ") or None

        guard = Guard(CsrfConfigurationBuilder().add_extractor("POST", AuthorizationExtractor()).build())
        request = MaterializedRequest(
            "POST", "/", cookies={"csrfToken": TOKEN}, headers={"Authorization": f"Csrf {TOKEN}"}
        )
        assert guard.decide(request) == ALLOW

    def test_protecting_get_when_registered(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().add_extractor("GET", QueryExtractor("csrf")).build())
        verdict = guard.decide(MaterializedRequest("GET", "/export"))
        assert verdict.reason is RejectReason.MISSING_COOKIE


class TestGuardIntrospection:
    def test_should_protect(self) -> None:
        guard = Guard(CsrfConfigurationBuilder().add_whitelist("POST", "/hook").build())
        assert guard.should_protect("POST", "/")
        assert not guard.should_protect("POST", "/hook")
        assert not guard.should_protect("GET", "/")

    def test_requires_body_only_for_body_extractors(self) -> None:
        guard = Guard(
            CsrfConfigurationBuilder()
            .add_extractor("PATCH", BodyExtractor("csrf_token"))
            .add_whitelist("PATCH", "/public")
            .build()
        )
        assert guard.requires_body("PATCH", "/")
        assert not guard.requires_body("PATCH", "/public")
        assert not guard.requires_body("POST", "/")
        assert not guard.requires_body("GET", "/")

    def test_disabled_guard_never_requires_body(self) -> None:
        guard = Guard(
            CsrfConfigurationBuilder().set_enabled(False).add_extractor("POST", BodyExtractor("t")).build()
        )
        assert not guard.requires_body("POST", "/")

    def test_default_configuration_when_none_given(self) -> None:
        guard = Guard()
        assert guard.configuration.enabled
        assert guard.configuration.cookie_name == "csrfToken"

    def test_decide_does_not_touch_configuration(self) -> None:
        configuration = CsrfConfigurationBuilder().add_whitelist("POST", "/hook").build()
        guard = Guard(configuration)
        before = (list(configuration.registry), list(configuration.whitelist))
        for request in (_request(), _request(cookie=TOKEN, header=TOKEN), _request(path="/hook")):
            guard.decide(request)
        assert (list(configuration.registry), list(configuration.whitelist)) == before
        assert HeaderExtractor() == configuration.registry.get("POST")
