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
"""Guard — the double-submit cookie check.

Decision order for a request:

1. Protection disabled -> allow.
2. ``(method, path)`` whitelisted -> allow.
3. No extractor registered for the method -> allow.
4. Otherwise the cookie token and the request token must both be present
   and equal (constant-time comparison), else the request is rejected.

The guard only reads the request and its configuration.  Turning a
:class:`~csrfguard.csrf.verdict.Reject` into an HTTP response is the
adapter's job.
"""

from __future__ import annotations

from csrfguard.csrf.configuration import CsrfConfiguration, default_configuration
from csrfguard.csrf.extractors import TokenExtractor
from csrfguard.csrf.request import CsrfRequest
from csrfguard.csrf.tokens import tokens_match
from csrfguard.csrf.verdict import ALLOW, Reject, RejectReason, Verdict


class Guard:
    """Produces a :data:`Verdict` for inbound requests."""

    def __init__(self, configuration: CsrfConfiguration | None = None) -> None:
        self._configuration = configuration or default_configuration()

    @property
    def configuration(self) -> CsrfConfiguration:
        return self._configuration

    def extractor_for(self, method: str, path: str) -> TokenExtractor | None:
        """The extractor to consult, or ``None`` when the request is not checked."""
        config = self._configuration
        if not config.enabled:
            return None
        if config.whitelist.contains(method, path):
            return None
        return config.registry.get(method)

    def should_protect(self, method: str, path: str) -> bool:
        return self.extractor_for(method, path) is not None

    def requires_body(self, method: str, path: str) -> bool:
        """Whether the body must be parsed before :meth:`decide` can run."""
        extractor = self.extractor_for(method, path)
        return extractor is not None and extractor.requires_body

    def decide(self, request: CsrfRequest) -> Verdict:
        extractor = self.extractor_for(request.method, request.path)
        if extractor is None:
            return ALLOW

        cookie_name = self._configuration.cookie_name
        cookie_token = request.cookie(cookie_name)
        if not cookie_token:
            return Reject(RejectReason.MISSING_COOKIE, cookie_name=cookie_name)

        request_token = extractor.extract(request)
        if not request_token:
            return Reject(RejectReason.MISSING_TOKEN, location=extractor.location)

        if not tokens_match(cookie_token, request_token):
            return Reject(RejectReason.TOKEN_MISMATCH)

        return ALLOW
