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
"""ResponseTokenAttacher — token minting and rotation for outgoing responses."""

from __future__ import annotations

from dataclasses import dataclass

from csrfguard.csrf.configuration import CsrfConfiguration, RotationPolicy, SameSite
from csrfguard.csrf.request import CsrfRequest


@dataclass(frozen=True)
class CookieInstruction:
    """A ``Set-Cookie`` the adapter must add to the response."""

    name: str
    value: str
    path: str = "/"
    secure: bool = False
    httponly: bool = False
    samesite: SameSite | None = None


class ResponseTokenAttacher:
    """Decides whether a response gets a fresh CSRF cookie.

    Only responses produced after an allowed request get here; rejected
    requests are answered with an error that carries no token.
    """

    def __init__(self, configuration: CsrfConfiguration) -> None:
        self._configuration = configuration

    def cookie_for(self, request: CsrfRequest) -> CookieInstruction | None:
        config = self._configuration
        if not config.enabled:
            return None

        if config.rotation is RotationPolicy.IF_MISSING and config.generator.is_well_formed(
            request.cookie(config.cookie_name)
        ):
            return None

        return CookieInstruction(
            name=config.cookie_name,
            value=config.generator.generate(),
            path=config.cookie_path,
            secure=config.cookie_secure,
            httponly=config.cookie_httponly,
            samesite=config.cookie_samesite,
        )
