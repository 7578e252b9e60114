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
"""CSRF configuration properties (csrfguard.csrf.*).

Example ``csrfguard.yaml``::

    csrfguard:
      csrf:
        cookie_name: csrfToken
        extractors:
          POST: {location: header, name: x-csrf-token}
          PATCH: {location: body, name: csrf_token}
        whitelist:
          - {method: POST, path: /webhooks/github}
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from csrfguard.core.config import config_properties


class ExtractorProperties(BaseModel):
    location: Literal["header", "body", "query"] = "header"
    name: str = Field(default="x-csrf-token", min_length=1)


class WhitelistEntryProperties(BaseModel):
    method: str = Field(min_length=1)
    path: str = Field(min_length=1)


@config_properties(prefix="csrfguard.csrf")
class CsrfProperties(BaseModel):
    """Configuration for the CSRF protection (csrfguard.csrf.*).

    ``extractors`` left unset keeps the defaults (POST, PUT and DELETE read
    the ``x-csrf-token`` header); when set, it replaces them entirely.
    """

    enabled: bool = True
    cookie_name: str = Field(default="csrfToken", min_length=1)
    cookie_path: str = "/"
    cookie_secure: bool = False
    cookie_httponly: bool = False
    cookie_samesite: Literal["lax", "strict", "none"] | None = None
    token_bytes: int = Field(default=32, ge=16, le=1024)
    rotation: Literal["always", "if-missing"] = "always"
    extractors: dict[str, ExtractorProperties] | None = None
    whitelist: list[WhitelistEntryProperties] = Field(default_factory=list)

    @field_validator("extractors")
    @classmethod
    def _upper_case_methods(
        cls, value: dict[str, ExtractorProperties] | None
    ) -> dict[str, ExtractorProperties] | None:
        if value is None:
            return None
        return {method.upper(): spec for method, spec in value.items()}
