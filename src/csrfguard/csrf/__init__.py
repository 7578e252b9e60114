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
"""Double-submit cookie decision core — framework-agnostic."""

from csrfguard.csrf.attacher import CookieInstruction, ResponseTokenAttacher
from csrfguard.csrf.configuration import (
    CsrfConfiguration,
    CsrfConfigurationBuilder,
    RotationPolicy,
    default_configuration,
)
from csrfguard.csrf.extractors import (
    BodyExtractor,
    HeaderExtractor,
    QueryExtractor,
    TokenExtractor,
    extractor_for,
)
from csrfguard.csrf.guard import Guard
from csrfguard.csrf.registry import ExtractorRegistry
from csrfguard.csrf.request import CsrfRequest, MaterializedRequest
from csrfguard.csrf.tokens import TokenGenerator, tokens_match
from csrfguard.csrf.verdict import ALLOW, Allow, Reject, RejectReason, Verdict
from csrfguard.csrf.whitelist import Whitelist

__all__ = [
    "ALLOW",
    "Allow",
    "BodyExtractor",
    "CookieInstruction",
    "CsrfConfiguration",
    "CsrfConfigurationBuilder",
    "CsrfRequest",
    "ExtractorRegistry",
    "Guard",
    "HeaderExtractor",
    "MaterializedRequest",
    "QueryExtractor",
    "Reject",
    "RejectReason",
    "ResponseTokenAttacher",
    "RotationPolicy",
    "TokenExtractor",
    "TokenGenerator",
    "Verdict",
    "Whitelist",
    "default_configuration",
    "extractor_for",
    "tokens_match",
]
