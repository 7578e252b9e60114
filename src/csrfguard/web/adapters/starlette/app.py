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
"""CSRF-protected Starlette application factory."""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.routing import BaseRoute

from csrfguard.config.properties.csrf import CsrfProperties
from csrfguard.core.config import Config
from csrfguard.csrf.configuration import CsrfConfiguration
from csrfguard.kernel.exceptions import CsrfGuardException
from csrfguard.logging.port import LoggingPort
from csrfguard.logging.structlog_adapter import StructlogAdapter
from csrfguard.web.adapters.starlette.errors import global_exception_handler
from csrfguard.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from csrfguard.web.adapters.starlette.filters import (
    CsrfFilter,
    RequestLoggingFilter,
    TransactionIdFilter,
)
from csrfguard.web.filters import WebFilter

logger = structlog.get_logger("csrfguard.web")


def create_app(
    routes: Sequence[BaseRoute] = (),
    *,
    configuration: CsrfConfiguration | None = None,
    config: Config | None = None,
    filters: Sequence[WebFilter] = (),
    logging_port: LoggingPort | None = None,
    debug: bool = False,
) -> Starlette:
    """Create a Starlette application guarded by :class:`CsrfFilter`.

    The CSRF settings come from *configuration* when given, otherwise they
    are bound from the ``csrfguard.csrf`` section of *config*, otherwise the
    defaults apply.  When *config* is given, logging is configured from it
    as well (through *logging_port*, structlog by default).

    Includes:
    - WebFilter chain (transaction ID, request logging, CSRF, + user filters)
    - Global exception handler for csrfguard exceptions
    """
    if config is not None:
        (logging_port or StructlogAdapter()).configure(config)
        if configuration is None:
            configuration = CsrfConfiguration.from_properties(config.bind(CsrfProperties))

    csrf_filter = CsrfFilter(configuration)
    chain: list[WebFilter] = [
        TransactionIdFilter(),
        RequestLoggingFilter(),
        csrf_filter,
        *filters,
    ]

    effective = csrf_filter.guard.configuration
    logger.info(
        "csrf_protection_configured",
        enabled=effective.enabled,
        cookie=effective.cookie_name,
        protected_methods=sorted(effective.registry.methods()),
        whitelist_size=len(effective.whitelist),
        rotation=effective.rotation.value,
    )

    return Starlette(
        debug=debug,
        routes=list(routes),
        middleware=[Middleware(WebFilterChainMiddleware, filters=chain)],
        exception_handlers={CsrfGuardException: global_exception_handler},
    )
