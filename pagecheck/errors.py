"""Error taxonomy shared by queries, resolvers and matchers."""

from __future__ import annotations

from typing import Any, Dict, Optional


class PagecheckError(Exception):
    code = "PAGECHECK_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        self.details = details or {}


class ExpectationNotMet(PagecheckError, AssertionError):
    """The retry loop ran out of time without the check holding."""

    code = "EXPECTATION_NOT_MET"


class ConfigurationError(PagecheckError, ValueError):
    """A query was built from an invalid or ambiguous set of arguments."""

    code = "INVALID_QUERY"


class ResolverFault(PagecheckError):
    code = "RESOLVER_FAULT"


class ElementNotReady(ResolverFault):
    """Transient resolver failure (stale node, navigation in flight)."""

    code = "ELEMENT_NOT_READY"
