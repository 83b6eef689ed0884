"""Content-Security-Policy parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://")


@dataclass(frozen=True)
class ParsedCsp:
    """Directive name (lowercased) → source tokens."""

    raw: str
    directives: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def get(self, directive: str) -> tuple[str, ...] | None:
        return self.directives.get(directive)

    def __contains__(self, directive: str) -> bool:
        return directive in self.directives


def parse_csp(header_value: str) -> ParsedCsp:
    directives: dict[str, tuple[str, ...]] = {}
    for part in header_value.split(";"):
        tokens = part.split()
        if not tokens:
            continue
        directives[tokens[0].lower()] = tuple(tokens[1:])
    return ParsedCsp(raw=header_value, directives=directives)


def _normalize_domain(domain: str) -> str:
    value = domain.strip().lower()
    if value.startswith("*."):
        value = value[2:]
    return value.lstrip(".")


def _source_host(value: str) -> str | None:
    """Host part of a CSP source expression; None for keywords and schemes."""
    normalized = value.strip().lower()
    if not normalized or normalized == "*" or normalized.endswith(":") or normalized[0] == "'":
        return None

    without_scheme = _SCHEME_RE.sub("", normalized)
    host = without_scheme.split("/")[0].split(":")[0]
    if not host:
        return None
    if host.startswith("*."):
        host = host[2:]
    return host


def csp_includes_domain(csp: ParsedCsp, directive: str, domain: str) -> bool:
    """Whether directive allows domain or one of its subdomains."""
    wanted = _normalize_domain(domain)
    for value in csp.directives.get(directive, ()):
        host = _source_host(value)
        if host is not None and (host == wanted or host.endswith(f".{wanted}")):
            return True
    return False
