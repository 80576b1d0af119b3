"""
Bundle Manifest Parser — MANIFEST.MF main section and OSGi header values.

parse_manifest() turns the main section of a manifest into a header map
(continuation lines beginning with a single space are joined onto the
previous header). parse_header() splits a header value into
ManifestElements:

    Require-Bundle: org.a;bundle-version="[1.0,2.0)",org.b;resolution:=optional

    → ManifestElement(values=["org.a"], attributes={"bundle-version": "[1.0,2.0)"})
      ManifestElement(values=["org.b"], directives={"resolution": "optional"})

Quoted strings may contain the separators , ; and =.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger("repobrowser.p2.manifest")

OPTIONAL = "optional"


@dataclass
class ManifestElement:
    """One comma-separated clause of a header value."""

    values: List[str] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)
    directives: Dict[str, str] = field(default_factory=dict)

    @property
    def value(self) -> str:
        return ";".join(self.values)

    def attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def directive(self, name: str) -> Optional[str]:
        return self.directives.get(name)

    @property
    def is_optional(self) -> bool:
        return OPTIONAL in (self.attributes.get("resolution"), self.directives.get("resolution"))


class Manifest:
    """Main-section headers of a bundle manifest. Lookups ignore case."""

    def __init__(self, headers: Dict[str, str]):
        self._headers = headers
        self._index = {name.lower(): name for name in headers}

    def get(self, name: str) -> Optional[str]:
        key = self._index.get(name.lower())
        return self._headers[key] if key is not None else None

    def elements(self, name: str) -> List[ManifestElement]:
        """Parsed elements of a header; empty when the header is absent."""
        value = self.get(name)
        if not value:
            return []
        return parse_header(value)

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._index

    def __repr__(self) -> str:
        return f"<Manifest(headers={len(self._headers)})>"


# ---------------------------------------------------------------------------
# Main section
# ---------------------------------------------------------------------------

def parse_manifest(text: str) -> Manifest:
    """Parse the main section of a MANIFEST.MF document."""
    headers: Dict[str, str] = {}
    current: Optional[str] = None

    for line in text.splitlines():
        if not line.strip():
            if headers:
                break  # end of main section
            continue
        if line.startswith(" "):
            if current is not None:
                headers[current] += line[1:]
            continue
        name, sep, value = line.partition(":")
        if not sep:
            logger.debug(f"Skipping malformed manifest line: {line!r}")
            current = None
            continue
        current = name.strip()
        headers[current] = value[1:] if value.startswith(" ") else value

    return Manifest(headers)


# ---------------------------------------------------------------------------
# Header values
# ---------------------------------------------------------------------------

def _split_unquoted(text: str, separator: str) -> List[str]:
    """Split on separator outside double-quoted strings."""
    parts: List[str] = []
    buf: List[str] = []
    quoted = False
    for ch in text:
        if ch == '"':
            quoted = not quoted
            buf.append(ch)
        elif ch == separator and not quoted:
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
    parts.append("".join(buf))
    return parts


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def _find_unquoted(text: str, target: str) -> int:
    quoted = False
    for i, ch in enumerate(text):
        if ch == '"':
            quoted = not quoted
        elif ch == target and not quoted:
            return i
    return -1


def parse_header(value: str) -> List[ManifestElement]:
    """Split a header value into its elements."""
    elements: List[ManifestElement] = []
    for clause in _split_unquoted(value, ","):
        if not clause.strip():
            continue
        element = ManifestElement()
        for part in _split_unquoted(clause, ";"):
            part = part.strip()
            if not part:
                continue
            eq = _find_unquoted(part, "=")
            if eq < 0:
                element.values.append(_unquote(part))
            elif eq > 0 and part[eq - 1] == ":":
                element.directives[part[:eq - 1].strip()] = _unquote(part[eq + 1:])
            else:
                element.attributes[part[:eq].strip()] = _unquote(part[eq + 1:])
        if element.values:
            elements.append(element)
    return elements
