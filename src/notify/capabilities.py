"""Channel capability registry and destination URL helpers.

Formatting decisions are driven entirely by the capabilities registered
for a URL scheme. Supporting a new service only needs one more entry here
(plus an adapter that can deliver to it).
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import SplitResult, parse_qsl, urlsplit

from src.notify.exceptions import ChannelConfigError
from src.notify.types import ChannelCapabilities

_NONE = ChannelCapabilities()
_TITLE = ChannelCapabilities(supports_title=True)

DEFAULT_CAPABILITIES: dict[str, ChannelCapabilities] = {
    "bark": _TITLE,
    "discord": _TITLE,
    "gotify": _TITLE,
    "ifttt": _TITLE,
    "join": _TITLE,
    "matrix": _TITLE,
    "ntfy": ChannelCapabilities(supports_title=True, supports_link_action=True),
    "opsgenie": _TITLE,
    "pushbullet": _TITLE,
    "pushover": _TITLE,
    "slack": _TITLE,
    "teams": _TITLE,
    "telegram": _TITLE,
    "zulip": _TITLE,
    "generic": ChannelCapabilities(is_structured_sink=True),
    "mailto": _TITLE,
}


class CapabilityRegistry:
    """Scheme → capabilities lookup. Unknown schemes can render nothing."""

    def __init__(self, table: Mapping[str, ChannelCapabilities] | None = None) -> None:
        source = DEFAULT_CAPABILITIES if table is None else table
        self._table: dict[str, ChannelCapabilities] = {
            base_scheme(scheme): caps for scheme, caps in source.items()
        }

    def register(self, scheme: str, capabilities: ChannelCapabilities) -> None:
        self._table[base_scheme(scheme)] = capabilities

    def lookup(self, scheme: str) -> ChannelCapabilities:
        return self._table.get(base_scheme(scheme), _NONE)

    def __contains__(self, scheme: object) -> bool:
        return isinstance(scheme, str) and base_scheme(scheme) in self._table


# ── URL helpers ─────────────────────────────────────────────────


def base_scheme(scheme: str) -> str:
    """``generic+https`` → ``generic``."""
    return scheme.lower().split("+", 1)[0]


def parse_destination(url: str) -> SplitResult:
    """Split a destination URL, raising ChannelConfigError if unusable."""
    try:
        parts = urlsplit(url.strip())
    except ValueError as exc:
        raise ChannelConfigError(f"error parsing URL: {exc}") from exc
    if not parts.scheme:
        raise ChannelConfigError(f"destination has no scheme: {redact_url(url)}")
    return parts


def merged_query(parts: SplitResult, params: Mapping[str, str]) -> dict[str, str]:
    """Destination query parameters overlaid with formatter params."""
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    query.update(params)
    return query


def redact_url(url: str) -> str:
    """Strip credentials and query so a destination can be logged."""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return "<unparseable>"
    if not parts.netloc:
        return f"{parts.scheme}:{parts.path}" if parts.scheme else "<no scheme>"
    return f"{parts.scheme}://{parts.hostname or ''}{parts.path}"
