"""Shape a notification for one destination based on its capabilities."""

from __future__ import annotations

from collections.abc import Callable

from src.core.types import Notification
from src.notify.types import ChannelCapabilities, MessagePayload

_Step = Callable[[MessagePayload, Notification, ChannelCapabilities, str], None]


# ── Capability steps ────────────────────────────────────────────
# Each step owns exactly one capability flag and both of its branches.


def _place_title(
    payload: MessagePayload, note: Notification, caps: ChannelCapabilities, label: str
) -> None:
    if caps.supports_title:
        payload.params["title"] = note.title
    else:
        payload.body = f"{note.title}\n\n{payload.body}"


def _place_link(
    payload: MessagePayload, note: Notification, caps: ChannelCapabilities, label: str
) -> None:
    if not note.link:
        return
    if caps.supports_link_action:
        payload.params["Actions"] = f"view, {label}, {note.link}"
    else:
        payload.body = f"{payload.body}\n\n{note.link}"


def _add_structure(
    payload: MessagePayload, note: Notification, caps: ChannelCapabilities, label: str
) -> None:
    if caps.is_structured_sink:
        payload.params["template"] = "json"
        payload.params["$title"] = note.title


# Order matters: the title is prepended before the link is appended.
_STEPS: tuple[_Step, ...] = (_place_title, _place_link, _add_structure)


class MessageFormatter:
    """Builds a MessagePayload from a Notification.

    The output never depends on which service a destination is, only on
    the capabilities declared for it.
    """

    def __init__(self, action_label: str = "Open Hostwatch") -> None:
        self._action_label = action_label

    def format(self, note: Notification, capabilities: ChannelCapabilities) -> MessagePayload:
        payload = MessagePayload(title=note.title, body=note.message)
        for step in _STEPS:
            step(payload, note, capabilities, self._action_label)
        return payload
