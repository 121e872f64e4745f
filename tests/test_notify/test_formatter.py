"""Tests for MessageFormatter — the capability → behaviour table."""

from __future__ import annotations

from src.core.types import Notification
from src.notify.formatter import MessageFormatter
from src.notify.types import ChannelCapabilities

# ── Helpers ─────────────────────────────────────────────────────


def _note(**kw: str) -> Notification:
    defaults = {"title": "CPU high", "message": "92%", "link": "http://x/y"}
    defaults.update(kw)
    return Notification(**defaults)


def _caps(**kw: bool) -> ChannelCapabilities:
    return ChannelCapabilities(**kw)


# ── Title ───────────────────────────────────────────────────────


class TestTitle:
    def test_plain_destination_folds_everything_into_body(self) -> None:
        payload = MessageFormatter().format(_note(), _caps())
        assert payload.body == "CPU high\n\n92%\n\nhttp://x/y"
        assert "title" not in payload.params
        assert payload.params == {}

    def test_title_support_sets_param(self) -> None:
        payload = MessageFormatter().format(_note(), _caps(supports_title=True))
        assert payload.params["title"] == "CPU high"
        assert payload.body == "92%\n\nhttp://x/y"

    def test_title_always_present_on_payload(self) -> None:
        payload = MessageFormatter().format(_note(), _caps())
        assert payload.title == "CPU high"


# ── Link ────────────────────────────────────────────────────────


class TestLink:
    def test_link_action(self) -> None:
        fmt = MessageFormatter(action_label="Open Hostwatch")
        payload = fmt.format(_note(), _caps(supports_title=True, supports_link_action=True))
        assert payload.body == "92%"
        assert payload.params["Actions"] == "view, Open Hostwatch, http://x/y"

    def test_empty_link_not_appended(self) -> None:
        payload = MessageFormatter().format(_note(link=""), _caps())
        assert payload.body == "CPU high\n\n92%"

    def test_empty_link_no_action(self) -> None:
        payload = MessageFormatter().format(_note(link=""), _caps(supports_link_action=True))
        assert "Actions" not in payload.params


# ── Structured sink ─────────────────────────────────────────────


class TestStructuredSink:
    def test_adds_template_and_raw_title(self) -> None:
        payload = MessageFormatter().format(_note(), _caps(is_structured_sink=True))
        assert payload.params["template"] == "json"
        assert payload.params["$title"] == "CPU high"
        assert payload.body == "CPU high\n\n92%\n\nhttp://x/y"

    def test_not_added_for_other_sinks(self) -> None:
        payload = MessageFormatter().format(_note(), _caps(supports_title=True))
        assert "template" not in payload.params
        assert "$title" not in payload.params


class TestDiskScenarioFormatting:
    def test_non_title_channel_contains_subject_and_body(self) -> None:
        note = _note(
            title="Disk usage above threshold on web1",
            message="Disk usage on web1 is 95.0%.",
            link="https://mon.example.com/system/web1",
        )
        payload = MessageFormatter().format(note, _caps())
        assert payload.body.startswith("Disk usage above threshold on web1\n\n")
        assert "Disk usage on web1 is 95.0%." in payload.body
