"""Channel adapters — deliver a formatted payload to one destination URL.

Adapters raise ``TransportError`` when a message was not delivered and
``ChannelConfigError`` when the destination itself is unusable. They never
retry; fallback is the dispatcher's job.
"""

from __future__ import annotations

import abc
from email.message import EmailMessage
from email.utils import formataddr, parseaddr
from html import escape as html_escape
from typing import Any
from urllib.parse import SplitResult, unquote

import aiohttp
import aiosmtplib
import structlog

from src.core.config import SmtpConfig
from src.notify.capabilities import merged_query, parse_destination
from src.notify.exceptions import ChannelConfigError, TransportError
from src.notify.types import MessagePayload

logger = structlog.get_logger(__name__)


class ChannelAdapter(abc.ABC):
    """Base class for notification transports."""

    @abc.abstractmethod
    async def send(self, url: str, payload: MessagePayload) -> None:
        """Deliver *payload* to *url*. Raises on failure."""

    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


class HttpChannelAdapter(ChannelAdapter):
    """Shared aiohttp session handling for webhook-style services."""

    def __init__(self) -> None:
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def _post(self, url: str, **kwargs: Any) -> None:
        try:
            session = self._get_session()
            async with session.post(url, **kwargs) as resp:
                if 200 <= resp.status < 300:
                    return
                body = await resp.text()
                raise TransportError(f"HTTP {resp.status}: {body[:200]}")
        except aiohttp.ClientError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


def _http_scheme(parts: SplitResult, query: dict[str, str]) -> str:
    disable_tls = query.pop("disabletls", "").lower() == "yes"
    if disable_tls or parts.scheme.endswith("+http"):
        return "http"
    return "https"


class NtfyAdapter(HttpChannelAdapter):
    """``ntfy://[user:pass@]host/topic`` — publishes via the ntfy HTTP API.

    Formatter params (title, Actions, ...) are sent as lower-cased ntfy
    query parameters.
    """

    async def send(self, url: str, payload: MessagePayload) -> None:
        parts = parse_destination(url)
        topic = parts.path.strip("/")
        if not parts.hostname or not topic:
            raise ChannelConfigError("ntfy URL needs a host and a topic")

        query = merged_query(parts, payload.params)
        scheme = query.pop("scheme", "https")
        host = parts.netloc.rpartition("@")[2]
        auth = None
        if parts.username:
            auth = aiohttp.BasicAuth(unquote(parts.username), unquote(parts.password or ""))

        await self._post(
            f"{scheme}://{host}/{topic}",
            params={k.lower(): v for k, v in query.items()},
            data=payload.body.encode(),
            auth=auth,
        )


class GenericWebhookAdapter(HttpChannelAdapter):
    """``generic://host/path`` — POSTs to an arbitrary webhook.

    With ``template=json`` the body is a JSON object built from the message
    and every ``$key`` parameter; otherwise the plain text is posted.
    Remaining parameters are forwarded on the target URL.
    """

    async def send(self, url: str, payload: MessagePayload) -> None:
        parts = parse_destination(url)
        if not parts.netloc:
            raise ChannelConfigError("generic URL needs a host")

        query = merged_query(parts, payload.params)
        scheme = _http_scheme(parts, query)
        template = query.pop("template", "")
        fields = {k[1:]: query.pop(k) for k in list(query) if k.startswith("$")}
        target = f"{scheme}://{parts.netloc}{parts.path}"

        if template == "json":
            await self._post(target, params=query, json={**fields, "message": payload.body})
        else:
            await self._post(
                target,
                params=query,
                data=payload.body.encode(),
                headers={"Content-Type": "text/plain; charset=utf-8"},
            )


class DiscordAdapter(HttpChannelAdapter):
    """``discord://token@webhook_id`` — Discord webhook, embed when titled."""

    _API = "https://discord.com/api/webhooks"

    async def send(self, url: str, payload: MessagePayload) -> None:
        parts = parse_destination(url)
        if not parts.username or not parts.hostname:
            raise ChannelConfigError("discord URL must be discord://token@webhook_id")

        query = merged_query(parts, payload.params)
        title = query.get("title")
        if title:
            body: dict[str, Any] = {"embeds": [{"title": title, "description": payload.body}]}
        else:
            body = {"content": payload.body}

        await self._post(f"{self._API}/{parts.hostname}/{parts.username}", json=body)


class TelegramAdapter(HttpChannelAdapter):
    """``telegram://token@telegram?chats=id1,id2`` — Bot API, HTML parse mode."""

    _API = "https://api.telegram.org"

    async def send(self, url: str, payload: MessagePayload) -> None:
        parts = parse_destination(url)
        query = merged_query(parts, payload.params)
        chats = [c for c in query.get("chats", "").split(",") if c]
        if not parts.username or not chats:
            raise ChannelConfigError("telegram URL needs a bot token and chats")

        token = parts.username
        if parts.password:
            token = f"{token}:{parts.password}"

        text = html_escape(payload.body)
        if "title" in query:
            text = f"<b>{html_escape(query['title'])}</b>\n{text}"

        for chat_id in chats:
            await self._post(
                f"{self._API}/bot{token}/sendMessage",
                json={"chat_id": chat_id, "text": text, "parse_mode": "HTML"},
            )


class MailAdapter(ChannelAdapter):
    """``mailto:user@example.com`` — plain-text mail through an SMTP relay."""

    def __init__(self, config: SmtpConfig) -> None:
        self._config = config

    async def send(self, url: str, payload: MessagePayload) -> None:
        parts = parse_destination(url)
        _, address = parseaddr(unquote(parts.path))
        if "@" not in address:
            raise ChannelConfigError(f"invalid mail address: {parts.path!r}")

        msg = EmailMessage()
        msg["Subject"] = payload.params.get("title", payload.title)
        msg["From"] = formataddr((self._config.sender_name, self._config.sender_address))
        msg["To"] = address
        msg.set_content(payload.body)

        cfg = self._config
        try:
            await aiosmtplib.send(
                msg,
                hostname=cfg.host,
                port=cfg.port,
                username=cfg.username or None,
                password=cfg.password.get_secret_value() or None,
                start_tls=cfg.start_tls and not cfg.use_tls,
                use_tls=cfg.use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        logger.info("mail_sent", to=address, subject=msg["Subject"])
