"""Ship error logs to a Discord-compatible webhook without blocking the logger."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import httpx

from utils.logger.config import LogEvent, LogLevel
from utils.logger.handlers.base import BaseLogHandler

# Discord rejects content over 2000 characters; leave room for the code fence.
MAX_CHARS_PER_POST = 1900


def fence_code(text: str) -> str:
    """Wrap ``text`` in a code block, escaping fences already inside it."""
    safe = text.replace("```", "```\u200b")
    return f"```\n{safe}\n```"


def pack_lines(lines: List[str], limit: int = MAX_CHARS_PER_POST) -> List[str]:
    """Group lines into posts of at most ``limit`` characters.

    Lines longer than ``limit`` are split across several posts.
    """
    posts: List[str] = []
    chunk: List[str] = []
    size = 0
    for line in lines:
        while len(line) > limit:
            if chunk:
                posts.append("\n".join(chunk))
                chunk, size = [], 0
            posts.append(line[:limit])
            line = line[limit:]
        if chunk and size + len(line) + 1 > limit:
            posts.append("\n".join(chunk))
            chunk, size = [], 0
        chunk.append(line)
        size += len(line) + 1
    if chunk:
        posts.append("\n".join(chunk))
    return posts


class WebhookHandler(BaseLogHandler):
    """Queue ERROR+ events and post them from a background task."""

    def __init__(
        self,
        webhook_url: str,
        *,
        min_level: LogLevel = LogLevel.ERROR,
        queue_size: int = 1000,
        http_timeout: float = 5.0,
        max_attempts: int = 3,
        server_error_backoff: float = 1.0,
        username: str | None = "homelab-dashboard",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__()
        self.url = webhook_url
        self.min_level = min_level
        self.username = username
        self.http_timeout = http_timeout
        self.max_attempts = max_attempts
        self.server_error_backoff = server_error_backoff
        self._transport = transport
        self.q: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._client: Optional[httpx.AsyncClient] = None
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.http_timeout, transport=self._transport)
        if self._task is None:
            self._task = asyncio.create_task(self._runner(), name="WebhookHandler")

    async def shutdown(self, timeout: float | None = 5.0) -> None:
        try:
            await asyncio.wait_for(self.q.join(), timeout)
        except asyncio.TimeoutError:
            pass  # undelivered posts are dropped on exit

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def push(self, records: List[LogEvent]) -> None:
        lines = [ev.text for ev in records if ev.level >= self.min_level]
        for post in pack_lines(lines):
            try:
                self.q.put_nowait(post)
            except asyncio.QueueFull:
                # hot path: drop rather than block the logger
                return

    async def _runner(self) -> None:
        while True:
            post = await self.q.get()
            try:
                await self._send(fence_code(post))
            finally:
                self.q.task_done()

    async def _send(self, content: str) -> None:
        assert self._client is not None
        payload = {"content": content, "allowed_mentions": {"parse": []}}
        if self.username:
            payload["username"] = self.username
        for _ in range(self.max_attempts):
            try:
                r = await self._client.post(self.url, json=payload)
            except httpx.RequestError:
                # logging from inside the log transport would recurse
                return
            if r.status_code == 429:
                try:
                    retry = float(r.json().get("retry_after", 1))
                except ValueError:
                    retry = float(r.headers.get("Retry-After", "1"))
                await asyncio.sleep(max(0.0, retry))
            elif r.status_code >= 500:
                await asyncio.sleep(self.server_error_backoff)
            else:
                return
        # still rate limited or failing after max_attempts: the post is dropped
