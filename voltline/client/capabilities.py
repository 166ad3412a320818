from __future__ import annotations

import asyncio
import logging
import sys
from typing import Literal, Protocol, TextIO

logger = logging.getLogger(__name__)

Permission = Literal["default", "granted", "denied"]


class AudioHandle(Protocol):
    async def play(self) -> None: ...

    def close(self) -> None: ...


class Capabilities(Protocol):
    """Platform features the dispatcher queries at the point of use."""

    def notification_permission(self) -> Permission: ...

    async def request_notification_permission(self) -> Permission: ...

    def show_notification(self, title: str, *, body: str, tag: str, icon: str | None = None) -> None: ...

    def create_audio(self, source: str, *, volume: float) -> AudioHandle: ...


class _TerminalBell:
    def __init__(self, stream: TextIO, volume: float) -> None:
        self._stream = stream
        self.volume = volume
        self._closed = False

    async def play(self) -> None:
        if self._closed:
            raise RuntimeError("audio handle is closed")
        self._stream.write("\a")
        self._stream.flush()
        await asyncio.sleep(0)

    def close(self) -> None:
        self._closed = True


class ConsoleCapabilities:
    """Terminal stand-in for the browser: a bell for sound, log lines for native notifications."""

    def __init__(self, stream: TextIO | None = None, permission: Permission = "default") -> None:
        self._stream = stream or sys.stdout
        self._permission: Permission = permission

    def notification_permission(self) -> Permission:
        return self._permission

    async def request_notification_permission(self) -> Permission:
        if self._permission == "default":
            self._permission = "granted"
        return self._permission

    def show_notification(self, title: str, *, body: str, tag: str, icon: str | None = None) -> None:
        logger.info("[%s] %s: %s", tag, title, body)

    def create_audio(self, source: str, *, volume: float) -> AudioHandle:
        return _TerminalBell(self._stream, volume)
