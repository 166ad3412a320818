from __future__ import annotations

import logging
from collections.abc import Sequence

from voltline.client.capabilities import AudioHandle, Capabilities
from voltline.core.config import settings
from voltline.schemas.notification import NotificationOut, NotificationPreferences

logger = logging.getLogger(__name__)

DEFAULT_ICON = "/favicon.ico"


class SideEffectDispatcher:
    """Plays the arrival sound and raises native notifications for new items.

    The audio handle is created on the first sound and released by ``teardown``.
    Native notifications are tagged with the notification id so repeats of the
    same id coalesce instead of stacking.
    """

    def __init__(
        self,
        capabilities: Capabilities,
        *,
        enable_sound: bool = True,
        enable_browser_notifications: bool = True,
        sound_source: str | None = None,
        volume: float = 0.5,
        icon: str = DEFAULT_ICON,
    ) -> None:
        self.capabilities = capabilities
        self.enable_sound = enable_sound
        self.enable_browser_notifications = enable_browser_notifications
        self.sound_source = sound_source or settings.notification_sound_path
        self.volume = volume
        self.icon = icon
        self._audio: AudioHandle | None = None
        self._permission_requested = False

    async def setup(self) -> None:
        if not self.enable_browser_notifications or self._permission_requested:
            return
        self._permission_requested = True
        if self.capabilities.notification_permission() == "default":
            result = await self.capabilities.request_notification_permission()
            logger.info("Native notification permission: %s", result)

    def _get_audio(self) -> AudioHandle | None:
        if self._audio is None:
            try:
                self._audio = self.capabilities.create_audio(self.sound_source, volume=self.volume)
            except Exception:
                logger.warning("Failed to initialize notification audio", exc_info=True)
                return None
        return self._audio

    async def _play_sound(self) -> None:
        audio = self._get_audio()
        if audio is None:
            return
        try:
            await audio.play()
        except Exception:
            # Playback is rejected until the user has interacted with the page.
            logger.debug("Notification sound was not played", exc_info=True)

    def _show_native(self, notifications: Sequence[NotificationOut]) -> int:
        shown = 0
        for notification in notifications:
            if self.capabilities.notification_permission() != "granted":
                break
            try:
                self.capabilities.show_notification(
                    notification.title,
                    body=notification.message,
                    tag=notification.id,
                    icon=self.icon,
                )
            except Exception:
                logger.warning("Failed to show native notification %s", notification.id, exc_info=True)
                continue
            shown += 1
        return shown

    async def dispatch(
        self,
        notifications: Sequence[NotificationOut],
        preferences: NotificationPreferences,
    ) -> None:
        if not notifications:
            return
        if self.enable_sound and preferences.sound_enabled:
            await self._play_sound()
        if self.enable_browser_notifications and preferences.browser_notifications:
            self._show_native(notifications)

    def teardown(self) -> None:
        if self._audio is not None:
            try:
                self._audio.close()
            finally:
                self._audio = None
