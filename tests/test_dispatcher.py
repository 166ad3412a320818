import io

from voltline.client.capabilities import ConsoleCapabilities
from voltline.client.dispatcher import SideEffectDispatcher
from voltline.core.config import settings
from voltline.schemas.notification import NotificationPreferences


class FakeAudio:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.plays = 0
        self.closed = False

    async def play(self) -> None:
        self.plays += 1
        if self.fail:
            raise RuntimeError("play() failed because the user didn't interact with the document first")

    def close(self) -> None:
        self.closed = True


class FakeCapabilities:
    def __init__(self, permission: str = "granted", audio: FakeAudio | None = None) -> None:
        self.permission = permission
        self.permission_requests = 0
        self.audio = audio or FakeAudio()
        self.audio_created = 0
        self.shown: list[dict] = []
        self.sources: list[str] = []

    def notification_permission(self) -> str:
        return self.permission

    async def request_notification_permission(self) -> str:
        self.permission_requests += 1
        self.permission = "granted"
        return self.permission

    def show_notification(self, title: str, *, body: str, tag: str, icon: str | None = None) -> None:
        self.shown.append({"title": title, "body": body, "tag": tag, "icon": icon})

    def create_audio(self, source: str, *, volume: float) -> FakeAudio:
        self.audio_created += 1
        self.sources.append(source)
        return self.audio


async def test_sound_disabled_in_preferences_only_shows_native(make_notification) -> None:
    caps = FakeCapabilities()
    dispatcher = SideEffectDispatcher(caps)
    batch = [make_notification("n1"), make_notification("n2", minutes=1, priority="urgent")]

    await dispatcher.dispatch(batch, NotificationPreferences(sound_enabled=False))

    assert caps.audio.plays == 0
    assert caps.audio_created == 0
    assert [s["tag"] for s in caps.shown] == ["n1", "n2"]
    assert caps.shown[0]["title"] == "Notification n1"
    assert caps.shown[0]["body"] == "Body of n1"


async def test_one_sound_per_batch(make_notification) -> None:
    caps = FakeCapabilities()
    dispatcher = SideEffectDispatcher(caps)

    await dispatcher.dispatch([make_notification("a"), make_notification("b")], NotificationPreferences())
    await dispatcher.dispatch([make_notification("c")], NotificationPreferences())

    assert caps.audio.plays == 2
    assert caps.audio_created == 1


async def test_empty_batch_has_no_side_effects() -> None:
    caps = FakeCapabilities()
    dispatcher = SideEffectDispatcher(caps)

    await dispatcher.dispatch([], NotificationPreferences())

    assert caps.audio_created == 0
    assert caps.shown == []


async def test_native_notifications_require_granted_permission(make_notification) -> None:
    caps = FakeCapabilities(permission="denied")
    dispatcher = SideEffectDispatcher(caps)

    await dispatcher.dispatch([make_notification("a")], NotificationPreferences())

    assert caps.shown == []
    assert caps.audio.plays == 1


async def test_global_switches_override_preferences(make_notification) -> None:
    caps = FakeCapabilities()
    dispatcher = SideEffectDispatcher(caps, enable_sound=False, enable_browser_notifications=False)

    await dispatcher.dispatch([make_notification("a")], NotificationPreferences())

    assert caps.audio_created == 0
    assert caps.shown == []


async def test_browser_preference_off_suppresses_native(make_notification) -> None:
    caps = FakeCapabilities()
    dispatcher = SideEffectDispatcher(caps)

    await dispatcher.dispatch([make_notification("a")], NotificationPreferences(browser_notifications=False))

    assert caps.shown == []
    assert caps.audio.plays == 1


async def test_permission_requested_once_when_undecided() -> None:
    caps = FakeCapabilities(permission="default")
    dispatcher = SideEffectDispatcher(caps)

    await dispatcher.setup()
    await dispatcher.setup()

    assert caps.permission_requests == 1
    assert caps.permission == "granted"


async def test_permission_not_requested_after_a_decision() -> None:
    caps = FakeCapabilities(permission="denied")
    dispatcher = SideEffectDispatcher(caps)

    await dispatcher.setup()

    assert caps.permission_requests == 0


async def test_playback_failure_is_swallowed(make_notification) -> None:
    caps = FakeCapabilities(audio=FakeAudio(fail=True))
    dispatcher = SideEffectDispatcher(caps)

    await dispatcher.dispatch([make_notification("a")], NotificationPreferences())

    assert caps.audio.plays == 1
    assert [s["tag"] for s in caps.shown] == ["a"]


async def test_teardown_releases_audio(make_notification) -> None:
    caps = FakeCapabilities()
    dispatcher = SideEffectDispatcher(caps)
    await dispatcher.dispatch([make_notification("a")], NotificationPreferences())

    dispatcher.teardown()
    dispatcher.teardown()

    assert caps.audio.closed is True


async def test_console_capabilities_ring_the_bell(make_notification) -> None:
    stream = io.StringIO()
    caps = ConsoleCapabilities(stream=stream)
    dispatcher = SideEffectDispatcher(caps)

    await dispatcher.setup()
    await dispatcher.dispatch([make_notification("a")], NotificationPreferences())

    assert caps.notification_permission() == "granted"
    assert stream.getvalue() == "\a"


async def test_sound_source_defaults_to_configured_path(make_notification) -> None:
    caps = FakeCapabilities()
    dispatcher = SideEffectDispatcher(caps)

    await dispatcher.dispatch([make_notification("a")], NotificationPreferences())

    assert caps.sources == [settings.notification_sound_path]
    assert SideEffectDispatcher(caps, sound_source="chime.wav").sound_source == "chime.wav"
