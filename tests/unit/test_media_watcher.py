"""
Tests for now-playing arbitration and transport commands
"""

from unittest.mock import Mock

import pytest

from dockwidgets.models import MediaApp, NowPlayingSnapshot
from dockwidgets.probes.media import (
    AppleScriptMediaSource,
    MediaCommand,
    MediaSource,
    MediaWatcher,
    TrackInfo,
    build_sources,
    parse_bool,
    parse_track_info,
)
from dockwidgets.utils.errors import NetworkError, NoDataError, PermissionDeniedError


class FakeSource(MediaSource):
    """Scriptable player double"""

    def __init__(self, app, running=False, playing=False, track=None):
        self.app = app
        self.running = running
        self.playing = playing
        self.track = track
        self.error = None
        self.calls = []
        self.sent = []

    def _answer(self, name, value):
        self.calls.append(name)
        if self.error is not None:
            raise self.error
        return value

    def is_running(self):
        return self._answer("is_running", self.running)

    def is_playing(self):
        return self._answer("is_playing", self.playing)

    def now_playing(self):
        return self._answer("now_playing", self.track)

    def send(self, command):
        self._answer("send", None)
        self.sent.append(command)


@pytest.fixture
def music():
    return FakeSource(MediaApp.MUSIC)


@pytest.fixture
def spotify():
    return FakeSource(MediaApp.SPOTIFY)


@pytest.fixture
def watcher(music, spotify):
    return MediaWatcher(sources=[music, spotify])


class TestArbitration:
    """Test which source wins a poll"""

    def test_playing_source_beats_earlier_idle_one(self, watcher, music, spotify):
        """Test Spotify wins when Music is open but not playing"""
        music.running = True
        spotify.running = spotify.playing = True
        spotify.track = TrackInfo("X", "Y", "Z")

        snapshot = watcher.sample()

        assert snapshot == NowPlayingSnapshot("X", "Y", "Z", MediaApp.SPOTIFY, True)
        assert "now_playing" not in music.calls
        assert watcher.addressable_source is spotify

    def test_first_playing_source_wins(self, watcher, music, spotify):
        """Test list order breaks ties between playing sources"""
        for source in (music, spotify):
            source.running = source.playing = True
            source.track = TrackInfo(source.app.value, "artist")

        snapshot = watcher.sample()

        assert snapshot.source_app is MediaApp.MUSIC
        assert spotify.calls == []

    def test_paused_source_is_addressable(self, watcher, music, spotify):
        """Test a running but paused player still reports its track"""
        spotify.running = True
        spotify.track = TrackInfo("Song", "Band")

        snapshot = watcher.sample()

        assert snapshot.source_app is MediaApp.SPOTIFY
        assert snapshot.is_playing is False
        assert snapshot.title == "Song"
        assert watcher.addressable_source is spotify

    def test_nothing_running(self, watcher, music, spotify):
        """Test the empty snapshot when no player is open"""
        snapshot = watcher.sample()

        assert snapshot == NowPlayingSnapshot.empty()
        assert not snapshot.has_media
        assert watcher.addressable_source is None

    def test_missing_track_keeps_source(self, watcher, music):
        """Test a player without a current track reports its app only"""
        music.running = music.playing = True

        snapshot = watcher.sample()

        assert snapshot == NowPlayingSnapshot(source_app=MediaApp.MUSIC, is_playing=True)

    def test_failing_source_is_skipped(self, watcher, music, spotify):
        """Test a source that errors is treated as having nothing to report"""
        music.error = NetworkError("osascript timed out")
        spotify.running = spotify.playing = True
        spotify.track = TrackInfo("X", "Y")

        snapshot = watcher.sample()

        assert snapshot.source_app is MediaApp.SPOTIFY
        assert watcher.denied_apps == frozenset()

    def test_unexpected_exception_is_skipped(self, watcher, music, spotify):
        """Test a buggy source doesn't break arbitration"""
        music.error = RuntimeError("bug")
        spotify.running = True

        assert watcher.sample().source_app is MediaApp.SPOTIFY

    def test_no_sources(self):
        """Test a watcher with no sources always reports nothing"""
        watcher = MediaWatcher(sources=[])

        assert watcher.sample() == NowPlayingSnapshot.empty()

    def test_poll_notifies_on_change_only(self, watcher, music):
        """Test repeated polls of the same state notify once"""
        observer = Mock()
        watcher.subscribe(observer)
        music.running = music.playing = True
        music.track = TrackInfo("X", "Y")

        watcher.poll()
        watcher.poll()
        music.playing = False
        watcher.poll()
        watcher.poll()

        assert observer.call_count == 2
        assert observer.call_args[0][0].is_playing is False


class TestTransportCommands:
    """Test routing of play/pause and track skips"""

    def test_commands_go_to_addressable_source(self, watcher, music, spotify):
        """Test commands reach the source chosen by the last poll"""
        music.running = True
        spotify.running = spotify.playing = True
        watcher.sample()

        assert watcher.play_pause() is True
        assert watcher.next_track() is True
        assert watcher.previous_track() is True

        assert spotify.sent == [
            MediaCommand.PLAY_PAUSE,
            MediaCommand.NEXT_TRACK,
            MediaCommand.PREVIOUS_TRACK,
        ]
        assert music.sent == []

    def test_no_source_drops_command(self, watcher, music, spotify):
        """Test commands are dropped when nothing is addressable"""
        watcher.sample()

        assert watcher.play_pause() is False
        assert music.sent == [] and spotify.sent == []

    def test_command_before_first_poll(self, watcher):
        """Test commands are dropped before any poll"""
        assert watcher.next_track() is False

    def test_failed_send(self, watcher, music):
        """Test a send failure reports False"""
        music.running = True
        watcher.sample()
        music.error = NoDataError("no reply")

        assert watcher.play_pause() is False

    def test_denied_send_reports_permission(self, watcher, music):
        """Test a denied command surfaces as a permission problem"""
        callback = Mock()
        watcher.on_permission_denied(callback)
        music.running = True
        watcher.sample()
        music.error = PermissionDeniedError("-1743")

        assert watcher.play_pause() is False
        callback.assert_called_once_with(MediaApp.MUSIC)
        assert watcher.denied_apps == frozenset({MediaApp.MUSIC})


class TestPermissionDenied:
    """Test permission denial reporting"""

    def test_denial_reported_once(self, watcher, music, spotify):
        """Test repeated denials call back exactly once"""
        callback = Mock()
        watcher.on_permission_denied(callback)
        music.error = PermissionDeniedError("not authorized")

        for _ in range(3):
            watcher.poll()

        callback.assert_called_once_with(MediaApp.MUSIC)
        assert watcher.permission_notifier.current == frozenset({MediaApp.MUSIC})

    def test_denial_reported_again_after_recovery(self, watcher, music):
        """Test a fresh denial after access returns calls back again"""
        callback = Mock()
        watcher.on_permission_denied(callback)

        music.error = PermissionDeniedError("not authorized")
        watcher.poll()
        music.error = None
        music.running = True
        watcher.poll()
        assert "now_playing" in music.calls
        assert watcher.denied_apps == frozenset()

        music.error = PermissionDeniedError("not authorized")
        watcher.poll()

        assert callback.call_count == 2

    def test_closed_player_stays_denied(self, watcher, music):
        """Test quitting and relaunching a denied player does not call back again"""
        callback = Mock()
        watcher.on_permission_denied(callback)

        music.error = PermissionDeniedError("not authorized")
        watcher.poll()
        music.error = None
        watcher.poll()
        assert watcher.denied_apps == frozenset({MediaApp.MUSIC})

        music.error = PermissionDeniedError("not authorized")
        watcher.poll()

        callback.assert_called_once_with(MediaApp.MUSIC)

    def test_delivered_command_clears_denial(self, watcher, music):
        """Test a command the player accepts forgets its earlier denial"""
        music.running = True
        watcher.poll()
        music.error = PermissionDeniedError("not authorized")
        assert watcher.play_pause() is False
        assert watcher.denied_apps == frozenset({MediaApp.MUSIC})

        music.error = None
        assert watcher.play_pause() is True

        assert watcher.denied_apps == frozenset()

    def test_denied_source_does_not_block_others(self, watcher, music, spotify):
        """Test arbitration continues past a denied source"""
        music.error = PermissionDeniedError("not authorized")
        spotify.running = spotify.playing = True
        spotify.track = TrackInfo("X", "Y")

        snapshot = watcher.sample()

        assert snapshot.source_app is MediaApp.SPOTIFY
        assert watcher.denied_apps == frozenset({MediaApp.MUSIC})

    def test_cancelled_callback(self, watcher, music):
        """Test cancelled denial callbacks are not called"""
        callback = Mock()
        watcher.on_permission_denied(callback).cancel()
        music.error = PermissionDeniedError("not authorized")

        watcher.poll()

        callback.assert_not_called()


class TestAppleScriptMediaSource:
    """Test the AppleScript player adapter"""

    @pytest.fixture
    def platform(self):
        return Mock()

    def test_rejects_none(self, platform):
        with pytest.raises(ValueError):
            AppleScriptMediaSource(MediaApp.NONE, platform)

    def test_is_running(self, platform):
        platform.run_script.return_value = "true"
        source = AppleScriptMediaSource(MediaApp.SPOTIFY, platform)

        assert source.is_running() is True
        platform.run_script.assert_called_once_with('application "Spotify" is running')

    def test_is_playing_guards_on_running(self, platform):
        """Test the playing query never launches a closed player"""
        platform.run_script.return_value = "false"
        source = AppleScriptMediaSource(MediaApp.MUSIC, platform)

        assert source.is_playing() is False
        script = platform.run_script.call_args[0][0]
        assert 'if application "Music" is running then' in script
        assert "player state is playing" in script

    def test_now_playing(self, platform):
        platform.run_script.return_value = "Song|||Band|||Record"
        source = AppleScriptMediaSource(MediaApp.MUSIC, platform)

        assert source.now_playing() == TrackInfo("Song", "Band", "Record")

    def test_now_playing_empty(self, platform):
        """Test an empty reply means no track"""
        platform.run_script.side_effect = NoDataError("no output")
        source = AppleScriptMediaSource(MediaApp.MUSIC, platform)

        assert source.now_playing() is None

    def test_now_playing_permission_propagates(self, platform):
        """Test permission errors reach the watcher"""
        platform.run_script.side_effect = PermissionDeniedError("-1743")
        source = AppleScriptMediaSource(MediaApp.MUSIC, platform)

        with pytest.raises(PermissionDeniedError):
            source.now_playing()

    @pytest.mark.parametrize("command,verb", [
        (MediaCommand.PLAY_PAUSE, "playpause"),
        (MediaCommand.NEXT_TRACK, "next track"),
        (MediaCommand.PREVIOUS_TRACK, "previous track"),
    ])
    def test_send(self, platform, command, verb):
        platform.run_script.return_value = "ok"
        AppleScriptMediaSource(MediaApp.SPOTIFY, platform).send(command)

        assert f'tell application "Spotify" to {verb}' in platform.run_script.call_args[0][0]


class TestHelpers:
    """Test source construction and output parsing"""

    def test_build_sources_in_order(self):
        sources = build_sources(["Spotify", "Music"], Mock())

        assert [source.app for source in sources] == [MediaApp.SPOTIFY, MediaApp.MUSIC]

    def test_build_sources_skips_unknown(self):
        sources = build_sources(["Winamp", "Music", "None"], Mock())

        assert [source.app for source in sources] == [MediaApp.MUSIC]

    def test_build_sources_without_platform(self):
        assert build_sources(["Music"], None) == []

    def test_watcher_builds_sources_from_config(self):
        watcher = MediaWatcher(config={"sources": ["Spotify"]}, platform=Mock())

        assert [source.app for source in watcher.sources] == [MediaApp.SPOTIFY]

    def test_parse_track_info(self):
        assert parse_track_info("A|||B") == TrackInfo("A", "B", "")
        assert parse_track_info(" A ||| B ||| C ") == TrackInfo("A", "B", "C")

    @pytest.mark.parametrize("output", ["", "just a title", "|||artist|||album"])
    def test_parse_track_info_rejects(self, output):
        assert parse_track_info(output) is None

    def test_parse_bool(self):
        assert parse_bool("true") is True
        assert parse_bool(" TRUE\n") is True
        assert parse_bool("false") is False
        assert parse_bool("missing value") is False
