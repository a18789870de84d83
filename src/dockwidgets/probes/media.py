"""
Now-playing watcher that arbitrates between several player applications.
"""

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set

from ..managers.notifier import ChangeNotifier, Subscription
from ..models import MediaApp, NowPlayingSnapshot
from ..platforms.base import Platform
from ..utils.errors import NoDataError, PermissionDeniedError, PollError
from .base import BaseProbe

logger = logging.getLogger(__name__)

TRACK_DELIMITER = "|||"

DEFAULT_SOURCES = [MediaApp.MUSIC.value, MediaApp.SPOTIFY.value]


class MediaCommand(enum.Enum):
    """Transport commands, valued by their AppleScript verb."""

    PLAY_PAUSE = "playpause"
    NEXT_TRACK = "next track"
    PREVIOUS_TRACK = "previous track"


@dataclass(frozen=True)
class TrackInfo:
    title: str
    artist: str
    album: str = ""


def parse_track_info(output: str) -> Optional[TrackInfo]:
    """Parse "title|||artist|||album"; fewer than two fields means no track."""
    parts = [part.strip() for part in output.split(TRACK_DELIMITER)]
    if len(parts) < 2 or not parts[0]:
        return None
    return TrackInfo(title=parts[0], artist=parts[1], album=parts[2] if len(parts) > 2 else "")


def parse_bool(output: str) -> bool:
    return output.strip().lower() == "true"


class MediaSource(ABC):
    """Adapter for one player application."""

    app: MediaApp = MediaApp.NONE

    @abstractmethod
    def is_running(self) -> bool:
        pass

    @abstractmethod
    def is_playing(self) -> bool:
        pass

    @abstractmethod
    def now_playing(self) -> Optional[TrackInfo]:
        pass

    @abstractmethod
    def send(self, command: MediaCommand) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(app={self.app.value})>"


class AppleScriptMediaSource(MediaSource):
    """
    Player adapter speaking AppleScript through the platform bridge.

    Every query checks `application "X" is running` first so polling never
    launches a player that is closed.
    """

    def __init__(self, app: MediaApp, platform: Platform):
        if app is MediaApp.NONE:
            raise ValueError("MediaApp.NONE cannot be used as a media source")
        self.app = app
        self.platform = platform

    @property
    def name(self) -> str:
        return self.app.value

    def is_running(self) -> bool:
        return parse_bool(self.platform.run_script(f'application "{self.name}" is running'))

    def is_playing(self) -> bool:
        script = f"""
        if application "{self.name}" is running then
            tell application "{self.name}" to return (player state is playing)
        end if
        return false
        """
        return parse_bool(self.platform.run_script(script))

    def now_playing(self) -> Optional[TrackInfo]:
        script = f"""
        if application "{self.name}" is running then
            tell application "{self.name}"
                if player state is stopped then return ""
                set trackName to name of current track
                set artistName to artist of current track
                set albumName to album of current track
                return trackName & "{TRACK_DELIMITER}" & artistName & "{TRACK_DELIMITER}" & albumName
            end tell
        end if
        return ""
        """
        try:
            return parse_track_info(self.platform.run_script(script))
        except NoDataError:
            return None

    def send(self, command: MediaCommand) -> None:
        script = f"""
        tell application "{self.name}" to {command.value}
        return "ok"
        """
        self.platform.run_script(script)


def build_sources(names: Iterable[str], platform: Optional[Platform]) -> List[MediaSource]:
    """Create AppleScript sources in priority order from application names."""
    if platform is None:
        logger.warning("No scripting platform available, media watcher has no sources")
        return []

    sources: List[MediaSource] = []
    for name in names:
        try:
            app = MediaApp(name)
        except ValueError:
            logger.error(f"Unknown media source '{name}', skipping")
            continue
        if app is MediaApp.NONE:
            continue
        sources.append(AppleScriptMediaSource(app, platform))
    return sources


class MediaWatcher(BaseProbe[NowPlayingSnapshot]):
    """
    Track what is playing across an ordered list of media sources.

    Configuration:
        interval: Seconds between polls (default: 2.0)
        sources: Application names in priority order (default: [Music, Spotify])

    Arbitration is first-match-wins in list order: the first playing source
    is active; otherwise the first running (paused) source is addressable
    for transport commands; otherwise nothing is.
    """

    probe_type = "media"
    update_interval = 2.0

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        sources: Optional[List[MediaSource]] = None,
        platform: Optional[Platform] = None,
    ):
        super().__init__(config)
        if sources is None:
            sources = build_sources(self.config.get("sources", DEFAULT_SOURCES), platform)
        self.sources = list(sources)
        self.permission_notifier: ChangeNotifier[FrozenSet[MediaApp]] = ChangeNotifier(
            "media-permissions"
        )
        self._addressable: Optional[MediaSource] = None
        self._denied: FrozenSet[MediaApp] = frozenset()

    @property
    def addressable_source(self) -> Optional[MediaSource]:
        """Source that transport commands go to, as of the last poll."""
        return self._addressable

    @property
    def denied_apps(self) -> FrozenSet[MediaApp]:
        return self._denied

    def sample(self) -> NowPlayingSnapshot:
        denied: Set[MediaApp] = set()
        # Only replies from inside a tell block clear a denial. The running
        # and playing checks can answer without ever addressing the player.
        answered: Set[MediaApp] = set()

        active = None
        for source in self.sources:
            if self._query(source, source.is_playing, denied):
                active = source
                break

        is_playing = active is not None
        if active is None:
            for source in self.sources:
                if self._query(source, source.is_running, denied):
                    active = source
                    break

        self._addressable = active
        self._update_denied(denied, answered)

        if active is None:
            return NowPlayingSnapshot.empty()

        track = self._query(active, active.now_playing, denied, answered)
        self._update_denied(denied, answered)
        if track is None:
            return NowPlayingSnapshot(source_app=active.app, is_playing=is_playing)

        return NowPlayingSnapshot(
            title=track.title,
            artist=track.artist,
            album=track.album,
            source_app=active.app,
            is_playing=is_playing,
        )

    def get_fallback(self) -> NowPlayingSnapshot:
        return NowPlayingSnapshot.empty()

    def play_pause(self) -> bool:
        return self.send_command(MediaCommand.PLAY_PAUSE)

    def next_track(self) -> bool:
        return self.send_command(MediaCommand.NEXT_TRACK)

    def previous_track(self) -> bool:
        return self.send_command(MediaCommand.PREVIOUS_TRACK)

    def send_command(self, command: MediaCommand) -> bool:
        """
        Send a transport command to the addressable source.

        Returns:
            True if the command was delivered, False if it was dropped
        """
        source = self._addressable
        if source is None:
            logger.warning(f"No media source available for '{command.value}', ignoring")
            return False

        try:
            source.send(command)
        except PermissionDeniedError as e:
            logger.warning(f"Automation access to {source.app.value} denied: {e}")
            self._update_denied({source.app}, set())
            return False
        except PollError as e:
            logger.warning(f"Failed to send '{command.value}' to {source.app.value}: {e}")
            return False

        logger.info(f"Sent '{command.value}' to {source.app.value}")
        self._update_denied(set(), {source.app})
        return True

    def on_permission_denied(self, callback: Callable[[MediaApp], None]) -> Subscription:
        """
        Call `callback` once for each application that newly denies access.

        An application is forgotten once it returns a track or accepts a
        command, so a fresh denial calls back again. Running and playing
        checks do not count, since a closed player answers them unasked.
        """
        seen: Set[MediaApp] = set(self._denied)

        def _observer(denied: FrozenSet[MediaApp]) -> None:
            newly_denied = denied - seen
            seen.clear()
            seen.update(denied)
            for app in sorted(newly_denied, key=lambda a: a.value):
                callback(app)

        return self.permission_notifier.subscribe(_observer)

    def _query(
        self,
        source: MediaSource,
        query: Callable[[], Any],
        denied: Set[MediaApp],
        answered: Optional[Set[MediaApp]] = None,
    ) -> Any:
        try:
            result = query()
        except PermissionDeniedError as e:
            logger.debug(f"{source.app.value}: permission denied ({e})")
            denied.add(source.app)
            return None
        except PollError as e:
            logger.debug(f"{source.app.value}: nothing to report ({e})")
            return None
        except Exception as e:
            logger.warning(f"{source.app.value}: query failed: {e}", exc_info=True)
            return None

        if answered is not None:
            answered.add(source.app)
        return result

    def _update_denied(self, denied: Set[MediaApp], answered: Set[MediaApp]) -> None:
        current = frozenset((self._denied - answered) | denied)
        if current != self._denied:
            newly = current - self._denied
            if newly:
                names = ", ".join(sorted(app.value for app in newly))
                logger.warning(f"Automation permission denied for: {names}")
            self._denied = current
        self.permission_notifier.publish(current)
