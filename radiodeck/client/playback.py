"""Single-session playback.

The audio engine is a black box behind ``AudioSession``: something that can
start (raising ``PlaybackError`` when the stream cannot be opened) and stop.
The default engine runs an external player process.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from radiodeck.config import settings
from radiodeck.core.exceptions import PlaybackError
from radiodeck.schemas.station import StationRecord

logger = logging.getLogger(__name__)


class AudioSession(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> None: ...


class SubprocessAudioSession:
    """Plays a stream through an external player (ffplay by default).

    A player still running after the startup grace period counts as started;
    one that exits earlier could not open the stream.
    """

    def __init__(
        self,
        stream_url: str,
        player_path: str = settings.PLAYER_PATH,
        player_args: list[str] | None = None,
        startup_grace: float = settings.PLAYER_STARTUP_GRACE_SECONDS,
    ):
        self.stream_url = stream_url
        self.player_path = player_path
        self.player_args = list(settings.PLAYER_ARGS if player_args is None else player_args)
        self.startup_grace = startup_grace
        self._proc: asyncio.subprocess.Process | None = None
        self._stopped = False

    async def start(self) -> None:
        cmd = [self.player_path, *self.player_args, self.stream_url]
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise PlaybackError(f"Could not launch {self.player_path}: {e}") from e

        # stop() arrived while the player was being launched
        if self._stopped:
            await _terminate(proc)
            raise PlaybackError("Playback stopped before the player started")
        self._proc = proc

        try:
            returncode = await asyncio.wait_for(proc.wait(), timeout=self.startup_grace)
        except asyncio.TimeoutError:
            return
        raise PlaybackError(f"Player exited with code {returncode}")

    async def stop(self) -> None:
        self._stopped = True
        proc, self._proc = self._proc, None
        if proc is not None:
            await _terminate(proc)


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        proc.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(proc.wait(), timeout=5)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()


def subprocess_session_factory(station: StationRecord) -> SubprocessAudioSession:
    return SubprocessAudioSession(station.stream_url)


class PlaybackController:
    """At most one live session; ``now_playing`` only changes once a stream has started."""

    def __init__(
        self,
        session_factory: Callable[[StationRecord], AudioSession] = subprocess_session_factory,
        click_reporter: Callable[[str], Awaitable[Any]] | None = None,
        on_change: Callable[["PlaybackController"], None] | None = None,
    ):
        self._session_factory = session_factory
        self._click_reporter = click_reporter
        self._on_change = on_change

        self.now_playing: StationRecord | None = None
        self.error: str | None = None

        self._session: AudioSession | None = None
        self._pending: StationRecord | None = None
        self._lock = asyncio.Lock()
        self._background: set[asyncio.Task] = set()

    @property
    def is_playing(self) -> bool:
        return self.now_playing is not None

    @property
    def is_loading(self) -> bool:
        return self._pending is not None

    async def play(self, station: StationRecord) -> None:
        current = self._pending or self.now_playing
        if current is not None and current.id == station.id:
            await self.stop()
            return

        async with self._lock:
            old, self._session = self._session, None
            self._pending = None
            if old is not None:
                await old.stop()

            self._report_click(station)
            session = self._session_factory(station)
            self._session = session
            self._pending = station
            self.error = None
        self._notify()

        try:
            await session.start()
        except (PlaybackError, OSError) as e:
            if self._session is not session:
                return
            logger.warning("Playback of %s failed: %s", station.name, e)
            self._session = None
            self._pending = None
            self.now_playing = None
            self.error = f"Failed to load station: {station.name}"
            await session.stop()
            self._notify()
            return

        # stop() or a newer play() took over while this stream was opening
        if self._session is not session:
            await session.stop()
            return
        self._pending = None
        self.now_playing = station
        self._notify()

    async def stop(self) -> None:
        async with self._lock:
            session, self._session = self._session, None
            changed = session is not None or self.now_playing is not None
            self._pending = None
            self.now_playing = None
            if session is not None:
                await session.stop()
        if changed:
            self._notify()

    async def close(self) -> None:
        await self.stop()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    def _report_click(self, station: StationRecord) -> None:
        if self._click_reporter is None:
            return
        task = asyncio.create_task(self._send_click(station.id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _send_click(self, station_id: str) -> None:
        # best-effort: a failed report must never affect playback
        try:
            await self._click_reporter(station_id)
        except Exception as e:
            logger.warning("Click report for station %s failed: %s", station_id, e)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
