from radiodeck.client.api_client import StationsApi
from radiodeck.client.debounce import Debouncer
from radiodeck.client.playback import (
    AudioSession,
    PlaybackController,
    SubprocessAudioSession,
    subprocess_session_factory,
)
from radiodeck.client.search_controller import STATIONS_PER_PAGE, SearchController, SearchState

__all__ = [
    "StationsApi",
    "Debouncer",
    "AudioSession",
    "PlaybackController",
    "SubprocessAudioSession",
    "subprocess_session_factory",
    "SearchController",
    "SearchState",
    "STATIONS_PER_PAGE",
]
