from radiodeck.models.station import Station
from radiodeck.models.favorite import Favorite

__all__ = [
    "Station",
    "Favorite",
]
