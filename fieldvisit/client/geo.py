from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

# Returns (latitude, longitude) or raises LocationDenied / any other error
Locator = Callable[[], Tuple[float, float]]
Geocoder = Callable[[float, float], str]


class LocationDenied(Exception):
    """The user or the device refused access to location."""


class GeoStatus(str, Enum):
    idle = "idle"
    requesting = "requesting"
    granted = "granted"
    denied = "denied"
    error = "error"


@dataclass(frozen=True)
class GeoState:
    status: GeoStatus = GeoStatus.idle
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: str = ""

    @property
    def has_position(self) -> bool:
        return self.status == GeoStatus.granted and self.latitude is not None and self.longitude is not None


def format_coordinates(latitude: float, longitude: float) -> str:
    return f"{latitude:.6f}, {longitude:.6f}"


def locate(locator: Optional[Locator]) -> GeoState:
    """One position request; never raises."""
    if locator is None:
        return GeoState(status=GeoStatus.error)
    try:
        latitude, longitude = locator()
    except LocationDenied:
        return GeoState(status=GeoStatus.denied)
    except Exception:
        return GeoState(status=GeoStatus.error)
    return GeoState(status=GeoStatus.granted, latitude=latitude, longitude=longitude)


def resolve_address(state: GeoState, geocoder: Geocoder) -> GeoState:
    """Attach an address to a granted position, falling back to the raw coordinates."""
    try:
        address = geocoder(state.latitude, state.longitude)
    except Exception:
        address = ""
    if not address:
        address = format_coordinates(state.latitude, state.longitude)
    return GeoState(status=state.status, latitude=state.latitude, longitude=state.longitude, address=address)
