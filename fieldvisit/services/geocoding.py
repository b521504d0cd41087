import requests

from fieldvisit.core.config import settings


class GeocodingError(Exception):
    pass


class ReverseGeocoder:
    """Resolves coordinates to a display address via a Nominatim-compatible endpoint."""

    def __init__(self, base_url: str = None, user_agent: str = None, timeout: int = None):
        self.base_url = base_url or settings.GEOCODER_URL
        self.user_agent = user_agent or settings.GEOCODER_USER_AGENT
        self.timeout = timeout or settings.GEOCODER_TIMEOUT_SECONDS

    def reverse(self, latitude: float, longitude: float) -> str:
        params = {
            "lat": latitude,
            "lon": longitude,
            "format": "json",
        }
        headers = {
            "User-Agent": self.user_agent,
            "Accept-Language": "en",
        }
        try:
            response = requests.get(self.base_url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.RequestException as e:
            raise GeocodingError(f"Geocoding request failed: {e}") from e
        except ValueError as e:
            raise GeocodingError("Geocoding response was not JSON") from e

        if not isinstance(result, dict) or not result.get("display_name"):
            raise GeocodingError("No address for these coordinates")
        address = result["display_name"]
        return address


# Create service instance
reverse_geocoder = ReverseGeocoder()
