import logging

from fastapi import APIRouter, Depends, Query

from fieldvisit.core.deps import get_current_user
from fieldvisit.core.errors import DependencyError
from fieldvisit.models.profile import Profile
from fieldvisit.schemas.geocode import ReverseGeocodeResponse
from fieldvisit.services.geocoding import reverse_geocoder, GeocodingError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/reverse", response_model=ReverseGeocodeResponse)
def reverse_geocode(
    lat: float = Query(..., description="Latitude"),
    lon: float = Query(..., description="Longitude"),
    current_user: Profile = Depends(get_current_user),
):
    """Human-readable address for a coordinate pair"""
    try:
        address = reverse_geocoder.reverse(lat, lon)
    except GeocodingError:
        logger.exception("Reverse geocoding failed for %s,%s", lat, lon)
        raise DependencyError("Reverse geocoding failed")
    return ReverseGeocodeResponse(address=address)
