"""
Distance utilities using the Haversine formula and OSRM routing
"""
import math
import httpx
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)

OSRM_BASE_URL = "https://router.project-osrm.org"
EARTH_RADIUS_KM = 6371

def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great circle distance between two points on Earth
    using the Haversine formula (straight-line distance)

    Args:
        lat1, lon1: First point coordinates (in degrees)
        lat2, lon2: Second point coordinates (in degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = math.sin(dlat / 2)**2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2)**2
    c = 2 * math.asin(math.sqrt(a))

    return c * EARTH_RADIUS_KM

def get_road_route(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
    timeout: float = 10.0
) -> Tuple[Optional[float], Optional[list]]:
    """
    Road distance and simplified route geometry from the OSRM routing API.

    Returns:
        Tuple of (distance_km, coordinates) or (None, None) on failure.
        coordinates is a list of [lng, lat] pairs
    """
    url = f"{OSRM_BASE_URL}/route/v1/driving/{lon1},{lat1};{lon2},{lat2}"
    params = {
        "overview": "simplified",
        "geometries": "geojson"
    }

    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.get(url, params=params)

        if response.status_code != 200:
            logger.warning(f"OSRM request failed with status {response.status_code}")
            return None, None

        data = response.json()
        if not isinstance(data, dict) or data.get("code") != "Ok" or not data.get("routes"):
            logger.warning(f"OSRM returned no routes: {data.get('code') if isinstance(data, dict) else data!r}")
            return None, None

        route = data["routes"][0]
        distance_meters = route.get("distance")
        coordinates = (route.get("geometry") or {}).get("coordinates") or []
        if distance_meters is None:
            logger.warning("OSRM route has no distance")
            return None, None
        distance_km = float(distance_meters) / 1000
    except httpx.TimeoutException:
        logger.warning(f"OSRM request timed out (timeout={timeout}s)")
        return None, None
    except httpx.HTTPError as e:
        logger.error(f"OSRM request error: {str(e)}")
        return None, None
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        # Non-JSON body or an unexpected route layout
        logger.error(f"OSRM response could not be read: {str(e)}")
        return None, None

    logger.debug(f"OSRM route: {distance_km:.2f} km, {len(coordinates)} points")
    return distance_km, coordinates

def to_coordinate(value) -> float:
    """Coerce a stored coordinate to float; blanks and junk become 0"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number

def is_valid_coordinate(lat: float, lng: float) -> bool:
    return -90 <= lat <= 90 and -180 <= lng <= 180 and not (lat == 0 and lng == 0)
