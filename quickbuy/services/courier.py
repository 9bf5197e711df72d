"""Courier pricing by great-circle distance from the business address.

Coordinates come from a fixed table of town names matched as substrings of
the delivery address. Addresses that match nothing are priced as if they were
in Malmesbury, where the business is based. Any callable mapping an address
to ``(lat, lng)`` can stand in for :func:`lookup_coordinates`, so a real
geocoding client can replace the table without touching the pricing.
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Tuple

Coordinates = Tuple[float, float]
Geocoder = Callable[[str], Coordinates]

EARTH_RADIUS_KM = 6371
DEFAULT_LOCATION = "malmesbury"
DEFAULT_ORIGIN_ADDRESS = "31 Smuts Str, Malmesbury"
DEFAULT_RATE_PER_KM = Decimal("5.00")
TWOPLACES = Decimal("0.01")

# Matched in declaration order, first hit wins.
LOCATIONS: Dict[str, Coordinates] = {
    "malmesbury": (-33.4594, 18.7218),
    "cape town": (-33.9249, 18.4241),
    "durban": (-29.8587, 31.0218),
    "johannesburg": (-26.2041, 28.0473),
    "pretoria": (-25.7479, 28.2293),
    "bellville": (-33.9021, 18.6258),
    "stellenbosch": (-33.9346, 18.8610),
    "parow": (-33.8980, 18.6017),
    "goodwood": (-33.8998, 18.5669),
    "gauteng": (-26.2708, 28.1123),
    "western cape": (-33.5500, 20.5000),
    "moorreesburg": (-33.1447, 18.6403),
    "darling": (-33.3731, 18.3875),
    "yzerfontein": (-33.5091, 18.1561),
    "rietvlei": (-33.3489, 18.5189),
    "koringberg": (-33.0833, 18.7167),
    "piketberg": (-32.9078, 18.7444),
    "porterville": (-33.0333, 19.0167),
    "citrusdal": (-32.5833, 19.0333),
    "wellington": (-33.6417, 19.0000),
}


def lookup_coordinates(address: str) -> Coordinates:
    normalized = (address or "").strip().lower()
    for key, coords in LOCATIONS.items():
        if key in normalized:
            return coords
    return LOCATIONS[DEFAULT_LOCATION]


def haversine_km(origin: Coordinates, destination: Coordinates) -> float:
    lat1, lon1 = origin
    lat2, lon2 = destination
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def courier_cost(
    delivery_address: str,
    origin_address: str = DEFAULT_ORIGIN_ADDRESS,
    rate_per_km=DEFAULT_RATE_PER_KM,
    geocoder: Geocoder = lookup_coordinates,
) -> Decimal:
    """Return the courier charge for delivering to ``delivery_address``.

    The distance is computed between the geocoded origin and destination and
    multiplied by ``rate_per_km``; the result is rounded half-up to cents.
    """
    distance = haversine_km(geocoder(origin_address), geocoder(delivery_address))
    cost = Decimal(str(distance)) * Decimal(str(rate_per_km))
    return cost.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
