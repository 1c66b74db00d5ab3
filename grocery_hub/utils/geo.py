"""
Nearby-shop search.

Shops are matched against a consumer coordinate using great-circle distance.
A shop is returned only when it lies inside the consumer's search radius AND
inside the shop's own delivery range.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from flask import current_app

EARTH_RADIUS_KM = 6371


@dataclass
class ShopMatch:
    """A shop with its distance from the searcher."""
    shop: object
    distance: float
    rating: float = 0
    review_count: int = 0

    def to_dict(self):
        data = self.shop.to_dict()
        data.update({
            "distance": self.distance,
            "rating": self.rating,
            "review_count": self.review_count,
        })
        return data


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometres, rounded to 2 decimal places."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 2)


def _to_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def resolve_location(lat, lng) -> Tuple[float, float, bool]:
    """
    Parse request coordinates.

    Returns (latitude, longitude, is_default). Missing, malformed or
    out-of-range coordinates fall back to the configured default location.
    """
    latitude = _to_float(lat)
    longitude = _to_float(lng)
    if (
        latitude is None
        or longitude is None
        or not -90 <= latitude <= 90
        or not -180 <= longitude <= 180
    ):
        config = current_app.config
        return config["DEFAULT_LATITUDE"], config["DEFAULT_LONGITUDE"], True
    return latitude, longitude, False


def clamp_radius(value) -> float:
    config = current_app.config
    radius = _to_float(value)
    if radius is None:
        radius = config["DEFAULT_SEARCH_RADIUS_KM"]
    return max(config["MIN_SEARCH_RADIUS_KM"], min(config["MAX_SEARCH_RADIUS_KM"], radius))


def _matches_query(shop, query: str) -> bool:
    needle = query.lower()
    if needle in (shop.name or "").lower():
        return True
    return needle in (shop.description or "").lower()


def find_nearby_shops(
    shops: Iterable,
    latitude: float,
    longitude: float,
    radius_km: float,
    query: str = "",
    sort_by: str = "distance",
    default_delivery_range: float = 5,
) -> List[ShopMatch]:
    matches = []
    for shop in shops:
        distance = calculate_distance(latitude, longitude, float(shop.latitude), float(shop.longitude))
        delivery_range = shop.delivery_range_km or default_delivery_range
        if distance > radius_km or distance > delivery_range:
            continue
        matches.append(ShopMatch(shop, distance, shop.rating, shop.review_count))

    query = (query or "").strip()
    if query:
        matches = [match for match in matches if _matches_query(match.shop, query)]

    if sort_by == "distance":
        matches.sort(key=lambda match: match.distance)
    elif sort_by == "rating":
        matches.sort(key=lambda match: match.rating, reverse=True)
    elif sort_by == "name":
        matches.sort(key=lambda match: match.shop.name.lower())

    return matches


def search_visible_shops(lat=None, lng=None, radius=None, query="", sort_by="distance"):
    """Run a nearby search over active, approved shops using request parameters."""
    from ..models import Shop

    latitude, longitude, is_default = resolve_location(lat, lng)
    radius_km = clamp_radius(radius)
    shops = Shop.query.filter_by(is_active=True, is_approved=True).all()
    matches = find_nearby_shops(
        shops,
        latitude,
        longitude,
        radius_km,
        query=query,
        sort_by=sort_by,
        default_delivery_range=current_app.config["DEFAULT_DELIVERY_RANGE_KM"],
    )
    return {
        "latitude": latitude,
        "longitude": longitude,
        "used_default_location": is_default,
        "radius": radius_km,
        "query": query or "",
        "sort": sort_by,
        "shops": matches,
    }
