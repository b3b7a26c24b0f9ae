"""
Great-circle distance for comp proximity scoring.
"""

import math


# Earth radius in miles
EARTH_RADIUS_MILES = 3959.0


def haversine_miles(
    lat1: float, lng1: float,
    lat2: float, lng2: float,
) -> float:
    """
    Calculate distance between two points in miles using Haversine formula.

    Args:
        lat1, lng1: First point coordinates (degrees)
        lat2, lng2: Second point coordinates (degrees)

    Returns:
        Distance in miles
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_MILES * c
