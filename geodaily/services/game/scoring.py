import math


def score(base_points: int, distance_meters: float, time_seconds: float, max_distance_meters: float) -> int:
    """Points for a guess.

    Nothing beyond ``max_distance_meters``. Inside the radius the base is scaled
    linearly by closeness and by ``1 / (1 + minutes elapsed)``, then rounded
    half-up and floored at zero.
    """
    if distance_meters > max_distance_meters:
        return 0
    distance_factor = 1.0 - (distance_meters / max_distance_meters)
    time_factor = 1.0 / (1.0 + max(0.0, time_seconds) / 60.0)
    raw = base_points * distance_factor * time_factor
    return max(0, int(math.floor(raw + 0.5)))
