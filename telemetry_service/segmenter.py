"""
Antimeridian-aware track segmentation.

A ground track that crosses the +/-180 degree meridian jumps by nearly 360
degrees of longitude between neighbouring points. Drawn as one polyline it
would streak across the whole map, so the track is split at every such jump.
"""

from typing import List, Sequence, TypeVar

Point = TypeVar("Point", bound=Sequence[float])

MAX_LONGITUDE_STEP_DEG = 180.0


def segment_track(track: Sequence[Point]) -> List[List[Point]]:
    """
    Split an ordered (lat, lng) sequence at antimeridian crossings.

    Args:
        track: Points ordered by time; each point is indexable as (lat, lng)

    Returns:
        Maximal runs in which no two consecutive points differ in longitude
        by more than 180 degrees. Concatenating the runs gives the input.
    """
    segments: List[List[Point]] = []
    if not track:
        return segments

    current = [track[0]]
    for previous, point in zip(track, track[1:]):
        if abs(point[1] - previous[1]) > MAX_LONGITUDE_STEP_DEG:
            segments.append(current)
            current = []
        current.append(point)
    segments.append(current)

    return segments
