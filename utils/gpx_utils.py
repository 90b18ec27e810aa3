from typing import Optional, Sequence, Tuple

import gpxpy
import gpxpy.gpx


def build_gpx(route_coords: Sequence[Tuple[float, float]], name: Optional[str] = None) -> str:
    """
    Build a GPX document with one track from a list of (lat, lon) tuples and return it as XML.
    """
    gpx = gpxpy.gpx.GPX()
    gpx_track = gpxpy.gpx.GPXTrack(name=name)
    gpx.tracks.append(gpx_track)
    gpx_segment = gpxpy.gpx.GPXTrackSegment()
    gpx_track.segments.append(gpx_segment)

    for lat, lon in route_coords:
        gpx_segment.points.append(gpxpy.gpx.GPXTrackPoint(lat, lon))

    return gpx.to_xml()
