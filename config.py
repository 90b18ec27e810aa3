import os

GRAPHHOPPER_HOST = os.environ.get("GRAPHHOPPER_HOST", "https://graphhopper.com/api/1")
GRAPHHOPPER_API_KEY = os.environ.get("GRAPHHOPPER_API_KEY", "")  # sent as the `key` query parameter
GRAPHHOPPER_TIMEOUT_S = float(os.environ.get("GRAPHHOPPER_TIMEOUT_S", "20"))  # per request
ROUTING_PROFILE = os.environ.get("ROUTING_PROFILE", "foot")  # any GraphHopper profile; only foot, bike and car get a Google Maps link
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

FALLBACK_START_LAT_LON = (51.505, -0.09)  # used when the client has no location to offer
TARGET_DISTANCE_KM = 5  # default target distance for generated loop

TOLERANCE_FRACTION = 0.10  # accept any route within +/- 10% of target
MAX_ATTEMPTS = 4  # routing requests per search
INTER_ATTEMPT_DELAY_S = 1.0  # pause between routing requests (free tier rate limit)
WAYPOINT_STRATEGY = "triangle"  # triangle or out-and-back

RADIUS_FRACTION = 0.16  # triangle radius as a share of target distance
RADIUS_SHRINK_PER_ATTEMPT = 0.12  # radius shrinks by this share of itself on every retry
BEARING_DRIFT_DEG = 45.0  # added to the random bearing on every retry
