"""Exception types raised by the HUBZone lookup engine."""
from typing import Optional


class HubzoneError(Exception):
    """Base class for lookup engine errors."""

    status_code = 500
    public_message = "Internal server error"


class InvalidCoordinates(HubzoneError):
    """Latitude/longitude input is non-numeric, non-finite or out of range."""

    status_code = 400
    public_message = "Invalid coordinates"


class ZoneNotFound(HubzoneError):
    """No zone with the requested id exists in the current snapshot."""

    status_code = 404
    public_message = "HUBZone not found"

    def __init__(self, zone_id: str):
        super().__init__(f"HUBZone not found: {zone_id}")
        self.zone_id = zone_id


class ServiceUnavailable(HubzoneError):
    """No snapshot has been loaded yet."""

    status_code = 503
    public_message = "HUBZone data unavailable"


class LoadError(HubzoneError):
    """The dataset source as a whole could not be read."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class InvalidRadius(HubzoneError):
    """Radius search distance is non-numeric, non-finite or not positive."""

    status_code = 400
    public_message = "Invalid radius"
