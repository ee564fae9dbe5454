"""Typed request structures for the HUBZone REST handlers."""
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from hubzone.core.config import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from hubzone.core.errors import InvalidCoordinates
from hubzone.core.lookup import validate_coordinates


def _positive_int(value, default: int) -> int:
    """Parse a query parameter as an int >= 1, falling back to the default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    return number if number >= 1 else default


@dataclass(frozen=True)
class ListZonesQuery:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT
    search: Optional[str] = None

    @classmethod
    def from_params(cls, params: Optional[Mapping[str, Any]]) -> "ListZonesQuery":
        """
        Parse ``page``, ``limit`` and ``search`` query parameters.

        Malformed page or limit values fall back to the defaults instead of
        failing the request; oversized limits are clamped by the service.
        """
        params = params or {}
        search = params.get("search")
        search = str(search).strip() if search is not None else None
        return cls(
            page=_positive_int(params.get("page"), DEFAULT_PAGE),
            limit=_positive_int(params.get("limit"), DEFAULT_PAGE_LIMIT),
            search=search or None,
        )


@dataclass(frozen=True)
class CheckLocationRequest:
    latitude: float
    longitude: float
    include_geometry: bool = False

    @classmethod
    def from_body(cls, body) -> "CheckLocationRequest":
        """
        Parse a ``{latitude, longitude[, includeGeometry]}`` JSON body.

        Raises:
            InvalidCoordinates: If the body is not an object or either field is
                missing, non-numeric or out of range
        """
        if not isinstance(body, Mapping):
            raise InvalidCoordinates("Request body must be a JSON object")
        latitude, longitude = validate_coordinates(body.get("latitude"), body.get("longitude"))
        return cls(
            latitude=latitude,
            longitude=longitude,
            include_geometry=body.get("includeGeometry") is True,
        )
