"""
Framework-free handlers for the HUBZone REST surface.

Each handler returns ``(status_code, body)`` where body is a JSON-serializable
dict, so any routing layer can mount them:

    GET  /api/hubzones?page&limit&search   -> list_zones(query_params)
    GET  /api/hubzones/<id>                -> get_zone(id)
    POST /api/hubzones/check               -> check_location(json_body)
"""
from typing import Any, Dict, Mapping, Optional, Tuple

from hubzone.core.cancellation import CancellationToken, Cancelled
from hubzone.core.errors import HubzoneError
from hubzone.core.lookup import LookupService
from hubzone.core.schemas import CheckLocationRequest, ListZonesQuery
from hubzone.utils.logging import log_error, log_structured

Response = Tuple[int, Dict[str, Any]]

# Non-standard "client closed request" status for cancelled lookups
CANCELLED_STATUS = 499


def error_response(error: HubzoneError) -> Response:
    return error.status_code, {"error": error.public_message}


def cancelled_response(outcome: Cancelled) -> Response:
    return CANCELLED_STATUS, outcome.to_dict()


class HubzoneHandlers:
    """Maps lookup results and domain errors onto HTTP status codes and bodies."""

    def __init__(self, service: LookupService):
        self.service = service

    def _handle(self, operation: str, func) -> Response:
        try:
            return func()
        except HubzoneError as e:
            if e.status_code >= 500:
                log_error(e, {"module": "handlers", "operation": operation})
            else:
                log_structured("info", "Request rejected", operation=operation,
                               status=e.status_code, reason=str(e))
            return error_response(e)

    def list_zones(self, params: Optional[Mapping[str, Any]] = None,
                   cancel_token: Optional[CancellationToken] = None) -> Response:
        def run():
            query = ListZonesQuery.from_params(params)
            result = self.service.find_all(query.page, query.limit, query.search, cancel_token=cancel_token)
            if isinstance(result, Cancelled):
                return cancelled_response(result)
            return 200, result.to_dict()
        return self._handle("list_zones", run)

    def get_zone(self, zone_id) -> Response:
        def run():
            zone = self.service.find_by_id(zone_id)
            return 200, zone.to_dict(include_geometry=True)
        return self._handle("get_zone", run)

    def check_location(self, body, cancel_token: Optional[CancellationToken] = None) -> Response:
        def run():
            request = CheckLocationRequest.from_body(body)
            result = self.service.check_location(request.latitude, request.longitude, cancel_token=cancel_token)
            if isinstance(result, Cancelled):
                return cancelled_response(result)
            return 200, result.to_dict(include_geometry=request.include_geometry)
        return self._handle("check_location", run)
