"""Best-effort IP geolocation for login notifications.

Queries the ip-api.com JSON endpoint over the shared HttpClient. The lookup
is garnish for an email, so it never raises: every failure path returns an
empty GeoResult and the email goes out without location details.

Addresses that cannot be located publicly (private ranges, loopback,
malformed strings, the "Unknown" placeholder) short-circuit without a
network call.
"""

from __future__ import annotations

import ipaddress
from typing import Optional, Protocol

import httpx

from infrastructure.http_client import HttpClient
from schemas.models.email import GeoResult
from shared.logging import get_logger

log = get_logger(__name__)

_FIELDS = "status,country,city,lat,lon"


class GeoLookup(Protocol):
    async def lookup(self, ip_address: Optional[str]) -> GeoResult: ...


def is_public_ip(ip_address: Optional[str]) -> bool:
    if not ip_address:
        return False
    try:
        addr = ipaddress.ip_address(ip_address.strip())
    except ValueError:
        return False
    return addr.is_global


class GeoLookupService:
    def __init__(
        self,
        http_client: HttpClient,
        base_url: str = "http://ip-api.com/json",
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def lookup(self, ip_address: Optional[str]) -> GeoResult:
        if not is_public_ip(ip_address):
            return GeoResult()

        ip = ip_address.strip()
        try:
            response = await self._http.get(
                f"{self._base_url}/{ip}", params={"fields": _FIELDS}
            )
        except httpx.HTTPError as e:
            log.warning(
                "geo_lookup_failed",
                reason="network_error",
                error=str(e),
                error_type=type(e).__name__,
            )
            return GeoResult()

        if response.status_code != 200:
            log.warning(
                "geo_lookup_failed",
                reason="bad_status",
                status_code=response.status_code,
            )
            return GeoResult()

        try:
            data = response.json()
        except ValueError:
            log.warning("geo_lookup_failed", reason="invalid_json")
            return GeoResult()

        if not isinstance(data, dict) or data.get("status") != "success":
            log.warning(
                "geo_lookup_failed",
                reason="lookup_unsuccessful",
                status=data.get("status") if isinstance(data, dict) else None,
            )
            return GeoResult()

        return _to_geo_result(data)


def _to_geo_result(data: dict) -> GeoResult:
    city = data.get("city") or None
    country = data.get("country") or None
    place = ", ".join(part for part in (city, country) if part) or None
    return GeoResult(
        city=city,
        country=country,
        latitude=_as_float(data.get("lat")),
        longitude=_as_float(data.get("lon")),
        formatted_location=place,
    )


def _as_float(value: object) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None
