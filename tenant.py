from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from exceptions import ValidationError


@dataclass(frozen=True)
class TenantScope:
    """The station every query and write of a request is confined to."""
    station_id: int


def get_tenant_scope(x_station_id: Optional[str] = Header(default=None)) -> TenantScope:
    """Resolves the caller's station from the X-Station-Id header."""
    if not x_station_id:
        raise ValidationError("X-Station-Id header is required")
    try:
        station_id = int(x_station_id)
    except ValueError:
        raise ValidationError("X-Station-Id must be an integer")
    if station_id <= 0:
        raise ValidationError("X-Station-Id must be positive")
    return TenantScope(station_id=station_id)
