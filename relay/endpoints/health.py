"""Endpoints for service discovery"""

from typing import Any

from fastapi import APIRouter, Depends

from relay import __version__
from relay.schemas.health import HealthResponse
from relay.services.contact import ContactServices, get_services
from relay.utils.docs import responses
from relay.utils.utc import isoformat


router = APIRouter(tags=["health"])


@router.get("/health", responses=responses(HealthResponse))
async def health(services: ContactServices = Depends(get_services)) -> Any:
    """
    Return the identity of this service.

    Clients use this to find out whether the relay is available before choosing an endpoint.
    """

    return {"status": "OK", "service": services.settings.service_name, "version": __version__, "timestamp": isoformat()}
