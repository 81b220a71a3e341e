from studenthub.api.client import PortalAPIClient
from studenthub.api.resources import ResourceClient, created_id

__all__ = ["PortalAPIClient", "ResourceClient", "created_id"]
