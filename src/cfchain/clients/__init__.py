from cfchain.clients.base import BaseHTTPClient
from cfchain.clients.cloudfoundry import ApplicationCollection, CloudFoundryClient, ResourceCollection

__all__ = ["ApplicationCollection", "BaseHTTPClient", "CloudFoundryClient", "ResourceCollection"]
