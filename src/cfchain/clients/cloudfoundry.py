from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, Mapping

import httpx

from cfchain.clients.base import BaseHTTPClient
from cfchain.domain.models import InstanceState, Job, PageRequest, PageResponse, Resource
from cfchain.orchestration.pagination import walk

DEFAULT_USER_AGENT = "cfchain/0.1.0"


def _query(request: PageRequest, results_per_page: int) -> dict[str, Any]:
    params: dict[str, Any] = {"page": request.page, "results-per-page": results_per_page}
    if request.filters:
        params["q"] = [f"{field}:{value}" for field, value in request.filters.items()]
    return params


class ResourceCollection:
    """CRUD and list access to one v2 resource collection, e.g. ``/v2/spaces``."""

    def __init__(self, client: CloudFoundryClient, path: str) -> None:
        self._client = client
        self._path = path

    async def create(self, payload: Mapping[str, Any]) -> Resource:
        return Resource.from_payload(await self._client.post(self._path, json=dict(payload)))

    async def get(self, resource_id: str) -> Resource:
        return Resource.from_payload(await self._client.get(f"{self._path}/{resource_id}"))

    async def update(self, resource_id: str, payload: Mapping[str, Any]) -> Resource:
        return Resource.from_payload(
            await self._client.put(f"{self._path}/{resource_id}", json=dict(payload))
        )

    async def delete(self, resource_id: str, *, async_: bool = False) -> Job | None:
        """Delete a resource; asynchronous deletes return the job to wait on."""
        params = {"async": "true"} if async_ else None
        body = await self._client.delete(f"{self._path}/{resource_id}", params=params)
        return Job.from_payload(body) if body else None

    async def list(self, request: PageRequest) -> PageResponse:
        params = _query(request, self._client.results_per_page)
        return PageResponse.from_payload(await self._client.get(self._path, params=params))

    def walk(self, **filters: str) -> AsyncIterator[Resource]:
        return walk(self.list, **filters)


class ApplicationCollection(ResourceCollection):
    async def associate_route(self, application_id: str, route_id: str) -> Resource:
        return Resource.from_payload(
            await self._client.put(f"{self._path}/{application_id}/routes/{route_id}")
        )

    async def upload(self, application_id: str, application: Path) -> Job:
        """Upload application bits asynchronously; returns the staging job."""
        body = await self._client.put(
            f"{self._path}/{application_id}/bits",
            params={"async": "true"},
            data={"resources": "[]"},
            files={"application": (application.name, application.read_bytes(), "application/zip")},
        )
        return Job.from_payload(body)

    async def instances(self, application_id: str) -> dict[str, InstanceState]:
        body = await self._client.get(f"{self._path}/{application_id}/instances")
        return {index: InstanceState(info.get("state", "unknown")) for index, info in body.items()}


class JobCollection:
    def __init__(self, client: CloudFoundryClient) -> None:
        self._client = client

    async def get_job(self, job_id: str) -> Job:
        return Job.from_payload(await self._client.get(f"/v2/jobs/{job_id}"))


class CloudFoundryClient(BaseHTTPClient):
    """Cloud Foundry v2 API client."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout: float = 30.0,
        results_per_page: int = 50,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)
        self._token = token
        self._user_agent = user_agent
        self.results_per_page = results_per_page

        self.spaces = ResourceCollection(self, "/v2/spaces")
        self.shared_domains = ResourceCollection(self, "/v2/shared_domains")
        self.private_domains = ResourceCollection(self, "/v2/private_domains")
        self.applications = ApplicationCollection(self, "/v2/apps")
        self.routes = ResourceCollection(self, "/v2/routes")
        self.service_brokers = ResourceCollection(self, "/v2/service_brokers")
        self.jobs = JobCollection(self)

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["User-Agent"] = self._user_agent
        if self._token:
            headers["Authorization"] = f"bearer {self._token}"
        return headers

    @classmethod
    def from_settings(cls, settings: Any) -> CloudFoundryClient:
        return cls(
            settings.api_url,
            settings.token,
            timeout=settings.http_timeout,
            results_per_page=settings.results_per_page,
        )
