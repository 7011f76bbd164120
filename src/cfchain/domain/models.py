from __future__ import annotations

from enum import StrEnum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cfchain.core.errors import ConfigurationError


class _OpenEnum(StrEnum):
    """StrEnum that maps unrecognised server values onto ``unknown``."""

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        return cls("unknown")


class JobStatus(_OpenEnum):
    """Server-reported job status."""

    queued = "queued"
    running = "running"
    finished = "finished"
    failed = "failed"
    unknown = "unknown"


class JobState(StrEnum):
    """Job poller state."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PackageState(_OpenEnum):
    PENDING = "pending"
    STAGED = "staged"
    FAILED = "failed"
    UNKNOWN = "unknown"


class InstanceState(_OpenEnum):
    RUNNING = "running"
    STARTING = "starting"
    CRASHED = "crashed"
    DOWN = "down"
    UNKNOWN = "unknown"


class PageRequest(BaseModel):
    """One page of a list call: 1-based page index plus pass-through filters."""

    model_config = ConfigDict(frozen=True)

    page: int = 1
    filters: Mapping[str, str] = Field(default_factory=dict)

    @field_validator("page", mode="before")
    @classmethod
    def _check_page(cls, value: Any) -> Any:
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ConfigurationError(f"page must be an integer >= 1, got {value!r}")
        return value

    def next(self) -> PageRequest:
        return PageRequest(page=self.page + 1, filters=self.filters)


class Resource(BaseModel):
    """A listed or fetched resource: server guid plus an entity snapshot."""

    model_config = ConfigDict(frozen=True)

    id: str
    entity: Mapping[str, Any] = Field(default_factory=dict)
    url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Resource:
        metadata = payload.get("metadata") or {}
        return cls(
            id=metadata["guid"],
            entity=dict(payload.get("entity") or {}),
            url=metadata.get("url"),
            created_at=metadata.get("created_at"),
            updated_at=metadata.get("updated_at"),
        )


class PageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_pages: int = 0
    total_results: int = 0
    resources: tuple[Resource, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> PageResponse:
        return cls(
            total_pages=payload.get("total_pages") or 0,
            total_results=payload.get("total_results") or 0,
            resources=tuple(Resource.from_payload(item) for item in payload.get("resources") or ()),
        )


class Job(BaseModel):
    """Point-in-time snapshot of a server-side asynchronous job."""

    model_config = ConfigDict(frozen=True)

    id: str
    status: JobStatus
    error: str | None = None
    error_details: Mapping[str, Any] | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Job:
        metadata = payload.get("metadata") or {}
        entity = payload.get("entity") or {}
        return cls(
            id=metadata.get("guid") or entity["guid"],
            status=JobStatus(entity.get("status", "unknown")),
            error=entity.get("error"),
            error_details=entity.get("error_details"),
        )

    @property
    def state(self) -> JobState:
        if self.status is JobStatus.finished:
            return JobState.SUCCEEDED
        if self.status is JobStatus.failed:
            return JobState.FAILED
        return JobState.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.state is not JobState.PENDING


def resource_id(resource: Resource) -> str:
    return resource.id


def resource_entity(resource: Resource) -> Mapping[str, Any]:
    return resource.entity
