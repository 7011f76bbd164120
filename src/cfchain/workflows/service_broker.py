from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from cfchain.clients.cloudfoundry import CloudFoundryClient
from cfchain.config.settings import Settings
from cfchain.core.errors import AmbiguousResourceError, StagingFailedError
from cfchain.domain.models import InstanceState, PackageState, Resource
from cfchain.logging import bind_context
from cfchain.orchestration.backoff import BackoffSchedule, poll_until
from cfchain.orchestration.compose import join, with_deadline
from cfchain.orchestration.jobs import JobPoller
from cfchain.orchestration.pagination import first, single

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class PushRequest:
    application_name: str
    host_name: str
    space_name: str
    service_name: str
    plan_name: str
    buildpack: str = "https://github.com/cloudfoundry/java-buildpack.git"
    memory: int = 768


@dataclass(frozen=True, slots=True)
class BrokerCredentials:
    username: str
    password: str


@dataclass(frozen=True, slots=True)
class SpaceAndDomain:
    space_id: str
    domain: Resource


@dataclass(frozen=True, slots=True)
class ApplicationAndRoute:
    application_id: str
    route_id: str


@dataclass(frozen=True, slots=True)
class ApplicationMetadata:
    application_id: str
    space_id: str
    uri: str


@dataclass(frozen=True, slots=True)
class ServiceBrokerMetadata:
    application: ApplicationMetadata
    service_broker_id: str


@dataclass(slots=True)
class ServiceBrokerWorkflow:
    """Pushes a broker application and registers it as a service broker."""

    client: CloudFoundryClient
    poller: JobPoller
    schedule: BackoffSchedule
    application_bits: Path
    timeout: float = 300.0

    @classmethod
    def from_settings(
        cls, client: CloudFoundryClient, settings: Settings, application_bits: Path
    ) -> ServiceBrokerWorkflow:
        return cls(
            client=client,
            poller=JobPoller(client.jobs, settings.backoff_schedule(settings.job_timeout)),
            schedule=settings.backoff_schedule(),
            application_bits=application_bits,
            timeout=settings.workflow_timeout,
        )

    async def push(self, organization_id: str, request: PushRequest) -> ApplicationMetadata:
        return await with_deadline(
            self._push(organization_id, request),
            self.timeout,
            operation=f"push {request.application_name}",
        )

    async def create(
        self,
        organization_id: str,
        broker_name: str,
        request: PushRequest,
        credentials: BrokerCredentials,
    ) -> ServiceBrokerMetadata:
        return await with_deadline(
            self._create(organization_id, broker_name, request, credentials),
            self.timeout,
            operation=f"create broker {broker_name}",
        )

    async def find(self, broker_name: str) -> Resource:
        return await single(self.client.service_brokers.walk(name=broker_name))

    async def delete_application(self, application_id: str) -> None:
        await self.client.applications.delete(application_id)
        logger.info("application_deleted", application_id=application_id)

    async def _create(
        self,
        organization_id: str,
        broker_name: str,
        request: PushRequest,
        credentials: BrokerCredentials,
    ) -> ServiceBrokerMetadata:
        application = await self._push(organization_id, request)
        broker = await self.client.service_brokers.create(
            {
                "name": broker_name,
                "broker_url": application.uri,
                "auth_username": credentials.username,
                "auth_password": credentials.password,
                "space_guid": application.space_id,
            }
        )
        logger.info("service_broker_created", broker_name=broker_name, service_broker_id=broker.id)
        return ServiceBrokerMetadata(application=application, service_broker_id=broker.id)

    async def _push(self, organization_id: str, request: PushRequest) -> ApplicationMetadata:
        log = bind_context(workflow="push_service_broker", application_name=request.application_name)

        space, domain = await join(
            self.client.spaces.create({"name": request.space_name, "organization_guid": organization_id}),
            first(self.client.shared_domains.walk()),
        )
        context = SpaceAndDomain(space_id=space.id, domain=domain)
        log.info("workflow_step", step="space_and_domain", space_id=context.space_id, domain_id=domain.id)

        application, route = await join(
            self.client.applications.create(
                {
                    "name": request.application_name,
                    "space_guid": context.space_id,
                    "buildpack": request.buildpack,
                    "memory": request.memory,
                }
            ),
            self.client.routes.create(
                {
                    "domain_guid": context.domain.id,
                    "host": request.host_name,
                    "space_guid": context.space_id,
                }
            ),
        )
        created = ApplicationAndRoute(application_id=application.id, route_id=route.id)
        log.info(
            "workflow_step",
            step="application_and_route",
            application_id=created.application_id,
            route_id=created.route_id,
        )

        await self.client.applications.associate_route(created.application_id, created.route_id)
        application_id = created.application_id

        job = await self.client.applications.upload(application_id, self.application_bits)
        await self.poller.wait_for_completion(job)
        log.info("workflow_step", step="bits_uploaded", application_id=application_id)

        await self.client.applications.update(
            application_id,
            {
                "state": "STARTED",
                "environment_json": {
                    "SERVICE_NAME": request.service_name,
                    "PLAN_NAME": request.plan_name,
                },
            },
        )

        await self._wait_for_staging(application_id)
        log.info("workflow_step", step="staged", application_id=application_id)

        await self._wait_for_running(application_id)
        log.info("workflow_step", step="running", application_id=application_id)

        return ApplicationMetadata(
            application_id=application_id,
            space_id=context.space_id,
            uri=f"https://{request.host_name}.{context.domain.entity['name']}",
        )

    async def _wait_for_staging(self, application_id: str) -> None:
        async def read() -> PackageState:
            application = await self.client.applications.get(application_id)
            return PackageState(application.entity.get("package_state", "unknown"))

        state = await poll_until(
            read,
            lambda value: value in (PackageState.STAGED, PackageState.FAILED),
            self.schedule,
            description=f"staging of {application_id}",
        )
        if state is PackageState.FAILED:
            raise StagingFailedError(
                f"application {application_id} failed to stage",
                details={"application_id": application_id},
            )

    async def _wait_for_running(self, application_id: str) -> None:
        async def read() -> dict[str, InstanceState]:
            instances = await self.client.applications.instances(application_id)
            if len(instances) > 1:
                raise AmbiguousResourceError(
                    f"application {application_id} reports {len(instances)} instances, expected one",
                    details={"application_id": application_id, "instances": len(instances)},
                )
            return instances

        await poll_until(
            read,
            lambda instances: list(instances.values()) == [InstanceState.RUNNING],
            self.schedule,
            description=f"start of {application_id}",
        )
