from __future__ import annotations

import structlog

from cfchain.clients.cloudfoundry import CloudFoundryClient
from cfchain.domain.models import Job, Resource
from cfchain.orchestration.jobs import JobPoller
from cfchain.orchestration.pagination import single

logger = structlog.get_logger()


async def create_private_domain(
    client: CloudFoundryClient, organization_id: str, domain_name: str
) -> Resource:
    domain = await client.private_domains.create(
        {"name": domain_name, "owning_organization_guid": organization_id}
    )
    logger.info("private_domain_created", domain_id=domain.id, domain_name=domain_name)
    return domain


async def find_private_domain(client: CloudFoundryClient, domain_name: str) -> Resource:
    """Look up exactly one private domain by name."""
    return await single(client.private_domains.walk(name=domain_name))


async def delete_private_domain(
    client: CloudFoundryClient, poller: JobPoller, domain_id: str
) -> Job | None:
    """Delete a private domain and wait for the deletion job to finish."""
    job = await client.private_domains.delete(domain_id, async_=True)
    if job is None:
        return None
    final = await poller.wait_for_completion(job)
    logger.info("private_domain_deleted", domain_id=domain_id, job_id=final.id)
    return final
