from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from cfchain.clients.cloudfoundry import CloudFoundryClient, ResourceCollection
from cfchain.config.settings import Settings, get_settings
from cfchain.core.errors import main_with_error_handling
from cfchain.domain.models import Job, JobStatus, resource_entity, resource_id
from cfchain.logging import configure_logging
from cfchain.orchestration.jobs import JobPoller

COLLECTIONS = (
    "spaces",
    "shared_domains",
    "private_domains",
    "applications",
    "routes",
    "service_brokers",
)


def _format_resource(resource_id: str, name: str | None) -> str:
    return f"{resource_id}\t{name or ''}"


async def _list(settings: Settings, collection: str, name: str | None) -> int:
    async with CloudFoundryClient.from_settings(settings) as client:
        resources: ResourceCollection = getattr(client, collection)
        filters = {"name": name} if name else {}
        async for resource in resources.walk(**filters):
            print(_format_resource(resource_id(resource), resource_entity(resource).get("name")))
    return 0


async def _wait_job(settings: Settings, job_id: str, timeout: float | None) -> int:
    async with CloudFoundryClient.from_settings(settings) as client:
        poller = JobPoller(client.jobs, settings.backoff_schedule(settings.job_timeout))
        final = await poller.wait_for_completion(Job(id=job_id, status=JobStatus.queued), timeout)
    print(f"Job {final.id}: {final.status.value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cfchain", description="Cloud Foundry orchestration tooling")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    parser.add_argument("--log-format", choices=("json", "console"), default="json", help="Log renderer")
    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="List every resource in a collection")
    list_parser.add_argument("collection", choices=COLLECTIONS)
    list_parser.add_argument("--name", default=None, help="Only resources with this exact name")

    job_parser = subparsers.add_parser("wait-job", help="Wait for an asynchronous job to finish")
    job_parser.add_argument("job_id", help="Job guid")
    job_parser.add_argument("--timeout", type=float, default=None, help="Seconds to wait")

    return parser


@main_with_error_handling()
def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level.upper(), json_output=args.log_format == "json")
    settings = get_settings()

    if args.command == "list":
        return asyncio.run(_list(settings, args.collection, args.name))

    if args.command == "wait-job":
        return asyncio.run(_wait_job(settings, args.job_id, args.timeout))

    parser.print_help()
    return 1


if __name__ == "__main__":  # pragma: no cover - exercised via module entrypoint
    raise SystemExit(main())
