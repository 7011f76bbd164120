"""Orchestration package: backoff, job polling, pagination and composition."""

from cfchain.orchestration.backoff import BackoffSchedule, poll_until
from cfchain.orchestration.compose import join, with_deadline
from cfchain.orchestration.jobs import JobPoller, JobReader, wait_for_completion
from cfchain.orchestration.pagination import PageFetcher, collect, first, single, walk

__all__ = [
    "BackoffSchedule",
    "JobPoller",
    "JobReader",
    "PageFetcher",
    "collect",
    "first",
    "join",
    "poll_until",
    "single",
    "wait_for_completion",
    "walk",
    "with_deadline",
]
