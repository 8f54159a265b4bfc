"""Job board session: listing, filtering, details and posting."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Tuple, Union

from ...shared.dto import Job, JobType
from ...shared.errors import NotSignedIn, ValidationError
from ...shared.utils import any_blank
from ..remote_store import RemoteStore
from ..state import StateContainer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobDraft:
    title: str = ""
    company: str = ""
    description: str = ""
    location: str = ""
    salary: str = ""
    requirements: str = ""
    type: JobType = JobType.FULL_TIME

    def required(self) -> Tuple[str, ...]:
        return (self.title, self.company, self.description, self.location, self.salary)

    def to_job(self, posted_by: str) -> Job:
        requirements = tuple(line.strip() for line in self.requirements.split("\n") if line.strip())
        return Job(
            id="",
            title=self.title.strip(),
            company=self.company.strip(),
            description=self.description.strip(),
            location=self.location.strip(),
            salary=self.salary.strip(),
            requirements=requirements,
            posted_by=posted_by,
            type=self.type,
        )


DRAFT_FIELDS = frozenset(f.name for f in fields(JobDraft))


@dataclass(frozen=True)
class JobBoardSessionState:
    jobs: Tuple[Job, ...] = ()
    visible_jobs: Tuple[Job, ...] = ()
    query: str = ""
    job_type: Optional[JobType] = None
    selected_job: Optional[Job] = None
    draft: JobDraft = field(default_factory=JobDraft)
    posted: bool = False
    loading: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class LoadJobs:
    pass


@dataclass(frozen=True)
class UpdateSearchQuery:
    query: str


@dataclass(frozen=True)
class SelectJobType:
    job_type: Optional[JobType]


@dataclass(frozen=True)
class OpenJob:
    job_id: Optional[str]


@dataclass(frozen=True)
class CloseJob:
    pass


@dataclass(frozen=True)
class UpdateJobField:
    field: str
    value: Union[str, JobType]


@dataclass(frozen=True)
class PostJob:
    pass


@dataclass(frozen=True)
class ClearError:
    pass


JobBoardEvent = Union[
    LoadJobs, UpdateSearchQuery, SelectJobType, OpenJob, CloseJob, UpdateJobField, PostJob, ClearError
]


def filter_jobs(jobs: Tuple[Job, ...], query: str, job_type: Optional[JobType]) -> Tuple[Job, ...]:
    """Jobs whose title, company or location contain ``query`` and match ``job_type``."""
    needle = query.strip().lower()

    def matches(job: Job) -> bool:
        if job_type is not None and job.type != job_type:
            return False
        if not needle:
            return True
        return any(needle in text.lower() for text in (job.title, job.company, job.location))

    return tuple(job for job in jobs if matches(job))


def _refilter(state: JobBoardSessionState) -> JobBoardSessionState:
    return replace(state, visible_jobs=filter_jobs(state.jobs, state.query, state.job_type))


class JobBoardSession:
    def __init__(self, store: RemoteStore):
        self.store = store
        self.container: StateContainer[JobBoardSessionState] = StateContainer(JobBoardSessionState(), name="jobs")
        self.dispatch(LoadJobs())

    @property
    def state(self) -> JobBoardSessionState:
        return self.container.current

    def dispatch(self, event: JobBoardEvent) -> None:
        if isinstance(event, LoadJobs):
            self._load_jobs()
        elif isinstance(event, UpdateSearchQuery):
            self.container.update(lambda s: _refilter(replace(s, query=event.query)))
        elif isinstance(event, SelectJobType):
            self.container.update(lambda s: _refilter(replace(s, job_type=event.job_type)))
        elif isinstance(event, OpenJob):
            self._open_job(event.job_id)
        elif isinstance(event, CloseJob):
            self.container.update(lambda s: replace(s, selected_job=None))
        elif isinstance(event, UpdateJobField):
            self._update_field(event.field, event.value)
        elif isinstance(event, PostJob):
            self._post_job()
        elif isinstance(event, ClearError):
            self.container.clear_error()
        else:
            raise TypeError(f"Unsupported job board event: {event!r}")

    def _load_jobs(self) -> None:
        self.container.update(lambda s: replace(s, loading=True, error=None))

        async def load() -> None:
            jobs = (await self.store.fetch_jobs()).unwrap()
            ordered = tuple(sorted(jobs, key=lambda j: j.posted_at, reverse=True))
            self.container.update(lambda s: _refilter(replace(s, jobs=ordered, loading=False)))

        self.container.run_supervised(load, name="jobs-load")

    def _open_job(self, job_id: Optional[str]) -> None:
        if not job_id:
            self.container.update(lambda s: replace(s, error=ValidationError("Invalid job ID").message))
            return
        self.container.update(lambda s: replace(s, loading=True, error=None))

        async def load() -> None:
            job = (await self.store.fetch_job(job_id)).unwrap()
            self.container.update(lambda s: replace(s, selected_job=job, loading=False))

        self.container.run_supervised(load, name=f"jobs-open-{job_id}")

    def _update_field(self, name: str, value: Union[str, JobType]) -> None:
        if name not in DRAFT_FIELDS:
            raise ValueError(f"Unknown job field: {name}")
        self.container.update(lambda s: replace(s, draft=replace(s.draft, **{name: value}), posted=False))

    def _post_job(self) -> None:
        state = self.container.current
        if any_blank(state.draft.required()):
            self.container.update(lambda s: replace(s, error="Please fill in all required fields"))
            return
        user_id = self.store.current_user_id()
        if not user_id:
            self.container.update(lambda s: replace(s, error=NotSignedIn().message))
            return
        job = state.draft.to_job(posted_by=user_id)
        self.container.update(lambda s: replace(s, loading=True, error=None))

        async def post() -> None:
            (await self.store.post_job(job)).unwrap()
            logger.info("Posted job %r for %s", job.title, user_id)
            self.container.update(lambda s: replace(s, draft=JobDraft(), posted=True, loading=False))
            self._load_jobs()

        self.container.run_supervised(post, name="jobs-post")

    async def close(self) -> None:
        await self.container.close()
