# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
This module represents BigQuery jobs and their status.

Classes:
- JobType: The four kinds of job.
- JobState: The lifecycle states reported by the service.
- JobStatus: A snapshot of a job's state and errors.
- Job: A handle on a running or finished job.
"""

import time
from enum import Enum
from typing import Any

from bq_toolkit.big_query.big_query_exceptions import (
    BigQueryError,
    IncompleteJobError,
    JobFailedError,
    NotAQueryJobError,
    UnexpectedJobStateError,
    google_api_exception_shield,
)
from bq_toolkit.big_query.iterators import RowIterator
from bq_toolkit.big_query.paging import (
    PagingConf,
    ReadDataResult,
    ReadQueryConf,
)
from bq_toolkit.utils import get_logger


class JobType(Enum):
    COPY = "copy"
    EXTRACT = "extract"
    LOAD = "load"
    QUERY = "query"


class JobState(Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"


class JobStatus:
    """
    The status of a job. `err` holds the error that made a finished job
    fail; `errors` holds every error encountered, fatal or not.
    """

    def __init__(
        self,
        state: JobState,
        errors: list[BigQueryError] | None = None,
        err: BigQueryError | None = None,
    ):
        self.state = state
        self.errors = errors or []
        self.err = err

    @property
    def done(self) -> bool:
        return self.state == JobState.DONE

    @classmethod
    def from_api(cls, status: dict[str, Any]) -> "JobStatus":
        try:
            state = JobState(status.get("state"))
        except ValueError as e:
            raise UnexpectedJobStateError(
                f"unexpected job state: {status.get('state')}"
            ) from e

        err = BigQueryError.from_api(status.get("errorResult"))
        return cls(
            state=state,
            errors=[
                BigQueryError.from_api(e) for e in status.get("errors", [])
            ],
            err=err if state == JobState.DONE else None,
        )

    def raise_for_error(self, job_id: str = "") -> None:
        if self.err is not None:
            raise JobFailedError(job_id, self.err, self.errors)

    def __repr__(self) -> str:
        return f"JobStatus(state={self.state.name}, err={self.err})"


class Job:
    """
    A handle on a BigQuery job, identified by its project and job ID.
    """

    def __init__(
        self,
        service,
        project_id: str,
        job_id: str,
        location: str | None = None,
    ):
        self._service = service
        self.project_id = project_id
        self.job_id = job_id
        self.location = location
        self._logger = get_logger()

    @google_api_exception_shield
    def status(self) -> JobStatus:
        return self._service.job_status(
            self.project_id, self.job_id, self.location
        )

    @google_api_exception_shield
    def cancel(self) -> None:
        """
        Requests cancellation. The request returns immediately; poll the
        status to learn whether the job was cancelled.
        """
        self._service.cancel_job(self.project_id, self.job_id, self.location)

    def wait(
        self, poll_interval: float = 1.0, max_interval: float = 60.0
    ) -> JobStatus:
        """
        Polls the job status, doubling the delay between polls, until the
        job is done. The returned status may carry the job's error.
        """
        delay = poll_interval
        while True:
            status = self.status()
            if status.done:
                self._logger.info("Job %s is done.", self.job_id)
                return status
            self._logger.debug(
                "Job %s is %s, polling again in %s s.",
                self.job_id,
                status.state.name,
                delay,
            )
            time.sleep(delay)
            delay = min(delay * 2, max_interval)

    @google_api_exception_shield
    def read(
        self, page_size: int | None = None, start_index: int = 0
    ) -> RowIterator:
        """
        Returns an iterator over the results of a query job.
        """
        job_type = self._service.get_job_type(
            self.project_id, self.job_id, self.location
        )
        if job_type != JobType.QUERY:
            raise NotAQueryJobError(
                f"cannot read rows from {job_type.value} job {self.job_id}"
            )

        conf = ReadQueryConf(
            self.project_id,
            self.job_id,
            PagingConf(page_size, start_index),
            self.location,
        )
        return RowIterator(
            lambda token: self._read_query_page(conf, token), conf.paging
        )

    @google_api_exception_shield
    def _read_query_page(
        self, conf: ReadQueryConf, page_token: str
    ) -> ReadDataResult:
        # Every call blocks server side until the job ends or times out.
        while True:
            try:
                return self._service.read_query(conf, page_token)
            except IncompleteJobError:
                self._logger.info(
                    "Query job %s is not complete yet, waiting.", self.job_id
                )

    def __repr__(self) -> str:
        return f"Job(project_id={self.project_id!r}, job_id={self.job_id!r})"
