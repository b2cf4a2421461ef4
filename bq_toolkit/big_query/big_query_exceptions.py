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
This module defines custom exceptions for handling specific BigQuery errors and
provides a decorator to shield functions from common Google API exceptions by
translating them into more specific BigQuery exceptions.
"""

import json
from functools import wraps
import concurrent.futures

from google.api_core.exceptions import GoogleAPICallError
from googleapiclient.errors import HttpError


class BigQueryExecutionError(Exception):
    """
    Exception raised for errors that occur during the execution of
    operations on BigQuery.
    """


class BigQueryTimeoutError(Exception):
    """
    Exception raised when a BigQuery operation exceeds the allotted time limit.
    """


class BigQueryDataRetrievalError(Exception):
    """
    Exception raised when there is an issue retrieving data from BigQuery.
    """


class IncompleteJobError(Exception):
    """
    Raised when query results are requested before the job has completed.
    The request may be repeated to keep polling.
    """


class UnexpectedJobStateError(Exception):
    """
    Raised when the service reports a job state the client does not know.
    """


class UnknownJobTypeError(Exception):
    """
    Raised when a job configuration is none of copy, extract, load or query.
    """


class NotAQueryJobError(Exception):
    """
    Raised when rows are requested from a job that is not a query.
    """


class ValueConversionError(Exception):
    """
    Raised when a cell returned by BigQuery cannot be converted to the type
    declared by the schema.
    """


class BigQueryError(Exception):
    """
    An error reported by BigQuery for a job or a row, as found in the
    ErrorProto resource.
    """

    def __init__(self, reason: str = "", location: str = "", message: str = ""):
        super().__init__(message)
        self.reason = reason
        self.location = location
        self.message = message

    @classmethod
    def from_api(cls, error_proto: dict | None) -> "BigQueryError | None":
        if not error_proto:
            return None
        return cls(
            reason=error_proto.get("reason", ""),
            location=error_proto.get("location", ""),
            message=error_proto.get("message", ""),
        )

    def __str__(self) -> str:
        return (
            f"{{Location: {self.location!r}; "
            f"Message: {self.message!r}; "
            f"Reason: {self.reason!r}}}"
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, BigQueryError):
            return NotImplemented
        return (self.reason, self.location, self.message) == (
            other.reason,
            other.location,
            other.message,
        )

    def __hash__(self) -> int:
        return hash((self.reason, self.location, self.message))


class JobFailedError(Exception):
    """
    Raised when a finished job reports a fatal error.
    """

    def __init__(self, job_id: str, error: BigQueryError, errors: list):
        super().__init__(f"Job {job_id} failed: {error}")
        self.job_id = job_id
        self.error = error
        self.errors = errors


class RowInsertionError(Exception):
    """
    Records the errors BigQuery reported for one row of a streaming insert.
    """

    def __init__(
        self, insert_id: str, row_index: int, errors: list[BigQueryError]
    ):
        super().__init__(
            f"insertion of row [insertID: {insert_id!r}; "
            f"insertIndex: {row_index}] failed with {len(errors)} error(s)"
        )
        self.insert_id = insert_id
        self.row_index = row_index
        self.errors = errors


class PutMultiError(Exception):
    """
    Raised by a streaming insert when one or more rows were rejected.
    """

    def __init__(self, row_errors: list[RowInsertionError]):
        plural = "" if len(row_errors) == 1 else "s"
        super().__init__(f"{len(row_errors)} row insertion failure{plural}")
        self.row_errors = row_errors

    def __len__(self) -> int:
        return len(self.row_errors)

    def __iter__(self):
        return iter(self.row_errors)


def http_error_reason(error: HttpError) -> str:
    """
    Returns the reason of the first error detail carried by an HttpError,
    or an empty string when the body has none.
    """
    try:
        content = json.loads(error.content.decode("utf-8"))
        return content["error"]["errors"][0]["reason"]
    except (ValueError, KeyError, IndexError, TypeError, AttributeError):
        return ""


def google_api_exception_shield(target):
    """
    Decorator to shield a function from exceptions raised by the Google API.
    Converts specific Google API exceptions into more specific BigQuery
    exceptions.
    """

    @wraps(target)
    def inner(*args, **kwargs):
        try:
            return target(*args, **kwargs)
        except (GoogleAPICallError, HttpError) as e:
            raise BigQueryExecutionError(f"Error: {e}") from e
        except concurrent.futures.TimeoutError as e:
            raise BigQueryTimeoutError(f"Error: {e}") from e

    return inner
