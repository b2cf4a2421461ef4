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
This module isolates the BigQuery v2 REST API. BigQueryService is the only
class that knows the shapes of the API resources; the rest of the package
works with the toolkit's own types.

Classes:
- InsertRowsConf: Options of a streaming insert.
- BigQueryService: The REST API adapter.
"""

import datetime
from concurrent.futures import ThreadPoolExecutor
from typing import Any, BinaryIO

from google.api_core import retry as retries
from googleapiclient import discovery
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from bq_toolkit.api.request_builder import (
    CustomRequestBuilder,
    default_credentials,
    execute,
)
from bq_toolkit.big_query.big_query_exceptions import (
    BigQueryDataRetrievalError,
    BigQueryError,
    BigQueryExecutionError,
    IncompleteJobError,
    PutMultiError,
    RowInsertionError,
    UnknownJobTypeError,
    http_error_reason,
)
from bq_toolkit.big_query.metadata import (
    DatasetMetadata,
    TableMetadata,
    TableMetadataToUpdate,
    TimePartitioning,
    datetime_to_unix_millis,
)
from bq_toolkit.big_query.jobs import Job, JobStatus, JobType
from bq_toolkit.big_query.paging import (
    ReadDataResult,
    ReadQueryConf,
    ReadTableConf,
)
from bq_toolkit.big_query.schema import Schema, schema_from_api, schema_to_api
from bq_toolkit.big_query.values import convert_rows
from bq_toolkit.utils import get_logger

# Maximum time the getQueryResults endpoint may block waiting for a job.
# Results are returned as soon as they are ready, so a long value does not
# add latency.
GET_QUERY_RESULTS_TIMEOUT_MS = 60 * 1000


def is_retryable(error: Exception) -> bool:
    """
    Transient backend failures are the only errors worth retrying.
    """
    if not isinstance(error, HttpError):
        return False
    return error.resp.status in (500, 503) and (
        http_error_reason(error) == "backendError"
    )


DEFAULT_RETRY = retries.Retry(
    predicate=is_retryable,
    initial=2.0,
    maximum=32.0,
    multiplier=2.0,
)


def _job_params(
    project_id: str, job_id: str, location: str | None
) -> dict[str, str]:
    # Jobs outside the US and EU multi-regions are only found by location.
    params = {"projectId": project_id, "jobId": job_id}
    if location:
        params["location"] = location
    return params


class InsertRowsConf:
    def __init__(
        self,
        template_suffix: str = "",
        ignore_unknown_values: bool = False,
        skip_invalid_rows: bool = False,
    ):
        self.template_suffix = template_suffix
        self.ignore_unknown_values = ignore_unknown_values
        self.skip_invalid_rows = skip_invalid_rows


class InsertionRow:
    def __init__(self, insert_id: str, row: dict[str, Any]):
        self.insert_id = insert_id
        self.row = row


class BigQueryService:
    """
    An adapter over the BigQuery v2 REST API built with the discovery client.
    """

    def __init__(
        self,
        api_client=None,
        credentials=None,
        retry: retries.Retry = DEFAULT_RETRY,
    ):
        if api_client is None:
            credentials = credentials or default_credentials()
            api_client = discovery.build(
                "bigquery",
                "v2",
                credentials=credentials,
                requestBuilder=CustomRequestBuilder,
            )
        self._api = api_client
        self._credentials = credentials
        self._retry = retry
        self._logger = get_logger()

    def _execute(self, request) -> dict[str, Any]:
        return execute(request, self._credentials)

    # Jobs

    def insert_job(
        self,
        project_id: str,
        job: dict[str, Any],
        media: BinaryIO | None = None,
    ):
        """
        Starts a job. With media, the job data is uploaded with the request.
        """
        kwargs = {"projectId": project_id, "body": job}
        if media is not None:
            kwargs["media_body"] = MediaIoBaseUpload(
                media, mimetype="application/octet-stream"
            )
        response = self._execute(self._api.jobs().insert(**kwargs))
        reference = response["jobReference"]
        self._logger.info(
            "Started job %s in project %s.", reference["jobId"], project_id
        )
        return Job(
            self,
            reference.get("projectId", project_id),
            reference["jobId"],
            reference.get("location"),
        )

    def get_job_type(
        self, project_id: str, job_id: str, location: str | None = None
    ) -> JobType:
        response = self._execute(
            self._api.jobs().get(
                **_job_params(project_id, job_id, location),
                fields="configuration",
            )
        )
        configuration = response.get("configuration", {})
        for job_type in JobType:
            if configuration.get(job_type.value) is not None:
                return job_type
        raise UnknownJobTypeError(f"unknown type of job {job_id}")

    def cancel_job(
        self, project_id: str, job_id: str, location: str | None = None
    ) -> None:
        # The returned job status is unreliable; callers poll instead.
        self._execute(
            self._api.jobs().cancel(
                **_job_params(project_id, job_id, location)
            )
        )

    def job_status(
        self, project_id: str, job_id: str, location: str | None = None
    ) -> JobStatus:
        response = self._execute(
            self._api.jobs().get(
                **_job_params(project_id, job_id, location), fields="status"
            )
        )
        return JobStatus.from_api(response["status"])

    # Tables

    def create_table(
        self,
        project_id: str,
        dataset_id: str,
        table_id: str,
        expiration: datetime.datetime | None = None,
        view_query: str = "",
        schema: Schema | None = None,
        use_standard_sql: bool = False,
        time_partitioning: TimePartitioning | None = None,
    ) -> None:
        """
        Creates a table. A non-empty view query creates a view instead; the
        expiration can only be set at creation time.
        """
        if view_query and schema is not None:
            raise ValueError("a view cannot be created with a schema")
        table = {
            "tableReference": {
                "projectId": project_id,
                "datasetId": dataset_id,
                "tableId": table_id,
            }
        }
        if expiration is not None:
            table["expirationTime"] = str(datetime_to_unix_millis(expiration))
        if view_query:
            table["view"] = {"query": view_query}
            if use_standard_sql:
                table["view"]["useLegacySql"] = False
        if schema is not None:
            table["schema"] = schema_to_api(schema)
        if time_partitioning is not None:
            table["timePartitioning"] = time_partitioning.to_api()

        self._execute(
            self._api.tables().insert(
                projectId=project_id, datasetId=dataset_id, body=table
            )
        )

    def get_table_metadata(
        self, project_id: str, dataset_id: str, table_id: str
    ) -> TableMetadata:
        table = self._execute(
            self._api.tables().get(
                projectId=project_id, datasetId=dataset_id, tableId=table_id
            )
        )
        return TableMetadata.from_api(table)

    def delete_table(
        self, project_id: str, dataset_id: str, table_id: str
    ) -> None:
        self._execute(
            self._api.tables().delete(
                projectId=project_id, datasetId=dataset_id, tableId=table_id
            )
        )

    def list_tables(
        self,
        project_id: str,
        dataset_id: str,
        page_size: int,
        page_token: str,
    ) -> tuple[list[tuple[str, str, str]], str]:
        """
        Returns one page of table references and the next page token.
        """
        params = {"projectId": project_id, "datasetId": dataset_id}
        if page_token:
            params["pageToken"] = page_token
        if page_size > 0:
            params["maxResults"] = page_size
        response = self._execute(self._api.tables().list(**params))
        tables = [
            (
                t["tableReference"]["projectId"],
                t["tableReference"]["datasetId"],
                t["tableReference"]["tableId"],
            )
            for t in response.get("tables", [])
        ]
        return tables, response.get("nextPageToken", "")

    def patch_table(
        self,
        project_id: str,
        dataset_id: str,
        table_id: str,
        conf: TableMetadataToUpdate,
    ) -> TableMetadata:
        table = self._execute(
            self._api.tables().patch(
                projectId=project_id,
                datasetId=dataset_id,
                tableId=table_id,
                body=conf.to_api(),
            )
        )
        return TableMetadata.from_api(table)

    # Table data

    def _fetch_schema(self, conf: ReadTableConf) -> Schema | None:
        table = self._execute(
            self._api.tables().get(
                projectId=conf.project_id,
                datasetId=conf.dataset_id,
                tableId=conf.table_id,
                fields="schema",
            )
        )
        return schema_from_api(table.get("schema"))

    def read_tabledata(
        self, conf: ReadTableConf, page_token: str
    ) -> ReadDataResult:
        """
        Fetches one page of table data. On the first page the table schema
        is fetched in the background while the data page is requested.
        """
        params = {
            "projectId": conf.project_id,
            "datasetId": conf.dataset_id,
            "tableId": conf.table_id,
        }
        conf.paging.apply(params, page_token)

        if conf.schema is not None:
            response = self._execute(self._api.tabledata().list(**params))
        else:
            with ThreadPoolExecutor(max_workers=1) as executor:
                schema_future = executor.submit(self._fetch_schema, conf)
                response = self._execute(
                    self._api.tabledata().list(**params)
                )
                schema = schema_future.result()
            if schema is not None:
                conf.schema = schema

        if conf.schema is None and response.get("rows"):
            raise BigQueryDataRetrievalError(
                f"table {conf.project_id}:{conf.dataset_id}.{conf.table_id} "
                "returned rows but has no schema"
            )

        return ReadDataResult(
            page_token=response.get("pageToken", ""),
            rows=convert_rows(response.get("rows", []), conf.schema or []),
            total_rows=int(response.get("totalRows", 0)),
            schema=conf.schema,
        )

    def read_query(
        self, conf: ReadQueryConf, page_token: str
    ) -> ReadDataResult:
        """
        Fetches one page of query results. Raises IncompleteJobError while
        the job is still running; calling again keeps polling.
        """
        params = {
            "projectId": conf.project_id,
            "jobId": conf.job_id,
            "timeoutMs": GET_QUERY_RESULTS_TIMEOUT_MS,
        }
        if conf.location:
            params["location"] = conf.location
        conf.paging.apply(params, page_token)

        response = self._execute(self._api.jobs().getQueryResults(**params))
        if not response.get("jobComplete", False):
            raise IncompleteJobError(
                "query results not available because job "
                f"{conf.job_id} is not complete"
            )

        schema = schema_from_api(response.get("schema")) or []
        return ReadDataResult(
            page_token=response.get("pageToken", ""),
            rows=convert_rows(response.get("rows", []), schema),
            total_rows=int(response.get("totalRows", 0)),
            schema=schema,
        )

    def insert_rows(
        self,
        project_id: str,
        dataset_id: str,
        table_id: str,
        rows: list[InsertionRow],
        conf: InsertRowsConf,
    ) -> None:
        """
        Streams rows into a table, retrying transient backend errors.
        Rows rejected by BigQuery are reported through PutMultiError.
        """
        body = {
            "ignoreUnknownValues": conf.ignore_unknown_values,
            "skipInvalidRows": conf.skip_invalid_rows,
            "rows": [],
        }
        if conf.template_suffix:
            body["templateSuffix"] = conf.template_suffix
        for row in rows:
            insertion = {"json": row.row}
            if row.insert_id:
                insertion["insertId"] = row.insert_id
            body["rows"].append(insertion)

        request = self._api.tabledata().insertAll(
            projectId=project_id,
            datasetId=dataset_id,
            tableId=table_id,
            body=body,
        )
        response = self._retry(self._execute)(request)

        insert_errors = response.get("insertErrors", [])
        if not insert_errors:
            return

        row_errors = []
        for insert_error in insert_errors:
            index = int(insert_error["index"])
            if index >= len(rows):
                raise BigQueryExecutionError(
                    f"internal error: unexpected row index: {index}"
                )
            row_errors.append(
                RowInsertionError(
                    rows[index].insert_id,
                    index,
                    [
                        BigQueryError.from_api(e)
                        for e in insert_error.get("errors", [])
                    ],
                )
            )
        self._logger.error(
            "%s row(s) rejected by %s.%s.%s",
            len(row_errors),
            project_id,
            dataset_id,
            table_id,
        )
        raise PutMultiError(row_errors)

    # Datasets

    def insert_dataset(
        self, project_id: str, dataset_id: str, location: str = ""
    ) -> None:
        dataset = {
            "datasetReference": {
                "projectId": project_id,
                "datasetId": dataset_id,
            }
        }
        if location:
            dataset["location"] = location
        self._execute(
            self._api.datasets().insert(projectId=project_id, body=dataset)
        )

    def delete_dataset(
        self, project_id: str, dataset_id: str, delete_contents: bool = False
    ) -> None:
        self._execute(
            self._api.datasets().delete(
                projectId=project_id,
                datasetId=dataset_id,
                deleteContents=delete_contents,
            )
        )

    def get_dataset_metadata(
        self, project_id: str, dataset_id: str
    ) -> DatasetMetadata:
        dataset = self._execute(
            self._api.datasets().get(
                projectId=project_id, datasetId=dataset_id
            )
        )
        return DatasetMetadata.from_api(dataset)

    def list_datasets(
        self,
        project_id: str,
        max_results: int,
        page_token: str,
        list_hidden: bool = False,
        label_filter: str = "",
    ) -> tuple[list[tuple[str, str]], str]:
        """
        Returns one page of dataset references and the next page token.
        """
        params = {"projectId": project_id, "all": list_hidden}
        if page_token:
            params["pageToken"] = page_token
        if max_results > 0:
            params["maxResults"] = max_results
        if label_filter:
            params["filter"] = label_filter
        response = self._execute(self._api.datasets().list(**params))
        datasets = [
            (
                d["datasetReference"]["projectId"],
                d["datasetReference"]["datasetId"],
            )
            for d in response.get("datasets", [])
        ]
        return datasets, response.get("nextPageToken", "")
