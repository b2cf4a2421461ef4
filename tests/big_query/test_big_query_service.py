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
BigQuery service tests
"""

import io

import pytest
from googleapiclient.errors import HttpError

from bq_toolkit.big_query.big_query_exceptions import (
    BigQueryDataRetrievalError,
    BigQueryError,
    BigQueryExecutionError,
    IncompleteJobError,
    PutMultiError,
    UnknownJobTypeError,
)
from bq_toolkit.big_query.jobs import JobState, JobType
from bq_toolkit.big_query.paging import (
    PagingConf,
    ReadQueryConf,
    ReadTableConf,
)
from bq_toolkit.big_query.schema import FieldSchema, FieldType
from bq_toolkit.big_query.service import (
    GET_QUERY_RESULTS_TIMEOUT_MS,
    InsertionRow,
    InsertRowsConf,
    is_retryable,
)
from tests.mocks.api.request_mock import http_error

SCHEMA_RESPONSE = {
    "schema": {
        "fields": [
            {"name": "name", "type": "STRING"},
            {"name": "age", "type": "INTEGER"},
        ]
    }
}
PAGE = {
    "totalRows": "2",
    "pageToken": "next",
    "rows": [
        {"f": [{"v": "a"}, {"v": "1"}]},
        {"f": [{"v": "b"}, {"v": None}]},
    ],
}


class TestReadTabledata:
    """
    Table data reading tests
    """

    @pytest.fixture()
    def conf(self) -> ReadTableConf:
        return ReadTableConf("prj", "ds", "tbl", PagingConf(10, 5))

    def test_schema_fetched_with_first_page(self, service, bigquery_api, conf):
        bigquery_api.add_response("tables.get", SCHEMA_RESPONSE)
        bigquery_api.add_response("tabledata.list", PAGE)

        result = service.read_tabledata(conf, "")

        assert result.rows == [["a", 1], ["b", None]]
        assert result.total_rows == 2
        assert result.page_token == "next"
        assert [f.name for f in result.schema] == ["name", "age"]
        assert conf.schema == result.schema
        assert bigquery_api.calls_to("tables.get")[0]["fields"] == "schema"
        assert bigquery_api.calls_to("tabledata.list") == [
            {
                "projectId": "prj",
                "datasetId": "ds",
                "tableId": "tbl",
                "startIndex": "5",
                "maxResults": 10,
            }
        ]

    def test_known_schema_is_not_fetched(self, service, bigquery_api, conf):
        conf.schema = [
            FieldSchema(name="name", type=FieldType.STRING),
            FieldSchema(name="age", type=FieldType.INTEGER),
        ]
        bigquery_api.add_response("tabledata.list", PAGE)

        service.read_tabledata(conf, "next")

        assert bigquery_api.calls_to("tables.get") == []
        request = bigquery_api.calls_to("tabledata.list")[0]
        assert request["pageToken"] == "next"
        assert "startIndex" not in request

    def test_data_error_wins(self, service, bigquery_api, conf):
        bigquery_api.add_response("tables.get", http_error(403, "schema"))
        bigquery_api.add_response("tabledata.list", http_error(400, "data"))

        with pytest.raises(HttpError) as e:
            service.read_tabledata(conf, "")

        assert e.value.status_code == 400
        assert conf.schema is None

    def test_schema_error_after_data(self, service, bigquery_api, conf):
        bigquery_api.add_response("tables.get", http_error(403, "schema"))
        bigquery_api.add_response("tabledata.list", PAGE)

        with pytest.raises(HttpError) as e:
            service.read_tabledata(conf, "")

        assert e.value.status_code == 403
        assert conf.schema is None

    def test_rows_without_schema(self, service, bigquery_api, conf):
        bigquery_api.add_response("tables.get", {})
        bigquery_api.add_response("tabledata.list", PAGE)

        with pytest.raises(BigQueryDataRetrievalError):
            service.read_tabledata(conf, "")

    def test_empty_table(self, service, bigquery_api, conf):
        bigquery_api.add_response("tables.get", SCHEMA_RESPONSE)
        bigquery_api.add_response("tabledata.list", {"totalRows": "0"})

        result = service.read_tabledata(conf, "")

        assert result.rows == []
        assert result.page_token == ""


class TestReadQuery:
    """
    Query results reading tests
    """

    def test_incomplete_job(self, service, bigquery_api):
        bigquery_api.add_response(
            "jobs.getQueryResults", {"jobComplete": False}
        )

        with pytest.raises(IncompleteJobError):
            service.read_query(ReadQueryConf("prj", "job"), "")

    def test_complete_job(self, service, bigquery_api):
        bigquery_api.add_response(
            "jobs.getQueryResults",
            {"jobComplete": True, **SCHEMA_RESPONSE, **PAGE},
        )
        conf = ReadQueryConf("prj", "job", location="EU")

        result = service.read_query(conf, "")

        assert result.rows == [["a", 1], ["b", None]]
        assert [f.type for f in result.schema] == [
            FieldType.STRING,
            FieldType.INTEGER,
        ]
        request = bigquery_api.calls_to("jobs.getQueryResults")[0]
        assert request["timeoutMs"] == GET_QUERY_RESULTS_TIMEOUT_MS
        assert request["location"] == "EU"
        assert request["startIndex"] == "0"


class TestInsertRows:
    """
    Streaming insert tests
    """

    @pytest.fixture()
    def rows(self) -> list[InsertionRow]:
        return [
            InsertionRow("id-0", {"name": "a"}),
            InsertionRow("", {"name": "b"}),
            InsertionRow("id-2", {"name": "c"}),
        ]

    def test_request_body(self, service, bigquery_api, rows):
        bigquery_api.add_response("tabledata.insertAll", {})

        service.insert_rows(
            "prj",
            "ds",
            "tbl",
            rows,
            InsertRowsConf("_suffix", ignore_unknown_values=True),
        )

        body = bigquery_api.calls_to("tabledata.insertAll")[0]["body"]
        assert body == {
            "ignoreUnknownValues": True,
            "skipInvalidRows": False,
            "templateSuffix": "_suffix",
            "rows": [
                {"json": {"name": "a"}, "insertId": "id-0"},
                {"json": {"name": "b"}},
                {"json": {"name": "c"}, "insertId": "id-2"},
            ],
        }

    def test_row_errors(self, service, bigquery_api, rows):
        bigquery_api.add_response(
            "tabledata.insertAll",
            {
                "insertErrors": [
                    {
                        "index": 0,
                        "errors": [{"reason": "invalid", "message": "bad"}],
                    },
                    {"index": 2, "errors": [{"reason": "stopped"}]},
                ]
            },
        )

        with pytest.raises(PutMultiError) as e:
            service.insert_rows("prj", "ds", "tbl", rows, InsertRowsConf())

        assert len(e.value) == 2
        first, second = list(e.value)
        assert (first.insert_id, first.row_index) == ("id-0", 0)
        assert first.errors == [BigQueryError("invalid", "", "bad")]
        assert (second.insert_id, second.row_index) == ("id-2", 2)

    def test_unexpected_row_index(self, service, bigquery_api, rows):
        bigquery_api.add_response(
            "tabledata.insertAll",
            {"insertErrors": [{"index": 3, "errors": []}]},
        )

        with pytest.raises(BigQueryExecutionError):
            service.insert_rows("prj", "ds", "tbl", rows, InsertRowsConf())

    def test_backend_error_is_retried(self, service, bigquery_api, rows):
        bigquery_api.add_response(
            "tabledata.insertAll",
            http_error(503, "backendError"),
            http_error(500, "backendError"),
            {},
        )

        service.insert_rows("prj", "ds", "tbl", rows, InsertRowsConf())

        assert len(bigquery_api.calls_to("tabledata.insertAll")) == 3

    def test_other_errors_are_not_retried(self, service, bigquery_api, rows):
        bigquery_api.add_response(
            "tabledata.insertAll", http_error(500, "internalError"), {}
        )

        with pytest.raises(HttpError):
            service.insert_rows("prj", "ds", "tbl", rows, InsertRowsConf())

        assert len(bigquery_api.calls_to("tabledata.insertAll")) == 1


class TestIsRetryable:
    """
    Retry predicate tests
    """

    @pytest.mark.parametrize(
        "error, expected",
        [
            (http_error(500, "backendError"), True),
            (http_error(503, "backendError"), True),
            (http_error(502, "backendError"), False),
            (http_error(500, "rateLimitExceeded"), False),
            (http_error(503, ""), False),
            (ValueError("backendError"), False),
        ],
    )
    def test_is_retryable(self, error, expected):
        assert is_retryable(error) is expected


class TestJobs:
    """
    Job endpoint tests
    """

    def test_insert_job(self, service, bigquery_api):
        bigquery_api.add_response(
            "jobs.insert",
            {
                "jobReference": {
                    "projectId": "prj",
                    "jobId": "job-1",
                    "location": "EU",
                }
            },
        )

        job = service.insert_job("prj", {"configuration": {}})

        assert (job.project_id, job.job_id, job.location) == (
            "prj",
            "job-1",
            "EU",
        )
        assert "media_body" not in bigquery_api.calls_to("jobs.insert")[0]

    def test_insert_job_with_media(self, service, bigquery_api):
        bigquery_api.add_response(
            "jobs.insert", {"jobReference": {"jobId": "job-1"}}
        )

        job = service.insert_job(
            "prj", {"configuration": {}}, io.BytesIO(b"a,b\n")
        )

        assert job.project_id == "prj"
        assert "media_body" in bigquery_api.calls_to("jobs.insert")[0]

    @pytest.mark.parametrize(
        "configuration, expected",
        [
            ({"copy": {}}, JobType.COPY),
            ({"extract": {}}, JobType.EXTRACT),
            ({"load": {}}, JobType.LOAD),
            ({"query": {"query": "SELECT 1"}}, JobType.QUERY),
        ],
    )
    def test_job_type(self, service, bigquery_api, configuration, expected):
        bigquery_api.add_response(
            "jobs.get", {"configuration": configuration}
        )

        assert service.get_job_type("prj", "job") == expected

    def test_unknown_job_type(self, service, bigquery_api):
        bigquery_api.add_response("jobs.get", {"configuration": {}})

        with pytest.raises(UnknownJobTypeError):
            service.get_job_type("prj", "job")

    def test_job_status(self, service, bigquery_api):
        bigquery_api.add_response(
            "jobs.get",
            {
                "status": {
                    "state": "DONE",
                    "errorResult": {"reason": "invalidQuery"},
                    "errors": [
                        {"reason": "invalidQuery"},
                        {"reason": "other"},
                    ],
                }
            },
        )

        status = service.job_status("prj", "job")

        assert status.state == JobState.DONE
        assert status.err == BigQueryError("invalidQuery")
        assert len(status.errors) == 2


class TestTablesAndDatasets:
    """
    Table and dataset endpoint tests
    """

    def test_create_table(self, service, bigquery_api):
        bigquery_api.add_response("tables.insert", {})

        service.create_table(
            "prj",
            "ds",
            "tbl",
            schema=[FieldSchema(name="a", type=FieldType.STRING)],
        )

        body = bigquery_api.calls_to("tables.insert")[0]["body"]
        assert body == {
            "tableReference": {
                "projectId": "prj",
                "datasetId": "ds",
                "tableId": "tbl",
            },
            "schema": {"fields": [{"name": "a", "type": "STRING"}]},
        }

    def test_create_view(self, service, bigquery_api):
        bigquery_api.add_response("tables.insert", {})

        service.create_table(
            "prj", "ds", "v", view_query="SELECT 1", use_standard_sql=True
        )

        body = bigquery_api.calls_to("tables.insert")[0]["body"]
        assert body["view"] == {"query": "SELECT 1", "useLegacySql": False}

    def test_view_with_schema(self, service):
        with pytest.raises(ValueError):
            service.create_table(
                "prj",
                "ds",
                "v",
                view_query="SELECT 1",
                schema=[FieldSchema(name="a", type=FieldType.STRING)],
            )

    def test_list_tables(self, service, bigquery_api):
        bigquery_api.add_response(
            "tables.list",
            {
                "tables": [
                    {
                        "tableReference": {
                            "projectId": "prj",
                            "datasetId": "ds",
                            "tableId": "t1",
                        }
                    }
                ],
                "nextPageToken": "tok",
            },
        )

        tables, token = service.list_tables("prj", "ds", 0, "")

        assert tables == [("prj", "ds", "t1")]
        assert token == "tok"
        assert "maxResults" not in bigquery_api.calls_to("tables.list")[0]

    def test_list_datasets(self, service, bigquery_api):
        bigquery_api.add_response(
            "datasets.list",
            {
                "datasets": [
                    {"datasetReference": {"projectId": "p", "datasetId": "a"}}
                ]
            },
        )

        datasets, token = service.list_datasets(
            "p", 5, "tok", list_hidden=True, label_filter="labels.env:test"
        )

        assert datasets == [("p", "a")]
        assert token == ""
        assert bigquery_api.calls_to("datasets.list")[0] == {
            "projectId": "p",
            "all": True,
            "pageToken": "tok",
            "maxResults": 5,
            "filter": "labels.env:test",
        }

    def test_delete_dataset(self, service, bigquery_api):
        bigquery_api.add_response("datasets.delete", "")

        service.delete_dataset("p", "a", delete_contents=True)

        assert bigquery_api.calls_to("datasets.delete")[0][
            "deleteContents"
        ] is True
