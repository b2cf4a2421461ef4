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
Job builder tests
"""

import io

import pytest

from bq_toolkit.big_query import (
    Compression,
    CreateDisposition,
    DataFormat,
    Encoding,
    GCSReference,
    QueryParameter,
    QueryPriority,
    ReaderSource,
    WriteDisposition,
)
from bq_toolkit.big_query.schema import FieldSchema, FieldType

JOB_REFERENCE = {"jobReference": {"projectId": "test-prj", "jobId": "j"}}


def table_reference(table_id: str) -> dict:
    return {"projectId": "test-prj", "datasetId": "ds", "tableId": table_id}


class TestQuery:
    """
    Query builder tests
    """

    def test_minimal(self, client):
        assert client.query("SELECT 1").to_api() == {
            "configuration": {"query": {"query": "SELECT 1"}}
        }

    def test_all_options(self, client):
        query = client.query("SELECT a FROM t")
        query.job_id = "my-job"
        query.default_project_id = "p"
        query.default_dataset_id = "d"
        query.destination = client.dataset("ds").table("dst")
        query.create_disposition = CreateDisposition.CREATE_NEVER
        query.write_disposition = WriteDisposition.WRITE_TRUNCATE
        query.disable_query_cache = True
        query.priority = QueryPriority.BATCH
        query.max_billing_tier = 3
        query.max_bytes_billed = 1024
        query.use_standard_sql = True

        assert query.to_api() == {
            "jobReference": {"projectId": "test-prj", "jobId": "my-job"},
            "configuration": {
                "query": {
                    "query": "SELECT a FROM t",
                    "defaultDataset": {"projectId": "p", "datasetId": "d"},
                    "destinationTable": table_reference("dst"),
                    "createDisposition": "CREATE_NEVER",
                    "writeDisposition": "WRITE_TRUNCATE",
                    "useQueryCache": False,
                    "priority": "BATCH",
                    "maximumBillingTier": 3,
                    "maximumBytesBilled": "1024",
                    "useLegacySql": False,
                }
            },
        }

    def test_parameters_force_standard_sql(self, client):
        query = client.query("SELECT @a")
        query.parameters = [QueryParameter("a", 1)]

        config = query.to_api()["configuration"]["query"]

        assert config["useLegacySql"] is False
        assert config["parameterMode"] == "NAMED"
        assert config["queryParameters"][0]["name"] == "a"

    def test_unflattened_results_allow_large_results(self, client):
        query = client.query("SELECT 1")
        query.disable_flattened_results = True

        config = query.to_api()["configuration"]["query"]

        assert config["flattenResults"] is False
        assert config["allowLargeResults"] is True

    def test_default_dataset_requires_project(self, client):
        query = client.query("SELECT 1")
        query.default_dataset_id = "d"

        with pytest.raises(ValueError):
            query.to_api()

    def test_run(self, client, bigquery_api):
        bigquery_api.add_response("jobs.insert", JOB_REFERENCE)

        job = client.query("SELECT 1").run()

        assert job.job_id == "j"
        body = bigquery_api.calls_to("jobs.insert")[0]["body"]
        assert body["configuration"]["query"]["query"] == "SELECT 1"

    def test_read(self, client, bigquery_api):
        bigquery_api.add_response("jobs.insert", JOB_REFERENCE)
        bigquery_api.add_response(
            "jobs.get", {"configuration": {"query": {"query": "SELECT 1"}}}
        )
        bigquery_api.add_response(
            "jobs.getQueryResults",
            {
                "jobComplete": True,
                "totalRows": "1",
                "schema": {"fields": [{"name": "f0_", "type": "INTEGER"}]},
                "rows": [{"f": [{"v": "1"}]}],
            },
        )

        assert list(client.query("SELECT 1").read()) == [[1]]


class TestLoader:
    """
    Loader builder tests
    """

    def test_gcs_source(self, client):
        src = GCSReference("gs://b/a.csv", "gs://b/b.csv")
        src.skip_leading_rows = 1
        src.allow_jagged_rows = True
        src.encoding = Encoding.ISO_8859_1
        src.schema = [FieldSchema(name="a", type=FieldType.STRING)]
        loader = client.dataset("ds").table("dst").loader_from(src)
        loader.write_disposition = WriteDisposition.WRITE_APPEND

        assert loader.to_api()["configuration"]["load"] == {
            "destinationTable": table_reference("dst"),
            "writeDisposition": "WRITE_APPEND",
            "sourceUris": ["gs://b/a.csv", "gs://b/b.csv"],
            "sourceFormat": "CSV",
            "skipLeadingRows": 1,
            "allowJaggedRows": True,
            "encoding": "ISO-8859-1",
            "schema": {"fields": [{"name": "a", "type": "STRING"}]},
        }

    def test_empty_quote_is_sent(self, client):
        src = GCSReference("gs://b/a.csv")
        src.quote = ""

        load = client.dataset("ds").table("dst").loader_from(src).to_api()

        assert load["configuration"]["load"]["quote"] == ""

    def test_reader_source_is_uploaded(self, client, bigquery_api):
        bigquery_api.add_response("jobs.insert", JOB_REFERENCE)
        src = ReaderSource(io.BytesIO(b'{"a": 1}\n'))
        src.source_format = DataFormat.JSON

        client.dataset("ds").table("dst").loader_from(src).run()

        request = bigquery_api.calls_to("jobs.insert")[0]
        assert "media_body" in request
        load = request["body"]["configuration"]["load"]
        assert load["sourceFormat"] == "NEWLINE_DELIMITED_JSON"
        assert "sourceUris" not in load


class TestExtractor:
    """
    Extractor builder tests
    """

    def test_extract(self, client):
        dst = GCSReference("gs://b/out-*.csv.gz")
        dst.compression = Compression.GZIP
        dst.field_delimiter = "|"
        extractor = client.dataset("ds").table("src").extractor_to(dst)
        extractor.disable_header = True

        assert extractor.to_api()["configuration"]["extract"] == {
            "sourceTable": table_reference("src"),
            "destinationUris": ["gs://b/out-*.csv.gz"],
            "destinationFormat": "CSV",
            "compression": "GZIP",
            "fieldDelimiter": "|",
            "printHeader": False,
        }

    def test_gcs_reference_requires_uri(self):
        with pytest.raises(ValueError):
            GCSReference()


class TestCopier:
    """
    Copier builder tests
    """

    def test_copy(self, client):
        dataset = client.dataset("ds")
        copier = dataset.table("dst").copier_from(
            dataset.table("a"), dataset.table("b")
        )
        copier.create_disposition = CreateDisposition.CREATE_IF_NEEDED

        assert copier.to_api()["configuration"]["copy"] == {
            "destinationTable": table_reference("dst"),
            "sourceTables": [table_reference("a"), table_reference("b")],
            "createDisposition": "CREATE_IF_NEEDED",
        }

    def test_copy_requires_source(self, client):
        with pytest.raises(ValueError):
            client.dataset("ds").table("dst").copier_from()
