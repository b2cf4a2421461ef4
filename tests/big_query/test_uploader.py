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
Uploader tests
"""

import datetime
from decimal import Decimal

import pytest
from pydantic import BaseModel

from bq_toolkit.big_query.big_query_exceptions import (
    BigQueryExecutionError,
    PutMultiError,
)
from bq_toolkit.big_query.schema import FieldSchema, FieldType
from bq_toolkit.big_query.values import ValuesSaver
from tests.mocks.api.request_mock import http_error

SCHEMA = [
    FieldSchema(name="name", type=FieldType.STRING),
    FieldSchema(name="count", type=FieldType.INTEGER),
]


class Item(BaseModel):
    name: str
    created: datetime.date


class TestUploader:
    """
    Uploader tests
    """

    @pytest.fixture()
    def table(self, client):
        return client.dataset("ds").table("tbl")

    def _rows(self, bigquery_api) -> list[dict]:
        return bigquery_api.calls_to("tabledata.insertAll")[0]["body"]["rows"]

    def test_put_savers(self, table, bigquery_api):
        bigquery_api.add_response("tabledata.insertAll", {})

        table.uploader().put(
            [
                ValuesSaver(SCHEMA, "id-1", ["a", 1]),
                ValuesSaver(SCHEMA, "id-2", ["b", 2]),
            ]
        )

        assert self._rows(bigquery_api) == [
            {"json": {"name": "a", "count": 1}, "insertId": "id-1"},
            {"json": {"name": "b", "count": 2}, "insertId": "id-2"},
        ]
        request = bigquery_api.calls_to("tabledata.insertAll")[0]
        assert request["projectId"] == "test-prj"
        assert request["datasetId"] == "ds"
        assert request["tableId"] == "tbl"

    def test_put_single_dict(self, table, bigquery_api):
        bigquery_api.add_response("tabledata.insertAll", {})

        table.uploader().put({"name": "a", "payload": b"hi"})

        assert self._rows(bigquery_api) == [
            {"json": {"name": "a", "payload": "aGk="}}
        ]

    def test_put_models(self, table, bigquery_api):
        bigquery_api.add_response("tabledata.insertAll", {})

        table.uploader().put(
            (Item(name="a", created=datetime.date(2025, 1, 2)),)
        )

        assert self._rows(bigquery_api) == [
            {"json": {"name": "a", "created": "2025-01-02"}}
        ]

    def test_values_are_json_safe(self, table, bigquery_api):
        bigquery_api.add_response("tabledata.insertAll", {})

        table.uploader().put(
            {
                "price": Decimal("1.10"),
                "at": datetime.datetime(2025, 1, 2, 3, 4, 5),
                "nested": {"times": [datetime.time(1, 2)]},
            }
        )

        assert self._rows(bigquery_api)[0]["json"] == {
            "price": "1.10",
            "at": "2025-01-02T03:04:05",
            "nested": {"times": ["01:02:00"]},
        }

    def test_options(self, table, bigquery_api):
        bigquery_api.add_response("tabledata.insertAll", {})
        uploader = table.uploader()
        uploader.skip_invalid_rows = True
        uploader.ignore_unknown_values = True
        uploader.table_template_suffix = "_2025"

        uploader.put({"name": "a"})

        body = bigquery_api.calls_to("tabledata.insertAll")[0]["body"]
        assert body["skipInvalidRows"] is True
        assert body["ignoreUnknownValues"] is True
        assert body["templateSuffix"] == "_2025"

    def test_empty_batch_makes_no_request(self, table, bigquery_api):
        table.uploader().put([])

        assert bigquery_api.calls == []

    def test_unsupported_item(self, table, bigquery_api):
        with pytest.raises(TypeError):
            table.uploader().put([1])
        with pytest.raises(TypeError):
            table.uploader().put(42)

        assert bigquery_api.calls == []

    def test_rejected_rows(self, table, bigquery_api):
        bigquery_api.add_response(
            "tabledata.insertAll",
            {"insertErrors": [{"index": 0, "errors": [{"reason": "x"}]}]},
        )

        with pytest.raises(PutMultiError) as e:
            table.uploader().put(ValuesSaver(SCHEMA, "id-1", ["a", 1]))

        assert [r.insert_id for r in e.value] == ["id-1"]

    def test_api_error(self, table, bigquery_api):
        bigquery_api.add_response(
            "tabledata.insertAll", http_error(400, "invalid")
        )

        with pytest.raises(BigQueryExecutionError):
            table.uploader().put({"name": "a"})
