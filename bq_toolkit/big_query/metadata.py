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
This module defines the metadata models of tables and datasets and their
conversion from the Table and Dataset resources of the REST API.

Classes:
- TableType: The kinds of table BigQuery reports.
- TimePartitioning: Day partitioning settings of a table.
- TableMetadata: Metadata of a table, as returned by tables.get.
- TableMetadataToUpdate: Fields of a table that can be patched.
- DatasetMetadata: Metadata of a dataset, as returned by datasets.get.
"""

import datetime
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, Field

from bq_toolkit.big_query.schema import Schema, schema_from_api, schema_to_api


class TableType(StrEnum):
    TABLE = "TABLE"
    VIEW = "VIEW"
    MATERIALIZED_VIEW = "MATERIALIZED_VIEW"
    EXTERNAL = "EXTERNAL"


def unix_millis_to_datetime(millis: Any) -> datetime.datetime | None:
    """
    Converts milliseconds since the epoch, possibly sent as a string, to an
    aware UTC datetime. Zero and missing values mean "not set" and yield None
    rather than the start of the epoch.
    """
    if not millis or int(millis) == 0:
        return None
    return datetime.datetime.fromtimestamp(
        int(millis) / 1000, tz=datetime.timezone.utc
    )


def datetime_to_unix_millis(value: datetime.datetime) -> int:
    return int(value.timestamp() * 1000)


def _millis_to_timedelta(millis: Any) -> datetime.timedelta:
    return datetime.timedelta(milliseconds=int(millis or 0))


class TimePartitioning(BaseModel):
    """
    Day partitioning of a table. A zero expiration keeps partitions forever.
    """

    expiration: datetime.timedelta = datetime.timedelta(0)

    def to_api(self) -> dict[str, Any]:
        partitioning = {"type": "DAY"}
        if self.expiration:
            partitioning["expirationMs"] = str(
                int(self.expiration.total_seconds() * 1000)
            )
        return partitioning

    @classmethod
    def from_api(cls, partitioning: dict[str, Any]) -> "TimePartitioning":
        return cls(
            expiration=_millis_to_timedelta(partitioning.get("expirationMs"))
        )


class TableMetadata(BaseModel):
    description: str = ""
    name: str = ""
    type: TableType | str | None = Field(
        default=None, union_mode="left_to_right"
    )
    id: str = ""
    schema_: Optional[Schema] = Field(default=None, alias="schema")
    view: str = ""
    num_bytes: int = 0
    num_rows: int = 0
    creation_time: datetime.datetime | None = None
    last_modified_time: datetime.datetime | None = None
    expiration_time: datetime.datetime | None = None
    time_partitioning: TimePartitioning | None = None

    model_config = {"populate_by_name": True}

    @property
    def table_schema(self) -> Schema | None:
        return self.schema_

    @classmethod
    def from_api(cls, table: dict[str, Any]) -> "TableMetadata":
        partitioning = table.get("timePartitioning")
        return cls(
            description=table.get("description", ""),
            name=table.get("friendlyName", ""),
            type=table.get("type"),
            id=table.get("id", ""),
            schema_=schema_from_api(table.get("schema")),
            view=table.get("view", {}).get("query", ""),
            num_bytes=int(table.get("numBytes", 0)),
            num_rows=int(table.get("numRows", 0)),
            creation_time=unix_millis_to_datetime(table.get("creationTime")),
            last_modified_time=unix_millis_to_datetime(
                table.get("lastModifiedTime")
            ),
            expiration_time=unix_millis_to_datetime(
                table.get("expirationTime")
            ),
            time_partitioning=(
                TimePartitioning.from_api(partitioning)
                if partitioning is not None
                else None
            ),
        )


class TableMetadataToUpdate(BaseModel):
    """
    The fields of a table to patch. Fields left as None are not sent.
    """

    description: str | None = None
    name: str | None = None
    schema_: Optional[Schema] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}

    def to_api(self) -> dict[str, Any]:
        patch = {}
        if self.description is not None:
            patch["description"] = self.description
        if self.name is not None:
            patch["friendlyName"] = self.name
        if self.schema_ is not None:
            patch["schema"] = schema_to_api(self.schema_)
        return patch


class DatasetMetadata(BaseModel):
    creation_time: datetime.datetime | None = None
    last_modified_time: datetime.datetime | None = None
    default_table_expiration: datetime.timedelta = datetime.timedelta(0)
    description: str = ""
    name: str = ""
    id: str = ""
    location: str = ""
    labels: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, dataset: dict[str, Any]) -> "DatasetMetadata":
        return cls(
            creation_time=unix_millis_to_datetime(dataset.get("creationTime")),
            last_modified_time=unix_millis_to_datetime(
                dataset.get("lastModifiedTime")
            ),
            default_table_expiration=_millis_to_timedelta(
                dataset.get("defaultTableExpirationMs")
            ),
            description=dataset.get("description", ""),
            name=dataset.get("friendlyName", ""),
            id=dataset.get("id", ""),
            location=dataset.get("location", ""),
            labels=dataset.get("labels", {}),
        )
