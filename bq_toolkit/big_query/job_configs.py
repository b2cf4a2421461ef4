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
This module provides builders for the four kinds of BigQuery job and the
data sources and destinations they work with.

Each builder is configured through its attributes and started with `run()`,
which returns a Job. `to_api()` returns the Job resource the builder would
send.

Classes:
- Query: Runs a SQL query.
- Loader: Loads data from Cloud Storage or a local file into a table.
- Extractor: Exports a table to Cloud Storage.
- Copier: Copies one or more tables into another.
- FileConfig: Format options of data files.
- GCSReference: Files in Cloud Storage, as a load source or an extract
  destination.
- ReaderSource: A local binary file object used as a load source.
"""

from enum import StrEnum
from typing import Any, BinaryIO

from bq_toolkit.big_query.big_query_exceptions import (
    google_api_exception_shield,
)
from bq_toolkit.big_query.params import QueryParameter, parameter_mode
from bq_toolkit.big_query.schema import Schema, schema_to_api


class CreateDisposition(StrEnum):
    CREATE_IF_NEEDED = "CREATE_IF_NEEDED"
    CREATE_NEVER = "CREATE_NEVER"


class WriteDisposition(StrEnum):
    WRITE_APPEND = "WRITE_APPEND"
    WRITE_TRUNCATE = "WRITE_TRUNCATE"
    WRITE_EMPTY = "WRITE_EMPTY"


class QueryPriority(StrEnum):
    BATCH = "BATCH"
    INTERACTIVE = "INTERACTIVE"


class DataFormat(StrEnum):
    CSV = "CSV"
    JSON = "NEWLINE_DELIMITED_JSON"
    AVRO = "AVRO"
    DATASTORE_BACKUP = "DATASTORE_BACKUP"


class Encoding(StrEnum):
    UTF_8 = "UTF-8"
    ISO_8859_1 = "ISO-8859-1"


class Compression(StrEnum):
    NONE = "NONE"
    GZIP = "GZIP"


class FileConfig:
    """
    Format options shared by load sources. Options left as None are not
    sent and take the service defaults.
    """

    def __init__(self, source_format: DataFormat = DataFormat.CSV):
        self.source_format = source_format
        self.field_delimiter: str | None = None
        self.skip_leading_rows: int | None = None
        self.allow_jagged_rows: bool | None = None
        self.allow_quoted_newlines: bool | None = None
        self.ignore_unknown_values: bool | None = None
        self.max_bad_records: int | None = None
        self.encoding: Encoding | None = None
        # An empty quote disables quoting and must be sent explicitly.
        self.quote: str | None = None
        self.schema: Schema | None = None

    def populate_load_config(self, load: dict[str, Any]) -> None:
        load["sourceFormat"] = str(self.source_format)
        options = {
            "fieldDelimiter": self.field_delimiter,
            "skipLeadingRows": self.skip_leading_rows,
            "allowJaggedRows": self.allow_jagged_rows,
            "allowQuotedNewlines": self.allow_quoted_newlines,
            "ignoreUnknownValues": self.ignore_unknown_values,
            "maxBadRecords": self.max_bad_records,
            "encoding": None if self.encoding is None else str(self.encoding),
            "quote": self.quote,
        }
        load.update({k: v for k, v in options.items() if v is not None})
        if self.schema is not None:
            load["schema"] = schema_to_api(self.schema)


class GCSReference(FileConfig):
    """
    One or more Cloud Storage URIs, possibly with wildcards.
    """

    def __init__(self, *uris: str):
        super().__init__()
        if not uris:
            raise ValueError("at least one Cloud Storage URI is required")
        self.uris = list(uris)
        self.destination_format: DataFormat = DataFormat.CSV
        self.compression: Compression = Compression.NONE

    def populate_load_config(self, load: dict[str, Any]) -> None:
        load["sourceUris"] = self.uris
        super().populate_load_config(load)

    def populate_extract_config(self, extract: dict[str, Any]) -> None:
        extract["destinationUris"] = self.uris
        extract["destinationFormat"] = str(self.destination_format)
        extract["compression"] = str(self.compression)
        if self.field_delimiter is not None:
            extract["fieldDelimiter"] = self.field_delimiter

    def __repr__(self) -> str:
        return f"GCSReference({', '.join(self.uris)})"


class ReaderSource(FileConfig):
    """
    Data read from a binary file object and uploaded with the job.
    """

    def __init__(self, reader: BinaryIO):
        super().__init__()
        self.reader = reader


def _table_reference(table) -> dict[str, str]:
    return {
        "projectId": table.project_id,
        "datasetId": table.dataset_id,
        "tableId": table.table_id,
    }


class _JobBuilder:
    def __init__(self, service, project_id: str):
        self._service = service
        self.project_id = project_id
        self.job_id: str | None = None

    def _job(self, configuration: dict[str, Any]) -> dict[str, Any]:
        job = {"configuration": configuration}
        if self.job_id:
            job["jobReference"] = {
                "projectId": self.project_id,
                "jobId": self.job_id,
            }
        return job

    def to_api(self) -> dict[str, Any]:
        raise NotImplementedError

    def _media(self) -> BinaryIO | None:
        return None

    @google_api_exception_shield
    def run(self):
        return self._service.insert_job(
            self.project_id, self.to_api(), self._media()
        )


class Query(_JobBuilder):
    """
    A SQL query. Legacy SQL is used unless use_standard_sql is set or the
    query has parameters.
    """

    def __init__(self, service, project_id: str, sql: str):
        super().__init__(service, project_id)
        self.sql = sql
        self.default_project_id: str | None = None
        self.default_dataset_id: str | None = None
        self.destination = None
        self.create_disposition: CreateDisposition | None = None
        self.write_disposition: WriteDisposition | None = None
        self.disable_query_cache = False
        self.disable_flattened_results = False
        self.allow_large_results = False
        self.priority: QueryPriority | None = None
        self.max_billing_tier: int | None = None
        self.max_bytes_billed: int | None = None
        self.use_standard_sql = False
        self.parameters: list[QueryParameter] = []

    def to_api(self) -> dict[str, Any]:
        query = {"query": self.sql}
        if self.default_dataset_id:
            if not self.default_project_id:
                raise ValueError(
                    "default_project_id is required with default_dataset_id"
                )
            query["defaultDataset"] = {
                "projectId": self.default_project_id,
                "datasetId": self.default_dataset_id,
            }
        if self.destination is not None:
            query["destinationTable"] = _table_reference(self.destination)
        if self.create_disposition is not None:
            query["createDisposition"] = str(self.create_disposition)
        if self.write_disposition is not None:
            query["writeDisposition"] = str(self.write_disposition)
        if self.disable_query_cache:
            query["useQueryCache"] = False
        if self.disable_flattened_results:
            query["flattenResults"] = False
            # Unflattened results must be written to a large results table.
            query["allowLargeResults"] = True
        if self.allow_large_results:
            query["allowLargeResults"] = True
        if self.priority is not None:
            query["priority"] = str(self.priority)
        if self.max_billing_tier is not None:
            query["maximumBillingTier"] = self.max_billing_tier
        if self.max_bytes_billed is not None:
            query["maximumBytesBilled"] = str(self.max_bytes_billed)
        if self.use_standard_sql or self.parameters:
            query["useLegacySql"] = False
        if self.parameters:
            query["parameterMode"] = parameter_mode(self.parameters)
            query["queryParameters"] = [p.to_api() for p in self.parameters]
        return self._job({"query": query})

    def read(self, page_size: int | None = None):
        """
        Runs the query and returns an iterator over its results.
        """
        return self.run().read(page_size=page_size)


class Loader(_JobBuilder):
    def __init__(self, service, project_id: str, dst, src: FileConfig):
        super().__init__(service, project_id)
        self.dst = dst
        self.src = src
        self.create_disposition: CreateDisposition | None = None
        self.write_disposition: WriteDisposition | None = None

    def to_api(self) -> dict[str, Any]:
        load = {"destinationTable": _table_reference(self.dst)}
        if self.create_disposition is not None:
            load["createDisposition"] = str(self.create_disposition)
        if self.write_disposition is not None:
            load["writeDisposition"] = str(self.write_disposition)
        self.src.populate_load_config(load)
        return self._job({"load": load})

    def _media(self) -> BinaryIO | None:
        if isinstance(self.src, ReaderSource):
            return self.src.reader
        return None


class Extractor(_JobBuilder):
    def __init__(self, service, project_id: str, src, dst: GCSReference):
        super().__init__(service, project_id)
        self.src = src
        self.dst = dst
        self.disable_header = False

    def to_api(self) -> dict[str, Any]:
        extract = {"sourceTable": _table_reference(self.src)}
        self.dst.populate_extract_config(extract)
        if self.disable_header:
            extract["printHeader"] = False
        return self._job({"extract": extract})


class Copier(_JobBuilder):
    def __init__(self, service, project_id: str, dst, srcs: list):
        super().__init__(service, project_id)
        if not srcs:
            raise ValueError("at least one source table is required")
        self.dst = dst
        self.srcs = list(srcs)
        self.create_disposition: CreateDisposition | None = None
        self.write_disposition: WriteDisposition | None = None

    def to_api(self) -> dict[str, Any]:
        copy = {
            "destinationTable": _table_reference(self.dst),
            "sourceTables": [_table_reference(t) for t in self.srcs],
        }
        if self.create_disposition is not None:
            copy["createDisposition"] = str(self.create_disposition)
        if self.write_disposition is not None:
            copy["writeDisposition"] = str(self.write_disposition)
        return self._job({"copy": copy})
