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
This module provides the user facing handles on BigQuery resources.

Classes:
- BigQueryClient: Entry point bound to a project; creates the other handles.
- Dataset: A handle on a dataset.
- Table: A handle on a table or a view.

Handles are cheap references: creating one makes no API call. Errors raised
by the API are reported as BigQueryExecutionError.
"""

import datetime

from googleapiclient.errors import HttpError

from bq_toolkit.big_query.big_query_exceptions import (
    google_api_exception_shield,
)
from bq_toolkit.big_query.iterators import (
    DatasetIterator,
    RowIterator,
    TableIterator,
)
from bq_toolkit.big_query.job_configs import (
    Copier,
    Extractor,
    FileConfig,
    GCSReference,
    Loader,
    Query,
)
from bq_toolkit.big_query.jobs import Job
from bq_toolkit.big_query.metadata import (
    DatasetMetadata,
    TableMetadata,
    TableMetadataToUpdate,
    TimePartitioning,
)
from bq_toolkit.big_query.paging import PagingConf, ReadTableConf
from bq_toolkit.big_query.schema import Schema
from bq_toolkit.big_query.service import BigQueryService
from bq_toolkit.big_query.uploader import Uploader


class BigQueryClient:
    """
    A client bound to the project whose quota and billing jobs use.
    """

    def __init__(
        self, project_id: str, service: BigQueryService | None = None
    ):
        self.project_id = project_id
        self.service = service or BigQueryService()

    def dataset(self, dataset_id: str) -> "Dataset":
        return Dataset(self, self.project_id, dataset_id)

    def dataset_in_project(
        self, project_id: str, dataset_id: str
    ) -> "Dataset":
        return Dataset(self, project_id, dataset_id)

    def datasets(
        self,
        project_id: str | None = None,
        list_hidden: bool = False,
        label_filter: str = "",
    ) -> DatasetIterator:
        """
        Returns an iterator over the datasets of a project, the client's
        project by default.
        """
        project_id = project_id or self.project_id

        @google_api_exception_shield
        def list_page(page_size: int, page_token: str):
            datasets, next_token = self.service.list_datasets(
                project_id, page_size, page_token, list_hidden, label_filter
            )
            return [
                Dataset(self, project, dataset)
                for project, dataset in datasets
            ], next_token

        return DatasetIterator(list_page)

    def query(self, sql: str) -> Query:
        return Query(self.service, self.project_id, sql)

    def job_from_id(self, job_id: str, location: str | None = None) -> Job:
        """
        Returns a handle on an existing job of the client's project. Jobs
        outside the US and EU multi-regions need their location.
        """
        return Job(self.service, self.project_id, job_id, location)


class Dataset:
    def __init__(
        self, client: BigQueryClient, project_id: str, dataset_id: str
    ):
        self._client = client
        self.project_id = project_id
        self.dataset_id = dataset_id

    @property
    def service(self) -> BigQueryService:
        return self._client.service

    @google_api_exception_shield
    def create(self, location: str = "") -> None:
        self.service.insert_dataset(self.project_id, self.dataset_id, location)

    @google_api_exception_shield
    def delete(self, delete_contents: bool = False) -> None:
        self.service.delete_dataset(
            self.project_id, self.dataset_id, delete_contents
        )

    @google_api_exception_shield
    def exists(self) -> bool:
        try:
            self.service.get_dataset_metadata(self.project_id, self.dataset_id)
        except HttpError as e:
            if e.status_code == 404:
                return False
            raise e
        return True

    @google_api_exception_shield
    def metadata(self) -> DatasetMetadata:
        return self.service.get_dataset_metadata(
            self.project_id, self.dataset_id
        )

    def table(self, table_id: str) -> "Table":
        return Table(self._client, self.project_id, self.dataset_id, table_id)

    def tables(self) -> TableIterator:
        @google_api_exception_shield
        def list_page(page_size: int, page_token: str):
            tables, next_token = self.service.list_tables(
                self.project_id, self.dataset_id, page_size, page_token
            )
            return [
                Table(self._client, project, dataset, table)
                for project, dataset, table in tables
            ], next_token

        return TableIterator(list_page)

    def __repr__(self) -> str:
        return f"Dataset({self.project_id}:{self.dataset_id})"


class Table:
    def __init__(
        self,
        client: BigQueryClient,
        project_id: str,
        dataset_id: str,
        table_id: str,
    ):
        self._client = client
        self.project_id = project_id
        self.dataset_id = dataset_id
        self.table_id = table_id

    @property
    def service(self) -> BigQueryService:
        return self._client.service

    @property
    def full_name(self) -> str:
        return f"{self.project_id}:{self.dataset_id}.{self.table_id}"

    @google_api_exception_shield
    def create(
        self,
        schema: Schema | None = None,
        view_query: str = "",
        use_standard_sql: bool = False,
        expiration: datetime.datetime | None = None,
        time_partitioning: TimePartitioning | None = None,
    ) -> None:
        """
        Creates the table, or a view when a view query is given.
        """
        self.service.create_table(
            self.project_id,
            self.dataset_id,
            self.table_id,
            expiration=expiration,
            view_query=view_query,
            schema=schema,
            use_standard_sql=use_standard_sql,
            time_partitioning=time_partitioning,
        )

    @google_api_exception_shield
    def delete(self) -> None:
        self.service.delete_table(
            self.project_id, self.dataset_id, self.table_id
        )

    @google_api_exception_shield
    def exists(self) -> bool:
        try:
            self.service.get_table_metadata(
                self.project_id, self.dataset_id, self.table_id
            )
        except HttpError as e:
            if e.status_code == 404:
                return False
            raise e
        return True

    @google_api_exception_shield
    def metadata(self) -> TableMetadata:
        return self.service.get_table_metadata(
            self.project_id, self.dataset_id, self.table_id
        )

    @google_api_exception_shield
    def update(self, conf: TableMetadataToUpdate) -> TableMetadata:
        """
        Updates the fields set in `conf` and returns the new metadata.
        """
        return self.service.patch_table(
            self.project_id, self.dataset_id, self.table_id, conf
        )

    def read(
        self, page_size: int | None = None, start_index: int = 0
    ) -> RowIterator:
        conf = ReadTableConf(
            self.project_id,
            self.dataset_id,
            self.table_id,
            PagingConf(page_size, start_index),
        )
        read_page = google_api_exception_shield(
            lambda token: self.service.read_tabledata(conf, token)
        )
        return RowIterator(read_page, conf.paging)

    def uploader(self) -> Uploader:
        return Uploader(self)

    def copier_from(self, *srcs: "Table") -> Copier:
        return Copier(
            self.service, self._client.project_id, self, list(srcs)
        )

    def extractor_to(self, dst: GCSReference) -> Extractor:
        return Extractor(self.service, self._client.project_id, self, dst)

    def loader_from(self, src: FileConfig) -> Loader:
        return Loader(self.service, self._client.project_id, self, src)

    def __repr__(self) -> str:
        return f"Table({self.full_name})"
