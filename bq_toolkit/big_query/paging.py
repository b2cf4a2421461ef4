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
Read configurations and paging helpers for table data and query results.
"""

from typing import Any

from bq_toolkit.big_query.schema import Schema


class PagingConf:
    """
    The first page is located by its start index, later pages by the page
    token returned with the previous one.
    """

    def __init__(
        self, records_per_request: int | None = None, start_index: int = 0
    ):
        self.records_per_request = records_per_request
        self.start_index = start_index

    def apply(self, params: dict[str, Any], page_token: str) -> None:
        if page_token:
            params["pageToken"] = page_token
        else:
            params["startIndex"] = str(self.start_index)
        if self.records_per_request is not None:
            params["maxResults"] = self.records_per_request


class ReadTableConf:
    def __init__(
        self,
        project_id: str,
        dataset_id: str,
        table_id: str,
        paging: PagingConf | None = None,
    ):
        self.project_id = project_id
        self.dataset_id = dataset_id
        self.table_id = table_id
        self.paging = paging or PagingConf()
        # Set when the first page of data is fetched.
        self.schema: Schema | None = None


class ReadQueryConf:
    def __init__(
        self,
        project_id: str,
        job_id: str,
        paging: PagingConf | None = None,
        location: str | None = None,
    ):
        self.project_id = project_id
        self.job_id = job_id
        self.paging = paging or PagingConf()
        self.location = location


class ReadDataResult:
    def __init__(
        self,
        page_token: str,
        rows: list[list[Any]],
        total_rows: int,
        schema: Schema | None,
    ):
        self.page_token = page_token
        self.rows = rows
        self.total_rows = total_rows
        self.schema = schema
