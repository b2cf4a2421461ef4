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
This module provides lazy iterators over paginated BigQuery listings.

Classes:
- PagedIterator: Iterates over the items of successive pages, fetching a page
  only when the previous one is exhausted.
- RowIterator: Iterates over table data or query results.
- TableIterator: Iterates over the tables of a dataset.
- DatasetIterator: Iterates over the datasets of a project.
"""

from typing import Any, Callable, Generator, Iterator

from bq_toolkit.big_query.paging import PagingConf, ReadDataResult
from bq_toolkit.big_query.schema import Schema


class PagedIterator:
    """
    A single pass iterator. `fetch_page` receives a page token (empty for the
    first page) and returns the page's items with the next page token.
    """

    def __init__(self, fetch_page: Callable[[str], tuple[list, str]]):
        self._fetch_page = fetch_page
        self._items: Iterator | None = None

    @property
    def started(self) -> bool:
        return self._items is not None

    def _generate(self) -> Generator[Any, None, None]:
        token = ""
        while True:
            items, token = self._fetch_page(token)
            yield from items
            if not token:
                return

    def __iter__(self):
        return self

    def __next__(self):
        if self._items is None:
            self._items = self._generate()
        return next(self._items)


class RowIterator(PagedIterator):
    """
    Iterates over rows, each a list of values in schema order. The schema and
    the total number of rows are known once the first page has been fetched.
    """

    def __init__(
        self,
        read_page: Callable[[str], ReadDataResult],
        paging: PagingConf,
    ):
        super().__init__(self._read)
        self._read_page = read_page
        self._paging = paging
        self.schema: Schema | None = None
        self.total_rows = 0

    def _read(self, page_token: str) -> tuple[list, str]:
        result = self._read_page(page_token)
        self.schema = result.schema
        self.total_rows = result.total_rows
        return result.rows, result.page_token

    def _check_not_started(self) -> None:
        if self.started:
            raise RuntimeError("paging must be set before iteration starts")

    @property
    def page_size(self) -> int | None:
        return self._paging.records_per_request

    @page_size.setter
    def page_size(self, value: int | None) -> None:
        self._check_not_started()
        self._paging.records_per_request = value

    @property
    def start_index(self) -> int:
        return self._paging.start_index

    @start_index.setter
    def start_index(self, value: int) -> None:
        self._check_not_started()
        self._paging.start_index = value


class TableIterator(PagedIterator):
    """
    Iterates over the tables of a dataset as Table handles.
    """

    def __init__(
        self,
        list_page: Callable[[int, str], tuple[list, str]],
        page_size: int = 0,
    ):
        super().__init__(lambda token: list_page(self.page_size, token))
        self.page_size = page_size


class DatasetIterator(PagedIterator):
    """
    Iterates over the datasets of a project as Dataset handles.
    """

    def __init__(
        self,
        list_page: Callable[[int, str], tuple[list, str]],
        page_size: int = 0,
    ):
        super().__init__(lambda token: list_page(self.page_size, token))
        self.page_size = page_size
