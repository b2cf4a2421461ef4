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
Streaming inserts into a table.
"""

import base64
import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from bq_toolkit.big_query.big_query_exceptions import (
    google_api_exception_shield,
)
from bq_toolkit.big_query.service import InsertionRow, InsertRowsConf
from bq_toolkit.utils import get_logger


def _json_safe(value: Any) -> Any:
    match value:
        case bytes():
            return base64.b64encode(value).decode("ascii")
        case datetime.datetime() | datetime.date() | datetime.time():
            return value.isoformat()
        case Decimal():
            return str(value)
        case dict():
            return {k: _json_safe(v) for k, v in value.items()}
        case list() | tuple():
            return [_json_safe(v) for v in value]
        case _:
            return value


def _to_insertion_row(item: Any) -> InsertionRow:
    if hasattr(item, "save") and callable(item.save):
        row, insert_id = item.save()
    elif isinstance(item, BaseModel):
        row, insert_id = item.model_dump(mode="json"), ""
    elif isinstance(item, dict):
        row, insert_id = item, ""
    else:
        raise TypeError(
            f"cannot upload a value of type {type(item).__name__}"
        )
    return InsertionRow(insert_id, _json_safe(row))


class Uploader:
    """
    Streams rows into a table. Rows rejected by BigQuery are reported with
    PutMultiError, one RowInsertionError per rejected row.
    """

    def __init__(self, table):
        self._table = table
        self.skip_invalid_rows = False
        self.ignore_unknown_values = False
        # Rows go to the table named by the table ID plus this suffix,
        # created from the table's schema if it does not exist.
        self.table_template_suffix = ""
        self._logger = get_logger()

    @google_api_exception_shield
    def put(self, src: Any) -> None:
        """
        Uploads a single item or an iterable of items. An item is a saver
        (anything with a `save()` returning the row and its insert ID),
        a dict or a pydantic model.
        """
        if isinstance(src, (dict, BaseModel)) or hasattr(src, "save"):
            items = [src]
        else:
            try:
                items = list(src)
            except TypeError as e:
                raise TypeError(
                    f"cannot upload a value of type {type(src).__name__}"
                ) from e

        rows = [_to_insertion_row(item) for item in items]
        if not rows:
            return

        self._logger.info(
            "Uploading %s row(s) to %s.", len(rows), self._table.full_name
        )
        self._table.service.insert_rows(
            self._table.project_id,
            self._table.dataset_id,
            self._table.table_id,
            rows,
            InsertRowsConf(
                template_suffix=self.table_template_suffix,
                ignore_unknown_values=self.ignore_unknown_values,
                skip_invalid_rows=self.skip_invalid_rows,
            ),
        )
