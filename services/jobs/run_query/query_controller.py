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
This module defines the QueryController class, which runs a standard SQL
query in BigQuery, waits for it to finish and prints its results.

Classes:
- QueryController: A controller class for running a query job and reading
  its results.
"""

import json
from typing import Any

from bq_toolkit.big_query import BigQueryClient
from bq_toolkit.big_query.values import value_map
from bq_toolkit.utils import get_logger


class QueryController:
    """
    A controller class for running a query and printing its result rows as
    JSON lines. Results can also be written to a table of the job dataset.
    """

    def __init__(
        self, app_config: dict, big_query_client: BigQueryClient | None = None
    ) -> None:
        """
        Initializes the QueryController with the specified project.
        """
        self.project = app_config["project_name"]
        self.dataset_name = app_config["dataset_name"]
        self.dataset_location = app_config["dataset_location"]
        self.query = app_config["query"]
        self.parameters = app_config.get("parameters", [])
        self.destination_table = app_config.get("destination_table")
        self.write_disposition = app_config.get("write_disposition")
        self.max_rows = app_config.get("max_rows", 100)
        self._big_query_client = big_query_client or BigQueryClient(
            self.project
        )
        self._logger = get_logger()

    def run(self) -> list[dict[str, Any]]:
        """
        Runs the query and returns the printed rows, keyed by column name.
        """
        query = self._big_query_client.query(self.query)
        query.use_standard_sql = True
        query.parameters = self.parameters

        if self.destination_table:
            dataset = self._ensure_dataset()
            query.destination = dataset.table(self.destination_table)
            query.write_disposition = self.write_disposition

        job = query.run()
        status = job.wait()
        status.raise_for_error(job.job_id)
        if status.errors:
            self._logger.warning(
                "Job %s finished with %d non-fatal error(s).",
                job.job_id,
                len(status.errors),
            )

        rows = self._read_rows(job)
        self._logger.info(
            "Query job %s returned %d row(s).", job.job_id, len(rows)
        )
        return rows

    def _ensure_dataset(self):
        dataset = self._big_query_client.dataset(self.dataset_name)
        if not dataset.exists():
            self._logger.info(
                "Creating dataset %s in %s.",
                self.dataset_name,
                self.dataset_location,
            )
            dataset.create(self.dataset_location)
        return dataset

    def _read_rows(self, job) -> list[dict[str, Any]]:
        iterator = job.read()
        rows = []
        for values in iterator:
            if len(rows) >= self.max_rows:
                self._logger.info(
                    "Printed the first %d of %d row(s).",
                    self.max_rows,
                    iterator.total_rows,
                )
                break
            row = value_map(values, iterator.schema)
            print(json.dumps(row, default=str))
            rows.append(row)
        return rows
