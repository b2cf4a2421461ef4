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
This module defines the TransferController class, which exports the service
accounts of a project and the IAM policies attached to them to BigQuery. It
utilizes the IamApiAdapter and the BigQueryClient to fetch and store data,
respectively.

Classes:
- TransferController: A controller class for managing the transfer of
  service accounts from IAM to BigQuery.
"""

from datetime import date

from bq_toolkit.api import IamApiAdapter
from bq_toolkit.big_query import BigQueryClient, StructSaver
from bq_toolkit.entities import Policy, ServiceAccount
from bq_toolkit.utils import get_logger
from services.jobs.export_service_accounts.schema_provider import (
    SERVICE_ACCOUNTS_SCHEMA,
    TableNames,
)


class TransferController:
    """
    A controller class for managing the transfer of service accounts and
    their IAM policies to a BigQuery table.
    """

    def __init__(
        self,
        app_config: dict,
        iam_client: IamApiAdapter | None = None,
        big_query_client: BigQueryClient | None = None,
    ) -> None:
        """
        Initializes the TransferController with the specified project.
        """
        self.project = app_config["project_name"]
        self.source_project = app_config.get("source_project", self.project)
        self.dataset_name = app_config["dataset_name"]
        self.dataset_location = app_config["dataset_location"]
        self.batch_size = app_config.get("batch_size", 500)
        self._iam_client = iam_client or IamApiAdapter(self.source_project)
        self._big_query_client = big_query_client or BigQueryClient(
            self.project
        )
        self._logger = get_logger()

    def start_transfer(self) -> int:
        """
        Exports every service account of the source project. Returns the
        number of rows written.
        """
        table = self._setup_table()
        uploader = table.uploader()
        created_at = date.today()

        batch = []
        written = 0
        for account in self._iam_client.list_service_accounts():
            policy = self._iam_client.get_iam_policy(account.email)
            batch.append(self._to_saver(account, policy, created_at))
            if len(batch) >= self.batch_size:
                uploader.put(batch)
                written += len(batch)
                batch = []
        if batch:
            uploader.put(batch)
            written += len(batch)

        self._logger.info(
            "Exported %d service account(s) of %s to %s.",
            written,
            self.source_project,
            table.full_name,
        )
        return written

    def _setup_table(self):
        """
        Ensures that the dataset and the service accounts table exist,
        creating them if needed.
        """
        dataset = self._big_query_client.dataset(self.dataset_name)
        if not dataset.exists():
            self._logger.info(
                "Creating dataset %s in %s.",
                self.dataset_name,
                self.dataset_location,
            )
            dataset.create(self.dataset_location)

        table = dataset.table(TableNames.SERVICE_ACCOUNTS)
        if not table.exists():
            self._logger.info("Creating table %s.", table.full_name)
            table.create(schema=SERVICE_ACCOUNTS_SCHEMA)
        return table

    @staticmethod
    def _to_saver(
        account: ServiceAccount, policy: Policy, created_at: date
    ) -> StructSaver:
        row = {
            "email": account.email,
            "uniqueId": account.unique_id,
            "projectId": account.project_id,
            "displayName": account.display_name or None,
            "description": account.description or None,
            "disabled": account.disabled,
            "bindings": [
                {"role": binding.role, "members": binding.members}
                for binding in policy.bindings
            ],
            "createdAt": created_at,
        }
        # Re-running the export on the same day must not duplicate rows.
        insert_id = f"{account.unique_id}-{created_at.isoformat()}"
        return StructSaver(SERVICE_ACCOUNTS_SCHEMA, insert_id, row)
