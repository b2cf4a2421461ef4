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
This module provides an adapter for interacting with the
Google Cloud IAM API.
It includes functionality for managing the service accounts of a project
and the IAM policies attached to them.

Classes:
- IamApiAdapter: An adapter class for interacting with the IAM API.
"""

from typing import Any, Generator

from googleapiclient import discovery
from googleapiclient.errors import HttpError

from bq_toolkit.api.request_builder import (
    CustomRequestBuilder,
    default_credentials,
    execute,
)
from bq_toolkit.entities import Policy, ServiceAccount
from bq_toolkit.utils import get_logger


class IamApiAdapter:
    """
    An adapter class for interacting with the Google Cloud IAM API.
    """

    def __init__(self, project_id: str, api_client=None, credentials=None):
        if api_client is None:
            credentials = credentials or default_credentials()
            api_client = discovery.build(
                "iam",
                "v1",
                credentials=credentials,
                requestBuilder=CustomRequestBuilder,
            )
        self._project_id = project_id
        self._api = api_client
        self._credentials = credentials
        self._logger = get_logger()

    def _accounts(self):
        return self._api.projects().serviceAccounts()

    def _account_name(self, email: str) -> str:
        return f"projects/{self._project_id}/serviceAccounts/{email}"

    def _execute(self, request, resource: str) -> dict[str, Any]:
        try:
            return execute(request, self._credentials)
        except HttpError as e:
            if e.status_code == 403:
                error_msg = (
                    f"Not enough permissions for {resource}"
                    " or it does not exist"
                )
                raise HttpError(
                    e.resp, error_msg.encode("utf-8"), uri=e.uri
                ) from e
            raise e

    def list_service_accounts(
        self, page_size: int = 100
    ) -> Generator[ServiceAccount, None, None]:
        """
        Yields every service account of the project, fetching pages as
        they are consumed.
        """
        name = f"projects/{self._project_id}"
        page_token = None
        while True:
            params = {"name": name, "pageSize": page_size}
            if page_token:
                params["pageToken"] = page_token
            response = self._execute(self._accounts().list(**params), name)
            for account in response.get("accounts", []):
                yield ServiceAccount.model_validate(account)

            page_token = response.get("nextPageToken")
            if not page_token:
                return

    def get_service_account(self, email: str) -> ServiceAccount | None:
        name = self._account_name(email)
        try:
            response = self._execute(self._accounts().get(name=name), name)
        except HttpError as e:
            if e.status_code == 404:
                self._logger.info("Service account %s not found.", email)
                return None
            raise e
        return ServiceAccount.model_validate(response)

    def create_service_account(
        self, account_id: str, display_name: str = "", description: str = ""
    ) -> ServiceAccount:
        name = f"projects/{self._project_id}"
        body = {"accountId": account_id, "serviceAccount": {}}
        if display_name:
            body["serviceAccount"]["displayName"] = display_name
        if description:
            body["serviceAccount"]["description"] = description
        response = self._execute(
            self._accounts().create(name=name, body=body), name
        )
        self._logger.info(
            "Created service account %s.", response.get("email")
        )
        return ServiceAccount.model_validate(response)

    def delete_service_account(self, email: str) -> None:
        name = self._account_name(email)
        self._execute(self._accounts().delete(name=name), name)
        self._logger.info("Deleted service account %s.", email)

    def get_iam_policy(self, email: str) -> Policy:
        resource = self._account_name(email)
        response = self._execute(
            self._accounts().getIamPolicy(resource=resource), resource
        )
        return Policy.model_validate(response)

    def set_iam_policy(self, email: str, policy: Policy) -> Policy:
        resource = self._account_name(email)
        response = self._execute(
            self._accounts().setIamPolicy(
                resource=resource, body={"policy": policy.to_api()}
            ),
            resource,
        )
        return Policy.model_validate(response)

    def list_keys(self, email: str) -> list[dict[str, Any]]:
        name = self._account_name(email)
        response = self._execute(
            self._accounts().keys().list(name=name), name
        )
        return response.get("keys", [])
