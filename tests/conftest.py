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
Module for configuring shared test fixtures.
"""

import os

import pytest
from google.api_core import retry as retries

from bq_toolkit.big_query import BigQueryClient, BigQueryService
from bq_toolkit.big_query.service import is_retryable
from tests.mocks.api.bigquery_api_mock import BigQueryApiMock


@pytest.fixture(scope="class")
def basic_config():
    """
    Provides a basic configuration dictionary for the test environment.
    """
    return {
        "project_name": os.environ.get("PROJECT", "test-prj"),
        "dataset_location": os.environ.get("DATASET_LOCATION", "US"),
        "dataset_name": os.environ.get("DATASET_NAME", "bq_toolkit_test"),
    }


@pytest.fixture()
def fast_retry() -> retries.Retry:
    """
    The default retry policy with delays short enough for tests.
    """
    return retries.Retry(
        predicate=is_retryable, initial=0.01, maximum=0.02, multiplier=2.0
    )


@pytest.fixture()
def bigquery_api() -> BigQueryApiMock:
    return BigQueryApiMock()


@pytest.fixture()
def service(bigquery_api, fast_retry) -> BigQueryService:
    return BigQueryService(api_client=bigquery_api, retry=fast_retry)


@pytest.fixture()
def client(service) -> BigQueryClient:
    return BigQueryClient("test-prj", service=service)
