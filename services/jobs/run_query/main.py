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
This script runs a standard SQL query in BigQuery and prints the result rows.

Functions:
- main: Runs the query described by the application configuration.
"""

from query_controller import QueryController
from config import get_application_config


def main(app_config: dict):
    """
    Runs the query and prints its results.
    """

    controller = QueryController(app_config)
    controller.run()


if __name__ == "__main__":
    config = get_application_config()
    main(config)
