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
This module provides the predefined schema of the table the service accounts
export job writes to.
"""

from enum import StrEnum

from bq_toolkit.big_query import FieldSchema, FieldType, Schema


class TableNames(StrEnum):
    SERVICE_ACCOUNTS = "service_accounts"


SERVICE_ACCOUNTS_SCHEMA: Schema = [
    FieldSchema(
        name="email",
        type=FieldType.STRING,
        required=True,
    ),
    FieldSchema(
        name="uniqueId",
        type=FieldType.STRING,
        required=True,
    ),
    FieldSchema(
        name="projectId",
        type=FieldType.STRING,
        required=True,
    ),
    FieldSchema(name="displayName", type=FieldType.STRING),
    FieldSchema(name="description", type=FieldType.STRING),
    FieldSchema(name="disabled", type=FieldType.BOOLEAN),
    FieldSchema(
        name="bindings",
        type=FieldType.RECORD,
        repeated=True,
        description="Roles granted on the service account itself",
        fields=[
            FieldSchema(name="role", type=FieldType.STRING, required=True),
            FieldSchema(
                name="members", type=FieldType.STRING, repeated=True
            ),
        ],
    ),
    FieldSchema(
        name="createdAt",
        type=FieldType.DATE,
        required=True,
        description="The date of the export",
    ),
]
