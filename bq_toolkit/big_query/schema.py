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
This module describes BigQuery table schemas and converts them to and from
the TableSchema resource of the REST API.

Classes:
- FieldType: The column types understood by the toolkit.
- FieldSchema: A single, possibly nested, column description.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class FieldType(StrEnum):
    STRING = "STRING"
    BYTES = "BYTES"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"
    TIMESTAMP = "TIMESTAMP"
    RECORD = "RECORD"
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"


class FieldMode(StrEnum):
    NULLABLE = "NULLABLE"
    REQUIRED = "REQUIRED"
    REPEATED = "REPEATED"


class FieldSchema(BaseModel):
    """
    Describes one column of a table. For RECORD columns, `fields` holds the
    nested schema.
    """

    name: str = ""
    # Types without a Python conversion are kept as plain strings.
    type: FieldType | str = Field(union_mode="left_to_right")
    description: str = ""
    repeated: bool = False
    required: bool = False
    fields: list["FieldSchema"] = Field(default_factory=list)

    def to_api(self) -> dict[str, Any]:
        """
        Converts the field to a TableFieldSchema dictionary.
        """
        field = {"name": self.name, "type": str(self.type)}
        if self.description:
            field["description"] = self.description
        if self.repeated:
            field["mode"] = FieldMode.REPEATED.value
        elif self.required:
            field["mode"] = FieldMode.REQUIRED.value
        if self.fields:
            field["fields"] = [f.to_api() for f in self.fields]
        return field

    @classmethod
    def from_api(cls, field: dict[str, Any]) -> "FieldSchema":
        """
        Builds a field from a TableFieldSchema dictionary.
        """
        mode = field.get("mode", FieldMode.NULLABLE)
        return cls(
            name=field.get("name", ""),
            type=field["type"],
            description=field.get("description", ""),
            repeated=mode == FieldMode.REPEATED,
            required=mode == FieldMode.REQUIRED,
            fields=[cls.from_api(f) for f in field.get("fields", [])],
        )


Schema = list[FieldSchema]


def schema_to_api(schema: Schema) -> dict[str, Any]:
    """
    Converts a schema to the TableSchema resource.
    """
    return {"fields": [field.to_api() for field in schema]}


def schema_from_api(table_schema: dict[str, Any] | None) -> Schema | None:
    """
    Converts a TableSchema resource to a schema. A missing resource yields
    None so that callers can tell it apart from an empty schema.
    """
    if table_schema is None:
        return None
    return [
        FieldSchema.from_api(field)
        for field in table_schema.get("fields", [])
    ]
