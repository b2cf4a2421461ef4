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
Query parameters and their conversion to the QueryParameter resource.
"""

import base64
import datetime
from typing import Any

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f%z"
_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


class QueryParameter:
    """
    A parameter of a standard SQL query. Parameters without a name are
    positional and are referenced as `?` in the query; named ones as
    `@name`.
    """

    def __init__(self, name: str, value: Any):
        self.name = name
        self.value = value

    def to_api(self) -> dict[str, Any]:
        parameter = {
            "parameterType": parameter_type(self.value),
            "parameterValue": parameter_value(self.value),
        }
        if self.name:
            parameter["name"] = self.name
        return parameter


def _scalar_type(value: Any) -> str:
    # bool is a subclass of int, datetime a subclass of date.
    match value:
        case bool():
            return "BOOL"
        case int():
            return "INT64"
        case float():
            return "FLOAT64"
        case str():
            return "STRING"
        case bytes():
            return "BYTES"
        case datetime.datetime() if value.tzinfo is not None:
            return "TIMESTAMP"
        case datetime.datetime():
            return "DATETIME"
        case datetime.date():
            return "DATE"
        case datetime.time():
            return "TIME"
    raise TypeError(
        f"{type(value).__name__} cannot be used as a query parameter"
    )


def parameter_type(value: Any) -> dict[str, Any]:
    if isinstance(value, (list, tuple)):
        if not value:
            raise TypeError("cannot infer the element type of an empty array")
        return {"type": "ARRAY", "arrayType": parameter_type(value[0])}
    return {"type": _scalar_type(value)}


def _scalar_value(value: Any) -> str:
    match _scalar_type(value):
        case "BOOL":
            return "true" if value else "false"
        case "BYTES":
            return base64.b64encode(value).decode("ascii")
        case "TIMESTAMP":
            utc = value.astimezone(datetime.timezone.utc)
            formatted = utc.strftime(_TIMESTAMP_FORMAT)
            return formatted[:-2] + ":" + formatted[-2:]
        case "DATETIME":
            return value.strftime(_DATETIME_FORMAT)
        case "DATE" | "TIME":
            return value.isoformat()
    return str(value)


def parameter_value(value: Any) -> dict[str, Any]:
    if isinstance(value, (list, tuple)):
        return {"arrayValues": [parameter_value(v) for v in value]}
    return {"value": _scalar_value(value)}


def parameter_mode(parameters: list[QueryParameter]) -> str:
    """
    Named and positional parameters cannot be mixed in a single query.
    """
    named = {bool(p.name) for p in parameters}
    if len(named) > 1:
        raise ValueError("cannot mix named and positional query parameters")
    return "NAMED" if named == {True} else "POSITIONAL"
