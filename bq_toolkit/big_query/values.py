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
This module converts between the row representation of the BigQuery REST
API and Python values.

Rows read from the API are lists of cells, `{"f": [{"v": ...}, ...]}`, whose
scalar values are all encoded as strings. They are converted field by field
with the table schema: a row becomes a list of values, a RECORD becomes a
nested list, and a repeated field becomes a list of its elements.

Rows written to the API are produced by savers, objects with a `save()`
method returning the row as a dictionary and its insert ID.
"""

import base64
import datetime
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel

from bq_toolkit.big_query.schema import FieldSchema, FieldType, Schema
from bq_toolkit.big_query.big_query_exceptions import ValueConversionError

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def convert_rows(rows: list[dict], schema: Schema) -> list[list[Any]]:
    return [convert_row(row, schema) for row in rows]


def convert_row(row: dict, schema: Schema) -> list[Any]:
    cells = row.get("f", [])
    if len(cells) != len(schema):
        raise ValueConversionError(
            f"row has {len(cells)} cells but the schema has "
            f"{len(schema)} fields"
        )
    return [
        convert_value(cell.get("v"), field)
        for cell, field in zip(cells, schema)
    ]


def convert_value(value: Any, field: FieldSchema) -> Any:
    """
    Converts one cell value according to its field schema.
    """
    if value is None:
        return None
    if field.repeated:
        return [
            _convert_single(element.get("v"), field)
            for element in value
        ]
    return _convert_single(value, field)


def _convert_single(value: Any, field: FieldSchema) -> Any:
    if value is None:
        return None
    if field.type == FieldType.RECORD:
        return convert_row(value, field.fields)
    return convert_basic_value(value, field.type)


def convert_basic_value(value: str, field_type: FieldType) -> Any:
    """
    Converts a scalar cell, always transmitted as a string, to Python.
    """
    try:
        match field_type:
            case FieldType.STRING:
                return value
            case FieldType.BYTES:
                return base64.b64decode(value, validate=True)
            case FieldType.INTEGER:
                return int(value)
            case FieldType.FLOAT:
                return float(value)
            case FieldType.BOOLEAN:
                return _parse_bool(value)
            case FieldType.TIMESTAMP:
                return _parse_timestamp(value)
            case FieldType.DATE:
                return datetime.date.fromisoformat(value)
            case FieldType.TIME:
                return _parse_time(value)
            case FieldType.DATETIME:
                return _parse_datetime(value)
    except (ValueError, TypeError, InvalidOperation, OverflowError) as e:
        raise ValueConversionError(
            f"cannot convert {value!r} to {field_type}"
        ) from e
    raise ValueConversionError(f"unrecognized type: {field_type}")


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("1", "t", "true"):
        return True
    if lowered in ("0", "f", "false"):
        return False
    raise ValueError(f"invalid boolean: {value}")


def _parse_timestamp(value: str) -> datetime.datetime:
    # Seconds since the epoch, sometimes in scientific notation.
    seconds = Decimal(value)
    whole = int(seconds)
    micros = int(
        ((seconds - whole) * 1_000_000).to_integral_value(rounding=ROUND_DOWN)
    )
    return _EPOCH + datetime.timedelta(seconds=whole, microseconds=micros)


def _parse_time(value: str) -> datetime.time:
    clock, _, fraction = value.partition(".")
    hour, minute, second = (int(part) for part in clock.split(":"))
    micros = int(fraction[:6].ljust(6, "0")) if fraction else 0
    return datetime.time(hour, minute, second, micros)


def _parse_datetime(value: str) -> datetime.datetime:
    separator = "T" if "T" in value else " "
    day, _, clock = value.partition(separator)
    return datetime.datetime.combine(
        datetime.date.fromisoformat(day), _parse_time(clock)
    )


def value_map(values: list[Any], schema: Schema) -> dict[str, Any]:
    """
    Converts a row of values into a dictionary keyed by field name.
    Records become dictionaries, repeated records lists of dictionaries.
    """
    if len(values) != len(schema):
        raise ValueConversionError(
            f"have {len(values)} values but the schema has "
            f"{len(schema)} fields"
        )
    result = {}
    for value, field in zip(values, schema):
        if field.type != FieldType.RECORD or value is None:
            result[field.name] = value
        elif field.repeated:
            result[field.name] = [
                None if record is None else value_map(record, field.fields)
                for record in value
            ]
        else:
            result[field.name] = value_map(value, field.fields)
    return result


class ValuesSaver:
    """
    Saves a row given as a list of values in schema order.
    """

    def __init__(self, schema: Schema, insert_id: str, row: list[Any]):
        self.schema = schema
        self.insert_id = insert_id
        self.row = row

    def save(self) -> tuple[dict[str, Any], str]:
        return value_map(self.row, self.schema), self.insert_id


class StructSaver:
    """
    Saves an object's attributes as a row. Attributes are matched to schema
    fields by name, exactly or else ignoring case; attributes absent from the
    schema are ignored and unset ones are left out of the row.
    """

    def __init__(self, schema: Schema, insert_id: str, struct: Any):
        self.schema = schema
        self.insert_id = insert_id
        self.struct = struct

    def save(self) -> tuple[dict[str, Any], str]:
        return save_struct(self.struct, self.schema), self.insert_id


def _attributes(struct: Any) -> dict[str, Any]:
    if isinstance(struct, dict):
        return struct
    if isinstance(struct, BaseModel):
        return {
            name: getattr(struct, name)
            for name in type(struct).model_fields
        }
    return {
        name: value
        for name, value in vars(struct).items()
        if not name.startswith("_")
    }


def _lookup(attributes: dict[str, Any], name: str) -> Any:
    if name in attributes:
        return attributes[name]
    lowered = name.lower()
    for key, value in attributes.items():
        if key.lower() == lowered:
            return value
    return None


def save_struct(struct: Any, schema: Schema) -> dict[str, Any]:
    attributes = _attributes(struct)
    row = {}
    for field in schema:
        value = _lookup(attributes, field.name)
        if value is None:
            continue
        if field.repeated:
            if not value:
                continue
            if field.type == FieldType.RECORD:
                value = [
                    None if item is None else save_struct(item, field.fields)
                    for item in value
                ]
            else:
                value = list(value)
        elif field.type == FieldType.RECORD:
            value = save_struct(value, field.fields)
        row[field.name] = value
    return row
