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
Module to manage application configuration settings based on command-line
inputs. Utilizes `bq_toolkit.utils` for argument parsing.
"""

import datetime
from argparse import ArgumentParser, ArgumentTypeError

from bq_toolkit.big_query import QueryParameter, WriteDisposition
from bq_toolkit.utils import (
    default_dataset_name,
    parse_common_args,
    positive_int,
    str2bool,
)


def _timestamp(v: str) -> datetime.datetime:
    value = datetime.datetime.fromisoformat(v)
    if value.tzinfo is None:
        raise ValueError(f"TIMESTAMP needs a UTC offset, got {v}")
    return value.astimezone(datetime.timezone.utc)


_PARAMETER_TYPES = {
    "STRING": str,
    "INT64": int,
    "FLOAT64": float,
    "BOOL": str2bool,
    "DATE": datetime.date.fromisoformat,
    "DATETIME": datetime.datetime.fromisoformat,
    "TIMESTAMP": _timestamp,
}


def query_parameter(v: str) -> QueryParameter:
    """
    Parses a query parameter given as `name=TYPE:value`, for example
    `min_age=INT64:18`. The type defaults to STRING when omitted.
    """
    name, separator, typed_value = v.partition("=")
    if not separator or not name:
        raise ArgumentTypeError(f"Expected name=TYPE:value, got {v}.")

    type_name, separator, value = typed_value.partition(":")
    if not separator:
        type_name, value = "STRING", typed_value

    convert = _PARAMETER_TYPES.get(type_name.upper())
    if convert is None:
        raise ArgumentTypeError(f"Unsupported parameter type: {type_name}.")
    try:
        return QueryParameter(name, convert(value))
    except (ValueError, ArgumentTypeError) as e:
        raise ArgumentTypeError(
            f"Incorrect {type_name} value for parameter {name}: {value}."
        ) from e


def parse_service_args(parser: ArgumentParser) -> None:
    """
    Adds service-specific arguments to the argument parser.
    """
    query = parser.add_mutually_exclusive_group(required=True)
    query.add_argument(
        "-q",
        "--query",
        type=str,
        help="The standard SQL query to run.",
    )
    query.add_argument(
        "-qf",
        "--query-file",
        type=str,
        help="A file containing the standard SQL query to run.",
    )
    parser.add_argument(
        "-P",
        "--parameter",
        action="append",
        default=[],
        type=query_parameter,
        help=(
            "A named query parameter as name=TYPE:value. "
            "TIMESTAMP values need a UTC offset, for example "
            "2025-01-02T03:04:05+00:00. May be given several times."
        ),
    )
    parser.add_argument(
        "-dt",
        "--destination-table",
        type=str,
        help=(
            "The table of the job dataset to write the results to. "
            "If not specified, results are only printed."
        ),
    )
    parser.add_argument(
        "-wd",
        "--write-disposition",
        default=WriteDisposition.WRITE_EMPTY,
        type=WriteDisposition,
        choices=list(WriteDisposition),
        help=(
            "How results are written to an existing destination table "
            "(default: 'WRITE_EMPTY')."
        ),
    )
    parser.add_argument(
        "-m",
        "--max-rows",
        default=100,
        type=positive_int,
        help="The maximum number of result rows to print (default: 100).",
    )


def get_application_config() -> dict:
    """
    Combines common and service-specific arguments into a unified configuration.
    """
    parser = ArgumentParser(description="CLI for run query job")

    parse_service_args(parser)
    parse_common_args(parser)

    args = parser.parse_args()

    if args.query_file:
        with open(args.query_file, encoding="utf-8") as query_file:
            args.query = query_file.read()

    return {
        "project_name": args.project,
        "dataset_name": default_dataset_name(args),
        "dataset_location": args.dataset_location,
        "query": args.query,
        "parameters": args.parameter,
        "destination_table": args.destination_table,
        "write_disposition": args.write_disposition,
        "max_rows": args.max_rows,
    }
