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

from argparse import ArgumentParser

from bq_toolkit.utils import (
    default_dataset_name,
    parse_common_args,
    positive_int,
)


def parse_service_args(parser: ArgumentParser) -> None:
    """
    Adds service-specific arguments to the argument parser.
    """
    parser.add_argument(
        "-sp",
        "--source-project",
        type=str,
        help=(
            "The project whose service accounts are exported "
            "(default: the job project)."
        ),
    )
    parser.add_argument(
        "-b",
        "--batch-size",
        default=500,
        type=positive_int,
        help="The number of rows streamed per request (default: 500).",
    )


def get_application_config() -> dict:
    """
    Combines common and service-specific arguments into a unified configuration.
    """
    parser = ArgumentParser(description="CLI for export service accounts job")

    parse_service_args(parser)
    parse_common_args(parser)

    args = parser.parse_args()

    return {
        "project_name": args.project,
        "source_project": args.source_project or args.project,
        "dataset_name": default_dataset_name(args),
        "dataset_location": args.dataset_location,
        "batch_size": args.batch_size,
    }
