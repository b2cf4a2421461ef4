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
This package provides a client for Google BigQuery built on the v2 REST API.
It covers datasets, tables, streaming inserts, table reads and the four kinds
of job, converting between BigQuery's wire formats and Python values.
"""

from bq_toolkit.big_query.client import BigQueryClient, Dataset, Table
from bq_toolkit.big_query.job_configs import (
    Compression,
    Copier,
    CreateDisposition,
    DataFormat,
    Encoding,
    Extractor,
    FileConfig,
    GCSReference,
    Loader,
    Query,
    QueryPriority,
    ReaderSource,
    WriteDisposition,
)
from bq_toolkit.big_query.jobs import Job, JobState, JobStatus, JobType
from bq_toolkit.big_query.metadata import (
    DatasetMetadata,
    TableMetadata,
    TableMetadataToUpdate,
    TableType,
    TimePartitioning,
)
from bq_toolkit.big_query.params import QueryParameter
from bq_toolkit.big_query.schema import FieldSchema, FieldType, Schema
from bq_toolkit.big_query.service import BigQueryService
from bq_toolkit.big_query.uploader import Uploader
from bq_toolkit.big_query.values import StructSaver, ValuesSaver
