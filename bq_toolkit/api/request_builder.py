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
Request plumbing shared by the discovery based API clients.
"""

import google_auth_httplib2
import google.auth as auth
from googleapiclient.http import HttpRequest

from bq_toolkit import __version__

USER_AGENT = f"BigQueryToolkit/{__version__}"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class CustomRequestBuilder(HttpRequest):
    """
    A custom request builder that extends `googleapiclient.http.HttpRequest`
    to include a custom `User-Agent` header for all outgoing HTTP requests.
    """

    def __init__(
        self,
        http,
        postproc,
        uri,
        method="GET",
        body=None,
        headers=None,
        methodId=None,
        resumable=None,
    ):
        if headers is None:
            headers = {}
        headers["User-Agent"] = USER_AGENT
        super().__init__(
            http, postproc, uri, method, body, headers, methodId, resumable
        )


def default_credentials():
    """
    Returns application default credentials scoped for cloud-platform.
    """
    credentials, _ = auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
    return credentials


def execute(request, credentials=None):
    """
    Executes a discovery request. With credentials, the request runs on its
    own authorized transport; httplib2 connections must not be shared
    between threads.
    """
    if credentials is None:
        return request.execute()
    http = google_auth_httplib2.AuthorizedHttp(credentials)
    return request.execute(http=http)
