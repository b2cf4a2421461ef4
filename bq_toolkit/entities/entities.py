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
This module defines the IAM entities read and written by the toolkit. The
models validate the camelCase resources returned by the IAM API and dump
them back in the same shape.

Classes:
- ServiceAccount: A service account of a project.
- Binding: A role granted to a list of members.
- Policy: The IAM policy attached to a resource.
- MemberType: The kinds of principal a binding can name.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from bq_toolkit.exceptions import FormatException, IncorrectTypeException


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ServiceAccount(_ApiModel):
    """
    Represents a service account as returned by the IAM API.
    """

    name: str
    project_id: str
    unique_id: str
    email: str
    display_name: str = ""
    description: str = ""
    oauth2_client_id: str = ""
    disabled: bool = False

    @property
    def account_id(self) -> str:
        """
        The part of the email before the @, which identifies the account
        within its project.
        """
        account_id, separator, domain = self.email.partition("@")
        if not separator or not account_id or not domain:
            raise FormatException(
                f"Incorrect service account email: {self.email}"
            )
        return account_id


class MemberType(StrEnum):
    USER = "user"
    SERVICE_ACCOUNT = "serviceAccount"
    GROUP = "group"
    DOMAIN = "domain"
    PRINCIPAL = "principal"
    PRINCIPAL_SET = "principalSet"
    DELETED = "deleted"
    ALL_USERS = "allUsers"
    ALL_AUTHENTICATED_USERS = "allAuthenticatedUsers"


def member_type(member: str) -> MemberType:
    """
    Returns the kind of principal named by a binding member such as
    "user:alice@example.com" or "allUsers".
    """
    prefix = member.split(":", 1)[0]
    try:
        return MemberType(prefix)
    except ValueError as e:
        raise IncorrectTypeException(
            f"Unknown type of IAM member: {member}"
        ) from e


class Binding(_ApiModel):
    role: str
    members: list[str] = []
    condition: dict | None = None


class Policy(_ApiModel):
    """
    An IAM policy. The etag must be sent back unchanged when the policy is
    set, so that concurrent modifications are detected.
    """

    version: int = 1
    etag: str | None = None
    bindings: list[Binding] = []

    def members_of(self, role: str) -> list[str]:
        return [
            member
            for binding in self.bindings
            if binding.role == role
            for member in binding.members
        ]

    def add_member(self, role: str, member: str) -> None:
        for binding in self.bindings:
            if binding.role == role and binding.condition is None:
                if member not in binding.members:
                    binding.members.append(member)
                return
        self.bindings.append(Binding(role=role, members=[member]))
