"""Provider that maps model entities onto a SCIM service client.

The client is any object with these methods, taking and returning SCIM
JSON data as Python dictionaries:

* ``list_users(filter)`` and ``list_groups(filter)`` return a list response
  such as ``{"totalResults": 1, "Resources": [...]}``.
* ``create_user``, ``create_or_get_user``, ``put_user``, ``create_group`` and
  ``create_or_get_group`` take a request object and return the created
  resource, of which ``"id"`` is used.
* ``get_user(user_id)`` and ``get_user_by_user_name(user_name)`` return a
  user resource.
* ``delete_user(user_id)``, ``delete_group(group_id)`` and
  ``patch_group(request)`` return nothing of use.

Any exception a client method raises is reported as :class:`SCIMError`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any

from idpscim.model import (
    Group,
    GroupMembers,
    GroupsMembersResult,
    GroupsResult,
    Member,
    Name,
    User,
    UsersResult,
)

logger = logging.getLogger(__name__)

PATCH_OP_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:PatchOp"


class SCIMError(Exception):
    """Raised when the SCIM service fails or the provider is misused."""


@dataclass
class ScimName:
    """Name of a SCIM user."""

    family_name: str = ""
    given_name: str = ""


@dataclass
class ScimEmail:
    """E-mail address of a SCIM user."""

    value: str = ""
    type: str = ""
    primary: bool = False


@dataclass
class CreateGroupRequest:
    """Request to create a SCIM group."""

    display_name: str = ""
    external_id: str = ""


@dataclass
class CreateUserRequest:
    """Request to create a SCIM user."""

    user_name: str = ""
    display_name: str = ""
    external_id: str = ""
    name: ScimName = field(default_factory=ScimName)
    emails: list[ScimEmail] = field(default_factory=list)
    active: bool = False
    id: str = ""


@dataclass
class PutUserRequest:
    """Request to replace a SCIM user."""

    id: str = ""
    user_name: str = ""
    display_name: str = ""
    external_id: str = ""
    name: ScimName = field(default_factory=ScimName)
    emails: list[ScimEmail] = field(default_factory=list)
    active: bool = False


@dataclass
class PatchOperation:
    """One operation of a SCIM PATCH request."""

    op: str
    path: str = ""
    value: Any = None


@dataclass
class PatchGroupRequest:
    """Request to patch a SCIM group."""

    group_id: str
    display_name: str
    operations: list[PatchOperation] = field(default_factory=list)
    schemas: list[str] = field(default_factory=lambda: [PATCH_OP_SCHEMA])


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _resources(response: dict[str, Any] | None) -> list[dict[str, Any]]:
    return (response or {}).get("Resources") or []


def _first_email(resource: dict[str, Any]) -> str:
    emails = resource.get("emails") or []
    if not emails:
        raise SCIMError(f"scim: user {resource.get('id', '')} has no emails")
    return emails[0].get("value", "")


def _groups_result(groups: list[Group]) -> GroupsResult:
    result = GroupsResult(items=len(groups), resources=groups)
    result.set_hash_code()
    return result


def _users_result(users: list[User]) -> UsersResult:
    result = UsersResult(items=len(users), resources=users)
    result.set_hash_code()
    return result


def _groups_members_result(entries: list[GroupMembers]) -> GroupsMembersResult:
    result = GroupsMembersResult(items=len(entries), resources=entries)
    result.set_hash_code()
    return result


class Provider:
    """Reads and writes users, groups and memberships through a SCIM client."""

    def __init__(self, scim: Any) -> None:
        if scim is None:
            raise SCIMError("scim: Provider is nil")
        self.scim = scim

    def get_groups(self) -> GroupsResult:
        """Return all groups known to the SCIM service."""
        try:
            response = self.scim.list_groups("")
        except Exception as err:
            raise SCIMError(f"scim: error listing groups: {err}") from err

        groups = []
        for resource in _resources(response):
            group = Group(
                scimid=resource.get("id", ""),
                name=resource.get("displayName", ""),
                ipid=resource.get("externalId", ""),
            )
            group.set_hash_code()
            groups.append(group)
        return _groups_result(groups)

    def create_groups(self, groups_result: GroupsResult) -> GroupsResult:
        """Create the groups, filling in their SCIM ids in place."""
        groups = []
        for group in groups_result.resources:
            request = CreateGroupRequest(display_name=group.name, external_id=group.ipid)
            logger.debug(
                "creating group (details): group=%s idpid=%s email=%s",
                group.name, group.ipid, group.email,
            )
            logger.warning("creating group: group=%s", group.name)
            try:
                response = self.scim.create_or_get_group(request)
            except Exception as err:
                raise SCIMError(f"scim: error creating group: {err}") from err

            group.scimid = (response or {}).get("id", "")
            group.set_hash_code()
            groups.append(group)
        return _groups_result(groups)

    def update_groups(self, groups_result: GroupsResult) -> GroupsResult:
        """Replace the external id of each group with its identity-provider id."""
        groups = []
        for group in groups_result.resources:
            request = PatchGroupRequest(
                group_id=group.scimid,
                display_name=group.name,
                operations=[
                    PatchOperation(
                        op="replace",
                        value={"id": group.scimid, "externalId": group.ipid},
                    )
                ],
            )
            logger.debug(
                "updating group (details): group=%s idpid=%s scimid=%s email=%s",
                group.name, group.ipid, group.scimid, group.email,
            )
            logger.warning("updating group: group=%s email=%s", group.name, group.email)
            try:
                self.scim.patch_group(request)
            except Exception as err:
                raise SCIMError(f"scim: error updating groups: {err}") from err

            updated = Group(
                scimid=group.scimid, name=group.name, ipid=group.ipid, email=group.email
            )
            updated.set_hash_code()
            groups.append(updated)
        return _groups_result(groups)

    def delete_groups(self, groups_result: GroupsResult) -> None:
        """Delete the groups by their SCIM ids."""
        for group in groups_result.resources:
            logger.debug(
                "deleting group (details): group=%s idpid=%s scimid=%s email=%s",
                group.name, group.ipid, group.scimid, group.email,
            )
            try:
                self.scim.delete_group(group.scimid)
            except Exception as err:
                raise SCIMError(
                    f"scim: error deleting group: {group.scimid}, {err}"
                ) from err

    def get_users(self) -> UsersResult:
        """Return all users known to the SCIM service."""
        try:
            response = self.scim.list_users("")
        except Exception as err:
            raise SCIMError(f"scim: error listing users: {err}") from err

        users = []
        for resource in _resources(response):
            name = resource.get("name") or {}
            user = User(
                ipid=resource.get("externalId", ""),
                scimid=resource.get("id", ""),
                name=Name(
                    family_name=name.get("familyName", ""),
                    given_name=name.get("givenName", ""),
                ),
                display_name=resource.get("displayName", ""),
                active=bool(resource.get("active", False)),
                email=_first_email(resource),
            )
            user.set_hash_code()
            users.append(user)
        return _users_result(users)

    def create_users(self, users_result: UsersResult) -> UsersResult:
        """Create the users and return copies carrying their SCIM ids."""
        users = []
        for user in users_result.resources:
            request = CreateUserRequest(
                user_name=user.email,
                display_name=user.display_name,
                external_id=user.ipid,
                name=ScimName(
                    family_name=user.name.family_name, given_name=user.name.given_name
                ),
                emails=[ScimEmail(value=user.email, type="work")],
                active=user.active,
            )
            logger.debug(
                "creating user: user=%s email=%s idpid=%s",
                user.display_name, user.email, user.ipid,
            )
            try:
                response = self.scim.create_or_get_user(request)
            except Exception as err:
                raise SCIMError(f"scim: error creating user: {err}") from err

            created = User(
                ipid=user.ipid,
                scimid=(response or {}).get("id", ""),
                name=replace(user.name),
                display_name=user.display_name,
                active=user.active,
                email=user.email,
            )
            created.set_hash_code()
            users.append(created)
        return _users_result(users)

    def update_users(self, users_result: UsersResult) -> UsersResult:
        """Replace the users on the SCIM side and return updated copies."""
        users = []
        for user in users_result.resources:
            request = PutUserRequest(
                id=user.scimid,
                user_name=user.email,
                display_name=user.display_name,
                external_id=user.ipid,
                name=ScimName(
                    family_name=user.name.family_name, given_name=user.name.given_name
                ),
                emails=[ScimEmail(value=user.email, type="work", primary=True)],
                active=user.active,
            )
            logger.debug(
                "updating user (details): user=%s email=%s idpid=%s scimid=%s",
                user.display_name, user.email, user.ipid, user.scimid,
            )
            try:
                response = self.scim.put_user(request)
            except Exception as err:
                raise SCIMError(f"scim: error updating user: {err}") from err

            updated = User(
                ipid=user.ipid,
                scimid=(response or {}).get("id", ""),
                name=replace(user.name),
                display_name=user.display_name,
                active=user.active,
                email=user.email,
            )
            updated.set_hash_code()
            users.append(updated)
        return _users_result(users)

    def delete_users(self, users_result: UsersResult) -> None:
        """Delete the users by their SCIM ids."""
        for user in users_result.resources:
            logger.debug(
                "deleting user (details): user=%s email=%s scimid=%s idpid=%s",
                user.display_name, user.email, user.scimid, user.ipid,
            )
            logger.warning("deleting user: user=%s email=%s", user.display_name, user.email)
            try:
                self.scim.delete_user(user.scimid)
            except Exception as err:
                raise SCIMError(
                    f"scim: error deleting user: {user.scimid}, {err}"
                ) from err

    def create_groups_members(
        self, groups_members_result: GroupsMembersResult
    ) -> GroupsMembersResult:
        """Add the members to their groups.

        Members without a SCIM id are looked up by e-mail first; the looked-up
        id is stored on the member passed in.
        """
        entries = []
        for gm in groups_members_result.resources:
            members = []
            values = []
            for member in gm.resources:
                if not member.scimid:
                    try:
                        found = self.scim.get_user_by_user_name(member.email)
                    except Exception as err:
                        raise SCIMError(
                            f"scim: error getting user by email: {err}"
                        ) from err
                    member.scimid = (found or {}).get("id", "")

                values.append({"value": member.scimid})
                copy = Member(ipid=member.ipid, scimid=member.scimid, email=member.email)
                copy.set_hash_code()
                members.append(copy)

                logger.debug(
                    "adding member to group (details): group=%s idpid=%s scimid=%s email=%s",
                    gm.group.name, member.ipid, member.scimid, member.email,
                )
                logger.warning(
                    "adding member to group: group=%s email=%s", gm.group.name, member.email
                )

            gm.set_hash_code()
            gm.resources = members
            entries.append(gm)

            request = PatchGroupRequest(
                group_id=gm.group.scimid,
                display_name=gm.group.name,
                operations=[PatchOperation(op="add", path="members", value=values)],
            )
            try:
                self.scim.patch_group(request)
            except Exception as err:
                raise SCIMError(f"scim: error patching group: {err}") from err

        return _groups_members_result(entries)

    def delete_groups_members(self, groups_members_result: GroupsMembersResult) -> None:
        """Remove the members from their groups."""
        for gm in groups_members_result.resources:
            values = []
            for member in gm.resources:
                values.append({"value": member.scimid})
                logger.debug(
                    "removing member from group (details): group=%s idpid=%s scimid=%s email=%s",
                    gm.group.name, member.ipid, member.scimid, member.email,
                )
                logger.warning(
                    "removing member from group: group=%s email=%s",
                    gm.group.name, member.email,
                )

            request = PatchGroupRequest(
                group_id=gm.group.scimid,
                display_name=gm.group.name,
                operations=[PatchOperation(op="remove", path="members", value=values)],
            )
            try:
                self.scim.patch_group(request)
            except Exception as err:
                raise SCIMError(f"scim: error patching group: {err}") from err

    def get_groups_members(self, groups_result: GroupsResult) -> GroupsMembersResult:
        """Return the groups with the members the SCIM service lists for them.

        Services that do not list members in group responses give empty groups.
        """
        entries = []
        for group in groups_result.resources:
            query = f"displayName eq {_quote(group.name)}"
            try:
                response = self.scim.list_groups(query)
            except Exception as err:
                raise SCIMError(f"scim: error listing groups: {err}") from err

            for resource in _resources(response):
                members = []
                for ref in resource.get("members") or []:
                    user_id = ref.get("value", "")
                    try:
                        user = self.scim.get_user(user_id)
                    except Exception as err:
                        raise SCIMError(
                            f"scim: error getting user: {user_id}, error {err}"
                        ) from err
                    member = Member(scimid=user_id, email=_first_email(user or {}))
                    member.set_hash_code()
                    members.append(member)

                entry = GroupMembers(
                    items=len(members), group=replace(group), resources=members
                )
                entry.set_hash_code()
                entries.append(entry)

        return _groups_members_result(entries)

    def get_groups_members_brute_force(
        self, groups_result: GroupsResult, users_result: UsersResult
    ) -> GroupsMembersResult:
        """Find memberships by asking, for every group and user, whether they match.

        One entry is produced per group and user checked, holding the members
        found in that group so far.
        """
        entries = []
        for group in groups_result.resources:
            members: list[Member] = []
            for user in users_result.resources:
                query = f"id eq {_quote(group.scimid)} and members eq {_quote(user.scimid)}"
                try:
                    response = self.scim.list_groups(query)
                except Exception as err:
                    raise SCIMError(f"scim: error listing groups: {err}") from err

                if (response or {}).get("totalResults", 0) > 0:
                    member = Member(ipid=user.ipid, scimid=user.scimid, email=user.email)
                    member.set_hash_code()
                    members.append(member)

                entry = GroupMembers(
                    items=len(members), group=replace(group), resources=list(members)
                )
                entry.set_hash_code()
                entries.append(entry)

        return _groups_members_result(entries)