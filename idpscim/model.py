"""Entities synchronised between the identity provider and SCIM, and the sync state."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any

from idpscim.hashing import hash_value

STATE_SCHEMA_VERSION = "1.0.0"

_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _to_json(data: dict[str, Any]) -> str:
    text = json.dumps(data, indent=2, ensure_ascii=False)
    for char, escaped in _ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def _resources(data: dict[str, Any]) -> list[dict[str, Any]]:
    return data.get("resources") or []


@dataclass
class Name:
    """A person's name."""

    family_name: str = ""
    given_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"familyName": self.family_name, "givenName": self.given_name}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Name:
        data = data or {}
        return cls(
            family_name=data.get("familyName", ""),
            given_name=data.get("givenName", ""),
        )


@dataclass
class User:
    """A user entity."""

    ipid: str = ""
    scimid: str = ""
    name: Name = field(default_factory=Name)
    display_name: str = ""
    active: bool = False
    email: str = ""
    hash_code: str = ""

    def hash_payload(self) -> tuple[Any, ...]:
        """Fields coming from the identity provider; SCIM id and hash are excluded."""
        return (self.ipid, self.name, self.display_name, self.active, self.email)

    def set_hash_code(self) -> None:
        self.hash_code = hash_value(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ipid": self.ipid,
            "scimid": self.scimid,
            "name": self.name.to_dict(),
            "displayName": self.display_name,
            "active": self.active,
            "email": self.email,
            "hashCode": self.hash_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> User:
        data = data or {}
        return cls(
            ipid=data.get("ipid", ""),
            scimid=data.get("scimid", ""),
            name=Name.from_dict(data.get("name")),
            display_name=data.get("displayName", ""),
            active=bool(data.get("active", False)),
            email=data.get("email", ""),
            hash_code=data.get("hashCode", ""),
        )


@dataclass
class UsersResult:
    """A list of users."""

    items: int = 0
    hash_code: str = ""
    resources: list[User] = field(default_factory=list)

    def set_hash_code(self) -> None:
        ordered = sorted(self.resources, key=lambda user: user.hash_code)
        self.hash_code = hash_value(UsersResult(items=self.items, resources=ordered))

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": self.items,
            "hashCode": self.hash_code,
            "resources": [user.to_dict() for user in self.resources],
        }

    def to_json(self) -> str:
        return _to_json(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> UsersResult:
        data = data or {}
        return cls(
            items=int(data.get("items", 0)),
            hash_code=data.get("hashCode", ""),
            resources=[User.from_dict(item) for item in _resources(data)],
        )


@dataclass
class Group:
    """A group entity."""

    ipid: str = ""
    scimid: str = ""
    name: str = ""
    email: str = ""
    hash_code: str = ""

    def hash_payload(self) -> tuple[Any, ...]:
        """Fields coming from the identity provider; SCIM id and hash are excluded."""
        return (self.ipid, self.name, self.email)

    def set_hash_code(self) -> None:
        self.hash_code = hash_value(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ipid": self.ipid,
            "scimid": self.scimid,
            "name": self.name,
            "email": self.email,
            "hashCode": self.hash_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Group:
        data = data or {}
        return cls(
            ipid=data.get("ipid", ""),
            scimid=data.get("scimid", ""),
            name=data.get("name", ""),
            email=data.get("email", ""),
            hash_code=data.get("hashCode", ""),
        )


@dataclass
class GroupsResult:
    """A list of groups."""

    items: int = 0
    hash_code: str = ""
    resources: list[Group] = field(default_factory=list)

    def set_hash_code(self) -> None:
        ordered = sorted(self.resources, key=lambda group: group.hash_code)
        self.hash_code = hash_value(GroupsResult(items=self.items, resources=ordered))

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": self.items,
            "hashCode": self.hash_code,
            "resources": [group.to_dict() for group in self.resources],
        }

    def to_json(self) -> str:
        return _to_json(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GroupsResult:
        data = data or {}
        return cls(
            items=int(data.get("items", 0)),
            hash_code=data.get("hashCode", ""),
            resources=[Group.from_dict(item) for item in _resources(data)],
        )


@dataclass
class Member:
    """A member of a group."""

    ipid: str = ""
    scimid: str = ""
    email: str = ""
    status: str = ""
    hash_code: str = ""

    def hash_payload(self) -> tuple[Any, ...]:
        """Fields coming from the identity provider; SCIM id and hash are excluded."""
        return (self.ipid, self.email)

    def set_hash_code(self) -> None:
        self.hash_code = hash_value(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ipid": self.ipid,
            "scimid": self.scimid,
            "email": self.email,
            "status": self.status,
            "hashCode": self.hash_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Member:
        data = data or {}
        return cls(
            ipid=data.get("ipid", ""),
            scimid=data.get("scimid", ""),
            email=data.get("email", ""),
            status=data.get("status", ""),
            hash_code=data.get("hashCode", ""),
        )


@dataclass
class MembersResult:
    """A list of members."""

    items: int = 0
    hash_code: str = ""
    resources: list[Member] = field(default_factory=list)

    def set_hash_code(self) -> None:
        ordered = sorted(self.resources, key=lambda member: member.ipid)
        self.hash_code = hash_value(MembersResult(items=self.items, resources=ordered))

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": self.items,
            "hashCode": self.hash_code,
            "resources": [member.to_dict() for member in self.resources],
        }


@dataclass
class GroupMembers:
    """A group together with its members."""

    items: int = 0
    hash_code: str = ""
    group: Group = field(default_factory=Group)
    resources: list[Member] = field(default_factory=list)

    def set_hash_code(self) -> None:
        ordered = sorted(self.resources, key=lambda member: member.email)
        copy = GroupMembers(items=self.items, group=replace(self.group), resources=ordered)
        self.hash_code = hash_value(copy)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"items": self.items}
        if self.hash_code:
            data["hashCode"] = self.hash_code
        data["group"] = self.group.to_dict()
        data["resources"] = [member.to_dict() for member in self.resources]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GroupMembers:
        data = data or {}
        return cls(
            items=int(data.get("items", 0)),
            hash_code=data.get("hashCode", ""),
            group=Group.from_dict(data.get("group")),
            resources=[Member.from_dict(item) for item in _resources(data)],
        )


@dataclass
class GroupsMembersResult:
    """A list of groups with their members."""

    items: int = 0
    hash_code: str = ""
    resources: list[GroupMembers] = field(default_factory=list)

    def set_hash_code(self) -> None:
        ordered = sorted(self.resources, key=lambda gm: gm.hash_code)
        self.hash_code = hash_value(GroupsMembersResult(items=self.items, resources=ordered))

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": self.items,
            "hashCode": self.hash_code,
            "resources": [gm.to_dict() for gm in self.resources],
        }

    def to_json(self) -> str:
        return _to_json(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GroupsMembersResult:
        data = data or {}
        return cls(
            items=int(data.get("items", 0)),
            hash_code=data.get("hashCode", ""),
            resources=[GroupMembers.from_dict(item) for item in _resources(data)],
        )


@dataclass
class StateResources:
    """Groups, users and group memberships held in the state."""

    groups: GroupsResult = field(default_factory=GroupsResult)
    users: UsersResult = field(default_factory=UsersResult)
    groups_members: GroupsMembersResult = field(default_factory=GroupsMembersResult)

    def to_dict(self) -> dict[str, Any]:
        return {
            "groups": self.groups.to_dict(),
            "users": self.users.to_dict(),
            "groupsMembers": self.groups_members.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> StateResources:
        data = data or {}
        return cls(
            groups=GroupsResult.from_dict(data.get("groups")),
            users=UsersResult.from_dict(data.get("users")),
            groups_members=GroupsMembersResult.from_dict(data.get("groupsMembers")),
        )


@dataclass
class State:
    """The state of the system after a sync."""

    schema_version: str = ""
    code_version: str = ""
    last_sync: str = ""
    hash_code: str = ""
    resources: StateResources = field(default_factory=StateResources)

    def set_hash_code(self) -> None:
        """Hash only identity-provider data, leaving SCIM ids out."""
        groups = []
        for group in self.resources.groups.resources:
            copy = Group(ipid=group.ipid, name=group.name, email=group.email)
            copy.set_hash_code()
            groups.append(copy)
        groups_result = GroupsResult(items=len(groups), resources=groups)
        groups_result.set_hash_code()

        users = []
        for user in self.resources.users.resources:
            copy_user = User(
                ipid=user.ipid,
                name=replace(user.name),
                display_name=user.display_name,
                active=user.active,
                email=user.email,
            )
            copy_user.set_hash_code()
            users.append(copy_user)
        users_result = UsersResult(items=len(users), resources=users)
        users_result.set_hash_code()

        groups_members = []
        for gm in self.resources.groups_members.resources:
            group = Group(ipid=gm.group.ipid, name=gm.group.name, email=gm.group.email)
            group.set_hash_code()
            members = []
            for member in gm.resources:
                copy_member = Member(ipid=member.ipid, email=member.email)
                copy_member.set_hash_code()
                members.append(copy_member)
            entry = GroupMembers(items=len(gm.resources), group=group, resources=members)
            entry.set_hash_code()
            groups_members.append(entry)
        groups_members_result = GroupsMembersResult(
            items=len(groups_members), resources=groups_members
        )
        groups_members_result.set_hash_code()

        copy_state = State(
            resources=StateResources(
                groups=groups_result,
                users=users_result,
                groups_members=groups_members_result,
            )
        )
        self.hash_code = hash_value(copy_state)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "codeVersion": self.code_version,
            "lastSync": self.last_sync,
            "hashCode": self.hash_code,
            "resources": self.resources.to_dict(),
        }

    def to_json(self) -> str:
        return _to_json(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> State:
        data = data or {}
        return cls(
            schema_version=data.get("schemaVersion", ""),
            code_version=data.get("codeVersion", ""),
            last_sync=data.get("lastSync", ""),
            hash_code=data.get("hashCode", ""),
            resources=StateResources.from_dict(data.get("resources")),
        )