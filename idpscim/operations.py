"""Set operations that decide what to create, update or remove on the SCIM side."""

from __future__ import annotations

from dataclasses import replace

from idpscim.model import (
    Group,
    GroupMembers,
    GroupsMembersResult,
    GroupsResult,
    Member,
    User,
    UsersResult,
)


class OperationsError(ValueError):
    """Raised when an operation gets a missing argument."""


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


def members_operations(
    idp: GroupsMembersResult | None, scim: GroupsMembersResult | None
) -> tuple[GroupsMembersResult, GroupsMembersResult, GroupsMembersResult]:
    """Split group memberships into (create, equal, remove) sets.

    Members of idp groups receive the SCIM ids known on the scim side.
    """
    if idp is None:
        raise OperationsError("identity provider groups members is nil")
    if scim is None:
        raise OperationsError("scim groups members is nil")

    to_create, to_equal, to_remove = members_data_sets(idp.resources, scim.resources)
    return (
        _groups_members_result(to_create),
        _groups_members_result(to_equal),
        _groups_members_result(to_remove),
    )


def groups_operations(
    idp: GroupsResult | None, scim: GroupsResult | None
) -> tuple[GroupsResult, GroupsResult, GroupsResult, GroupsResult]:
    """Split groups, keyed by name, into (create, update, equal, remove) sets.

    Groups present on both sides take their SCIM id from the scim side.
    """
    if idp is None:
        raise OperationsError("identity provider groups is nil")
    if scim is None:
        raise OperationsError("scim groups is nil")

    idp_names = {group.name for group in idp.resources}
    scim_groups = {group.name: group for group in scim.resources}

    to_create: list[Group] = []
    to_update: list[Group] = []
    to_equal: list[Group] = []

    for group in idp.resources:
        existing = scim_groups.get(group.name)
        if existing is None:
            to_create.append(group)
            continue
        group.scimid = existing.scimid
        if group.ipid != existing.ipid:
            to_update.append(group)
        else:
            to_equal.append(group)

    to_remove = [group for group in scim.resources if group.name not in idp_names]

    return (
        _groups_result(to_create),
        _groups_result(to_update),
        _groups_result(to_equal),
        _groups_result(to_remove),
    )


def users_operations(
    idp: UsersResult | None, scim: UsersResult | None
) -> tuple[UsersResult, UsersResult, UsersResult, UsersResult]:
    """Split users, keyed by email, into (create, update, equal, remove) sets.

    Users present on both sides take their SCIM id from the scim side.
    """
    if idp is None:
        raise OperationsError("identity provider users is nil")
    if scim is None:
        raise OperationsError("scim users is nil")

    idp_emails = {user.email for user in idp.resources}
    scim_users = {user.email: user for user in scim.resources}

    to_create: list[User] = []
    to_update: list[User] = []
    to_equal: list[User] = []

    for user in idp.resources:
        existing = scim_users.get(user.email)
        if existing is None:
            to_create.append(user)
            continue
        user.scimid = existing.scimid
        changed = (
            user.name.family_name != existing.name.family_name
            or user.name.given_name != existing.name.given_name
            or user.active != existing.active
            or user.ipid != existing.ipid
        )
        (to_update if changed else to_equal).append(user)

    to_remove = [user for user in scim.resources if user.email not in idp_emails]

    return (
        _users_result(to_create),
        _users_result(to_update),
        _users_result(to_equal),
        _users_result(to_remove),
    )


def merge_groups_result(*args: GroupsResult) -> GroupsResult:
    """Concatenate the groups of several results; duplicates are kept."""
    return _groups_result([group for result in args for group in result.resources])


def merge_users_result(*args: UsersResult) -> UsersResult:
    """Concatenate the users of several results; duplicates are kept."""
    return _users_result([user for result in args for user in result.resources])


def merge_groups_members_result(*args: GroupsMembersResult) -> GroupsMembersResult:
    """Concatenate the group memberships of several results; duplicates are kept."""
    return _groups_members_result([gm for result in args for gm in result.resources])


def update_groups_members_scimid(
    idp: GroupsMembersResult, scim_groups: GroupsResult, scim_users: UsersResult
) -> GroupsMembersResult:
    """Return a copy of ``idp`` with group and member SCIM ids filled in.

    Groups are matched by name and members by email; unknown ones get an
    empty SCIM id.
    """
    groups = {group.name: group for group in scim_groups.resources}
    users = {user.email: user for user in scim_users.resources}

    entries: list[GroupMembers] = []
    for gm in idp.resources:
        known_group = groups.get(gm.group.name)
        group = Group(
            ipid=gm.group.ipid,
            scimid=known_group.scimid if known_group else "",
            name=gm.group.name,
            email=gm.group.email,
        )
        group.set_hash_code()

        members: list[Member] = []
        for member in gm.resources:
            known_user = users.get(member.email)
            copy = Member(
                ipid=member.ipid,
                scimid=known_user.scimid if known_user else "",
                email=member.email,
            )
            copy.set_hash_code()
            members.append(copy)

        entry = GroupMembers(items=len(members), group=group, resources=members)
        entry.set_hash_code()
        entries.append(entry)

    result = GroupsMembersResult(items=idp.items, resources=entries)
    result.set_hash_code()
    return result


def members_data_sets(
    idp: list[GroupMembers], scim: list[GroupMembers]
) -> tuple[list[GroupMembers], list[GroupMembers], list[GroupMembers]]:
    """Compare memberships group by group and return (create, equal, remove) lists.

    Groups are matched by name and members by email.  Groups whose members
    are empty on both sides are reported as equal.
    """
    idp_members = {gm.group.name: {m.email: m for m in gm.resources} for gm in idp}
    scim_members: dict[str, dict[str, Member]] = {}
    scim_groups: dict[str, Group] = {}
    for gm in scim:
        scim_groups[gm.group.name] = gm.group
        scim_members[gm.group.name] = {m.email: m for m in gm.resources}

    to_create: list[GroupMembers] = []
    to_equal: list[GroupMembers] = []
    to_remove: list[GroupMembers] = []

    for gm in idp:
        name = gm.group.name
        known = scim_members.get(name)
        both_empty = known is not None and not known and not idp_members[name]

        if not gm.group.scimid and name in scim_groups:
            gm.group.scimid = scim_groups[name].scimid

        created: list[Member] = []
        equal: list[Member] = []
        for member in gm.resources:
            existing = (known or {}).get(member.email)
            if existing is None:
                created.append(member)
            else:
                member.scimid = existing.scimid
                equal.append(member)

        if created:
            gm.group.set_hash_code()
            entry = GroupMembers(items=len(created), group=replace(gm.group), resources=created)
            entry.set_hash_code()
            to_create.append(entry)

        if both_empty or equal:
            gm.group.set_hash_code()
            entry = GroupMembers(items=len(equal), group=replace(gm.group), resources=equal)
            entry.set_hash_code()
            to_equal.append(entry)

    for gm in scim:
        wanted = idp_members.get(gm.group.name, {})
        removed = [member for member in gm.resources if member.email not in wanted]
        if removed:
            gm.group.set_hash_code()
            entry = GroupMembers(items=len(removed), group=replace(gm.group), resources=removed)
            entry.set_hash_code()
            to_remove.append(entry)

    return to_create, to_equal, to_remove