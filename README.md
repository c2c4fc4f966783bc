# idpscim

Building blocks for keeping a SCIM service in step with an identity provider.
Users, groups and group memberships are plain dataclasses; they can be
compared to work out what must be created, updated, left alone or removed,
written to a SCIM service through a client object you supply, and recorded in
a state document between runs.

The package has no runtime dependencies.

## Install

```
pip install .
pip install ".[test]"   # with pytest
```

## Hashing

`idpscim.hashing.hash_value(value)` returns the hex SHA-256 digest of a
canonical JSON encoding of `value`. Dataclasses, mappings, sets, lists,
tuples and plain scalars are accepted; objects with a `hash_payload()` method
are hashed through that payload only. `None` raises `ValueError`, and an
unsupported type raises `TypeError`.

## Data model

`idpscim.model` holds `Name`, `User`, `Group`, `Member`, `GroupMembers`, the
result lists `UsersResult`, `GroupsResult`, `MembersResult` and
`GroupsMembersResult`, and `StateResources` and `State`
(`STATE_SCHEMA_VERSION` is `"1.0.0"`).

Each entity has `set_hash_code()`, which stores a hash in `hash_code`. For
`User`, `Group` and `Member` the hash covers only the identity-provider
fields (`hash_payload()`), so the SCIM id and the old hash do not change it.
Result lists hash their items in a fixed order (users and groups by their
hash code, members of a `GroupMembers` by e-mail, `MembersResult` by ipid),
so the same entities in a different order give the same hash.
`State.set_hash_code()` hashes a copy of the state with SCIM ids left out.

```python
from idpscim.model import Name, User, UsersResult

user = User(ipid="1", name=Name(family_name="Doe", given_name="Jane"),
            display_name="Jane Doe", active=True, email="jane@example.com")
user.set_hash_code()

users = UsersResult(items=1, resources=[user])
users.set_hash_code()
print(users.to_json())
```

Every class has `to_dict()`, giving the JSON field names (`ipid`, `scimid`,
`displayName`, `hashCode`, ...). `UsersResult`, `GroupsResult`,
`GroupsMembersResult` and `State` also have `to_json()`, which writes the
dictionary as JSON indented by two spaces, and all classes except
`MembersResult` have a `from_dict()` class method that reads the same shape
back. A `GroupMembers` leaves out `hashCode` when it is empty.

## Working out the changes

`idpscim.operations` compares the identity-provider side with the SCIM side:

```python
from idpscim.operations import groups_operations, members_operations, users_operations

create, update, equal, remove = users_operations(idp_users, scim_users)
create, update, equal, remove = groups_operations(idp_groups, scim_groups)
create, equal, remove = members_operations(idp_members, scim_members)
```

- Users are matched by e-mail; a user is updated when its family name, given
  name, active flag or ipid differ.
- Groups are matched by name; a group is updated when its ipid differs.
- Memberships are matched by group name and member e-mail; groups with no
  members on either side count as equal. `members_data_sets(idp, scim)` does
  the same on plain lists of `GroupMembers`.

Matching entities on the identity-provider side receive the SCIM id from the
other side, in place. Passing `None` for either side raises `OperationsError`
(a `ValueError`).

`merge_users_result`, `merge_groups_result` and `merge_groups_members_result`
join any number of results into one without removing duplicates.
`update_groups_members_scimid(idp, scim_groups, scim_users)` returns a copy of
the memberships with group SCIM ids (by name) and member SCIM ids (by e-mail)
filled in.

## Keeping state

`idpscim.repository` offers two stores, both with `get_state()` and
`set_state(state)`; failures raise `RepositoryError`.

- `DiskRepository(state_file)` reads from and writes to an open file object
  (text or binary). An empty file reads as an empty `State`; writing appends
  indented JSON and a newline, then flushes.
- `S3Repository(client, bucket, key)` keeps the state as one object. The
  client needs `get_object(Bucket=, Key=)`, returning a mapping whose `"Body"`
  has `read()`, and `put_object(Bucket=, Key=, Body=)`. Missing client, bucket
  or key, and `set_state(None)`, raise `RepositoryError`.

## Talking to SCIM

`idpscim.scim.Provider(client)` turns model results into SCIM requests. The
client is any object with `list_users`, `list_groups`, `create_or_get_user`,
`put_user`, `get_user`, `get_user_by_user_name`, `delete_user`,
`create_or_get_group`, `delete_group` and `patch_group`, taking and returning
SCIM JSON as dictionaries; requests are passed as the dataclasses
`CreateUserRequest`, `PutUserRequest`, `CreateGroupRequest` and
`PatchGroupRequest` (with `ScimName`, `ScimEmail` and `PatchOperation`).

Provider methods: `get_users`, `create_users`, `update_users`,
`delete_users`, `get_groups`, `create_groups`, `update_groups`,
`delete_groups`, `create_groups_members`, `delete_groups_members`,
`get_groups_members` and `get_groups_members_brute_force`. Any exception from
the client is raised as `SCIMError`, as is a missing client.

## What this package does not do

It does not fetch users or groups from an identity provider, it contains no
HTTP client for a SCIM service or an object store, and it has no command-line
program or scheduled sync run. You supply the data and the client objects,
and drive the steps yourself.

## Tests

```
pytest
```