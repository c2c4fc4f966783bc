import json

from idpscim.model import (
    STATE_SCHEMA_VERSION,
    Group,
    GroupMembers,
    GroupsMembersResult,
    GroupsResult,
    Member,
    MembersResult,
    Name,
    State,
    StateResources,
    User,
    UsersResult,
)


def test_users_result_to_json_empty():
    assert UsersResult().to_json() == '{\n  "items": 0,\n  "hashCode": "",\n  "resources": []\n}'


def test_users_result_to_json_success():
    result = UsersResult(
        items=1,
        hash_code="test",
        resources=[
            User(
                ipid="1",
                scimid="1",
                name=Name(given_name="user", family_name="1"),
                display_name="user 1",
                active=True,
                email="user.1@example.com",
                hash_code="1111",
            )
        ],
    )
    expected = """{
  "items": 1,
  "hashCode": "test",
  "resources": [
    {
      "ipid": "1",
      "scimid": "1",
      "name": {
        "familyName": "1",
        "givenName": "user"
      },
      "displayName": "user 1",
      "active": true,
      "email": "user.1@example.com",
      "hashCode": "1111"
    }
  ]
}"""
    assert result.to_json() == expected


def test_groups_result_to_json_empty():
    assert GroupsResult().to_json() == '{\n  "items": 0,\n  "hashCode": "",\n  "resources": []\n}'


def test_groups_result_to_json_success():
    result = GroupsResult(
        items=1,
        hash_code="test",
        resources=[Group(ipid="1", scimid="1", name="group", hash_code="1111")],
    )
    expected = """{
  "items": 1,
  "hashCode": "test",
  "resources": [
    {
      "ipid": "1",
      "scimid": "1",
      "name": "group",
      "email": "",
      "hashCode": "1111"
    }
  ]
}"""
    assert result.to_json() == expected


def test_to_json_escapes_html_characters():
    text = GroupsResult(items=1, resources=[Group(name="a<b>&c")]).to_json()
    assert '"a\\u003cb\\u003e\\u0026c"' in text
    assert json.loads(text)["resources"][0]["name"] == "a<b>&c"


def test_user_hash_ignores_scimid_and_hash_code():
    user = User(
        ipid="1",
        scimid="1",
        name=Name(given_name="user", family_name="1"),
        display_name="user 1",
        active=True,
        email="user.1@example.com",
        hash_code="test",
    )
    want = User(
        ipid="1",
        name=Name(given_name="user", family_name="1"),
        display_name="user 1",
        active=True,
        email="user.1@example.com",
    )
    user.set_hash_code()
    want.set_hash_code()
    assert user.hash_code == want.hash_code
    assert len(user.hash_code) == 64


def test_user_hash_with_default_fields():
    user = User(
        name=Name(given_name="user", family_name="1"),
        display_name="user 1",
        active=True,
        email="user.1@example.com",
        hash_code="test",
    )
    want = User(
        name=Name(given_name="user", family_name="1"),
        display_name="user 1",
        active=True,
        email="user.1@example.com",
    )
    user.set_hash_code()
    want.set_hash_code()
    assert user.hash_code == want.hash_code


def test_empty_user_hash_is_stable():
    first, second = User(), User()
    first.set_hash_code()
    second.set_hash_code()
    assert first.hash_code == second.hash_code
    assert first.hash_code != ""


def test_user_hash_changes_with_active():
    first = User(ipid="1", email="a@example.com", active=True)
    second = User(ipid="1", email="a@example.com", active=False)
    first.set_hash_code()
    second.set_hash_code()
    assert first.hash_code != second.hash_code


def test_group_hash_ignores_scimid():
    group = Group(ipid="1", scimid="1", name="group 1", email="group.1@example.com", hash_code="test")
    want = Group(ipid="1", name="group 1", email="group.1@example.com")
    group.set_hash_code()
    want.set_hash_code()
    assert group.hash_code == want.hash_code


def test_member_hash_ignores_scimid():
    member = Member(ipid="1", scimid="1", email="member.1@example.com", hash_code="test")
    want = Member(ipid="1", email="member.1@example.com")
    member.set_hash_code()
    want.set_hash_code()
    assert member.hash_code == want.hash_code


def test_hash_payloads():
    group = Group(ipid="1", scimid="1", name="group", email="group@example.com")
    assert group.hash_payload() == ("1", "group", "group@example.com")
    member = Member(ipid="1", scimid="1", email="member@example.com")
    assert member.hash_payload() == ("1", "member@example.com")
    user = User(ipid="1", scimid="1", name=Name(family_name="user", given_name="1"), email="u@example.com")
    assert user.hash_payload() == ("1", Name(family_name="user", given_name="1"), "", False, "u@example.com")


def test_group_members_hash_independent_of_member_order():
    gm = GroupMembers(
        items=3,
        hash_code="test",
        group=Group(ipid="1", scimid="1", name="group", email="group@example.com"),
        resources=[
            Member(ipid="1", scimid="1", email="m1@example.com"),
            Member(ipid="2", scimid="2", email="m2@example.com"),
            Member(ipid="3", scimid="3", email="m3@example.com"),
        ],
    )
    want = GroupMembers(
        items=3,
        group=Group(ipid="1", scimid="1", name="group", email="group@example.com"),
        resources=[
            Member(ipid="3", scimid="3", email="m3@example.com"),
            Member(ipid="1", scimid="1", email="m1@example.com"),
            Member(ipid="2", scimid="2", email="m2@example.com"),
        ],
    )
    gm.set_hash_code()
    want.set_hash_code()
    assert gm.hash_code == want.hash_code
    assert [m.ipid for m in want.resources] == ["3", "1", "2"]


def test_group_members_hash_changes_with_members():
    group = Group(ipid="1", name="group", email="group@example.com")
    first = GroupMembers(items=1, group=group, resources=[Member(ipid="1", email="m1@example.com")])
    second = GroupMembers(items=1, group=group, resources=[Member(ipid="2", email="m2@example.com")])
    first.set_hash_code()
    second.set_hash_code()
    assert first.hash_code != second.hash_code


def test_users_result_hash_independent_of_order():
    u1 = User(ipid="1", scimid="1", name=Name(given_name="User", family_name="1"), email="u1@example.com")
    u2 = User(ipid="2", scimid="2", name=Name(given_name="User", family_name="2"), email="u2@example.com")
    u3 = User(ipid="3", scimid="3", name=Name(given_name="User", family_name="3"), email="u3@example.com")
    for user in (u1, u2, u3):
        user.set_hash_code()

    results = [UsersResult(items=3, resources=order) for order in ([u1, u2, u3], [u2, u3, u1], [u3, u2, u1])]
    for result in results:
        result.set_hash_code()
    assert results[0].hash_code == results[1].hash_code == results[2].hash_code

    merged_a = UsersResult(items=9, resources=results[1].resources + results[0].resources + results[2].resources)
    merged_b = UsersResult(items=9, resources=results[2].resources + results[1].resources + results[0].resources)
    merged_a.set_hash_code()
    merged_b.set_hash_code()
    assert merged_a.hash_code == merged_b.hash_code
    assert merged_a.hash_code != results[0].hash_code


def test_groups_result_hash_independent_of_order():
    g1 = Group(ipid="1", scimid="1", name="group", email="g1@example.com")
    g2 = Group(ipid="2", scimid="2", name="group", email="g2@example.com")
    g3 = Group(ipid="3", scimid="3", name="group", email="g3@example.com")
    for group in (g1, g2, g3):
        group.set_hash_code()

    results = [GroupsResult(items=3, resources=order) for order in ([g1, g2, g3], [g2, g3, g1], [g3, g2, g1])]
    for result in results:
        result.set_hash_code()
    assert results[0].hash_code == results[1].hash_code == results[2].hash_code

    merged_a = GroupsResult(items=9, resources=results[1].resources + results[0].resources + results[2].resources)
    merged_b = GroupsResult(items=9, resources=results[2].resources + results[1].resources + results[0].resources)
    merged_a.set_hash_code()
    merged_b.set_hash_code()
    assert merged_a.hash_code == merged_b.hash_code


def test_groups_members_result_hash_independent_of_order():
    m1 = Member(ipid="1", scimid="1", email="m1@example.com")
    m2 = Member(ipid="2", scimid="2", email="m2@example.com")
    m3 = Member(ipid="3", scimid="3", email="m3@example.com")
    for member in (m1, m2, m3):
        member.set_hash_code()

    gm1 = GroupMembers(group=Group(ipid="1", scimid="1", name="group", email="g@example.com"), resources=[m1, m2, m3])
    gm2 = GroupMembers(group=Group(ipid="2", scimid="2", name="group", email="g@example.com"), resources=[m2, m1, m3])
    gm3 = GroupMembers(group=Group(ipid="3", scimid="3", name="group", email="g@example.com"), resources=[m1, m3, m2])
    for gm in (gm1, gm2, gm3):
        gm.set_hash_code()

    results = [
        GroupsMembersResult(items=3, resources=order)
        for order in ([gm1, gm2, gm3], [gm2, gm3, gm1], [gm3, gm2, gm1])
    ]
    for result in results:
        result.set_hash_code()
    assert results[0].hash_code == results[1].hash_code == results[2].hash_code


def test_members_result_hash_sorted_by_ipid():
    first = MembersResult(items=2, resources=[Member(ipid="1", email="a@example.com"), Member(ipid="2", email="b@example.com")])
    second = MembersResult(items=2, resources=[Member(ipid="2", email="b@example.com"), Member(ipid="1", email="a@example.com")])
    first.set_hash_code()
    second.set_hash_code()
    assert first.hash_code == second.hash_code
    assert first.to_dict()["items"] == 2


def test_group_members_to_dict_omits_empty_hash_code():
    gm = GroupMembers(items=0, group=Group(name="g"))
    assert "hashCode" not in gm.to_dict()
    gm.hash_code = "abc"
    assert list(gm.to_dict()) == ["items", "hashCode", "group", "resources"]


def test_state_to_json_empty():
    expected = """{
  "schemaVersion": "",
  "codeVersion": "",
  "lastSync": "",
  "hashCode": "",
  "resources": {
    "groups": {
      "items": 0,
      "hashCode": "",
      "resources": []
    },
    "users": {
      "items": 0,
      "hashCode": "",
      "resources": []
    },
    "groupsMembers": {
      "items": 0,
      "hashCode": "",
      "resources": []
    }
  }
}"""
    assert State().to_json() == expected


def test_state_to_json_success():
    state = State(
        last_sync="2020-01-01T00:00:00Z",
        resources=StateResources(
            groups=GroupsResult(
                items=1,
                hash_code="hashCode",
                resources=[Group(ipid="ipid", scimid="scimid", name="name", email="email", hash_code="hashCode")],
            ),
            users=UsersResult(
                items=1,
                hash_code="hashCode",
                resources=[
                    User(
                        ipid="ipid",
                        scimid="scimid",
                        name=Name(family_name="lastName", given_name="name"),
                        email="email",
                        hash_code="hashCode",
                    )
                ],
            ),
        ),
    )
    expected = """{
  "schemaVersion": "",
  "codeVersion": "",
  "lastSync": "2020-01-01T00:00:00Z",
  "hashCode": "",
  "resources": {
    "groups": {
      "items": 1,
      "hashCode": "hashCode",
      "resources": [
        {
          "ipid": "ipid",
          "scimid": "scimid",
          "name": "name",
          "email": "email",
          "hashCode": "hashCode"
        }
      ]
    },
    "users": {
      "items": 1,
      "hashCode": "hashCode",
      "resources": [
        {
          "ipid": "ipid",
          "scimid": "scimid",
          "name": {
            "familyName": "lastName",
            "givenName": "name"
          },
          "displayName": "",
          "active": false,
          "email": "email",
          "hashCode": "hashCode"
        }
      ]
    },
    "groupsMembers": {
      "items": 0,
      "hashCode": "",
      "resources": []
    }
  }
}"""
    assert state.to_json() == expected


def _sample_state(scimid_suffix=""):
    return State(
        schema_version=STATE_SCHEMA_VERSION,
        code_version="0.0.1",
        last_sync="2021-09-25T20:49:46+02:00",
        resources=StateResources(
            groups=GroupsResult(items=1, resources=[Group(ipid="1", scimid="s1" + scimid_suffix, name="group 1", email="g1@example.com")]),
            users=UsersResult(
                items=1,
                resources=[
                    User(
                        ipid="1",
                        scimid="u1" + scimid_suffix,
                        name=Name(family_name="1", given_name="user"),
                        display_name="user 1",
                        email="u1@example.com",
                    )
                ],
            ),
            groups_members=GroupsMembersResult(
                items=1,
                resources=[
                    GroupMembers(
                        items=1,
                        group=Group(ipid="1", scimid="s1" + scimid_suffix, name="group 1", email="g1@example.com"),
                        resources=[Member(ipid="1", scimid="u1" + scimid_suffix, email="u1@example.com")],
                    )
                ],
            ),
        ),
    )


def test_state_round_trip_through_json():
    state = _sample_state()
    state.set_hash_code()
    restored = State.from_dict(json.loads(state.to_json()))
    assert restored == state


def test_state_from_dict_handles_missing_and_null():
    state = State.from_dict({"lastSync": "x", "resources": {"groups": {"resources": None}}})
    assert state.last_sync == "x"
    assert state.resources.groups.resources == []
    assert state.resources.users.items == 0


def test_state_hash_ignores_scimid():
    first = _sample_state()
    second = _sample_state("-other")
    first.set_hash_code()
    second.set_hash_code()
    assert first.hash_code == second.hash_code
    assert len(first.hash_code) == 64


def test_state_hash_changes_with_idp_data():
    first = _sample_state()
    second = _sample_state()
    second.resources.users.resources[0].display_name = "user one"
    first.set_hash_code()
    second.set_hash_code()
    assert first.hash_code != second.hash_code


def test_state_hash_does_not_modify_resources():
    state = _sample_state()
    state.set_hash_code()
    assert state.resources.groups.resources[0].scimid == "s1"
    assert state.resources.groups.resources[0].hash_code == ""


def test_user_from_dict_round_trip():
    user = User(ipid="7", scimid="s7", name=Name("fam", "giv"), display_name="d", active=True, email="x@example.com", hash_code="h")
    assert User.from_dict(user.to_dict()) == user
    member = Member(ipid="1", scimid="2", email="m@example.com", status="ACTIVE", hash_code="h")
    assert Member.from_dict(member.to_dict()) == member
    gm = GroupMembers(items=1, hash_code="h", group=Group(name="g"), resources=[member])
    assert GroupMembers.from_dict(gm.to_dict()) == gm