"""Membership engine: join/leave, administrative add/remove, and the two-sided invariant."""
from __future__ import annotations

import pytest
from bson import ObjectId

from discussify.models import CommunityModel, NotificationModel
from discussify.services.membership import is_admin, is_banned, is_member, normalize_id
from discussify.utils.errors import Conflict, Forbidden, NotFound, ValidationFailed

from tests.conftest import assert_linked


# ---------------------------------------------------------------------------
# Lookup and predicates
# ---------------------------------------------------------------------------
class TestResolveCommunity:
    @pytest.mark.asyncio
    async def test_resolves_by_id(self, engine, make_community, alice):
        c = make_community("Python Devs", alice)
        found = await engine.resolve_community(c.id)
        assert found.id == c.id

    @pytest.mark.asyncio
    async def test_falls_back_to_slug(self, engine, make_community, alice):
        c = make_community("Python Devs", alice)
        found = await engine.resolve_community("python-devs")
        assert found.id == c.id

    @pytest.mark.asyncio
    async def test_valid_id_with_no_match_falls_back_to_slug(self, engine, communities, make_community, alice):
        # A 24-hex slug that is also a valid ObjectId string
        slug = str(ObjectId())
        c = make_community("Hex", alice)
        communities.docs[c.id].slug = slug
        found = await engine.resolve_community(slug)
        assert found.id == c.id

    @pytest.mark.asyncio
    async def test_unknown_is_not_found(self, engine):
        with pytest.raises(NotFound):
            await engine.resolve_community("nope")

    @pytest.mark.asyncio
    async def test_soft_deleted_is_not_found(self, engine, communities, make_community, alice):
        c = make_community("Gone", alice)
        communities.docs[c.id].is_active = False
        with pytest.raises(NotFound):
            await engine.resolve_community(c.id)


class TestPredicates:
    def test_identity_representations_compare_equal(self, make_community, alice, bob):
        c = make_community("Python Devs", alice, members=[bob])
        assert is_member(c, bob.id)
        assert is_member(c, ObjectId(bob.id))
        assert is_member(c, {"_id": ObjectId(bob.id), "username": "bob"})
        assert is_member(c, bob)
        assert is_admin(c, {"_id": alice.id})
        assert not is_admin(c, bob)

    def test_banned(self, make_community, alice, bob):
        c = make_community("Python Devs", alice, banned_users=[bob.id])
        assert is_banned(c, ObjectId(bob.id))
        assert not is_banned(c, alice)

    def test_populated_member_reference_is_normalized(self, alice, bob):
        c = CommunityModel.model_validate({
            "_id": ObjectId(),
            "name": "X",
            "slug": "x",
            "admin": {"_id": ObjectId(alice.id), "username": "alice"},
            "members": [
                {"user": {"_id": ObjectId(alice.id)}, "role": "admin"},
                {"user": ObjectId(bob.id), "role": "member"},
            ],
            "memberCount": 2,
        })
        assert c.admin == alice.id
        assert c.is_member(bob.id)
        assert normalize_id(c.members[0].user) == alice.id


# ---------------------------------------------------------------------------
# Join
# ---------------------------------------------------------------------------
class TestJoin:
    @pytest.mark.asyncio
    async def test_public_join_links_both_sides(self, engine, communities, users, make_community, alice, bob):
        c = make_community("Python Devs", alice)

        updated = await engine.join(c, bob.id, "bob")

        assert updated.member_count == 2
        assert updated.is_member(bob.id)
        assert updated.role_of(bob.id) == "member"
        assert c.id in users.docs[bob.id].joined_communities
        assert_linked(communities, users)

    @pytest.mark.asyncio
    async def test_join_twice_is_conflict_and_state_unchanged(self, engine, communities, users, make_community, alice, bob):
        c = make_community("Python Devs", alice)
        updated = await engine.join(c, bob.id, "bob")

        with pytest.raises(Conflict):
            await engine.join(updated, bob.id, "bob")

        stored = communities.docs[c.id]
        assert stored.member_count == 2
        assert [m.user for m in stored.members].count(bob.id) == 1
        assert users.docs[bob.id].joined_communities.count(c.id) == 1

    @pytest.mark.asyncio
    async def test_stale_snapshot_join_is_conflict(self, engine, communities, make_community, alice, bob):
        c = make_community("Python Devs", alice)
        await engine.join(c, bob.id, "bob")

        # `c` predates the first join, so only the conditional write catches it
        with pytest.raises(Conflict):
            await engine.join(c, bob.id, "bob")
        assert communities.docs[c.id].member_count == 2

    @pytest.mark.asyncio
    async def test_banned_user_rejected_before_member_check(self, engine, make_community, alice, bob):
        c = make_community("Python Devs", alice, banned_users=[bob.id])
        with pytest.raises(Forbidden) as exc:
            await engine.join(c, bob.id, "bob")
        assert "banned" in exc.value.message

    @pytest.mark.asyncio
    async def test_private_requires_invitation(self, engine, communities, users, make_community, alice, bob):
        c = make_community("Secret", alice, visibility="private")
        with pytest.raises(Forbidden) as exc:
            await engine.join(c, bob.id, "bob")
        assert "invited" in exc.value.message
        assert not communities.docs[c.id].is_member(bob.id)
        assert users.docs[bob.id].joined_communities == []

    @pytest.mark.asyncio
    async def test_is_private_flag_alone_gates(self, engine, communities, make_community, alice, bob):
        c = make_community("Secret", alice)
        communities.docs[c.id].is_private = True
        c = communities.docs[c.id].model_copy(deep=True)
        with pytest.raises(Forbidden):
            await engine.join(c, bob.id, "bob")

    @pytest.mark.asyncio
    async def test_private_join_consumes_invitation(self, engine, invitations, notifications, make_community, alice, bob):
        c = make_community("Secret", alice, visibility="private")
        invite = await invitations.invite(c, alice, "alice", bob.email)

        updated = await engine.join(c, bob.id, "bob")

        assert updated.is_member(bob.id)
        stored = notifications.docs[invite.id]
        assert stored.status == "accepted"
        assert stored.read is True
        assert await notifications.find_pending_invite(bob.id, c.id) is None

    @pytest.mark.asyncio
    async def test_hidden_without_invitation_is_not_found(self, engine, communities, users, notifications, make_community, alice, bob):
        c = make_community("Shadow", alice, visibility="hidden")
        with pytest.raises(NotFound):
            await engine.join(c, bob.id, "bob")
        assert not communities.docs[c.id].is_member(bob.id)
        assert users.docs[bob.id].joined_communities == []
        assert notifications.docs == {}

    @pytest.mark.asyncio
    async def test_hidden_join_with_invitation(self, engine, invitations, notifications, make_community, alice, bob):
        c = make_community("Shadow", alice, visibility="hidden")
        invite = await invitations.invite(c, alice, "alice", bob.email)

        updated = await engine.join(c, bob.id, "bob")

        assert updated.is_member(bob.id)
        assert notifications.docs[invite.id].status == "accepted"

    @pytest.mark.asyncio
    async def test_invite_for_other_community_does_not_open_gate(self, engine, invitations, make_community, alice, bob):
        c = make_community("Secret", alice, visibility="private")
        other = make_community("Other Secret", alice, visibility="private")
        await invitations.invite(other, alice, "alice", bob.email)
        with pytest.raises(Forbidden):
            await engine.join(c, bob.id, "bob")

    @pytest.mark.asyncio
    async def test_join_notifies_user_and_admin(self, engine, notifications, make_community, alice, bob):
        c = make_community("Python Devs", alice)
        await engine.join(c, bob.id, "bob")

        welcome = notifications.of_type(bob.id, "welcome")
        assert len(welcome) == 1
        assert welcome[0].data["communityId"] == c.id
        admin_info = notifications.of_type(alice.id, "info")
        assert len(admin_info) == 1
        assert "bob" in admin_info[0].message

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_undo_join(self, engine, communities, users, notifications, make_community, alice, bob):
        c = make_community("Python Devs", alice)
        notifications.fail_creates = True

        updated = await engine.join(c, bob.id, "bob")

        assert updated.member_count == 2
        assert notifications.docs == {}
        assert_linked(communities, users)

    @pytest.mark.asyncio
    async def test_user_write_failure_rolls_back_community(self, engine, communities, users, make_community, alice, bob):
        c = make_community("Python Devs", alice)
        users.fail_writes = True

        with pytest.raises(RuntimeError):
            await engine.join(c, bob.id, "bob")

        stored = communities.docs[c.id]
        assert not stored.is_member(bob.id)
        assert stored.member_count == 1


# ---------------------------------------------------------------------------
# Leave
# ---------------------------------------------------------------------------
class TestLeave:
    @pytest.mark.asyncio
    async def test_member_leaves(self, engine, communities, users, notifications, make_community, alice, bob):
        c = make_community("Python Devs", alice, members=[bob])

        updated = await engine.leave(c, bob.id, "bob")

        assert updated.member_count == 1
        assert not updated.is_member(bob.id)
        assert c.id not in users.docs[bob.id].joined_communities
        assert_linked(communities, users)
        assert len(notifications.of_type(bob.id, "info")) == 1
        assert any("left" in n.message for n in notifications.of_type(alice.id, "info"))

    @pytest.mark.asyncio
    async def test_non_member_cannot_leave(self, engine, make_community, alice, bob):
        c = make_community("Python Devs", alice)
        with pytest.raises(ValidationFailed):
            await engine.leave(c, bob.id, "bob")

    @pytest.mark.asyncio
    async def test_non_member_leaving_hidden_community_is_not_found(self, engine, make_community, alice, bob):
        c = make_community("Shadow", alice, visibility="hidden")
        with pytest.raises(NotFound):
            await engine.leave(c, bob.id, "bob")

    @pytest.mark.asyncio
    async def test_sole_admin_cannot_leave(self, engine, communities, make_community, alice):
        c = make_community("Python Devs", alice)
        with pytest.raises(Forbidden) as exc:
            await engine.leave(c, alice.id, "alice")
        assert "sole admin" in exc.value.message
        assert communities.docs[c.id].member_count == 1

    @pytest.mark.asyncio
    async def test_admin_leaving_hands_over_to_moderator(self, engine, communities, users, notifications, make_community, alice, bob, carol):
        c = make_community("Python Devs", alice, members=[bob, (carol, "moderator")])

        updated = await engine.leave(c, alice.id, "alice")

        assert updated.admin == carol.id
        assert updated.role_of(carol.id) == "admin"
        assert updated.member_count == 2
        assert_linked(communities, users)
        assert any(n.title.endswith("Admin") for n in notifications.of_type(carol.id, "community"))

    @pytest.mark.asyncio
    async def test_admin_leaving_hands_over_to_earliest_member(self, engine, communities, users, make_community, alice, bob, carol):
        c = make_community("Python Devs", alice, members=[bob, carol])
        updated = await engine.leave(c, alice.id, "alice")
        assert updated.admin == bob.id
        assert_linked(communities, users)

    @pytest.mark.asyncio
    async def test_user_write_failure_restores_member(self, engine, communities, users, make_community, alice, bob):
        c = make_community("Python Devs", alice, members=[bob])
        users.fail_writes = True

        with pytest.raises(RuntimeError):
            await engine.leave(c, bob.id, "bob")

        stored = communities.docs[c.id]
        assert stored.is_member(bob.id)
        assert stored.member_count == 2


# ---------------------------------------------------------------------------
# Administrative add / remove
# ---------------------------------------------------------------------------
class TestAdministrative:
    @pytest.mark.asyncio
    async def test_add_member_is_idempotent(self, engine, communities, users, make_community, alice, bob):
        c = make_community("Python Devs", alice)

        once = await engine.add_member(c, bob.id, "moderator")
        twice = await engine.add_member(once, bob.id, "moderator")

        assert twice.member_count == once.member_count == 2
        assert twice.role_of(bob.id) == "moderator"
        assert users.docs[bob.id].joined_communities.count(c.id) == 1
        assert_linked(communities, users)

    @pytest.mark.asyncio
    async def test_add_member_bypasses_invite_gate_and_expires_invite(self, engine, invitations, notifications, communities, users, make_community, alice, bob):
        c = make_community("Secret", alice, visibility="private")
        invite = await invitations.invite(c, alice, "alice", bob.email)

        updated = await engine.add_member(c, bob.id)

        assert updated.is_member(bob.id)
        assert notifications.docs[invite.id].status == "expired"
        assert_linked(communities, users)

    @pytest.mark.asyncio
    async def test_add_member_skips_banned(self, engine, communities, make_community, alice, bob):
        c = make_community("Python Devs", alice, banned_users=[bob.id])
        updated = await engine.add_member(c, bob.id)
        assert not updated.is_member(bob.id)
        assert communities.docs[c.id].member_count == 1

    @pytest.mark.asyncio
    async def test_add_member_skips_user_banned_after_read(self, engine, communities, users, make_community, alice, bob):
        c = make_community("Python Devs", alice)
        # Ban lands between the caller's read and the write
        communities.docs[c.id].banned_users.append(bob.id)

        updated = await engine.add_member(c, bob.id)

        assert not updated.is_member(bob.id)
        assert communities.docs[c.id].member_count == 1
        assert users.docs[bob.id].joined_communities == []
        assert_linked(communities, users)

    @pytest.mark.asyncio
    async def test_listing_lookup_omits_ban_list(self, communities, make_community, alice, bob):
        c = make_community("Python Devs", alice, banned_users=[bob.id])
        (listed,) = await communities.find_by_ids([c.id])
        full = await communities.get_by_id(c.id)
        assert listed.banned_users == []
        assert full.banned_users == [bob.id]

    @pytest.mark.asyncio
    async def test_remove_absent_member_is_noop(self, engine, communities, users, make_community, alice, bob):
        c = make_community("Python Devs", alice)
        updated = await engine.remove_member(c, bob.id)
        assert updated.member_count == 1
        assert_linked(communities, users)

    @pytest.mark.asyncio
    async def test_remove_repairs_dangling_user_reference(self, engine, communities, users, make_community, alice, bob):
        c = make_community("Python Devs", alice)
        users.docs[bob.id].joined_communities.append(c.id)

        await engine.remove_member(c, bob.id)

        assert c.id not in users.docs[bob.id].joined_communities
        assert_linked(communities, users)

    @pytest.mark.asyncio
    async def test_remove_sole_admin_dissolves_community(self, engine, communities, users, make_community, alice):
        c = make_community("Python Devs", alice)

        updated = await engine.remove_member(c, alice.id)

        assert updated.is_active is False
        assert updated.member_count == 0
        assert users.docs[alice.id].joined_communities == []

    @pytest.mark.asyncio
    async def test_update_member_count_repairs_drift(self, engine, communities, make_community, alice, bob):
        c = make_community("Python Devs", alice, members=[bob])
        communities.docs[c.id].member_count = 7
        updated = await engine.update_member_count(c)
        assert updated.member_count == 2


# ---------------------------------------------------------------------------
# Creation and dissolution
# ---------------------------------------------------------------------------
class TestLifecycle:
    @pytest.mark.asyncio
    async def test_create_makes_creator_sole_admin_member(self, engine, communities, users, notifications, alice):
        c = await engine.create_community("Rustaceans", "rustaceans", "Rust talk", ["rust"], False, alice)

        assert c.admin == alice.id
        assert c.member_count == 1
        assert c.members[0].user == alice.id and c.members[0].role == "admin"
        assert c.visibility == "public" and c.is_private is False
        assert c.id in users.docs[alice.id].joined_communities
        assert len(notifications.of_type(alice.id, "community")) == 1
        assert_linked(communities, users)

    @pytest.mark.asyncio
    async def test_create_private_syncs_visibility(self, engine, alice):
        c = await engine.create_community("Hidden Gems", "hidden-gems", "shh", ["misc"], True, alice)
        assert c.visibility == "private" and c.is_private is True

    @pytest.mark.asyncio
    async def test_duplicate_name_is_conflict(self, engine, alice, bob):
        await engine.create_community("Rustaceans", "rustaceans", "Rust talk", ["rust"], False, alice)
        with pytest.raises(Conflict):
            await engine.create_community("rustaceans", "rustaceans", "again", ["rust"], False, bob)

    @pytest.mark.asyncio
    async def test_dissolve_unlinks_every_member(self, engine, communities, users, make_community, alice, bob, carol):
        c = make_community("Python Devs", alice, members=[bob, carol])

        gone = await engine.dissolve(c)

        assert gone.is_active is False
        for u in (alice, bob, carol):
            assert c.id not in users.docs[u.id].joined_communities
        assert_linked(communities, users)
        with pytest.raises(NotFound):
            await engine.dissolve(c)

    @pytest.mark.asyncio
    async def test_name_reusable_after_dissolve(self, engine, make_community, alice):
        c = make_community("Python Devs", alice)
        await engine.dissolve(c)
        again = await engine.create_community("Python Devs", "python-devs", "v2", ["python"], False, alice)
        assert again.id != c.id


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_concrete_public_scenario(engine, communities, users, alice, bob):
    c = await engine.create_community("C", "c", "about c", ["misc"], False, alice)

    c = await engine.join(c, bob.id, "bob")
    assert c.member_count == 2

    with pytest.raises(Conflict):
        await engine.join(c, bob.id, "bob")

    c = await engine.leave(c, bob.id, "bob")
    assert c.member_count == 1
    assert not c.is_member(bob.id)
    assert c.id not in users.docs[bob.id].joined_communities

    with pytest.raises(Forbidden):
        await engine.leave(c, alice.id, "alice")
    assert_linked(communities, users)


@pytest.mark.asyncio
async def test_mixed_sequence_keeps_invariants(engine, communities, users, make_community, alice, bob, carol):
    c = make_community("Python Devs", alice)
    c = await engine.join(c, bob.id, "bob")
    c = await engine.add_member(c, carol.id, "moderator")
    c = await engine.remove_member(c, bob.id)
    c = await engine.join(c, bob.id, "bob")
    c = await engine.leave(c, alice.id, "alice")
    c = await engine.add_member(c, alice.id)
    assert_linked(communities, users)
    assert c.admin == carol.id
    assert c.member_count == 3


def test_notification_model_defaults():
    n = NotificationModel(user=str(ObjectId()), type="info")
    assert n.read is False and n.status is None and not n.is_pending_invite
