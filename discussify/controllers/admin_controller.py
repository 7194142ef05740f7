# discussify/controllers/admin_controller.py
from __future__ import annotations

import logging

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from ..config import COMMUNITY_REAP_AFTER_DAYS, MAX_LIST_LIMIT
from ..models import CommunityModel, UserModel, ROLE_MEMBER, ROLE_MODERATOR
from ..repositories import PostRepository
from ..schemas.community_schema import AdminCommunityUpdateRequest, AdminUserUpdateRequest
from ..services.membership import MembershipEngine
from ..utils.datetime_utils import days_ago, now_utc
from ..utils.errors import Conflict, Forbidden, NotFound, ValidationFailed, DUPLICATE_COMMUNITY_MESSAGE
from ..utils.responses import ok
from ..utils.text import slugify
from .community_controller import community_to_response

logger = logging.getLogger(__name__)


# ---------------------------
# Helpers
# ---------------------------

def _ensure_oid(id_str: str, what: str) -> str:
    if not ObjectId.is_valid(id_str):
        raise ValidationFailed(f"Invalid {what} ID format.")
    return id_str


def _page(page: int, limit: int):
    limit = max(1, min(limit, MAX_LIST_LIMIT))
    return (max(1, page) - 1) * limit, limit


async def _community_or_404(engine: MembershipEngine, community_id: str) -> CommunityModel:
    community = await engine.communities.get_by_id(_ensure_oid(community_id, "community"))
    if community is None or not community.is_active:
        raise NotFound("Community not found.")
    return community


async def _user_with_communities(engine: MembershipEngine, user: UserModel) -> dict:
    data = user.to_public()
    joined = await engine.communities.find_by_ids(user.joined_communities)
    data["joinedCommunities"] = [
        {"_id": c.id, "name": c.name, "slug": c.slug, "categories": c.categories} for c in joined
    ]
    return data


async def _dissolve_if_no_posts(engine: MembershipEngine, posts: PostRepository, community: CommunityModel) -> None:
    active_posts = await posts.count_active(community.id)
    if active_posts > 0:
        raise ValidationFailed(
            f"Cannot delete community with {active_posts} active discussions. "
            "Please delete or archive discussions first."
        )
    await engine.dissolve(community)


# ---------------------------
# Analytics
# ---------------------------

async def get_app_analytics(engine: MembershipEngine, posts: PostRepository) -> dict:
    return ok(data={
        "totalUsers": await engine.users.count_active(),
        "totalCommunities": await engine.communities.count_active(),
        "totalPosts": await posts.count_active(),
        "newUsersLastWeek": await engine.users.count_active(since=days_ago(7)),
    })


# ---------------------------
# Community management
# ---------------------------

async def get_all_communities(page: int, limit: int, engine: MembershipEngine) -> dict:
    skip, limit = _page(page, limit)
    communities = await engine.communities.list_active(skip, limit)
    total = await engine.communities.count_active()
    data = [community_to_response(c, include_members=False) for c in communities]
    return ok(data=data, count=len(data), total=total)


async def update_community(
    community_id: str,
    payload: AdminCommunityUpdateRequest,
    engine: MembershipEngine,
    posts: PostRepository,
) -> dict:
    community = await _community_or_404(engine, community_id)

    # Deactivation goes through the same path as deletion so memberships dissolve
    if payload.is_active is False:
        await _dissolve_if_no_posts(engine, posts, community)
        return ok("Community deactivated successfully.")

    fields: dict = {}
    if payload.name and payload.name != community.name:
        slug = slugify(payload.name)
        if not slug:
            raise ValidationFailed("Community name must contain letters or numbers.")
        fields["name"] = payload.name
        fields["slug"] = slug
    if payload.description:
        fields["description"] = payload.description
    if payload.categories:
        fields["categories"] = payload.categories
    if payload.visibility:
        fields["visibility"] = payload.visibility
        fields["isPrivate"] = payload.visibility == "private"

    if not fields:
        return ok("No changes.", data=community_to_response(community))

    try:
        updated = await engine.communities.update_fields(community.id, fields)
    except DuplicateKeyError:
        raise Conflict(DUPLICATE_COMMUNITY_MESSAGE)
    if updated is None:
        raise NotFound("Community not found.")
    return ok("Community updated successfully.", data=community_to_response(updated))


async def delete_community(community_id: str, engine: MembershipEngine, posts: PostRepository) -> dict:
    community = await _community_or_404(engine, community_id)
    await _dissolve_if_no_posts(engine, posts, community)
    return ok("Community deleted successfully.")


async def reap_communities(engine: MembershipEngine) -> dict:
    cutoff = days_ago(COMMUNITY_REAP_AFTER_DAYS)
    removed = await engine.communities.delete_inactive_before(cutoff)
    logger.info("Reaped %s communities soft-deleted before %s", removed, cutoff)
    return ok(f"{removed} deleted communities purged.", data={"removed": removed})


# ---------------------------
# User management
# ---------------------------

async def get_all_users(page: int, limit: int, engine: MembershipEngine) -> dict:
    skip, limit = _page(page, limit)
    users = await engine.users.list_active(skip, limit)
    total = await engine.users.count_active()
    data = [await _user_with_communities(engine, u) for u in users]
    return ok(data=data, count=len(data), total=total)


async def update_user_details(
    user_id: str,
    payload: AdminUserUpdateRequest,
    current_admin: UserModel,
    engine: MembershipEngine,
) -> dict:
    user = await engine.users.get_by_id(_ensure_oid(user_id, "user"))
    if user is None:
        raise NotFound("User not found.")

    # --- 1. ADMIN SELF-MODIFICATION GUARD ---
    if current_admin.id == user.id and (payload.role or payload.is_active is False):
        raise Forbidden("Admins cannot modify their own role or deactivate their own account via this panel.")

    # --- 2. USER FIELDS ---
    fields: dict = {}
    if payload.role:
        fields["role"] = payload.role
    if payload.bio is not None:
        fields["bio"] = payload.bio
    if payload.is_active is not None:
        fields["isActive"] = payload.is_active
    if fields:
        user = await engine.users.update_fields(user.id, fields) or user

    touched = {}

    # --- 3. COMMUNITY REMOVALS ---
    if payload.communities_to_remove:
        wanted = [c for c in payload.communities_to_remove if ObjectId.is_valid(c)]
        found = await engine.communities.find_by_ids(wanted)
        for community in found:
            touched[community.id] = await engine.remove_member(community, user.id)
        # References to communities that no longer exist are dropped as well
        for stale in set(wanted) - {c.id for c in found}:
            await engine.users.pull_joined(user.id, stale)

    # --- 4. COMMUNITY ADDITIONS ---
    if payload.communities_to_add:
        wanted = [c for c in payload.communities_to_add if ObjectId.is_valid(c)]
        member_role = ROLE_MODERATOR if user.role == "moderator" else ROLE_MEMBER
        for community_id in dict.fromkeys(wanted):
            # Full document: the ban list decides whether the add is skipped
            community = await engine.communities.get_by_id(community_id)
            if community is None or not community.is_active:
                continue
            touched[community.id] = await engine.add_member(community, user.id, member_role)

    # --- 5. COUNTS ---
    for community in touched.values():
        if community.is_active:
            await engine.update_member_count(community)

    refreshed = await engine.users.get_by_id(user.id)
    return ok("User details updated successfully.", data=await _user_with_communities(engine, refreshed))


async def delete_user(
    user_id: str,
    current_admin: UserModel,
    engine: MembershipEngine,
    posts: PostRepository,
) -> dict:
    _ensure_oid(user_id, "user")
    if current_admin.id == user_id:
        raise Forbidden("Admins cannot delete their own account.")

    user = await engine.users.get_by_id(user_id)
    if user is None or not user.is_active:
        raise NotFound("User not found.")

    # Memberships dissolve through the engine so admin rights are handed over
    for community in await engine.communities.list_for_member(user.id, include_hidden=True):
        await engine.remove_member(community, user.id)

    await engine.users.update_fields(user.id, {
        "isActive": False,
        "deletedAt": now_utc(),
        "joinedCommunities": [],
    })
    hidden_posts = await posts.soft_delete_by_author(user.id)
    logger.info("User %s deactivated; %s posts soft-deleted", user.id, hidden_posts)

    return ok("User deleted successfully.")
