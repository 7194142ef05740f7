# discussify/controllers/community_controller.py
from __future__ import annotations

import logging
from typing import Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from ..config import (
    POPULAR_COMMUNITIES_LIMIT,
    RECOMMENDED_COMMUNITIES_LIMIT,
    DISCOVER_COMMUNITIES_LIMIT,
    MAX_LIST_LIMIT,
)
from ..models import CommunityModel, UserModel
from ..repositories import CommunityRepository, UserRepository
from ..schemas.community_schema import (
    CommunityCreateRequest,
    CommunityUpdateRequest,
    InviteRequest,
    RevokeInviteRequest,
)
from ..services.invitations import InvitationWorkflow
from ..services.membership import MembershipEngine
from ..utils.errors import Conflict, Forbidden, NotFound, ValidationFailed, DUPLICATE_COMMUNITY_MESSAGE
from ..utils.responses import ok
from ..utils.text import moderate_text, slugify

logger = logging.getLogger(__name__)


# ---------------------------
# Helpers
# ---------------------------

def _clamp(limit: Optional[int], default: int) -> int:
    if not limit or limit < 1:
        return default
    return min(limit, MAX_LIST_LIMIT)


def _slug_or_400(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise ValidationFailed("Community name must contain letters or numbers.")
    return slug


def community_to_response(community: CommunityModel, include_members: bool = True) -> dict:
    """Public projection. The ban list never leaves the server."""
    exclude = {"banned_users"}
    if not include_members:
        exclude.add("members")
    return community.to_public(exclude=exclude)


def _reduced_projection(community: CommunityModel) -> dict:
    """What a non-member may see of a private community."""
    full = community.to_public(include={
        "id", "name", "description", "slug", "cover_image", "member_count",
        "categories", "admin", "created_at",
    })
    full.update({"isPrivate": True, "visibility": "private", "members": [], "rules": []})
    return full


async def _admin_preview(users: UserRepository, admin_id: str) -> dict:
    admin = await users.get_by_id(admin_id)
    if not admin:
        return {"_id": admin_id}
    return {"_id": admin.id, "username": admin.username, "avatar": admin.avatar}


def _list_response(communities, empty_message: str, include_members: bool = False) -> dict:
    data = [community_to_response(c, include_members=include_members) for c in communities]
    if not data:
        return ok(empty_message, data=[], count=0)
    return ok(data=data, count=len(data))


# ---------------------------
# Listings
# ---------------------------

async def get_user_communities(current_user: UserModel, communities: CommunityRepository) -> dict:
    joined = await communities.list_for_member(current_user.id)
    return _list_response(joined, "You have not joined any communities yet.", include_members=True)


async def get_popular_communities(limit: Optional[int], communities: CommunityRepository) -> dict:
    popular = await communities.list_popular(_clamp(limit, POPULAR_COMMUNITIES_LIMIT))
    return _list_response(popular, "No communities yet.")


async def get_recommended_communities(current_user: UserModel, communities: CommunityRepository) -> dict:
    if not current_user.interests:
        return ok("No interests found. Please update your profile to get recommendations.", data=[])
    recommended = await communities.list_recommended(
        current_user.interests, current_user.id, RECOMMENDED_COMMUNITIES_LIMIT
    )
    return _list_response(recommended, "No matching communities found.")


async def get_discoverable_communities(
    user_id: str,
    limit: Optional[int],
    communities: CommunityRepository,
) -> dict:
    if not ObjectId.is_valid(user_id):
        raise ValidationFailed("Invalid User ID format.")
    found = await communities.list_discoverable(user_id, _clamp(limit, DISCOVER_COMMUNITIES_LIMIT))
    return _list_response(found, "No communities to discover right now.", include_members=True)


# ---------------------------
# Create / Read / Update
# ---------------------------

async def create_community(
    payload: CommunityCreateRequest,
    current_user: UserModel,
    engine: MembershipEngine,
) -> dict:
    if not payload.name or not payload.description or not payload.categories:
        raise ValidationFailed("Please provide name, description, and categories.")

    # 🔎 Sanitize description before storing
    description = moderate_text(payload.description)["cleaned"]

    community = await engine.create_community(
        name=payload.name,
        slug=_slug_or_400(payload.name),
        description=description,
        categories=payload.categories,
        is_private=payload.is_private,
        creator=current_user,
    )
    return ok("Community created successfully.", data=community_to_response(community))


async def get_community_information(
    id_or_slug: str,
    current_user: Optional[UserModel],
    engine: MembershipEngine,
) -> dict:
    community = await engine.resolve_community(id_or_slug)

    is_insider = False
    if current_user is not None:
        is_insider = community.is_admin(current_user.id) or community.is_member(current_user.id)

    if community.visibility == "hidden" and not is_insider:
        raise NotFound("Community not found.")

    if community.visibility == "private" and not is_insider:
        data = _reduced_projection(community)
    else:
        data = community_to_response(community)

    data["admin"] = await _admin_preview(engine.users, community.admin)
    return ok(data=data)


async def update_community(
    id_or_slug: str,
    payload: CommunityUpdateRequest,
    current_user: UserModel,
    engine: MembershipEngine,
) -> dict:
    community = await engine.resolve_community(id_or_slug)

    if not community.is_admin(current_user.id):
        raise Forbidden("Only the community creator can edit community information.")

    fields: dict = {}
    if payload.name and payload.name != community.name:
        fields["name"] = payload.name
        fields["slug"] = _slug_or_400(payload.name)
    if payload.description:
        fields["description"] = moderate_text(payload.description)["cleaned"]
    if payload.categories:
        fields["categories"] = payload.categories
    if payload.is_private is not None:
        fields["isPrivate"] = payload.is_private
        fields["visibility"] = "private" if payload.is_private else "public"

    if not fields:
        return ok("No changes.", data=community_to_response(community))

    try:
        updated = await engine.communities.update_fields(community.id, fields)
    except DuplicateKeyError:
        raise Conflict(DUPLICATE_COMMUNITY_MESSAGE)
    if updated is None:
        raise NotFound("Community not found.")

    return ok("Community updated successfully.", data=community_to_response(updated))


# ---------------------------
# Membership
# ---------------------------

async def join_community(id_or_slug: str, current_user: UserModel, engine: MembershipEngine) -> dict:
    community = await engine.resolve_community(id_or_slug)
    updated = await engine.join(community, current_user, current_user.username)
    return ok(
        f"Successfully joined community: {updated.name}",
        data={"_id": updated.id, "slug": updated.slug, "memberCount": updated.member_count},
    )


async def leave_community(id_or_slug: str, current_user: UserModel, engine: MembershipEngine) -> dict:
    community = await engine.resolve_community(id_or_slug)
    updated = await engine.leave(community, current_user, current_user.username)
    return ok(
        f"Successfully left community: {updated.name}",
        data={"_id": updated.id, "slug": updated.slug, "memberCount": updated.member_count},
    )


async def invite_member(
    id_or_slug: str,
    payload: InviteRequest,
    current_user: UserModel,
    engine: MembershipEngine,
    invitations: InvitationWorkflow,
) -> dict:
    community = await engine.resolve_community(id_or_slug)
    await invitations.invite(community, current_user, current_user.username, payload.email)
    return ok(f"Invitation successfully sent to {payload.email}.")


async def revoke_invitation(
    id_or_slug: str,
    payload: RevokeInviteRequest,
    current_user: UserModel,
    engine: MembershipEngine,
    invitations: InvitationWorkflow,
) -> dict:
    if not ObjectId.is_valid(payload.user_id):
        raise ValidationFailed("Invalid User ID format.")
    community = await engine.resolve_community(id_or_slug)
    await invitations.revoke(community, current_user, payload.user_id)
    return ok("Invitation revoked.")
