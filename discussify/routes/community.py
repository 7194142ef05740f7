# discussify/routes/community.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..controllers.community_controller import (
    get_user_communities,
    get_popular_communities,
    get_recommended_communities,
    get_discoverable_communities,
    create_community,
    get_community_information,
    update_community,
    join_community,
    leave_community,
    invite_member,
    revoke_invitation,
)
from ..models import UserModel
from ..repositories import CommunityRepository
from ..schemas.community_schema import (
    CommunityCreateRequest,
    CommunityUpdateRequest,
    InviteRequest,
    RevokeInviteRequest,
)
from ..services.invitations import InvitationWorkflow
from ..services.membership import MembershipEngine
from ..utils.auth_utils import get_current_user, get_optional_user
from ..utils.deps import get_community_repository, get_membership_engine, get_invitation_workflow

router = APIRouter(prefix="/communities", tags=["Communities"])


# ---------- STATIC PATHS FIRST ----------
@router.get("/my-communities", summary="Communities the caller is a member of")
async def my_communities_route(
    current_user: UserModel = Depends(get_current_user),
    communities: CommunityRepository = Depends(get_community_repository),
):
    return await get_user_communities(current_user, communities)


@router.get("/popular", summary="Most populous, then newest, public communities")
async def popular_route(
    limit: Optional[int] = Query(None, ge=1),
    communities: CommunityRepository = Depends(get_community_repository),
):
    return await get_popular_communities(limit, communities)


@router.get("/recommended", summary="Public communities matching the caller's interests")
async def recommended_route(
    current_user: UserModel = Depends(get_current_user),
    communities: CommunityRepository = Depends(get_community_repository),
):
    return await get_recommended_communities(current_user, communities)


@router.get("/discover/{user_id}", summary="Public communities the user has not joined")
async def discover_route(
    user_id: str,
    limit: Optional[int] = Query(None, ge=1),
    current_user: UserModel = Depends(get_current_user),
    communities: CommunityRepository = Depends(get_community_repository),
):
    return await get_discoverable_communities(user_id, limit, communities)


@router.post("/create", status_code=status.HTTP_201_CREATED, summary="Create a community")
async def create_route(
    payload: CommunityCreateRequest,
    current_user: UserModel = Depends(get_current_user),
    engine: MembershipEngine = Depends(get_membership_engine),
):
    return await create_community(payload, current_user, engine)


# ---------- PARAMETERIZED PATHS ----------
@router.get("/{id_or_slug}", summary="Community detail (reduced for private non-members)")
async def detail_route(
    id_or_slug: str,
    current_user: Optional[UserModel] = Depends(get_optional_user),
    engine: MembershipEngine = Depends(get_membership_engine),
):
    return await get_community_information(id_or_slug, current_user, engine)


@router.patch("/{id_or_slug}", summary="Edit community (community admin only)")
async def update_route(
    id_or_slug: str,
    payload: CommunityUpdateRequest,
    current_user: UserModel = Depends(get_current_user),
    engine: MembershipEngine = Depends(get_membership_engine),
):
    return await update_community(id_or_slug, payload, current_user, engine)


@router.post("/{id_or_slug}/join", summary="Join a community")
async def join_route(
    id_or_slug: str,
    current_user: UserModel = Depends(get_current_user),
    engine: MembershipEngine = Depends(get_membership_engine),
):
    return await join_community(id_or_slug, current_user, engine)


@router.post("/{id_or_slug}/leave", summary="Leave a community")
async def leave_route(
    id_or_slug: str,
    current_user: UserModel = Depends(get_current_user),
    engine: MembershipEngine = Depends(get_membership_engine),
):
    return await leave_community(id_or_slug, current_user, engine)


@router.post("/{id_or_slug}/invite", summary="Invite a platform user by email (admins/moderators)")
async def invite_route(
    id_or_slug: str,
    payload: InviteRequest,
    current_user: UserModel = Depends(get_current_user),
    engine: MembershipEngine = Depends(get_membership_engine),
    invitations: InvitationWorkflow = Depends(get_invitation_workflow),
):
    return await invite_member(id_or_slug, payload, current_user, engine, invitations)


@router.post("/{id_or_slug}/invite/revoke", summary="Revoke a pending invitation")
async def revoke_invite_route(
    id_or_slug: str,
    payload: RevokeInviteRequest,
    current_user: UserModel = Depends(get_current_user),
    engine: MembershipEngine = Depends(get_membership_engine),
    invitations: InvitationWorkflow = Depends(get_invitation_workflow),
):
    return await revoke_invitation(id_or_slug, payload, current_user, engine, invitations)
