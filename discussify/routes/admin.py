# discussify/routes/admin.py
from fastapi import APIRouter, Depends

from ..controllers import admin_controller
from ..models import UserModel
from ..repositories import PostRepository
from ..schemas.community_schema import AdminCommunityUpdateRequest, AdminUserUpdateRequest
from ..services.membership import MembershipEngine
from ..utils.auth_utils import get_current_admin_user
from ..utils.deps import get_membership_engine, get_post_repository

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/analytics")
async def analytics_route(
    admin: UserModel = Depends(get_current_admin_user),
    engine: MembershipEngine = Depends(get_membership_engine),
    posts: PostRepository = Depends(get_post_repository),
):
    return await admin_controller.get_app_analytics(engine, posts)


@router.get("/communities")
async def list_communities_route(
    page: int = 1,
    limit: int = 20,
    admin: UserModel = Depends(get_current_admin_user),
    engine: MembershipEngine = Depends(get_membership_engine),
):
    return await admin_controller.get_all_communities(page, limit, engine)


@router.post("/communities/reap", summary="Purge long soft-deleted communities")
async def reap_communities_route(
    admin: UserModel = Depends(get_current_admin_user),
    engine: MembershipEngine = Depends(get_membership_engine),
):
    return await admin_controller.reap_communities(engine)


@router.patch("/communities/{community_id}")
async def update_community_route(
    community_id: str,
    payload: AdminCommunityUpdateRequest,
    admin: UserModel = Depends(get_current_admin_user),
    engine: MembershipEngine = Depends(get_membership_engine),
    posts: PostRepository = Depends(get_post_repository),
):
    return await admin_controller.update_community(community_id, payload, engine, posts)


@router.delete("/communities/{community_id}")
async def delete_community_route(
    community_id: str,
    admin: UserModel = Depends(get_current_admin_user),
    engine: MembershipEngine = Depends(get_membership_engine),
    posts: PostRepository = Depends(get_post_repository),
):
    return await admin_controller.delete_community(community_id, engine, posts)


@router.get("/users")
async def list_users_route(
    page: int = 1,
    limit: int = 20,
    admin: UserModel = Depends(get_current_admin_user),
    engine: MembershipEngine = Depends(get_membership_engine),
):
    return await admin_controller.get_all_users(page, limit, engine)


@router.patch("/users/{user_id}")
async def update_user_route(
    user_id: str,
    payload: AdminUserUpdateRequest,
    admin: UserModel = Depends(get_current_admin_user),
    engine: MembershipEngine = Depends(get_membership_engine),
):
    return await admin_controller.update_user_details(user_id, payload, admin, engine)


@router.delete("/users/{user_id}")
async def delete_user_route(
    user_id: str,
    admin: UserModel = Depends(get_current_admin_user),
    engine: MembershipEngine = Depends(get_membership_engine),
    posts: PostRepository = Depends(get_post_repository),
):
    return await admin_controller.delete_user(user_id, admin, engine, posts)
