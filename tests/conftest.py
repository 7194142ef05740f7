# tests/conftest.py
from __future__ import annotations

import os
from typing import Callable, Iterator

# Must be set before discussify.config is imported
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-for-pytest-only-" + "x" * 40)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from discussify.main import app as fastapi_app  # noqa: E402
from discussify.models import CommunityModel, MemberModel, UserModel  # noqa: E402
from discussify.services.invitations import InvitationWorkflow  # noqa: E402
from discussify.services.membership import MembershipEngine  # noqa: E402
from discussify.utils import deps  # noqa: E402
from discussify.utils.auth_utils import create_access_token  # noqa: E402

from tests.fakes import (  # noqa: E402
    InMemoryCommunityRepository,
    InMemoryNotificationRepository,
    InMemoryPostRepository,
    InMemoryUserRepository,
)


# ---------------------------------------------------------------------------
# Repositories and services
# ---------------------------------------------------------------------------
@pytest.fixture()
def communities() -> InMemoryCommunityRepository:
    return InMemoryCommunityRepository()


@pytest.fixture()
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture()
def notifications() -> InMemoryNotificationRepository:
    return InMemoryNotificationRepository()


@pytest.fixture()
def posts() -> InMemoryPostRepository:
    return InMemoryPostRepository()


@pytest.fixture()
def engine(communities, users, notifications) -> MembershipEngine:
    return MembershipEngine(communities, users, notifications)


@pytest.fixture()
def invitations(engine, users, notifications) -> InvitationWorkflow:
    return InvitationWorkflow(engine, users, notifications)


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_user(users) -> Callable[..., UserModel]:
    def _make(username: str, **kwargs) -> UserModel:
        kwargs.setdefault("email", f"{username}@example.com")
        return users.seed(UserModel(username=username, **kwargs))
    return _make


@pytest.fixture()
def make_community(communities, users) -> Callable[..., CommunityModel]:
    """Seed a community owned by `admin`, with both sides of every membership linked."""
    def _make(name: str, admin: UserModel, members=(), visibility: str = "public", **kwargs) -> CommunityModel:
        entries = [MemberModel(user=admin.id, role="admin")]
        for m in members:
            user, role = m if isinstance(m, tuple) else (m, "member")
            entries.append(MemberModel(user=user.id, role=role))
        community = communities.seed(CommunityModel(
            name=name,
            slug=name.lower().replace(" ", "-"),
            admin=admin.id,
            members=entries,
            member_count=len(entries),
            visibility=visibility,
            is_private=visibility == "private",
            **kwargs,
        ))
        for entry in entries:
            users.docs[entry.user].joined_communities.append(community.id)
        return community
    return _make


@pytest.fixture()
def alice(make_user) -> UserModel:
    return make_user("alice", interests=["python"])


@pytest.fixture()
def bob(make_user) -> UserModel:
    return make_user("bob")


@pytest.fixture()
def carol(make_user) -> UserModel:
    return make_user("carol")


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
@pytest.fixture()
def client(communities, users, notifications, posts) -> Iterator[TestClient]:
    fastapi_app.dependency_overrides[deps.get_community_repository] = lambda: communities
    fastapi_app.dependency_overrides[deps.get_user_repository] = lambda: users
    fastapi_app.dependency_overrides[deps.get_notification_repository] = lambda: notifications
    fastapi_app.dependency_overrides[deps.get_post_repository] = lambda: posts
    try:
        # Not used as a context manager: startup would try to build Mongo indexes
        yield TestClient(fastapi_app, raise_server_exceptions=False)
    finally:
        fastapi_app.dependency_overrides.clear()


def auth(user: UserModel) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def assert_linked(communities: InMemoryCommunityRepository, users: InMemoryUserRepository) -> None:
    """Both sides of every membership agree and every cached count matches."""
    for c in communities.docs.values():
        assert c.member_count == len(c.members)
        for m in c.members:
            assert c.id in users.docs[m.user].joined_communities
        if c.is_active and c.members:
            assert c.member_entry(c.admin) is not None
            assert c.member_entry(c.admin).role == "admin"
    for u in users.docs.values():
        for cid in u.joined_communities:
            assert communities.docs[cid].is_member(u.id)
