"""Integration tests for RemoteStorageAdapter: authentication, roles and tag sanitizing."""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import select

from src.strategist.adapters.remote import RemoteStorageAdapter
from src.strategist.core.auth import SessionAuthProvider
from src.strategist.core.db import get_session_factory
from src.strategist.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    StorageError,
    ValidationFailedError,
)
from src.strategist.models import ProjectPermission, ProjectRole
from src.strategist.services.project_repository import ProjectRepository
from tests.factories import OTHER_ID, OWNER_ID, CustomObjectFactory, TagFactory

pytestmark = pytest.mark.integration


def switch_user(auth: SessionAuthProvider, user_id: str) -> None:
    auth.sign_out()
    auth.sign_in(user_id)


class TestAuthentication:
    """Every call needs a signed-in user."""

    async def test_no_session(self, remote_adapter, auth):
        auth.sign_out()

        result = await remote_adapter.get_all_projects()

        assert isinstance(result.error, AuthenticationError)
        assert result.error.message == "No active session. Please log in."

    async def test_nested_edit_without_session(self, remote_adapter, remote_project, auth):
        auth.sign_out()

        result = await remote_adapter.add_custom_object(
            remote_project["id"], CustomObjectFactory.document()
        )

        assert isinstance(result.error, AuthenticationError)


class TestProjectCrud:
    """Tests for project create, read, update and delete."""

    async def test_create_sets_owner_and_shape(self, remote_project):
        assert remote_project["ownerId"] == OWNER_ID
        assert remote_project["status"] == "draft"
        assert remote_project["dataModel"]["objects"] == []
        assert remote_project["tags"] == {"library": [], "custom": []}
        assert remote_project["createdAt"].endswith("Z")

    async def test_create_rejects_invalid_payload(self, remote_adapter):
        result = await remote_adapter.create_project({"name": ""})

        assert isinstance(result.error, ValidationFailedError)
        assert result.validation_errors[0].field == "name"

    async def test_any_user_can_read(self, remote_adapter, remote_project, auth):
        switch_user(auth, OTHER_ID)

        listed = await remote_adapter.get_all_projects()
        fetched = await remote_adapter.get_project(remote_project["id"])

        assert [p["id"] for p in listed.data] == [remote_project["id"]]
        assert fetched.data["name"] == "Acme CU"

    async def test_get_missing(self, remote_adapter):
        result = await remote_adapter.get_project("missing")

        assert isinstance(result.error, NotFoundError)

    async def test_owner_updates(self, remote_adapter, remote_project):
        result = await remote_adapter.update_project(
            remote_project["id"],
            {"name": "Acme Credit Union", "clientProfile": {"basicInfo": {"size": "large"}}},
        )

        assert result.error is None
        assert result.data["name"] == "Acme Credit Union"
        assert result.data["clientProfile"] == {"basicInfo": {"size": "large"}}
        assert result.data["dataModel"] == remote_project["dataModel"]
        assert result.data["updatedAt"] >= remote_project["updatedAt"]

    async def test_update_ignores_unknown_keys(self, remote_adapter, remote_project):
        result = await remote_adapter.update_project(
            remote_project["id"], {"id": "hijack", "ownerId": OTHER_ID, "status": "active"}
        )

        assert result.data["id"] == remote_project["id"]
        assert result.data["ownerId"] == OWNER_ID
        assert result.data["status"] == "active"

    async def test_owner_deletes_and_grants_go_with_it(
        self, remote_adapter, remote_project, session_factory
    ):
        await remote_adapter.set_permission(remote_project["id"], OTHER_ID, "editor")

        result = await remote_adapter.delete_project(remote_project["id"])

        assert result.data["id"] == remote_project["id"]
        assert (await remote_adapter.get_all_projects()).data == []
        async with session_factory() as session:
            grants = (await session.execute(select(ProjectPermission))).scalars().all()
        assert grants == []


class TestRoles:
    """Edits need editor or above, deleting and granting need owner."""

    async def test_stranger_cannot_edit(self, remote_adapter, remote_project, auth):
        switch_user(auth, OTHER_ID)

        result = await remote_adapter.update_project(remote_project["id"], {"name": "Mine now"})

        assert isinstance(result.error, AuthorizationError)
        assert result.error.message == "Permission denied: editor role required, you are none"
        switch_user(auth, OWNER_ID)
        assert (await remote_adapter.get_project(remote_project["id"])).data["name"] == "Acme CU"

    async def test_viewer_cannot_add_objects(self, remote_adapter, remote_project, auth):
        await remote_adapter.set_permission(remote_project["id"], OTHER_ID, ProjectRole.VIEWER)
        switch_user(auth, OTHER_ID)

        result = await remote_adapter.add_custom_object(
            remote_project["id"], CustomObjectFactory.document()
        )

        assert result.error.message == "Permission denied: editor role required, you are viewer"
        project = await remote_adapter.get_project(remote_project["id"])
        assert project.data["dataModel"]["objects"] == []

    async def test_editor_can_edit_but_not_delete(self, remote_adapter, remote_project, auth):
        await remote_adapter.set_permission(remote_project["id"], OTHER_ID, "editor")
        switch_user(auth, OTHER_ID)

        added = await remote_adapter.add_custom_object(
            remote_project["id"], CustomObjectFactory.document(name="branch")
        )
        deleted = await remote_adapter.delete_project(remote_project["id"])

        assert added.error is None
        assert added.data["name"] == "branch"
        assert deleted.error.message == "Permission denied: owner role required, you are editor"

    async def test_regrant_updates_role(self, remote_adapter, remote_project, auth):
        await remote_adapter.set_permission(remote_project["id"], OTHER_ID, "viewer")
        await remote_adapter.set_permission(remote_project["id"], OTHER_ID, "editor")
        switch_user(auth, OTHER_ID)

        role = await remote_adapter.get_user_role(remote_project["id"])

        assert role.data == ProjectRole.EDITOR

    async def test_owner_role(self, remote_adapter, remote_project):
        assert (await remote_adapter.get_user_role(remote_project["id"])).data == ProjectRole.OWNER

    async def test_only_owner_grants(self, remote_adapter, remote_project, auth):
        await remote_adapter.set_permission(remote_project["id"], OTHER_ID, "editor")
        switch_user(auth, OTHER_ID)

        result = await remote_adapter.set_permission(remote_project["id"], "user-third", "editor")

        assert isinstance(result.error, AuthorizationError)

    async def test_unknown_role_rejected(self, remote_adapter, remote_project):
        result = await remote_adapter.set_permission(remote_project["id"], OTHER_ID, "admin")

        assert isinstance(result.error, ValidationFailedError)


class TestTagSanitizing:
    """Malformed stored tags are dropped on read and reported as warnings."""

    async def test_malformed_tags_dropped(self, remote_adapter):
        good = TagFactory.document(name="HighValue")
        created = await remote_adapter.create_project(
            {
                "name": "Acme CU",
                "tags": {"library": [good], "custom": [good, {"id": "broken"}, "junk"]},
            }
        )

        result = await remote_adapter.get_project(created.data["id"])

        assert result.data["tags"]["library"] == [good]
        assert result.data["tags"]["custom"] == [good]
        assert result.warnings == [
            {"projectId": created.data["id"], "collection": "custom", "count": 2}
        ]

    async def test_clean_tags_have_no_warnings(self, remote_adapter, remote_project):
        result = await remote_adapter.get_all_projects()

        assert result.warnings == []


class TestNestedEntities:
    """Object and field edits go through the project document."""

    async def test_field_lifecycle(self, remote_adapter, remote_project):
        project_id = remote_project["id"]
        obj = (await remote_adapter.add_custom_object(project_id, CustomObjectFactory.document())).data

        field = (
            await remote_adapter.add_field(project_id, obj["id"], {"name": "email", "label": "Email"})
        ).data
        updated = await remote_adapter.update_field(
            project_id, obj["id"], field["id"], {"label": "E-mail"}
        )
        deleted = await remote_adapter.delete_field(project_id, obj["id"], field["id"])

        assert updated.data["label"] == "E-mail"
        assert deleted.data["id"] == field["id"]
        project = await remote_adapter.get_project(project_id)
        assert project.data["dataModel"]["objects"][0]["fields"] == []

    async def test_missing_project_reported_before_role_check(self, remote_adapter):
        result = await remote_adapter.delete_custom_object("missing", "o1")

        assert isinstance(result.error, NotFoundError)

    async def test_repository_over_remote_store(self, remote_adapter, remote_project):
        repository = ProjectRepository(remote_adapter)
        payload = {"name": "member_object", "label": "Member", "apiName": "p_client_member_object"}

        first = await repository.add_custom_object(remote_project["id"], payload)
        second = await repository.add_custom_object(
            remote_project["id"], {**payload, "name": "Member_Object"}
        )

        assert first.error is None
        assert second.error.message == "An object with this name already exists"


class TestStorageFailures:
    """Driver errors come back as StorageError."""

    @pytest.fixture
    async def empty_engine(self) -> AsyncGenerator[AsyncEngine]:
        engine = create_async_engine(
            "sqlite+aiosqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        yield engine
        await engine.dispose()

    async def test_missing_tables(self, auth, empty_engine):
        adapter = RemoteStorageAdapter(auth, get_session_factory(empty_engine))

        result = await adapter.get_all_projects()

        assert isinstance(result.error, StorageError)
        assert result.error.message == "Database error during list projects"
        assert result.error.cause is not None
