import uuid

import pytest

from app.core.constants import DEFAULT_PERMISSION_SETS
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.enums import DeletionPolicy
from app.models.permission_set import CAPABILITY_FLAGS, PermissionSet
from app.services.department_service import create_department
from app.services.faculty_service import create_faculty_user
from app.services.permission_set_service import (
    create_permission_set,
    delete_permission_set,
    get_permission_set,
    initialize_default_permission_sets,
    list_permission_sets,
    update_permission_set,
)


@pytest.mark.asyncio
async def test_create_permission_set_defaults_unset_flags_to_false(db_session, college_id):
    permission_set = await create_permission_set(
        db_session, college_id, "Graders", "Grades only", {"can_grade_students": True}
    )

    flags = permission_set.flags()
    assert flags["can_grade_students"] is True
    assert sum(flags.values()) == 1
    assert set(flags) == set(CAPABILITY_FLAGS)


@pytest.mark.asyncio
async def test_create_permission_set_rejects_unknown_flag(db_session, college_id):
    with pytest.raises(ValidationError):
        await create_permission_set(db_session, college_id, "Broken", flags={"can_fly": True})


@pytest.mark.asyncio
async def test_permission_set_names_unique_per_college(db_session, college_id):
    await create_permission_set(db_session, college_id, "Graders")

    with pytest.raises(ConflictError):
        await create_permission_set(db_session, college_id, "graders")

    other = await create_permission_set(db_session, uuid.uuid4(), "Graders")
    assert other.name == "Graders"


@pytest.mark.asyncio
async def test_initialize_defaults_adds_four_and_is_idempotent(db_session, college_id):
    await create_permission_set(db_session, college_id, "Lab Supervisors")
    await create_permission_set(db_session, college_id, "Examiners")

    created = await initialize_default_permission_sets(db_session, college_id)
    assert len(created) == 4
    assert {ps.name for ps in created} == {d["name"] for d in DEFAULT_PERMISSION_SETS}
    assert len(await list_permission_sets(db_session, college_id)) == 2 + 4

    again = await initialize_default_permission_sets(db_session, college_id)
    assert again == []
    assert len(await list_permission_sets(db_session, college_id)) == 6


@pytest.mark.asyncio
async def test_default_full_access_grants_everything(db_session, college_id):
    created = await initialize_default_permission_sets(db_session, college_id)
    by_name = {ps.name: ps for ps in created}

    assert all(by_name["Full Access"].flags().values())
    view_only = by_name["View Only"].flags()
    assert view_only["can_view_analytics"] is True
    assert sum(view_only.values()) == 1


@pytest.mark.asyncio
async def test_update_permission_set_partial(db_session, college_id):
    permission_set = await create_permission_set(db_session, college_id, "Graders", flags={"can_grade_students": True})
    await create_permission_set(db_session, college_id, "Authors")

    updated = await update_permission_set(
        db_session, college_id, permission_set.id, flags={"can_view_analytics": True}
    )
    assert updated.can_view_analytics is True
    assert updated.can_grade_students is True

    with pytest.raises(ConflictError):
        await update_permission_set(db_session, college_id, permission_set.id, name="authors")


@pytest.mark.asyncio
async def test_delete_permission_set_refused_while_in_use(db_session, college_id):
    assert PermissionSet.deletion_policy == DeletionPolicy.HARD

    department = await create_department(db_session, college_id, "Anatomy", "ANAT")
    in_use = await create_permission_set(db_session, college_id, "In Use")
    unused = await create_permission_set(db_session, college_id, "Unused")
    await create_faculty_user(db_session, college_id, "a@college.edu", "Dr. A", department.id, in_use.id)

    with pytest.raises(ConflictError):
        await delete_permission_set(db_session, college_id, in_use.id)

    await delete_permission_set(db_session, college_id, unused.id)
    with pytest.raises(NotFoundError):
        await get_permission_set(db_session, college_id, unused.id)
