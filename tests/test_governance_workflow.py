import pytest

from app.models.enums import AssignmentStatus, FacultyRole
from app.models.permission_set import CAPABILITY_FLAGS
from app.schemas.permission_set import NO_ACCESS
from app.services.department_service import assign_hod, create_department, get_department
from app.services.faculty_assignment_service import (
    effective_capabilities,
    list_assignments_for_faculty,
    remove_faculty_assignment,
)
from app.services.faculty_service import create_faculty_user, get_faculty
from app.services.permission_set_service import get_permission_set_by_name, initialize_default_permission_sets


@pytest.mark.asyncio
async def test_full_access_faculty_lifecycle_in_anatomy(db_session, college_id, admin):
    # 1. Department + catalogue
    anat = await create_department(db_session, college_id, "Anatomy", "ANAT", actor=admin)
    await initialize_default_permission_sets(db_session, college_id, actor=admin)
    full_access = await get_permission_set_by_name(db_session, college_id, "Full Access")

    # 2. Faculty with first assignment
    faculty, temp_password = await create_faculty_user(
        db_session, college_id, "prof@college.edu", "Prof. Grey", anat.id, full_access.id, actor=admin
    )
    assert temp_password

    [assignment] = await list_assignments_for_faculty(db_session, college_id, faculty.id)
    assert assignment.status == AssignmentStatus.ACTIVE

    capabilities = await effective_capabilities(db_session, faculty.id, anat.id)
    assert all(getattr(capabilities, flag) for flag in CAPABILITY_FLAGS)

    # 3. HOD designation
    await assign_hod(db_session, college_id, anat.id, faculty.id, actor=admin)
    faculty = await get_faculty(db_session, college_id, faculty.id)
    assert faculty.role == FacultyRole.HOD

    # 4. Removing the grant leaves the HOD reference alone
    warnings = await remove_faculty_assignment(db_session, college_id, faculty.id, anat.id, actor=admin)

    assert len(warnings) == 1
    assert await effective_capabilities(db_session, faculty.id, anat.id) == NO_ACCESS
    anat = await get_department(db_session, college_id, anat.id)
    assert anat.hod_faculty_id == faculty.id
