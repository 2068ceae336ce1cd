# app/core/constants.py

from app.models.enums import ActorRole

# ==========================================================
# DEFAULT PERMISSION SETS
# Seeded by "initialize defaults" for a college. Flags not
# listed are False.
# ==========================================================
DEFAULT_PERMISSION_SETS = [
    {
        "name": "Full Access",
        "description": "Author, publish and grade across the department.",
        "flags": {
            "can_view_analytics": True,
            "can_create_course": True,
            "can_edit_course": True,
            "can_delete_course": True,
            "can_publish_course": True,
            "can_assign_students": True,
            "can_grade_students": True,
            "can_create_assessment": True,
            "can_edit_assessment": True,
            "can_delete_assessment": True,
        },
    },
    {
        "name": "Assessment Only",
        "description": "Write and maintain assessment items; no course authoring.",
        "flags": {
            "can_view_analytics": True,
            "can_grade_students": True,
            "can_create_assessment": True,
            "can_edit_assessment": True,
        },
    },
    {
        "name": "View Only",
        "description": "Read-only access to department analytics.",
        "flags": {
            "can_view_analytics": True,
        },
    },
    {
        "name": "Course Manager",
        "description": "Create and run courses and their student rosters.",
        "flags": {
            "can_view_analytics": True,
            "can_create_course": True,
            "can_edit_course": True,
            "can_publish_course": True,
            "can_assign_students": True,
        },
    },
]

# ==========================================================
# BULK FACULTY UPLOAD
# Header names are matched case-insensitively.
# ==========================================================
FACULTY_CSV_COLUMNS = ("fullname", "email", "departmentcode", "permissionsetname")

# ==========================================================
# ROLE GROUPS (tenant token roles)
# ==========================================================
GOVERNANCE_READERS = (ActorRole.COLLEGE_ADMIN, ActorRole.COLLEGE_DEAN, ActorRole.COLLEGE_HOD)
GOVERNANCE_WRITERS = (ActorRole.COLLEGE_ADMIN,)
