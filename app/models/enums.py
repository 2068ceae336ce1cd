from enum import Enum

class DepartmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class FacultyRole(str, Enum):
    FACULTY = "FACULTY"
    HOD = "HOD"


class FacultyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class AssignmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ON_LEAVE = "ON_LEAVE"
    INACTIVE = "INACTIVE"


class DeletionPolicy(str, Enum):
    SOFT = "SOFT"   # status flipped, row kept for historical counts
    HARD = "HARD"   # row removed, no undo


# Roles carried in the tenant token (issued by the external identity provider)
class ActorRole(str, Enum):
    COLLEGE_ADMIN = "COLLEGE_ADMIN"
    COLLEGE_DEAN = "COLLEGE_DEAN"
    COLLEGE_HOD = "COLLEGE_HOD"
    FACULTY = "FACULTY"
