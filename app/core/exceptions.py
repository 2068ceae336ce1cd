# app/core/exceptions.py

"""
Governance error taxonomy.

Services raise these instead of HTTPException so they stay usable outside a
request (bulk provisioning collects them per row). The handlers in
app/main.py translate them to HTTP responses with the message as `detail`.
"""


class GovernanceError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GovernanceError):
    """Missing or malformed required field (empty code, empty name, ...)."""
    status_code = 400


class NotFoundError(GovernanceError):
    """Referenced department / permission set / faculty / assignment is absent in the tenant."""
    status_code = 404


class ConflictError(GovernanceError):
    """Uniqueness violation or an operation the current state forbids."""
    status_code = 409


class ReferentialIntegrityWarning(UserWarning):
    """
    Non-fatal: a weak reference (HOD designation, assignment) now points at
    an inactive department or a faculty that no longer holds the grant.
    Returned to the caller and logged, never raised.
    """

    def __init__(self, message: str, entity_type: str, entity_id):
        super().__init__(message)
        self.message = message
        self.entity_type = entity_type
        self.entity_id = entity_id

    def as_dict(self) -> dict:
        return {
            "message": self.message,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id),
        }
