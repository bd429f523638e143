"""
Engine-wide exception hierarchy.

Services raise these types; the Flask error handlers registered in
``create_app`` map each one to a JSON error with a fixed HTTP status, and
the CLI prints them. None of them is fatal to the process.

Usage:
    from tracker.core.exceptions import NotFoundError, DanglingReferenceError

    raise NotFoundError(resource="Project", resource_id=project_id)
    raise DanglingReferenceError(field="manager", value="nobody@x.com")
"""


class NotFoundError(Exception):
    """Raised when a get/update/delete targets a key that does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Person", "Milestone").
        resource_id: The key that was looked up.
    """

    def __init__(self, resource: str, resource_id=None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" {resource_id!r}"
        msg += " not found"
        super().__init__(msg)


class AlreadyExistsError(Exception):
    """Raised when a create would duplicate a unique key.

    Maps to HTTP 409.

    Args:
        resource: Entity name.
        field: The unique field (or composite key description).
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value=None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")


class DanglingReferenceError(Exception):
    """Raised when a written reference field names a record that does not exist.

    Maps to HTTP 422.
    """

    def __init__(self, field: str, value) -> None:
        self.field = field
        self.value = value
        super().__init__(f"{field}={value!r} does not reference an existing record")


class ConflictError(Exception):
    """Raised when a write violates an entity rule (a person managing themselves).

    Maps to HTTP 409.
    """


class ValidationError(Exception):
    """Raised when input is well-formed JSON but not a usable value.

    Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)
