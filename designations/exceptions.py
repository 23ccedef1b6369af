"""
Domain errors raised by the designation service layer.

The viewset translates these into HTTP responses; nothing here knows about
requests or status codes.
"""


class DesignationError(Exception):
    """Base class for designation service failures."""


class CircularHierarchyError(DesignationError):
    """Raised when a pointer assignment would close a loop in a hierarchy."""

    def __init__(self, relation, designation_id, candidate_id):
        self.relation = relation
        self.designation_id = designation_id
        self.candidate_id = candidate_id
        super().__init__(
            f"Assigning {candidate_id} as {relation} of {designation_id} "
            f"would create a circular hierarchy"
        )


class LookupFailure(DesignationError):
    """A node expected to exist could not be read during a hierarchy walk."""

    def __init__(self, designation_id, reason=""):
        self.designation_id = designation_id
        self.reason = reason
        message = f"Lookup failed for designation {designation_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DesignationNotFound(DesignationError):
    def __init__(self, designation_id):
        self.designation_id = designation_id
        super().__init__(f"Designation {designation_id} does not exist")


class DesignationStoreError(DesignationError):
    """The backing store rejected a read or write."""
