# exceptions raised by domain operations; messages are shown to the user as-is


class StoreError(Exception):
    """Base class for every rejected store operation."""


class ValidationRejected(StoreError):
    """Preconditions unmet: empty cart, not enough stock, missing field, duplicate, bad transition."""


class NotAuthorized(ValidationRejected):
    """No session, or the session's role may not perform the operation."""


class NotFound(StoreError):
    """Referenced username or record id does not exist."""
