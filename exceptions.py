# exceptions.py

class StoreError(Exception):
    """Base for failures talking to the tracking or dictionary store."""
    def __init__(self, message: str, *, store: str | None = None):
        super().__init__(message)
        self.store = store


class StoreUnavailable(StoreError):
    """Connection could not be opened, or the link dropped mid-query."""
    pass


class QueryFailure(StoreError):
    """
    The store answered but rejected the statement (syntax, bad parameter,
    constraint). Carries the SQL so the log shows which statement failed.
    """
    def __init__(self, message: str, *, store: str | None = None, sql: str | None = None):
        super().__init__(message, store=store)
        self.sql = sql


class RequestValidationError(Exception):
    """Caller sent a body we cannot work with (HTTP 400)."""
    pass
