"""
Progression errors.

Every failure of pool→bracket progression is a ProgressionError carrying a
stable `kind` string. Routes do not catch these; the handler registered in
clubbracket.main turns them into HTTP responses.
"""
from typing import Optional


class ProgressionError(Exception):
    kind = "ProgressionError"
    retryable = False

    def __init__(self, message: str, state: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.state = state  # orchestrator state the failure was raised in

    def to_dict(self):
        return {"error": self.kind, "detail": self.message}


# Validation (client-correctable, never retried)


class TournamentNotFound(ProgressionError):
    kind = "TournamentNotFound"


class TypeMismatch(ProgressionError):
    kind = "TypeMismatch"


class NoPools(ProgressionError):
    kind = "NoPools"


class NoRegistrations(ProgressionError):
    kind = "NoRegistrations"


class IncompleteResults(ProgressionError):
    kind = "IncompleteResults"

    def __init__(self, message: str, match_ids=(), state: Optional[str] = None):
        super().__init__(message, state=state)
        self.match_ids = list(match_ids)


class InsufficientQualifiers(ProgressionError):
    kind = "InsufficientQualifiers"


class NoKnockoutRound(ProgressionError):
    kind = "NoKnockoutRound"


# Authorization (terminal)


class Forbidden(ProgressionError):
    kind = "Forbidden"


# Storage / transient (safe to retry after backoff)


class StorageFailure(ProgressionError):
    kind = "StorageFailure"
    retryable = True


class Conflict(ProgressionError):
    kind = "Conflict"
    retryable = True
