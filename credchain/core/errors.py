"""Closed error taxonomy shared by the three ledger stores.

Every rejected call raises exactly one LedgerError subclass.  The class
says WHAT KIND of failure it was (and therefore which HTTP status the API
answers with); the numeric ``code`` says WHICH check failed, using each
store's own code table below.

Expired or revoked records are not an error kind: validity predicates
simply return False for them.
"""

from __future__ import annotations

import enum
from typing import ClassVar


class ErrorKind(str, enum.Enum):
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    INVALID_INPUT = "invalid_input"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    PREREQUISITE_NOT_MET = "prerequisite_not_met"
    INVALID_STATE = "invalid_state"


class ProofCode(enum.IntEnum):
    UNAUTHORIZED = 100
    PROOF_EXISTS = 101
    PROOF_NOT_FOUND = 102
    INVALID_PROOF_TYPE = 103
    INVALID_HASH = 104
    VERIFIER_NOT_REGISTERED = 105
    PROOF_REVOKED = 106
    INVALID_EXPIRY = 107
    PROOF_EXPIRED = 108
    CAPACITY = 109


class CredentialCode(enum.IntEnum):
    UNAUTHORIZED = 100
    PROOF_NOT_FOUND = 101
    PROOF_INVALID = 102
    INSTITUTION_NOT_REGISTERED = 103
    CREDENTIAL_EXISTS = 104
    INVALID_CREDENTIAL_TYPE = 105
    REFUGEE_NOT_OWNER = 106
    CREDENTIAL_REVOKED = 107
    EXPIRY_PAST = 108
    CREDENTIAL_NOT_FOUND = 109
    CAPACITY = 110


class EnrollmentCode(enum.IntEnum):
    UNAUTHORIZED = 100
    CREDENTIAL_NOT_FOUND = 101
    CREDENTIAL_INVALID = 102
    INSTITUTION_NOT_REGISTERED = 103
    ENROLLMENT_EXISTS = 104
    PREREQ_NOT_MET = 105
    COURSE_NOT_FOUND = 106
    COURSE_CLOSED = 107
    MAX_ENROLLMENTS = 108
    ALREADY_ENROLLED = 109
    ENROLLMENT_NOT_FOUND = 110
    CANCELLATION_CLOSED = 111
    ENROLLMENT_NOT_ACTIVE = 112
    CAPACITY = 113


class LedgerError(Exception):
    """Base class for every expected, caller-recoverable rejection."""

    kind: ClassVar[ErrorKind]

    def __init__(self, code: int, detail: str) -> None:
        super().__init__(detail)
        self.code = int(code)
        self.detail = detail

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code}, detail={self.detail!r})"


class Unauthorized(LedgerError):
    kind = ErrorKind.UNAUTHORIZED


class NotFound(LedgerError):
    kind = ErrorKind.NOT_FOUND


class AlreadyExists(LedgerError):
    kind = ErrorKind.ALREADY_EXISTS


class InvalidInput(LedgerError):
    kind = ErrorKind.INVALID_INPUT


class CapacityExceeded(LedgerError):
    kind = ErrorKind.CAPACITY_EXCEEDED


class PrerequisiteNotMet(LedgerError):
    kind = ErrorKind.PREREQUISITE_NOT_MET


class InvalidState(LedgerError):
    kind = ErrorKind.INVALID_STATE
