"""Enrollment store: institution-run courses and capacity-bounded enrollment.

Course lifecycle:   open ──close_course──▶ closed      (one-way)
                    open and enrolled_count == capacity is "full", which
                    is derived, never stored.
Enrollment:         active ──cancel──▶ cancelled        (one-way, only
                    before the course's start block)

Courses and enrollments draw ids from ONE counter: the first course is 0,
an enrollment made right after it is 1, the next course is 2.

A course may name a prerequisite credential type.  Enrolling in it then
requires a credential id that the credential service verifies as valid
and held by the caller.  The credential's own type is not compared with
the prerequisite type.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Protocol, runtime_checkable

from credchain.core.bounded import BoundedIndex
from credchain.core.chain import BlockClock
from credchain.core.errors import (
    AlreadyExists,
    CapacityExceeded,
    EnrollmentCode,
    InvalidInput,
    InvalidState,
    LedgerError,
    NotFound,
    PrerequisiteNotMet,
    Unauthorized,
)
from credchain.core.metrics import LEDGER_RECORDS, observe_operation
from credchain.models.course import CourseRecord, EnrollmentRecord, EnrollmentStatus
from credchain.models.credential import CredentialType

logger = logging.getLogger(__name__)

MAX_ENROLLMENTS_PER_COURSE = 200
MAX_ENROLLMENTS_PER_REFUGEE = 50


@runtime_checkable
class InstitutionRegistry(Protocol):
    def is_registered_institution(self, principal: str) -> bool: ...


@runtime_checkable
class CredentialVerifier(Protocol):
    def verify(self, credential_id: int, refugee: str) -> bool: ...


class EnrollmentStore:
    def __init__(
        self,
        *,
        registry: str,
        institutions: InstitutionRegistry,
        credentials: CredentialVerifier,
        clock: BlockClock,
        lock: threading.RLock | None = None,
    ) -> None:
        self._registry = registry
        self._institutions = institutions
        self._credentials = credentials
        self._clock = clock
        self._lock = lock if lock is not None else threading.RLock()
        self._courses: dict[int, CourseRecord] = {}
        self._enrollments: dict[int, EnrollmentRecord] = {}
        self._by_course = BoundedIndex(MAX_ENROLLMENTS_PER_COURSE)
        self._by_refugee = BoundedIndex(MAX_ENROLLMENTS_PER_REFUGEE)
        self._next_id = 0

    # ------------------------------------------------------------------
    # Registry administration
    # ------------------------------------------------------------------

    @observe_operation("enrollment", "set_credential_service")
    def set_credential_service(self, caller: str, credentials: CredentialVerifier) -> None:
        with self._lock:
            self._require_registry(caller)
            self._credentials = credentials
            logger.info("Credential service replaced by registry=%s", caller)

    @observe_operation("enrollment", "set_institution_registry")
    def set_institution_registry(
        self, caller: str, institutions: InstitutionRegistry
    ) -> None:
        with self._lock:
            self._require_registry(caller)
            self._institutions = institutions
            logger.info("Institution registry replaced by registry=%s", caller)

    def _require_registry(self, caller: str) -> None:
        if caller != self._registry:
            raise Unauthorized(
                EnrollmentCode.UNAUTHORIZED, "caller is not the institution registry"
            )

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------

    @observe_operation("enrollment", "create_course")
    def create_course(
        self,
        caller: str,
        title: str,
        capacity: int,
        duration_blocks: int,
        description: str = "",
        prereq_credential_type: int | None = None,
    ) -> int:
        with self._lock:
            if not self._institutions.is_registered_institution(caller):
                logger.warning(
                    "Rejected course creation from unregistered institution=%s",
                    caller,
                    extra={
                        "caller": caller,
                        "error_code": int(EnrollmentCode.INSTITUTION_NOT_REGISTERED),
                    },
                )
                raise Unauthorized(
                    EnrollmentCode.INSTITUTION_NOT_REGISTERED,
                    "institution not registered",
                )
            if capacity <= 0:
                raise InvalidInput(EnrollmentCode.UNAUTHORIZED, "capacity must be positive")
            if duration_blocks <= 0:
                raise InvalidInput(
                    EnrollmentCode.UNAUTHORIZED, "duration_blocks must be positive"
                )
            if not title:
                raise InvalidInput(EnrollmentCode.UNAUTHORIZED, "title must be non-empty")
            prereq: CredentialType | None = None
            if prereq_credential_type is not None:
                try:
                    prereq = CredentialType(prereq_credential_type)
                except ValueError:
                    raise InvalidInput(
                        EnrollmentCode.UNAUTHORIZED,
                        f"invalid prerequisite type {prereq_credential_type!r}",
                    ) from None

            course_id = self._allocate_id()
            course = CourseRecord.new(
                id=course_id,
                institution=caller,
                title=title,
                capacity=capacity,
                created_at=self._clock.height(),
                duration_blocks=duration_blocks,
                description=description,
                prereq_credential_type=prereq,
            )
            self._courses[course_id] = course
            LEDGER_RECORDS.labels(store="enrollment", record="course").set(
                len(self._courses)
            )
            logger.info(
                "Created course id=%d institution=%s capacity=%d prereq=%s blocks=%d..%d",
                course_id,
                caller,
                capacity,
                prereq.name if prereq is not None else None,
                course.start_block,
                course.end_block,
            )
            return course_id

    @observe_operation("enrollment", "close_course")
    def close_course(self, caller: str, course_id: int) -> None:
        with self._lock:
            course = self._require_course(course_id)
            if caller != course.institution:
                raise Unauthorized(
                    EnrollmentCode.UNAUTHORIZED, "only the course institution may close it"
                )
            if not course.open:
                raise InvalidState(
                    EnrollmentCode.COURSE_CLOSED, f"course {course_id} already closed"
                )
            self._courses[course_id] = replace(course, open=False)
            logger.info("Closed course id=%d by=%s", course_id, caller)

    def _require_course(self, course_id: int) -> CourseRecord:
        course = self._courses.get(course_id)
        if course is None:
            raise NotFound(
                EnrollmentCode.COURSE_NOT_FOUND, f"course {course_id} not found"
            )
        return course

    # ------------------------------------------------------------------
    # Enrollments
    # ------------------------------------------------------------------

    @observe_operation("enrollment", "enroll")
    def enroll(
        self,
        caller: str,
        course_id: int,
        credential_id: int | None = None,
    ) -> int:
        with self._lock:
            course = self._require_course(course_id)
            if not course.open:
                raise InvalidState(
                    EnrollmentCode.COURSE_CLOSED, f"course {course_id} is closed"
                )
            if course.is_full:
                logger.warning(
                    "Rejected enrollment: course=%d full (%d/%d) caller=%s",
                    course_id,
                    course.enrolled_count,
                    course.capacity,
                    caller,
                    extra={
                        "caller": caller,
                        "error_code": int(EnrollmentCode.MAX_ENROLLMENTS),
                    },
                )
                raise CapacityExceeded(
                    EnrollmentCode.MAX_ENROLLMENTS, f"course {course_id} is full"
                )
            # Any earlier enrollment counts, cancelled ones included.
            for enrollment_id in self._by_refugee.get(caller):
                existing = self._enrollments.get(enrollment_id)
                if existing is not None and existing.course_id == course_id:
                    raise AlreadyExists(
                        EnrollmentCode.ALREADY_ENROLLED,
                        f"{caller} already enrolled in course {course_id}",
                    )
            if course.prereq_credential_type is not None:
                if credential_id is None:
                    raise PrerequisiteNotMet(
                        EnrollmentCode.PREREQ_NOT_MET,
                        f"course {course_id} requires a credential",
                    )
                if not self._credential_verified(credential_id, caller):
                    logger.warning(
                        "Rejected enrollment: credential=%d not verified for caller=%s",
                        credential_id,
                        caller,
                        extra={
                            "caller": caller,
                            "error_code": int(EnrollmentCode.PREREQ_NOT_MET),
                        },
                    )
                    raise PrerequisiteNotMet(
                        EnrollmentCode.PREREQ_NOT_MET,
                        f"credential {credential_id} does not satisfy the prerequisite",
                    )
            self._by_course.ensure_room(
                course_id,
                CapacityExceeded(
                    EnrollmentCode.CAPACITY,
                    f"course already lists {MAX_ENROLLMENTS_PER_COURSE} enrollments",
                ),
            )
            self._by_refugee.ensure_room(
                caller,
                CapacityExceeded(
                    EnrollmentCode.CAPACITY,
                    f"refugee already holds {MAX_ENROLLMENTS_PER_REFUGEE} enrollments",
                ),
            )

            enrollment_id = self._allocate_id()
            self._enrollments[enrollment_id] = EnrollmentRecord(
                id=enrollment_id,
                refugee=caller,
                course_id=course_id,
                enrolled_at=self._clock.height(),
                credential_id=credential_id,
            )
            self._by_course.append(course_id, enrollment_id)
            self._by_refugee.append(caller, enrollment_id)
            self._courses[course_id] = replace(
                course, enrolled_count=course.enrolled_count + 1
            )
            LEDGER_RECORDS.labels(store="enrollment", record="enrollment").set(
                len(self._enrollments)
            )
            logger.info(
                "Enrolled refugee=%s course=%d enrollment=%d (%d/%d)",
                caller,
                course_id,
                enrollment_id,
                course.enrolled_count + 1,
                course.capacity,
            )
            return enrollment_id

    def _credential_verified(self, credential_id: int, refugee: str) -> bool:
        try:
            return self._credentials.verify(credential_id, refugee) is True
        except LedgerError as exc:
            logger.debug("Credential check for id=%d failed: %r", credential_id, exc)
            return False

    @observe_operation("enrollment", "cancel")
    def cancel(self, caller: str, enrollment_id: int) -> None:
        with self._lock:
            enrollment = self._enrollments.get(enrollment_id)
            if enrollment is None:
                raise NotFound(
                    EnrollmentCode.ENROLLMENT_NOT_FOUND,
                    f"enrollment {enrollment_id} not found",
                )
            course = self._require_course(enrollment.course_id)
            if caller != enrollment.refugee and caller != course.institution:
                raise Unauthorized(
                    EnrollmentCode.UNAUTHORIZED,
                    "only the enrollee or the course institution may cancel",
                )
            if not enrollment.is_active:
                raise InvalidState(
                    EnrollmentCode.ENROLLMENT_NOT_ACTIVE,
                    f"enrollment {enrollment_id} already cancelled",
                )
            height = self._clock.height()
            if height >= course.start_block:
                logger.warning(
                    "Rejected cancel enrollment=%d: course=%d started at block %d (now %d)",
                    enrollment_id,
                    course.id,
                    course.start_block,
                    height,
                    extra={
                        "caller": caller,
                        "error_code": int(EnrollmentCode.CANCELLATION_CLOSED),
                    },
                )
                raise InvalidState(
                    EnrollmentCode.CANCELLATION_CLOSED,
                    f"course {course.id} has started; cancellation closed",
                )

            self._enrollments[enrollment_id] = replace(
                enrollment, status=EnrollmentStatus.CANCELLED
            )
            self._courses[course.id] = replace(
                course, enrolled_count=course.enrolled_count - 1
            )
            logger.info(
                "Cancelled enrollment=%d course=%d by=%s", enrollment_id, course.id, caller
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_course_open(self, course_id: int) -> bool:
        with self._lock:
            course = self._courses.get(course_id)
            return course is not None and course.accepts_enrollments

    def get_course(self, course_id: int) -> CourseRecord | None:
        with self._lock:
            return self._courses.get(course_id)

    def get_enrollment(self, enrollment_id: int) -> EnrollmentRecord | None:
        with self._lock:
            return self._enrollments.get(enrollment_id)

    def list_by_course(self, course_id: int) -> tuple[int, ...]:
        with self._lock:
            return self._by_course.get(course_id)

    def list_by_refugee(self, refugee: str) -> tuple[int, ...]:
        with self._lock:
            return self._by_refugee.get(refugee)

    def course_count(self) -> int:
        with self._lock:
            return len(self._courses)

    def enrollment_count(self) -> int:
        with self._lock:
            return len(self._enrollments)

    def _allocate_id(self) -> int:
        allocated = self._next_id
        self._next_id += 1
        return allocated
