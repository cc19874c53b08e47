"""Course and enrollment endpoints.

Courses:
- POST /v1/courses                    — create (registered institutions)
- POST /v1/courses/{id}/close         — close (course institution)
- GET  /v1/courses/{id}               — read one course
- GET  /v1/courses/{id}/open          — open and not full
- POST /v1/courses/{id}/enroll        — enroll the caller
- GET  /v1/courses/{id}/enrollments   — enrollment ids for the course

Enrollments:
- GET  /v1/enrollments/{id}           — read one enrollment
- GET  /v1/enrollments?refugee=...    — enrollment ids for a refugee
- POST /v1/enrollments/{id}/cancel    — cancel (enrollee or institution)
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, StrictInt

from credchain.api.dependencies import require_user
from credchain.api.schemas import FlagOut, IdListOut, IdOut
from credchain.models.course import CourseRecord, EnrollmentRecord
from credchain.models.principal import Principal
from credchain.services.ledger import ledger

router = APIRouter(prefix="/v1/courses", tags=["courses"])
enrollments_router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


class CourseCreateIn(BaseModel):
    title: str
    description: str = ""
    capacity: int
    duration_blocks: int
    prereq_credential_type: StrictInt | None = None


class CourseOut(BaseModel):
    id: int
    institution: str
    title: str
    description: str
    capacity: int
    enrolled_count: int
    open: bool
    prereq_credential_type: str | None
    start_block: int
    end_block: int


class EnrollIn(BaseModel):
    credential_id: int | None = None


class EnrollmentOut(BaseModel):
    id: int
    refugee: str
    course_id: int
    credential_id: int | None
    enrolled_at: int
    status: str


def _course_out(course: CourseRecord) -> CourseOut:
    prereq = course.prereq_credential_type
    return CourseOut(
        id=course.id,
        institution=course.institution,
        title=course.title,
        description=course.description,
        capacity=course.capacity,
        enrolled_count=course.enrolled_count,
        open=course.open,
        prereq_credential_type=prereq.name.lower() if prereq is not None else None,
        start_block=course.start_block,
        end_block=course.end_block,
    )


def _enrollment_out(enrollment: EnrollmentRecord) -> EnrollmentOut:
    return EnrollmentOut(
        id=enrollment.id,
        refugee=enrollment.refugee,
        course_id=enrollment.course_id,
        credential_id=enrollment.credential_id,
        enrolled_at=enrollment.enrolled_at,
        status=enrollment.status.value,
    )


# --- Courses ---


@router.post("", response_model=IdOut, status_code=status.HTTP_201_CREATED)
def create_course(
    body: CourseCreateIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> IdOut:
    course_id = ledger.enrollments.create_course(
        principal.user_id,
        body.title,
        body.capacity,
        body.duration_blocks,
        body.description,
        body.prereq_credential_type,
    )
    return IdOut(id=course_id)


@router.get("/{course_id}", response_model=CourseOut)
def get_course(
    course_id: int,
    _principal: Annotated[Principal, Depends(require_user)],
) -> CourseOut:
    course = ledger.enrollments.get_course(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="course not found")
    return _course_out(course)


@router.post("/{course_id}/close", status_code=status.HTTP_204_NO_CONTENT)
def close_course(
    course_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> None:
    ledger.enrollments.close_course(principal.user_id, course_id)


@router.get("/{course_id}/open", response_model=FlagOut)
def course_is_open(
    course_id: int,
    _principal: Annotated[Principal, Depends(require_user)],
) -> FlagOut:
    return FlagOut(value=ledger.enrollments.is_course_open(course_id))


@router.post(
    "/{course_id}/enroll",
    response_model=IdOut,
    status_code=status.HTTP_201_CREATED,
)
def enroll_in_course(
    course_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    body: EnrollIn | None = None,
) -> IdOut:
    credential_id = body.credential_id if body is not None else None
    enrollment_id = ledger.enrollments.enroll(
        principal.user_id, course_id, credential_id
    )
    return IdOut(id=enrollment_id)


@router.get("/{course_id}/enrollments", response_model=IdListOut)
def list_course_enrollments(
    course_id: int,
    _principal: Annotated[Principal, Depends(require_user)],
) -> IdListOut:
    return IdListOut(ids=list(ledger.enrollments.list_by_course(course_id)))


# --- Enrollments ---


@enrollments_router.get("", response_model=IdListOut)
def list_refugee_enrollments(
    refugee: Annotated[str, Query(min_length=1)],
    _principal: Annotated[Principal, Depends(require_user)],
) -> IdListOut:
    return IdListOut(ids=list(ledger.enrollments.list_by_refugee(refugee)))


@enrollments_router.get("/{enrollment_id}", response_model=EnrollmentOut)
def get_enrollment(
    enrollment_id: int,
    _principal: Annotated[Principal, Depends(require_user)],
) -> EnrollmentOut:
    enrollment = ledger.enrollments.get_enrollment(enrollment_id)
    if enrollment is None:
        raise HTTPException(status_code=404, detail="enrollment not found")
    return _enrollment_out(enrollment)


@enrollments_router.post(
    "/{enrollment_id}/cancel", status_code=status.HTTP_204_NO_CONTENT
)
def cancel_enrollment(
    enrollment_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> None:
    ledger.enrollments.cancel(principal.user_id, enrollment_id)
