from __future__ import annotations

import enum
from dataclasses import dataclass

from credchain.models.credential import CredentialType


@dataclass(frozen=True, slots=True)
class CourseRecord:
    id: int
    institution: str
    title: str
    capacity: int
    start_block: int
    end_block: int
    description: str = ""
    enrolled_count: int = 0
    open: bool = True  # one-way: True -> False via close_course
    prereq_credential_type: CredentialType | None = None

    @staticmethod
    def new(
        *,
        id: int,
        institution: str,
        title: str,
        capacity: int,
        created_at: int,
        duration_blocks: int,
        description: str = "",
        prereq_credential_type: CredentialType | None = None,
    ) -> CourseRecord:
        return CourseRecord(
            id=id,
            institution=institution,
            title=title,
            capacity=capacity,
            start_block=created_at + 1,
            end_block=created_at + duration_blocks,
            description=description,
            prereq_credential_type=prereq_credential_type,
        )

    @property
    def is_full(self) -> bool:
        return self.enrolled_count >= self.capacity

    @property
    def accepts_enrollments(self) -> bool:
        return self.open and not self.is_full


class EnrollmentStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class EnrollmentRecord:
    id: int
    refugee: str
    course_id: int
    enrolled_at: int
    credential_id: int | None = None
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is EnrollmentStatus.ACTIVE
