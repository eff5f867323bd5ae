"""Pydantic request schemas used by the API.

Schemas only fix the wire shape and basic types; domain rules (areas,
modalities, schedules, ...) are enforced by `sga.services` so the same
rules apply whatever the caller.
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel


class LoginIn(BaseModel):
    """Login with DNI or e-mail as `identifier`."""
    identifier: str
    password: str


class RefreshTokenIn(BaseModel):
    refresh_token: str


class ChangePasswordIn(BaseModel):
    new_password: str


class StudentCreate(BaseModel):
    user_id: int
    modality: str
    area: Optional[str] = None


class StudentUpdate(BaseModel):
    modality: Optional[str] = None


class CourseCreate(BaseModel):
    name: str
    area: str
    description: Optional[str] = None


class CourseUpdate(BaseModel):
    name: Optional[str] = None
    area: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None


class GroupCreate(BaseModel):
    name: str
    area: str
    modality: str
    days: str
    start_time: str
    end_time: str
    capacity: Optional[int] = None


class GroupUpdate(BaseModel):
    name: Optional[str] = None
    area: Optional[str] = None
    modality: Optional[str] = None
    days: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    capacity: Optional[int] = None


class GroupStatusIn(BaseModel):
    status: str


class EnrollmentCreate(BaseModel):
    student_id: int
    group_id: int
    amount_paid: float


class WithdrawIn(BaseModel):
    reason: Optional[str] = None


class UserCreate(BaseModel):
    dni: str
    first_names: str
    last_names: str
    role: str
    email: Optional[str] = None
    phone: Optional[str] = None


class UserUpdate(BaseModel):
    """`dni` and `role` are accepted only so the API can reject them."""
    dni: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None
    first_names: Optional[str] = None
    last_names: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[str] = None


class EvaluationCreate(BaseModel):
    group_id: int
    week_number: int
    evaluation_date: date
    description: Optional[str] = None
    duration_minutes: Optional[int] = None


class EvaluationUpdate(BaseModel):
    group_id: Optional[int] = None
    week_number: Optional[int] = None
    evaluation_date: Optional[date] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = None
    status: Optional[str] = None


class GradeCreate(BaseModel):
    evaluation_id: int
    student_id: int
    course_id: int
    score: float
    notes: Optional[str] = None


class GradeItem(BaseModel):
    student_id: int
    course_id: int
    score: float
    notes: Optional[str] = None


class GradeBulkIn(BaseModel):
    evaluation_id: int
    grades: List[GradeItem]


class AttendanceCreate(BaseModel):
    student_id: int
    group_id: int
    class_date: date
    status: str
    check_in_time: Optional[str] = None
    notes: Optional[str] = None


class AttendanceMark(BaseModel):
    student_id: int
    status: str
    check_in_time: Optional[str] = None
    notes: Optional[str] = None


class AttendanceBulkIn(BaseModel):
    group_id: int
    class_date: date
    marks: List[AttendanceMark]
