"""Final grade aggregation for an approved enrollment.

The final grade is the sum over the course's active assignments of
``grade * weight / 100``. Ungraded or missing submissions contribute zero but
stay in the breakdown, and weights are used as configured: a course whose
active weights total less than 100 caps the reachable grade accordingly.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from AcademicManagementApp.courses.models import Enrollment
from AcademicManagementApp.core.choices import EnrollmentStatus
from AcademicManagementApp.core.exceptions import InvalidState, service_boundary
from AcademicManagementApp.domain.services.lookups import get_or_not_found
from AcademicManagementApp.learning.models import Assignment, Submission

CENT = Decimal("0.01")


@dataclass(frozen=True)
class GradeLine:
    assignment_id: int
    weight: int
    grade: int | None


@dataclass(frozen=True)
class FinalGrade:
    final_grade: Decimal
    breakdown: list[GradeLine] = field(default_factory=list)
    total_weight: int = 0


@service_boundary
def compute_final_grade(enrollment_id) -> FinalGrade:
    """Compute the weighted final grade for an approved enrollment.

    Read-only: repeated calls over unchanged data return equal results.

    Raises:
        NotFound: If the enrollment does not exist.
        InvalidState: If the enrollment is not approved.
    """
    enrollment = get_or_not_found(Enrollment, enrollment_id, "Enrollment")
    if enrollment.status != EnrollmentStatus.APPROVED:
        raise InvalidState("Enrollment is not approved")

    assignments = list(
        Assignment.objects.for_course(enrollment.course_id).active().order_by("id")
    )
    if not assignments:
        return FinalGrade(final_grade=Decimal("0.00"), breakdown=[], total_weight=0)

    grades = dict(
        Submission.objects.filter(
            student_id=enrollment.student_id, assignment__in=assignments
        ).values_list("assignment_id", "grade")
    )

    weighted_sum = Decimal(0)
    total_weight = 0
    breakdown = []
    for assignment in assignments:
        grade = grades.get(assignment.id)
        if grade is not None:
            weighted_sum += Decimal(grade) * assignment.weight / 100
        total_weight += assignment.weight
        breakdown.append(GradeLine(assignment.id, assignment.weight, grade))

    return FinalGrade(
        final_grade=weighted_sum.quantize(CENT, rounding=ROUND_HALF_UP),
        breakdown=breakdown,
        total_weight=total_weight,
    )
