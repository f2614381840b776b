from django.core.management.base import BaseCommand, CommandError

from AcademicManagementApp.core.exceptions import AcademicError
from AcademicManagementApp.courses.models import Enrollment
from AcademicManagementApp.domain.services import grade_service


class Command(BaseCommand):
    help = "Print final grades for the approved enrollments of a course."

    def add_arguments(self, parser):
        parser.add_argument("course_id", type=int)

    def handle(self, *args, **options):
        enrollments = (
            Enrollment.objects.filter(course_id=options["course_id"])
            .approved()
            .select_related("student")
            .order_by("student__email")
        )
        if not enrollments.exists():
            raise CommandError(f"No approved enrollments for course {options['course_id']}")
        reported = 0
        for enrollment in enrollments:
            try:
                result = grade_service.compute_final_grade(enrollment.pk)
            except AcademicError as exc:
                self.stderr.write(f"{enrollment.student.email}: {exc.detail}")
                continue
            self.stdout.write(f"{enrollment.student.email}\t{result.final_grade}\t(weight {result.total_weight}%)")
            reported += 1
        self.stdout.write(self.style.SUCCESS(f"Reported {reported} final grades"))
