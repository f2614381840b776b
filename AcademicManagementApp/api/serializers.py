"""Serializers for users, courses, enrollments, assignments, submissions and final grades."""

from rest_framework import serializers
from django.contrib.auth import get_user_model

from AcademicManagementApp.courses.models import Course, Enrollment
from AcademicManagementApp.learning.models import Assignment, Submission
from AcademicManagementApp.core.choices import CourseStatus, EnrollmentStatus
from AcademicManagementApp.core.validators import validate_resource_url, validate_file_name

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Public, safe representation of a user."""

    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "role"]


class CourseWriteSerializer(serializers.ModelSerializer):
    """Serializer for creating/updating a course."""

    class Meta:
        model = Course
        fields = ["title", "description", "code", "credits", "max_students", "status"]
        extra_kwargs = {
            "code": {"validators": []},
            "credits": {"help_text": "Credit points, 1–6."},
            "max_students": {"help_text": "Maximum approved enrollments; 0 means unlimited."},
        }


class CourseReadSerializer(serializers.ModelSerializer):
    """Serializer for reading course details including the lecturer."""
    lecturer = UserSerializer()

    class Meta:
        model = Course
        fields = [
            "id", "title", "description", "code", "credits", "max_students",
            "status", "lecturer", "created_at", "updated_at",
        ]


class CourseStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CourseStatus.choices)


class EnrollmentCreateSerializer(serializers.Serializer):
    """Body of an enrollment request."""
    course_id = serializers.IntegerField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class EnrollmentUpdateSerializer(serializers.Serializer):
    """Generic enrollment patch."""
    status = serializers.ChoiceField(choices=EnrollmentStatus.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    approved_by = serializers.IntegerField(required=False, allow_null=True)


class EnrollmentRejectSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class BulkEnrollmentSerializer(serializers.Serializer):
    enrollment_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class EnrollmentReadSerializer(serializers.ModelSerializer):
    """Enrollment with student, course and approver."""
    student = UserSerializer(read_only=True)
    course = CourseReadSerializer(read_only=True)
    approved_by = UserSerializer(read_only=True)

    class Meta:
        model = Enrollment
        fields = ["id", "student", "course", "status", "notes", "approved_by", "created_at", "updated_at"]


class BulkErrorSerializer(serializers.Serializer):
    enrollment_id = serializers.IntegerField()
    kind = serializers.CharField()
    message = serializers.CharField()


class BulkResultSerializer(serializers.Serializer):
    succeeded = EnrollmentReadSerializer(many=True)
    errors = BulkErrorSerializer(many=True)


class GradeLineSerializer(serializers.Serializer):
    assignment_id = serializers.IntegerField()
    weight = serializers.IntegerField()
    grade = serializers.IntegerField(allow_null=True)


class FinalGradeSerializer(serializers.Serializer):
    final_grade = serializers.DecimalField(max_digits=5, decimal_places=2)
    breakdown = GradeLineSerializer(many=True)
    total_weight = serializers.IntegerField()


class AssignmentWriteSerializer(serializers.ModelSerializer):
    """Serializer for creating/updating assignments."""

    class Meta:
        model = Assignment
        fields = ["title", "description", "weight", "due_at", "is_active"]
        extra_kwargs = {
            "weight": {"help_text": "Percentage contribution to the final grade (0–100)."},
        }


class AssignmentReadSerializer(serializers.ModelSerializer):

    class Meta:
        model = Assignment
        fields = ["id", "course", "title", "description", "weight", "due_at", "is_active", "created_at", "updated_at"]


class SubmissionWriteSerializer(serializers.Serializer):
    """Serializer for creating/updating a submission."""

    content_text = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text="Textual answer (optional if file_url provided)."
    )
    file_url = serializers.URLField(
        required=False,
        allow_null=True,
        validators=[validate_resource_url],
        help_text="HTTPS URL of an uploaded file."
    )
    file_name = serializers.CharField(
        required=False,
        allow_null=True,
        validators=[validate_file_name],
        help_text="Original file name of the uploaded file."
    )

    def validate(self, data):
        if not self.partial and not data.get("content_text") and not data.get("file_url"):
            raise serializers.ValidationError("At least one of `content_text` or `file_url` is required.")
        return super().validate(data)


class SubmissionReadSerializer(serializers.ModelSerializer):
    """Detailed submission view including grade and student."""
    student = UserSerializer(read_only=True)

    class Meta:
        model = Submission
        fields = [
            "id", "assignment", "student", "content_text", "file_url", "file_name",
            "grade", "feedback", "graded_by", "graded_at", "submitted_at", "updated_at",
        ]
        read_only_fields = fields


class GradeWriteSerializer(serializers.Serializer):
    grade = serializers.IntegerField(min_value=0, max_value=100)
    feedback = serializers.CharField(required=False, allow_blank=True, default="")
