"""REST API views for courses, enrollments, assignments, submissions and final grades.

Views stay thin: they validate request bodies, call the domain services and
serialize the result. Domain errors are DRF exceptions and propagate as-is.
"""

from django.shortcuts import get_object_or_404

from rest_framework import status, mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.request import Request

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiResponse,
    OpenApiParameter,
)

from AcademicManagementApp.courses.models import Course, Enrollment
from AcademicManagementApp.learning.models import Assignment, Submission
from AcademicManagementApp.core.access import can
from AcademicManagementApp.core.choices import Action, UserRole
from AcademicManagementApp.api.mixins import PaginationMixin
from AcademicManagementApp.api.throttles import SubmissionRateThrottle
from AcademicManagementApp.core.permissions import (
    CanViewEnrollment,
    CanViewSubmission,
    IsCourseManager,
    IsLecturerOrAdmin,
)
from AcademicManagementApp.domain.services import (
    assignment_service,
    course_service,
    enrollment_service,
    submission_service,
)
from AcademicManagementApp.api.serializers import (
    CourseWriteSerializer,
    CourseReadSerializer,
    CourseStatusSerializer,
    EnrollmentCreateSerializer,
    EnrollmentUpdateSerializer,
    EnrollmentRejectSerializer,
    EnrollmentReadSerializer,
    BulkEnrollmentSerializer,
    BulkResultSerializer,
    FinalGradeSerializer,
    AssignmentWriteSerializer,
    AssignmentReadSerializer,
    SubmissionWriteSerializer,
    SubmissionReadSerializer,
    GradeWriteSerializer,
)

AUTH_RESPONSES = {
    401: OpenApiResponse(description="Authentication required."),
    403: OpenApiResponse(description="Forbidden"),
    404: OpenApiResponse(description="Not Found"),
}

STATE_RESPONSES = {
    409: OpenApiResponse(description="Invalid state, conflict or capacity exceeded."),
}


def _int_param(request: Request, name: str, default: int | None = None) -> int | None:
    raw = request.query_params.get(name)
    try:
        return int(raw) if raw not in (None, "") else default
    except ValueError:
        return default


# ---------- Courses ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Courses"],
        parameters=[
            OpenApiParameter("status", str),
            OpenApiParameter("lecturer_id", int),
            OpenApiParameter("search", str),
            OpenApiParameter("page", int),
            OpenApiParameter("limit", int),
        ],
        responses={200: CourseReadSerializer(many=True), **AUTH_RESPONSES},
    ),
    retrieve=extend_schema(tags=["Courses"], responses={200: CourseReadSerializer, **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Courses"],
        request=CourseWriteSerializer,
        responses={201: CourseReadSerializer, **AUTH_RESPONSES, **STATE_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "owner-on-create"}},
    ),
    partial_update=extend_schema(
        tags=["Courses"],
        request=CourseWriteSerializer,
        responses={200: CourseReadSerializer, **AUTH_RESPONSES, **STATE_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-owner"}},
    ),
    destroy=extend_schema(
        tags=["Courses"],
        responses={204: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-owner"}},
    ),
)
class CourseViewSet(PaginationMixin, viewsets.ModelViewSet):
    """Course registry: CRUD and status changes."""
    queryset = Course.objects.all().select_related("lecturer")
    permission_classes = [IsAuthenticated, IsLecturerOrAdmin]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_permissions(self):
        if self.action == "enrollments":
            return [IsAuthenticated(), IsCourseManager()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action in ("list", "retrieve"):
            return CourseReadSerializer
        if self.action == "set_status":
            return CourseStatusSerializer
        return CourseWriteSerializer

    def get_queryset(self):
        """Return course queryset filtered by visibility."""
        return Course.objects.visible_to(self.request.user).select_related("lecturer")

    def list(self, request: Request, *args, **kwargs) -> Response:
        """Filtered, paginated courses visible to the caller."""
        filters = {
            "status": request.query_params.get("status"),
            "lecturer_id": _int_param(request, "lecturer_id"),
            "search": request.query_params.get("search"),
        }
        page = course_service.list_courses(
            filters,
            page=_int_param(request, "page", 1),
            limit=_int_param(request, "limit", 10),
            queryset=self.get_queryset(),
        )
        return self.respond_with_page(page, CourseReadSerializer)

    def create(self, request: Request, *args, **kwargs) -> Response:
        """Create a course owned by the requesting lecturer."""
        ser = CourseWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        course = course_service.create_course(request.user.id, ser.validated_data)
        return Response(CourseReadSerializer(course).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, *args, **kwargs) -> Response:
        """Patch a course (owner or admin)."""
        ser = CourseWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        course = course_service.update_course(request.user.id, kwargs["pk"], ser.validated_data)
        return Response(CourseReadSerializer(course).data)

    def destroy(self, request: Request, *args, **kwargs) -> Response:
        course_service.delete_course(request.user.id, kwargs["pk"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Courses"],
        request=CourseStatusSerializer,
        responses={200: CourseReadSerializer, **AUTH_RESPONSES},
    )
    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request: Request, pk: int | None = None) -> Response:
        """Move the course to draft, published or archived."""
        ser = CourseStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        course = course_service.set_course_status(request.user.id, pk, ser.validated_data["status"])
        return Response(CourseReadSerializer(course).data)

    @extend_schema(tags=["Enrollments"], responses={200: EnrollmentReadSerializer(many=True), **AUTH_RESPONSES})
    @action(detail=True, methods=["get"], url_path="enrollments")
    def enrollments(self, request: Request, pk: int | None = None) -> Response:
        """List enrollments of a course (owning lecturer or admin)."""
        course = self.get_object()
        qs = enrollment_service.enrollments_for_course(course.pk)
        return self.paginate_and_respond(qs, EnrollmentReadSerializer)


# ---------- Enrollments ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Enrollments"],
        parameters=[
            OpenApiParameter("status", str),
            OpenApiParameter("student_id", int),
            OpenApiParameter("course_id", int),
            OpenApiParameter("page", int),
            OpenApiParameter("limit", int),
        ],
        responses={200: EnrollmentReadSerializer(many=True), **AUTH_RESPONSES},
    ),
    retrieve=extend_schema(tags=["Enrollments"], responses={200: EnrollmentReadSerializer, **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Enrollments"],
        request=EnrollmentCreateSerializer,
        responses={201: EnrollmentReadSerializer, **AUTH_RESPONSES, **STATE_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["student"], "ownership": "self"}},
    ),
    partial_update=extend_schema(
        tags=["Enrollments"],
        request=EnrollmentUpdateSerializer,
        responses={200: EnrollmentReadSerializer, **AUTH_RESPONSES, **STATE_RESPONSES},
    ),
)
class EnrollmentViewSet(
    PaginationMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Enrollment workflow: request, approve/reject, drop, bulk moderation and final grade."""
    permission_classes = [IsAuthenticated]
    serializer_class = EnrollmentReadSerializer

    def get_queryset(self):
        return Enrollment.objects.visible_to(self.request.user).select_related(
            "student", "course__lecturer", "approved_by"
        )

    def get_permissions(self):
        if self.action in ("retrieve", "final_grade"):
            return [IsAuthenticated(), CanViewEnrollment()]
        return [IsAuthenticated()]

    def list(self, request: Request) -> Response:
        """Paginated, filtered enrollments visible to the caller."""
        filters = {
            "status": request.query_params.get("status"),
            "student_id": _int_param(request, "student_id"),
            "course_id": _int_param(request, "course_id"),
        }
        page = enrollment_service.list_enrollments(
            filters,
            page=_int_param(request, "page", 1),
            limit=_int_param(request, "limit"),
            queryset=self.get_queryset(),
        )
        return self.respond_with_page(page, EnrollmentReadSerializer)

    def create(self, request: Request) -> Response:
        """Enroll the requesting student in a course."""
        ser = EnrollmentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        enrollment = enrollment_service.create_enrollment(
            request.user.id, ser.validated_data["course_id"], ser.validated_data["notes"]
        )
        return Response(EnrollmentReadSerializer(enrollment).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: int | None = None) -> Response:
        ser = EnrollmentUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        enrollment = enrollment_service.update_enrollment(pk, ser.validated_data, request.user.id)
        return Response(EnrollmentReadSerializer(enrollment).data)

    @extend_schema(tags=["Enrollments"], request=None, responses={200: EnrollmentReadSerializer, **AUTH_RESPONSES})
    @action(detail=True, methods=["post"])
    def approve(self, request: Request, pk: int | None = None) -> Response:
        enrollment = enrollment_service.approve_enrollment(pk, request.user.id)
        return Response(EnrollmentReadSerializer(enrollment).data)

    @extend_schema(tags=["Enrollments"], request=EnrollmentRejectSerializer,
                   responses={200: EnrollmentReadSerializer, **AUTH_RESPONSES})
    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: int | None = None) -> Response:
        ser = EnrollmentRejectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        enrollment = enrollment_service.reject_enrollment(pk, request.user.id, ser.validated_data["notes"])
        return Response(EnrollmentReadSerializer(enrollment).data)

    @extend_schema(tags=["Enrollments"], request=None, responses={200: EnrollmentReadSerializer, **AUTH_RESPONSES})
    @action(detail=True, methods=["post"])
    def drop(self, request: Request, pk: int | None = None) -> Response:
        enrollment = enrollment_service.drop_enrollment(pk, request.user.id)
        return Response(EnrollmentReadSerializer(enrollment).data)

    @extend_schema(tags=["Enrollments"], request=BulkEnrollmentSerializer, responses={200: BulkResultSerializer})
    @action(detail=False, methods=["post"], url_path="bulk-approve")
    def bulk_approve(self, request: Request) -> Response:
        """Approve many enrollments; per-id failures are reported, not raised."""
        ser = BulkEnrollmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = enrollment_service.bulk_approve(ser.validated_data["enrollment_ids"], request.user.id)
        return Response(BulkResultSerializer(result).data)

    @extend_schema(tags=["Enrollments"], request=BulkEnrollmentSerializer, responses={200: BulkResultSerializer})
    @action(detail=False, methods=["post"], url_path="bulk-reject")
    def bulk_reject(self, request: Request) -> Response:
        """Reject many enrollments; per-id failures are reported, not raised."""
        ser = BulkEnrollmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = enrollment_service.bulk_reject(
            ser.validated_data["enrollment_ids"], request.user.id, ser.validated_data["notes"]
        )
        return Response(BulkResultSerializer(result).data)

    @extend_schema(tags=["Enrollments"], responses={200: EnrollmentReadSerializer(many=True)})
    @action(detail=False, methods=["get"])
    def mine(self, request: Request) -> Response:
        qs = enrollment_service.enrollments_for_student(request.user.id)
        return Response(EnrollmentReadSerializer(qs, many=True).data)

    @extend_schema(tags=["Enrollments"], responses={200: EnrollmentReadSerializer(many=True)})
    @action(detail=False, methods=["get"])
    def pending(self, request: Request) -> Response:
        """Review queue of pending enrollments the caller can see."""
        if request.user.role == UserRole.STUDENT:
            return Response({"detail": "Forbidden"}, status=status.HTTP_403_FORBIDDEN)
        qs = enrollment_service.pending_enrollments(self.get_queryset())
        return Response(EnrollmentReadSerializer(qs, many=True).data)

    @extend_schema(tags=["Grades"], responses={200: FinalGradeSerializer, **AUTH_RESPONSES, **STATE_RESPONSES})
    @action(detail=True, methods=["get"], url_path="final-grade")
    def final_grade(self, request: Request, pk: int | None = None) -> Response:
        """Weighted final grade for an approved enrollment."""
        enrollment = self.get_object()
        grade = enrollment_service.compute_final_grade_for_enrollment(enrollment.pk)
        return Response(FinalGradeSerializer(grade).data)


# ---------- Assignments ----------
@extend_schema_view(
    list=extend_schema(tags=["Assignments"], responses={200: AssignmentReadSerializer(many=True), **AUTH_RESPONSES}),
    retrieve=extend_schema(tags=["Assignments"], responses={200: AssignmentReadSerializer, **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Assignments"],
        request=AssignmentWriteSerializer,
        responses={201: AssignmentReadSerializer, **AUTH_RESPONSES, **STATE_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-owner"}},
    ),
    partial_update=extend_schema(
        tags=["Assignments"],
        request=AssignmentWriteSerializer,
        responses={200: AssignmentReadSerializer, **AUTH_RESPONSES, **STATE_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-owner"}},
    ),
    destroy=extend_schema(
        tags=["Assignments"],
        responses={204: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-owner"}},
    ),
)
@extend_schema(parameters=[OpenApiParameter("course_pk", int, OpenApiParameter.PATH)])
class AssignmentViewSet(PaginationMixin, viewsets.ModelViewSet):
    """Assignments of a course within the 100% weight budget."""
    permission_classes = [IsAuthenticated, IsLecturerOrAdmin]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_serializer_class(self):
        return AssignmentWriteSerializer if self.action in ("create", "partial_update") else AssignmentReadSerializer

    def get_queryset(self):
        """Students only see active assignments."""
        if getattr(self, "swagger_fake_view", False):
            return Assignment.objects.none()
        active_only = self.request.user.role == UserRole.STUDENT
        return assignment_service.list_assignments_for_course(self.kwargs["course_pk"], active_only=active_only)

    def list(self, request: Request, *args, **kwargs) -> Response:
        return self.paginate_and_respond(self.get_queryset(), AssignmentReadSerializer)

    def create(self, request: Request, *args, **kwargs) -> Response:
        ser = AssignmentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        assignment = assignment_service.create_assignment(
            request.user.id, self.kwargs["course_pk"], **ser.validated_data
        )
        return Response(AssignmentReadSerializer(assignment).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, *args, **kwargs) -> Response:
        self.get_object()
        ser = AssignmentWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        assignment = assignment_service.update_assignment(request.user.id, kwargs["pk"], ser.validated_data)
        return Response(AssignmentReadSerializer(assignment).data)

    def destroy(self, request: Request, *args, **kwargs) -> Response:
        self.get_object()
        assignment_service.delete_assignment(request.user.id, kwargs["pk"])
        return Response(status=status.HTTP_204_NO_CONTENT)


# ---------- Submissions ----------
@extend_schema_view(
    list=extend_schema(tags=["Submissions"], responses={200: SubmissionReadSerializer(many=True), **AUTH_RESPONSES}),
    retrieve=extend_schema(tags=["Submissions"], responses={200: SubmissionReadSerializer, **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Submissions"],
        request=SubmissionWriteSerializer,
        description="Create a submission. Endpoint is rate-limited per user.",
        responses={
            201: SubmissionReadSerializer,
            400: OpenApiResponse(description="Validation error."),
            429: OpenApiResponse(description="Too many requests / throttled."),
            **AUTH_RESPONSES,
            **STATE_RESPONSES,
        },
        extensions={"x-permissions": {"required_roles": ["student"], "ownership": "self"}},
    ),
    partial_update=extend_schema(
        tags=["Submissions"],
        request=SubmissionWriteSerializer,
        responses={200: SubmissionReadSerializer, **AUTH_RESPONSES, **STATE_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["student"], "ownership": "submission-owner"}},
    ),
)
@extend_schema(
    parameters=[
        OpenApiParameter("course_pk", int, OpenApiParameter.PATH),
        OpenApiParameter("assignment_pk", int, OpenApiParameter.PATH),
    ]
)
class SubmissionViewSet(
    PaginationMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    """Submission creation, update, listing and grading."""

    permission_classes = [IsAuthenticated, CanViewSubmission]
    throttle_classes: list[type] = []
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_serializer_class(self):
        return SubmissionWriteSerializer if self.action in ("create", "partial_update") else SubmissionReadSerializer

    def get_throttles(self):
        """Apply rate throttle only on create."""
        if self.action == "create":
            self.throttle_classes = [SubmissionRateThrottle]
        return super().get_throttles()

    def _assignment(self) -> Assignment:
        return get_object_or_404(
            Assignment.objects.select_related("course"),
            pk=self.kwargs["assignment_pk"],
            course_id=self.kwargs["course_pk"],
        )

    def get_queryset(self):
        """Lecturer/admin see all submissions of the assignment, students only their own."""
        if getattr(self, "swagger_fake_view", False):
            return Submission.objects.none()
        user = self.request.user
        assignment = self._assignment()
        if can(user, Action.MANAGE_ASSIGNMENT, assignment):
            return submission_service.submissions_for_assignment(user.id, assignment.pk)
        return (
            Submission.objects.filter(assignment=assignment)
            .for_student(user)
            .select_related("assignment__course", "student", "graded_by")
            .order_by("-submitted_at", "-id")
        )

    def create(self, request: Request, *args, **kwargs) -> Response:
        ser = SubmissionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        assignment = self._assignment()
        submission = submission_service.create_submission(
            request.user.id,
            assignment.pk,
            content_text=ser.validated_data.get("content_text", ""),
            file_url=ser.validated_data.get("file_url"),
            file_name=ser.validated_data.get("file_name"),
        )
        return Response(SubmissionReadSerializer(submission).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, *args, **kwargs) -> Response:
        submission = self.get_object()
        ser = SubmissionWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        updated = submission_service.update_submission(request.user.id, submission.pk, ser.validated_data)
        return Response(SubmissionReadSerializer(updated).data)

    @extend_schema(tags=["Submissions"], request=GradeWriteSerializer,
                   responses={200: SubmissionReadSerializer, **AUTH_RESPONSES, **STATE_RESPONSES})
    @action(detail=True, methods=["post"], url_path="grade")
    def grade(self, request: Request, pk: int | None = None, *args, **kwargs) -> Response:
        """Grade a submission (course lecturer or admin)."""
        submission = self.get_object()
        ser = GradeWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        graded = submission_service.grade_submission(
            request.user.id, submission.pk, ser.validated_data["grade"], ser.validated_data["feedback"]
        )
        return Response(SubmissionReadSerializer(graded).data)


@extend_schema_view(
    mine=extend_schema(tags=["Submissions"], responses={200: SubmissionReadSerializer(many=True), **AUTH_RESPONSES}),
)
class StudentSubmissionViewSet(viewsets.GenericViewSet):
    """Submissions of the requesting student across all courses."""
    permission_classes = [IsAuthenticated]
    serializer_class = SubmissionReadSerializer

    @action(detail=False, methods=["get"])
    def mine(self, request: Request) -> Response:
        qs = submission_service.submissions_for_student(request.user.id)
        return Response(SubmissionReadSerializer(qs, many=True).data)
