"""API throttling classes."""

from rest_framework.throttling import UserRateThrottle


class SubmissionRateThrottle(UserRateThrottle):
    """Limit submission create requests per student and course.

    The rate comes from ``DEFAULT_THROTTLE_RATES["submission_create"]``.
    """
    scope = "submission_create"

    def get_cache_key(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return None
        ident = f"{request.user.pk}:{view.kwargs.get('course_pk')}"
        return self.cache_format % {"scope": self.scope, "ident": ident}
