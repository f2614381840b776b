"""Courses app configuration."""

from django.apps import AppConfig

class CoursesConfig(AppConfig):
    """AppConfig for the course registry and enrollments."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "AcademicManagementApp.courses"
    label = "courses"
