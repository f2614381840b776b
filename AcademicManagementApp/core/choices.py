"""Typed enumerations (TextChoices) for user roles, course/enrollment states and capability actions."""
from django.db import models

class UserRole(models.TextChoices):
    """System-level role assigned to a user account."""
    STUDENT = "STUDENT", "Student"
    LECTURER = "LECTURER", "Lecturer"
    ADMIN = "ADMIN", "Admin"

class CourseStatus(models.TextChoices):
    """Publication lifecycle of a course."""
    DRAFT = "DRAFT", "Draft"
    PUBLISHED = "PUBLISHED", "Published"
    ARCHIVED = "ARCHIVED", "Archived"

class EnrollmentStatus(models.TextChoices):
    """Lifecycle states for a student's enrollment in a course."""
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"
    DROPPED = "DROPPED", "Dropped"

class Action(models.TextChoices):
    """Capabilities checked by core.access.can()."""
    ENROLL = "ENROLL", "Enroll in course"
    MODERATE_ENROLLMENT = "MODERATE_ENROLLMENT", "Approve or reject enrollment"
    UPDATE_ENROLLMENT = "UPDATE_ENROLLMENT", "Update enrollment"
    DROP_ENROLLMENT = "DROP_ENROLLMENT", "Drop enrollment"
    VIEW_ENROLLMENT = "VIEW_ENROLLMENT", "View enrollment"
    CREATE_COURSE = "CREATE_COURSE", "Create course"
    MANAGE_COURSE = "MANAGE_COURSE", "Manage course"
    MANAGE_ASSIGNMENT = "MANAGE_ASSIGNMENT", "Manage assignments"
    SUBMIT = "SUBMIT", "Submit assignment"
    EDIT_SUBMISSION = "EDIT_SUBMISSION", "Edit submission"
    GRADE_SUBMISSION = "GRADE_SUBMISSION", "Grade submission"
    VIEW_SUBMISSION = "VIEW_SUBMISSION", "View submission"
