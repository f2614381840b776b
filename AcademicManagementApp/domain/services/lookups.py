"""Shared lookups (raising the domain NotFound instead of DoesNotExist) and pagination."""

from typing import Any

from django.contrib.auth import get_user_model
from django.core.paginator import Paginator
from django.db.models import Model, QuerySet

from AcademicManagementApp.core.exceptions import NotFound


def get_or_not_found(source: type[Model] | QuerySet, pk: Any, label: str | None = None) -> Any:
    """Fetch a row by primary key or raise NotFound("<label> not found")."""
    qs = source if isinstance(source, QuerySet) else source._default_manager.all()
    try:
        return qs.get(pk=pk)
    except (qs.model.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{label or qs.model._meta.verbose_name.capitalize()} not found")


def get_user(user_id: Any, label: str = "User"):
    """Identity directory lookup by id."""
    return get_or_not_found(get_user_model(), user_id, label)


def paginate(qs: QuerySet, page: int, limit: int) -> dict[str, Any]:
    """Slice a queryset into ``{results, total, page, limit, pages}``."""
    paginator = Paginator(qs, max(int(limit), 1))
    current = paginator.get_page(page)
    return {
        "results": list(current.object_list),
        "total": paginator.count,
        "page": current.number,
        "limit": paginator.per_page,
        "pages": paginator.num_pages if paginator.count else 0,
    }
