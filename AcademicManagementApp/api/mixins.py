from typing import Any

from rest_framework.response import Response


class PaginationMixin:
    """Pagination helpers for DRF-paginated querysets and service-level pages."""

    def paginate_and_respond(self, queryset, serializer_cls, many=True):
        page = self.paginate_queryset(queryset)
        serializer = serializer_cls(page if page is not None else queryset, many=many)
        if page is not None:
            return self.get_paginated_response(serializer.data)
        return Response(serializer.data)

    def respond_with_page(self, page: dict[str, Any], serializer_cls) -> Response:
        """Render a ``{results, total, page, limit, pages}`` dict from a service."""
        return Response({
            "results": serializer_cls(page["results"], many=True).data,
            "pagination": {k: page[k] for k in ("page", "limit", "total", "pages")},
        })
