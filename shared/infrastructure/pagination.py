"""Page/limit pagination used by the listing endpoints."""

from __future__ import annotations

from rest_framework.pagination import PageNumberPagination  # type: ignore
from rest_framework.response import Response  # type: ignore


class PageLimitPagination(PageNumberPagination):
    """``?page=&limit=`` with ``limit`` capped at 100."""

    page_query_param = "page"
    page_size = 20
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data):  # type: ignore
        return Response({
            "success": True,
            "count": self.page.paginator.count,
            "page": self.page.number,
            "pages": self.page.paginator.num_pages,
            "data": data,
        })
