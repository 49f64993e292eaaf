"""
Core — Pagination

Page-number paginator used by every list endpoint. The page payload
carries ``page_size`` and ``total_pages`` so the renderer can put them
in the envelope's ``meta`` block.

@file core/pagination.py
"""

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class StandardPagination(PageNumberPagination):
    page_size = DEFAULT_PAGE_SIZE
    page_size_query_param = 'page_size'
    max_page_size = MAX_PAGE_SIZE

    def get_paginated_response(self, data):
        return Response({
            'count': self.page.paginator.count,
            'page_size': self.page.paginator.per_page,
            'total_pages': self.page.paginator.num_pages,
            'next': self.get_next_link(),
            'previous': self.get_previous_link(),
            'results': data,
        })
