"""
Unit tests for pageSize / pageNumber handling
"""
from storefront.core.pagination import PageParams, page_count, pagination


class TestPageCount:
    """pages == ceil(total / page_size)"""

    def test_exact_multiple(self):
        assert page_count(20, 10) == 2

    def test_partial_last_page_rounds_up(self):
        assert page_count(21, 10) == 3

    def test_empty_result_has_zero_pages(self):
        assert page_count(0, 9) == 0

    def test_single_item(self):
        assert page_count(1, 500) == 1


class TestPageParams:

    def test_offset_of_first_page_is_zero(self):
        page = PageParams(page_size=9, page_number=1)
        assert page.offset == 0

    def test_offset_skips_previous_pages(self):
        page = PageParams(page_size=9, page_number=3)
        assert page.offset == 18

    def test_pages_uses_page_size(self):
        page = PageParams(page_size=4, page_number=1)
        assert page.pages(10) == 3


class TestPaginationDependency:

    def test_oversized_page_size_is_clamped(self):
        # Arrange
        dependency = pagination(9, 500)

        # Act
        page = dependency(page_size=1000, page_number=2)

        # Assert
        assert page.page_size == 500
        assert page.page_number == 2
        assert page.offset == 500

    def test_page_size_within_bounds_is_kept(self):
        page = pagination(10, 100)(page_size=25, page_number=1)
        assert page.page_size == 25
