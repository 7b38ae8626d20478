import unittest
from unittest.mock import patch

from magicrest.schemas.read import ReadOptions
from magicrest.services.paginator import build_pagination_meta, paginate, resolve_page_window
from magicrest.services.query_backend import InMemoryQueryBackend


class PaginationMetaTests(unittest.TestCase):
    def test_first_page(self):
        meta = build_pagination_meta(48, 1, 10)
        self.assertEqual(meta.page_count, 5)
        self.assertTrue(meta.has_next)
        self.assertFalse(meta.has_prev)

    def test_last_page(self):
        meta = build_pagination_meta(48, 5, 10)
        self.assertEqual(meta.page_count, 5)
        self.assertFalse(meta.has_next)
        self.assertTrue(meta.has_prev)

    def test_exact_multiple(self):
        self.assertEqual(build_pagination_meta(50, 1, 10).page_count, 5)
        self.assertEqual(build_pagination_meta(1, 1, 10).page_count, 1)

    def test_empty_total(self):
        meta = build_pagination_meta(0, 3, 10)
        self.assertEqual(meta.page_count, 0)
        self.assertFalse(meta.has_next)
        self.assertFalse(meta.has_prev)

    def test_wire_keys(self):
        self.assertEqual(
            build_pagination_meta(48, 2, 10).to_dict(),
            {"page": 2, "pageSize": 10, "pageCount": 5, "total": 48, "hasNext": True, "hasPrev": True},
        )


class PageWindowTests(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(resolve_page_window({}, ReadOptions()), (1, 10))

    def test_query_values_win(self):
        self.assertEqual(resolve_page_window({"page": ["3"], "pageSize": ["25"]}, ReadOptions()), (3, 25))

    def test_option_defaults(self):
        options = ReadOptions(default_page=2, default_page_size=50)
        self.assertEqual(resolve_page_window({}, options), (2, 50))

    def test_bad_values_fall_back_silently(self):
        options = ReadOptions(default_page_size=20)
        for page, size in (("0", "-5"), ("abc", "1.5"), ("", ""), ("-1", "0")):
            self.assertEqual(resolve_page_window({"page": [page], "pageSize": [size]}, options), (1, 20))

    def test_settings_fill_missing_option_defaults(self):
        with patch("magicrest.services.paginator.settings") as fake:
            fake.DEFAULT_PAGE = 1
            fake.DEFAULT_PAGE_SIZE = 30
            self.assertEqual(resolve_page_window({}, ReadOptions()), (1, 30))


class PaginateTests(unittest.TestCase):
    def setUp(self):
        self.backend = InMemoryQueryBackend([{"n": i} for i in range(1, 24)])

    def test_window_slices_rows(self):
        rows, meta = paginate(self.backend, 3, 10)
        self.assertEqual([r["n"] for r in rows], [21, 22, 23])
        self.assertEqual(meta.total, 23)
        self.assertEqual(meta.page_count, 3)
        self.assertFalse(meta.has_next)

    def test_page_beyond_data_is_empty_not_error(self):
        rows, meta = paginate(self.backend, 9, 10)
        self.assertEqual(rows, [])
        self.assertTrue(meta.has_prev)
        self.assertFalse(meta.has_next)

    def test_no_rows(self):
        rows, meta = paginate(InMemoryQueryBackend([]), 1, 10)
        self.assertEqual(rows, [])
        self.assertEqual((meta.page_count, meta.has_next, meta.has_prev), (0, False, False))


if __name__ == "__main__":
    unittest.main()
