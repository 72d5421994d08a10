import unittest

from app.core.pagination import PageEnvelope, PageWindow, normalize_page


class TestNormalizePage(unittest.TestCase):
    def test_defaults_when_absent(self):
        self.assertEqual(normalize_page(None, None), PageWindow(page=1, limit=10))

    def test_parses_numeric_strings(self):
        self.assertEqual(normalize_page("3", "20"), PageWindow(page=3, limit=20))

    def test_non_numeric_falls_back_to_defaults(self):
        self.assertEqual(normalize_page("abc", "ten"), PageWindow(page=1, limit=10))

    def test_page_below_one_becomes_first_page(self):
        self.assertEqual(normalize_page("0", "5").page, 1)
        self.assertEqual(normalize_page("-4", "5").page, 1)

    def test_limit_below_one_uses_default(self):
        self.assertEqual(normalize_page("1", "0").limit, 10)

    def test_limit_is_clamped(self):
        self.assertEqual(normalize_page("1", "500").limit, 50)

    def test_skip(self):
        self.assertEqual(PageWindow(page=3, limit=10).skip, 20)
        self.assertEqual(PageWindow(page=1, limit=10).skip, 0)


class TestPageEnvelope(unittest.TestCase):
    def test_total_pages_rounds_up(self):
        envelope = PageEnvelope.build(["a"] * 5, 25, PageWindow(page=3, limit=10))
        self.assertEqual(envelope.total_pages, 3)
        self.assertEqual(envelope.total, 25)
        self.assertEqual(envelope.page, 3)

    def test_empty_result(self):
        envelope = PageEnvelope.build([], 0, PageWindow(page=1, limit=10))
        self.assertEqual(envelope.items, [])
        self.assertEqual(envelope.total_pages, 0)

    def test_exact_multiple(self):
        self.assertEqual(PageEnvelope.build([], 50, PageWindow(page=2, limit=50)).total_pages, 1)
