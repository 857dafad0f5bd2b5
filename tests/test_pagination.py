import threading
import unittest

from shared.errors import PaginationError
from shared.fanout import fan_out, fan_out_all
from shared.pagination import collect_cursor_pages, collect_offset_pages


class CursorPaginationTests(unittest.TestCase):
    def test_follows_cursors_until_exhausted(self):
        sizes = [100, 100, 37]
        cursors = []

        def fetch_page(cursor):
            cursors.append(cursor)
            index = len(cursors) - 1
            has_more = index < len(sizes) - 1
            return [index] * sizes[index], has_more, f"cursor-{index + 1}" if has_more else None

        items = collect_cursor_pages(fetch_page)
        self.assertEqual(len(items), 237)
        self.assertEqual(cursors, [None, "cursor-1", "cursor-2"])

    def test_missing_cursor_is_an_error(self):
        with self.assertRaises(PaginationError):
            collect_cursor_pages(lambda cursor: ([], True, None))


class OffsetPaginationTests(unittest.TestCase):
    def setUp(self):
        self.items = list(range(123))
        self.calls = []
        self.lock = threading.Lock()

    def fetch_page(self, limit, offset):
        with self.lock:
            self.calls.append((limit, offset))
        return self.items[offset:offset + limit], len(self.items)

    def test_probe_then_concurrent_pages_in_order(self):
        result = collect_offset_pages(self.fetch_page, 50)
        self.assertEqual(result, self.items)
        self.assertIn((0, 0), self.calls)
        self.assertEqual(sorted(offset for limit, offset in self.calls if limit), [0, 50, 100])

    def test_known_total_skips_probe(self):
        result = collect_offset_pages(self.fetch_page, 20, total=123)
        self.assertEqual(result, self.items)
        self.assertNotIn((0, 0), self.calls)

    def test_empty_library(self):
        self.items = []
        self.assertEqual(collect_offset_pages(self.fetch_page, 50), [])


class FanOutTests(unittest.TestCase):
    def test_failures_are_recorded_per_item(self):
        def work(value):
            if value == 3:
                raise RuntimeError("boom")
            return value * 2

        batch = fan_out(work, [1, 2, 3, 4], max_workers=2)
        self.assertFalse(batch.ok)
        self.assertEqual(sorted(batch.results), [2, 4, 8])
        self.assertEqual([item for item, _ in batch.failed], [3])
        self.assertEqual(batch.total, 4)

    def test_fan_out_all_keeps_input_order(self):
        self.assertEqual(fan_out_all(lambda value: value + 1, [3, 1, 2]), [4, 2, 3])

    def test_fan_out_all_raises_first_failure(self):
        def work(value):
            if value == 2:
                raise ValueError("bad chunk")
            return value

        with self.assertRaises(ValueError):
            fan_out_all(work, [1, 2, 3], max_workers=1)


if __name__ == "__main__":
    unittest.main()
