"""
Test cases for the keep-only-latest hand-off.
"""
import threading
import unittest
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from bionic_arm.latest import LatestOnly

TIMEOUT = 5.0


class TestLatestOnly(unittest.TestCase):
    """Test item replacement and drain scheduling."""

    def setUp(self):
        self.executor = ThreadPoolExecutor(max_workers=1)
        self.addCleanup(self.executor.shutdown, True)
        self.handled = []

    def wait_idle(self):
        self.executor.submit(lambda: None).result(TIMEOUT)

    def test_single_item(self):
        """Test that an offered item reaches the handler once."""
        latest = LatestOnly(self.executor, self.handled.append)
        self.assertIsNotNone(latest.offer("a"))
        self.wait_idle()
        self.assertEqual(self.handled, ["a"])
        self.assertEqual(latest.dropped, 0)

    def test_waiting_item_replaced(self):
        """Test that items offered behind a busy worker collapse to the newest."""
        release = threading.Event()
        self.executor.submit(release.wait, TIMEOUT)

        latest = LatestOnly(self.executor, self.handled.append)
        self.assertIsNotNone(latest.offer(1))
        self.assertIsNone(latest.offer(2))
        self.assertIsNone(latest.offer(3))
        release.set()
        self.wait_idle()

        self.assertEqual(self.handled, [3])
        self.assertEqual(latest.dropped, 2)

    def test_handler_failure_does_not_stop_later_items(self):
        """Test that a raising handler leaves the hand-off usable."""

        def handler(item):
            if item == "bad":
                raise ValueError(item)
            self.handled.append(item)

        latest = LatestOnly(self.executor, handler)
        latest.offer("bad")
        self.wait_idle()
        latest.offer("good")
        self.wait_idle()
        self.assertEqual(self.handled, ["good"])

    def test_concurrent_producers(self):
        """Test that items from many threads are each handled or counted as dropped."""
        latest = LatestOnly(self.executor, self.handled.append)
        start = threading.Barrier(4)

        def produce(base):
            start.wait(TIMEOUT)
            for i in range(500):
                latest.offer(base + i)

        threads = [threading.Thread(target=produce, args=(n * 1000,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(TIMEOUT)
        self.wait_idle()

        self.assertEqual(len(self.handled) + latest.dropped, 2000)
        self.assertEqual(len(set(self.handled)), len(self.handled))


if __name__ == '__main__':
    unittest.main()
