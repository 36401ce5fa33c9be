import threading
import unittest

from cvs_client.cancel import ensure_not_cancelled, is_cancelled
from cvs_client.errors import OperationCancelledError, TransientAPIError


class CancelUnitTests(unittest.TestCase):
    def test_nothing_set_is_not_cancelled(self):
        self.assertFalse(is_cancelled())

    def test_event_flag_cancels(self):
        event = threading.Event()
        self.assertFalse(is_cancelled(event.is_set))
        event.set()
        self.assertTrue(is_cancelled(event.is_set))

    def test_deadline_uses_clock(self):
        self.assertFalse(is_cancelled(deadline=100.0, clock=lambda: 99.0))
        self.assertTrue(is_cancelled(deadline=100.0, clock=lambda: 100.0))

    def test_ensure_not_cancelled_carries_last_error(self):
        last = TransientAPIError("deleteVolume", "DELETE_JOBS_EXHAUSTED", 500, 500, "busy")
        with self.assertRaises(OperationCancelledError) as ctx:
            ensure_not_cancelled("deleteVolume", should_cancel=lambda: True, last_error=last)
        self.assertIs(ctx.exception.last_error, last)
        self.assertEqual(ctx.exception.operation, "deleteVolume")


if __name__ == "__main__":
    unittest.main()
