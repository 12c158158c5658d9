"""
Relay metrics counters and the JSON snapshot served at /metrics/streaming.
"""
import unittest

import metrics
from providers.mock import MockTranscriptionProvider
from streaming.session_manager import RelaySessionManager
from tests.test_session_manager import END, START, STORIES, FakeWebSocket, verify


class TestSnapshot(unittest.TestCase):

    def setUp(self):
        metrics.reset()

    def tearDown(self):
        metrics.reset()

    def test_keys_and_empty_average(self):
        snap = metrics.get_snapshot()
        for key in ("active_connections", "active_sessions", "auth_failures", "protocol_errors",
                    "provider_errors", "idle_timeouts", "sessions_completed", "avg_accuracy_percent"):
            self.assertIn(key, snap)
        self.assertIsNone(snap["avg_accuracy_percent"])

    def test_counters(self):
        metrics.record_connection_open()
        metrics.record_connection_open()
        metrics.record_connection_close()
        metrics.record_auth_failure()
        metrics.record_session_completed(100.0)
        metrics.record_session_completed(90.0)
        snap = metrics.get_snapshot()
        self.assertEqual(snap["active_connections"], 1)
        self.assertEqual(snap["auth_failures"], 1)
        self.assertEqual(snap["sessions_completed"], 2)
        self.assertEqual(snap["avg_accuracy_percent"], 95.0)

    def test_gauges_never_negative(self):
        metrics.record_connection_close()
        metrics.record_session_released()
        snap = metrics.get_snapshot()
        self.assertEqual(snap["active_connections"], 0)
        self.assertEqual(snap["active_sessions"], 0)


class TestRelayRecordsMetrics(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        metrics.reset()

    def tearDown(self):
        metrics.reset()

    async def test_completed_session_and_gauges_return_to_zero(self):
        manager = RelaySessionManager(MockTranscriptionProvider(), verify, STORIES.get)
        ws = FakeWebSocket()
        ws.push_json({"type": "bogus"})
        ws.push_json(START)
        ws.push_json(END)
        await manager.handle_connection(ws)
        snap = metrics.get_snapshot()
        self.assertEqual(snap["sessions_completed"], 1)
        self.assertEqual(snap["protocol_errors"], 1)
        self.assertEqual(snap["active_sessions"], 0)
        self.assertEqual(snap["active_connections"], 0)

    async def test_auth_failure_counted(self):
        manager = RelaySessionManager(MockTranscriptionProvider(), verify, STORIES.get)
        await manager.handle_connection(FakeWebSocket(token="bad"))
        self.assertEqual(metrics.get_snapshot()["auth_failures"], 1)


if __name__ == "__main__":
    unittest.main()
