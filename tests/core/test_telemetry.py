"""
Tests for telemetry collection functionality.
"""
import copy
from unittest import IsolatedAsyncioTestCase, TestCase

from relfetch.client.testing import InMemoryTransport
from relfetch.core.request import ResourceClient
from relfetch.core.telemetry import (
    TelemetryContext,
    clear_telemetry_context,
    create_telemetry_context,
    get_telemetry_context,
)


class TelemetryModuleTestCase(TestCase):
    """Test telemetry module functionality"""

    def tearDown(self):
        clear_telemetry_context()

    def test_telemetry_context_creation(self):
        """Test creating telemetry context"""
        ctx = create_telemetry_context(enabled=True)
        self.assertIsInstance(ctx, TelemetryContext)
        self.assertTrue(ctx.enabled)
        self.assertEqual(get_telemetry_context(), ctx)

    def test_clear(self):
        create_telemetry_context(enabled=True)
        clear_telemetry_context()
        self.assertIsNone(get_telemetry_context())

    def test_telemetry_disabled_no_recording(self):
        """Test that disabled telemetry doesn't record"""
        ctx = create_telemetry_context(enabled=False)

        ctx.record_fetch("users", [1, 2])
        ctx.record_reference("author", "users", 2)

        self.assertEqual(ctx.fetch_count(), 0)
        self.assertEqual(ctx.get_telemetry_data(), {})

    def test_records_fetches(self):
        ctx = create_telemetry_context(enabled=True)

        ctx.record_fetch("posts")
        ctx.record_fetch("users", [5], True)

        data = ctx.get_telemetry_data()
        self.assertEqual(data["fetches"]["count"], 2)
        self.assertEqual(data["fetches"]["details"][1]["resource"], "users")
        self.assertEqual(data["fetches"]["details"][1]["id"], "[5]")
        self.assertEqual(ctx.fetch_count("users"), 1)

    def test_large_id_sets_are_truncated(self):
        ctx = create_telemetry_context(enabled=True)
        ctx.record_fetch("users", list(range(1000)))
        self.assertTrue(ctx.fetches[0]["id"].endswith("... (truncated)"))


class TelemetryIntegrationTestCase(IsolatedAsyncioTestCase):
    def tearDown(self):
        clear_telemetry_context()

    async def test_records_data_quality_events(self):
        transport = InMemoryTransport(copy.deepcopy({
            "posts": [
                {"id": 1, "author": 5},
                {"id": 2, "author": 404},
                {"id": 3, "author": {"nested": True}},
            ],
            "users": [{"id": 5}],
        }))
        client = ResourceClient(execute=transport)
        ctx = create_telemetry_context(enabled=True)

        with self.assertLogs("relfetch.core.resolver", level="WARNING"):
            response = await client.get(("posts", {"author": "users"}))

        data = ctx.get_telemetry_data()
        self.assertEqual(data["fetches"]["count"], 2)
        self.assertEqual(data["references"]["details"][0]["path"], "author")
        self.assertEqual(data["references"]["details"][0]["id_count"], 2)
        self.assertEqual(len(data["data_quality"]["rejected_ids"]), 1)
        self.assertEqual(
            data["data_quality"]["missing_references"], [{"resource": "users", "id": 404}]
        )
        self.assertEqual([post["author"] for post in response["data"]], [{"id": 5}, None, None])
