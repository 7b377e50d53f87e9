"""
Tests for application wiring.
"""

import asyncio

from finance_tracker.models.records import TransactionKind
from finance_tracker.orchestrator import create_app_components
from finance_tracker.services.storage import InMemoryTableStore

from conftest import TODAY


class TestCreateAppComponents:
    """Tests for create_app_components."""

    def test_defaults_to_memory(self, session, monkeypatch):
        """Test that the default backend is in-memory."""
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)
        components = create_app_components(session)
        assert components.backend == "memory"
        assert components.expenses.session == session

    def test_unconfigured_sheets_fall_back_to_memory(self, session, monkeypatch):
        """Test that missing Google Sheets settings don't stop the app."""
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        components = create_app_components(session)
        assert components.backend == "memory"

    def test_stores_share_backend_and_notifier(self, session, tables, notifier):
        """Test that the bridge writes into the shared income store."""
        components = create_app_components(
            session,
            notifier=notifier,
            table_store=tables,
            clock=lambda: TODAY,
        )
        assert components.backend == "custom"
        assert components.bridge.kind == TransactionKind.INCOME

        async def scenario():
            await components.reminders.fetch()
            await components.bridge.toggle("r1", True)
            return await components.income.fetch()

        income = asyncio.run(scenario())
        assert any(i.description == "Payment received: Electricity" for i in income)
        assert notifier.history

    def test_signed_out_components(self):
        """Test that components can be built without a session."""
        components = create_app_components(None, table_store=InMemoryTableStore())
        assert asyncio.run(components.expenses.fetch()) == []

    def test_load_all_runs_on_each_new_loop(self, session, tables):
        """Test that loading everything works from one fresh event loop to the next."""
        components = create_app_components(session, table_store=tables, clock=lambda: TODAY)

        for _ in range(2):
            loop = asyncio.new_event_loop()
            try:
                loop.run_until_complete(components.load_all())
            finally:
                loop.close()

        assert {e.id for e in components.expenses.records} == {"e1", "e2", "e3", "e4", "e5"}
        assert [i.id for i in components.income.records] == ["i1"]
        assert len(components.reminders.records) == 4

    def test_one_search_debouncer_per_store(self, session, tables):
        """Test that each list view keeps its own debouncer."""
        components = create_app_components(session, table_store=tables)

        expenses = components.search_debouncer(components.expenses)

        assert components.search_debouncer(components.expenses) is expenses
        assert components.search_debouncer(components.income) is not expenses
