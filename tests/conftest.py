"""
Shared fixtures for ZenFinance tests.

Everything runs against the in-memory store or a fake worksheet.
No real Google Sheets or Gemini calls are made.
"""

from unittest.mock import MagicMock

import pytest

from zenfinance.activity import ActivityLogger
from zenfinance.config import AppSettings, GeminiSettings
from zenfinance.ledger import BalanceLedger
from zenfinance.read_model import FinanceReadModel
from zenfinance.services.storage import InMemoryDocumentStore, RecordStore
from zenfinance.validation import FormValidator


OWNER = "user-1"
OTHER_OWNER = "user-2"


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        advice_language="English",
        advice_transactions_limit=10,
        recent_transactions_limit=5,
        future_date_tolerance_days=7,
    )


@pytest.fixture
def gemini_settings() -> GeminiSettings:
    return GeminiSettings(
        api_key="test-key",
        timeout_seconds=5.0,
        max_attempts=2,
        retry_wait_seconds=0,
    )


@pytest.fixture
def backend() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def store(backend) -> RecordStore:
    return RecordStore(backend)


@pytest.fixture
def activity_logger() -> MagicMock:
    return MagicMock(spec=ActivityLogger)


@pytest.fixture
def read_model() -> FinanceReadModel:
    return FinanceReadModel(OWNER)


@pytest.fixture
def ledger(store, activity_logger, read_model) -> BalanceLedger:
    return BalanceLedger(store, activity_logger=activity_logger, read_model=read_model)


@pytest.fixture
def validator(app_settings) -> FormValidator:
    return FormValidator(app_settings)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the Sheets document store."""

    def __init__(self, header: list[str]):
        self.rows: list[list[str]] = [list(header)]
        self.update_cell = MagicMock(side_effect=self._update_cell)
        self.delete_rows = MagicMock(side_effect=self._delete_rows)

    def get_all_values(self) -> list[list[str]]:
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append([str(value) for value in values])

    def _update_cell(self, row: int, col: int, value):
        self.rows[row - 1][col - 1] = str(value)

    def _delete_rows(self, start_index: int, end_index=None):
        del self.rows[start_index - 1:(end_index or start_index)]
