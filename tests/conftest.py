"""Pytest configuration and fixtures."""

import asyncio
import os
import sys
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep tests off real services
os.environ.setdefault("FINSTATEMENT_ENV", "test")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")

from finstatement.core.models import DocConfig, Element, IndexHit


BALANCE_SHEET_HTML = "<table><tr><td>Total Assets</td><td>500</td></tr></table>"
INCOME_STATEMENT_HTML = (
    "<table><tr><td>Revenue</td><td>1,234.5</td></tr>"
    "<tr><td>Net income</td><td>(87)</td></tr><tr><td>Margin</td><td>7.1%</td></tr></table>"
)


class FakeIndex:
    """In-memory vector index returning scripted hits."""

    def __init__(self, hits=None, error=None, delay=0.0):
        self.hits = list(hits or [])
        self.error = error
        self.delay = delay
        self.calls = []

    async def search(self, query_text, top_k):
        self.calls.append((query_text, top_k))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.hits)


class ScriptedLLM:
    """Language model that replays scripted answers in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []
        self.temperatures = []

    async def complete(self, prompt, *, temperature=0.0):
        self.prompts.append(prompt)
        self.temperatures.append(temperature)
        if not self.responses:
            raise AssertionError("ScriptedLLM ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def call_count(self):
        return len(self.prompts)


class RecordingObserver:
    """Observer that records every event it receives."""

    def __init__(self):
        self.events = []

    def stage_started(self, stage, **attributes):
        self.events.append(("started", stage))

    def stage_completed(self, stage, duration_ms, **attributes):
        self.events.append(("completed", stage))

    def stage_failed(self, stage, duration_ms, error):
        self.events.append(("failed", stage, type(error).__name__))


def make_hit(element_id, score=0.9, source_name="hood-10Q.pdf", preview="Total Assets 500"):
    return IndexHit(id=element_id, source_name=source_name, score=score, preview=preview)


@pytest.fixture(scope="session", autouse=True)
def setup_logging():
    """Set up logging for tests."""
    from finstatement.infrastructure.logger import setup_logging
    setup_logging(log_level="WARNING")


@pytest.fixture(scope="session")
def project_root():
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def doc_config():
    """Config for Robinhood's 10-Q balance sheet."""
    return DocConfig(
        document_name="hood-10Q.pdf",
        company_name="Robinhood",
        document_type="10-Q",
        report_type="Balance Sheet",
    )


@pytest.fixture
def elements():
    """Small document array: two tables and one narrative block."""
    return (
        Element(
            element_id="e1",
            source_name="hood-10Q.pdf",
            raw_content=BALANCE_SHEET_HTML,
            text="Total Assets 500",
            element_type="Table",
        ),
        Element(
            element_id="e2",
            source_name="hood-10Q.pdf",
            raw_content=INCOME_STATEMENT_HTML,
            text="Revenue 1,234.5 Net income (87) Margin 7.1%",
            element_type="Table",
        ),
        Element(
            element_id="e3",
            source_name="hood-10Q.pdf",
            raw_content="",
            text="Management's discussion and analysis",
            element_type="NarrativeText",
        ),
    )
