import pytest

from research_assistant.fakes import FakeSearchProvider

from app.observability import MetricsEmitter
from app.tools.corpus_search import CorpusSearchTool
from app.utils.cache import SearchCache


@pytest.fixture()
def raw_results():
    return [
        {
            "title": "Double-Entry Accounting Explained",
            "content": "Every transaction affects at least two accounts.",
            "url": "https://example.com/double-entry",
            "source": "wiley/wiley-finance-books",
            "relevance_score": 0.92,
        },
        {
            "title": "Ledgers and Journals",
            "content": "Journals record transactions chronologically.",
            "url": "https://example.com/ledgers",
            "source": "wiley/wiley-finance-papers",
            "relevance_score": 0.81,
        },
    ]


@pytest.fixture()
def fake_provider(raw_results):
    return FakeSearchProvider(raw_results)


@pytest.fixture()
def metric_calls():
    return []


@pytest.fixture()
def metrics(metric_calls):
    return MetricsEmitter(sinks=[lambda name, payload: metric_calls.append((name, payload))])


@pytest.fixture()
def search_tool(fake_provider, metrics):
    return CorpusSearchTool(transport=fake_provider, metrics=metrics, cache=SearchCache(ttl_seconds=0))
