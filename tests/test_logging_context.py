"""Tests for logging context propagation."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from app.logging.context import (
    clear_log_context,
    get_log_context,
    log_context,
    pop_log_context,
    push_log_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


def test_empty_context():
    assert get_log_context() == {}


def test_push_and_pop():
    token = push_log_context(run_id="abc123", source_id="adzuna-us")
    assert get_log_context() == {"run_id": "abc123", "source_id": "adzuna-us"}

    pop_log_context(token)
    assert get_log_context() == {}


def test_nested_push_restores_each_layer():
    token1 = push_log_context(run_id="abc123")
    token2 = push_log_context(source_id="talkiatry", source_type="greenhouse")
    assert get_log_context() == {
        "run_id": "abc123",
        "source_id": "talkiatry",
        "source_type": "greenhouse",
    }

    pop_log_context(token2)
    assert get_log_context() == {"run_id": "abc123"}

    pop_log_context(token1)
    assert get_log_context() == {}


def test_context_override():
    """Pushing the same key shadows the outer value until popped."""
    token1 = push_log_context(source_id="adzuna-us")
    token2 = push_log_context(source_id="jooble-us")
    assert get_log_context() == {"source_id": "jooble-us"}

    pop_log_context(token2)
    assert get_log_context() == {"source_id": "adzuna-us"}

    pop_log_context(token1)


def test_context_manager_nested():
    with log_context(run_id="abc123"):
        with log_context(source_id="cerebral"):
            assert get_log_context() == {"run_id": "abc123", "source_id": "cerebral"}
        assert get_log_context() == {"run_id": "abc123"}

    assert get_log_context() == {}


def test_context_manager_exception():
    """Context is restored when the block raises, and the error propagates."""
    with pytest.raises(ValueError):
        with log_context(run_id="abc123"):
            raise ValueError("Test exception")

    assert get_log_context() == {}


def test_clear_context():
    push_log_context(run_id="abc123", source_id="usajobs")

    clear_log_context()
    assert get_log_context() == {}


def test_returned_context_is_a_copy():
    with log_context(run_id="abc123"):
        context = get_log_context()
        context["source_id"] = "modified"

        assert get_log_context() == {"run_id": "abc123"}


def test_worker_threads_do_not_share_context():
    """Each source task enters its own context on its worker thread."""

    def task(source_id):
        with log_context(run_id="abc123", source_id=source_id):
            return get_log_context()

    with log_context(run_id="outer"):
        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(task, ["adzuna-us", "talkiatry"]))
        assert get_log_context() == {"run_id": "outer"}

    assert results == [
        {"run_id": "abc123", "source_id": "adzuna-us"},
        {"run_id": "abc123", "source_id": "talkiatry"},
    ]
