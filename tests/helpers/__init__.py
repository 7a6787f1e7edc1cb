"""Test helper utilities for job ingestion service tests."""

from .fixture_adapter import FailingAdapter, FixtureAdapter, load_fixture_jobs, make_raw_job

__all__ = ["FailingAdapter", "FixtureAdapter", "load_fixture_jobs", "make_raw_job"]
