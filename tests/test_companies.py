"""Tests for employer normalization and company resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from app.companies import (
    CompanyMergeError,
    CompanyResolver,
    find_canonical_name,
    normalize_company_name,
)
from app.domain.models import Job
from app.persistence import (
    CompanyRepository,
    JobRepository,
    RecordNotFoundError,
    close_database,
    get_session,
    init_database,
)

NOW = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_database(tmp_path):
    init_database(f"sqlite:///{tmp_path / 'companies.db'}")
    yield
    close_database()


def store_job(session, job_id, employer, company_id=None):
    job = Job(
        id=job_id,
        external_id=f"lever_{job_id}",
        source_provider="lever",
        title="PMHNP",
        employer=employer,
        company_id=company_id,
        apply_link=f"https://jobs.lever.co/acme/{job_id}",
        created_at=NOW,
        updated_at=NOW,
        expires_at=NOW + timedelta(days=30),
    )
    JobRepository(session).upsert(job, renewed_expires_at=job.expires_at)
    return job


class TestNormalizeCompanyName:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Acme Health, Inc.", "acme"),
            ("acme health", "acme"),
            ("ACME HEALTH INC", "acme"),
            ("LifeStance Health", "lifestance"),
            ("Talkspace, LLC", "talkspace"),
            ("Mind-Path Medical Group, P.C.", "mind-path"),
            ("Cobalt Behavioral Corporation", "cobalt behavioral"),
            ("  Brightside   Health  ", "brightside"),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_company_name(raw) == expected

    def test_suffixes_only_removed_as_whole_words(self):
        # "co" and "pa" inside words survive
        assert normalize_company_name("Pacific Coast Psychiatry") == "pacific coast psychiatry"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Medical Associates, P.A.", "medical associates pa"),
            ("Health Partners", "health partners"),
            ("Healthcare Services Group", "healthcare services group"),
            ("  LLC  ", "llc"),
        ],
    )
    def test_suffix_only_names_keep_their_words(self, raw, expected):
        assert normalize_company_name(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "***", "(--)"])
    def test_empty_results(self, raw):
        assert normalize_company_name(raw) == ""

    def test_acme_variants_share_identity(self):
        assert normalize_company_name("Acme Health, Inc.") == normalize_company_name("acme health")


class TestFindCanonicalName:
    def test_known_company(self):
        assert find_canonical_name("Talkspace Inc") == "Talkspace"
        assert find_canonical_name("Lyra Health") == "Lyra Health"
        assert find_canonical_name("VA Medical Center") is None
        assert find_canonical_name("va medical") == "Department of Veterans Affairs"

    def test_unknown_company(self):
        assert find_canonical_name("Acme Health") is None
        assert find_canonical_name("") is None


class TestCompanyResolver:
    def test_resolve_creates_company(self, temp_database):
        with get_session() as session:
            company = CompanyResolver(session).resolve("Acme Health, Inc.")

        assert company.name == "Acme Health, Inc."
        assert company.normalized_name == "acme"
        assert company.job_count == 1
        assert company.is_verified is False

    def test_resolve_variants_to_same_company(self, temp_database):
        with get_session() as session:
            first = CompanyResolver(session).resolve("Acme Health, Inc.")
        with get_session() as session:
            second = CompanyResolver(session).resolve("acme health")

        assert second.id == first.id
        assert second.job_count == 2

        with get_session() as session:
            stored = CompanyRepository(session).get(first.id)
            assert stored.job_count == 2
            assert len(CompanyRepository(session).list_all()) == 1

    def test_known_employer_is_verified(self, temp_database):
        with get_session() as session:
            company = CompanyResolver(session).resolve("Talkspace LLC")

        assert company.name == "Talkspace"
        assert company.is_verified is True
        assert "talkspace inc" in company.aliases

    def test_resolve_suffix_only_employer(self, temp_database):
        with get_session() as session:
            resolver = CompanyResolver(session)
            first = resolver.resolve("Medical Associates, P.A.")
            second = resolver.resolve("MEDICAL ASSOCIATES PA")

        assert first.normalized_name == "medical associates pa"
        assert first.name == "Medical Associates, P.A."
        assert second.id == first.id
        assert second.job_count == 2

    @pytest.mark.parametrize("employer", ["", "   ", "***"])
    def test_resolve_rejects_unidentifiable_employer(self, temp_database, employer):
        with get_session() as session:
            with pytest.raises(ValueError):
                CompanyResolver(session).resolve(employer)

    def test_link_job(self, temp_database):
        with get_session() as session:
            store_job(session, "j1", "Acme Health Inc")

        with get_session() as session:
            company = CompanyResolver(session).link_job("j1")

        with get_session() as session:
            assert JobRepository(session).get("j1").company_id == company.id
            assert CompanyResolver(session).link_job("j1") is None

    def test_link_missing_job(self, temp_database):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                CompanyResolver(session).link_job("missing")

    def test_merge(self, temp_database):
        with get_session() as session:
            resolver = CompanyResolver(session)
            keep = resolver.resolve("Acme Health")
            merge = resolver.resolve("Acme Behavioral")
            resolver.resolve("Acme Behavioral")
            store_job(session, "j1", "Acme Health", company_id=keep.id)
            store_job(session, "j2", "Acme Behavioral", company_id=merge.id)
            store_job(session, "j3", "Acme Behavioral", company_id=merge.id)

        with get_session() as session:
            merged = CompanyResolver(session).merge(keep.id, merge.id)

        assert merged.id == keep.id
        assert merged.job_count == 3
        assert "Acme Behavioral" in merged.aliases
        assert "acme behavioral" in merged.aliases
        assert "acme" not in merged.aliases

        with get_session() as session:
            companies = CompanyRepository(session)
            assert companies.get(merge.id) is None
            jobs = JobRepository(session)
            assert {jobs.get(j).company_id for j in ("j1", "j2", "j3")} == {keep.id}

    def test_merge_into_itself(self, temp_database):
        with get_session() as session:
            company = CompanyResolver(session).resolve("Acme Health")
            with pytest.raises(CompanyMergeError, match="itself"):
                CompanyResolver(session).merge(company.id, company.id)

    def test_merge_missing_company(self, temp_database):
        with get_session() as session:
            company = CompanyResolver(session).resolve("Acme Health")
            with pytest.raises(CompanyMergeError, match="not found"):
                CompanyResolver(session).merge(company.id, "missing")
            with pytest.raises(CompanyMergeError, match="not found"):
                CompanyResolver(session).merge("missing", company.id)
