"""Unit tests for hashing utilities."""

import re

import pytest

from app.utils.hashing import (
    canonicalize_url,
    compute_dedup_key,
    compute_url_external_id,
    hash_string,
    normalize_location_for_dedup,
    normalize_title_for_dedup,
)


class TestHashString:
    def test_hash_string_is_sha256_hex(self):
        result = hash_string("test")

        assert result == "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08"

    def test_hash_string_unicode(self):
        assert len(hash_string("Café ☕")) == 64


class TestCanonicalizeUrl:
    """Tests for canonicalize_url function."""

    def test_full_canonicalization(self):
        url = "HTTPS://Jobs.Example.com/p/1/?utm_source=x&b=2&a=1#apply"

        assert canonicalize_url(url) == "https://jobs.example.com/p/1?a=1&b=2"

    @pytest.mark.parametrize("param", ["ref", "source", "src", "gclid", "fbclid", "utm_campaign", "UTM_Medium"])
    def test_tracking_parameters_dropped(self, param):
        url = f"https://boards.greenhouse.io/acme/jobs/42?{param}=feed"

        assert canonicalize_url(url) == "https://boards.greenhouse.io/acme/jobs/42"

    def test_other_parameters_kept(self):
        url = "https://www.usajobs.gov/job/123?gh_jid=9"

        assert canonicalize_url(url) == "https://www.usajobs.gov/job/123?gh_jid=9"

    def test_path_case_preserved(self):
        url = "https://jobs.lever.co/Acme/ABC-123/"

        assert canonicalize_url(url) == "https://jobs.lever.co/Acme/ABC-123"

    def test_surrounding_whitespace_ignored(self):
        assert canonicalize_url("  https://example.com/a  ") == "https://example.com/a"

    def test_equivalent_urls_match(self):
        first = canonicalize_url("https://example.com/job/7?b=2&a=1&utm_source=indeed")
        second = canonicalize_url("https://EXAMPLE.com/job/7/?a=1&b=2#top")

        assert first == second


class TestComputeUrlExternalId:
    def test_format(self):
        external_id = compute_url_external_id("jooble", "https://jooble.org/desc/123")

        assert re.fullmatch(r"jooble_[0-9a-f]{16}", external_id)

    def test_stable_across_tracking_noise(self):
        first = compute_url_external_id("jooble", "https://jooble.org/desc/123?utm_source=a")
        second = compute_url_external_id("jooble", "https://jooble.org/desc/123/")

        assert first == second

    def test_provider_prefix_differs(self):
        url = "https://example.com/job/1"

        assert compute_url_external_id("adzuna", url) != compute_url_external_id("jooble", url)
        assert compute_url_external_id("adzuna", url)[7:] == compute_url_external_id("jooble", url)[7:]


class TestDedupNormalization:
    @pytest.mark.parametrize(
        "title,expected",
        [
            ("PMHNP, Remote!", "pmhnp remote"),
            ("The PMHNP for Adults and Children", "pmhnp adults children"),
            ("Psychiatric Nurse Practitioner (PMHNP-BC)", "psychiatric nurse practitioner pmhnp bc"),
            ("  PMHNP   ", "pmhnp"),
        ],
    )
    def test_normalize_title(self, title, expected):
        assert normalize_title_for_dedup(title) == expected

    @pytest.mark.parametrize(
        "location,expected",
        [
            ("Austin, TX", "austin, tx"),
            ("  Austin ,  TX ", "austin, tx"),
            ("Remote - US", "remote us"),
            (None, ""),
            ("", ""),
        ],
    )
    def test_normalize_location(self, location, expected):
        assert normalize_location_for_dedup(location) == expected


class TestComputeDedupKey:
    """Tests for compute_dedup_key function."""

    def test_dedup_key_is_hex_digest(self):
        key = compute_dedup_key("acme", "PMHNP", "Austin, TX")

        assert len(key) == 64
        assert all(c in "0123456789abcdef" for c in key)

    def test_formatting_differences_collapse(self):
        first = compute_dedup_key("acme", "PMHNP - Remote", "Austin, TX")
        second = compute_dedup_key(" acme ", "pmhnp remote", "austin ,tx")

        assert first == second

    def test_matches_hash_of_normalized_triple(self):
        assert compute_dedup_key("acme", "The PMHNP", None) == hash_string("acme|pmhnp|")

    @pytest.mark.parametrize(
        "employer,title,location",
        [
            ("mindpath", "PMHNP", "Austin, TX"),
            ("acme", "Psychiatrist", "Austin, TX"),
            ("acme", "PMHNP", "Dallas, TX"),
        ],
    )
    def test_any_field_change_changes_key(self, employer, title, location):
        base = compute_dedup_key("acme", "PMHNP", "Austin, TX")

        assert compute_dedup_key(employer, title, location) != base
