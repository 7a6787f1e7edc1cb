"""Unit tests for salary parsing, location parsing and the JobNormalizer."""

import pytest

from app.domain.models import RawJob
from app.normalization import (
    JobNormalizer,
    NormalizationError,
    build_summary,
    format_display_salary,
    normalize_salary,
    parse_location,
    parse_salary_text,
)
from app.normalization.salary import period_from_hint
from app.normalization.service import collapse_whitespace, detect_job_type, detect_mode


def make_raw_job(**overrides):
    data = {
        "external_id": "adzuna_1",
        "source_provider": "adzuna",
        "title": "PMHNP - Remote",
        "employer": "Acme Health Inc",
        "location": "Remote",
        "description": "Provide psychiatric care via telehealth.",
        "apply_url": "https://example.com/jobs/1",
    }
    data.update(overrides)
    return RawJob(**data)


class TestParseSalaryText:
    def test_hourly_range(self):
        result = parse_salary_text("$65-$75/hr")
        assert result.min_value == 65
        assert result.max_value == 75
        assert result.period == "hourly"
        assert result.period_inferred is False

    def test_thousands_suffix_on_both_ends(self):
        result = parse_salary_text("$150k - $180k")
        assert (result.min_value, result.max_value) == (150000, 180000)
        assert result.period == "annual"
        assert result.period_inferred is False

    def test_thousands_suffix_on_upper_end_only(self):
        result = parse_salary_text("Pay $150-180k DOE")
        assert (result.min_value, result.max_value) == (150000, 180000)

    def test_comma_amounts_with_to(self):
        result = parse_salary_text("$120,000 to $140,000 annually")
        assert (result.min_value, result.max_value) == (120000, 140000)
        assert result.period == "annual"

    def test_single_per_hour(self):
        result = parse_salary_text("Starting at $55 per hour")
        assert result.min_value == 55
        assert result.max_value is None
        assert result.period == "hourly"

    def test_monthly_suffix(self):
        assert parse_salary_text("$12,000/month").period == "monthly"

    def test_small_amount_without_unit_inferred_hourly(self):
        result = parse_salary_text("$95")
        assert result.period == "hourly"
        assert result.period_inferred is True

    def test_large_amount_without_unit_inferred_annual(self):
        result = parse_salary_text("$130,000")
        assert result.period == "annual"
        assert result.period_inferred is True

    @pytest.mark.parametrize("text", [None, "", "Competitive pay", "Call 555-1234"])
    def test_no_currency_amount(self, text):
        assert parse_salary_text(text) is None


class TestPeriodFromHint:
    @pytest.mark.parametrize(
        "hint,expected",
        [
            ("PH", "hourly"),
            ("per hour", "hourly"),
            ("PA", "annual"),
            ("per-year-salary", "annual"),
            ("monthly", "monthly"),
            ("weekly", "weekly"),
            ("fortnight", None),
            (None, None),
        ],
    )
    def test_hints(self, hint, expected):
        assert period_from_hint(hint) == expected


class TestNormalizeSalary:
    def test_hourly_annualized(self):
        salary = normalize_salary(65, 75, "hourly")
        assert salary.normalized_min == 135200
        assert salary.normalized_max == 156000
        assert salary.period == "hourly"
        assert salary.display == "$65-$75/hr"
        assert salary.is_estimated is False

    def test_annual_kept(self):
        salary = normalize_salary(150000, 180000, "annual")
        assert (salary.normalized_min, salary.normalized_max) == (150000, 180000)
        assert salary.display == "$150k-$180k/yr"

    def test_reversed_range_swapped(self):
        salary = normalize_salary(180000, 150000, "annual")
        assert (salary.normalized_min, salary.normalized_max) == (150000, 180000)
        assert salary.rejected is False

    def test_implausible_bound_nulled_other_kept(self):
        salary = normalize_salary(10, 75, "hourly")
        assert salary.normalized_min is None
        assert salary.normalized_max == 156000
        assert salary.rejected is True
        assert salary.display == "$75/hr"

    def test_all_bounds_implausible(self):
        salary = normalize_salary(600, None, "hourly")
        assert not salary.has_salary
        assert salary.rejected is True
        assert salary.display == "Competitive"

    def test_annual_below_floor_rejected(self):
        salary = normalize_salary(30000, None, "annual")
        assert not salary.has_salary

    def test_monthly_annualized_and_reported_annual(self):
        salary = normalize_salary(10000, None, "monthly")
        assert salary.normalized_min == 120000
        assert salary.period == "annual"
        assert salary.display == "$120k/yr"

    def test_missing_period_is_estimated(self):
        salary = normalize_salary(150000, None, None)
        assert salary.is_estimated is True
        assert salary.display == "~$150k/yr"

    def test_nothing_present(self):
        salary = normalize_salary(None, None, "annual")
        assert salary.display == "Competitive"
        assert salary.rejected is False


class TestFormatDisplaySalary:
    def test_competitive_when_absent(self):
        assert format_display_salary(None, None, "annual") == "Competitive"

    def test_fractional_hourly(self):
        assert format_display_salary(65.5, None, "hourly") == "$65.50/hr"

    def test_equal_bounds_shown_once(self):
        assert format_display_salary(150000, 150000, "annual") == "$150k/yr"

    def test_estimate_prefix(self):
        assert format_display_salary(45, 60, "hourly", is_estimated=True) == "~$45-$60/hr"


class TestParseLocation:
    def test_city_state_code(self):
        location = parse_location("Austin, TX")
        assert location.city == "Austin"
        assert location.state == "Texas"
        assert location.state_code == "TX"
        assert location.confidence == 1.0
        assert location.parsed

    def test_city_state_name(self):
        location = parse_location("Denver, Colorado")
        assert location.city == "Denver"
        assert location.state_code == "CO"

    def test_remote(self):
        location = parse_location("Remote - US")
        assert location.is_remote
        assert location.state_code is None
        assert location.confidence == 0.7

    def test_telehealth_counts_as_remote(self):
        assert parse_location("Telehealth").is_remote

    def test_hybrid_still_parses_state(self):
        location = parse_location("Hybrid - Boston, MA")
        assert location.is_hybrid
        assert location.state_code == "MA"

    def test_bare_state_code_with_city(self):
        location = parse_location("Nashville TN 37201")
        assert location.city == "Nashville"
        assert location.state_code == "TN"

    def test_longest_state_name_wins(self):
        assert parse_location("Rural clinics across West Virginia").state_code == "WV"

    def test_unrecognized(self):
        location = parse_location("Austin, Travis County")
        assert location.state_code is None
        assert location.confidence == 0.3
        assert not location.parsed

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_blank(self, text):
        location = parse_location(text)
        assert location.city is None
        assert not location.is_remote


class TestTextHelpers:
    def test_collapse_whitespace_keeps_paragraphs(self):
        assert collapse_whitespace("a  b\t c\n\n\n\nd ") == "a b c\n\nd"

    def test_build_summary_truncates(self):
        summary = build_summary("word " * 100, length=50)
        assert summary.endswith("...")
        assert len(summary) <= 53

    def test_build_summary_short_text_untouched(self):
        assert build_summary("Short  description", length=50) == "Short description"

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Per Diem PMHNP", "Per Diem"),
            ("1099 contract role", "Contract"),
            ("part-time weekends", "Part-Time"),
            ("Full Time with benefits", "Full-Time"),
            ("PMHNP", None),
        ],
    )
    def test_detect_job_type(self, text, expected):
        assert detect_job_type(text) == expected

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Hybrid schedule", "Hybrid"),
            ("Telepsychiatry visits", "Remote"),
            ("On-site clinic", "In-Person"),
            ("Austin clinic", None),
        ],
    )
    def test_detect_mode(self, text, expected):
        assert detect_mode(text) == expected


class TestJobNormalizer:
    @pytest.fixture
    def normalizer(self):
        return JobNormalizer()

    def test_hourly_salary_text(self, normalizer):
        candidate = normalizer.normalize(make_raw_job(salary_text="$65-$75/hr"))

        assert candidate.normalized_min_salary == 135200
        assert candidate.normalized_max_salary == 156000
        assert candidate.salary_period == "hourly"
        assert candidate.display_salary == "$65-$75/hr"
        assert candidate.salary_is_estimated is False
        assert candidate.salary_range == "$65-$75/hr"
        assert candidate.min_salary == 65
        assert candidate.max_salary == 75

    def test_reversed_salary_text_stores_ordered_bounds(self, normalizer):
        candidate = normalizer.normalize(make_raw_job(salary_text="$75-$65/hr"))

        assert (candidate.min_salary, candidate.max_salary) == (65, 75)
        assert candidate.normalized_min_salary == 135200
        assert candidate.normalized_max_salary == 156000
        assert candidate.salary_range == "$75-$65/hr"

    def test_reversed_structured_salary_stores_ordered_bounds(self, normalizer):
        candidate = normalizer.normalize(
            make_raw_job(salary_min=180000, salary_max=150000, salary_period="annual")
        )

        assert (candidate.min_salary, candidate.max_salary) == (150000, 180000)
        assert candidate.normalized_min_salary == 150000

    def test_structured_salary_with_estimate_flag(self, normalizer):
        candidate = normalizer.normalize(
            make_raw_job(
                salary_min=120000,
                salary_max=150000,
                salary_period="annual",
                salary_is_estimated=True,
            )
        )
        assert candidate.normalized_min_salary == 120000
        assert candidate.display_salary == "~$120k-$150k/yr"
        assert candidate.salary_is_estimated is True

    def test_structured_salary_period_from_text(self, normalizer):
        candidate = normalizer.normalize(
            make_raw_job(salary_min=65, salary_max=75, salary_text="$65 - $75 per hour")
        )
        assert candidate.salary_period == "hourly"
        assert candidate.normalized_max_salary == 156000

    def test_structured_salary_without_period_inferred(self, normalizer):
        candidate = normalizer.normalize(make_raw_job(salary_min=70))
        assert candidate.salary_period == "hourly"
        assert candidate.display_salary == "~$70/hr"

    def test_salary_from_description(self, normalizer):
        candidate = normalizer.normalize(
            make_raw_job(description="Psychiatric care. Pay: $140,000 - $170,000 per year.")
        )
        assert (candidate.normalized_min_salary, candidate.normalized_max_salary) == (140000, 170000)
        assert candidate.salary_is_estimated is False

    def test_thousands_without_unit_is_annual_and_stated(self, normalizer):
        candidate = normalizer.normalize(make_raw_job(salary_text="$150k"))
        assert candidate.display_salary == "$150k/yr"
        assert candidate.salary_is_estimated is False

    def test_implausible_salary_nulled_job_kept(self, normalizer):
        candidate = normalizer.normalize(make_raw_job(salary_text="$5"))
        assert candidate.salary_rejected is True
        assert not candidate.has_salary
        assert candidate.display_salary == "Competitive"
        assert candidate.salary_is_estimated is False

    def test_no_salary(self, normalizer):
        candidate = normalizer.normalize(make_raw_job())
        assert candidate.display_salary == "Competitive"
        assert candidate.salary_rejected is False

    def test_location_fields(self, normalizer):
        candidate = normalizer.normalize(
            make_raw_job(
                title="Psychiatric Nurse Practitioner",
                location="Austin,  TX",
                description="On-site outpatient clinic",
            )
        )
        assert candidate.location == "Austin, TX"
        assert candidate.city == "Austin"
        assert candidate.state_code == "TX"
        assert candidate.is_remote is False
        assert candidate.mode == "In-Person"
        assert candidate.location_parsed

    def test_remote_location_sets_mode(self, normalizer):
        candidate = normalizer.normalize(make_raw_job(location="Remote"))
        assert candidate.is_remote
        assert candidate.mode == "Remote"

    def test_hybrid_location_sets_mode(self, normalizer):
        candidate = normalizer.normalize(
            make_raw_job(location="Hybrid - Boston, MA", description="Some telehealth visits")
        )
        assert candidate.mode == "Hybrid"

    def test_provider_job_type_preferred(self, normalizer):
        candidate = normalizer.normalize(
            make_raw_job(job_type="Contract", description="Full-time hours")
        )
        assert candidate.job_type == "Contract"

    def test_job_type_detected(self, normalizer):
        candidate = normalizer.normalize(make_raw_job(description="This is a part-time role"))
        assert candidate.job_type == "Part-Time"

    def test_whitespace_collapsed(self, normalizer):
        candidate = normalizer.normalize(
            make_raw_job(title="PMHNP    Remote", employer="Acme   Health")
        )
        assert candidate.title == "PMHNP Remote"
        assert candidate.employer == "Acme Health"

    def test_summary_length(self):
        normalizer = JobNormalizer(summary_length=50)
        candidate = normalizer.normalize(make_raw_job(description="psychiatric " * 40))
        assert candidate.description_summary.endswith("...")
        assert len(candidate.description_summary) <= 53

    def test_missing_title_raises(self, normalizer):
        raw_job = RawJob.model_construct(
            external_id="adzuna_9",
            source_provider="adzuna",
            title="   ",
            employer="Acme",
            location=None,
            description="",
            apply_url="https://example.com/jobs/9",
            salary_text=None,
            salary_min=None,
            salary_max=None,
            salary_period=None,
            salary_is_estimated=False,
            job_type=None,
            posted_at=None,
            expires_at=None,
        )
        with pytest.raises(NormalizationError) as exc_info:
            normalizer.normalize(raw_job)
        assert exc_info.value.field == "title"
        assert exc_info.value.external_id == "adzuna_9"

    def test_deterministic(self, normalizer):
        raw_job = make_raw_job(salary_text="$150k - $180k", location="Denver, CO")
        assert normalizer.normalize(raw_job) == normalizer.normalize(raw_job)
