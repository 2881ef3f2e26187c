import math
import pandas as pd
from app.factors import FACTORS, FactorKind
from app.models import Lead, ScoreFactor
from app.scoring import aggregate, compute_score, score_label


NOW = pd.Timestamp("2023-01-31T00:00:00Z")
ALL_WEIGHTS = {kind.key: 1.0 for kind in FactorKind}


def _factor(lead, kind, now=NOW):
    result = compute_score(lead, {kind.key: 1.0}, now=now)
    matches = [f for f in result.factors if f.name == kind.display_name]
    return matches[0] if matches else None


def test_scenario_four_factors():
    lead = Lead(email="a@b.com", company="Acme", create_date="2023-01-01")
    weights = {"lead_source": 0.2, "has_valid_email": 0.2, "has_company_match": 0.2, "days_since_created": 0.4}
    result = compute_score(lead, weights, now=NOW)
    assert [f.name for f in result.factors] == ["Lead Source", "Valid Email", "Company Match", "Recency"]
    recency = 1 - 30 / 90
    expected = (1 * 0.2 + 1 * 0.2 + 1 * 0.2 + recency * 0.4) * 100
    assert result.score == math.floor(expected + 0.5) == 87
    assert result.label == "Hot Lead"
    assert result.email == "a@b.com"


def test_zero_or_missing_weights():
    lead = Lead(email="a@b.com", company="Acme", jobtitle="CEO", email_open_count=5)
    for weights in ({}, None, {k: 0.0 for k in ALL_WEIGHTS}):
        result = compute_score(lead, weights, now=NOW)
        assert result.score == 0
        assert result.factors == []
        assert result.label == "Cold Lead"


def test_untrusted_weights_skipped():
    lead = Lead(email="a@b.com")
    weights = {"lead_source": -1.0, "has_valid_email": float("nan"), "profile_completeness": float("inf")}
    result = compute_score(lead, weights, now=NOW)
    assert result.factors == []
    assert result.score == 0


def test_large_weight_clamps_to_100():
    result = compute_score(Lead(email="a@b.com"), {"lead_source": 50.0}, now=NOW)
    assert result.score == 100
    assert result.factors[0].contribution == 50.0


def test_boolean_factors_suppressed_when_false():
    result = compute_score(Lead(email="no-at-sign"), ALL_WEIGHTS, now=NOW)
    names = [f.name for f in result.factors]
    assert "Lead Source" in names
    assert "Valid Email" not in names
    assert "Company Match" not in names
    assert "Industry Match" not in names
    empty = compute_score(Lead(), ALL_WEIGHTS, now=NOW)
    assert "Lead Source" not in [f.name for f in empty.factors]


def test_continuous_factors_emitted_at_zero():
    lead = Lead(create_date="2022-01-01")
    result = compute_score(lead, ALL_WEIGHTS, now=NOW)
    by_name = {f.name: f for f in result.factors}
    assert by_name["Engagement"].value == 0.0
    assert by_name["Engagement"].contribution == 0.0
    assert by_name["Profile Complete"].value == 0.0
    assert by_name["Recency"].value == 0.0


def test_factor_order_is_fixed():
    lead = Lead(
        email="a@b.com", firstname="Ann", lastname="Lee", company="Acme", jobtitle="VP Sales",
        industry="Software", phone="555", city="Austin", country="US", lead_status="open",
        email_open_count=1, email_click_count=1, create_date="2023-01-20",
    )
    result = compute_score(lead, ALL_WEIGHTS, now=NOW)
    assert [f.name for f in result.factors] == [spec.kind.display_name for spec in FACTORS]
    assert result.score == 100


def test_contribution_is_value_times_weight():
    lead = Lead(email="a@b.com", lead_status="new", jobtitle="Sales Manager")
    weights = {"lead_status": 0.3, "company_size_bucket": 0.25, "recency_score": 0.1}
    result = compute_score(lead, weights, now=NOW)
    for f in result.factors:
        assert f.contribution == f.value * f.weight
    assert result.score == math.floor((0.3 * 0.3 + 0.6 * 0.25 + 0.2 * 0.1) * 100 + 0.5)


def test_recency_skipped_when_missing_or_unparseable():
    assert _factor(Lead(), FactorKind.RECENCY) is None
    assert _factor(Lead(create_date="not-a-date"), FactorKind.RECENCY) is None
    assert _factor(Lead(create_date="2023-01-31"), FactorKind.RECENCY).value == 1.0
    assert _factor(Lead(create_date="2023-02-28"), FactorKind.RECENCY).value == 1.0
    millis = str(int(pd.Timestamp("2023-01-01T00:00:00Z").timestamp() * 1000))
    assert _factor(Lead(create_date=millis), FactorKind.RECENCY).value == 1 - 30 / 90


def test_recency_uses_whole_days():
    lead = Lead(create_date="2023-01-29T12:00:00Z")
    assert _factor(lead, FactorKind.RECENCY).value == 1 - 1 / 90


def test_lead_status_case_insensitive():
    upper = _factor(Lead(lead_status="QUALIFIED"), FactorKind.LEAD_STATUS)
    lower = _factor(Lead(lead_status="qualified"), FactorKind.LEAD_STATUS)
    assert upper.value == lower.value == 1.0
    assert _factor(Lead(lead_status="In_Progress"), FactorKind.LEAD_STATUS).value == 0.7
    assert _factor(Lead(lead_status="unqualified"), FactorKind.LEAD_STATUS).value == 0.1
    assert _factor(Lead(lead_status="contacted"), FactorKind.LEAD_STATUS).value == 0.5
    assert _factor(Lead(), FactorKind.LEAD_STATUS) is None


def test_engagement_saturates():
    assert _factor(Lead(email_open_count=10, email_click_count=3), FactorKind.ENGAGEMENT).value == 1.0
    assert _factor(Lead(email_open_count=50, email_click_count=9), FactorKind.ENGAGEMENT).value == 1.0
    assert _factor(Lead(email_open_count=5), FactorKind.ENGAGEMENT).value == 0.2
    assert _factor(Lead(email_open_count=-20), FactorKind.ENGAGEMENT).value == 0.0


def test_profile_completeness_fraction():
    lead = Lead(email="a@b.com", company="Acme", city="Austin", lead_status="new")
    assert _factor(lead, FactorKind.PROFILE_COMPLETE).value == 3 / 9
    full = Lead(
        email="a@b.com", firstname="A", lastname="B", company="C", jobtitle="D",
        phone="E", city="F", country="G", industry="H",
    )
    assert _factor(full, FactorKind.PROFILE_COMPLETE).value == 1.0


def test_company_size_tiers():
    assert _factor(Lead(jobtitle="CEO and Sales Manager"), FactorKind.COMPANY_SIZE).value == 1.0
    assert _factor(Lead(jobtitle="Co-Founder"), FactorKind.COMPANY_SIZE).value == 1.0
    assert _factor(Lead(jobtitle="VP Marketing"), FactorKind.COMPANY_SIZE).value == 0.8
    assert _factor(Lead(jobtitle="Chief Revenue Officer"), FactorKind.COMPANY_SIZE).value == 0.8
    assert _factor(Lead(jobtitle="Head of Growth"), FactorKind.COMPANY_SIZE).value == 0.6
    assert _factor(Lead(jobtitle="Engineer"), FactorKind.COMPANY_SIZE).value == 0.3
    assert _factor(Lead(), FactorKind.COMPANY_SIZE) is None


def test_activity_recency():
    assert _factor(Lead(), FactorKind.ACTIVITY_RECENCY).value == 0.2
    assert _factor(Lead(num_deals=2, notes_last_updated="2020-01-01"), FactorKind.ACTIVITY_RECENCY).value == 0.7
    assert _factor(Lead(notes_last_updated="2023-01-21"), FactorKind.ACTIVITY_RECENCY).value == 0.5
    assert _factor(Lead(notes_last_updated="2022-12-01"), FactorKind.ACTIVITY_RECENCY).value == 0.2
    assert _factor(Lead(notes_last_updated="soon"), FactorKind.ACTIVITY_RECENCY).value == 0.2


def test_score_labels():
    assert score_label(100) == "Hot Lead"
    assert score_label(80) == "Hot Lead"
    assert score_label(79) == "Warm Lead"
    assert score_label(60) == "Warm Lead"
    assert score_label(59) == "Cool Lead"
    assert score_label(40) == "Cool Lead"
    assert score_label(39) == "Cold Lead"
    assert score_label(0) == "Cold Lead"


def test_aggregate_rounds_half_up_and_clamps():
    half = [ScoreFactor(name="x", weight=1.0, value=0.125, contribution=0.125)]
    assert aggregate(half) == (13, "Cold Lead")
    assert aggregate([]) == (0, "Cold Lead")
    negative = [ScoreFactor(name="x", weight=1.0, value=1.0, contribution=-3.0)]
    assert aggregate(negative)[0] == 0


def test_scoring_is_deterministic():
    lead = Lead(email="a@b.com", create_date="2023-01-10", notes_last_updated="1672531200000", lead_status="open")
    a = compute_score(lead, ALL_WEIGHTS, now=NOW)
    b = compute_score(lead, ALL_WEIGHTS, now=NOW)
    assert a.model_dump_json() == b.model_dump_json()
    assert isinstance(a.score, int) and 0 <= a.score <= 100


def test_null_weight_treated_as_missing():
    lead = Lead(email="a@b.com", industry="Software")
    result = compute_score(lead, {"lead_source": None, "industry_match": 0.5}, now=NOW)
    assert [f.name for f in result.factors] == ["Industry Match"]
    assert result.score == 50
