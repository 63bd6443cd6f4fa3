import pytest

from aitravel.geocode.config import GeocodeConfig
from aitravel.geocode.errors import InvalidRequest
from aitravel.geocode.models import CallerLocation, SearchRequest
from aitravel.geocode.normalizer import build_fetch_plan, normalize


# ── normalize ────────────────────────────────────────────────────────────


class TestNormalize:
    def test_missing_query_rejected(self):
        with pytest.raises(InvalidRequest) as exc_info:
            normalize(None)
        assert exc_info.value.message == "Query parameter required"
        assert exc_info.value.status_code == 400

    def test_blank_query_rejected(self):
        with pytest.raises(InvalidRequest):
            normalize("   ")

    def test_defaults(self):
        req = normalize("Tokyo Station")
        assert req.query == "Tokyo Station"
        assert req.limit == 5
        assert req.caller_location is None
        assert not req.biased

    def test_limit_parsed(self):
        assert normalize("x", "12").limit == 12

    def test_unparseable_limit_defaults(self):
        assert normalize("x", "many").limit == 5

    def test_non_positive_limit_defaults(self):
        assert normalize("x", "0").limit == 5
        assert normalize("x", "-3").limit == 5

    def test_no_upper_bound_by_default(self):
        assert normalize("x", "500").limit == 500

    def test_configured_cap_clamps_limit(self):
        cfg = GeocodeConfig(max_limit=20)
        assert normalize("x", "500", config=cfg).limit == 20

    def test_caller_location_parsed(self):
        req = normalize("ramen", "2", "35.0", "135.0")
        assert req.caller_location == CallerLocation(lat=35.0, lng=135.0)
        assert req.biased

    def test_partial_coordinates_mean_no_bias(self):
        assert normalize("ramen", None, "35.0", None).caller_location is None
        assert normalize("ramen", None, None, "135.0").caller_location is None
        assert normalize("ramen", None, "", "135.0").caller_location is None

    def test_non_numeric_coordinates_mean_no_bias(self):
        assert normalize("ramen", None, "abc", "135.0").caller_location is None
        assert normalize("ramen", None, "nan", "135.0").caller_location is None

    def test_out_of_range_coordinates_mean_no_bias(self):
        assert normalize("ramen", None, "95.0", "135.0").caller_location is None
        assert normalize("ramen", None, "35.0", "200.0").caller_location is None

    def test_zero_coordinates_are_a_location(self):
        assert normalize("x", None, "0", "0").caller_location == CallerLocation(lat=0.0, lng=0.0)


# ── build_fetch_plan ─────────────────────────────────────────────────────


class TestFetchPlan:
    def test_unbiased_fetches_exactly_limit(self):
        plan = build_fetch_plan(SearchRequest(query="Tokyo Station", limit=3))
        assert plan.fetch_limit == 3
        assert plan.viewbox is None

    def test_biased_amplifies_fetch(self):
        req = SearchRequest(query="ramen", limit=5, caller_location=CallerLocation(lat=35.0, lng=135.0))
        assert build_fetch_plan(req).fetch_limit == 25

    def test_biased_small_limit_uses_floor_of_twenty(self):
        req = SearchRequest(query="ramen", limit=2, caller_location=CallerLocation(lat=35.0, lng=135.0))
        assert build_fetch_plan(req).fetch_limit == 20

    def test_fetch_count_never_below_limit(self):
        for limit in (1, 4, 5, 9, 40):
            req = SearchRequest(query="q", limit=limit, caller_location=CallerLocation(lat=0.0, lng=0.0))
            assert build_fetch_plan(req).fetch_limit >= limit

    def test_viewbox_centred_on_caller(self):
        req = SearchRequest(query="ramen", caller_location=CallerLocation(lat=35.0, lng=135.0))
        box = build_fetch_plan(req).viewbox
        assert (box.left, box.top, box.right, box.bottom) == (134.0, 36.0, 136.0, 34.0)
        assert box.to_viewbox() == "134.0,36.0,136.0,34.0"
