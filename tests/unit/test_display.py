"""
Unit tests for ad_trace_analyzer.formatters.display module.
"""
from ad_trace_analyzer.formatters.display import abbreviate_url, format_seconds, format_time, format_unitless


class TestFormatTime:
    """Tests for the format_time() function."""

    def test_format_milliseconds(self):
        assert format_time(0) == "0 ms"
        assert format_time(10.25) == "10 ms"
        assert format_time(850) == "850 ms"

    def test_format_seconds(self):
        assert format_time(1000) == "1.0 s"
        assert format_time(3249) == "3.2 s"

    def test_rounds_up_to_seconds(self):
        """Test that a value rounding to 1000 ms is shown in seconds."""
        assert format_time(999.7) == "1.0 s"

    def test_long_loads_stay_in_seconds(self):
        assert format_time(75000) == "75.0 s"

    def test_matches_audit_display(self):
        assert format_time(3500) == format_seconds(3500)


class TestAuditDisplayValues:
    def test_format_seconds(self):
        assert format_seconds(3500) == "3.5 s"
        assert format_seconds(0) == "0.0 s"

    def test_format_unitless(self):
        assert format_unitless(0.1) == "0.1"
        assert format_unitless(0.12345) == "0.123"
        assert format_unitless(0) == "0"


class TestAbbreviateUrl:
    """Tests for table URL shortening."""

    def test_drops_scheme_and_query(self):
        assert abbreviate_url("https://ib.adnxs.com/ut/v3/prebid?x=1") == "ib.adnxs.com/ut/v3/prebid"

    def test_long_path_truncated(self):
        url = "https://cdn.example/" + "a" * 100
        shortened = abbreviate_url(url)
        assert shortened.startswith("cdn.example/aaa")
        assert shortened.endswith("…")
        assert len(shortened) == len("cdn.example") + 40

    def test_non_url_unchanged(self):
        assert abbreviate_url("about:blank") == "about:blank"
