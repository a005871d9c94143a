from app.services.market import summarize_prices


def test_empty_series_is_stable():
    summary = summarize_prices([])
    assert summary.current_price == 0.0
    assert summary.trend == "stable"


def test_short_series_has_no_trend():
    summary = summarize_prices([120.0, 100.0, 80.0])
    assert summary.current_price == 120.0
    assert summary.average_price == 100.0
    assert summary.percent_change == 0.0
    assert summary.trend == "stable"


def test_rising_and_falling_trends():
    newest_first = [110.0] * 7 + [100.0] * 7
    assert summarize_prices(newest_first).trend == "rising"
    assert summarize_prices(list(reversed(newest_first))).trend == "falling"


def test_small_moves_are_stable():
    assert summarize_prices([104.0] * 7 + [100.0] * 7).trend == "stable"


def test_percent_from_average():
    summary = summarize_prices([150.0, 50.0])
    assert summary.as_dict()["percent_from_average"] == 50.0
