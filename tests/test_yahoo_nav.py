from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from requests.exceptions import ConnectionError as RequestsConnectionError

from conftest import make_chart_payload
from reinvest.data.yahoo import (
    YahooNavClient,
    cache_covers,
    chart_url,
    mirror_url,
    parse_chart_payload,
    unwrap_payload,
)
from reinvest.errors import NavSourceError
from reinvest.nav.models import NavPoint

START = date(2025, 1, 2)
END = date(2025, 1, 6)


def _response(payload) -> MagicMock:
    r = MagicMock()
    r.raise_for_status.return_value = None
    r.json.return_value = payload
    return r


def test_chart_url_includes_end_day():
    url = chart_url("ancfx", START, END, base="https://example.test/chart/")
    assert url.startswith("https://example.test/chart/ANCFX?")
    assert "interval=1d" in url
    assert "period2=1736208000" in url  # 2025-01-07 00:00 UTC


def test_mirror_url_wraps_proxy_templates():
    url = mirror_url("https://proxy.test/get?url={url}", "ANCFX", START, END)
    assert url.startswith("https://proxy.test/get?url=https%3A%2F%2F")


def test_unwrap_payload_handles_contents_envelope():
    inner = make_chart_payload([(START, 50.0)])
    assert unwrap_payload({"contents": json.dumps(inner)}) == inner
    assert unwrap_payload(inner) is inner


def test_parse_chart_payload_drops_nulls_and_sorts():
    payload = make_chart_payload([(date(2025, 1, 3), 51.0), (START, 50.0), (date(2025, 1, 6), None)])
    assert parse_chart_payload(payload) == [NavPoint(START, 50.0), NavPoint(date(2025, 1, 3), 51.0)]


def test_parse_chart_payload_rejects_empty_result():
    with pytest.raises(ValueError):
        parse_chart_payload({"chart": {"result": None, "error": {"code": "Not Found"}}})


def test_fetch_tries_mirrors_in_order(tmp_path: Path):
    session = MagicMock()
    session.get.side_effect = [
        RequestsConnectionError("blocked"),
        _response({"chart": {"result": []}}),
        _response({"contents": json.dumps(make_chart_payload([(START, 50.0), (END, 52.0)]))}),
    ]
    client = YahooNavClient(
        mirrors=["https://a.test", "https://b.test", "https://proxy.test/?{url}"],
        cache_dir=str(tmp_path),
        session=session,
    )

    pts = client.fetch_nav_series("ANCFX", START, END)

    assert [p.nav for p in pts] == [50.0, 52.0]
    assert session.get.call_count == 3
    assert (tmp_path / "ANCFX.csv").exists()


def test_fetch_payload_raises_when_every_mirror_fails(tmp_path: Path):
    session = MagicMock()
    session.get.side_effect = RequestsConnectionError("down")
    client = YahooNavClient(mirrors=["https://a.test", "https://b.test"], cache_dir=None, session=session)
    with pytest.raises(NavSourceError) as exc:
        client.fetch_payload("ANCFX", START, END)
    assert len(exc.value.attempts) == 2


def test_fetch_nav_series_is_empty_on_failure_without_cache():
    session = MagicMock()
    session.get.side_effect = RequestsConnectionError("down")
    client = YahooNavClient(mirrors=["https://a.test"], cache_dir=None, session=session)
    assert client.fetch_nav_series("ANCFX", START, END) == []


def test_fetch_nav_series_serves_cache_when_network_fails(tmp_path: Path):
    (tmp_path / "ANCFX.csv").write_text("date,nav\n2025-01-02,50.0\n2025-01-03,51.0\n")
    session = MagicMock()
    session.get.side_effect = RequestsConnectionError("down")
    client = YahooNavClient(mirrors=["https://a.test"], cache_dir=str(tmp_path), session=session)

    pts = client.fetch_nav_series("ANCFX", START, END, refresh=True)

    assert pts == [NavPoint(START, 50.0), NavPoint(date(2025, 1, 3), 51.0)]


def test_fresh_cache_skips_network(tmp_path: Path):
    (tmp_path / "ANCFX.csv").write_text("date,nav\n2025-01-02,50.0\n2025-01-03,51.0\n2025-01-06,52.0\n")
    session = MagicMock()
    client = YahooNavClient(mirrors=["https://a.test"], cache_dir=str(tmp_path), session=session)

    pts = client.fetch_nav_series("ANCFX", START, END)

    assert len(pts) == 3
    session.get.assert_not_called()


def test_parse_chart_payload_rejects_unexpected_shapes():
    for payload in ({"chart": "blocked"}, {"chart": {"result": ["x"]}}, {"chart": {"result": "x"}}):
        with pytest.raises(ValueError):
            parse_chart_payload(payload)


def test_malformed_payload_is_empty_without_cache():
    session = MagicMock()
    session.get.return_value = _response({"chart": "blocked"})
    client = YahooNavClient(mirrors=["https://a.test"], cache_dir=None, session=session)
    assert client.fetch_nav_series("ANCFX", START, END) == []


def test_malformed_payload_falls_through_to_next_mirror():
    session = MagicMock()
    session.get.side_effect = [
        _response({"chart": {"result": ["x"]}}),
        _response(make_chart_payload([(START, 50.0), (date(2025, 1, 3), 51.0)])),
    ]
    client = YahooNavClient(mirrors=["https://a.test", "https://b.test"], cache_dir=None, session=session)

    pts = client.fetch_nav_series("ANCFX", START, END)

    assert [p.nav for p in pts] == [50.0, 51.0]
    assert session.get.call_count == 2


def test_cache_ending_friday_is_fresh_on_monday():
    friday, monday = date(2025, 1, 3), date(2025, 1, 6)
    cached = [NavPoint(START, 50.0), NavPoint(friday, 51.0)]
    assert cache_covers(cached, START, monday, monday)
    assert not cache_covers([NavPoint(date(2024, 12, 31), 49.0)], START, monday, monday)
    assert not cache_covers([], START, monday, monday)
