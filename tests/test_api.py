"""Tests for the retrying HTTP client.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer, no real network calls.
- ``backoff_unit`` is 0 so retries do not sleep.
"""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
import respx

from booru_harvester.api import BooruAPI
from booru_harvester.config import BooruConfig
from booru_harvester.errors import FetchError

URL = "https://booru.test/index.php?page=post&s=list&pid=0&tags=cat"
IMG = "https://img.booru.test/images/1.png"


@pytest.fixture
def api(booru_cfg: BooruConfig):
    with BooruAPI(booru_cfg) as client:
        yield client


class TestBackoff:
    def test_delay_floor_doubles_each_retry(self) -> None:
        api = BooruAPI(BooruConfig(backoff_unit=1.0))
        try:
            for k in range(1, 5):
                delay = api.backoff_delay(k)
                assert 2 ** k <= delay < 2 ** k + 1
        finally:
            api.close()

    def test_delay_scales_with_unit(self) -> None:
        api = BooruAPI(BooruConfig(backoff_unit=0.001))
        try:
            with patch("booru_harvester.api.random.uniform", return_value=0.5):
                assert api.backoff_delay(3) == pytest.approx(0.0085)
        finally:
            api.close()

    def test_sleeps_between_attempts(self) -> None:
        api = BooruAPI(BooruConfig(backoff_unit=1.0))
        try:
            with respx.mock:
                respx.get(URL).mock(side_effect=httpx.ConnectError("down"))
                with patch("booru_harvester.api.time.sleep") as mock_sleep:
                    with pytest.raises(FetchError):
                        api.get_text(URL)
        finally:
            api.close()
        # four retries, no sleep after the final failure
        assert mock_sleep.call_count == 4
        floors = [int(call.args[0]) for call in mock_sleep.call_args_list]
        assert floors == [2, 4, 8, 16]


class TestGetText:
    def test_success(self, api: BooruAPI) -> None:
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(200, text="<html>ok</html>"))
            assert api.get_text(URL) == "<html>ok</html>"

    def test_retries_then_succeeds(self, api: BooruAPI) -> None:
        with respx.mock:
            route = respx.get(URL).mock(
                side_effect=[
                    httpx.Response(503),
                    httpx.ConnectError("reset"),
                    httpx.Response(200, text="third time"),
                ]
            )
            assert api.get_text(URL) == "third time"
        assert route.call_count == 3

    def test_gives_up_after_four_retries(self, api: BooruAPI) -> None:
        with respx.mock:
            route = respx.get(URL).mock(side_effect=httpx.ReadTimeout("slow"))
            with pytest.raises(FetchError) as info:
                api.get_text(URL)
        assert route.call_count == 5
        assert info.value.url == URL
        assert isinstance(info.value.cause, httpx.ReadTimeout)
        assert info.value.__cause__ is info.value.cause

    def test_non_2xx_is_retried(self, api: BooruAPI) -> None:
        with respx.mock:
            route = respx.get(URL).mock(return_value=httpx.Response(404))
            with pytest.raises(FetchError) as info:
                api.get_text(URL)
        assert route.call_count == 5
        assert isinstance(info.value.cause, httpx.HTTPStatusError)

    def test_attempt_failures_log_at_debug(self, api: BooruAPI, caplog) -> None:
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(503))
            with caplog.at_level(logging.DEBUG, logger="harvester.api"):
                with pytest.raises(FetchError):
                    api.get_text(URL)
        attempts = [r for r in caplog.records if r.name == "harvester.api"]
        assert len(attempts) == 5
        assert all(r.levelno == logging.DEBUG for r in attempts)

    def test_redirect_loop_becomes_fetch_error(self, api: BooruAPI) -> None:
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(302, headers={"Location": URL}))
            with pytest.raises(FetchError) as info:
                api.get_text(URL)
        assert isinstance(info.value.cause, httpx.TooManyRedirects)

    def test_broken_encoding_becomes_fetch_error(self, api: BooruAPI) -> None:
        with respx.mock:
            route = respx.get(URL).mock(
                return_value=httpx.Response(
                    200,
                    headers={"Content-Encoding": "gzip"},
                    stream=httpx.ByteStream(b"not gzip"),
                )
            )
            with pytest.raises(FetchError) as info:
                api.get_text(URL)
        assert route.call_count == 5
        assert isinstance(info.value.cause, httpx.DecodingError)


class TestHead:
    def test_returns_headers(self, api: BooruAPI) -> None:
        with respx.mock:
            respx.head(IMG).mock(
                return_value=httpx.Response(200, headers={"Content-Type": "image/png"})
            )
            headers = api.head(IMG)
        assert headers["content-type"] == "image/png"


class TestDownloadTo:
    def test_streams_body_to_file(self, api: BooruAPI, tmp_path: Path) -> None:
        payload = b"\x89PNG" + b"\x00" * 200_000
        dest = tmp_path / "0-1.png"
        with respx.mock:
            respx.get(IMG).mock(return_value=httpx.Response(200, content=payload))
            written = api.download_to(IMG, dest)
        assert written == len(payload)
        assert dest.read_bytes() == payload

    def test_failure_raises_fetch_error(self, api: BooruAPI, tmp_path: Path) -> None:
        with respx.mock:
            respx.get(IMG).mock(return_value=httpx.Response(500))
            with pytest.raises(FetchError):
                api.download_to(IMG, tmp_path / "0-1.png")

    def test_write_error_is_not_retried(self, api: BooruAPI, tmp_path: Path) -> None:
        dest = tmp_path / "missing-dir" / "0-1.png"
        with respx.mock:
            route = respx.get(IMG).mock(return_value=httpx.Response(200, content=b"data"))
            with pytest.raises(OSError):
                api.download_to(IMG, dest)
        assert route.call_count == 1
