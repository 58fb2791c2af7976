"""
Integration tests for the insider trading download workflow
Runs the real client, resolver and merger against a mocked HTTP session
"""
import json
import datetime as dt
import pytest
import requests
from unittest.mock import Mock, patch

from insiderdl.collection.quiver import QuiverClient
from insiderdl.storage.config_loader import DownloaderConfig
from insiderdl.storage.readers import read_history, read_universe
from insiderdl.update.app import InsiderTradingDownloader, RunOutcome


def _response(status_code, payload=None):
    response = Mock()
    response.status_code = status_code
    response.text = json.dumps(payload) if payload is not None else ""
    response.url = "https://api.quiverquant.com/beta/live/insiders"
    return response


DAY_ONE = [
    {"Date": "2022-02-14", "Ticker": "NYSE:ABC", "Name": "J. Doe", "Shares": 100,
     "PricePerShare": 12.5, "SharesOwnedFollowing": 900},
    {"Date": "2022-02-14", "Ticker": "XYZ", "Name": "Smith, Anna", "Shares": -40,
     "PricePerShare": None, "SharesOwnedFollowing": 60},
    {"Date": "2022-02-14", "Ticker": None, "Name": "Nobody", "Shares": 1},
]

DAY_TWO = [
    {"Date": "2022-02-15", "Ticker": "ABC", "Name": "R. Roe", "Shares": 5,
     "PricePerShare": 13, "SharesOwnedFollowing": 905},
]


@pytest.mark.integration
class TestDownloadWorkflow:

    @pytest.fixture
    def session(self):
        return Mock(spec=requests.Session)

    @pytest.fixture
    def config(self, tmp_path, map_files_dir):
        return DownloaderConfig(
            destination_dir=tmp_path / "alternative",
            api_key="secret",
            map_files_dir=map_files_dir,
            min_interval=0.001,
            log_dir=tmp_path / "logs"
        )

    @pytest.fixture
    def make_app(self, config, session, quiet_logger):
        apps = []

        def _make(cfg=config):
            app = InsiderTradingDownloader(cfg, logger=quiet_logger)
            app.client = QuiverClient(
                api_key=cfg.api_key,
                rate_limiter=app.rate_limiter,
                logger=quiet_logger,
                max_retries=cfg.max_retries,
                session=session
            )
            apps.append(app)
            return app

        yield _make
        for app in apps:
            app.close()

    def _dataset(self, config):
        return config.destination_dir / "quiver" / "insidertrading"

    def test_single_day(self, make_app, config, session):
        session.get.return_value = _response(200, DAY_ONE)

        assert make_app().run(dt.date(2022, 2, 14)) is True

        dataset = self._dataset(config)
        assert (dataset / "abc.csv").read_text() == "20220214,j. doe,100,12.5,900\n"
        assert (dataset / "xyz.csv").read_text() == "20220214,smith anna,-40,,60\n"
        assert sorted(p.name for p in dataset.glob("*.csv")) == ["abc.csv", "xyz.csv"]
        assert (dataset / "universe" / "20220214.csv").read_text() == (
            "ABC R735QTJ8XC9X,ABC,20220214,j. doe,100,12.5,900\n"
            "XYZ NEW00000002,XYZ,20220214,smith anna,-40,,60\n"
        )

    def test_rerun_is_byte_identical(self, make_app, config, session):
        session.get.return_value = _response(200, DAY_ONE)
        app = make_app()

        assert app.run(dt.date(2022, 2, 14)) is True
        dataset = self._dataset(config)
        snapshot = {p: p.read_bytes() for p in dataset.rglob("*.csv")}

        assert app.run(dt.date(2022, 2, 14)) is True
        assert {p: p.read_bytes() for p in dataset.rglob("*.csv")} == snapshot

    def test_days_accumulate_in_date_order(self, make_app, config, session):
        app = make_app()

        session.get.return_value = _response(200, DAY_TWO)
        assert app.run(dt.date(2022, 2, 15)) is True
        session.get.return_value = _response(200, DAY_ONE)
        assert app.run(dt.date(2022, 2, 14)) is True

        history = read_history(self._dataset(config) / "abc.csv")
        assert history['date'].to_list() == [dt.date(2022, 2, 14), dt.date(2022, 2, 15)]
        assert history['name'].to_list() == ["j. doe", "r. roe"]

        universe = read_universe(self._dataset(config) / "universe" / "20220215.csv")
        assert universe['ticker'].to_list() == ["ABC"]

    def test_not_found_day(self, make_app, config, session):
        session.get.return_value = _response(404)

        report = make_app().process(dt.date(2022, 2, 12))

        assert report.outcome is RunOutcome.NO_DATA
        assert session.get.call_count == 1
        assert list(self._dataset(config).rglob("*.csv")) == []

    @patch('insiderdl.collection.quiver.time.sleep')
    def test_retry_exhaustion_fails_run(self, mock_sleep, make_app, config, session):
        session.get.side_effect = requests.ConnectionError("connection reset")

        report = make_app().process(dt.date(2022, 2, 14))

        assert report.outcome is RunOutcome.FAILED
        assert "retry 5/5" in report.error
        assert session.get.call_count == 5
        assert list(self._dataset(config).rglob("*.csv")) == []

    @patch('insiderdl.collection.quiver.time.sleep')
    def test_recovers_after_transient_errors(self, mock_sleep, make_app, config, session):
        session.get.side_effect = [_response(502), _response(500), _response(200, DAY_ONE)]

        assert make_app().run(dt.date(2022, 2, 14)) is True
        assert (self._dataset(config) / "abc.csv").exists()

    def test_missing_mapping_data_skips_universe(self, make_app, config, session, tmp_path):
        config.map_files_dir = tmp_path / "no_maps"
        session.get.return_value = _response(200, DAY_ONE)

        report = make_app(config).process(dt.date(2022, 2, 14))

        assert report.outcome is RunOutcome.RESOLUTION_UNAVAILABLE
        assert report.succeeded is False
        assert (self._dataset(config) / "abc.csv").exists()
        assert list((self._dataset(config) / "universe").glob("*.csv")) == []

    def test_future_date_makes_no_request(self, make_app, session):
        assert make_app().run(dt.date.today() + dt.timedelta(days=2)) is False
        session.get.assert_not_called()
