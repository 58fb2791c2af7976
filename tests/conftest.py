"""
Pytest configuration and shared fixtures
"""
import pytest
import sys
import datetime as dt
import logging
from pathlib import Path
from unittest.mock import Mock

# Add src to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


@pytest.fixture
def sample_date():
    """Provide a processing date in the past"""
    return dt.date(2022, 2, 14)


@pytest.fixture
def sample_body():
    """Provide a live/insiders response body"""
    return (
        '[{"Date": "2022-02-14", "Ticker": "NYSE:ABC", "Name": "J. Doe", '
        '"Shares": 100, "PricePerShare": 12.5, "SharesOwnedFollowing": 900}]'
    )


@pytest.fixture
def quiet_logger():
    """Provide a logger that writes nowhere"""
    logger = logging.getLogger("tests.insider_trading")
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


@pytest.fixture
def mock_rate_limiter():
    """Provide a rate limiter that never blocks"""
    return Mock()


@pytest.fixture
def map_files_dir(tmp_path):
    """Provide a security mapping directory with ABC and XYZ"""
    map_dir = tmp_path / "security_map"
    map_dir.mkdir()
    (map_dir / "map.csv").write_text(
        "security_id,symbol,start_date,end_date\n"
        "ABC R735QTJ8XC9X,ABC,2010-01-04,\n"
        "XYZ OLD00000001,XYZ,2001-01-02,2015-06-30\n"
        "XYZ NEW00000002,XYZ,2018-03-01,\n"
    )
    return map_dir


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (slower)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow"
    )


def pytest_collection_modifyitems(config, items):
    """
    Auto-apply markers based on test file location.

    Convention:
      - tests/unit/**         => @pytest.mark.unit
      - tests/integration/**  => @pytest.mark.integration
    """
    root = Path(str(config.rootpath)).resolve()

    unit_dir = (root / "tests" / "unit").resolve()
    integration_dir = (root / "tests" / "integration").resolve()

    for item in items:
        p = Path(str(item.fspath)).resolve()

        if unit_dir in p.parents:
            item.add_marker(pytest.mark.unit)

        if integration_dir in p.parents:
            item.add_marker(pytest.mark.integration)
