import pytest

from ports_monitor.config import MonitorConfig
from ports_monitor.exceptions import UnsupportedPlatformError
from ports_monitor.platforms import (
    LinuxPortEnumerator,
    MacosPortEnumerator,
    WindowsPortEnumerator,
    select_enumerator,
)
from tests.helpers.fake_runner import FakeRunner


@pytest.mark.parametrize(
    ("platform", "expected"),
    [("linux", LinuxPortEnumerator), ("darwin", MacosPortEnumerator), ("win32", WindowsPortEnumerator)],
)
def test_selects_enumerator_for_platform(platform, expected):
    runner = FakeRunner()

    enumerator = select_enumerator(MonitorConfig(platform=platform), runner)

    assert isinstance(enumerator, expected)
    assert enumerator.runner is runner


def test_unknown_platform_raises():
    with pytest.raises(UnsupportedPlatformError) as excinfo:
        select_enumerator(MonitorConfig(platform="freebsd13"), FakeRunner())

    assert excinfo.value.platform == "freebsd13"
    assert "Unsupported platform" in str(excinfo.value)
