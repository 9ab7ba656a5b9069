import asyncio
from pathlib import Path

import pytest
from conftest import FakeClient

from siteprobe.framework.results import FAILED, PASSED
from siteprobe.framework.runner import SuiteRunner
from siteprobe.reporting.reporter import TestReporter
from siteprobe.utils.exceptions import ContentAssertionError, ToolCallError


async def _runner(client, config, **kwargs) -> SuiteRunner:
    runner = SuiteRunner(client, config, **kwargs)
    await runner.initialize("Smoke")
    return runner


@pytest.mark.asyncio
async def test_initialize_launches_configured_browser(config):
    client = FakeClient()
    await _runner(client, config)
    assert client.called("launch-browser") == [{"browserType": "chromium", "headless": True}]


@pytest.mark.asyncio
async def test_launch_failure_propagates(config):
    runner = SuiteRunner(FakeClient(fail={"launch-browser"}), config)
    with pytest.raises(ToolCallError):
        await runner.initialize("Smoke")


@pytest.mark.asyncio
async def test_passing_and_failing_cases_are_recorded(config):
    client = FakeClient()
    runner = await _runner(client, config)

    async def ok():
        return None

    async def broken():
        raise ContentAssertionError("Homepage has no hero title")

    passed = await runner.execute_test("Works", ok)
    failed = await runner.execute_test("Hero Title", broken)

    assert passed.status == PASSED and passed.error is None
    assert failed.status == FAILED
    assert failed.error == "Homepage has no hero title"
    assert failed.screenshot is not None
    assert Path(failed.screenshot).name.startswith("failure-hero-title-")
    shot = client.called("take-screenshot")[0]
    assert shot["fullPage"] is True
    assert shot["path"] == failed.screenshot
    summary = runner.summary()
    assert (summary.total, summary.passed, summary.failed) == (2, 1, 1)


@pytest.mark.asyncio
async def test_timeout_is_reported_with_deadline(config):
    runner = await _runner(FakeClient(), config)

    async def slow():
        await asyncio.sleep(5)

    result = await runner.execute_test("Slow", slow, timeout_ms=20)
    assert result.status == FAILED
    assert result.error == "Test timeout after 20ms"


@pytest.mark.asyncio
async def test_screenshot_skipped_when_disabled_and_stop_on_failure_raises(config):
    config.logging.screenshots_on_failure = False
    client = FakeClient()
    runner = await _runner(client, config)

    async def broken():
        raise RuntimeError("kaboom")

    with pytest.raises(RuntimeError):
        await runner.execute_test("Critical", broken, stop_on_failure=True)
    assert runner.results[0].error == "kaboom"
    assert runner.results[0].screenshot is None
    assert client.called("take-screenshot") == []


@pytest.mark.asyncio
async def test_navigate_checks_title_case_insensitively(config):
    client = FakeClient(title="Caliber Financial Services | Home")
    runner = await _runner(client, config)
    info = await runner.navigate_to_page("https://www.caliberfs.com", "caliber financial")
    assert info.url == "https://www.caliberfs.com"
    with pytest.raises(ContentAssertionError, match="Expected page title"):
        await runner.navigate_to_page("https://www.caliberfs.com", "Royal Caribbean")


@pytest.mark.asyncio
async def test_element_helpers(config):
    client = FakeClient(
        texts={"h1": "Welcome aboard"},
        missing={"#gone"},
        js=lambda code: "offsetParent" in code and "#locked" not in code,
    )
    runner = await _runner(client, config)

    assert await runner.wait_for_element("h1") is True
    with pytest.raises(ContentAssertionError) as exc_info:
        await runner.wait_for_element("#gone", timeout_ms=100)
    assert exc_info.value.details["selector"] == "#gone"

    await runner.click_element("#go", validate_clickable=True)
    assert client.called("click-element")[0]["selector"] == "#go"
    with pytest.raises(ContentAssertionError, match="not clickable"):
        await runner.click_element("#locked", validate_clickable=True)

    assert await runner.validate_text("h1", "Welcome") == "Welcome aboard"
    with pytest.raises(ContentAssertionError):
        await runner.validate_text("h1", "Welcome", exact=True)

    await runner.fill_form({"#email": "a@example.com"})
    assert client.called("fill-input")[0]["text"] == "a@example.com"


@pytest.mark.asyncio
async def test_measure_page_performance(config):
    timing = {"loadTime": 10, "domContentLoaded": 5, "totalTime": 900, "networkTime": 120}
    runner = await _runner(FakeClient(js=lambda code: timing if "navigation" in code else None), config)
    assert await runner.measure_page_performance() == timing

    runner = await _runner(FakeClient(), config)
    assert await runner.measure_page_performance() == {}


@pytest.mark.asyncio
async def test_cleanup_closes_browser_and_writes_reports(config, tmp_path):
    client = FakeClient()
    runner = await _runner(client, config, reporter=TestReporter(tmp_path / "out"))

    async def ok():
        return None

    await runner.execute_test("Works", ok)
    reports = await runner.cleanup()
    assert client.closed
    assert set(reports) == {"html", "json", "summary"}
    assert runner.last_reports == reports
    assert reports["json"].parent == tmp_path / "out"


@pytest.mark.asyncio
async def test_cleanup_survives_close_failure(config):
    runner = await _runner(FakeClient(fail={"close-browser"}), config)
    assert await runner.cleanup() == {}
