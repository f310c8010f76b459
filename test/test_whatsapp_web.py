"""
Tests for the WhatsApp Web transport against a scripted fake WebDriver.
"""
from __future__ import annotations

from typing import Any

import pytest
from selenium.common.exceptions import InvalidSessionIdException
from selenium.webdriver.common.keys import Keys

from zapsender.transport.config import TransportConfig
from zapsender.transport.interface import (
    RecipientHandle,
    RecipientLookupError,
    SendMessageError,
    TransportEventType,
    TransportNotReadyError,
)
from zapsender.transport.whatsapp_web import (
    CHAT_LIST_SELECTOR,
    COMPOSE_BOX_XPATHS,
    MODAL_POPUP_XPATH,
    QR_SELECTOR,
    WhatsAppWebTransport,
    build_chrome_options,
)


class FakeElement:
    def __init__(self, text: str = "", attributes: dict[str, str] | None = None) -> None:
        self.text = text
        self.attributes = attributes or {}
        self.keys: list[tuple[str, ...]] = []
        self.clicks = 0
        self.screenshots: list[str] = []

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def screenshot(self, filename: str) -> bool:
        self.screenshots.append(filename)
        return True

    def click(self) -> None:
        self.clicks += 1

    def send_keys(self, *keys: str) -> None:
        self.keys.append(keys)


class FakeDriver:
    """Returns elements per selector; values may be callables for per-call scripts."""

    def __init__(self) -> None:
        self.visited: list[str] = []
        self.elements: dict[str, Any] = {}
        self.scripts: list[tuple[str, tuple[Any, ...]]] = []
        self.quit_called = False
        self.raise_on_get: Exception | None = None

    def get(self, url: str) -> None:
        if self.raise_on_get is not None:
            raise self.raise_on_get
        self.visited.append(url)

    def find_elements(self, by: str, value: str) -> list[FakeElement]:
        found = self.elements.get(value, [])
        return found() if callable(found) else list(found)

    def execute_script(self, script: str, *args: Any) -> None:
        self.scripts.append((script, args))

    def quit(self) -> None:
        self.quit_called = True


@pytest.fixture
def config(tmp_path) -> TransportConfig:
    return TransportConfig(
        _env_file=None,
        session_dir=str(tmp_path / "auth"),
        ready_timeout_seconds=0.2,
        lookup_timeout_seconds=0.05,
        poll_interval_seconds=0.01,
    )


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def transport(config, driver) -> WhatsAppWebTransport:
    return WhatsAppWebTransport(config=config, headless=True, driver_factory=lambda options: driver)


@pytest.fixture
def ready_transport(transport, driver) -> WhatsAppWebTransport:
    driver.elements[CHAT_LIST_SELECTOR] = [FakeElement()]
    transport.wait_until_ready_sync()
    return transport


class TestChromeOptions:
    def test_headless_arguments(self, config) -> None:
        options = build_chrome_options(config, headless=True)

        assert "--headless=new" in options.arguments
        assert "--no-sandbox" in options.arguments
        assert "--disable-setuid-sandbox" in options.arguments
        assert f"--user-data-dir={config.profile_dir}" in options.arguments

    def test_visible_browser(self, config) -> None:
        options = build_chrome_options(config, headless=False)

        assert "--headless=new" not in options.arguments
        assert not any(arg.startswith("--user-agent=") for arg in options.arguments)


class TestWaitUntilReady:
    def test_ready_when_chat_list_visible(self, transport, driver, config) -> None:
        events = []
        transport.add_listener(events.append)
        driver.elements[CHAT_LIST_SELECTOR] = [FakeElement()]

        transport.wait_until_ready_sync()

        assert driver.visited == [config.web_url]
        assert [e.event_type for e in events] == [TransportEventType.READY]
        assert config.profile_dir.is_dir()

    def test_qr_published_once_then_ready(self, transport, driver) -> None:
        events = []
        transport.add_listener(events.append)
        qr = FakeElement(attributes={"data-ref": "2@abc"})
        polls = {"count": 0}

        def chat_list():
            polls["count"] += 1
            return [FakeElement()] if polls["count"] > 3 else []

        driver.elements[CHAT_LIST_SELECTOR] = chat_list
        driver.elements[QR_SELECTOR] = [qr]

        transport.wait_until_ready_sync()

        assert [e.event_type for e in events] == [TransportEventType.QR, TransportEventType.READY]
        assert events[0].payload["code"] == "2@abc"
        assert qr.screenshots == [str(transport.qr_image_path)]

    def test_timeout_reports_auth_failure(self, transport, driver) -> None:
        events = []
        transport.add_listener(events.append)
        driver.elements[QR_SELECTOR] = [FakeElement(attributes={"data-ref": "2@abc"})]

        with pytest.raises(TransportNotReadyError) as exc_info:
            transport.wait_until_ready_sync()

        assert exc_info.value.error_code == "READY_TIMEOUT"
        assert events[-1].event_type == TransportEventType.AUTH_FAILURE

    def test_lost_session_reports_disconnect(self, transport, driver) -> None:
        events = []
        transport.add_listener(events.append)
        driver.raise_on_get = InvalidSessionIdException("session deleted")

        with pytest.raises(TransportNotReadyError):
            transport.wait_until_ready_sync()

        assert events[-1].event_type == TransportEventType.DISCONNECTED


class TestLookupRecipient:
    def test_requires_ready(self, transport) -> None:
        with pytest.raises(TransportNotReadyError):
            transport.lookup_recipient_sync("5554999999999")

    def test_compose_box_means_present(self, ready_transport, driver) -> None:
        driver.elements[COMPOSE_BOX_XPATHS[0]] = [FakeElement()]

        handle = ready_transport.lookup_recipient_sync("5554999999999")

        assert handle == RecipientHandle.for_number("5554999999999")
        assert driver.visited[-1] == "https://web.whatsapp.com/send?phone=5554999999999"

    def test_invalid_popup_means_absent(self, ready_transport, driver) -> None:
        driver.elements[MODAL_POPUP_XPATH] = [FakeElement(text="Phone number shared via url is invalid.")]

        assert ready_transport.lookup_recipient_sync("5554999999999") is None

    def test_loading_popup_is_not_a_miss(self, ready_transport, driver) -> None:
        driver.elements[MODAL_POPUP_XPATH] = [FakeElement(text="Starting chat")]

        with pytest.raises(RecipientLookupError) as exc_info:
            ready_transport.lookup_recipient_sync("5554999999999")

        assert exc_info.value.error_code == "LOOKUP_TIMEOUT"


class TestSendMessage:
    def test_types_and_submits(self, ready_transport, driver) -> None:
        box = FakeElement()
        driver.elements[COMPOSE_BOX_XPATHS[0]] = [box]
        handle = ready_transport.lookup_recipient_sync("5554999999999")
        visits = len(driver.visited)

        ready_transport.send_message_sync(handle, "Oi Ana 👋\nAté amanhã")

        assert len(driver.visited) == visits
        assert [args[1] for _, args in driver.scripts] == ["Oi Ana 👋", "Até amanhã"]
        assert box.keys == [(Keys.SHIFT, Keys.ENTER), (Keys.ENTER,)]

    def test_reopens_chat_for_other_recipient(self, ready_transport, driver) -> None:
        driver.elements[COMPOSE_BOX_XPATHS[0]] = [FakeElement()]

        ready_transport.send_message_sync(RecipientHandle.for_number("5554911111111"), "hi")

        assert driver.visited[-1].endswith("phone=5554911111111")

    def test_lookup_failure_becomes_send_error(self, ready_transport, driver) -> None:
        with pytest.raises(SendMessageError) as exc_info:
            ready_transport.send_message_sync(RecipientHandle.for_number("5554911111111"), "hi")

        assert exc_info.value.error_code == "LOOKUP_TIMEOUT"

    def test_lost_session(self, ready_transport, driver) -> None:
        events = []
        ready_transport.add_listener(events.append)
        driver.raise_on_get = InvalidSessionIdException("session deleted")

        with pytest.raises(SendMessageError):
            ready_transport.send_message_sync(RecipientHandle.for_number("5554911111111"), "hi")

        assert events[-1].event_type == TransportEventType.DISCONNECTED
        with pytest.raises(TransportNotReadyError):
            ready_transport.lookup_recipient_sync("5554911111111")


class TestClose:
    def test_quits_driver(self, ready_transport, driver) -> None:
        ready_transport.close_sync()

        assert driver.quit_called

    def test_close_without_driver(self, transport) -> None:
        transport.close_sync()
