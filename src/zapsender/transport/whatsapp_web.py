"""
WhatsApp Web transport driven through Selenium and Chrome.

The browser profile is kept under ``TransportConfig.profile_dir`` so a
scanned QR code survives restarts. All methods are blocking; the async
entrypoints inherited from ``ChatTransport`` run them in a worker thread.
"""

import time
from collections.abc import Callable
from pathlib import Path

from selenium import webdriver
from selenium.common.exceptions import (
    InvalidSessionIdException,
    NoSuchWindowException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support.ui import WebDriverWait

from zapsender.shared.logging import get_logger
from zapsender.transport.config import TransportConfig, get_transport_config
from zapsender.transport.interface import (
    ChatTransport,
    RecipientHandle,
    RecipientLookupError,
    SendMessageError,
    TransportError,
    TransportEvent,
    TransportEventType,
    TransportNotReadyError,
)

logger = get_logger(__name__)

CHAT_LIST_SELECTOR = "#pane-side"
QR_SELECTOR = "div[data-ref]"
MODAL_POPUP_XPATH = "//div[@data-animate-modal-popup='true']"
COMPOSE_BOX_XPATHS: tuple[str, ...] = (
    "//footer//div[@contenteditable='true']",
    "//*[@data-testid='conversation-compose-box-input']",
    "//div[@contenteditable='true'][@data-tab='10']",
)
INVALID_NUMBER_MARKERS: tuple[str, ...] = ("invalid", "inválido")

# Headless Chrome announces itself in the user agent and WhatsApp Web refuses it.
DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

INSERT_TEXT_SCRIPT = "arguments[0].focus(); document.execCommand('insertText', false, arguments[1]);"

DriverFactory = Callable[[Options], WebDriver]


def build_chrome_options(config: TransportConfig, headless: bool) -> Options:
    options = Options()
    if headless:
        options.add_argument("--headless=new")
        options.add_argument(f"--user-agent={DESKTOP_USER_AGENT}")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-setuid-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--window-size=1366,768")
    options.add_argument(f"--user-data-dir={config.profile_dir}")
    return options


def _default_driver_factory(options: Options) -> WebDriver:
    return webdriver.Chrome(options=options)


class WhatsAppWebTransport(ChatTransport):
    """Chat transport automating a WhatsApp Web session."""

    def __init__(
        self,
        config: TransportConfig | None = None,
        headless: bool = True,
        driver_factory: DriverFactory | None = None,
    ) -> None:
        super().__init__()
        self._config = config or get_transport_config()
        self._headless = headless
        self._driver_factory = driver_factory or _default_driver_factory
        self._driver: WebDriver | None = None
        self._ready = False
        self._open_chat: str | None = None

    @property
    def qr_image_path(self) -> Path:
        return Path(self._config.session_dir).resolve() / "qr.png"

    def _get_driver(self) -> WebDriver:
        if self._driver is None:
            self._config.profile_dir.mkdir(parents=True, exist_ok=True)
            options = build_chrome_options(self._config, self._headless)
            logger.info(
                "Starting browser",
                extra={"headless": self._headless, "profile_dir": str(self._config.profile_dir)},
            )
            self._driver = self._driver_factory(options)
        return self._driver

    def _require_ready(self) -> WebDriver:
        if not self._ready or self._driver is None:
            raise TransportNotReadyError("WhatsApp Web session is not ready", error_code="NOT_READY")
        return self._driver

    def _on_driver_error(self, exc: WebDriverException) -> None:
        """Flag a lost browser session; other driver errors are left to the caller."""
        if isinstance(exc, (InvalidSessionIdException, NoSuchWindowException)):
            self._ready = False
            self._open_chat = None
            self.emit(
                TransportEvent(TransportEventType.DISCONNECTED, detail=exc.msg or type(exc).__name__)
            )

    def wait_until_ready_sync(self) -> None:
        driver = self._get_driver()
        deadline = time.monotonic() + self._config.ready_timeout_seconds
        last_qr: str | None = None

        try:
            driver.get(self._config.web_url)
            while time.monotonic() < deadline:
                if driver.find_elements(By.CSS_SELECTOR, CHAT_LIST_SELECTOR):
                    self._ready = True
                    self.emit(TransportEvent(TransportEventType.READY))
                    return

                qr_elements = driver.find_elements(By.CSS_SELECTOR, QR_SELECTOR)
                if qr_elements:
                    code = qr_elements[0].get_attribute("data-ref")
                    if code and code != last_qr:
                        last_qr = code
                        self._publish_qr(qr_elements[0], code)

                time.sleep(self._config.poll_interval_seconds)
        except WebDriverException as e:
            self._on_driver_error(e)
            raise TransportNotReadyError(
                f"Browser error while waiting for WhatsApp Web: {e.msg}",
                error_code="WEBDRIVER_ERROR",
            ) from e

        message = (
            f"WhatsApp Web not ready after {self._config.ready_timeout_seconds:.0f}s"
            if last_qr is None
            else "QR code was not scanned in time"
        )
        self.emit(TransportEvent(TransportEventType.AUTH_FAILURE, detail=message))
        raise TransportNotReadyError(message, error_code="READY_TIMEOUT")

    def _publish_qr(self, element: WebElement, code: str) -> None:
        path = self.qr_image_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if not element.screenshot(str(path)):
            logger.warning("Could not save QR code image", extra={"path": str(path)})
        self.emit(
            TransportEvent(
                TransportEventType.QR,
                detail=str(path),
                payload={"code": code, "image_path": str(path)},
            )
        )

    def _chat_outcome(self, driver: WebDriver) -> str | bool:
        for xpath in COMPOSE_BOX_XPATHS:
            if driver.find_elements(By.XPATH, xpath):
                return "chat"
        for popup in driver.find_elements(By.XPATH, MODAL_POPUP_XPATH):
            text = (popup.text or "").lower()
            if any(marker in text for marker in INVALID_NUMBER_MARKERS):
                return "invalid"
        return False

    def lookup_recipient_sync(self, raw_number: str) -> RecipientHandle | None:
        driver = self._require_ready()
        self._open_chat = None
        try:
            driver.get(self._config.get_chat_url(raw_number))
            outcome = WebDriverWait(
                driver,
                self._config.lookup_timeout_seconds,
                poll_frequency=0.5,
            ).until(self._chat_outcome)
        except TimeoutException as e:
            raise RecipientLookupError(
                f"Timed out opening chat for {raw_number}",
                error_code="LOOKUP_TIMEOUT",
                details={"number": raw_number},
            ) from e
        except WebDriverException as e:
            self._on_driver_error(e)
            raise RecipientLookupError(
                f"Browser error looking up {raw_number}: {e.msg}",
                error_code="WEBDRIVER_ERROR",
                details={"number": raw_number},
            ) from e

        if outcome == "invalid":
            return None

        self._open_chat = raw_number
        return RecipientHandle.for_number(raw_number)

    def _find_compose_box(self, driver: WebDriver) -> WebElement:
        for xpath in COMPOSE_BOX_XPATHS:
            elements = driver.find_elements(By.XPATH, xpath)
            if elements:
                return elements[0]
        raise SendMessageError("Could not find message input box", error_code="NO_COMPOSE_BOX")

    def send_message_sync(self, recipient: RecipientHandle, text: str) -> None:
        driver = self._require_ready()
        try:
            if self._open_chat != recipient.number:
                if self.lookup_recipient_sync(recipient.number) is None:
                    raise SendMessageError(
                        f"{recipient.number} is not on WhatsApp",
                        error_code="RECIPIENT_NOT_FOUND",
                    )

            box = self._find_compose_box(driver)
            box.click()
            lines = text.split("\n")
            for index, line in enumerate(lines):
                # insertText keeps emoji intact, which send_keys cannot type
                if line:
                    driver.execute_script(INSERT_TEXT_SCRIPT, box, line)
                if index < len(lines) - 1:
                    box.send_keys(Keys.SHIFT, Keys.ENTER)
            box.send_keys(Keys.ENTER)
        except SendMessageError:
            raise
        except TransportError as e:
            raise SendMessageError(str(e), error_code=e.error_code, details=e.details) from e
        except WebDriverException as e:
            self._on_driver_error(e)
            raise SendMessageError(
                f"Browser error sending to {recipient.number}: {e.msg}",
                error_code="WEBDRIVER_ERROR",
            ) from e

        logger.debug("Message submitted", extra={"to": recipient.serialized})

    def close_sync(self) -> None:
        if self._driver is None:
            return
        try:
            self._driver.quit()
        except WebDriverException:
            logger.warning("Browser did not shut down cleanly", exc_info=True)
        finally:
            self._driver = None
            self._ready = False
            self._open_chat = None
