from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional

from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from .errors import ClickFailure


class ClickStrategy(ABC):
    """One way of clicking a page control.

    Strategies are tried in order by click_with_fallback(); the first one
    that does not raise wins."""

    name = "click"

    @abstractmethod
    def click(self, driver: Any, wait: WebDriverWait, element_id: str) -> None:
        """Click the element with the given id, raising on failure."""
        raise NotImplementedError


class DirectClick(ClickStrategy):
    """Waits for the control to become clickable, then clicks it natively."""

    name = "direct"

    def click(self, driver: Any, wait: WebDriverWait, element_id: str) -> None:
        button = wait.until(EC.element_to_be_clickable((By.ID, element_id)))
        button.click()


class ScriptedClick(ClickStrategy):
    """Dispatches the click from JavaScript, bypassing overlay checks."""

    name = "scripted"

    def click(self, driver: Any, wait: WebDriverWait, element_id: str) -> None:
        button = driver.find_element(By.ID, element_id)
        driver.execute_script("arguments[0].click();", button)


class ScrollThenScriptedClick(ClickStrategy):
    """Scrolls the control into view, pauses, then clicks from JavaScript."""

    name = "scroll_then_scripted"

    def __init__(self, pause_s: float = 1.0, sleep: Callable[[float], None] = time.sleep) -> None:
        self._pause_s = pause_s
        self._sleep = sleep

    def click(self, driver: Any, wait: WebDriverWait, element_id: str) -> None:
        button = driver.find_element(By.ID, element_id)
        driver.execute_script("arguments[0].scrollIntoView(true);", button)
        self._sleep(self._pause_s)
        driver.execute_script("arguments[0].click();", button)


def default_click_strategies(
    scroll_pause_s: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> list[ClickStrategy]:
    return [DirectClick(), ScriptedClick(), ScrollThenScriptedClick(scroll_pause_s, sleep)]


def click_with_fallback(
    driver: Any,
    wait: WebDriverWait,
    element_id: str,
    strategies: Iterable[ClickStrategy],
    on_error: Optional[Callable[[str, Exception], None]] = None,
) -> str:
    """Try each strategy in order and return the name of the one that worked."""
    errors: list[tuple[str, BaseException]] = []
    for strat in strategies:
        try:
            strat.click(driver, wait, element_id)
            return strat.name
        except Exception as exc:  # noqa: BLE001
            errors.append((strat.name, exc))
            if on_error is not None:
                on_error(strat.name, exc)
    raise ClickFailure(element_id, errors)
