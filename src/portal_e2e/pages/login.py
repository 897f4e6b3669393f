"""
Login - The portal's sign-in form.
"""

from typing import Optional
import logging

from portal_e2e.core import CssListTarget, DomReady, ElementVisible
from portal_e2e.core.targets import normalize_text
from portal_e2e.pages.navigable import Navigable
from portal_e2e.pages.session import Capability

logger = logging.getLogger(__name__)


class LoginCapability(Capability):
    """
    Fill and submit the login form.

    Example:
        >>> login = session.capability(LoginCapability)
        >>> ok = await login.login_and_wait(url, "alice", "s3cret")
        >>> ok or print(login.last_failure)
    """

    @property
    def username_target(self) -> CssListTarget:
        return CssListTarget(self.selectors.username_input)

    @property
    def password_target(self) -> CssListTarget:
        return CssListTarget(self.selectors.password_input)

    @property
    def submit_target(self) -> CssListTarget:
        return CssListTarget(self.selectors.submit_button)

    async def navigate_to_login(self, url: str) -> bool:
        """Open the login page and wait for the form."""
        await self.session.capability(Navigable).goto(url)
        return await self.wait_for_login_form()

    async def wait_for_login_form(self, timeout_ms: Optional[int] = None) -> bool:
        """Wait until username, password and submit are all visible."""
        timeout_ms = timeout_ms or self.session.settings.waiter.dom_ready_timeout_ms
        for name, target in (
            ("username input", self.username_target),
            ("password input", self.password_target),
            ("submit button", self.submit_target),
        ):
            if not await self.waiter.wait_for(ElementVisible(target), timeout_ms):
                return self.fail(f"login form: {name} not visible ({target.describe()})")
        return self.succeed()

    async def _fill(self, name: str, target: CssListTarget, value: str) -> bool:
        ref = await self.resolver.resolve(target)
        if ref is None:
            return self.fail(f"{name} not found ({target.describe()})")
        result = await self.executor.fill(ref, value)
        if not result.succeeded:
            return self.fail(f"{name} fill failed via {result.strategy_used.value}: {result.error}")
        return self.succeed()

    async def enter_username(self, username: str) -> bool:
        return await self._fill("username input", self.username_target, username)

    async def enter_password(self, password: str) -> bool:
        return await self._fill("password input", self.password_target, password)

    async def click_login_button(self) -> bool:
        ref = await self.resolver.resolve(self.submit_target)
        if ref is None:
            return self.fail(f"submit button not found ({self.submit_target.describe()})")
        result = await self.executor.click(ref)
        if not result.succeeded:
            return self.fail(f"submit click failed via {result.strategy_used.value}: {result.error}")
        return self.succeed()

    async def toggle_remember_me(self, check: bool = True) -> bool:
        """Set the "remember me" checkbox to ``check``."""
        target = CssListTarget(self.selectors.remember_me)
        ref = await self.resolver.resolve(target)
        if ref is None:
            return self.fail(f"remember-me checkbox not found ({target.describe()})")
        checked = await ref.element.evaluate("(el) => !!el.checked")
        if bool(checked) != check:
            result = await self.executor.click(ref)
            if not result.succeeded:
                return self.fail(f"remember-me click failed: {result.error}")
        return self.succeed()

    async def login(self, username: str, password: str, remember_me: bool = False) -> bool:
        """
        Fill the form and submit it.

        Returns:
            True once the submit click went through
        """
        if not await self.enter_username(username):
            return False
        if not await self.enter_password(password):
            return False
        if remember_me and not await self.toggle_remember_me(True):
            logger.warning(f"Continuing without remember-me: {self.last_failure}")
        return await self.click_login_button()

    async def login_and_wait(
        self,
        url: str,
        username: str,
        password: str,
        remember_me: bool = False,
    ) -> bool:
        """
        Navigate, sign in and wait for the next page's DOM.

        Returns:
            True if the form was submitted and the DOM became ready
        """
        logger.info(f"Logging in to {url} as {username}")
        if not await self.navigate_to_login(url):
            await self.screenshot("login form missing")
            return False
        if not await self.login(username, password, remember_me):
            await self.screenshot("login error")
            return False

        waiter_settings = self.session.settings.waiter
        if not await self.waiter.wait_for(DomReady(), waiter_settings.dom_ready_timeout_ms):
            await self.screenshot("login timeout")
            return self.fail(f"DOM not ready within {waiter_settings.dom_ready_timeout_ms}ms after login")
        self.session.context.mark_navigated("login submitted")
        await self.waiter.pause(waiter_settings.settle_delay_ms)
        await self.screenshot("after login")
        return self.succeed()

    async def get_error_message(self) -> Optional[str]:
        """Text of the login error banner, if one is showing."""
        ref = await self.resolver.resolve(CssListTarget(self.selectors.login_error), timeout_ms=1000)
        if ref is None:
            return None
        return normalize_text(await ref.element.text_content()) or None
