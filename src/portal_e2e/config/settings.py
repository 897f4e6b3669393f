"""
Settings - Pydantic models for type-safe configuration.

This module defines all configuration settings as Pydantic models,
providing validation, type hints, and automatic environment variable loading.

Example:
    >>> from portal_e2e.config import Settings, load_config
    >>> settings = load_config()  # Loads from env, yaml, and defaults
    >>> print(settings.browser.browser_type)
    'chromium'
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from portal_e2e.exceptions import ConfigurationMissingError


class BrowserSettings(BaseModel):
    """
    Browser automation settings.

    Attributes:
        headless: Run browser in headless mode
        browser_type: Playwright browser engine
        channel: Branded browser channel (chrome, msedge) for chromium
        timeout_ms: Default timeout for host operations
        viewport_width: Browser viewport width in pixels
        viewport_height: Browser viewport height in pixels
        ignore_https_errors: Accept self-signed portal certificates
        slow_mo: Slow down operations by this amount (ms) - useful for debugging
    """
    headless: bool = True
    browser_type: Literal["chromium", "firefox", "webkit"] = "chromium"
    channel: Optional[str] = None
    timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    viewport_width: int = Field(default=1280, ge=320, le=3840)
    viewport_height: int = Field(default=720, ge=240, le=2160)
    ignore_https_errors: bool = True
    slow_mo: int = Field(default=0, ge=0, le=5000)


class PortalSelectors(BaseModel):
    """
    CSS selector lists describing the portal's DOM.

    Every list is tried in order. They encode guesses about a third-party
    UI, so they live here rather than in page code and can be replaced
    from YAML without touching the suite.
    """
    username_input: List[str] = Field(default_factory=lambda: [
        "#usernameUserInput", 'input[type="text"]', 'input[type="email"]',
    ])
    password_input: List[str] = Field(default_factory=lambda: [
        "#password", 'input[type="password"]',
    ])
    submit_button: List[str] = Field(default_factory=lambda: [
        'button[type="submit"]', 'input[type="submit"]',
    ])
    remember_me: List[str] = Field(default_factory=lambda: ["#chkRemember"])
    login_error: List[str] = Field(default_factory=lambda: ["#error-msg"])

    main_content: List[str] = Field(default_factory=lambda: [
        "main", 'div[role="main"]', 'div[class*="content"]',
    ])
    cards_container: List[str] = Field(default_factory=lambda: [
        'div[class*="cards"]', 'div[class*="grid"]', 'div[class*="container"]',
    ])
    card: List[str] = Field(default_factory=lambda: [
        'div[class*="card"]', 'div[role="article"]', 'div[class*="tile"]', 'section[class*="card"]',
    ])
    card_title: List[str] = Field(default_factory=lambda: [
        "h1", "h2", "h3", "h4", "h5", 'div[class*="title"]', 'div[class*="header"]',
    ])
    card_content: List[str] = Field(default_factory=lambda: [
        'div[class*="content"]', 'div[class*="body"]', "p",
    ])
    card_button: List[str] = Field(default_factory=lambda: [
        "button", 'a[role="button"]', 'a[class*="button"]',
    ])
    card_icon: List[str] = Field(default_factory=lambda: [
        "svg", '[class*="icon"]', '[class*="fa-"]',
        'img[width="24"]', 'img[height="24"]', 'img[width="16"]', 'img[height="16"]',
    ])

    sidebar_links: List[str] = Field(default_factory=lambda: [
        ".sidebar a", "nav a", "aside a", 'div[class*="sidebar"] a',
    ])
    settings_icon: List[str] = Field(default_factory=lambda: [
        'a[href*="settings"]', 'button[aria-label*="Settings" i]',
        'i[class*="settings"]', 'i[class*="cog"]', 'i[class*="gear"]', 'svg[class*="settings"]',
    ])
    settings_text: str = "Settings"
    menu_items: List[str] = Field(default_factory=lambda: [
        ".dropdown-menu a", ".menu a", '[role="menu"] [role="menuitem"]', ".menu-item",
    ])
    menu_fallback_labels: List[str] = Field(default_factory=lambda: ["Features"])

    requirements_content: List[str] = Field(default_factory=lambda: [
        "main", 'div[class*="content"]', 'div[role="main"]',
    ])
    requirement_item: List[str] = Field(default_factory=lambda: [
        "li", 'div[class*="item"]', 'div[class*="requirement"]',
    ])
    requirement_status: List[str] = Field(default_factory=lambda: [
        'span[class*="status"]', 'div[class*="status"]',
    ])


class PortalSettings(BaseModel):
    """
    The portal under test.

    Attributes:
        url: Login URL of the portal
        username: Account used by the scenarios
        password: Password for that account
        remember_me: Tick "remember me" on login
        selectors: DOM selector lists for the portal pages
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    remember_me: bool = False
    selectors: PortalSelectors = Field(default_factory=PortalSelectors)

    def missing(self) -> List[str]:
        """Names of required values that are not set."""
        missing = []
        if not self.url:
            missing.append("portal.url")
        if not self.username:
            missing.append("portal.username")
        if self.password is None or not self.password.get_secret_value():
            missing.append("portal.password")
        return missing

    def require(self) -> "PortalSettings":
        """
        Fail fast when the portal is not fully configured.

        Raises:
            ConfigurationMissingError: naming every absent value
        """
        missing = self.missing()
        if missing:
            raise ConfigurationMissingError(missing)
        return self


class ResolverSettings(BaseModel):
    """
    Element resolver settings.

    Attributes:
        timeout_ms: Budget for one pass over all strategies
        text_tiers: Broadened element set searched by the text strategy,
            one selector per tier, most specific tier first
    """
    timeout_ms: int = Field(default=5000, ge=100, le=120000)
    text_tiers: List[str] = Field(default_factory=lambda: [
        'a, button, [role="button"], [role="link"], [role="menuitem"], input[type="submit"]',
        "li, label, h1, h2, h3, h4, h5, h6, span, p, td",
        "div",
    ])


class WaiterSettings(BaseModel):
    """
    Page state waiter settings.

    Attributes:
        poll_interval_ms: Fixed interval between stability polls
        required_stable_iterations: Consecutive equal non-zero counts for "stable"
        dom_ready_timeout_ms: Budget for DOM-ready after navigation
        network_idle_timeout_ms: Budget for network idle
        stability_timeout_ms: Budget for card/list stabilization
        new_tab_timeout_ms: How long to look for a newly opened tab
        settle_delay_ms: Short pause after navigation-triggering clicks
    """
    poll_interval_ms: int = Field(default=1000, ge=10, le=10000)
    required_stable_iterations: int = Field(default=3, ge=1, le=20)
    dom_ready_timeout_ms: int = Field(default=10000, ge=100, le=120000)
    network_idle_timeout_ms: int = Field(default=10000, ge=100, le=120000)
    stability_timeout_ms: int = Field(default=30000, ge=100, le=300000)
    new_tab_timeout_ms: int = Field(default=3000, ge=0, le=60000)
    settle_delay_ms: int = Field(default=1000, ge=0, le=10000)


class ReportingSettings(BaseModel):
    """
    Diagnostic output settings.

    Attributes:
        screenshots: Capture a screenshot at each major step
        output_dir: Root directory for screenshots and reports
        screenshot_timeout_ms: Upper bound for a single capture
    """
    screenshots: bool = True
    output_dir: str = "./screenshots"
    screenshot_timeout_ms: int = Field(default=5000, ge=500, le=60000)


class LoggingSettings(BaseModel):
    """
    Logging configuration.

    Attributes:
        level: Log level
        file: Log file path (None for console only)
        json_format: Use JSON format for the file handler
    """
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: Optional[str] = None
    json_format: bool = False


class Settings(BaseSettings):
    """
    Root settings container - single source of truth for all configuration.

    Settings are loaded in this priority order (highest to lowest):
    1. Explicit values passed to the constructor (ConfigLoader passes the
       YAML config file this way)
    2. Environment variables (prefixed with PORTAL_E2E__), including .env
    3. Default values

    Example:
        >>> settings = Settings()  # Load from env vars
        >>> settings = Settings(browser=BrowserSettings(headless=False))  # Override
    """

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_E2E__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    portal: PortalSettings = Field(default_factory=PortalSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    waiter: WaiterSettings = Field(default_factory=WaiterSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    debug: bool = False

    def merge_with(self, overrides: dict) -> "Settings":
        """
        Create a new Settings instance with overrides applied.

        Args:
            overrides: Dictionary of values to override

        Returns:
            New Settings instance with overrides applied
        """
        current = self.model_dump()
        password = current.get("portal", {}).get("password")
        if isinstance(password, SecretStr):
            current["portal"]["password"] = password.get_secret_value()

        def deep_merge(base: dict, updates: dict) -> dict:
            for key, value in updates.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    deep_merge(base[key], value)
                else:
                    base[key] = value
            return base

        merged = deep_merge(current, overrides)
        return Settings(**merged)
