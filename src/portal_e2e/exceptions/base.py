"""
Root of the suite's error taxonomy and the configuration errors.

"Not found" and "not ready" are return values, never exceptions. What
is raised is either a setup problem (configuration, launch) or the
browser going away underneath a scenario.
"""


class PortalE2EError(Exception):
    """
    Base exception for all portal-e2e errors.

    Attributes:
        message: Human-readable error message
        details: Values a report or CLI can show next to the message
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(PortalE2EError):
    """Settings, config file or .env could not be turned into a valid run."""
    pass


class ConfigurationMissingError(ConfigurationError):
    """
    Portal URL, username or password is absent.

    Raised when a scenario is built, before any browser starts. Every
    missing key is named; no default is substituted.
    """

    def __init__(self, missing: list[str]):
        names = ", ".join(missing)
        super().__init__(
            f"Missing required configuration: {names}",
            {"missing": list(missing)},
        )
        self.missing = list(missing)
