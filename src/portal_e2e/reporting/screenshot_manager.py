"""
Screenshot Manager - Capture and organize diagnostic screenshots.

Screenshots are diagnostics only. A failed capture is logged and
reported as ``None``; it never fails the scenario that asked for it.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING
import logging
import re

from portal_e2e.exceptions import PortalE2EError

if TYPE_CHECKING:
    from portal_e2e.interfaces.browser import IPage

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    """Turn a step or card name into a file-name friendly slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "screenshot"


@dataclass
class Screenshot:
    """
    A captured screenshot.

    Attributes:
        path: File path to the screenshot
        name: Slugged name it was captured under
        step_number: Associated scenario step, if any
        timestamp: When the screenshot was taken
        is_error: Whether this is an error screenshot
    """
    path: Path
    name: str
    step_number: Optional[int]
    timestamp: datetime
    is_error: bool = False


class ScreenshotManager:
    """
    Manage screenshot capture for one run.

    Example:
        >>> manager = ScreenshotManager(output_dir="./screenshots", run_id="login-20240101-120000")
        >>> shot = await manager.capture(page, "after login", step_number=2)
    """

    def __init__(
        self,
        output_dir: str | Path,
        run_id: str,
        enabled: bool = True,
        timeout_ms: int = 5000,
        format: str = "png",
    ):
        """
        Initialize the screenshot manager.

        Args:
            output_dir: Root directory for screenshots
            run_id: Run identifier, used as sub-directory
            enabled: When False, ``capture`` does nothing
            timeout_ms: Upper bound for one capture
            format: Image format (png, jpeg)
        """
        self.output_dir = Path(output_dir) / run_id
        self.run_id = run_id
        self.enabled = enabled
        self.timeout_ms = timeout_ms
        self.format = format
        self._screenshots: List[Screenshot] = []

    async def capture(
        self,
        page: "IPage",
        name: str,
        step_number: Optional[int] = None,
        full_page: bool = False,
        is_error: bool = False,
    ) -> Optional[Screenshot]:
        """
        Capture a screenshot.

        Args:
            page: Browser page to capture
            name: What the screenshot shows
            step_number: Current scenario step
            full_page: Whether to capture full scrollable page
            is_error: Whether this is an error screenshot

        Returns:
            Screenshot, or None if disabled or the capture failed
        """
        if not self.enabled:
            return None

        timestamp = datetime.now()
        prefix = "error-" if is_error else ""
        step = f"{step_number:03d}-" if step_number is not None else ""
        slug = slugify(name)
        path = self.output_dir / f"{prefix}{step}{slug}-{timestamp.strftime('%H%M%S%f')[:-3]}.{self.format}"

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=path, full_page=full_page, timeout=self.timeout_ms)
        except (PortalE2EError, OSError) as e:
            logger.warning(f"Screenshot '{slug}' failed: {e}")
            return None

        screenshot = Screenshot(
            path=path,
            name=slug,
            step_number=step_number,
            timestamp=timestamp,
            is_error=is_error,
        )
        self._screenshots.append(screenshot)

        logger.debug(f"Captured screenshot: {path}")
        return screenshot

    async def capture_on_error(
        self,
        page: "IPage",
        name: str,
        step_number: Optional[int] = None,
    ) -> Optional[Screenshot]:
        """Capture a full-page error screenshot."""
        return await self.capture(
            page=page,
            name=name,
            step_number=step_number,
            full_page=True,
            is_error=True,
        )

    def get_screenshots(self) -> List[Screenshot]:
        """Get all captured screenshots."""
        return self._screenshots.copy()

    def get_screenshots_for_step(self, step_number: int) -> List[Screenshot]:
        """Get all screenshots for a specific step."""
        return [s for s in self._screenshots if s.step_number == step_number]
