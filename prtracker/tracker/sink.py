"""
Render sink: the boundary between the orchestrator and whatever draws the dashboard.

Presentation adapters subclass RenderSink; the base class only logs, which is
what a headless tracker uses.
"""

from prtracker.models.render_frame import RenderFrame
from prtracker.utils.logger import logger


class RenderSink:
    def render(self, frame: RenderFrame) -> None:
        state = "complete" if frame.complete else f"{frame.processed}/{frame.total}"
        logger.info(
            f"Render frame display#{frame.display_epoch} fetch#{frame.fetch_epoch}: "
            f"{len(frame.rows)} rows ({state})"
        )

    def show_loading(self, show: bool) -> None:
        logger.debug(f"Loading indicator: {show}")

    def show_refresh_status(self, show: bool) -> None:
        logger.debug(f"Refresh indicator: {show}")

    def show_error(self, message: str) -> None:
        logger.error(message)

    def show_warning(self, message: str) -> None:
        logger.warning(message)

    def show_success(self, message: str) -> None:
        logger.info(message)
