import logging
import time
from collections.abc import Callable
from typing import Any

from plinth.core.elements import build_tree
from plinth.core.errors import ValidationError
from plinth.core.ports.canvas import Canvas, CanvasElement
from plinth.core.styles import apply_styles
from plinth.core.validator import validate
from plinth.models import BuildResult

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _fail(
    error: str,
    start: float,
    styles_created: int = 0,
    styles_skipped: int = 0,
    elements_created: int = 0,
) -> BuildResult:
    return BuildResult(
        success=False,
        elements_created=elements_created,
        styles_created=styles_created,
        styles_skipped=styles_skipped,
        elapsed_ms=_elapsed_ms(start),
        error=error,
    )


async def execute_build_plan(
    raw_plan: Any,
    canvas: Canvas,
    on_progress: Callable[[str], None] | None = None,
) -> BuildResult:
    """Validate a raw BuildPlan, create its styles, then build its element tree.

    Never raises. Every failure is reported through the returned
    ``BuildResult`` together with the counts reached before it happened.
    """
    start = time.monotonic()

    def progress(message: str) -> None:
        if on_progress:
            on_progress(message)

    progress("[executor] Validating BuildPlan...")
    try:
        plan = validate(raw_plan)
    except ValidationError as exc:
        logger.error("Validation failed: %s", exc)
        progress(f"[executor] Validation failed: {exc}")
        return _fail(str(exc), start)
    except Exception as exc:
        message = f"Unexpected validation error: {exc}"
        logger.exception("Validation failed unexpectedly")
        progress(f"[executor] {message}")
        return _fail(message, start)

    progress(f'[executor] Valid BuildPlan, section "{plan.section_name}", {len(plan.styles)} styles')

    anchor: CanvasElement | None = None
    try:
        anchor = await canvas.get_selected_element()
    except Exception as exc:
        logger.warning("Could not read selected element: %s", exc)
        progress(f"[executor] Warning: could not read selected element ({exc})")
    else:
        if anchor is not None:
            progress("[executor] Insertion point: selected element")
        else:
            progress("[executor] No element selected, section will be appended to the page root")

    styles_created = 0
    styles_skipped = 0
    try:
        progress("[executor] Creating styles...")
        style_result = await apply_styles(plan.styles, canvas, on_progress)
        styles_created = style_result.created
        styles_skipped = style_result.skipped
    except Exception as exc:
        logger.exception("Style creation failed unexpectedly")
        progress(f"[executor] Style creation error: {exc}")
        return _fail(str(exc), start, styles_created, styles_skipped)

    elements_created = 0
    try:
        progress("[executor] Building element tree...")
        tree_result = await build_tree(plan.tree, anchor, 0, canvas, on_progress)
        elements_created = tree_result.count
    except Exception as exc:
        logger.exception("Element tree build failed")
        progress(f"[executor] Element build error: {exc}")
        return _fail(str(exc), start, styles_created, styles_skipped, elements_created)

    elapsed_ms = _elapsed_ms(start)
    logger.info(
        'Built section "%s": %d element(s), %d style(s) created, %d skipped in %dms',
        plan.section_name,
        elements_created,
        styles_created,
        styles_skipped,
        elapsed_ms,
    )
    progress(f"[executor] Done in {elapsed_ms}ms, {elements_created} element(s), {styles_created} style(s) created")

    return BuildResult(
        success=True,
        elements_created=elements_created,
        styles_created=styles_created,
        styles_skipped=styles_skipped,
        elapsed_ms=elapsed_ms,
    )
