import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from plinth.core.errors import StyleError
from plinth.core.ports.canvas import Canvas, CanvasStyle
from plinth.models import StyleDef

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


@dataclass
class StyleResult:
    created: int = 0
    skipped: int = 0
    errors: list[StyleError] = field(default_factory=list)


async def _configure_style(style: CanvasStyle, style_def: StyleDef, on_progress: ProgressCallback | None) -> None:
    if style_def.properties:
        await style.set_properties(dict(style_def.properties))

    for breakpoint_id, props in (style_def.breakpoints or {}).items():
        if props:
            await style.set_properties(dict(props), breakpoint=breakpoint_id)
            if on_progress:
                on_progress(f'[styles] Applied breakpoint "{breakpoint_id}" to "{style_def.name}"')

    for pseudo_state, props in (style_def.pseudo or {}).items():
        if props:
            await style.set_properties(dict(props), pseudo=pseudo_state)
            if on_progress:
                on_progress(f'[styles] Applied pseudo "{pseudo_state}" to "{style_def.name}"')


async def apply_styles(
    styles: Sequence[StyleDef],
    canvas: Canvas,
    on_progress: ProgressCallback | None = None,
) -> StyleResult:
    """Create every style in ``styles`` that the canvas does not already define.

    Existing styles are skipped, never updated. A failure on one style is
    logged and recorded in ``StyleResult.errors``; the remaining styles are
    still processed.
    """
    result = StyleResult()

    for style_def in styles:
        try:
            existing = await canvas.get_style_by_name(style_def.name)
            if existing is not None:
                result.skipped += 1
                if on_progress:
                    on_progress(f'[styles] Skipping "{style_def.name}", already exists')
                continue

            style = await canvas.create_style(style_def.name)
            if on_progress:
                on_progress(f'[styles] Created "{style_def.name}"')
            await _configure_style(style, style_def, on_progress)
            result.created += 1
        except Exception as exc:
            error = StyleError(style_def.name, exc)
            logger.error("%s", error)
            result.errors.append(error)
            if on_progress:
                on_progress(f'[styles] ERROR on "{style_def.name}": {exc}')

    if on_progress:
        on_progress(f"[styles] Done, {result.created} created, {result.skipped} skipped")
    return result
