import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from plinth.core.errors import ElementError
from plinth.core.ports.canvas import Canvas, CanvasElement
from plinth.models import LINK_TYPES, ElementNode, ElementType

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]

_TAG_BY_TYPE: dict[ElementType, str] = {
    ElementType.SECTION: "section",
    ElementType.CONTAINER: "div",
    ElementType.PARAGRAPH: "p",
    ElementType.BUTTON: "a",
    ElementType.TEXT_LINK: "a",
    ElementType.LINK_BLOCK: "a",
    ElementType.IMAGE: "img",
}


@dataclass
class BuildTreeResult:
    element: CanvasElement
    count: int
    errors: list[ElementError] = field(default_factory=list)


def tag_for_node(node: ElementNode) -> str:
    """Derive the HTML tag an element node materializes as."""
    if node.type is ElementType.HEADING and node.heading_level:
        return f"h{node.heading_level}"
    if node.type is ElementType.DOM:
        return node.dom_tag or "div"
    return _TAG_BY_TYPE.get(node.type, node.type.value.lower())


async def _place(node: ElementNode, anchor: CanvasElement | None, depth: int, canvas: Canvas) -> CanvasElement:
    if depth > 0:
        if anchor is None:
            raise ElementError(f'No parent element for ".{node.class_name}"', class_name=node.class_name)
        return await anchor.append()
    if anchor is not None:
        return await anchor.after()
    root = await canvas.get_root_element()
    if root is None:
        raise ElementError("No anchor element given and the canvas has no root element", class_name=node.class_name)
    return await root.append()


async def _decorate(el: CanvasElement, node: ElementNode, canvas: Canvas, on_progress: ProgressCallback | None) -> None:
    style = await canvas.get_style_by_name(node.class_name)
    if style is not None:
        await el.set_styles([style])
    else:
        logger.warning('Style "%s" not found on canvas, element left unstyled', node.class_name)
        if on_progress:
            on_progress(f'[elements] Warning: style "{node.class_name}" not found, skipping')

    if node.text:
        await el.set_text_content(node.text)

    if node.type in LINK_TYPES and node.href:
        await el.set_attribute("href", node.href)

    if node.type is ElementType.IMAGE:
        if node.src:
            await el.set_attribute("src", node.src)
        if node.alt is not None:
            await el.set_attribute("alt", node.alt)

    for attr in node.attributes or []:
        await el.set_attribute(attr.name, attr.value)


async def build_tree(
    node: ElementNode,
    anchor: CanvasElement | None,
    depth: int,
    canvas: Canvas,
    on_progress: ProgressCallback | None = None,
) -> BuildTreeResult:
    """Materialize ``node`` and its subtree on the canvas.

    At depth 0 the element is inserted right after ``anchor`` or, without an
    anchor, appended under the canvas root. Deeper elements are appended as
    the last child of ``anchor`` (their already built parent). A failing
    child subtree is logged and skipped; its siblings are still built.

    Returns the created element and the number of elements built, itself
    included.
    """
    tag = tag_for_node(node)
    el = await _place(node, anchor, depth, canvas)

    await el.set_tag(tag)
    if on_progress:
        on_progress(f"[elements] Created <{tag}> .{node.class_name} (depth {depth})")

    await _decorate(el, node, canvas, on_progress)

    result = BuildTreeResult(element=el, count=1)
    for child in node.children or []:
        try:
            child_result = await build_tree(child, el, depth + 1, canvas, on_progress)
        except Exception as exc:
            error = ElementError(
                f'Failed to build ".{child.class_name}" under ".{node.class_name}": {exc}',
                class_name=child.class_name,
                parent_class_name=node.class_name,
            )
            logger.error("%s", error)
            result.errors.append(error)
            if on_progress:
                on_progress(f"[elements] ERROR building .{child.class_name} under .{node.class_name}: {exc}")
            continue
        result.count += child_result.count
        result.errors.extend(child_result.errors)

    return result
