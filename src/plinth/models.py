from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models whose JSON form uses camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ElementType(str, Enum):
    SECTION = "Section"
    DIV_BLOCK = "DivBlock"
    CONTAINER = "Container"
    HEADING = "Heading"
    PARAGRAPH = "Paragraph"
    TEXT_BLOCK = "TextBlock"
    BUTTON = "Button"
    TEXT_LINK = "TextLink"
    LINK_BLOCK = "LinkBlock"
    IMAGE = "Image"
    DOM = "DOM"


LINK_TYPES = frozenset({ElementType.BUTTON, ElementType.TEXT_LINK, ElementType.LINK_BLOCK})


class QueueStatus(str, Enum):
    PENDING = "pending"
    BUILDING = "building"
    DONE = "done"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({QueueStatus.DONE, QueueStatus.ERROR})


class ElementAttribute(WireModel):
    name: str
    value: str


class ElementNode(WireModel):
    type: ElementType
    class_name: str
    text: str | None = None
    heading_level: int | None = None
    href: str | None = None
    src: str | None = None
    alt: str | None = None
    dom_tag: str | None = None
    attributes: list[ElementAttribute] | None = None
    children: list["ElementNode"] | None = None


ElementNode.model_rebuild()  # necessary for recursive types


class StyleDef(WireModel):
    name: str
    properties: dict[str, str]
    breakpoints: dict[str, dict[str, str]] | None = None
    pseudo: dict[str, dict[str, str]] | None = None


class BuildPlan(WireModel):
    version: str = "1.0"
    site_id: str
    page_id: str | None = None
    section_name: str
    order: int
    styles: list[StyleDef] = []
    tree: ElementNode


class QueueItem(WireModel):
    id: str
    name: str
    status: QueueStatus = QueueStatus.PENDING
    order: int = 0
    plan: str | None = None
    error_message: str | None = None


class BuildResult(WireModel):
    success: bool
    elements_created: int = 0
    styles_created: int = 0
    styles_skipped: int = 0
    elapsed_ms: int = 0
    error: str | None = None


class PageInfo(WireModel):
    name: str
    id: str


class SnapshotPayload(WireModel):
    summary: str
    page_info: PageInfo | None = None
