import itertools
from dataclasses import dataclass, field

from plinth.models import PageInfo

_ids = itertools.count(1)


def _next_id(prefix: str) -> str:
    return f"{prefix}-{next(_ids)}"


@dataclass(eq=False)
class InMemoryStyle:
    name: str
    id: str = field(default_factory=lambda: _next_id("style"))
    # (breakpoint, pseudo) -> properties; (None, None) holds the base properties.
    variants: dict[tuple[str | None, str | None], dict[str, str]] = field(default_factory=dict)

    async def get_name(self) -> str:
        return self.name

    async def set_properties(
        self,
        properties: dict[str, str],
        breakpoint: str | None = None,
        pseudo: str | None = None,
    ) -> None:
        self.variants.setdefault((breakpoint, pseudo), {}).update(properties)

    @property
    def properties(self) -> dict[str, str]:
        return self.variants.get((None, None), {})


@dataclass(eq=False)
class InMemoryElement:
    type: str = "DOM"
    tag: str | None = None
    id: str = field(default_factory=lambda: _next_id("el"))
    text: str | None = None
    styles: list[InMemoryStyle] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    children: list["InMemoryElement"] = field(default_factory=list)
    parent: "InMemoryElement | None" = field(default=None, repr=False)

    async def append(self) -> "InMemoryElement":
        child = InMemoryElement(parent=self)
        self.children.append(child)
        return child

    async def after(self) -> "InMemoryElement":
        if self.parent is None:
            raise RuntimeError("Cannot insert after an element without a parent")
        sibling = InMemoryElement(parent=self.parent)
        index = self.parent.children.index(self)
        self.parent.children.insert(index + 1, sibling)
        return sibling

    async def set_tag(self, tag: str) -> None:
        self.tag = tag

    async def get_tag(self) -> str | None:
        return self.tag

    async def set_styles(self, styles: list[InMemoryStyle]) -> None:
        self.styles = list(styles)

    async def get_styles(self) -> list[InMemoryStyle]:
        return list(self.styles)

    async def set_text_content(self, text: str) -> None:
        self.text = text

    async def get_text(self) -> str | None:
        return self.text

    async def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = value

    async def get_children(self) -> list["InMemoryElement"]:
        return list(self.children)

    @property
    def class_names(self) -> list[str]:
        return [s.name for s in self.styles]

    def walk(self) -> list["InMemoryElement"]:
        """Return this element and all descendants in document order."""
        found = [self]
        for child in self.children:
            found.extend(child.walk())
        return found


class InMemoryCanvas:
    """Canvas held entirely in memory.

    Implements the ``Canvas`` port; used by tests and for dry runs.
    """

    def __init__(self, page: PageInfo | None = None) -> None:
        self.root: InMemoryElement | None = InMemoryElement(type="Body", tag="body")
        self.styles: dict[str, InMemoryStyle] = {}
        self.selected: InMemoryElement | None = None
        self.page = page

    async def get_style_by_name(self, name: str) -> InMemoryStyle | None:
        return self.styles.get(name)

    async def create_style(self, name: str) -> InMemoryStyle:
        if name in self.styles:
            raise ValueError(f'Style "{name}" already exists')
        style = InMemoryStyle(name=name)
        self.styles[name] = style
        return style

    async def get_all_styles(self) -> list[InMemoryStyle]:
        return list(self.styles.values())

    async def get_root_element(self) -> InMemoryElement | None:
        return self.root

    async def get_selected_element(self) -> InMemoryElement | None:
        return self.selected

    async def get_current_page(self) -> PageInfo | None:
        return self.page

    def find_by_class(self, class_name: str) -> list[InMemoryElement]:
        if self.root is None:
            return []
        return [el for el in self.root.walk() if class_name in el.class_names]
