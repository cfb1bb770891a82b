from typing import Protocol

from plinth.models import PageInfo


class CanvasStyle(Protocol):
    id: str

    async def get_name(self) -> str: ...

    async def set_properties(
        self,
        properties: dict[str, str],
        breakpoint: str | None = None,
        pseudo: str | None = None,
    ) -> None: ...


class CanvasElement(Protocol):
    id: str
    type: str

    async def append(self) -> "CanvasElement": ...

    async def after(self) -> "CanvasElement": ...

    async def set_tag(self, tag: str) -> None: ...

    async def get_tag(self) -> str | None: ...

    async def set_styles(self, styles: list[CanvasStyle]) -> None: ...

    async def get_styles(self) -> list[CanvasStyle]: ...

    async def set_text_content(self, text: str) -> None: ...

    async def get_text(self) -> str | None: ...

    async def set_attribute(self, name: str, value: str) -> None: ...

    async def get_children(self) -> list["CanvasElement"]: ...


class Canvas(Protocol):
    async def get_style_by_name(self, name: str) -> CanvasStyle | None: ...

    async def create_style(self, name: str) -> CanvasStyle: ...

    async def get_all_styles(self) -> list[CanvasStyle]: ...

    async def get_root_element(self) -> CanvasElement | None: ...

    async def get_selected_element(self) -> CanvasElement | None: ...

    async def get_current_page(self) -> PageInfo | None: ...
