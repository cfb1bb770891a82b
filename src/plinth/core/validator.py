"""Structural validation of raw BuildPlan documents.

``validate`` walks the raw (JSON-decoded) document, stops at the first
violation and raises :class:`~plinth.core.errors.ValidationError` whose
message starts with the offending path. On success it returns a normalized
:class:`~plinth.models.BuildPlan`. The input is never modified.
"""

import json
import re
from collections.abc import Mapping
from typing import Any

from plinth.core.errors import ValidationError
from plinth.models import BuildPlan, ElementType

PLAN_VERSION = "1.0"
MAX_DEPTH = 6

KEBAB_CASE_RE = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")

SHORTHAND_PROPERTIES: frozenset[str] = frozenset(
    {
        "padding",
        "margin",
        "border-radius",
        "gap",
        "row-gap",
        "column-gap",
        "background",
        "font",
        "border",
        "outline",
        "list-style",
        "animation",
        "transition",
        "flex",
        "grid-template",
    }
)

BREAKPOINT_IDS: frozenset[str] = frozenset({"main", "xxl", "xl", "large", "medium", "small", "tiny"})

PSEUDO_STATES: frozenset[str] = frozenset(
    {
        "hover",
        "active",
        "focus",
        "visited",
        "before",
        "after",
        "first-child",
        "last-child",
        "nth-child(odd)",
        "nth-child(even)",
        "placeholder",
        "focus-visible",
        "focus-within",
        "empty",
    }
)

_ELEMENT_TYPES = [t.value for t in ElementType]
_LINK_TYPES = {ElementType.BUTTON.value, ElementType.TEXT_LINK.value, ElementType.LINK_BLOCK.value}
_STRING_FIELDS = ("text", "href", "src", "alt", "domTag")


def _fail(path: str, message: str) -> ValidationError:
    return ValidationError(f"{path}: {message}", path=path)


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__


def _require_mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise _fail(path, f"must be an object, got {_type_name(value)}")
    return value


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_kebab(value: Any, path: str) -> None:
    if not isinstance(value, str) or not value:
        raise _fail(path, "must be a non-empty string")
    if not KEBAB_CASE_RE.match(value):
        raise _fail(
            path,
            f'"{value}" must be kebab-case (lowercase letters, digits, single hyphens; must start with a letter)',
        )


def _check_css_properties(props: Any, path: str) -> None:
    mapping = _require_mapping(props, path)
    for key, value in mapping.items():
        if key in SHORTHAND_PROPERTIES:
            raise _fail(
                f"{path}.{key}",
                f'"{key}" is a shorthand CSS property and is not allowed. '
                f"Use the equivalent longhand properties instead (e.g. {key}-top, {key}-right, ...)",
            )
        if not isinstance(value, str):
            raise _fail(f"{path}.{key}", f"CSS value must be a string, got {_type_name(value)}")


def _check_variant_map(value: Any, path: str, allowed: frozenset[str], label: str) -> None:
    variants = _require_mapping(value, path)
    for variant_id, props in variants.items():
        if variant_id not in allowed:
            raise _fail(
                path,
                f'unknown {label} "{variant_id}". Valid values: {", ".join(sorted(allowed))}',
            )
        _check_css_properties(props, f"{path}.{variant_id}")


def _check_style(style: Any, path: str) -> str:
    s = _require_mapping(style, path)
    _check_kebab(s.get("name"), f"{path}.name")
    if "properties" not in s:
        raise _fail(f"{path}.properties", "is required")
    _check_css_properties(s["properties"], f"{path}.properties")
    if s.get("breakpoints") is not None:
        _check_variant_map(s["breakpoints"], f"{path}.breakpoints", BREAKPOINT_IDS, "breakpoint")
    if s.get("pseudo") is not None:
        _check_variant_map(s["pseudo"], f"{path}.pseudo", PSEUDO_STATES, "pseudo state")
    name: str = s["name"]
    return name


def _check_styles(styles: Any) -> None:
    if not isinstance(styles, list):
        raise _fail("styles", f"must be an array, got {_type_name(styles)}")
    seen: set[str] = set()
    for index, style in enumerate(styles):
        name = _check_style(style, f"styles[{index}]")
        if name in seen:
            raise _fail(f"styles[{index}].name", f'duplicate style name "{name}"')
        seen.add(name)


def _check_type_fields(node: Mapping[str, Any], node_type: str, path: str) -> None:
    for field in _STRING_FIELDS:
        value = node.get(field)
        if value is not None and not isinstance(value, str):
            raise _fail(f"{path}.{field}", f"must be a string, got {_type_name(value)}")

    level = node.get("headingLevel")
    level_ok = _is_int(level) and 1 <= level <= 6
    if node_type == ElementType.HEADING.value and not level_ok:
        raise _fail(f"{path}.headingLevel", "Heading element requires headingLevel to be an integer between 1 and 6")
    if level is not None and not level_ok:
        raise _fail(f"{path}.headingLevel", f"must be an integer between 1 and 6 when set on a {node_type} element")

    if node_type in _LINK_TYPES and _is_blank(node.get("href")):
        raise _fail(f"{path}.href", f'{node_type} element requires a non-empty "href" field')

    if node_type == ElementType.IMAGE.value:
        if _is_blank(node.get("src")):
            raise _fail(f"{path}.src", 'Image element requires a non-empty "src" field')
        if not isinstance(node.get("alt"), str):
            raise _fail(
                f"{path}.alt",
                'Image element requires an "alt" field (may be an empty string for decorative images)',
            )

    if node_type == ElementType.DOM.value and _is_blank(node.get("domTag")):
        raise _fail(f"{path}.domTag", 'DOM element requires a non-empty "domTag" field')


def _check_attributes(attributes: Any, path: str) -> None:
    if not isinstance(attributes, list):
        raise _fail(path, f"must be an array, got {_type_name(attributes)}")
    for index, attr in enumerate(attributes):
        attr_path = f"{path}[{index}]"
        a = _require_mapping(attr, attr_path)
        if _is_blank(a.get("name")):
            raise _fail(f"{attr_path}.name", "must be a non-empty string")
        if not isinstance(a.get("value"), str):
            raise _fail(f"{attr_path}.value", "must be a string")


def _check_node(node: Any, path: str, depth: int) -> None:
    if depth > MAX_DEPTH:
        raise _fail(path, f"element tree exceeds maximum nesting depth of {MAX_DEPTH} levels")

    el = _require_mapping(node, path)

    node_type = el.get("type")
    if not isinstance(node_type, str):
        raise _fail(f"{path}.type", "must be a string")
    if node_type not in _ELEMENT_TYPES:
        raise _fail(
            f"{path}.type",
            f'"{node_type}" is not a recognised element type. Valid types: {", ".join(_ELEMENT_TYPES)}',
        )

    _check_kebab(el.get("className"), f"{path}.className")
    _check_type_fields(el, node_type, path)

    if el.get("attributes") is not None:
        _check_attributes(el["attributes"], f"{path}.attributes")

    if el.get("children") is not None:
        children = el["children"]
        if not isinstance(children, list):
            raise _fail(f"{path}.children", f"must be an array, got {_type_name(children)}")
        for index, child in enumerate(children):
            _check_node(child, f"{path}.children[{index}]", depth + 1)


def validate(raw: Any) -> BuildPlan:
    """Validate a raw BuildPlan document and return the normalized plan.

    Raises ``ValidationError`` on the first violation found.
    """
    plan = _require_mapping(raw, "BuildPlan")

    if plan.get("version") != PLAN_VERSION:
        raise _fail("version", f'must be "{PLAN_VERSION}", got {json.dumps(plan.get("version"), default=str)}')

    if _is_blank(plan.get("siteId")):
        raise _fail("siteId", "must be a non-empty string")

    _check_kebab(plan.get("sectionName"), "sectionName")

    order = plan.get("order")
    if not _is_int(order) or order < 1:
        raise _fail("order", "must be a positive integer")

    if plan.get("pageId") is not None and not isinstance(plan["pageId"], str):
        raise _fail("pageId", "must be a string")

    if plan.get("styles") is not None:
        _check_styles(plan["styles"])

    if plan.get("tree") is None:
        raise _fail("tree", "is required")
    tree = _require_mapping(plan["tree"], "tree")
    if tree.get("type") != ElementType.SECTION.value:
        raise _fail(
            "tree.type",
            f'root element must be a "Section", got {json.dumps(tree.get("type"), default=str)}',
        )

    # The root Section counts as depth 1.
    _check_node(tree, "tree", 1)

    return BuildPlan.model_validate(
        {
            "version": PLAN_VERSION,
            "siteId": plan["siteId"],
            "pageId": plan.get("pageId"),
            "sectionName": plan["sectionName"],
            "order": order,
            "styles": plan.get("styles") or [],
            "tree": tree,
        }
    )
