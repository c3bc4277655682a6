import html
from tree_sitter import Node
from typing import Dict, List, Optional, Tuple, Union

from testgen.config import EVENT_ATTRIBUTE_PREFIX, TEST_ID_ATTRIBUTE
from testgen.models import ElementRecord
from testgen.services.roles import infer_role
from testgen.services.syntax import meaningful_children, node_text, string_value

DYNAMIC = "dynamic"
UNKNOWN = "unknown"

PropertyValue = Union[bool, str]


def build_element_record(node: Node) -> Optional[ElementRecord]:
    """
    Summarise a `jsx_element` or `jsx_self_closing_element`.

    Fragments (`<>...</>`) have no tag name and produce no record.
    """
    if node.type == 'jsx_element':
        opening = node.child_by_field_name('open_tag')
    else:
        opening = node
    if opening is None:
        return None

    name_node = opening.child_by_field_name('name')
    if name_node is None:
        return None
    # `<Foo . Bar>` is legal; normalise to `Foo.Bar`
    tag = "".join(node_text(name_node).split())

    properties, events, stable_id = collect_attributes(opening)
    text = first_text_child(node) if node.type == 'jsx_element' else None

    return ElementRecord(
        type=tag,
        properties=properties,
        text=text,
        stable_id=stable_id,
        events=events,
        role_hint=infer_role(tag, properties),
    )


def collect_attributes(opening: Node) -> Tuple[Dict[str, PropertyValue], Dict[str, str], Optional[str]]:
    properties: Dict[str, PropertyValue] = {}
    events: Dict[str, str] = {}
    stable_id: Optional[str] = None

    for attr in opening.named_children:
        # Spread attributes come through as jsx_expression; their contents are unknowable.
        if attr.type != 'jsx_attribute':
            continue

        parts = meaningful_children(attr)
        if not parts or parts[0].type == 'jsx_namespace_name':
            continue
        key = node_text(parts[0])
        value_node = parts[1] if len(parts) > 1 else None

        properties[key] = attribute_value(value_node)

        handler = bound_identifier(value_node)
        if handler is not None and key.startswith(EVENT_ATTRIBUTE_PREFIX):
            events[key] = handler

        if key == TEST_ID_ATTRIBUTE:
            literal = literal_string(value_node)
            if literal is not None:
                stable_id = literal

    return properties, events, stable_id


def attribute_value(value_node: Optional[Node]) -> PropertyValue:
    if value_node is None:
        return True
    if value_node.type == 'string':
        return string_value(value_node)
    if value_node.type != 'jsx_expression':
        return UNKNOWN

    inner = meaningful_children(value_node)
    if not inner:
        return DYNAMIC
    expr = inner[0]
    if expr.type == 'identifier':
        return f"expr:{node_text(expr)}"
    if expr.type == 'string':
        return string_value(expr)
    if expr.type in {'number', 'true', 'false'}:
        return node_text(expr)
    return DYNAMIC


def bound_identifier(value_node: Optional[Node]) -> Optional[str]:
    if value_node is None or value_node.type != 'jsx_expression':
        return None
    inner = meaningful_children(value_node)
    if inner and inner[0].type == 'identifier':
        return node_text(inner[0])
    return None


def literal_string(value_node: Optional[Node]) -> Optional[str]:
    """`"x"` or `{"x"}`; anything computed is not literal."""
    if value_node is None:
        return None
    if value_node.type == 'string':
        return string_value(value_node)
    if value_node.type == 'jsx_expression':
        inner = meaningful_children(value_node)
        if len(inner) == 1 and inner[0].type == 'string':
            return string_value(inner[0])
    return None


def first_text_child(element: Node) -> Optional[str]:
    """
    First non-blank run of literal text directly inside `element`.

    tree-sitter splits `Save &amp; close` into text and character-reference
    nodes; adjacent pieces are joined and the references decoded.
    """
    run: List[str] = []
    for child in element.named_children + [None]:
        if child is not None and child.type == 'jsx_text':
            run.append(node_text(child))
            continue
        if child is not None and child.type == 'html_character_reference':
            run.append(html.unescape(node_text(child)))
            continue
        text = "".join(run).strip()
        if text:
            return text
        run = []
    return None
