"""
Heuristic policy tables shared by the analyzer and the test generator.

Everything here is a lookup keyed by tag name, role or test id so new
heuristics can be added without touching the tree walking code.
"""
from typing import Dict, Mapping, Optional, Set, Union

from testgen.config import ROLE_ATTRIBUTE

# Role implied by a DOM tag when no explicit `role` attribute is given.
TAG_ROLES: Dict[str, str] = {
    'button': 'button',
    'a': 'link',
    'img': 'image',
    'input': 'textbox',
    'textarea': 'textbox',
}

# Explicit `role="..."` values we know how to query for.
EXPLICIT_ROLES: Dict[str, str] = {
    'button': 'button',
    'link': 'link',
    'textbox': 'textbox',
    'img': 'image',
    'image': 'image',
}

# `type` attribute values that keep a textbox a textbox.
TEXT_INPUT_TYPES: Set[str] = {'text'}

# roleHint -> Testing Library role name
QUERY_ROLES: Dict[str, str] = {
    'button': 'button',
    'link': 'link',
    'textbox': 'textbox',
    'image': 'img',
}

# Roles whose accessible name comes from the element text.
NAMED_QUERY_ROLES: Set[str] = {'button', 'link'}

# Test ids that usually mark repeated list items.
DYNAMIC_ITEM_IDS = ('user', 'todo', 'item', 'row', 'card')


def infer_role(tag: str, properties: Mapping[str, Union[bool, str]]) -> Optional[str]:
    explicit = properties.get(ROLE_ATTRIBUTE)
    if isinstance(explicit, str) and not explicit.startswith('expr:') and explicit not in {'dynamic', 'unknown'}:
        role = EXPLICIT_ROLES.get(explicit)
    else:
        role = TAG_ROLES.get(tag)

    if role == 'textbox' and 'type' in properties and properties['type'] not in TEXT_INPUT_TYPES:
        return None
    return role


def is_likely_dynamic_item(stable_id: Optional[str]) -> bool:
    test_id = (stable_id or '').lower()
    if not test_id:
        return False
    return any(
        test_id == key or test_id.endswith(f"-{key}") or test_id.startswith(f"{key}-")
        for key in DYNAMIC_ITEM_IDS
    )
