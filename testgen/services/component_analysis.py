import logging
from dataclasses import dataclass, field
from tree_sitter import Node
from typing import Dict, List, Optional, Tuple, Union

from testgen.config import (
    AXIOS_CLIENT,
    CALLBACK_HOOKS,
    EFFECT_HOOKS,
    FALLBACK_COMPONENT_NAME,
    FETCH_FUNCTION,
    STATE_HOOKS,
    UNKNOWN_URL,
)
from testgen.models import AnalyzedComponent, ElementRecord, NetworkCall, StatePair
from testgen.services.jsx_elements import build_element_record
from testgen.services.syntax import (
    FUNCTION_VALUE_TYPES,
    AnalysisError,
    SourceParser,
    TreeVisitor,
    call_arguments,
    enclosing_function,
    is_hook_call,
    meaningful_children,
    node_text,
    string_value,
    unwrap_function,
)

logger = logging.getLogger(__name__)

__all__ = [
    "AnalysisError",
    "ComponentAnalyzer",
    "ComponentLocation",
    "locate_component",
]


@dataclass
class ComponentLocation:
    name: str
    # Function nodes whose bodies are in scope. Empty means the whole file.
    roots: List[Node] = field(default_factory=list)


class ComponentAnalyzer:
    """
    Static analyzer for a single React-style function component.

    Two passes over one tree: `locate_component` fixes which function is the
    default-exported component, then `ComponentFactsVisitor` walks only that
    function's subtree.
    """

    def __init__(self):
        self.parser = SourceParser()

    def analyze_file(self, file_path: str) -> AnalyzedComponent:
        try:
            with open(file_path, 'rb') as f:
                content = f.read()
        except OSError as e:
            raise AnalysisError(file_path, e.strerror or str(e)) from e

        return self.analyze_source(content, file_path)

    def analyze_source(self, content: Union[str, bytes], file_path: str = "Component.tsx") -> AnalyzedComponent:
        if isinstance(content, str):
            content = content.encode('utf-8')
        tree = self.parser.parse(content, file_path)

        location = locate_component(tree.root_node)
        if location.roots:
            logger.debug("Resolved component %s in %s (%d scope roots)", location.name, file_path, len(location.roots))
            roots = location.roots
        else:
            logger.warning(
                "Could not anchor component %r in %s; analyzing the whole file",
                location.name,
                file_path,
            )
            roots = [tree.root_node]

        visitor = ComponentFactsVisitor()
        visitor.walk_all(roots)

        return AnalyzedComponent(
            name=location.name,
            elements=visitor.elements,
            states=visitor.states,
            has_effects=visitor.has_effects,
            props=infer_props(location.roots[0]) if location.roots else [],
            uses_fetch=visitor.network.uses_fetch,
            uses_axios=visitor.network.uses_axios,
            apis=visitor.network.apis,
            effect_dependencies=visitor.effect_dependencies,
            event_to_setter_map=visitor.setter_map(),
        )


# ---------------------------------------------------------------------------
# Pass 1: component locator
# ---------------------------------------------------------------------------

def locate_component(root: Node) -> ComponentLocation:
    name, export_value = resolve_component_name(root)

    roots = find_scope_roots(root, name) if name is not None else []
    if not roots:
        # `export default () => ...`, `export default memo(function () {...})`
        fn = unwrap_function(export_value)
        if fn is not None:
            roots = [fn]

    return ComponentLocation(name=name or FALLBACK_COMPONENT_NAME, roots=roots)


def resolve_component_name(root: Node) -> Tuple[Optional[str], Optional[Node]]:
    """
    Resolve the default export to a component name.

    Returns the name (None when unresolved) and, for `export default <expr>`
    forms, the exported expression node.
    """
    for statement in root.named_children:
        if statement.type != 'export_statement' or not _is_default_export(statement):
            continue

        declaration = statement.child_by_field_name('declaration')
        if declaration is not None and declaration.type in {'function_declaration', 'generator_function_declaration'}:
            name_node = declaration.child_by_field_name('name')
            if name_node is not None:
                return node_text(name_node), None

        value = statement.child_by_field_name('value')
        if value is None:
            return None, None

        if value.type == 'identifier':
            return node_text(value), value

        if value.type in FUNCTION_VALUE_TYPES:
            name_node = value.child_by_field_name('name')
            if name_node is not None:
                return node_text(name_node), value
            return None, value

        # memo(Foo), withRouter(Foo), connect(mapState)(Foo)
        if value.type == 'call_expression':
            args = call_arguments(value)
            if args and args[0].type == 'identifier':
                return node_text(args[0]), value

        return None, value

    # export { Foo as default }
    for statement in root.named_children:
        if statement.type != 'export_statement' or statement.child_by_field_name('source') is not None:
            continue
        for clause in statement.named_children:
            if clause.type != 'export_clause':
                continue
            for spec in clause.named_children:
                alias = spec.child_by_field_name('alias')
                name_node = spec.child_by_field_name('name')
                if alias is not None and node_text(alias) == 'default' and name_node is not None:
                    return node_text(name_node), None

    return None, None


def _is_default_export(statement: Node) -> bool:
    return any(child.type == 'default' for child in statement.children)


def find_scope_roots(root: Node, name: str) -> List[Node]:
    """
    Collect every function that defines `name`: a function declaration with
    that name, or a variable bound to a function (optionally wrapped in a call
    such as `memo(...)`). Matches nested inside an earlier match are skipped.
    """
    roots: List[Node] = []
    stack = [root]
    while stack:
        node = stack.pop()
        fn = _component_definition(node, name)
        if fn is not None:
            roots.append(fn)
            continue
        stack.extend(reversed(node.named_children))
    return roots


def _component_definition(node: Node, name: str) -> Optional[Node]:
    if node.type in {'function_declaration', 'generator_function_declaration'}:
        if node_text(node.child_by_field_name('name')) == name:
            return node
        return None

    if node.type == 'variable_declarator':
        binding = node.child_by_field_name('name')
        if binding is not None and binding.type == 'identifier' and node_text(binding) == name:
            return unwrap_function(node.child_by_field_name('value'))

    return None


# ---------------------------------------------------------------------------
# Pass 2: scoped fact extraction
# ---------------------------------------------------------------------------

def infer_props(fn: Node) -> List[str]:
    # Arrow functions with a bare parameter: `props => ...`
    single = fn.child_by_field_name('parameter')
    if single is not None:
        return binding_names(single)

    params = fn.child_by_field_name('parameters')
    if params is None:
        return []
    children = meaningful_children(params)
    if not children:
        return []

    first = children[0]
    if first.type in {'required_parameter', 'optional_parameter'}:
        # TS puts the default value on the parameter, the binding under `pattern`
        first = first.child_by_field_name('pattern')
    return binding_names(first)


def binding_names(pattern: Optional[Node]) -> List[str]:
    if pattern is None:
        return []
    if pattern.type == 'identifier':
        return [node_text(pattern)]
    if pattern.type == 'assignment_pattern':
        return binding_names(pattern.child_by_field_name('left'))
    if pattern.type != 'object_pattern':
        return []

    names: List[str] = []
    for child in meaningful_children(pattern):
        if child.type == 'shorthand_property_identifier_pattern':
            names.append(node_text(child))
        elif child.type == 'pair_pattern':
            key = child.child_by_field_name('key')
            if key is None:
                continue
            if key.type == 'property_identifier':
                names.append(node_text(key))
            elif key.type == 'string':
                names.append(string_value(key))
        elif child.type == 'object_assignment_pattern':
            left = child.child_by_field_name('left')
            if left is not None and left.type in {'shorthand_property_identifier_pattern', 'identifier'}:
                names.append(node_text(left))
        elif child.type == 'rest_pattern':
            inner = [c for c in meaningful_children(child) if c.type == 'identifier']
            if inner:
                names.append(node_text(inner[0]))
    return names


def function_name(fn: Node) -> Optional[str]:
    """
    Name a handler function: its declared name, the variable it is assigned
    to, or the variable holding `useCallback(fn, deps)`.
    """
    if fn.type != 'arrow_function':
        name_node = fn.child_by_field_name('name')
        if name_node is not None:
            return node_text(name_node)

    parent = fn.parent
    if parent is None:
        return None

    if parent.type == 'variable_declarator':
        binding = parent.child_by_field_name('name')
        if binding is not None and binding.type == 'identifier':
            return node_text(binding)
        return None

    if parent.type == 'arguments':
        call = parent.parent
        if call is not None and is_hook_call(call, CALLBACK_HOOKS):
            args = call_arguments(call)
            declarator = call.parent
            if args and args[0] == fn and declarator is not None and declarator.type == 'variable_declarator':
                binding = declarator.child_by_field_name('name')
                if binding is not None and binding.type == 'identifier':
                    return node_text(binding)

    return None


class NetworkCallVisitor(TreeVisitor):
    """Collects `fetch(...)` and `axios.<method>(...)` calls."""

    def __init__(self):
        self.apis: List[NetworkCall] = []
        self.uses_fetch = False
        self.uses_axios = False

    def visit_call_expression(self, node: Node) -> None:
        callee = node.child_by_field_name('function')
        if callee is None:
            return

        if callee.type == 'member_expression':
            obj = callee.child_by_field_name('object')
            prop = callee.child_by_field_name('property')
            if (
                obj is not None
                and obj.type == 'identifier'
                and node_text(obj) == AXIOS_CLIENT
                and prop is not None
                and prop.type == 'property_identifier'
            ):
                self.uses_axios = True
                self.apis.append(NetworkCall(kind="axios", method=node_text(prop), url=self._url(node)))

        elif callee.type == 'identifier' and node_text(callee) == FETCH_FUNCTION:
            self.uses_fetch = True
            self.apis.append(NetworkCall(kind="fetch", url=self._url(node)))

    def _url(self, call: Node) -> str:
        args = call_arguments(call)
        url = string_value(args[0]) if args else None
        return url if url is not None else UNKNOWN_URL


class ComponentFactsVisitor(TreeVisitor):
    def __init__(self):
        self.elements: List[ElementRecord] = []
        self.states: List[StatePair] = []
        self.has_effects = False
        self.effect_dependencies: List[str] = []
        self.network = NetworkCallVisitor()
        # (callee name, call node) for every `name(...)` call; matched
        # against state setters once the walk is complete.
        self._identifier_calls: List[Tuple[str, Node]] = []

    def visit_jsx_element(self, node: Node) -> None:
        record = build_element_record(node)
        if record is not None:
            self.elements.append(record)

    visit_jsx_self_closing_element = visit_jsx_element

    def visit_variable_declarator(self, node: Node) -> None:
        pattern = node.child_by_field_name('name')
        value = node.child_by_field_name('value')
        if pattern is None or pattern.type != 'array_pattern':
            return
        if value is None or not is_hook_call(value, STATE_HOOKS):
            return

        bindings = meaningful_children(pattern)
        if len(bindings) != 2 or any(b.type != 'identifier' for b in bindings):
            return
        self.states.append(StatePair(value_name=node_text(bindings[0]), setter_name=node_text(bindings[1])))

    def visit_call_expression(self, node: Node) -> None:
        if is_hook_call(node, EFFECT_HOOKS):
            self._record_effect(node)

        callee = node.child_by_field_name('function')
        if callee is not None and callee.type == 'identifier':
            self._identifier_calls.append((node_text(callee), node))

    def _record_effect(self, call: Node) -> None:
        self.has_effects = True
        args = call_arguments(call)

        if len(args) > 1 and args[1].type == 'array':
            for dep in meaningful_children(args[1]):
                name = node_text(dep)
                if dep.type == 'identifier' and name not in self.effect_dependencies:
                    self.effect_dependencies.append(name)

        # Only the callback body counts as on-mount work
        if args and args[0].type in FUNCTION_VALUE_TYPES:
            body = args[0].child_by_field_name('body')
            if body is not None:
                self.network.walk(body)

    def setter_map(self) -> Dict[str, List[str]]:
        setters = {state.setter_name for state in self.states}
        mapping: Dict[str, List[str]] = {}

        for name, call in self._identifier_calls:
            if name not in setters:
                continue
            fn = enclosing_function(call)
            handler = function_name(fn) if fn is not None else None
            if handler is None:
                continue
            entry = mapping.setdefault(handler, [])
            if name not in entry:
                entry.append(name)

        return mapping
