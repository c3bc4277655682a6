import html
import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Parser, Node, Tree
from pathlib import Path
from typing import Iterable, List, Optional

from testgen.config import TYPESCRIPT_ONLY_EXTENSIONS

# Load TypeScript and TSX grammars
TYPESCRIPT_LANGUAGE = Language(tstypescript.language_typescript())
TSX_LANGUAGE = Language(tstypescript.language_tsx())

FUNCTION_TYPES = {
    'function_declaration',
    'generator_function_declaration',
    'function_expression',
    'function',
    'generator_function',
    'arrow_function',
    'method_definition',
}

# Function shapes that can appear as a value (initializer, argument, export).
FUNCTION_VALUE_TYPES = {'arrow_function', 'function_expression', 'function'}

SIMPLE_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'b': '\b',
    'f': '\f',
    'v': '\v',
    '0': '\0',
}


class AnalysisError(Exception):
    """A source file could not be read or parsed."""

    def __init__(self, path: str, cause: str):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Failed to analyze {self.path}: {cause}")


class SourceParser:
    def __init__(self):
        self.ts_parser = Parser(TYPESCRIPT_LANGUAGE)
        self.tsx_parser = Parser(TSX_LANGUAGE)

    def parse(self, content: bytes, file_path: str) -> Tree:
        """
        Parse `content` with the grammar matching the file's extension.

        tree-sitter recovers from syntax errors instead of failing, so a tree
        containing ERROR or MISSING nodes is rejected here.
        """
        is_tsx = Path(file_path).suffix not in TYPESCRIPT_ONLY_EXTENSIONS
        parser = self.tsx_parser if is_tsx else self.ts_parser
        tree = parser.parse(content)

        if tree.root_node.has_error:
            bad = find_syntax_error(tree.root_node) or tree.root_node
            line = bad.start_point.row + 1
            column = bad.start_point.column + 1
            raise AnalysisError(file_path, f"syntax error at line {line}, column {column}")

        return tree


def find_syntax_error(root: Node) -> Optional[Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == 'ERROR' or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


class TreeVisitor:
    """
    Pre-order walker that dispatches each node to `visit_<node type>`.

    Subclasses only define the handlers they care about; every other node is
    walked through silently. The same engine is run over a whole component
    or over a single subtree.
    """

    def walk(self, root: Node) -> None:
        stack = [root]
        while stack:
            node = stack.pop()
            visitor = getattr(self, f"visit_{node.type}", None)
            if visitor is not None:
                visitor(node)
            stack.extend(reversed(node.named_children))

    def walk_all(self, roots: Iterable[Node]) -> None:
        for root in roots:
            self.walk(root)


def node_text(node: Optional[Node]) -> str:
    if node is None:
        return ""
    return node.text.decode('utf-8', errors='replace')


def meaningful_children(node: Node) -> List[Node]:
    """Named children without comments."""
    return [c for c in node.named_children if c.type != 'comment']


def string_value(node: Optional[Node]) -> Optional[str]:
    """
    Literal value of a string, or of a template string without substitutions.

    JS escape sequences and, in JSX attribute strings, character references
    are decoded.
    """
    if node is None or node.type not in {'string', 'template_string'}:
        return None

    parts: List[str] = []
    for child in node.children:
        if child.type == 'template_substitution':
            return None
        if child.type == 'string_fragment':
            parts.append(node_text(child))
        elif child.type == 'escape_sequence':
            parts.append(decode_escape(node_text(child)))
        elif child.type == 'html_character_reference':
            parts.append(html.unescape(node_text(child)))

    value = "".join(parts)
    if any('\ud800' <= ch <= '\udfff' for ch in value):
        # `\ud83d\ude00` arrives as two surrogates
        value = value.encode('utf-16', 'surrogatepass').decode('utf-16', 'replace')
    return value


def decode_escape(seq: str) -> str:
    """Decode one JS escape sequence such as `\\n`, `\\x41`, `\\u0041` or `\\u{1F600}`."""
    body = seq[1:]
    if not body or body[0] in '\r\n\u2028\u2029':
        # Line continuation
        return ""
    head = body[0]
    if head in SIMPLE_ESCAPES and len(body) == 1:
        return SIMPLE_ESCAPES[head]
    if head in 'xu':
        digits = body[1:].strip('{}')
        try:
            return chr(int(digits, 16))
        except ValueError:
            return body
    return body


def call_arguments(call: Node) -> List[Node]:
    args = call.child_by_field_name('arguments')
    # Tagged templates put a template_string in the arguments slot
    if args is None or args.type != 'arguments':
        return []
    return meaningful_children(args)


def callee_name(call: Node) -> Optional[str]:
    """
    Name of the function called as `fn(...)` or `Namespace.fn(...)`.

    Deeper member chains (`a.b.fn()`) and computed callees give None.
    """
    callee = call.child_by_field_name('function')
    if callee is None:
        return None
    if callee.type == 'identifier':
        return node_text(callee)
    if callee.type == 'member_expression':
        obj = callee.child_by_field_name('object')
        prop = callee.child_by_field_name('property')
        if obj is not None and obj.type == 'identifier' and prop is not None and prop.type == 'property_identifier':
            return node_text(prop)
    return None


def is_hook_call(node: Node, names) -> bool:
    return node.type == 'call_expression' and callee_name(node) in names


def enclosing_function(node: Node) -> Optional[Node]:
    current = node.parent
    while current is not None:
        if current.type in FUNCTION_TYPES:
            return current
        current = current.parent
    return None


def unwrap_function(value: Optional[Node]) -> Optional[Node]:
    """
    Return the function behind a value: the value itself, or the first
    argument of a wrapper call like `memo(() => ...)` / `forwardRef(function ...)`.
    """
    if value is None:
        return None
    if value.type in FUNCTION_VALUE_TYPES:
        return value
    if value.type == 'call_expression':
        args = call_arguments(value)
        if args and args[0].type in FUNCTION_VALUE_TYPES:
            return args[0]
    return None
