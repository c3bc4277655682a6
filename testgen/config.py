from typing import Set

# Name used when the default export cannot be resolved to an identifier.
FALLBACK_COMPONENT_NAME = "Anonymous"

# Hook names, matched bare (`useState`) or namespaced (`React.useState`).
STATE_HOOKS: Set[str] = {"useState"}
EFFECT_HOOKS: Set[str] = {"useEffect"}
CALLBACK_HOOKS: Set[str] = {"useCallback"}

# Network idioms recognised inside effect callbacks.
FETCH_FUNCTION = "fetch"
AXIOS_CLIENT = "axios"
UNKNOWN_URL = "unknown"

TEST_ID_ATTRIBUTE = "data-testid"
ROLE_ATTRIBUTE = "role"
EVENT_ATTRIBUTE_PREFIX = "on"

# Files parsed with the plain TypeScript grammar; everything else gets TSX.
TYPESCRIPT_ONLY_EXTENSIONS: Set[str] = {".ts", ".mts", ".cts"}

COMPONENT_EXTENSIONS: Set[str] = {".jsx", ".tsx", ".js"}

IGNORE_DIRS: Set[str] = {
    '.git',
    'node_modules',
    'venv',
    '.venv',
    '__pycache__',
    '__tests__',
    'dist',
    'build',
    '.next',
    'coverage',
    '.idea',
    '.vscode',
    'out',
    'android',
    'ios',
}

# Generated test layout
TEST_DIR_NAME = "__tests__"
TEST_FILE_SUFFIX = ".test.tsx"
MAX_ELEMENT_TESTS = 6
