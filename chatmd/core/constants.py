from chatmd.core.env import _env_positive_int

__version__ = "0.3.0"

ROOT_NODE_ID = "client-created-root"
SOURCE_URL_PREFIX = "https://chatgpt.com/c/"
DEFAULT_OUTPUT_DIRNAME = "chatgpt-exports"
MARKDOWN_SUFFIX = ".md"

REASONING_ACTIVE = "is_reasoning"
REASONING_ENDED = "reasoning_ended"

# Top-level keys of assistant payloads that are tool invocations, not prose.
TOOL_COMMAND_KEYS = frozenset(
    {"open", "search_query", "find", "click", "browser", "code_interpreter"}
)

MAX_ZIP_MEMBERS = _env_positive_int("CHATMD_MAX_ZIP_MEMBERS", 100_000)
MAX_ZIP_UNCOMPRESSED_BYTES = _env_positive_int(
    "CHATMD_MAX_ZIP_UNCOMPRESSED_BYTES", 2 * 1024 * 1024 * 1024
)
JSON_DISCOVERY_BUCKET_LIMIT = _env_positive_int(
    "CHATMD_JSON_DISCOVERY_BUCKET_LIMIT", 512
)
