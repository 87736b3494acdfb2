"""
Chat Defaults

Central location for retrieval and context defaults. Every value here can be
overridden through ChatSettings (see ragchat/config/settings.py).
"""

# Retrieval
DEFAULT_RELEVANT_FILE_COUNT = 10
DEFAULT_RELEVANT_CODE_COUNT = 5
DEFAULT_RERANK_THRESHOLD = 0.47

# Context loading
DEFAULT_MAX_FILE_SIZE = 5 * 1024  # bytes

# Embedding store table name suffixes ("<workspace>-file-paths")
FILE_PATHS_TABLE_SUFFIX = "file-paths"
DOCUMENTS_TABLE_SUFFIX = "documents"

# Templates that receive retrieval context when run from the editor
RAG_TEMPLATES = ("explain",)

# Boundary
CHAT_TAB = "chat"
EXPLORING_MESSAGE = "Exploring knowledge base"

# Context items that represent directives rather than files
DIRECTIVE_ITEM_NAMES = ("workspace", "problems")

# Environment variable prefix
ENV_PREFIX = "RAGCHAT_"
