import asyncio
import os
from typing import Iterable, List, Optional

from ..config.constants import DEFAULT_MAX_FILE_SIZE, DIRECTIVE_ITEM_NAMES
from ..models.conversation_types import ContextItem
from ..observability.logging import ChatLogger

logger = ChatLogger("file_loader")


def read_file_content(file_path: Optional[str], max_file_size: int = DEFAULT_MAX_FILE_SIZE) -> Optional[str]:
    """
    Read a text file subject to a byte ceiling.

    Args:
        file_path: Absolute path, or None
        max_file_size: Files larger than this many bytes are skipped

    Returns:
        The file contents, "" for an empty file, or None when the path is
        missing, unreadable or over the ceiling
    """
    if not file_path:
        return None
    try:
        size = os.stat(file_path).st_size
        if size > max_file_size:
            logger.debug("Skipping oversized file", path=file_path, size=size, limit=max_file_size)
            return None
        if size == 0:
            return ""
        with open(file_path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read file", path=file_path, error=e)
        return None


class FileLoader:
    """Loads attached files relative to the workspace root."""

    def __init__(self, workspace_root: Optional[str], max_file_size: int = DEFAULT_MAX_FILE_SIZE):
        self.workspace_root = workspace_root
        self.max_file_size = max_file_size

    def resolve(self, item: ContextItem) -> Optional[str]:
        """
        Absolute path of an attachment inside the workspace.

        Absolute paths are taken as relative to the root. Returns None for a
        path that leaves the workspace, through ``..`` or a symlink.
        """
        root = os.path.realpath(self.workspace_root or "")
        relative = item.path.lstrip("/" + os.sep)
        path = os.path.realpath(os.path.join(root, relative))
        if os.path.commonpath([root, path]) != root:
            logger.warning("Skipping file outside the workspace", path=item.path, workspace=root)
            return None
        return path

    async def read(self, item: ContextItem) -> Optional[str]:
        return await asyncio.to_thread(read_file_content, self.resolve(item), self.max_file_size)

    async def load_file_contents(self, items: Optional[Iterable[ContextItem]]) -> str:
        """
        Read every attachment concurrently and format them for the prompt.

        Items named after a directive are not files and are skipped. Each
        readable file contributes ``"File: <name>\\n\\n<content>\\n\\n"`` in
        input order; unreadable or oversized files are skipped.

        Returns:
            The formatted block, trimmed, or "" when nothing was read
        """
        files: List[ContextItem] = [
            item for item in (items or []) if item.name not in DIRECTIVE_ITEM_NAMES
        ]
        if not files or not self.workspace_root:
            return ""

        contents = await asyncio.gather(*(self.read(item) for item in files))

        file_contents = ""
        for item, content in zip(files, contents):
            if content is None:
                continue
            file_contents += f"File: {item.name}\n\n{content}\n\n"
        return file_contents.strip()
