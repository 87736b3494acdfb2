import os
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..models.context import Diagnostic, LanguageDetails
from ..models.conversation_types import ContextItem


class EditorContext(ABC):
    """What the orchestrator reads from the user's editor."""

    @property
    @abstractmethod
    def workspace_root(self) -> Optional[str]:
        pass

    @property
    @abstractmethod
    def workspace_name(self) -> Optional[str]:
        pass

    @abstractmethod
    def language(self) -> LanguageDetails:
        pass

    @abstractmethod
    def selection(self) -> str:
        """Currently selected text, or "" when nothing is selected."""
        pass

    @abstractmethod
    def diagnostics(self) -> List[Diagnostic]:
        pass

    @abstractmethod
    def context_items(self) -> List[ContextItem]:
        """Files the user pinned to the chat for this workspace."""
        pass


class StaticEditorContext(EditorContext):
    """Plain-data editor state, for servers, the CLI and tests."""

    def __init__(
        self,
        workspace_root: Optional[str] = None,
        workspace_name: Optional[str] = None,
        language: Optional[LanguageDetails] = None,
        selection: str = "",
        diagnostics: Optional[List[Diagnostic]] = None,
        context_items: Optional[List[ContextItem]] = None
    ):
        self._workspace_root = workspace_root
        if workspace_name is None and workspace_root:
            workspace_name = os.path.basename(os.path.normpath(workspace_root))
        self._workspace_name = workspace_name
        self._language = language or LanguageDetails()
        self._selection = selection
        self._diagnostics = list(diagnostics or [])
        self._context_items = list(context_items or [])

    @property
    def workspace_root(self) -> Optional[str]:
        return self._workspace_root

    @property
    def workspace_name(self) -> Optional[str]:
        return self._workspace_name

    def language(self) -> LanguageDetails:
        return self._language

    def selection(self) -> str:
        return self._selection

    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def context_items(self) -> List[ContextItem]:
        return list(self._context_items)

    def set_selection(self, selection: str, language: Optional[LanguageDetails] = None):
        self._selection = selection
        if language is not None:
            self._language = language

    def set_diagnostics(self, diagnostics: List[Diagnostic]):
        self._diagnostics = list(diagnostics)

    def pin(self, item: ContextItem):
        self._context_items.append(item)


EXTENSION_LANGUAGES: Dict[str, LanguageDetails] = {
    ".py": LanguageDetails(language_id="python", lang_name="Python"),
    ".js": LanguageDetails(language_id="javascript", lang_name="JavaScript"),
    ".jsx": LanguageDetails(language_id="javascriptreact", lang_name="JavaScript React"),
    ".ts": LanguageDetails(language_id="typescript", lang_name="TypeScript"),
    ".tsx": LanguageDetails(language_id="typescriptreact", lang_name="TypeScript React"),
    ".go": LanguageDetails(language_id="go", lang_name="Go"),
    ".rs": LanguageDetails(language_id="rust", lang_name="Rust"),
    ".java": LanguageDetails(language_id="java", lang_name="Java"),
    ".c": LanguageDetails(language_id="c", lang_name="C"),
    ".cpp": LanguageDetails(language_id="cpp", lang_name="C++"),
    ".cs": LanguageDetails(language_id="csharp", lang_name="C#"),
    ".rb": LanguageDetails(language_id="ruby", lang_name="Ruby"),
    ".php": LanguageDetails(language_id="php", lang_name="PHP"),
    ".sh": LanguageDetails(language_id="shellscript", lang_name="Shell"),
    ".md": LanguageDetails(language_id="markdown", lang_name="Markdown"),
}


def language_from_path(path: Optional[str]) -> LanguageDetails:
    """Guess the editor language from a file extension."""
    if not path:
        return LanguageDetails()
    _, ext = os.path.splitext(path)
    return EXTENSION_LANGUAGES.get(ext.lower(), LanguageDetails())
