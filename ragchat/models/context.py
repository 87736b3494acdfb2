from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Document(NamedTuple):
    """A stored chunk returned by an embedding store search."""
    content: str
    path: str


class ScoredItem(NamedTuple):
    """An identifier with its reranker score."""
    identifier: str
    score: float


RetrievalResult = List[ScoredItem]


class Diagnostic(BaseModel):
    """An editor diagnostic, serialized one per line for the problems directive."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    severity: str
    message: str
    code: str = ""
    line: str = ""
    line_number: int = Field(..., ge=1)
    character: int = Field(..., ge=1)
    source: Optional[str] = None
    diagnostic_code: Optional[Union[str, int]] = None

    def to_line(self) -> str:
        return self.model_dump_json(by_alias=True)


class LanguageDetails(BaseModel):
    """Active editor language, sent to the boundary with SendLanguage."""
    language_id: Optional[str] = None
    lang_name: str = "unknown"


@dataclass
class AssembledContext:
    """Output of the context assembler.

    ``text`` is the combined context block (problems, relevant file list and
    relevant code) or None when nothing was produced. ``files`` holds the
    retrieved file paths that passed the rerank threshold, for the file
    loader to include.
    """
    text: Optional[str] = None
    files: List[ScoredItem] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.text) or bool(self.files)
