"""Context layer: directives, workspace context assembly and file loading."""

from .assembler import ContextAssembler, format_problems
from .directives import Directive, detect_directives, strip_directives
from .file_loader import FileLoader, read_file_content

__all__ = [
    "ContextAssembler",
    "Directive",
    "FileLoader",
    "detect_directives",
    "format_problems",
    "read_file_content",
    "strip_directives",
]
