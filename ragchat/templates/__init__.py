"""Prompt templates."""

from .defaults import DEFAULT_TEMPLATES
from .provider import TemplateProvider, kebab_to_sentence

__all__ = ["TemplateProvider", "DEFAULT_TEMPLATES", "kebab_to_sentence"]
