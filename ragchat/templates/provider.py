import os
from typing import Any, Dict, List, Mapping, Optional

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, TemplateError as JinjaTemplateError
from jinja2 import TemplateNotFound

from ..errors import TemplateError
from ..observability.logging import ChatLogger
from .defaults import DEFAULT_TEMPLATES

logger = ChatLogger("templates")

TEMPLATE_EXTENSION = ".jinja"


def kebab_to_sentence(name: str) -> str:
    """``"add-types"`` -> ``"Add types"``."""
    words = name.replace("_", "-").split("-")
    sentence = " ".join(word for word in words if word)
    return sentence[:1].upper() + sentence[1:]


class TemplateProvider:
    """
    Renders named prompt templates with jinja2.

    Files named ``<name>.jinja`` in ``template_dir`` take precedence over the
    built-in defaults.
    """

    def __init__(self, template_dir: Optional[str] = None, defaults: Optional[Mapping[str, str]] = None):
        self.template_dir = template_dir
        builtins = dict(DEFAULT_TEMPLATES if defaults is None else defaults)

        loaders = []
        if template_dir:
            loaders.append(FileSystemLoader(template_dir))
        loaders.append(DictLoader({f"{name}{TEMPLATE_EXTENSION}": source for name, source in builtins.items()}))

        self._env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=False,
            keep_trailing_newline=False,
        )

    def list_templates(self) -> List[str]:
        names = {
            name[:-len(TEMPLATE_EXTENSION)]
            for name in self._env.list_templates()
            if name.endswith(TEMPLATE_EXTENSION)
        }
        return sorted(names)

    def has_template(self, name: str) -> bool:
        return name in self.list_templates()

    def read_template(self, name: str, variables: Optional[Dict[str, Any]] = None) -> Optional[str]:
        """
        Render a template.

        Args:
            name: Template name, e.g. ``"explain"``
            variables: Flat mapping of template variables

        Returns:
            The rendered text, or None if no template has that name

        Raises:
            TemplateError: If the template exists but fails to render
        """
        try:
            template = self._env.get_template(f"{name}{TEMPLATE_EXTENSION}")
        except TemplateNotFound:
            logger.warning("Template not found", template=name, template_dir=self.template_dir)
            return None
        except JinjaTemplateError as e:
            raise TemplateError(name, str(e))

        try:
            return template.render(**(variables or {}))
        except JinjaTemplateError as e:
            raise TemplateError(name, str(e))

    def template_path(self, name: str) -> Optional[str]:
        """Path of a user override for ``name``, if one exists."""
        if not self.template_dir:
            return None
        path = os.path.join(self.template_dir, f"{name}{TEMPLATE_EXTENSION}")
        return path if os.path.isfile(path) else None
