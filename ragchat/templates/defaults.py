# Built-in prompt templates, overridable by <name>.jinja files in the template directory

SYSTEM = """\
You are a helpful, expert coding assistant working inside the user's editor.
Answer concisely, use Markdown, and put code in fenced blocks tagged with the language.
When context from the workspace is provided, prefer it over assumptions.
{% if cwd %}
The user's workspace is {{ cwd }}.{% endif %}{% if os_name %}
Operating system: {{ os_name }}.{% endif %}{% if default_shell %}
Default shell: {{ default_shell }}.{% endif %}{% if home_dir %}
Home directory: {{ home_dir }}.{% endif %}
"""

RELEVANT_FILES = """\
These files from the workspace look relevant to the question: {{ code }}
"""

RELEVANT_CODE = """\
These code snippets from the workspace look relevant to the question:

{{ code }}
"""

EXPLAIN = """\
Explain the following {{ language }} code step by step.

```{{ language }}
{{ code }}
```
"""

REFACTOR = """\
Refactor the following {{ language }} code to be clearer and more idiomatic without changing its behaviour.
Reply with the refactored code in a single fenced block.

```{{ language }}
{{ code }}
```
"""

ADD_TYPES = """\
Add type annotations to the following {{ language }} code. Reply with the annotated code only.

```{{ language }}
{{ code }}
```
"""

ADD_TESTS = """\
Write unit tests for the following {{ language }} code using the usual test framework for the language.

```{{ language }}
{{ code }}
```
"""

GENERATE_DOCS = """\
Write documentation comments for the following {{ language }} code in the conventional style for the language.

```{{ language }}
{{ code }}
```
"""

DEFAULT_TEMPLATES = {
    "system": SYSTEM,
    "relevant-files": RELEVANT_FILES,
    "relevant-code": RELEVANT_CODE,
    "explain": EXPLAIN,
    "refactor": REFACTOR,
    "add-types": ADD_TYPES,
    "add-tests": ADD_TESTS,
    "generate-docs": GENERATE_DOCS,
}
