"""CLI entry point for ragchat."""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from .config.providers import get_provider_entry
from .config.settings import ChatSettings
from .core.routing import EnvProviderManager, StaticProviderManager, check_lightweight_availability, get_capability_table
from .models.conversation_types import ChatMessage, ContextItem, Role
from .models.events import EventType, ServerMessage
from .models.generation import ProviderConfig, ProviderKind
from .orchestration.boundary import CallbackBoundary
from .orchestration.chat import ChatOrchestrator
from .orchestration.editor import StaticEditorContext, language_from_path


class ConsolePrinter:
    """Prints boundary events to a terminal."""

    def __init__(self, out=None, err=None):
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self._printed = 0
        self._stopped = False

    async def __call__(self, message: ServerMessage):
        if message.type == EventType.ON_COMPLETION:
            text = message.data.text()
            # OnCompletion carries the whole text so far; print the new tail
            self.out.write(text[self._printed:])
            self.out.flush()
            self._printed = len(text)
        elif message.type == EventType.ADD_MESSAGE and message.data.role == Role.ASSISTANT:
            if self._stopped:
                # Failures arrive after StopGeneration
                self.err.write(f"Error: {message.data.text()}\n")
            elif self._printed:
                self.out.write("\n")
            else:
                self.out.write(message.data.text() + "\n")
        elif message.type == EventType.UPDATE_LOADING_MESSAGE and message.data:
            self.err.write(f"{message.data}...\n")
        elif message.type == EventType.STOP_GENERATION:
            self._stopped = True


def build_provider_manager(args):
    if args.provider and args.model:
        config = ProviderConfig(
            provider_kind=ProviderKind(args.provider),
            model_name=args.model,
            base_url=args.base_url,
        )
        return StaticProviderManager([config])
    return EnvProviderManager()


def build_orchestrator(args, printer: ConsolePrinter, editor: StaticEditorContext) -> ChatOrchestrator:
    settings = ChatSettings.from_env()
    if args.no_stream:
        settings = settings.model_copy(update={"streaming": False})
    return ChatOrchestrator(
        build_provider_manager(args),
        boundary=CallbackBoundary(printer),
        editor=editor,
        settings=settings,
    )


async def run_chat(args) -> int:
    """Send one chat turn and stream the reply to stdout."""
    printer = ConsolePrinter()
    workspace = os.path.abspath(args.workspace) if args.workspace else os.getcwd()
    editor = StaticEditorContext(workspace_root=workspace)
    orchestrator = build_orchestrator(args, printer, editor)

    if orchestrator.provider_manager.get_active_provider() is None:
        print("Error: no provider configured. Set RAGCHAT_PROVIDER and RAGCHAT_MODEL, "
              "or pass --provider and --model.", file=sys.stderr)
        return 1

    attachments: List[ContextItem] = [
        ContextItem(name=os.path.basename(path), path=os.path.relpath(os.path.abspath(path), workspace))
        for path in args.attach or []
    ]
    await orchestrator.completion([ChatMessage(role=Role.USER, content=args.prompt)], attachments)
    return 0


async def run_template(args) -> int:
    """Run a named template over a file or stdin."""
    if args.file:
        with open(args.file, "r", encoding="utf-8") as f:
            code = f.read()
    else:
        code = sys.stdin.read()

    printer = ConsolePrinter()
    editor = StaticEditorContext(
        workspace_root=os.getcwd(),
        language=language_from_path(args.file),
        selection=code,
    )
    orchestrator = build_orchestrator(args, printer, editor)

    if not orchestrator.templates.has_template(args.template):
        print(f"Error: unknown template '{args.template}'. "
              f"Available: {', '.join(orchestrator.templates.list_templates())}", file=sys.stderr)
        return 1

    await orchestrator.template_completion(args.template)
    return 0


def list_providers() -> int:
    """Print the provider capability table."""
    print("Providers:")
    print("-" * 50)
    for kind_value, capabilities in get_capability_table().items():
        kind = ProviderKind(kind_value)
        entry = get_provider_entry(kind)
        streaming = capabilities.supports_streaming
        if isinstance(streaming, list):
            streaming = ", ".join(streaming)
        print(f"{entry.display_name} ({kind_value})")
        print(f"   Base URL: {entry.default_base_url or '-'}")
        print(f"   Streaming: {streaming}")
        print(f"   System messages: {capabilities.supports_system_message}")
        print()

    active = EnvProviderManager().get_active_provider()
    if active is not None:
        status = "✓" if check_lightweight_availability(active) else "✗"
        print(f"Active: {status} {active.model_name} ({active.provider_kind.value})")
    return 0


def add_provider_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('--provider', choices=[k.value for k in ProviderKind],
                        help='Provider kind (defaults to RAGCHAT_PROVIDER)')
    parser.add_argument('--model', help='Model name (defaults to RAGCHAT_MODEL)')
    parser.add_argument('--base-url', help='API base URL override')
    parser.add_argument('--no-stream', action='store_true', help='Wait for the whole reply')


def main(argv: Optional[List[str]] = None):
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="ragchat CLI")
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Chat command
    chat_parser = subparsers.add_parser('chat', help='Ask a question; @workspace and @problems are supported')
    chat_parser.add_argument('prompt', help='Message text')
    chat_parser.add_argument('--workspace', help='Workspace root (defaults to the current directory)')
    chat_parser.add_argument('--attach', action='append', metavar='FILE', help='Attach a file (repeatable)')
    add_provider_arguments(chat_parser)

    # Template command
    template_parser = subparsers.add_parser('template', help='Run a prompt template over code')
    template_parser.add_argument('template', help='Template name, e.g. "explain"')
    template_parser.add_argument('file', nargs='?', help='Source file (reads stdin when omitted)')
    add_provider_arguments(template_parser)

    # Providers command
    subparsers.add_parser('providers', help='List providers and their capabilities')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s"
    )

    if args.command == 'chat':
        code = asyncio.run(run_chat(args))
    elif args.command == 'template':
        code = asyncio.run(run_template(args))
    elif args.command == 'providers':
        code = list_providers()
    else:
        parser.print_help()
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
