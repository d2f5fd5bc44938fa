# src/aichat/cli.py
import argparse
import logging
import sys
from importlib import metadata
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from aichat.chat import ChatInterface, display_banner
from aichat.config import API_KEY_URL, DEFAULT_MODEL
from aichat.core.builder import ContextBuilder
from aichat.core.formatter import format_file_size, serialize, summarize
from aichat.core.tree import generate_project_tree
from aichat.errors import CLIError
from aichat.settings import AppSettings
from aichat.utils.tokenizer import Tokenizer

logger = logging.getLogger(__name__)

EXAMPLES = """
Examples:
  ai-chat setup                           # First-time setup
  ai-chat config --key YOUR_API_KEY       # Set API key
  ai-chat config --show                   # Show current config
  ai-chat chat                            # Start interactive chat
  ai-chat ask "What is machine learning?" # Send single message
  ai-chat context                         # Preview the project context

Get your Google API key from:
""" + API_KEY_URL


def get_version() -> str:
    try:
        return metadata.version("ai-chat-cli")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def create_arg_parser():
    parser = argparse.ArgumentParser(
        prog="ai-chat",
        description="A command-line AI chatbot powered by Google Gemini",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    parser.add_argument("-C", "--directory", type=str, default=None, help="Project directory (default: current directory)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", metavar="command")

    subparsers.add_parser("chat", help="Start an interactive chat session (default)")

    ask = subparsers.add_parser("ask", help="Send a single message and get a response")
    ask.add_argument("message", type=str, help="The message to send")

    config = subparsers.add_parser("config", help="Manage configuration settings")
    config.add_argument("-k", "--key", type=str, default=None, help="Set Google API key")
    config.add_argument("-m", "--model", type=str, default=None, help=f"Set the AI model to use (default: {DEFAULT_MODEL})")
    config.add_argument("-s", "--show", action="store_true", help="Show current configuration")
    config.add_argument("-c", "--clear", action="store_true", help="Clear all configuration")

    subparsers.add_parser("setup", help="Interactive setup for first-time users")

    context = subparsers.add_parser("context", help="Preview the project context attached to prompts")
    context.add_argument("root_dir", type=str, nargs="?", default=None, help="Project root directory")
    context.add_argument("--raw", action="store_true", help="Print the exact text block sent to the model")

    return parser, config


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def require_api_key(settings: AppSettings, console: Console) -> bool:
    if settings.has_api_key():
        return True
    console.print("✗ No API key configured.", style="red")
    console.print("Please set your Google API key first:", style="yellow")
    console.print("ai-chat config --key YOUR_API_KEY", style="cyan")
    console.print(f"\nGet your API key from: {API_KEY_URL}", style="bright_black")
    return False


def run_config(args, config_parser, settings: AppSettings, console: Console) -> int:
    if not (args.key or args.model or args.show or args.clear):
        config_parser.print_help()
        return 0

    if args.key:
        settings.set_api_key(args.key)
        console.print("✓ API key saved successfully!", style="green")
    if args.model:
        settings.set_model(args.model)
        console.print(f"✓ Model set to: {escape(args.model)}", style="green")
    if args.show:
        console.print("Current Configuration:", style="blue")
        for name, value in settings.describe().items():
            console.print(f"{name}: {escape(value)}", highlight=False)
    if args.clear:
        settings.clear()
        console.print("Configuration cleared", style="yellow")
    return 0


def run_setup(settings: AppSettings, console: Console) -> int:
    display_banner(console, "AI Chat CLI - Setup Wizard")
    console.print("🚀 Welcome to AI Chat CLI!", style="green")
    console.print("Let's get you set up...\n", style="bright_black")
    console.print("Step 1: Get your Google API key", style="yellow")
    console.print(f"Visit: {API_KEY_URL}")
    console.print("Create a new API key for the Gemini API\n")

    api_key = ""
    while not api_key.strip():
        api_key = Prompt.ask("Enter your Google API key", password=True, console=console)
        if not api_key.strip():
            console.print("API key is required", style="red")

    settings.set_api_key(api_key)
    console.print("✓ Setup complete! You can now start chatting:", style="green")
    console.print("ai-chat chat    # Start interactive mode", style="cyan")
    console.print('ai-chat ask "Hello, how are you?"    # Send a single message', style="cyan")
    return 0


def run_context(root_dir: Path, raw: bool, console: Console) -> int:
    if not root_dir.is_dir():
        console.print(f"Error: Invalid directory '{escape(str(root_dir))}'", style="red")
        return 1

    snapshot = ContextBuilder().build(root_dir)
    if raw:
        print(serialize(snapshot), end="")
        return 0

    console.print("--- ai-chat context ---")
    console.print(f"Scanning: {escape(str(root_dir))}", highlight=False)

    if snapshot.is_empty and not snapshot.skipped_paths:
        console.print("No matching files found.")
        return 0

    table = Table(title="Included Files (in prompt order)")
    table.add_column("Rank", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("File Path", overflow="fold")

    total_tokens = 0
    for i, record in enumerate(snapshot.files):
        tokens = Tokenizer.count(record.content)
        total_tokens += tokens
        table.add_row(str(i + 1), format_file_size(record.size_bytes), str(tokens), escape(record.rel_path))
    console.print(table)

    tree_str = generate_project_tree(
        [f.rel_path for f in snapshot.files], snapshot.working_directory_label, snapshot.skipped_paths
    )
    console.print(tree_str, markup=False, highlight=False)

    console.print(escape(summarize(snapshot)), highlight=False)
    console.print(f"Estimated tokens: {total_tokens}")
    for path in snapshot.skipped_paths:
        console.print(f"  skipped: {escape(path)}", style="yellow", highlight=False)
    return 0


def main(argv=None) -> int:
    console = Console()
    try:
        # 1. Setup
        parser, config_parser = create_arg_parser()
        args = parser.parse_args(argv)
        configure_logging(args.verbose)

        working_dir = Path(args.directory).resolve() if args.directory else Path.cwd()
        settings = AppSettings()
        command = args.command or "chat"
        logger.debug("Running %s in %s", command, working_dir)

        # 2. Dispatch
        if command == "config":
            return run_config(args, config_parser, settings, console)

        if command == "setup":
            return run_setup(settings, console)

        if command == "context":
            root_dir = Path(args.root_dir).resolve() if args.root_dir else working_dir
            return run_context(root_dir, args.raw, console)

        if not require_api_key(settings, console):
            return 1

        chat = ChatInterface(settings, working_dir=working_dir, console=console)
        if command == "ask":
            return chat.send_single(args.message)
        return chat.start_interactive()

    except KeyboardInterrupt:
        console.print("\n👋 Goodbye!", style="yellow")
        return 0

    except CLIError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        return e.exit_code

    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        console.print(f"[red]An unexpected error occurred:[/red] {escape(str(e))}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
