import argparse
import logging
import signal

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from text_to_wordbook.app.wordbook_pipeline import Query, translate, validate_options
from text_to_wordbook.config import load_options
from text_to_wordbook.domain.results import message_from_payload

CONSOLE_LOG_FORMAT = "%(message)s"

console = Console()


def setup_logging(verbose: bool = False) -> None:
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        enable_link_path=False,
    )
    handler.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT))
    logging.root.setLevel(logging.DEBUG if verbose else logging.INFO)
    logging.root.addHandler(handler)
    # urllib3 connection chatter is noise even in verbose mode.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _print_payload(payload) -> int:
    message = message_from_payload(payload)
    if "error" in payload:
        console.print(Panel(message or "unknown error", title="Error", border_style="red"))
        return 1
    console.print(Panel(message, title="Word book", border_style="green"))
    return 0


def run_add(args) -> int:
    options = load_options(args.settings)
    query = Query(text=args.text, detect_from=args.detect_from)

    def handle_interrupt(signum, frame):
        logging.warning("Interrupted, cancelling in-flight requests")
        query.cancel_token.cancel()

    previous = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        payload = translate(query, options)
    finally:
        signal.signal(signal.SIGINT, previous)
    return _print_payload(payload)


def run_validate(args) -> int:
    options = load_options(args.settings)
    outcome = validate_options(options)
    if outcome.get("result"):
        console.print("[bold green]Credentials look valid.[/bold green]")
        return 0
    console.print(Panel(outcome["error"]["message"], title="Validation", border_style="yellow"))
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="text-to-wordbook",
        description="Extract vocabulary with an LLM and add it to a Youdao, Eudic or Shanbay word book.",
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="Path to settings.json (defaults to ./settings.json plus WORDBOOK_* variables).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add_parser = subparsers.add_parser("add", help="Extract words from TEXT and add them.")
    add_parser.add_argument("text", help="A word, phrase or sentence.")
    add_parser.add_argument("--detect-from", default="en", help="Source language tag.")
    add_parser.set_defaults(handler=run_add)

    validate_parser = subparsers.add_parser("validate", help="Check the configured credential.")
    validate_parser.set_defaults(handler=run_validate)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        return args.handler(args)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
