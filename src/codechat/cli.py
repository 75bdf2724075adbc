# Purpose: Provide the command-line interface for the coding assistant chat client.
# Why: A dedicated CLI module keeps entrypoint logic organized and testable.
"""CLI entrypoint implementing an interactive chat loop."""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence

from prompt_toolkit import PromptSession  # type: ignore
from prompt_toolkit.history import InMemoryHistory  # type: ignore

try:  # noqa: SIM105
    import termios  # type: ignore
except ImportError:  # pragma: no cover
    termios = None  # type: ignore

from . import __version__
from .api_client import CompletionClient
from .config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_ENV_FILE,
    TOKEN_VARIABLE,
    build_settings,
    load_config,
    merged_environment,
    require_token,
)
from .errors import CompletionError, ConfigError, ErrorKind, MissingCredentialError
from .history import Transcript

logger = logging.getLogger(__name__)

PROMPT = "You: "
EXIT_COMMAND = "exit"
SEPARATOR = "-" * 41
EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_INTERRUPTED = 130

ERROR_NOTICES = {
    ErrorKind.AUTHENTICATION: (
        f"Authentication Error: Your {TOKEN_VARIABLE} is invalid or missing.\n"
        "Please check your .env file and try again."
    ),
    ErrorKind.RATE_LIMITED: "Rate Limit Reached: Too many requests. Please wait a moment.",
    ErrorKind.UPSTREAM_UNAVAILABLE: "Server Error: The AI service is temporarily unavailable.",
}

ReadLine = Callable[[], Optional[str]]


class InputManager:
    """Handle interactive user input via prompt_toolkit."""

    def __init__(self, session: Optional["PromptSession"] = None) -> None:
        self._session = session or PromptSession(history=InMemoryHistory())

    def read(self) -> Optional[str]:
        """Return one line of input, or None once input is exhausted."""
        try:
            return self._session.prompt(PROMPT)
        except EOFError:
            return None


class ChatSession:
    """Drive prompt, dispatch and report for each turn until the operator exits."""

    def __init__(self, client: CompletionClient, transcript: Transcript, read_line: ReadLine) -> None:
        self._client = client
        self._transcript = transcript
        self._read_line = read_line

    def run(self) -> int:
        """Loop over input lines; returns the process exit code."""
        while True:
            line = self._read_line()
            if line is None or _is_exit(line):
                _print_farewell()
                return EXIT_OK
            self.handle(line)

    def handle(self, line: str) -> None:
        """Process one non-exit line of operator input."""
        text = line.strip()
        if not text:
            print(f'(Please type a question or type "{EXIT_COMMAND}" to quit.)\n')
            return
        self._transcript.append_user(text)
        print("\nBot: Thinking...", flush=True)
        try:
            with _suspend_input():
                reply = self._client.send(self._transcript)
        except CompletionError as exc:
            logger.debug("Turn failed (%s, status=%s)", exc.kind.value, exc.status_code)
            print(f"\n{_render_error(exc)}\n", file=sys.stderr)
            return
        self._transcript.append_assistant(reply)
        print(f"\nBot: {reply}\n")
        print(f"{SEPARATOR}\n")


def launch(argv: Optional[Sequence[str]] = None) -> None:
    """Entrypoint invoked by the console script."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        code = _run_chat(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        code = EXIT_INTERRUPTED
    sys.exit(code)


def _build_parser() -> argparse.ArgumentParser:
    """Construct and return the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="codechat",
        description="Multi-turn coding assistant chat through GitHub Models.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=DEFAULT_ENV_FILE,
        help=f"Env file holding {TOKEN_VARIABLE} (default: .env in the working directory).",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Optional YAML settings file (default: {DEFAULT_CONFIG_PATH}).",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Override model identifier from configuration.",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="Override the chat completions base URL.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log request details to stderr.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _run_chat(args: argparse.Namespace) -> int:
    """Resolve settings, check the credential and execute the interactive chat loop."""
    environment = merged_environment(args.env_file)
    try:
        config = load_config(args.config_file)
        settings = build_settings(environment, config, model=args.model, base_url=args.base_url)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    try:
        token = require_token(settings)
    except MissingCredentialError as exc:
        for line in _render_missing_credential(exc):
            print(line, file=sys.stderr)
        return EXIT_CONFIG

    client = CompletionClient(settings, api_key=token)
    session = ChatSession(client, Transcript(settings.system_prompt), InputManager().read)
    _print_intro(client.model)
    return session.run()


def _is_exit(line: str) -> bool:
    return line.strip().lower() == EXIT_COMMAND


def _render_error(exc: CompletionError) -> str:
    """Return the operator notice for a failed turn."""
    notice = ERROR_NOTICES.get(exc.kind)
    if notice is None:
        return f"Unexpected Error: {exc.message}"
    return notice


def _render_missing_credential(exc: MissingCredentialError) -> List[str]:
    return [
        f"Error: {exc}",
        "Please make sure your .env file contains:",
        f"{exc.variable}=your_token_here",
    ]


def _print_intro(model: str) -> None:
    """Display startup guidance for the operator."""
    print("=" * 41)
    print(f"   Coding Assistant - Powered by {model}")
    print("=" * 41)
    print("Welcome! I'm your personal coding assistant.")
    print("Ask me anything about programming, debugging,")
    print("code reviews, or software development concepts.")
    print(f'Type "{EXIT_COMMAND}" at any time to quit.\n')


def _print_farewell() -> None:
    print("\nGoodbye! Happy coding!")


@contextmanager
def _suspend_input() -> Iterator[None]:
    """Disable input echo while awaiting a response."""
    if termios is None or not sys.stdin.isatty():
        yield
        return
    fd = sys.stdin.fileno()
    old_attrs = termios.tcgetattr(fd)
    new_attrs = termios.tcgetattr(fd)
    new_attrs[3] &= ~(termios.ECHO | termios.ICANON)
    termios.tcsetattr(fd, termios.TCSANOW, new_attrs)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSANOW, old_attrs)
        termios.tcflush(fd, termios.TCIFLUSH)
