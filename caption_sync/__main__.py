"""
caption-sync command line.

Replays a recorded recognizer event script (JSON lines) through a real
session and prints the committed transcript.

Usage:
    python -m caption_sync replay meeting.jsonl
    python -m caption_sync replay meeting.jsonl --language zh-CN --html
    python -m caption_sync languages
"""

import argparse
import asyncio
import inspect
import logging
import sys

from .client.recognizer import ScriptedRecognizer, load_script
from .config.settings import TranscriptionSettings, list_languages
from .errors import TranscriptionError
from .session import Session
from .transcript import (
    CallbackSink,
    SinkGroup,
    TranscriptArchive,
    TranscriptEntry,
    TranscriptView,
    tokenizer_for_language,
)
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _print_entry(entry: TranscriptEntry) -> None:
    print(f"[{entry.entry_id}] ({entry.speaker_hint.value}) {entry.text}")


def build_sinks(
    args: argparse.Namespace, settings: TranscriptionSettings
) -> tuple[TranscriptView, TranscriptArchive, SinkGroup]:
    """View, archive and optional printer for a replay run."""
    # Interim words join the way the session tokenizes them
    view = TranscriptView(separator=tokenizer_for_language(settings.language_tag).separator)
    archive = TranscriptArchive(source_url=args.source_url or args.script)
    sinks = SinkGroup(view, archive)
    if not args.quiet:
        sinks.add(CallbackSink(on_entry=_print_entry))
    return view, archive, sinks


async def replay(args: argparse.Namespace) -> int:
    """Run one scripted session. Returns the process exit code."""
    events = load_script(args.script)
    settings = TranscriptionSettings.from_env(
        language_tag=args.language,
        history_max=args.history_max,
        duplicate_check_window=args.duplicate_window,
    )

    view, archive, sinks = build_sinks(args, settings)

    recognizer = ScriptedRecognizer()
    session = Session(recognizer, sink=sinks, settings=settings)

    try:
        await session.start()
    except TranscriptionError as e:
        print(f"Failed to start: {e.user_message}", file=sys.stderr)
        return 1

    for event in events:
        if not session.is_recording:
            logger.warning("Session stopped before the script finished")
            break
        recognizer.play(event)
        await session.wait_idle()

    error = session.last_error
    await session.aclose()

    print()
    if args.html:
        print(view.to_html())
    elif args.json:
        print(archive.to_json())
    else:
        print(view.get_text(max_words=args.max_words, include_interim=False))

    logger.info(
        f"Replayed {len(events)} events: {view.entry_count} entries, "
        f"{session.reconciler.suppressed_count} duplicates suppressed, "
        f"{session.restart_count} restarts"
    )

    if error is not None and not error.recoverable:
        print(f"Session ended with error: {error.user_message}", file=sys.stderr)
        return 1
    return 0


def list_languages_command(args: argparse.Namespace) -> int:
    for tag, name in list_languages().items():
        print(f"{tag:<14} {name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="caption_sync", description="Reconcile streaming speech recognition into a transcript"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (DEBUG, INFO, WARNING, ...). Defaults to CAPTION_LOG_LEVEL/LOG_LEVEL or INFO",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay_parser = subparsers.add_parser("replay", help="Replay a recorded recognizer event script")
    replay_parser.add_argument("script", help="JSON-lines event script")
    replay_parser.add_argument("--language", help="Recognizer language tag (e.g. en-US, zh-CN)")
    replay_parser.add_argument("--history-max", type=int, help="Maximum committed entries kept")
    replay_parser.add_argument(
        "--duplicate-window", type=int, help="Recent entries checked for duplicates (0 disables)"
    )
    replay_parser.add_argument("--max-words", type=int, default=300, help="Words of transcript to print")
    replay_parser.add_argument("--source-url", help="Source URL recorded in the archive")
    output = replay_parser.add_mutually_exclusive_group()
    output.add_argument("--html", action="store_true", help="Print the transcript as HTML")
    output.add_argument("--json", action="store_true", help="Print the archive as JSON")
    replay_parser.add_argument(
        "--quiet", action="store_true", help="Do not print entries as they are committed"
    )
    replay_parser.set_defaults(func=replay)

    languages_parser = subparsers.add_parser("languages", help="List known language tags")
    languages_parser.set_defaults(func=list_languages_command)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level)

    try:
        if inspect.iscoroutinefunction(args.func):
            return asyncio.run(args.func(args))
        return args.func(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
