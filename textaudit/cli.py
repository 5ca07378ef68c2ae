from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from textaudit.core.config import get_settings
from textaudit.core.errors import EngineError
from textaudit.core.logging import configure_logging
from textaudit.schemas.humanize import Mode
from textaudit.services.engine import AuditEngine
from textaudit.services.llm_client import ClientProvider


def _add_input_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--text", default=None, help="Text to process.")
    parser.add_argument("--input-file", default=None, help="UTF-8 text file to process.")


def _load_text(text: str | None, input_file: str | None) -> str:
    if text and input_file:
        raise ValueError("Use either --text or --input-file, not both.")
    if not text and not input_file:
        raise ValueError("Provide --text or --input-file.")
    if text:
        return text
    return Path(input_file).read_text(encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="textaudit",
        description="Forensic writing audit and humanized rewriting backed by a chat-completion model.",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_analyze = sub.add_parser("analyze", help="Audit text for plagiarism risk, AI patterns and writing issues.")
    _add_input_args(p_analyze)

    p_humanize = sub.add_parser("humanize", help="Rewrite text with a given strategy.")
    _add_input_args(p_humanize)
    p_humanize.add_argument(
        "--mode",
        choices=[mode.value for mode in Mode],
        default=Mode.NATURAL.value,
        help="Rewrite strategy.",
    )

    p_smart = sub.add_parser("smart", help="Analyze first, then rewrite with a mode picked from the AI score.")
    _add_input_args(p_smart)

    sub.add_parser("ping", help="Check that the completion backend is reachable with the configured key.")

    return parser


async def _run(args: argparse.Namespace, engine: AuditEngine) -> dict:
    if args.command == "ping":
        reply = await engine.backend.complete(
            messages=[{"role": "user", "content": "Say 'Success'"}],
            temperature=0.0,
            json_mode=False,
        )
        return {"status": "ok", "model": engine.settings.groq_model, "reply": reply.strip()}

    text = _load_text(args.text, args.input_file)
    if args.command == "analyze":
        engine.validate_text(text, min_chars=engine.settings.audit_min_text_chars)
        report = await engine.analyze(text)
    elif args.command == "humanize":
        report = await engine.humanize(text, args.mode)
    elif args.command == "smart":
        report = await engine.smart_humanize(text)
    else:
        raise RuntimeError(f"Unknown command: {args.command}")
    return report.model_dump(mode="json", by_alias=True)


async def _run_and_close(args: argparse.Namespace, engine: AuditEngine) -> dict:
    try:
        return await _run(args, engine)
    finally:
        close = getattr(engine.backend, "aclose", None)
        if close is not None:
            await close()


def main(argv: list[str] | None = None, engine: AuditEngine | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level)

    if engine is None:
        settings = get_settings()
        engine = AuditEngine(ClientProvider(settings), settings=settings)

    try:
        result = asyncio.run(_run_and_close(args, engine))
    except (EngineError, ValueError, OSError) as exc:
        print(json.dumps({"error": str(exc), "type": exc.__class__.__name__}, ensure_ascii=True), file=sys.stderr)
        return 1

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
