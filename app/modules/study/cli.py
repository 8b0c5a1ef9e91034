from __future__ import annotations

import argparse
import asyncio
import base64
import json
import mimetypes
from pathlib import Path

from app.core.config import settings
from app.core.exceptions import ServiceError
from app.core.logging import setup_logging
from app.modules.study.extractor import extract_text
from app.modules.study.generator import MaterialGenerator
from app.modules.study.providers import get_provider


def _load_payload(args: argparse.Namespace) -> tuple[str, str]:
    path = Path(args.file)
    if not path.is_file():
        raise SystemExit(f"File not found: {path}")
    mime_type = args.mime_type or mimetypes.guess_type(path.name)[0] or "text/plain"
    return base64.b64encode(path.read_bytes()).decode("ascii"), mime_type


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="study-buddy", description="Study material generator CLI"
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    sub = parser.add_subparsers(dest="cmd", required=True)

    e = sub.add_parser("extract", help="Print the text extracted from a file")
    e.add_argument("file", help="PDF, text or HTML file")
    e.add_argument("--mime-type", help="Override the guessed MIME type")

    g = sub.add_parser(
        "generate", help="Extract a file and generate summary, flashcards and quiz"
    )
    g.add_argument("file", help="PDF, text or HTML file")
    g.add_argument("--mime-type", help="Override the guessed MIME type")
    g.add_argument("--model", help="Model name (defaults to AI_MODEL)")

    args = parser.parse_args(argv)
    setup_logging(args.log_level.upper())
    payload, mime_type = _load_payload(args)

    try:
        text = extract_text(payload, mime_type)
        if args.cmd == "extract":
            print(text)
            return 0

        generator = MaterialGenerator(
            get_provider(settings.ai), args.model or settings.ai.model
        )
        material = asyncio.run(generator.generate(text))
    except ServiceError as exc:
        print(f"error: {exc}")
        return 1

    print(json.dumps(material.model_dump(by_alias=True), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
