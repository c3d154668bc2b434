"""Command-line access to the agent, the uploader and the health check."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Sequence

from docagent.config import get_settings
from docagent.errors import AgentError
from docagent.models import ChatResponse
from docagent.services.factory import AgentComponents, build_components


def _response_to_dict(response: ChatResponse) -> dict:
    return {
        "message": response.message,
        "tool_used": response.tool_used.value if response.tool_used else None,
        "sources": [asdict(source) for source in response.sources] if response.sources else None,
        "metadata": asdict(response.metadata),
    }


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="docagent", description="Ask the document and weather agent.")
    commands = parser.add_subparsers(dest="command", required=True)

    ask = commands.add_parser("ask", help="Route one message through the agent")
    ask.add_argument("message", nargs="+", help="Message text")

    upload = commands.add_parser("upload", help="Upsert a UTF-8 text file into the vector index")
    upload.add_argument("path", type=Path, help="File to upload")
    upload.add_argument("--name", default=None, help="Title to store instead of the file name")
    upload.add_argument("--mime-type", default=None, help="Content type to record")

    commands.add_parser("health", help="Check the language-model credential and endpoint")
    return parser.parse_args(argv)


def run(args: argparse.Namespace, components: AgentComponents) -> dict:
    if args.command == "ask":
        return _response_to_dict(components.router.route(" ".join(args.message)))
    if args.command == "upload":
        if args.name or args.mime_type:
            content = args.path.read_text(encoding="utf-8")
            result = components.uploader.upload(args.name or args.path.name, content, args.mime_type or "text/plain")
        else:
            result = components.uploader.upload_file(args.path)
        return asdict(result)
    return {"healthy": components.health.check(), "configured": components.credentials.is_configured}


def main(argv: Sequence[str] | None = None, *, components: AgentComponents | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    components = components or build_components(get_settings())
    try:
        payload = run(args, components)
    except AgentError as exc:
        print(json.dumps(exc.to_dict(), indent=2), file=sys.stderr)
        return 1
    print(json.dumps(payload, indent=2))
    if args.command == "health" and not payload["healthy"]:
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
