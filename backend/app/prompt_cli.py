#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app.knowledge_base import ChatContext, KnowledgeBaseError  # noqa: E402
from backend.app.policies import ChatMode, compose_system_prompt, select_policy  # noqa: E402
from backend.app.settings import settings  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Print the system prompt the chat endpoint sends upstream."
    )
    parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=None,
        help="Knowledge base JSON (defaults to KNOWLEDGE_BASE_PATH or the bundled file)",
    )
    parser.add_argument(
        "-m",
        "--mode",
        choices=[mode.value for mode in ChatMode],
        default=ChatMode.VERSATILE.value,
        help="Policy to prepend",
    )
    parser.add_argument(
        "--reference-only",
        action="store_true",
        help="Print only the rendered REFERENCE DATA block",
    )
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    path = args.path or settings.knowledge_base_path
    try:
        context = ChatContext.from_path(path)
    except KnowledgeBaseError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    policy = select_policy(args.mode)
    system_prompt = compose_system_prompt(policy.mode, context.reference_text)

    if args.json:
        payload = {
            "restaurant": context.knowledge_base.name,
            "mode": policy.mode.value,
            "policy_version": policy.version,
            "reference_data": context.reference_text,
            "system_prompt": system_prompt,
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    elif args.reference_only:
        print(context.reference_text)
    else:
        print(system_prompt)
    return 0


if __name__ == "__main__":
    sys.exit(main())
