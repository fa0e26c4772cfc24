from __future__ import annotations

import argparse
import asyncio
import json
import logging
import mimetypes
import signal
import sys
from dataclasses import replace
from pathlib import Path

from .config import Settings
from .credentials import ConsolePrompter, NoticePrompter, has_valid_credential, request_credential_setup
from .errors import CancellationError, SpriteAnimatorError
from .pipeline import CancellationToken, generate_frames
from .resources import ResourceStore

logger = logging.getLogger(__name__)


def _build_client(args, settings: Settings):
    if args.llm == "mock":
        from .llm.mock_client import MockLLMClient

        return MockLLMClient()
    if args.llm == "openai":
        from .llm.openai_client import OpenAIImageClient

        return OpenAIImageClient(settings=settings)
    raise ValueError(f"Unsupported llm backend: {args.llm}")


def _install_sigint_handler(loop, token: CancellationToken) -> None:
    """First Ctrl-C cancels at the next batch boundary; the next one interrupts."""

    def on_sigint():
        token.cancel()
        loop.remove_signal_handler(signal.SIGINT)
        logger.warning("Cancelling after the current batch; press Ctrl-C again to stop now.")

    try:
        loop.add_signal_handler(signal.SIGINT, on_sigint)
    except (NotImplementedError, RuntimeError, ValueError):
        pass  # not supported on this platform


async def _run_generate(args, settings: Settings, token: CancellationToken):
    _install_sigint_handler(asyncio.get_running_loop(), token)

    image_path = Path(args.image)
    mime_type = mimetypes.guess_type(image_path.name)[0] or "image/png"

    client = _build_client(args, settings)
    store = ResourceStore(args.out, fetch_timeout=settings.fetch_timeout)

    return await generate_frames(
        image_path.read_bytes(),
        mime_type,
        args.prompt,
        args.count,
        token,
        client=client,
        store=store,
    )


def _cmd_generate(args) -> int:
    settings = Settings.from_env()
    if args.model or args.base_url:
        settings = replace(
            settings,
            base_url=args.base_url or settings.base_url,
            model=args.model or settings.model,
        )

    token = CancellationToken()
    results = asyncio.run(_run_generate(args, settings, token))

    frames = [
        {
            "frame_index": r.frame_index,
            "materialized": r.is_materialized,
            "location": r.location,
            "mime_type": r.mime_type,
        }
        for r in results
    ]
    out = Path(args.out)
    (out / "frames.json").write_text(json.dumps(frames, indent=2), encoding="utf-8")

    summary = {
        "out_dir": str(out),
        "count": len(results),
        "llm_backend": args.llm,
        "frames": frames,
    }
    print(json.dumps(summary, indent=2))
    return 0


def _cmd_check_key(args) -> int:
    interactive = sys.stdin.isatty()
    prompter = ConsolePrompter() if interactive else NoticePrompter()

    ok = has_valid_credential(Settings.from_env(), prompter)
    if not ok and args.setup:
        request_credential_setup(prompter)
        ok = has_valid_credential(Settings.from_env(dotenv=False), prompter)

    print("API key: configured" if ok else "API key: missing")
    return 0 if ok else 1


def main(argv=None) -> int:
    p = argparse.ArgumentParser(prog="sprite-animator")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=False)

    gen = sub.add_parser("generate", help="Generate animation frames from a reference image")
    gen.add_argument("--image", required=True, help="Path to the reference image")
    gen.add_argument("--prompt", required=True, help="Action to animate, e.g. 'walking cycle'")
    gen.add_argument("--count", type=int, default=4, help="Number of frames")
    gen.add_argument("--out", required=True, help="Output directory for frames")
    gen.add_argument("--llm", default="openai", choices=["openai", "mock"], help="Model backend")
    gen.add_argument("--model", default=None, help="Override the model name")
    gen.add_argument("--base-url", default=None, help="Override the API base URL")

    check = sub.add_parser("check-key", help="Check whether an API key is available")
    check.add_argument("--setup", action="store_true", help="Ask for a key if none is configured")

    args = p.parse_args(argv)

    if args.cmd == "generate":
        if args.count < 0:
            gen.error(f"--count must be >= 0, got {args.count}")
        if not Path(args.image).is_file():
            gen.error(f"--image not found: {args.image}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if not args.cmd:
        p.print_help()
        return 0

    try:
        if args.cmd == "generate":
            return _cmd_generate(args)
        return _cmd_check_key(args)
    except CancellationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 130
    except SpriteAnimatorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
