"""CLI main entry point."""

import argparse
import asyncio
import json as json_lib
import logging
import sys

from rich.console import Console
from rich.live import Live
from rich.prompt import Prompt

from intent_relay.cli.components import StreamDisplay, render_result, sanitize_input
from intent_relay.config import get_settings
from intent_relay.core.errors import RelayError
from intent_relay.models.frames import FrameType, parse_frame
from intent_relay.services import Services, build_services


console = Console()
logger = logging.getLogger(__name__)


async def run_stream(services: Services, prompt: str, json_output: bool = False) -> int:
    """Classify a prompt and stream the structured object for its intent.

    Args:
        services: Service container.
        prompt: The user's prompt.
        json_output: If True, write the raw frames to stdout.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    try:
        frames = await services.stream_object.stream(
            prompt, deadline=services.request_timeout_seconds
        )
    except RelayError as e:
        if json_output:
            print(json_lib.dumps(e.to_dict()), flush=True)
        else:
            console.print(f"[red]{e.message}[/red]")
        return 1

    failed = False
    if json_output:
        async for line in frames:
            sys.stdout.write(line.decode("utf-8"))
            sys.stdout.flush()
            failed = failed or parse_frame(line).type == FrameType.ERROR
        return 1 if failed else 0

    display = StreamDisplay(console)
    with Live(display.render(), console=console, refresh_per_second=10) as live:
        async for line in frames:
            display.update(parse_frame(line))
            live.update(display.render())

    return 1 if display.status == "error" else 0


async def run_ask(services: Services, prompt: str, json_output: bool = False) -> int:
    """Classify a prompt and print the complete result for its intent."""
    try:
        label, value = await asyncio.wait_for(
            services.smart.generate(prompt), services.request_timeout_seconds
        )
    except RelayError as e:
        if json_output:
            print(json_lib.dumps(e.to_dict()), flush=True)
        else:
            console.print(f"[red]{e.message}[/red]")
        return 1
    except asyncio.TimeoutError:
        console.print("[red]Request timed out[/red]")
        return 1

    if json_output:
        print(json_lib.dumps({"type": label, "data": value}, indent=2), flush=True)
    else:
        console.print(render_result(label, value))
    return 0


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Intent Relay - intent-routed structured generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the HTTP API server")

    for name, help_text in (
        ("stream", "Stream a structured object for a prompt"),
        ("ask", "Generate the complete structured result for a prompt"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "prompt",
            nargs="?",
            help="Prompt (interactive prompt if not provided)",
        )
        sub.add_argument(
            "--json",
            action="store_true",
            help="Output results in JSON format (for programmatic use)",
        )

    args = parser.parse_args()

    if args.command == "serve":
        from intent_relay.api.app import run_server

        run_server()
        return

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    prompt = args.prompt
    if not prompt:
        prompt = Prompt.ask("[bold]What would you like?[/bold]")
    # Sanitize prompt in case it comes from args with ANSI sequences
    prompt = sanitize_input(prompt).strip()
    if not prompt:
        console.print("[red]No prompt provided.[/red]")
        sys.exit(1)

    async def run_with_cleanup() -> int:
        """Run the command with proper cleanup of backend sessions."""
        services = build_services(get_settings())
        try:
            if args.command == "stream":
                return await run_stream(services, prompt, json_output=args.json)
            return await run_ask(services, prompt, json_output=args.json)
        finally:
            await services.close()

    try:
        exit_code = asyncio.run(run_with_cleanup())
        sys.exit(exit_code or 0)
    except KeyboardInterrupt:
        console.print("\n[yellow]Goodbye![/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    main()
