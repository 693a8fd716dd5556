"""Command-line interface for veoqueue.

Queues prompts for video or image generation, plans prompts from a script,
manages the API key and output settings, activates the license, and shows
saved history.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from rich.console import Console

from veoqueue.core.config import AppConfig, load_app_config
from veoqueue.core.config.models import IMAGE_MODELS, VIDEO_MODELS
from veoqueue.core.generation import (
    AspectRatio,
    GenerationError,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    InlineImage,
    build_image_orchestrator,
    build_prompt_planner,
    build_provider_client,
    build_video_orchestrator,
)
from veoqueue.core.io import RealFileSystem
from veoqueue.core.licensing import LicenseClient, LicenseStatus, build_license_api
from veoqueue.core.store import (
    TAB_IMAGE_TO_VIDEO,
    TAB_IMAGE_VARIANTS,
    TAB_TEXT_TO_VIDEO,
    TABS,
    AppSettings,
    PromptDraft,
    SettingsStore,
    TabHistory,
)
from veoqueue.core.utils.logging import configure_logging_from_config

console = Console()
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130

_STATUS_STYLE = {
    GenerationStatus.QUEUED: "dim",
    GenerationStatus.LOADING: "yellow",
    GenerationStatus.SUCCESS: "green",
    GenerationStatus.ERROR: "red",
}


def read_prompts(prompts: Sequence[str], prompts_file: str | None = None) -> list[str]:
    """Collect prompts from arguments and an optional file (one per non-blank line)."""
    collected = [p.strip() for p in prompts if p.strip()]
    if prompts_file:
        text = Path(prompts_file).read_text(encoding="utf-8")
        collected.extend(line.strip() for line in text.splitlines() if line.strip())
    return collected


def exit_code_for(results: Sequence[GenerationResult]) -> int:
    if any(r.cancelled for r in results):
        return EXIT_CANCELLED
    if all(r.status == GenerationStatus.SUCCESS for r in results):
        return EXIT_OK
    return EXIT_FAILED


async def resolve_model(
    kind: str, requested: str | None, config: AppConfig, settings: AppSettings
) -> str:
    """Pick the model: command line, then saved setting, then app config.

    Image models are not saved in settings.
    """
    if requested:
        return requested
    if kind == "video":
        return await settings.get_model(config.provider.video_model)
    return config.provider.image_model


def _open_settings(config: AppConfig) -> AppSettings:
    return AppSettings(SettingsStore(RealFileSystem(), config.storage.settings_path))


async def _check_license(config: AppConfig, settings: AppSettings) -> bool:
    async with build_license_api(config.license) as api:
        return await LicenseClient(api, settings).check_and_refresh()


async def _ready_api_key(config: AppConfig, settings: AppSettings) -> str | None:
    """API key for provider calls, or None (after printing why) when not ready."""
    api_key = config.provider.api_key or await settings.get_api_key()
    if not api_key:
        console.print("[red]ERROR: No API key configured[/red]")
        console.print("\nSet one with:")
        console.print("  export GEMINI_API_KEY='your-key-here'")
        console.print("  veoqueue config set-key <key>")
        return None

    if not await _check_license(config, settings):
        console.print("[red]ERROR: No active license[/red]")
        console.print("  veoqueue license activate <key>")
        return None
    return api_key


def load_style(path: str | None) -> dict[str, Any] | None:
    """Read a visual style JSON object; None when no path is given.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not a JSON object
    """
    if not path:
        return None
    style = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(style, dict):
        raise ValueError("Style file must contain a JSON object")
    return style


def _print_result(index: int, result: GenerationResult) -> None:
    style = _STATUS_STYLE.get(result.status, "white")
    line = f"[{style}]#{index + 1} {result.status.value}[/{style}] {result.prompt[:60]}"
    if result.status == GenerationStatus.ERROR and result.error:
        line += f" [red]({result.error})[/red]"
    console.print(line)
    for path in result.local_paths:
        console.print(f"   [green]📁[/green] {path}")


def _install_interrupt(token: asyncio.Event) -> bool:
    """Route Ctrl+C to the batch cancel token. Returns whether it was installed."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.set)
    except (NotImplementedError, RuntimeError):
        # Not supported on this platform (e.g. Windows event loops)
        return False
    return True


def _build_requests(
    args: argparse.Namespace, prompts: list[str], model: str, credential: str
) -> list[GenerationRequest]:
    image = InlineImage.from_path(args.image) if getattr(args, "image", None) else None
    last_frame = (
        InlineImage.from_path(args.last_frame) if getattr(args, "last_frame", None) else None
    )
    references = [InlineImage.from_path(p) for p in args.reference or []]
    aspect_ratio = AspectRatio(args.aspect_ratio) if getattr(args, "aspect_ratio", None) else None
    return [
        GenerationRequest(
            prompt=prompt,
            model=model,
            credential=credential,
            aspect_ratio=aspect_ratio,
            output_dir=Path(args.output_dir) if args.output_dir else None,
            image=image,
            last_frame=last_frame,
            reference_images=references,
        )
        for prompt in prompts
    ]


async def run_generation_async(args: argparse.Namespace, config: AppConfig) -> int:
    """Run a video or image batch.

    Returns:
        Exit code (0 all succeeded, 1 any failed, 130 cancelled)
    """
    kind = args.cmd
    settings = _open_settings(config)

    api_key = await _ready_api_key(config, settings)
    if api_key is None:
        return EXIT_FAILED

    try:
        prompts = read_prompts(args.prompts, args.prompts_file)
    except OSError as e:
        console.print(f"[red]ERROR: Could not read prompts file: {e}[/red]")
        return EXIT_FAILED
    if not prompts:
        console.print("[red]ERROR: No prompts given[/red]")
        return EXIT_FAILED

    model = await resolve_model(kind, args.model, config, settings)
    if kind == "video":
        tab = TAB_IMAGE_TO_VIDEO if args.image else TAB_TEXT_TO_VIDEO
    else:
        tab = TAB_IMAGE_VARIANTS

    try:
        requests = _build_requests(args, prompts, model, api_key)
    except (OSError, ValueError) as e:
        console.print(f"[red]ERROR: Invalid request: {e}[/red]")
        return EXIT_FAILED

    output_dir = args.output_dir or await settings.get_save_path()
    fs = RealFileSystem()
    cancel_token = asyncio.Event()
    interrupt_installed = _install_interrupt(cancel_token)

    console.print(f"[bold]🚀 Generating {len(requests)} {kind} item(s) with {model}[/bold]")
    if interrupt_installed:
        console.print("[dim]Press Ctrl+C to cancel[/dim]")

    try:
        async with build_provider_client(config) as api:
            build = build_video_orchestrator if kind == "video" else build_image_orchestrator
            orchestrator = build(
                config, api, fs, output_dir=output_dir, concurrency=args.concurrency
            )
            results = await orchestrator.collect(
                requests, cancel_token=cancel_token, on_result=_print_result
            )
    finally:
        if interrupt_installed:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)

    history = await settings.get_tab_history(tab) or TabHistory()
    for prompt, result in zip(prompts, results):
        history = history.add(prompt, [result])
    await settings.save_tab_history(tab, history)

    succeeded = sum(1 for r in results if r.status == GenerationStatus.SUCCESS)
    console.print("\n" + "=" * 50)
    console.print(f"[bold]Done:[/bold] {succeeded}/{len(results)} succeeded")
    empty = [i for i, r in enumerate(results) if r.is_empty_success]
    if empty:
        console.print(f"[yellow]⚠ No media saved for item(s): {[i + 1 for i in empty]}[/yellow]")
    return exit_code_for(results)


async def run_prompts_async(args: argparse.Namespace, config: AppConfig) -> int:
    """Turn a script into one prompt per clip and save it as the prompt draft.

    Returns:
        Exit code (0 prompts produced, 1 failed, 130 cancelled)
    """
    settings = _open_settings(config)

    api_key = await _ready_api_key(config, settings)
    if api_key is None:
        return EXIT_FAILED

    try:
        script = Path(args.script).read_text(encoding="utf-8")
        style = load_style(args.style)
    except (OSError, ValueError) as e:
        console.print(f"[red]ERROR: Could not read input: {e}[/red]")
        return EXIT_FAILED

    cancel_token = asyncio.Event()
    interrupt_installed = _install_interrupt(cancel_token)
    try:
        async with build_provider_client(config) as api:
            planner = build_prompt_planner(config, api, args.model)
            console.print(f"[bold]✍ Planning a {args.duration}s video with {planner.model}[/bold]")
            prompts = await planner.plan(
                script, args.duration, api_key, style=style, cancel_token=cancel_token
            )
    except ValueError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return EXIT_FAILED
    except GenerationError as e:
        console.print(f"[red]ERROR: {e.message}[/red]")
        return EXIT_CANCELLED if cancel_token.is_set() else EXIT_FAILED
    finally:
        if interrupt_installed:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)

    for i, prompt in enumerate(prompts, start=1):
        console.print(f"{i}. {prompt}")

    await settings.save_prompt_draft(PromptDraft(script=script, prompts=prompts, style=style))

    if args.output:
        Path(args.output).write_text("\n".join(prompts) + "\n", encoding="utf-8")
        console.print(f"\n[green]✅ {len(prompts)} prompt(s) written to {args.output}[/green]")
        console.print(f"   veoqueue video --prompts-file {args.output}")
    return EXIT_OK


async def run_license_async(args: argparse.Namespace, config: AppConfig) -> int:
    settings = _open_settings(config)
    async with build_license_api(config.license) as api:
        client = LicenseClient(api, settings)
        if args.license_cmd == "activate":
            data = await client.activate(args.key)
            if data.status == LicenseStatus.ACTIVE:
                console.print("[green]✅ License activated[/green]")
                return EXIT_OK
            console.print(f"[red]License {data.status.value}[/red]")
            return EXIT_FAILED

        licensed = await client.check_and_refresh()
        cached = await client.cached_license()

    if licensed:
        console.print("[green]✅ Licensed[/green]")
    else:
        console.print("[red]❌ Not licensed[/red]")
    if cached is not None:
        console.print(f"   Key: {cached.key[:4]}…  Status: {cached.status.value}")
    return EXIT_OK if licensed else EXIT_FAILED


async def run_config_async(args: argparse.Namespace, config: AppConfig) -> int:
    settings = _open_settings(config)

    if args.config_cmd == "set-key":
        await settings.set_api_key(args.key)
        console.print("[green]✅ API key saved[/green]")
    elif args.config_cmd == "set-model":
        if args.model not in VIDEO_MODELS:
            console.print(f"[yellow]⚠ Unknown video model, known: {', '.join(VIDEO_MODELS)}[/yellow]")
        await settings.set_model(args.model)
        console.print(f"[green]✅ Video model set to {args.model}[/green]")
    elif args.config_cmd == "set-output":
        await settings.set_save_path(args.directory)
        console.print(f"[green]✅ Output directory set to {await settings.get_save_path()}[/green]")
    else:
        api_key = config.provider.api_key or await settings.get_api_key()
        console.print("[bold]Settings[/bold]")
        console.print(f"   Settings file: {config.storage.settings_path}")
        console.print(f"   API key: {'set' if api_key else '[red]not set[/red]'}")
        console.print(f"   Video model: {await settings.get_model(config.provider.video_model)}")
        console.print(f"   Image model: {config.provider.image_model}")
        save_path = await settings.get_save_path()
        console.print(f"   Output directory: {save_path or config.storage.default_output_dir}")
        console.print(f"   Language: {await settings.get_language()}")
        console.print(f"   License server: {config.license.base_url}")
    return EXIT_OK


async def run_history_async(args: argparse.Namespace, config: AppConfig) -> int:
    settings = _open_settings(config)
    tabs = [args.tab] if args.tab else list(TABS)
    for tab in tabs:
        history = await settings.get_tab_history(tab)
        console.print(f"\n[bold]{tab}[/bold]")
        if history is None or not history.prompts:
            console.print("   [dim](empty)[/dim]")
            continue
        for entry in history.prompts:
            console.print(f"   {entry.text}")
            for saved in entry.results:
                if saved.status == "success":
                    for path in saved.video_file_paths:
                        console.print(f"      [green]✅[/green] {path}")
                else:
                    console.print(f"      [red]❌ {saved.error}[/red]")
    return EXIT_OK


_HANDLERS = {
    "video": run_generation_async,
    "image": run_generation_async,
    "prompts": run_prompts_async,
    "license": run_license_async,
    "config": run_config_async,
    "history": run_history_async,
}


def _add_generation_args(p: argparse.ArgumentParser, models: Sequence[str]) -> None:
    p.add_argument("prompts", nargs="*", help="Prompt text (one generation per prompt)")
    p.add_argument("--prompts-file", help="File with one prompt per line")
    p.add_argument("--reference", action="append", help="Reference image (repeatable, max 3)")
    p.add_argument("--model", help=f"Model id (known: {', '.join(models)})")
    p.add_argument("--output-dir", help="Directory for generated files")
    p.add_argument("--concurrency", type=int, help="Max items in flight")


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="veoqueue",
        description="veoqueue - batch video and image generation",
    )
    p.add_argument("--app-config", help="Path to app config (YAML or JSON)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    video = sub.add_parser("video", help="Generate videos from prompts")
    _add_generation_args(video, VIDEO_MODELS)
    video.add_argument("--image", help="First-frame image (image-to-video)")
    video.add_argument("--last-frame", help="Last-frame image")
    video.add_argument(
        "--aspect-ratio", choices=[a.value for a in AspectRatio], help="Output aspect ratio"
    )

    image = sub.add_parser("image", help="Generate image variants from prompts")
    _add_generation_args(image, IMAGE_MODELS)

    prompts = sub.add_parser("prompts", help="Turn a script or scene list into video prompts")
    prompts.add_argument("script", help="Script file (story text or one scene per line)")
    prompts.add_argument(
        "--duration", type=int, default=60, help="Target video length in seconds (default 60)"
    )
    prompts.add_argument("--style", help="Visual style JSON file")
    prompts.add_argument("--model", help="Text model id")
    prompts.add_argument("--output", help="Write prompts here, one per line")

    lic = sub.add_parser(
        "license",
        help="License activation and status",
        description=(
            "Activate or check the license. Commands check it once per run; "
            "long-running hosts can keep it fresh with LicenseMonitor."
        ),
    )
    lic_sub = lic.add_subparsers(dest="license_cmd", required=True)
    activate = lic_sub.add_parser("activate", help="Activate a license key")
    activate.add_argument("key")
    lic_sub.add_parser("status", help="Check license status")

    cfg = sub.add_parser("config", help="Manage saved settings")
    cfg_sub = cfg.add_subparsers(dest="config_cmd", required=True)
    set_key = cfg_sub.add_parser("set-key", help="Save the provider API key")
    set_key.add_argument("key")
    set_model = cfg_sub.add_parser("set-model", help="Save the default video model")
    set_model.add_argument("model")
    set_output = cfg_sub.add_parser("set-output", help="Save the default output directory")
    set_output.add_argument("directory")
    cfg_sub.add_parser("show", help="Show current settings")

    history = sub.add_parser("history", help="Show saved prompts and results")
    history.add_argument("--tab", choices=TABS, help="Only this tab")

    return p


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args(argv)

    try:
        config = load_app_config(args.app_config)
    except (OSError, ValueError) as e:
        console.print(f"[red]ERROR: Could not load config: {e}[/red]")
        sys.exit(EXIT_FAILED)

    configure_logging_from_config(config.logging, level="DEBUG" if args.verbose else None)

    handler = _HANDLERS[args.cmd]
    sys.exit(asyncio.run(handler(args, config)))
