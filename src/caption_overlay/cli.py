"""Command-line interface for caption-overlay.

Uses Typer for a modern, type-hinted CLI experience.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from caption_overlay import __version__
from caption_overlay.config import OverlayConfig, load_overlay_config
from caption_overlay.errors import OverlayError, format_error_for_display
from caption_overlay.ffmpeg_binary import check_ffprobe, get_ffmpeg_info, verify_ffmpeg
from caption_overlay.logging import LogLevel, set_verbosity
from caption_overlay.renderer import OverlayRenderer
from caption_overlay.request import OverlayRequest, build_request

load_dotenv()

app = typer.Typer(
    name="caption-overlay",
    help="Burn glowing, highlighted captions and a channel watermark into videos.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

FirstOption = Annotated[
    Optional[str],
    typer.Option("--first", help="First caption, shown until 7.5s; last two words highlighted"),
]
SecondOption = Annotated[
    Optional[str],
    typer.Option("--second", help="Second caption, shown from 8.5s; first word highlighted"),
]
ChannelOption = Annotated[
    Optional[str], typer.Option("--channel", "-c", help="Channel name for the watermark")
]
FontSizeOption = Annotated[
    Optional[int], typer.Option("--font-size", help="Caption font size in pixels [default: 80]")
]
FontColorOption = Annotated[
    Optional[str], typer.Option("--font-color", help="Caption color [default: white]")
]
HighlightColorOption = Annotated[
    Optional[str], typer.Option("--highlight-color", help="Highlight color [default: #98FBCB]")
]
FrameWidthOption = Annotated[
    Optional[int],
    typer.Option("--frame-width", help="Frame width in pixels; probed from the video when omitted"),
]
ConfigOption = Annotated[
    Optional[Path], typer.Option("--config", help="Overlay config JSON file")
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"caption-overlay version {__version__}")
        raise typer.Exit()


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(format_error_for_display(error))}")
    raise typer.Exit(1)


def _load(config_path: Path | None) -> OverlayConfig:
    try:
        return load_overlay_config(config_path)
    except OverlayError as e:
        _fail(e)


def _request(
    config: OverlayConfig,
    first: str | None,
    second: str | None,
    channel: str | None,
    font_size: int | None,
    font_color: str | None,
    highlight_color: str | None,
) -> OverlayRequest:
    try:
        return build_request(
            config,
            first_caption=first,
            second_caption=second,
            channel_name=channel,
            font_size=font_size,
            font_color=font_color,
            highlight_color=highlight_color,
        )
    except OverlayError as e:
        _fail(e)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Caption Overlay - captions, highlights and watermark burn-in.

    [bold]render[/bold]: overlay captions on a video and replace its audio.

    [bold]filtergraph[/bold]: print the drawtext filter graph without rendering.
    """
    pass


@app.command()
def render(
    video: Annotated[Path, typer.Argument(help="Input video")],
    audio: Annotated[Path, typer.Argument(help="Replacement audio track")],
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Output video [default: processed-<uuid>.mp4]")
    ] = None,
    first: FirstOption = None,
    second: SecondOption = None,
    channel: ChannelOption = None,
    font_size: FontSizeOption = None,
    font_color: FontColorOption = None,
    highlight_color: HighlightColorOption = None,
    frame_width: FrameWidthOption = None,
    config_path: ConfigOption = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log FFmpeg activity")] = False,
) -> None:
    """Overlay captions and watermark onto VIDEO, using AUDIO as its soundtrack."""
    if verbose:
        set_verbosity(LogLevel.VERBOSE)

    config = _load(config_path)
    request = _request(config, first, second, channel, font_size, font_color, highlight_color)
    output = output or Path(f"processed-{uuid.uuid4()}.mp4")

    renderer = OverlayRenderer(config)
    try:
        with console.status("Rendering overlay..."):
            result = renderer.render(video, audio, output, request, frame_width=frame_width)
    except OverlayError as e:
        _fail(e)

    console.print(f"[green]Rendered:[/green] {result}")


@app.command()
def filtergraph(
    first: FirstOption = None,
    second: SecondOption = None,
    channel: ChannelOption = None,
    font_size: FontSizeOption = None,
    font_color: FontColorOption = None,
    highlight_color: HighlightColorOption = None,
    frame_width: FrameWidthOption = None,
    config_path: ConfigOption = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the typed draw commands as JSON")
    ] = False,
) -> None:
    """Print the drawtext filter graph for the given captions."""
    config = _load(config_path)
    request = _request(config, first, second, channel, font_size, font_color, highlight_color)
    renderer = OverlayRenderer(config)

    if as_json:
        graph = renderer.build_filter_graph(request, frame_width)
        typer.echo(json.dumps([asdict(command) for command in graph], indent=2))
        return

    typer.echo(renderer.filter_string(request, frame_width))


@app.command()
def check_deps() -> None:
    """Check that FFmpeg and FFprobe are available."""
    ffmpeg_info = get_ffmpeg_info()
    ffmpeg_ok, ffmpeg_message = verify_ffmpeg()
    ffprobe_ok, ffprobe_message = check_ffprobe()

    table = Table(title="Dependency Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    if ffmpeg_ok:
        table.add_row(
            "FFmpeg",
            f"[green]Available[/green] (v{ffmpeg_info.version})",
            f"Source: {ffmpeg_info.source}\n{ffmpeg_info.path}",
        )
    elif ffmpeg_info.available and not ffmpeg_info.drawtext:
        table.add_row("FFmpeg", "[red]No drawtext[/red]", ffmpeg_message)
    else:
        table.add_row("FFmpeg", "[red]Not Found[/red]", ffmpeg_message)

    if ffprobe_ok:
        table.add_row("FFprobe", "[green]Available[/green]", ffprobe_message)
    else:
        table.add_row(
            "FFprobe",
            "[yellow]Not Found[/yellow]",
            "Optional - frame width falls back to the configured default",
        )

    console.print(table)

    if not ffmpeg_ok:
        tip = (
            "Install an FFmpeg built with libfreetype and point\n"
            "CAPTION_OVERLAY_FFMPEG at it to draw captions."
            if ffmpeg_info.available and not ffmpeg_info.drawtext
            else "Run 'pip install imageio-ffmpeg' to auto-download FFmpeg,\n"
            "or point CAPTION_OVERLAY_FFMPEG at an existing binary."
        )
        console.print(Panel(
            tip,
            title="Tip",
        ))
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
