"""Command-line interface for reelsync using Typer.

Every stage of the pipeline is exposed as its own subcommand so it can be
inspected in isolation:

- ``chunk`` splits a script to the speech vendor's character limit.
- ``detect-language`` classifies a script and shows the voice locale.
- ``estimate`` produces syllable-based word timings.
- ``allocate`` partitions word timings into scenes.
- ``captions`` exports caption phrases as SRT, VTT, ASS or JSON.
- ``timeline`` lays a render request out on the frame grid.
- ``render`` runs a render request through a backend with a progress bar.
- ``serve`` starts the REST API.
"""

from __future__ import annotations

import json
import pathlib
from typing import Annotated, Any

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from reelsync import __version__
from reelsync.captions.grouping import group_phrases
from reelsync.formatting import FORMATTERS, format_phrases, get_formatter_spec
from reelsync.jobs.models import JobStatus
from reelsync.jobs.orchestrator import RenderOrchestrator
from reelsync.render import get_backend
from reelsync.render.request import RenderRequest
from reelsync.text.chunker import chunk_text
from reelsync.text.language import detect_language, voice_profile_for
from reelsync.timestamps.allocator import allocate_scenes, allocate_scenes_aligned
from reelsync.timestamps.estimator import estimate_word_timings
from reelsync.timestamps.models import Scene, WordTiming
from reelsync.utils.cancel import get_cancel_event, install_signal_handlers, is_cancelled
from reelsync.utils.constant import (
    API_RENDER_BACKEND,
    API_SERVER_NAME,
    API_SERVER_PORT,
    DEFAULT_CAPTION_STYLE,
    DEFAULT_WORDS_PER_PHRASE,
    RENDER_OUTPUT_DIR,
    TTS_MAX_CHARS,
)
from reelsync.utils.logging_config import configure_logging

console = Console()

_WORDS_ADAPTER = TypeAdapter(list[WordTiming])
_SCENES_ADAPTER = TypeAdapter(list[Scene])


def version_callback(value: bool) -> None:
    """Show the application's version and exit.

    Args:
        value: When True, print the version and exit.

    Raises:
        typer.Exit: Always raised after printing when value is True.

    """
    if value:
        print(f"reelsync version: {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="reelsync",
    help="Scene-timed video composition and caption alignment.",
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show the application's version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only log errors."),
    ] = False,
) -> None:
    """Configure logging, or print help when no subcommand is given.

    Raises:
        typer.Exit: Raised to terminate after displaying help.

    """
    configure_logging(verbose=verbose, quiet=quiet)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _read_text(text: str | None, path: pathlib.Path | None) -> str:
    if path is not None:
        return path.read_text(encoding="utf-8")
    if text is None:
        raise typer.BadParameter("Provide TEXT or --file.")
    return text


def _read_json(path: pathlib.Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{path} is not valid JSON: {exc}") from exc


def _load_words(path: pathlib.Path) -> list[WordTiming]:
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("wordTimings", data.get("word_timings", []))
    try:
        return _WORDS_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise typer.BadParameter(f"{path} does not hold word timings: {exc}") from exc


def _load_scenes(path: pathlib.Path) -> list[Scene]:
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("scenes", [])
    try:
        return _SCENES_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise typer.BadParameter(f"{path} does not hold scenes: {exc}") from exc


def _load_request(path: pathlib.Path) -> RenderRequest:
    try:
        return RenderRequest.model_validate(_read_json(path))
    except ValidationError as exc:
        raise typer.BadParameter(f"{path} is not a valid render request: {exc}") from exc


def _emit(content: str, output: pathlib.Path | None) -> None:
    if output is None:
        typer.echo(content)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    typer.echo(f"Wrote {output}")


TextArgument = Annotated[
    str | None,
    typer.Argument(help="Narration text. Use --file to read it from a file.", show_default=False),
]
FileOption = Annotated[
    pathlib.Path | None,
    typer.Option("--file", "-f", help="Read the text from this file.", exists=True, dir_okay=False),
]
OutputOption = Annotated[
    pathlib.Path | None,
    typer.Option("--output", "-o", help="Write the result to this file instead of stdout."),
]


@app.command()
def chunk(
    text: TextArgument = None,
    file: FileOption = None,
    max_chars: Annotated[
        int,
        typer.Option("--max-chars", min=1, help="Maximum characters per chunk."),
    ] = TTS_MAX_CHARS,
) -> None:
    """Split a script into speech-synthesis sized chunks."""
    chunks = chunk_text(_read_text(text, file), max_chars=max_chars)
    table = Table(title=f"{len(chunks)} chunk(s)", show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Chars", style="yellow", justify="right")
    table.add_column("Text", style="green")
    for index, piece in enumerate(chunks, start=1):
        table.add_row(str(index), str(len(piece)), piece)
    console.print(table)


@app.command("detect-language")
def detect_language_command(text: TextArgument = None, file: FileOption = None) -> None:
    """Detect the script language and the matching voice locale."""
    language = detect_language(_read_text(text, file))
    profile = voice_profile_for(language)
    typer.echo(f"{language}\t{profile.locale}")


@app.command()
def estimate(
    text: TextArgument = None,
    file: FileOption = None,
    duration: Annotated[
        float | None,
        typer.Option("--duration", "-d", min=0.0, help="Stretch timings to this duration (s)."),
    ] = None,
    output: OutputOption = None,
) -> None:
    """Estimate word timings from syllable counts."""
    words = estimate_word_timings(_read_text(text, file), total_duration=duration)
    _emit(_WORDS_ADAPTER.dump_json(words, indent=2).decode("utf-8"), output)


@app.command()
def allocate(
    scenes_file: Annotated[
        pathlib.Path,
        typer.Argument(help="JSON list of scenes (or an object with 'scenes').", exists=True),
    ],
    words_file: Annotated[
        pathlib.Path,
        typer.Argument(
            help="JSON list of word timings (or an object with 'wordTimings').",
            exists=True,
        ),
    ],
    aligned: Annotated[
        bool,
        typer.Option("--aligned", help="Align scene text to spoken words instead of counting."),
    ] = False,
    output: OutputOption = None,
) -> None:
    """Partition word timings into scene time ranges."""
    scenes = _load_scenes(scenes_file)
    words = _load_words(words_file)
    timings = allocate_scenes_aligned(scenes, words) if aligned else allocate_scenes(scenes, words)

    if output is not None:
        payload = [timing.model_dump(by_alias=True) for timing in timings]
        _emit(json.dumps(payload, indent=2, ensure_ascii=False), output)
        return

    table = Table(title="Scene timings", show_header=True, header_style="bold magenta")
    table.add_column("Scene", style="cyan", no_wrap=True)
    table.add_column("Start", style="yellow", justify="right")
    table.add_column("End", style="yellow", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("Text", style="green")
    for timing in timings:
        table.add_row(
            str(timing.scene_index),
            f"{timing.start_time:.2f}",
            f"{timing.end_time:.2f}",
            str(len(timing.word_timings)),
            timing.text,
        )
    console.print(table)


@app.command()
def captions(
    words_file: Annotated[
        pathlib.Path,
        typer.Argument(
            help="JSON list of word timings (or an object with 'wordTimings').",
            exists=True,
        ),
    ],
    output_format: Annotated[
        str,
        typer.Option("--format", help=f"Caption format ({', '.join(FORMATTERS)})."),
    ] = "srt",
    style: Annotated[
        str,
        typer.Option("--style", help="Caption style preset for styled formats."),
    ] = DEFAULT_CAPTION_STYLE,
    words_per_phrase: Annotated[
        int,
        typer.Option("--words-per-phrase", min=1, help="Words shown together on screen."),
    ] = DEFAULT_WORDS_PER_PHRASE,
    highlight_words: Annotated[
        bool,
        typer.Option("--highlight-words", help="Mark word timings inside SRT/VTT cues."),
    ] = False,
    output: OutputOption = None,
) -> None:
    """Group word timings into phrases and export them as captions."""
    try:
        get_formatter_spec(output_format)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    phrases = group_phrases(_load_words(words_file), words_per_phrase)
    content = format_phrases(phrases, output_format, style=style, highlight_words=highlight_words)
    _emit(content, output)


@app.command()
def timeline(
    request_file: Annotated[
        pathlib.Path,
        typer.Argument(help="Render request JSON.", exists=True),
    ],
) -> None:
    """Show the frame layout of a render request."""
    request = _load_request(request_file)
    visual = request.visual_timeline()
    table = Table(
        title=f"{visual.width}x{visual.height} @ {visual.fps} fps, {visual.total_frames} frames",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Scene", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Frames", style="yellow", justify="right")
    table.add_column("Duration (s)", style="yellow", justify="right")
    table.add_column("Motion", style="green")
    for segment in visual.segments:
        motion = segment.effect.value if segment.effect else str(segment.clip_policy.value)
        table.add_row(
            str(segment.scene_index),
            segment.scene_type,
            f"{segment.start_frame}-{segment.end_frame}",
            f"{segment.duration_frames / visual.fps:.2f}",
            motion,
        )
    console.print(table)


@app.command()
def render(
    request_file: Annotated[
        pathlib.Path,
        typer.Argument(help="Render request JSON.", exists=True),
    ],
    backend: Annotated[
        str,
        typer.Option("--backend", help="Render backend: ffmpeg or json2video."),
    ] = API_RENDER_BACKEND,
    output_dir: Annotated[
        pathlib.Path,
        typer.Option(
            "--output-dir",
            help="Directory for locally rendered videos (ffmpeg backend).",
            file_okay=False,
            dir_okay=True,
        ),
    ] = RENDER_OUTPUT_DIR,
    no_progress: Annotated[
        bool,
        typer.Option("--no-progress", help="Disable the progress bar."),
    ] = False,
) -> None:
    """Render a video and wait for the result.

    Raises:
        typer.Exit: With code 1 when the render fails, 130 when interrupted.
    """
    request = _load_request(request_file)
    options: dict[str, Any] = {"output_dir": output_dir} if backend.lower() == "ffmpeg" else {}
    try:
        render_backend = get_backend(backend, **options)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    orchestrator = RenderOrchestrator(render_backend)
    job, _ = orchestrator.create_job(request)
    cancel_event = get_cancel_event()
    install_signal_handlers(cancel_event)

    if no_progress:
        job = orchestrator.run(job.job_id, cancel_event=cancel_event)
    else:
        with Progress(
            SpinnerColumn(),
            BarColumn(bar_width=None),
            TaskProgressColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Queued", total=100)
            job = orchestrator.run(
                job.job_id,
                cancel_event=cancel_event,
                on_progress=lambda current: progress.update(
                    task, completed=current.progress, description=current.progress_message
                ),
            )

    if job.status is JobStatus.COMPLETED and job.result is not None:
        console.print(f"[green]Render complete:[/green] {job.result.video_url}")
        return
    if job.status is JobStatus.FAILED:
        kind = job.error_kind.value if job.error_kind else "unknown"
        typer.secho(f"Render failed ({kind}): {job.error}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    reason = "Interrupted" if is_cancelled(cancel_event) else "Stopped waiting for the render"
    typer.secho(
        f"{reason}; backend work may continue.",
        fg=typer.colors.YELLOW,
        err=True,
    )
    raise typer.Exit(code=130)


@app.command()
def serve(
    host: Annotated[
        str,
        typer.Option("--host", help="Server hostname or IP address to bind to."),
    ] = API_SERVER_NAME,
    port: Annotated[
        int,
        typer.Option("--port", help="Server port number."),
    ] = API_SERVER_PORT,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug mode with verbose logging."),
    ] = False,
) -> None:
    """Start the render job REST API."""
    configure_logging(level="DEBUG" if debug else "INFO")

    import uvicorn

    from reelsync.api.app import create_app

    uvicorn.run(
        create_app(),
        host=host,
        port=port,
        log_level="debug" if debug else "info",
    )
