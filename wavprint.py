import os
import sys
import argparse

try:
    from rich.console import Console
    from rich.table import Table
    from rich.panel import Panel
    from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn
    from rich import box
except ImportError:
    print("Error: The 'rich' library is required for the CLI but not installed.", file=sys.stderr)
    print("Please install it with: pip install wavprint[cli]", file=sys.stderr)
    sys.exit(1)

from wavprintlib import __version__
from wavprintlib.audio import discover_audio_files
from wavprintlib.config import default_config, merge_configs, load_preset, save_preset
from wavprintlib.errors import WavprintError
from wavprintlib.events import EventBus
from wavprintlib.models import JobStatus
from wavprintlib.pipeline import Pipeline
from wavprintlib.queue import RenderQueue
from wavprintlib.reports import save_json
from wavprintlib.utils import output_path_for, format_duration

console = Console()


def positive_int(value):
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return ivalue


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="wavprint - render audio files as band-peak fingerprint images",
    )
    parser.add_argument("--version", action="version",
                        version=f"wavprint {__version__}")

    parser.add_argument("inputs", nargs="+",
                        help="Audio files (.wav, .aif, .aiff, .flac) or directories containing them")

    # Analysis
    parser.add_argument("--window_size", type=positive_int, default=None,
                        help="Samples per analysis window / transform size (default: 16384)")
    parser.add_argument("--band_edges", type=int, nargs=3, default=None,
                        metavar=("LOW", "MID", "HIGH"),
                        help="First bin of the low, mid and high bands (default: 20 250 4000)")
    parser.add_argument("--channel_mode", choices=["interleaved", "mix"], default=None,
                        help="How multi-channel files become one sample sequence (default: interleaved)")

    # Image
    parser.add_argument("--width", type=positive_int, default=None,
                        help="Grid width in pixels (default: 64)")
    parser.add_argument("--height", type=positive_int, default=None,
                        help="Grid height in pixels, must equal --width (default: 64)")
    parser.add_argument("--output_width", type=positive_int, default=None,
                        help="Width of the written PNG (default: 1024)")
    parser.add_argument("--output_height", type=positive_int, default=None,
                        help="Height of the written PNG (default: 1024)")

    # Execution & output
    parser.add_argument("--workers", type=positive_int, default=None,
                        help="Concurrent transform workers (default: one per CPU)")
    parser.add_argument("--output_dir", type=str, default=None,
                        help="Directory for rendered images (default: next to each input)")
    parser.add_argument("--json", action="store_true", default=None,
                        help="Also write a JSON report next to each image")

    # Presets
    parser.add_argument("--preset", type=str, default=None,
                        help="Load settings from a JSON preset (command-line options win)")
    parser.add_argument("--save_preset", type=str, default=None,
                        help="Save the effective settings to a JSON preset and continue")

    return parser.parse_args(argv)


def build_config(args):
    config = default_config()
    if args.preset:
        config = merge_configs(config, load_preset(args.preset))
    cli_overrides = {
        "window_size": args.window_size,
        "band_edges": args.band_edges,
        "channel_mode": args.channel_mode,
        "width": args.width,
        "height": args.height,
        "output_width": args.output_width,
        "output_height": args.output_height,
        "max_workers": args.workers,
        "output_dir": args.output_dir,
        "json": args.json,
    }
    return merge_configs(config, cli_overrides)


def expand_inputs(inputs):
    files = []
    for path in inputs:
        if os.path.isdir(path):
            files.extend(discover_audio_files(path))
        else:
            files.append(path)
    return files


def print_error(stage, message):
    console.print(f"[bold red]Error ({stage}):[/] {message}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv=None):
    args = parse_arguments(argv)

    try:
        config = build_config(args)
        Pipeline(config)  # validate once before any file is touched
    except WavprintError as e:
        print_error(e.stage, e)
        return 1

    if args.save_preset:
        try:
            save_preset(config, args.save_preset)
        except WavprintError as e:
            print_error(e.stage, e)
            return 1
        console.print(f"[dim]Preset saved to: {args.save_preset}[/]")

    files = expand_inputs(args.inputs)
    if not files:
        console.print("[red]No audio files found.[/]")
        return 1

    width, height = config["width"], config["height"]
    console.print(Panel.fit(
        f"[bold]wavprint[/]\n"
        f"Grid: [cyan]{width}x{height}[/] -> [cyan]{config['output_width']}x{config['output_height']}[/]\n"
        f"Window: [cyan]{config['window_size']} samples[/] | "
        f"Bands: [cyan]{' / '.join(str(e) for e in config['band_edges'])}[/]\n"
        f"Channels: [cyan]{config['channel_mode']}[/] | Files: [green]{len(files)}[/]",
        title="Configuration"
    ))

    queue = RenderQueue(config)
    for path in files:
        queue.add(path, output_path=output_path_for(path, width, height, config["output_dir"]))

    event_bus = EventBus()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
    ) as progress:
        task_id = progress.add_task("[cyan]Rendering...", total=width * height)

        def on_job_start(job_id, source, **data):
            progress.reset(task_id, total=width * height,
                           description=f"[cyan]{os.path.basename(source)}")

        def on_pixel_complete(completed, total, **data):
            progress.update(task_id, completed=completed, total=total)

        event_bus.subscribe("job.start", on_job_start)
        event_bus.subscribe("pixel.complete", on_pixel_complete)

        def pipeline_factory(job_config):
            return Pipeline(job_config, event_bus=event_bus)

        jobs = queue.run_all(pipeline_factory, event_bus=event_bus)

    # --- SUMMARY TABLE ---
    table = Table(box=box.ROUNDED, title="Rendered Images")
    table.add_column("File", style="cyan", max_width=40)
    table.add_column("Format", style="dim")
    table.add_column("Duration", justify="right")
    table.add_column("Step", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Status", justify="right")

    for job in jobs:
        name = os.path.basename(job.source_path)
        if job.status != JobStatus.COMPLETED:
            table.add_row(name, "—", "—", "—", "—",
                          f"[red]{(job.error_stage or 'error').upper()}[/]")
            continue
        result = job.result
        signal = result.signal
        fmt_str = f"{signal.samplerate / 1000:g}k/{signal.bitdepth}/{signal.channels}ch"
        step_str = f"{result.plan.step}" + (" [yellow](overlap)[/]" if result.plan.overlapping else "")
        table.add_row(
            name,
            fmt_str,
            format_duration(signal.duration_sec),
            step_str,
            f"{result.elapsed_sec:.2f} s",
            "[green]OK[/]",
        )

    console.print(table)

    report_failed = False
    for job in jobs:
        if job.status == JobStatus.COMPLETED:
            console.print(f"[dim]Image saved to: {job.result.output_path}[/]")
            if config["json"]:
                json_path = os.path.splitext(job.result.output_path)[0] + ".json"
                try:
                    save_json(job.result, job.config, json_path)
                except WavprintError as e:
                    print_error(e.stage, e)
                    report_failed = True
                    continue
                console.print(f"[dim]Report saved to: {json_path}[/]")
        else:
            print_error(job.error_stage, f"{os.path.basename(job.source_path)}: {job.error}")

    return 1 if queue.failed() or report_failed else 0


if __name__ == "__main__":
    sys.exit(main())
