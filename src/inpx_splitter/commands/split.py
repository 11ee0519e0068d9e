"""Split command: build, count and re-header every variant of an INPX file."""

from __future__ import annotations

import logging
import signal
import warnings
from dataclasses import dataclass, field
from pathlib import Path

import questionary
from questionary import Style
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from inpx_splitter.core.archive import InpxArchive
from inpx_splitter.core.book_counter import ProgressCallback, count_books
from inpx_splitter.core.errors import (
    ArchiveError,
    ConfigError,
    InpxSplitError,
    NoRecordsWarning,
    PipelineInterrupted,
    VariantBuildError,
)
from inpx_splitter.core.header_writer import rewrite_header
from inpx_splitter.core.scratch import ScratchTracker
from inpx_splitter.core.variant_builder import DEFAULT_PLACEHOLDER, build_variant
from inpx_splitter.models.result import PipelineStage, RunSummary, VariantResult
from inpx_splitter.models.variant import DEFAULT_VARIANTS, Variant

log = logging.getLogger(__name__)

INPX_SUFFIX = ".inpx"

PICKER_STYLE = Style([
    ("qmark", "fg:cyan bold"),
    ("question", "bold"),
    ("answer", "fg:cyan bold"),
    ("pointer", "fg:cyan bold"),
    ("highlighted", "fg:cyan bold"),
    ("instruction", "fg:gray"),
])


@dataclass
class SplitConfig:
    """Resolved options for one split run."""
    input_dir: Path = field(default_factory=lambda: Path("."))
    input_file: Path | None = None  # None = pick interactively
    output_dir: Path | None = None  # None = next to the input file
    placeholder: str = DEFAULT_PLACEHOLDER
    variants: tuple[Variant, ...] = DEFAULT_VARIANTS
    interactive: bool = True
    scratch_base: Path | None = None  # None = system temp dir


@dataclass
class RunContext:
    """Per-run state handed through every pipeline stage."""
    source: Path
    output_dir: Path
    placeholder: str
    variants: tuple[Variant, ...]
    results: dict[str, VariantResult] = field(default_factory=dict)
    archives: dict[str, InpxArchive] = field(default_factory=dict)
    on_progress: ProgressCallback | None = None

    def __post_init__(self) -> None:
        for variant in self.variants:
            self.results.setdefault(variant.tag, VariantResult(tag=variant.tag))

    def pending(self) -> list[Variant]:
        return [v for v in self.variants if self.results[v.tag].is_pending]


# ============================================================================
# Input selection
# ============================================================================

def scan_for_inpx(directory: Path) -> list[Path]:
    """Find all .inpx files directly inside directory."""
    return sorted(
        (p for p in directory.glob(f"*{INPX_SUFFIX}") if p.is_file()),
        key=lambda p: p.name.lower(),
    )


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable form."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def validate_input_dir(input_dir: Path) -> Path:
    """Ensure the input directory exists before any archive work."""
    if not input_dir.exists():
        raise ConfigError(f"Input directory {input_dir} does not exist")
    if not input_dir.is_dir():
        raise ConfigError(f"{input_dir} is not a directory")
    return input_dir.resolve()


def select_input_file(input_dir: Path, console: Console) -> Path:
    """Let the user pick one of the .inpx files in input_dir."""
    candidates = scan_for_inpx(input_dir)
    if not candidates:
        raise ConfigError(f"No {INPX_SUFFIX} files found in {input_dir}")

    choices = [
        questionary.Choice(
            title=f"{path.name}  ({format_file_size(path.stat().st_size)})",
            value=path,
        )
        for path in candidates
    ]

    console.print()
    result = questionary.select(
        "Select the INPX file to split:",
        choices=choices,
        style=PICKER_STYLE,
        instruction="(Use arrow keys, Enter to select)",
    ).ask()

    if result is None:
        raise ConfigError("No input file selected")
    return result


def resolve_input_file(config: SplitConfig, input_dir: Path, console: Console) -> Path:
    """Resolve the explicit input path, or fall back to the picker."""
    if config.input_file is None:
        if not config.interactive:
            raise ConfigError("No input file given and interactive selection is disabled")
        return select_input_file(input_dir, console)

    path = config.input_file
    if not path.is_absolute():
        path = input_dir / path
    if not path.is_file():
        raise ConfigError(f"Input file not found: {path}")
    return path.resolve()


def resolve_output_dir(config: SplitConfig, source: Path) -> Path:
    output_dir = config.output_dir or source.parent
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Cannot create output directory {output_dir}: {e}") from e
    if not output_dir.is_dir():
        raise ConfigError(f"{output_dir} is not a directory")
    return output_dir.resolve()


# ============================================================================
# Pipeline stages
# ============================================================================

def build_variants(ctx: RunContext) -> None:
    """Build each variant archive; a failure only affects its own variant."""
    for variant in ctx.pending():
        result = ctx.results[variant.tag]
        try:
            archive = build_variant(ctx.source, variant, ctx.output_dir, ctx.placeholder)
        except VariantBuildError as e:
            log.error("[%s] %s", variant.tag, e)
            result.fail(e)
            continue

        ctx.archives[variant.tag] = archive
        result.archive_path = archive.path
        result.stage = PipelineStage.BUILT
        log.info("Built %s variant: %s", variant.tag, archive.path.name)


def extract_source(ctx: RunContext, tracker: ScratchTracker) -> Path | None:
    """Extract the full source archive into a tracked scratch directory.

    Returns:
        The scratch directory, or None if nothing is left to count
    """
    pending = ctx.pending()
    if not pending:
        log.debug("No variant left to count, skipping extraction")
        return None

    log.info("Extracting files from %s...", ctx.source.name)

    try:
        scratch_dir = tracker.make_dir("extract")
        InpxArchive.open(ctx.source).extract_all(scratch_dir)
    except (ArchiveError, OSError) as e:
        for variant in pending:
            log.error("[%s] Extraction failed: %s", variant.tag, e)
            ctx.results[variant.tag].fail(e)
        return None

    for variant in pending:
        ctx.results[variant.tag].stage = PipelineStage.EXTRACTED
    return scratch_dir


def process_variant(ctx: RunContext, variant: Variant, scratch_dir: Path) -> None:
    """Count the variant's books and rewrite its header."""
    result = ctx.results[variant.tag]
    archive = ctx.archives[variant.tag]

    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", NoRecordsWarning)
            book_count = count_books(
                scratch_dir,
                variant.record_glob,
                on_progress=ctx.on_progress,
                label=f"Counting {variant.tag}",
            )
        for warning in caught:
            message = str(warning.message)
            result.warnings.append(message)
            log.warning("[%s] %s", variant.tag, message)

        result.book_count = book_count
        result.stage = PipelineStage.COUNTED
        log.debug("%s books = %d", variant.tag, book_count)

        rewrite_header(archive, variant.tag, book_count)
        result.stage = PipelineStage.HEADER_WRITTEN
    except InpxSplitError as e:
        log.error("[%s] Failed after stage '%s': %s", variant.tag, result.stage.value, e)
        result.fail(e)
        return

    result.status = "done"


def run_pipeline(ctx: RunContext, tracker: ScratchTracker) -> None:
    """Build, extract, then count and re-header each surviving variant."""
    build_variants(ctx)
    scratch_dir = extract_source(ctx, tracker)
    if scratch_dir is None:
        return
    for variant in ctx.pending():
        process_variant(ctx, variant, scratch_dir)


def _progress_sink(progress: Progress) -> ProgressCallback:
    tasks: dict[str, TaskID] = {}

    def on_progress(current: int, total: int, label: str) -> None:
        if label not in tasks:
            tasks[label] = progress.add_task(label, total=total)
        progress.update(tasks[label], completed=current, total=total)

    return on_progress


def _raise_interrupt(signum: int, frame: object) -> None:
    raise PipelineInterrupted(f"Received signal {signal.Signals(signum).name}")


# ============================================================================
# Command entry
# ============================================================================

def execute_split(
    config: SplitConfig,
    console: Console,
    tracker: ScratchTracker | None = None,
) -> RunSummary:
    """Run the full split pipeline and report every variant's outcome.

    Raises:
        ConfigError: Before any archive is touched, if the input directory,
            input file or output directory is unusable
    """
    input_dir = validate_input_dir(config.input_dir)
    source = resolve_input_file(config, input_dir, console)
    output_dir = resolve_output_dir(config, source)

    ctx = RunContext(
        source=source,
        output_dir=output_dir,
        placeholder=config.placeholder,
        variants=config.variants,
    )

    console.print(f"Splitting [bold]{escape(source.name)}[/] into:")
    for variant in config.variants:
        console.print(f"  {variant.tag.upper()} → {escape(', '.join(variant.keep_patterns))}")

    tracker = tracker or ScratchTracker(base_dir=config.scratch_base)
    interrupted = False

    original_handler = signal.getsignal(signal.SIGTERM)
    signal.signal(signal.SIGTERM, _raise_interrupt)

    # Scratch paths are released on the way out of the with block, so an
    # interrupt arriving during release is caught here as well
    try:
        with tracker, Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("ETA"),
            TimeRemainingColumn(),
            console=console,
        ) as progress:
            ctx.on_progress = _progress_sink(progress)
            run_pipeline(ctx, tracker)
    except KeyboardInterrupt:
        interrupted = True
        log.warning("Interrupted, temporary files removed")
        for variant in ctx.pending():
            ctx.results[variant.tag].fail("interrupted")
    finally:
        signal.signal(signal.SIGTERM, original_handler)

    return RunSummary(
        source_path=source,
        results=[ctx.results[v.tag] for v in config.variants],
        interrupted=interrupted,
    )


def display_summary(summary: RunSummary, console: Console) -> None:
    """Print per-variant results and the overall outcome."""
    table = Table(title="Split Results", show_header=True, header_style="bold cyan")
    table.add_column("Variant", style="white")
    table.add_column("Status")
    table.add_column("Books", justify="right", style="green")
    table.add_column("Archive / Error", style="dim")

    for result in summary.results:
        if result.status == "done":
            status = "[green]✓ done[/]"
            detail = result.archive_path.name if result.archive_path else ""
        else:
            status = f"[red]✗ {result.status}[/]"
            detail = result.error or ""
        books = f"{result.book_count:,}" if result.book_count is not None else "—"
        table.add_row(result.tag, status, books, escape(detail))

    console.print()
    console.print(table)

    if summary.succeeded:
        lines = [f"\U0001F4D6 {r.tag.upper()} books: {r.book_count:,}" for r in summary.results]
        console.print(Panel("\n".join(lines), title="All done", border_style="green"))
    elif summary.interrupted:
        console.print(Panel(
            "[yellow]Operation interrupted.[/]\n\n"
            "Temporary files were removed. Run the command again to rebuild the variants.",
            title="Interrupted",
            border_style="yellow",
        ))
    else:
        failed = ", ".join(r.tag for r in summary.results if r.status != "done")
        console.print(Panel(
            f"[red]Failed variants: {failed}[/]",
            title="Finished with errors",
            border_style="red",
        ))
