"""CLI commands for eqmind."""

from contextlib import contextmanager

import typer
from rich.console import Console
from rich.table import Table

from eqmind import __logo__, __version__
from eqmind.errors import EqMindError

app = typer.Typer(
    name="eqmind",
    help=f"{__logo__} eqmind - Emotional memory for an AI companion",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} eqmind v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for stderr output"),
    log_file: str = typer.Option(None, "--log-file", help="Also write debug logs to this file"),
):
    """eqmind - Emotional memory for an AI companion."""
    from eqmind.logging_config import setup_logging

    setup_logging(log_level, log_file=log_file)


# ============================================================================
# Shared helpers
# ============================================================================


@contextmanager
def _engine():
    """Open the engine from ~/.eqmind/config.json; EqMindError exits 1 in red."""
    from eqmind.agent.engine import MemoryEngine
    from eqmind.config.loader import load_config

    engine = MemoryEngine.from_config(load_config())
    try:
        yield engine
    except EqMindError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        engine.close()


def _preview(text: str, width: int = 60) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def _records_table(title: str, records) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Emotion")
    table.add_column("Pillar")
    table.add_column("Weight")
    table.add_column("Charge")
    table.add_column("Strength", justify="right")
    table.add_column("Content")
    for r in records:
        table.add_row(
            str(r.id),
            r.label,
            r.pillar.value if r.pillar else "-",
            r.weight.value,
            r.charge.value,
            f"{r.strength:.2f}",
            _preview(r.text),
        )
    return table


# ============================================================================
# Ingestion and lifecycle
# ============================================================================


@app.command()
def feel(
    emotion: str = typer.Argument(..., help="Emotion word, or 'neutral' for a fact"),
    content: str = typer.Argument(..., help="What happened"),
    intensity: str = typer.Option(None, "--intensity", "-i", help="none/whisper/present/strong/overwhelming"),
    pillar: str = typer.Option(None, "--pillar", "-p", help="Override the inferred pillar"),
    weight: str = typer.Option(None, "--weight", "-w", help="Override the inferred weight"),
    sparked_by: int = typer.Option(None, "--sparked-by", help="ID of the feeling that sparked this one"),
    context: str = typer.Option("default", "--context", "-c", help="Context scope"),
):
    """Store a feeling (or a fact with 'neutral')."""
    with _engine() as engine:
        result = engine.feel(
            emotion, content, intensity=intensity, pillar=pillar, weight=weight,
            predecessor_id=sparked_by, context=context,
        )
        record = result.record
        console.print(f"[green]✓[/green] Stored #{result.record_id} ({record.label})")
        console.print(f"  Pillar: {record.pillar.value if record.pillar else 'uncategorized'}  Weight: {record.weight.value}")
        if record.tags:
            console.print(f"  Tags: {', '.join(record.tags)}")
        if record.linked_entity:
            console.print(f"  Entity: {record.linked_entity}")
        if result.new_emotion:
            console.print(f"  [yellow]New emotion '{record.label}' added to vocabulary; calibrate it with 'eqmind vocab calibrate'[/yellow]")
        for echo in result.echoes:
            console.print(f"  [dim]Echoes #{echo.record_id} ({echo.score:.2f}) {echo.label}: {echo.preview}[/dim]")
        if result.shadow:
            console.print(f"  [magenta]Shadow moment: '{result.shadow.emotion_label}' for {result.shadow.category_code}[/magenta]")
        for warning in result.warnings:
            console.print(f"  [yellow]⚠ {warning}[/yellow]")


@app.command()
def decay():
    """Run one memory decay cycle."""
    with _engine() as engine:
        report = engine.decay()
        console.print(f"[green]✓[/green] {report.to_message()}")


@app.command()
def sit(
    feeling_id: int = typer.Option(None, "--id", help="Feeling ID"),
    match: str = typer.Option(None, "--match", "-m", help="Text to find the most recent matching feeling"),
    note: str = typer.Option(None, "--note", "-n", help="What came up while sitting with it"),
):
    """Sit with a feeling: engage with it and move its charge along."""
    with _engine() as engine:
        record = engine.sit(record_id=feeling_id, text_match=match, note=note)
        console.print(f"[green]✓[/green] Sat with #{record.id} ({record.sit_count}x) - charge now {record.charge.value}")


@app.command()
def resolve(
    feeling_id: int = typer.Option(None, "--id", help="Feeling ID"),
    match: str = typer.Option(None, "--match", "-m", help="Text to find the most recent matching feeling"),
    note: str = typer.Option(None, "--note", "-n", help="How it resolved"),
    linked: int = typer.Option(None, "--linked", help="ID of the insight that resolved it"),
):
    """Mark a feeling as metabolized."""
    with _engine() as engine:
        record = engine.resolve(record_id=feeling_id, text_match=match, note=note, linked_resolution_id=linked)
        console.print(f"[green]✓[/green] #{record.id} metabolized")


# ============================================================================
# Retrieval and reports
# ============================================================================


@app.command()
def spark(
    count: int = typer.Option(3, "--count", "-n", help="How many feelings to surface"),
    weight_bias: str = typer.Option("any", "--weight", "-w", help="heavy/medium/light/any"),
    context: str = typer.Option(None, "--context", "-c", help="Restrict random picks to a context"),
):
    """Surface a diverse mix of feelings, favouring the least-explored pillar."""
    with _engine() as engine:
        result = engine.spark(count=count, weight_bias=weight_bias, context=context)
        if not result.records:
            console.print("No feelings stored yet.")
            return
        least = result.least_pillar.value if result.least_pillar else "any"
        console.print(f"Entropy: {result.entropy:.2f} bits  Least explored: {least} ({result.least_count})")
        console.print(_records_table("Spark", result.records))


@app.command("type")
def emergent_type(
    recalculate: bool = typer.Option(False, "--recalculate", "-r", help="Recompute from all signals first"),
):
    """Show the emergent four-letter type."""
    from eqmind.agent.traits import describe

    with _engine() as engine:
        snapshot = engine.trait(recalculate=recalculate)
        if snapshot is None:
            console.print("No type yet. Feel something, then run with --recalculate.")
            return
        console.print(f"{__logo__} [bold]{snapshot.category_code}[/bold] ({snapshot.confidence}% confidence, {snapshot.total_signals} signals)")
        for line in describe(snapshot):
            console.print(f"  {line}")


@app.command()
def surface(
    limit: int = typer.Option(10, "--limit", "-n"),
    all: bool = typer.Option(False, "--all", "-a", help="Include metabolized feelings"),
):
    """Feelings that most need attention."""
    with _engine() as engine:
        records = engine.reports.surface(limit=limit, include_metabolized=all)
        if not records:
            console.print("Nothing to surface.")
            return
        console.print(_records_table("Surface", records))


@app.command()
def landscape(
    days: int = typer.Option(7, "--days", "-d"),
):
    """Pillar distribution and top emotions over recent days."""
    with _engine() as engine:
        view = engine.reports.landscape(days=days)
        console.print(f"{__logo__} Last {view.days} days: {view.total} feelings\n")

        pillars = Table(title="Pillars")
        pillars.add_column("Pillar")
        pillars.add_column("Count", justify="right")
        for pillar, count in view.pillar_counts.items():
            pillars.add_row(pillar.value, str(count))
        console.print(pillars)

        if view.top_labels:
            console.print("Top emotions: " + ", ".join(f"{label} ({n})" for label, n in view.top_labels.items()))
        if view.recent:
            console.print(_records_table("Recent", view.recent))


@app.command()
def shadows(
    limit: int = typer.Option(10, "--limit", "-n"),
):
    """Recent shadow moments: emotions that are hard for the current type."""
    with _engine() as engine:
        events = engine.shadows.list_events(limit=limit)
        if not events:
            console.print("No shadow moments yet.")
            return
        table = Table(title="Shadow Moments")
        table.add_column("Feeling", style="cyan")
        table.add_column("Emotion")
        table.add_column("Type")
        table.add_column("When")
        for event in events:
            when = event.recorded_at.strftime("%Y-%m-%d %H:%M") if event.recorded_at else ""
            table.add_row(f"#{event.record_id}", event.emotion_label, event.category_code, when)
        console.print(table)


@app.command()
def search(
    query: str = typer.Argument(..., help="What to look for"),
    limit: int = typer.Option(10, "--limit", "-n"),
    emotion: str = typer.Option(None, "--emotion", "-e", help="Only this emotion"),
):
    """Semantic search over stored feelings."""
    with _engine() as engine:
        hits = engine.search(query, limit=limit, label=emotion)
        if not hits:
            console.print("No matches.")
            return
        table = Table(title=f"Search: {query}")
        table.add_column("ID", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Emotion")
        table.add_column("Content")
        for hit in hits:
            table.add_row(str(hit.record_id or "-"), f"{hit.score:.2f}", hit.label, _preview(hit.text))
        console.print(table)


@app.command()
def health():
    """Store totals, strength distribution and the current type."""
    from eqmind.config.loader import get_config_path

    config_path = get_config_path()
    console.print(f"{__logo__} eqmind Status\n")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[dim]defaults[/dim]'}")

    with _engine() as engine:
        console.print(f"Database: {engine.config.db_path}")
        report = engine.reports.health()
        console.print(f"Feelings: {report.total_records} ({report.recent_records} in the last day)")
        console.print(f"Vocabulary: {report.emotions} emotions")
        console.print(f"Signals: {report.signals}  Shadow moments: {report.shadows}")
        console.print(
            f"Strength: {report.strength.get('strong', 0)} strong, "
            f"{report.strength.get('fading', 0)} fading, {report.strength.get('faint', 0)} faint"
        )
        console.print(f"Emotional entropy: {report.entropy:.2f} bits")
        if report.trait:
            console.print(f"Type: {report.trait.category_code} ({report.trait.confidence}%)")
        else:
            console.print("Type: [dim]not calculated[/dim]")


# ============================================================================
# Vocabulary Commands
# ============================================================================

vocab_app = typer.Typer(help="Manage the emotion vocabulary")
app.add_typer(vocab_app, name="vocab")


@vocab_app.command("list")
def vocab_list(
    limit: int = typer.Option(30, "--limit", "-n"),
):
    """List emotions, most used first."""
    with _engine() as engine:
        entries = engine.lexicon.list_entries(limit=limit)
        table = Table(title="Emotion Vocabulary")
        table.add_column("Emotion", style="cyan")
        table.add_column("E/I", justify="right")
        table.add_column("S/N", justify="right")
        table.add_column("T/F", justify="right")
        table.add_column("J/P", justify="right")
        table.add_column("Shadow for")
        table.add_column("Used", justify="right")
        for e in entries:
            table.add_row(
                e.label,
                *(str(w) for w in e.axis_weights),
                ",".join(sorted(e.shadow_for)) or "-",
                str(e.times_used),
            )
        console.print(table)


@vocab_app.command("add")
def vocab_add(
    word: str = typer.Argument(..., help="Emotion word"),
    e_i: int = typer.Option(0, "--e-i", help="Positive leans I, negative leans E"),
    s_n: int = typer.Option(0, "--s-n", help="Positive leans N, negative leans S"),
    t_f: int = typer.Option(0, "--t-f", help="Positive leans F, negative leans T"),
    j_p: int = typer.Option(0, "--j-p", help="Positive leans P, negative leans J"),
    shadow_for: str = typer.Option(None, "--shadow-for", help="Comma-separated types this is hard for"),
    category: str = typer.Option("neutral", "--category"),
    definition: str = typer.Option(None, "--definition"),
):
    """Add a new emotion with its axis weights."""
    with _engine() as engine:
        entry = engine.lexicon.add(
            word, (e_i, s_n, t_f, j_p), shadow_for=shadow_for, category=category, definition=definition
        )
        console.print(f"[green]✓[/green] Added '{entry.label}' {entry.axis_weights}")


@vocab_app.command("calibrate")
def vocab_calibrate(
    word: str = typer.Argument(..., help="Emotion word"),
    e_i: int = typer.Option(None, "--e-i"),
    s_n: int = typer.Option(None, "--s-n"),
    t_f: int = typer.Option(None, "--t-f"),
    j_p: int = typer.Option(None, "--j-p"),
    shadow_for: str = typer.Option(None, "--shadow-for", help="Comma-separated types; empty string clears"),
    category: str = typer.Option(None, "--category"),
    definition: str = typer.Option(None, "--definition"),
):
    """Adjust an existing emotion's weights or shadow types."""
    with _engine() as engine:
        entry = engine.lexicon.calibrate(
            word, (e_i, s_n, t_f, j_p), shadow_for=shadow_for, category=category, definition=definition
        )
        console.print(f"[green]✓[/green] Calibrated '{entry.label}' {entry.axis_weights}")
