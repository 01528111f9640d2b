"""
Command-line interface for art-resonance.

Clusters or classifies rows of a CSV file with the resonance engines and
manages the YAML configuration file.
"""

import csv
import logging
from collections import Counter
from pathlib import Path
from typing import List, Optional, Tuple

import click
import numpy as np
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from . import __version__
from .config import DEFAULT_CONFIG_NAME, EngineConfig, load_config
from .core.errors import ResonanceError
from .core.pattern import min_max_normalize
from .engine.artmap import SimpleARTMAP
from .utils.logging_setup import setup_logging, log_operation

logger = logging.getLogger(__name__)

console = Console()


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def read_csv(path: Path, label_column: Optional[str] = None) -> Tuple[np.ndarray, Optional[List[str]]]:
    """
    Read a numeric CSV, optionally splitting off a label column.

    A first row with any non-numeric feature cell is treated as a header.
    ``label_column`` is a header name or a zero-based index; negative
    indices count from the end.

    Returns:
        (features, labels) with labels None when no label column is given
    """
    with open(path, newline="") as f:
        rows = [row for row in csv.reader(f) if row]
    if not rows:
        raise click.ClickException(f"{path} is empty")

    header = None
    if not all(_is_number(cell) for cell in rows[0]):
        header, rows = rows[0], rows[1:]
        if not rows:
            raise click.ClickException(f"{path} has no data rows")

    label_idx = None
    if label_column is not None:
        if header is not None and label_column in header:
            label_idx = header.index(label_column)
        else:
            try:
                label_idx = int(label_column) % len(rows[0])
            except ValueError:
                raise click.ClickException(f"Unknown label column: {label_column}")

    features, labels = [], []
    for lineno, row in enumerate(rows, start=2 if header else 1):
        values = [cell for i, cell in enumerate(row) if i != label_idx]
        try:
            features.append([float(v) for v in values])
        except ValueError:
            raise click.ClickException(f"Non-numeric value on line {lineno} of {path}")
        if label_idx is not None:
            labels.append(row[label_idx])

    try:
        data = np.array(features, dtype=np.float64)
    except ValueError:
        raise click.ClickException(f"Rows of {path} have different lengths")
    return data, (labels if label_idx is not None else None)


def _load(config_path: Optional[str], **overrides) -> EngineConfig:
    config = load_config(config_path)
    changes = {k: v for k, v in overrides.items() if v is not None}
    if changes:
        data = config.to_dict()
        data.update(changes)
        config = EngineConfig.from_dict(data)
    return config


@click.group(name="artresonance")
@click.version_option(__version__, prog_name="artresonance")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              default=None, help="Override the configured log level")
@click.option("--log-dir", type=click.Path(file_okay=False), default=None,
              help="Also write JSON-lines logs to this directory")
@click.pass_context
def cli(ctx, log_level, log_dir):
    """Adaptive resonance pattern learning."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    ctx.obj["log_dir"] = log_dir


def _setup(ctx, config: EngineConfig):
    log_dir = ctx.obj.get("log_dir")
    setup_logging(
        level=ctx.obj.get("log_level") or config.log_level,
        log_dir=Path(log_dir) if log_dir else None,
        file=bool(log_dir),
    )


@cli.command(name="cluster")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--vigilance", type=float, help="Vigilance in [0, 1]")
@click.option("--max-categories", type=int, help="Category store capacity")
@click.option("--complement/--no-complement", default=None, help="Complement code inputs")
@click.option("--epochs", type=int, default=1, show_default=True, help="Passes over the data")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Path to config file")
@click.pass_context
def cluster(ctx, csv_path, vigilance, max_categories, complement, epochs, config_path):
    """Cluster the rows of CSV_PATH without labels."""
    try:
        config = _load(config_path, vigilance=vigilance, max_categories=max_categories,
                       complement_code=complement)
        _setup(ctx, config)
        log_operation(logger, "cluster", path=str(csv_path))

        data, _ = read_csv(Path(csv_path))
        data = min_max_normalize(data)
        engine = config.build_engine(data.shape[1])
        assignments = engine.fit(data, epochs=epochs)
    except ResonanceError as e:
        raise click.ClickException(e.message)

    sizes = Counter(assignments)
    table = Table(title=f"Categories for {Path(csv_path).name}")
    table.add_column("Category", justify="right", style="cyan")
    table.add_column("Patterns", justify="right")
    table.add_column("Usage", justify="right")
    usage = engine.store.usage_counts()
    for index in range(engine.category_count):
        table.add_row(str(index), str(sizes.get(index, 0)), str(usage[index]))
    console.print(table)

    stats = engine.counters.snapshot()
    console.print(
        f"[green]✓ {len(assignments)} patterns -> {engine.category_count} categories[/green] "
        f"(resets: {stats['resets']}, vigilance: {config.vigilance})"
    )


@cli.command(name="classify")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--label-column", default="-1", show_default=True, help="Label column name or index")
@click.option("--test-fraction", type=click.FloatRange(0.0, 1.0, max_open=True), default=0.25,
              show_default=True, help="Fraction of rows held out for testing")
@click.option("--vigilance", type=float, help="Baseline input vigilance in [0, 1]")
@click.option("--seed", type=int, default=0, show_default=True, help="Shuffle seed")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Path to config file")
@click.pass_context
def classify(ctx, csv_path, label_column, test_fraction, vigilance, seed, config_path):
    """Train a label-form ARTMAP on CSV_PATH and report test accuracy."""
    try:
        config = _load(config_path, vigilance=vigilance)
        _setup(ctx, config)
        log_operation(logger, "classify", path=str(csv_path))

        data, labels = read_csv(Path(csv_path), label_column)
        data = min_max_normalize(data)
        order = np.random.default_rng(seed).permutation(len(data))
        n_test = int(round(len(data) * test_fraction))
        test_idx, train_idx = order[:n_test], order[n_test:]
        if not len(train_idx):
            raise click.ClickException("No rows left for training")

        model = SimpleARTMAP(config.build_engine(data.shape[1]), config.artmap_params())
        model.fit([data[i] for i in train_idx], [labels[i] for i in train_idx])
        train_acc = model.score([data[i] for i in train_idx], [labels[i] for i in train_idx])
        test_acc = model.score([data[i] for i in test_idx], [labels[i] for i in test_idx]) if n_test else None
    except ResonanceError as e:
        raise click.ClickException(e.message)

    stats = model.input_module.counters.snapshot()
    table = Table(title="ARTMAP classification")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Training rows", str(len(train_idx)))
    table.add_row("Test rows", str(n_test))
    table.add_row("Categories", str(model.input_module.category_count))
    table.add_row("Labels", str(len(model.map_field.targets())))
    table.add_row("Match-tracking events", str(stats['match_tracking_events']))
    table.add_row("Training accuracy", f"{train_acc:.3f}")
    table.add_row("Test accuracy", f"{test_acc:.3f}" if test_acc is not None else "-")
    console.print(table)


@cli.group(name="config")
def config_group():
    """Manage configuration."""
    pass


@config_group.command(name="init")
@click.option("--path", type=click.Path(), default=DEFAULT_CONFIG_NAME, show_default=True,
              help="Path for config file")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path, force):
    """Write a configuration file with default values."""
    config_path = Path(path)
    if config_path.exists() and not force:
        if not click.confirm(f"Config file {path} already exists. Overwrite?"):
            console.print("[yellow]Aborted[/yellow]")
            return
    EngineConfig().save_to_file(config_path)
    console.print(f"[green]✓ Created config file at {path}[/green]")


@config_group.command(name="show")
@click.option("--path", type=click.Path(exists=True), help="Path to config file")
def config_show(path):
    """Display the effective configuration."""
    try:
        config = load_config(path)
    except ResonanceError as e:
        raise click.ClickException(e.message)
    yaml_str = yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False)
    console.print(Panel(
        Syntax(yaml_str, "yaml", theme="monokai", line_numbers=True),
        title="[bold cyan]Resonance Engine Configuration[/bold cyan]",
        border_style="cyan"
    ))


@config_group.command(name="validate")
@click.option("--path", type=click.Path(exists=True), help="Path to config file")
def config_validate(path):
    """Validate a configuration file."""
    try:
        load_config(path)
    except ResonanceError as e:
        console.print("[red]✗ Configuration has validation errors[/red]")
        for error in e.details.get("errors", [e.message]):
            console.print(f"  [red]- {error}[/red]")
        raise SystemExit(1)
    console.print("[green]✓ Configuration is valid[/green]")


def main():
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
