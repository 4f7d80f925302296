import io
import json
import math
import os

import pandas as pd
from rich import box
from rich.console import Console
from rich.table import Table

from probe_config import BYTES_BASED_VALUES, OUTPUT_FORMATS
from probe_errors import ResourceError, ValidationError

CSV_COLUMNS = ["metric", "average", "min", "median", "max", "standardDeviation"]


# ================= HUMANIZE =================

def bytes_to_size(num_bytes):
    sizes = ["Bytes", "KB", "MB", "GB", "TB"]
    if num_bytes <= 0:
        return "0 Byte"
    if num_bytes < 1:
        return f"{num_bytes:.2f} Bytes"
    i = min(int(math.floor(math.log(num_bytes, 1024))), len(sizes) - 1)
    return f"{num_bytes / math.pow(1024, i):.2f} {sizes[i]}"


def add_ms_suffix(ms):
    return f"{math.floor(ms)} ms"


def to_readable_value(key, value):
    if key in BYTES_BASED_VALUES:
        return bytes_to_size(value)
    return add_ms_suffix(value)


# ================= RENDERERS =================

def to_raw(result):
    return json.dumps([entry.as_dict() for entry in result], indent=2)


def to_json(result):
    return json.dumps({entry.key: entry.metrics.as_dict() for entry in result})


def to_dataframe(result):
    rows = [{"metric": entry.key, **entry.metrics.as_dict()} for entry in result]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def to_csv(result):
    return to_dataframe(result).to_csv(index=False)


def build_table(result):
    table = Table(box=box.SIMPLE_HEAVY, header_style="bold blue")
    table.add_column("")
    for column in CSV_COLUMNS[1:]:
        table.add_column(column, justify="right")

    for entry in result:
        stats = entry.metrics
        table.add_row(
            f"[bold]{entry.key}[/bold]",
            to_readable_value(entry.key, stats.average),
            to_readable_value(entry.key, stats.min),
            to_readable_value(entry.key, stats.median),
            to_readable_value(entry.key, stats.max),
            to_readable_value(entry.key, stats.standard_deviation),
        )
    return table


def to_table(result, color=False):
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=color, no_color=not color, width=120)
    console.print(build_table(result))
    return buffer.getvalue()


def validate_output_format(output_format):
    if output_format not in OUTPUT_FORMATS:
        raise ValidationError(
            f"Unsupported output format '{output_format}' (choose from {', '.join(OUTPUT_FORMATS)})"
        )
    return output_format


def render(result, output_format, color=False):
    validate_output_format(output_format)

    if output_format == "table":
        return to_table(result, color=color)
    if output_format == "json":
        return to_json(result)
    if output_format == "csv":
        return to_csv(result)
    return to_raw(result)


def write_output(text, path):
    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", newline="") as f:
            f.write(text)
    except OSError as e:
        raise ResourceError(f"Could not write output file {path}: {e}") from e
    return path
