"""
Chart parsers, and selection of the right one for a file.
"""
from pathlib import Path

from .base import Parser
from .bms import BMSParser
from .bmson import BMSONParser
from ..classes.chart import ChartModel

__all__ = [
    "BMS_EXTENSIONS",
    "BMSON_EXTENSIONS",
    "Parser",
    "BMSParser",
    "BMSONParser",
    "get_parser",
    "decode_chart",
]

BMS_EXTENSIONS = (".bms", ".bme", ".bml", ".pms")
BMSON_EXTENSIONS = (".bmson",)


def get_parser(path: str | Path, *, selected_randoms: list[int] | None = None) -> Parser:
    """
    Create a parser suited to a chart file, based on its extension.

    :param path: Path of the chart.
    :param selected_randoms: Values to use for ``#RANDOM`` blocks. Ignored for JSON charts.
    :raises OSError: if the extension is not a supported chart extension.
    """
    suffix = Path(path).suffix.lower()
    if suffix in BMSON_EXTENSIONS:
        return BMSONParser()
    if suffix in BMS_EXTENSIONS:
        return BMSParser(selected_randoms=selected_randoms)
    raise OSError(f"invalid file extension (got {suffix!r})")


def decode_chart(path: str | Path, *, selected_randoms: list[int] | None = None) -> ChartModel:
    """
    Read and decode a chart file.

    :param path: Path of the chart. The extension selects the format.
    :param selected_randoms: Values to use for ``#RANDOM`` blocks, in order of appearance.
    :returns: The decoded chart.
    :raises OSError: if the file cannot be read, or has an unsupported extension.
    :raises ChartDecodeError: if a JSON chart is structurally malformed.
    """
    return get_parser(path, selected_randoms=selected_randoms).decode(path)
