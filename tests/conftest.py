import json
import textwrap

import pytest

from bmsparser.parser import BMSONParser, BMSParser


def parse_bms(text: str, name: str = "chart.bms", **kwargs):
    return BMSParser(**kwargs).parse(textwrap.dedent(text).strip().encode("utf-8"), name)


def make_bmson(**overrides) -> dict:
    document = {
        "version": "1.0.0",
        "info": {"title": "Song", "init_bpm": 120, "resolution": 240},
        "sound_channels": [],
    }
    document.update(overrides)
    return document


def parse_bmson(document: dict, name: str = "chart.bmson", **kwargs):
    return BMSONParser(**kwargs).parse(json.dumps(document).encode("utf-8"), name)


@pytest.fixture
def write_chart(tmp_path):
    def _write(name: str, content: str | bytes | dict):
        if isinstance(content, dict):
            content = json.dumps(content)
        if isinstance(content, str):
            content = textwrap.dedent(content).strip().encode("utf-8")
        path = tmp_path / name
        path.write_bytes(content)
        return path

    return _write
