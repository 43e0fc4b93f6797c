import pytest

from bmsparser import decode_chart, get_parser
from bmsparser.classes.enums import PlayMode
from bmsparser.parser import BMSONParser, BMSParser
from conftest import make_bmson


def test_get_parser_by_extension():
    assert isinstance(get_parser("chart.bms"), BMSParser)
    assert isinstance(get_parser("chart.BME"), BMSParser)
    assert isinstance(get_parser("chart.bml"), BMSParser)
    assert isinstance(get_parser("chart.pms"), BMSParser)
    assert isinstance(get_parser("chart.bmson"), BMSONParser)
    assert get_parser("chart.bms", selected_randoms=[2]).selected_randoms == [2]


@pytest.mark.parametrize("name", ["chart.txt", "chart", "chart.json"])
def test_unsupported_extension(name):
    with pytest.raises(OSError):
        get_parser(name)


def test_decode_tagged_chart(write_chart):
    path = write_chart(
        "Chart.BMS",
        """
        #TITLE Tagged
        #BPM 120
        #00111:01
        """,
    )
    model = decode_chart(path)
    assert model.title == "Tagged"
    assert [note.time_us for note in model.notes] == [2_000_000]


def test_decode_pms_chart(write_chart):
    path = write_chart("chart.pms", "#00111:01")
    assert decode_chart(path).play_mode is PlayMode.POPN_9K


def test_decode_json_chart(write_chart):
    path = write_chart("chart.bmson", make_bmson(sound_channels=[{"name": "a.wav", "notes": [{"x": 1, "y": 0}]}]))
    model = decode_chart(path)
    assert model.title == "Song"
    assert len(model.notes) == 1
    assert model.sound_table == {0: path.parent / "a.wav"}


def test_decode_with_selected_randoms(write_chart):
    path = write_chart(
        "chart.bms",
        """
        #RANDOM 2
        #IF 1
        #00111:01
        #ENDIF
        #IF 2
        #00112:01
        #ENDIF
        #ENDRANDOM
        """,
    )
    assert [note.lane for note in decode_chart(path, selected_randoms=[2]).notes] == [1]


def test_missing_file(tmp_path):
    with pytest.raises(OSError):
        decode_chart(tmp_path / "missing.bms")
