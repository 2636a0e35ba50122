import json
from pyPatchSwf import PyPatchSwfCLI


FORMATTED_TEXT = """\
[
xmin 0
ymin 0
xmax 2400
ymax 480
]
[
font 3
height 20
letterspacing -1
color #ff000000
x 0
y 200
]Hello
[
x 0
y 400
]"""


def make_export(tmp_path, build_font):
    export_dir = tmp_path / "export"
    (export_dir / "texts").mkdir(parents=True)
    (export_dir / "fonts").mkdir()
    (export_dir / "texts" / "7.txt").write_text(FORMATTED_TEXT, encoding="utf-8")
    build_font(export_dir / "fonts" / "3_Original.ttf", "HeloBnjur")
    return export_dir


def test_gather_and_export(tmp_path, build_font):
    export_dir = make_export(tmp_path, build_font)
    records_path = tmp_path / "records.json"

    assert PyPatchSwfCLI().run(["gather", str(export_dir), "-o", str(records_path)]) == 0

    with open(records_path, encoding="utf-8") as fp:
        records = json.load(fp)
    assert records == [
        {"id": 7,
         "rows": [
             {"originalText": "Hello", "translatedText": "", "height": 20, "letterSpacing": -1,
              "color": "#ff000000"},
             {"originalText": "", "translatedText": "", "height": None, "letterSpacing": None,
              "color": None},
         ]},
    ]

    records[0]["rows"][0]["translatedText"] = "Bonjour"
    with open(records_path, "w", encoding="utf-8") as fp:
        json.dump(records, fp)

    output_dir = tmp_path / "output"
    assert PyPatchSwfCLI().run(["export", str(export_dir), str(records_path), "-o", str(output_dir)]) == 0

    assert (output_dir / "texts" / "7.txt").read_text(encoding="utf-8") == \
        FORMATTED_TEXT.replace("height 20", "height 14") \
                      .replace("letterspacing -1", "letterspacing 0") \
                      .replace("]Hello", "]Bonjour")
    assert not (output_dir / "fonts").exists()
    # export directory is untouched
    assert (export_dir / "texts" / "7.txt").read_text(encoding="utf-8") == FORMATTED_TEXT


def test_export_with_fallback_font(tmp_path, build_font):
    export_dir = make_export(tmp_path, build_font)
    fallback_path = build_font(tmp_path / "Fallback.ttf", "HeloПривет")
    records_path = tmp_path / "records.json"
    records_path.write_text(json.dumps([
        {"id": 7,
         "rows": [
             {"originalText": "Hello", "translatedText": "Привет", "height": 20, "letterSpacing": -1,
              "color": "#ff000000"},
             {"originalText": "", "translatedText": "", "height": None, "letterSpacing": None,
              "color": None},
         ]},
        {"id": 99, "rows": []},
    ]), encoding="utf-8")

    exit_code = PyPatchSwfCLI().run(["export", str(export_dir), str(records_path),
                                     "--font", fallback_path, "--no-rescale"])

    # text tag 99 does not exist
    assert exit_code == 1
    patched_text = (export_dir / "texts" / "7.txt").read_text(encoding="utf-8")
    assert patched_text == FORMATTED_TEXT.replace("font 3", "font 8").replace("]Hello", "]Привет")
    assert (export_dir / "fonts" / "8_Fallback.ttf").exists()


def test_export_missing_records(tmp_path, build_font, capsys):
    export_dir = make_export(tmp_path, build_font)
    records_path = tmp_path / "records.json"
    records_path.write_text("[{]", encoding="utf-8")

    assert PyPatchSwfCLI().run(["export", str(export_dir), str(records_path)]) == 1
    assert "Error -" in capsys.readouterr().out
