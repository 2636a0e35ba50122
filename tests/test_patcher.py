from pyPatchSwf import Document, FormattedText, PatchConfig, RunRecord, TextRecord, TextPatcher, FontFallbackResolver
from pyPatchSwf.document import get_record_texts
from pyPatchSwf.patcher import rescale_style
from pyPatchSwf.formatted import RunStyle


class MemoryDocument(Document):
    """Document kept in memory, fonts are given as sets of characters"""
    def __init__(self, formatted_texts, fonts, fallback_font_id=9001, fallback_missing=""):
        self.formatted_texts = dict(formatted_texts)
        self.fonts = {font_id: set(characters) for font_id, characters in fonts.items()}
        self.fallback_font_id = fallback_font_id
        self.fallback_missing = set(fallback_missing)
        self.set_calls = []
        self.inserted_fonts = []
        self.modified = set()

    def get_element_ids(self):
        return list(self.formatted_texts)

    def get_formatted_text(self, element_id):
        return self.formatted_texts[element_id]

    def get_texts(self, element_id):
        return get_record_texts(self.formatted_texts[element_id])

    def get_font_ids(self, element_id):
        return FormattedText(self.formatted_texts[element_id]).font_ids()

    def set_formatted_text(self, element_id, formatted_text, texts):
        self.set_calls.append((element_id, formatted_text, list(texts)))
        characters = set()
        for font_id in FormattedText(formatted_text).font_ids():
            characters |= self.fonts.get(font_id, set())
        if any(c not in characters for text in texts for c in text):
            return False
        self.formatted_texts[element_id] = formatted_text
        return True

    def insert_font(self, position, characters, family_name, size):
        self.inserted_fonts.append((position, set(characters), family_name, size))
        self.fonts[self.fallback_font_id] = set(characters) - self.fallback_missing
        return self.fallback_font_id

    def mark_modified(self, element_id):
        self.modified.add(element_id)


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

OTHER_FORMATTED_TEXT = """\
[
xmin 0
ymin 0
xmax 2400
ymax 480
]
[
font 4
height 240
color #ff000000
]Exit"""


def hello_record(translated_text, element_id=1):
    return TextRecord(element_id, [
        RunRecord("Hello", translated_text, height=20, letter_spacing=-1, color="#ff000000"),
        RunRecord("", "", height=None, letter_spacing=None, color=None),
    ])


def test_rescale_style():
    row = RunRecord("Hello", "Bonjour", height=20, letter_spacing=-1, color="#ff000000")
    assert rescale_style(row) == RunStyle(height=14, letter_spacing=0, color="#ff000000")

    # rounding half up: 15 * 1 / 2 = 7.5 -> 8 is not above the floor
    row = RunRecord("a", "ab", height=15)
    assert rescale_style(row).height == 15

    row = RunRecord("ab", "abcd", height=19)
    assert rescale_style(row).height == 10


def test_rescale_style_keeps_floor():
    row = RunRecord("Hi", "Hello there", height=10)
    assert rescale_style(row).height == 10

    row = RunRecord("Hi", "Hello there", height=200)
    assert rescale_style(row).height == 36


def test_rescale_style_untranslated():
    row = RunRecord("Hello", "", height=20, letter_spacing=-3)
    assert rescale_style(row) == RunStyle(height=20, letter_spacing=0, color=None)

    row = RunRecord("Hello", "", height=None, letter_spacing=None, color=None)
    assert rescale_style(row) == RunStyle()


def test_patch_translated_run():
    document = MemoryDocument({1: FORMATTED_TEXT}, {3: "HeloBnjur"})
    report = TextPatcher(document).patch_all([hello_record("Bonjour")])

    assert report.patched_ids == [1]
    assert report.failures == []
    assert report.fallback_font_id is None
    assert document.inserted_fonts == []
    assert document.modified == {1}

    [(element_id, formatted_text, texts)] = document.set_calls
    assert element_id == 1
    assert texts == ["Bonjour", ""]
    assert formatted_text == FORMATTED_TEXT.replace("height 20", "height 14") \
                                           .replace("letterspacing -1", "letterspacing 0")


def test_patch_untranslated_run_passes_through():
    document = MemoryDocument({1: FORMATTED_TEXT}, {3: "Helo"})
    report = TextPatcher(document).patch_all([hello_record("")])

    assert report.patched_ids == [1]
    [(_, formatted_text, texts)] = document.set_calls
    assert texts == ["Hello", ""]
    assert "height 20\n" in formatted_text


def test_patch_without_rescale():
    document = MemoryDocument({1: FORMATTED_TEXT}, {3: "HeloBnjur"})
    TextPatcher(document, PatchConfig(rescale_styles=False)).patch_all([hello_record("Bonjour")])

    [(_, formatted_text, _)] = document.set_calls
    assert formatted_text == FORMATTED_TEXT


def test_patch_is_idempotent():
    document = MemoryDocument({1: FORMATTED_TEXT}, {3: "HeloBnjur"})
    records = [hello_record("Bonjour")]
    TextPatcher(document).patch_all(records)
    TextPatcher(document).patch_all(records)

    first_call, second_call = document.set_calls
    assert first_call == second_call


def test_fallback_font():
    document = MemoryDocument({1: FORMATTED_TEXT}, {3: "Helo"})
    report = TextPatcher(document).patch_all([hello_record("Привет")])

    assert report.patched_ids == [1]
    assert report.failures == []
    assert report.fallback_font_id == 9001

    [(position, characters, family_name, size)] = document.inserted_fonts
    assert position == 0
    assert characters == set("HelloПривет")
    assert family_name == "Arial"
    assert size == 18

    first_call, second_call = document.set_calls
    assert "font 3\n" in first_call[1]
    assert "font 3\n" not in second_call[1]
    assert "font 9001\n" in second_call[1]
    assert second_call[2] == ["Привет", ""]
    assert document.modified == {1}


def test_fallback_font_is_added_once_for_whole_batch():
    document = MemoryDocument({1: FORMATTED_TEXT, 2: FORMATTED_TEXT, 3: OTHER_FORMATTED_TEXT},
                              {3: "Helo", 4: "ExitSortie"})
    records = [
        hello_record("Привет", element_id=1),
        hello_record("Здравствуйте", element_id=2),
        TextRecord(3, [RunRecord("Exit", "Sortie", height=240, color="#ff000000")]),
    ]
    config = PatchConfig(fallback_font_family="DejaVu Sans", fallback_font_size=12)
    report = TextPatcher(document, config).patch_all(records)

    assert sorted(report.patched_ids) == [1, 2, 3]
    # text tag 3 was fine with its own font, its characters are in the fallback font anyway
    [(_, characters, family_name, size)] = document.inserted_fonts
    assert characters == set("HelloПриветЗдравствуйтеExitSortie")
    assert family_name == "DejaVu Sans"
    assert size == 12
    assert [element_id for element_id, _, _ in document.set_calls] == [1, 2, 3, 1, 2]


def test_fallback_font_failure_is_fatal():
    document = MemoryDocument({1: FORMATTED_TEXT, 2: OTHER_FORMATTED_TEXT},
                              {3: "Helo", 4: "Exit"},
                              fallback_missing="ж")
    records = [
        hello_record("Пожалуйста", element_id=1),
        TextRecord(2, [RunRecord("Exit", "", height=240, color="#ff000000")]),
    ]
    report = TextPatcher(document).patch_all(records)

    assert report.failed_ids == [1]
    assert report.patched_ids == [2]
    assert report.fallback_font_id == 9001
    assert document.modified == {2}
    # no third attempt
    assert [element_id for element_id, _, _ in document.set_calls] == [1, 2, 1]
    assert document.formatted_texts[1] == FORMATTED_TEXT


def test_row_count_mismatch():
    document = MemoryDocument({1: FORMATTED_TEXT}, {3: "Helo"})
    record = TextRecord(1, [RunRecord("Hello", "Привет", height=20)])
    report = TextPatcher(document).patch_all([record])

    assert report.failed_ids == [1]
    assert document.set_calls == []
    assert document.inserted_fonts == []


def test_unknown_text_tag():
    document = MemoryDocument({1: FORMATTED_TEXT}, {3: "Helo"})
    report = TextPatcher(document).patch_all([hello_record("", element_id=1), hello_record("", element_id=77)])

    assert report.patched_ids == [1]
    assert report.failed_ids == [77]


def test_duplicate_record():
    document = MemoryDocument({1: FORMATTED_TEXT}, {3: "HeloBnjur"})
    report = TextPatcher(document).patch_all([hello_record("Bonjour"), hello_record("Hola")])

    # first record wins, the duplicate is reported
    assert report.patched_ids == [1]
    assert report.failed_ids == [1]
    assert report.failures[0].reason == "duplicate record"
    [(_, _, texts)] = document.set_calls
    assert texts == ["Bonjour", ""]


def test_text_tags_without_record_are_left_alone():
    document = MemoryDocument({1: FORMATTED_TEXT, 2: OTHER_FORMATTED_TEXT}, {3: "Helo", 4: "Exit"})
    report = TextPatcher(document).patch_all([hello_record("", element_id=1)])

    assert report.patched_ids == [1]
    assert document.modified == {1}
    assert document.formatted_texts[2] == OTHER_FORMATTED_TEXT


def test_resolver_allocates_once():
    document = MemoryDocument({1: FORMATTED_TEXT}, {3: "Helo"})
    resolver = FontFallbackResolver(document, PatchConfig())
    records = [hello_record("Привет")]

    assert resolver.resolve(records) == 9001
    assert resolver.resolve(records) == 9001
    assert len(document.inserted_fonts) == 1

    assert FontFallbackResolver.collect_characters(records) == set("HelloПривет")
    assert "font 9001\n" in resolver.retarget(1, FORMATTED_TEXT)
