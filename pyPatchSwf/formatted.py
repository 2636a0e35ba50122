"""
pyPatchSwf.formatted module
===========================

Code to read and rewrite style directives in formatted text of SWF text tags.

The JPEXS Flash Decompiler (https://github.com/jindrapetrik/jpexs-decompiler)
exports static text tags in 'Formatted text' format: bracketed parameter blocks
with one directive per line, each block followed by the text of one text record:

    [
    xmin 0
    ymin 0
    xmax 2400
    ymax 480
    ]
    [
    font 3
    height 240
    letterspacing 0
    color #ff000000
    x 0
    y 200
    ]Hello

FormattedText splits such a blob into line tokens, so that directive values can
be read and replaced by position while everything else is kept byte for byte:

    >>> text = FormattedText(blob)
    >>> [token.value for token in text.directives(HEIGHT)]
    ['240']
    >>> text.directives(HEIGHT)[0].set_value(200)
    >>> new_blob = text.render()

Text records and their style directives are associated purely by position:
the i-th text record gets the i-th 'height', the i-th 'letterspacing' and the
i-th 'color' directive, each kind counted on its own.

"""

import re
from typing import Iterable, List, NamedTuple, Optional, Sequence, Set

HEIGHT = "height"
LETTER_SPACING = "letterspacing"
COLOR = "color"
FONT = "font"

STYLE_KINDS = (HEIGHT, LETTER_SPACING, COLOR)

DIRECTIVE_PATTERNS = {
    HEIGHT: re.compile(r"height (\d+)"),
    LETTER_SPACING: re.compile(r"letterspacing (-?\d+)"),
    COLOR: re.compile(r"color (.+)"),
    FONT: re.compile(r"font (\d+)"),
}

LINE_BREAK_PATTERN = re.compile(r"(\r\n|\r|\n)")


class RunStyle(NamedTuple):
    """Style of one text record, None means there is no directive for it"""
    height: Optional[int] = None
    letter_spacing: Optional[int] = None
    color: Optional[str] = None


class Token:
    """One line of formatted text: a directive (kind is set) or a literal line (kind is None)"""
    def __init__(self, line: str, line_break: str):
        self.line = line
        self.line_break = line_break
        self.kind: Optional[str] = None
        self.value: Optional[str] = None

        for kind, pattern in DIRECTIVE_PATTERNS.items():
            m = pattern.fullmatch(line)
            if m:
                self.kind = kind
                self.value = m.group(1)
                break

    def set_value(self, value):
        if self.kind is None:
            raise ValueError("Cannot set value of a literal line")

        value = str(value)
        if value != self.value:
            self.value = value
            self.line = f"{self.kind} {value}"

    def render(self) -> str:
        return self.line + self.line_break

    def __repr__(self):
        return f"<{self.__class__.__name__} kind={self.kind!r} line={self.line!r}>"


class FormattedText:
    """Formatted text tokenized into lines"""
    def __init__(self, text: str):
        self.tokens: List[Token] = []

        # re.split() with a capturing group alternates lines and line breaks
        parts = LINE_BREAK_PATTERN.split(text)
        for i in range(0, len(parts), 2):
            line = parts[i]
            line_break = parts[i+1] if i + 1 < len(parts) else ""
            if line or line_break:
                self.tokens.append(Token(line, line_break))

    def directives(self, kind: str) -> List[Token]:
        """Return directive tokens of given kind, in document order"""
        return [token for token in self.tokens if token.kind == kind]

    def font_ids(self) -> Set[int]:
        return {int(token.value) for token in self.directives(FONT)}

    def render(self) -> str:
        return "".join(token.render() for token in self.tokens)

    def __str__(self):
        return self.render()


def _get_or_none(values: list, index: int):
    return values[index] if index < len(values) else None


def extract_styles(formatted_text: str, run_count: int) -> List[RunStyle]:
    """
    Return style of each of the first `run_count` text records

    Kinds with fewer directives than runs give None for the trailing runs,
    surplus directives are ignored.

    """
    text = FormattedText(formatted_text)
    heights = [int(token.value) for token in text.directives(HEIGHT)]
    letter_spacings = [int(token.value) for token in text.directives(LETTER_SPACING)]
    colors = [token.value for token in text.directives(COLOR)]

    return [RunStyle(height=_get_or_none(heights, i),
                     letter_spacing=_get_or_none(letter_spacings, i),
                     color=_get_or_none(colors, i))
            for i in range(run_count)]


def patch_styles(formatted_text: str, styles: Sequence[RunStyle]) -> str:
    """
    Write style of each run into its directives, returning new formatted text

    The i-th style goes to the i-th directive of each kind. None values and
    runs without a matching directive leave the text as it is.

    """
    text = FormattedText(formatted_text)
    directives = {kind: text.directives(kind) for kind in STYLE_KINDS}

    for i, style in enumerate(styles):
        for kind, value in zip(STYLE_KINDS, style):
            if value is None or i >= len(directives[kind]):
                continue
            directives[kind][i].set_value(value)

    return text.render()


def retarget_fonts(formatted_text: str, old_font_ids: Iterable[int], new_font_id: int) -> str:
    """Point 'font <id>' directives with one of `old_font_ids` to `new_font_id`"""
    old_font_ids = set(old_font_ids)
    text = FormattedText(formatted_text)

    for token in text.directives(FONT):
        if int(token.value) in old_font_ids:
            token.set_value(new_font_id)

    return text.render()
