"""
pyPatchSwf.document module
==========================

Access to text tags and fonts of a SWF file.

pyPatchSwf does not read SWF files itself; the Document class describes what
the rest of the package needs from a SWF container. JPEXSExportDocument implements
it over a directory exported by the JPEXS Flash Decompiler
(https://github.com/jindrapetrik/jpexs-decompiler):

  * 'texts' - export from JPEXS in 'Formatted text' format, one 'texts/<id>.txt' per text tag
  * 'fonts' - export from JPEXS in 'TTF' format, as 'fonts/<id>_<name>.ttf' (optional)

The modified texts (and the fallback font, if one was added) are imported back
with JPEXS.

    >>> document = JPEXSExportDocument("./export")
    >>> texts = document.get_texts(12)
    >>> document.set_formatted_text(12, document.get_formatted_text(12), ["Bonjour"])
    True
    >>> document.mark_modified(12)
    >>> document.save()

"""

import logging
import os
import os.path as op
import re
from typing import Dict, List, Optional, Sequence, Set
from .errors import UnsupportedExportError
from .fonts import find_font_file, read_font_characters, read_font_data_characters, subset_font
from .formatted import FormattedText

logger = logging.getLogger(__name__)


class Document:
    """
    A base class for SWF text tag containers

    Text tags ('elements') are identified by their character ID.

    """
    def get_element_ids(self) -> List[int]:
        """Return IDs of text tags, in document order"""
        raise NotImplementedError

    def get_formatted_text(self, element_id: int) -> str:
        raise NotImplementedError

    def get_texts(self, element_id: int) -> List[str]:
        """Return text of each text record of the tag"""
        raise NotImplementedError

    def get_font_ids(self, element_id: int) -> Set[int]:
        """Return IDs of fonts used by the tag"""
        raise NotImplementedError

    def set_formatted_text(self, element_id: int, formatted_text: str, texts: Sequence[str]) -> bool:
        """
        Replace formatted text of the tag, with `texts` in place of its text records

        Return False (leaving the tag as it was) if the fonts cannot display the texts.

        """
        raise NotImplementedError

    def insert_font(self, position: int, characters: Set[str], family_name: str, size: int) -> int:
        """Add font with glyphs for given characters at `position` of the font table, return its ID"""
        raise NotImplementedError

    def mark_modified(self, element_id: int):
        raise NotImplementedError

    def save(self, path: str=None):
        raise NotImplementedError


class FontResource:
    """Font of the document with the set of characters it has glyphs for"""
    def __init__(self, font_id: int, name: str, characters: Optional[Set[str]],
                 path: str=None, data: bytes=None, size: int=None):
        self.font_id = font_id
        self.name = name
        self.characters = characters
        self.path = path
        self.data = data
        self.size = size

    @property
    def filename(self) -> str:
        return f"{self.font_id}_{self.name}.ttf"

    def covers(self, text: str) -> bool:
        if self.characters is None:
            return True
        return all(c in self.characters for c in text if c not in "\r\n")

    def __repr__(self):
        return f"<{self.__class__.__name__} font_id={self.font_id!r} name={self.name!r}>"


BOUNDS_PATTERN = re.compile(r"(?:^|[\r\n\[])xmin -?\d+")
TRAILING_LINE_BREAK_PATTERN = re.compile(r"(\r\n|\r|\n)\Z")


class TextSpan:
    """Chunk of formatted text: a bracketed parameter block or text between blocks"""
    def __init__(self, data: str, is_block: bool):
        self.data = data
        self.is_block = is_block

    @property
    def is_bounds_block(self) -> bool:
        return self.is_block and BOUNDS_PATTERN.search(self.data) is not None


def split_spans(formatted_text: str) -> List[TextSpan]:
    """Split formatted text into parameter blocks and text, honouring backslash escapes in text"""
    spans = []
    start = 0
    in_block = False
    i = 0

    while i < len(formatted_text):
        c = formatted_text[i]
        if c == "\\" and not in_block:
            i += 2
            continue
        if c == "[" and not in_block:
            if i > start:
                spans.append(TextSpan(formatted_text[start:i], is_block=False))
            start = i
            in_block = True
        elif c == "]" and in_block:
            spans.append(TextSpan(formatted_text[start:i+1], is_block=True))
            start = i + 1
            in_block = False
        i += 1

    if start < len(formatted_text):
        spans.append(TextSpan(formatted_text[start:], is_block=in_block))

    return spans


def escape_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")


def unescape_text(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text, flags=re.DOTALL)


def _split_line_break(text: str):
    m = TRAILING_LINE_BREAK_PATTERN.search(text)
    if m:
        return text[:m.start()], m.group(1)
    return text, ""


def _record_spans(spans: List[TextSpan]):
    """Yield (index of parameter block, index of text span or None, font ID or None) for each text record"""
    font_id = None

    for i, span in enumerate(spans):
        if not span.is_block or span.is_bounds_block:
            continue

        font_ids = FormattedText(span.data).font_ids()
        if font_ids:
            font_id = max(font_ids)

        if i + 1 < len(spans) and not spans[i+1].is_block:
            yield i, i + 1, font_id
        else:
            yield i, None, font_id


def get_record_texts(formatted_text: str) -> List[str]:
    """Return text of each text record in formatted text"""
    spans = split_spans(formatted_text)
    texts = []
    for _, index, _ in _record_spans(spans):
        if index is None:
            texts.append("")
        else:
            body, _ = _split_line_break(spans[index].data)
            texts.append(unescape_text(body))
    return texts


class JPEXSExportDocument(Document):
    """Document over a directory exported from JPEXS ('texts' as formatted text, 'fonts' as TTF)"""
    TEXTS_DIR = "texts"
    FONTS_DIR = "fonts"
    FONT_ID_PATTERN = re.compile(r"(\d+)[_.]")
    CHARACTER_ID_PATTERN = re.compile(r"(?:Define\w*?_)?(\d+)(?=[_.]|$)")

    def __init__(self, export_dir_path: str):
        self.path = export_dir_path
        self.formatted_texts: Dict[int, str] = {}
        self.fonts: List[FontResource] = []
        self.modified: Set[int] = set()
        self.inserted_fonts: List[FontResource] = []
        self._unknown_font_ids: Set[int] = set()

        texts_dir = op.join(export_dir_path, self.TEXTS_DIR)
        if not op.isdir(texts_dir):
            raise UnsupportedExportError(f"No '{self.TEXTS_DIR}' directory in {export_dir_path}")

        for element_id, path in sorted(self._find_numbered_files(texts_dir, (".txt",))):
            # keep line breaks as they are, the file is written back
            with open(path, encoding="utf-8", newline="") as fp:
                data = fp.read()
            if not data.lstrip().startswith("["):
                logger.warning("Skipping %s - not exported as 'Formatted text'", path)
                continue
            self.formatted_texts[element_id] = data

        fonts_dir = op.join(export_dir_path, self.FONTS_DIR)
        if op.isdir(fonts_dir):
            for font_id, path in sorted(self._find_numbered_files(fonts_dir, (".ttf", ".otf"))):
                name = op.splitext(op.basename(path))[0].partition("_")[2]
                self.fonts.append(FontResource(font_id, name, read_font_characters(path), path=path))

    @classmethod
    def _find_numbered_files(cls, dir_path: str, extensions):
        for filename in os.listdir(dir_path):
            if op.splitext(filename)[1].lower() not in extensions:
                continue
            m = cls.FONT_ID_PATTERN.match(filename)
            if m:
                yield int(m.group(1)), op.join(dir_path, filename)

    def get_element_ids(self) -> List[int]:
        return list(self.formatted_texts)

    def get_formatted_text(self, element_id: int) -> str:
        return self.formatted_texts[element_id]

    def get_texts(self, element_id: int) -> List[str]:
        return get_record_texts(self.formatted_texts[element_id])

    def get_font_ids(self, element_id: int) -> Set[int]:
        return FormattedText(self.formatted_texts[element_id]).font_ids()

    def get_font(self, font_id: int) -> Optional[FontResource]:
        for font in self.fonts:
            if font.font_id == font_id:
                return font
        return None

    def _covers(self, font_id: Optional[int], text: str) -> bool:
        if font_id is None:
            return True
        font = self.get_font(font_id)
        if font is None:
            if font_id not in self._unknown_font_ids:
                self._unknown_font_ids.add(font_id)
                logger.warning("Font %d was not exported, cannot check its glyphs", font_id)
            return True
        return font.covers(text)

    def set_formatted_text(self, element_id: int, formatted_text: str, texts: Sequence[str]) -> bool:
        spans = split_spans(formatted_text)
        records = list(_record_spans(spans))

        if len(records) != len(texts):
            logger.debug("Text tag %d has %d text records, got %d texts",
                         element_id, len(records), len(texts))
            return False

        replacements: Dict[int, List[TextSpan]] = {}
        for (block_index, index, font_id), text in zip(records, texts):
            if not self._covers(font_id, text):
                logger.debug("Font %s of text tag %d cannot display %r", font_id, element_id, text)
                return False

            if index is not None:
                _, line_break = _split_line_break(spans[index].data)
                replacements[index] = [TextSpan(escape_text(text) + line_break, is_block=False)]
            elif text:
                # record without text, the new text goes right after its block
                replacements[block_index] = [spans[block_index], TextSpan(escape_text(text), is_block=False)]

        self.formatted_texts[element_id] = "".join(new_span.data
                                                   for i, span in enumerate(spans)
                                                   for new_span in replacements.get(i, [span]))
        return True

    def _exported_character_ids(self):
        """Yield IDs in names of everything exported ('shapes/4.svg', 'sprites/DefineSprite_7', ...)"""
        for dir_name in os.listdir(self.path):
            dir_path = op.join(self.path, dir_name)
            if not op.isdir(dir_path):
                continue
            for name in os.listdir(dir_path):
                m = self.CHARACTER_ID_PATTERN.match(name)
                if m:
                    yield int(m.group(1))

    def _next_character_id(self) -> int:
        used_ids = set(self._exported_character_ids())
        used_ids.update(self.formatted_texts)
        used_ids.update(font.font_id for font in self.fonts)
        # fonts which were not exported still have their IDs
        for element_id in self.formatted_texts:
            used_ids.update(self.get_font_ids(element_id))
        return max(used_ids, default=0) + 1

    def insert_font(self, position: int, characters: Set[str], family_name: str, size: int) -> int:
        source_path = find_font_file(family_name)
        data = subset_font(source_path, characters)
        name = re.sub(r"[^\w-]+", "", op.splitext(op.basename(family_name))[0]) or "fallback"

        font = FontResource(self._next_character_id(), name, read_font_data_characters(data),
                            data=data, size=size)
        self.fonts.insert(position, font)
        self.inserted_fonts.append(font)

        missing = set(characters) - font.characters - set("\r\n")
        if missing:
            logger.warning("Font %s has no glyphs for %d characters: %r",
                           source_path, len(missing), "".join(sorted(missing)))

        logger.info("Added font %d from %s (%d characters, size %d)",
                    font.font_id, source_path, len(font.characters), size)
        return font.font_id

    def mark_modified(self, element_id: int):
        self.modified.add(element_id)

    def save(self, path: str=None):
        """Write modified texts and added fonts to given export directory (default: the original one)"""
        output_path = path if path is not None else self.path

        if self.modified:
            texts_dir = op.join(output_path, self.TEXTS_DIR)
            os.makedirs(texts_dir, exist_ok=True)
            for element_id in sorted(self.modified):
                with open(op.join(texts_dir, f"{element_id}.txt"), "w", encoding="utf-8", newline="") as fp:
                    fp.write(self.formatted_texts[element_id])

        if self.inserted_fonts:
            fonts_dir = op.join(output_path, self.FONTS_DIR)
            os.makedirs(fonts_dir, exist_ok=True)
            for font in self.inserted_fonts:
                with open(op.join(fonts_dir, font.filename), "wb") as fp:
                    fp.write(font.data)

    def __repr__(self):
        return f"<{self.__class__.__name__} path={self.path!r}>"
