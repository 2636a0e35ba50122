"""
pyPatchSwf.fonts module
=======================

Font helpers based on fontTools: reading which characters a font covers,
locating an installed font by family name and subsetting it to a set of
characters. These are used to build the fallback font for text tags whose
own font lacks glyphs for the translated text.

"""

import io
import logging
import os
import os.path as op
import sys
from typing import Iterable, List, Optional, Set
from fontTools.subset import Options, Subsetter
from fontTools.ttLib import TTFont, TTLibError
from .errors import FontNotFoundError

logger = logging.getLogger(__name__)

FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")

# name table IDs
NAME_FAMILY = 1
NAME_SUBFAMILY = 2
NAME_FULL_NAME = 4


def get_system_font_dirs() -> List[str]:
    if sys.platform == "win32":
        windir = os.environ.get("WINDIR", r"C:\Windows")
        dirs = [op.join(windir, "Fonts"),
                op.join(os.environ.get("LOCALAPPDATA", ""), "Microsoft", "Windows", "Fonts")]
    elif sys.platform == "darwin":
        dirs = ["/System/Library/Fonts", "/Library/Fonts", op.expanduser("~/Library/Fonts")]
    else:
        dirs = ["/usr/share/fonts", "/usr/local/share/fonts",
                op.expanduser("~/.local/share/fonts"), op.expanduser("~/.fonts")]

    return [d for d in dirs if op.isdir(d)]


def _open_font(path: str, lazy=True) -> TTFont:
    if path.lower().endswith(".ttc"):
        return TTFont(path, fontNumber=0, lazy=lazy)
    return TTFont(path, lazy=lazy)


def read_font_characters(path: str) -> Set[str]:
    """Return characters that have a glyph in the font file"""
    font = _open_font(path)
    try:
        cmap = font.getBestCmap() or {}
        return {chr(codepoint) for codepoint in cmap}
    finally:
        font.close()


def _recursive_find_fonts(starting_dir: str):
    for root, dirs, files in os.walk(starting_dir):
        for filename in sorted(files):
            if op.splitext(filename)[1].lower() in FONT_EXTENSIONS:
                yield op.join(root, filename)


def find_font_file(family_name: str, search_dirs: Optional[List[str]]=None) -> str:
    """
    Return path to font file for given family name (or path to the font file itself)

    The family name is matched case-insensitively against the family and full name
    of fonts in `search_dirs` (system font directories by default). The 'Regular'
    style is preferred when there are several matches.

    """
    if op.isfile(family_name):
        return family_name

    if search_dirs is None:
        search_dirs = get_system_font_dirs()

    wanted = family_name.casefold()
    candidates = []

    for search_dir in search_dirs:
        for path in _recursive_find_fonts(search_dir):
            try:
                font = _open_font(path)
            except (TTLibError, OSError) as e:
                logger.debug("Skipping unreadable font %s: %s", path, e)
                continue

            try:
                name_table = font["name"]
                family = name_table.getDebugName(NAME_FAMILY) or ""
                full_name = name_table.getDebugName(NAME_FULL_NAME) or ""
                subfamily = name_table.getDebugName(NAME_SUBFAMILY) or ""
            except KeyError:
                continue
            finally:
                font.close()

            if wanted in (family.casefold(), full_name.casefold()):
                candidates.append((subfamily.casefold() != "regular", path))

    if not candidates:
        raise FontNotFoundError(f"Cannot find font {family_name!r} in {search_dirs}")

    candidates.sort()
    return candidates[0][1]


def subset_font(path: str, characters: Iterable[str]) -> bytes:
    """Return font file data with glyphs for given characters only"""
    font = _open_font(path, lazy=False)
    try:
        options = Options()
        options.name_IDs = ["*"]
        options.notdef_glyph = True
        options.notdef_outline = True

        subsetter = Subsetter(options=options)
        subsetter.populate(text="".join(sorted(set(characters))))
        subsetter.subset(font)

        buffer = io.BytesIO()
        font.save(buffer)
        return buffer.getvalue()
    finally:
        font.close()


def read_font_data_characters(data: bytes) -> Set[str]:
    """Like read_font_characters(), for font file data in memory"""
    font = TTFont(io.BytesIO(data))
    try:
        cmap = font.getBestCmap() or {}
        return {chr(codepoint) for codepoint in cmap}
    finally:
        font.close()
