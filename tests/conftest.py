import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen


def _square_glyph():
    pen = TTGlyphPen(None)
    pen.moveTo((100, 0))
    pen.lineTo((100, 500))
    pen.lineTo((500, 500))
    pen.lineTo((500, 0))
    pen.closePath()
    return pen.glyph()


def write_test_font(path, characters: str, family_name: str="Test Sans", style_name: str="Regular"):
    """Write a TrueType font with a square glyph for each of given characters"""
    characters = sorted(set(characters))
    glyph_names = {c: f"uni{ord(c):04X}" for c in characters}
    glyph_order = [".notdef"] + [glyph_names[c] for c in characters]

    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder(glyph_order)
    fb.setupCharacterMap({ord(c): name for c, name in glyph_names.items()})
    fb.setupGlyf({name: _square_glyph() for name in glyph_order})
    fb.setupHorizontalMetrics({name: (600, 100) for name in glyph_order})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": family_name, "styleName": style_name})
    fb.setupOS2(sTypoAscender=800, usWinAscent=800, usWinDescent=200)
    fb.setupPost()
    fb.save(str(path))
    return str(path)


@pytest.fixture
def build_font():
    return write_test_font
