"""
pyPatchSwf.patcher module
=========================

Code to write (translated) text records back into text tags of a Document.

For each text tag with a TextRecord, TextPatcher updates style directives of its
formatted text (see pyPatchSwf.formatted) and hands it to the Document together
with the new text of each record. The Document refuses text which the tag's fonts
have no glyphs for; such tags are retried once, after all tags have been tried,
with their fonts replaced by a fallback font that FontFallbackResolver adds to
the document. The fallback font is built once per batch from every character of
every record, original and translated:

    >>> patcher = TextPatcher(document, PatchConfig(fallback_font_family="Arial"))
    >>> report = patcher.patch_all(records)
    >>> report.failed_ids
    []
    >>> document.save()

"""

import logging
import math
from enum import Enum
from typing import Dict, List, Optional, Set
from .formatted import RunStyle, patch_styles, retarget_fonts
from .records import RunRecord, TextRecord

logger = logging.getLogger(__name__)

MIN_RESCALED_HEIGHT = 8


class PatchConfig:
    """Settings of TextPatcher"""
    DEFAULT_FONT_FAMILY = "Arial"
    DEFAULT_FONT_SIZE = 18
    DEFAULT_FONT_POSITION = 0

    def __init__(self,
                 fallback_font_family: str=DEFAULT_FONT_FAMILY,
                 fallback_font_size: int=DEFAULT_FONT_SIZE,
                 fallback_font_position: int=DEFAULT_FONT_POSITION,
                 rescale_styles: bool=True):
        self.fallback_font_family = fallback_font_family
        self.fallback_font_size = fallback_font_size
        self.fallback_font_position = fallback_font_position
        self.rescale_styles = rescale_styles

    def __repr__(self):
        return f"<{self.__class__.__name__} fallback_font_family={self.fallback_font_family!r}" \
               f" rescale_styles={self.rescale_styles!r}>"


class PatchOutcome(Enum):
    SUCCESS = "success"
    NEEDS_FALLBACK = "needs-fallback"
    FATAL = "fatal"


class PatchFailure:
    """Text tag which could not be patched"""
    def __init__(self, element_id: int, reason: str):
        self.element_id = element_id
        self.reason = reason

    def __repr__(self):
        return f"<{self.__class__.__name__} element_id={self.element_id!r} reason={self.reason!r}>"


class PatchReport:
    """Result of TextPatcher.patch_all()"""
    def __init__(self):
        self.patched_ids: List[int] = []
        self.failures: List[PatchFailure] = []
        self.fallback_font_id: Optional[int] = None

    @property
    def failed_ids(self) -> List[int]:
        return [failure.element_id for failure in self.failures]

    def __repr__(self):
        return f"<{self.__class__.__name__} patched={len(self.patched_ids)} failed={self.failed_ids!r}>"


def rescale_style(row: RunRecord) -> RunStyle:
    """
    Return style of the row adjusted for length of its translation

    This is a rough heuristic: height is scaled by original length / translated
    length (only for translated rows, and only if the result is above
    MIN_RESCALED_HEIGHT), negative letter spacing is reset to zero.

    """
    height = row.height
    if height is not None and row.translated_text:
        scaled = height * len(row.original_text) / len(row.translated_text)
        new_height = int(math.floor(scaled + 0.5))
        if new_height > MIN_RESCALED_HEIGHT:
            height = new_height

    letter_spacing = row.letter_spacing
    if letter_spacing is not None and letter_spacing < 0:
        letter_spacing = 0

    return RunStyle(height=height, letter_spacing=letter_spacing, color=row.color)


class FontFallbackResolver:
    """Adds the fallback font to the document (at most once) and points text tags to it"""
    def __init__(self, document, config: PatchConfig):
        self.document = document
        self.config = config
        self.font_id: Optional[int] = None

    @staticmethod
    def collect_characters(records: List[TextRecord]) -> Set[str]:
        characters = set()
        for record in records:
            for row in record.rows:
                characters.update(row.original_text)
                characters.update(row.translated_text)
        return characters

    def resolve(self, records: List[TextRecord]) -> int:
        """Return ID of the fallback font, adding it to the document on first call"""
        if self.font_id is None:
            characters = self.collect_characters(records)
            logger.info("Adding fallback font %r with %d characters",
                        self.config.fallback_font_family, len(characters))
            self.font_id = self.document.insert_font(self.config.fallback_font_position,
                                                     characters,
                                                     self.config.fallback_font_family,
                                                     self.config.fallback_font_size)
        return self.font_id

    def retarget(self, element_id: int, formatted_text: str) -> str:
        if self.font_id is None:
            raise RuntimeError("Fallback font has not been resolved")
        return retarget_fonts(formatted_text, self.document.get_font_ids(element_id), self.font_id)


class TextPatcher:
    """Writes TextRecords into text tags of a Document"""
    def __init__(self, document, config: PatchConfig=None):
        self.document = document
        self.config = config if config is not None else PatchConfig()
        self.resolver = FontFallbackResolver(document, self.config)

    def prepare(self, record: TextRecord):
        """Return (formatted text, texts) to set for the record's text tag"""
        if self.config.rescale_styles:
            styles = [rescale_style(row) for row in record.rows]
        else:
            styles = [row.style for row in record.rows]

        formatted_text = patch_styles(self.document.get_formatted_text(record.element_id), styles)
        texts = [row.replacement_text for row in record.rows]
        return formatted_text, texts

    def _attempt(self, element_id: int, formatted_text: str, texts: List[str]) -> PatchOutcome:
        if self.document.set_formatted_text(element_id, formatted_text, texts):
            self.document.mark_modified(element_id)
            return PatchOutcome.SUCCESS
        return PatchOutcome.NEEDS_FALLBACK

    def _attempt_with_fallback(self, element_id: int, formatted_text: str, texts: List[str]) -> PatchOutcome:
        formatted_text = self.resolver.retarget(element_id, formatted_text)
        if self.document.set_formatted_text(element_id, formatted_text, texts):
            self.document.mark_modified(element_id)
            return PatchOutcome.SUCCESS
        return PatchOutcome.FATAL

    def patch_all(self, records: List[TextRecord]) -> PatchReport:
        report = PatchReport()
        records_by_id: Dict[int, TextRecord] = {}
        for record in records:
            if record.element_id in records_by_id:
                logger.warning("Duplicate record for text tag %d, using the first one", record.element_id)
                report.failures.append(PatchFailure(record.element_id, "duplicate record"))
                continue
            records_by_id[record.element_id] = record

        element_ids = self.document.get_element_ids()

        for element_id in sorted(records_by_id.keys() - set(element_ids)):
            logger.warning("Text tag %d not found in document", element_id)
            report.failures.append(PatchFailure(element_id, "text tag not found"))

        needs_fallback = []

        for element_id in element_ids:
            record = records_by_id.get(element_id)
            if record is None:
                continue

            run_count = len(self.document.get_texts(element_id))
            if run_count != len(record.rows):
                logger.warning("Text tag %d has %d text records, but there are %d rows",
                               element_id, run_count, len(record.rows))
                report.failures.append(PatchFailure(element_id, f"expected {run_count} rows"))
                continue

            formatted_text, texts = self.prepare(record)
            outcome = self._attempt(element_id, formatted_text, texts)
            if outcome == PatchOutcome.SUCCESS:
                logger.debug("Patched text tag %d", element_id)
                report.patched_ids.append(element_id)
            else:
                logger.debug("Text tag %d needs fallback font", element_id)
                needs_fallback.append((element_id, formatted_text, texts))

        if not needs_fallback:
            return report

        report.fallback_font_id = self.resolver.resolve(records)

        for element_id, formatted_text, texts in needs_fallback:
            outcome = self._attempt_with_fallback(element_id, formatted_text, texts)
            if outcome == PatchOutcome.SUCCESS:
                logger.debug("Patched text tag %d with fallback font", element_id)
                report.patched_ids.append(element_id)
            else:
                logger.warning("Text tag %d cannot be displayed even with fallback font", element_id)
                report.failures.append(PatchFailure(element_id, "missing glyphs in fallback font"))

        return report
