"""
pyPatchSwf.records module
=========================

TextRecord and RunRecord hold the text of SWF text tags between the `gather`,
`translate` and `export` steps. They are stored in a JSON file which can also
be edited by hand:

    [
      {
        "id": 12,
        "rows": [
          {
            "originalText": "Hello",
            "translatedText": "",
            "height": 240,
            "letterSpacing": 0,
            "color": "#ff000000"
          }
        ]
      }
    ]

Empty "translatedText" means the row is not translated (the original text is
used). A null "height", "letterSpacing" or "color" means that the text tag has
no such directive for the row; it is never written back as zero.

"""

import json
from typing import Dict, List, Optional
from .errors import RecordFormatError
from .formatted import RunStyle, extract_styles


class RunRecord:
    """One text record (line) of a text tag, with its style"""
    def __init__(self,
                 original_text: str,
                 translated_text: str="",
                 height: Optional[int]=None,
                 letter_spacing: Optional[int]=None,
                 color: Optional[str]=None):
        self.original_text = original_text
        self.translated_text = translated_text
        self.height = height
        self.letter_spacing = letter_spacing
        self.color = color

    @property
    def replacement_text(self) -> str:
        """Text to put into the SWF: the translation, or the original if there is none"""
        return self.translated_text if self.translated_text else self.original_text

    @property
    def style(self) -> RunStyle:
        return RunStyle(height=self.height, letter_spacing=self.letter_spacing, color=self.color)

    def to_dict(self):
        return {
            "originalText": self.original_text,
            "translatedText": self.translated_text,
            "height": self.height,
            "letterSpacing": self.letter_spacing,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, serialized: Dict):
        try:
            original_text = serialized["originalText"]
        except (KeyError, TypeError):
            raise RecordFormatError(f"Row without 'originalText': {serialized!r}") from None

        return cls(original_text=original_text,
                   translated_text=serialized.get("translatedText") or "",
                   height=_optional_int(serialized.get("height")),
                   letter_spacing=_optional_int(serialized.get("letterSpacing")),
                   color=serialized.get("color"))

    def __repr__(self):
        return f"<{self.__class__.__name__} original_text={self.original_text!r}" \
               f" translated_text={self.translated_text!r}>"


class TextRecord:
    """All text records of one text tag, identified by the tag's character ID"""
    def __init__(self, element_id: int, rows: List[RunRecord]):
        self.element_id = element_id
        self.rows = rows

    def to_dict(self):
        return {
            "id": self.element_id,
            "rows": [row.to_dict() for row in self.rows],
        }

    @classmethod
    def from_dict(cls, serialized: Dict):
        try:
            element_id = int(serialized["id"])
            rows = [RunRecord.from_dict(d) for d in serialized["rows"]]
        except (KeyError, TypeError, ValueError) as e:
            raise RecordFormatError(f"Malformed text record: {e}") from e

        return cls(element_id, rows)

    def __repr__(self):
        return f"<{self.__class__.__name__} element_id={self.element_id!r} rows={len(self.rows)}>"


def _optional_int(value) -> Optional[int]:
    # older files store numbers as strings
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RecordFormatError(f"Expected integer or null, got {value!r}") from None


def load_records(path: str) -> List[TextRecord]:
    with open(path, encoding="utf-8") as fp:
        try:
            serialized = json.load(fp)
        except json.JSONDecodeError as e:
            raise RecordFormatError(f"Cannot parse {path}: {e}") from e

    if not isinstance(serialized, list):
        raise RecordFormatError(f"Expected a list of text records in {path}")

    return [TextRecord.from_dict(d) for d in serialized]


def save_records(records: List[TextRecord], path: str):
    serialized = [record.to_dict() for record in records]

    with open(path, "w", encoding="utf-8") as fp:
        json.dump(serialized, fp, ensure_ascii=False, indent=2)


def gather_records(document) -> List[TextRecord]:
    """
    Return TextRecord for each text tag in pyPatchSwf.document.Document

    Tags without any non-empty text are left out.

    """
    records = []

    for element_id in document.get_element_ids():
        texts = document.get_texts(element_id)
        if not any(texts):
            continue

        styles = extract_styles(document.get_formatted_text(element_id), len(texts))
        rows = [RunRecord(original_text=text,
                          height=style.height,
                          letter_spacing=style.letter_spacing,
                          color=style.color)
                for text, style in zip(texts, styles)]
        records.append(TextRecord(element_id, rows))

    return records
