"""
pyPatchSwf.errors module
========================

Exceptions raised by pyPatchSwf.

Note that a text tag which cannot be encoded with its font is not an exception,
see pyPatchSwf.patcher.PatchOutcome.

"""


class PatchSwfError(Exception):
    """Base class for pyPatchSwf errors"""


class FontNotFoundError(PatchSwfError):
    """Raised when the fallback font family cannot be located"""


class RecordFormatError(PatchSwfError):
    """Raised when the JSON records file is malformed"""


class UnsupportedExportError(PatchSwfError):
    """Raised when a directory does not look like a JPEXS export"""
