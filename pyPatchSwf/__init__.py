"""
pyPatchSwf package
==================

This library implements tools to translate static texts in SWF (Flash) files.

  * pyPatchSwf.formatted - code to read and rewrite style directives in formatted text of text tags
  * pyPatchSwf.document - access to text tags and fonts of a SWF file exported by JPEXS
  * pyPatchSwf.records - JSON records of texts, their style and translation
  * pyPatchSwf.patcher - code to write translated records back, with fallback font if needed
  * pyPatchSwf.fonts - font helpers (glyph coverage, subsetting)
  * pyPatchSwf.translators - code to do machine translation (DeepL, Microsoft Azure)
  * pyPatchSwf.cli - the commandline interface used by the patchSwf.py script

"""

from .formatted import FormattedText, RunStyle, extract_styles, patch_styles, retarget_fonts
from .document import Document, JPEXSExportDocument
from .records import RunRecord, TextRecord, gather_records, load_records, save_records
from .patcher import PatchConfig, PatchOutcome, PatchReport, FontFallbackResolver, TextPatcher
from .translators import Translator, DeepLTranslator, MicrosoftAzureTranslator
from .errors import PatchSwfError, FontNotFoundError, RecordFormatError, UnsupportedExportError
from .cli import PyPatchSwfCLI
