"""
pyPatchSwf.cli module
=====================

The commandline interface used by the patchSwf.py script.

Run patchSwf.py -h to learn more.

"""

import argparse
import logging
import os
from textwrap import dedent
from typing import List
from .document import JPEXSExportDocument
from .errors import PatchSwfError
from .patcher import PatchConfig, TextPatcher
from .records import gather_records, load_records, save_records
from .translators import DeepLTranslator, MicrosoftAzureTranslator


class PyPatchSwfCLI:
    SUBPARSER_DEST = "command"

    COMMAND_GATHER = "gather"
    COMMAND_TRANSLATE = "translate"
    COMMAND_EXPORT = "export"

    RECORDS_JSON_FILENAME = "pyPatchSwf-records.json"

    TRANSLATION_PROVIDER_DEEPL = "deepl"
    TRANSLATION_PROVIDER_AZURE = "azure"
    OPTIONS_TRANSLATION_PROVIDER = (
        TRANSLATION_PROVIDER_DEEPL,
        TRANSLATION_PROVIDER_AZURE
    )

    ENV_DEEPL_KEY = "DEEPL_KEY"
    ENV_AZURE_KEY = "AZURE_TRANSLATOR_KEY"

    def __init__(self):
        self.parser = parser = argparse.ArgumentParser(description=dedent(self.run.__doc__),
                                                       formatter_class=argparse.RawDescriptionHelpFormatter)
        parser.add_argument("-v", "--verbose", action="store_true", help="print debugging messages")
        subparsers = parser.add_subparsers(dest=self.SUBPARSER_DEST)

        subparser_gather = subparsers.add_parser(self.COMMAND_GATHER, description=self.run_gather.__doc__)
        subparser_gather.add_argument("export_dir",
                                      help="directory with texts exported from JPEXS as 'Formatted text'")
        subparser_gather.add_argument("-o", "--output",
                                      default=self.RECORDS_JSON_FILENAME,
                                      help=f"output JSON file (default: {self.RECORDS_JSON_FILENAME})")

        subparser_translate = subparsers.add_parser(self.COMMAND_TRANSLATE, description=self.run_translate.__doc__)
        subparser_translate.add_argument("provider",
                                         choices=self.OPTIONS_TRANSLATION_PROVIDER,
                                         help="translation service to use: DeepL or Microsoft Azure")
        subparser_translate.add_argument("records",
                                         nargs="?",
                                         default=self.RECORDS_JSON_FILENAME,
                                         help=f"JSON file from `gather` (default: {self.RECORDS_JSON_FILENAME})")
        subparser_translate.add_argument("-o", "--output",
                                         help="output JSON file (default: overwrite input)")
        subparser_translate.add_argument("-s", "--source-lang",
                                         help="source language (en, ru, ja, ...; default: detect)")
        subparser_translate.add_argument("-t", "--target-lang",
                                         default="en-US",
                                         help="target language (default: en-US)")
        subparser_translate.add_argument("--deepl-auth-key",
                                         help=f"DeepL authentication key (or set {self.ENV_DEEPL_KEY} env var)")
        subparser_translate.add_argument("--deepl-endpoint-url",
                                         help="DeepL endpoint URL (default: chosen by key type)")
        subparser_translate.add_argument("--azure-subscription-key",
                                         help=f"Microsoft Azure translation subscription key"
                                              f" (or set {self.ENV_AZURE_KEY} env var)")
        subparser_translate.add_argument("--azure-endpoint-url",
                                         default=MicrosoftAzureTranslator.DEFAULT_ENDPOINT_URL,
                                         help=f"Microsoft Azure endpoint URL (default:"
                                              f" {MicrosoftAzureTranslator.DEFAULT_ENDPOINT_URL})")
        subparser_translate.add_argument("--azure-subscription-region",
                                         help="Microsoft Azure subscription region (default: none)")

        subparser_export = subparsers.add_parser(self.COMMAND_EXPORT, description=self.run_export.__doc__)
        subparser_export.add_argument("export_dir",
                                      help="directory with texts exported from JPEXS as 'Formatted text'")
        subparser_export.add_argument("records",
                                      nargs="?",
                                      default=self.RECORDS_JSON_FILENAME,
                                      help=f"JSON file with translations (default: {self.RECORDS_JSON_FILENAME})")
        subparser_export.add_argument("-o", "--output",
                                      help="directory to write modified texts and fonts to"
                                           " (default: overwrite files in export_dir)")
        subparser_export.add_argument("-f", "--font",
                                      default=PatchConfig.DEFAULT_FONT_FAMILY,
                                      help=f"font family (or font file) to use if the original font cannot"
                                           f" display the translation (default: {PatchConfig.DEFAULT_FONT_FAMILY})")
        subparser_export.add_argument("--font-size",
                                      type=int,
                                      default=PatchConfig.DEFAULT_FONT_SIZE,
                                      help=f"size of the fallback font (default: {PatchConfig.DEFAULT_FONT_SIZE})")
        subparser_export.add_argument("--no-rescale",
                                      action="store_true",
                                      help="keep original text height and letter spacing")

    def run(self, argv: List[str]) -> int:
        """
        This script translates static texts in SWF (Flash) files exported by the JPEXS decompiler.

        The process has the following steps:

            1. In JPEXS, open your SWF file and use the 'Export Selection' button to export 'texts'
               as 'Formatted text' into a directory. Optionally export 'fonts' as 'TTF' too, so that
               missing glyphs can be detected.

            2. Run `patchSwf.py gather EXPORT_DIR`, this will gather texts into a single JSON file.

            3. Run `patchSwf.py translate deepl`, this will fill in translations using selected
               service, see `patchSwf.py translate -h`. Already translated rows are skipped.

               Alternatively, you can also fill in "translatedText" in the JSON yourself.

            4. Run `patchSwf.py export EXPORT_DIR`, this will write translated texts back into the
               exported files. If the original fonts cannot display the translation, a fallback font
               with all needed characters is added to 'fonts'.

            5. In JPEXS, import the modified texts (and the fallback font, if any), then 'Save As'
               your modified SWF.

        """
        args = self.parser.parse_args(argv)
        command = getattr(args, self.SUBPARSER_DEST)

        logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                            format="%(levelname)s %(name)s: %(message)s")

        try:
            if command == self.COMMAND_GATHER:
                return self.run_gather(export_dir=args.export_dir, output=args.output)
            elif command == self.COMMAND_TRANSLATE:
                return self.run_translate(provider=args.provider,
                                          records=args.records,
                                          output=args.output or args.records,
                                          source_lang=args.source_lang,
                                          target_lang=args.target_lang,
                                          deepl_auth_key=args.deepl_auth_key,
                                          deepl_endpoint_url=args.deepl_endpoint_url,
                                          azure_subscription_key=args.azure_subscription_key,
                                          azure_endpoint_url=args.azure_endpoint_url,
                                          azure_subscription_region=args.azure_subscription_region)
            elif command == self.COMMAND_EXPORT:
                config = PatchConfig(fallback_font_family=args.font,
                                     fallback_font_size=args.font_size,
                                     rescale_styles=not args.no_rescale)
                return self.run_export(export_dir=args.export_dir,
                                       records=args.records,
                                       output=args.output,
                                       config=config)
            else:
                self.parser.print_help()
                return 2
        except PatchSwfError as e:
            print("Error -", e)
            return 1

    def run_gather(self, export_dir: str, output: str) -> int:
        """Gather texts and their style from JPEXS exported texts into a single JSON file"""
        document = JPEXSExportDocument(export_dir)
        records = gather_records(document)

        row_count = sum(len(record.rows) for record in records)
        print(f"{len(records): 6d} text tags with {row_count} rows gathered from {export_dir}")

        save_records(records, output)
        print("\nWrote", output)
        return 0

    def run_translate(self,
                      provider: str,
                      records: str,
                      output: str,
                      source_lang,
                      target_lang,
                      deepl_auth_key,
                      deepl_endpoint_url,
                      azure_subscription_key,
                      azure_endpoint_url,
                      azure_subscription_region) -> int:
        """Fill in translations in JSON file using cloud API (DeepL or Microsoft Azure)"""
        if provider == self.TRANSLATION_PROVIDER_DEEPL:
            print("Using DeepLTranslator provider")
            translator = DeepLTranslator(auth_key=deepl_auth_key or os.environ.get(self.ENV_DEEPL_KEY),
                                         endpoint_url=deepl_endpoint_url,
                                         source_lang=source_lang,
                                         target_lang=target_lang)
        elif provider == self.TRANSLATION_PROVIDER_AZURE:
            print("Using MicrosoftAzureTranslator provider")
            translator = MicrosoftAzureTranslator(
                subscription_key=azure_subscription_key or os.environ.get(self.ENV_AZURE_KEY),
                endpoint_url=azure_endpoint_url,
                subscription_region=azure_subscription_region,
                source_lang=source_lang,
                target_lang=target_lang)
        else:
            raise NotImplementedError

        print("Reading JSON records from", records)
        text_records = load_records(records)

        print("Translating...")
        count = translator.translate_records(text_records)
        print(f"{count} rows translated")

        save_records(text_records, output)
        print("Wrote", output)
        return 0

    def run_export(self, export_dir: str, records: str, output: str, config: PatchConfig) -> int:
        """Write translations from JSON file back into JPEXS exported texts"""
        print("Reading JSON records from", records)
        text_records = load_records(records)

        document = JPEXSExportDocument(export_dir)
        patcher = TextPatcher(document, config)
        report = patcher.patch_all(text_records)

        if report.fallback_font_id is not None:
            print(f"Added fallback font {config.fallback_font_family!r} with ID {report.fallback_font_id}")

        for failure in report.failures:
            print(f"Error - text tag {failure.element_id}: {failure.reason}")

        document.save(output)
        print("Wrote", output if output is not None else export_dir)

        print(f"\nAll done, {len(report.patched_ids)} text tags patched, there were {len(report.failures)} errors.")
        return 0 if not report.failures else 1
