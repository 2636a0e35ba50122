"""
pyPatchSwf.translators module
=============================

Code to do machine translation of text records using cloud APIs:

  * DeepL API v2 - see DeepLTranslator
     - requires DeepL authentication key (free or pro)
  * Microsoft Azure Cognitive Services - see MicrosoftAzureTranslator
     - requires Azure subscription key

Both use the `requests` module. Translations are batched and cached into a JSON
file in current directory (one file per translator and language pair), so that
re-running the translation does not call the API again for known strings.

The Translator subclasses are used as follows:

    >>> translator = DeepLTranslator(auth_key="...", target_lang="en-US")
    >>> translator.translate_all(["Привет, мир"])
    ['Hello, world']
    >>> translator.translate_records(records)  # fills RunRecord.translated_text
    1

"""

import json
import logging
import os.path as op
import uuid
from typing import Dict, List, Optional
import requests
from .records import RunRecord, TextRecord

logger = logging.getLogger(__name__)


class TranslationCache:
    """(original, translated) string pairs for one language pair"""
    def __init__(self, source_lang: Optional[str], target_lang: str):
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.orig_to_translation: Dict[str, str] = {}

    def to_dict(self):
        return {
            "source": self.source_lang,
            "target": self.target_lang,
            "strings": [
                {"orig": orig,
                 "tran": translation}
                for orig, translation in sorted(self.orig_to_translation.items())
            ]
        }

    def to_json(self, path: str):
        with open(path, "w", encoding="utf-8") as fp:
            json.dump(self.to_dict(), fp, ensure_ascii=False, indent=2, sort_keys=True)

    @classmethod
    def from_dict(cls, serialized: Dict):
        obj = cls(serialized.get("source"), serialized["target"])
        for d in serialized["strings"]:
            obj.orig_to_translation[d["orig"]] = d["tran"]
        return obj

    @classmethod
    def from_json(cls, path: str):
        with open(path, encoding="utf-8") as fp:
            return cls.from_dict(json.load(fp))


def needs_translation(row: RunRecord) -> bool:
    """True for rows with no translation yet and some text to translate"""
    return not row.translated_text and bool(row.original_text.strip())


class Translator:
    """Base class for translators"""
    CACHE_NAME = None
    BATCH_SIZE = 50

    def __init__(self, source_lang: Optional[str]=None, target_lang: str="en-US"):
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.cache = TranslationCache(source_lang, target_lang)
        self.load_cache()

    @property
    def cache_path(self) -> Optional[str]:
        if not self.CACHE_NAME:
            return None
        return self.CACHE_NAME.format(source=self.source_lang or "auto", target=self.target_lang)

    def load_cache(self):
        path = self.cache_path
        if path and op.exists(path):
            print("Loading translator cache", path)
            self.cache = TranslationCache.from_json(path)

    def write_cache(self):
        path = self.cache_path
        if path:
            self.cache.to_json(path)

    def translate_all(self, all_input_strings: List[str]) -> List[str]:
        """Translate given strings in batches of Translator.BATCH_SIZE, caching the results"""
        all_output_strings = []

        for i in range(0, len(all_input_strings), self.BATCH_SIZE):
            print("Progress:", i, "/", len(all_input_strings))
            input_strings = all_input_strings[i:i+self.BATCH_SIZE]

            # unique strings missing from cache, in order of appearance
            unknown_input_strings = list(dict.fromkeys(
                input_string for input_string in input_strings
                if input_string not in self.cache.orig_to_translation))
            unknown_input_strings_translation = self._translate_all(unknown_input_strings)

            for k, v in zip(unknown_input_strings, unknown_input_strings_translation):
                self.cache.orig_to_translation[k] = v

            for k in input_strings:
                all_output_strings.append(self.cache.orig_to_translation[k])

        self.write_cache()
        return all_output_strings

    def translate_records(self, records: List[TextRecord]) -> int:
        """
        Fill in translated_text of rows which do not have it yet, return number of translated rows

        Rows that are already translated and rows with empty or whitespace-only
        original text are left as they are.

        """
        rows = [row for record in records for row in record.rows if needs_translation(row)]
        logger.debug("%d rows to translate", len(rows))

        translations = self.translate_all([row.original_text for row in rows])
        for row, translation in zip(rows, translations):
            row.translated_text = translation

        return len(rows)

    def _translate_all(self, input_strings: List[str]) -> List[str]:
        """The actual translation logic"""
        raise NotImplementedError


class DeepLTranslator(Translator):
    """
    Online translation using DeepL API v2

    Authentication keys ending with ':fx' belong to the free API, which has its own endpoint.

    """
    CACHE_NAME = "pyPatchSwf-cache-DeepLTranslator-{source}-{target}.json"
    BATCH_SIZE = 50
    DEFAULT_ENDPOINT_URL = "https://api.deepl.com"
    FREE_ENDPOINT_URL = "https://api-free.deepl.com"

    def __init__(self,
                 auth_key: str,
                 endpoint_url: str=None,
                 source_lang: Optional[str]=None,
                 target_lang: str="en-US"):
        if not auth_key:
            raise ValueError("You must provide DeepL authentication key")

        super().__init__(source_lang=source_lang, target_lang=target_lang)

        if endpoint_url is None:
            endpoint_url = self.FREE_ENDPOINT_URL if auth_key.endswith(":fx") else self.DEFAULT_ENDPOINT_URL

        self.url = endpoint_url.rstrip("/") + "/v2/translate"
        self.headers = {
            "Authorization": f"DeepL-Auth-Key {auth_key}",
            "Content-Type": "application/json",
        }

    def _translate_all(self, input_strings: List[str]) -> List[str]:
        if not input_strings:
            return []

        body = {
            "text": input_strings,
            "target_lang": self.target_lang.upper(),
        }
        if self.source_lang:
            # DeepL source languages have no regional variant
            body["source_lang"] = self.source_lang.split("-")[0].upper()

        request = requests.post(self.url, headers=self.headers, json=body)
        request.raise_for_status()
        response = request.json()

        output_strings = [d["text"] for d in response.get("translations", [])]

        if len(output_strings) != len(input_strings):
            raise ValueError("String count mismatch from DeepL JSON response")

        return output_strings


class MicrosoftAzureTranslator(Translator):
    """
    Online translation using Microsoft Azure Cognitive Services v3.0 API

    """
    CACHE_NAME = "pyPatchSwf-cache-MicrosoftAzureTranslator-{source}-{target}.json"
    BATCH_SIZE = 100
    DEFAULT_ENDPOINT_URL = "https://api.cognitive.microsofttranslator.com"

    def __init__(self,
                 subscription_key: str,
                 endpoint_url: str=DEFAULT_ENDPOINT_URL,
                 subscription_region: str=None,
                 source_lang: Optional[str]=None,
                 target_lang: str="en-US"):
        if not subscription_key:
            raise ValueError("You must provide Microsoft Azure subscription key")

        super().__init__(source_lang=source_lang, target_lang=target_lang)

        self.url = endpoint_url.rstrip("/") + "/translate"
        self.params = {"api-version": "3.0", "to": target_lang}
        if source_lang:
            self.params["from"] = source_lang
        self.headers = {
            "Ocp-Apim-Subscription-Key": subscription_key,
            "Content-type": "application/json",
            "X-ClientTraceId": str(uuid.uuid4())
        }

        if subscription_region:
            self.headers["Ocp-Apim-Subscription-Region"] = subscription_region

    def _translate_all(self, input_strings: List[str]) -> List[str]:
        if not input_strings:
            return []

        body = [{"text": input_string} for input_string in input_strings]

        request = requests.post(self.url, params=self.params, headers=self.headers, json=body)
        request.raise_for_status()
        response = request.json()

        output_strings = []

        for d in response:
            try:
                output_strings.append(d["translations"][0]["text"])
            except (KeyError, IndexError, TypeError):
                raise ValueError(f"Unexpected item in Microsoft Azure JSON response: {d!r}") from None

        if len(output_strings) != len(input_strings):
            raise ValueError("String count mismatch from Microsoft Azure JSON response")

        return output_strings
