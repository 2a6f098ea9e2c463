"""JSON file storage: one pretty-printed ``.json`` file per document."""

import json

from ..errors import EncodeError
from .base import Document
from .file import FileStorage


class JSONStorage(FileStorage):
    name = "json"
    suffix = ".json"

    def encode(self, document: Document) -> str:
        try:
            return json.dumps(document, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise EncodeError(f"json: can't encode document: {e}") from e
