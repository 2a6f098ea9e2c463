"""YAML file storage: one ``.yaml`` file per document, read with safe_load."""

import yaml

from ..errors import DecodeError, EncodeError
from .base import Document
from .file import FileStorage


class YAMLStorage(FileStorage):
    name = "yaml"
    suffix = ".yaml"

    def encode(self, document: Document) -> str:
        try:
            return yaml.safe_dump(document, allow_unicode=True, sort_keys=False)
        except yaml.YAMLError as e:
            raise EncodeError(f"yaml: can't encode document: {e}") from e

    def decode(self, raw: str) -> Document:
        try:
            document = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise DecodeError(f"yaml: can't decode document: {e}") from e
        if not isinstance(document, dict):
            raise DecodeError("yaml: stored value is not a document")
        return document
