"""
One-file-per-document storage.

Identifiers are escaped into file names by percent-encoding every UTF-8 byte
outside ``[A-Za-z0-9_-]``. The mapping is injective, so two identifiers never
share a file, and ``unescape`` rejects any name ``escape`` could not produce.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Union
from urllib.parse import quote, unquote

from ..errors import EncodeError, InvalidKeyError, NotFoundError, StorageError
from .base import Document, Storage

logger = logging.getLogger(__name__)


def escape_identifier(identifier: str) -> str:
    """Percent-encode an identifier into a file-name-safe key."""
    if not isinstance(identifier, str) or not identifier:
        raise ValueError(f"identifier must be a non-empty string: {identifier!r}")
    # quote() leaves ".~" alone; "." must go so "." and ".." stay unreachable
    return quote(identifier, safe="").replace(".", "%2E").replace("~", "%7E")


def unescape_identifier(key: str) -> str:
    """Invert escape_identifier, failing on keys it would never produce."""
    try:
        identifier = unquote(key, errors="strict")
        if escape_identifier(identifier) == key:
            return identifier
    except (UnicodeDecodeError, ValueError):
        pass
    raise InvalidKeyError(key)


class FileStorage(Storage):
    """
    Base class for file backends; subclasses supply ``suffix``,
    ``encode`` and ``decode``.

    Args:
        path: directory holding the documents
        create: create the directory if it is missing
    """

    name = "file"
    suffix = ".dat"

    def __init__(self, path: Union[str, Path], create: bool = True):
        self.path = Path(path)
        if create:
            self.path.mkdir(parents=True, exist_ok=True)
        elif not self.path.is_dir():
            raise FileNotFoundError(f"Storage directory not found: {self.path}")

    def escape(self, identifier: str) -> str:
        return escape_identifier(identifier)

    def unescape(self, key: str) -> str:
        return unescape_identifier(key)

    def _file(self, identifier: str) -> Path:
        return self.path / (self.escape(identifier) + self.suffix)

    def read(self, identifier: str) -> Document:
        file = self._file(identifier)
        try:
            raw = file.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise NotFoundError(identifier)
        except OSError as e:
            raise StorageError(f"{self.name}: can't read {file}: {e}") from e
        return self.decode(raw)

    def write(self, identifier: str, document: Document) -> None:
        file = self._file(identifier)
        try:
            data = self.encode(document).encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodeError(f"{self.name}: can't encode document: {e}") from e

        fd, tmp = tempfile.mkstemp(dir=self.path, prefix=".tmp-", suffix=self.suffix)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, file)
        except BaseException as e:
            if os.path.exists(tmp):
                os.unlink(tmp)
            if isinstance(e, OSError):
                raise StorageError(f"{self.name}: can't write {file}: {e}") from e
            raise

    def erase(self, identifier: str) -> None:
        file = self._file(identifier)
        try:
            file.unlink()
        except FileNotFoundError:
            raise NotFoundError(identifier)
        except OSError as e:
            raise StorageError(f"{self.name}: can't erase {file}: {e}") from e

    def exist(self, identifier: str) -> bool:
        return self._file(identifier).is_file()

    def index(self) -> List[str]:
        identifiers = []
        try:
            names = sorted(os.listdir(self.path))
        except OSError as e:
            raise StorageError(f"{self.name}: can't list {self.path}: {e}") from e

        for name in names:
            if not name.endswith(self.suffix) or name.startswith(".tmp-"):
                continue
            key = name[:-len(self.suffix)]
            try:
                identifiers.append(self.unescape(key))
            except InvalidKeyError:
                logger.warning(f"Skipping {name} in {self.path}: not a storage key")
        return identifiers
