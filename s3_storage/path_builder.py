# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import datetime
import re
import uuid
from collections.abc import Callable
from typing import Protocol

from .entity import FileEntity
from .exceptions import InvalidPathTemplateError

DEFAULT_TEMPLATE = "/#file"

_ALIAS_RE = re.compile(r"#([A-Za-z]+)")
_SLASHES_RE = re.compile(r"/{2,}")

MIME_FOLDERS: dict[str, str] = {
    "image": "images",
    "video": "videos",
    "audio": "audio",
}


class PathBuilder(Protocol):
    """Turns an entity into the object key it is stored under."""

    def build(self, entity: FileEntity) -> str: ...


def _mime_folder(entity: FileEntity) -> str:
    if not entity.mime:
        return "files"
    return MIME_FOLDERS.get(entity.mime.split("/")[0], "files")


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class ConfigurablePathBuilder(PathBuilder):
    """Builds object keys from a template such as ``/#folder/#file``.

    Recognised aliases:

    * ``#file``: file name with extension
    * ``#fileName`` / ``#fileExtension``
    * ``#folder``
    * ``#mime`` / ``#mimeFolder`` (``images``, ``videos``, ``audio`` or ``files``)
    * ``#day`` / ``#month`` / ``#year`` / ``#timestamp`` (UTC, at build time)
    * ``#uuid``

    Aliases with no value expand to nothing and repeated slashes are collapsed.
    """

    def __init__(
        self,
        template: str = DEFAULT_TEMPLATE,
        *,
        clock: Callable[[], datetime.datetime] | None = None,
    ):
        unknown = [
            alias for alias in _ALIAS_RE.findall(template) if alias not in _RESOLVERS
        ]
        if unknown:
            raise InvalidPathTemplateError(
                f"Unknown aliases in path template {template!r}: {', '.join(unknown)}"
            )
        self.template = template
        self._clock = clock or _utc_now

    def build(self, entity: FileEntity) -> str:
        now = self._clock()

        def expand(match: re.Match[str]) -> str:
            return _RESOLVERS[match.group(1)](entity, now) or ""

        path = _ALIAS_RE.sub(expand, self.template)
        return _SLASHES_RE.sub("/", path)


_RESOLVERS: dict[str, Callable[[FileEntity, datetime.datetime], str | None]] = {
    "file": lambda entity, _: entity.full_file_name,
    "fileName": lambda entity, _: entity.file_name,
    "fileExtension": lambda entity, _: entity.file_extension,
    "folder": lambda entity, _: entity.folder,
    "mime": lambda entity, _: entity.mime,
    "mimeFolder": lambda entity, _: _mime_folder(entity),
    "day": lambda _, now: f"{now.day:02d}",
    "month": lambda _, now: f"{now.month:02d}",
    "year": lambda _, now: f"{now.year:04d}",
    "timestamp": lambda _, now: str(int(now.timestamp())),
    "uuid": lambda _, __: str(uuid.uuid4()),
}
