# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import mimetypes
from dataclasses import dataclass, replace

from .exceptions import MissingFileExtensionAndTypeError


@dataclass(frozen=True, kw_only=True)
class FileEntity:
    """A file to be uploaded, together with what is known about its name and type.

    Entities are immutable. :py:meth:`sanitized` and :py:meth:`normalized` return new
    values and leave the original untouched.
    """

    data: bytes | None = None
    file_name: str | None = None
    file_extension: str | None = None
    folder: str | None = None
    mime: str | None = None

    @property
    def full_file_name(self) -> str | None:
        if self.file_name is None:
            return None
        if self.file_extension is None:
            return self.file_name
        return f"{self.file_name}.{self.file_extension}"

    def sanitized(self) -> "FileEntity":
        """Split a trailing extension off ``file_name``.

        An explicitly supplied ``file_extension`` is kept. Extensions lose their
        leading dot and are lowercased.
        """
        file_name = self.file_name.strip() if self.file_name else self.file_name
        file_extension = self.file_extension

        if file_name and "." in file_name.lstrip("."):
            stem, _, suffix = file_name.rpartition(".")
            if file_extension is None:
                file_extension = suffix
            file_name = stem

        if file_extension is not None:
            file_extension = file_extension.strip().lstrip(".").lower() or None

        return replace(self, file_name=file_name, file_extension=file_extension)

    def normalized(self) -> "FileEntity":
        """Sanitize, then fill in the extension from the mime type or the mime type
        from the extension.

        :raises MissingFileExtensionAndTypeError: If neither can be determined.
        """
        entity = self.sanitized()
        file_extension = entity.file_extension
        mime = entity.mime

        if file_extension is None:
            file_extension = _extension_for_mime(mime)
            if file_extension is None:
                raise MissingFileExtensionAndTypeError(
                    f"Unable to determine a file extension for mime type {mime!r}."
                )

        if mime is None:
            mime = _mime_for_extension(file_extension)
            if mime is None:
                raise MissingFileExtensionAndTypeError(
                    f"Unable to determine a mime type for extension {file_extension!r}."
                )

        return replace(entity, file_extension=file_extension, mime=mime)


def _extension_for_mime(mime: str | None) -> str | None:
    if not mime:
        return None
    extension = mimetypes.guess_extension(mime.split(";")[0].strip(), strict=False)
    return extension.lstrip(".") if extension else None


def _mime_for_extension(extension: str) -> str | None:
    mime, _ = mimetypes.guess_type(f"file.{extension}", strict=False)
    return mime
