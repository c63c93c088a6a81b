from __future__ import annotations
import typing as t


class BucketFSError(Exception):
    """Super-type of all errors raised by bucketfs code"""

    def __init__(self, msg: str, code_space: str = "GEN", code_number: int = None, is_recoverable: bool = False):
        self.internal_code = "" if code_number is None else f"{code_space}-{code_number}"
        super().__init__(f"{msg} [{self.internal_code}]")
        self.is_recoverable = is_recoverable


class StorageError(BucketFSError):
    """Error class specifically for storage errors."""

    def __init__(self, msg, code, is_recoverable: bool = False):
        super().__init__(msg, "STORAGE", code, is_recoverable=is_recoverable)


class ConfigError(BucketFSError):

    def __init__(self, msg, code):
        super().__init__(msg, "CONFIG", code)


class InvalidVisibilityProvided(StorageError):

    @classmethod
    def with_visibility(cls, visibility) -> InvalidVisibilityProvided:
        return cls(f"Invalid visibility provided. Expected either public or private, received [{visibility}]", 1010)


class FilesystemOperationFailed(StorageError):
    """Base class for errors that occur while performing an operation on a location.

        The error raised by the vendor SDK (if any) is available both as `previous`
        and as `__cause__`. The recoverable flag is copied from the previous error
        when it carries one.
    """

    code_number: int = 1100
    operation: str = "operate on file"

    def __init__(self, location: str, reason: str = "", previous: t.Optional[BaseException] = None):
        self.location = location
        self.reason = reason or (str(previous) if previous is not None else "")
        self.previous = previous
        msg = f"Unable to {self.operation} at location [{location}]"
        if self.reason:
            msg += f": {self.reason}"
        super().__init__(msg, self.code_number, getattr(previous, 'is_recoverable', False))
        if previous is not None:
            self.__cause__ = previous

    @classmethod
    def at_location(cls, location: str, reason: str = "", previous: t.Optional[BaseException] = None):
        return cls(location, reason, previous)


class UnableToCheckExistence(FilesystemOperationFailed):

    code_number = 1101
    operation = "check existence"

    @classmethod
    def for_location(cls, location: str, previous: t.Optional[BaseException] = None) -> UnableToCheckExistence:
        return cls(location, "", previous)


class UnableToReadFile(FilesystemOperationFailed):

    code_number = 1102
    operation = "read file"

    @classmethod
    def from_location(cls, location: str, reason: str = "", previous: t.Optional[BaseException] = None) -> UnableToReadFile:
        return cls(location, reason, previous)


class UnableToWriteFile(FilesystemOperationFailed):

    code_number = 1103
    operation = "write file"


class UnableToDeleteFile(FilesystemOperationFailed):

    code_number = 1104
    operation = "delete file"


class UnableToDeleteDirectory(FilesystemOperationFailed):

    code_number = 1105
    operation = "delete directory"


class UnableToCreateDirectory(FilesystemOperationFailed):

    code_number = 1106
    operation = "create directory"


class UnableToSetVisibility(FilesystemOperationFailed):

    code_number = 1107
    operation = "set visibility"


class UnableToRetrieveMetadata(FilesystemOperationFailed):

    code_number = 1108
    operation = "retrieve metadata"

    def __init__(self, location: str, metadata_type: str = "", reason: str = "", previous: t.Optional[BaseException] = None):
        self.metadata_type = metadata_type
        if metadata_type:
            self.operation = f"retrieve the {metadata_type}"
        super().__init__(location, reason, previous)

    @classmethod
    def create(cls, location: str, metadata_type: str, reason: str = "", previous: t.Optional[BaseException] = None) -> UnableToRetrieveMetadata:
        return cls(location, metadata_type, reason, previous)

    @classmethod
    def visibility(cls, location: str, reason: str = "", previous: t.Optional[BaseException] = None):
        return cls(location, "visibility", reason, previous)

    @classmethod
    def mime_type(cls, location: str, reason: str = "", previous: t.Optional[BaseException] = None):
        return cls(location, "mime_type", reason, previous)

    @classmethod
    def last_modified(cls, location: str, reason: str = "", previous: t.Optional[BaseException] = None):
        return cls(location, "last_modified", reason, previous)

    @classmethod
    def file_size(cls, location: str, reason: str = "", previous: t.Optional[BaseException] = None):
        return cls(location, "file_size", reason, previous)


class UnableToListContents(FilesystemOperationFailed):

    code_number = 1109
    operation = "list contents"

    def __init__(self, location: str, deep: bool = False, previous: t.Optional[BaseException] = None):
        self.deep = deep
        super().__init__(location, "", previous)

    @classmethod
    def at_location(cls, location: str, deep: bool = False, previous: t.Optional[BaseException] = None) -> UnableToListContents:
        return cls(location, deep, previous)


class UnableToGenerateTemporaryUrl(FilesystemOperationFailed):

    code_number = 1110
    operation = "generate temporary url"

    @classmethod
    def due_to_error(cls, location: str, previous: t.Optional[BaseException] = None) -> UnableToGenerateTemporaryUrl:
        return cls(location, "", previous)


class _TransferFailed(FilesystemOperationFailed):

    def __init__(self, source: str, destination: str, previous: t.Optional[BaseException] = None):
        self.source = source
        self.destination = destination
        super().__init__(source, f"destination [{destination}]", previous)

    @classmethod
    def from_location_to(cls, source: str, destination: str, previous: t.Optional[BaseException] = None):
        return cls(source, destination, previous)


class UnableToCopyFile(_TransferFailed):

    code_number = 1111
    operation = "copy file"


class UnableToMoveFile(_TransferFailed):

    code_number = 1112
    operation = "move file"
