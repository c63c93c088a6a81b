from __future__ import annotations
import enum
import functools
import pathlib
import datetime
import typing as t
import fnmatch
from .exc import StorageError


DEFAULT_CHUNK_SIZE = 4194304


class Visibility(str, enum.Enum):
    """Generic visibility values understood by every adapter."""

    PUBLIC = "public"
    PRIVATE = "private"


class Config:
    """Immutable carrier of per-call options (visibility, headers, etc)."""

    OPTION_VISIBILITY = "visibility"
    OPTION_DIRECTORY_VISIBILITY = "directory_visibility"

    def __init__(self, options: t.Optional[dict] = None):
        self._options = dict(options or {})

    def get(self, key: str, default=None):
        return self._options.get(key, default)

    def __contains__(self, key):
        return key in self._options

    def extend(self, options: dict) -> Config:
        """Build a new Config with the given options layered on top of these ones."""
        return Config({**self._options, **options})

    def with_defaults(self, defaults: dict) -> Config:
        """Build a new Config where the given options apply only if not already set."""
        return Config({**defaults, **self._options})

    def to_dict(self) -> dict:
        return dict(self._options)


class StorageAttributes:
    """Attributes shared by files and directories."""

    ATTRIBUTE_PATH = "path"
    ATTRIBUTE_VISIBILITY = "visibility"
    ATTRIBUTE_LAST_MODIFIED = "last_modified"

    def __init__(self,
                 path: str,
                 visibility: t.Optional[str] = None,
                 last_modified: t.Optional[datetime.datetime] = None,
                 extra_metadata: t.Optional[dict] = None):
        self.path = path
        self.visibility = visibility
        self.last_modified = last_modified
        self.extra_metadata = extra_metadata or {}

    def __str__(self):
        return self.path

    def __repr__(self):
        return f"{self.__class__.__name__}({self.path!r})"

    def __eq__(self, other):
        if not isinstance(other, StorageAttributes):
            return NotImplemented
        return self.__class__ is other.__class__ and self.__dict__ == other.__dict__

    def is_file(self) -> bool:
        raise NotImplementedError

    def is_dir(self) -> bool:
        return not self.is_file()

    def with_path(self, path: str) -> StorageAttributes:
        """Copy of these attributes for another path."""
        raise NotImplementedError


class FileAttributes(StorageAttributes):

    ATTRIBUTE_FILE_SIZE = "file_size"
    ATTRIBUTE_MIME_TYPE = "mime_type"

    def __init__(self,
                 path: str,
                 file_size: t.Optional[int] = None,
                 visibility: t.Optional[str] = None,
                 last_modified: t.Optional[datetime.datetime] = None,
                 mime_type: t.Optional[str] = None,
                 extra_metadata: t.Optional[dict] = None):
        super().__init__(path, visibility, last_modified, extra_metadata)
        self.file_size = file_size
        self.mime_type = mime_type

    def is_file(self) -> bool:
        return True

    def with_path(self, path: str) -> FileAttributes:
        return FileAttributes(path, self.file_size, self.visibility, self.last_modified, self.mime_type, self.extra_metadata)


class DirectoryAttributes(StorageAttributes):

    def is_file(self) -> bool:
        return False

    def with_path(self, path: str) -> DirectoryAttributes:
        return DirectoryAttributes(path, self.visibility, self.last_modified, self.extra_metadata)


def local_file_error_wrap(cb):
    """Converts typical local file-system errors into appropriate StorageErrors with recoverable set properly."""

    @functools.wraps(cb)
    def _inner(*args, **kwargs):
        try:
            return cb(*args, **kwargs)
        except FileNotFoundError as ex:
            raise StorageError(f"Local file not found", 1002) from ex
        except PermissionError as ex:
            raise StorageError(f"Access to local file denied", 1003, True) from ex
        except IsADirectoryError as ex:
            raise StorageError(f"Local file is a directory", 1004) from ex
        except NotADirectoryError as ex:
            raise StorageError(f"Local directory is not a directory", 1005) from ex
        except OSError as ex:
            raise StorageError(f"Exception processing local file: {ex.__class__.__name__}: {str(ex)}", 1006) from ex

    return _inner


class BaseFilesystemAdapter:
    """Operations every storage adapter provides.

        Paths are logical, slash-separated and relative to the adapter root. The
        helpers at the end of the class (upload, download, search) are built on
        top of the primitive operations and don't need to be overridden.
    """

    def file_exists(self, path: str) -> bool:
        """Check if a file exists at the path."""
        raise NotImplementedError

    def directory_exists(self, path: str) -> bool:
        """Check if the path contains any object."""
        raise NotImplementedError

    def write(self, path: str, contents: t.Union[bytes, str], config: t.Optional[Config] = None):
        """Write contents to the path, replacing whatever is there."""
        raise NotImplementedError

    def write_stream(self, path: str, contents: t.BinaryIO, config: t.Optional[Config] = None):
        """Write a readable object to the path."""
        raise NotImplementedError

    def read(self, path: str) -> bytes:
        raise NotImplementedError

    def read_stream(self, path: str) -> t.BinaryIO:
        raise NotImplementedError

    def delete(self, path: str):
        raise NotImplementedError

    def delete_directory(self, path: str):
        raise NotImplementedError

    def create_directory(self, path: str, config: t.Optional[Config] = None):
        raise NotImplementedError

    def set_visibility(self, path: str, visibility: str):
        raise NotImplementedError

    def visibility(self, path: str) -> FileAttributes:
        raise NotImplementedError

    def mime_type(self, path: str) -> FileAttributes:
        raise NotImplementedError

    def last_modified(self, path: str) -> FileAttributes:
        raise NotImplementedError

    def file_size(self, path: str) -> FileAttributes:
        raise NotImplementedError

    def list_contents(self, path: str, deep: bool = False) -> t.Iterable[StorageAttributes]:
        """List the files and directories under the path, optionally recursively."""
        raise NotImplementedError

    def move(self, source: str, destination: str, config: t.Optional[Config] = None):
        raise NotImplementedError

    def copy(self, source: str, destination: str, config: t.Optional[Config] = None):
        raise NotImplementedError

    def upload(self,
               local_path,
               path: str,
               config: t.Optional[Config] = None,
               allow_overwrite: bool = True,
               buffer_size: t.Optional[int] = None):
        """Upload a local file (or bytes, or a readable object) to the path."""
        if (not allow_overwrite) and self.file_exists(path):
            raise StorageError(f"Path [{path}] already exists, cannot overwrite", 1001, is_recoverable=True)
        self.write(path, b''.join(self._local_read_chunks(local_path, buffer_size)), config)

    def download(self, path: str, local_path: pathlib.Path, allow_overwrite: bool = False, buffer_size: int = None):
        """Download the file to the given local path."""
        if (not allow_overwrite) and local_path.exists():
            raise StorageError(f"Path [{local_path}] already exists, cannot download from [{path}]", 1000, is_recoverable=True)
        if buffer_size is None:
            buffer_size = DEFAULT_CHUNK_SIZE
        stream = self.read_stream(path)
        try:
            self._local_write_chunks(local_path, self._read_in_chunks(stream, buffer_size))
        except Exception as ex:
            local_path.unlink(True)
            raise ex
        finally:
            if hasattr(stream, 'close'):
                stream.close()

    def search(self, path: str, pattern: t.Optional[str] = None, deep: bool = True) -> t.Iterable[FileAttributes]:
        """Find all files under the path whose name matches the given pattern."""
        for attrs in self.list_contents(path, deep):
            if not attrs.is_file():
                continue
            name = attrs.path.rsplit('/', 1)[-1]
            if pattern is None or fnmatch.fnmatch(name, pattern):
                yield attrs

    @local_file_error_wrap
    def _local_read_chunks(self, local_path, buffer_size: t.Optional[int] = None) -> t.Iterable[bytes]:
        """Local implementation of reading chunks from a file."""
        if buffer_size is None:
            buffer_size = DEFAULT_CHUNK_SIZE
        if isinstance(local_path, (bytes, bytearray)):
            return [bytes(local_path)]
        elif isinstance(local_path, (str, pathlib.Path)):
            with open(local_path, "rb") as src:
                return list(self._read_in_chunks(src, buffer_size))
        elif hasattr(local_path, 'read'):
            return list(self._read_in_chunks(local_path, buffer_size))
        elif hasattr(local_path, '__iter__'):
            return list(local_path)
        raise StorageError(f"Unsupported upload source [{local_path.__class__.__name__}]", 1007)

    @staticmethod
    def _read_in_chunks(readable, buffer_size: int) -> t.Iterable[bytes]:
        """Read in chunks from a readable object."""
        x = readable.read(buffer_size)
        while x:
            yield x
            x = readable.read(buffer_size)

    @local_file_error_wrap
    def _local_write_chunks(self, local_path: pathlib.Path, chunks: t.Iterable[bytes]):
        """Write chunks to a local file."""
        with open(local_path, "wb") as dest:
            for chunk in chunks:
                dest.write(chunk)
