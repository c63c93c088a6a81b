"""
    Provides filesystem-like operations on top of S3-compatible object storage.

    In general, one should use the FilesystemController to get the adapter for a
    configured disk. The adapter knows how to check, read, write, copy, move, list
    and delete files in its bucket, and how to read and change their visibility.

    Object storage has no real directories: a "directory" is the common prefix of
    a set of keys. Listing a directory returns one DirectoryAttributes per common
    prefix and one FileAttributes per object, and create_directory() stores an
    empty object whose key ends with a slash so that empty directories can exist.

    Visibility is either "public" or "private" and is stored as the canned ACL of
    the object ("public-read" or "private"). Objects without their own ACL take
    the visibility configured as the default for directories.

    All paths are relative to the prefix of the adapter, which is added to every
    key sent to the backend and removed from every key received from it.
"""
from .core import FilesystemController
from .base import BaseFilesystemAdapter, Config, FileAttributes, DirectoryAttributes, StorageAttributes, Visibility
from .s3 import S3Adapter
