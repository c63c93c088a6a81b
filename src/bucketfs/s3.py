"""Filesystem adapter for S3-compatible object storage, built on boto3."""
from __future__ import annotations
import datetime
import functools
import typing as t
from urllib.parse import urlparse, quote
import botocore.exceptions as bce
import zrlog
from .base import BaseFilesystemAdapter, Config, FileAttributes, DirectoryAttributes, StorageAttributes, Visibility
from .exc import (
    StorageError,
    FilesystemOperationFailed,
    UnableToCheckExistence,
    UnableToReadFile,
    UnableToWriteFile,
    UnableToDeleteFile,
    UnableToDeleteDirectory,
    UnableToCreateDirectory,
    UnableToSetVisibility,
    UnableToRetrieveMetadata,
    UnableToListContents,
    UnableToCopyFile,
    UnableToMoveFile,
    UnableToGenerateTemporaryUrl,
)
from .mime import MimeTypeDetector
from .prefixer import PathPrefixer
from .visibility import VisibilityConverter, PortableVisibilityConverter


S3_ERRORS = (bce.BotoCoreError, bce.ClientError)

NOT_FOUND_CODES = ('404', 'NoSuchKey', 'NotFound')
ACCESS_DENIED_CODES = ('403', 'AccessDenied', 'InvalidAccessKeyId', 'SignatureDoesNotMatch')
TRANSIENT_CODES = ('500', '503', 'InternalError', 'ServiceUnavailable', 'SlowDown', 'Throttling', 'RequestTimeout')

_NOT_SET = object()


def s3_storage_error(ex: Exception) -> StorageError:
    """Classify an error raised by boto3 as a StorageError, with recoverable set properly."""
    name = f"{ex.__class__.__name__}: {str(ex)}"
    if isinstance(ex, (bce.ConnectTimeoutError, bce.ReadTimeoutError)):
        error = StorageError(f"S3: Connection timeout error: {name}", 2001, True)
    elif isinstance(ex, (bce.EndpointConnectionError, bce.ConnectionClosedError)):
        error = StorageError(f"S3: Connection error: {name}", 2002, True)
    elif isinstance(ex, bce.NoCredentialsError):
        error = StorageError(f"S3: Client authentication error: {name}", 2003)
    elif isinstance(ex, bce.ClientError):
        code = str(ex.response.get('Error', {}).get('Code', ''))
        if code in NOT_FOUND_CODES:
            error = StorageError(f"S3: Resource not found error: {name}", 2004)
        elif code in ACCESS_DENIED_CODES:
            error = StorageError(f"S3: Client authentication error: {name}", 2003)
        elif code in TRANSIENT_CODES:
            error = StorageError(f"S3: Service unavailable error: {name}", 2005, True)
        else:
            error = StorageError(f"S3: {name}", 2000)
    else:
        error = StorageError(f"S3: {name}", 2000)
    error.__cause__ = ex
    return error


def is_not_found(ex: Exception) -> bool:
    if not isinstance(ex, bce.ClientError):
        return False
    return str(ex.response.get('Error', {}).get('Code', '')) in NOT_FOUND_CODES


def wrap_s3_errors(error_cls: t.Type[FilesystemOperationFailed]):
    """Converts errors from boto3 into the given operation error for the path passed as first argument."""

    def _decorator(cb):

        @functools.wraps(cb)
        def _inner(self, path, *args, **kwargs):
            try:
                return cb(self, path, *args, **kwargs)
            except S3_ERRORS as ex:
                previous = s3_storage_error(ex)
                raise error_cls.at_location(path, "", previous) from previous

        return _inner

    return _decorator


class S3ObjectStream:
    """Readable body of an object that reports transfer errors as read failures of its path."""

    def __init__(self, body, path: str):
        self._body = body
        self._path = path

    def read(self, amt: t.Optional[int] = None) -> bytes:
        try:
            return self._body.read(amt)
        except S3_ERRORS as ex:
            previous = s3_storage_error(ex)
            raise UnableToReadFile.from_location(self._path, "", previous) from previous

    def close(self):
        self._body.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class S3Adapter(BaseFilesystemAdapter):
    """Adapter for a single bucket of an S3-compatible object store.

        Every path is prefixed before being sent to the client and the prefix is
        removed again from keys that come back. Visibility is stored in the object
        ACL (public-read or private). Directories only exist as common prefixes,
        or as zero-byte objects ending in a slash created by create_directory().
    """

    # Header names that may be passed through the Config to the client, with the boto3 parameter they map to
    AVAILABLE_OPTIONS = {
        'Cache-Control': 'CacheControl',
        'Content-Disposition': 'ContentDisposition',
        'Content-Encoding': 'ContentEncoding',
        'Content-Language': 'ContentLanguage',
        'Content-MD5': 'ContentMD5',
        'Content-Length': 'ContentLength',
        'Content-Type': 'ContentType',
        'Expires': 'Expires',
        'If-None-Match': 'IfNoneMatch',
        'x-amz-acl': 'ACL',
        'x-amz-server-side-encryption': 'ServerSideEncryption',
        'x-amz-server-side-encryption-aws-kms-key-id': 'SSEKMSKeyId',
        'x-amz-storage-class': 'StorageClass',
        'x-amz-tagging': 'Tagging',
        'x-amz-meta': 'Metadata',
    }

    EXTRA_METADATA_FIELDS = (
        'ETag',
        'StorageClass',
        'VersionId',
        'ServerSideEncryption',
        'ChecksumCRC32',
        'ChecksumCRC64NVME',
        'ChecksumSHA256',
    )

    # Raw response headers kept as well, for OSS and other S3-compatible services
    EXTRA_METADATA_HEADERS = (
        'x-oss-object-type',
        'x-oss-storage-class',
        'x-oss-hash-crc64ecma',
        'x-oss-version-id',
        'content-md5',
    )

    MAX_KEYS = 1000

    def __init__(self,
                 client,
                 bucket: str,
                 prefix: str = "",
                 visibility: t.Optional[VisibilityConverter] = None,
                 mime_type_detector: t.Optional[MimeTypeDetector] = None,
                 options: t.Optional[dict] = None,
                 url: t.Optional[str] = None):
        self._client = client
        self._bucket = bucket
        self._prefixer = PathPrefixer(prefix)
        self._visibility = visibility or PortableVisibilityConverter()
        self._mime_type_detector = mime_type_detector or MimeTypeDetector()
        self._options = self._create_options_from_config(Config(options))
        self._url = url.rstrip('/') if url else None
        self._log = zrlog.get_logger("bucketfs.s3")

    @property
    def client(self):
        return self._client

    def set_client(self, client) -> S3Adapter:
        self._client = client
        return self

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def prefixer(self) -> PathPrefixer:
        return self._prefixer

    def file_exists(self, path: str) -> bool:
        try:
            self._client.head_object(Bucket=self._bucket, Key=self._prefixer.prefix_path(path))
            return True
        except S3_ERRORS as ex:
            if is_not_found(ex):
                return False
            previous = s3_storage_error(ex)
            raise UnableToCheckExistence.for_location(path, previous) from previous

    @wrap_s3_errors(UnableToCheckExistence)
    def directory_exists(self, path: str) -> bool:
        response = self._client.list_objects_v2(
            Bucket=self._bucket,
            Prefix=self._prefixer.prefix_directory_path(path),
            Delimiter='/',
            MaxKeys=1
        )
        return bool(response.get('Contents') or response.get('CommonPrefixes'))

    def write(self, path: str, contents: t.Union[bytes, str], config: t.Optional[Config] = None):
        self._upload(path, contents, config or Config())

    def write_stream(self, path: str, contents: t.BinaryIO, config: t.Optional[Config] = None):
        self._upload(path, contents.read(), config or Config())

    def _upload(self, path: str, body: t.Union[bytes, str], config: Config):
        key = self._prefixer.prefix_path(path)
        if isinstance(body, str):
            body = body.encode('utf-8')
        config_options = self._create_options_from_config(config)
        options = {**self._options, **config_options}
        if 'ACL' not in config_options:
            options['ACL'] = self._determine_acl(config)
        if body and 'ContentType' not in options:
            mime_type = self._mime_type_detector.detect_mime_type(key, body)
            if mime_type:
                options['ContentType'] = mime_type
        self._log.debug(f"Uploading {len(body)} bytes to [{self._bucket}/{key}]")
        try:
            self._client.put_object(Bucket=self._bucket, Key=key, Body=body, **options)
        except S3_ERRORS as ex:
            previous = s3_storage_error(ex)
            raise UnableToWriteFile.at_location(path, "", previous) from previous

    def _determine_acl(self, config: Config) -> str:
        visibility = config.get(Config.OPTION_VISIBILITY, None)
        if visibility is None:
            return self._options.get('ACL', self._visibility.visibility_to_acl(Visibility.PRIVATE))
        return self._visibility.visibility_to_acl(visibility)

    def _create_options_from_config(self, config: Config) -> dict:
        """Build client options from the allowed headers (or their boto3 names) in the config."""
        options = {}
        for header, parameter in self.AVAILABLE_OPTIONS.items():
            value = config.get(header, _NOT_SET)
            if value is _NOT_SET:
                value = config.get(parameter, _NOT_SET)
            if value is not _NOT_SET:
                options[parameter] = value
        return options

    @wrap_s3_errors(UnableToReadFile)
    def read(self, path: str) -> bytes:
        response = self._client.get_object(Bucket=self._bucket, Key=self._prefixer.prefix_path(path))
        return response['Body'].read()

    @wrap_s3_errors(UnableToReadFile)
    def read_stream(self, path: str) -> t.BinaryIO:
        response = self._client.get_object(Bucket=self._bucket, Key=self._prefixer.prefix_path(path))
        return S3ObjectStream(response["Body"], path)

    @wrap_s3_errors(UnableToDeleteFile)
    def delete(self, path: str):
        self._client.delete_object(Bucket=self._bucket, Key=self._prefixer.prefix_path(path))

    @wrap_s3_errors(UnableToDeleteDirectory)
    def delete_directory(self, path: str):
        response = self._list_objects(self._prefixer.prefix_directory_path(path), True)
        keys = [x['Key'] for x in response.get('Contents', [])]
        if not keys:
            return
        self._log.debug(f"Deleting {len(keys)} objects under [{self._bucket}/{path}]")
        result = self._client.delete_objects(
            Bucket=self._bucket,
            Delete={
                'Objects': [{'Key': key} for key in keys],
                'Quiet': True,
            }
        )
        failed = result.get('Errors') or []
        if failed:
            raise UnableToDeleteDirectory.at_location(
                path,
                f"failed to delete {', '.join(x.get('Key', '') for x in failed)}"
            )

    def create_directory(self, path: str, config: t.Optional[Config] = None):
        config = config or Config()
        key = self._prefixer.prefix_directory_path(path)
        visibility = config.get(Config.OPTION_DIRECTORY_VISIBILITY, None)
        if visibility is None:
            visibility = self._visibility.default_for_directories()
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=b'',
                ACL=self._visibility.visibility_to_acl(visibility)
            )
        except S3_ERRORS as ex:
            previous = s3_storage_error(ex)
            raise UnableToCreateDirectory.at_location(path, "", previous) from previous

    @wrap_s3_errors(UnableToSetVisibility)
    def set_visibility(self, path: str, visibility: str):
        self._client.put_object_acl(
            Bucket=self._bucket,
            Key=self._prefixer.prefix_path(path),
            ACL=self._visibility.visibility_to_acl(visibility)
        )

    def visibility(self, path: str) -> FileAttributes:
        try:
            response = self._client.get_object_acl(Bucket=self._bucket, Key=self._prefixer.prefix_path(path))
        except S3_ERRORS as ex:
            previous = s3_storage_error(ex)
            raise UnableToRetrieveMetadata.visibility(path, "", previous) from previous
        acl = self._visibility.grants_to_acl(response.get('Grants', []))
        return FileAttributes(path, None, self._visibility.acl_to_visibility(acl))

    def mime_type(self, path: str) -> FileAttributes:
        attributes = self._fetch_file_metadata(path, FileAttributes.ATTRIBUTE_MIME_TYPE)
        if attributes.mime_type is None:
            raise UnableToRetrieveMetadata.mime_type(path)
        return attributes

    def last_modified(self, path: str) -> FileAttributes:
        attributes = self._fetch_file_metadata(path, FileAttributes.ATTRIBUTE_LAST_MODIFIED)
        if attributes.last_modified is None:
            raise UnableToRetrieveMetadata.last_modified(path)
        return attributes

    def file_size(self, path: str) -> FileAttributes:
        attributes = self._fetch_file_metadata(path, FileAttributes.ATTRIBUTE_FILE_SIZE)
        if attributes.file_size is None:
            raise UnableToRetrieveMetadata.file_size(path)
        return attributes

    def _fetch_file_metadata(self, path: str, metadata_type: str) -> FileAttributes:
        try:
            metadata = self._client.head_object(Bucket=self._bucket, Key=self._prefixer.prefix_path(path))
        except S3_ERRORS as ex:
            previous = s3_storage_error(ex)
            raise UnableToRetrieveMetadata.create(path, metadata_type, "", previous) from previous
        attributes = self._map_object_metadata(metadata, path)
        if not isinstance(attributes, FileAttributes):
            raise UnableToRetrieveMetadata.create(path, metadata_type, "location is a directory")
        return attributes

    def _map_object_metadata(self, metadata: dict, path: t.Optional[str] = None) -> StorageAttributes:
        """Build attributes from a head_object response or an entry of a listing."""
        if path is None:
            path = self._prefixer.strip_prefix(metadata.get('Key') or metadata.get('Prefix'))
        if path.endswith('/'):
            return DirectoryAttributes(path.rstrip('/'))
        file_size = metadata.get('ContentLength', metadata.get('Size'))
        return FileAttributes(
            path,
            int(file_size) if file_size is not None else None,
            None,
            metadata.get('LastModified'),
            metadata.get('ContentType'),
            self._extract_extra_metadata(metadata)
        )

    def _extract_extra_metadata(self, metadata: dict) -> dict:
        extracted = {}
        for field in self.EXTRA_METADATA_FIELDS:
            if metadata.get(field, '') != '':
                extracted[field] = metadata[field]
        headers = metadata.get('ResponseMetadata', {}).get('HTTPHeaders', {})
        for header in self.EXTRA_METADATA_HEADERS:
            if headers.get(header, '') != '':
                extracted[header] = headers[header]
        return extracted

    def list_contents(self, path: str = "", deep: bool = False) -> t.Iterable[StorageAttributes]:
        prefix = self._prefixer.prefix_directory_path(path)
        try:
            response = self._list_objects(prefix, deep)
        except S3_ERRORS as ex:
            previous = s3_storage_error(ex)
            raise UnableToListContents.at_location(path, deep, previous) from previous
        for common_prefix in response.get('CommonPrefixes', []):
            yield DirectoryAttributes(self._prefixer.strip_directory_prefix(common_prefix['Prefix']))
        for content in response.get('Contents', []):
            if content['Key'] == prefix:
                continue
            yield self._map_object_metadata(content)

    def _list_objects(self, prefix: str, recursive: bool = False) -> dict:
        """Retrieve a single page of results from the bucket."""
        kwargs = {
            'Bucket': self._bucket,
            'Prefix': prefix,
            'MaxKeys': self.MAX_KEYS,
        }
        if not recursive:
            kwargs['Delimiter'] = '/'
        response = self._client.list_objects_v2(**kwargs)
        if response.get('IsTruncated'):
            self._log.warning(f"Listing of [{self._bucket}/{prefix}] truncated at {self.MAX_KEYS} keys")
        return response

    def move(self, source: str, destination: str, config: t.Optional[Config] = None):
        if self._prefixer.prefix_path(source) == self._prefixer.prefix_path(destination):
            raise UnableToMoveFile.from_location_to(source, destination)
        try:
            self.copy(source, destination, config)
        except FilesystemOperationFailed as ex:
            raise UnableToMoveFile.from_location_to(source, destination, ex) from ex
        try:
            self.delete(source)
        except FilesystemOperationFailed as ex:
            self._log.warning(f"Copied [{source}] to [{destination}] but could not remove the source")
            raise UnableToMoveFile.from_location_to(source, destination, ex) from ex

    def copy(self, source: str, destination: str, config: t.Optional[Config] = None):
        config = config or Config()
        kwargs = {
            'Bucket': self._bucket,
            'Key': self._prefixer.prefix_path(destination),
            'CopySource': {
                'Bucket': self._bucket,
                'Key': self._prefixer.prefix_path(source),
            },
        }
        visibility = config.get(Config.OPTION_VISIBILITY, None)
        if visibility is not None:
            kwargs['ACL'] = self._visibility.visibility_to_acl(visibility)
        try:
            self._client.copy_object(**kwargs)
        except S3_ERRORS as ex:
            previous = s3_storage_error(ex)
            raise UnableToCopyFile.from_location_to(source, destination, previous) from previous

    def get_url(self, path: str) -> str:
        """Public URL of the object; private objects get a short-lived signed URL instead."""
        key = quote(self._prefixer.prefix_path(path))
        if self._url:
            return f"{self._url}/{key}"
        if self.visibility(path).visibility == Visibility.PRIVATE:
            return self.get_temporary_url(path, datetime.timedelta(minutes=5))
        endpoint = urlparse(self._client.meta.endpoint_url)
        return f"{endpoint.scheme}://{self._bucket}.{endpoint.netloc}/{key}"

    def get_temporary_url(self,
                          path: str,
                          expiration: t.Union[datetime.datetime, datetime.timedelta],
                          options: t.Optional[dict] = None) -> str:
        if isinstance(expiration, datetime.timedelta):
            expires_in = int(expiration.total_seconds())
        else:
            if expiration.tzinfo is None:
                expiration = expiration.replace(tzinfo=datetime.timezone.utc)
            expires_in = int((expiration - datetime.datetime.now(datetime.timezone.utc)).total_seconds())
        if expires_in <= 0:
            raise UnableToGenerateTemporaryUrl.at_location(path, "expiration is not in the future")
        params = dict(options or {})
        params['Bucket'] = self._bucket
        params['Key'] = self._prefixer.prefix_path(path)
        try:
            return self._client.generate_presigned_url('get_object', Params=params, ExpiresIn=expires_in)
        except S3_ERRORS as ex:
            previous = s3_storage_error(ex)
            raise UnableToGenerateTemporaryUrl.due_to_error(path, previous) from previous
