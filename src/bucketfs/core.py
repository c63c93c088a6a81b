import boto3
import botocore.config
import zirconium as zr
import zrlog
import typing as t
from autoinject import injector
from bucketfs.base import Visibility
from bucketfs.exc import ConfigError
from bucketfs.s3 import S3Adapter
from bucketfs.visibility import PortableVisibilityConverter


@injector.injectable_global
class FilesystemController:
    """Controller class that builds the adapter for a named disk from the configuration.

        [bucketfs]
        default_disk = "default"

        [bucketfs.disks.default]
        bucket = "my-bucket"
        prefix = "uploads"
        region = "ca-central-1"
        endpoint = "https://oss-cn-hangzhou.aliyuncs.com"
        access_key_id = "..."
        secret_access_key = "..."
        url = "https://cdn.example.com"
        directory_visibility = "public"
        addressing_style = "virtual"
        options = { "CacheControl" = "max-age=3600" }
    """

    config: zr.ApplicationConfig = None

    @injector.construct
    def __init__(self):
        self._adapters: dict[str, S3Adapter] = {}
        self._log = zrlog.get_logger("bucketfs.controller")

    def default_disk(self) -> str:
        return self.config.as_str(("bucketfs", "default_disk"), default="default")

    def get_adapter(self, disk: t.Optional[str] = None) -> S3Adapter:
        """Get the adapter for the given disk, building it on first use."""
        disk = disk or self.default_disk()
        if disk not in self._adapters:
            self._adapters[disk] = self._build_adapter(disk)
        return self._adapters[disk]

    def _build_adapter(self, disk: str) -> S3Adapter:
        settings = self.config.as_dict(("bucketfs", "disks", disk), default={}) or {}
        if not settings.get("bucket"):
            raise ConfigError(f"No bucket configured for disk [{disk}]", 1000)
        self._log.info(f"Building adapter for disk [{disk}] on bucket [{settings['bucket']}]")
        return S3Adapter(
            self._build_client(settings),
            settings["bucket"],
            prefix=settings.get("prefix") or "",
            visibility=PortableVisibilityConverter(settings.get("directory_visibility") or Visibility.PUBLIC),
            options=settings.get("options") or {},
            url=settings.get("url") or None
        )

    def _build_client(self, settings: dict):
        session = boto3.session.Session(
            aws_access_key_id=settings.get("access_key_id") or None,
            aws_secret_access_key=settings.get("secret_access_key") or None,
            aws_session_token=settings.get("session_token") or None,
            region_name=settings.get("region") or None
        )
        return session.client(
            "s3",
            endpoint_url=settings.get("endpoint") or None,
            config=botocore.config.Config(s3={"addressing_style": settings.get("addressing_style") or "auto"})
        )
