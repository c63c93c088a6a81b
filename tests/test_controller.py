import unittest as ut
from unittest import mock
from bucketfs.core import FilesystemController
from bucketfs.exc import ConfigError
from bucketfs.s3 import S3Adapter


DISKS = {
    "default": {
        "bucket": "main-bucket",
        "prefix": "uploads",
        "region": "ca-central-1",
        "access_key_id": "key",
        "secret_access_key": "secret",
        "url": "https://cdn.example.com",
        "options": {"CacheControl": "max-age=60"},
    },
    "archive": {
        "bucket": "archive-bucket",
        "endpoint": "https://oss-cn-hangzhou.aliyuncs.com",
        "addressing_style": "virtual",
        "directory_visibility": "private",
    },
    "broken": {
        "prefix": "nothing",
    },
}


def _as_dict(key, default=None):
    return DISKS.get(key[-1], default)


class FilesystemControllerTest(ut.TestCase):

    def setUp(self):
        self.controller = FilesystemController()
        self.controller.config = mock.MagicMock()
        self.controller.config.as_str.return_value = "default"
        self.controller.config.as_dict.side_effect = _as_dict

    @mock.patch("bucketfs.core.boto3.session.Session")
    def test_default_adapter(self, session_cls):
        adapter = self.controller.get_adapter()
        self.assertIsInstance(adapter, S3Adapter)
        self.assertEqual(adapter.bucket, "main-bucket")
        self.assertEqual(adapter.prefixer.prefix, "uploads/")
        self.assertIs(adapter.client, session_cls.return_value.client.return_value)
        session_cls.assert_called_once_with(
            aws_access_key_id="key",
            aws_secret_access_key="secret",
            aws_session_token=None,
            region_name="ca-central-1"
        )
        self.assertEqual(adapter.get_url("a.txt"), "https://cdn.example.com/uploads/a.txt")
        self.controller.config.as_dict.assert_called_with(("bucketfs", "disks", "default"), default={})

    @mock.patch("bucketfs.core.boto3.session.Session")
    def test_adapter_is_reused(self, session_cls):
        self.assertIs(self.controller.get_adapter("archive"), self.controller.get_adapter("archive"))
        session_cls.assert_called_once()

    @mock.patch("bucketfs.core.boto3.session.Session")
    def test_custom_endpoint(self, session_cls):
        adapter = self.controller.get_adapter("archive")
        self.assertEqual(adapter.bucket, "archive-bucket")
        self.assertEqual(adapter.prefixer.prefix, "")
        kwargs = session_cls.return_value.client.call_args.kwargs
        self.assertEqual(kwargs["endpoint_url"], "https://oss-cn-hangzhou.aliyuncs.com")
        self.assertEqual(kwargs["config"].s3, {"addressing_style": "virtual"})
        adapter.create_directory("dir")
        adapter.client.put_object.assert_called_once_with(Bucket="archive-bucket", Key="dir/", Body=b"", ACL="private")

    @mock.patch("bucketfs.core.boto3.session.Session")
    def test_missing_bucket(self, session_cls):
        self.assertRaises(ConfigError, self.controller.get_adapter, "broken")
        self.assertRaises(ConfigError, self.controller.get_adapter, "unknown")
        session_cls.assert_not_called()
