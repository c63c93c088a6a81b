import botocore.exceptions as bce
from unittest import mock


def client_error(code: str, operation: str = "HeadObject") -> bce.ClientError:
    return bce.ClientError({"Error": {"Code": code, "Message": f"Error {code}"}}, operation)


def mock_client(endpoint_url: str = "https://s3.ca-central-1.amazonaws.com") -> mock.MagicMock:
    client = mock.MagicMock()
    client.meta.endpoint_url = endpoint_url
    return client
