from __future__ import annotations
import typing as t
from .base import Visibility
from .exc import InvalidVisibilityProvided


PRIVATE_ACL = "private"
PUBLIC_READ_ACL = "public-read"
PUBLIC_READ_WRITE_ACL = "public-read-write"
DEFAULT_ACL = "default"

ALL_USERS_URI = "http://acs.amazonaws.com/groups/global/AllUsers"


class VisibilityConverter(t.Protocol):

    def visibility_to_acl(self, visibility: str) -> str:
        raise NotImplementedError

    def acl_to_visibility(self, acl: str) -> str:
        raise NotImplementedError

    def grants_to_acl(self, grants: list[dict]) -> str:
        raise NotImplementedError

    def default_for_directories(self) -> str:
        raise NotImplementedError


class PortableVisibilityConverter(VisibilityConverter):
    """Converts between public/private visibility and canned ACL strings.

        An object reporting the "default" ACL inherits from its bucket; it is
        treated with the directory default. Unknown ACLs are considered private.
    """

    def __init__(self, default_for_directories: str = Visibility.PUBLIC):
        self._default_for_directories = default_for_directories

    def visibility_to_acl(self, visibility: str) -> str:
        if visibility == Visibility.PUBLIC:
            return PUBLIC_READ_ACL
        elif visibility == Visibility.PRIVATE:
            return PRIVATE_ACL
        raise InvalidVisibilityProvided.with_visibility(visibility)

    def acl_to_visibility(self, acl: str) -> str:
        if acl == DEFAULT_ACL:
            return self._default_for_directories
        elif acl in (PUBLIC_READ_ACL, PUBLIC_READ_WRITE_ACL):
            return Visibility.PUBLIC
        return Visibility.PRIVATE

    def grants_to_acl(self, grants: list[dict]) -> str:
        """Reduce the grant list of an object to the closest canned ACL."""
        if not grants:
            return DEFAULT_ACL
        permissions = set()
        for grant in grants:
            grantee = grant.get('Grantee') or {}
            if grantee.get('URI') == ALL_USERS_URI:
                permissions.add(grant.get('Permission'))
        if 'FULL_CONTROL' in permissions or {'READ', 'WRITE'} <= permissions:
            return PUBLIC_READ_WRITE_ACL
        if 'READ' in permissions:
            return PUBLIC_READ_ACL
        return PRIVATE_ACL

    def default_for_directories(self) -> str:
        return self._default_for_directories
