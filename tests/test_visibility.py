import unittest as ut
from bucketfs.base import Visibility
from bucketfs.exc import InvalidVisibilityProvided
from bucketfs.visibility import PortableVisibilityConverter, ALL_USERS_URI


def _grant(permission, uri=None, grantee_id=None):
    grantee = {"Type": "Group", "URI": uri} if uri else {"Type": "CanonicalUser", "ID": grantee_id}
    return {"Grantee": grantee, "Permission": permission}


class PortableVisibilityConverterTest(ut.TestCase):

    def test_visibility_to_acl(self):
        converter = PortableVisibilityConverter()
        self.assertEqual(converter.visibility_to_acl(Visibility.PUBLIC), "public-read")
        self.assertEqual(converter.visibility_to_acl(Visibility.PRIVATE), "private")

    def test_plain_strings(self):
        converter = PortableVisibilityConverter()
        self.assertIs(Visibility("public"), Visibility.PUBLIC)
        self.assertEqual(converter.visibility_to_acl("public"), "public-read")
        self.assertEqual(converter.acl_to_visibility("private"), "private")

    def test_invalid_visibility(self):
        converter = PortableVisibilityConverter()
        self.assertRaises(InvalidVisibilityProvided, converter.visibility_to_acl, "secret")
        self.assertRaises(InvalidVisibilityProvided, converter.visibility_to_acl, None)

    def test_round_trips(self):
        converter = PortableVisibilityConverter()
        for visibility in (Visibility.PUBLIC, Visibility.PRIVATE):
            with self.subTest(visibility=visibility):
                self.assertEqual(converter.acl_to_visibility(converter.visibility_to_acl(visibility)), visibility)

    def test_acl_to_visibility(self):
        converter = PortableVisibilityConverter()
        self.assertEqual(converter.acl_to_visibility("public-read"), Visibility.PUBLIC)
        self.assertEqual(converter.acl_to_visibility("public-read-write"), Visibility.PUBLIC)
        self.assertEqual(converter.acl_to_visibility("private"), Visibility.PRIVATE)

    def test_unknown_acl_is_private(self):
        converter = PortableVisibilityConverter()
        self.assertEqual(converter.acl_to_visibility("authenticated-read"), Visibility.PRIVATE)
        self.assertEqual(converter.acl_to_visibility(""), Visibility.PRIVATE)

    def test_default_acl(self):
        self.assertEqual(PortableVisibilityConverter().acl_to_visibility("default"), Visibility.PUBLIC)
        converter = PortableVisibilityConverter(Visibility.PRIVATE)
        self.assertEqual(converter.acl_to_visibility("default"), Visibility.PRIVATE)
        self.assertEqual(converter.default_for_directories(), Visibility.PRIVATE)

    def test_grants_to_acl(self):
        converter = PortableVisibilityConverter()
        owner = _grant("FULL_CONTROL", grantee_id="owner")
        self.assertEqual(converter.grants_to_acl([owner]), "private")
        self.assertEqual(converter.grants_to_acl([owner, _grant("READ", ALL_USERS_URI)]), "public-read")
        self.assertEqual(
            converter.grants_to_acl([owner, _grant("READ", ALL_USERS_URI), _grant("WRITE", ALL_USERS_URI)]),
            "public-read-write"
        )
        self.assertEqual(converter.grants_to_acl([_grant("FULL_CONTROL", ALL_USERS_URI)]), "public-read-write")
        self.assertEqual(converter.grants_to_acl([]), "default")

    def test_grants_for_other_groups_are_private(self):
        converter = PortableVisibilityConverter()
        authenticated = "http://acs.amazonaws.com/groups/global/AuthenticatedUsers"
        self.assertEqual(converter.grants_to_acl([_grant("READ", authenticated)]), "private")
