import aclx


def test_public_exports_resolve():
    for name in aclx.__all__:
        assert hasattr(aclx, name), name


def test_version_is_a_string():
    assert isinstance(aclx.__version__, str) and aclx.__version__


def test_errors_share_a_base():
    assert issubclass(aclx.UnknownRoleError, aclx.AclError)
    assert issubclass(aclx.UnknownRoleError, LookupError)
    assert issubclass(aclx.InvalidArgumentError, ValueError)
    assert issubclass(aclx.NoResolverError, aclx.UnresolvedAssertionError)


def test_quickstart():
    acl = aclx.Acl()
    acl.add_role("guest").add_role("editor", "guest")
    acl.add_resource("news")
    acl.allow("guest", "news", "view").allow("editor", "news", ["edit", "publish"])
    assert acl.is_allowed("editor", "news", "view")
    assert not acl.is_allowed("guest", "news", "edit")
