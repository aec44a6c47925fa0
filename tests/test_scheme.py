import pytest

from druidkit.scheme import (
    GROUP_VERSION,
    GroupVersion,
    GroupVersionKind,
    Scheme,
    add_to_scheme,
)


class Widget:
    pass


class Gadget:
    pass


def test_group_version_string():
    gv = GroupVersion(group="druid.gardener.cloud", version="v1alpha1")
    assert gv == GROUP_VERSION
    assert str(gv) == "druid.gardener.cloud/v1alpha1"


def test_core_group_version_string_is_version_only():
    assert str(GroupVersion(group="", version="v1")) == "v1"


def test_with_kind():
    gvk = GROUP_VERSION.with_kind("Etcd")
    assert gvk == GroupVersionKind("druid.gardener.cloud", "v1alpha1", "Etcd")
    assert gvk.kind == "Etcd"


def test_gvk_string_contains_parts():
    text = str(GROUP_VERSION.with_kind("Etcd"))
    assert text.startswith("druid.gardener.cloud/v1alpha1")
    assert text.endswith("Etcd")


def test_kind_for_instance_and_type():
    scheme = Scheme()
    gv = GroupVersion("example.com", "v1")
    scheme.add_known_types(gv, Widget, Gadget)
    assert scheme.kind_for(Widget()) == gv.with_kind("Widget")
    assert scheme.kind_for(Gadget) == gv.with_kind("Gadget")


def test_kind_for_unregistered_raises():
    scheme = Scheme()
    with pytest.raises(KeyError):
        scheme.kind_for(Widget())


def test_reregistering_same_type_is_allowed():
    scheme = Scheme()
    gv = GroupVersion("example.com", "v1")
    scheme.add_known_types(gv, Widget)
    scheme.add_known_types(gv, Widget)
    assert scheme.kind_for(Widget) == gv.with_kind("Widget")


def test_conflicting_registration_raises():
    scheme = Scheme()
    gv = GroupVersion("example.com", "v1")
    scheme.add_known_types(gv, Widget)

    class Widget2:
        pass

    Widget2.__name__ = "Widget"
    with pytest.raises(ValueError):
        scheme.add_known_types(gv, Widget2)


def test_add_to_scheme_registers_druid_types():
    from druidkit import etcd_types

    scheme = add_to_scheme(Scheme())
    for cls in (
        etcd_types.Etcd,
        etcd_types.EtcdList,
        etcd_types.EtcdCopyBackupsTask,
        etcd_types.EtcdCopyBackupsTaskList,
    ):
        gvk = scheme.kind_for(cls)
        assert gvk == GROUP_VERSION.with_kind(cls.__name__)
    assert scheme.kind_for(etcd_types.Etcd).kind == "Etcd"