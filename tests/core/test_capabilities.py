from wmclient.core.capabilities import (
    CapabilityRegistry,
    CapabilitySelection,
    SelectionState,
    partition,
    select_static,
    select_virtual,
)


def _registry() -> CapabilityRegistry:
    return CapabilityRegistry.from_server(
        ["model_name", "brand_name", "device_os"],
        ["is_smartphone", "is_robot"],
        ["User-Agent", "Device-Stock-UA", "Accept"],
    )


def test_registry_sorts_caps_and_keeps_header_order():
    registry = _registry()
    assert registry.static_caps == ("brand_name", "device_os", "model_name")
    assert registry.virtual_caps == ("is_robot", "is_smartphone")
    assert registry.important_headers == ("User-Agent", "Device-Stock-UA", "Accept")
    assert registry.has_static("brand_name")
    assert not registry.has_static("is_robot")
    assert registry.has_virtual("is_robot")
    assert not registry.has_virtual("brand_name")


def test_partition_drops_unknown_names():
    static, virtual = partition(_registry(), ["brand_name", "bogus", "is_robot", "brand_name"])
    assert static.names == ("brand_name",)
    assert virtual.names == ("is_robot",)
    assert static.state is SelectionState.NAMED


def test_partition_none_is_unset_and_no_match_is_empty():
    static, virtual = partition(_registry(), None)
    assert static.state is SelectionState.UNSET
    assert virtual.state is SelectionState.UNSET

    static, virtual = partition(_registry(), ["bogus"])
    assert static.state is SelectionState.EMPTY
    assert virtual.state is SelectionState.EMPTY
    assert static.returns_all and virtual.returns_all


def test_single_kind_selectors_ignore_other_kind():
    registry = _registry()
    assert select_static(registry, ["model_name", "is_robot"]).names == ("model_name",)
    assert select_virtual(registry, ["model_name", "is_robot"]).names == ("is_robot",)
    assert select_static(registry, None) == CapabilitySelection.unset()


def test_selection_wire_format():
    assert CapabilitySelection.unset().to_wire() is None
    assert CapabilitySelection.of([]).to_wire() == []
    assert CapabilitySelection.of(["brand_name"]).to_wire() == ["brand_name"]
