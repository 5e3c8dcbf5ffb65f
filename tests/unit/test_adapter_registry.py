import pytest

from flowrunner.adapters import (
    AdapterDescriptor,
    AdapterDirection,
    AdapterExecutor,
    AdapterRegistry,
    InMemoryAdapterCatalog,
)
from flowrunner.adapters.registry import ADAPTERS, register_adapter
from flowrunner.errors import UnsupportedAdapterCombination


class FileSender(AdapterExecutor):
    instances = 0

    def __init__(self):
        FileSender.instances += 1

    async def execute(self, adapter, context, step):
        return {"filesProcessed": 1, "adapter": adapter.id}


def _descriptor(**overrides):
    data = dict(id="file-1", adapter_type="file", direction="sender")
    data.update(overrides)
    return AdapterDescriptor(**data)


def test_descriptor_normalises_type_and_direction():
    adapter = _descriptor()
    assert adapter.adapter_type == "FILE"
    assert adapter.direction is AdapterDirection.SENDER
    assert adapter.active


def test_descriptor_rejects_unknown_direction():
    with pytest.raises(ValueError):
        _descriptor(direction="sideways")


def test_lookup_is_case_insensitive():
    registry = AdapterRegistry()
    registry.register("file", "sender", FileSender())
    assert registry.is_supported("FILE", "SENDER")
    assert registry.supported_combinations() == [("FILE", "SENDER")]
    assert isinstance(registry.resolve(_descriptor()), FileSender)


def test_factory_instantiated_once():
    registry = AdapterRegistry()
    FileSender.instances = 0
    registry.register("FILE", "SENDER", FileSender)
    first = registry.resolve(_descriptor())
    second = registry.resolve(_descriptor())
    assert first is second
    assert FileSender.instances == 1


def test_unknown_combination_raises():
    registry = AdapterRegistry()
    registry.register("FILE", "SENDER", FileSender)
    with pytest.raises(UnsupportedAdapterCombination) as exc_info:
        registry.resolve(_descriptor(direction="receiver"))
    assert exc_info.value.adapter_type == "FILE"
    assert exc_info.value.direction == "RECEIVER"


def test_unregister_and_clear():
    registry = AdapterRegistry()
    registry.register("FILE", "SENDER", FileSender)
    registry.register("SFTP", "RECEIVER", FileSender)
    registry.unregister("file", "sender")
    assert not registry.is_supported("FILE", "SENDER")
    registry.clear()
    assert registry.supported_combinations() == []


@pytest.mark.asyncio
async def test_dispatch_validates_before_executing():
    calls = []

    class Checked(FileSender):
        def validate_configuration(self, adapter):
            calls.append("validate")

        async def execute(self, adapter, context, step):
            calls.append("execute")
            return {"ok": True}

    registry = AdapterRegistry()
    registry.register("FILE", "SENDER", Checked())
    result = await registry.dispatch(_descriptor(), {}, None)
    assert result == {"ok": True}
    assert calls == ["validate", "execute"]


def test_register_adapter_decorator():
    try:

        @register_adapter("ftp", "receiver")
        class FtpReceiver(FileSender):
            pass

        assert ADAPTERS.is_supported("FTP", "RECEIVER")
    finally:
        ADAPTERS.unregister("FTP", "RECEIVER")


@pytest.mark.asyncio
async def test_catalog_from_documents():
    catalog = InMemoryAdapterCatalog.from_documents(
        [{"id": "a1", "adapterType": "email", "direction": "sender", "active": False}]
    )
    adapter = await catalog.get_adapter("a1")
    assert adapter.adapter_type == "EMAIL"
    assert adapter.active is False
    assert await catalog.get_adapter("missing") is None

    catalog.add(_descriptor(id="a2"))
    assert (await catalog.get_adapter("a2")).adapter_type == "FILE"
