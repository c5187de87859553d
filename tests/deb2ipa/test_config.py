from deb2ipa.config import (
    DEFAULT_MEMORY_LIMIT,
    ConverterConfig,
    default_config,
    get_default_config,
    set_default_config,
)


def test_defaults():
    config = get_default_config()
    assert config.memory_limit == DEFAULT_MEMORY_LIMIT == 2 * 1024**3
    assert config.metadata_filename == "Info.plist"
    assert not config.read_spilled_metadata
    assert config.spill_dir_prefix == "ipa-spill"


def test_default_config_context_restores():
    original = get_default_config()
    with default_config(memory_limit=10) as outer:
        assert get_default_config() is outer
        assert outer.memory_limit == 10
        with default_config(read_spilled_metadata=True) as inner:
            assert inner.memory_limit == 10
            assert inner.read_spilled_metadata
        assert get_default_config() is outer
    assert get_default_config() is original


def test_default_config_with_explicit_config():
    config = ConverterConfig(memory_limit=123)
    with default_config(config, spill_dir_prefix="x") as active:
        assert active.memory_limit == 123
        assert active.spill_dir_prefix == "x"
    assert config.spill_dir_prefix == "ipa-spill"


def test_set_default_config():
    original = get_default_config()
    try:
        set_default_config(ConverterConfig(memory_limit=42))
        assert get_default_config().memory_limit == 42
    finally:
        set_default_config(original)
