"""配置加载器测试

测试 YAML 配置加载和缓存
"""

import pytest

from yorder.config import AppSettings, ConfigLoader, OrderableSettings, load_yaml_config


class TestConfigLoader:
    """ConfigLoader 测试"""

    def test_load_yaml_config(self, sample_yaml_config):
        """测试加载 YAML 配置"""
        config = ConfigLoader.load(sample_yaml_config, use_cache=False)

        assert config["orderable"]["order_field"] == "sort_key"
        assert config["orderable"]["increment"] == 512.0
        assert config["database"]["url"] == "sqlite:///test.db"

    def test_config_caching(self, sample_yaml_config):
        """测试配置缓存"""
        ConfigLoader.clear_cache()

        config1 = ConfigLoader.load(sample_yaml_config)
        config2 = ConfigLoader.load(sample_yaml_config)

        assert config1 is config2

    def test_cache_does_not_auto_refresh_until_reload(self, temp_file):
        """测试缓存不会自动刷新，需显式 reload"""
        path = temp_file("orderable.yaml", "increment: 100.0")
        ConfigLoader.clear_cache()

        assert ConfigLoader.load(path)["increment"] == 100.0

        with open(path, "w", encoding="utf-8") as f:
            f.write("increment: 200.0\n")
        assert ConfigLoader.load(path)["increment"] == 100.0

        assert ConfigLoader.reload(path)["increment"] == 200.0

    def test_base_dir(self, sample_yaml_config, temp_dir):
        """测试相对路径基于 base_dir 解析"""
        config = ConfigLoader.load("config/settings.yaml", base_dir=temp_dir, use_cache=False)
        assert config["logging"]["level"] == "DEBUG"

    def test_empty_file(self, temp_file):
        path = temp_file("empty.yaml", "")
        assert ConfigLoader.load(path, use_cache=False) == {}

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load("not_exists.yaml", base_dir=temp_dir)


class TestLoadYamlConfig:
    """load_yaml_config 测试"""

    def test_app_settings(self, sample_yaml_config):
        ConfigLoader.clear_cache()
        settings = load_yaml_config(sample_yaml_config, AppSettings)

        assert settings.orderable.order_field == "sort_key"
        assert settings.orderable.increment == 512.0
        assert settings.orderable.rebalance_threshold == 0.01
        assert settings.database.pool_size == 5
        assert settings.logging.parsed_file_max_bytes == 1024 * 1024

    def test_overrides(self, temp_file):
        path = temp_file("orderable_overrides.yaml", "increment: 100.0\npage_size: 10\n")
        ConfigLoader.clear_cache()
        settings = load_yaml_config(path, OrderableSettings, increment=64.0)

        assert settings.increment == 64.0
        assert settings.page_size == 10
