"""
Tests for the configuration module.
"""

import pytest
import json
import logging
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from smartseg.components.config import (
    Config, ConfigManager, to_int, to_float, to_list, load_config_file
)

ENV_VARS = [
    'SMARTSEG_K', 'SMARTSEG_MAX_ITERS', 'SMARTSEG_FEATURES', 'SMARTSEG_PCA_ITERS',
    'SMARTSEG_PCA_EPSILON', 'SMARTSEG_PROFILE_DECIMALS', 'SMARTSEG_SAMPLE_ROWS',
    'SMARTSEG_SEED', 'SMARTSEG_MAX_WORKERS', 'LOG_LEVEL'
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    ConfigManager.reset()
    yield
    ConfigManager.reset()


class TestConverters:
    """Tests for the value conversion helpers."""
    
    def test_to_int(self):
        assert to_int('5') == 5
        assert to_int(None) is None
        assert to_int('five') is None
    
    def test_to_float(self):
        assert to_float('1e-9') == 1e-9
        assert to_float(None) is None
        assert to_float('x') is None
    
    def test_to_list(self):
        assert to_list('a, b,,c') == ['a', 'b', 'c']
        assert to_list(['x']) == ['x']
        assert to_list(None) is None
        assert to_list(3) is None


class TestConfig:
    """Tests for the Config class."""
    
    def test_defaults(self):
        """Defaults cover clustering, projection and profiling."""
        config = Config()
        
        assert config.get('segmentation.k') == 3
        assert config.get('segmentation.max-iters') == 200
        assert config.get('segmentation.features') == []
        assert config.get('pca.iters') == 200
        assert config.get('pca.epsilon') == 1e-9
        assert config.get('profile.decimals') == 3
        assert config.get('sample.rows') == 400
        assert config.get('random.seed') is None
        assert config.log_level() == logging.WARNING
    
    def test_env_vars(self, monkeypatch):
        """Environment variables override defaults."""
        monkeypatch.setenv('SMARTSEG_K', '5')
        monkeypatch.setenv('SMARTSEG_FEATURES', 'Recency,Monetary')
        monkeypatch.setenv('SMARTSEG_SEED', '17')
        monkeypatch.setenv('SMARTSEG_PCA_EPSILON', '1e-6')
        monkeypatch.setenv('LOG_LEVEL', 'DEBUG')
        
        config = Config()
        
        assert config.get('segmentation.k') == 5
        assert config.get('segmentation.features') == ['Recency', 'Monetary']
        assert config.get('random.seed') == 17
        assert config.get('pca.epsilon') == 1e-6
        assert config.log_level() == logging.DEBUG
    
    def test_invalid_env_var_ignored(self, monkeypatch):
        """Unparseable environment values keep the default."""
        monkeypatch.setenv('SMARTSEG_MAX_ITERS', 'lots')
        
        assert Config().get('segmentation.max-iters') == 200
    
    def test_overrides(self):
        """Overrides are merged into nested sections."""
        config = Config({'segmentation': {'k': 6}, 'random': {'seed': 1}})
        
        assert config.get('segmentation.k') == 6
        assert config.get('segmentation.max-iters') == 200
        assert config.get('random.seed') == 1
    
    def test_invalid_values(self):
        """Out of range values are rejected."""
        with pytest.raises(ValueError):
            Config({'segmentation': {'k': 0}})
        with pytest.raises(ValueError):
            Config({'pca': {'iters': 'many'}})
        with pytest.raises(ValueError):
            Config({'logging': {'level': 'loud'}})
    
    def test_get_and_set(self):
        """Values are addressed by dot-separated paths."""
        config = Config()
        
        assert config.get('missing.path', 'fallback') == 'fallback'
        
        config.set('segmentation.k', 4)
        config.set('extra.nested.value', True)
        
        assert config.get('segmentation.k') == 4
        assert config.get('extra.nested.value') is True
    
    def test_to_dict_is_a_copy(self):
        """Changing the exported dictionary does not change the config."""
        config = Config()
        
        exported = config.to_dict()
        exported['segmentation']['k'] = 99
        
        assert config.get('segmentation.k') == 3
    
    @pytest.mark.parametrize('filename', ['config.json', 'config.yaml'])
    def test_save_and_load(self, tmp_path, filename):
        """Configuration survives a save and load through a file."""
        path = str(tmp_path / filename)
        
        Config({'segmentation': {'k': 7}, 'pca': {'epsilon': 1e-7}}).save_to_file(path)
        
        config = Config()
        config.load_from_file(path)
        
        assert config.get('segmentation.k') == 7
        assert config.get('pca.epsilon') == 1e-7
    
    def test_unsupported_file(self, tmp_path):
        """Unknown file extensions are rejected."""
        with pytest.raises(ValueError):
            Config().save_to_file(str(tmp_path / 'config.txt'))
        with pytest.raises(ValueError):
            load_config_file(str(tmp_path / 'config.ini'))
    
    def test_load_config_file(self, tmp_path):
        """Override files are read as plain dictionaries."""
        path = tmp_path / 'overrides.json'
        path.write_text(json.dumps({'segmentation': {'k': 2}}))
        
        assert load_config_file(str(path)) == {'segmentation': {'k': 2}}


class TestConfigManager:
    """Tests for the ConfigManager singleton."""
    
    def test_singleton(self):
        """The same instance is returned until reset."""
        first = ConfigManager.get_config()
        second = ConfigManager.get_config()
        
        assert first is second
    
    def test_overrides_reload(self):
        """Overrides reload the shared instance."""
        config = ConfigManager.get_config()
        ConfigManager.get_config({'segmentation': {'k': 8}})
        
        assert config.get('segmentation.k') == 8
