"""
Unit tests for configuration management system.
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from quickdesk.config import ConfigManager, DeskConfig, ConfigurationError


class TestDeskConfig(unittest.TestCase):
    """Test cases for DeskConfig dataclass."""

    def test_defaults(self):
        config = DeskConfig()

        self.assertEqual(config.database_type, 'sqlite')
        self.assertEqual(config.page_size, 10)
        self.assertEqual(config.default_category_name, 'General')
        self.assertEqual(config.max_attachments, 5)
        self.assertTrue(config.seed_default_categories)
        self.assertFalse(config.allow_reopen)

    def test_invalid_database_type(self):
        with self.assertRaises(ValueError):
            DeskConfig(database_type='mongodb')

    def test_invalid_page_size(self):
        for value in (0, -3, True, "10"):
            with self.assertRaises(ValueError):
                DeskConfig(page_size=value)

    def test_invalid_log_level(self):
        with self.assertRaises(ValueError):
            DeskConfig(log_level='VERBOSE')

    def test_blank_default_category(self):
        with self.assertRaises(ValueError):
            DeskConfig(default_category_name='  ')

    def test_from_dict_ignores_unknown_keys(self):
        config = DeskConfig.from_dict({'database_type': 'memory', 'legacy_option': 1})

        self.assertEqual(config.database_type, 'memory')
        self.assertEqual(DeskConfig.from_dict(config.to_dict()), config)


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager class."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_file = os.path.join(self.temp_dir, "config.json")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_config(self, settings):
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump({'desk': settings}, f)

    def test_creates_default_config_file(self):
        manager = ConfigManager(self.config_file, use_environment=False)

        self.assertTrue(Path(self.config_file).exists())
        self.assertEqual(manager.get_config(), DeskConfig())

    def test_loads_existing_file(self):
        self.write_config({'database_type': 'memory', 'database_url': 'memory://', 'page_size': 25})

        config = ConfigManager(self.config_file, use_environment=False).get_config()

        self.assertEqual(config.database_type, 'memory')
        self.assertEqual(config.page_size, 25)

    def test_invalid_json(self):
        with open(self.config_file, 'w', encoding='utf-8') as f:
            f.write("{ not json")

        with self.assertRaises(ConfigurationError):
            ConfigManager(self.config_file)

    def test_environment_overrides(self):
        self.write_config({'database_type': 'sqlite', 'database_url': 'desk.db'})
        env = {'QUICKDESK_DATABASE_TYPE': 'memory', 'QUICKDESK_PAGE_SIZE': '50'}

        with patch.dict(os.environ, env):
            config = ConfigManager(self.config_file).get_config()

        self.assertEqual(config.database_type, 'memory')
        self.assertEqual(config.page_size, 50)

    def test_environment_store_policy_overrides(self):
        self.write_config({'database_type': 'memory', 'database_url': 'memory://'})
        env = {
            'QUICKDESK_ALLOW_REOPEN': 'true',
            'QUICKDESK_SEED_DEFAULT_CATEGORIES': 'off',
            'QUICKDESK_MAX_ATTACHMENTS': '2'
        }

        with patch.dict(os.environ, env):
            config = ConfigManager(self.config_file).get_config()

        self.assertTrue(config.allow_reopen)
        self.assertFalse(config.seed_default_categories)
        self.assertEqual(config.max_attachments, 2)

    def test_invalid_boolean_environment_value(self):
        with patch.dict(os.environ, {'QUICKDESK_ALLOW_REOPEN': 'sometimes'}):
            with self.assertRaises(ConfigurationError) as ctx:
                ConfigManager(self.config_file)

        self.assertEqual(ctx.exception.config_key, 'allow_reopen')

    def test_environment_ignored_when_disabled(self):
        self.write_config({'database_type': 'sqlite', 'database_url': 'desk.db'})

        with patch.dict(os.environ, {'QUICKDESK_DATABASE_TYPE': 'memory'}):
            config = ConfigManager(self.config_file, use_environment=False).get_config()

        self.assertEqual(config.database_type, 'sqlite')

    def test_invalid_environment_value(self):
        with patch.dict(os.environ, {'QUICKDESK_PAGE_SIZE': 'many'}):
            with self.assertRaises(ConfigurationError) as ctx:
                ConfigManager(self.config_file)

        self.assertEqual(ctx.exception.config_key, 'page_size')

    def test_get_config_rejects_invalid_settings(self):
        self.write_config({'database_type': 'postgres', 'database_url': 'x'})
        manager = ConfigManager(self.config_file, use_environment=False)

        with self.assertRaises(ConfigurationError):
            manager.get_config()

    def test_validate_configuration(self):
        self.write_config({'database_type': 'memory'})
        manager = ConfigManager(self.config_file, use_environment=False)

        errors = manager.validate_configuration()

        self.assertIn("Missing required configuration: database_url", errors)

        manager.set_setting('database_url', 'memory://')
        self.assertEqual(manager.validate_configuration(), [])

    def test_save_keeps_backup(self):
        manager = ConfigManager(self.config_file, use_environment=False)
        manager.set_setting('page_size', 20)

        manager.save_configuration()

        self.assertTrue(Path(self.config_file).with_suffix('.bak').exists())
        with open(self.config_file, encoding='utf-8') as f:
            self.assertEqual(json.load(f)['desk']['page_size'], 20)

    def test_reload_configuration(self):
        manager = ConfigManager(self.config_file, use_environment=False)
        self.write_config({'database_type': 'memory', 'database_url': 'memory://'})

        manager.reload_configuration()

        self.assertEqual(manager.get_setting('database_type'), 'memory')
        self.assertIsNone(manager.get_setting('page_size'))


if __name__ == '__main__':
    unittest.main()
