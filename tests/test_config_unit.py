import dataclasses
import os
import unittest
from unittest.mock import patch

from cvs_client.config import ClientConfig, load_config, validate_config_env


class ConfigUnitTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("cvs_client.config.load_dotenv")
        self.load_dotenv = patcher.start()
        self.addCleanup(patcher.stop)

    def test_load_config_reads_env(self):
        env = {
            "CVS_PROJECT_NUMBER": "123456",
            "CVS_SERVICE_ACCOUNT_FILE": "/etc/cvs/key.json",
            "CVS_HTTP_TIMEOUT_SEC": "30",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config()
        self.assertEqual(config.project_number, "123456")
        self.assertEqual(config.service_account_file, "/etc/cvs/key.json")
        self.assertIsNone(config.credentials)
        self.assertEqual(config.http_timeout_sec, 30.0)
        self.assertEqual(config.audience, "https://cloudvolumesgcp-api.netapp.com")
        self.assertEqual(
            config.base_url, "https://cloudvolumesgcp-api.netapp.com/v2/projects/123456/locations/"
        )

    def test_custom_host_is_default_audience(self):
        env = {
            "CVS_PROJECT_NUMBER": "1",
            "CVS_CREDENTIALS_JSON": "{}",
            "CVS_API_HOST": "https://cvs.example.test/",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config(env_file="/tmp/cvs.env")
        self.load_dotenv.assert_called_once_with("/tmp/cvs.env")
        self.assertEqual(config.audience, "https://cvs.example.test/")
        self.assertEqual(config.base_url, "https://cvs.example.test/v2/projects/1/locations/")

    # User value: all config problems are reported together.
    def test_validation_collects_every_error(self):
        env = {"CVS_API_HOST": "cvs.example.test", "CVS_HTTP_TIMEOUT_SEC": "9000"}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(RuntimeError) as ctx:
                validate_config_env()
        text = str(ctx.exception)
        self.assertIn("CVS_PROJECT_NUMBER is required", text)
        self.assertIn("CVS_SERVICE_ACCOUNT_FILE or CVS_CREDENTIALS_JSON", text)
        self.assertIn("CVS_API_HOST must start with", text)
        self.assertIn("CVS_HTTP_TIMEOUT_SEC must be <= 600", text)

    def test_non_integer_timeout_is_rejected(self):
        env = {"CVS_PROJECT_NUMBER": "1", "CVS_CREDENTIALS_JSON": "{}", "CVS_HTTP_TIMEOUT_SEC": "soon"}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(RuntimeError):
                load_config()

    def test_config_is_immutable(self):
        config = ClientConfig(project_number="1")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.project_number = "2"


if __name__ == "__main__":
    unittest.main()
