import json
import logging
import os
import unittest
from unittest.mock import patch

from cvs_client.json_logging import REDACTED, JsonLogFormatter, configure_logging


def _record(msg="api_call operation=%s", args=("createVolume",)):
    return logging.LogRecord("cvs.api", logging.INFO, __file__, 10, msg, args, None)


class JsonLoggingUnitTests(unittest.TestCase):
    def test_record_renders_as_json(self):
        record = _record()
        record.region = "us-east4"
        payload = json.loads(JsonLogFormatter(service="cvs-client").format(record))
        self.assertEqual(payload["message"], "api_call operation=createVolume")
        self.assertEqual(payload["service"], "cvs-client")
        self.assertEqual(payload["logger"], "cvs.api")
        self.assertEqual(payload["region"], "us-east4")

    # User value: bearer tokens and key material never reach log storage.
    def test_sensitive_extras_are_redacted(self):
        record = _record()
        record.authorization = "Bearer abc.def"
        record.params = {"name": "vol-a", "creationToken": "tok-1", "nested": {"private_key": "---"}}
        payload = json.loads(JsonLogFormatter(service="cvs-client").format(record))
        self.assertEqual(payload["authorization"], REDACTED)
        self.assertEqual(payload["params"]["creationToken"], REDACTED)
        self.assertEqual(payload["params"]["nested"]["private_key"], REDACTED)
        self.assertEqual(payload["params"]["name"], "vol-a")

    def test_configure_logging_reads_env(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        self.addCleanup(setattr, root, "handlers", saved_handlers)
        self.addCleanup(root.setLevel, saved_level)

        with patch.dict(os.environ, {"LOG_LEVEL": "DEBUG", "LOG_FORMAT": "text"}):
            configure_logging()
        self.assertEqual(root.level, logging.DEBUG)
        self.assertEqual(len(root.handlers), 1)
        self.assertNotIsInstance(root.handlers[0].formatter, JsonLogFormatter)

        configure_logging(level=logging.WARNING, fmt="json")
        self.assertIsInstance(root.handlers[0].formatter, JsonLogFormatter)
        self.assertEqual(root.level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
