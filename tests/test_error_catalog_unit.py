import json
import unittest

from cvs_client.error_catalog import (
    CONTEXT_DEADLINE_EXCEEDED_MESSAGE,
    CREATE_JOBS_EXHAUSTED,
    DEADLINE_EXCEEDED,
    DELETE_JOBS_EXHAUSTED,
    OUTCOME_FATAL,
    OUTCOME_SUCCESS,
    OUTCOME_TRANSIENT,
    SPAWN_JOB_CREATION_MESSAGE,
    SPAWN_JOB_DELETION_MESSAGE,
    TRANSIENT_ERRORS,
    classify_response,
    raise_for_outcome,
)
from cvs_client.errors import FatalAPIError, NotFoundError, TransientAPIError


def _envelope(code, message):
    return json.dumps({"code": code, "message": message}).encode("utf-8")


class ResponseClassifierUnitTests(unittest.TestCase):
    def test_success_status_decodes_body(self):
        outcome = classify_response(200, b'{"volumeId": "v-1", "name": "vol-a"}', "getVolumeByID")
        self.assertEqual(outcome.kind, OUTCOME_SUCCESS)
        self.assertEqual(outcome.body["volumeId"], "v-1")

    def test_empty_success_body_is_success(self):
        outcome = classify_response(204, b"", "deleteVolume")
        self.assertEqual(outcome.kind, OUTCOME_SUCCESS)
        self.assertIsNone(outcome.body)

    def test_create_busy_message_is_transient(self):
        outcome = classify_response(500, _envelope(500, SPAWN_JOB_CREATION_MESSAGE), "createVolume")
        self.assertEqual(outcome.kind, OUTCOME_TRANSIENT)
        self.assertEqual(outcome.transient_kind, CREATE_JOBS_EXHAUSTED)

    def test_delete_busy_message_is_its_own_kind(self):
        outcome = classify_response(500, _envelope(500, SPAWN_JOB_DELETION_MESSAGE), "deleteVolume")
        self.assertEqual(outcome.transient_kind, DELETE_JOBS_EXHAUSTED)

    def test_deadline_message_is_transient(self):
        outcome = classify_response(500, _envelope(500, CONTEXT_DEADLINE_EXCEEDED_MESSAGE), "createVolume")
        self.assertEqual(outcome.transient_kind, DEADLINE_EXCEEDED)

    # User value: an unknown 500 is reported immediately instead of burning minutes in retries.
    def test_other_500_messages_are_fatal(self):
        for message in ("Internal error", SPAWN_JOB_CREATION_MESSAGE + ".", SPAWN_JOB_CREATION_MESSAGE.lower(), ""):
            outcome = classify_response(500, _envelope(500, message), "createVolume")
            self.assertEqual(outcome.kind, OUTCOME_FATAL, message)
            self.assertIsNone(outcome.transient_kind)

    def test_busy_message_with_other_code_is_fatal(self):
        outcome = classify_response(500, _envelope(503, SPAWN_JOB_CREATION_MESSAGE), "createVolume")
        self.assertEqual(outcome.kind, OUTCOME_FATAL)

    def test_client_errors_are_fatal(self):
        outcome = classify_response(400, _envelope(400, "quotaInBytes too small"), "createVolume")
        self.assertEqual(outcome.kind, OUTCOME_FATAL)
        self.assertEqual(outcome.error.message, "quotaInBytes too small")

    # User value: a rejected request is never retried, even if its body reads like a busy backend.
    def test_client_error_with_busy_envelope_is_fatal(self):
        outcome = classify_response(400, _envelope(500, SPAWN_JOB_CREATION_MESSAGE), "createVolume")
        self.assertEqual(outcome.kind, OUTCOME_FATAL)
        self.assertIsNone(outcome.transient_kind)
        self.assertEqual(outcome.error.message, SPAWN_JOB_CREATION_MESSAGE)

    def test_client_error_with_code_zero_is_fatal(self):
        outcome = classify_response(404, _envelope(0, ""), "getVolumeByID")
        self.assertEqual(outcome.kind, OUTCOME_FATAL)
        with self.assertRaises(NotFoundError):
            raise_for_outcome(outcome, "getVolumeByID")

    def test_code_zero_without_message_is_success(self):
        body = json.dumps({"code": 0, "message": "", "response": {"job": {"volumeId": "v-9"}}}).encode()
        outcome = classify_response(500, body, "createVolume")
        self.assertEqual(outcome.kind, OUTCOME_SUCCESS)
        self.assertEqual(outcome.body["response"]["job"]["volumeId"], "v-9")

    # User value: garbled responses fail closed so a broken proxy never looks retryable.
    def test_undecodable_error_body_fails_closed(self):
        outcome = classify_response(502, b"<html>Bad Gateway</html>", "createVolume")
        self.assertEqual(outcome.kind, OUTCOME_FATAL)
        self.assertEqual(outcome.error.message, "<html>Bad Gateway</html>")
        self.assertEqual(outcome.error.code, 502)

    def test_envelope_without_code_fails_closed(self):
        outcome = classify_response(500, b'{"error": "boom"}', "createVolume")
        self.assertEqual(outcome.kind, OUTCOME_FATAL)
        self.assertEqual(outcome.error.message, '{"error": "boom"}')

    def test_undecodable_success_body_is_fatal(self):
        outcome = classify_response(200, b"not json", "getVolumeByID")
        self.assertEqual(outcome.kind, OUTCOME_FATAL)

    def test_allowlist_only_holds_internal_error_entries(self):
        self.assertEqual(len(TRANSIENT_ERRORS), 3)
        self.assertTrue(all(code == 500 for code, _ in TRANSIENT_ERRORS))

    def test_raise_for_outcome_maps_errors(self):
        with self.assertRaises(NotFoundError):
            raise_for_outcome(classify_response(404, _envelope(404, "not found"), "getVolumeByID"), "getVolumeByID")
        with self.assertRaises(FatalAPIError):
            raise_for_outcome(classify_response(500, _envelope(500, "boom"), "createVolume"), "createVolume")
        with self.assertRaises(TransientAPIError) as ctx:
            raise_for_outcome(
                classify_response(500, _envelope(500, SPAWN_JOB_DELETION_MESSAGE), "deleteVolume"),
                "deleteVolume",
            )
        self.assertEqual(ctx.exception.kind, DELETE_JOBS_EXHAUSTED)
        raise_for_outcome(classify_response(200, b"{}", "x"), "x")


if __name__ == "__main__":
    unittest.main()
