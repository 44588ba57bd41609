"""
Tests for attachment_stripper/modules/gmail_store.py

The Gmail API Resource is replaced with a MagicMock; no network access.
"""

import base64
import unittest
from unittest.mock import MagicMock, mock_open, patch

from googleapiclient.errors import HttpError

from attachment_stripper.modules.errors import MailStoreError
from attachment_stripper.modules.gmail_store import GmailMailStore, build_gmail_service
from attachment_stripper.modules.message_model import RebuiltMessage


def _http_error(status: int = 404) -> HttpError:
    resp = MagicMock(status=status, reason="Not Found")
    return HttpError(resp, b"not found")


class TestGmailMailStore(unittest.TestCase):

    def setUp(self):
        self.service = MagicMock()
        self.messages = self.service.users.return_value.messages.return_value
        self.store = GmailMailStore(self.service, user_id="me")

    def test_list_follows_pages(self):
        self.messages.list.return_value.execute.side_effect = [
            {"messages": [{"id": "a"}, {"id": "b"}], "nextPageToken": "p2"},
            {"messages": [{"id": "c"}]},
        ]

        ids = self.store.list_message_ids("size:15000000")

        self.assertEqual(ids, ["a", "b", "c"])
        second_call = self.messages.list.call_args_list[1]
        self.assertEqual(second_call.kwargs["pageToken"], "p2")
        self.assertEqual(second_call.kwargs["q"], "size:15000000")

    def test_list_with_no_results(self):
        self.messages.list.return_value.execute.return_value = {"resultSizeEstimate": 0}
        self.assertEqual(self.store.list_message_ids("x"), [])

    def test_get_message_converts_response(self):
        self.messages.get.return_value.execute.return_value = {
            "id": "a", "threadId": "t", "sizeEstimate": 5, "labelIds": ["INBOX"],
        }

        message = self.store.get_message("a", "metadata")

        self.messages.get.assert_called_once_with(userId="me", id="a", format="metadata")
        self.assertEqual(message.thread_id, "t")
        self.assertEqual(message.size_estimate, 5)

    def test_get_attachment_decodes_data(self):
        data = base64.urlsafe_b64encode(b"%PDF-1.4").decode("ascii").rstrip("=")
        attachments = self.messages.attachments.return_value
        attachments.get.return_value.execute.return_value = {"size": 8, "data": data}

        self.assertEqual(self.store.get_attachment("a", "att1"), b"%PDF-1.4")
        attachments.get.assert_called_once_with(userId="me", messageId="a", id="att1")

    def test_insert_uses_date_header(self):
        self.messages.insert.return_value.execute.return_value = {"id": "new-1"}
        rebuilt = RebuiltMessage(thread_id="t", label_ids=["INBOX"], internal_date="1", raw_payload="eA==")

        new_id = self.store.insert_message(rebuilt, internal_date_source="dateHeader")

        self.assertEqual(new_id, "new-1")
        kwargs = self.messages.insert.call_args.kwargs
        self.assertEqual(kwargs["internalDateSource"], "dateHeader")
        self.assertEqual(kwargs["body"]["raw"], "eA==")
        self.assertEqual(kwargs["body"]["threadId"], "t")

    def test_delete(self):
        self.store.delete_message("a")
        self.messages.delete.assert_called_once_with(userId="me", id="a")

    def test_http_errors_are_wrapped(self):
        self.messages.get.return_value.execute.side_effect = _http_error()

        with self.assertRaises(MailStoreError) as ctx:
            self.store.get_message("gone")

        self.assertEqual(ctx.exception.operation, "get")
        self.assertEqual(ctx.exception.message_id, "gone")

    def test_delete_error_is_wrapped(self):
        self.messages.delete.return_value.execute.side_effect = _http_error(403)
        with self.assertRaises(MailStoreError):
            self.store.delete_message("a")


class TestBuildGmailService(unittest.TestCase):

    @patch("attachment_stripper.modules.gmail_store.os.path.exists", return_value=False)
    def test_missing_token_file(self, mock_exists):
        with self.assertRaises(MailStoreError):
            build_gmail_service("missing.json")

    @patch("attachment_stripper.modules.gmail_store.build")
    @patch("attachment_stripper.modules.gmail_store.Credentials")
    @patch("attachment_stripper.modules.gmail_store.os.path.exists", return_value=True)
    def test_valid_token(self, mock_exists, mock_credentials, mock_build):
        creds = MagicMock(valid=True)
        mock_credentials.from_authorized_user_file.return_value = creds

        service = build_gmail_service("token.json", ["scope-a"])

        mock_credentials.from_authorized_user_file.assert_called_once_with("token.json", ["scope-a"])
        mock_build.assert_called_once_with("gmail", "v1", credentials=creds, cache_discovery=False)
        self.assertIs(service, mock_build.return_value)

    @patch("attachment_stripper.modules.gmail_store.build")
    @patch("attachment_stripper.modules.gmail_store.Request")
    @patch("attachment_stripper.modules.gmail_store.Credentials")
    @patch("attachment_stripper.modules.gmail_store.os.path.exists", return_value=True)
    def test_expired_token_is_refreshed_and_saved(self, mock_exists, mock_credentials, mock_request, mock_build):
        creds = MagicMock(valid=False, expired=True, refresh_token="r")
        creds.to_json.return_value = '{"token": "new"}'
        mock_credentials.from_authorized_user_file.return_value = creds

        with patch("builtins.open", mock_open()) as mocked_file:
            build_gmail_service("token.json")

        creds.refresh.assert_called_once_with(mock_request.return_value)
        mocked_file().write.assert_called_once_with('{"token": "new"}')

    @patch("attachment_stripper.modules.gmail_store.Credentials")
    @patch("attachment_stripper.modules.gmail_store.os.path.exists", return_value=True)
    def test_unrefreshable_token(self, mock_exists, mock_credentials):
        mock_credentials.from_authorized_user_file.return_value = MagicMock(
            valid=False, expired=False, refresh_token=None
        )
        with self.assertRaises(MailStoreError):
            build_gmail_service("token.json")


if __name__ == '__main__':
    unittest.main()
