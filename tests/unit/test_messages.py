"""
Unit tests for callback message formatting
"""

import pytest

from shared.messages import (
    annotate_disposition,
    retry_later_message,
    scan_error_message,
    scan_result_message,
    timeout_message,
)
from shared.models import ScanStatus

URL = "https://example.com"


class TestAnnotateDisposition:
    @pytest.mark.parametrize("disposition,expected", [
        ("clean", ":white_check_mark: clean"),
        ("phish", ":rotating_light: phish"),
        ("suspicious", ":warning: suspicious"),
        ("PHISH", ":rotating_light: phish"),
    ])
    def test_known_dispositions(self, disposition, expected):
        assert annotate_disposition(disposition) == expected

    def test_unknown_disposition_is_verbatim(self):
        assert annotate_disposition("offline") == "offline"


class TestScanResultMessage:
    def test_resolved_result_with_insights_and_screenshot(self):
        status = ScanStatus(
            status="done",
            url=URL,
            disposition="clean",
            insights="https://scanner.example.com/insights/abc",
            resolved=True,
            screenshot_path="https://scanner.example.com/shot.png",
        )

        payload = scan_result_message(status, URL).to_payload()

        assert payload["response_type"] == "ephemeral"
        assert payload["text"] == f"Scanned {URL}"
        block = payload["blocks"][0]
        assert block["type"] == "section"
        assert block["text"] == {
            "type": "mrkdwn",
            "verbatim": True,
            "text": (
                f"Scanned {URL}\ndisposition: *:white_check_mark: clean*"
                "\n\n<https://scanner.example.com/insights/abc|Click here for insights>"
            ),
        }
        assert block["accessory"] == {
            "type": "image",
            "image_url": "https://scanner.example.com/shot.png",
            "alt_text": "Screenshot thumbnail",
        }

    def test_unresolved_result_has_no_screenshot(self):
        status = ScanStatus(
            status="done",
            disposition="phish",
            resolved=False,
            screenshot_path="https://scanner.example.com/shot.png",
        )

        block = scan_result_message(status, URL).blocks[0]

        assert "accessory" not in block
        assert block["text"]["text"] == f"Scanned {URL}\ndisposition: *:rotating_light: phish*"


class TestTextMessages:
    def test_scan_error(self):
        message = scan_error_message(URL, "Invalid API key")

        assert message.to_payload() == {
            "response_type": "ephemeral",
            "text": f"Unable to scan {URL}: Invalid API key",
        }

    def test_retry_later(self):
        assert retry_later_message(URL).text == f"Something went wrong while scanning {URL}. Please try again later."

    def test_timeout(self):
        assert timeout_message(URL).text == (
            f"Timed out waiting for the scan of {URL} to finish. Please try again later."
        )
