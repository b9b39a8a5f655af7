"""
Callback message builders
Every message posted back to a slash command response_url
"""

from shared.models import ScanStatus, SlackMessage

DISPOSITION_ANNOTATIONS = {
    "clean": ":white_check_mark: clean",
    "phish": ":rotating_light: phish",
    "suspicious": ":warning: suspicious",
}


def annotate_disposition(disposition: str | None) -> str:
    """Map a raw disposition to its annotated text; unknown values pass through."""
    if not disposition:
        return "unknown"
    return DISPOSITION_ANNOTATIONS.get(disposition.strip().lower(), disposition)


def scan_result_message(status: ScanStatus, url: str) -> SlackMessage:
    """Formatted result for a finished scan."""
    scanned_url = status.url or url

    text = f"Scanned {scanned_url}\ndisposition: *{annotate_disposition(status.disposition)}*"
    if status.insights:
        text += f"\n\n<{status.insights}|Click here for insights>"

    block = {
        "type": "section",
        "text": {
            "type": "mrkdwn",
            "verbatim": True,
            "text": text,
        },
    }

    # Only a resolved target has a screenshot worth showing
    if status.resolved and status.screenshot_path:
        block["accessory"] = {
            "type": "image",
            "image_url": status.screenshot_path,
            "alt_text": "Screenshot thumbnail",
        }

    return SlackMessage(text=f"Scanned {scanned_url}", blocks=[block])


def scan_error_message(url: str, error: str) -> SlackMessage:
    return SlackMessage(text=f"Unable to scan {url}: {error}")


def retry_later_message(url: str) -> SlackMessage:
    return SlackMessage(text=f"Something went wrong while scanning {url}. Please try again later.")


def timeout_message(url: str) -> SlackMessage:
    return SlackMessage(text=f"Timed out waiting for the scan of {url} to finish. Please try again later.")
