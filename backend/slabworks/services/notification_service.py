# Overview: User-facing notifications, queued with flask.flash and drained as JSON.

from flask import flash, get_flashed_messages

CATEGORY_SUCCESS = "success"
CATEGORY_ERROR = "error"


def notify_success(message: str) -> None:
    flash(message, CATEGORY_SUCCESS)


def notify_error(message: str) -> None:
    flash(message, CATEGORY_ERROR)


def drain() -> list[dict]:
    """Pop every queued notification for the current client session."""
    return [
        {"category": category, "message": message}
        for category, message in get_flashed_messages(with_categories=True)
    ]
