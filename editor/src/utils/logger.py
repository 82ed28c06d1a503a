"""Global logging and error handling utilities"""
import logging
import sys
import traceback

# Detect debug mode - True if running from source, False if packaged
DEBUG_MODE = not getattr(sys, 'frozen', False)

_main_window = None

_log = logging.getLogger('WatermarkEditor')


def set_main_window(window):
    """Set the main window reference for showing popups"""
    global _main_window
    _main_window = window


def _popup(kind, title, message):
    if _main_window is None:
        return False
    # Qt is only needed once a window has been registered
    from PyQt5.QtWidgets import QMessageBox
    if kind == 'critical':
        QMessageBox.critical(_main_window, title, message)
    else:
        QMessageBox.warning(_main_window, title, message)
    return True


def loggerRaise(e: Exception, user_message: str = None, title: str = "Error"):
    """Handle exceptions with optional popup in release mode

    Args:
        e: The exception to handle
        user_message: User-friendly message to show in popup (optional)
        title: Title for the popup dialog

    In DEBUG_MODE:
        - Just raises the exception (shows full traceback)

    In RELEASE_MODE:
        - Logs the full traceback
        - Shows popup with user message or exception string
        - Then raises the exception
    """
    if DEBUG_MODE:
        # Dev mode: just raise to see full traceback
        raise e

    _log.error(traceback.format_exc())
    message = user_message if user_message else str(e)
    if not _popup('critical', title, message):
        _log.error(f"ERROR POPUP (no window): {title} - {message}")

    # Re-raise so application can handle it appropriately
    raise e


def notify_user(message: str, title: str = "Watermark Editor"):
    """Report a rejected user action (not a bug): warning log plus popup

    Used for things like removing the last layer or filling an empty mask,
    where the editor state is unchanged and the user only needs to know why.
    """
    _log.warning(f"{title}: {message}")
    _popup('warning', title, message)
