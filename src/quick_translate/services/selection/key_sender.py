"""Send the platform copy shortcut to whichever application has focus."""

import subprocess
import sys

from quick_translate.services.selection.selection_acquirer import KeySender

MAC_COPY_SCRIPT = 'tell application "System Events" to keystroke "c" using command down'
XDOTOOL_COPY = ["xdotool", "key", "--clearmodifiers", "ctrl+c"]

VK_CONTROL = 0x11
VK_C = 0x43
KEYEVENTF_KEYUP = 0x0002


class SystemKeySender(KeySender):
    """Cmd+C through osascript on macOS, Ctrl+C through xdotool on X11 or keybd_event on Windows."""

    def __init__(self, platform: str = sys.platform, timeout: float = 2.0):
        self.platform = platform
        self.timeout = timeout

    def send_copy(self) -> bool:
        try:
            if self.platform == "win32":
                _send_ctrl_c_win32()
                return True
            if self.platform == "darwin":
                cmd = ["osascript", "-e", MAC_COPY_SCRIPT]
            else:
                cmd = XDOTOOL_COPY
            result = subprocess.run(cmd, capture_output=True, timeout=self.timeout, check=False)
        except (OSError, subprocess.SubprocessError) as e:
            print(f"[selection] Could not send copy shortcut: {e}")
            return False

        if result.returncode != 0:
            print(f"[selection] Copy shortcut exited with {result.returncode}: {result.stderr!r}")
            return False
        return True


def _send_ctrl_c_win32() -> None:
    import ctypes

    user32 = ctypes.windll.user32
    user32.keybd_event(VK_CONTROL, 0, 0, 0)
    user32.keybd_event(VK_C, 0, 0, 0)
    user32.keybd_event(VK_C, 0, KEYEVENTF_KEYUP, 0)
    user32.keybd_event(VK_CONTROL, 0, KEYEVENTF_KEYUP, 0)
