import shutil
import sys

from .config import MAX_TERMINAL_WIDTH, SUGGESTION_LIMIT
from .models import Notification, NotificationKind

GAME_TITLE = "Bollydle Unlimited"
PROMPT = "Know it? Guess the title -> "

COMMANDS = {
    "p": "toggle",
    "play": "toggle",
    "pause": "toggle",
    "s": "skip",
    "skip": "skip",
    "x": "clear",
    "clear": "clear",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
    "h": "help",
    "help": "help",
}

HELP_LINES = [
    "Type a title and press Enter to guess.",
    f"?text  search titles, then /1-/{SUGGESTION_LIMIT} to pick a suggestion",
    "Enter on an empty line submits the picked suggestion.",
    "/p play or pause   /s skip (+ more audio)   /x clear input   /q quit",
]

NOTIFICATION_PREFIXES = {
    NotificationKind.SUCCESS: "[ok]",
    NotificationKind.INFO: "[i]",
    NotificationKind.ERROR: "[!]",
}


def get_terminal_width() -> int:
    return min(MAX_TERMINAL_WIDTH, shutil.get_terminal_size(fallback=(MAX_TERMINAL_WIDTH, 24)).columns)


def clear_terminal() -> None:
    if not sys.stdout.isatty():
        return

    sys.stdout.write("\033[2J\033[3J\033[H")
    sys.stdout.flush()


def enter_alternate_screen() -> bool:
    if not sys.stdout.isatty():
        return False

    sys.stdout.write("\033[?1049h\033[H")
    sys.stdout.flush()
    return True


def leave_alternate_screen() -> None:
    if not sys.stdout.isatty():
        return

    sys.stdout.write("\033[?1049l")
    sys.stdout.flush()


def parse_command(raw_value: str) -> tuple[str, str | int | None]:
    """Map one input line to an action name and its argument."""
    value = raw_value.strip()
    if not value:
        return "submit", None

    if value.startswith("?"):
        return "type", value[1:].lstrip()

    if value.startswith("/"):
        name = value[1:].strip().lower()
        if name.isdigit():
            return "pick", int(name)
        return COMMANDS.get(name, "invalid"), None

    return "guess", value


def build_progress_line(clock: str, fraction: float, cap: str, is_playing: bool, width: int) -> str:
    state = "PLAYING" if is_playing else "PAUSED "
    bar_width = max(10, width - len(clock) - len(cap) - len(state) - 6)
    filled = int(round(max(0.0, min(1.0, fraction)) * bar_width))
    return f"{state} {clock} [{'=' * filled}{' ' * (bar_width - filled)}] {cap}"


def build_attempt_lines(labels: list[str], width: int) -> list[str]:
    label_width = max(10, width - 6)
    lines: list[str] = []
    for index, label in enumerate(labels, start=1):
        if len(label) > label_width:
            label = label[: label_width - 3] + "..."
        lines.append(f"[{index}] {label}")
    return lines


def build_screen_lines(
    attempt_labels: list[str],
    progress_line: str,
    suggestion_titles: list[str],
    input_text: str,
    status: str,
    width: int,
) -> tuple[list[str], int]:
    """Build the full screen and return it with the progress row's index."""
    divider = "=" * width
    lines: list[str] = [divider, GAME_TITLE, divider]
    lines.extend(build_attempt_lines(attempt_labels, width))
    lines.append(divider)
    progress_index = len(lines)
    lines.append(progress_line)
    lines.append(divider)

    for index, title in enumerate(suggestion_titles, start=1):
        lines.append(f"  /{index} {title}")

    if input_text:
        lines.append(f"Input: {input_text}")
    lines.append(status)
    return lines, progress_index


def format_notification(notification: Notification) -> str:
    prefix = NOTIFICATION_PREFIXES.get(notification.kind, "")
    return f"{prefix} {notification.title} {notification.description}".strip()


def render_screen(lines: list[str]) -> None:
    clear_terminal()
    print("\n".join(lines))
    sys.stdout.write(PROMPT)
    sys.stdout.flush()


def update_progress_line(lines_up: int, progress_line: str) -> None:
    """Rewrite the progress row in place without moving the typing cursor."""
    if not sys.stdout.isatty():
        return

    # Save cursor, jump to the progress row, redraw it, restore cursor.
    sys.stdout.write("\0337")
    sys.stdout.write(f"\033[{max(1, lines_up)}A")
    sys.stdout.write("\r\033[2K")
    sys.stdout.write(progress_line)
    sys.stdout.write("\0338")
    sys.stdout.flush()
