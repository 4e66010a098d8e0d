"""Keyboard input decoding for the pager.

Raw terminal input is split into key sequences and each one is mapped to a
key identifier such as ``"j"``, ``"ctrl+d"``, ``"pageDown"`` or
``"escape"``.  Only legacy (non-kitty) encodings are understood.
"""

from __future__ import annotations

KeyId = str

ESC = "\x1b"

LEGACY_KEY_SEQUENCES: dict[str, KeyId] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
}


def parse_key(data: str) -> KeyId | None:
    """Return the key identifier for one key sequence, or ``None``."""
    if not data:
        return None

    if data in LEGACY_KEY_SEQUENCES:
        return LEGACY_KEY_SEQUENCES[data]

    if data == ESC:
        return "escape"
    if data == "\r" or data == "\n":
        return "enter"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data == "\x7f" or data == "\x08":
        return "backspace"

    # Ctrl + letter (0x01 - 0x1a)
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    # Alt + key (ESC prefix)
    if len(data) == 2 and data[0] == ESC and data[1].isprintable():
        return "alt+" + data[1].lower()

    # Case is kept: "g" and "G" are different commands.
    if len(data) == 1 and data.isprintable():
        return data

    return None


def _csi_end(data: str, start: int) -> int:
    """Index just past the CSI sequence beginning at *start*."""
    i = start + 2
    while i < len(data):
        if "\x40" <= data[i] <= "\x7e":
            return i + 1
        i += 1
    return len(data)


def split_keys(data: str) -> list[str]:
    """Split a chunk of raw input into individual key sequences.

    A read can carry several keys at once (``"jjj"`` or two arrow keys);
    a lone trailing ESC is the escape key.
    """
    keys: list[str] = []
    i = 0
    while i < len(data):
        if data[i] != ESC or i + 1 >= len(data):
            keys.append(data[i])
            i += 1
            continue
        nxt = data[i + 1]
        if nxt == "[":
            end = _csi_end(data, i)
        elif nxt == "O":
            end = min(i + 3, len(data))
        elif nxt == ESC:
            end = i + 1
        else:
            end = i + 2
        keys.append(data[i:end])
        i = end
    return keys
