"""XML tag names for verification table columns."""

import re

FUNCTION = re.compile(r"(.+)\((.+)\)")


def is_tag_name_start_char(c: str) -> bool:
    return c == "_" or c.isalpha()


def is_tag_name_continuation_char(c: str) -> bool:
    return c in ("-", ".", "_") or c.isalpha() or c.isdecimal()


def create_tag_name(name: str) -> str:
    """
    Converts an arbitrary field name into a legal XML element name.

    Function-style names such as ``probability(yes)`` are first rewritten
    to ``probability_yes``. Invalid characters are then escaped as ``_xHHHH_``
    using the lowercase hex code point of the character.

    The mapping is not injective; distinct names may share a tag.
    """
    match = FUNCTION.fullmatch(name)
    if match:
        name = match.group(1) + "_" + match.group(2)

    parts = []
    for i, c in enumerate(name):
        valid = is_tag_name_start_char(c) if i == 0 else is_tag_name_continuation_char(c)
        if valid:
            parts.append(c)
        elif c == " ":
            parts.append("_x0020_")
        else:
            parts.append(f"_x{ord(c):04x}_")

    return "".join(parts)
