import re

EXCLUSION_MARKERS = ("{{nobots}}", "{{donotbot}}", "__NOEDITSECTION__")


def should_edit(text: str, bot_name: str) -> bool:
    """False when the page opts out of bot edits, generally or for ``bot_name``."""
    if any(marker in text for marker in EXCLUSION_MARKERS):
        return False
    deny_re = re.compile(
        rf"\{{\{{bots\s*\|\s*deny\s*=\s*(?:all|{re.escape(bot_name)})\s*\}}\}}",
        re.IGNORECASE,
    )
    return deny_re.search(text) is None
