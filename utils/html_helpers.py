import html
import logging
import re
from typing import Dict

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{\w+\}\}")


def replace_placeholders(template: str, mapping: Dict[str, str]) -> str:
    """
    Replace every "{{key}}" in `template` with mapping["{{key}}"], in one pass
    so that substituted values are never scanned again.
    Placeholders missing from `mapping` become empty strings.
    """
    def _sub(match: re.Match) -> str:
        key = match.group(0)
        if key not in mapping:
            logger.warning("No value for placeholder %s", key)
            return ""
        return mapping[key]

    return PLACEHOLDER_RE.sub(_sub, template)


def escape(value) -> str:
    return html.escape("" if value is None else str(value), quote=True)
