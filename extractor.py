"""Answer-block extraction from free-form generative output."""
import re as _re

from log import get_logger
from errors import ExtractionError
from models import START_MARKER, END_MARKER

logger = get_logger("yomikata.extractor")

_START_RE = _re.compile(_re.escape(START_MARKER))
_END_RE = _re.compile(_re.escape(END_MARKER))


def extract_answer(raw: str) -> str:
    """Return the text of the last answer block in ``raw``.

    Models often restate the instructions (markers included) before they
    answer, so only the last start marker and the last end marker count.
    Markers are not paired: if the last end marker comes before the last
    start marker the result is an empty string and validation has to reject it.
    """
    raw = raw or ""
    starts = [m.end() for m in _START_RE.finditer(raw)]
    ends = [m.start() for m in _END_RE.finditer(raw)]
    if not starts or not ends:
        logger.warning("No answer block in model output",
                       extra={"component": "extractor", "detail": raw[:300]})
        raise ExtractionError(raw)

    extracted = raw[starts[-1]:ends[-1]].strip()
    logger.debug("Extracted from AI response", extra={"component": "extractor", "detail": extracted})
    return extracted
