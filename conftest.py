"""Shared fixtures for Yomikata test suite."""
import pytest

from llm import ModelGateway
from models import START_MARKER, END_MARKER
from segmenter import Token


def answer(text: str, echo_prompt: bool = True) -> str:
    """Raw generation output the way text-generation models return it."""
    echoed = f"Format the response in the following way:\n\n{START_MARKER}\n[your answer]\n{END_MARKER}\n\n" if echo_prompt else ""
    return f"{echoed}Sure!\n{START_MARKER}\n{text}\n{END_MARKER}\n"


class FakeGateway(ModelGateway):
    """Scripted gateway. Items in `generations` that are exceptions get raised."""

    name = "fake"

    def __init__(self, translation="母", generations=None, reachable=True):
        self.translation = translation
        self.generations = list(generations or [])
        self.reachable = reachable
        self.calls = []

    async def translate(self, text):
        self.calls.append(("translate", text))
        if isinstance(self.translation, Exception):
            raise self.translation
        return self.translation

    async def translate_to(self, text, source_lang, target_lang):
        self.calls.append(("translate_to", text, source_lang, target_lang))
        if isinstance(self.translation, Exception):
            raise self.translation
        return self.translation

    async def generate(self, prompt, model_id=None):
        self.calls.append(("generate", prompt))
        item = self.generations.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def check(self):
        return self.reachable

    @property
    def prompts(self):
        return [call[1] for call in self.calls if call[0] == "generate"]


class FakeSegmenter:
    """Segments from a fixed table, or replays `script` one call at a time."""

    def __init__(self, readings=None, script=None):
        self.readings = readings or {}
        self.script = list(script or [])
        self.inputs = []

    def segment(self, text):
        self.inputs.append(text)
        if self.script:
            return self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if text in self.readings:
            return self.readings[text]
        return [Token(text, None)]


@pytest.fixture()
def make_gateway():
    return FakeGateway


@pytest.fixture()
def make_segmenter():
    return FakeSegmenter


@pytest.fixture()
def make_answer():
    return answer


@pytest.fixture()
def segmenter():
    return FakeSegmenter({
        "母": [Token("母", "ハハ")],
        "日本": [Token("日本", "ニホン")],
    })
