"""Unit tests for PersonaRouter."""

import pytest

from services.persona_router import PersonaRouter
from services.providers.base import ProviderUnavailable


@pytest.fixture
def router(text_provider):
    return PersonaRouter(text_provider, model_name="test-model")


class TestBuildPrompt:
    def test_lists_every_candidate_and_question(self, router, personas):
        prompt = router.build_prompt("Who wrote the first algorithm?", personas)

        assert "Ada: Specializes in Analytical Engine, first published algorithm" in prompt
        assert "Grace: Specializes in Compilers, COBOL, debugging" in prompt
        assert 'User Question: "Who wrote the first algorithm?"' in prompt
        assert '"None"' in prompt


class TestFindBest:
    @pytest.mark.asyncio
    async def test_case_insensitive_match_returns_candidate_object(
        self, router, text_provider, personas
    ):
        text_provider.answers = ["grace"]

        result = await router.find_best("Who fixed the moth bug?", personas)

        assert result is personas[1]

    @pytest.mark.asyncio
    async def test_answer_is_trimmed_and_unquoted(self, router, text_provider, personas):
        text_provider.answers = ['  "Ada."\n']

        result = await router.find_best("Engines?", personas)

        assert result is personas[0]

    @pytest.mark.asyncio
    async def test_unknown_name_returns_none(self, router, text_provider, personas):
        text_provider.answers = ["Napoleon"]

        assert await router.find_best("Who won at Austerlitz?", personas) is None

    @pytest.mark.asyncio
    async def test_none_answer_returns_none(self, router, text_provider, personas):
        text_provider.answers = ["None"]

        assert await router.find_best("What is for dinner?", personas) is None

    @pytest.mark.asyncio
    async def test_provider_failure_returns_none(self, router, text_provider, personas):
        text_provider.answers = [ProviderUnavailable("429 RESOURCE_EXHAUSTED")]

        assert await router.find_best("Anything?", personas) is None

    @pytest.mark.asyncio
    async def test_unexpected_provider_error_returns_none(self, router, text_provider, personas):
        text_provider.answers = [ValueError("bad payload")]

        assert await router.find_best("Anything?", personas) is None

    @pytest.mark.asyncio
    async def test_empty_inputs_skip_provider(self, router, text_provider, personas):
        assert await router.find_best("   ", personas) is None
        assert await router.find_best("A question", []) is None
        assert text_provider.prompts == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", ["ADA", "Grace", "Napoleon", "none", "", "Ada Lovelace"])
    async def test_result_is_always_a_candidate_or_none(
        self, router, text_provider, personas, answer
    ):
        text_provider.answers = [answer]

        result = await router.find_best("Question", personas)

        assert result is None or result in personas
        if result is not None:
            assert result.name.lower() == answer.strip().lower()
