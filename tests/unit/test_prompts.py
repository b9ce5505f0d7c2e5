"""
Unit Tests for PromptSelector
=============================
"""

import pytest

from document_interpreter import AnalysisTier, PromptSelector, PromptTemplate
from document_interpreter.prompts import DEFAULT_TEMPLATES, FULL_SECTIONS, PREVIEW_SECTIONS


@pytest.mark.unit
class TestPromptSelector:
    """Tier -> template mapping."""

    @pytest.mark.parametrize(
        "tier, budget",
        [
            (AnalysisTier.PREVIEW, 600),
            (AnalysisTier.FULL, 4096),
            (AnalysisTier.CHAT_FOLLOWUP, 2048),
        ],
    )
    def test_token_budgets(self, tier, budget):
        assert PromptSelector().select(tier).max_output_tokens == budget

    def test_preview_lists_fixed_sections(self):
        instruction = PromptSelector().select(AnalysisTier.PREVIEW).system_instruction
        for section in PREVIEW_SECTIONS:
            assert f"{section}:" in instruction
        assert "150" in instruction

    def test_full_lists_fixed_sections_in_order(self):
        instruction = PromptSelector().select(AnalysisTier.FULL).system_instruction
        positions = [instruction.index(f"{section}:") for section in FULL_SECTIONS]
        assert positions == sorted(positions)

    def test_render_embeds_text_verbatim(self):
        template = PromptSelector().select(AnalysisTier.PREVIEW)
        rendered = template.render("Text cu {acolade} și diacritice")
        assert rendered.endswith("Text cu {acolade} și diacritice")

    def test_multimodal_instruction_names_artifact(self):
        selector = PromptSelector()
        pdf = selector.multimodal_instruction(AnalysisTier.FULL, "application/pdf")
        image = selector.multimodal_instruction(AnalysisTier.FULL, "image/png")
        assert "PDF" in pdf
        assert "imagine" in image
        assert "explicație completă" in pdf

    def test_templates_are_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_TEMPLATES[AnalysisTier.PREVIEW] = None  # type: ignore[index]

    def test_missing_tier_rejected(self):
        partial = {AnalysisTier.PREVIEW: DEFAULT_TEMPLATES[AnalysisTier.PREVIEW]}
        with pytest.raises(ValueError, match="full"):
            PromptSelector(partial)

    def test_unknown_tier_rejected(self):
        with pytest.raises(ValueError, match="Unknown analysis tier"):
            PromptSelector().select("preview")  # type: ignore[arg-type]

    def test_custom_templates(self):
        custom = dict(DEFAULT_TEMPLATES)
        custom[AnalysisTier.PREVIEW] = PromptTemplate(
            system_instruction="sys",
            user_instruction_template="Preview: {text}",
            multimodal_instruction="Look at {artifact}",
            max_output_tokens=100,
        )
        template = PromptSelector(custom).select(AnalysisTier.PREVIEW)
        assert template.render("abc") == "Preview: abc"


@pytest.mark.unit
class TestAnalysisTierParse:
    """Caller strings -> tiers."""

    @pytest.mark.parametrize(
        "value, tier",
        [("preview", AnalysisTier.PREVIEW), ("FULL", AnalysisTier.FULL), (" full ", AnalysisTier.FULL)],
    )
    def test_valid(self, value, tier):
        assert AnalysisTier.parse(value) == tier

    @pytest.mark.parametrize("value", ["", "chat_followup", "complete"])
    def test_invalid(self, value):
        from document_interpreter import ValidationError

        with pytest.raises(ValidationError):
            AnalysisTier.parse(value)
