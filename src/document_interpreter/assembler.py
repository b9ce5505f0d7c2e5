"""
Request Assembler
=================

Builds the LLMRequest for a tier: a text payload embedding the extracted
text, a multimodal payload carrying the original file, or an ordered chat
history. Assembly is a pure function of its inputs.
"""

from typing import Any, Iterable, Mapping

from document_interpreter.errors import ValidationError
from document_interpreter.models import (
    AnalysisTier,
    Attachment,
    ChatPayload,
    ConversationTurn,
    ExtractionResult,
    LLMRequest,
    MultimodalPayload,
    QualityVerdict,
    Role,
    TextPayload,
)
from document_interpreter.prompts import PromptSelector

DOCUMENT_CONTEXT_HEADING = "Context - analiza documentului discutat:"


class RequestAssembler:
    """Turns routing decisions and extracted content into LLM requests."""

    def __init__(self, selector: PromptSelector | None = None) -> None:
        self.selector = selector or PromptSelector()

    def assemble(
        self,
        tier: AnalysisTier,
        verdict: QualityVerdict,
        extraction: ExtractionResult,
        attachment: Attachment | None = None,
    ) -> LLMRequest:
        """
        Build the request for a document analysis.

        Args:
            tier: PREVIEW or FULL
            verdict: QualityGate decision
            extraction: Extracted text (used on the text route)
            attachment: Original upload (required on the multimodal route)

        Returns:
            LLMRequest with a TextPayload or MultimodalPayload
        """
        template = self.selector.select(tier)

        if verdict.uses_multimodal:
            if attachment is None:
                raise ValueError("Multimodal route requires the original attachment")
            return self.assemble_direct(tier, attachment)

        return LLMRequest(
            system_instruction=template.system_instruction,
            payload=TextPayload(text=template.render(extraction.text.strip())),
            max_output_tokens=template.max_output_tokens,
            tier=tier,
        )

    def assemble_direct(self, tier: AnalysisTier, attachment: Attachment) -> LLMRequest:
        """Build a multimodal request that bypasses extraction."""
        template = self.selector.select(tier)
        return LLMRequest(
            system_instruction=template.system_instruction,
            payload=MultimodalPayload.from_attachment(
                attachment,
                self.selector.multimodal_instruction(tier, attachment.media_type),
            ),
            max_output_tokens=template.max_output_tokens,
            tier=tier,
        )

    def assemble_chat(
        self,
        messages: Iterable[Mapping[str, Any]],
        system: str | None = None,
        image: Attachment | None = None,
        document_context: str | None = None,
    ) -> LLMRequest:
        """
        Build a follow-up chat request from caller-supplied history.

        The image, if any, is attached to the most recent user turn only.
        A caller-supplied ``system`` replaces the default chat instruction;
        ``document_context`` is appended to it verbatim.

        Raises:
            ValidationError: If the history is empty or malformed
        """
        template = self.selector.select(AnalysisTier.CHAT_FOLLOWUP)
        turns = self._parse_turns(messages)

        if image is not None:
            last_user = max(
                (i for i, turn in enumerate(turns) if turn.role == Role.USER),
                default=None,
            )
            if last_user is None:
                raise ValidationError("Imaginea trebuie trimisă împreună cu o întrebare.")
            question = turns[last_user].text.strip() or self.selector.multimodal_instruction(
                AnalysisTier.CHAT_FOLLOWUP, image.media_type
            )
            turns[last_user] = ConversationTurn(
                role=Role.USER,
                content=MultimodalPayload.from_attachment(image, question),
            )

        if any(not turn.is_multimodal and not turn.text.strip() for turn in turns):
            raise ValidationError("Mesajele nu pot fi goale.")

        system_instruction = system.strip() if system and system.strip() else template.system_instruction
        if document_context and document_context.strip():
            system_instruction = (
                f"{system_instruction}\n\n{DOCUMENT_CONTEXT_HEADING}\n{document_context}"
            )

        return LLMRequest(
            system_instruction=system_instruction,
            payload=ChatPayload(turns=tuple(turns)),
            max_output_tokens=template.max_output_tokens,
            tier=AnalysisTier.CHAT_FOLLOWUP,
        )

    def _parse_turns(self, messages: Iterable[Mapping[str, Any]]) -> list[ConversationTurn]:
        turns: list[ConversationTurn] = []
        for message in messages or []:
            if not isinstance(message, Mapping):
                raise ValidationError("Fiecare mesaj trebuie să fie un obiect cu 'role' și 'content'.")
            try:
                role = Role(str(message.get("role", "")).lower())
            except ValueError:
                raise ValidationError(
                    "Fiecare mesaj trebuie să aibă rolul 'user' sau 'assistant'."
                ) from None
            content = message.get("content")
            if not isinstance(content, str):
                raise ValidationError("Conținutul fiecărui mesaj trebuie să fie text.")
            turns.append(ConversationTurn(role=role, content=content))

        if not turns:
            raise ValidationError("Lista de mesaje lipsește sau este goală.")
        return turns
