"""
Prompt Templates
================

Instruction templates per analysis tier, held as read-only data.

    | Tier          | Output contract                                   | Max tokens |
    |---------------|---------------------------------------------------|------------|
    | PREVIEW       | Teaser: type, urgency, summary, deadline          | 600        |
    | FULL          | Complete explanation in eight fixed sections      | 4096       |
    | CHAT_FOLLOWUP | Free-form concise answer to a follow-up question  | 2048       |

Usage:
    selector = PromptSelector()
    template = selector.select(AnalysisTier.PREVIEW)
    user_text = template.render(extracted_text)
"""

from types import MappingProxyType
from typing import Mapping

from document_interpreter.models import AnalysisTier, PromptTemplate

PREVIEW_SECTIONS = (
    "TIP DOCUMENT",
    "URGENȚĂ",
    "REZUMAT",
    "TERMEN LIMITĂ",
)

FULL_SECTIONS = (
    "CE ESTE ACEST DOCUMENT",
    "DE CE L-AȚI PRIMIT",
    "CE TREBUIE SĂ FACEȚI",
    "TERMEN LIMITĂ",
    "CE SE ÎNTÂMPLĂ DACĂ NU ACȚIONAȚI",
    "POSIBILITĂȚI DE CONTESTARE",
    "SFATURI PRACTICE",
    "UNDE GĂSIȚI AJUTOR",
)

_BASE_ROLE = (
    "Ești un asistent care explică documente oficiale (notificări fiscale, "
    "amenzi, scrisori de la angajator, decizii ale autorităților) pe înțelesul "
    "oricui. Răspunzi în limba română, cu propoziții scurte și fără jargon "
    "juridic. Nu inventa informații care nu apar în document; dacă un detaliu "
    "lipsește, spune explicit că nu este menționat."
)


def _section_list(sections: tuple[str, ...]) -> str:
    return "\n".join(f"{section}:" for section in sections)


PREVIEW_SYSTEM_INSTRUCTION = f"""{_BASE_ROLE}

Oferă DOAR o previzualizare scurtă a documentului, cu exact aceste secțiuni:

{_section_list(PREVIEW_SECTIONS)}

Reguli:
- TIP DOCUMENT: ce fel de document este, într-o frază
- URGENȚĂ: RIDICATĂ, MEDIE sau SCĂZUTĂ, cu o justificare scurtă
- REZUMAT: una sau două propoziții
- TERMEN LIMITĂ: data sau termenul din document, ori "Nu este menționat"
- NU descrie pașii de urmat și NU detalia consecințele; acestea fac parte din analiza completă
- Maximum 150 de cuvinte în total"""

FULL_SYSTEM_INSTRUCTION = f"""{_BASE_ROLE}

Oferă o explicație completă a documentului, cu exact aceste secțiuni, în această ordine:

{_section_list(FULL_SECTIONS)}

Reguli:
- CE TREBUIE SĂ FACEȚI: pași concreți, numerotați
- TERMEN LIMITĂ: toate datele și termenele relevante
- CE SE ÎNTÂMPLĂ DACĂ NU ACȚIONAȚI: consecințele reale, fără a exagera
- POSIBILITĂȚI DE CONTESTARE: cum, unde și în ce termen se poate contesta, dacă este cazul
- UNDE GĂSIȚI AJUTOR: instituții sau servicii care pot ajuta"""

CHAT_SYSTEM_INSTRUCTION = f"""{_BASE_ROLE}

Răspunzi la întrebări suplimentare despre un document oficial.
Răspunsurile sunt concise și la obiect. Dacă întrebarea nu are legătură cu
documentul sau cu situația utilizatorului, spune acest lucru politicos."""


DEFAULT_TEMPLATES: Mapping[AnalysisTier, PromptTemplate] = MappingProxyType({
    AnalysisTier.PREVIEW: PromptTemplate(
        system_instruction=PREVIEW_SYSTEM_INSTRUCTION,
        user_instruction_template=(
            "Analizează acest document oficial și oferă o scurtă previzualizare:\n\n{text}"
        ),
        multimodal_instruction=(
            "Analizează {artifact} și oferă o scurtă previzualizare."
        ),
        max_output_tokens=600,
    ),
    AnalysisTier.FULL: PromptTemplate(
        system_instruction=FULL_SYSTEM_INSTRUCTION,
        user_instruction_template=(
            "Analizează acest document oficial și oferă o explicație completă:\n\n{text}"
        ),
        multimodal_instruction=(
            "Analizează {artifact} și oferă o explicație completă."
        ),
        max_output_tokens=4096,
    ),
    AnalysisTier.CHAT_FOLLOWUP: PromptTemplate(
        system_instruction=CHAT_SYSTEM_INSTRUCTION,
        user_instruction_template="{text}",
        multimodal_instruction="Analizează {artifact}.",
        max_output_tokens=2048,
    ),
})


def describe_artifact(media_type: str) -> str:
    """Romanian noun phrase for an attachment, used in multimodal instructions."""
    if media_type == "application/pdf":
        return "acest PDF al unui document oficial"
    return "această imagine a unui document oficial"


class PromptSelector:
    """Maps an AnalysisTier to its PromptTemplate."""

    def __init__(
        self, templates: Mapping[AnalysisTier, PromptTemplate] | None = None
    ) -> None:
        templates = DEFAULT_TEMPLATES if templates is None else templates
        missing = [tier.value for tier in AnalysisTier if tier not in templates]
        if missing:
            raise ValueError(f"Missing prompt templates for tiers: {', '.join(missing)}")
        self._templates = MappingProxyType(dict(templates))

    def select(self, tier: AnalysisTier) -> PromptTemplate:
        try:
            return self._templates[tier]
        except KeyError:
            raise ValueError(f"Unknown analysis tier: {tier!r}") from None

    def multimodal_instruction(self, tier: AnalysisTier, media_type: str) -> str:
        """Tier instruction for an attachment of the given media type."""
        return self.select(tier).multimodal_instruction.format(
            artifact=describe_artifact(media_type)
        )
