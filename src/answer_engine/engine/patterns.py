"""
Module: engine.patterns

Purpose:
    The Pattern Library: immutable tables of lexical cues used by the
    Node Scorer and the derivers. Built once at import time and injected
    into every stage; nothing mutates it.

Key Classes:
    - IndicatorPattern: Named, weighted, case-insensitive regex
    - FormatCue: Regex cue mapping question wording to an AnswerFormat
    - PatternLibrary: Frozen bundle of all cue tables

Key Constants:
    - DEFAULT_PATTERNS: Library tuned on IGCSE-style science papers
    - FORMAT_DEFAULT_REQUIREMENTS: Per-format default requirement

Dependencies:
    - re: Pattern compilation
    - core.models.enums

Used By:
    - engine.scorer: question / contextual indicators
    - engine.formats: format cues, structural context types
    - engine.requirements: "any K of N" note parsing, default requirements
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple, Union

from ..core.models.enums import AnswerFormat, AnswerRequirement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndicatorPattern:
    """
    A named regex cue contributing `weight` to a score when it matches.

    Weights are integers so scores stay integer match counts.
    """
    name: str
    regex: re.Pattern
    weight: int = 1

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ValueError(f"Pattern weight cannot be negative: {self.name}")

    def matches(self, text: str) -> bool:
        return self.regex.search(text) is not None


@dataclass(frozen=True)
class FormatCue:
    """Question wording that implies a specific answer format."""
    answer_format: AnswerFormat
    regex: re.Pattern

    def matches(self, text: str) -> bool:
        return self.regex.search(text) is not None


def _indicator(name: str, pattern: str, weight: int = 1) -> IndicatorPattern:
    return IndicatorPattern(name, re.compile(pattern, re.IGNORECASE), weight)


def _cue(answer_format: AnswerFormat, pattern: str) -> FormatCue:
    return FormatCue(answer_format, re.compile(pattern, re.IGNORECASE))


# ─────────────────────────────────────────────────────────────────────────────
# Question Indicators
# ─────────────────────────────────────────────────────────────────────────────

QUESTION_INDICATORS: Tuple[IndicatorPattern, ...] = (
    _indicator("ends_with_question_mark", r"\?$"),
    _indicator("contains_question_mark", r"\?", weight=2),
    _indicator("wh_opening", r"^(what|when|where|why|how|which|who)\b"),
    _indicator(
        "command_opening",
        r"^(name|state|describe|explain|calculate|define|suggest|give|identify"
        r"|list|outline|predict|determine|deduce|draw|sketch|write|complete|use)\b",
    ),
    _indicator("evaluative_opening", r"^(compare|contrast|discuss|evaluate|analy[sz]e|assess|justify)\b"),
    _indicator("imperative_opening", r"^(calculate|explain|describe|state|name|define|suggest|identify|give|list)\b"),
    _indicator("command_sentence", r"\b(describe|explain|state|name|give|suggest|calculate)\b.+\."),
    _indicator("completion_task", r"\bcomplete (the )?(table|fig|diagram|sentence|graph)"),
    _indicator("fill_in", r"\b(complete|fill in)\b"),
    _indicator("use_data", r"\buse (the )?(data|information|graph|table) (in|from|to)\b"),
    _indicator("support_answer", r"\bsupport your answer\b"),
    _indicator("show_working", r"\bshow (all )?(your )?working\b"),
)


# ─────────────────────────────────────────────────────────────────────────────
# Contextual Indicators
# ─────────────────────────────────────────────────────────────────────────────

CONTEXTUAL_INDICATORS: Tuple[IndicatorPattern, ...] = (
    # Pure statements without question words
    _indicator("statement_sentences", r"^[A-Z][^.!?]*\.(?: [A-Z][^.!?]*\.)*$"),
    _indicator("declarative_sentence", r"^[A-Z][^.?]*\.$"),
    _indicator("short_statement", r"^(?!.*\?).{1,49}$"),
    # Descriptive phrasing
    _indicator("is_a", r"\bis (an?|the)\b"),
    _indicator("are_a", r"\bare (a|the)\b"),
    _indicator("shows", r"\bshow(s|n)?\b"),
    _indicator("as_shown", r"\bas shown in\b"),
    # Figure / table references
    _indicator("figure_reference", r"\bfig(?:ure)?\.?\s*\d+(?:\.\d+)?"),
    _indicator("table_reference", r"\btable\s*\d+(?:\.\d+)?"),
    _indicator("diagram", r"\bdiagram\b"),
    _indicator("visual_reference", r"fig(?:ure)?\s*\d|table\s*\d|diagram"),
    # Introduction openings
    _indicator("introduction_opening", r"^(here|this|these|the following)\b"),
    _indicator("observe_opening", r"^(consider|observe|look at)\b"),
    # Subject-matter statements common in stems
    _indicator("classification_statement", r"\bis an? (type|kind|example) of\b"),
    _indicator("availability_statement", r"\bcan be (produced|found|made|obtained)\b"),
    _indicator("commercial_production", r"\bproduced commercially in\b"),
    _indicator("discovery_statement", r"\bwas discovered (in|by)\b"),
    _indicator(
        "research_statement",
        r"\b(researchers|scientists|biologists?|students?) (in|at|measured|studied|investigated)\b",
    ),
    _indicator("results_shown", r"\bhistograms? of (their )?results? (are|is) shown\b"),
    _indicator("causation_statement", r"\b(are|is) caused by\b"),
    _indicator("experiment_statement", r"\b(performed|conducted|carried out) an? (experiment|investigation)\b"),
    _indicator("location_statement", r"\b(found|located) in the\b"),
    _indicator("dna_statement", r"\ba dna molecule has\b"),
)


# ─────────────────────────────────────────────────────────────────────────────
# Format Cues (first match wins, order matters)
# ─────────────────────────────────────────────────────────────────────────────

FORMAT_CUES: Tuple[FormatCue, ...] = (
    _cue(AnswerFormat.TABLE_COMPLETION, r"\b(complete|fill in) (the )?table\b"),
    _cue(AnswerFormat.CHEMICAL_STRUCTURE, r"\b(displayed|structural) formula\b|\bdraw the structure\b"),
    _cue(AnswerFormat.GRAPH, r"\b(plot|draw|sketch) (a |the )?graph\b|\bon the grid\b"),
    _cue(AnswerFormat.STRUCTURAL_DIAGRAM, r"\b(draw|sketch|complete)\b.*\blabel"),
    _cue(AnswerFormat.DIAGRAM, r"\b(draw|sketch)\b"),
    _cue(
        AnswerFormat.EQUATION,
        r"\b(write|complete|balance) (a |an |the )?(balanced )?(word |symbol |chemical |ionic )?equation\b",
    ),
    _cue(AnswerFormat.CALCULATION, r"\b(calculate|work out|compute)\b"),
    _cue(AnswerFormat.CODE, r"\b(write|complete) (the |a |an )?(program|pseudocode|algorithm|code)\b"),
)

# Answer context types that imply a structural format
STRUCTURAL_CONTEXTS: Mapping[str, AnswerFormat] = MappingProxyType({
    "table_cell": AnswerFormat.TABLE_COMPLETION,
    "table_row": AnswerFormat.TABLE_COMPLETION,
    "cell": AnswerFormat.TABLE_COMPLETION,
    "diagram_label": AnswerFormat.STRUCTURAL_DIAGRAM,
    "diagram": AnswerFormat.DIAGRAM,
    "graph_point": AnswerFormat.GRAPH,
    "plot_point": AnswerFormat.GRAPH,
})

MARK_POINT_CONTEXTS = frozenset({"mark_point", "marking_point"})

SELECTION_TYPES = frozenset({"mcq", "tf", "multiple_choice", "true_false"})

# Alternative types meaning "one of these answers is enough"
ONE_REQUIRED = "one_required"
ALTERNATIVE_ANY_TYPES = frozenset({ONE_REQUIRED, "any_from"})
# Alternative types meaning "all of these answers belong together"
ALTERNATIVE_ALL_TYPES = frozenset({"all_required", "structure_function_pair"})

# "Accept any 3 of 9", "any two from the following", "any 2 from:"
ANY_K_OF_N = re.compile(
    r"\bany\s+(\d+|one|two|three|four|five|six)\s+"
    r"(?:(?:correct|valid)\s+)?(?:(?:points?|answers?|responses?)\s+)?"
    r"(?:of|from)\b(?:\s+(?:the\s+)?(\d+))?",
    re.IGNORECASE,
)

FORMAT_DEFAULT_REQUIREMENTS: Mapping[AnswerFormat, AnswerRequirement] = MappingProxyType({
    AnswerFormat.SINGLE_WORD: AnswerRequirement.SINGLE_CHOICE,
    AnswerFormat.SINGLE_LINE: AnswerRequirement.SINGLE_CHOICE,
    AnswerFormat.TWO_ITEMS: AnswerRequirement.BOTH_REQUIRED,
    AnswerFormat.MULTI_LINE: AnswerRequirement.ALL_REQUIRED,
    AnswerFormat.MULTI_LINE_LABELED: AnswerRequirement.ALL_REQUIRED,
    AnswerFormat.CALCULATION: AnswerRequirement.ALTERNATIVE_METHODS,
    AnswerFormat.EQUATION: AnswerRequirement.ALTERNATIVE_METHODS,
    AnswerFormat.CHEMICAL_STRUCTURE: AnswerRequirement.ALL_REQUIRED,
    AnswerFormat.STRUCTURAL_DIAGRAM: AnswerRequirement.ALL_REQUIRED,
    AnswerFormat.DIAGRAM: AnswerRequirement.ALL_REQUIRED,
    AnswerFormat.TABLE: AnswerRequirement.ALL_REQUIRED,
    AnswerFormat.TABLE_COMPLETION: AnswerRequirement.ALL_REQUIRED,
    AnswerFormat.GRAPH: AnswerRequirement.ALL_REQUIRED,
    AnswerFormat.CODE: AnswerRequirement.ALTERNATIVE_METHODS,
    # Manually marked uploads have no automated requirement
    AnswerFormat.AUDIO: AnswerRequirement.NOT_APPLICABLE,
    AnswerFormat.FILE_UPLOAD: AnswerRequirement.NOT_APPLICABLE,
    AnswerFormat.SELECTION: AnswerRequirement.SINGLE_CHOICE,
    AnswerFormat.NOT_APPLICABLE: AnswerRequirement.NOT_APPLICABLE,
})

_NUMBER_WORDS = {"one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6}

PatternSpec = Union[str, Tuple[str, str], Tuple[str, str, int]]


@dataclass(frozen=True)
class PatternLibrary:
    """
    Immutable bundle of every lexical cue table the engine uses.

    Attributes:
        question_indicators: Cues that the text asks for an answer
        contextual_indicators: Cues that the text is background/stem only
        format_cues: Ordered wording cues for answer formats
        structural_contexts: Answer context_type -> structural format
        mark_point_contexts: Context types marking separate mark points
        selection_types: Question types answered by picking options
        any_k_of_n: Regex for "any K of/from N" marking notes
        default_requirements: Per-format default requirement

    Example:
        >>> lib = DEFAULT_PATTERNS.extend(contextual=[r"\\bnative to\\b"])
        >>> len(lib.contextual_indicators) == len(DEFAULT_PATTERNS.contextual_indicators) + 1
        True
    """
    question_indicators: Tuple[IndicatorPattern, ...] = QUESTION_INDICATORS
    contextual_indicators: Tuple[IndicatorPattern, ...] = CONTEXTUAL_INDICATORS
    format_cues: Tuple[FormatCue, ...] = FORMAT_CUES
    structural_contexts: Mapping[str, AnswerFormat] = field(default_factory=lambda: STRUCTURAL_CONTEXTS)
    mark_point_contexts: frozenset = MARK_POINT_CONTEXTS
    selection_types: frozenset = SELECTION_TYPES
    any_k_of_n: re.Pattern = ANY_K_OF_N
    default_requirements: Mapping[AnswerFormat, AnswerRequirement] = field(
        default_factory=lambda: FORMAT_DEFAULT_REQUIREMENTS
    )

    def default_requirement(self, answer_format: AnswerFormat) -> AnswerRequirement:
        """Default requirement for a format (ALL_REQUIRED if unmapped)."""
        return self.default_requirements.get(answer_format, AnswerRequirement.ALL_REQUIRED)

    def parse_any_k(self, note: Optional[str]) -> Optional[Tuple[int, Optional[int]]]:
        """
        Parse an "any K of N" marking note.

        Returns:
            (k, n) where n is None if the note gives no total,
            or None if the note has no such phrase

        Example:
            >>> DEFAULT_PATTERNS.parse_any_k("Accept any 3 of 9")
            (3, 9)
            >>> DEFAULT_PATTERNS.parse_any_k("any two from the following")
            (2, None)
        """
        if not note:
            return None
        match = self.any_k_of_n.search(note)
        if match is None:
            return None
        raw_k = match.group(1).lower()
        k = _NUMBER_WORDS[raw_k] if raw_k in _NUMBER_WORDS else int(raw_k)
        n = int(match.group(2)) if match.group(2) else None
        return k, n

    def extend(
        self,
        *,
        question: Iterable[PatternSpec] = (),
        contextual: Iterable[PatternSpec] = (),
    ) -> PatternLibrary:
        """
        Return a new library with extra indicator patterns appended.

        Each spec is a regex string, `(name, regex)` or `(name, regex, weight)`.

        Raises:
            ValueError: If a regex does not compile
        """
        return replace(
            self,
            question_indicators=self.question_indicators + _compile_specs(question, "question"),
            contextual_indicators=self.contextual_indicators + _compile_specs(contextual, "contextual"),
        )


def _compile_specs(specs: Iterable[PatternSpec], prefix: str) -> Tuple[IndicatorPattern, ...]:
    compiled = []
    for i, spec in enumerate(specs):
        if isinstance(spec, str):
            name, pattern, weight = f"{prefix}_extra_{i}", spec, 1
        elif len(spec) == 2:
            name, pattern = spec
            weight = 1
        else:
            name, pattern, weight = spec
        try:
            compiled.append(_indicator(name, pattern, weight))
        except re.error as e:
            raise ValueError(f"Invalid regex pattern {pattern!r}: {e}") from e
    logger.debug(f"Compiled {len(compiled)} extra {prefix} indicator(s)")
    return tuple(compiled)


DEFAULT_PATTERNS = PatternLibrary()
