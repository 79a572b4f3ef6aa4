"""Agents package: one prompt policy per session operation."""

from docinsight.agents.summary_agent import SummaryAgent
from docinsight.agents.question_agent import QuestionAgent
from docinsight.agents.definition_agent import DefinitionAgent

__all__ = [
    "SummaryAgent",
    "QuestionAgent",
    "DefinitionAgent",
]
