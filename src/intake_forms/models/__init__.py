"""Public model re-exports for intake_forms.

Consumers should import from ``intake_forms.models`` rather than
reaching into sub-modules directly.
"""

# --- Questions ---
from intake_forms.models.question import (
    BaseQuestion,
    ChecklistOption,
    ChecklistQuestion,
    DateQuestion,
    LongTextQuestion,
    MultiSelectQuestion,
    Question,
    RepeatableGroupQuestion,
    ShortTextQuestion,
    StaticDisplayQuestion,
    SubField,
    VisibilityRule,
    YesNoQuestion,
    question_mapper,
)

# --- Case ---
from intake_forms.models.case import (
    CaseSummary,
    ClientCase,
    ScopeEntry,
    Section,
    StoredResponses,
)

# --- Comments ---
from intake_forms.models.comment import Comment, CommentThread

# --- Enums ---
from intake_forms.models.enums import HiddenAnswerPolicy, Role, SaveStatus, WriteState

# --- Views / export ---
from intake_forms.models.export import CaseSnapshot
from intake_forms.models.view import (
    FormView,
    ProgressReport,
    QuestionView,
    SectionProgress,
    SectionView,
)

__all__ = [
    # Questions
    "BaseQuestion",
    "ChecklistOption",
    "ChecklistQuestion",
    "DateQuestion",
    "LongTextQuestion",
    "MultiSelectQuestion",
    "Question",
    "RepeatableGroupQuestion",
    "ShortTextQuestion",
    "StaticDisplayQuestion",
    "SubField",
    "VisibilityRule",
    "YesNoQuestion",
    "question_mapper",
    # Case
    "CaseSummary",
    "ClientCase",
    "ScopeEntry",
    "Section",
    "StoredResponses",
    # Comments
    "Comment",
    "CommentThread",
    # Enums
    "HiddenAnswerPolicy",
    "Role",
    "SaveStatus",
    "WriteState",
    # Views / export
    "CaseSnapshot",
    "FormView",
    "ProgressReport",
    "QuestionView",
    "SectionProgress",
    "SectionView",
]
