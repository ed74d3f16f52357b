from unittest.mock import AsyncMock

import pytest

from intake_forms.casebook import CaseStore, parse_case
from intake_forms.evaluator import FormEvaluator


# Two-question case: q2 is shown only once q1 is answered yes.
MINI_CASE = {
    "client_name": "Acme Holdings",
    "case_name": "Acme v. Example",
    "case_number": "CV-0001",
    "sections": [
        {
            "id": "basics",
            "title": "Basics",
            "questions": [
                {"id": "q1", "kind": "yes_no", "label": "Question one"},
                {
                    "id": "q2",
                    "kind": "short_text",
                    "label": "Question two",
                    "show_if": "q1",
                },
            ],
        }
    ],
}


@pytest.fixture(scope="session")
def case_store():
    """Load every case under cases/ once for the entire test session."""
    store = CaseStore()
    store.load()
    return store


@pytest.fixture
def evaluator():
    return FormEvaluator()


@pytest.fixture
def alvarado(case_store):
    return case_store.get_case("alvarado-pool")


@pytest.fixture
def martinez(case_store):
    return case_store.get_case("martinez-estate")


@pytest.fixture
def mini_case():
    return parse_case(MINI_CASE, slug="acme", version=1)


@pytest.fixture
def mock_db():
    """AsyncMock standing in for AsyncSession; flush/commit are no-ops."""
    return AsyncMock()
