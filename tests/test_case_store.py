"""Tests for CaseStore and case parsing.

Verifies that:
  - Both shipped cases parse and load with their metadata and sections
  - The latest version is returned by default
  - Unknown slugs and versions raise NotFound
  - Schema errors (duplicate ids, dangling show_if, unknown kinds) fail fast
"""

import copy

import pytest
import yaml

from intake_forms.casebook import CaseStore, find_repo_root, load_yaml, parse_case
from intake_forms.errors import NotFound
from intake_forms.models.question import (
    ChecklistQuestion,
    RepeatableGroupQuestion,
    YesNoQuestion,
)

from conftest import MINI_CASE

SHIPPED_FILES = sorted((find_repo_root() / "cases").glob("*/v*.yaml"))


# =====================================================================
# Shipped cases
# =====================================================================

class TestShippedCases:

    def test_slugs(self, case_store):
        assert case_store.slugs() == ["alvarado-pool", "martinez-estate"]

    def test_alvarado_metadata(self, alvarado):
        assert alvarado.client_name == "Shalymmar Pool"
        assert alvarado.case_number == "25STCV35294"
        assert alvarado.deadline.isoformat() == "2026-01-26"
        meta = alvarado.metadata()
        assert meta["slug"] == "alvarado-pool"
        assert meta["version"] == 1
        assert meta["deadline"] == "2026-01-26"
        assert "sections" not in meta

    def test_alvarado_sections(self, alvarado):
        assert len(alvarado.sections) == 12
        assert alvarado.sections[0].id == "basic-info"
        docs = alvarado.sections[10]
        assert docs.upload_link
        assert all(isinstance(q, ChecklistQuestion) for q in docs.questions)
        assert len(docs.questions) == 7

    def test_question_kinds_parsed(self, alvarado):
        assert isinstance(alvarado.get_question("hasOtherNames"), YesNoQuestion)
        group = alvarado.get_question("otherNamesList")
        assert isinstance(group, RepeatableGroupQuestion)
        assert group.field_ids == ["name", "datesUsed"]
        assert group.show_if.question == "hasOtherNames"
        assert group.show_if.equals is True

    @pytest.mark.parametrize("path", SHIPPED_FILES, ids=lambda p: p.parent.name)
    def test_shipped_yaml_parses(self, path):
        raw = load_yaml(path)
        assert isinstance(raw, dict)
        assert raw["sections"]

    def test_punctuated_labels_intact(self, alvarado, martinez):
        assert (
            alvarado.get_question("timeAtCurrentAddress").label
            == "How long have you lived at your current address?"
        )
        speaks = alvarado.get_question("speaksEnglish")
        assert speaks.label == "Do you speak English with ease?"
        assert speaks.default_value is True
        assert (
            martinez.get_question("courtDisplay").value
            == "Superior Court of California, County of Los Angeles"
        )

    def test_get_question_unknown(self, alvarado):
        with pytest.raises(KeyError):
            alvarado.get_question("nope")

    def test_cases_is_frozen(self, alvarado):
        with pytest.raises(Exception):
            alvarado.client_name = "Someone else"


# =====================================================================
# Lookup
# =====================================================================

class TestLookup:

    @pytest.fixture
    def versioned(self, tmp_path):
        slug_dir = tmp_path / "acme"
        slug_dir.mkdir()
        v1 = copy.deepcopy(MINI_CASE)
        v2 = copy.deepcopy(MINI_CASE)
        v2["case_name"] = "Acme v. Example (amended)"
        (slug_dir / "v1.yaml").write_text(yaml.safe_dump(v1), encoding="utf-8")
        (slug_dir / "v2.yaml").write_text(yaml.safe_dump(v2), encoding="utf-8")
        (slug_dir / "draft.yaml").write_text(yaml.safe_dump(v1), encoding="utf-8")
        store = CaseStore(tmp_path)
        store.load()
        return store

    def test_latest_by_default(self, versioned):
        assert versioned.get_case("acme").version == 2
        assert versioned.get_case("acme").case_name.endswith("(amended)")

    def test_explicit_version(self, versioned):
        assert versioned.get_case("acme", 1).case_name == "Acme v. Example"

    def test_versions(self, versioned):
        assert versioned.versions("acme") == [1, 2]

    def test_unknown_slug(self, versioned):
        with pytest.raises(NotFound):
            versioned.get_case("globex")
        with pytest.raises(NotFound):
            versioned.versions("globex")

    def test_unknown_version(self, versioned):
        with pytest.raises(NotFound):
            versioned.get_case("acme", 3)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CaseStore(tmp_path / "missing").load()

    def test_add(self, mini_case):
        store = CaseStore("unused")
        store.add(mini_case)
        assert store.get_case("acme") is mini_case
        assert store.cases() == [mini_case]


# =====================================================================
# Schema errors
# =====================================================================

class TestSchemaErrors:

    def _raw(self):
        return copy.deepcopy(MINI_CASE)

    def test_duplicate_question_id(self):
        raw = self._raw()
        raw["sections"][0]["questions"][1]["id"] = "q1"
        with pytest.raises(ValueError, match="Duplicate question id"):
            parse_case(raw, slug="acme", version=1)

    def test_dangling_show_if(self):
        raw = self._raw()
        raw["sections"][0]["questions"][1]["show_if"] = "q0"
        with pytest.raises(ValueError, match="unknown question 'q0'"):
            parse_case(raw, slug="acme", version=1)

    def test_unknown_kind(self):
        raw = self._raw()
        raw["sections"][0]["questions"][0]["kind"] = "slider"
        with pytest.raises(ValueError, match="Unknown question kind 'slider'"):
            parse_case(raw, slug="acme", version=1)

    def test_multi_select_without_options(self):
        raw = self._raw()
        raw["sections"][0]["questions"].append(
            {"id": "q3", "kind": "multi_select", "label": "Pick", "options": []}
        )
        with pytest.raises(ValueError):
            parse_case(raw, slug="acme", version=1)
