"""CaseStore — loads every client case YAML under ``cases/`` into typed models.

This is the single source of truth for questionnaire schemas at runtime.
The store is loaded once at startup and provides lookup by slug and
version.  Each case lives in its own directory with one file per schema
revision, so a schema change adds a file instead of rewriting the old one::

    cases/
      alvarado-pool/
        v1.yaml
        v2.yaml

Usage::

    store = CaseStore()             # defaults to cases/ relative to repo root
    store.load()                    # parse every cases/<slug>/v<N>.yaml

    case = store.get_case("alvarado-pool")      # latest version
    old = store.get_case("alvarado-pool", 1)
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from intake_forms.constants import CASE_FILE_GLOB
from intake_forms.errors import NotFound
from intake_forms.models.case import ClientCase, Section
from intake_forms.models.question import Question, question_mapper

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v(\d+)$")


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Nearest ancestor of *start* holding ``pyproject.toml`` or ``.git``, else cwd."""
    here = (start or Path(__file__).resolve()).parent
    markers = ("pyproject.toml", ".git")
    return next(
        (d for d in (here, *here.parents) if any((d / m).exists() for m in markers)),
        Path.cwd(),
    )


def load_yaml(path: Path | str) -> Any:
    """Parse one YAML file with ``yaml.safe_load``.

    Raises:
        FileNotFoundError: if *path* does not exist.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def parse_case(raw: dict, *, slug: str, version: int) -> ClientCase:
    """Build a ``ClientCase`` from a parsed YAML mapping.

    Each question is parsed through ``question_mapper`` so an unknown kind
    fails with a message naming the case and section.
    """
    sections: list[Section] = []
    for raw_section in raw.get("sections", []):
        questions: list[Question] = []
        for q_dict in raw_section.get("questions", []):
            kind = q_dict.get("kind")
            cls = question_mapper.get(kind)
            if cls is None:
                raise ValueError(
                    f"Unknown question kind '{kind}' in {slug}/v{version}/"
                    f"{raw_section.get('id')}"
                )
            questions.append(cls(**q_dict))
        sections.append(Section(**{**raw_section, "questions": questions}))

    body = {k: v for k, v in raw.items() if k not in ("sections", "slug", "version")}
    return ClientCase(slug=slug, version=version, sections=sections, **body)


# ---------------------------------------------------------------------------
# CaseStore
# ---------------------------------------------------------------------------

class CaseStore:
    """Loads all case YAML from ``cases/`` and provides typed lookup.

    Attributes populated after :meth:`load`:

        cases_by_slug — dict[slug, dict[version, ClientCase]]
    """

    def __init__(self, case_dir: str | Path | None = None) -> None:
        if case_dir is None:
            case_dir = find_repo_root() / "cases"
        self._base = Path(case_dir)

        self.cases_by_slug: dict[str, dict[int, ClientCase]] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse every ``<slug>/v<N>.yaml`` under the case directory.

        Call this once at startup.  Raises ``FileNotFoundError`` if the
        case directory is missing and ``ValueError`` for malformed files.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing case directory: {self._base}")

        for slug_dir in sorted(p for p in self._base.iterdir() if p.is_dir()):
            for path in sorted(slug_dir.glob(CASE_FILE_GLOB)):
                match = _VERSION_RE.match(path.stem)
                if match is None:
                    logger.warning("Skipping case file with unversioned name: %s", path)
                    continue
                version = int(match.group(1))
                case = parse_case(load_yaml(path), slug=slug_dir.name, version=version)
                self.cases_by_slug.setdefault(case.slug, {})[version] = case

        logger.info(
            "CaseStore loaded: %d cases, %d schema versions",
            len(self.cases_by_slug),
            sum(len(v) for v in self.cases_by_slug.values()),
        )

    def add(self, case: ClientCase) -> None:
        """Register an already-built case (used by tests and tooling)."""
        self.cases_by_slug.setdefault(case.slug, {})[case.version] = case

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def slugs(self) -> list[str]:
        """Return all known case slugs, sorted."""
        return sorted(self.cases_by_slug)

    def versions(self, slug: str) -> list[int]:
        """Return the schema versions available for a slug, ascending.

        Raises:
            NotFound: if the slug is unknown.
        """
        if slug not in self.cases_by_slug:
            raise NotFound(f"Case not found: slug={slug}")
        return sorted(self.cases_by_slug[slug])

    def get_case(self, slug: str, version: int | None = None) -> ClientCase:
        """Look up a case by slug, defaulting to its latest schema version.

        Raises:
            NotFound: if the slug or requested version is unknown.
        """
        by_version = self.cases_by_slug.get(slug)
        if not by_version:
            raise NotFound(f"Case not found: slug={slug}")
        if version is None:
            version = max(by_version)
        if version not in by_version:
            raise NotFound(f"Case version not found: slug={slug} version={version}")
        return by_version[version]

    def cases(self) -> list[ClientCase]:
        """Return the latest version of every case, ordered by slug."""
        return [self.get_case(slug) for slug in self.slugs()]
