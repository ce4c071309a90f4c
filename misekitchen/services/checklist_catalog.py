"""체크리스트 카탈로그 — 버전별 교대 체크리스트 정의 로더.

Checklist catalog — loads versioned shift checklist definitions from
``misekitchen/data/checklists/<version>.json``. Changing the checklist is a
data change: add a new version file and point CHECKLIST_VERSION at it.
"""

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from misekitchen.config import settings
from misekitchen.utils.logging import get_logger

logger = get_logger(__name__)

_CHECKLIST_DIR: Path = Path(__file__).resolve().parent.parent / "data" / "checklists"


@dataclass(frozen=True)
class ChecklistItem:
    """체크리스트 항목 정의 (One task of a checklist definition)."""

    name: str
    category: str
    position: int


@dataclass(frozen=True)
class ChecklistDefinition:
    """버전이 지정된 체크리스트 (A versioned checklist)."""

    version: str
    items: tuple[ChecklistItem, ...]


class ChecklistCatalog:
    """체크리스트 정의 조회 서비스 (Lookup of checklist definitions by version)."""

    def __init__(self, directory: Path = _CHECKLIST_DIR) -> None:
        self.directory: Path = directory

    def available_versions(self) -> list[str]:
        """사용 가능한 버전 목록 (Versions present on disk)."""
        return sorted(path.stem for path in self.directory.glob("*.json"))

    def get(self, version: str | None = None) -> ChecklistDefinition:
        """체크리스트 정의를 로드합니다.

        Load a checklist definition, defaulting to CHECKLIST_VERSION.

        Args:
            version: 버전 이름 (Version name, e.g. "v1")

        Returns:
            ChecklistDefinition: 체크리스트 정의 (Checklist definition)

        Raises:
            ValueError: 버전 파일이 없거나 항목이 비어 있을 때
                        (Unknown version or a definition without tasks)
        """
        return _load_definition(self.directory, version or settings.CHECKLIST_VERSION)


@lru_cache(maxsize=8)
def _load_definition(directory: Path, version: str) -> ChecklistDefinition:
    path: Path = directory / f"{version}.json"
    if not path.is_file():
        raise ValueError(f"Unknown checklist version: {version}")

    raw = json.loads(path.read_text(encoding="utf-8"))
    items = tuple(
        ChecklistItem(name=task["name"], category=task["category"], position=index)
        for index, task in enumerate(raw["tasks"])
    )
    if not items:
        raise ValueError(f"Checklist {version} has no tasks")

    logger.info("Loaded checklist definition", extra={"data": {"version": version, "tasks": len(items)}})
    return ChecklistDefinition(version=raw.get("version", version), items=items)


# 싱글턴 인스턴스 — Singleton instance
checklist_catalog: ChecklistCatalog = ChecklistCatalog()
