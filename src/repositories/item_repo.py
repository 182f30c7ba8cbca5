"""Repository for Item entities.

knowledge.json items 컬렉션에 대한 데이터 접근 레이어.
삽입 순서가 곧 수집 순서이며, 한 번 들어간 ID는 다시 삽입되지 않습니다.
"""

from typing import Any

from src.adapters.json_store import JsonDocumentStore
from src.models.item import Classification, Item
from src.repositories.base import BaseRepository


class DuplicateItemError(ValueError):
    """이미 존재하는 아이템 ID 삽입 시도."""


class ItemRepository(BaseRepository[Item]):
    """Item 엔티티 Repository.

    Collection: items
    """

    collection_name = "items"
    model_class = Item

    def __init__(self, store: JsonDocumentStore) -> None:
        """Initialize ItemRepository.

        Args:
            store: knowledge.json 문서 저장소.
        """
        super().__init__(store)

    def append(self, item: Item) -> None:
        """새 아이템 추가 후 즉시 저장.

        Args:
            item: 추가할 아이템.

        Raises:
            DuplicateItemError: 같은 ID가 이미 있는 경우.
        """
        if self.exists(item.id):
            raise DuplicateItemError(f"Item already exists: {item.id}")
        self.save(item.id, item)

    def update_enrichment(
        self,
        item_id: str,
        summary: str,
        description: str,
        enriched_by: dict[str, Any],
    ) -> None:
        """요약 결과 저장.

        Args:
            item_id: 아이템 ID.
            summary: 짧은 요약.
            description: 긴 설명.
            enriched_by: 모델/프로바이더 정보.
        """
        self._db.update(
            self.collection_name,
            item_id,
            {
                "summary": summary,
                "description": description,
                "enrichedBy": enriched_by,
            },
        )

    def add_classification(self, item_id: str, classification: Classification) -> None:
        """프로젝트 분류 결과 추가.

        Raises:
            KeyError: 아이템이 없는 경우.
        """
        item = self.get_by_id(item_id)
        if item is None:
            raise KeyError(f"Item not found: {item_id}")

        item.classifications.append(classification)
        self._db.update(
            self.collection_name,
            item_id,
            {
                "classifications": [
                    c.model_dump(mode="json", by_alias=True)
                    for c in item.classifications
                ]
            },
        )

    def find_needing_enrichment(self) -> list[Item]:
        """요약이 없는 아이템 (수집 순서)."""
        return self.find_by([("summary", "==", None)])

    def find_needing_classification(self, project_keys: list[str]) -> list[Item]:
        """아직 분류되지 않은 프로젝트가 남은 아이템 (수집 순서)."""
        if not project_keys:
            return []
        return [
            item
            for item in self.find_all()
            if not all(item.is_classified_for(key) for key in project_keys)
        ]
