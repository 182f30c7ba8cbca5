"""Base repository for JSON document store access.

모든 Repository가 상속하는 기본 클래스.
"""

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from src.adapters.json_store import JsonDocumentStore
from src.errors import StoreCorruptedError

# Pydantic 모델 타입 변수
T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T]):
    """Document store Repository 기본 클래스.

    각 도메인 Repository는 이 클래스를 상속하고
    collection_name과 model_class를 정의해야 합니다.

    Example:
        class ItemRepository(BaseRepository[Item]):
            collection_name = "items"
            model_class = Item
    """

    collection_name: ClassVar[str]
    model_class: ClassVar[type[BaseModel]]

    def __init__(self, store: JsonDocumentStore) -> None:
        """Initialize repository with a document store.

        Args:
            store: JsonDocumentStore 인스턴스.
        """
        self._db = store

    def get_by_id(self, doc_id: str) -> T | None:
        """ID로 문서 조회.

        Args:
            doc_id: 문서 ID.

        Returns:
            모델 인스턴스 또는 None.
        """
        data = self._db.get(self.collection_name, doc_id)
        if data is None:
            return None
        return self._to_model(doc_id, data)

    def save(self, doc_id: str, model: T) -> None:
        """문서 저장 (생성 또는 전체 교체).

        Args:
            doc_id: 문서 ID.
            model: 저장할 모델 인스턴스.
        """
        self._db.set(self.collection_name, doc_id, self._model_to_dict(model))

    def delete(self, doc_id: str) -> None:
        """문서 삭제."""
        self._db.delete(self.collection_name, doc_id)

    def find_by(self, filters: list[tuple[str, str, Any]]) -> list[T]:
        """필터로 문서 조회 (삽입 순서 유지).

        Args:
            filters: (field, operator, value) 튜플 리스트. field는 저장된 키 이름.

        Returns:
            매칭되는 모델 인스턴스 리스트.
        """
        results = self._db.query(self.collection_name, filters)
        return [self._to_model(None, data) for data in results]

    def find_all(self) -> list[T]:
        """전체 문서 조회."""
        return self.find_by([])

    def exists(self, doc_id: str) -> bool:
        """문서 존재 여부 확인."""
        return self._db.exists(self.collection_name, doc_id)

    def count(self, filters: list[tuple[str, str, Any]] | None = None) -> int:
        """문서 수 카운트."""
        return len(self._db.query(self.collection_name, filters or []))

    def _model_to_dict(self, model: T) -> dict[str, Any]:
        """모델을 JSON 저장용 dict로 변환 (camelCase alias, ISO 날짜)."""
        return model.model_dump(mode="json", by_alias=True)

    def _to_model(self, doc_id: str | None, data: dict[str, Any]) -> T:
        """저장된 dict를 모델로 변환.

        Raises:
            StoreCorruptedError: 저장된 레코드가 모델 스키마와 맞지 않는 경우.
        """
        try:
            return self.model_class.model_validate(data)  # type: ignore[return-value]
        except ValidationError as e:
            raise StoreCorruptedError(
                f"Malformed {self.collection_name} record {doc_id or ''}: {e}",
                str(self._db.path),
            ) from e
