"""Repository for SourceState entities.

ingest-state.json sources 컬렉션에 대한 데이터 접근 레이어.
문서 ID는 SourceDescriptor.key 입니다.
"""

from src.adapters.json_store import JsonDocumentStore
from src.models.source import SourceDescriptor, SourceState
from src.repositories.base import BaseRepository


class StateRepository(BaseRepository[SourceState]):
    """SourceState Repository.

    Collection: sources
    """

    collection_name = "sources"
    model_class = SourceState

    def __init__(self, store: JsonDocumentStore) -> None:
        """Initialize StateRepository.

        Args:
            store: ingest-state.json 문서 저장소.
        """
        super().__init__(store)

    def get(self, descriptor: SourceDescriptor) -> SourceState:
        """소스 상태 조회. 저장된 상태가 없으면 초기 상태를 반환 (저장하지 않음).

        Args:
            descriptor: 소스 설정.

        Returns:
            SourceState.
        """
        state = self.get_by_id(descriptor.key)
        if state is None:
            return SourceState.initial(descriptor)
        state.reconcile(descriptor)
        return state

    def put(self, key: str, state: SourceState) -> None:
        """소스 상태 저장."""
        self.save(key, state)

    def all_states(self) -> dict[str, SourceState]:
        """저장된 전체 소스 상태 (상태 조회 API용)."""
        return {
            key: self.get_by_id(key)  # type: ignore[misc]
            for key in self._db.keys(self.collection_name)
        }
