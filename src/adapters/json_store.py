"""JSON file document store.

Firestore 클라이언트와 같은 collection/document 인터페이스를 가진 파일 기반 저장소.
파일 하나에 {collection: {doc_id: data}} 형태로 저장하고, 변경될 때마다
임시 파일에 쓴 뒤 rename으로 원자적으로 교체합니다.

단일 프로세스, 단일 writer 전제입니다.
"""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

import structlog

from src.errors import StoreCorruptedError

logger = structlog.get_logger(__name__)

_OPERATORS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "in": lambda a, b: a in b,
}


class JsonDocumentStore:
    """Client for JSON-file CRUD operations.

    최초 접근 시 한 번 로드하고, 이후에는 메모리에서 변경한 뒤 매 변경마다
    전체 파일을 다시 씁니다.
    """

    def __init__(self, path: str | Path, keep_backup: bool = True) -> None:
        """Initialize JSON document store.

        Args:
            path: JSON 파일 경로.
            keep_backup: 교체 전 직전 파일을 .bak으로 보관할지 여부.
        """
        self.path = Path(path)
        self.keep_backup = keep_backup
        self._data: dict[str, dict[str, Any]] | None = None

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Get a document by ID.

        Returns:
            Document data (copy) or None if not found.
        """
        doc = self._collection(collection).get(doc_id)
        if doc is None:
            return None
        return dict(doc)

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or replace a document and persist."""
        self._collection(collection, create=True)[doc_id] = dict(data)
        self.flush()

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Update specific fields in a document and persist.

        Raises:
            KeyError: 문서가 없는 경우.
        """
        docs = self._collection(collection)
        if doc_id not in docs:
            raise KeyError(f"Document not found: {collection}/{doc_id}")
        docs[doc_id].update(data)
        self.flush()

    def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document and persist (없으면 무시)."""
        docs = self._collection(collection)
        if docs.pop(doc_id, None) is not None:
            self.flush()

    def exists(self, collection: str, doc_id: str) -> bool:
        return doc_id in self._collection(collection)

    def keys(self, collection: str) -> list[str]:
        """Document IDs in insertion order."""
        return list(self._collection(collection))

    def query(
        self, collection: str, filters: list[tuple[str, str, Any]]
    ) -> list[dict[str, Any]]:
        """Query documents with filters, in insertion order.

        Args:
            collection: Collection name.
            filters: List of (field, operator, value) tuples. 지원 연산자: ==, !=, in

        Returns:
            List of matching documents.
        """
        results = []
        for doc in self._collection(collection).values():
            if all(
                _OPERATORS[op](doc.get(field), value) for field, op, value in filters
            ):
                results.append(dict(doc))
        return results

    def flush(self) -> None:
        """메모리 상태를 파일에 원자적으로 기록."""
        data = self._load()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())

            if self.keep_backup and self.path.exists():
                shutil.copy2(self.path, self.path.with_name(self.path.name + ".bak"))

            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _collection(
        self, collection: str, create: bool = False
    ) -> dict[str, dict[str, Any]]:
        data = self._load()
        if create:
            return data.setdefault(collection, {})
        return data.get(collection, {})

    def _load(self) -> dict[str, dict[str, Any]]:
        """파일 로드 (최초 1회). 파일이 없으면 빈 저장소.

        Raises:
            StoreCorruptedError: JSON 파싱 실패 또는 구조가 잘못된 경우.
        """
        if self._data is not None:
            return self._data

        if not self.path.exists():
            self._data = {}
            return self._data

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StoreCorruptedError(f"Invalid JSON: {e}", str(self.path)) from e

        if not isinstance(raw, dict) or not all(
            isinstance(docs, dict) for docs in raw.values()
        ):
            raise StoreCorruptedError(
                "Expected {collection: {doc_id: document}} layout", str(self.path)
            )

        logger.debug(
            "store_loaded",
            path=str(self.path),
            collections={name: len(docs) for name, docs in raw.items()},
        )
        self._data = raw
        return self._data
