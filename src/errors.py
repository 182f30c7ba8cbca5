"""Fatal error taxonomy.

복구 가능한 오류(소스 수집 실패, 프로바이더 호출 실패)는 각 컴포넌트 경계에서 처리되고,
여기 정의된 오류만 최상위까지 전파되어 실행을 중단합니다.
"""


class PipelineFatalError(Exception):
    """실행을 중단해야 하는 치명적 오류 (재시도 불가)."""


class ConfigurationError(PipelineFatalError):
    """설정 오류 (필수 자격 증명 누락, 잘못된 설정 파일 등)."""


class StoreCorruptedError(PipelineFatalError):
    """영속 상태 파일 손상."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(f"{message} (path={path})" if path else message)
