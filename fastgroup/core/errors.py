class FastGroupError(Exception):
    """``FastGroup`` 와 관련된 모든 에러의 기본 클래스."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    ...


class InvalidEntity(FastGroupError):
    """엔티티 필드 값이 유효하지 않을 때 발생하는 에러."""

    ...


class NotFound(FastGroupError):
    """참조한 User/Group 이 존재하지 않을 때 발생하는 에러.

    서비스 레이어에서 쓰기 작업을 하기 전에 발생시킵니다.
    """

    ...


class UniqueConstraintViolation(FastGroupError):
    """유일성 제약(email, group name, membership) 위반 에러."""

    ...


class ReferenceViolation(FastGroupError):
    """존재하지 않는 User/Group 을 참조하는 membership 을 추가하려 할 때 발생하는 에러."""

    ...


class TransactionFailure(FastGroupError):
    """트랜잭션 commit 실패나 중첩된 UoW 호출 등 트랜잭션 수준의 에러."""

    ...


class FastGroupInitError(FastGroupError):
    """프로젝트 초기화 실패 에러."""

    ...


class NestedTransaction(TransactionFailure):
    """진행 중인 UoW 를 같은 실행 흐름에서 다시 호출했을 때 발생하는 에러.

    호출하는 코드의 잘못이므로 다시 시도해도 성공하지 않습니다.
    """

    ...
