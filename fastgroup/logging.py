"""로깅 설정.

핸들러는 ``fastgroup`` 로거에만 한 번 붙이고, ``fastgroup.*`` 하위 로거들은
그 핸들러로 전파됩니다.
"""
import logging
import os

from uvicorn.logging import DefaultFormatter

ROOT_LOGGER = "fastgroup"


def _setup_root_logger(log_level) -> None:
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return

    root.setLevel(os.environ.get("FASTGROUP_LOG_LEVEL", "").upper() or log_level)
    handler = logging.StreamHandler()
    handler.setFormatter(DefaultFormatter(fmt="%(levelprefix)s %(name)s: %(message)s"))
    root.addHandler(handler)


def get_logger(name: str, log_level=logging.INFO) -> logging.Logger:
    """``fastgroup`` 하위 로거를 리턴합니다.

    로그 레벨은 ``FASTGROUP_LOG_LEVEL`` 환경 변수(예: ``DEBUG``)로 바꿀 수 있습니다.
    """
    _setup_root_logger(log_level)
    return logging.getLogger(name)
