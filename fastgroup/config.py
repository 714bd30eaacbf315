"""기본 환경 설정."""

from __future__ import annotations

import importlib
import os
import sys
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Type, cast

from sqlalchemy.pool import Pool, StaticPool

from fastgroup.core import FastGroupInitError

_config: Optional[FastGroup] = None


@dataclass
class FastGroupSetupConfig:
    name: str
    title: Optional[str] = None
    module_name: Optional[str] = None
    db_url: Optional[str] = None


def load_setupcfg(path: Path) -> Optional[FastGroupSetupConfig]:
    if (path / "setup.cfg").exists():
        # 현재 경로에 "setup.cfg" 파일이 있다면 [fastgroup] 섹션에서
        # name, title, db_url 등의 정보를 읽습니다.
        config = ConfigParser()
        config.read(path / "setup.cfg")
        if "fastgroup" in config:
            try:
                return FastGroupSetupConfig(**config["fastgroup"])
            except TypeError as e:
                raise FastGroupInitError(f"invalid [fastgroup] section: {e}") from e
    return None


@dataclass
class FastGroup:
    """FastGroup App 설정."""

    name: str
    title: str = "FastGroup"
    module_name: Optional[str] = None
    db_url: Optional[str] = None
    """``setup.cfg`` 에 지정된 DB URL. 지정되면 환경 변수보다 우선합니다."""
    is_implicit_name: bool = True
    """setup.cfg 없이 암시적으로 부여된 이름인지 여부."""

    @staticmethod
    def load_from_config(path=Path(".")) -> FastGroup:
        """``setup.cfg`` 와 ``<module>/config.py`` 를 읽어 설정 객체를 만듭니다.

        ``config.py`` 에 ``Config`` 클래스가 있으면 그 클래스로 설정을 생성합니다.
        """
        cfg = load_setupcfg(path)
        name = path.absolute().name
        kwargs: dict[str, Any] = dict(name=name, is_implicit_name=True)

        if cfg:
            kwargs.update(
                name=cfg.name,
                title=cfg.title or cfg.name,
                module_name=cfg.module_name,
                db_url=cfg.db_url,
                is_implicit_name=False,
            )

        module_name = kwargs.get("module_name")
        if module_name:
            module_path = path / module_name.replace(".", "/")
            if (module_path / "config.py").exists():
                abs_path = str(path.absolute())
                if abs_path not in sys.path:
                    sys.path.insert(0, abs_path)

                conf_module = importlib.import_module(f"{module_name}.config")
                config = cast(Type[FastGroup], getattr(conf_module, "Config"))
                return config(**kwargs)

        return Config(**kwargs)

    @property
    def uow(self):
        """설정된 DB 를 사용하는 :class:`SqlAlchemyUnitOfWork` 를 만듭니다."""
        from fastgroup.orm import init_db
        from fastgroup.uow import SqlAlchemyUnitOfWork

        return SqlAlchemyUnitOfWork(init_db(config=self))

    def get_api_host(self) -> str:
        """API 서버 주소. ``API_HOST`` 환경 변수로 바꿀 수 있습니다."""
        return os.environ.get("API_HOST", "127.0.0.1")

    def get_api_port(self) -> int:
        """API 서버 포트. ``API_PORT`` 환경 변수로 바꿀 수 있습니다."""
        return int(os.environ.get("API_PORT", "5000"))

    def get_db_url(self) -> str:
        """SqlAlchemy 에서 사용 가능한 형식의 DB URL을 리턴합니다."""
        raise NotImplementedError

    def get_db_connect_args(self) -> dict[str, Any]:
        """DB 드라이버 접속 인자.

        SQLite 커넥션은 API 서버의 워커 스레드에서도 쓰이므로 스레드 검사를 끕니다.
        """
        if self.get_db_url().startswith("sqlite"):
            return {"check_same_thread": False}
        return {}

    def get_db_poolclass(self) -> Optional[Type[Pool]]:
        """커넥션 풀 클래스. ``None`` 이면 SqlAlchemy 기본값을 씁니다.

        메모리 SQLite DB는 커넥션마다 DB가 따로 생기므로 하나의 커넥션을 공유합니다.
        """
        if self.get_db_url() in ("sqlite://", "sqlite:///:memory:"):
            return StaticPool
        return None

    def get_isolation_level(self) -> Optional[str]:
        """트랜잭션 격리 수준. ``None`` 이면 DB 기본값(보통 READ COMMITTED)을 씁니다."""
        return None


class Config(FastGroup):
    """기본 설정.

    다음 순서로 DB URL 을 정합니다.

    1. ``setup.cfg`` 의 ``db_url``
    2. ``DB_URL`` 환경 변수
    3. ``DB_HOST`` 환경 변수가 있으면 ``DB_USER``, ``DB_PASS``, ``DB_NAME`` 으로
       PostgreSQL URL 을 구성
    4. 메모리 SQLite
    """

    def get_db_url(self) -> str:
        """DB 접속 정보."""
        if self.db_url:
            return self.db_url

        if url := os.environ.get("DB_URL"):
            return url

        if db_host := os.environ.get("DB_HOST"):
            db_user = os.environ.get("DB_USER", "postgres")
            db_pass = os.environ.get("DB_PASS", "password")
            db_name = os.environ.get("DB_NAME", db_user)
            return f"postgresql://{db_user}:{db_pass}@{db_host}/{db_name}"

        return "sqlite://"


def get_config() -> FastGroup:
    """현재 경로 기준으로 로드한 전역 설정을 리턴합니다."""
    global _config

    if not _config:
        _config = FastGroup.load_from_config()

    return _config


def set_config(config: Optional[FastGroup]) -> None:
    global _config

    _config = config
