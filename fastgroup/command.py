"""Command line script for FastGroup."""
import os
import shutil
import sys
from argparse import ArgumentParser, RawTextHelpFormatter
from pathlib import Path
from textwrap import dedent
from typing import Optional, Sequence

import uvicorn
from colorama import Fore, Style
from colorama import init as init_colors

from fastgroup.config import FastGroup, set_config
from fastgroup.core import FastGroupError
from fastgroup.logging import get_logger
from fastgroup.orm import init_db, metadata

YELLOW, CYAN, RED, GREEN, WHITE = (
    Fore.YELLOW,
    Fore.CYAN,
    Fore.RED,
    Fore.GREEN,
    Fore.WHITE,
)
WHITE_EX, CYAN_EX = Fore.LIGHTWHITE_EX, Fore.LIGHTCYAN_EX

init_colors()  # Windows 콘솔에서도 ANSI 코드를 해석하도록 합니다.


def paint(text, color=Fore.WHITE, bright=False):
    """텍스트에 ANSI 컬러(와 밝기) 코드를 입힙니다."""
    prefix = Style.BRIGHT if bright else ""
    return f"{prefix}{color}{text}{Style.RESET_ALL}"


logger = get_logger("fastgroup.command")


class FastGroupCommand:
    def __init__(self, path: Optional[Path] = None):
        """Constructor.

        현재 경로(또는 ``path``)의 ``setup.cfg`` 에서 설정을 읽고 전역 설정으로 등록합니다.
        """
        self.path = Path(os.path.abspath(path or "."))
        self.config = FastGroup.load_from_config(self.path)
        set_config(self.config)

    def banner(self, msg, icon=""):
        """프로젝트 배너를 표시합니다."""
        if os.name == "nt":
            icon = ""
        banner_width = min(75, shutil.get_terminal_size().columns)
        print("─" * banner_width)
        print(f"{icon} {msg}")
        print("─" * banner_width)

    def info(self):
        """FastGroup 앱 정보를 출력합니다."""
        dot = paint("-", YELLOW, bright=True)
        self.banner(paint("FastGroup Information", bright=True), icon="💡")
        for label, value in [
            ("Name", self.config.name),
            ("Title", self.config.title),
            ("Path", self.path),
            ("Database", self.config.get_db_url()),
            ("API", f"http://{self.config.get_api_host()}:{self.config.get_api_port()}"),
        ]:
            print(dot, paint(f"{label:<8}", CYAN), ":", paint(value, WHITE_EX))

    def init_db(self, drop=False):
        """DB 테이블(user, group, user_groups)을 생성합니다.

        `--drop` 을 주면 기존 테이블을 지우고 다시 만듭니다.
        """
        bullet = paint("✓" if os.name != "nt" else "v", GREEN, bright=True)
        init_db(config=self.config, drop_all=drop)
        logger.info(
            f"{bullet} init {paint('database', CYAN)}... %s tables at %s",
            paint(f"{len(metadata.tables)}", YELLOW, bright=True),
            paint(self.config.get_db_url(), YELLOW, bright=True),
        )

    def run(self, reload=False, dry_run=False):
        """FastGroup API 서버를 실행합니다."""
        host, port = self.config.get_api_host(), self.config.get_api_port()
        self.banner(
            paint("Launching ", CYAN, bright=True)
            + paint(self.config.title, WHITE, bright=True)
            + paint(f" at http://{host}:{port}", CYAN),
            icon="🚀",
        )

        if not dry_run:
            uvicorn.run("fastgroup.api:app", host=host, port=port, reload=reload)


class FastGroupCommandParser:
    """콘솔 커맨드 명령어 파서.

    서브커맨드 이름은 `FastGroupCommand` 의 메소드 이름에서(``_`` → ``-``),
    도움말은 메소드의 docstring 에서 만들어집니다. 옵션 값은 같은 이름의
    키워드 인자로 메소드에 전달됩니다.
    """

    OPTIONS: dict[str, list[tuple[str, str]]] = {
        "info": [],
        "init_db": [("--drop", "기존 테이블을 지우고 다시 생성")],
        "run": [("--reload", "소스 변경시 자동 재시작")],
    }

    def __init__(self, cmd: Optional[FastGroupCommand] = None):
        self.parser = ArgumentParser(
            "fastgroup",
            description=f"✨ {paint('FastGroup', bright=True)} : "
            f"{paint('command line utility', CYAN_EX)}",
        )
        self._cmd = cmd or FastGroupCommand()

        subparsers = self.parser.add_subparsers(dest="command")
        for name, flags in self.OPTIONS.items():
            handler = getattr(self._cmd, name)
            parser = subparsers.add_parser(
                name.replace("_", "-"),
                description=_help_from_doc(handler.__doc__),
                formatter_class=RawTextHelpFormatter,
            )
            for flag, help in flags:  # pylint: disable=redefined-builtin
                parser.add_argument(flag, action="store_true", help=help)

    def parse_args(self, args: Sequence[str]):
        """콘솔 명령어를 해석해서 `FastGroupCommand` 의 메소드를 호출합니다."""
        if not args:
            self.parser.print_help()
            return

        options = vars(self.parser.parse_args(args))
        handler = getattr(self._cmd, options.pop("command").replace("-", "_"))
        try:
            handler(**options)
        except FastGroupError as e:
            print(
                f"{paint('FastGroup ERROR:', RED, bright=True)} {paint(e.message, YELLOW)}",
                file=sys.stderr,
            )


def _help_from_doc(doc: Optional[str]) -> Optional[str]:
    if not doc:
        return None
    first, *rest = doc.splitlines()
    return first + "\n" + dedent("\n".join(rest))


def console_main():
    FastGroupCommandParser().parse_args(sys.argv[1:])


if __name__ == "__main__":
    console_main()
