import uuid


def random_suffix() -> str:
    """랜덤 ID뒤에 붙일 UUID 기반의 6자리 임의의 ID를 생성합니다."""
    return uuid.uuid4().hex[:6]


def random_email(name: str = "user") -> str:
    """임의의 이메일 주소를 생성합니다."""
    return f"{name}-{random_suffix()}@example.com"


def random_group_name(name: str = "") -> str:
    """임의의 그룹 이름을 생성합니다."""
    return f"group-{name}-{random_suffix()}"
