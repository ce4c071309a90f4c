"""비밀번호 해싱 및 검증 유틸리티 모듈.

Password hashing helpers backed by bcrypt.
Chef signatures on the shift checklist and restock authorizations both
verify a RUT + password pair against the stored hash.
"""

import bcrypt


def hash_password(password: str) -> str:
    """평문 비밀번호를 bcrypt 해시로 변환합니다.

    Hash a plain text password with a fresh bcrypt salt.

    Args:
        password: 평문 비밀번호 (Plain text password)

    Returns:
        str: bcrypt 해시 문자열 (Bcrypt hash, ~60 chars)
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """평문 비밀번호와 저장된 해시를 비교합니다.

    Check a plain text password against a stored bcrypt hash.
    A malformed stored hash never verifies.

    Args:
        plain_password: 검증할 평문 비밀번호 (Password supplied by the signer)
        hashed_password: 저장된 bcrypt 해시 (Stored hash)

    Returns:
        bool: 일치 여부 (True if the password matches)
    """
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # 잘못된 해시 형식 — invalid salt / malformed hash
        return False
